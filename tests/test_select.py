from reactivex import operators as ops

from slicestore import create_store


def test_select_emits_old_and_new_slices():
    store = create_store({"count": 0, "name": "a"})
    values = []

    disposable = store.select(lambda s: s["count"]).subscribe(on_next=values.append)
    store.set({"count": 1})
    store.set({"name": "b"})
    store.set({"count": 2})

    assert values == [(0, 1), (1, 2)]

    disposable.dispose()
    store.set({"count": 3})

    assert values == [(0, 1), (1, 2)]
    assert store.subscriber_count == 0


def test_each_observer_gets_its_own_subscriber():
    store = create_store({"count": 0})
    first, second = [], []
    counts = store.select(lambda s: s["count"])

    counts.subscribe(on_next=first.append)
    store.set({"count": 1})
    counts.subscribe(on_next=second.append)
    store.set({"count": 2})

    assert first == [(0, 1), (1, 2)]
    assert second == [(1, 2)]
    assert store.subscriber_count == 2


def test_select_composes_with_operators():
    store = create_store({"count": 0})
    doubled = []

    store.select(lambda s: s["count"]).pipe(
        ops.map(lambda pair: pair[1] * 2),
        ops.filter(lambda value: value > 2),
    ).subscribe(on_next=doubled.append)

    for count in range(1, 4):
        store.set({"count": count})

    assert doubled == [4, 6]
