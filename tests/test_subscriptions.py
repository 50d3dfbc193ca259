import pytest
from immutables import Map

from slicestore import (
    SelectorError, SubscriberError, SubscriptionRegistry, create_store, shallow_equal,
)


def count_of(state):
    return state["count"]


def test_counter_scenario():
    store = create_store({"count": 0, "name": "a"})
    received = []
    store.subscribe(received.append, count_of)

    store.set({"count": 1})
    assert received == [1]

    store.set({"name": "b"})
    assert received == [1]

    store.set(lambda s: {"count": s["count"] + 1})
    assert received == [1, 2]


def test_slice_is_seeded_eagerly_without_callback():
    state = Map({"count": 7})
    registry = SubscriptionRegistry(lambda: state, lambda: 0)
    calls = []

    subscriber = registry.add(calls.append, count_of)

    assert subscriber.current_slice == 7
    assert calls == []


def test_default_selector_receives_full_state():
    store = create_store({"count": 0})
    received = []
    store.subscribe(received.append)

    store.set({"count": 1})

    assert len(received) == 1
    assert received[0] is store.get_state()


def test_untouched_slice_does_not_fire():
    store = create_store({"count": 0, "user": {"name": "a"}})
    received = []
    store.subscribe(received.append, lambda s: s["user"])

    store.set({"count": 1})
    store.set(lambda s: {"count": s["count"] + 1})

    assert received == []


def test_selectors_are_evaluated_independently():
    store = create_store({"a": 1, "b": 1})
    got_a, got_b = [], []
    store.subscribe(got_a.append, lambda s: s["a"])
    store.subscribe(got_b.append, lambda s: s["b"])

    store.set({"a": 2})

    assert got_a == [2]
    assert got_b == []


def test_custom_equality_suppresses_structurally_equal_slices():
    store = create_store({"tags": ["x"]})
    by_identity, by_shallow = [], []
    store.subscribe(by_identity.append, lambda s: s["tags"])
    store.subscribe(by_shallow.append, lambda s: s["tags"], shallow_equal)

    store.set({"tags": ["x"]})

    assert by_identity == [["x"]]
    assert by_shallow == []


def test_unsubscribe_stops_delivery_and_is_idempotent():
    store = create_store({"count": 0})
    received = []
    unsubscribe = store.subscribe(received.append, count_of)

    store.set({"count": 1})
    unsubscribe()
    unsubscribe()
    store.set({"count": 2})

    assert received == [1]
    assert store.subscriber_count == 0


def test_registry_remove_reports_whether_removed():
    registry = SubscriptionRegistry(lambda: Map(), lambda: 0)
    subscriber = registry.add(lambda _: None)

    assert subscriber.handle in registry
    assert registry.remove(subscriber.handle) is True
    assert registry.remove(subscriber.handle) is False
    assert subscriber.active is False


def test_callback_must_be_callable():
    store = create_store({})

    with pytest.raises(TypeError):
        store.subscribe("not callable")


def test_selector_error_at_subscribe_propagates():
    store = create_store({})

    with pytest.raises(KeyError):
        store.subscribe(lambda _: None, count_of)
    assert store.subscriber_count == 0


def test_failing_selector_is_isolated(error_handler, reported):
    store = create_store({"count": 0}, error_handler=error_handler)
    received = []

    def fragile(state):
        if state["count"] > 0:
            raise RuntimeError("boom")
        return state["count"]

    store.subscribe(lambda v: received.append(("fragile", v)), fragile)
    store.subscribe(received.append, count_of)

    store.set({"count": 1})

    assert received == [1]
    assert len(reported) == 1
    assert isinstance(reported[0], SelectorError)
    assert isinstance(reported[0].__cause__, RuntimeError)


def test_failing_equality_is_isolated(error_handler, reported):
    store = create_store({"count": 0}, error_handler=error_handler)
    received = []

    def broken_equality(a, b):
        raise ValueError("cannot compare")

    store.subscribe(received.append, count_of, broken_equality)
    store.subscribe(received.append, count_of)

    store.set({"count": 1})

    assert received == [1]
    assert isinstance(reported[0], SelectorError)


def test_failing_callback_is_isolated(error_handler, reported):
    store = create_store({"count": 0}, error_handler=error_handler)
    received = []

    def explode(value):
        raise RuntimeError("callback failed")

    store.subscribe(explode, count_of)
    store.subscribe(received.append, count_of)

    store.set({"count": 1})

    assert received == [1]
    assert isinstance(reported[0], SubscriberError)
    assert store.get_state()["count"] == 1


def test_raise_policy_finishes_sweep_then_raises(error_handler, reported):
    store = create_store({"count": 0}, error_policy="raise", error_handler=error_handler)
    received = []

    def fragile(state):
        raise RuntimeError("boom")

    store.subscribe(lambda _: None, lambda s: 0)
    store.subscribe(lambda _: None, lambda s: s["count"] and fragile(s))
    store.subscribe(lambda _: None, lambda s: s["count"] and fragile(s))
    store.subscribe(received.append, count_of)

    with pytest.raises(SelectorError) as exc_info:
        store.set({"count": 1})

    assert received == [1]
    assert store.get_state()["count"] == 1
    assert exc_info.value.details["suppressed"] == 1
    assert len(reported) == 1


def test_nested_set_does_not_regress_other_subscribers():
    store = create_store({"count": 0})
    seen_a, seen_b = [], []

    def bump(count):
        seen_a.append(count)
        if count == 1:
            store.set({"count": 2})

    store.subscribe(bump, count_of)
    store.subscribe(seen_b.append, count_of)

    store.set({"count": 1})

    assert seen_a == [1, 2]
    assert seen_b == [2]
    assert store.get_state()["count"] == 2


def test_unsubscribe_inside_own_callback_completes_that_callback():
    store = create_store({"count": 0})
    received = []

    def once(value):
        unsubscribe()
        received.append(value)

    unsubscribe = store.subscribe(once, count_of)

    store.set({"count": 1})
    store.set({"count": 2})

    assert received == [1]


def test_subscriber_removed_during_sweep_is_skipped():
    store = create_store({"count": 0})
    received = []
    handles = {}

    store.subscribe(lambda _: handles["second"](), count_of)
    handles["second"] = store.subscribe(received.append, count_of)

    store.set({"count": 1})

    assert received == []


def test_subscriber_added_during_sweep_is_seeded_with_new_state():
    store = create_store({"count": 0})
    late = []

    def add_late(value):
        if value == 1:
            store.subscribe(late.append, count_of)

    store.subscribe(add_late, count_of)

    store.set({"count": 1})
    assert late == []

    store.set({"count": 2})
    assert late == [2]
