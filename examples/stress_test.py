"""
大量訂閱者的扇出壓力測試。

執行方式（於專案根目錄）:
    python -m examples.stress_test
"""
import random
import time
import uuid
from typing import Optional, Tuple

from typing_extensions import TypedDict

from slicestore import DevToolsRecorder, create_selector, create_store, select_key, shallow_equal

# ====== 1. 定義狀態模型 ======
class TodoItem(TypedDict):
    id: str
    text: str
    completed: bool

class TodoState(TypedDict):
    todos: Tuple[TodoItem, ...]
    filter: str
    last_updated: Optional[float]
    history: Tuple[int, ...]

todo_initial_state = TodoState(todos=(), filter="all", last_updated=None, history=())

# ====== 2. 定義 Actions ======
def add_todo(state, text):
    todo = TodoItem(id=str(uuid.uuid4()), text=text, completed=False)
    todos = state["todos"] + (todo,)
    return {"todos": todos, "last_updated": time.time(), "history": state["history"] + (len(todos),)}

def toggle_todo(state, todo_id):
    todos = tuple(
        ({**todo, "completed": not todo["completed"]} if todo["id"] == todo_id else todo)
        for todo in state["todos"]
    )
    return {"todos": todos, "last_updated": time.time()}

def set_filter(state, value):
    return {"filter": value}

# ====== 3. 定義 Selectors ======
get_todos = select_key("todos")
get_filter = select_key("filter")
get_visible = create_selector(
    get_todos,
    get_filter,
    result_fn=lambda todos, f: tuple(
        t for t in todos if f == "all" or (f == "done") == t["completed"]
    ),
)
get_done_count = create_selector(get_todos, result_fn=lambda todos: sum(t["completed"] for t in todos))


def run(subscriber_count: int = 2000, updates: int = 500) -> None:
    recorder = DevToolsRecorder()
    store = create_store(
        todo_initial_state,
        {"add_todo": add_todo, "toggle_todo": toggle_todo, "set_filter": set_filter},
        name="todos",
        devtools=recorder,
    )

    fired = {"visible": 0, "done": 0, "filter": 0}

    def bump(key):
        def callback(_):
            fired[key] += 1
        return callback

    # 三種不同的 slice，各自有自己的相等性檢查
    for i in range(subscriber_count):
        kind = i % 3
        if kind == 0:
            store.subscribe(bump("visible"), get_visible, shallow_equal)
        elif kind == 1:
            store.subscribe(bump("done"), get_done_count)
        else:
            store.subscribe(bump("filter"), get_filter)

    start = time.perf_counter()
    for n in range(updates):
        roll = random.random()
        if roll < 0.5 or not store.state["todos"]:
            store.actions.add_todo(f"todo {n}")
        elif roll < 0.9:
            store.actions.toggle_todo(random.choice(store.state["todos"])["id"])
        else:
            store.actions.set_filter(random.choice(["all", "done", "active"]))
    elapsed = time.perf_counter() - start

    print(f"訂閱者: {subscriber_count}, 更新: {updates}, 耗時 {elapsed:.3f}s "
          f"({elapsed / updates * 1000:.3f} ms/次)")
    print(f"觸發次數: {fired}")
    print(f"devtools 記錄: {len(recorder.get_history())} 筆")
    store.teardown()


if __name__ == "__main__":
    run()
