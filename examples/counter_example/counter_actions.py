import time
from typing import Optional

from pydantic import BaseModel
from slicestore import create_action_table, on


# ====== Model Definition ======
class CounterState(BaseModel):
    count: int = 0
    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[float] = None


# ====== Handlers ======
# 每個 handler 只返回要覆蓋的欄位，Store 負責淺合併
def increment_handler(state, _):
    return {"count": state["count"] + 1, "last_updated": time.time()}

def decrement_handler(state, _):
    return {"count": state["count"] - 1, "last_updated": time.time()}

def reset_handler(state, value):
    return {"count": value or 0, "last_updated": time.time()}

def increment_by_handler(state, amount):
    return {"count": state["count"] + amount, "last_updated": time.time()}

def load_count_request_handler(state, _):
    return {"loading": True, "error": None}

def load_count_success_handler(state, count):
    return {"loading": False, "count": count, "last_updated": time.time()}

def load_count_failure_handler(state, error):
    return {"loading": False, "error": error}


counter_actions = create_action_table(
    on("increment", increment_handler),
    on("decrement", decrement_handler),
    on("reset", reset_handler),
    on("increment_by", increment_by_handler),
    on("load_count_request", load_count_request_handler),
    on("load_count_success", load_count_success_handler),
    on("load_count_failure", load_count_failure_handler),
)
