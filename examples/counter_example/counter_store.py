from slicestore import create_store, LoggingDevTools
from .counter_actions import CounterState, counter_actions

# 創建Store，action 表需要注入 devtools
store = create_store(
    CounterState(),
    counter_actions,
    name="counter",
    devtools=LoggingDevTools(),
)
