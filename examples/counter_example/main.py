"""
計數器範例。

執行方式（於專案根目錄）:
    python -m examples.counter_example.main
"""
import json
import logging
import time

from slicestore import to_dict

from .counter_store import store
from .counter_selectors import get_count, get_counter_info, get_loading


def fake_api_load():
    """模擬從 API 載入數據，完成後呼叫 load_count_success"""
    store.actions.load_count_request()
    # Store 只在單一執行緒上使用，這裡直接等待
    time.sleep(1.0)
    store.actions.load_count_success(42)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # 訂閱狀態變化
    store.subscribe(lambda count: print(f"計數變化: {count}"), get_count)
    store.subscribe(lambda loading: print(f"載入中: {loading}"), get_loading)

    store.select(get_counter_info).subscribe(
        on_next=lambda info_tuple: print(
            f"計數器信息更新: {json.dumps(info_tuple[1], ensure_ascii=False, indent=2)}"
        )
    )

    # 分發actions
    print("\n==== 開始測試基本操作 ====")
    store.actions.increment()
    store.actions.increment_by(5)
    store.actions.decrement()
    store.actions.reset(10)
    store.actions.increment_by(99)

    # 直接 set 不經過 devtools
    store.set(lambda s: {"count": s["count"] * 2})

    # 模擬載入
    print("\n==== 開始測試載入操作 ====")
    fake_api_load()

    # 打印最終狀態
    print("\n==== 最終狀態 ====")
    print(to_dict(store.state))
