from typing import Any, Callable, Hashable, List, Optional, Tuple, overload

from .equality import deep_equal
from .types import R, Selector, State, T


@overload
def create_selector(selector: Selector[T], *, deep: bool = False, maxsize: int = 128) -> Selector[T]:
    """單一選擇器重載"""
    ...

@overload
def create_selector(*selectors: Selector[Any], result_fn: Callable[..., R], deep: bool = False, maxsize: int = 128) -> Selector[R]:
    """組合多個選擇器重載"""
    ...

def create_selector(*selectors: Callable[[Any], Any], result_fn: Optional[Callable[..., Any]] = None, deep: bool = False, maxsize: int = 128) -> Selector[Any]:
    """
    創建一個複合選擇器，支援記憶化與深淺比較

    訂閱者每次通知都會重新執行 selector；當輸入值沒有變化時，
    記憶化可以避免重算 result_fn，並讓結果保持同一個物件，
    使預設的 is_same 比較不會誤判為變更。

    Args:
        *selectors: 多個輸入選擇器，這些函數會從 state 中提取對應的值
        result_fn: 處理輸出結果的函數，將多個選擇器的輸出進行處理
        deep: 是否進行深度比較（預設為 False）
        maxsize: 緩存的最大條目數，預設為128

    Returns:
        經過快取優化的 selector 函數
    """
    if not selectors:
        raise ValueError("create_selector 至少需要一個輸入選擇器")

    # 如果沒有 result_fn 且只有一個選擇器，直接返回該選擇器
    if not result_fn and len(selectors) == 1:
        return selectors[0]

    # 如果沒有提供 result_fn，預設為返回所有輸入值的元組
    if not result_fn:
        result_fn = lambda *args: args

    # 最近使用的放在尾端
    cache: List[Tuple[Tuple[Any, ...], Any]] = []
    stats = {"hits": 0, "misses": 0}

    def matches(inputs: Tuple[Any, ...], cached_inputs: Tuple[Any, ...]) -> bool:
        if deep:
            return deep_equal(inputs, cached_inputs)
        # 標準淺比較
        return all(a is b for a, b in zip(inputs, cached_inputs))

    def selector(state: State) -> Any:
        """
        經過快取優化的選擇器函數

        selector 或 result_fn 拋出的異常會直接傳出，由呼叫端決定如何處理。
        """
        inputs = tuple(select(state) for select in selectors)

        for index, (cached_inputs, cached_result) in enumerate(cache):
            if matches(inputs, cached_inputs):
                stats["hits"] += 1
                cache.append(cache.pop(index))
                return cached_result

        # 緩存未命中，計算新結果
        stats["misses"] += 1
        result = result_fn(*inputs)
        cache.append((inputs, result))
        # 維護緩存大小
        while len(cache) > maxsize:
            cache.pop(0)
        return result

    # 添加緩存管理方法
    def cache_info():
        return (stats["hits"], stats["misses"], maxsize, len(cache))

    def cache_clear():
        cache.clear()
        stats["hits"] = stats["misses"] = 0

    selector.cache_info = cache_info  # type: ignore
    selector.cache_clear = cache_clear  # type: ignore

    return selector


def select_key(*path: Hashable, default: Any = None) -> Selector[Any]:
    """
    建立讀取（巢狀）鍵的 selector。

    >>> get_name = select_key("user", "name")
    >>> get_name({"user": {"name": "a"}})
    'a'
    """
    if not path:
        raise ValueError("select_key 至少需要一個鍵")

    def selector(state: State) -> Any:
        value: Any = state
        for key in path:
            try:
                value = value[key]
            except (KeyError, IndexError, TypeError):
                return default
        return value

    selector.__qualname__ = f"select_key{path!r}"
    return selector
