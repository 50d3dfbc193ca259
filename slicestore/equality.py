"""
訂閱者使用的相等性檢查函數。

預設的 is_same 只比較「同一個值」：同一物件，或同類型且值相等的不可變純量。
它不做結構比較；需要結構比較的訂閱者可改用 shallow_equal 或 deep_equal。
"""
import math
from collections.abc import Mapping
from typing import Any

# 以值比較的不可變純量
_SCALAR_TYPES = (int, float, complex, str, bytes, bool, type(None))


def is_same(a: Any, b: Any) -> bool:
    """
    預設的相等性檢查。

    Args:
        a: 上一次的 slice。
        b: 新的 slice。

    Returns:
        兩者為同一物件，或為同類型且值相等的純量時返回 True。
    """
    if a is b:
        return True
    if type(a) is not type(b) or not isinstance(a, _SCALAR_TYPES):
        return False
    if isinstance(a, float) and a != a:
        # NaN 視為等於自身
        return b != b
    if isinstance(a, float) and a == 0.0:
        # 0.0 與 -0.0 不是同一個值
        return b == 0.0 and math.copysign(1.0, a) == math.copysign(1.0, b)
    return a == b


def shallow_equal(a: Any, b: Any) -> bool:
    """
    淺比較：逐一以 is_same 比較 Mapping 的值或序列的元素。

    Args:
        a: 上一次的 slice。
        b: 新的 slice。

    Returns:
        頂層內容相同時返回 True。
    """
    if is_same(a, b):
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key in a:
            if key not in b or not is_same(a[key], b[key]):
                return False
        return True
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(is_same(x, y) for x, y in zip(a, b))
    return False


def deep_equal(a: Any, b: Any) -> bool:
    """安全的深度比較，出錯時返回False"""
    try:
        if a is b:
            return True
        if isinstance(a, Mapping) and isinstance(b, Mapping):
            if len(a) != len(b):
                return False
            for key in a:
                if key not in b or not deep_equal(a[key], b[key]):
                    return False
            return True
        if type(a) != type(b):
            return False
        if isinstance(a, _SCALAR_TYPES):
            return is_same(a, b)
        if isinstance(a, (list, tuple)):
            if len(a) != len(b):
                return False
            return all(deep_equal(x, y) for x, y in zip(a, b))
        return bool(a == b)
    except Exception:
        return False
