# slicestore/immutable_utils.py
from typing import Any, Mapping, Type, TypeVar

from immutables import Map
from pydantic import BaseModel

from .errors import StoreError

T = TypeVar('T', bound=BaseModel)

def to_immutable(obj: Any) -> Any:
    """將任何對象轉換為不可變形式 (包括 Pydantic 模型)"""
    if isinstance(obj, BaseModel):
        # Pydantic 模型轉為 Map
        return Map({k: to_immutable(v) for k, v in obj.model_dump().items()})
    elif isinstance(obj, Map):
        # Map 本身不可變，只需處理其值
        return Map({k: to_immutable(v) for k, v in obj.items()})
    elif isinstance(obj, dict):
        # 字典轉為 Map
        return Map({k: to_immutable(v) for k, v in obj.items()})
    elif isinstance(obj, list):
        # 列表轉為元組
        return tuple(to_immutable(i) for i in obj)
    elif isinstance(obj, (set, frozenset)):
        # 集合轉為凍結集合
        return frozenset(to_immutable(i) for i in obj)
    # 其他類型直接返回
    return obj

def to_pydantic(map_obj: Map, model_class: Type[T]) -> T:
    """將 Map 轉換回 Pydantic 模型 (僅在需要時使用)"""
    # 將 Map 轉為字典
    data_dict = to_dict(map_obj)
    # 使用字典建立 Pydantic 模型
    return model_class(**data_dict)

def to_dict(obj: Any) -> Any:
    """將 Map 及其巢狀結構轉換為普通字典"""
    if isinstance(obj, Map):
        return {k: to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, tuple):
        return [to_dict(i) for i in obj]
    elif isinstance(obj, frozenset):
        return {to_dict(i) for i in obj}
    return obj

def as_patch(obj: Any, *, partial: bool = True) -> Mapping[Any, Any]:
    """
    將 set() 收到的 patch 正規化為平面 Mapping。

    Args:
        obj: dict、Map、其他 Mapping、Pydantic 模型或 None。
        partial: Pydantic 模型是否只取顯式設定過的欄位。

    Returns:
        可直接合併進狀態的 Mapping。

    Raises:
        StoreError: 無法作為 patch 的類型。
    """
    if obj is None:
        return {}
    if isinstance(obj, (Map, Mapping)):
        # Map 與 dict 都屬於 Mapping，不需要複製
        return obj
    if isinstance(obj, BaseModel):
        return obj.model_dump(exclude_unset=partial)
    raise StoreError(
        f"無法將 {type(obj).__name__} 作為狀態 patch",
        operation="set",
        patch_type=type(obj).__name__,
    )


def freeze_patch(patch: Mapping[Any, Any]) -> Map:
    """只轉換 patch 的值，頂層鍵保持不變"""
    return Map({k: to_immutable(v) for k, v in patch.items()})
