"""
SliceStore 共用的類型定義。

集中管理狀態、patch、selector、相等性檢查以及 devtools 協議的類型，
避免各模組之間的循環引用。
"""
from typing import Any, Callable, Hashable, Mapping, Optional, TypeVar, Union

from immutables import Map
from typing_extensions import Protocol, TypedDict

T = TypeVar("T")
P = TypeVar("P")
R = TypeVar("R")

# 狀態：鍵可為任意可雜湊值（字串、數字、列舉、sentinel 物件）
State = Map
Patch = Mapping[Hashable, Any]
PartialState = Union[Optional[Patch], Callable[[State], Optional[Patch]]]

Selector = Callable[[State], T]
EqualityChecker = Callable[[T, T], bool]
Callback = Callable[[T], None]
Unsubscribe = Callable[[], None]

# action 表的項目：(state, payload) -> patch
ActionFn = Callable[[State, Any], Optional[Patch]]
BoundAction = Callable[..., None]


class DevToolsConfig(TypedDict):
    """connect() 時傳給 devtools 的設定。"""
    name: Optional[str]


class DevToolsConnection(Protocol):
    """一個已開啟的 devtools 會話。"""

    def init(self, state: State) -> None:
        ...

    def send(self, action_name: str, state: State) -> None:
        ...


class DevToolsExtension(Protocol):
    """可注入的 devtools 擴充，負責開啟會話。"""

    def connect(self, config: DevToolsConfig) -> DevToolsConnection:
        ...


class StoreLike(Protocol):
    """ActionDispatcher 依賴的 Store 介面。"""

    options: Any
    version: int

    def get_state(self) -> State:
        ...

    def set(self, partial: PartialState) -> None:
        ...
