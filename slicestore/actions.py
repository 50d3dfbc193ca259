"""
基於 SliceStore 的 Action 定義模組。

此模組提供 Action 記錄、建立 action 表的輔助函數，以及 ActionDispatcher：
它把 action 表中的每個純函數綁定為可呼叫的 action，呼叫時計算 patch、
交給 Store 合併，並把 action 名稱與新狀態轉發給 devtools。
"""
import logging
from typing import Any, Dict, Generic, Iterator, Mapping, Optional, Tuple, Union

from .errors import ActionError, ConfigurationError, DevToolsError, handle_error
from .types import (
    ActionFn, BoundAction, DevToolsConnection, DevToolsExtension, P, StoreLike,
)

logger = logging.getLogger(__name__)


class Action(Generic[P]):
    """
    表示一個有類型和可選負載的動作。

    泛型參數:
        P: 負載的類型

    屬性:
        type: 動作的類型字符串
        payload: 動作的負載數據（可選）
    """
    __slots__ = ('type', 'payload')

    def __init__(self, type: str, payload: Optional[P] = None):
        super().__setattr__('type', type)
        super().__setattr__('payload', payload)

    def __setattr__(self, name, value):
        if name not in self.__slots__:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        if hasattr(self, name):
            raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, Action):
            return False
        return self.type == other.type and self.payload == other.payload

    def __hash__(self):
        try:
            return hash((self.type, self.payload))
        except TypeError:
            return hash((self.type, id(self.payload)))

    def __repr__(self):
        return f"Action(type='{self.type}', payload={repr(self.payload)})"


ActionHandler = Union[Tuple[str, ActionFn], Mapping[str, ActionFn]]


def on(action_type: Any, handler: ActionFn) -> Dict[str, ActionFn]:
    """
    創建一個 action 名稱與處理函式的映射。

    Args:
        action_type: action 名稱，或帶有 type 屬性的已綁定 action。
        handler: 處理函式，接收 (state, payload) 並返回 patch。

    Returns:
        一個包含 {action_type: handler} 的字典。
    """
    if callable(action_type) and hasattr(action_type, 'type'):
        # 如果是已綁定的 action，則提取其名稱
        action_type = action_type.type
    return {str(action_type): handler}


def create_action_table(*handlers: ActionHandler) -> Dict[str, ActionFn]:
    """
    將多個 (name, fn) 元組或 on() 產生的字典合併為一個 action 表。

    Args:
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        action 名稱到處理函式的字典。

    範例:
        >>> table = create_action_table(
        ...     on("increment", lambda s, amount: {"count": s["count"] + amount}),
        ...     ("reset", lambda s, _: {"count": 0}),
        ... )
        >>> sorted(table)
        ['increment', 'reset']
    """
    table: Dict[str, ActionFn] = {}
    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            # 如果 handler 是元組，則解構為 action 類型與處理函式
            action_type, handler_fn = handler
            table[action_type] = handler_fn
        elif isinstance(handler, Mapping):
            # 如果 handler 是字典，則直接更新到 table
            table.update(handler)
        else:
            raise ActionError(
                f"無法識別的 action 處理器: {handler!r}",
                action_type=str(handler),
            )
    return table


# ActionDispatcher 的內部屬性都使用名稱改編，這個前綴留給內部使用
_RESERVED_PREFIX = "_ActionDispatcher__"


def _is_reserved(name: str) -> bool:
    return (name.startswith("__") and name.endswith("__")) or name.startswith(_RESERVED_PREFIX)


def _validate_table(table: Mapping[Any, Any]) -> Dict[str, ActionFn]:
    if not isinstance(table, Mapping):
        raise ActionError(
            f"action 表必須是 Mapping，收到 {type(table).__name__}",
            action_type="<table>",
        )
    validated: Dict[str, ActionFn] = {}
    for name, fn in table.items():
        if not isinstance(name, str) or not name:
            raise ActionError(f"action 名稱必須是非空字串: {name!r}", action_type=repr(name))
        if _is_reserved(name):
            raise ActionError(f"action 名稱 '{name}' 為保留名稱", action_type=name)
        if not callable(fn):
            raise ActionError(f"action '{name}' 不是可呼叫的函數", action_type=name)
        validated[name] = fn
    return validated


class ActionDispatcher:
    """
    將 action 表綁定到 Store，並把每次 action 轉發給 devtools。

    綁定在建構時一次完成，之後的 action 集合固定不變。
    可用屬性或索引取得 action：

        store.actions.increment(5)
        store.actions["increment"](5)

    內部屬性都經過名稱改編，除了 dunder 名稱之外，任何 action 名稱都能以屬性存取。
    """

    @handle_error
    def __init__(
        self,
        store: StoreLike,
        table: Mapping[str, ActionFn],
        devtools: Optional[DevToolsExtension],
        name: Optional[str] = None,
    ):
        """
        初始化 ActionDispatcher。

        Args:
            store: 要綁定的 Store。
            table: action 名稱到 (state, payload) -> patch 函數的映射。
            devtools: devtools 擴充，必須提供。
            name: devtools 會話名稱。

        Raises:
            ActionError: action 表格式不正確，或使用了保留名稱。
            ConfigurationError: 沒有提供 devtools，或無法建立連線。
        """
        table = _validate_table(table)
        if devtools is None:
            raise ConfigurationError(
                "提供 action 表時必須注入 devtools 擴充",
                component="ActionDispatcher",
                config_key="devtools",
            )
        try:
            connection = devtools.connect({"name": name})
        except Exception as err:
            raise ConfigurationError(
                f"無法連線到 devtools: {err}",
                component="ActionDispatcher",
                config_key="devtools",
            ) from err

        self.__store = store
        self.__name = name
        self.__connection: DevToolsConnection = connection
        self.__actions: Dict[str, BoundAction] = {
            action_type: self.__bind(action_type, fn) for action_type, fn in table.items()
        }
        logger.debug("已綁定 %d 個 action (store=%s)", len(self.__actions), name)

        try:
            connection.init(store.get_state())
        except Exception as err:
            self.__report(err, stage="init")

    def __bind(self, action_type: str, fn: ActionFn) -> BoundAction:
        """
        建立單一 action 的綁定函數。

        Args:
            action_type: action 名稱。
            fn: 計算 patch 的純函數。

        Returns:
            接收 payload 的 action 函數。
        """
        store = self.__store

        def action(payload: Any = None) -> None:
            # fn 拋出的異常直接傳給呼叫端，狀態保持不變
            patch = fn(store.get_state(), payload)
            version = store.version
            try:
                store.set(patch)
            finally:
                # 只要狀態已被替換，就算訂閱者的錯誤正在向上拋出也要轉發
                if store.version != version:
                    self.__send(action_type)

        action.__name__ = action_type
        action.__qualname__ = f"{type(self).__name__}.{action_type}"
        action.__doc__ = getattr(fn, "__doc__", None)
        # 添加 type 屬性以便於識別
        action.type = action_type  # type: ignore
        return action

    def __send(self, action_type: str) -> None:
        try:
            self.__connection.send(action_type, self.__store.get_state())
        except Exception as err:
            self.__report(err, stage="send", action_type=action_type)

    def __report(self, err: Exception, stage: str, action_type: Optional[str] = None) -> None:
        error = DevToolsError(
            f"devtools {stage} 失敗: {err}",
            stage=stage,
            action_type=action_type,
            store=self.__name,
        )
        error.__cause__ = err
        self.__store.options.resolved_error_handler.handle(error)

    def __getattr__(self, name: str) -> BoundAction:
        # 只在一般屬性查找失敗時才會進入
        actions = self.__dict__.get(f"{_RESERVED_PREFIX}actions", {})
        try:
            return actions[name]
        except KeyError:
            raise AttributeError(f"沒有名為 '{name}' 的 action") from None

    def __getitem__(self, name: str) -> BoundAction:
        try:
            return self.__actions[name]
        except KeyError:
            raise KeyError(f"沒有名為 '{name}' 的 action") from None

    def __contains__(self, name: object) -> bool:
        return name in self.__actions

    def __iter__(self) -> Iterator[str]:
        return iter(self.__actions)

    def __len__(self) -> int:
        return len(self.__actions)

    def __dir__(self):
        return list(super().__dir__()) + list(self.__actions)

    def __repr__(self):
        return f"ActionDispatcher(name={self.__name!r}, actions={list(self.__actions)!r})"
