import logging
from typing import Any, Generic, Mapping, Optional, TypeVar

import reactivex
from immutables import Map
from pydantic import BaseModel, ValidationError
from reactivex import Observable
from reactivex.abc import ObserverBase, SchedulerBase
from reactivex.disposable import Disposable

from .actions import ActionDispatcher
from .config import StoreOptions
from .errors import ConfigurationError, StoreError
from .immutable_utils import as_patch, freeze_patch, to_immutable
from .subscriptions import SubscriptionRegistry
from .types import (
    ActionFn, Callback, DevToolsExtension, EqualityChecker, PartialState, Selector, State, T, Unsubscribe,
)

logger = logging.getLogger(__name__)

S = TypeVar("S")


class Store(Generic[S]):
    """
    狀態容器，管理應用狀態並通知訂閱者狀態變更。

    狀態只能透過 set 以淺合併的方式更新；每次更新都會產生新的不可變 Map，
    並同步地通知所有訂閱者。每個訂閱者只有在自己的 slice 改變時才會收到通知。
    """

    def __init__(
        self,
        state: Any = None,
        actions: Optional[Mapping[str, ActionFn]] = None,
        name: Optional[str] = None,
        *,
        devtools: Optional[DevToolsExtension] = None,
        options: Optional[StoreOptions] = None,
    ):
        """
        初始化 Store 實例。

        Args:
            state: 初始狀態，可為 dict、Map、其他 Mapping 或 Pydantic 模型。
                會被複製成新的 Map，呼叫端的物件不會被共用。
            actions: 可選的 action 表，名稱到 (state, payload) -> patch 的映射。
            name: Store 名稱，同時作為 devtools 會話名稱。
            devtools: 提供 actions 時必須注入的 devtools 擴充。
            options: 其他選項。

        Raises:
            StoreError: 初始狀態的類型無法作為狀態。
            ConfigurationError: 提供 actions 但沒有 devtools。
        """
        options = options or StoreOptions()
        if name is not None and name != options.name:
            options = options.model_copy(update={"name": name})
        self.options = options

        # 狀態版本，每次 set 遞增
        self._version = 0
        # 初始化內部狀態
        self._state: State = self._initial_state(state)
        # 初始化訂閱管理器
        self._registry = SubscriptionRegistry(self.get_state, self._get_version, options)
        # 只有提供 action 表時才建立 actions
        self.actions: Optional[ActionDispatcher] = None
        if actions is not None:
            self.actions = ActionDispatcher(self, actions, devtools, options.name)
        elif devtools is not None:
            logger.debug("Store %s 沒有 action 表，不開啟 devtools 會話", options.name)

    def _initial_state(self, state: Any) -> State:
        """
        複製初始狀態為新的 Map。

        Args:
            state: 呼叫端提供的初始狀態。

        Returns:
            Store 擁有的狀態。
        """
        if state is None:
            return Map()
        if isinstance(state, BaseModel):
            state = state.model_dump()
        elif not isinstance(state, (Map, Mapping)):
            raise StoreError(
                f"初始狀態必須是 Mapping 或 Pydantic 模型，收到 {type(state).__name__}",
                operation="init",
            )
        if self.options.freeze:
            return to_immutable(Map(state))
        return Map(state)

    def _get_version(self) -> int:
        return self._version

    @property
    def name(self) -> Optional[str]:
        return self.options.name

    @property
    def version(self) -> int:
        """目前狀態的版本號，每次 set 遞增。"""
        return self._version

    @property
    def state(self) -> State:
        """
        獲取當前狀態的快照。

        Returns:
            當前狀態。
        """
        return self._state

    def get_state(self) -> State:
        """
        獲取當前狀態。

        Returns:
            當前的不可變狀態。
        """
        return self._state

    def set(self, partial: PartialState) -> None:
        """
        以淺合併的方式更新狀態，並同步通知所有訂閱者。

        patch 中的頂層鍵覆蓋舊值，其他鍵保持不變；巢狀值會被整個替換，
        不會遞迴合併。

        Args:
            partial: patch，或接收當前狀態並返回 patch 的函數。

        Raises:
            StoreError: patch 的類型無法合併。
            Exception: partial 函數拋出的異常會原樣傳出，狀態保持不變。
        """
        # 先完整計算出新狀態，失敗時不會有任何部分更新
        patch = partial(self._state) if callable(partial) else partial
        patch = as_patch(patch)
        if self.options.freeze:
            patch = freeze_patch(patch)
        self._update_state(self._state.update(patch))

    def _update_state(self, new_state: State) -> None:
        """
        更新內部狀態並通知訂閱者。

        Args:
            new_state: 新的狀態。
        """
        self._state = new_state
        self._version += 1
        # 通知訂閱者，傳遞這一輪的狀態快照與版本
        self._registry.notify(new_state, self._version)

    def subscribe(
        self,
        callback: Callback[T],
        selector: Optional[Selector[T]] = None,
        equality_fn: Optional[EqualityChecker[T]] = None,
    ) -> Unsubscribe:
        """
        訂閱狀態的一部分。

        Args:
            callback: slice 改變時以新的 slice 呼叫。
            selector: 從狀態推導 slice 的函數，預設為整個狀態。
            equality_fn: 判斷 slice 是否改變的函數，預設為 is_same。

        Returns:
            取消訂閱的函數，可重複呼叫。
        """
        return self._registry.subscribe(callback, selector, equality_fn)

    def select(
        self,
        selector: Optional[Selector[T]] = None,
        equality_fn: Optional[EqualityChecker[T]] = None,
    ) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        每個 observer 都有自己的訂閱者；slice 改變時發出 (舊 slice, 新 slice)。
        dispose 訂閱時會同時取消 Store 的訂閱。

        Args:
            selector: 一個函數，接收整個狀態並返回希望觀察的部分。
            equality_fn: 判斷 slice 是否改變的函數。

        Returns:
            一個可觀察對象，發送 (old_slice, new_slice) 元組。
        """
        registry = self._registry

        def on_subscribe(observer: ObserverBase, scheduler: Optional[SchedulerBase] = None) -> Disposable:
            last = {}

            def on_change(new_slice):
                old_slice, last["slice"] = last["slice"], new_slice
                observer.on_next((old_slice, new_slice))

            subscriber = registry.add(on_change, selector, equality_fn)
            last["slice"] = subscriber.current_slice
            handle = subscriber.handle
            return Disposable(lambda: registry.remove(handle))

        return reactivex.create(on_subscribe)

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    def teardown(self) -> None:
        """
        移除所有訂閱者。
        """
        self._registry.clear()

    def __enter__(self) -> "Store[S]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()

    def __repr__(self):
        return f"Store(name={self.name!r}, version={self._version}, subscribers={len(self._registry)})"


def create_store(
    state: Any = None,
    actions: Optional[Mapping[str, ActionFn]] = None,
    name: Optional[str] = None,
    *,
    devtools: Optional[DevToolsExtension] = None,
    **options: Any,
) -> Store:
    """
    創建一個新的 Store 實例。

    Args:
        state: 初始狀態。
        actions: 可選的 action 表。
        name: Store 名稱。
        devtools: 提供 actions 時必須注入的 devtools 擴充。
        **options: StoreOptions 的欄位，例如 freeze、error_policy、error_handler。

    Returns:
        Store: 新創建的 Store 實例。

    Raises:
        ConfigurationError: 選項不正確，或提供 actions 但沒有 devtools。

    範例:
        >>> store = create_store({"count": 0})
        >>> store.set(lambda s: {"count": s["count"] + 1})
        >>> store.get_state()["count"]
        1
    """
    try:
        store_options = StoreOptions(name=name, **options)
    except ValidationError as err:
        raise ConfigurationError(
            f"無效的 Store 選項: {err.errors()}",
            component="Store",
            config_key=",".join(sorted(options)),
        ) from err
    return Store(state, actions, devtools=devtools, options=store_options)
