"""
訂閱管理模組。

每個訂閱者是一筆獨立的記錄，保存 selector、相等性檢查、callback
以及最近一次交付（或初始化）的 slice。Store 在每次 set 之後呼叫
SubscriptionRegistry.notify 進行一輪同步通知。
"""
import itertools
import logging
from typing import Any, Callable, Dict, Generic, List, Optional

from reactivex.disposable import Disposable

from .config import StoreOptions
from .equality import is_same
from .errors import SelectorError, SliceStoreError, SubscriberError
from .types import Callback, EqualityChecker, Selector, State, T, Unsubscribe

logger = logging.getLogger(__name__)


def _select_all(state: State) -> State:
    return state


def _name_of(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class Subscriber(Generic[T]):
    """
    單一訂閱者的記錄。

    屬性:
        handle: 在 registry 中的穩定編號
        callback: slice 變更時呼叫的函數
        selector: 從狀態推導 slice 的函數
        equality_fn: 判斷新舊 slice 是否相同的函數
        current_slice: 最近一次交付或初始化的 slice
        version: current_slice 所對應的狀態版本
        active: 是否仍在 registry 中
    """
    __slots__ = ("handle", "callback", "selector", "equality_fn", "current_slice", "version", "active")

    def __init__(
        self,
        handle: int,
        callback: Callback[T],
        selector: Selector[T],
        equality_fn: EqualityChecker[T],
        current_slice: T,
        version: int,
    ):
        self.handle = handle
        self.callback = callback
        self.selector = selector
        self.equality_fn = equality_fn
        self.current_slice = current_slice
        self.version = version
        self.active = True

    def __repr__(self):
        return (
            f"Subscriber(handle={self.handle}, selector={_name_of(self.selector)}, "
            f"current_slice={self.current_slice!r}, active={self.active})"
        )


class SubscriptionRegistry:
    """
    管理 Store 的所有訂閱者。

    Attributes:
        _subscribers: handle 到訂閱者記錄的映射，保持插入順序。
    """

    def __init__(
        self,
        get_state: Callable[[], State],
        get_version: Callable[[], int],
        options: Optional[StoreOptions] = None,
    ):
        """
        初始化 SubscriptionRegistry。

        Args:
            get_state: 讀取 Store 當前狀態的函數。
            get_version: 讀取 Store 當前狀態版本的函數。
            options: Store 選項，決定錯誤策略與錯誤處理器。
        """
        self._get_state = get_state
        self._get_version = get_version
        self._options = options or StoreOptions()
        self._subscribers: Dict[int, Subscriber[Any]] = {}
        self._handles = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, handle: object) -> bool:
        return handle in self._subscribers

    def add(
        self,
        callback: Callback[T],
        selector: Optional[Selector[T]] = None,
        equality_fn: Optional[EqualityChecker[T]] = None,
    ) -> Subscriber[T]:
        """
        建立並註冊一個訂閱者。

        slice 會立即以當前狀態初始化，所以訂閱者不會收到它已經反映的值。
        此時 selector 拋出的異常會直接傳給呼叫端。

        Args:
            callback: slice 變更時呼叫的函數。
            selector: 推導 slice 的函數，預設為整個狀態。
            equality_fn: 相等性檢查，預設為 is_same。

        Returns:
            新的訂閱者記錄。
        """
        if not callable(callback):
            raise TypeError(f"callback 必須可呼叫，收到 {type(callback).__name__}")
        selector = selector or _select_all
        equality_fn = equality_fn or is_same

        subscriber = Subscriber(
            handle=next(self._handles),
            callback=callback,
            selector=selector,
            equality_fn=equality_fn,
            current_slice=selector(self._get_state()),
            version=self._get_version(),
        )
        self._subscribers[subscriber.handle] = subscriber
        logger.debug("註冊訂閱者 %d (selector=%s)", subscriber.handle, _name_of(selector))
        return subscriber

    def remove(self, handle: int) -> bool:
        """
        移除訂閱者，重複呼叫不會出錯。

        Args:
            handle: 訂閱者編號。

        Returns:
            這次呼叫是否真的移除了訂閱者。
        """
        subscriber = self._subscribers.pop(handle, None)
        if subscriber is None:
            return False
        subscriber.active = False
        logger.debug("移除訂閱者 %d", handle)
        return True

    def subscribe(
        self,
        callback: Callback[T],
        selector: Optional[Selector[T]] = None,
        equality_fn: Optional[EqualityChecker[T]] = None,
    ) -> Unsubscribe:
        """
        註冊訂閱者並返回取消訂閱的函數。

        Returns:
            無參數的取消訂閱函數，可安全地呼叫多次。
        """
        subscriber = self.add(callback, selector, equality_fn)
        handle = subscriber.handle
        return Disposable(lambda: self.remove(handle)).dispose

    def notify(self, state: State, version: int) -> None:
        """
        對所有訂閱者執行一輪通知。

        所有訂閱者都以同一個狀態快照計算 slice。巢狀的 set（在 callback 中
        再次 set）已經以更新狀態評估過的訂閱者會被略過，避免退回舊的 slice。
        單一訂閱者的錯誤不會中斷這一輪通知。

        Args:
            state: 這一輪通知使用的狀態快照。
            version: 該快照的版本。

        Raises:
            SliceStoreError: error_policy 為 "raise" 時，在整輪通知完成後拋出第一個錯誤。
        """
        errors: List[SliceStoreError] = []

        # 以開始時的快照迭代，期間新增的訂閱者不在這一輪內
        for subscriber in list(self._subscribers.values()):
            if not subscriber.active or subscriber.version >= version:
                continue
            subscriber.version = version

            try:
                new_slice = subscriber.selector(state)
                changed = not subscriber.equality_fn(subscriber.current_slice, new_slice)
            except Exception as exc:
                error = SelectorError(
                    f"訂閱者 {subscriber.handle} 的 selector 或相等性檢查失敗: {exc}",
                    selector_name=_name_of(subscriber.selector),
                    handle=subscriber.handle,
                )
                error.__cause__ = exc
                errors.append(error)
                continue

            if not changed:
                continue

            subscriber.current_slice = new_slice
            try:
                subscriber.callback(new_slice)
            except Exception as exc:
                error = SubscriberError(
                    f"訂閱者 {subscriber.handle} 的 callback 失敗: {exc}",
                    callback_name=_name_of(subscriber.callback),
                    handle=subscriber.handle,
                )
                error.__cause__ = exc
                errors.append(error)

        if errors:
            self._report(errors)

    def _report(self, errors: List[SliceStoreError]) -> None:
        handler = self._options.resolved_error_handler
        if self._options.error_policy == "raise":
            first, rest = errors[0], errors[1:]
            for error in rest:
                handler.handle(error)
            first.details["suppressed"] = len(rest)
            raise first
        for error in errors:
            handler.handle(error)

    def clear(self) -> None:
        """移除所有訂閱者"""
        for subscriber in self._subscribers.values():
            subscriber.active = False
        self._subscribers.clear()
