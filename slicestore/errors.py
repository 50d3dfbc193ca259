"""
SliceStore 錯誤處理模組。

提供結構化的異常層級以及集中式的錯誤處理器，
用於記錄訂閱者與 devtools 等旁路的非致命錯誤。
"""

import functools
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union, cast

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class SliceStoreError(Exception):
    """所有 SliceStore 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        將異常轉換為可序列化的字典。

        Returns:
            包含錯誤類型、訊息與細節的字典。
        """
        data = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }
        cause = self.__cause__
        if cause is not None:
            data["cause"] = f"{cause.__class__.__name__}: {cause}"
        return data

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class StoreError(SliceStoreError):
    """與 Store 操作相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message, {"operation": operation, **kwargs})
        self.operation = operation


class ActionError(SliceStoreError):
    """與 action 表相關的錯誤。"""

    def __init__(self, message: str, action_type: str, **kwargs: Any):
        super().__init__(message, {"action_type": action_type, **kwargs})
        self.action_type = action_type


class SelectorError(SliceStoreError):
    """訂閱者的 selector 或相等性檢查在通知過程中失敗。"""

    def __init__(self, message: str, selector_name: Optional[str] = None, handle: Optional[int] = None, **kwargs: Any):
        super().__init__(message, {"selector_name": selector_name, "handle": handle, **kwargs})
        self.selector_name = selector_name
        self.handle = handle


class SubscriberError(SliceStoreError):
    """訂閱者的 callback 在通知過程中失敗。"""

    def __init__(self, message: str, callback_name: Optional[str] = None, handle: Optional[int] = None, **kwargs: Any):
        super().__init__(message, {"callback_name": callback_name, "handle": handle, **kwargs})
        self.callback_name = callback_name
        self.handle = handle


class DevToolsError(SliceStoreError):
    """devtools sink 在初始化或發送時失敗。"""

    def __init__(self, message: str, stage: str, action_type: Optional[str] = None, **kwargs: Any):
        super().__init__(message, {"stage": stage, "action_type": action_type, **kwargs})
        self.stage = stage
        self.action_type = action_type


class ConfigurationError(SliceStoreError):
    """配置相關的錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any):
        super().__init__(message, {"component": component, "config_key": config_key, **kwargs})
        self.component = component
        self.config_key = config_key


class ErrorHandler:
    """
    集中式錯誤處理器，用於日誌記錄和錯誤報告。

    Store 在遇到不應中斷主流程的錯誤時（例如某個訂閱者的 selector 拋出異常），
    會將錯誤交給此處理器，而不是直接向上拋出。
    """

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None):
        """
        初始化錯誤處理器。

        Args:
            log_to_console: 是否透過 logging 輸出錯誤。
            log_to_file: 是否額外寫入日誌檔案。
            log_file: 日誌檔案路徑，log_to_file 為 True 時必須提供。
        """
        if log_to_file and not log_file:
            raise ConfigurationError("log_to_file 需要指定 log_file", component="ErrorHandler", config_key="log_file")
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file
        self.handlers: List[Callable[[SliceStoreError], None]] = []
        self._file_logger: Optional[logging.Logger] = None
        if log_to_file:
            self._file_logger = logging.getLogger(f"{__name__}.file.{log_file}")
            # 同一個檔案的處理器共用同一個 FileHandler
            if not self._file_logger.handlers:
                handler = logging.FileHandler(cast(str, log_file), encoding="utf-8")
                handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
                self._file_logger.addHandler(handler)
            self._file_logger.propagate = False

    def register_handler(self, handler: Callable[[SliceStoreError], None]) -> None:
        """
        註冊一個額外的錯誤處理函數。

        Args:
            handler: 接收 SliceStoreError 的函數。
        """
        self.handlers.append(handler)

    def unregister_handler(self, handler: Callable[[SliceStoreError], None]) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def handle(self, error: Union[SliceStoreError, Exception]) -> None:
        """
        處理一個錯誤：記錄日誌並通知所有已註冊的處理函數。

        Args:
            error: 要處理的錯誤，非 SliceStoreError 會被包裝。
        """
        if not isinstance(error, SliceStoreError):
            wrapped = SliceStoreError(str(error), {"original_type": error.__class__.__name__})
            wrapped.__cause__ = error
            error = wrapped

        if self.log_to_console:
            logger.error("%s: %s", error.__class__.__name__, error, exc_info=error.__cause__)
        if self._file_logger is not None:
            self._file_logger.error("%s", error.to_dict())

        for handler in list(self.handlers):
            try:
                handler(error)
            except Exception:
                # 處理函數本身失敗不能影響呼叫端
                logger.exception("錯誤處理函數 %r 執行失敗", handler)

    def close(self) -> None:
        """
        關閉日誌檔案。共用同一個檔案的其他處理器也會停止寫入。
        """
        if self._file_logger is None:
            return
        for handler in list(self._file_logger.handlers):
            self._file_logger.removeHandler(handler)
            handler.close()
        self._file_logger = None


# 單例錯誤處理器
global_error_handler = ErrorHandler()


def handle_error(func: F) -> F:
    """
    裝飾器：將函數中拋出的 SliceStoreError 交給全域處理器後再重新拋出。
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SliceStoreError as err:
            global_error_handler.handle(err)
            raise
    return cast(F, wrapper)
