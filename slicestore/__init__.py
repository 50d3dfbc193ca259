"""
SliceStore：極簡的響應式狀態容器。

單一的不可變狀態、淺合併的 set，以及依 selector 與相等性檢查
過濾通知的訂閱者。
"""

from .errors import (
    SliceStoreError, StoreError, ActionError, SelectorError, SubscriberError,
    DevToolsError, ConfigurationError, ErrorHandler, global_error_handler, handle_error
)
from .config import StoreOptions
from .equality import is_same, shallow_equal, deep_equal
from .subscriptions import Subscriber, SubscriptionRegistry
from .actions import Action, ActionDispatcher, on, create_action_table
from .devtools import DevToolsRecorder, LoggingDevTools
from .store import Store, create_store
from .store_selectors import create_selector, select_key
from .immutable_utils import to_immutable, to_dict, to_pydantic

__version__ = "0.1.0"

# 匯出所有公開 API
__all__ = [
    # Errors
    "SliceStoreError", "StoreError", "ActionError", "SelectorError",
    "SubscriberError", "DevToolsError", "ConfigurationError",
    "ErrorHandler", "global_error_handler", "handle_error",

    # Config
    "StoreOptions",

    # Equality
    "is_same", "shallow_equal", "deep_equal",

    # Subscriptions
    "Subscriber", "SubscriptionRegistry",

    # Actions
    "Action", "ActionDispatcher", "on", "create_action_table",

    # DevTools
    "DevToolsRecorder", "LoggingDevTools",

    # Store
    "Store", "create_store",

    # Selectors
    "create_selector", "select_key",

    # Immutable Utils
    "to_immutable", "to_dict", "to_pydantic",
]
