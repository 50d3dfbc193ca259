"""
Store 的配置模型。
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict
from typing_extensions import Literal

from .errors import ErrorHandler, global_error_handler


class StoreOptions(BaseModel):
    """
    建立 Store 時可調整的選項。

    Attributes:
        name: Store 名稱，同時作為 devtools 會話名稱。
        freeze: 是否將 patch 的值深度轉換為不可變結構。
        error_policy: 通知過程中訂閱者出錯時的策略。
            "log" 記錄後略過；"raise" 完成整輪通知後再拋出第一個錯誤。
        error_handler: 接收非致命錯誤的處理器，預設為全域處理器。
    """
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    name: Optional[str] = None
    freeze: bool = False
    error_policy: Literal["log", "raise"] = "log"
    error_handler: Optional[ErrorHandler] = None

    @property
    def resolved_error_handler(self) -> ErrorHandler:
        return self.error_handler or global_error_handler
