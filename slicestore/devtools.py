"""
可注入 Store 的 devtools 擴充。

Store 不會自行尋找任何全域的 devtools；需要 action 表的 Store 必須在建立時
注入一個實作 connect(config) 的物件。本模組提供兩種現成的實作：

- DevToolsRecorder: 在記憶體中記錄每次 action 與狀態快照，適合測試與偵錯。
- LoggingDevTools: 透過 logging 輸出每次 action 與狀態。
"""
import logging
from typing import Any, List, Optional, Tuple

from .actions import Action
from .immutable_utils import to_dict
from .types import DevToolsConfig, State

logger = logging.getLogger(__name__)


class RecorderConnection:
    """DevToolsRecorder 開啟的單一會話。"""

    def __init__(self, recorder: "DevToolsRecorder", name: Optional[str]):
        self.recorder = recorder
        self.name = name
        self.initial_state: Optional[State] = None
        self.history: List[Tuple[Action[Any], State]] = []

    def init(self, state: State) -> None:
        """
        記錄初始狀態。

        Args:
            state: Store 建立時的狀態。
        """
        self.initial_state = state

    def send(self, action_name: str, state: State) -> None:
        """
        記錄一次 action 與其後的狀態。

        Args:
            action_name: action 名稱。
            state: action 之後的 store 狀態。
        """
        entry = (Action(action_name), state)
        self.history.append(entry)
        self.recorder.history.append((self.name, entry[0], state))

    def get_history(self) -> List[Tuple[Action[Any], State]]:
        return list(self.history)


class DevToolsRecorder:
    """
    記錄每次 action 與 state 快照。

    使用場景:
    - 測試時斷言 action 確實被轉發。
    - 偵錯時回看狀態的變化歷史（只記錄，不支援回放）。
    """

    def __init__(self) -> None:
        """初始化 DevToolsRecorder。"""
        self.connections: List[RecorderConnection] = []
        self.history: List[Tuple[Optional[str], Action[Any], State]] = []

    def connect(self, config: DevToolsConfig) -> RecorderConnection:
        """
        開啟一個新的會話。

        Args:
            config: 包含會話名稱的設定。

        Returns:
            新的 RecorderConnection。
        """
        connection = RecorderConnection(self, config.get("name"))
        self.connections.append(connection)
        return connection

    def get_history(self) -> List[Tuple[Optional[str], Action[Any], State]]:
        """
        返回所有會話的歷史快照列表。

        Returns:
            歷史快照列表，每項為 (會話名稱, action, next_state)
        """
        return list(self.history)


class LoggingConnection:
    def __init__(self, name: Optional[str], log: logging.Logger, level: int):
        self.name = name or "store"
        self._log = log
        self._level = level

    def init(self, state: State) -> None:
        self._log.log(self._level, "[%s] init: %s", self.name, to_dict(state))

    def send(self, action_name: str, state: State) -> None:
        self._log.log(self._level, "[%s] %s -> %s", self.name, action_name, to_dict(state))


class LoggingDevTools:
    """
    日誌 devtools，記錄每個 action 之後的 state。

    使用場景:
    - 偵錯時需要觀察每次 state 的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        """
        初始化 LoggingDevTools。

        Args:
            log: 輸出用的 logger，預設為本模組的 logger。
            level: 日誌等級。
        """
        self._log = log or logger
        self._level = level

    def connect(self, config: DevToolsConfig) -> LoggingConnection:
        return LoggingConnection(config.get("name"), self._log, self._level)
