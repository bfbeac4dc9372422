"""
日誌等級與日誌類型的對應。

Store 會以固定的日誌類型（dispatched_actions、performance_log、dev_tools_status）
寫入注入的 logger，每個類型的等級可以透過 LogDefinitions 調整。
"""

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_LOGGER_NAME = "pyngystore"

# 標準 logging 沒有 trace，放在 DEBUG 之下
TRACE = logging.DEBUG - 5
logging.addLevelName(TRACE, "TRACE")


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    LOG = "log"
    WARN = "warn"
    ERROR = "error"

    @property
    def numeric(self) -> int:
        """對應到 logging 模組的數值等級。"""
        return _NUMERIC_LEVELS[self]


_NUMERIC_LEVELS = {
    LogLevel.TRACE: TRACE,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.LOG: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LogDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: Optional[LogLevel] = None


class LogDefinitions(BaseModel):
    """各日誌類型的等級設定，未設定的類型使用呼叫端的預設值。"""

    model_config = ConfigDict(frozen=True)

    dispatched_actions: Optional[LogDefinition] = None
    performance_log: Optional[LogDefinition] = None
    dev_tools_status: Optional[LogDefinition] = None


def get_log_type(options: Any, log_type: str, default_level: LogLevel) -> LogLevel:
    """
    取得指定日誌類型應使用的等級。

    Args:
        options: 具有 log_definitions 屬性的 Store 配置
        log_type: 日誌類型鍵名
        default_level: 沒有設定時的預設等級

    Returns:
        要使用的 LogLevel
    """
    definitions = getattr(options, "log_definitions", None)
    definition = getattr(definitions, log_type, None) if definitions is not None else None
    if definition is not None and definition.level is not None:
        return definition.level
    return default_level


def get_logger(logger: Optional[logging.Logger] = None) -> logging.Logger:
    return logger if logger is not None else logging.getLogger(DEFAULT_LOGGER_NAME)
