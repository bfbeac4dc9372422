"""
Store 配置模型。
"""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError
from .history import HistoryOptions, StateHistory, is_state_history, to_state_history
from .logging_utils import LogDefinitions
from .performance import PerformanceMeasurement


class DevToolsOptions(BaseModel):
    """傳給 DevTools 連線的選項，額外欄位原樣保留。"""

    model_config = ConfigDict(extra="allow", frozen=True)

    disable: bool = False
    name: Optional[str] = None


class StoreOptions(BaseModel):
    """
    Store 的完整配置。

    屬性:
        initial_state: 初始狀態（必填）
        history: 撤銷/重做設定
        log_dispatched_actions: 是否記錄每次 dispatch 的動作名稱
        measure_performance: 性能量測模式
        propagate_error: 中介軟體的異常是否傳給 dispatch 呼叫端
        log_definitions: 各日誌類型的等級
        dev_tools_options: DevTools 選項
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    initial_state: Any = None
    history: HistoryOptions = Field(default_factory=HistoryOptions)
    log_dispatched_actions: bool = False
    measure_performance: Optional[PerformanceMeasurement] = None
    propagate_error: bool = False
    log_definitions: Optional[LogDefinitions] = None
    dev_tools_options: DevToolsOptions = Field(default_factory=DevToolsOptions)

    @property
    def undoable(self) -> bool:
        return self.history.undoable


def prepare_options(options: Union[StoreOptions, Mapping[str, Any], None]) -> StoreOptions:
    """
    驗證配置並在需要時將初始狀態包裝為歷史狀態。

    具有歷史形狀 (past、present、future) 的初始狀態一律轉為 StateHistory，
    即使沒有設定 history.undoable；此後該 Store 的每個新狀態都必須是歷史狀態。
    undoable 只決定一般初始狀態是否被包裝，以及是否註冊 "jump" 動作。

    Args:
        options: StoreOptions 或等價的字典

    Returns:
        可直接交給 Store 的配置

    Raises:
        ConfigurationError: 沒有提供 initial_state
    """
    if options is None:
        raise ConfigurationError("initial_state must be provided via options", "initial_state")
    if not isinstance(options, StoreOptions):
        options = StoreOptions.model_validate(dict(options))
    if options.initial_state is None:
        raise ConfigurationError("initial_state must be provided via options", "initial_state")

    initial_state = options.initial_state
    if is_state_history(initial_state):
        initial_state = to_state_history(initial_state)
    elif options.history.undoable:
        initial_state = StateHistory(past=(), present=initial_state, future=())

    if initial_state is options.initial_state:
        return options
    return options.model_copy(update={"initial_state": initial_state})
