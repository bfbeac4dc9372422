"""配置與日誌等級測試."""

import logging

import pytest
from pydantic import ValidationError

from pyngystore import (
    ConfigurationError, LogDefinitions, LogLevel, PerformanceMeasurement, StateHistory,
    StoreOptions, get_log_type,
)
from pyngystore.options import prepare_options


class TestPrepareOptions:
    """prepare_options 測試類."""

    def test_requires_options(self) -> None:
        with pytest.raises(ConfigurationError) as info:
            prepare_options(None)

        assert info.value.details["config_key"] == "initial_state"

    def test_plain_state_is_kept(self) -> None:
        options = StoreOptions(initial_state={"count": 0})

        assert prepare_options(options) is options

    def test_undoable_wraps_state(self) -> None:
        options = prepare_options({"initial_state": 3, "history": {"undoable": True, "limit": 5}})

        assert options.initial_state == StateHistory(past=(), present=3, future=())
        assert options.undoable
        assert options.history.limit == 5

    def test_history_shaped_state_without_undoable(self) -> None:
        options = prepare_options({"initial_state": {"past": [1], "present": 2, "future": []}})

        assert options.initial_state == StateHistory(past=(1,), present=2, future=())
        assert not options.undoable

    def test_falsy_initial_state_is_allowed(self) -> None:
        assert prepare_options({"initial_state": 0}).initial_state == 0

    def test_rejects_invalid_values(self) -> None:
        with pytest.raises(ValidationError):
            prepare_options({"initial_state": {}, "history": {"limit": -1}})
        with pytest.raises(ValidationError):
            prepare_options({"initial_state": {}, "measure_performance": "sometimes"})

    def test_defaults(self) -> None:
        options = prepare_options({"initial_state": {}, "measure_performance": "all"})

        assert options.measure_performance is PerformanceMeasurement.ALL
        assert not options.log_dispatched_actions
        assert not options.propagate_error
        assert not options.dev_tools_options.disable


class TestLogLevels:
    """日誌等級測試類."""

    @pytest.mark.parametrize("level, numeric", [
        (LogLevel.DEBUG, logging.DEBUG),
        (LogLevel.LOG, logging.INFO),
        (LogLevel.WARN, logging.WARNING),
        (LogLevel.ERROR, logging.ERROR),
    ])
    def test_numeric(self, level, numeric) -> None:
        assert level.numeric == numeric

    def test_trace_is_below_debug(self) -> None:
        assert LogLevel.TRACE.numeric < logging.DEBUG
        assert logging.getLevelName(LogLevel.TRACE.numeric) == "TRACE"

    def test_get_log_type(self) -> None:
        options = StoreOptions(
            initial_state={},
            log_definitions=LogDefinitions.model_validate({"performance_log": {"level": "error"}}),
        )

        assert get_log_type(options, "performance_log", LogLevel.INFO) is LogLevel.ERROR
        assert get_log_type(options, "dispatched_actions", LogLevel.INFO) is LogLevel.INFO
        assert get_log_type(StoreOptions(initial_state={}), "performance_log", LogLevel.DEBUG) is LogLevel.DEBUG
