"""
PyNgyStore 庫的主要入口點。

單一資料來源的反應式狀態容器：註冊具名的狀態轉換函數，依序 dispatch，
並觀察由此產生的不可變狀態流。
"""

from .errors import (
    PyNgyStoreError, UnregisteredActionError, InvalidReducerError,
    ReducerContractError, MissingArgumentsError, StateHistoryError,
    ConfigurationError,
)
from .types import ABORT
from .actions import Action, ActionHandle, ActionRegistry
from .history import (
    StateHistory, HistoryOptions, undo, redo, jump, apply_limits,
    is_state_history, to_state_history, next_state_history,
)
from .middleware import (
    MiddlewarePlacement, MiddlewareHandle, MiddlewarePipeline,
    CallingAction, PipedAction, log_middleware,
)
from .dispatch_queue import DispatchQueue
from .performance import Performance, PerformanceEntry, PerformanceMeasurement
from .logging_utils import LogLevel, LogDefinition, LogDefinitions, get_log_type
from .options import StoreOptions, DevToolsOptions
from .devtools import DevToolsBridge, SubjectDevToolsConnection
from .store import Store, PipedDispatch, create_store, StoreModule, dispatchify
from .immutable_utils import to_immutable, to_dict

# 匯出所有公開 API
__all__ = [
    # Errors
    "PyNgyStoreError", "UnregisteredActionError", "InvalidReducerError",
    "ReducerContractError", "MissingArgumentsError", "StateHistoryError",
    "ConfigurationError",

    # Actions
    "ABORT", "Action", "ActionHandle", "ActionRegistry",

    # History
    "StateHistory", "HistoryOptions", "undo", "redo", "jump", "apply_limits",
    "is_state_history", "to_state_history", "next_state_history",

    # Middleware
    "MiddlewarePlacement", "MiddlewareHandle", "MiddlewarePipeline",
    "CallingAction", "PipedAction", "log_middleware",

    # Dispatch
    "DispatchQueue",

    # Performance & logging
    "Performance", "PerformanceEntry", "PerformanceMeasurement",
    "LogLevel", "LogDefinition", "LogDefinitions", "get_log_type",

    # Options
    "StoreOptions", "DevToolsOptions",

    # DevTools
    "DevToolsBridge", "SubjectDevToolsConnection",

    # Store
    "Store", "PipedDispatch", "create_store", "StoreModule", "dispatchify",

    # Immutable Utils
    "to_immutable", "to_dict",
]
