"""
PyNgyStore 錯誤處理模組。

所有由 Store 拋出的異常都繼承自 PyNgyStoreError，並攜帶結構化的 details，
方便日誌記錄與 DevTools 回報。
"""

import traceback as _traceback
from typing import Any, Dict, Optional


class PyNgyStoreError(Exception):
    """所有 PyNgyStore 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = "".join(_traceback.format_stack(limit=8)[:-1])

    def to_dict(self) -> Dict[str, Any]:
        """
        將錯誤轉換為可序列化的字典。

        Returns:
            包含錯誤類型、訊息與細節的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return self.message


def _describe(reducer: Any) -> Optional[str]:
    if reducer is None:
        return None
    if isinstance(reducer, str):
        return reducer
    name = getattr(reducer, "name", None)
    if isinstance(name, str):
        return name
    return getattr(reducer, "__name__", repr(reducer))


class UnregisteredActionError(PyNgyStoreError):
    """嘗試 dispatch 一個尚未註冊的 action。"""

    def __init__(self, reducer: Any = None, message: Optional[str] = None) -> None:
        action_name = _describe(reducer)
        super().__init__(
            message or f"Tried to dispatch an unregistered action {action_name}",
            {"action": action_name},
        )
        self.action_name = action_name


class InvalidReducerError(PyNgyStoreError):
    """註冊時 reducer 不符合約定（例如沒有任何參數）。"""

    def __init__(self, reducer: Any) -> None:
        super().__init__(
            "The reducer is expected to have one or more parameters, "
            "where the first will be the present state",
            {"reducer": _describe(reducer)},
        )


class ReducerContractError(PyNgyStoreError):
    """Reducer 回傳了既不是中止標記、也不是物件狀態的值。"""

    def __init__(self, message: str, action_name: Optional[str] = None, result: Any = None) -> None:
        super().__init__(message, {"action": action_name, "result": repr(result)})
        self.action_name = action_name


class MissingArgumentsError(PyNgyStoreError):
    """DevTools 遠端 action 缺少參數。"""

    def __init__(self, action_name: Optional[str] = None) -> None:
        super().__init__("No action arguments provided", {"action": action_name})


class StateHistoryError(PyNgyStoreError):
    """對非歷史狀態執行了歷史操作。"""

    def __init__(self, state: Any = None) -> None:
        super().__init__(
            "Provided state is not of type StateHistory",
            {"state_type": type(state).__name__},
        )


class ConfigurationError(PyNgyStoreError):
    """配置相關的錯誤。"""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        super().__init__(message, {"config_key": config_key})
        self.config_key = config_key
