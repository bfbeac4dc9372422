"""
基於 PyNgyStore 的中介軟體模組。

中介軟體是在 reducer 鏈之前 (before) 或之後 (after) 執行的攔截函數，
簽名為 (state, published_state, settings, calling_action)，
可以只宣告前面幾個參數。回傳值的意義:

- False: 中止本次 dispatch，不發佈任何狀態
- None 或假值純量: 沿用前一個狀態
- 其他值: 成為下一個中介軟體的輸入狀態
"""

import inspect
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .actions import accepts_var_positional, count_positional_parameters
from .logging_utils import LogLevel, get_logger
from .types import Middleware, PerformanceLike

_MAX_MIDDLEWARE_ARGS = 4
_FALSY_SCALARS = (bool, int, float, complex, str, bytes)


class MiddlewarePlacement(str, Enum):
    BEFORE = "before"
    AFTER = "after"


class PipedAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    params: Tuple[Any, ...] = ()


class CallingAction(BaseModel):
    """
    本次 dispatch 的唯讀描述，提供給中介軟體與日誌使用。

    屬性:
        name: 動作名稱，管道分發時以 "->" 串接
        params: 所有管道動作的參數依序串接
        piped_actions: 各個管道動作的名稱與參數
    """

    model_config = ConfigDict(frozen=True)

    name: str
    params: Tuple[Any, ...] = ()
    piped_actions: Tuple[PipedAction, ...] = ()


def is_state_value(value: Any) -> bool:
    """None 與假值純量 (0、""、False 等) 不算是狀態。"""
    if value is None:
        return False
    if isinstance(value, _FALSY_SCALARS) and not value:
        return False
    return True


# ———— Step outcomes ————
class Continue:
    __slots__ = ('state',)

    def __init__(self, state: Any):
        self.state = state


class Abort:
    __slots__ = ()


class Fail:
    __slots__ = ('error',)

    def __init__(self, error: Exception):
        self.error = error


StepOutcome = Union[Continue, Abort, Fail]


class MiddlewareHandle:
    """
    register_middleware 回傳的句柄，同時也是註冊記錄。

    屬性:
        middleware: 中介軟體函數
        placement: 執行位置
        settings: 註冊時提供的設定，原樣傳給中介軟體
        name: 用於性能標記的名稱
    """
    __slots__ = ('middleware', 'placement', 'settings', 'name', '_arity')

    def __init__(self, middleware: Middleware, placement: MiddlewarePlacement, settings: Any = None):
        self.middleware = middleware
        self.placement = MiddlewarePlacement(placement)
        self.settings = settings
        self.name = getattr(middleware, "__name__", type(middleware).__name__)
        if accepts_var_positional(middleware):
            self._arity = _MAX_MIDDLEWARE_ARGS
        else:
            self._arity = min(count_positional_parameters(middleware), _MAX_MIDDLEWARE_ARGS)

    def __repr__(self):
        return f"MiddlewareHandle(name='{self.name}', placement={self.placement.value!r})"

    def call(self, state: Any, published_state: Any, calling_action: CallingAction) -> Any:
        args = (state, published_state, self.settings, calling_action)
        return self.middleware(*args[:self._arity])


MiddlewareRef = Union[MiddlewareHandle, Middleware]


class MiddlewarePipeline:
    """
    依註冊順序保存中介軟體，並按位置依序執行。

    Args:
        performance: 計時標記服務，每個中介軟體執行後都會留下標記
        logger: 記錄被吞掉的中介軟體錯誤
        propagate_error: 為 True 時中介軟體的異常會中止 dispatch 並傳給呼叫端
    """

    def __init__(self, performance: PerformanceLike, logger: Optional[logging.Logger] = None,
                 propagate_error: bool = False):
        self._performance = performance
        self._logger = get_logger(logger)
        self._propagate_error = propagate_error
        self._middlewares: Dict[Middleware, MiddlewareHandle] = {}

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self) -> Iterator[MiddlewareHandle]:
        return iter(list(self._middlewares.values()))

    def register(self, middleware: Middleware, placement: MiddlewarePlacement,
                 settings: Any = None) -> MiddlewareHandle:
        handle = MiddlewareHandle(middleware, placement, settings)
        self._middlewares[middleware] = handle
        return handle

    def unregister(self, ref: MiddlewareRef) -> None:
        middleware = ref.middleware if isinstance(ref, MiddlewareHandle) else ref
        if middleware in self._middlewares:
            del self._middlewares[middleware]

    def is_registered(self, ref: MiddlewareRef) -> bool:
        middleware = ref.middleware if isinstance(ref, MiddlewareHandle) else ref
        return middleware in self._middlewares

    def for_placement(self, placement: MiddlewarePlacement) -> List[MiddlewareHandle]:
        return [h for h in self._middlewares.values() if h.placement == placement]

    async def run(self, state: Any, placement: MiddlewarePlacement, calling_action: CallingAction,
                  published_state: Any = None) -> Any:
        """
        依序執行指定位置的中介軟體。

        Args:
            state: 起始狀態
            placement: 要執行的位置
            calling_action: 本次 dispatch 的描述
            published_state: 最近一次發佈的狀態

        Returns:
            最終狀態；任何中介軟體中止時返回 False

        Raises:
            Exception: propagate_error 開啟時，中介軟體拋出的原始異常
        """
        accumulated = state
        for handle in self.for_placement(placement):
            outcome = await self._execute(handle, accumulated, published_state, calling_action)

            if isinstance(outcome, Abort):
                return False
            if isinstance(outcome, Fail):
                if self._propagate_error:
                    raise outcome.error
                self._logger.warning(
                    "Middleware %s failed while dispatching %s: %s",
                    handle.name, calling_action.name, outcome.error,
                )
                continue
            accumulated = outcome.state
        return accumulated

    async def _execute(self, handle: MiddlewareHandle, state: Any, published_state: Any,
                       calling_action: CallingAction) -> StepOutcome:
        try:
            result = handle.call(state, published_state, calling_action)
            if inspect.isawaitable(result):
                result = await result
        except Exception as err:
            return Fail(err)
        finally:
            self._performance.mark(f"dispatch-{handle.placement.value}-{handle.name}")

        if result is False:
            return Abort()
        if not is_state_value(result):
            return Continue(state)
        return Continue(result)


# ———— Bundled middleware ————
def log_middleware(state: Any, _published_state: Any = None, settings: Any = None) -> None:
    """
    記錄每次產生的新狀態。

    settings 可提供 "log_type"（LogLevel 名稱，預設 info）與 "logger"。
    無效的 log_type 會退回 log 等級。
    """
    settings = settings or {}
    try:
        level = LogLevel(settings.get("log_type", LogLevel.INFO))
    except ValueError:
        level = LogLevel.LOG
    logger = get_logger(settings.get("logger"))
    logger.log(level.numeric, "New state: %r", state)
