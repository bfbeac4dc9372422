import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, List, Mapping, Optional, Tuple, TypeVar, Union

from reactivex import Observable, operators as ops
from reactivex.subject import BehaviorSubject

from .actions import Action, ActionHandle, ActionRef, ActionRegistry, DispatchAction
from .devtools import DevToolsBridge
from .dispatch_queue import DispatchQueue
from .errors import ReducerContractError, UnregisteredActionError
from .history import StateHistory, apply_limits, is_state_history, jump, to_state_history
from .logging_utils import LogLevel, get_log_type, get_logger
from .middleware import (
    CallingAction, MiddlewareHandle, MiddlewarePipeline, MiddlewarePlacement,
    MiddlewareRef, PipedAction, is_state_value,
)
from .options import StoreOptions, prepare_options
from .performance import Performance, PerformanceMeasurement
from .types import DevToolsConnection, Middleware, PerformanceLike, Reducer

S = TypeVar("S")


class PipedDispatch(Generic[S]):
    """
    管道分發建構器。

    透過 pipe() 串接多個動作，最後呼叫 dispatch() 以單一佇列項目原子地套用。
    """

    def __init__(self, store: "Store[S]"):
        self._store = store
        self._actions: List[DispatchAction] = []

    def pipe(self, reducer: ActionRef, *params: Any) -> "PipedDispatch[S]":
        """
        加入下一個動作。

        Raises:
            UnregisteredActionError: 動作未註冊
        """
        resolved = self._store.actions.resolve(reducer)
        if resolved is None:
            raise UnregisteredActionError(reducer)
        self._actions.append(DispatchAction(resolved, tuple(params)))
        return self

    def dispatch(self) -> "asyncio.Future[None]":
        return self._store._queue_dispatch(tuple(self._actions))


class Store(Generic[S]):
    """
    狀態容器，管理應用狀態並通知訂閱者狀態變更。

    所有 dispatch 都經過同一個佇列依序執行：
    before 中介軟體 → reducer 鏈 → after 中介軟體 → 歷史長度限制 → 發佈。

    Args:
        options: StoreOptions 或等價的字典，initial_state 為必填
        logger: 日誌實例，預設為 "pyngystore" logger
        performance: 計時標記服務，預設為新的 Performance 實例
        dev_tools: DevTools 連線；為 None 時不啟用 DevTools
    """

    def __init__(self, options: Union[StoreOptions, Mapping[str, Any]], *,
                 logger: Optional[logging.Logger] = None,
                 performance: Optional[PerformanceLike] = None,
                 dev_tools: Optional[DevToolsConnection] = None):
        self._options = prepare_options(options)
        self._initial_state = self._options.initial_state
        # 歷史狀態或一般狀態在建構時就決定，之後不再依形狀推斷
        self._historied = isinstance(self._initial_state, StateHistory)
        self._logger = get_logger(logger)
        self._performance = performance if performance is not None else Performance()

        self._actions = ActionRegistry()
        self._middlewares = MiddlewarePipeline(
            self._performance, self._logger, self._options.propagate_error
        )
        self._queue = DispatchQueue(self._internal_dispatch, self._logger)

        self._state = BehaviorSubject(self._initial_state)
        self._state_observable = self._state.pipe(ops.as_observable())

        self._dev_tools: Optional[DevToolsBridge] = None
        if not self._options.dev_tools_options.disable:
            self._setup_dev_tools(dev_tools)

        if self._options.history.undoable:
            self._register_history_methods()

    # ———— 讀取 ————
    @property
    def state(self) -> Observable:
        """目前狀態的可觀察流，訂閱時會立即收到最新狀態。"""
        return self._state_observable

    @property
    def current_state(self) -> S:
        return self._state.value

    @property
    def initial_state(self) -> S:
        return self._initial_state

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def actions(self) -> ActionRegistry:
        return self._actions

    @property
    def middlewares(self) -> MiddlewarePipeline:
        return self._middlewares

    @property
    def performance(self) -> PerformanceLike:
        return self._performance

    @property
    def dev_tools(self) -> Optional[DevToolsBridge]:
        return self._dev_tools

    @property
    def is_historied(self) -> bool:
        return self._historied

    def select(self, selector: Optional[Callable[[S], Any]] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        Args:
            selector: 從狀態中取出部分值的函數；為 None 時觀察整個狀態

        Returns:
            只在選擇結果改變時發出的可觀察對象
        """
        if selector is None:
            return self._state_observable.pipe(ops.distinct_until_changed())
        return self._state_observable.pipe(
            ops.map(selector),
            ops.distinct_until_changed(),
        )

    # ———— 中介軟體 ————
    def register_middleware(self, middleware: Middleware, placement: MiddlewarePlacement,
                            settings: Any = None) -> MiddlewareHandle:
        return self._middlewares.register(middleware, placement, settings)

    def unregister_middleware(self, middleware: MiddlewareRef) -> None:
        self._middlewares.unregister(middleware)

    def is_middleware_registered(self, middleware: MiddlewareRef) -> bool:
        return self._middlewares.is_registered(middleware)

    # ———— 動作 ————
    def register_action(self, name: str, reducer: Reducer) -> ActionHandle:
        """
        註冊一個動作。

        Args:
            name: 動作名稱，可用於 dispatch 與 DevTools
            reducer: (state, *params) -> 新狀態 | False，可以是協程函數

        Returns:
            可用於後續 dispatch 與取消註冊的句柄

        Raises:
            InvalidReducerError: reducer 沒有任何位置參數
        """
        return self._actions.register(name, reducer)

    def unregister_action(self, reducer: Union[ActionHandle, Reducer]) -> None:
        self._actions.unregister(reducer)

    def is_action_registered(self, reducer: ActionRef) -> bool:
        return self._actions.is_registered(reducer)

    def reset_to_state(self, state: Any) -> None:
        """
        直接以指定狀態取代目前狀態，不經過佇列、中介軟體與 reducer。

        Raises:
            StateHistoryError: 歷史 Store 收到非歷史形狀的狀態
        """
        if self._historied:
            state = to_state_history(state)
        self._state.on_next(state)

    def dispatch(self, reducer: ActionRef, *params: Any) -> "asyncio.Future[None]":
        """
        分發一個動作。

        必須在執行中的事件迴圈內呼叫，動作會排入佇列依序執行。

        Args:
            reducer: 動作名稱、句柄或已註冊的 reducer
            *params: 傳給 reducer 的額外參數

        Returns:
            動作處理完成（或被中止）時完成的 Future；
            未註冊的動作會得到帶有 UnregisteredActionError 的 Future
        """
        action = self._actions.resolve(reducer)
        if action is None:
            future = asyncio.get_running_loop().create_future()
            future.set_exception(UnregisteredActionError(reducer))
            return future
        return self._queue_dispatch((DispatchAction(action, tuple(params)),))

    def pipe(self, reducer: ActionRef, *params: Any) -> PipedDispatch[S]:
        return PipedDispatch(self).pipe(reducer, *params)

    async def wait_for_idle(self) -> None:
        """等待佇列中所有已排入的 dispatch 處理完畢。"""
        await self._queue.join()

    def teardown(self) -> None:
        """斷開 DevTools 並結束狀態流。"""
        if self._dev_tools is not None:
            self._dev_tools.stop()
        self._state.on_completed()

    def __enter__(self) -> "Store[S]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()

    # ———— 內部流程 ————
    def _queue_dispatch(self, actions: Tuple[DispatchAction, ...]) -> "asyncio.Future[None]":
        return self._queue.enqueue(actions)

    async def _internal_dispatch(self, actions: Tuple[DispatchAction, ...]) -> None:
        unregistered = next((a for a in actions if not self._actions.is_registered(a.reducer)), None)
        if unregistered is not None:
            raise UnregisteredActionError(unregistered.reducer)

        self._performance.mark("dispatch-start")
        try:
            await self._apply(actions)
        finally:
            self._performance.clear_marks()
            self._performance.clear_measures()

    async def _apply(self, actions: Tuple[DispatchAction, ...]) -> None:
        piped_actions = [(self._actions.name_of(a.reducer), a) for a in actions]
        calling_action = CallingAction(
            name="->".join(name for name, _ in piped_actions),
            params=tuple(p for _, a in piped_actions for p in a.params),
            piped_actions=tuple(PipedAction(name=name, params=a.params) for name, a in piped_actions),
        )

        if self._options.log_dispatched_actions:
            self._log("dispatched_actions", LogLevel.INFO, "Dispatching: %s", calling_action.name)

        result = await self._middlewares.run(
            self.current_state, MiddlewarePlacement.BEFORE, calling_action, self.current_state
        )
        if result is False:
            return

        for name, action in piped_actions:
            result = action.reducer(result, *action.params)
            if inspect.isawaitable(result):
                result = await result
            if result is False:
                return

            self._performance.mark(f"dispatch-after-reducer-{name}")

            if not is_state_value(result):
                raise ReducerContractError("The reducer has to return a new state", name, result)

        resulting_state = await self._middlewares.run(
            result, MiddlewarePlacement.AFTER, calling_action, self.current_state
        )
        if resulting_state is False:
            return

        resulting_state = self._limit_history(resulting_state, calling_action)

        self._state.on_next(resulting_state)
        self._performance.mark("dispatch-end")
        self._log_performance(calling_action)

        if self._dev_tools is not None:
            self._dev_tools.send(Action(calling_action.name, calling_action.params), resulting_state)

    def _limit_history(self, state: Any, calling_action: CallingAction) -> Any:
        if not self._historied:
            return state
        if not is_state_history(state):
            raise ReducerContractError(
                "An undoable store expects every new state to be a StateHistory",
                calling_action.name, state,
            )
        history = to_state_history(state)
        limit = self._options.history.limit
        if limit:
            history = apply_limits(history, limit)
        return history

    def _log_performance(self, calling_action: CallingAction) -> None:
        mode = self._options.measure_performance
        if mode is None:
            return

        level = get_log_type(self._options, "performance_log", LogLevel.INFO)
        if mode == PerformanceMeasurement.START_END:
            self._performance.measure("startEndDispatchDuration", "dispatch-start", "dispatch-end")
            measures = self._performance.get_entries_by_name("startEndDispatchDuration")
            self._logger.log(
                level.numeric, "Total duration %s of dispatched action %s: %s",
                measures[0].duration, calling_action.name, measures,
            )
        elif mode == PerformanceMeasurement.ALL:
            marks = self._performance.get_entries_by_type("mark")
            total_duration = marks[-1].start_time - marks[0].start_time
            self._logger.log(
                level.numeric, "Total duration %s of dispatched action %s: %s",
                total_duration, calling_action.name, marks,
            )

    def _setup_dev_tools(self, connection: Optional[DevToolsConnection]) -> None:
        if connection is None:
            self._log("dev_tools_status", LogLevel.DEBUG, "DevTools are not available")
            return

        self._log("dev_tools_status", LogLevel.DEBUG, "DevTools are available")
        self._dev_tools = DevToolsBridge(self, connection, self._options.dev_tools_options, self._logger)
        self._dev_tools.start()

    def _register_history_methods(self) -> None:
        self.register_action("jump", jump)

    def _log(self, log_type: str, default_level: LogLevel, msg: str, *args: Any) -> None:
        level = get_log_type(self._options, log_type, default_level)
        self._logger.log(level.numeric, msg, *args)


def create_store(options: Union[StoreOptions, Mapping[str, Any]], **collaborators: Any) -> Store:
    """
    創建一個新的 Store 實例。

    Args:
        options: Store 配置
        **collaborators: logger、performance、dev_tools

    Returns:
        Store: 新創建的 Store 實例
    """
    return Store(options, **collaborators)


class StoreModule:
    """
    用於配置 Store 的工具類。
    """

    @staticmethod
    def for_root(options: Union[StoreOptions, Mapping[str, Any]], **collaborators: Any) -> Store:
        """
        驗證配置並建立應用的根 Store。

        Raises:
            ConfigurationError: 沒有提供 initial_state
        """
        return create_store(options, **collaborators)


def dispatchify(store: Store, action: ActionRef) -> Callable[..., "asyncio.Future[None]"]:
    """
    把動作綁定到指定的 Store，返回只需提供參數的 dispatch 函數。

    Args:
        store: 目標 Store
        action: 動作名稱、句柄或 reducer
    """
    def dispatch(*params: Any) -> "asyncio.Future[None]":
        return store.dispatch(action, *params)
    return dispatch
