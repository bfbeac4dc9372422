"""
DevTools 橋接模組。

把 Store 內部的 dispatch 事件轉譯為時間旅行調試工具的訊息協議，
並把調試工具送來的遠端指令（跳轉、重置、回滾、提交、重播動作）套用回 Store。
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from reactivex import Subject

from .actions import Action
from .errors import MissingArgumentsError, UnregisteredActionError
from .history import StateHistory, is_state_history, to_state_history
from .immutable_utils import dumps, loads, restore_like, to_dict
from .logging_utils import LogLevel, get_log_type, get_logger
from .types import DevToolsConnection

if TYPE_CHECKING:
    from .options import DevToolsOptions
    from .store import Store


class SubjectDevToolsConnection:
    """
    以 reactivex Subject 實作的行程內 DevTools 連線。

    送往調試工具的訊息以 JSON 字串發佈在 outbound 上；
    調試工具送來的訊息透過 receive() 推入。
    """

    def __init__(self) -> None:
        self.outbound: Subject = Subject()
        self._inbound: Subject = Subject()
        self.options: Optional["DevToolsOptions"] = None

    def connect(self, options: "DevToolsOptions") -> None:
        self.options = options
        self._emit({"type": "START", "name": options.name if options is not None else None})

    def init(self, state: Any) -> None:
        self._emit({"type": "INIT", "state": dumps(state)})

    def send(self, action: Dict[str, Any], state: Any) -> None:
        self._emit({"type": "ACTION", "action": to_dict(action), "state": dumps(state)})

    def subscribe(self, listener: Callable[[Any], None]):
        return self._inbound.subscribe(on_next=listener)

    def receive(self, message: Any) -> None:
        """推入一則來自調試工具的訊息（字典或 JSON 字串）。"""
        self._inbound.on_next(message)

    def _emit(self, message: Dict[str, Any]) -> None:
        self.outbound.on_next(json.dumps(message, default=repr))


class DevToolsBridge:
    """
    連接 Store 與 DevTools。

    Args:
        store: 要鏡像的 Store
        connection: DevTools 連線
        options: DevTools 選項，在 connect 時傳給連線
        logger: 日誌實例
    """

    def __init__(self, store: "Store", connection: DevToolsConnection,
                 options: Optional["DevToolsOptions"] = None, logger: Optional[logging.Logger] = None):
        self._store = store
        self._connection = connection
        self._options = options
        self._logger = get_logger(logger)
        self._subscription = None
        self._replays: List["asyncio.Future[None]"] = []
        self._commands: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "JUMP_TO_STATE": self._jump,
            "JUMP_TO_ACTION": self._jump,
            "COMMIT": self._commit,
            "RESET": self._reset,
            "ROLLBACK": self._rollback,
        }

    @property
    def connection(self) -> DevToolsConnection:
        return self._connection

    def start(self) -> None:
        self._connection.connect(self._options)
        self._connection.init(self._store.initial_state)
        self._subscription = self._connection.subscribe(self.handle_message)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None

    def send(self, action: Action, state: Any) -> None:
        self._connection.send(action.to_dict(), state)

    def handle_message(self, message: Any) -> None:
        """
        處理一則調試工具送來的訊息。

        Raises:
            UnregisteredActionError: 遠端要求的動作未註冊
            MissingArgumentsError: 遠端動作缺少參數
        """
        message = loads(message)
        message_type = message.get("type")
        self._log(LogLevel.DEBUG, "DevTools sent change %s", message_type)

        payload = message.get("payload")
        if not payload:
            return
        if message_type == "ACTION":
            self._replay(payload)
        elif message_type == "DISPATCH":
            command = self._commands.get(payload.get("type"))
            if command is not None:
                command(message)

    async def wait_for_replays(self) -> None:
        """等待所有遠端重播的 dispatch 完成。"""
        while self._replays:
            await asyncio.gather(*self._replays, return_exceptions=True)

    def _replay(self, payload: Dict[str, Any]) -> None:
        name = payload.get("name")
        actions = self._store.actions
        reducer = None
        if isinstance(name, str):
            reducer = actions.resolve(name) or actions.find_by_function_name(name)
        if reducer is None:
            raise UnregisteredActionError(name, "Tried to remotely dispatch an unregistered action")

        args = payload.get("args") or []
        if len(args) < 1:
            raise MissingArgumentsError(name)

        future = self._store.dispatch(reducer, *[loads(arg) for arg in args[1:]])
        self._replays.append(future)
        future.add_done_callback(self._on_replayed)

    def _on_replayed(self, future: "asyncio.Future[None]") -> None:
        self._replays.remove(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._logger.error("Remote dispatch failed: %s", error)

    def _jump(self, message: Dict[str, Any]) -> None:
        self._store.reset_to_state(self._decode_state(message.get("state")))

    def _commit(self, message: Dict[str, Any]) -> None:
        self._connection.init(self._store.current_state)

    def _reset(self, message: Dict[str, Any]) -> None:
        self._connection.init(self._store.initial_state)
        self._store.reset_to_state(self._store.initial_state)

    def _rollback(self, message: Dict[str, Any]) -> None:
        state = self._decode_state(message.get("state"))
        self._store.reset_to_state(state)
        self._connection.init(self._store.current_state)

    def _decode_state(self, raw: Any) -> Any:
        state = loads(raw)
        sample = self._store.initial_state
        # 還原成與初始狀態相同的形狀 (immutables.Map 或 Pydantic 模型)
        if isinstance(sample, StateHistory):
            if not is_state_history(state):
                return state
            history = to_state_history(state)
            return StateHistory(
                past=tuple(restore_like(sample.present, s) for s in history.past),
                present=restore_like(sample.present, history.present),
                future=tuple(restore_like(sample.present, s) for s in history.future),
            )
        return restore_like(sample, state)

    def _log(self, default_level: LogLevel, msg: str, *args: Any) -> None:
        level = get_log_type(self._store.options, "dev_tools_status", default_level)
        self._logger.log(level.numeric, msg, *args)
