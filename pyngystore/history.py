"""
撤銷 / 重做歷史模組。

歷史狀態以不可變的 StateHistory 表示：past 為較舊到較新的過去狀態，
present 為目前狀態，future 為最近到最遠的可重做狀態。
此模組只包含純函數，不持有任何狀態。
"""

from typing import Any, Generic, Mapping, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import StateHistoryError

T = TypeVar("T")

_HISTORY_KEYS = ("past", "present", "future")


class StateHistory(BaseModel, Generic[T]):
    """
    包含過去、現在與未來狀態的歷史容器。

    屬性:
        past: 過去的狀態，最後一個是最近的
        present: 目前狀態
        future: 可重做的狀態，第一個是最近的
    """

    model_config = ConfigDict(frozen=True)

    past: Tuple[Any, ...] = ()
    present: T
    future: Tuple[Any, ...] = ()


class HistoryOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    undoable: bool = False
    limit: Optional[int] = Field(default=None, ge=0)


def is_state_history(state: Any) -> bool:
    """
    判斷一個值是否具有歷史狀態的形狀。

    StateHistory 實例，或同時擁有 past、present、future 且 past/future
    為序列的映射，都視為歷史狀態。
    """
    if isinstance(state, StateHistory):
        return True
    if not isinstance(state, Mapping):
        return False
    if not all(key in state for key in _HISTORY_KEYS):
        return False
    return isinstance(state["past"], (list, tuple)) and isinstance(state["future"], (list, tuple))


def to_state_history(state: Any) -> StateHistory:
    """
    將具有歷史形狀的值轉換為 StateHistory。

    Raises:
        StateHistoryError: 值不具有歷史形狀
    """
    if isinstance(state, StateHistory):
        return state
    if not is_state_history(state):
        raise StateHistoryError(state)
    return StateHistory(
        past=tuple(state["past"]),
        present=state["present"],
        future=tuple(state["future"]),
    )


def undo(history: StateHistory) -> StateHistory:
    if not history.past:
        return history
    return history.model_copy(update={
        "past": history.past[:-1],
        "present": history.past[-1],
        "future": (history.present,) + history.future,
    })


def redo(history: StateHistory) -> StateHistory:
    if not history.future:
        return history
    return history.model_copy(update={
        "past": history.past + (history.present,),
        "present": history.future[0],
        "future": history.future[1:],
    })


def jump(state: Any, n: int) -> StateHistory:
    """
    在歷史中前進或後退 n 步。

    n 為負數時撤銷 |n| 次，為正數時重做 n 次；超出可用深度時停在邊界。
    此函數本身也是一個 reducer，undoable 的 Store 會以 "jump" 名稱註冊它。

    Args:
        state: 目前的歷史狀態
        n: 步數

    Returns:
        新的歷史狀態

    Raises:
        StateHistoryError: state 不是歷史狀態
    """
    history = to_state_history(state)
    step = undo if n < 0 else redo
    for _ in range(abs(n)):
        moved = step(history)
        if moved is history:
            break
        history = moved
    return history


def apply_limits(history: StateHistory, limit: int) -> StateHistory:
    """
    限制 past 與 future 的長度。

    past 保留最近的 limit 筆，future 保留最接近現在的 limit 筆。
    """
    past, future = history.past, history.future
    if len(past) <= limit and len(future) <= limit:
        return history
    return history.model_copy(update={
        "past": past[len(past) - limit:] if len(past) > limit else past,
        "future": future[:limit],
    })


def next_state_history(history: StateHistory, next_present: Any) -> StateHistory:
    """把目前狀態推入 past，設定新的 present 並清空 future。"""
    history = to_state_history(history)
    return history.model_copy(update={
        "past": history.past + (history.present,),
        "present": next_present,
        "future": (),
    })
