"""
PyNgyStore 共用類型定義。

集中放置 reducer / middleware 的函數簽名，以及 Store 依賴的外部協作者協議
（計時標記服務、DevTools 連線）。
"""

from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from typing_extensions import Literal, Protocol

S = TypeVar("S")
T = TypeVar("T")

# reducer 或 middleware 回傳 False 代表中止本次 dispatch
ABORT: Literal[False] = False

ReducerResult = Union[S, Literal[False]]
Reducer = Callable[..., Union[ReducerResult, Awaitable[ReducerResult]]]
Middleware = Callable[..., Any]
Step = Callable[[Any], Any]


class PerformanceEntryLike(Protocol):
    name: str
    entry_type: str
    start_time: float
    duration: float


class PerformanceLike(Protocol):
    """計時標記服務需要實作的介面。"""

    def mark(self, name: str) -> Any: ...

    def measure(self, name: str, start_mark: str, end_mark: str) -> Any: ...

    def get_entries_by_name(self, name: str, entry_type: Optional[str] = None) -> List[PerformanceEntryLike]: ...

    def get_entries_by_type(self, entry_type: str) -> List[PerformanceEntryLike]: ...

    def clear_marks(self, name: Optional[str] = None) -> None: ...

    def clear_measures(self, name: Optional[str] = None) -> None: ...


class DevToolsConnection(Protocol):
    """
    外部時間旅行調試工具的連線。

    Store 透過 connect/init/send 推送狀態，並經由 subscribe 接收遠端指令。
    subscribe 回傳的物件需提供 dispose()。
    """

    def connect(self, options: Any) -> None: ...

    def init(self, state: Any) -> None: ...

    def send(self, action: Any, state: Any) -> None: ...

    def subscribe(self, listener: Callable[[Any], None]) -> Any: ...
