"""
計時標記服務。

提供與瀏覽器 Performance API 相同形狀的 mark/measure 介面，
每個 Store 擁有自己的實例，因此不同 Store 之間的標記互不干擾。
"""

import time
from enum import Enum
from typing import Callable, List, NamedTuple, Optional


class PerformanceMeasurement(str, Enum):
    """Store 的性能量測模式。"""

    START_END = "startEnd"
    ALL = "all"


class PerformanceEntry(NamedTuple):
    name: str
    entry_type: str
    start_time: float
    duration: float = 0.0


class Performance:
    """
    以 time.perf_counter 為時鐘的標記服務，時間單位為毫秒。

    Args:
        clock: 可選的時鐘函數，回傳秒數，測試時可替換
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.perf_counter
        self._origin = self._clock()
        self._marks: List[PerformanceEntry] = []
        self._measures: List[PerformanceEntry] = []

    def now(self) -> float:
        return (self._clock() - self._origin) * 1000

    def mark(self, name: str) -> PerformanceEntry:
        entry = PerformanceEntry(name, "mark", self.now())
        self._marks.append(entry)
        return entry

    def measure(self, name: str, start_mark: str, end_mark: str) -> PerformanceEntry:
        """
        計算兩個標記之間的耗時並記錄為 measure。

        Args:
            name: measure 名稱
            start_mark: 起始標記名稱
            end_mark: 結束標記名稱

        Returns:
            新建立的 measure 項目

        Raises:
            KeyError: 找不到指定的標記
        """
        start = self._last_mark(start_mark)
        end = self._last_mark(end_mark)
        entry = PerformanceEntry(name, "measure", start.start_time, end.start_time - start.start_time)
        self._measures.append(entry)
        return entry

    def get_entries_by_name(self, name: str, entry_type: Optional[str] = None) -> List[PerformanceEntry]:
        return [
            entry for entry in self._entries()
            if entry.name == name and (entry_type is None or entry.entry_type == entry_type)
        ]

    def get_entries_by_type(self, entry_type: str) -> List[PerformanceEntry]:
        return [entry for entry in self._entries() if entry.entry_type == entry_type]

    def clear_marks(self, name: Optional[str] = None) -> None:
        if name is None:
            self._marks.clear()
        else:
            self._marks = [m for m in self._marks if m.name != name]

    def clear_measures(self, name: Optional[str] = None) -> None:
        if name is None:
            self._measures.clear()
        else:
            self._measures = [m for m in self._measures if m.name != name]

    def _entries(self) -> List[PerformanceEntry]:
        return sorted(self._marks + self._measures, key=lambda entry: entry.start_time)

    def _last_mark(self, name: str) -> PerformanceEntry:
        for entry in reversed(self._marks):
            if entry.name == name:
                return entry
        raise KeyError(f"No mark named '{name}'")
