"""
Dispatch 佇列。

所有 dispatch 請求都會排入同一個 FIFO 佇列，一次只處理一個項目，
確保狀態轉換不會在多個並發呼叫之間交錯。
"""

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, NamedTuple, Optional, Tuple

from .actions import DispatchAction
from .logging_utils import get_logger

DispatchHandler = Callable[[Tuple[DispatchAction, ...]], Awaitable[Any]]


class DispatchQueueItem(NamedTuple):
    actions: Tuple[DispatchAction, ...]
    future: "asyncio.Future[None]"


class DispatchQueue:
    """
    序列化執行 dispatch 的佇列。

    Args:
        handler: 實際執行一個佇列項目的協程函數
        logger: 用於記錄佇列處理狀態
    """

    def __init__(self, handler: DispatchHandler, logger: Optional[logging.Logger] = None):
        self._handler = handler
        self._logger = get_logger(logger)
        self._items: Deque[DispatchQueueItem] = deque()
        self._worker: Optional["asyncio.Task[None]"] = None

    def __len__(self) -> int:
        return len(self._items)

    @property
    def is_processing(self) -> bool:
        return bool(self._items)

    def enqueue(self, actions: Tuple[DispatchAction, ...]) -> "asyncio.Future[None]":
        """
        將一組動作排入佇列。

        必須在執行中的事件迴圈內呼叫。

        Returns:
            當此項目處理完成時完成的 Future；處理失敗時帶有對應的異常，
            項目被取消時 Future 也會被取消
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._items.append(DispatchQueueItem(tuple(actions), future))
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        while self._items:
            item = self._items[0]
            try:
                await self._handler(item.actions)
            except asyncio.CancelledError:
                item.future.cancel()
                if asyncio.current_task().cancelling():
                    self._cancel_pending()
                    raise
                self._logger.debug("Dispatch queue item was cancelled")
            except Exception as err:
                self._logger.debug("Dispatch queue item failed: %s", err)
                if not item.future.done():
                    item.future.set_exception(err)
            else:
                if not item.future.done():
                    item.future.set_result(None)
            finally:
                if self._items and self._items[0] is item:
                    self._items.popleft()

    def _cancel_pending(self) -> None:
        # 工作任務本身被取消時，剩餘項目不再執行
        for pending in self._items:
            pending.future.cancel()
        self._items.clear()

    async def join(self) -> None:
        """等待目前佇列中的所有項目處理完畢。"""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)
