"""
Store 測試輔助工具。
"""

import asyncio
import itertools
import logging
from typing import Any, Optional

from .logging_utils import get_logger
from .store import Store
from .types import Step


async def execute_steps(store: Store, *steps: Step, log_results: bool = False,
                        logger: Optional[logging.Logger] = None) -> None:
    """
    依序把 Store 發佈的狀態交給每個步驟函數。

    第 n 個步驟收到第 n 個發佈的狀態（第 0 個為訂閱當下的狀態）。
    步驟通常會 dispatch 下一個動作並對收到的狀態做斷言；
    任何步驟拋出異常時，整個流程以該異常結束。

    Args:
        store: 要驅動的 Store
        *steps: 步驟函數，接收一個狀態
        log_results: 是否記錄每個步驟收到的狀態
        logger: 記錄使用的 logger

    範例:
        ```python
        await execute_steps(
            store,
            lambda state: store.dispatch("increment"),
            lambda state: assert_equal(state["count"], 1),
        )
        ```
    """
    if not steps:
        return

    logger = get_logger(logger)
    loop = asyncio.get_running_loop()
    finished = loop.create_future()
    counter = itertools.count()

    def run_step(index: int, state: Any) -> None:
        if finished.done():
            return
        if log_results:
            logger.info("Step %d: %r", index, state)
        try:
            steps[index](state)
        except Exception as err:
            finished.set_exception(err)
            return
        if index == len(steps) - 1:
            finished.set_result(None)

    def on_state(state: Any) -> None:
        index = next(counter)
        if index < len(steps):
            loop.call_soon(run_step, index, state)

    subscription = store.state.subscribe(on_next=on_state)
    try:
        await finished
    finally:
        subscription.dispose()
