"""
PyNgyStore 範例：可撤銷的計數器，展示動作註冊、中介軟體、管道分發與歷史跳轉
"""

import asyncio
import logging

from immutables import Map

from pyngystore import (
    MiddlewarePlacement, StoreModule, SubjectDevToolsConnection,
    jump, log_middleware, next_state_history,
)


# ====== 1. 定義 reducers ======
def increment(state):
    return next_state_history(state, state.present.set("count", state.present["count"] + 1))


def increment_by(state, amount):
    return next_state_history(state, state.present.set("count", state.present["count"] + amount))


async def load_count(state, count):
    # 模擬異步載入
    await asyncio.sleep(0.1)
    return next_state_history(state, state.present.set("count", count))


# ====== 2. 定義中介軟體 ======
def limit_count(state, _published_state, settings):
    """超過上限時中止本次 dispatch。"""
    if state.present["count"] > settings["max"]:
        print(f"計數超過上限 {settings['max']}，中止")
        return False
    return None


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    devtools = SubjectDevToolsConnection()
    devtools.outbound.subscribe(on_next=lambda message: print(f"[DevTools] {message}"))

    store = StoreModule.for_root(
        {
            "initial_state": Map(count=0),
            "history": {"undoable": True, "limit": 10},
            "log_dispatched_actions": True,
            "measure_performance": "startEnd",
            "dev_tools_options": {"name": "counter"},
        },
        dev_tools=devtools,
    )

    store.register_action("increment", increment)
    store.register_action("increment by", increment_by)
    store.register_action("load count", load_count)
    store.register_middleware(limit_count, MiddlewarePlacement.AFTER, {"max": 50})
    store.register_middleware(log_middleware, MiddlewarePlacement.AFTER, {"log_type": "debug"})

    store.select(lambda history: history.present["count"]).subscribe(
        on_next=lambda count: print(f"計數變化: {count}")
    )

    print("\n==== 開始測試基本操作 ====")
    await store.dispatch("increment")
    await store.dispatch("increment by", 5)
    await store.pipe("increment").pipe("increment by", 10).dispatch()

    print("\n==== 開始測試異步操作 ====")
    await store.dispatch("load count", 42)
    await store.dispatch("increment by", 100)

    print("\n==== 開始測試時間旅行 ====")
    await store.dispatch(jump, -2)
    devtools.receive({
        "type": "DISPATCH",
        "payload": {"type": "JUMP_TO_STATE"},
        "state": '{"past": [], "present": {"count": 7}, "future": []}',
    })

    print("\n==== 最終狀態 ====")
    print(store.current_state)
    store.teardown()


if __name__ == "__main__":
    asyncio.run(main())
