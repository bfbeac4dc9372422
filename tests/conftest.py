"""Pytest configuration and shared fixtures."""

import pytest

from pyngystore import Store, StoreModule, SubjectDevToolsConnection


def increment(state):
    return {**state, "count": state["count"] + 1}


def add(state, amount):
    return {**state, "count": state["count"] + amount}


@pytest.fixture
def counter_store() -> Store:
    """建立一個已註冊 increment 與 add 的計數器 Store。

    Returns:
        初始狀態為 {"count": 0} 的 Store
    """
    store = StoreModule.for_root({"initial_state": {"count": 0}})
    store.register_action("increment", increment)
    store.register_action("add", add)
    return store


@pytest.fixture
def connection() -> SubjectDevToolsConnection:
    return SubjectDevToolsConnection()


@pytest.fixture
def outbound(connection):
    """收集連線送往調試工具的所有訊息。"""
    messages = []
    connection.outbound.subscribe(on_next=messages.append)
    return messages
