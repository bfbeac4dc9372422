"""DevTools 橋接測試."""

import json
import logging

import pytest
from immutables import Map
from pydantic import BaseModel, ConfigDict

from pyngystore import (
    MissingArgumentsError, StateHistory, Store, StoreModule, UnregisteredActionError,
)


def increment(state):
    return {**state, "count": state["count"] + 1}


def add(state, amount):
    return {**state, "count": state["count"] + amount}


class Counter(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    label: str = "counter"


def increment_model(state):
    return state.model_copy(update={"count": state.count + 1})


@pytest.fixture
def store(connection) -> Store:
    store = StoreModule.for_root(
        {"initial_state": {"count": 0}, "dev_tools_options": {"name": "counter"}},
        dev_tools=connection,
    )
    store.register_action("increment", increment)
    store.register_action("add", add)
    return store


def _decoded(outbound):
    return [json.loads(message) for message in outbound]


def _jump_message(state, command="JUMP_TO_STATE"):
    return {"type": "DISPATCH", "payload": {"type": command}, "state": json.dumps(state)}


class TestOutbound:
    """送往調試工具的訊息測試類."""

    def test_connect_and_init(self, outbound, store) -> None:
        messages = _decoded(outbound)

        assert messages[0] == {"type": "START", "name": "counter"}
        assert messages[1]["type"] == "INIT"
        assert json.loads(messages[1]["state"]) == {"count": 0}
        assert store.dev_tools is not None

    @pytest.mark.asyncio
    async def test_dispatch_is_mirrored(self, outbound, store) -> None:
        await store.dispatch("add", 5)

        message = _decoded(outbound)[-1]
        assert message["type"] == "ACTION"
        assert message["action"] == {"type": "add", "params": [5]}
        assert json.loads(message["state"]) == {"count": 5}

    @pytest.mark.asyncio
    async def test_aborted_dispatch_is_not_mirrored(self, outbound, store) -> None:
        store.register_action("noop", lambda state: False)

        await store.dispatch("noop")

        assert [m["type"] for m in _decoded(outbound)] == ["START", "INIT"]

    def test_disabled(self, outbound, connection) -> None:
        store = StoreModule.for_root(
            {"initial_state": {"count": 0}, "dev_tools_options": {"disable": True}},
            dev_tools=connection,
        )

        assert store.dev_tools is None
        assert outbound == []

    def test_history_state_is_serialized(self, outbound, connection) -> None:
        StoreModule.for_root(
            {"initial_state": 1, "history": {"undoable": True}}, dev_tools=connection
        )

        init = _decoded(outbound)[1]
        assert json.loads(init["state"]) == {"past": [], "present": 1, "future": []}


class TestRemoteActions:
    """遠端重播動作測試類."""

    @pytest.mark.asyncio
    async def test_replay_by_name(self, connection, store) -> None:
        connection.receive({"type": "ACTION", "payload": {"name": "add", "args": ['{"count": 0}', "3"]}})
        await store.dev_tools.wait_for_replays()

        assert store.current_state == {"count": 3}

    @pytest.mark.asyncio
    async def test_replay_by_function_name(self, connection) -> None:
        store = StoreModule.for_root({"initial_state": {"count": 0}}, dev_tools=connection)
        store.register_action("Increase the counter", increment)

        connection.receive(json.dumps({"type": "ACTION", "payload": {"name": "increment", "args": ["{}"]}}))
        await store.dev_tools.wait_for_replays()

        assert store.current_state == {"count": 1}

    @pytest.mark.asyncio
    async def test_unregistered_remote_action(self, connection, store) -> None:
        with pytest.raises(UnregisteredActionError, match="remotely"):
            connection.receive({"type": "ACTION", "payload": {"name": "missing", "args": ["{}"]}})

    @pytest.mark.asyncio
    async def test_remote_action_without_arguments(self, connection, store) -> None:
        with pytest.raises(MissingArgumentsError):
            connection.receive({"type": "ACTION", "payload": {"name": "increment", "args": []}})

        assert store.current_state == {"count": 0}

    @pytest.mark.asyncio
    async def test_failed_replay_is_logged(self, connection, store, caplog) -> None:
        def explode(state):
            raise RuntimeError("explode")

        store.register_action("explode", explode)

        with caplog.at_level(logging.ERROR, logger="pyngystore"):
            connection.receive({"type": "ACTION", "payload": {"name": "explode", "args": ["{}"]}})
            await store.dev_tools.wait_for_replays()

        assert "Remote dispatch failed: explode" in caplog.text


class TestRemoteCommands:
    """時間旅行指令測試類."""

    def test_jump_to_state(self, connection, store) -> None:
        connection.receive(_jump_message({"count": 7}))

        assert store.current_state == {"count": 7}

    def test_jump_to_action(self, connection, store) -> None:
        connection.receive(_jump_message({"count": 2}, "JUMP_TO_ACTION"))

        assert store.current_state == {"count": 2}

    @pytest.mark.asyncio
    async def test_commit(self, outbound, connection, store) -> None:
        await store.dispatch("add", 4)

        connection.receive({"type": "DISPATCH", "payload": {"type": "COMMIT"}})

        message = _decoded(outbound)[-1]
        assert message["type"] == "INIT"
        assert json.loads(message["state"]) == {"count": 4}
        assert store.current_state == {"count": 4}

    @pytest.mark.asyncio
    async def test_reset(self, outbound, connection, store) -> None:
        await store.dispatch("add", 4)

        connection.receive({"type": "DISPATCH", "payload": {"type": "RESET"}})

        assert store.current_state == {"count": 0}
        assert json.loads(_decoded(outbound)[-1]["state"]) == {"count": 0}

    def test_rollback(self, outbound, connection, store) -> None:
        connection.receive(_jump_message({"count": 4}, "ROLLBACK"))

        assert store.current_state == {"count": 4}
        message = _decoded(outbound)[-1]
        assert message["type"] == "INIT"
        assert json.loads(message["state"]) == {"count": 4}

    def test_unknown_command_is_ignored(self, connection, store) -> None:
        connection.receive(_jump_message({"count": 4}, "IMPORT_STATE"))

        assert store.current_state == {"count": 0}

    def test_message_without_payload_is_only_logged(self, connection, store, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="pyngystore"):
            connection.receive({"type": "START"})

        assert "DevTools sent change START" in caplog.text
        assert store.current_state == {"count": 0}

    def test_map_state_is_restored_as_map(self, connection) -> None:
        store = StoreModule.for_root({"initial_state": Map(count=0)}, dev_tools=connection)

        connection.receive(_jump_message({"count": 2}))

        assert store.current_state == Map(count=2)

    @pytest.mark.asyncio
    async def test_model_state_is_restored_as_model(self, connection) -> None:
        store = StoreModule.for_root({"initial_state": Counter()}, dev_tools=connection)
        store.register_action("increment", increment_model)
        await store.dispatch("increment")

        connection.receive(_jump_message({"count": 0, "label": "counter"}))
        assert store.current_state == Counter(count=0)

        await store.dispatch("increment")
        assert store.current_state == Counter(count=1)

    def test_model_state_rollback(self, connection) -> None:
        store = StoreModule.for_root({"initial_state": Counter()}, dev_tools=connection)

        connection.receive(_jump_message({"count": 5, "label": "restored"}, "ROLLBACK"))

        assert store.current_state == Counter(count=5, label="restored")

    def test_model_history_store_jump(self, connection) -> None:
        store = StoreModule.for_root(
            {"initial_state": Counter(), "history": {"undoable": True}}, dev_tools=connection
        )

        connection.receive(_jump_message({
            "past": [{"count": 0, "label": "counter"}],
            "present": {"count": 1, "label": "counter"},
            "future": [],
        }, "JUMP_TO_ACTION"))

        assert store.current_state == StateHistory(past=(Counter(),), present=Counter(count=1), future=())

    def test_history_store_jump(self, connection) -> None:
        store = StoreModule.for_root(
            {"initial_state": 0, "history": {"undoable": True}}, dev_tools=connection
        )

        connection.receive(_jump_message({"past": [0], "present": 1, "future": []}))

        assert store.current_state == StateHistory(past=(0,), present=1, future=())

    def test_map_history_store_jump(self, connection) -> None:
        store = StoreModule.for_root(
            {"initial_state": Map(count=0), "history": {"undoable": True}}, dev_tools=connection
        )

        connection.receive(_jump_message({"past": [{"count": 0}], "present": {"count": 1}, "future": []}))

        assert store.current_state == StateHistory(past=(Map(count=0),), present=Map(count=1), future=())

    def test_teardown_stops_listening(self, connection, store) -> None:
        store.teardown()

        connection.receive(_jump_message({"count": 9}))

        assert store.current_state == {"count": 0}
