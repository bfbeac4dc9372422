"""歷史模組單元測試."""

import pytest

from pyngystore import (
    StateHistory, StateHistoryError, apply_limits, is_state_history, jump,
    next_state_history, redo, to_state_history, undo,
)


@pytest.fixture
def history() -> StateHistory:
    return StateHistory(past=(1, 2, 3), present=4, future=(5, 6))


class TestUndoRedo:
    """undo / redo 測試類."""

    def test_undo_moves_last_past_to_present(self, history) -> None:
        result = undo(history)

        assert result.past == (1, 2)
        assert result.present == 3
        assert result.future == (4, 5, 6)

    def test_redo_moves_first_future_to_present(self, history) -> None:
        result = redo(history)

        assert result.past == (1, 2, 3, 4)
        assert result.present == 5
        assert result.future == (6,)

    def test_undo_without_past_is_noop(self) -> None:
        history = StateHistory(past=(), present=1, future=(2,))

        assert undo(history) is history

    def test_redo_without_future_is_noop(self) -> None:
        history = StateHistory(past=(0,), present=1, future=())

        assert redo(history) is history

    def test_redo_undo_roundtrip(self, history) -> None:
        assert redo(undo(history)) == history

    def test_history_is_not_mutated(self, history) -> None:
        undo(history)
        redo(history)

        assert history == StateHistory(past=(1, 2, 3), present=4, future=(5, 6))


class TestJump:
    """jump 測試類."""

    def test_jump_back(self, history) -> None:
        result = jump(history, -2)

        assert result.present == 2
        assert result.past == (1,)
        assert result.future == (3, 4, 5, 6)

    def test_jump_forward(self, history) -> None:
        assert jump(history, 2).present == 6

    def test_jump_zero(self, history) -> None:
        assert jump(history, 0) == history

    def test_jump_saturates_at_boundaries(self, history) -> None:
        """超出深度時停在邊界而不拋出異常."""
        assert jump(history, -10).present == 1
        assert jump(history, -10).past == ()
        assert jump(history, 10).present == 6
        assert jump(history, 10).future == ()

    def test_jump_accepts_history_shaped_mapping(self) -> None:
        result = jump({"past": [1], "present": 2, "future": []}, -1)

        assert result == StateHistory(past=(), present=1, future=(2,))

    def test_jump_rejects_plain_state(self) -> None:
        with pytest.raises(StateHistoryError):
            jump({"count": 1}, -1)


class TestLimits:
    """apply_limits 測試類."""

    def test_keeps_most_recent_past(self, history) -> None:
        result = apply_limits(history, 2)

        assert result.past == (2, 3)
        assert result.present == 4

    def test_keeps_nearest_future(self) -> None:
        history = StateHistory(past=(), present=0, future=(1, 2, 3))

        assert apply_limits(history, 2).future == (1, 2)

    def test_within_limit_is_unchanged(self, history) -> None:
        assert apply_limits(history, 5) is history

    @pytest.mark.parametrize("limit", [0, 1, 2, 3])
    def test_lengths_never_exceed_limit(self, history, limit) -> None:
        result = apply_limits(history, limit)

        assert len(result.past) <= limit
        assert len(result.future) <= limit


class TestShape:
    """歷史形狀判斷與轉換測試類."""

    def test_is_state_history(self, history) -> None:
        assert is_state_history(history)
        assert is_state_history({"past": [], "present": 1, "future": []})
        assert not is_state_history({"past": [], "present": 1})
        assert not is_state_history({"past": 1, "present": 1, "future": []})
        assert not is_state_history(1)

    def test_to_state_history(self) -> None:
        result = to_state_history({"past": [1], "present": 2, "future": [3]})

        assert result == StateHistory(past=(1,), present=2, future=(3,))

    def test_next_state_history(self, history) -> None:
        result = next_state_history(history, 10)

        assert result.past == (1, 2, 3, 4)
        assert result.present == 10
        assert result.future == ()
