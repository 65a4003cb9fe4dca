"""Tests for conversation state."""

import pytest

from codescout.agent.conversation import ConversationState, Turn


class TestConversationState:
    def test_starts_with_instruction(self):
        state = ConversationState("You are a code assistant.")

        assert len(state) == 1
        assert state.turns[0].role == "instruction"
        assert state.instruction == "You are a code assistant."

    def test_append_and_reset(self):
        state = ConversationState("sys")
        state.append(Turn.user("one"))
        state.append(Turn.user("two"))

        state.reset()

        assert [t.role for t in state] == ["instruction"]
        assert state.instruction == "sys"

    def test_second_instruction_rejected(self):
        with pytest.raises(ValueError):
            ConversationState("sys").append(Turn.instruction("other"))

    def test_turns_is_a_snapshot(self):
        state = ConversationState("sys")
        before = state.turns

        state.append(Turn.user("q"))

        assert len(before) == 1
        assert len(state.turns) == 2
