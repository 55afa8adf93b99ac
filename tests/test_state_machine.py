"""Tests for the dialogue state machine."""

import pytest

from tablebook.conversation.state_machine import (
    DialogueState,
    DialogueStateMachine,
    DialogueTrigger,
    InvalidTransitionError,
)


def _advance(sm: DialogueStateMachine, *triggers: DialogueTrigger) -> DialogueState:
    state = sm.current_state
    for trigger in triggers:
        state = sm.transition(trigger)
    return state


class TestInitialState:
    def test_starts_idle(self, state_machine):
        assert state_machine.current_state == DialogueState.IDLE

    def test_initial_history_has_one_entry(self, state_machine):
        assert len(state_machine.get_history()) == 1

    def test_not_terminal_at_start(self, state_machine):
        assert not state_machine.is_terminal()


class TestCollection:
    def test_first_turn_starts_collecting(self, state_machine):
        assert state_machine.transition(DialogueTrigger.FIRST_TURN) == DialogueState.COLLECTING

    def test_required_filled_goes_to_weather(self, state_machine):
        state = _advance(state_machine, DialogueTrigger.FIRST_TURN, DialogueTrigger.REQUIRED_FILLED)
        assert state == DialogueState.AWAITING_WEATHER

    def test_weather_already_given_skips_to_confirmation(self, state_machine):
        state = _advance(
            state_machine, DialogueTrigger.FIRST_TURN, DialogueTrigger.WEATHER_ALREADY_GIVEN
        )
        assert state == DialogueState.AWAITING_FINAL_CONFIRMATION

    def test_schedule_change_self_loops(self, state_machine):
        state = _advance(state_machine, DialogueTrigger.FIRST_TURN, DialogueTrigger.SCHEDULE_CHANGED)
        assert state == DialogueState.COLLECTING

    def test_invalid_trigger_from_idle(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="first_turn"):
            state_machine.transition(DialogueTrigger.REQUIRED_FILLED)


class TestWeatherAndConfirmation:
    @pytest.fixture
    def awaiting_weather(self, state_machine):
        _advance(state_machine, DialogueTrigger.FIRST_TURN, DialogueTrigger.REQUIRED_FILLED)
        return state_machine

    @pytest.mark.parametrize("trigger", [DialogueTrigger.SEATING_CHOSEN, DialogueTrigger.CALLER_AFFIRMED])
    def test_seating_or_affirm_goes_to_confirmation(self, awaiting_weather, trigger):
        assert awaiting_weather.transition(trigger) == DialogueState.AWAITING_FINAL_CONFIRMATION

    @pytest.mark.parametrize(
        "trigger", [DialogueTrigger.CHANGE_REQUESTED, DialogueTrigger.SCHEDULE_CHANGED]
    )
    def test_changes_fall_back_to_collecting(self, awaiting_weather, trigger):
        assert awaiting_weather.transition(trigger) == DialogueState.COLLECTING

    def test_affirm_at_confirmation_finalizes(self, awaiting_weather):
        state = _advance(
            awaiting_weather, DialogueTrigger.CALLER_AFFIRMED, DialogueTrigger.CALLER_AFFIRMED
        )
        assert state == DialogueState.FINALIZED
        assert awaiting_weather.is_terminal()

    def test_seating_switch_at_confirmation_stays(self, awaiting_weather):
        state = _advance(
            awaiting_weather, DialogueTrigger.SEATING_CHOSEN, DialogueTrigger.SEATING_CHOSEN
        )
        assert state == DialogueState.AWAITING_FINAL_CONFIRMATION

    def test_finalized_accepts_nothing(self, awaiting_weather):
        _advance(awaiting_weather, DialogueTrigger.CALLER_AFFIRMED, DialogueTrigger.CALLER_AFFIRMED)
        assert awaiting_weather.get_valid_triggers() == []
        with pytest.raises(InvalidTransitionError):
            awaiting_weather.transition(DialogueTrigger.SESSION_CLEARED)


class TestAbandon:
    @pytest.mark.parametrize(
        "path",
        [
            (),
            (DialogueTrigger.FIRST_TURN,),
            (DialogueTrigger.FIRST_TURN, DialogueTrigger.REQUIRED_FILLED),
            (DialogueTrigger.FIRST_TURN, DialogueTrigger.WEATHER_ALREADY_GIVEN),
        ],
    )
    def test_clear_from_any_live_state(self, state_machine, path):
        _advance(state_machine, *path)
        assert state_machine.can_transition(DialogueTrigger.SESSION_CLEARED)
        assert state_machine.transition(DialogueTrigger.SESSION_CLEARED) == DialogueState.ABANDONED
        assert state_machine.is_terminal()


class TestHistory:
    def test_state_trace(self, state_machine):
        _advance(
            state_machine,
            DialogueTrigger.FIRST_TURN,
            DialogueTrigger.REQUIRED_FILLED,
            DialogueTrigger.CHANGE_REQUESTED,
        )
        assert state_machine.get_state_trace() == [
            "idle", "collecting", "awaiting_weather", "collecting",
        ]

    def test_history_records_triggers(self, state_machine):
        state_machine.transition(DialogueTrigger.FIRST_TURN)
        last = state_machine.get_history()[-1]
        assert last.trigger == DialogueTrigger.FIRST_TURN
        assert last.entered_at.tzinfo is not None

    def test_history_is_a_copy(self, state_machine):
        state_machine.get_history().clear()
        assert len(state_machine.get_history()) == 1
