"""
Finite state machine for the reservation dialogue.

Defines the booking conversation states and the explicit transitions
between them. The dialogue engine decides *when* to fire a trigger; the
machine guarantees that only declared transitions happen.

Usage:
    sm = DialogueStateMachine()
    sm.transition(DialogueTrigger.FIRST_TURN)
    assert sm.current_state == DialogueState.COLLECTING
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class DialogueState(str, Enum):
    """All possible states of a booking conversation."""
    IDLE = "idle"
    COLLECTING = "collecting"
    AWAITING_WEATHER = "awaiting_weather"
    AWAITING_FINAL_CONFIRMATION = "awaiting_final_confirmation"
    FINALIZED = "finalized"
    ABANDONED = "abandoned"


class DialogueTrigger(str, Enum):
    """Events that cause state transitions."""
    FIRST_TURN = "first_turn"
    REQUIRED_FILLED = "required_filled"
    WEATHER_ALREADY_GIVEN = "weather_already_given"
    SEATING_CHOSEN = "seating_chosen"
    CALLER_AFFIRMED = "caller_affirmed"
    CHANGE_REQUESTED = "change_requested"
    SCHEDULE_CHANGED = "schedule_changed"
    SESSION_CLEARED = "session_cleared"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: DialogueState
    to_state: DialogueState
    trigger: DialogueTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: DialogueState
    entered_at: datetime
    trigger: Optional[DialogueTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


_S = DialogueState
_T = DialogueTrigger


class DialogueStateMachine:
    """
    Deterministic state machine for one booking conversation.

    COLLECTING self-loops while slots are filled; the weather step and the
    read-back confirmation follow. Any live state can fall back to
    COLLECTING when the guest changes a detail.
    """

    TRANSITIONS: list[Transition] = [
        # --- Start ---
        Transition(_S.IDLE, _S.COLLECTING, _T.FIRST_TURN),

        # --- Slot collection ---
        Transition(_S.COLLECTING, _S.AWAITING_WEATHER, _T.REQUIRED_FILLED),
        Transition(_S.COLLECTING, _S.AWAITING_FINAL_CONFIRMATION, _T.WEATHER_ALREADY_GIVEN),
        Transition(_S.COLLECTING, _S.COLLECTING, _T.SCHEDULE_CHANGED),

        # --- Weather / seating ---
        Transition(_S.AWAITING_WEATHER, _S.AWAITING_FINAL_CONFIRMATION, _T.SEATING_CHOSEN),
        Transition(_S.AWAITING_WEATHER, _S.AWAITING_FINAL_CONFIRMATION, _T.CALLER_AFFIRMED),
        Transition(_S.AWAITING_WEATHER, _S.COLLECTING, _T.CHANGE_REQUESTED),
        Transition(_S.AWAITING_WEATHER, _S.COLLECTING, _T.SCHEDULE_CHANGED),

        # --- Read-back confirmation ---
        Transition(_S.AWAITING_FINAL_CONFIRMATION, _S.FINALIZED, _T.CALLER_AFFIRMED),
        Transition(_S.AWAITING_FINAL_CONFIRMATION, _S.AWAITING_FINAL_CONFIRMATION,
                   _T.SEATING_CHOSEN),
        Transition(_S.AWAITING_FINAL_CONFIRMATION, _S.COLLECTING, _T.CHANGE_REQUESTED),
        Transition(_S.AWAITING_FINAL_CONFIRMATION, _S.COLLECTING, _T.SCHEDULE_CHANGED),

        # --- Explicit clear ---
        Transition(_S.IDLE, _S.ABANDONED, _T.SESSION_CLEARED),
        Transition(_S.COLLECTING, _S.ABANDONED, _T.SESSION_CLEARED),
        Transition(_S.AWAITING_WEATHER, _S.ABANDONED, _T.SESSION_CLEARED),
        Transition(_S.AWAITING_FINAL_CONFIRMATION, _S.ABANDONED, _T.SESSION_CLEARED),
    ]

    def __init__(self) -> None:
        self._current_state = DialogueState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=DialogueState.IDLE, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> DialogueState:
        return self._current_state

    def transition(self, trigger: DialogueTrigger) -> DialogueState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new dialogue state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: DialogueTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[DialogueTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the conversation has reached a terminal state."""
        return self._current_state in (DialogueState.FINALIZED, DialogueState.ABANDONED)
