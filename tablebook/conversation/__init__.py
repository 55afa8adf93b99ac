from tablebook.conversation.datetime_window import (
    BookingWindow,
    DateRejected,
    RejectionReason,
    TimeRejected,
)
from tablebook.conversation.dialogue_engine import DialogueEngine
from tablebook.conversation.session_store import InMemorySessionStore, Session, SessionNotFound
from tablebook.conversation.slot_manager import SlotModel
from tablebook.conversation.state_machine import (
    DialogueState,
    DialogueStateMachine,
    DialogueTrigger,
    InvalidTransitionError,
)

__all__ = [
    "DialogueEngine",
    "DialogueStateMachine",
    "DialogueState",
    "DialogueTrigger",
    "InvalidTransitionError",
    "SlotModel",
    "BookingWindow",
    "DateRejected",
    "TimeRejected",
    "RejectionReason",
    "InMemorySessionStore",
    "Session",
    "SessionNotFound",
]
