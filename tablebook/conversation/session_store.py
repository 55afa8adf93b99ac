"""
Keyed, ephemeral storage for booking conversations.

The store has no business logic. It hands out one ``asyncio.Lock`` per
session id so that turns for the same session are applied one at a time,
even when a flaky client double-submits. Different sessions never share
a lock.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from tablebook.conversation.state_machine import DialogueState, DialogueStateMachine
from tablebook.schemas.booking_schema import BookingHandoff, BookingSlots, Seating
from tablebook.schemas.conversation_schema import Speaker, TranscriptTurn
from tablebook.schemas.weather_schema import WeatherInfo

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """Raised when a caller addresses a session id that does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"No booking session with id '{self.session_id}'"


@dataclass
class Session:
    """
    Per-conversation state.

    Only the dialogue engine mutates ``slots`` and the weather/anti-loop
    bookkeeping; the store just keeps the object.
    """

    session_id: str
    slots: BookingSlots = field(default_factory=BookingSlots)
    transcript: list[TranscriptTurn] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    machine: DialogueStateMachine = field(default_factory=DialogueStateMachine)
    weather_recommendation_given: bool = False
    seating_recommendation: Optional[Seating] = None
    weather: Optional[WeatherInfo] = None
    last_asked_field: Optional[str] = None
    optional_asked: set[str] = field(default_factory=set)
    pending_change: bool = False
    booking: Optional[BookingHandoff] = None

    @property
    def state(self) -> DialogueState:
        return self.machine.current_state

    def add_turn(self, speaker: Speaker, text: str) -> None:
        self.transcript.append(
            TranscriptTurn(speaker=speaker, text=text, timestamp=datetime.now(timezone.utc))
        )

    def recent_turns(self, limit: int) -> list[TranscriptTurn]:
        """Bounded suffix of the transcript used as extraction context."""
        return self.transcript[-limit:] if limit > 0 else []


class InMemorySessionStore:
    """Process-local session storage with a single-writer-per-key contract."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def put(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> Optional[Session]:
        session = self._sessions.pop(session_id, None)
        self.discard_lock(session_id)
        if session is not None:
            logger.debug("Session '%s' removed from store", session_id)
        return session

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock serializing turns for one session id."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        """
        Hold the session's lock for one turn.

        Counts holders and waiters so the lock of a removed session is
        dropped only once the last of them is done with it.
        """
        lock = self.lock(session_id)
        self._holders[session_id] = self._holders.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[session_id] -= 1
            if not self._holders[session_id]:
                del self._holders[session_id]
            self.discard_lock(session_id)

    def discard_lock(self, session_id: str) -> None:
        """Forget the lock of a removed session once nobody holds or awaits it."""
        if session_id in self._sessions or session_id in self._holders:
            return
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
