"""
Dialogue engine: turns free-form utterances into a confirmed reservation.

One call to ``process_turn`` is one guest utterance. The engine:
  1. appends the utterance to the session transcript
  2. asks the extraction gateway for a partial slot update
  3. windows any new date/time, discards invalid values, merges the rest
  4. picks the next prompt (rejection > missing required > optional > weather)
  5. runs the weather step once required slots fill, then reads back a summary

Turns for one session id are serialized through the store's per-key lock.
A failed extraction or weather call never leaves the session half-updated.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from pydantic import ValidationError

from tablebook.config import settings
from tablebook.conversation.datetime_window import (
    BookingWindow,
    DateRejected,
    RejectionReason,
    TimeRejected,
)
from tablebook.conversation.intents import IntentFlags, classify
from tablebook.conversation.session_store import InMemorySessionStore, Session, SessionNotFound
from tablebook.conversation.slot_manager import SlotModel
from tablebook.conversation.state_machine import DialogueState, DialogueTrigger
from tablebook.extraction.gateway import ExtractionContext, ExtractionFailure, ExtractionGateway
from tablebook.logging_context import get_session_logger, set_session_id
from tablebook.prompts import prompt_templates as replies
from tablebook.schemas.booking_schema import BookingHandoff, Seating
from tablebook.schemas.conversation_schema import Speaker, TurnResult
from tablebook.tools.weather import WeatherService

logger = get_session_logger(__name__)

FinalizeHook = Callable[[BookingHandoff], Union[None, Awaitable[None]]]


@dataclass
class _Reply:
    text: str
    asked_field: Optional[str] = None


@dataclass
class _MergeOutcome:
    merged: list[str] = field(default_factory=list)
    rejection: Optional[Union[DateRejected, TimeRejected]] = None
    schedule_changed: bool = False

    @property
    def changed_anything(self) -> bool:
        return bool(self.merged) or self.rejection is not None or self.schedule_changed


class DialogueEngine:
    """Owns every mutation of a session's slots and dialogue state."""

    def __init__(
        self,
        gateway: ExtractionGateway,
        weather: WeatherService,
        store: Optional[InMemorySessionStore] = None,
        slot_model: Optional[SlotModel] = None,
        window: Optional[BookingWindow] = None,
        clock: Optional[Callable[[], datetime]] = None,
        context_turns: Optional[int] = None,
        extraction_timeout: Optional[float] = None,
        max_input_length: Optional[int] = None,
        on_finalize: Optional[FinalizeHook] = None,
    ) -> None:
        self.gateway = gateway
        self.weather = weather
        self.store = store or InMemorySessionStore()
        self.slot_model = slot_model or SlotModel()
        self.window = window or BookingWindow()
        self.clock = clock or self.window.now
        self.context_turns = context_turns or settings.dialogue.context_turns
        self.extraction_timeout = extraction_timeout or settings.model.extraction_timeout_sec
        self.max_input_length = max_input_length or settings.dialogue.max_input_length
        self.on_finalize = on_finalize

    # ------------------------------------------------------------------ #
    # Session API
    # ------------------------------------------------------------------ #

    async def process_turn(self, session_id: str, utterance: str) -> TurnResult:
        """Apply one guest utterance and return the assistant's reply."""
        async with self.store.hold(session_id):
            set_session_id(session_id)
            session = self.store.get(session_id)
            if session is None:
                session = Session(session_id=session_id)
                self.store.put(session)
                logger.info("Started booking session")

            session.add_turn(Speaker.USER, utterance)
            if session.state == DialogueState.IDLE:
                session.machine.transition(DialogueTrigger.FIRST_TURN)

            now = self.window.localize(self.clock())
            reply = await self._route(session, utterance, now)

            session.add_turn(Speaker.ASSISTANT, reply.text)
            session.last_asked_field = reply.asked_field
            return self._result(session, reply)

    def get_session(self, session_id: str) -> Session:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def clear_session(self, session_id: str) -> Session:
        """Abandon and remove a session. Returns the removed session."""
        if session_id not in self.store:
            raise SessionNotFound(session_id)
        async with self.store.hold(session_id):
            set_session_id(session_id)
            session = self.get_session(session_id)
            if session.machine.can_transition(DialogueTrigger.SESSION_CLEARED):
                session.machine.transition(DialogueTrigger.SESSION_CLEARED)
            self.store.delete(session_id)
            logger.info("Cleared session '%s' in state %s", session_id, session.state.value)
            return session

    # ------------------------------------------------------------------ #
    # Routing
    # ------------------------------------------------------------------ #

    async def _route(self, session: Session, utterance: str, now: datetime) -> _Reply:
        if not utterance.strip():
            return _Reply(replies.REPEAT_PROMPT)
        if len(utterance) > self.max_input_length:
            logger.info("Utterance of %d chars exceeds limit; not extracted", len(utterance))
            return _Reply(replies.INPUT_TOO_LONG)

        state = session.state
        if state == DialogueState.FINALIZED:
            return _Reply(replies.ALREADY_FINALIZED)
        if state == DialogueState.AWAITING_WEATHER:
            return await self._handle_seating(session, classify(utterance), now)
        if state == DialogueState.AWAITING_FINAL_CONFIRMATION:
            return await self._handle_confirmation(session, classify(utterance), now)

        change_fields: Sequence[str] = ()
        if session.pending_change:
            session.pending_change = False
            change_fields = _non_seating(classify(utterance))
        return await self._collect(session, now, change_fields)

    async def _handle_seating(self, session: Session, flags: IntentFlags, now: datetime) -> _Reply:
        slots = session.slots
        if flags.explicit_seating:
            seating = Seating.INDOOR if flags.explicit_indoor else Seating.OUTDOOR
            slots.seating_preference = seating
            session.machine.transition(DialogueTrigger.SEATING_CHOSEN)
            return _Reply(f"{replies.SEATING_CONFIRMED[seating]} {self._summary(session)}")

        if flags.wants_to_change:
            return await self._handle_change(session, flags, now)

        if flags.affirmative:
            slots.seating_preference = session.seating_recommendation or Seating.INDOOR
            session.machine.transition(DialogueTrigger.CALLER_AFFIRMED)
            return _Reply(f"{replies.RECOMMENDATION_ACCEPTED} {self._summary(session)}")

        return await self._reextract(session, now, replies.SEATING_REASK)

    async def _handle_confirmation(
        self, session: Session, flags: IntentFlags, now: datetime
    ) -> _Reply:
        if flags.explicit_seating and not _non_seating(flags):
            seating = Seating.INDOOR if flags.explicit_indoor else Seating.OUTDOOR
            session.slots.seating_preference = seating
            session.machine.transition(DialogueTrigger.SEATING_CHOSEN)
            return _Reply(f"{replies.SEATING_CONFIRMED[seating]} {self._summary(session)}")

        if flags.wants_to_change:
            return await self._handle_change(session, flags, now)

        if flags.affirmative:
            return await self._finalize(session, now)

        return await self._reextract(session, now, replies.CONFIRM_REASK)

    async def _handle_change(self, session: Session, flags: IntentFlags, now: datetime) -> _Reply:
        """
        Re-open collection after a change request.

        Naming a field ("change the date") goes straight to re-extraction for
        that field. Otherwise the utterance may still carry the new value
        ("make it 8pm instead"); only when it carries nothing do we ask what
        to change.
        """
        session.machine.transition(DialogueTrigger.CHANGE_REQUESTED)
        fields = _non_seating(flags)
        if fields:
            return await self._collect(session, now, change_fields=fields)

        outcome = await self._extract_and_merge(session, now)
        if outcome is None or not outcome.changed_anything:
            session.pending_change = True
            return _Reply(replies.CHANGE_WHAT_PROMPT)
        return await self._next_prompt(session, outcome, now)

    async def _reextract(self, session: Session, now: datetime, reask: str) -> _Reply:
        """Handle an unclassified utterance while waiting on seating or confirmation."""
        outcome = await self._extract_and_merge(session, now)
        if outcome is None or not outcome.changed_anything:
            return _Reply(reask)

        if session.state == DialogueState.COLLECTING:
            return await self._next_prompt(session, outcome, now)

        if outcome.rejection is not None:
            session.machine.transition(DialogueTrigger.CHANGE_REQUESTED)
            return await self._next_prompt(session, outcome, now)

        # A detail other than date/time changed; the weather result still holds.
        ack = replies.acknowledge(outcome.merged[-1])
        if session.state == DialogueState.AWAITING_FINAL_CONFIRMATION:
            return _Reply(f"{ack} {self._summary(session)}")
        return _Reply(f"{ack} {replies.SEATING_QUESTION}")

    # ------------------------------------------------------------------ #
    # Slot collection
    # ------------------------------------------------------------------ #

    async def _collect(
        self, session: Session, now: datetime, change_fields: Sequence[str] = ()
    ) -> _Reply:
        outcome = await self._extract_and_merge(session, now, change_fields)
        if outcome is None:
            return self._fallback(session)
        return await self._next_prompt(session, outcome, now)

    async def _extract_and_merge(
        self, session: Session, now: datetime, change_fields: Sequence[str] = ()
    ) -> Optional[_MergeOutcome]:
        """
        Run one extraction and merge what survives validation.

        Returns None when the extractor failed; the session is untouched in
        that case.
        """
        context = ExtractionContext.build(
            session.recent_turns(self.context_turns),
            now,
            self.window.horizon_days,
            session.last_asked_field,
        )
        try:
            update = await asyncio.wait_for(
                self.gateway.extract(context, session.slots.model_copy()),
                timeout=self.extraction_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Extraction timed out after %.1fs", self.extraction_timeout)
            return None
        except ExtractionFailure as e:
            logger.warning("Extraction failed: %s", e)
            return None
        except ValidationError as e:
            logger.warning("Extractor returned an invalid update: %s", e)
            return None

        slots = session.slots
        schedule_before = (slots.booking_date, slots.booking_time)

        changes = update.changes()
        outcome = _MergeOutcome()
        outcome.rejection = self._apply_window(session, changes, now)
        outcome.merged = self._merge(session, changes)

        for name in change_fields:
            if name in outcome.merged or getattr(slots, name) is None:
                continue
            setattr(slots, name, None)
            session.optional_asked.discard(name)
            logger.debug("Cleared '%s' for re-entry", name)

        outcome.schedule_changed = (slots.booking_date, slots.booking_time) != schedule_before
        if outcome.schedule_changed and session.weather_recommendation_given:
            self._reset_weather(session, keep_seating="seating_preference" in outcome.merged)
        return outcome

    def _apply_window(
        self, session: Session, changes: dict[str, Any], now: datetime
    ) -> Optional[Union[DateRejected, TimeRejected]]:
        """
        Validate a new date/time in place, dropping rejected values from ``changes``.

        A rejected date also drops the same-turn time. A new date of today
        invalidates a stored time that has already passed.
        """
        slots = session.slots
        new_date = changes.get("booking_date")
        if new_date is not None:
            try:
                self.window.validate_date(new_date, now)
            except DateRejected as e:
                logger.info("Discarding booking date %s: %s", new_date, e.reason.value)
                changes.pop("booking_date")
                changes.pop("booking_time", None)
                return e

        effective_date = changes.get("booking_date", slots.booking_date)
        if effective_date is None:
            return None

        new_time = changes.get("booking_time")
        if new_time is not None:
            try:
                self.window.validate_time(effective_date, new_time, now)
            except TimeRejected as e:
                logger.info("Discarding booking time %s: %s", new_time, e.reason.value)
                changes.pop("booking_time")
                return e
        elif new_date is not None and slots.booking_time is not None:
            try:
                self.window.validate_time(effective_date, slots.booking_time, now)
            except TimeRejected as e:
                logger.info("Stored time %s has passed for the new date", slots.booking_time)
                slots.booking_time = None
                return e
        return None

    def _merge(self, session: Session, changes: dict[str, Any]) -> list[str]:
        """Last-write-wins merge. Returns the slots whose value actually changed."""
        merged = []
        for name, value in changes.items():
            ok, normalized = self.slot_model.validate_value(name, value)
            if not ok:
                logger.info("Discarding invalid value for '%s'", name)
                continue
            if getattr(session.slots, name) != normalized:
                setattr(session.slots, name, normalized)
                merged.append(name)
        return merged

    def _reset_weather(self, session: Session, keep_seating: bool) -> None:
        session.weather_recommendation_given = False
        session.seating_recommendation = None
        session.weather = None
        if not keep_seating:
            session.slots.seating_preference = None
        if session.machine.can_transition(DialogueTrigger.SCHEDULE_CHANGED):
            session.machine.transition(DialogueTrigger.SCHEDULE_CHANGED)
        logger.info("Booking date/time changed; weather check will re-run")

    # ------------------------------------------------------------------ #
    # Prompt selection
    # ------------------------------------------------------------------ #

    async def _next_prompt(
        self, session: Session, outcome: _MergeOutcome, now: datetime
    ) -> _Reply:
        if outcome.rejection is not None:
            return self._rejection_reply(outcome.rejection, now)

        answered = outcome.merged[-1] if outcome.merged else None
        days = self.window.horizon_days

        missing = self.slot_model.missing_required(session.slots)
        if missing:
            candidates = [f for f in missing if f != session.last_asked_field]
            if not candidates:
                return _Reply(replies.CLARIFY_PROMPT)
            return _Reply(replies.build_field_question(candidates[0], days, answered), candidates[0])

        for name in self.slot_model.missing_optional(session.slots):
            if name not in session.optional_asked:
                session.optional_asked.add(name)
                return _Reply(replies.build_field_question(name, days, answered), name)

        return await self._advance(session)

    def _rejection_reply(
        self, rejection: Union[DateRejected, TimeRejected], now: datetime
    ) -> _Reply:
        if isinstance(rejection, DateRejected):
            today, last_day = self.window.today(now), self.window.last_day(now)
            if rejection.reason == RejectionReason.PAST_DATE:
                text = replies.build_past_date_rejection(today, last_day)
            else:
                text = replies.build_far_date_rejection(today, last_day)
            return _Reply(text, rejection.field_name)
        return _Reply(replies.build_time_rejection(now.time()), rejection.field_name)

    def _fallback(self, session: Session) -> _Reply:
        missing = self.slot_model.missing_required(session.slots)
        if not missing:
            return _Reply(replies.REPEAT_PROMPT)
        if missing[0] != session.last_asked_field:
            return _Reply(replies.build_fallback_question(missing[0]), missing[0])
        return _Reply(replies.CLARIFY_PROMPT)

    async def _advance(self, session: Session) -> _Reply:
        """All slots settled: run the weather step, or go straight to read-back."""
        if session.weather_recommendation_given:
            session.machine.transition(DialogueTrigger.WEATHER_ALREADY_GIVEN)
            return _Reply(self._summary(session))

        session.machine.transition(DialogueTrigger.REQUIRED_FILLED)
        slots = session.slots
        check = await self.weather.check(slots.booking_date, slots.booking_time, slots.location)
        session.weather_recommendation_given = True
        session.seating_recommendation = check.recommendation
        session.weather = check.info
        return _Reply(replies.build_weather_message(check))

    def _summary(self, session: Session) -> str:
        seating = session.slots.seating_preference or session.seating_recommendation
        return replies.build_confirmation_summary(session.slots, seating)

    # ------------------------------------------------------------------ #
    # Finalize
    # ------------------------------------------------------------------ #

    async def _finalize(self, session: Session, now: datetime) -> _Reply:
        """
        Hand the booking off, then mark the session finalized.

        A failing ``on_finalize`` hook leaves the session awaiting
        confirmation so the guest can simply confirm again.
        """
        slots = session.slots
        seating = slots.seating_preference or session.seating_recommendation or Seating.INDOOR
        booking = BookingHandoff(
            session_id=session.session_id,
            slots=slots.model_copy(update={"seating_preference": seating}),
            seating_preference=seating,
            seating_recommendation=session.seating_recommendation,
            weather=session.weather,
            finalized_at=now,
        )

        if self.on_finalize is not None:
            try:
                pending = self.on_finalize(booking)
                if inspect.isawaitable(pending):
                    await pending
            except Exception:
                logger.exception("Booking handoff failed; still awaiting confirmation")
                return _Reply(replies.HANDOFF_FAILED)

        slots.seating_preference = seating
        session.booking = booking
        session.machine.transition(DialogueTrigger.CALLER_AFFIRMED)
        logger.info(
            "Booking finalized: %s guests on %s at %s, %s",
            slots.number_of_guests, slots.booking_date, slots.booking_time, seating.value,
        )
        return _Reply(replies.build_finalized_message(slots, seating))

    def _result(self, session: Session, reply: _Reply) -> TurnResult:
        return TurnResult(
            session_id=session.session_id,
            assistant_text=reply.text,
            slots=session.slots.model_copy(),
            is_complete=self.slot_model.is_complete(session.slots),
            missing_fields=self.slot_model.missing_required(session.slots),
            state=session.state.value,
            seating_recommendation=session.seating_recommendation,
            weather=session.weather,
            booking=session.booking,
        )


def _non_seating(flags: IntentFlags) -> list[str]:
    return [name for name in flags.fields if name != "seating_preference"]
