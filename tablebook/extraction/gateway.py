"""
Extraction gateway contract.

The dialogue engine hands a gateway the recent transcript plus the current
slots and receives a partial ``SlotUpdate``. How the values are extracted
(an LLM, a rule engine, a scripted fake) is the gateway's business; the
engine only relies on this contract:

- return a ``SlotUpdate`` (possibly empty) on success
- raise ``ExtractionFailure`` on transport errors or malformed output
"""

import json
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol, Sequence

from pydantic import ValidationError

from tablebook.schemas.booking_schema import BookingSlots, SlotUpdate
from tablebook.schemas.conversation_schema import Speaker, TranscriptTurn

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class ExtractionFailure(Exception):
    """The extractor failed or returned output outside the contract."""


@dataclass(frozen=True)
class ExtractionContext:
    """What an extractor needs to resolve relative answers."""

    recent_turns: tuple[TranscriptTurn, ...]
    today: date
    tomorrow: date
    day_after_tomorrow: date
    max_date: date
    current_time: time
    last_question: Optional[str] = None

    @classmethod
    def build(
        cls,
        turns: Sequence[TranscriptTurn],
        local_now: datetime,
        horizon_days: int,
        last_question: Optional[str] = None,
    ) -> "ExtractionContext":
        today = local_now.date()
        return cls(
            recent_turns=tuple(turns),
            today=today,
            tomorrow=today + timedelta(days=1),
            day_after_tomorrow=today + timedelta(days=2),
            max_date=today + timedelta(days=horizon_days),
            current_time=local_now.time().replace(second=0, microsecond=0),
            last_question=last_question,
        )

    @property
    def latest_user_text(self) -> str:
        for turn in reversed(self.recent_turns):
            if turn.speaker == Speaker.USER:
                return turn.text
        return ""


class ExtractionGateway(Protocol):
    async def extract(self, context: ExtractionContext, current_slots: BookingSlots) -> SlotUpdate:
        """Return the slot values the latest user turn supplies."""
        ...


def parse_extraction(raw: Optional[str]) -> SlotUpdate:
    """
    Parse an extractor's JSON text into a ``SlotUpdate``.

    Markdown code fences are stripped. ``null`` values mean "not mentioned".
    ``{}`` is a valid empty update.

    Raises:
        ExtractionFailure: empty text, invalid JSON, a non-object payload,
            unknown keys, or a value of the wrong type/shape.
    """
    if raw is None:
        raise ExtractionFailure("Extractor returned no content")

    text = _CODE_FENCE_RE.sub("", raw).strip()
    if not text:
        raise ExtractionFailure("Extractor returned empty content")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"Extractor output is not JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ExtractionFailure(f"Extractor output must be an object, got {type(data).__name__}")

    try:
        return SlotUpdate.model_validate(data)
    except ValidationError as e:
        raise ExtractionFailure(f"Extractor output failed validation: {e.error_count()} error(s)") from e
