"""Conversation transcript and per-turn result schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tablebook.schemas.booking_schema import BookingHandoff, BookingSlots, Seating
from tablebook.schemas.weather_schema import WeatherInfo


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TranscriptTurn(BaseModel):
    """A single line of the conversation transcript."""

    speaker: Speaker
    text: str
    timestamp: datetime


class TurnResult(BaseModel):
    """What the transport layer receives after each processed turn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    assistant_text: str
    slots: BookingSlots
    is_complete: bool
    missing_fields: list[str] = Field(default_factory=list)
    state: str
    seating_recommendation: Optional[Seating] = None
    weather: Optional[WeatherInfo] = None
    booking: Optional[BookingHandoff] = None
