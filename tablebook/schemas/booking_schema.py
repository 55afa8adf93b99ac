"""Reservation slot models, extractor output, and the finalize handoff."""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from tablebook.config import settings
from tablebook.schemas.weather_schema import WeatherInfo


class Cuisine(str, Enum):
    ITALIAN = "Italian"
    CHINESE = "Chinese"
    INDIAN = "Indian"
    MEXICAN = "Mexican"
    FRENCH = "French"
    MEDITERRANEAN = "Mediterranean"
    THAI = "Thai"
    JAPANESE = "Japanese"
    KOREAN = "Korean"
    AMERICAN = "American"
    CONTINENTAL = "Continental"
    OTHER = "Other"


class Seating(str, Enum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"


class BookingSlots(BaseModel):
    """
    The reservation being built.

    Every slot is either unset or holds a value that already passed its
    validity predicate in the slot model. Serializes with the camelCase
    field names used by the transport layer.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer_name: Optional[str] = None
    number_of_guests: Optional[int] = None
    booking_date: Optional[date] = None
    booking_time: Optional[time] = None
    cuisine_preference: Optional[Cuisine] = None
    special_requests: Optional[str] = None
    seating_preference: Optional[Seating] = None
    location: str = Field(default_factory=lambda: settings.restaurant.default_location)


class SlotUpdate(BaseModel):
    """
    Partial slot update returned by an extraction gateway.

    Shape checks are strict: a guest count must be a JSON integer, a date a
    ``YYYY-MM-DD`` string, a time an ``HH:MM`` string. Anything else fails
    validation instead of being coerced. Unknown keys are rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    customer_name: Optional[StrictStr] = None
    number_of_guests: Optional[StrictInt] = None
    booking_date: Optional[date] = None
    booking_time: Optional[time] = None
    cuisine_preference: Optional[StrictStr] = None
    special_requests: Optional[StrictStr] = None
    seating_preference: Optional[StrictStr] = None
    location: Optional[StrictStr] = None

    @field_validator("booking_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, datetime):
            raise ValueError("bookingDate must be a calendar date, not a timestamp")
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError("bookingDate must be a YYYY-MM-DD string")
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()

    @field_validator("booking_time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> Any:
        if value is None or isinstance(value, time):
            return value
        if not isinstance(value, str):
            raise ValueError("bookingTime must be an HH:MM string")
        return datetime.strptime(value.strip(), "%H:%M").time()

    def changes(self) -> dict[str, Any]:
        """Return only the fields the extractor actually supplied."""
        return {name: value for name, value in self if value is not None}

    def is_empty(self) -> bool:
        return not self.changes()


class BookingHandoff(BaseModel):
    """Everything the booking-creation collaborator needs once a session finalizes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    slots: BookingSlots
    seating_preference: Seating
    seating_recommendation: Optional[Seating] = None
    weather: Optional[WeatherInfo] = None
    finalized_at: datetime
