"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

import pytest

from tablebook.conversation.datetime_window import BookingWindow
from tablebook.conversation.dialogue_engine import DialogueEngine
from tablebook.conversation.slot_manager import SlotModel
from tablebook.conversation.state_machine import DialogueStateMachine
from tablebook.extraction.gateway import ExtractionContext
from tablebook.schemas.booking_schema import BookingSlots, SlotUpdate
from tablebook.schemas.weather_schema import ForecastSample
from tablebook.tools.weather import WeatherService

KOLKATA = ZoneInfo("Asia/Kolkata")
# Monday afternoon in the restaurant's timezone
NOW = datetime(2026, 10, 19, 15, 0, tzinfo=KOLKATA)
TODAY = NOW.date()


def fixed_clock() -> datetime:
    return NOW


def days_from_today(n: int) -> date:
    return TODAY + timedelta(days=n)


ScriptItem = Union[SlotUpdate, dict, Exception]


class ScriptedExtractionGateway:
    """Returns queued updates (or raises queued exceptions) in order."""

    def __init__(self, *script: ScriptItem) -> None:
        self.script: list[ScriptItem] = list(script)
        self.contexts: list[ExtractionContext] = []
        self.seen_slots: list[BookingSlots] = []

    def push(self, *items: ScriptItem) -> None:
        self.script.extend(items)

    async def extract(self, context: ExtractionContext, current_slots: BookingSlots) -> SlotUpdate:
        self.contexts.append(context)
        self.seen_slots.append(current_slots)
        if not self.script:
            return SlotUpdate()
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, dict):
            return SlotUpdate.model_validate(item)
        return item


class FakeWeatherProvider:
    """Serves fixed samples, or raises a fixed error."""

    def __init__(
        self,
        samples: Optional[list[ForecastSample]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.samples = samples if samples is not None else [make_sample()]
        self.error = error
        self.calls: list[str] = []

    async def fetch_forecast(self, location: str) -> list[ForecastSample]:
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        return list(self.samples)


def make_sample(
    when: Optional[datetime] = None,
    condition: str = "Clear",
    description: str = "clear sky",
    temp: float = 25.0,
    pop: float = 0.0,
) -> ForecastSample:
    """Helper to create a ForecastSample; defaults to pleasant weather."""
    return ForecastSample(
        timestamp=when or (NOW + timedelta(days=2)).astimezone(timezone.utc),
        temperature_celsius=temp,
        condition_main=condition,
        condition_description=description,
        precipitation_probability=pop,
    )


def complete_update(**overrides: Any) -> dict:
    """All four required slots, as an extractor would return them."""
    update = {
        "customerName": "Priya",
        "numberOfGuests": 4,
        "bookingDate": days_from_today(2).isoformat(),
        "bookingTime": "19:00",
    }
    update.update(overrides)
    return update


@pytest.fixture
def slot_model():
    return SlotModel()


@pytest.fixture
def state_machine():
    return DialogueStateMachine()


@pytest.fixture
def window():
    return BookingWindow(timezone=KOLKATA, horizon_days=5)


@pytest.fixture
def gateway():
    return ScriptedExtractionGateway()


@pytest.fixture
def weather_provider():
    return FakeWeatherProvider()


@pytest.fixture
def engine(gateway, weather_provider, window):
    return DialogueEngine(
        gateway=gateway,
        weather=WeatherService(weather_provider, timezone=KOLKATA, timeout=1.0),
        window=window,
        clock=fixed_clock,
        context_turns=4,
        extraction_timeout=1.0,
        max_input_length=500,
    )


@pytest.fixture
def empty_slots():
    return BookingSlots()


@pytest.fixture
def full_slots():
    return BookingSlots(
        customer_name="Priya",
        number_of_guests=4,
        booking_date=days_from_today(2),
        booking_time=time(19, 0),
    )
