"""
Reservation slot model: field set, required vs optional, validity predicates.

All queries are pure functions of a ``BookingSlots`` snapshot. The order of
``SLOT_DEFINITIONS`` is the order in which the dialogue engine asks for
missing fields.

Usage:
    model = SlotModel()
    ok, value = model.validate_value("number_of_guests", 4)
    if model.is_complete(slots):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tablebook.schemas.booking_schema import BookingSlots, Cuisine, Seating

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 80
MIN_GUESTS = 1
MAX_SPECIAL_REQUEST_LENGTH = 300

NO_SPECIAL_REQUESTS = "No special requests"
_NO_REQUEST_WORDS = {"none", "no", "nothing", "nope", "n/a", "no special requests"}


def _validate_name(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    name = " ".join(value.split())
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        return None
    if name.lower() in {"null", "none", "unknown"}:
        return None
    return name


def _validate_guests(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= MIN_GUESTS else None


def _validate_passthrough(value: Any) -> Any:
    # Calendar checks live in the booking window; shape is enforced upstream.
    return value


def _validate_cuisine(value: Any) -> Optional[Cuisine]:
    if isinstance(value, Cuisine):
        return value
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for cuisine in Cuisine:
        if cuisine.value.lower() == wanted:
            return cuisine
    return None


def _validate_special_requests(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = " ".join(value.split())
    if not text or len(text) > MAX_SPECIAL_REQUEST_LENGTH:
        return None
    if text.lower().strip(".!") in _NO_REQUEST_WORDS:
        return NO_SPECIAL_REQUESTS
    return text


def _validate_seating(value: Any) -> Optional[Seating]:
    if isinstance(value, Seating):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Seating(value.strip().lower())
    except ValueError:
        return None


def _validate_location(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single reservation slot."""

    name: str
    display_name: str
    required: bool = True
    askable: bool = True
    validator: Optional[Callable[[Any], Any]] = None


class SlotModel:
    """
    Pure queries over a reservation slot snapshot.

    Required slots gate completeness; optional slots are asked only once
    the required ones are all set. Seating and location are never asked
    directly: seating comes from the weather step, location has a default.
    """

    SLOT_DEFINITIONS: list[SlotDefinition] = [
        SlotDefinition(
            name="customer_name",
            display_name="name",
            validator=_validate_name,
        ),
        SlotDefinition(
            name="number_of_guests",
            display_name="number of guests",
            validator=_validate_guests,
        ),
        SlotDefinition(
            name="booking_date",
            display_name="date",
            validator=_validate_passthrough,
        ),
        SlotDefinition(
            name="booking_time",
            display_name="time",
            validator=_validate_passthrough,
        ),
        SlotDefinition(
            name="cuisine_preference",
            display_name="cuisine",
            required=False,
            validator=_validate_cuisine,
        ),
        SlotDefinition(
            name="special_requests",
            display_name="special requests",
            required=False,
            validator=_validate_special_requests,
        ),
        SlotDefinition(
            name="seating_preference",
            display_name="seating",
            required=False,
            askable=False,
            validator=_validate_seating,
        ),
        SlotDefinition(
            name="location",
            display_name="location",
            required=False,
            askable=False,
            validator=_validate_location,
        ),
    ]

    def get_definition(self, name: str) -> SlotDefinition:
        for defn in self.SLOT_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown slot: {name}")

    def validate_value(self, name: str, value: Any) -> tuple[bool, Any]:
        """
        Run a slot's validity predicate.

        Returns:
            (ok, normalized) — normalized is None when ok is False.
        """
        defn = self.get_definition(name)
        normalized = defn.validator(value) if defn.validator else value
        if normalized is None:
            logger.debug("Slot '%s' rejected value %r", name, value)
            return False, None
        return True, normalized

    def is_complete(self, slots: BookingSlots) -> bool:
        """True iff every required slot is set."""
        return all(getattr(slots, d.name) is not None for d in self.SLOT_DEFINITIONS if d.required)

    def missing_required(self, slots: BookingSlots) -> list[str]:
        """Unset required slots, in asking order."""
        return [
            d.name
            for d in self.SLOT_DEFINITIONS
            if d.required and getattr(slots, d.name) is None
        ]

    def missing_optional(self, slots: BookingSlots) -> list[str]:
        """Unset optional slots that the engine may ask about."""
        return [
            d.name
            for d in self.SLOT_DEFINITIONS
            if not d.required and d.askable and getattr(slots, d.name) is None
        ]

    def display_name(self, name: str) -> str:
        return self.get_definition(name).display_name

    def slot_names(self) -> list[str]:
        return [d.name for d in self.SLOT_DEFINITIONS]
