"""
Deterministic rule-based extraction gateway.

Pattern matching for the structured answers guests usually give (names,
head counts, relative dates, clock times, cuisine names). Runs offline with
no API keys, so the console demo and tests can drive the real engine.
Anything it cannot recognise is simply left out of the update.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from tablebook.conversation.intents import is_explicit_indoor, is_explicit_outdoor
from tablebook.extraction.gateway import ExtractionContext
from tablebook.schemas.booking_schema import BookingSlots, Cuisine, SlotUpdate
from tablebook.utils import normalize_text, parse_clock_time

NUMBER_WORDS: dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20,
}
_NUMBER = r"(\d{1,3}|" + "|".join(NUMBER_WORDS) + r")"

MEAL_TIMES: dict[str, time] = {
    "breakfast": time(9, 0),
    "lunch": time(12, 30),
    "dinner": time(19, 30),
}

SPECIAL_REQUEST_KEYWORDS = re.compile(
    r"\b(birthday|anniversary|wheelchair|high ?chair|window|allerg\w*|vegan|vegetarian"
    r"|gluten|cake|quiet|proposal|celebrat\w*)\b"
)
_NO_REQUESTS = re.compile(r"^(no|none|nothing|nope|no thanks|no special requests?)\b")

_NAME_RE = re.compile(
    r"\b(?:my name is|name is|this is|i am|i'm|under the name|under|call me)\s+"
    r"([a-z][a-z.'-]*(?:\s+[a-z][a-z.'-]*){0,2})"
)
_NAME_STOP_WORDS = {
    "and", "for", "at", "on", "with", "tomorrow", "today", "tonight", "booking",
    "looking", "calling", "trying", "going", "here", "not", "just", "hungry",
}
_GUESTS_RE = re.compile(rf"\b{_NUMBER}\s*(?:people|persons|guests|pax|of us)\b")
_PARTY_RE = re.compile(rf"\b(?:for|party of|table for)\s+{_NUMBER}\b(?!\s*(?::|[ap]\.?m\b|o'?clock))")
_ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
_MERIDIEM_TIME_RE = re.compile(r"\b(\d{1,2}(?::\d{2})?\s*[ap]\.?m\.?)(?=\s|$|[,.!?])")
_CLOCK_TIME_RE = re.compile(r"\b(\d{1,2}:\d{2})\b")
_BARE_WORDS_RE = re.compile(r"^[a-z][a-z.'-]*(?:\s+[a-z][a-z.'-]*){0,2}$")


def _to_int(token: str) -> Optional[int]:
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS.get(token)


class RuleBasedExtractionGateway:
    """Offline extractor honouring the ``ExtractionGateway`` contract."""

    async def extract(self, context: ExtractionContext, current_slots: BookingSlots) -> SlotUpdate:
        text = context.latest_user_text
        lower = normalize_text(text).rstrip(".!?")
        asked = context.last_question
        found: dict[str, Any] = {}

        name = self._name(lower, text, asked)
        if name:
            found["customer_name"] = name

        guests = self._guests(lower, asked)
        if guests is not None:
            found["number_of_guests"] = guests

        booking_date = self._date(lower, context)
        if booking_date is not None:
            found["booking_date"] = booking_date

        booking_time = self._time(lower)
        if booking_time is not None:
            found["booking_time"] = booking_time

        for cuisine in Cuisine:
            if cuisine is not Cuisine.OTHER and re.search(rf"\b{cuisine.value.lower()}\b", lower):
                found["cuisine_preference"] = cuisine.value
                break

        requests = self._special_requests(lower, text, asked)
        if requests:
            found["special_requests"] = requests

        if is_explicit_indoor(lower) != is_explicit_outdoor(lower):
            found["seating_preference"] = "indoor" if is_explicit_indoor(lower) else "outdoor"

        return SlotUpdate(**found)

    @staticmethod
    def _name(lower: str, original: str, asked: Optional[str]) -> Optional[str]:
        match = _NAME_RE.search(lower)
        if match:
            words = []
            for word in match.group(1).split():
                if word in _NAME_STOP_WORDS:
                    break
                words.append(word)
            if words:
                return " ".join(w.capitalize() for w in words)
        if (
            asked == "customer_name"
            and _BARE_WORDS_RE.match(lower)
            and not set(lower.split()) & _NAME_STOP_WORDS
        ):
            return " ".join(w.capitalize() for w in original.strip().rstrip(".!?").split())
        return None

    @staticmethod
    def _guests(lower: str, asked: Optional[str]) -> Optional[int]:
        for pattern in (_GUESTS_RE, _PARTY_RE):
            match = pattern.search(lower)
            if match:
                return _to_int(match.group(1))
        if asked == "number_of_guests":
            match = re.fullmatch(_NUMBER, lower)
            if match:
                return _to_int(match.group(1))
        return None

    @staticmethod
    def _date(lower: str, context: ExtractionContext) -> Optional[date]:
        if "day after tomorrow" in lower:
            return context.day_after_tomorrow
        if re.search(r"\btomorrow\b", lower):
            return context.tomorrow
        if re.search(r"\b(today|tonight)\b", lower):
            return context.today
        if re.search(r"\byesterday\b", lower):
            return context.today - timedelta(days=1)
        match = _ISO_DATE_RE.search(lower)
        if match:
            try:
                return datetime.strptime(match.group(1), "%Y-%m-%d").date()
            except ValueError:
                return None
        return None

    @staticmethod
    def _time(lower: str) -> Optional[time]:
        for pattern in (_MERIDIEM_TIME_RE, _CLOCK_TIME_RE):
            match = pattern.search(lower)
            if match:
                parsed = parse_clock_time(match.group(1))
                if parsed is not None:
                    return parsed
        for meal, meal_time in MEAL_TIMES.items():
            if re.search(rf"\b{meal}\b", lower):
                return meal_time
        return None

    @staticmethod
    def _special_requests(lower: str, original: str, asked: Optional[str]) -> Optional[str]:
        if asked == "special_requests":
            if _NO_REQUESTS.match(lower):
                return "None"
            return original.strip()
        if SPECIAL_REQUEST_KEYWORDS.search(lower):
            return original.strip()
        return None
