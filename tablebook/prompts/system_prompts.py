"""
Prompt for the LLM slot extractor.

The model is only a parser: it returns the reservation fields mentioned in
the latest message as JSON. Question selection and validation stay in the
dialogue engine.
"""

import json

from tablebook.extraction.gateway import ExtractionContext
from tablebook.schemas.booking_schema import BookingSlots, Cuisine
from tablebook.utils import format_date, format_time

_CUISINES = "|".join(c.value for c in Cuisine)

EXTRACTION_SYSTEM_PROMPT = """You extract restaurant booking details from a conversation.
Return ONLY a JSON object. No markdown, no explanations.
Include ONLY the fields the user mentioned in their latest message.
Return {} if nothing new was said."""


def _format_turns(context: ExtractionContext) -> str:
    return "\n".join(f"{t.speaker.value}: {t.text}" for t in context.recent_turns)


def build_extraction_prompt(context: ExtractionContext, current_slots: BookingSlots) -> str:
    """Build the user-message prompt for one extraction call."""
    current = json.dumps(
        current_slots.model_dump(mode="json", by_alias=True), indent=2
    )
    today = format_date(context.today)
    tomorrow = format_date(context.tomorrow)
    day_after = format_date(context.day_after_tomorrow)
    max_date = format_date(context.max_date)
    now = format_time(context.current_time)
    last_question = context.last_question or "none"

    return f"""CURRENT DATA:
{current}

LAST {len(context.recent_turns)} MESSAGES:
{_format_turns(context)}

LAST QUESTION ASKED ABOUT: {last_question}

DATES (USE THESE EXACT VALUES):
TODAY = {today}
TOMORROW = {tomorrow}
DAY AFTER TOMORROW = {day_after}
MAX ALLOWED = {max_date}
CURRENT TIME = {now}

EXTRACTION RULES:
1. NAME: any name -> customerName ("My name is Sarah" -> "Sarah")
2. GUESTS: any number -> numberOfGuests as a JSON integer ("twelve" -> 12, "for 3" -> 3)
3. DATE: bookingDate as "YYYY-MM-DD"
   - "today" -> {today}
   - "tomorrow" -> {tomorrow}
   - "day after tomorrow" -> {day_after}
   - report the date the user asked for even if it is before {today} or after {max_date}
4. TIME: bookingTime as 24h "HH:MM"
   - "7pm" -> "19:00"
   - "lunch" -> "12:30", "dinner" -> "19:30", "breakfast" -> "09:00"
   - "same time" on a first booking -> {now}
5. CUISINE: cuisinePreference, one of {_CUISINES}
6. SPECIAL REQUESTS: specialRequests as text, or "None" if the user has none
7. SEATING: seatingPreference "indoor" or "outdoor" only if the user states it
8. LOCATION: location only if the user names a city

CRITICAL:
- Single word or number replies answer the most recent question.
- If the last question was about guests and the user says "4", return {{"numberOfGuests": 4}}.
- If the last question was about the name and the user says "John", return {{"customerName": "John"}}.
- Never invent values. Omit anything not mentioned.

Return JSON like:
{{"customerName": "...", "numberOfGuests": 4, "bookingDate": "YYYY-MM-DD", "bookingTime": "HH:MM", "cuisinePreference": "...", "specialRequests": "..."}}"""
