"""Assistant reply templates for the booking dialogue."""

from datetime import date, time
from typing import Optional

from tablebook.schemas.booking_schema import BookingSlots, Seating
from tablebook.tools.weather import WeatherCheck
from tablebook.utils import format_date, format_time

FIELD_QUESTIONS: dict[str, str] = {
    "customer_name": "What name should I put the reservation under?",
    "number_of_guests": "How many guests will be joining?",
    "booking_date": "What date would you like? (Within the next {days} days)",
    "booking_time": "What time works best for you?",
    "cuisine_preference": "What cuisine do you prefer?",
    "special_requests": "Any special requests or occasions?",
}

ACKNOWLEDGEMENTS: dict[str, str] = {
    "customer_name": "Great!",
    "number_of_guests": "Awesome!",
    "booking_date": "Perfect!",
    "booking_time": "Nice!",
    "cuisine_preference": "Lovely!",
    "special_requests": "Got it!",
}

# Used when the extractor fails; no acknowledgement since nothing was understood.
FALLBACK_QUESTIONS: dict[str, str] = {
    "customer_name": "Sorry, I missed that. What name should I put the reservation under?",
    "number_of_guests": "Sorry, I missed that. How many people will be joining?",
    "booking_date": "Sorry, I missed that. What day would you like to book?",
    "booking_time": "Sorry, I missed that. What time works best for you?",
}

CLARIFY_PROMPT = "Sorry, I didn't quite catch that. Could you say it another way?"
REPEAT_PROMPT = "I'm sorry, could you repeat that?"
INPUT_TOO_LONG = "That was quite long. Could you keep it brief for me?"
CHANGE_WHAT_PROMPT = "No problem! What would you like to change?"
SEATING_QUESTION = "Would you prefer indoor or outdoor seating?"
SEATING_REASK = f"I didn't catch that. {SEATING_QUESTION}"
CONFIRM_REASK = (
    "I didn't catch that. Should I proceed with the booking, "
    "or would you like to change something?"
)
WEATHER_INTRO = "Let me check the weather for your booking date."
WEATHER_UNAVAILABLE = (
    "Weather data is not available at the moment. For safety reasons, I recommend "
    "indoor seating. Would you prefer indoor or outdoor seating?"
)
SEATING_CONFIRMED: dict[Seating, str] = {
    Seating.INDOOR: "Great! Indoor seating it is.",
    Seating.OUTDOOR: "Perfect! Outdoor seating reserved for you.",
}
RECOMMENDATION_ACCEPTED = "Excellent choice!"
ALREADY_FINALIZED = "Your booking is already confirmed. Is there anything else I can help with?"
HANDOFF_FAILED = (
    "Sorry, I couldn't complete the booking just now. "
    "Shall I try again, or would you like to change something?"
)


def acknowledge(answered: str) -> str:
    return ACKNOWLEDGEMENTS.get(answered, "Got it!")


def build_field_question(field: str, window_days: int, answered: Optional[str] = None) -> str:
    """Question for the next slot, prefixed with an acknowledgement of the slot just filled."""
    question = FIELD_QUESTIONS[field].format(days=window_days)
    if answered:
        return f"{acknowledge(answered)} {question}"
    return question


def build_fallback_question(field: str) -> str:
    return FALLBACK_QUESTIONS.get(field, REPEAT_PROMPT)


def build_past_date_rejection(today: date, last_day: date) -> str:
    return (
        f"Sorry, that date has passed. Please choose today ({format_date(today)}) "
        f"or a date up to {format_date(last_day)}."
    )


def build_far_date_rejection(today: date, last_day: date) -> str:
    days = (last_day - today).days
    return (
        f"I can only book within the next {days} days because our weather data is limited. "
        f"Please choose a date between {format_date(today)} and {format_date(last_day)}."
    )


def build_time_rejection(current_time: time) -> str:
    return (
        f"For today's bookings, please choose a time after {format_time(current_time)}. "
        f"What time works for you?"
    )


def build_weather_message(check: WeatherCheck) -> str:
    if check.info is None:
        return f"{WEATHER_INTRO} {WEATHER_UNAVAILABLE}"
    seating = check.recommendation.value
    return (
        f"{WEATHER_INTRO} The weather looks {check.info.condition.lower()}, around "
        f"{check.info.temperature}°C. I recommend {seating} seating for your comfort. "
        f"Would you like to go with {seating} seating, or would you prefer something different?"
    )


def build_confirmation_summary(slots: BookingSlots, seating: Optional[Seating]) -> str:
    """Read-back of the reservation before it is finalized."""
    details = [
        f"Name: {slots.customer_name}",
        f"Guests: {slots.number_of_guests}",
        f"Date: {format_date(slots.booking_date)}",
        f"Time: {format_time(slots.booking_time)}",
    ]
    if slots.cuisine_preference:
        details.append(f"Cuisine: {slots.cuisine_preference.value}")
    if slots.special_requests:
        details.append(f"Special Requests: {slots.special_requests}")
    details.append(f"Seating: {(seating or Seating.INDOOR).value}")
    return (
        f"Let me confirm your reservation. {', '.join(details)}. "
        f"Would you like to change anything, or shall I proceed with this booking?"
    )


def build_finalized_message(slots: BookingSlots, seating: Seating) -> str:
    return (
        f"Wonderful, {slots.customer_name}! Your {seating.value} table for "
        f"{slots.number_of_guests} on {format_date(slots.booking_date)} at "
        f"{format_time(slots.booking_time)} is booked."
    )
