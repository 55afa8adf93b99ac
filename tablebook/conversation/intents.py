"""
Intent classifiers used while the engine waits on seating or final confirmation.

Each classifier is an independent boolean predicate over the normalized
utterance. They do not vote; the dialogue engine combines them in a
specific-before-generic order (explicit seating words are checked before
generic affirmation, a change request naming a field skips the "what
would you like to change?" follow-up).
"""

import re
from dataclasses import dataclass

from tablebook.utils import normalize_text

EXPLICIT_INDOOR = re.compile(r"\b(indoor|indoors|inside)\b")
EXPLICIT_OUTDOOR = re.compile(r"\b(outdoor|outdoors|outside|terrace|patio)\b")
WANTS_TO_CHANGE = re.compile(r"\b(change|edit|modify|update|different|instead|actually)\b")
# "no changes", "nothing to change", "don't need to change anything"
DECLINES_CHANGE = re.compile(
    r"\b(no|nothing|not|don'?t|without)\b(\s+(need|want|to|any|more|further))*\s+(changes?|else)\b"
)
AFFIRMATIVE = re.compile(
    r"\b(yes|yeah|yep|yup|sure|confirm|confirmed|proceed|ok|okay|correct|right"
    r"|perfect|good|fine|great|go ahead|go with it|sounds good|looks good|stick)\b"
)

# Field keywords, in slot asking order.
FIELD_KEYWORDS: dict[str, re.Pattern] = {
    "customer_name": re.compile(r"\bname\b"),
    "number_of_guests": re.compile(r"\b(guests?|people|persons?|party size|headcount)\b"),
    "booking_date": re.compile(r"\b(date|day)\b"),
    "booking_time": re.compile(r"\b(time|hour)\b"),
    "cuisine_preference": re.compile(r"\bcuisine\b"),
    "special_requests": re.compile(r"\b(special requests?|occasion|request)\b"),
    "seating_preference": re.compile(r"\b(seating|seat|table|indoor|indoors|inside|outdoor|outdoors|outside)\b"),
}


def is_explicit_indoor(text: str) -> bool:
    return bool(EXPLICIT_INDOOR.search(normalize_text(text)))


def is_explicit_outdoor(text: str) -> bool:
    return bool(EXPLICIT_OUTDOOR.search(normalize_text(text)))


def declines_change(text: str) -> bool:
    """Negated change language such as "no changes" or "nothing else"."""
    return bool(DECLINES_CHANGE.search(normalize_text(text)))


def wants_to_change(text: str) -> bool:
    """Generic modify/edit/different-type language, unless negated."""
    if declines_change(text):
        return False
    return bool(WANTS_TO_CHANGE.search(normalize_text(text)))


def mentioned_fields(text: str) -> list[str]:
    """Slot names the utterance refers to, in asking order."""
    lower = normalize_text(text)
    return [name for name, pattern in FIELD_KEYWORDS.items() if pattern.search(lower)]


def specifies_field(text: str) -> bool:
    """True when the utterance names a concrete reservation field."""
    return bool(mentioned_fields(text))


def is_affirmative(text: str) -> bool:
    """Generic yes/confirm language. Declining changes counts as a yes."""
    return bool(AFFIRMATIVE.search(normalize_text(text))) or declines_change(text)


@dataclass(frozen=True)
class IntentFlags:
    """All classifier outputs for one utterance."""

    explicit_indoor: bool
    explicit_outdoor: bool
    wants_to_change: bool
    specifies_field: bool
    affirmative: bool
    fields: tuple[str, ...] = ()

    @property
    def explicit_seating(self) -> bool:
        # "indoor or outdoor?" echoed back is not a choice.
        return self.explicit_indoor != self.explicit_outdoor


def classify(text: str) -> IntentFlags:
    fields = tuple(mentioned_fields(text))
    return IntentFlags(
        explicit_indoor=is_explicit_indoor(text),
        explicit_outdoor=is_explicit_outdoor(text),
        wants_to_change=wants_to_change(text),
        specifies_field=bool(fields),
        affirmative=is_affirmative(text),
        fields=fields,
    )
