"""Tests for the offline rule-based extraction gateway."""

from datetime import time

import pytest

from tablebook.extraction.gateway import ExtractionContext
from tablebook.extraction.rules import RuleBasedExtractionGateway
from tablebook.schemas.booking_schema import BookingSlots
from tablebook.schemas.conversation_schema import Speaker, TranscriptTurn
from tests.conftest import NOW, days_from_today


async def _extract(text: str, last_question=None) -> dict:
    turn = TranscriptTurn(speaker=Speaker.USER, text=text, timestamp=NOW)
    context = ExtractionContext.build([turn], NOW, 5, last_question)
    update = await RuleBasedExtractionGateway().extract(context, BookingSlots())
    return update.changes()


class TestNames:
    @pytest.mark.asyncio
    async def test_my_name_is(self):
        assert (await _extract("My name is Sarah"))["customer_name"] == "Sarah"

    @pytest.mark.asyncio
    async def test_name_stops_at_punctuation(self):
        found = await _extract("My name is Arjun, table for 2")
        assert found["customer_name"] == "Arjun"
        assert found["number_of_guests"] == 2

    @pytest.mark.asyncio
    async def test_bare_name_answers_name_question(self):
        found = await _extract("Priya Sharma", last_question="customer_name")
        assert found == {"customer_name": "Priya Sharma"}

    @pytest.mark.asyncio
    async def test_bare_words_ignored_for_other_questions(self):
        assert "customer_name" not in await _extract("Priya Sharma", last_question="booking_time")

    @pytest.mark.asyncio
    async def test_filler_is_not_a_name(self):
        assert "customer_name" not in await _extract("I'm looking for a table")


class TestGuests:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, expected",
        [("4 people", 4), ("we are six guests", 6), ("party of twelve", 12), ("table for 3", 3)],
    )
    async def test_guest_phrases(self, text, expected):
        assert (await _extract(text))["number_of_guests"] == expected

    @pytest.mark.asyncio
    async def test_bare_number_answers_guest_question(self):
        assert (await _extract("5", last_question="number_of_guests")) == {"number_of_guests": 5}

    @pytest.mark.asyncio
    async def test_for_time_is_not_a_guest_count(self):
        found = await _extract("book it for 7pm")
        assert "number_of_guests" not in found
        assert found["booking_time"] == time(19, 0)


class TestDatesAndTimes:
    @pytest.mark.asyncio
    async def test_relative_dates(self):
        assert (await _extract("today"))["booking_date"] == days_from_today(0)
        assert (await _extract("tomorrow please"))["booking_date"] == days_from_today(1)
        assert (await _extract("the day after tomorrow"))["booking_date"] == days_from_today(2)

    @pytest.mark.asyncio
    async def test_yesterday_is_reported_for_the_window_check(self):
        assert (await _extract("yesterday"))["booking_date"] == days_from_today(-1)

    @pytest.mark.asyncio
    async def test_iso_date(self):
        target = days_from_today(3)
        assert (await _extract(f"on {target.isoformat()}"))["booking_date"] == target

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, expected",
        [("7:30 pm", time(19, 30)), ("at 20:15", time(20, 15)), ("lunch", time(12, 30)),
         ("dinner tomorrow", time(19, 30))],
    )
    async def test_times(self, text, expected):
        assert (await _extract(text))["booking_time"] == expected


class TestPreferences:
    @pytest.mark.asyncio
    async def test_cuisine(self):
        assert (await _extract("Something Japanese"))["cuisine_preference"] == "Japanese"

    @pytest.mark.asyncio
    async def test_no_special_requests(self):
        found = await _extract("none", last_question="special_requests")
        assert found["special_requests"] == "None"

    @pytest.mark.asyncio
    async def test_special_request_keyword(self):
        found = await _extract("It's my wife's birthday")
        assert found["special_requests"] == "It's my wife's birthday"

    @pytest.mark.asyncio
    async def test_seating(self):
        assert (await _extract("outdoor please"))["seating_preference"] == "outdoor"

    @pytest.mark.asyncio
    async def test_ambiguous_seating_ignored(self):
        assert "seating_preference" not in await _extract("indoor or outdoor?")

    @pytest.mark.asyncio
    async def test_nothing_recognised(self):
        assert await _extract("hmm let me think") == {}
