"""
Booking date/time window.

A booking date must fall in ``[today, today + N days]`` in the restaurant's
timezone. When the date is today, the time must be strictly after the
current local time. Rejections are raised, never swallowed, so the
dialogue engine can re-ask for the offending field.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from tablebook.config import settings
from tablebook.utils import combine_local


class RejectionReason(str, Enum):
    PAST_DATE = "pastDate"
    TOO_FAR_FUTURE = "tooFarFuture"
    IN_PAST = "inPast"


class DateRejected(Exception):
    """Raised when a candidate booking date falls outside the window."""

    field_name = "booking_date"

    def __init__(self, reason: RejectionReason, candidate: date) -> None:
        super().__init__(f"Booking date {candidate.isoformat()} rejected: {reason.value}")
        self.reason = reason
        self.candidate = candidate


class TimeRejected(Exception):
    """Raised when a same-day booking time is not after the current local time."""

    field_name = "booking_time"

    def __init__(self, reason: RejectionReason, candidate: time) -> None:
        super().__init__(f"Booking time {candidate.strftime('%H:%M')} rejected: {reason.value}")
        self.reason = reason
        self.candidate = candidate


class BookingWindow:
    """Validates candidate dates and times against "now" in a fixed timezone."""

    def __init__(
        self,
        timezone: Optional[tzinfo] = None,
        horizon_days: Optional[int] = None,
    ) -> None:
        self.tz = timezone or ZoneInfo(settings.restaurant.timezone)
        self.horizon_days = (
            settings.dialogue.booking_window_days if horizon_days is None else horizon_days
        )

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def localize(self, now: datetime) -> datetime:
        """Express an aware datetime in the operating timezone."""
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    def today(self, now: datetime) -> date:
        return self.localize(now).date()

    def last_day(self, now: datetime) -> date:
        return self.today(now) + timedelta(days=self.horizon_days)

    def validate_date(self, candidate: date, now: datetime) -> date:
        """
        Accept a booking date inside the window.

        Raises:
            DateRejected: pastDate before today, tooFarFuture after the horizon.
        """
        today = self.today(now)
        if candidate < today:
            raise DateRejected(RejectionReason.PAST_DATE, candidate)
        if candidate > self.last_day(now):
            raise DateRejected(RejectionReason.TOO_FAR_FUTURE, candidate)
        return candidate

    def validate_time(self, candidate_date: date, candidate_time: time, now: datetime) -> time:
        """
        Accept a booking time; only same-day bookings are constrained.

        Raises:
            TimeRejected: inPast when the combined local date-time is <= now.
        """
        local_now = self.localize(now)
        if candidate_date != local_now.date():
            return candidate_time
        if combine_local(candidate_date, candidate_time, self.tz) <= local_now:
            raise TimeRejected(RejectionReason.IN_PAST, candidate_time)
        return candidate_time
