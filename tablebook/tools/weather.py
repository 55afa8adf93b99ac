"""
Weather check for a booking slot: fetch forecast, match the slot, recommend seating.

The provider adapter talks to the OpenWeatherMap 5-day/3-hour forecast
over HTTP. Any provider failure degrades to an indoor recommendation; the
conversation always proceeds.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, time, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

import httpx

from tablebook.config import settings
from tablebook.schemas.booking_schema import Seating
from tablebook.schemas.weather_schema import ForecastSample, WeatherInfo
from tablebook.tools.forecast import closest, normalize_owm_entry
from tablebook.tools.seating import recommend
from tablebook.utils import combine_local, format_date, format_time

logger = logging.getLogger(__name__)

DEFAULT_COORDS = (28.6139, 77.209)

# Known city coordinates; unknown cities fall back to New Delhi.
CITY_COORDS: dict[str, tuple[float, float]] = {
    "new delhi": (28.6139, 77.209),
    "mumbai": (19.076, 72.8777),
    "bangalore": (12.9716, 77.5946),
    "kolkata": (22.5726, 88.3639),
    "chennai": (13.0827, 80.2707),
    "hyderabad": (17.385, 78.4867),
    "pune": (18.5204, 73.8567),
    "ahmedabad": (23.0225, 72.5714),
}


class WeatherUnavailable(Exception):
    """Raised when no usable forecast could be obtained."""


class WeatherProvider(Protocol):
    async def fetch_forecast(self, location: str) -> list[ForecastSample]:
        """Return normalized samples covering the provider's forward window."""
        ...


def coordinates_for(location: str) -> tuple[float, float]:
    return CITY_COORDS.get(location.strip().lower(), DEFAULT_COORDS)


class OpenWeatherMapProvider:
    """Async client for the OpenWeatherMap 5-day/3-hour forecast."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = settings.weather.api_key if api_key is None else api_key
        self.base_url = base_url or settings.weather.base_url
        self.http_client = client or httpx.AsyncClient(
            timeout=timeout or settings.weather.timeout_sec
        )

    async def close(self) -> None:
        await self.http_client.aclose()

    async def fetch_forecast(self, location: str) -> list[ForecastSample]:
        if not self.api_key:
            raise WeatherUnavailable("WEATHER_API_KEY not set in environment")

        lat, lon = coordinates_for(location)
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"}

        try:
            response = await self.http_client.get(self.base_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise WeatherUnavailable(f"Weather API error: {e}") from e
        except ValueError as e:
            raise WeatherUnavailable("Weather API returned invalid JSON") from e

        entries = payload.get("list") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise WeatherUnavailable("Weather API response has no forecast list")

        try:
            samples = [normalize_owm_entry(entry) for entry in entries]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise WeatherUnavailable(f"Malformed forecast entry: {e}") from e

        logger.debug("Fetched %d forecast samples for '%s'", len(samples), location)
        return samples


@dataclass
class WeatherCheck:
    """Outcome of one weather step."""

    recommendation: Seating
    sample: Optional[ForecastSample] = None
    info: Optional[WeatherInfo] = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.info is not None


def summarize(sample: ForecastSample, booking_date: date, booking_time: time) -> WeatherInfo:
    pop = sample.precipitation_probability
    return WeatherInfo(
        date_time=f"{format_date(booking_date)} {format_time(booking_time)}",
        condition=sample.condition_main or "Unknown",
        temperature=round(sample.temperature_celsius),
        description=sample.condition_description,
        rain_probability=round(pop * 100) if pop else None,
    )


class WeatherService:
    """Combines a provider, the forecast matcher, and the seating policy."""

    def __init__(
        self,
        provider: WeatherProvider,
        timezone: Optional[tzinfo] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.provider = provider
        self.tz = timezone or ZoneInfo(settings.restaurant.timezone)
        self.timeout = timeout or settings.weather.timeout_sec

    async def check(self, booking_date: date, booking_time: time, location: str) -> WeatherCheck:
        """Never raises for provider problems; falls back to indoor seating."""
        target = combine_local(booking_date, booking_time, self.tz)
        try:
            samples = await asyncio.wait_for(
                self.provider.fetch_forecast(location), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Weather provider timed out after %.1fs", self.timeout)
            return WeatherCheck(recommendation=recommend(None), error="timeout")
        except WeatherUnavailable as e:
            logger.warning("Weather unavailable: %s", e)
            return WeatherCheck(recommendation=recommend(None), error=str(e))

        sample = closest(samples, target)
        if sample is None:
            logger.warning("No forecast samples for '%s'", location)
            return WeatherCheck(recommendation=recommend(None), error="no forecast samples")

        recommendation = recommend(sample)
        logger.info(
            "Forecast for %s: %s %.1fC pop=%.2f -> %s",
            target.isoformat(), sample.condition_main, sample.temperature_celsius,
            sample.precipitation_probability, recommendation.value,
        )
        return WeatherCheck(
            recommendation=recommendation,
            sample=sample,
            info=summarize(sample, booking_date, booking_time),
        )
