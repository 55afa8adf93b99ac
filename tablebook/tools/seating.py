"""
Rule-based indoor/outdoor seating recommendation.

A strict priority chain, first match wins. Wet conditions are checked
before the pleasant-weather rule, so a warm rainy evening never yields
outdoor seating.
"""

import re
from typing import Optional

from tablebook.schemas.booking_schema import Seating
from tablebook.schemas.weather_schema import ForecastSample

# Thresholds
MAX_PRECIPITATION_PROBABILITY = 0.4
MIN_COMFORT_TEMP_C = 10.0
MAX_COMFORT_TEMP_C = 38.0
PLEASANT_LOW_C = 18.0
PLEASANT_HIGH_C = 30.0

WET_CONDITIONS = re.compile(r"rain|drizzle|snow|thunderstorm", re.IGNORECASE)
PLEASANT_SKIES = re.compile(r"clear|cloud", re.IGNORECASE)


def recommend(sample: Optional[ForecastSample]) -> Seating:
    """Map a forecast sample (or its absence) to a seating recommendation."""
    if sample is None:
        return Seating.INDOOR

    if WET_CONDITIONS.search(sample.condition_main):
        return Seating.INDOOR

    if sample.precipitation_probability > MAX_PRECIPITATION_PROBABILITY:
        return Seating.INDOOR

    temp = sample.temperature_celsius
    if temp < MIN_COMFORT_TEMP_C or temp > MAX_COMFORT_TEMP_C:
        return Seating.INDOOR

    if PLEASANT_LOW_C <= temp <= PLEASANT_HIGH_C and PLEASANT_SKIES.search(
        sample.condition_description
    ):
        return Seating.OUTDOOR

    return Seating.INDOOR
