"""Forecast sample and weather summary models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ForecastSample(BaseModel):
    """A single provider forecast entry, normalized."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    temperature_celsius: float
    condition_main: str = ""
    condition_description: str = ""
    precipitation_probability: float = Field(default=0.0, ge=0.0, le=1.0)


class WeatherInfo(BaseModel):
    """Guest-facing weather summary for the booking slot."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date_time: str
    condition: str
    temperature: int
    description: str = ""
    rain_probability: Optional[int] = None
