"""
Forecast matching: pick the provider sample nearest a booking date-time.

Samples are assumed to be pre-filtered to the provider's coverage window;
no filtering happens here.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from tablebook.schemas.weather_schema import ForecastSample


def closest(samples: Sequence[ForecastSample], target: datetime) -> Optional[ForecastSample]:
    """
    Return the sample minimizing ``|timestamp - target|``.

    Linear scan; on a tie the first-encountered sample wins. Returns None
    only for an empty sequence.
    """
    best: Optional[ForecastSample] = None
    best_diff: Optional[float] = None
    for sample in samples:
        diff = abs((sample.timestamp - target).total_seconds())
        if best_diff is None or diff < best_diff:
            best, best_diff = sample, diff
    return best


def normalize_owm_entry(entry: dict[str, Any]) -> ForecastSample:
    """
    Convert one OpenWeatherMap 5-day/3-hour ``list`` entry.

    Raises:
        KeyError, TypeError, ValueError: the entry is not the expected shape.
    """
    conditions = entry.get("weather") or [{}]
    first = conditions[0]
    return ForecastSample(
        timestamp=datetime.fromtimestamp(entry["dt"], tz=timezone.utc),
        temperature_celsius=float(entry["main"]["temp"]),
        condition_main=first.get("main", "") or "",
        condition_description=first.get("description", "") or "",
        precipitation_probability=float(entry.get("pop") or 0.0),
    )
