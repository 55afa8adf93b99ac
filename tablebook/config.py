"""
Centralized configuration with environment variable overrides.

Restaurant details, the booking window, model settings, and the weather
provider are configurable here. Nothing is hardcoded in the dialogue engine.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from tablebook.logging_context import LOG_FORMAT, install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class RestaurantConfig:
    """Restaurant identity and operating locale."""

    name: str = os.getenv("RESTAURANT_NAME", "The Courtyard Kitchen")
    default_location: str = os.getenv("DEFAULT_LOCATION", "New Delhi")
    timezone: str = os.getenv("RESTAURANT_TIMEZONE", "Asia/Kolkata")


@dataclass(frozen=True)
class ModelConfig:
    """LLM settings for the slot extractor."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.1")
    extraction_timeout_sec: float = _safe_float("EXTRACTION_TIMEOUT", "10.0")


@dataclass(frozen=True)
class WeatherConfig:
    """Forecast provider settings."""

    api_key: str = os.getenv("WEATHER_API_KEY", "")
    base_url: str = os.getenv(
        "WEATHER_API_URL", "https://api.openweathermap.org/data/2.5/forecast"
    )
    timeout_sec: float = _safe_float("WEATHER_TIMEOUT", "8.0")


@dataclass(frozen=True)
class DialogueConfig:
    """Booking window and conversation limits."""

    booking_window_days: int = _safe_int("BOOKING_WINDOW_DAYS", "5")
    context_turns: int = _safe_int("CONTEXT_TURNS", "4")
    max_input_length: int = _safe_int("MAX_INPUT_LENGTH", "500")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    restaurant: RestaurantConfig = field(default_factory=RestaurantConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.extraction_timeout_sec <= 0:
        raise ValueError(
            f"EXTRACTION_TIMEOUT must be > 0, got {config.model.extraction_timeout_sec}"
        )
    if config.weather.timeout_sec <= 0:
        raise ValueError(
            f"WEATHER_TIMEOUT must be > 0, got {config.weather.timeout_sec}"
        )
    if config.dialogue.booking_window_days < 0:
        raise ValueError(
            f"BOOKING_WINDOW_DAYS must be >= 0, got {config.dialogue.booking_window_days}"
        )
    if config.dialogue.context_turns < 1:
        raise ValueError(
            f"CONTEXT_TURNS must be >= 1, got {config.dialogue.context_turns}"
        )
    if config.dialogue.max_input_length < 1:
        raise ValueError(
            f"MAX_INPUT_LENGTH must be >= 1, got {config.dialogue.max_input_length}"
        )
    try:
        ZoneInfo(config.restaurant.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"RESTAURANT_TIMEZONE is not a known timezone: {config.restaurant.timezone!r}"
        ) from None


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        install_session_filter(handler)
    logger.info("Configuration loaded for '%s'", config.restaurant.name)
    return config


# Singleton instance
settings = load_config()
