"""
Table booking assistant entry point.

Builds the dialogue engine from configuration and runs a text conversation
in the terminal. Uses the OpenAI extractor when OPENAI_API_KEY is set and
the offline rule-based extractor otherwise; the weather step uses
OpenWeatherMap when WEATHER_API_KEY is set and a static demo forecast
otherwise.

Usage:
    Live stack:   python main.py
    Console mode: python main.py console [--scenario booking|rain|change]
"""

import logging
import os
import sys

from tablebook.config import settings
from tablebook.conversation.dialogue_engine import DialogueEngine
from tablebook.tools.weather import WeatherService

logger = logging.getLogger(__name__)


def build_engine() -> DialogueEngine:
    """Wire the engine with the best available extractor and forecast provider."""
    from console_demo import StaticForecastProvider

    if os.getenv("OPENAI_API_KEY"):
        from tablebook.extraction.openai_gateway import OpenAIExtractionGateway

        gateway = OpenAIExtractionGateway()
        logger.info("Using OpenAI extractor (%s)", settings.model.llm_model)
    else:
        from tablebook.extraction.rules import RuleBasedExtractionGateway

        gateway = RuleBasedExtractionGateway()
        logger.info("OPENAI_API_KEY not set; using rule-based extractor")

    if settings.weather.api_key:
        from tablebook.tools.weather import OpenWeatherMapProvider

        provider = OpenWeatherMapProvider()
    else:
        provider = StaticForecastProvider()
        logger.info("WEATHER_API_KEY not set; using static demo forecast")

    return DialogueEngine(gateway=gateway, weather=WeatherService(provider))


def _run_live_mode() -> None:
    """Interactive conversation against the configured extractor and weather provider."""
    from console_demo import ConsoleSession

    ConsoleSession(build_engine()).run()


def _run_console_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import main as console_main

    sys.argv = [sys.argv[0]] + sys.argv[2:]
    console_main()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_live_mode()
