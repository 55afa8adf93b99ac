"""
Offline console demo: runs a full table booking without any API keys.

Drives the real dialogue engine with the rule-based extractor and a static
demo forecast. No LLM, no network calls. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario rain
    python console_demo.py --scenario change
"""

import argparse
import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from tablebook.config import settings
from tablebook.conversation.dialogue_engine import DialogueEngine
from tablebook.conversation.state_machine import DialogueState
from tablebook.extraction.rules import RuleBasedExtractionGateway
from tablebook.schemas.booking_schema import BookingHandoff
from tablebook.schemas.conversation_schema import TurnResult
from tablebook.schemas.weather_schema import ForecastSample
from tablebook.tools.weather import WeatherService

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

GREETING = "Hello! Welcome to {name}. I can help you book a table. What name should I use?"


class StaticForecastProvider:
    """Demo forecast: the same conditions every 3 hours for the next six days."""

    def __init__(
        self,
        condition_main: str = "Clear",
        description: str = "clear sky",
        temperature: float = 24.0,
        precipitation: float = 0.0,
    ) -> None:
        self.condition_main = condition_main
        self.description = description
        self.temperature = temperature
        self.precipitation = precipitation

    async def fetch_forecast(self, location: str) -> list[ForecastSample]:
        start = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        return [
            ForecastSample(
                timestamp=start + timedelta(hours=3 * i),
                temperature_celsius=self.temperature,
                condition_main=self.condition_main,
                condition_description=self.description,
                precipitation_probability=self.precipitation,
            )
            for i in range(6 * 8)
        ]


RAINY_FORECAST = StaticForecastProvider("Rain", "moderate rain", 24.0, 0.8)


def build_offline_engine(provider: Optional[StaticForecastProvider] = None) -> DialogueEngine:
    return DialogueEngine(
        gateway=RuleBasedExtractionGateway(),
        weather=WeatherService(provider or StaticForecastProvider()),
    )


class ConsoleSession:
    """Runs one booking conversation in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "Hi, I'd like to book a table",
            "Priya Sharma",
            "4 people",
            "tomorrow",
            "7:30 pm",
            "Italian",
            "It's our anniversary",
            "yes",
            "yes please",
        ],
        "rain": [
            "My name is Arjun, table for 2 tomorrow at 8pm",
            "Indian",
            "none",
            "sounds good",
            "confirm",
        ],
        "change": [
            "I'm Meera, we are 6 people",
            "tomorrow",
            "lunch",
            "no",
            "no",
            "outdoor please",
            "actually change the date to day after tomorrow",
            "yes",
            "yes",
        ],
    }

    def __init__(self, engine: Optional[DialogueEngine] = None, session_id: Optional[str] = None) -> None:
        self.engine = engine or build_offline_engine()
        self.session_id = session_id or f"console-{uuid.uuid4().hex[:8]}"
        self.last_result: Optional[TurnResult] = None

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Assistant]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  TABLE BOOKING ASSISTANT - {title}{RESET}")
        print(f"{BOLD}  Restaurant: {settings.restaurant.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()
        self.agent_say(GREETING.format(name=settings.restaurant.name))

    async def _turn(self, text: str) -> TurnResult:
        result = await self.engine.process_turn(self.session_id, text)
        self.last_result = result
        self.agent_say(result.assistant_text)
        missing = ", ".join(result.missing_fields) or "none"
        self.system_log(f"State: {result.state} | missing: {missing}")
        if result.weather is not None:
            self.system_log(
                f"Weather: {result.weather.condition} {result.weather.temperature}C "
                f"-> {result.seating_recommendation.value if result.seating_recommendation else '?'}"
            )
        return result

    def _finish(self) -> None:
        session = self.engine.get_session(self.session_id)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{DIM}  State trace: {' -> '.join(session.machine.get_state_trace())}{RESET}")
        if session.booking is not None:
            self._print_handoff(session.booking)
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _print_handoff(self, booking: BookingHandoff) -> None:
        print(f"{YELLOW}{BOLD}  Booking handoff:{RESET}")
        print(f"{YELLOW}{booking.model_dump_json(by_alias=True, indent=2)}{RESET}")

    async def _play(self, steps: list[str]) -> None:
        for step in steps:
            print(f"\n{BLUE}[Guest] {RESET}{step}")
            result = await self._turn(step)
            if result.state == DialogueState.FINALIZED.value:
                break

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        asyncio.run(self._play(steps))
        print(f"\n{BOLD}  Scenario '{scenario}' complete.{RESET}")
        self._finish()

    async def _interactive(self) -> None:
        while True:
            user_input = input(f"\n{BLUE}[Guest] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            result = await self._turn(user_input)
            if result.state == DialogueState.FINALIZED.value:
                return

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Type 'quit' to exit{RESET}")
        asyncio.run(self._interactive())
        if self.last_result is not None:
            self._finish()


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    provider = RAINY_FORECAST if args.scenario == "rain" else None
    session = ConsoleSession(build_offline_engine(provider))
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
