"""
OpenAI-backed extraction gateway.

The model runs in JSON mode at low temperature and is used strictly as a
parser. Transport errors and unparsable output surface as
``ExtractionFailure``; the dialogue engine owns the fallback.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from tablebook.config import settings
from tablebook.extraction.gateway import ExtractionContext, ExtractionFailure, parse_extraction
from tablebook.prompts.system_prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt
from tablebook.schemas.booking_schema import BookingSlots, SlotUpdate

logger = logging.getLogger(__name__)

# Maximum chars to log from a model response on error
MAX_ERROR_LOG_CHARS = 500


class OpenAIExtractionGateway:
    """Extracts slot updates with an OpenAI chat completion."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.client = client or AsyncOpenAI()
        self.model = model or settings.model.llm_model
        self.temperature = settings.model.llm_temperature if temperature is None else temperature

    async def extract(self, context: ExtractionContext, current_slots: BookingSlots) -> SlotUpdate:
        messages = [
            {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
            {"role": "user", "content": build_extraction_prompt(context, current_slots)},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.warning("Extraction call failed: %s", type(e).__name__)
            raise ExtractionFailure(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise ExtractionFailure("OpenAI returned no choices")
        content = response.choices[0].message.content

        try:
            update = parse_extraction(content)
        except ExtractionFailure:
            logger.warning(
                "Unparsable extraction output: %s",
                (content or "")[:MAX_ERROR_LOG_CHARS],
            )
            raise

        logger.debug("Extracted fields: %s", sorted(update.changes()))
        return update
