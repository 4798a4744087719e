"""Prompt -> slides gateway in front of the Gemini text model."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from aislides.clients.gemini import GeminiClient
from aislides.config import Settings
from aislides.errors import UpstreamFormatError, ValidationError
from aislides.utils import parse_slides_reply

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "You are a helpful AI assistant that generates content for PowerPoint slides. "
    "Based on the following prompt, generate a JSON object with a 'slides' array. "
    "Each object in the 'slides' array should have a 'title' (string) and 'content' "
    "(array of strings for bullet points). Ensure the response is a valid JSON string. "
    "Prompt: {prompt}"
)


def build_slides_prompt(prompt: str) -> str:
    return PROMPT_TEMPLATE.format(prompt=prompt)


class SlideGenerator:
    """
    Single request/response call to the text model, then strict parsing of its reply.

    The client is built per call so a missing credential fails before any network
    traffic and a credential added to the environment later is picked up.
    """

    def __init__(self, settings: Settings, client_factory: Optional[Callable[[str], GeminiClient]] = None):
        self.settings = settings
        self._client_factory = client_factory or (
            lambda key: GeminiClient(api_key=key, base_url=settings.gemini_base_url)
        )

    async def generate(self, prompt: str) -> List[Any]:
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError("prompt is required")

        # raises ConfigurationError when the key is missing
        client = self._client_factory(self.settings.google_api_key)

        logger.info("Generating slides (model=%s, prompt_chars=%d)", self.settings.gemini_model, len(prompt))
        text = await client.generate_text(
            model=self.settings.gemini_model,
            prompt=build_slides_prompt(prompt),
            temperature=self.settings.gemini_temperature,
            max_output_tokens=self.settings.gemini_max_output_tokens,
        )

        try:
            slides = parse_slides_reply(text)
        except UpstreamFormatError as e:
            logger.warning("Unparseable model reply: %s (excerpt=%r)", e.message, e.excerpt[:120])
            raise
        logger.info("Model returned %d slides", len(slides))
        return slides
