import logging
from typing import Optional

import httpx

from aislides.errors import ConfigurationError, UpstreamTransportError

logger = logging.getLogger(__name__)


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError("API key not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def generate_text(
        self,
        model: str,
        prompt: str,
        temperature: float = 0.4,
        max_output_tokens: int = 2048,
        timeout: float = 60.0,
    ) -> str:
        url = f"{self.base_url}/models/{model}:generateContent"
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                r = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Gemini request failed: %s", e)
            raise UpstreamTransportError(f"Failed to generate content: {e}") from e

        if r.status_code >= 400:
            logger.warning("Gemini returned %s", r.status_code)
            raise UpstreamTransportError(f"Gemini API error {r.status_code}: {r.text[:2000]}")

        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamTransportError(f"Gemini returned a non-JSON body: {e}") from e
        return self._extract_text(data)

    def _extract_text(self, data: dict) -> str:
        """
        Expected response shape:
        { "candidates": [ { "content": { "parts": [ {"text": "..."} ] } } ] }
        """
        if not isinstance(data, dict):
            return ""
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content") or {}
        parts = content.get("parts") or []
        texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
        return "".join(texts).strip()
