"""
Tests for the Gemini client and the slide generation gateway.
"""

import json

import httpx
import pytest

from aislides.clients.gemini import GeminiClient
from aislides.errors import (
    ConfigurationError,
    UpstreamFormatError,
    UpstreamTransportError,
    ValidationError,
)
from aislides.generation import SlideGenerator, build_slides_prompt

from conftest import EXERCISE_SLIDES, gemini_body


class TestGeminiClient:
    """Tests for GeminiClient against a mocked REST endpoint."""

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            GeminiClient(api_key=None)

    @pytest.mark.asyncio
    async def test_generate_text_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_body("hello"))

        client = GeminiClient(api_key="k", transport=httpx.MockTransport(handler))
        text = await client.generate_text(model="gemini-test", prompt="make slides", temperature=0.1)

        assert text == "hello"
        assert "/models/gemini-test:generateContent" in seen["url"]
        assert "key=k" in seen["url"]
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "make slides"
        assert seen["body"]["generationConfig"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_joins_parts(self):
        body = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
        client = GeminiClient(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        assert await client.generate_text(model="m", prompt="p") == "ab"

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        client = GeminiClient(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        assert await client.generate_text(model="m", prompt="p") == ""

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = GeminiClient(
            api_key="k",
            transport=httpx.MockTransport(lambda r: httpx.Response(403, text="API key not valid")),
        )
        with pytest.raises(UpstreamTransportError) as info:
            await client.generate_text(model="m", prompt="p")
        assert "403" in info.value.message
        assert "API key not valid" in info.value.message

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GeminiClient(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamTransportError) as info:
            await client.generate_text(model="m", prompt="p")
        assert "connection refused" in info.value.message


class TestSlideGenerator:
    """Tests for SlideGenerator."""

    def test_prompt_wraps_user_text(self):
        text = build_slides_prompt("3 benefits of exercise")
        assert text.endswith("Prompt: 3 benefits of exercise")
        assert "'slides' array" in text

    @pytest.mark.asyncio
    async def test_generate_plain_json(self, settings, gemini_factory):
        reply = json.dumps({"slides": EXERCISE_SLIDES})
        gen = SlideGenerator(settings, client_factory=gemini_factory(lambda r: httpx.Response(200, json=gemini_body(reply))))

        slides = await gen.generate("3 benefits of exercise")

        assert slides == EXERCISE_SLIDES
        for slide in slides:
            assert isinstance(slide["title"], str)
            assert slide["content"] and all(isinstance(c, str) for c in slide["content"])

    @pytest.mark.asyncio
    async def test_generate_fenced_json(self, settings, gemini_factory):
        reply = "```json\n" + json.dumps({"slides": EXERCISE_SLIDES}) + "\n```"
        gen = SlideGenerator(settings, client_factory=gemini_factory(lambda r: httpx.Response(200, json=gemini_body(reply))))
        assert await gen.generate("exercise") == EXERCISE_SLIDES

    @pytest.mark.asyncio
    async def test_prose_reply(self, settings, gemini_factory):
        gen = SlideGenerator(
            settings,
            client_factory=gemini_factory(lambda r: httpx.Response(200, json=gemini_body("Exercise is great for you."))),
        )
        with pytest.raises(UpstreamFormatError):
            await gen.generate("exercise")

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_call(self, settings, gemini_factory):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=gemini_body("{}"))

        gen = SlideGenerator(settings.model_copy(update={"google_api_key": None}), client_factory=gemini_factory(handler))
        with pytest.raises(ConfigurationError):
            await gen.generate("exercise")
        assert calls == []

    @pytest.mark.asyncio
    async def test_blank_prompt(self, settings, gemini_factory):
        gen = SlideGenerator(settings, client_factory=gemini_factory(lambda r: httpx.Response(500)))
        with pytest.raises(ValidationError):
            await gen.generate("   ")

    @pytest.mark.asyncio
    async def test_default_factory_uses_settings(self, settings):
        gen = SlideGenerator(settings.model_copy(update={"google_api_key": None}))
        with pytest.raises(ConfigurationError):
            await gen.generate("exercise")
