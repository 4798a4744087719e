"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

from aislides.artifacts import ArtifactRegistry
from aislides.clients.gemini import GeminiClient
from aislides.config import Settings
from aislides.history import JsonFileHistoryStore


EXERCISE_SLIDES = [
    {"title": "Intro", "content": ["Improves health"]},
    {"title": "Benefit 1", "content": ["Stronger heart", "Lower blood pressure"]},
    {"title": "Benefit 2", "content": ["Better mood"]},
    {"title": "Benefit 3", "content": ["Better sleep"]},
]


def gemini_body(text: str) -> dict:
    """Shape of a generateContent reply carrying ``text``."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def exercise_slides() -> List[dict]:
    return json.loads(json.dumps(EXERCISE_SLIDES))


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "history.json"


@pytest.fixture
def history_store(history_path: Path) -> JsonFileHistoryStore:
    return JsonFileHistoryStore(history_path)


@pytest.fixture
def artifacts() -> ArtifactRegistry:
    return ArtifactRegistry()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        google_api_key="test-key",
        gemini_model="gemini-test",
        history_file=str(tmp_path / "data" / "history.json"),
        upload_dir=str(tmp_path / "uploads"),
        max_live_sessions=3,
    )


@pytest.fixture
def gemini_factory() -> Callable:
    """
    Build a client factory whose HTTP traffic goes to ``handler``.

    Usage: ``SlideGenerator(settings, client_factory=gemini_factory(handler))``.
    """
    def make(handler) -> Callable[[str], GeminiClient]:
        transport = httpx.MockTransport(handler)
        return lambda key: GeminiClient(api_key=key, transport=transport)

    return make


def fake_renderer(slides, styles=None) -> bytes:
    return f"deck:{len(slides)}".encode()
