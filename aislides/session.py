"""
Session controller: one conversation, its transcript, its deck and its export.

State is an immutable ``SessionState`` value moved along by pure transition
functions; ``SessionController`` runs the side effects (model call, deck
rendering, history writes) around those transitions.

    idle / ready / error --submit--> awaiting-generation --> ready | error
    any --load(history item)--> ready
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from aislides.artifacts import ArtifactRegistry
from aislides.deck import deck_filename, render_deck
from aislides.errors import AppError
from aislides.generation import SlideGenerator
from aislides.history import HistoryRepository
from aislides.models import ChatMessage, HistoryItem, Slide
from aislides.utils import utc_now_iso

logger = logging.getLogger(__name__)

IDLE = "idle"
AWAITING = "awaiting-generation"
READY = "ready"
ERROR = "error"

DECK_NAME = "AI_Generated_Presentation"


@dataclass(frozen=True)
class SessionState:
    status: str = IDLE
    messages: Tuple[ChatMessage, ...] = ()
    slides: Optional[Tuple[Slide, ...]] = None
    session_id: Optional[str] = None
    artifact_id: Optional[str] = None
    pending: bool = False


def _message(role: str, content: str, now: Optional[str] = None) -> ChatMessage:
    return ChatMessage(role=role, content=content, created_at=now or utc_now_iso())


def summarize_slides(slides: Sequence[Slide]) -> str:
    first = slides[0].title if slides and slides[0].title else "Untitled"
    return f"Created {len(slides)} slides. Title: {first}"


def coerce_slides(raw: Sequence[Any]) -> Tuple[Slide, ...]:
    """Turn the gateway's unchecked slide array into Slide values (pydantic errors propagate)."""
    return tuple(s if isinstance(s, Slide) else Slide.model_validate(s) for s in raw)


def begin_generation(state: SessionState, prompt: str, now: Optional[str] = None) -> SessionState:
    return replace(
        state,
        status=AWAITING,
        messages=state.messages + (_message("user", prompt, now),),
        slides=None,
        artifact_id=None,
        pending=True,
    )


def generation_succeeded(
    state: SessionState, slides: Sequence[Slide], artifact_id: Optional[str], now: Optional[str] = None
) -> SessionState:
    if not slides:
        raise ValueError("generation_succeeded needs at least one slide")
    return replace(
        state,
        status=READY,
        messages=state.messages + (_message("assistant", summarize_slides(slides), now),),
        slides=tuple(slides),
        artifact_id=artifact_id,
        pending=False,
    )


def generation_failed(state: SessionState) -> SessionState:
    return replace(state, status=ERROR, slides=None, artifact_id=None, pending=False)


def history_loaded(item: HistoryItem, artifact_id: Optional[str], now: Optional[str] = None) -> SessionState:
    messages = tuple(item.messages)
    if not messages:
        messages = (
            _message("user", item.prompt or "", now),
            _message("assistant", f"Loaded {len(item.slides)} slides from history", now),
        )
    return SessionState(
        status=READY,
        messages=messages,
        slides=tuple(item.slides),
        session_id=item.id,
        artifact_id=artifact_id,
        pending=False,
    )


def slides_edited(state: SessionState, slides: Sequence[Slide], artifact_id: Optional[str]) -> SessionState:
    return replace(state, slides=tuple(slides), artifact_id=artifact_id)


class SessionController:
    def __init__(
        self,
        generator: SlideGenerator,
        history: HistoryRepository,
        artifacts: ArtifactRegistry,
        renderer: Callable[..., bytes] = render_deck,
        deck_name: str = DECK_NAME,
    ):
        self.generator = generator
        self.history = history
        self.artifacts = artifacts
        self.renderer = renderer
        self.deck_name = deck_name
        self.state = SessionState()

    # ---------------- artifacts ----------------

    async def _render(self, slides: Sequence[Slide]) -> str:
        data = await asyncio.to_thread(self.renderer, list(slides))
        return self.artifacts.create(data, deck_filename(self.deck_name)).id

    def _set_state(self, new_state: SessionState) -> None:
        # whatever artifact the new state no longer points at is released
        old = self.state.artifact_id
        self.state = new_state
        if old and old != new_state.artifact_id:
            self.artifacts.release(old)

    # ---------------- actions ----------------

    async def submit(self, prompt: str) -> SessionState:
        self._set_state(begin_generation(self.state, prompt))

        try:
            slides = coerce_slides(await self.generator.generate(prompt))
        except (AppError, PydanticValidationError) as e:
            logger.warning("Generation failed: %s", e)
            self._set_state(generation_failed(self.state))
            return self.state

        if not slides:
            logger.warning("AI response does not contain valid slide data")
            self._set_state(generation_failed(self.state))
            return self.state

        try:
            artifact_id = await self._render(slides)
        except Exception:
            logger.exception("Failed to render deck")
            self._set_state(generation_failed(self.state))
            return self.state

        # a newer submit may have resolved first; its artifact is superseded here
        self._set_state(generation_succeeded(self.state, slides, artifact_id))
        await self._save_history(prompt)
        return self.state

    async def _save_history(self, prompt: str) -> None:
        state = self.state
        try:
            item = await asyncio.to_thread(
                self.history.upsert,
                session_id=state.session_id,
                prompt=prompt,
                slides=list(state.slides or ()),
                messages=list(state.messages),
            )
        except (AppError, OSError):
            logger.exception("Failed to save history")
            return
        # a load may have landed during the write; its session id wins
        if state.session_id is None and self.state.session_id is None:
            self.state = replace(self.state, session_id=item.id)

    async def load(self, item: HistoryItem) -> SessionState:
        artifact_id = None
        if item.slides:
            try:
                artifact_id = await self._render(item.slides)
            except Exception:
                logger.exception("Failed to load history item %s", item.id)
        self._set_state(history_loaded(item, artifact_id))
        return self.state

    async def update_slides(self, slides: Sequence[Slide]) -> SessionState:
        artifact_id = await self._render(slides) if slides else None
        self._set_state(slides_edited(self.state, slides, artifact_id))
        return self.state

    def close(self) -> None:
        self._set_state(replace(self.state, artifact_id=None))


def state_to_dict(state: SessionState) -> dict:
    return {
        "status": state.status,
        "pending": state.pending,
        "sessionId": state.session_id,
        "artifactId": state.artifact_id,
        "messages": [m.model_dump(by_alias=True) for m in state.messages],
        "slides": None if state.slides is None else [s.model_dump() for s in state.slides],
    }
