"""
Session history persisted as a single JSON array document.

Every write rewrites the whole file. The in-process lock makes each
read-modify-write one serialization point; separate processes writing the
same file still race and the last writer wins.
"""
from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import orjson
from pydantic import ValidationError as PydanticValidationError

from aislides.errors import NotFoundError, ValidationError
from aislides.models import ChatMessage, HistoryItem, Slide
from aislides.utils import utc_now_iso

logger = logging.getLogger(__name__)


class HistoryRepository(Protocol):
    def list(self) -> List[HistoryItem]: ...

    def upsert(
        self,
        session_id: Optional[str] = None,
        prompt: Optional[str] = None,
        slides: Optional[Sequence[Slide]] = None,
        messages: Optional[Sequence[ChatMessage]] = None,
    ) -> HistoryItem: ...


class JsonFileHistoryStore:
    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_store(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(b"[]")

    def _read_all(self) -> List[HistoryItem]:
        self._ensure_store()
        try:
            raw = orjson.loads(self.path.read_bytes())
        except orjson.JSONDecodeError:
            logger.warning("History file %s is not valid JSON; treating it as empty", self.path)
            return []
        if not isinstance(raw, list):
            return []

        items = []
        for entry in raw:
            try:
                items.append(HistoryItem.model_validate(entry))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed history entry: %s", e.errors()[:1])
        return items

    def _write_all(self, items: List[HistoryItem]) -> None:
        self._ensure_store()
        payload = [item.model_dump(by_alias=True) for item in items]
        self.path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))

    def list(self) -> List[HistoryItem]:
        with self._lock:
            items = self._read_all()
        # ISO-8601 timestamps sort lexically; ties go to the later append
        ordered = sorted(enumerate(items), key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [item for _, item in ordered]

    def get(self, session_id: str) -> HistoryItem:
        with self._lock:
            for item in self._read_all():
                if item.id == session_id:
                    return item
        raise NotFoundError("Session not found")

    def upsert(
        self,
        session_id: Optional[str] = None,
        prompt: Optional[str] = None,
        slides: Optional[Sequence[Slide]] = None,
        messages: Optional[Sequence[ChatMessage]] = None,
    ) -> HistoryItem:
        if slides is None and messages is None and not prompt:
            raise ValidationError("Invalid payload")

        with self._lock:
            items = self._read_all()

            if session_id:
                existing = next((i for i in items if i.id == session_id), None)
                if existing is None:
                    raise NotFoundError("Session not found")
                if slides is not None:
                    existing.slides = list(slides)
                if messages is not None:
                    existing.messages = list(messages)
                self._write_all(items)
                logger.info("Updated history item %s", existing.id)
                return existing

            taken = {i.id for i in items}
            new_id = str(uuid.uuid4())
            while new_id in taken:
                new_id = str(uuid.uuid4())

            item = HistoryItem(
                id=new_id,
                prompt=prompt,
                slides=list(slides or []),
                messages=list(messages or []),
                created_at=utc_now_iso(),
            )
            items.append(item)
            self._write_all(items)
            logger.info("Created history item %s", item.id)
            return item
