from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from aislides.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Artifact:
    id: str
    filename: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class ArtifactRegistry:
    """Rendered decks kept in memory until their owner releases them."""

    def __init__(self):
        self._items: Dict[str, Artifact] = {}
        self._lock = threading.Lock()

    def create(self, data: bytes, filename: str) -> Artifact:
        artifact = Artifact(id=uuid.uuid4().hex, filename=filename, data=data)
        with self._lock:
            self._items[artifact.id] = artifact
        return artifact

    def get(self, artifact_id: str) -> Artifact:
        with self._lock:
            artifact = self._items.get(artifact_id)
        if artifact is None:
            raise NotFoundError("Artifact not found")
        return artifact

    def release(self, artifact_id: Optional[str]) -> None:
        if not artifact_id:
            return
        with self._lock:
            released = self._items.pop(artifact_id, None)
        if released is not None:
            logger.debug("Released artifact %s (%d bytes)", artifact_id, released.size)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, artifact_id: str) -> bool:
        return artifact_id in self._items

    def __len__(self) -> int:
        return len(self._items)
