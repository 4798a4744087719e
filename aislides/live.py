"""
Live sessions held by the service, each a ``SessionController`` with its ``Editor``.

The pool is bounded: opening a session past ``max_sessions`` closes the least
recently used one, which releases its export.
"""
from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from typing import Iterator

from aislides.editor import Editor
from aislides.errors import NotFoundError
from aislides.session import SessionController

logger = logging.getLogger(__name__)


class LiveSessions:
    def __init__(self, max_sessions: int = 100):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._editors: "OrderedDict[str, Editor]" = OrderedDict()

    def open(self, controller: SessionController) -> str:
        key = uuid.uuid4().hex
        self._editors[key] = Editor(controller)
        while len(self._editors) > self.max_sessions:
            old_key, old = self._editors.popitem(last=False)
            old.controller.close()
            logger.info("Evicted idle session %s", old_key)
        return key

    def get(self, key: str) -> Editor:
        editor = self._editors.get(key)
        if editor is None:
            raise NotFoundError(f"Session not found: {key}")
        self._editors.move_to_end(key)
        editor.refresh()
        return editor

    def close(self, key: str) -> None:
        editor = self._editors.pop(key, None)
        if editor is None:
            raise NotFoundError(f"Session not found: {key}")
        editor.controller.close()

    def close_all(self) -> None:
        for editor in self._editors.values():
            editor.controller.close()
        self._editors.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._editors

    def __len__(self) -> int:
        return len(self._editors)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._editors))
