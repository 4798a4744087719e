# aislides/utils.py
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, List

from aislides.errors import UpstreamFormatError

FENCE = "```"


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-31T09:15:02.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def strip_code_fence(text: str) -> str:
    """
    Remove a markdown code fence wrapped around a model reply.

    Handles replies shaped like:
    - ```json\\n{...}\\n```
    - ```\\n{...}\\n```
    Anything after the last closing fence is dropped as well.
    """
    s = (text or "").strip()
    if not s.startswith(FENCE):
        return s

    if s.startswith(FENCE + "json"):
        body = s[len(FENCE) + 4:]
    else:
        body = s[len(FENCE):]

    end = body.rfind(FENCE)
    if end != -1:
        body = body[:end]
    return body.strip()


def parse_model_json(text: str) -> Any:
    s = strip_code_fence(text)
    if not s:
        raise UpstreamFormatError("Empty model output")
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise UpstreamFormatError(f"AI response was not a valid JSON format: {e}", excerpt=s[:250]) from e


def parse_slides_reply(text: str) -> List[Any]:
    """Return the ``slides`` array of a model reply without re-checking each slide."""
    obj = parse_model_json(text)
    slides = obj.get("slides") if isinstance(obj, dict) else None
    if not isinstance(slides, list):
        raise UpstreamFormatError("AI response did not contain a slides array", excerpt=str(obj)[:250])
    return slides


def safe_filename(name: str, default: str = "presentation", max_len: int = 40) -> str:
    cleaned = re.sub(r"[^\w\s\.\-\(\)]", "", name or "").replace("\n", "").strip()
    cleaned = re.sub(r"\s+", "_", cleaned)[:max_len].strip("._")
    return cleaned or default
