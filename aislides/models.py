from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

# ---------- Common ----------
Role = Literal["user", "assistant"]
HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

class StrictModel(BaseModel):
    model_config = ConfigDict(extra="ignore")  # keep API resilient to small model drift


# ---------- Slides ----------
class Slide(StrictModel):
    title: str = ""
    content: List[str] = Field(default_factory=list)


class SlideStyle(StrictModel):
    """Per-slide look used by the editor preview and the styled export."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    background_color: str = Field(default="#FFFFFF", alias="backgroundColor", pattern=HEX_COLOR)
    title_color: str = Field(default="#4472C4", alias="titleColor", pattern=HEX_COLOR)
    content_color: str = Field(default="#363636", alias="contentColor", pattern=HEX_COLOR)
    accent_color: str = Field(default="#4472C4", alias="accentColor", pattern=HEX_COLOR)
    title_font_size: int = Field(default=32, alias="titleFontSize")
    content_font_size: int = Field(default=18, alias="contentFontSize")
    title_font_family: str = Field(default="Arial", alias="titleFontFamily")
    content_font_family: str = Field(default="Arial", alias="contentFontFamily")


CONTENT_SLIDE_STYLE = SlideStyle()

TITLE_SLIDE_STYLE = SlideStyle(
    background_color="#4472C4",
    title_color="#FFFFFF",
    content_color="#FFFFFF",
    accent_color="#FFFFFF",
    title_font_size=48,
    content_font_size=28,
)


def default_style(index: int) -> SlideStyle:
    return TITLE_SLIDE_STYLE if index == 0 else CONTENT_SLIDE_STYLE


# ---------- Transcript / history ----------
def _without_placeholders(value):
    # the in-flight "thinking" entry is UI state, never part of a transcript
    if isinstance(value, list):
        return [m for m in value if not (isinstance(m, dict) and m.get("role") == "thinking")]
    return value


class ChatMessage(StrictModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    role: Role
    content: str
    created_at: str = Field(alias="createdAt")


class HistoryItem(StrictModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    prompt: Optional[str] = None
    slides: List[Slide] = Field(default_factory=list)
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: str = Field(alias="createdAt")

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_placeholders(cls, value):
        return _without_placeholders(value)


# ---------- HTTP bodies ----------
class GenerateRequest(StrictModel):
    prompt: str = ""


class GenerateResponse(StrictModel):
    slides: list


class HistoryListResponse(StrictModel):
    items: List[HistoryItem] = Field(default_factory=list)


class HistoryUpsertRequest(StrictModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
    prompt: Optional[str] = None
    slides: Optional[List[Slide]] = None
    messages: Optional[List[ChatMessage]] = None

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_placeholders(cls, value):
        return _without_placeholders(value)


class HistoryUpsertResponse(StrictModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item: HistoryItem
    session_id: str = Field(alias="sessionId")


class ExportRequest(StrictModel):
    slides: List[Slide]
    styles: Optional[List[SlideStyle]] = None
    filename: str = "presentation"


class UploadResponse(StrictModel):
    url: str


class ErrorResponse(StrictModel):
    error: str
