"""
Preview and editor state for a deck.

Both are immutable values; every operation returns a new state, and a
refused operation (deleting the last slide, removing the last bullet)
returns the very same object. ``Editor`` binds an ``EditorState`` to a
``SessionController`` so each change re-renders the export.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from aislides.errors import ValidationError
from aislides.models import Slide, SlideStyle, default_style
from aislides.session import SessionController

FONT_OPTIONS = (
    "Arial",
    "Helvetica",
    "Times New Roman",
    "Georgia",
    "Verdana",
    "Tahoma",
    "Trebuchet MS",
    "Impact",
    "Comic Sans MS",
    "Courier New",
)

COLOR_PRESETS = (
    "#4472C4",
    "#E74C3C",
    "#2ECC71",
    "#F39C12",
    "#9B59B6",
    "#1ABC9C",
    "#34495E",
    "#E67E22",
    "#3498DB",
    "#95A5A6",
)

TITLE_FONT_SIZE_BOUNDS = (20, 72)
CONTENT_FONT_SIZE_BOUNDS = (12, 36)

NEW_SLIDE_TITLE = "New Slide"
NEW_SLIDE_CONTENT = "Add your content here"
NEW_POINT = "New point"

_HEX = re.compile(r"^#[0-9A-Fa-f]{6}$")
_COLOR_FIELDS = {"background_color", "title_color", "content_color", "accent_color"}
_FONT_FIELDS = {"title_font_family", "content_font_family"}
_SIZE_FIELDS = {"title_font_size": TITLE_FONT_SIZE_BOUNDS, "content_font_size": CONTENT_FONT_SIZE_BOUNDS}
_ALIASES = {f.alias: name for name, f in SlideStyle.model_fields.items() if f.alias}


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def sync_styles(styles: Sequence[SlideStyle], count: int) -> Tuple[SlideStyle, ...]:
    """One style per slide: keep existing ones, fill new indices with the defaults."""
    styles = tuple(styles[:count])
    return styles + tuple(default_style(i) for i in range(len(styles), count))


def validate_style_value(field: str, value):
    name = _ALIASES.get(field, field)
    if name in _COLOR_FIELDS:
        if not isinstance(value, str) or not _HEX.match(value):
            raise ValidationError(f"{field} must be a #RRGGBB color")
        return name, value.upper()
    if name in _FONT_FIELDS:
        if value not in FONT_OPTIONS:
            raise ValidationError(f"Unsupported font family: {value}")
        return name, value
    if name in _SIZE_FIELDS:
        try:
            size = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be an integer") from None
        return name, _clamp(size, *_SIZE_FIELDS[name])
    raise ValidationError(f"Unknown style property: {field}")


# ---------------- Preview ----------------

@dataclass(frozen=True)
class PreviewState:
    slides: Tuple[Slide, ...] = ()
    current: int = 0

    @property
    def current_slide(self) -> Optional[Slide]:
        return self.slides[self.current] if self.slides else None

    def with_slides(self, slides: Sequence[Slide]) -> "PreviewState":
        return PreviewState(slides=tuple(slides), current=0)

    def go_to(self, index: int) -> "PreviewState":
        if not self.slides:
            return self
        return replace(self, current=_clamp(index, 0, len(self.slides) - 1))

    def next(self) -> "PreviewState":
        return self.go_to(self.current + 1)

    def previous(self) -> "PreviewState":
        return self.go_to(self.current - 1)

    def handle_key(self, key: str) -> "PreviewState":
        if key == "ArrowLeft":
            return self.previous()
        if key == "ArrowRight":
            return self.next()
        return self


# ---------------- Editor ----------------

@dataclass(frozen=True)
class EditorState(PreviewState):
    styles: Tuple[SlideStyle, ...] = ()
    draft: Optional[Slide] = None

    @classmethod
    def from_slides(cls, slides: Sequence[Slide]) -> "EditorState":
        slides = tuple(s.model_copy(deep=True) for s in slides)
        return cls(slides=slides, current=0, styles=sync_styles((), len(slides)))

    @property
    def is_editing(self) -> bool:
        return self.draft is not None

    @property
    def current_style(self) -> SlideStyle:
        if self.current < len(self.styles):
            return self.styles[self.current]
        return default_style(self.current)

    def with_slides(self, slides: Sequence[Slide]) -> "EditorState":
        slides = tuple(slides)
        return replace(
            self,
            slides=slides,
            styles=sync_styles(self.styles, len(slides)),
            current=_clamp(self.current, 0, max(0, len(slides) - 1)),
            draft=None,
        )

    # -------- edit modal (works on a scratch copy) --------

    def open_edit(self) -> "EditorState":
        if not self.slides:
            return self
        return replace(self, draft=self.slides[self.current].model_copy(deep=True))

    def _with_draft(self, title: Optional[str] = None, content: Optional[Sequence[str]] = None) -> "EditorState":
        if self.draft is None:
            return self
        draft = Slide(
            title=self.draft.title if title is None else title,
            content=list(self.draft.content if content is None else content),
        )
        return replace(self, draft=draft)

    def set_draft_title(self, title: str) -> "EditorState":
        return self._with_draft(title=title)

    def set_draft(self, title: Optional[str] = None, content: Optional[Sequence[str]] = None) -> "EditorState":
        if content is not None and not content:
            raise ValidationError("A slide needs at least one bullet point")
        return self._with_draft(title=title, content=content)

    def set_draft_bullet(self, index: int, text: str) -> "EditorState":
        if self.draft is None or not 0 <= index < len(self.draft.content):
            return self
        content = list(self.draft.content)
        content[index] = text
        return self._with_draft(content=content)

    def add_draft_bullet(self) -> "EditorState":
        if self.draft is None:
            return self
        return self._with_draft(content=list(self.draft.content) + [NEW_POINT])

    def remove_draft_bullet(self, index: int) -> "EditorState":
        if self.draft is None or len(self.draft.content) <= 1 or not 0 <= index < len(self.draft.content):
            return self
        return self._with_draft(content=[c for i, c in enumerate(self.draft.content) if i != index])

    def save_edit(self) -> "EditorState":
        if self.draft is None:
            return self
        slides = list(self.slides)
        slides[self.current] = self.draft
        return replace(self, slides=tuple(slides), draft=None)

    def cancel_edit(self) -> "EditorState":
        return replace(self, draft=None)

    # -------- slide operations --------

    def add_slide(self) -> "EditorState":
        slides = self.slides + (Slide(title=NEW_SLIDE_TITLE, content=[NEW_SLIDE_CONTENT]),)
        styles = sync_styles(self.styles, len(slides))
        return replace(self, slides=slides, styles=styles, current=len(slides) - 1)

    def duplicate_slide(self) -> "EditorState":
        if not self.slides:
            return self
        source = self.slides[self.current]
        clone = Slide(title=f"{source.title} (Copy)", content=list(source.content))
        at = self.current + 1
        styles = sync_styles(self.styles, len(self.slides))
        return replace(
            self,
            slides=self.slides[:at] + (clone,) + self.slides[at:],
            styles=styles[:at] + (styles[self.current],) + styles[at:],
            current=at,
        )

    def delete_slide(self) -> "EditorState":
        if len(self.slides) <= 1:
            return self
        at = self.current
        styles = sync_styles(self.styles, len(self.slides))
        return replace(
            self,
            slides=self.slides[:at] + self.slides[at + 1:],
            styles=styles[:at] + styles[at + 1:],
            current=max(0, at - 1),
        )

    # -------- style --------

    def set_style(self, field: str, value) -> "EditorState":
        if not self.slides:
            return self
        name, value = validate_style_value(field, value)
        styles = list(sync_styles(self.styles, len(self.slides)))
        styles[self.current] = styles[self.current].model_copy(update={name: value})
        return replace(self, styles=tuple(styles))


class Editor:
    """Editor view bound to a session; slide changes re-render the session's export."""

    def __init__(self, controller: SessionController, state: Optional[EditorState] = None):
        self.controller = controller
        self.state = state or EditorState.from_slides(controller.state.slides or ())

    def refresh(self) -> None:
        """Start over from the session's slides when a generation or load replaced them."""
        slides = tuple(self.controller.state.slides or ())
        if slides != self.state.slides:
            self.state = EditorState.from_slides(slides)

    async def _apply(self, new_state: EditorState) -> bool:
        if new_state is self.state:
            return False
        slides_changed = new_state.slides != self.state.slides
        styles_changed = new_state.styles != self.state.styles
        self.state = new_state
        if slides_changed or styles_changed:
            # styles stay in the preview; the export is rebuilt from slides only
            await self.controller.update_slides(self.state.slides)
        return True

    # navigation and the edit modal never touch the export
    def handle_key(self, key: str) -> None:
        self.state = self.state.handle_key(key)

    def go_to(self, index: int) -> None:
        self.state = self.state.go_to(index)

    def next(self) -> None:
        self.state = self.state.next()

    def previous(self) -> None:
        self.state = self.state.previous()

    def open_edit(self) -> None:
        self.state = self.state.open_edit()

    def set_draft_title(self, title: str) -> None:
        self.state = self.state.set_draft_title(title)

    def set_draft(self, title: Optional[str] = None, content: Optional[Sequence[str]] = None) -> None:
        self.state = self.state.set_draft(title, content)

    def set_draft_bullet(self, index: int, text: str) -> None:
        self.state = self.state.set_draft_bullet(index, text)

    def add_draft_bullet(self) -> None:
        self.state = self.state.add_draft_bullet()

    def remove_draft_bullet(self, index: int) -> bool:
        new_state = self.state.remove_draft_bullet(index)
        changed = new_state is not self.state
        self.state = new_state
        return changed

    def cancel_edit(self) -> None:
        self.state = self.state.cancel_edit()

    async def save_edit(self) -> bool:
        return await self._apply(self.state.save_edit())

    async def add_slide(self) -> bool:
        return await self._apply(self.state.add_slide())

    async def duplicate_slide(self) -> bool:
        return await self._apply(self.state.duplicate_slide())

    async def delete_slide(self) -> bool:
        return await self._apply(self.state.delete_slide())

    async def set_style(self, field: str, value) -> bool:
        return await self._apply(self.state.set_style(field, value))

    async def replace_slides(self, slides: Sequence[Slide]) -> bool:
        if not slides:
            raise ValidationError("A deck needs at least one slide")
        return await self._apply(self.state.with_slides(slides))


def editor_to_dict(state: EditorState) -> dict:
    return {
        "current": state.current,
        "editing": state.is_editing,
        "draft": None if state.draft is None else state.draft.model_dump(),
        "styles": [s.model_dump(by_alias=True) for s in sync_styles(state.styles, len(state.slides))],
    }
