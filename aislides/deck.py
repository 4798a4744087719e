from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional, Sequence

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Pt

from aislides.models import Slide, SlideStyle, default_style
from aislides.utils import safe_filename

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

TITLE_LAYOUT = 0
CONTENT_LAYOUT = 1


def deck_filename(name: str) -> str:
    return f"{safe_filename(name)}.pptx"


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color.lstrip("#").upper())


def _style_paragraphs(text_frame, color: str, size: int, family: str) -> None:
    for paragraph in text_frame.paragraphs:
        for run in paragraph.runs:
            run.font.size = Pt(size)
            run.font.name = family
            run.font.color.rgb = _rgb(color)


def _fill_text(text_frame, lines: Sequence[str]) -> None:
    lines = [str(line) for line in lines] or [""]
    text_frame.text = lines[0]
    for line in lines[1:]:
        text_frame.add_paragraph().text = line


def render_deck(slides: Sequence[Slide], styles: Optional[Sequence[SlideStyle]] = None) -> bytes:
    """
    Build a .pptx document from the slide model.

    The first slide uses the title layout with its bullets as the subtitle; the
    rest use "Title and Content". ``styles`` is optional and applied per index
    (missing entries fall back to the default title/content look).
    """
    prs = Presentation()

    def _safe_layout(idx: int) -> int:
        return max(0, min(idx, len(prs.slide_layouts) - 1))

    for index, data in enumerate(slides):
        layout = _safe_layout(TITLE_LAYOUT if index == 0 else CONTENT_LAYOUT)
        slide = prs.slides.add_slide(prs.slide_layouts[layout])

        title_shape = slide.shapes.title
        if title_shape is not None:
            title_shape.text = data.title or "Untitled"

        body = slide.placeholders[1] if len(slide.placeholders) > 1 else None
        if body is not None and body.has_text_frame:
            _fill_text(body.text_frame, data.content)

        if styles is None:
            continue

        style = styles[index] if index < len(styles) else default_style(index)
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _rgb(style.background_color)
        if title_shape is not None:
            _style_paragraphs(
                title_shape.text_frame, style.title_color, style.title_font_size, style.title_font_family
            )
        if body is not None and body.has_text_frame:
            _style_paragraphs(
                body.text_frame, style.content_color, style.content_font_size, style.content_font_family
            )

    buf = BytesIO()
    prs.save(buf)
    data = buf.getvalue()
    logger.debug("Rendered deck: %d slides, %d bytes, styled=%s", len(slides), len(data), styles is not None)
    return data
