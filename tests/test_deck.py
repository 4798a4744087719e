"""
Tests for .pptx rendering and the artifact registry.
"""

from io import BytesIO

import pytest
from pptx import Presentation

from aislides.artifacts import ArtifactRegistry
from aislides.deck import deck_filename, render_deck
from aislides.errors import NotFoundError
from aislides.models import Slide, SlideStyle, TITLE_SLIDE_STYLE


SLIDES = [
    Slide(title="Exercise", content=["Why it matters"]),
    Slide(title="Benefit 1", content=["Stronger heart", "Lower blood pressure"]),
    Slide(title="", content=["Better sleep"]),
]


def open_deck(data: bytes):
    return Presentation(BytesIO(data))


class TestRenderDeck:
    def test_one_pptx_slide_per_slide(self):
        prs = open_deck(render_deck(SLIDES))
        assert len(prs.slides) == 3
        assert [s.shapes.title.text for s in prs.slides] == ["Exercise", "Benefit 1", "Untitled"]

    def test_bullets_become_paragraphs(self):
        prs = open_deck(render_deck(SLIDES))
        body = prs.slides[1].placeholders[1]
        assert [p.text for p in body.text_frame.paragraphs] == ["Stronger heart", "Lower blood pressure"]

    def test_title_slide_subtitle(self):
        prs = open_deck(render_deck(SLIDES))
        assert prs.slides[0].placeholders[1].text_frame.text == "Why it matters"

    def test_styles_applied(self):
        styles = [
            TITLE_SLIDE_STYLE,
            SlideStyle(title_color="#E74C3C", title_font_size=40, content_font_family="Georgia"),
        ]
        prs = open_deck(render_deck(SLIDES, styles))

        title_run = prs.slides[1].shapes.title.text_frame.paragraphs[0].runs[0]
        assert str(title_run.font.color.rgb) == "E74C3C"
        assert title_run.font.size.pt == 40

        body_run = prs.slides[1].placeholders[1].text_frame.paragraphs[0].runs[0]
        assert body_run.font.name == "Georgia"

        assert str(prs.slides[0].background.fill.fore_color.rgb) == "4472C4"

    def test_unstyled_render_leaves_default_fonts(self):
        prs = open_deck(render_deck(SLIDES))
        run = prs.slides[1].shapes.title.text_frame.paragraphs[0].runs[0]
        assert run.font.size is None

    def test_empty_deck(self):
        assert len(open_deck(render_deck([])).slides) == 0

    def test_deck_filename(self):
        assert deck_filename("AI_Generated_Presentation") == "AI_Generated_Presentation.pptx"
        assert deck_filename("") == "presentation.pptx"


class TestArtifactRegistry:
    def test_create_get_release(self):
        registry = ArtifactRegistry()
        artifact = registry.create(b"data", "deck.pptx")

        assert registry.get(artifact.id).data == b"data"
        assert artifact.id in registry and len(registry) == 1

        registry.release(artifact.id)
        assert artifact.id not in registry
        with pytest.raises(NotFoundError):
            registry.get(artifact.id)

    def test_release_is_idempotent(self):
        registry = ArtifactRegistry()
        artifact = registry.create(b"data", "deck.pptx")
        registry.release(artifact.id)
        registry.release(artifact.id)
        registry.release(None)
        assert len(registry) == 0

    def test_ids_are_unique(self):
        registry = ArtifactRegistry()
        ids = {registry.create(b"x", "d.pptx").id for _ in range(20)}
        assert len(ids) == 20
