from __future__ import annotations

import logging
import math
import sys

import pytest

from docnav import ReaderSession
from docnav.errors import NavigationError
from docnav.models import (
    SEARCH_DONE,
    SEARCH_PREFIX,
    AnnotationRecord,
    ByFraction,
    ByIdentifier,
    BySection,
    Landmark,
    OutlineNode,
    SectionResults,
    TextRange,
)
from docnav.navigation import IdentifierAnchor
from fakes import FakeBook, FakeGrammar, FakeOverlay, FakeRenderer, FakeSection, make_book


OUTLINE = [
    OutlineNode(
        "Book",
        "book",
        [OutlineNode("Opening", "opening"), OutlineNode("Middle", "middle"), OutlineNode("Ending", "ending")],
    )
]
DESTINATIONS = {"book": 0, "opening": 1, "middle": 3, "ending": 5}


async def _session(grammar, settings, texts=None, **book_kwargs):
    book_kwargs.setdefault("toc", OUTLINE)
    book_kwargs.setdefault("destinations", DESTINATIONS)
    book = make_book(texts or [f"section {i}" for i in range(7)], **book_kwargs)
    renderer = FakeRenderer()
    session = await ReaderSession(book, grammar, renderer=renderer, settings=settings).open()
    return session, book, renderer


@pytest.mark.asyncio
async def test_open_builds_chapter_index(grammar, settings):
    session, _, _ = await _session(grammar, settings)

    assert [chapter.label for chapter in session.chapters.ranges] == ["Opening", "Middle", "Ending"]
    assert session.pages is None
    assert session.get_progress_of(4)["toc_item"].label == "Middle"


@pytest.mark.asyncio
async def test_open_without_outline_synthesizes_chapters(grammar, settings):
    session, _, _ = await _session(grammar, settings, texts=["x"] * 25, toc=None)

    assert session.chapters.synthesized
    assert session.chapters.boundaries == [0, 10, 20]


@pytest.mark.asyncio
async def test_go_to_renders_and_records_history(grammar, settings):
    session, _, renderer = await _session(grammar, settings)

    location = await session.go_to("middle")

    assert location.index == 3
    assert renderer.shown == [location]
    assert session.history.current == session.resolver.coerce("middle")
    assert session.current_index == 3


@pytest.mark.asyncio
async def test_failed_resolution_leaves_location_unchanged(grammar, settings):
    session, _, renderer = await _session(grammar, settings)
    await session.go_to(2)

    with pytest.raises(NavigationError):
        await session.go_to("nowhere")
    with pytest.raises(NavigationError):
        await session.go_to(None)

    assert len(renderer.shown) == 1
    assert session.history.entries == [BySection(2)]
    assert session.current_index == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("fraction", [math.nan, math.inf])
async def test_non_finite_fraction_leaves_location_unchanged(grammar, settings, fraction):
    session, _, renderer = await _session(grammar, settings)
    await session.go_to(2)

    with pytest.raises(NavigationError):
        await session.go_to_fraction(fraction)

    assert len(renderer.shown) == 1
    assert session.history.entries == [BySection(2)]
    assert session.current_index == 2


@pytest.mark.asyncio
async def test_follow_link_hands_external_uris_to_listeners(grammar, settings):
    session, _, renderer = await _session(grammar, settings)
    external = []
    session.on("external-link", external.append)

    assert await session.follow_link("https://example.org/notes") is None
    location = await session.follow_link("ending")

    assert external == [{"uri": "https://example.org/notes"}]
    assert location.index == 5
    assert renderer.shown == [location]
    assert session.history.entries == [session.resolver.coerce("ending")]


@pytest.mark.asyncio
async def test_renderer_failure_is_a_navigation_error(grammar, settings):
    session, _, renderer = await _session(grammar, settings)
    renderer.fail = True

    with pytest.raises(NavigationError):
        await session.go_to(1)

    assert len(session.history) == 0


@pytest.mark.asyncio
async def test_back_and_forward_render_without_pushing(grammar, settings):
    session, _, renderer = await _session(grammar, settings)
    await session.go_to(1)
    await session.go_to({"fraction": 0.5})

    back = await session.back()
    forward = await session.forward()

    assert back.index == 1
    assert forward.index == 3
    assert session.history.entries == [BySection(1), ByFraction(0.5)]
    assert [location.index for location in renderer.shown] == [1, 3, 1, 3]
    assert await session.forward() is None


@pytest.mark.asyncio
async def test_chapter_navigation_follows_boundaries(grammar, settings):
    session, _, _ = await _session(grammar, settings, texts=["x"] * 25, toc=None)
    await session.init()

    assert (await session.next_chapter()).index == 10
    assert (await session.next_chapter()).index == 20
    assert await session.next_chapter() is None
    assert (await session.prev_chapter()).index == 10
    assert (await session.prev_chapter()).index == 0
    assert await session.prev_chapter() is None


@pytest.mark.asyncio
async def test_init_falls_back_when_saved_location_is_gone(grammar, settings):
    session, _, _ = await _session(grammar, settings)

    location = await session.init(last_location="removed-anchor")

    assert location.index == 0
    assert session.history.entries == [BySection(0)]


@pytest.mark.asyncio
async def test_init_restores_saved_identifier(grammar, settings):
    session, _, _ = await _session(grammar, settings)

    location = await session.init(last_location="cfi(/4!2:5)")

    assert location.index == 4
    assert session.history.entries == [ByIdentifier("cfi(/4!2:5)")]


@pytest.mark.asyncio
async def test_text_start_prefers_body_landmark(grammar, settings):
    session, _, _ = await _session(
        grammar, settings, landmarks=[Landmark("cover", "book"), Landmark("bodymatter", "middle")]
    )

    location = await session.init(show_text_start=True)

    assert location.index == 3


@pytest.mark.asyncio
async def test_text_start_defaults_to_first_linear_section(grammar, settings):
    book = FakeBook([FakeSection(0, "cover", linear="no"), FakeSection(1, "body")])
    session = await ReaderSession(book, grammar, settings=settings).open()

    assert (await session.go_to_text_start()).index == 1


@pytest.mark.asyncio
async def test_relocate_builds_bundle_and_replaces_history_on_scroll(grammar, settings):
    session, _, _ = await _session(grammar, settings)
    bundles = []
    session.on("relocate", bundles.append)
    await session.go_to(3)

    bundle = session.relocate(3, fraction=0.5, range=TextRange(2, 6), reason="scroll")

    assert bundles == [bundle]
    assert session.last_location is bundle
    assert bundle.identifier == "cfi(/3!2:6)"
    assert bundle.toc_item.label == "Middle"
    assert bundle.progress["section"] == {"current": 3, "total": 7}
    assert session.history.entries == [ByIdentifier("cfi(/3!2:6)")]


@pytest.mark.asyncio
async def test_relocate_keeps_history_for_other_reasons(grammar, settings):
    session, _, _ = await _session(grammar, settings)
    await session.go_to(3)

    session.relocate(4, reason="navigation")

    assert session.history.entries == [BySection(3)]
    assert session.current_index == 4


@pytest.mark.asyncio
async def test_search_draws_hits_on_attached_overlays(grammar, settings):
    session, _, _ = await _session(grammar, settings, texts=["", "a needle", "", "needle"])
    overlay = FakeOverlay()
    await session.attach_overlay(1, overlay, object())
    events = []
    session.on("search-annotation", events.append)

    items = [item async for item in session.search("needle")]

    results = [item for item in items if isinstance(item, SectionResults)]
    assert [result.section_index for result in results] == [1, 3]
    assert results[0].label == "Opening"
    assert overlay.drawn == {f"{SEARCH_PREFIX}cfi(/1!2:8)": (TextRange(2, 8), "outline", {})}
    assert [event["index"] for event in events] == [1, 3]

    session.clear_search()

    assert overlay.drawn == {}
    assert len(session.registry) == 0


class DocumentBoundGrammar(FakeGrammar):
    """Ranges are clamped to the materialized text, so converting one needs a document."""

    def to_range(self, document, parts):
        text_range = super().to_range(document, parts)
        if text_range is None:
            return None
        return TextRange(text_range.start, min(text_range.end, len(document.text)))


@pytest.mark.asyncio
async def test_search_completes_when_an_overlay_has_no_document(settings):
    session, _, _ = await _session(DocumentBoundGrammar(), settings, texts=["", "a needle", "", "needle"])
    overlay = FakeOverlay()
    await session.attach_overlay(1, overlay, None)

    items = [item async for item in session.search("needle")]

    assert [item.section_index for item in items if isinstance(item, SectionResults)] == [1, 3]
    assert items[-1] is SEARCH_DONE
    anchor, style = overlay.drawn[f"{SEARCH_PREFIX}cfi(/1!2:8)"][:2]
    assert isinstance(anchor, IdentifierAnchor)
    assert style == "outline"
    assert len(session.registry) == 2


@pytest.mark.asyncio
async def test_search_survives_a_failing_overlay(grammar, settings, caplog):
    class BrokenOverlay(FakeOverlay):
        def add(self, value, range, style, **options):
            raise RuntimeError("layer detached")

    session, _, _ = await _session(grammar, settings, texts=["needle", "needle"])
    await session.attach_overlay(0, BrokenOverlay(), object())

    with caplog.at_level(logging.WARNING, logger="docnav.search.pipeline"):
        items = [item async for item in session.search("needle")]

    assert [item.section_index for item in items if isinstance(item, SectionResults)] == [0, 1]
    assert items[-1] is SEARCH_DONE
    assert "layer detached" in caplog.text


@pytest.mark.asyncio
async def test_attaching_an_overlay_replays_search_hits(grammar, settings):
    session, _, _ = await _session(grammar, settings, texts=["", "", "", "needle"])
    [item async for item in session.search("needle")]
    overlay = FakeOverlay()

    await session.attach_overlay(3, overlay, object())

    assert list(overlay.drawn) == [f"{SEARCH_PREFIX}cfi(/3!0:6)"]


@pytest.mark.asyncio
async def test_user_annotations_are_drawn_through_observers(grammar, settings):
    session, _, _ = await _session(grammar, settings)
    overlay = FakeOverlay()
    await session.attach_overlay(4, overlay, object())
    session.on("draw-annotation", lambda detail: detail["draw"]("highlight", color="yellow"))

    placement = await session.add_annotation("cfi(/4!1:3)")

    assert (placement.index, placement.label) == (4, "Middle")
    assert overlay.drawn["cfi(/4!1:3)"] == (TextRange(1, 3), "highlight", {"color": "yellow"})

    await session.delete_annotation(AnnotationRecord("cfi(/4!1:3)"))

    assert "cfi(/4!1:3)" not in overlay.drawn


@pytest.mark.asyncio
async def test_show_annotation_navigates_and_notifies(grammar, settings):
    session, _, renderer = await _session(grammar, settings)
    await session.attach_overlay(2, FakeOverlay(), object())
    shown = []
    session.on("show-annotation", shown.append)

    await session.show_annotation(AnnotationRecord("cfi(/2!0:4)"))

    assert renderer.shown[-1].index == 2
    assert shown == [{"value": "cfi(/2!0:4)", "index": 2, "range": TextRange(0, 4)}]


@pytest.mark.asyncio
async def test_toc_item_lookup_and_section_fractions(grammar, settings):
    session, _, _ = await _session(grammar, settings)

    assert (await session.get_toc_item_of("ending")).label == "Ending"
    assert await session.get_toc_item_of("nowhere") is None
    fractions = session.get_section_fractions()
    assert fractions[0] == sys.float_info.epsilon
    assert len(fractions) == 7


@pytest.mark.asyncio
async def test_chapter_content_concatenates_sections(grammar, settings):
    session, book, _ = await _session(grammar, settings)

    content = await session.chapter_content(4)
    again = await session.chapter_content(3)

    assert content == again == "section 3section 4"
    assert book.sections[3].loads == 1


@pytest.mark.asyncio
async def test_close_clears_session_state(grammar, settings):
    session, book, _ = await _session(grammar, settings, texts=["needle", "x"])
    await session.go_to(1)
    [item async for item in session.search("needle")]

    session.close()

    assert book.closed
    assert session.chapters is None
    assert session.last_location is None
    assert len(session.history) == 0
    assert len(session.registry) == 0
    assert len(session.cache) == 0
