from __future__ import annotations

import logging
import math

import pytest

from docnav.errors import ResolutionError, UnsupportedTargetError
from docnav.models import ByDestinationRef, ByFraction, ByIdentifier, BySection, Location, TextDocument, TextRange
from docnav.navigation import LocationResolver, SectionFractionIndex
from fakes import FakeBook, FakeSection, make_book


def _resolver(grammar, book=None):
    book = book or make_book(["zero", "one", "two", "three"], destinations={"chapter-2": 2})
    return LocationResolver(book, grammar, SectionFractionIndex(book.sections))


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, BySection(3)),
        ({"fraction": 0.5}, ByFraction(0.5)),
        ({"fraction": 1}, ByFraction(1.0)),
        ("cfi(/2!)", ByIdentifier("cfi(/2!)")),
        ("chapter-2", ByDestinationRef("chapter-2")),
        (BySection(1), BySection(1)),
    ],
)
def test_coerce_tags_raw_targets(grammar, raw, expected):
    assert _resolver(grammar).coerce(raw) == expected


@pytest.mark.parametrize("raw", [None, True, "", 1.5, {"fraction": "half"}, {"page": 2}, ["chapter-2"]])
def test_coerce_rejects_unsupported_values(grammar, raw):
    with pytest.raises(UnsupportedTargetError):
        _resolver(grammar).coerce(raw)


@pytest.mark.asyncio
async def test_section_targets_resolve_to_start_of_section(grammar):
    location = await _resolver(grammar).resolve(2)

    assert location == Location(index=2)


@pytest.mark.asyncio
async def test_out_of_range_section_fails(grammar, caplog):
    with caplog.at_level(logging.ERROR, logger="docnav.navigation.resolver"):
        with pytest.raises(ResolutionError) as excinfo:
            await _resolver(grammar).resolve(BySection(9))

    assert excinfo.value.target == BySection(9)
    assert "outside the document" in caplog.text


@pytest.mark.asyncio
async def test_fraction_targets_use_the_fraction_index(grammar):
    location = await _resolver(grammar).resolve({"fraction": 0.6})

    assert location.index == 2
    assert location.anchor == pytest.approx(0.4)


@pytest.mark.asyncio
async def test_fraction_without_index_fails(grammar):
    resolver = LocationResolver(make_book(["a"]), grammar)

    with pytest.raises(ResolutionError):
        await resolver.resolve(ByFraction(0.1))


@pytest.mark.asyncio
@pytest.mark.parametrize("fraction", [math.nan, math.inf, -math.inf])
async def test_non_finite_fractions_are_rejected(grammar, fraction):
    with pytest.raises(ResolutionError):
        await _resolver(grammar).resolve(ByFraction(fraction))
    with pytest.raises(ResolutionError):
        await _resolver(grammar).resolve({"fraction": fraction})


@pytest.mark.asyncio
async def test_identifier_round_trip_keeps_index_and_lazy_anchor(grammar):
    resolver = _resolver(grammar)
    identifier = resolver.compute_identifier(2, TextRange(5, 9))

    location = await resolver.resolve(identifier)

    assert identifier == "cfi(/2!5:9)"
    assert location.index == 2
    assert location.anchor_for(TextDocument("whatever text")) == TextRange(5, 9)


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 3])
async def test_section_identifier_round_trip(grammar, index):
    resolver = _resolver(grammar)

    location = await resolver.resolve(resolver.compute_identifier(index))

    assert location.index == index
    assert location.anchor_for(TextDocument("section text")) is None


def test_compute_identifier_prefers_native_section_identifier(grammar):
    book = FakeBook([FakeSection(0, "a", cfi="cfi(/6!)"), FakeSection(1, "b")])
    resolver = LocationResolver(book, grammar)

    assert resolver.compute_identifier(0) == "cfi(/6!)"
    assert resolver.compute_identifier(1) == "cfi(/1!)"
    assert resolver.compute_identifier(0, TextRange(1, 2)) == "cfi(/6!1:2)"


@pytest.mark.asyncio
async def test_malformed_identifier_fails_with_cause(grammar):
    with pytest.raises(ResolutionError) as excinfo:
        await _resolver(grammar).resolve("cfi(/x!)")

    assert isinstance(excinfo.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_destination_references_use_the_book(grammar):
    resolver = _resolver(grammar)

    assert await resolver.resolve("chapter-2") == Location(index=2)
    with pytest.raises(ResolutionError) as excinfo:
        await resolver.resolve("chapter-9")
    assert isinstance(excinfo.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_book_native_identifier_resolution_wins(grammar):
    class NativeBook(FakeBook):
        async def resolve_identifier(self, value):
            return Location(index=1, anchor="native")

    resolver = LocationResolver(NativeBook([FakeSection(0), FakeSection(1)]), grammar)

    assert await resolver.resolve("cfi(/0!)") == Location(index=1, anchor="native")


@pytest.mark.asyncio
async def test_unsupported_target_is_a_resolution_error(grammar):
    with pytest.raises(ResolutionError):
        await _resolver(grammar).resolve(object())


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [-1, 2, 7])
async def test_book_native_identifier_outside_the_document_fails(grammar, index):
    class NativeBook(FakeBook):
        async def resolve_identifier(self, value):
            return Location(index=index)

    resolver = LocationResolver(NativeBook([FakeSection(0), FakeSection(1)]), grammar)

    with pytest.raises(ResolutionError):
        await resolver.resolve("cfi(/0!)")


@pytest.mark.asyncio
async def test_destination_locator_becomes_the_anchor(grammar):
    class LocatorBook(FakeBook):
        async def split_toc_href(self, href):
            page, _, locator = href.partition("#")
            return await self.resolve_href(page), locator or None

    book = LocatorBook([FakeSection(0), FakeSection(1)], destinations={"notes": 1})
    resolver = LocationResolver(book, grammar)

    assert await resolver.resolve("notes#fn-3") == Location(index=1, anchor="fn-3")
    assert await resolver.resolve("notes") == Location(index=1)
