from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import fitz  # type: ignore

from docnav.ingest.text_order import NO_TEXT_PLACEHOLDER, TextFragment, TextOrderReconstructor, wrap_page
from docnav.interfaces.book import BookSource, Section
from docnav.models.document import BookMetadata, TextDocument
from docnav.models.section import OutlineNode
from docnav.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def page_fragments(page: fitz.Page) -> List[TextFragment]:
    """Positioned spans of a page, with y flipped into bottom-up PDF user space."""

    height = float(page.rect.height)
    fragments: List[TextFragment] = []
    for block in page.get_text("dict").get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text.strip():
                    continue
                x, y = span.get("origin", (0.0, 0.0))
                fragments.append(TextFragment(text=text.strip(), transform=(1.0, 0.0, 0.0, 1.0, float(x), height - float(y))))
    return fragments


class PdfPageSection(Section):
    """One PDF page as a section; its materialized document is the reconstructed page text."""

    def __init__(self, book: "PyMuPDFBook", index: int, size: int) -> None:
        super().__init__(id=index, size=size)
        self._book = book

    async def load_text(self) -> str:
        return self._book.page_text(self.id)

    @property
    def materializable(self) -> bool:
        return True

    async def create_document(self) -> TextDocument:
        return TextDocument(text=self._book.page_body(self.id), section_index=self.id)


class _DraftNode:
    __slots__ = ("label", "href", "children")

    def __init__(self, label: str, href: Optional[str]) -> None:
        self.label = label
        self.href = href
        self.children: List["_DraftNode"] = []

    def freeze(self) -> OutlineNode:
        return OutlineNode(label=self.label, href=self.href, subitems=tuple(child.freeze() for child in self.children))


class PyMuPDFBook(BookSource):
    """PDF loader: pages become sections, the PDF outline becomes the TOC."""

    def __init__(self, pdf: fitz.Document, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._pdf = pdf
        self._reconstructor = TextOrderReconstructor(tolerance=self.settings.line_tolerance)
        self._bodies: Dict[int, str] = {}
        self._named: Dict[str, Any] | None = None
        self.sections: Sequence[Section] = [
            PdfPageSection(self, index, self.settings.section_size) for index in range(pdf.page_count)
        ]
        self.toc = self._build_outline()
        self.metadata = self._build_metadata()

    @classmethod
    def open(cls, document_path: Path, settings: Settings | None = None) -> "PyMuPDFBook":
        if not document_path.exists():
            raise FileNotFoundError(f"PDF document not found: {document_path}")
        return cls(fitz.open(document_path), settings)

    @property
    def page_count(self) -> int:
        return self._pdf.page_count

    # ------------------------------------------------------------------ text
    def page_body(self, index: int) -> str:
        """Reading-order text of a page without delimiters, memoized per page."""

        cached = self._bodies.get(index)
        if cached is None:
            cached = self._reconstructor.body(page_fragments(self._pdf.load_page(index)))
            if not cached:
                logger.debug("Page %s has no readable text", index)
            self._bodies[index] = cached
        return cached

    def page_text(self, index: int) -> str:
        return wrap_page(self.page_body(index) or NO_TEXT_PLACEHOLDER, index)

    # ------------------------------------------------------------------ destinations
    async def resolve_href(self, href: str) -> int:
        parsed = json.loads(href)
        if isinstance(parsed, str):
            target = self._named_destinations().get(parsed)
            if target is None:
                raise KeyError(f"Unknown named destination: {parsed}")
            index = int(target["page"])
        elif isinstance(parsed, list) and parsed and isinstance(parsed[0], int):
            index = parsed[0]
        else:
            raise ValueError(f"Unsupported destination reference: {href}")

        if not 0 <= index < self.page_count:
            raise IndexError(f"Destination {href} points to missing page {index}")
        return index

    def _named_destinations(self) -> Dict[str, Any]:
        if self._named is None:
            self._named = self._pdf.resolve_names()
        return self._named

    def close(self) -> None:
        self._pdf.close()

    # ------------------------------------------------------------------ outline & metadata
    def _build_outline(self) -> Optional[List[OutlineNode]]:
        toc = self._pdf.get_toc(simple=False)
        if not toc:
            return None

        roots: List[_DraftNode] = []
        stack: List[_DraftNode] = []
        for entry in toc:
            if len(entry) < 3:
                continue
            level = max(1, int(entry[0]))
            destination = entry[3] if len(entry) > 3 and isinstance(entry[3], dict) else {}
            node = _DraftNode(str(entry[1]).strip(), _destination_href(int(entry[2]), destination))

            del stack[level - 1 :]
            if stack:
                stack[-1].children.append(node)
            else:
                roots.append(node)
            stack.append(node)
        return [node.freeze() for node in roots]

    def _build_metadata(self) -> BookMetadata:
        info = self._pdf.metadata or {}

        def get(key: str) -> Optional[str]:
            value = info.get(key)
            return value or None

        return BookMetadata(
            title=get("title"),
            author=get("author"),
            description=get("subject"),
            subject=get("keywords"),
            publisher=get("producer"),
            contributor=get("creator"),
        )


def _destination_href(page: int, destination: Dict[str, Any]) -> str:
    if page > 0:
        return json.dumps([page - 1])
    name = destination.get("nameddest") or destination.get("name")
    if name:
        return json.dumps(name)
    return json.dumps(None)


def iter_outline_labels(nodes: Iterable[OutlineNode], depth: int = 0) -> Iterable[str]:
    for node in nodes:
        yield f"{'  ' * depth}{node.label}"
        yield from iter_outline_labels(node.subitems, depth + 1)


__all__ = ["PdfPageSection", "PyMuPDFBook", "iter_outline_labels", "page_fragments"]
