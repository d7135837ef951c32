"""Format loaders and text reconstruction."""

from .pdf import PdfPageSection, PyMuPDFBook, iter_outline_labels, page_fragments
from .text_order import NO_TEXT_PLACEHOLDER, TextFragment, TextOrderReconstructor, wrap_page

__all__ = [
    "NO_TEXT_PLACEHOLDER",
    "PdfPageSection",
    "PyMuPDFBook",
    "TextFragment",
    "TextOrderReconstructor",
    "iter_outline_labels",
    "page_fragments",
    "wrap_page",
]
