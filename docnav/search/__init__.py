"""Lazy, progress-reporting search over document sections."""

from .annotations import AnnotationRegistry
from .matcher import Matcher, MatcherFactory, match_text, text_matcher
from .pipeline import SearchItem, SearchPipeline, SearchStream, release_document

__all__ = [
    "AnnotationRegistry",
    "Matcher",
    "MatcherFactory",
    "SearchItem",
    "SearchPipeline",
    "SearchStream",
    "match_text",
    "release_document",
    "text_matcher",
]
