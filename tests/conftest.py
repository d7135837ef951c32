from __future__ import annotations

import pytest

from docnav.settings import Settings
from fakes import FakeGrammar


@pytest.fixture
def grammar() -> FakeGrammar:
    return FakeGrammar()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        line_tolerance=5.0,
        chapter_stride=10,
        section_size=1000,
        excerpt_context=50,
        history_replace_reasons="snap,page,scroll",
        log_level="INFO",
    )
