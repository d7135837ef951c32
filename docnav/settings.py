from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import FrozenSet

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv(override=False)


DEFAULT_REPLACE_REASONS = "snap,page,scroll"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    """Tunables for text reconstruction, chapter indexing, search and history."""

    line_tolerance: float = Field(default_factory=lambda: float(os.getenv("DOCNAV_LINE_TOLERANCE", "5.0")))
    chapter_stride: int = Field(default_factory=lambda: int(os.getenv("DOCNAV_CHAPTER_STRIDE", "10")))
    section_size: int = Field(default_factory=lambda: int(os.getenv("DOCNAV_SECTION_SIZE", "1000")))
    excerpt_context: int = Field(default_factory=lambda: int(os.getenv("DOCNAV_EXCERPT_CONTEXT", "50")))
    history_replace_reasons: FrozenSet[str] = Field(
        default_factory=lambda: os.getenv("DOCNAV_HISTORY_REPLACE_REASONS", DEFAULT_REPLACE_REASONS)
    )
    log_level: str = Field(default_factory=lambda: os.getenv("DOCNAV_LOG_LEVEL", "INFO"))

    model_config = {
        "frozen": True,
        "validate_default": True,
    }

    @field_validator("line_tolerance")
    @classmethod
    def _non_negative_tolerance(cls, value: float) -> float:
        if value < 0:
            raise ValueError("line_tolerance must be >= 0")
        return value

    @field_validator("chapter_stride", "section_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("excerpt_context")
    @classmethod
    def _non_negative_context(cls, value: int) -> int:
        return max(value, 0)

    @field_validator("history_replace_reasons", mode="before")
    @classmethod
    def _split_reasons(cls, value: object) -> FrozenSet[str]:
        if value is None:
            return frozenset(DEFAULT_REPLACE_REASONS.split(","))
        if isinstance(value, str):
            return frozenset(reason.strip() for reason in value.split(",") if reason.strip())
        return frozenset(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> str:
        level = str(value or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance built from the environment."""

    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging for scripts; the library itself never adds handlers."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


__all__ = ["Settings", "get_settings", "configure_logging", "DEFAULT_REPLACE_REASONS"]
