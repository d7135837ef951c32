from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from docnav.models.search import AnnotationRecord


class AnnotationRegistry:
    """Per-section search annotations, rebuilt on every search and kept until cleared."""

    def __init__(self) -> None:
        self._records: Dict[int, List[AnnotationRecord]] = {}

    def add(self, index: int, record: AnnotationRecord) -> None:
        self._records.setdefault(index, []).append(record)

    def get(self, index: int) -> List[AnnotationRecord]:
        return list(self._records.get(index, ()))

    def items(self) -> Iterator[Tuple[int, List[AnnotationRecord]]]:
        for index, records in list(self._records.items()):
            yield index, list(records)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, index: object) -> bool:
        return index in self._records

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())


__all__ = ["AnnotationRegistry"]
