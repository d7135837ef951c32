from __future__ import annotations

from bisect import bisect_right
from typing import Any, Dict, List, Optional, Sequence, Tuple

from docnav.interfaces.book import Section
from docnav.interfaces.presentation import FractionIndex


class SectionFractionIndex(FractionIndex):
    """Fractional positions over cumulative section sizes; non-linear sections weigh nothing."""

    def __init__(self, sections: Sequence[Section]) -> None:
        self._sizes: List[float] = [
            float(section.size) if section.linear != "no" else 0.0 for section in sections
        ]
        self._starts: List[float] = []
        total = 0.0
        for size in self._sizes:
            self._starts.append(total)
            total += size
        self._total = total

    @property
    def total(self) -> float:
        return self._total

    @property
    def section_fractions(self) -> List[float]:
        if not self._total:
            return [0.0 for _ in self._sizes]
        return [start / self._total for start in self._starts]

    def get_section(self, fraction: float) -> Tuple[int, Any]:
        """Return the section containing ``fraction`` and the fraction within that section."""

        if not self._sizes or not self._total:
            return 0, 0.0
        fraction = min(max(float(fraction), 0.0), 1.0)
        target = fraction * self._total
        if target >= self._total:
            return max(i for i, size in enumerate(self._sizes) if size > 0), 1.0
        index = bisect_right(self._starts, target) - 1
        while index > 0 and self._sizes[index] == 0:
            index -= 1
        size = self._sizes[index]
        anchor = (target - self._starts[index]) / size if size else 0.0
        return index, min(max(anchor, 0.0), 1.0)

    def get_progress(self, index: int, fraction: float, size: Optional[float] = None) -> Dict[str, Any]:
        """Overall fraction for a position ``fraction`` through section ``index``.

        ``size`` is the visible share of the section and, when given, yields the fraction at
        the end of the visible window as well.
        """

        if not 0 <= index < len(self._sizes) or not self._total:
            return {}
        within = min(max(float(fraction), 0.0), 1.0)
        start = self._starts[index]
        section_size = self._sizes[index]
        progress: Dict[str, Any] = {
            "fraction": (start + within * section_size) / self._total,
            "section": {"current": index, "total": len(self._sizes)},
        }
        if size is not None:
            end_within = min(within + float(size), 1.0)
            progress["end_fraction"] = (start + end_within * section_size) / self._total
        return progress


__all__ = ["SectionFractionIndex"]
