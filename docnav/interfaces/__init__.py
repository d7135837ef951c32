from .book import BookSource, Section
from .grammar import FragmentGrammar
from .presentation import FractionIndex, OverlaySink, Renderer

__all__ = ["BookSource", "FractionIndex", "FragmentGrammar", "OverlaySink", "Renderer", "Section"]
