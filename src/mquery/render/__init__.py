"""
Plain-text rendering of document trees.
"""

from .deroff import Enclosure, Renderer, render_to_string
from .extractors import ListExtractor

__all__ = [
    "Enclosure",
    "Renderer",
    "render_to_string",
    "ListExtractor",
]
