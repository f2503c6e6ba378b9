"""
mquery: print sections of mdoc manual pages as plain text.
"""

from .core.document_model import DocumentModel, DocumentNode, NodeFlags, NodeKind, Position, Tag
from .exceptions import MQueryError, QueryLevel
from .query import QueryDispatcher, QueryOption, run_query

__version__ = "0.1.0"

__all__ = [
    "DocumentModel",
    "DocumentNode",
    "NodeFlags",
    "NodeKind",
    "Position",
    "Tag",
    "MQueryError",
    "QueryLevel",
    "QueryDispatcher",
    "QueryOption",
    "run_query",
]
