"""
Core document representation and navigation modules.
"""

from .document_model import DocumentModel, DocumentNode, MdocMetadata, NodeFlags, NodeKind, Position, Tag
from .ast_handler import ASTHandler, first_node_by_name, first_node_by_tag
from .escapes import Escape, EscapeKind, decode_escape, strip_escapes

__all__ = [
    "DocumentModel",
    "DocumentNode",
    "MdocMetadata",
    "NodeFlags",
    "NodeKind",
    "Position",
    "Tag",
    "ASTHandler",
    "first_node_by_name",
    "first_node_by_tag",
    "Escape",
    "EscapeKind",
    "decode_escape",
    "strip_escapes",
]
