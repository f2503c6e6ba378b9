"""
Readers producing document trees from files.
"""

from __future__ import annotations

from pathlib import Path

from ..core.document_model import DocumentModel
from ..exceptions import BadArgumentError
from .json_tree import dump_tree, load_tree, load_tree_file
from .mdoc_to_ast import MdocToASTConverter


def load_document(path: Path) -> DocumentModel:
    """Read ``path`` as a serialized tree (``.json``) or as mdoc source."""
    path = Path(path)
    try:
        if path.suffix == ".json":
            return load_tree_file(path)
        return MdocToASTConverter().convert(path)
    except OSError as e:
        raise BadArgumentError(f"{path}: {e.strerror or e}") from e


__all__ = [
    "MdocToASTConverter",
    "dump_tree",
    "load_document",
    "load_tree",
    "load_tree_file",
]
