"""
AST handler for locating sections and macros in a document tree.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional

from .document_model import DocumentNode, Tag
from .escapes import EscapeDecoder, decode_escape, strip_escapes
from ..exceptions import NotFoundError

logger = logging.getLogger(__name__)

NodePredicate = Callable[[DocumentNode], bool]


class ASTHandler:
    """
    Handles navigation of mdoc document trees.

    All lookups share one traversal order: a node is tested, then everything
    reachable from its next sibling, and only then its first child. A match
    in a later sibling's subtree therefore wins over one nested below the
    node itself.
    """

    def __init__(self, decoder: Optional[EscapeDecoder] = None):
        self.decoder = decoder or decode_escape

    def walk(self, start: Optional[DocumentNode]) -> Iterator[DocumentNode]:
        """Yield nodes reachable from ``start`` in lookup order."""
        stack: List[DocumentNode] = [start] if start is not None else []

        while stack:
            node = stack.pop()
            yield node

            # Sibling chain is popped first, the child waits below it
            child = node.first_child
            if child is not None:
                stack.append(child)
            sibling = node.next_sibling
            if sibling is not None:
                stack.append(sibling)

    def first_match(self, start: Optional[DocumentNode], predicate: NodePredicate) -> Optional[DocumentNode]:
        """Return the first node satisfying ``predicate``."""
        for node in self.walk(start):
            if predicate(node):
                return node
        return None

    def first_node_by_tag(
        self,
        start: Optional[DocumentNode],
        tag: Tag,
        required: bool = False,
    ) -> Optional[DocumentNode]:
        """Find the first node carrying ``tag``."""
        found = self.first_match(start, lambda node: not node.is_text and node.tag is tag)
        if found is None and required:
            raise NotFoundError(f"macro {tag.value} not found")
        return found

    def first_node_by_name(
        self,
        start: Optional[DocumentNode],
        name: str,
        required: bool = False,
    ) -> Optional[DocumentNode]:
        """Find the first block whose header text equals ``name``, ignoring case."""
        wanted = name.strip().casefold()

        def matches(node: DocumentNode) -> bool:
            if node.head is None:
                return False
            return self.header_text(node).casefold() == wanted

        found = self.first_match(start, matches)
        if found is None:
            if required:
                raise NotFoundError(f"section not found: {name}")
            logger.debug("section not found: %s", name)
        return found

    def header_text(self, node: DocumentNode) -> str:
        """Plain text of a block's head with escapes removed."""
        if node.head is None:
            return ""
        return self.plain_text(node.head)

    def plain_text(self, node: DocumentNode) -> str:
        """Concatenate the text below ``node``, words separated by single spaces."""
        words = []
        for descendant in node.iter_tree():
            if descendant.is_text and descendant.string:
                words.extend(strip_escapes(descendant.string, self.decoder).split())
        return " ".join(words)


_default_handler = ASTHandler()


def first_node_by_tag(start: Optional[DocumentNode], tag: Tag, required: bool = False) -> Optional[DocumentNode]:
    """Find the first node carrying ``tag`` using the default escape decoder."""
    return _default_handler.first_node_by_tag(start, tag, required)


def first_node_by_name(start: Optional[DocumentNode], name: str, required: bool = False) -> Optional[DocumentNode]:
    """Find the first section titled ``name`` using the default escape decoder."""
    return _default_handler.first_node_by_name(start, name, required)
