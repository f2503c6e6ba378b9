"""
Extraction of list items from ``Bl`` list bodies.

Both extractors look only at the immediate ``It`` children of the list body
they are given; nested lists are not searched.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.document_model import DocumentNode, NodeKind, Tag
from ..exceptions import MalformedDocumentError, NotFoundError
from .deroff import Renderer

logger = logging.getLogger(__name__)


def _is_item(node: DocumentNode) -> bool:
    return node.kind is NodeKind.BLOCK and node.tag is Tag.IT


class ListExtractor:
    """Prints selected list item heads or bodies through a renderer."""

    def __init__(self, renderer: Renderer):
        self.renderer = renderer

    def print_item_heads(self, list_body: DocumentNode, tag: Tag, required: bool = False) -> bool:
        """
        Print the head of every item whose head starts with ``tag``.

        Used for function and variable lists, e.g. ``.It Ic name``.
        Returns whether anything was printed.
        """
        found = False

        for item in list_body.children:
            if not _is_item(item):
                continue
            if item.head is None:
                raise MalformedDocumentError("list item has no head", item.position)

            element = item.head.first_child
            if element is None:
                logger.warning("%s: empty item header", item.position)
                continue
            if element.is_text or element.tag is not tag:
                continue

            found = True
            self.renderer.render(element)
            self.renderer.newline(element)

        if not found and required:
            raise NotFoundError("no matching items found")
        return found

    def print_item_bodies(
        self,
        list_body: DocumentNode,
        tag: Tag,
        prepend_text: str = "",
        required: bool = False,
    ) -> bool:
        """
        Print the body of every item whose body starts with ``tag``.

        ``prepend_text`` is written once, before the first printed item.
        Links without a description are skipped.
        Returns whether anything was printed.
        """
        found = False

        for item in list_body.children:
            if not _is_item(item):
                continue
            if item.body is None:
                raise MalformedDocumentError("list item has no body", item.position)

            element = item.body.first_child
            if element is None:
                logger.warning("%s: empty item body", item.position)
                continue
            if element.is_text or element.tag is not tag:
                continue

            if element.tag is Tag.LK and not self._has_description(element):
                continue

            if not found:
                self.renderer.write(prepend_text, element)
                found = True

            self.renderer.render(element)
            self.renderer.newline(element)

        if not found and required:
            raise NotFoundError("no matching items found")
        return found

    @staticmethod
    def _has_description(link: DocumentNode) -> bool:
        target: Optional[DocumentNode] = link.first_child
        return target is not None and target.next_sibling is not None
