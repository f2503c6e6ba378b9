"""
Plain-text rendering of document subtrees ("deroff").

Each element is wrapped in an enclosure chosen from its tag and context,
text payloads lose their escape sequences, and runs of spaces collapse
outside of preformatted regions.
"""

from __future__ import annotations

import io
import sys
from typing import Dict, NamedTuple, Optional, TextIO

from ..core.document_model import DocumentNode, NodeFlags, NodeKind, Tag
from ..core.escapes import EscapeDecoder, EscapeKind, decode_escape
from ..exceptions import OutputError, QueryLevel


class Enclosure(NamedTuple):
    """Literal strings written around a rendered node."""
    before: str
    after: str


NO_ENCLOSURE = Enclosure("", "")
SPACED = Enclosure(" ", " ")
CODE_FENCE = Enclosure("\n\n@CODE\n", "@CODE\n")

# Element enclosures that apply regardless of line position
TAG_ENCLOSURES: Dict[Tag, Enclosure] = {
    Tag.PP: Enclosure("\n", "\n"),
    Tag.AN: NO_ENCLOSURE,
    Tag.MT: Enclosure("<", ">\n"),
    Tag.AQ: Enclosure("<", ">\n"),
    Tag.PQ: Enclosure(" (", ") "),
}

ANGLE_QUOTED = frozenset({Tag.MT, Tag.AQ})
BRACKETING = ANGLE_QUOTED | {Tag.PQ}
INLINE_KEPT = frozenset({Tag.NM, Tag.ND, Tag.PA, Tag.XR})
STRUCTURAL = frozenset({NodeKind.ROOT, NodeKind.BLOCK, NodeKind.HEAD, NodeKind.BODY})


def _is_angle_quoted(node: Optional[DocumentNode]) -> bool:
    return node is not None and node.kind is NodeKind.ELEMENT and node.tag in ANGLE_QUOTED


def _is_line_break(node: Optional[DocumentNode]) -> bool:
    """An empty preformatted text ends a line of a display."""
    return node is not None and node.is_text and node.has_flag(NodeFlags.NO_FILL) and not node.string


class Renderer:
    """
    Writes the plain text of document subtrees to a stream.

    The renderer remembers the last character it wrote so that an enclosure
    starting with a space is not written after whitespace.
    """

    def __init__(self, out: Optional[TextIO] = None, decoder: Optional[EscapeDecoder] = None):
        self.out = out if out is not None else sys.stdout
        self.decoder = decoder or decode_escape
        self._last: Optional[str] = None

    def render(self, node: DocumentNode) -> QueryLevel:
        """Render ``node`` and its descendants."""
        if node.has_flag(NodeFlags.NO_PRINT):
            return QueryLevel.OK

        if node.is_text:
            before, after = self.text_enclosure(node)
            self._write_enclosure(before, node)
            self._write(self.pstring(node.string or "", node.has_flag(NodeFlags.NO_FILL)), node)
            self._write_enclosure(after, node)
            return QueryLevel.OK

        before, after = self.enclosure(node)
        if _is_line_break(node.next_sibling):
            after = after.rstrip(" ")
        self._write_enclosure(before, node)
        for child in node.children:
            self.render(child)
        self._write_enclosure(after, node)
        return QueryLevel.OK

    def enclosure(self, node: DocumentNode) -> Enclosure:
        """Choose the enclosure of a non-text node."""
        if _is_angle_quoted(node.parent):
            return NO_ENCLOSURE

        if node.kind is NodeKind.BLOCK and node.tag is Tag.BD:
            return CODE_FENCE if node.has_flag(NodeFlags.NO_FILL) else NO_ENCLOSURE
        if node.kind in STRUCTURAL:
            return NO_ENCLOSURE
        if node.tag in TAG_ENCLOSURES:
            return TAG_ENCLOSURES[node.tag]
        if node.tag in INLINE_KEPT:
            return NO_ENCLOSURE
        if node.has_flag(NodeFlags.LINE_START) or self._in_item_head(node):
            return NO_ENCLOSURE
        return SPACED

    def text_enclosure(self, node: DocumentNode) -> Enclosure:
        """Choose the enclosure of a text node."""
        before, after = "", " "
        parent = node.parent

        if parent is not None:
            if _is_angle_quoted(parent):
                after = ""
            elif parent.kind is NodeKind.ELEMENT and parent.tag in BRACKETING and node.next_sibling is None:
                after = ""

            # No trailing space before a forced blank line or a display line end
            following = parent.next_sibling
            if node.next_sibling is None and following is not None and (
                    following.tag is Tag.PP or _is_line_break(following)):
                after = ""
            if _is_line_break(node.next_sibling):
                after = ""

            # Link description goes in parentheses after the target
            if parent.tag is Tag.LK and node.prev_sibling is not None:
                before, after = " (", ")"

        if node.has_flag(NodeFlags.NO_FILL):
            after = "\n"
        return Enclosure(before, after)

    def pstring(self, text: str, no_fill: bool = False) -> str:
        """Return the printable form of a text payload."""
        parts = []
        pos = 0
        end = len(text)

        while pos < end and text[pos] == " ":
            pos += 1
        if no_fill:
            parts.append(text[:pos])

        last_space = False
        while pos < end:
            ch = text[pos]

            if ch == "\\":
                escape = self.decoder(text, pos)
                if escape.kind is EscapeKind.ERROR:
                    break
                pos = escape.end
                continue

            if ch == " ":
                if pos + 1 == end:
                    break
                if last_space and not no_fill:
                    pos += 1
                    continue
                last_space = True
            else:
                last_space = False

            parts.append(ch)
            pos += 1

        return "".join(parts)

    def newline(self, node: Optional[DocumentNode] = None) -> None:
        """Terminate the current output line."""
        self._write("\n", node)

    def write(self, text: str, node: Optional[DocumentNode] = None) -> None:
        """Write literal text."""
        self._write(text, node)

    def _in_item_head(self, node: DocumentNode) -> bool:
        ancestor = node.parent
        while ancestor is not None:
            if ancestor.kind is NodeKind.HEAD:
                return ancestor.tag is Tag.IT
            if ancestor.kind is NodeKind.BODY:
                return False
            ancestor = ancestor.parent
        return False

    def _write_enclosure(self, text: str, node: DocumentNode) -> None:
        if text.startswith(" ") and (self._last is None or self._last in " \n"):
            text = text[1:]
        self._write(text, node)

    def _write(self, text: str, node: Optional[DocumentNode] = None) -> None:
        if not text:
            return
        try:
            self.out.write(text)
        except (OSError, ValueError) as e:
            position = node.position if node is not None else None
            raise OutputError(f"write failed: {e}", position) from e
        self._last = text[-1]


def render_to_string(node: DocumentNode, decoder: Optional[EscapeDecoder] = None) -> str:
    """Render ``node`` into a string."""
    buffer = io.StringIO()
    Renderer(buffer, decoder).render(node)
    return buffer.getvalue()
