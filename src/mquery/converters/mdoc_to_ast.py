"""
Converter from mdoc(7) source to the document tree.

Only the part of the mdoc language that query recipes rely on is understood:
sections, paragraphs, lists, displays and the common in-line macros. Anything
else is kept as ``UNKNOWN`` elements so that its text still renders.
"""

from __future__ import annotations

import gzip
import logging
import re
from pathlib import Path
from typing import List, NamedTuple, Optional

from ..core.document_model import (
    DocumentModel,
    DocumentNode,
    MdocMetadata,
    NodeFlags,
    NodeKind,
    Position,
    Tag,
)
from ..exceptions import MalformedDocumentError

logger = logging.getLogger(__name__)

# Macros that may be called from the middle of a macro line
CALLABLE = frozenset({
    "Ad", "An", "Aq", "Ar", "Bq", "Brq", "Cd", "Cm", "Dq", "Dv", "Em", "Er",
    "Ev", "Fa", "Fl", "Fn", "Ft", "Ic", "Li", "Lk", "Ms", "Mt", "Nm", "No",
    "Ns", "Pa", "Pq", "Ql", "Qq", "Sm", "Sq", "St", "Sy", "Va", "Xr",
})

# Macros whose children are the rest of the line
ENCLOSING = frozenset({Tag.AQ, Tag.PQ, Tag.DQ, Tag.SQ, Tag.QQ, Tag.BQ, Tag.BRQ, Tag.ND})

# Markers with no printable content
CONTROL = frozenset({Tag.NS, Tag.SM})

CLOSING_DELIMITERS = frozenset({".", ",", ";", ":", "?", "!", ")", "]"})

# List types whose .It line carries no head
HEADLESS_LISTS = frozenset({"-bullet", "-dash", "-hyphen", "-enum", "-item"})

FILL_OFF = frozenset({"-literal", "-unfilled"})

# Enclosures that already end their output line
LINE_ENDING = frozenset({Tag.MT, Tag.AQ})

_COMMENT = re.compile(r'(?<!\\)\\".*$')


class Token(NamedTuple):
    """One argument of a macro line."""
    text: str
    quoted: bool
    column: int


def split_arguments(line: str, start: int = 0) -> List[Token]:
    """
    Split a macro line into arguments.

    Double quotes group words; ``""`` inside a quoted argument is a literal
    quote. Columns are 1-based.
    """
    tokens: List[Token] = []
    pos = start
    end = len(line)

    while pos < end:
        while pos < end and line[pos] in " \t":
            pos += 1
        if pos >= end:
            break

        column = pos + 1
        if line[pos] == '"':
            pos += 1
            chars = []
            while pos < end:
                if line[pos] == '"':
                    if pos + 1 < end and line[pos + 1] == '"':
                        chars.append('"')
                        pos += 2
                        continue
                    pos += 1
                    break
                chars.append(line[pos])
                pos += 1
            tokens.append(Token("".join(chars), True, column))
        else:
            word_start = pos
            while pos < end and line[pos] not in " \t":
                # An escaped blank does not end the word
                if line[pos] == "\\" and pos + 1 < end:
                    pos += 2
                    continue
                pos += 1
            tokens.append(Token(line[word_start:pos], False, column))

    return tokens


def _end_preformatted_line(nodes: List[DocumentNode], lineno: int) -> None:
    """Close a macro line inside a display with an empty NO_FILL text."""
    printable = [node for node in nodes if not node.has_flag(NodeFlags.NO_PRINT)]
    if not printable or printable[-1].tag in LINE_ENDING:
        return
    nodes.append(DocumentNode.text("", NodeFlags.NO_FILL, Position(lineno, 0)))


class _ParseState:
    """Open blocks while a document is being read."""

    def __init__(self, root: DocumentNode):
        self.root = root
        self.stack: List[DocumentNode] = []

    @property
    def container(self) -> DocumentNode:
        if not self.stack:
            return self.root
        return self.stack[-1].body

    @property
    def no_fill(self) -> bool:
        return any(block.tag is Tag.BD and block.has_flag(NodeFlags.NO_FILL) for block in self.stack)

    def open_list(self) -> Optional[DocumentNode]:
        for block in reversed(self.stack):
            if block.tag is Tag.BL:
                return block
        return None

    def close_until(self, tag: Tag, inclusive: bool) -> bool:
        """Close blocks down to the innermost ``tag`` block."""
        if not any(block.tag is tag for block in self.stack):
            return False
        while self.stack[-1].tag is not tag:
            self.stack.pop()
        if inclusive:
            self.stack.pop()
        return True


class MdocToASTConverter:
    """
    Converts mdoc manual pages to a DocumentModel.

    The resulting tree follows the mdoc block structure: every ``Sh``, ``Ss``,
    ``Bl``, ``It`` and ``Bd`` is a block with a head and a body, in-line
    macros are elements and text lines are text nodes.
    """

    def __init__(self):
        # First argument of the first .Nm, printed by later bare .Nm calls
        self._name: Optional[str] = None

    def convert(self, path: Path) -> DocumentModel:
        """Read and convert an mdoc file, decompressing ``.gz`` files."""
        try:
            if path.suffix == ".gz":
                with gzip.open(path, "rb") as f:
                    data = f.read()
            else:
                data = path.read_bytes()
        except (gzip.BadGzipFile, EOFError) as e:
            raise MalformedDocumentError(f"could not decompress {path}: {e}") from e

        return self.convert_text(data.decode("utf-8", errors="replace"), path)

    def convert_text(self, source: str, source_path: Optional[Path] = None) -> DocumentModel:
        """Convert mdoc source text."""
        self._name = None
        root = DocumentNode(NodeKind.ROOT, Tag.ROOT)
        metadata = MdocMetadata()
        state = _ParseState(root)
        saw_mdoc = False

        for lineno, raw in enumerate(source.splitlines(), 1):
            if raw.startswith(('.\\"', "'\\\"")):
                continue
            line = _COMMENT.sub("", raw)

            if line.startswith((".", "'")):
                tokens = split_arguments(line, 1)
                if not tokens:
                    continue
                name = tokens[0].text
                if name == "TH":
                    raise MalformedDocumentError(f"not an mdoc document: {source_path or '<input>'}")
                if name in ("Dd", "Dt", "Os", "Sh"):
                    saw_mdoc = True
                self._macro_line(state, metadata, tokens, lineno)
            elif not line.strip():
                if state.no_fill:
                    state.container.append_child(DocumentNode.text(
                        "", NodeFlags.LINE_START | NodeFlags.NO_FILL, Position(lineno, 1)))
                else:
                    state.container.append_child(DocumentNode.element(
                        Tag.PP, flags=NodeFlags.LINE_START, position=Position(lineno, 1)))
            else:
                flags = NodeFlags.LINE_START
                if state.no_fill:
                    flags |= NodeFlags.NO_FILL
                if not state.stack:
                    logger.warning("%d:1: text before the first section header", lineno)
                state.container.append_child(DocumentNode.text(line, flags, Position(lineno, 1)))

        if not saw_mdoc:
            raise MalformedDocumentError(f"not an mdoc document: {source_path or '<input>'}")
        if state.stack:
            unclosed = [block.name for block in state.stack if block.tag in (Tag.BL, Tag.BD)]
            if unclosed:
                logger.warning("unclosed blocks at end of document: %s", ", ".join(unclosed))

        return DocumentModel(root=root, metadata=metadata, source_path=source_path)

    def _macro_line(self, state: _ParseState, metadata: MdocMetadata, tokens: List[Token], lineno: int) -> None:
        name = tokens[0].text
        args = tokens[1:]
        words = [token.text for token in args]
        position = Position(lineno, tokens[0].column - 1)

        if name == "Dd":
            metadata.date = " ".join(words) or None
        elif name == "Dt":
            if words:
                metadata.title = words[0]
            if len(words) > 1:
                metadata.section = words[1]
            if len(words) > 2:
                metadata.volume = " ".join(words[2:])
        elif name == "Os":
            metadata.operating_system = " ".join(words) or None

        elif name == "Sh":
            state.stack.clear()
            state.stack.append(self._section(Tag.SH, words, position, state.root))
        elif name == "Ss":
            if not state.close_until(Tag.SH, inclusive=False):
                logger.warning("%s: subsection outside of a section", position)
            state.stack.append(self._section(Tag.SS, words, position, state.container))

        elif name in ("Pp", "Lp"):
            state.container.append_child(DocumentNode.element(
                Tag.PP, flags=NodeFlags.LINE_START, position=position))

        elif name == "Bl":
            block = DocumentNode.block(Tag.BL, args=words, flags=NodeFlags.LINE_START, position=position)
            state.container.append_child(block)
            state.stack.append(block)
        elif name == "It":
            self._item(state, args, position)
        elif name == "El":
            if not state.close_until(Tag.BL, inclusive=True):
                logger.warning("%s: El without an open list", position)

        elif name == "Bd":
            flags = NodeFlags.LINE_START
            if FILL_OFF.intersection(words):
                flags |= NodeFlags.NO_FILL
            block = DocumentNode.block(Tag.BD, args=words, flags=flags, position=position)
            state.container.append_child(block)
            state.stack.append(block)
        elif name == "Ed":
            if not state.close_until(Tag.BD, inclusive=True):
                logger.warning("%s: Ed without an open display", position)

        elif name in ("Bk", "Ek"):
            pass

        else:
            nodes = self.parse_line(tokens, lineno)
            if nodes:
                nodes[0].flags |= NodeFlags.LINE_START
            if state.no_fill:
                _end_preformatted_line(nodes, lineno)
            for node in nodes:
                state.container.append_child(node)

    def _section(self, tag: Tag, words: List[str], position: Position, parent: DocumentNode) -> DocumentNode:
        head = [DocumentNode.text(" ".join(words), position=position)] if words else []
        block = DocumentNode.block(tag, head=head, flags=NodeFlags.LINE_START, position=position)
        parent.append_child(block)
        return block

    def _item(self, state: _ParseState, args: List[Token], position: Position) -> None:
        bl = state.open_list()
        if bl is None:
            logger.warning("%s: It outside of a list", position)
            return
        state.close_until(Tag.BL, inclusive=False)

        item = DocumentNode.block(Tag.IT, flags=NodeFlags.LINE_START, position=position)
        bl.body.append_child(item)
        state.stack.append(item)

        if not args:
            return
        nodes = self.parse_inline(args, position.line)
        if nodes:
            nodes[0].flags |= NodeFlags.LINE_START
        if state.no_fill:
            _end_preformatted_line(nodes, position.line)
        target = item.body if HEADLESS_LISTS.intersection(bl.args) else item.head
        for node in nodes:
            target.append_child(node)

    def parse_line(self, tokens: List[Token], lineno: int) -> List[DocumentNode]:
        """Parse a macro line whose first token is a macro name."""
        first = tokens[0]
        if first.text not in CALLABLE and Tag.from_macro(first.text) is Tag.UNKNOWN:
            logger.debug("%d:%d: unknown macro %s", lineno, first.column - 1, first.text)
            element = DocumentNode(NodeKind.ELEMENT, Tag.UNKNOWN, name=first.text,
                                   position=Position(lineno, first.column - 1))
            for node in self.parse_inline(tokens[1:], lineno):
                element.append_child(node)
            return [element]
        return self.parse_inline(tokens, lineno, macro_first=True)

    def parse_inline(self, tokens: List[Token], lineno: int, macro_first: bool = False) -> List[DocumentNode]:
        """Parse macro arguments into elements and text."""
        nodes: List[DocumentNode] = []
        pos = 0

        while pos < len(tokens):
            token = tokens[pos]
            is_macro = (macro_first and pos == 0) or (not token.quoted and token.text in CALLABLE)

            if is_macro:
                tag = Tag.from_macro(token.text)
                position = Position(lineno, token.column - 1 if pos == 0 and macro_first else token.column)

                if tag in ENCLOSING:
                    rest = list(tokens[pos + 1:])
                    trailing: List[Token] = []
                    if tag is not Tag.ND:
                        while rest and not rest[-1].quoted and rest[-1].text in CLOSING_DELIMITERS:
                            trailing.insert(0, rest.pop())
                    element = DocumentNode.element(tag, *self.parse_inline(rest, lineno), position=position)
                    nodes.append(element)
                    nodes.extend(self._text(t, lineno) for t in trailing)
                    break

                end = pos + 1
                if tag in CONTROL:
                    # Only .Sm takes an argument
                    if tag is Tag.SM and end < len(tokens) and tokens[end].text in ("on", "off"):
                        end += 1
                else:
                    while end < len(tokens) and not self._ends_arguments(tokens[end]):
                        end += 1
                nodes.append(self._element(tag, tokens[pos + 1:end], position))
                pos = end
                continue

            if not token.quoted and token.text in CLOSING_DELIMITERS:
                nodes.append(self._text(token, lineno))
                pos += 1
                continue

            end = pos
            while end < len(tokens) and not self._ends_arguments(tokens[end]):
                end += 1
            if end == pos:
                end = pos + 1
            words = tokens[pos:end]
            nodes.append(DocumentNode.text(" ".join(t.text for t in words),
                                           position=Position(lineno, words[0].column)))
            pos = end

        return nodes

    @staticmethod
    def _ends_arguments(token: Token) -> bool:
        return not token.quoted and (token.text in CALLABLE or token.text in CLOSING_DELIMITERS)

    @staticmethod
    def _text(token: Token, lineno: int) -> DocumentNode:
        return DocumentNode.text(token.text, position=Position(lineno, token.column))

    def _element(self, tag: Tag, args: List[Token], position: Position) -> DocumentNode:
        words = [token.text for token in args]

        if tag in CONTROL:
            return DocumentNode.element(tag, flags=NodeFlags.NO_PRINT, position=position)

        if tag is Tag.AN and words and words[0] in ("-split", "-nosplit"):
            return DocumentNode.element(tag, position=position)

        if tag is Tag.LK and words:
            children = [DocumentNode.text(words[0], position=Position(position.line, args[0].column))]
            if len(words) > 1:
                children.append(DocumentNode.text(" ".join(words[1:]),
                                                  position=Position(position.line, args[1].column)))
            return DocumentNode.element(tag, *children, position=position)

        if tag is Tag.NM:
            if words and self._name is None:
                self._name = words[0]
            elif not words and self._name is not None:
                return DocumentNode.element(tag, DocumentNode.text(self._name, position=position), position=position)

        if not words:
            return DocumentNode.element(tag, position=position)
        text = DocumentNode.text(" ".join(words), position=Position(position.line, args[0].column))
        return DocumentNode.element(tag, text, position=position)
