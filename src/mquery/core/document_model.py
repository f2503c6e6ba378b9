"""
Core document model: a read-only tree of mdoc nodes.

Parents own their children through an ordered list. The child-to-parent link
is a weak reference and sibling links are computed from the parent's list, so
the tree has no reference cycles and lives exactly as long as its root.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


class NodeKind(Enum):
    """Structural node types."""
    ROOT = "root"
    BLOCK = "block"
    HEAD = "head"
    BODY = "body"
    ELEMENT = "element"
    TEXT = "text"


class Tag(Enum):
    """mdoc macros known to the query engine."""
    ROOT = "root"
    TEXT = "text"
    UNKNOWN = "unknown"

    # Sections and blocks
    SH = "Sh"
    SS = "Ss"
    PP = "Pp"
    BL = "Bl"
    IT = "It"
    BD = "Bd"

    # Names and descriptions
    NM = "Nm"
    ND = "Nd"
    AN = "An"
    MT = "Mt"
    LK = "Lk"
    XR = "Xr"
    PA = "Pa"

    # Semantic markup
    IC = "Ic"
    DV = "Dv"
    EV = "Ev"
    VA = "Va"
    AR = "Ar"
    FL = "Fl"
    CM = "Cm"
    FN = "Fn"
    FA = "Fa"
    FT = "Ft"
    ER = "Er"
    CD = "Cd"
    AD = "Ad"
    MS = "Ms"
    LI = "Li"
    EM = "Em"
    SY = "Sy"
    NO = "No"
    QL = "Ql"
    ST = "St"

    # Enclosures
    AQ = "Aq"
    PQ = "Pq"
    DQ = "Dq"
    SQ = "Sq"
    QQ = "Qq"
    BQ = "Bq"
    BRQ = "Brq"

    # Spacing control
    NS = "Ns"
    SM = "Sm"

    @classmethod
    def from_macro(cls, name: str) -> Tag:
        """Look up a tag by its macro name, ``UNKNOWN`` if there is none."""
        return _MACRO_TAGS.get(name, cls.UNKNOWN)


_MACRO_TAGS: Dict[str, Tag] = {
    tag.value: tag for tag in Tag if tag not in (Tag.ROOT, Tag.TEXT, Tag.UNKNOWN)
}


class NodeFlags(Flag):
    """Per-node rendering flags."""
    NONE = 0
    LINE_START = auto()  # first node on its source line
    NO_FILL = auto()     # preformatted region, whitespace is literal
    NO_PRINT = auto()    # never rendered


@dataclass(frozen=True)
class Position:
    """Source position of a node, used for diagnostics."""

    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class DocumentNode:
    """
    A node of the document tree.

    Text nodes carry ``string`` and have no children. Block nodes own a
    ``head`` and a ``body`` child (both also listed in ``children``).
    """

    def __init__(
        self,
        kind: NodeKind,
        tag: Tag = Tag.TEXT,
        string: Optional[str] = None,
        args: Optional[List[str]] = None,
        flags: NodeFlags = NodeFlags.NONE,
        position: Optional[Position] = None,
        name: Optional[str] = None,
    ):
        self.kind = kind
        self.tag = tag
        self.string = string
        self.args: List[str] = list(args or [])
        self.flags = flags
        self.position = position or Position()
        # Macro name as written, kept for UNKNOWN elements
        self.name = name or (tag.value if kind is not NodeKind.TEXT else None)

        self.children: List[DocumentNode] = []
        self.head: Optional[DocumentNode] = None
        self.body: Optional[DocumentNode] = None

        self._parent: Optional[weakref.ref] = None
        self._index = 0

    @classmethod
    def text(
        cls,
        string: str,
        flags: NodeFlags = NodeFlags.NONE,
        position: Optional[Position] = None,
    ) -> DocumentNode:
        """Create a text leaf."""
        return cls(NodeKind.TEXT, Tag.TEXT, string=string, flags=flags, position=position)

    @classmethod
    def element(
        cls,
        tag: Tag,
        *children: DocumentNode,
        flags: NodeFlags = NodeFlags.NONE,
        position: Optional[Position] = None,
    ) -> DocumentNode:
        """Create an in-line element with the given children."""
        node = cls(NodeKind.ELEMENT, tag, flags=flags, position=position)
        for child in children:
            node.append_child(child)
        return node

    @classmethod
    def block(
        cls,
        tag: Tag,
        head: Optional[List[DocumentNode]] = None,
        body: Optional[List[DocumentNode]] = None,
        args: Optional[List[str]] = None,
        flags: NodeFlags = NodeFlags.NONE,
        position: Optional[Position] = None,
    ) -> DocumentNode:
        """Create a block with a head and a body holding the given nodes."""
        node = cls(NodeKind.BLOCK, tag, args=args, flags=flags, position=position)
        head_node = node.append_child(cls(NodeKind.HEAD, tag, position=position))
        body_node = node.append_child(cls(NodeKind.BODY, tag, flags=flags & NodeFlags.NO_FILL, position=position))
        for child in head or []:
            head_node.append_child(child)
        for child in body or []:
            body_node.append_child(child)
        return node

    def append_child(self, child: DocumentNode) -> DocumentNode:
        """Append ``child`` and return it."""
        if self.kind is NodeKind.TEXT:
            raise ValueError("text nodes cannot have children")
        if child.parent is not None:
            raise ValueError("node already has a parent")

        child._parent = weakref.ref(self)
        child._index = len(self.children)
        self.children.append(child)

        if child.kind is NodeKind.HEAD:
            self.head = child
        elif child.kind is NodeKind.BODY:
            self.body = child
        return child

    @property
    def parent(self) -> Optional[DocumentNode]:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def first_child(self) -> Optional[DocumentNode]:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Optional[DocumentNode]:
        return self.children[-1] if self.children else None

    @property
    def next_sibling(self) -> Optional[DocumentNode]:
        parent = self.parent
        if parent is None or self._index + 1 >= len(parent.children):
            return None
        return parent.children[self._index + 1]

    @property
    def prev_sibling(self) -> Optional[DocumentNode]:
        parent = self.parent
        if parent is None or self._index == 0:
            return None
        return parent.children[self._index - 1]

    @property
    def is_text(self) -> bool:
        return self.kind is NodeKind.TEXT

    def has_flag(self, flag: NodeFlags) -> bool:
        return bool(self.flags & flag)

    def iter_tree(self) -> Iterator[DocumentNode]:
        """Yield this node and all descendants in document order."""
        yield self
        for child in self.children:
            yield from child.iter_tree()

    def __repr__(self) -> str:
        if self.is_text:
            return f"DocumentNode(text {self.string!r} at {self.position})"
        return f"DocumentNode({self.kind.value} {self.name} at {self.position})"


@dataclass
class MdocMetadata:
    """Prologue information of an mdoc page."""

    title: Optional[str] = None
    section: Optional[str] = None
    volume: Optional[str] = None
    date: Optional[str] = None
    operating_system: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "section": self.section,
            "volume": self.volume,
            "date": self.date,
            "operating_system": self.operating_system,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MdocMetadata:
        """Create from dictionary."""
        return cls(**data)


class DocumentModel:
    """
    A parsed document: the node tree plus prologue metadata.

    The model is built once by a reader and then only read by queries.
    """

    def __init__(
        self,
        root: Optional[DocumentNode] = None,
        metadata: Optional[MdocMetadata] = None,
        source_path: Optional[Path] = None,
    ):
        self.root = root or DocumentNode(NodeKind.ROOT, Tag.ROOT)
        self.metadata = metadata or MdocMetadata()
        self.source_path = source_path

    @classmethod
    def from_file(cls, path: Path) -> DocumentModel:
        """Read a document with the reader matching its file name."""
        from ..converters import load_document

        return load_document(path)

    @property
    def first_node(self) -> Optional[DocumentNode]:
        """The node queries start from."""
        return self.root.first_child

    def get_stats(self) -> Dict[str, Any]:
        """Get document statistics."""
        nodes = list(self.root.iter_tree())
        return {
            "title": self.metadata.title,
            "section": self.metadata.section,
            "node_count": len(nodes),
            "section_count": len([n for n in nodes if n.kind is NodeKind.BLOCK and n.tag is Tag.SH]),
            "subsection_count": len([n for n in nodes if n.kind is NodeKind.BLOCK and n.tag is Tag.SS]),
            "list_count": len([n for n in nodes if n.kind is NodeKind.BLOCK and n.tag is Tag.BL]),
        }

    def validate_integrity(self) -> List[str]:
        """Validate document structure and return any issues."""
        issues = []

        if not self.root.children:
            issues.append("Document has no content")

        for node in self.root.iter_tree():
            if node.kind is NodeKind.BLOCK:
                if node.head is None:
                    issues.append(f"{node.position}: {node.name} block has no head")
                if node.body is None:
                    issues.append(f"{node.position}: {node.name} block has no body")
            elif node.is_text and node.children:
                issues.append(f"{node.position}: text node has children")

        return issues
