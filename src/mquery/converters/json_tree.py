"""
Serialized document trees.

A tree produced by another mdoc parser can be handed to mquery as JSON. The
schema mirrors ``DocumentNode``: kind, macro name, text payload, flags,
position and children.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.document_model import DocumentModel, DocumentNode, MdocMetadata, NodeFlags, NodeKind, Position, Tag
from ..exceptions import MalformedDocumentError


class NodeSpec(BaseModel):
    """One serialized node."""

    kind: NodeKind
    tag: str = Tag.TEXT.value
    string: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    flags: List[str] = Field(default_factory=list)
    line: int = 0
    column: int = 0
    children: List[NodeSpec] = Field(default_factory=list)

    @field_validator("flags")
    @classmethod
    def _known_flags(cls, value: List[str]) -> List[str]:
        for name in value:
            if name not in NodeFlags.__members__ or name == "NONE":
                raise ValueError(f"unknown node flag: {name}")
        return value


class TreeSpec(BaseModel):
    """A serialized document."""

    metadata: Dict[str, Optional[str]] = Field(default_factory=dict)
    root: NodeSpec


NodeSpec.model_rebuild()


def _tag(spec: NodeSpec) -> Tag:
    if spec.kind is NodeKind.TEXT:
        return Tag.TEXT
    if spec.kind is NodeKind.ROOT:
        return Tag.ROOT
    return Tag.from_macro(spec.tag)


def spec_to_node(spec: NodeSpec) -> DocumentNode:
    """Build a node and its subtree from its serialized form."""
    flags = NodeFlags.NONE
    for name in spec.flags:
        flags |= NodeFlags[name]

    node = DocumentNode(
        spec.kind,
        _tag(spec),
        string=spec.string,
        args=spec.args,
        flags=flags,
        position=Position(spec.line, spec.column),
        name=None if spec.kind is NodeKind.TEXT else spec.tag,
    )

    if spec.kind is NodeKind.TEXT and spec.children:
        raise MalformedDocumentError("text node has children", node.position)
    for child in spec.children:
        node.append_child(spec_to_node(child))
    return node


def node_to_spec(node: DocumentNode) -> NodeSpec:
    """Serialize a node and its subtree."""
    return NodeSpec(
        kind=node.kind,
        tag=node.name or node.tag.value,
        string=node.string,
        args=node.args,
        flags=[flag.name for flag in NodeFlags if flag.value and flag in node.flags],
        line=node.position.line,
        column=node.position.column,
        children=[node_to_spec(child) for child in node.children],
    )


def load_tree(data: Any, source_path: Optional[Path] = None) -> DocumentModel:
    """Build a DocumentModel from decoded JSON data."""
    try:
        spec = TreeSpec.model_validate(data)
    except ValidationError as e:
        raise MalformedDocumentError(f"invalid document tree: {e.error_count()} validation error(s)") from e

    if spec.root.kind is not NodeKind.ROOT:
        raise MalformedDocumentError("document tree must start with a root node")

    known = MdocMetadata().to_dict()
    metadata = MdocMetadata.from_dict({k: v for k, v in spec.metadata.items() if k in known})
    return DocumentModel(root=spec_to_node(spec.root), metadata=metadata, source_path=source_path)


def load_tree_file(path: Path) -> DocumentModel:
    """Read a serialized document tree from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"could not parse {path}: {e}") from e
    return load_tree(data, path)


def dump_tree(document: DocumentModel) -> str:
    """Serialize a DocumentModel to JSON."""
    spec = TreeSpec(metadata=document.metadata.to_dict(), root=node_to_spec(document.root))
    return spec.model_dump_json(indent=2)
