"""Helpers for building document trees by hand."""

from mquery.core.document_model import DocumentModel, DocumentNode, NodeFlags, NodeKind, Tag

LS = NodeFlags.LINE_START


def text(string, flags=NodeFlags.NONE):
    return DocumentNode.text(string, flags)


def element(tag, *children, flags=NodeFlags.NONE):
    return DocumentNode.element(tag, *children, flags=flags)


def section(title, *body, tag=Tag.SH):
    return DocumentNode.block(tag, head=[text(title)], body=list(body), flags=LS)


def item(head=(), body=()):
    return DocumentNode.block(Tag.IT, head=list(head), body=list(body), flags=LS)


def bullet_list(*items):
    return DocumentNode.block(Tag.BL, body=list(items), args=["-tag"], flags=LS)


def document(*sections):
    root = DocumentNode(NodeKind.ROOT, Tag.ROOT)
    for node in sections:
        root.append_child(node)
    return DocumentModel(root=root)


def container(*children):
    """A body node holding ``children``, for rendering fragments."""
    node = DocumentNode(NodeKind.BODY, Tag.SH)
    for child in children:
        node.append_child(child)
    return node
