import logging

import pytest

from mquery.core.ast_handler import ASTHandler, first_node_by_name, first_node_by_tag
from mquery.core.document_model import NodeKind, Tag
from mquery.core.escapes import Escape, EscapeKind
from mquery.exceptions import NotFoundError, QueryLevel

from common import LS, bullet_list, container, document, element, item, section, text


def test_find_section_ignores_case():
    doc = document(section("NAME"), section("DESCRIPTION", text("body")))

    for name in ("DESCRIPTION", "description", "Description"):
        found = first_node_by_name(doc.first_node, name)
        assert found is doc.root.children[1]


def test_find_section_strips_escapes_from_header():
    doc = document(section("\\fBSEE\\fP ALSO"))
    assert first_node_by_name(doc.first_node, "see also") is doc.first_node


def test_find_subsection():
    doc = document(section("ECLASS VARIABLES", section("Required variables", tag=Tag.SS)))

    found = first_node_by_name(doc.first_node, "required variables")
    assert found.tag is Tag.SS


def test_missing_section():
    doc = document(section("NAME"))

    assert first_node_by_name(doc.first_node, "EXAMPLES") is None
    with pytest.raises(NotFoundError, match="section not found: EXAMPLES") as excinfo:
        first_node_by_name(doc.first_node, "EXAMPLES", required=True)
    assert excinfo.value.level is QueryLevel.NOTFOUND


def test_missing_section_is_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="mquery")
    doc = document(section("NAME"))

    first_node_by_name(doc.first_node, "EXAMPLES")
    assert "section not found: EXAMPLES" in caplog.text


def test_find_tag_skips_text_nodes():
    body = container(text("Ic"), element(Tag.IC, text("cmd")))
    assert first_node_by_tag(body, Tag.IC) is body.children[1]


def test_missing_tag():
    body = container(text("plain"))

    assert first_node_by_tag(body, Tag.LK) is None
    with pytest.raises(NotFoundError, match="macro Lk not found"):
        first_node_by_tag(body, Tag.LK, required=True)


def test_later_sibling_subtree_wins_over_own_children():
    body = container(
        element(Tag.EM, element(Tag.IC, text("nested"))),
        element(Tag.SY, element(Tag.IC, text("sibling"))),
    )
    found = first_node_by_tag(body.first_child, Tag.IC)

    assert found.first_child.string == "sibling"


def test_walk_order():
    body = container(
        element(Tag.EM, text("a1")),
        element(Tag.SY, text("b1")),
    )
    handler = ASTHandler()
    order = [node.string or node.name for node in handler.walk(body.first_child)]

    assert order == ["Em", "Sy", "b1", "a1"]


def test_walk_long_sibling_chain():
    body = container(*[text(str(i)) for i in range(5000)])
    handler = ASTHandler()

    assert sum(1 for _ in handler.walk(body)) == 5001
    assert first_node_by_tag(body, Tag.IC) is None


def test_search_from_nothing():
    assert first_node_by_tag(None, Tag.SH) is None
    assert first_node_by_name(None, "NAME") is None


def test_section_is_found_before_matching_items():
    doc = document(section("NAME", bullet_list(item(head=[text("NAME")]))))
    found = first_node_by_name(doc.first_node, "NAME")

    assert found is doc.first_node
    assert found.kind is NodeKind.BLOCK


def test_custom_decoder_is_used_for_headers():
    def swallow_three(text, pos):
        return Escape(EscapeKind.IGNORE, pos, pos + 3)

    doc = document(section("\\xxNAME"))
    handler = ASTHandler(decoder=swallow_three)

    assert handler.first_node_by_name(doc.first_node, "NAME") is doc.first_node
    assert first_node_by_name(doc.first_node, "NAME") is None


def test_plain_text():
    body = container(text("  one   two", LS), element(Tag.AR, text("\\fBthree\\fP")))
    assert ASTHandler().plain_text(body) == "one two three"
