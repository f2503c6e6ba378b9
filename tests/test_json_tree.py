import io
import json

import pytest

from mquery.converters import dump_tree, load_document, load_tree
from mquery.core.document_model import NodeFlags, Tag
from mquery.exceptions import MalformedDocumentError
from mquery.query import QueryOption, run_query


def render(doc, option):
    out = io.StringIO()
    run_query(doc, option, out)
    return out.getvalue()


def name_section(*body):
    return {
        "kind": "block",
        "tag": "Sh",
        "flags": ["LINE_START"],
        "children": [
            {"kind": "head", "tag": "Sh", "children": [{"kind": "text", "string": "NAME"}]},
            {"kind": "body", "tag": "Sh", "children": list(body)},
        ],
    }


@pytest.fixture
def tree_data():
    return {
        "metadata": {"title": "EXTERNAL", "section": "3"},
        "root": {
            "kind": "root",
            "children": [
                name_section({
                    "kind": "element",
                    "tag": "Nd",
                    "flags": ["LINE_START"],
                    "line": 4,
                    "column": 1,
                    "children": [{"kind": "text", "string": "parsed elsewhere"}],
                }),
            ],
        },
    }


def test_load_tree(tree_data):
    doc = load_tree(tree_data)
    section = doc.first_node

    assert doc.metadata.title == "EXTERNAL"
    assert section.tag is Tag.SH
    assert section.head is section.children[0]
    assert section.body.first_child.tag is Tag.ND
    assert section.body.first_child.has_flag(NodeFlags.LINE_START)
    assert str(section.body.first_child.position) == "4:1"
    assert render(doc, QueryOption.SUMMARY) == "parsed elsewhere "


def test_unknown_macro_name_is_kept(tree_data):
    tree_data["root"]["children"][0]["children"][1]["children"].append(
        {"kind": "element", "tag": "Zz", "children": [{"kind": "text", "string": "x"}]}
    )
    node = load_tree(tree_data).first_node.body.last_child

    assert node.tag is Tag.UNKNOWN
    assert node.name == "Zz"


def test_dumped_tree_answers_like_the_source(sample_doc):
    reloaded = load_tree(json.loads(dump_tree(sample_doc)))

    assert reloaded.metadata == sample_doc.metadata
    for option in (QueryOption.DESCRIPTION, QueryOption.VARIABLES, QueryOption.MAINTAINERS):
        assert render(reloaded, option) == render(sample_doc, option)


def test_unknown_flag(tree_data):
    tree_data["root"]["children"][0]["flags"] = ["BOLD"]
    with pytest.raises(MalformedDocumentError, match="invalid document tree"):
        load_tree(tree_data)


def test_root_must_be_root(tree_data):
    with pytest.raises(MalformedDocumentError, match="must start with a root node"):
        load_tree({"root": tree_data["root"]["children"][0]})


def test_text_with_children(tree_data):
    tree_data["root"]["children"].append(
        {"kind": "text", "string": "x", "children": [{"kind": "text", "string": "y"}]}
    )
    with pytest.raises(MalformedDocumentError, match="text node has children"):
        load_tree(tree_data)


def test_load_document_json(tmp_path, tree_data):
    path = tmp_path / "page.json"
    path.write_text(json.dumps(tree_data), encoding="utf-8")

    doc = load_document(path)
    assert doc.source_path == path
    assert render(doc, QueryOption.SUMMARY) == "parsed elsewhere "


def test_load_document_invalid_json(tmp_path):
    path = tmp_path / "page.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedDocumentError, match="could not parse"):
        load_document(path)
