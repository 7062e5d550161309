import pytest

from manuscripts_transform.markup import parse_xml
from manuscripts_transform.schema import schema
from manuscripts_transform.section_category import (
    build_section_category,
    choose_jats_fn_fn_type,
    choose_sec_type,
    choose_section_category,
    choose_section_node_type,
    guess_section_category,
    is_any_element_section_node,
    is_any_section_node,
    is_editable_section_node,
    section_category_suffix,
)
from manuscripts_transform.section_tree import SectionTree, merge_element_ids, walk_section_tree

nodes = schema.nodes


def sec(xml):
    return parse_xml(xml).find("sec")


# ── categories ──


def test_category_from_sec_type():
    assert choose_section_category(sec('<sec sec-type="intro"/>')) == (
        "MPSectionCategory:introduction"
    )
    assert choose_section_category(sec('<sec sec-type="methods"/>')) == (
        "MPSectionCategory:materials-method"
    )


def test_category_from_title():
    assert choose_section_category(
        sec("<sec><title>  Materials and\n Methods </title></sec>")
    ) == "MPSectionCategory:materials-method"
    assert choose_section_category(sec("<sec><title>References</title></sec>")) == (
        "MPSectionCategory:bibliography"
    )


def test_unknown_category():
    assert choose_section_category(sec('<sec sec-type="other"><title>Scope</title></sec>')) is None


def test_sec_type_for_category():
    assert choose_sec_type("MPSectionCategory:materials-method") == "methods"
    assert choose_sec_type("MPSectionCategory:introduction") == "intro"
    assert choose_sec_type("MPSectionCategory:acknowledgment") == "acknowledgments"
    assert choose_sec_type("MPSectionCategory:results") == "results"
    assert section_category_suffix("MPSectionCategory:toc") == "toc"


def test_fn_type():
    assert choose_jats_fn_fn_type("competing-interests") == "coi-statement"
    assert choose_jats_fn_fn_type("con") == "con"


def test_node_type_for_category():
    assert choose_section_node_type("MPSectionCategory:keywords") is nodes["keywords_section"]
    assert choose_section_node_type("MPSectionCategory:toc") is nodes["toc_section"]
    assert choose_section_node_type("MPSectionCategory:abstract") is nodes["section"]
    assert choose_section_node_type(None) is nodes["section"]


def test_guess_category_from_first_element():
    assert guess_section_category([{"objectType": "MPKeywordsElement"}]) == (
        "MPSectionCategory:keywords"
    )
    assert guess_section_category([{"objectType": "MPParagraphElement"}]) is None
    assert guess_section_category([]) is None


def test_section_node_predicates():
    section = nodes["section"].create_and_fill({"category": "MPSectionCategory:results"})
    toc = nodes["toc_section"].create_and_fill()
    paragraph = nodes["paragraph"].create()

    assert is_any_section_node(section) and is_any_section_node(toc)
    assert not is_any_section_node(paragraph)
    assert is_any_element_section_node(toc) and not is_any_element_section_node(section)
    assert is_editable_section_node(section) and not is_editable_section_node(toc)

    assert build_section_category(section) == "MPSectionCategory:results"
    assert build_section_category(toc) == "MPSectionCategory:toc"
    assert build_section_category(nodes["section"].create_and_fill()) is None


# ── tree ──


@pytest.fixture
def tree(model_map):
    return walk_section_tree(model_map)


def test_section_path(tree):
    assert tree.get_section_path("MPSection:SUB") == ["MPSection:INTRO", "MPSection:SUB"]


def test_section_path_errors(tree):
    with pytest.raises(KeyError):
        tree.get_section_path("MPSection:NOPE")
    with pytest.raises(ValueError):
        tree.get_section_path("MPFigure:F1")


def test_parent_and_children(tree):
    assert tree.get_parent("MPSection:SUB")["_id"] == "MPSection:INTRO"
    assert tree.get_parent("MPSection:INTRO") is None
    assert [model["_id"] for model in tree.get_children("MPSection:INTRO")] == ["MPSection:SUB"]
    assert [model["_id"] for model in tree.get_children(None)] == [
        "MPSection:ABS",
        "MPSection:INTRO",
        "MPSection:ACK",
        "MPSection:BIB",
    ]


def test_siblings(tree):
    assert [model["_id"] for model in tree.get_siblings("MPSection:SUB")] == ["MPSection:SUB"]
    assert len(tree.get_siblings("MPSection:ABS")) == 4


def test_walk_returns_tree(model_map):
    assert isinstance(walk_section_tree(model_map), SectionTree)


def test_merge_element_ids():
    model = {"elementIDs": ["MPParagraphElement:1", "MPSection:OLD", "MPFigureElement:1"]}
    assert merge_element_ids(model, ["MPSection:NEW"]) == [
        "MPParagraphElement:1",
        "MPFigureElement:1",
        "MPSection:NEW",
    ]
