import logging

import pytest

from manuscripts_transform.decode import (
    Decoder,
    build_model_map,
    decode,
    get_models_by_type,
    sort_sections_by_priority,
)
from manuscripts_transform.errors import DecodeError
from manuscripts_transform.markup import parse_html
from manuscripts_transform.schema import schema

from conftest import MANUSCRIPT_ID

nodes = schema.nodes


def section_model(identifier, element_ids, priority=1, **fields):
    return {
        "_id": identifier,
        "objectType": "MPSection",
        "priority": priority,
        "path": [identifier],
        "elementIDs": element_ids,
        **fields,
    }


def test_article_is_a_manuscript_node(article):
    assert article.type is nodes["manuscript"]
    assert article.attrs["id"] == MANUSCRIPT_ID
    article.check()


def test_root_sections_in_priority_order(article):
    assert [child.attrs["id"] for child in article.content] == [
        "MPSection:ABS",
        "MPSection:INTRO",
        "MPSection:ACK",
        "MPSection:BIB",
    ]


def test_section_node_types_follow_category(article):
    types = [child.type.name for child in article.content]
    assert types == ["section", "section", "section", "bibliography_section"]
    assert article.content[0].attrs["category"] == "MPSectionCategory:abstract"


def test_nested_section_comes_after_elements(article):
    intro = article.content[1]
    names = [child.type.name for child in intro.content]
    assert names == [
        "section_title",
        "paragraph",
        "figure_element",
        "table_element",
        "equation_element",
        "listing_element",
        "section",
    ]
    assert intro.last_child.attrs["id"] == "MPSection:SUB"
    assert intro.first_child.text_content == "Introduction"


def test_contained_objects_are_materialized(article):
    intro = article.content[1]
    figure_element = intro.content[2]
    figure = figure_element.first_child
    assert figure.type is nodes["figure"]
    assert figure.attrs["id"] == "MPFigure:F1"
    assert figure.attrs["contentType"] == "image/png"
    assert figure_element.content[1].text_content == "The figure caption"

    table = intro.content[3].first_child
    assert table.type is nodes["table"]
    assert table.child_count == 5

    equation = intro.content[4].first_child
    assert equation.attrs["TeXRepresentation"] == "E=mc^2"

    listing = intro.content[5].first_child
    assert listing.attrs["contents"] == "print(1)"
    assert listing.attrs["languageKey"] == "python"


def test_inline_references(article):
    paragraph = article.content[1].content[1]
    citation = paragraph.find_descendant(lambda node: node.type is nodes["citation"])
    reference = paragraph.find_descendant(lambda node: node.type is nodes["cross_reference"])
    assert citation.attrs["rid"] == "MPCitation:CIT1"
    assert reference.attrs == {"rid": "MPAuxiliaryObjectReference:X1", "label": "Figure 1"}


def test_missing_figure_becomes_placeholder():
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPFigureElement:1"]),
        "MPFigureElement:1": {
            "_id": "MPFigureElement:1",
            "objectType": "MPFigureElement",
            "containedObjectIDs": ["MPFigure:MISSING"],
        },
    }
    article = decode(model_map)
    figure_element = article.first_child.content[1]
    placeholder = figure_element.first_child
    assert placeholder.type is nodes["placeholder"]
    assert placeholder.attrs == {"id": "MPFigure:MISSING", "label": "A figure"}


def test_missing_table_becomes_placeholder():
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPTableElement:1"]),
        "MPTableElement:1": {
            "_id": "MPTableElement:1",
            "objectType": "MPTableElement",
            "containedObjectID": "MPTable:MISSING",
        },
    }
    table_element = decode(model_map).first_child.content[1]
    assert table_element.first_child.attrs["label"] == "A table"


def test_missing_element_becomes_placeholder_element():
    model_map = {"MPSection:1": section_model("MPSection:1", ["MPParagraphElement:GONE"])}
    section = decode(model_map).first_child
    assert section.content[1].type is nodes["placeholder_element"]
    assert section.content[1].attrs["id"] == "MPParagraphElement:GONE"


def test_unknown_object_type_is_skipped(caplog):
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPMystery:1", "MPParagraphElement:1"]),
        "MPMystery:1": {"_id": "MPMystery:1", "objectType": "MPMystery"},
        "MPParagraphElement:1": {
            "_id": "MPParagraphElement:1",
            "objectType": "MPParagraphElement",
            "contents": "<p>kept</p>",
        },
    }
    with caplog.at_level(logging.WARNING, logger="manuscripts_transform.decode"):
        section = decode(model_map).first_child
    assert [child.type.name for child in section.content] == ["section_title", "paragraph"]
    assert "No converter for MPMystery" in caplog.text


def test_empty_model_map_gets_one_section():
    article = decode({})
    assert article.child_count == 1
    assert article.first_child.type is nodes["section"]
    assert article.first_child.attrs["id"].startswith("MPSection:")


def test_sections_of_other_manuscripts_are_excluded(model_map):
    model_map["MPSection:OTHER"] = section_model(
        "MPSection:OTHER", [], priority=0, manuscriptID="MPManuscript:OTHER"
    )
    article = decode(model_map, MANUSCRIPT_ID)
    assert "MPSection:OTHER" not in [child.attrs["id"] for child in article.content]


def test_legacy_section_category_is_guessed():
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPBibliographyElement:1"]),
        "MPBibliographyElement:1": {
            "_id": "MPBibliographyElement:1",
            "objectType": "MPBibliographyElement",
            "contents": "",
        },
    }
    section = decode(model_map).first_child
    assert section.type is nodes["bibliography_section"]


def test_unknown_list_type_fails():
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPListElement:1"]),
        "MPListElement:1": {
            "_id": "MPListElement:1",
            "objectType": "MPListElement",
            "elementType": "dl",
            "contents": "<dl></dl>",
        },
    }
    with pytest.raises(DecodeError) as excinfo:
        decode(model_map)
    assert excinfo.value.model_id == "MPListElement:1"


def test_lists_and_quotes():
    model_map = {
        "MPSection:1": section_model(
            "MPSection:1", ["MPListElement:1", "MPQuoteElement:1"]
        ),
        "MPListElement:1": {
            "_id": "MPListElement:1",
            "objectType": "MPListElement",
            "elementType": "ol",
            "contents": "<ol><li><p>one</p></li><li><p>two</p></li></ol>",
        },
        "MPQuoteElement:1": {
            "_id": "MPQuoteElement:1",
            "objectType": "MPQuoteElement",
            "quoteType": "pull",
            "contents": '<aside class="pullquote"><p>Quoted</p></aside>',
        },
    }
    section = decode(model_map).first_child
    ordered_list, quote = section.content[1:]
    assert ordered_list.type is nodes["ordered_list"]
    assert ordered_list.child_count == 2
    assert quote.type is nodes["pullquote_element"]
    assert quote.text_content == "Quoted"


def test_highlight_markers_are_spliced_back():
    contents = '<p id="MPParagraphElement:1">Hello world</p>'
    model_map = {
        "MPSection:1": section_model("MPSection:1", ["MPParagraphElement:1"]),
        "MPParagraphElement:1": {
            "_id": "MPParagraphElement:1",
            "objectType": "MPParagraphElement",
            "contents": contents,
            "highlightMarkers": [
                {
                    "_id": "MPHighlightMarker:1",
                    "highlightID": "MPHighlight:1",
                    "field": "contents",
                    "start": True,
                    "offset": contents.index("world"),
                }
            ],
        },
    }
    paragraph = decode(model_map).first_child.content[1]
    assert [child.type.name for child in paragraph.content] == [
        "text",
        "highlight_marker",
        "text",
    ]
    marker = paragraph.content[1]
    assert marker.attrs == {
        "id": "MPHighlightMarker:1",
        "rid": "MPHighlight:1",
        "position": "start",
    }


def test_custom_html_parser_is_used(model_map):
    seen = []

    def parse(html):
        seen.append(html)
        return parse_html(html)

    Decoder(model_map, parse).create_article_node(MANUSCRIPT_ID)
    assert any("This is the abstract." in html for html in seen)


def test_model_map_helpers(models):
    models[0]["_rev"] = "1-abc"
    model_map = build_model_map(models)
    assert "_rev" not in model_map[MANUSCRIPT_ID]
    assert len(get_models_by_type(model_map, "MPContributor")) == 2

    first = {"priority": 1}
    second = {"priority": 2}
    assert sort_sections_by_priority(first, second) == -1
    assert sort_sections_by_priority(second, first) == 1
    assert sort_sections_by_priority(first, {"priority": 1}) == 0
