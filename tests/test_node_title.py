from manuscripts_transform.node_title import node_title, node_title_placeholder, snippet
from manuscripts_transform.schema import schema

nodes = schema.nodes


def test_section_title(article):
    assert node_title(article.content[1]) == "Introduction"


def test_element_titles_come_from_captions(article):
    intro = article.content[1]
    assert node_title(intro.content[2]) == "The figure caption"
    assert node_title(intro.content[3]) == "Results table"
    assert node_title(intro.content[5]) == "Code"


def test_snippet_counts_inline_nodes_as_spaces():
    paragraph = nodes["paragraph"].create(
        {},
        [
            schema.text("See"),
            nodes["citation"].create({"rid": "MPCitation:1"}),
            schema.text("here"),
            nodes["highlight_marker"].create({"id": "MPHighlightMarker:1"}),
        ],
    )
    assert snippet(paragraph) == "See here"
    assert snippet(paragraph, max_length=3) == "See"


def test_list_title_from_first_paragraph():
    bullet_list = nodes["bullet_list"].create(
        {},
        [nodes["list_item"].create({}, [nodes["paragraph"].create({}, [schema.text("First")])])],
    )
    assert node_title(bullet_list) == "First"


def test_placeholders():
    assert node_title_placeholder(nodes["section"]) == "Untitled Section"
    assert node_title_placeholder(nodes["bibliography_section"]) == "Bibliography"
    assert node_title_placeholder(nodes["manuscript"]) == "Untitled Manuscript"
    assert node_title_placeholder(nodes["figure_element"]) == "Figure"
    assert node_title_placeholder(nodes["figcaption"]) == ""
