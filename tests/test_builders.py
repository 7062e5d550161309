import pytest

from manuscripts_transform.builders import (
    add_model_to_map,
    build_bibliography_item,
    build_citation,
    build_contributor,
    build_figure,
    build_manuscript,
    build_section,
)
from manuscripts_transform.config import DEFAULT_BUNDLE, ObjectType
from manuscripts_transform.object_types import is_figure, is_manuscript_model, is_section


def test_manuscript():
    manuscript = build_manuscript("Title")
    assert manuscript["_id"].startswith("MPManuscript:")
    assert manuscript["objectType"] == "MPManuscript"
    assert manuscript["bundle"] == DEFAULT_BUNDLE


def test_contributor_embeds_name_and_drops_missing_ids():
    contributor = build_contributor({"given": "Jane", "family": "Doe"}, priority=2)
    assert contributor["bibliographicName"]["objectType"] == "MPBibliographicName"
    assert contributor["bibliographicName"]["family"] == "Doe"
    assert contributor["priority"] == 2
    assert "userID" not in contributor


def test_bibliography_item_type_default():
    assert build_bibliography_item({"title": "x"})["type"] == "article-journal"
    assert build_bibliography_item({"type": "book"})["type"] == "book"


def test_citation_items():
    citation = build_citation("MPParagraphElement:1", ["MPBibliographyItem:1", "MPBibliographyItem:2"])
    items = citation["embeddedCitationItems"]
    assert [item["bibliographyItem"] for item in items] == [
        "MPBibliographyItem:1",
        "MPBibliographyItem:2",
    ]
    assert all(item["objectType"] == "MPCitationItem" for item in items)


def test_figure_attachment():
    figure = build_figure("image/png", data=b"\x89PNG")
    assert figure["attachment"] == {"id": "image", "type": "image/png", "data": b"\x89PNG"}
    assert "src" not in figure


def test_section_path_ends_with_own_id():
    parent = build_section(priority=1)
    child = build_section(priority=2, path=parent["path"])
    assert child["path"] == [parent["_id"], child["_id"]]


def test_add_model_to_map():
    model_map = {}
    add_model = add_model_to_map(model_map)
    keyword = add_model({"objectType": "MPKeyword", "name": "x"})
    assert model_map[keyword["_id"]] is keyword
    assert keyword["_id"].startswith("MPKeyword:")


def test_predicates():
    assert is_figure({"objectType": "MPFigure"})
    assert is_section({"objectType": ObjectType.SECTION.value})
    assert is_manuscript_model({"objectType": "MPParagraphElement"})
    assert not is_manuscript_model({"objectType": "MPProject"})
    with pytest.raises(ValueError):
        is_manuscript_model({})
