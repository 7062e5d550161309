import re

import pytest

from manuscripts_transform.config import JATS_VERSIONS
from manuscripts_transform.errors import UnknownVersionError
from manuscripts_transform.jats_exporter import (
    JATSExporter,
    JATSExportOptions,
    choose_role_vocab_attributes,
    normalize_style_name,
    select_version_ids,
)
from manuscripts_transform.markup import parse_xml


def export(article, model_map, **options):
    xml = JATSExporter().serialize_to_jats(article, model_map, JATSExportOptions(**options))
    return xml, parse_xml(xml)


@pytest.fixture
def jats(article, model_map):
    return export(article, model_map, doi="10.1234/abc", id="ARTICLE-1")


def test_doctype(jats):
    xml, _ = jats
    assert JATS_VERSIONS["1.2"]["publicId"] in xml
    assert "<!DOCTYPE article" in xml


def test_article_ids(jats):
    _, doc = jats
    assert doc.find("article-id", attrs={"pub-id-type": "doi"}).get_text() == "10.1234/abc"
    assert doc.find("article-id", attrs={"pub-id-type": "publisher-id"}).get_text() == "ARTICLE-1"


def test_journal_meta_from_submission(jats):
    _, doc = jats
    journal_meta = doc.find("journal-meta")
    assert journal_meta.find("journal-id").get_text() == "JT"
    assert journal_meta.find("journal-title").get_text() == "Journal of Tests"
    assert journal_meta.find("issn").get_text() == "1234-5678"


def test_title_keeps_inline_markup(jats):
    _, doc = jats
    title = doc.find("article-title")
    assert title.get_text() == "A study of things"
    assert title.find("italic").get_text() == "study"


def test_contributors_and_affiliations(jats):
    _, doc = jats
    contribs = doc.find_all("contrib")
    assert len(contribs) == 2
    assert contribs[0]["corresp"] == "yes"
    assert contribs[0].find("surname").get_text() == "Doe"
    assert contribs[0].find("email").get_text() == "jane@example.com"
    assert len(contribs[1].find_all("xref", attrs={"ref-type": "aff"})) == 2

    affs = doc.find_all("aff")
    assert len(affs) == 2
    assert affs[0].find("city").get_text() == "Sofia"
    assert contribs[0].find("xref")["rid"] == affs[0]["id"]


def test_abstract_moves_before_keywords(jats):
    _, doc = jats
    abstract = doc.find("article-meta").find("abstract", recursive=False)
    assert abstract.get_text() == "This is the abstract."
    assert abstract.find_next_sibling().name == "kwd-group"
    assert doc.find("kwd").get_text() == "transformation"
    assert doc.find("sec", attrs={"sec-type": "abstract"}) is None


def test_acknowledgments_move_to_back(jats):
    _, doc = jats
    back = doc.find("back")
    ack = back.find(True, recursive=False)
    assert ack.name == "ack"
    assert "Thanks to everyone." in ack.get_text()
    assert doc.find("body").find("sec", attrs={"sec-type": "acknowledgments"}) is None


def test_body_sections(jats):
    _, doc = jats
    sections = doc.find("body").find_all("sec", recursive=False)
    assert [section.get("sec-type") for section in sections] == ["intro"]
    assert sections[0].find("sec").find("title").get_text() == "Details"


def test_table_rows_are_split(jats):
    _, doc = jats
    table_wrap = doc.find("table-wrap")
    assert table_wrap.find(True, recursive=False).name == "caption"
    table = table_wrap.find("table")
    assert len(table.find("thead").find_all("tr")) == 1
    assert len(table.find("tbody").find_all("tr")) == 3
    assert table.find("tfoot") is None
    assert "Footer" not in table.get_text()


def test_single_figure_group_collapses(jats):
    _, doc = jats
    assert doc.find("fig-group") is None
    figure = doc.find("fig", attrs={"fig-type": "figure"})
    assert figure.find("caption").get_text() == "The figure caption"
    graphic = figure.find("graphic")
    assert graphic["xlink:href"] == "graphic/MPFigure_F1.png"
    assert graphic["mimetype"] == "image"
    assert graphic["mime-subtype"] == "png"

    xref = doc.find("xref", attrs={"ref-type": "fig"})
    assert xref["rid"] == figure["id"]
    assert xref.get_text() == "Figure 1"


def test_equation_and_listing(jats):
    _, doc = jats
    equation = doc.find("fig", attrs={"fig-type": "equation"})
    assert equation.find("disp-formula").find("tex-math").get_text() == "E=mc^2"
    listing = doc.find("fig", attrs={"fig-type": "listing"})
    assert listing.find("code")["language"] == "python"
    assert listing.find("caption").get_text() == "Code"


def test_referenced_bibliography(jats):
    _, doc = jats
    ref_list = doc.find("back").find("ref-list")
    refs = ref_list.find_all("ref")
    assert len(refs) == 1
    citation = refs[0].find("element-citation")
    assert citation["publication-type"] == "journal"
    assert citation.find("surname").get_text() == "Smith"
    assert citation.find("year").get_text() == "2019"
    assert citation.find("month").get_text() == "5"
    assert citation.find("source").get_text() == "Journal of Examples"
    assert citation.find("fpage").get_text() == "10"
    assert citation.find("lpage").get_text() == "20"
    assert citation.find("pub-id", attrs={"pub-id-type": "doi"}).get_text() == "10.1000/example"

    xref = doc.find("xref", attrs={"ref-type": "bibr"})
    assert xref["rid"] == refs[0]["id"]
    assert xref.get_text() == "[1]"


def test_referenced_footnotes(jats):
    _, doc = jats
    fn_group = doc.find("back").find("fn-group")
    fns = fn_group.find_all("fn")
    assert len(fns) == 1
    assert fns[0].get_text() == "A footnote."
    assert doc.find("xref", attrs={"ref-type": "fn"})["rid"] == fns[0]["id"]


def test_ids_are_rewritten(jats):
    _, doc = jats
    ids = [element["id"] for element in doc.find_all(attrs={"id": True})]
    assert ids
    assert all(re.match(r"^[a-z-]+-\d+$", identifier) for identifier in ids)
    assert len(ids) == len(set(ids))


def test_front_matter_only(article, model_map):
    _, doc = export(article, model_map, front_matter_only=True)
    assert doc.find("front") is not None
    assert doc.find("body") is None
    assert doc.find("back") is None


def test_unknown_version(article, model_map):
    with pytest.raises(UnknownVersionError, match="Unknown version 9.9"):
        export(article, model_map, version="9.9")
    with pytest.raises(UnknownVersionError):
        select_version_ids("2.0")


def test_older_version_doctype(article, model_map):
    xml, _ = export(article, model_map, version="1.1")
    assert JATS_VERSIONS["1.1"]["systemId"] in xml


def test_custom_id_generator_can_drop_ids(article, model_map):
    _, doc = export(article, model_map, id_generator=lambda element: None)
    assert doc.find_all(attrs={"id": True}) == []


def test_media_path_generator(article, model_map):
    _, doc = export(
        article,
        model_map,
        media_path_generator=lambda graphic, figure_id: f"media/{figure_id}.png",
    )
    figure = doc.find("fig", attrs={"fig-type": "figure"})
    assert figure.find("graphic")["xlink:href"] == f"media/{figure['id']}.png"


def test_role_vocab_attributes():
    credit = choose_role_vocab_attributes(
        {
            "name": "Writing",
            "uri": "https://dictionary.casrai.org/Contributor_Roles/Writing",
        }
    )
    assert credit["vocab"] == "credit"
    assert credit["vocab-term"] == "Writing"
    assert choose_role_vocab_attributes({"name": "Other"}) == {"vocab": "uncontrolled"}


def test_normalize_style_name():
    assert normalize_style_name("Small Caps / Red") == "small-caps-red"


def test_reference_to_collapsed_figure_keeps_its_target(article, model_map):
    model_map["MPAuxiliaryObjectReference:X1"]["referencedObject"] = "MPFigure:F1"
    _, doc = export(article, model_map)
    figure = doc.find("fig", attrs={"fig-type": "figure"})
    assert doc.find("xref", attrs={"ref-type": "fig"})["rid"] == figure["id"]
