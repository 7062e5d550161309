import pytest

from manuscripts_transform.builders import add_model_to_map
from manuscripts_transform.errors import DuplicateIDError, MissingElementError
from manuscripts_transform.jats_importer import (
    choose_bundle,
    choose_content_type,
    ensure_section,
    html_from_jats_node,
    move_captions_to_end,
    move_sections_to_body,
    parse_jats_article,
    parse_jats_body,
    parse_jats_front,
    unwrap_paragraphs_in_captions,
    wrap_figures,
)
from manuscripts_transform.markup import parse_xml

from conftest import JATS_ARTICLE


def by_type(models, object_type):
    return [model for model in models if model["objectType"] == object_type]


def one(models, object_type):
    found = by_type(models, object_type)
    assert len(found) == 1, object_type
    return found[0]


@pytest.fixture
def imported(jats_document):
    return parse_jats_article(jats_document)


# ── article ──


def test_manuscript_and_keywords(imported):
    manuscript = one(imported, "MPManuscript")
    assert manuscript["title"] == "An <b>imported</b> article"

    keywords = by_type(imported, "MPKeyword")
    assert [keyword["name"] for keyword in keywords] == ["alpha", "beta"]
    assert [keyword["priority"] for keyword in keywords] == [1, 2]
    assert manuscript["keywordIDs"] == [keyword["_id"] for keyword in keywords]


def test_journal(imported):
    journal = one(imported, "MPJournal")
    assert journal["title"] == "Journal of Tests"
    assert journal["publisherName"] == "Test Press"
    assert journal["issns"] == [{"type": "epub", "value": "1234-5678"}]


def test_contributor_and_affiliation(imported):
    affiliation = one(imported, "MPAffiliation")
    assert affiliation["institution"] == "University of Testing"
    assert affiliation["department"] == "Physics"
    assert affiliation["city"] == "Sofia"
    assert affiliation["country"] == "Bulgaria"

    contributor = one(imported, "MPContributor")
    assert contributor["bibliographicName"]["given"] == "Jane"
    assert contributor["bibliographicName"]["family"] == "Doe"
    assert contributor["isCorresponding"] is True
    assert contributor["email"] == "jane@example.com"
    assert contributor["affiliations"] == [affiliation["_id"]]


def test_bibliography_item(imported):
    item = one(imported, "MPBibliographyItem")
    assert item["type"] == "book"
    assert item["title"] == "A book"
    assert item["container-title"] == "Press"
    assert item["page"] == "10-20"
    assert item["issued"]["date-parts"] == [[2019, 5]]
    assert item["author"][0]["family"] == "Smith"
    assert item["author"][0]["given"] == "Ann"


def test_citation_points_at_bibliography_item(imported):
    item = one(imported, "MPBibliographyItem")
    citation = one(imported, "MPCitation")
    assert [entry["bibliographyItem"] for entry in citation["embeddedCitationItems"]] == [
        item["_id"]
    ]

    paragraphs = by_type(imported, "MPParagraphElement")
    assert any(citation["_id"] in paragraph["contents"] for paragraph in paragraphs)


def test_cross_reference_points_at_imported_figure(imported):
    reference = one(imported, "MPAuxiliaryObjectReference")
    figure_ids = {model["_id"] for model in by_type(imported, "MPFigure")}
    assert reference["referencedObject"] in figure_ids


def test_sections(imported):
    sections = sorted(by_type(imported, "MPSection"), key=lambda section: section["priority"])
    assert [section["title"] for section in sections] == ["Abstract", "Introduction", "References"]
    assert [section.get("category") for section in sections] == [
        "MPSectionCategory:abstract",
        "MPSectionCategory:introduction",
        "MPSectionCategory:bibliography",
    ]


def test_figure_element(imported):
    figure_element = one(imported, "MPFigureElement")
    figure = one(imported, "MPFigure")
    assert figure_element["caption"] == "A caption"
    assert figure_element["containedObjectIDs"] == [figure["_id"]]
    assert figure["contentType"] == "image/png"


def test_ids_are_model_ids(imported):
    assert all(":" in model["_id"] for model in imported)
    assert len({model["_id"] for model in imported}) == len(imported)


# ── errors ──


def test_duplicate_ids():
    doc = parse_xml(
        '<article><body><sec id="dup"><title>A</title></sec>'
        '<sec id="dup"><title>B</title></sec></body></article>'
    )
    with pytest.raises(DuplicateIDError, match="dup"):
        parse_jats_body(doc)


def test_missing_body():
    with pytest.raises(MissingElementError):
        parse_jats_body(parse_xml("<article><front/></article>"))


def test_missing_front():
    with pytest.raises(MissingElementError):
        parse_jats_front(parse_xml("<article><body/></article>"), add_model_to_map({}))


# ── fixups ──


def test_ensure_section():
    doc = parse_xml("<article><body><p>Loose</p></body></article>")
    ensure_section(doc.body)
    assert doc.body.sec.p.get_text() == "Loose"


def test_ensure_section_keeps_sections():
    doc = parse_xml("<article><body><sec><p>x</p></sec></body></article>")
    ensure_section(doc.body)
    assert len(doc.body.find_all("sec")) == 1


def test_move_sections_to_body():
    doc = parse_xml(
        "<article><front><article-meta><abstract><p>A</p></abstract></article-meta></front>"
        "<body><sec><title>Main</title></sec></body>"
        "<back><ack><p>Thanks</p></ack><ref-list><ref id='r'/></ref-list></back></article>"
    )
    move_sections_to_body(doc)
    sections = doc.body.find_all("sec", recursive=False)
    assert [section.get("sec-type") for section in sections] == [
        "abstract",
        None,
        "acknowledgments",
        "bibliography",
    ]
    assert sections[2].title.get_text() == "Acknowledgements"
    assert sections[3].title.get_text() == "Bibliography"
    assert doc.find("abstract") is None
    assert doc.back.find("ref-list") is not None


def test_wrap_figures_splits_graphics():
    doc = parse_xml(
        "<article><body><sec>"
        "<fig id='f'><caption><p>Both</p></caption><graphic/><graphic/></fig>"
        "<fig fig-type='equation'/>"
        "</sec></body></article>"
    )
    wrap_figures(doc.body)
    group = doc.find("fig-group")
    assert group.caption.get_text() == "Both"
    assert len(group.find_all("fig")) == 2
    assert doc.find("fig", attrs={"fig-type": "equation"}).parent.name == "sec"


def test_captions_move_to_end_without_paragraphs():
    doc = parse_xml(
        "<article><body><table-wrap><caption><p>Cap</p></caption><table/></table-wrap></body></article>"
    )
    move_captions_to_end(doc.body)
    unwrap_paragraphs_in_captions(doc.body)
    children = doc.find("table-wrap").find_all(True, recursive=False)
    assert [child.name for child in children] == ["table", "caption"]
    assert doc.caption.find("p") is None
    assert doc.caption.get_text() == "Cap"


# ── helpers ──


def test_html_from_jats_node():
    doc = parse_xml("<title>H<sub>2</sub>O <bold>and <italic>more</italic></bold><xref>x</xref></title>")
    assert html_from_jats_node(doc.title) == "H<sub>2</sub>O <b>and <i>more</i></b>x"
    assert html_from_jats_node(None) is None


def test_choose_content_type():
    doc = parse_xml(
        '<fig xmlns:xlink="http://www.w3.org/1999/xlink">'
        '<graphic mimetype="image" mime-subtype="tiff"/>'
        '<graphic xlink:href="a.jpg"/></fig>'
    )
    first, second = doc.find_all("graphic")
    assert choose_content_type(first) == "image/tiff"
    assert choose_content_type(second) == "image/jpeg"
    assert choose_content_type(None) is None


def test_choose_bundle():
    issns = [{"type": "ppub", "value": "0000-0000"}, {"type": "epub", "value": "1234-567x"}]
    assert choose_bundle(issns, {"1234567X": "MPBundle:b"}) == "MPBundle:b"
    assert choose_bundle(issns, {}) is None


def test_front_copies_journal_bundle(jats_document):
    bundles = {
        "MPBundle:journal": {"_id": "MPBundle:journal", "objectType": "MPBundle", "csl": {}},
    }
    model_map = {}
    parse_jats_front(jats_document, add_model_to_map(model_map), {"12345678": "MPBundle:journal"}, bundles)

    manuscript = next(m for m in model_map.values() if m["objectType"] == "MPManuscript")
    bundle = model_map[manuscript["bundle"]]
    assert bundle["prototype"] == "MPBundle:journal"


def test_cross_references_outside_body_are_rewritten():
    xml = JATS_ARTICLE.replace(
        "<p>Short abstract.</p>",
        '<p>Short abstract, see <xref ref-type="fig" rid="fig1">Figure 1</xref>.</p>',
    ).replace(
        "<ref-list>",
        '<ack><p>Thanks to <xref ref-type="bibr" rid="ref1">[1]</xref>.</p></ack><ref-list>',
    )
    models = parse_jats_article(parse_xml(xml))

    figure_ids = {model["_id"] for model in by_type(models, "MPFigure")}
    references = by_type(models, "MPAuxiliaryObjectReference")
    assert len(references) == 2
    assert all(reference["referencedObject"] in figure_ids for reference in references)

    item = one(models, "MPBibliographyItem")
    citations = by_type(models, "MPCitation")
    assert len(citations) == 2
    assert all(
        [entry["bibliographyItem"] for entry in citation["embeddedCitationItems"]] == [item["_id"]]
        for citation in citations
    )

    abstract = next(
        model
        for model in by_type(models, "MPParagraphElement")
        if "Short abstract" in model["contents"]
    )
    assert any(reference["_id"] in abstract["contents"] for reference in references)
