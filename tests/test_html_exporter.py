from manuscripts_transform.html_exporter import (
    HTMLExportOptions,
    HTMLTransformer,
    build_styled_content_class,
)
from manuscripts_transform.markup import parse_html


def export(article, model_map, **options):
    html = HTMLTransformer().serialize_to_html(article, model_map, HTMLExportOptions(**options))
    return html, parse_html(html)


def test_document(article, model_map):
    html, doc = export(article, model_map)
    assert "<!DOCTYPE html>" in html
    assert doc.find("html")["xmlns"] == "http://www.w3.org/1999/xhtml"
    assert doc.find("h1").find("i").get_text() == "study"


def test_contributors_and_affiliations(article, model_map):
    _, doc = export(article, model_map)
    contribs = doc.select("div.contrib-group > span")
    assert [contrib["id"] for contrib in contribs] == ["MPContributor:C1", "MPContributor:C2"]
    assert contribs[0]["data-corresp"] == "yes"
    assert contribs[0].select_one(".contrib-name").get_text() == "Jane Doe"

    items = doc.select("ol.affiliations-list > li.affiliations-list-item")
    assert [item.get_text() for item in items] == ["University of Testing", "Example Lab"]


def test_body_references(article, model_map):
    _, doc = export(article, model_map)
    body = doc.find("div", class_="manuscript-body")
    citation = body.find("span", class_="citation")
    assert citation["data-reference-ids"] == "MPBibliographyItem:B1"
    assert citation.get_text() == "[1]"
    link = body.find("a", class_="cross-reference")
    assert link["href"] == "#MPFigureElement:FIGEL1"
    assert link.get_text() == "Figure 1"

    listing = body.find("pre", id="MPListing:L1")
    assert listing.code["data-language"] == "python"
    assert listing.get_text() == "print(1)"


def test_figure_images(article, model_map):
    _, doc = export(article, model_map)
    assert doc.find(id="MPFigure:F1").find("img")["src"] == "Data/MPFigure_F1.png"

    _, doc = export(article, model_map, attachment_url_prefix="https://cdn.example.org/")
    assert doc.find(id="MPFigure:F1").find("img")["src"] == (
        "https://cdn.example.org/MPFigure_F1.png"
    )


def test_licensed_figure(article, model_map):
    model_map["MPFigure:F1"]["attribution"] = {"licenseID": "MPLicense:cc-by"}
    _, doc = export(article, model_map)
    assert doc.find(id="MPFigure:F1").find("img")["data-licensed"] == "true"


def test_styled_content_class():
    assert build_styled_content_class(None) == "styled-content"
    assert build_styled_content_class({"title": "Red Text"}) == "styled-content red-text"
