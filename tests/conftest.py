"""
Shared fixtures: a small project with one manuscript, built in code.

The manuscript has an abstract, an introduction holding one element of
every contained-object kind, a nested subsection with a footnote, an
acknowledgments section and a bibliography.
"""

from __future__ import annotations

import copy

import pytest

from manuscripts_transform.decode import decode
from manuscripts_transform.markup import parse_xml

MANUSCRIPT_ID = "MPManuscript:M1"

ABSTRACT_PARAGRAPH = (
    '<p id="MPParagraphElement:PABS" class="MPElement" '
    'data-object-type="MPParagraphElement">This is the abstract.</p>'
)

INTRO_PARAGRAPH = (
    '<p id="MPParagraphElement:P1" class="MPElement" data-object-type="MPParagraphElement">'
    'See <span class="citation" data-reference-id="MPCitation:CIT1">[1]</span> and '
    '<span class="cross-reference" data-reference-id="MPAuxiliaryObjectReference:X1">'
    "Figure 1</span>.</p>"
)

TABLE_CONTENTS = (
    '<table id="MPTable:T1"><tbody>'
    "<tr><td>Header</td></tr>"
    "<tr><td>a</td></tr>"
    "<tr><td>b</td></tr>"
    "<tr><td>c</td></tr>"
    "<tr><td>Footer</td></tr>"
    "</tbody></table>"
)


def _section(identifier, title, priority, path, element_ids, category=None):
    section = {
        "_id": identifier,
        "objectType": "MPSection",
        "manuscriptID": MANUSCRIPT_ID,
        "title": title,
        "priority": priority,
        "path": path,
        "elementIDs": element_ids,
    }
    if category:
        section["category"] = f"MPSectionCategory:{category}"
    return section


def _models():
    m = MANUSCRIPT_ID
    models = [
        {
            "_id": m,
            "objectType": "MPManuscript",
            "title": "A <i>study</i> of things",
            "keywordIDs": ["MPKeyword:K1"],
        },
        {"_id": "MPKeyword:K1", "objectType": "MPKeyword", "name": "transformation"},
        {
            "_id": "MPContributor:C1",
            "objectType": "MPContributor",
            "manuscriptID": m,
            "role": "author",
            "priority": 0,
            "isCorresponding": True,
            "email": "jane@example.com",
            "bibliographicName": {"given": "Jane", "family": "Doe"},
            "affiliations": ["MPAffiliation:A1"],
        },
        {
            "_id": "MPContributor:C2",
            "objectType": "MPContributor",
            "manuscriptID": m,
            "role": "author",
            "priority": 1,
            "bibliographicName": {"given": "Ali", "family": "Khan"},
            "affiliations": ["MPAffiliation:A1", "MPAffiliation:A2"],
        },
        {
            "_id": "MPAffiliation:A1",
            "objectType": "MPAffiliation",
            "manuscriptID": m,
            "institution": "University of Testing",
            "city": "Sofia",
            "country": "Bulgaria",
        },
        {
            "_id": "MPAffiliation:A2",
            "objectType": "MPAffiliation",
            "manuscriptID": m,
            "institution": "Example Lab",
        },
        {
            "_id": "MPSubmission:S1",
            "objectType": "MPSubmission",
            "manuscriptID": m,
            "journalCode": "JT",
            "journalTitle": "Journal of Tests",
            "issn": "1234-5678",
            "createdAt": 2,
        },
        # sections
        _section("MPSection:ABS", "Abstract", 1, ["MPSection:ABS"],
                 ["MPParagraphElement:PABS"], "abstract"),
        _section(
            "MPSection:INTRO",
            "Introduction",
            2,
            ["MPSection:INTRO"],
            [
                "MPParagraphElement:P1",
                "MPFigureElement:FIGEL1",
                "MPTableElement:TABEL1",
                "MPEquationElement:EQEL1",
                "MPListingElement:LISTEL1",
            ],
            "introduction",
        ),
        _section("MPSection:SUB", "Details", 3, ["MPSection:INTRO", "MPSection:SUB"],
                 ["MPParagraphElement:P2", "MPFootnotesElement:FNEL"]),
        _section("MPSection:ACK", "Acknowledgments", 4, ["MPSection:ACK"],
                 ["MPParagraphElement:P3"], "acknowledgment"),
        _section("MPSection:BIB", "Bibliography", 5, ["MPSection:BIB"],
                 ["MPBibliographyElement:BIBEL"], "bibliography"),
        # elements
        {
            "_id": "MPParagraphElement:PABS",
            "objectType": "MPParagraphElement",
            "manuscriptID": m,
            "elementType": "p",
            "contents": ABSTRACT_PARAGRAPH,
        },
        {
            "_id": "MPParagraphElement:P1",
            "objectType": "MPParagraphElement",
            "manuscriptID": m,
            "elementType": "p",
            "contents": INTRO_PARAGRAPH,
        },
        {
            "_id": "MPParagraphElement:P2",
            "objectType": "MPParagraphElement",
            "manuscriptID": m,
            "elementType": "p",
            "contents": (
                '<p id="MPParagraphElement:P2">More details'
                '<span class="footnote" data-reference-id="MPFootnote:FN1">1</span></p>'
            ),
        },
        {
            "_id": "MPParagraphElement:P3",
            "objectType": "MPParagraphElement",
            "manuscriptID": m,
            "elementType": "p",
            "contents": '<p id="MPParagraphElement:P3">Thanks to everyone.</p>',
        },
        {
            "_id": "MPFigureElement:FIGEL1",
            "objectType": "MPFigureElement",
            "manuscriptID": m,
            "elementType": "figure",
            "containedObjectIDs": ["MPFigure:F1"],
            "caption": "The figure caption",
        },
        {
            "_id": "MPFigure:F1",
            "objectType": "MPFigure",
            "manuscriptID": m,
            "contentType": "image/png",
        },
        {
            "_id": "MPTableElement:TABEL1",
            "objectType": "MPTableElement",
            "manuscriptID": m,
            "elementType": "table",
            "containedObjectID": "MPTable:T1",
            "caption": "Results table",
            "suppressFooter": True,
        },
        {
            "_id": "MPTable:T1",
            "objectType": "MPTable",
            "manuscriptID": m,
            "contents": TABLE_CONTENTS,
        },
        {
            "_id": "MPEquationElement:EQEL1",
            "objectType": "MPEquationElement",
            "manuscriptID": m,
            "elementType": "p",
            "containedObjectID": "MPEquation:E1",
        },
        {
            "_id": "MPEquation:E1",
            "objectType": "MPEquation",
            "manuscriptID": m,
            "TeXRepresentation": "E=mc^2",
            "SVGStringRepresentation": "<svg></svg>",
        },
        {
            "_id": "MPListingElement:LISTEL1",
            "objectType": "MPListingElement",
            "manuscriptID": m,
            "elementType": "figure",
            "containedObjectID": "MPListing:L1",
            "caption": "Code",
        },
        {
            "_id": "MPListing:L1",
            "objectType": "MPListing",
            "manuscriptID": m,
            "contents": "print(1)",
            "language": "python",
            "languageKey": "python",
        },
        {
            "_id": "MPFootnotesElement:FNEL",
            "objectType": "MPFootnotesElement",
            "manuscriptID": m,
            "contents": '<div class="footnotes" id="MPFootnotesElement:FNEL"></div>',
        },
        {
            "_id": "MPFootnote:FN1",
            "objectType": "MPFootnote",
            "manuscriptID": m,
            "containingObject": "MPParagraphElement:P2",
            "contents": "<p>A footnote.</p>",
        },
        {
            "_id": "MPBibliographyElement:BIBEL",
            "objectType": "MPBibliographyElement",
            "manuscriptID": m,
            "elementType": "div",
            "contents": '<div class="csl-bib-body" id="MPBibliographyElement:BIBEL"></div>',
        },
        # references
        {
            "_id": "MPCitation:CIT1",
            "objectType": "MPCitation",
            "manuscriptID": m,
            "containingObject": "MPParagraphElement:P1",
            "embeddedCitationItems": [
                {
                    "_id": "MPCitationItem:CI1",
                    "objectType": "MPCitationItem",
                    "bibliographyItem": "MPBibliographyItem:B1",
                }
            ],
        },
        {
            "_id": "MPBibliographyItem:B1",
            "objectType": "MPBibliographyItem",
            "manuscriptID": m,
            "type": "article-journal",
            "title": "Referenced work",
            "author": [{"given": "Ann", "family": "Smith"}],
            "issued": {"date-parts": [[2019, 5]]},
            "container-title": "Journal of Examples",
            "volume": "3",
            "page": "10-20",
            "DOI": "10.1000/example",
        },
        {
            "_id": "MPAuxiliaryObjectReference:X1",
            "objectType": "MPAuxiliaryObjectReference",
            "manuscriptID": m,
            "containingObject": "MPParagraphElement:P1",
            "referencedObject": "MPFigureElement:FIGEL1",
        },
    ]
    return models


@pytest.fixture
def models():
    return copy.deepcopy(_models())


@pytest.fixture
def model_map(models):
    return {model["_id"]: model for model in models}


@pytest.fixture
def bundle(models):
    return {"version": "2.0", "data": models}


@pytest.fixture
def article(model_map):
    return decode(model_map, MANUSCRIPT_ID)


JATS_ARTICLE = """<?xml version="1.0" encoding="UTF-8"?>
<article xmlns:xlink="http://www.w3.org/1999/xlink">
  <front>
    <journal-meta>
      <journal-id journal-id-type="publisher-id">JT</journal-id>
      <journal-title-group>
        <journal-title>Journal of Tests</journal-title>
        <abbrev-journal-title abbrev-type="pubmed">J Tests</abbrev-journal-title>
      </journal-title-group>
      <issn pub-type="epub">1234-5678</issn>
      <publisher><publisher-name>Test Press</publisher-name></publisher>
    </journal-meta>
    <article-meta>
      <title-group>
        <article-title>An <bold>imported</bold> article</article-title>
      </title-group>
      <contrib-group>
        <contrib contrib-type="author" corresp="yes">
          <name><surname>Doe</surname><given-names>Jane</given-names></name>
          <email>jane@example.com</email>
          <xref ref-type="aff" rid="aff1"/>
        </contrib>
        <aff id="aff1">
          <institution content-type="dept">Physics</institution>
          <institution>University of Testing</institution>
          <city>Sofia</city>
          <country>Bulgaria</country>
        </aff>
      </contrib-group>
      <kwd-group kwd-group-type="author">
        <kwd>alpha</kwd>
        <kwd>beta</kwd>
      </kwd-group>
      <abstract><p>Short abstract.</p></abstract>
    </article-meta>
  </front>
  <body>
    <sec id="sec1">
      <title>Introduction</title>
      <p>See <xref ref-type="bibr" rid="ref1">[1]</xref> and <xref ref-type="fig" rid="fig1">Figure 1</xref>.</p>
      <fig id="fig1">
        <label>Figure 1</label>
        <caption><p>A caption</p></caption>
        <graphic xlink:href="fig1.png"/>
      </fig>
    </sec>
  </body>
  <back>
    <ref-list>
      <title>References</title>
      <ref id="ref1">
        <element-citation publication-type="book">
          <person-group person-group-type="author">
            <name><surname>Smith</surname><given-names>Ann</given-names></name>
          </person-group>
          <article-title>A book</article-title>
          <source>Press</source>
          <year>2019</year>
          <month>05</month>
          <fpage>10</fpage>
          <lpage>20</lpage>
        </element-citation>
      </ref>
    </ref-list>
  </back>
</article>
"""


@pytest.fixture
def jats_document():
    return parse_xml(JATS_ARTICLE)


# ── Encoder-canonical project ─────────────────────────────────────────────
#
# Every model below is stored exactly as the encoder writes it: split
# table rows, empty placeholders, attributes in serialization order and
# highlight markers cut out of the HTML.

CANONICAL_PARAGRAPH = (
    '<p id="MPParagraphElement:CP1" class="MPElement" data-object-type="MPParagraphElement">'
    'Hello <i>world</i> and <span class="citation" data-reference-id="MPCitation:CC1">[1]</span>.</p>'
)

CANONICAL_TABLE = (
    '<table id="MPTableElement:CTE1" class="MPElement" data-contained-object-id="MPTable:CT1">'
    '<thead style="display: table-header-group;"><tr><th>Name</th><th>Value</th></tr></thead>'
    "<tbody><tr><td>a</td><td>1</td></tr></tbody>"
    '<tfoot style="display: table-footer-group;"><tr><td>Total</td><td>1</td></tr></tfoot>'
    "</table>"
)


def _canonical_models():
    m = MANUSCRIPT_ID
    return [
        {"_id": m, "objectType": "MPManuscript", "title": "Canonical"},
        {
            "_id": "MPSection:CS1",
            "objectType": "MPSection",
            "manuscriptID": m,
            "category": "MPSectionCategory:introduction",
            "priority": 1,
            "title": "Introduction",
            "path": ["MPSection:CS1"],
            "elementIDs": [
                "MPParagraphElement:CP1",
                "MPFigureElement:CFE1",
                "MPTableElement:CTE1",
                "MPEquationElement:CEE1",
            ],
        },
        {
            "_id": "MPSection:CS2",
            "objectType": "MPSection",
            "manuscriptID": m,
            "category": "MPSectionCategory:methods",
            "priority": 2,
            "title": "Methods",
            "path": ["MPSection:CS1", "MPSection:CS2"],
            "elementIDs": [],
        },
        {
            "_id": "MPParagraphElement:CP1",
            "objectType": "MPParagraphElement",
            "manuscriptID": m,
            "elementType": "p",
            "contents": CANONICAL_PARAGRAPH,
            "placeholderInnerHTML": "",
            "highlightMarkers": [
                {
                    "_id": "MPHighlightMarker:CH1",
                    "objectType": "MPHighlightMarker",
                    "highlightID": "MPHighlight:CH",
                    "field": "contents",
                    "start": True,
                    "offset": CANONICAL_PARAGRAPH.index("<i>"),
                }
            ],
        },
        {
            "_id": "MPFigureElement:CFE1",
            "objectType": "MPFigureElement",
            "manuscriptID": m,
            "elementType": "figure",
            "containedObjectIDs": ["MPFigure:CF1"],
            "caption": "A <i>caption</i>",
        },
        {
            "_id": "MPFigure:CF1",
            "objectType": "MPFigure",
            "manuscriptID": m,
            "contentType": "image/png",
        },
        {
            "_id": "MPTableElement:CTE1",
            "objectType": "MPTableElement",
            "manuscriptID": m,
            "elementType": "table",
            "containedObjectID": "MPTable:CT1",
            "caption": "Results",
        },
        {
            "_id": "MPTable:CT1",
            "objectType": "MPTable",
            "manuscriptID": m,
            "contents": CANONICAL_TABLE,
        },
        {
            "_id": "MPEquationElement:CEE1",
            "objectType": "MPEquationElement",
            "manuscriptID": m,
            "elementType": "p",
            "containedObjectID": "MPEquation:CE1",
            "caption": "",
        },
        {
            "_id": "MPEquation:CE1",
            "objectType": "MPEquation",
            "manuscriptID": m,
            "TeXRepresentation": "x^2",
            "SVGStringRepresentation": "<svg></svg>",
        },
    ]


@pytest.fixture
def canonical_model_map():
    return {model["_id"]: model for model in copy.deepcopy(_canonical_models())}
