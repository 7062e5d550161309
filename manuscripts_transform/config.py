"""
Configuration for the manuscripts transform package.

Contains the ObjectType enum, section categories, XML namespaces,
JATS/STS document type identifiers and export defaults.
"""

from __future__ import annotations

from enum import Enum


class ObjectType(str, Enum):
    """Every kind of flat model that can appear in a model map.

    The value is also the prefix of the model's ``_id``
    (``"MPSection:8C3B…"``).
    """

    # --- Containers ---
    PROJECT = "MPProject"
    MANUSCRIPT = "MPManuscript"
    BUNDLE = "MPBundle"
    SUBMISSION = "MPSubmission"
    JOURNAL = "MPJournal"

    # --- Sections and elements ---
    SECTION = "MPSection"
    SECTION_CATEGORY = "MPSectionCategory"
    PARAGRAPH_ELEMENT = "MPParagraphElement"
    LIST_ELEMENT = "MPListElement"
    QUOTE_ELEMENT = "MPQuoteElement"
    FIGURE_ELEMENT = "MPFigureElement"
    TABLE_ELEMENT = "MPTableElement"
    EQUATION_ELEMENT = "MPEquationElement"
    LISTING_ELEMENT = "MPListingElement"
    BIBLIOGRAPHY_ELEMENT = "MPBibliographyElement"
    KEYWORDS_ELEMENT = "MPKeywordsElement"
    TOC_ELEMENT = "MPTOCElement"
    FOOTNOTES_ELEMENT = "MPFootnotesElement"
    PLACEHOLDER_ELEMENT = "MPPlaceholderElement"

    # --- Contained objects ---
    FIGURE = "MPFigure"
    TABLE = "MPTable"
    EQUATION = "MPEquation"
    LISTING = "MPListing"
    FOOTNOTE = "MPFootnote"
    INLINE_MATH_FRAGMENT = "MPInlineMathFragment"

    # --- References and annotations ---
    CITATION = "MPCitation"
    CITATION_ITEM = "MPCitationItem"
    AUXILIARY_OBJECT_REFERENCE = "MPAuxiliaryObjectReference"
    HIGHLIGHT = "MPHighlight"
    HIGHLIGHT_MARKER = "MPHighlightMarker"
    COMMENT_ANNOTATION = "MPCommentAnnotation"

    # --- Bibliography ---
    BIBLIOGRAPHY_ITEM = "MPBibliographyItem"
    BIBLIOGRAPHIC_NAME = "MPBibliographicName"
    BIBLIOGRAPHIC_DATE = "MPBibliographicDate"

    # --- People ---
    CONTRIBUTOR = "MPContributor"
    CONTRIBUTOR_ROLE = "MPContributorRole"
    AFFILIATION = "MPAffiliation"
    USER_PROFILE = "MPUserProfile"
    USER_PROFILE_AFFILIATION = "MPUserProfileAffiliation"

    # --- Keywords and styles ---
    KEYWORD = "MPKeyword"
    PAGE_LAYOUT = "MPPageLayout"
    PARAGRAPH_STYLE = "MPParagraphStyle"
    FIGURE_STYLE = "MPFigureStyle"
    TABLE_STYLE = "MPTableStyle"
    INLINE_STYLE = "MPInlineStyle"


# ---------------------------------------------------------------------------
# Section categories
# ---------------------------------------------------------------------------

SECTION_CATEGORY_PREFIX = "MPSectionCategory:"

SECTION_CATEGORIES: list[str] = [
    "abstract",
    "acknowledgment",
    "availability",
    "bibliography",
    "conclusions",
    "discussion",
    "introduction",
    "keywords",
    "materials-method",
    "results",
    "toc",
]

# sec-type attribute value → category suffix
SEC_TYPE_CATEGORIES: dict[str, str] = {
    "abstract": "abstract",
    "acknowledgments": "acknowledgment",
    "availability": "availability",
    "bibliography": "bibliography",
    "conclusions": "conclusions",
    "discussion": "discussion",
    "intro": "introduction",
    "keywords": "keywords",
    "materials": "materials-method",
    "methods": "materials-method",
    "results": "results",
    "toc": "toc",
}

# Lower-cased section title → category suffix
SECTION_TITLE_CATEGORIES: dict[str, str] = {
    "abstract": "abstract",
    "acknowledgement": "acknowledgment",
    "acknowledgements": "acknowledgment",
    "acknowledgment": "acknowledgment",
    "acknowledgments": "acknowledgment",
    "availability": "availability",
    "bibliography": "bibliography",
    "references": "bibliography",
    "conclusion": "conclusions",
    "conclusions": "conclusions",
    "discussion": "discussion",
    "introduction": "introduction",
    "keywords": "keywords",
    "materials & methods": "materials-method",
    "materials and methods": "materials-method",
    "methods": "materials-method",
    "results": "results",
    "contents": "toc",
    "table of contents": "toc",
}

# Category suffix → sec-type where the two differ
CATEGORY_SEC_TYPES: dict[str, str] = {
    "materials-method": "methods",
    "introduction": "intro",
    "acknowledgment": "acknowledgments",
}


# ---------------------------------------------------------------------------
# Namespaces
# ---------------------------------------------------------------------------

XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"
MATHML_NAMESPACE = "http://www.w3.org/1998/Math/MathML"
TEI_NAMESPACE = "http://www.tei-c.org/ns/1.0"

CREDIT_VOCAB_IDENTIFIER = "https://dictionary.casrai.org/Contributor_Roles"


# ---------------------------------------------------------------------------
# Document type identifiers
# ---------------------------------------------------------------------------

JATS_VERSIONS: dict[str, dict[str, str]] = {
    "1.1": {
        "publicId": "-//NLM//DTD JATS (Z39.96) Journal Archiving and "
        "Interchange DTD with OASIS Tables with MathML3 v1.1 20151215//EN",
        "systemId": "http://jats.nlm.nih.gov/archiving/1.1/"
        "JATS-archive-oasis-article1-mathml3.dtd",
    },
    "1.2d1": {
        "publicId": "-//NLM//DTD JATS (Z39.96) Journal Archiving and "
        "Interchange DTD with OASIS Tables with MathML3 v1.2d1 20170631//EN",
        "systemId": "http://jats.nlm.nih.gov/archiving/1.2d1/"
        "JATS-archive-oasis-article1-mathml3.dtd",
    },
    "1.2": {
        "publicId": "-//NLM//DTD JATS (Z39.96) Journal Archiving and "
        "Interchange DTD with OASIS Tables with MathML3 v1.2 20190208//EN",
        "systemId": "http://jats.nlm.nih.gov/archiving/1.2/"
        "JATS-archive-oasis-article1-mathml3.dtd",
    },
}

DEFAULT_JATS_VERSION = "1.2"

STS_PUBLIC_ID = (
    "-//NISO//DTD NISO STS Extended Tag Set (NISO STS) DTD with OASIS and "
    "XHTML Tables with MathML 2.0 v1.0 20171031//EN"
)
STS_SYSTEM_ID = "NISO-STS-extended-1-mathml2.dtd"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_BUNDLE = "MPBundle:www-zotero-org-styles-nature"
DEFAULT_ATTACHMENT_PREFIX = "Data/"
DEFAULT_PARAGRAPH_STYLE_TITLE = "Body Text"

SNIPPET_LENGTH = 100

# Model fields never carried into a decoded node
VOLATILE_MODEL_FIELDS: tuple[str, ...] = (
    "_rev",
    "_deleted",
    "updatedAt",
    "createdAt",
    "sessionID",
)
