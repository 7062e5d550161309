"""
JATS import.

``parse_jats_article`` reads a JATS document into a list of models: the
manuscript, journal, keywords, affiliations and contributors from
``<front>``; bibliography items, citations and cross-reference targets
from ``<back>``; the content models encoded from ``<body>``.

The body is first normalized in place so that it parses through a single
section grammar:

1. ``ensure_section`` wraps stray body content in a ``<sec>``.
2. ``move_sections_to_body`` turns ``<abstract>``, ``<ack>``, back
   sections and ``<ref-list>`` into body sections.
3. ``wrap_figures`` puts bare figures into ``<fig-group>`` elements, one
   sub-figure per graphic.
4. ``move_captions_to_end`` and ``unwrap_paragraphs_in_captions`` shape
   captions the way the element content expressions expect them.

Each fixup leaves an already normalized document unchanged.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from typing import Any, Callable

from bs4 import BeautifulSoup, NavigableString, Tag

from manuscripts_transform.builders import (
    add_model_to_map,
    build_affiliation,
    build_auxiliary_object_reference,
    build_bibliographic_date,
    build_bibliographic_name,
    build_bibliography_item,
    build_citation,
    build_contributor,
    build_journal,
    build_keyword,
    build_manuscript,
)
from manuscripts_transform.config import ObjectType
from manuscripts_transform.encode import encode
from manuscripts_transform.errors import DuplicateIDError, MissingElementError
from manuscripts_transform.ids import generate_id
from manuscripts_transform.jats_journal_meta import TypedValue, parse_journal_meta
from manuscripts_transform.manuscript_dependencies import create_new_bundle, create_parent_bundle
from manuscripts_transform.markup import is_text_node, new_html_document
from manuscripts_transform.node_types import NODE_TYPES_MAP
from manuscripts_transform.object_types import has_object_type
from manuscripts_transform.schema import DOMParser, Node, ParseRule, schema
from manuscripts_transform.section_category import choose_section_category

logger = logging.getLogger(__name__)

Model = dict[str, Any]
AddModel = Callable[[Model], Model]

is_auxiliary_object_reference = has_object_type(ObjectType.AUXILIARY_OBJECT_REFERENCE)

_ISSN_RE = re.compile(r"[^0-9X]")

# Cross-references in every part of the article that becomes a body section
_XREF_SELECTOR = "body xref, article-meta > abstract xref, back > ack xref, back > sec xref"

_ELEMENT_CONTEXTS = "figure_element/ | table_element/ | equation_element/ | listing_element/"


# ── Parse rules ───────────────────────────────────────────────────────────


def _id_attrs(element: Tag) -> dict[str, Any]:
    return {"id": element.get("id")}


def _tex_math_attrs(element: Tag) -> dict[str, Any]:
    tex_math = element.find("tex-math")
    return {
        "id": element.get("id"),
        "TeXRepresentation": tex_math.get_text().strip() if tex_math is not None else "",
    }


def choose_content_type(graphic: Tag | None) -> str | None:
    """MIME type of a ``<graphic>``, from its attributes or its file name."""
    if graphic is None:
        return None
    mimetype = graphic.get("mimetype")
    subtype = graphic.get("mime-subtype")
    if mimetype and subtype:
        return f"{mimetype}/{subtype}"
    href = graphic.get("xlink:href")
    if href:
        return mimetypes.guess_type(href)[0]
    return None


def _figure_attrs(element: Tag) -> dict[str, Any]:
    label = element.find("label")
    graphic = element.find("graphic")
    media = element.find("media")
    return {
        "id": element.get("id"),
        "label": label.get_text().strip() if label is not None else "",
        "contentType": choose_content_type(graphic) or "",
        "originalURL": graphic.get("xlink:href") if graphic is not None else "",
        "embedURL": media.get("xlink:href") if media is not None else None,
    }


def _listing_attrs(element: Tag) -> dict[str, Any]:
    language = element.get("language") or ""
    return {
        "id": element.get("id"),
        "language": language,
        "languageKey": language or "null",
        "contents": element.get_text().strip(),
    }


MARK_RULES = [
    ParseRule(tag="bold", mark="bold"),
    ParseRule(tag="code", mark="code"),
    ParseRule(tag="italic", mark="italic"),
    ParseRule(tag="sc", mark="smallcaps"),
    ParseRule(tag="strike", mark="strikethrough"),
    ParseRule(
        tag="styled-content",
        mark="styled",
        get_attrs=lambda element: {"style": element.get("style")},
    ),
    ParseRule(tag="sub", mark="subscript"),
    ParseRule(tag="sup", mark="superscript"),
    ParseRule(tag="underline", mark="underline"),
]

NODE_RULES = [
    ParseRule(tag="attrib", node="attribution"),
    ParseRule(tag="back", ignore=True),
    ParseRule(tag="body", node="manuscript"),
    ParseRule(tag="break", node="hard_break"),
    ParseRule(tag="caption", node="figcaption", context=f"figure/ | {_ELEMENT_CONTEXTS}"),
    ParseRule(tag="disp-formula", node="equation", get_attrs=_tex_math_attrs),
    ParseRule(
        tag="disp-quote[content-type=quote]", node="blockquote_element", get_attrs=_id_attrs
    ),
    ParseRule(
        tag="disp-quote[content-type=pullquote]", node="pullquote_element", get_attrs=_id_attrs
    ),
    ParseRule(
        tag="ext-link",
        node="link",
        get_attrs=lambda element: {
            "href": element.get("xlink:href") or "",
            "title": element.get("xlink:title") or "",
        },
    ),
    ParseRule(tag="fig[fig-type=equation]", node="equation_element", get_attrs=_id_attrs),
    ParseRule(tag="fig[fig-type=listing]", node="listing_element", get_attrs=_id_attrs),
    ParseRule(tag="fig", node="figure", context="figure_element/", get_attrs=_figure_attrs),
    ParseRule(tag="fig-group", node="figure_element", get_attrs=_id_attrs),
    ParseRule(
        tag="fn",
        node="footnote",
        get_attrs=lambda element: {"id": element.get("id"), "contents": element.get_text()},
    ),
    ParseRule(tag="front", ignore=True),
    ParseRule(tag="inline-formula", node="inline_equation", get_attrs=_tex_math_attrs),
    ParseRule(tag="list[list-type=bullet]", node="bullet_list", get_attrs=_id_attrs),
    ParseRule(tag="list[list-type=order]", node="ordered_list", get_attrs=_id_attrs),
    ParseRule(tag="list-item", node="list_item"),
    ParseRule(tag="p", node="paragraph", context="section/", get_attrs=_id_attrs),
    ParseRule(tag="p", node="paragraph"),
    ParseRule(
        tag="sec",
        node="section",
        get_attrs=lambda element: {
            "id": element.get("id"),
            "category": choose_section_category(element),
        },
    ),
    ParseRule(tag="label", context=f"section/ | figure/ | {_ELEMENT_CONTEXTS}", ignore=True),
    ParseRule(tag="table", node="table", get_attrs=_id_attrs),
    ParseRule(tag="table-wrap", node="table_element", get_attrs=_id_attrs),
    ParseRule(tag="tbody", skip=True),
    ParseRule(tag="tfoot", skip=True),
    ParseRule(tag="thead", skip=True),
    ParseRule(tag="title", node="section_title", context="section/"),
    ParseRule(tag="tr", node="table_row"),
    ParseRule(tag="td", node="table_cell"),
    ParseRule(tag="th", node="table_cell"),
    ParseRule(
        tag='xref[ref-type="bibr"]',
        node="citation",
        get_attrs=lambda element: {"rid": element.get("rid"), "contents": element.get_text()},
    ),
    ParseRule(
        tag="xref",
        node="cross_reference",
        get_attrs=lambda element: {"rid": element.get("rid"), "label": element.get_text()},
    ),
]

# listing code blocks take precedence over the inline code mark
JATS_RULES = [
    ParseRule(tag="code", node="listing", context="listing_element/", get_attrs=_listing_attrs),
    *MARK_RULES,
    *NODE_RULES,
]


# ── DOM fixups ────────────────────────────────────────────────────────────


def _owner_document(element: Tag) -> BeautifulSoup:
    for parent in [element, *element.parents]:
        if isinstance(parent, BeautifulSoup):
            return parent
    raise MissingElementError(f"<{element.name}> is not attached to a document")


def _new_title(doc: BeautifulSoup, text: str) -> Tag:
    title = doc.new_tag("title")
    title.string = text
    return title


def ensure_section(body: Tag) -> None:
    if body.find("sec") is not None:
        return
    section = _owner_document(body).new_tag("sec")
    for child in list(body.contents):
        section.append(child.extract())
    body.append(section)


def move_sections_to_body(doc: BeautifulSoup) -> None:
    body = doc.find("body")
    if body is None:
        return

    abstract = doc.select_one("front > article-meta > abstract")
    if abstract is not None:
        section = doc.new_tag("sec", attrs={"sec-type": "abstract"})
        section.append(_new_title(doc, "Abstract"))
        for child in list(abstract.contents):
            section.append(child.extract())
        abstract.decompose()
        body.insert(0, section)

    for section in doc.select("back > sec"):
        body.append(section.extract())

    ack = doc.select_one("back > ack")
    if ack is not None:
        section = doc.new_tag("sec", attrs={"sec-type": "acknowledgments"})
        title = ack.find("title")
        section.append(title.extract() if title is not None else _new_title(doc, "Acknowledgements"))
        for child in list(ack.contents):
            section.append(child.extract())
        ack.decompose()
        body.append(section)

    ref_list = doc.select_one("back > ref-list")
    if ref_list is not None:
        # the references stay in <back>, where parse_jats_back reads them
        section = doc.new_tag("sec", attrs={"sec-type": "bibliography"})
        title = ref_list.find("title")
        section.append(title.extract() if title is not None else _new_title(doc, "Bibliography"))
        body.append(section)


def wrap_figures(body: Tag) -> None:
    doc = _owner_document(body)

    for figure in body.select("sec > fig"):
        fig_type = figure.get("fig-type")
        if fig_type and fig_type != "figure":
            continue

        figure_group = doc.new_tag("fig-group")
        figure.insert_before(figure_group)

        caption = figure.find("caption")
        if caption is not None:
            figure_group.append(caption.extract())

        graphics = figure.find_all("graphic")
        if len(graphics) > 1:
            figure.extract()
            for graphic in graphics:
                sub_figure = doc.new_tag("fig")
                sub_figure.append(graphic.extract())
                figure_group.append(sub_figure)
        else:
            figure_group.append(figure.extract())


def move_captions_to_end(body: Tag) -> None:
    for caption in body.find_all("caption"):
        parent = caption.parent
        parent.append(caption.extract())


def unwrap_paragraphs_in_captions(body: Tag) -> None:
    for caption in body.find_all("caption"):
        for paragraph in caption.find_all("p"):
            paragraph.unwrap()


def rewrite_ids(output: Node) -> dict[str, str]:
    """Give every id-bearing node a fresh model id and update ``rid`` references.

    Returns the ``old id → new id`` map.
    """
    replacements: dict[str, str] = {}

    for node, _ in output.descendants():
        if "id" not in node.attrs:
            continue
        object_type = NODE_TYPES_MAP.get(node.type)
        if object_type is None:
            continue

        next_id = generate_id(object_type)
        previous_id = node.attrs["id"]
        if previous_id:
            if previous_id in replacements:
                raise DuplicateIDError(previous_id)
            replacements[previous_id] = next_id
        node.attrs["id"] = next_id

    for node, _ in output.descendants():
        rid = node.attrs.get("rid")
        if rid and rid in replacements:
            node.attrs["rid"] = replacements[rid]

    return replacements


def parse_jats_body(doc: BeautifulSoup, replacements: dict[str, str] | None = None) -> Node:
    """Parse ``<body>`` into a ``doc`` node holding one ``manuscript``.

    When *replacements* is given it receives the id map of ``rewrite_ids``.
    """
    body = doc.find("body")
    if body is None:
        raise MissingElementError("No body element found!")

    ensure_section(body)
    move_sections_to_body(doc)
    wrap_figures(body)
    move_captions_to_end(body)
    unwrap_paragraphs_in_captions(body)

    parser = DOMParser(schema, JATS_RULES)
    # parsed from the article so that <body> itself becomes the manuscript
    output = parser.parse(body.parent)

    found = rewrite_ids(output)
    logger.debug("Rewrote %d body ids", len(found))
    if replacements is not None:
        replacements.update(found)
    return output


# ── Front ─────────────────────────────────────────────────────────────────


_JATS_TO_HTML = {
    "bold": "b",
    "italic": "i",
    "sub": "sub",
    "sup": "sup",
}


def _rename_nodes(node: Tag, container: Tag | BeautifulSoup, soup: BeautifulSoup) -> None:
    for child in node.children:
        if isinstance(child, Tag):
            name = _JATS_TO_HTML.get(child.name)
            if name is None:
                logger.debug("Unhandled element <%s>, keeping its content", child.name)
                _rename_nodes(child, container, soup)
                continue
            element = soup.new_tag(name)
            _rename_nodes(child, element, soup)
            container.append(element)
        elif is_text_node(child):
            container.append(NavigableString(str(child)))


def html_from_jats_node(element: Tag | None) -> str | None:
    """Inline HTML for a JATS title-like element."""
    if element is None:
        return None
    soup = new_html_document()
    _rename_nodes(element, soup, soup)
    return soup.decode()


def choose_bundle(issns: list[TypedValue], issn_bundle_index: dict[str, str]) -> str | None:
    """Bundle id for the first ISSN found in *issn_bundle_index*."""
    for issn in issns:
        normalized = _ISSN_RE.sub("", issn["value"].upper())
        if normalized in issn_bundle_index:
            return issn_bundle_index[normalized]
    return None


def _text(element: Tag | None) -> str | None:
    if element is None:
        return None
    return element.get_text() or None


def parse_jats_front(
    doc: BeautifulSoup,
    add_model: AddModel,
    issn_bundle_index: dict[str, str] | None = None,
    bundles: dict[str, Model] | None = None,
) -> None:
    """Read ``<front>`` into manuscript, journal, keyword, affiliation and contributor models.

    Parameters
    ----------
    doc : BeautifulSoup
        The JATS document.
    add_model : callable
        Stores a model, see ``add_model_to_map``.
    issn_bundle_index, bundles : dict, optional
        ``normalized ISSN → bundle id`` and the shared bundle models.  When
        both are given the manuscript gets a copy of the journal's bundle.
    """
    front = doc.find("front")
    if front is None:
        raise MissingElementError("No front element found!")

    manuscript = build_manuscript()

    journal_meta = doc.select_one("front > journal-meta")
    journal = parse_journal_meta(journal_meta) if journal_meta is not None else None

    if journal is not None:
        add_model(build_journal(journal))

        if journal["issns"] and issn_bundle_index and bundles is not None:
            bundle_id = choose_bundle(journal["issns"], issn_bundle_index)
            if bundle_id:
                bundle = create_new_bundle(bundle_id, bundles)
                parent_bundle = create_parent_bundle(bundle, bundles)
                if parent_bundle is not None:
                    add_model(parent_bundle)
                bundle = add_model(bundle)
                manuscript["bundle"] = bundle["_id"]

    article_meta = front.find("article-meta")
    if article_meta is not None:
        title_group = article_meta.find("title-group")
        if title_group is not None:
            titles = {
                "title": title_group.find("article-title"),
                "subtitle": title_group.find("subtitle"),
                "runningTitle": title_group.find(
                    "alt-title", attrs={"alt-title-type": "right-running"}
                ),
            }
            for field, element in titles.items():
                if element is not None:
                    manuscript[field] = html_from_jats_node(element)

        keyword_group = article_meta.find(
            "kwd-group", attrs={"kwd-group-type": "author"}, recursive=False
        ) or article_meta.find("kwd-group", recursive=False)

        if keyword_group is not None:
            manuscript["keywordIDs"] = []
            priority = 1
            for keyword_element in keyword_group.find_all("kwd"):
                name = keyword_element.get_text()
                if not name:
                    continue
                keyword = build_keyword(name)
                keyword["priority"] = priority
                priority += 1
                keyword = add_model(keyword)
                manuscript["keywordIDs"].append(keyword["_id"])

    add_model(manuscript)

    affiliation_ids: dict[str, str] = {}

    for priority, aff in enumerate(front.select("article-meta > contrib-group > aff")):
        affiliation = build_affiliation("", priority)

        for institution in aff.find_all("institution"):
            content = institution.get_text()
            if not content:
                continue
            content_type = institution.get("content-type")
            if content_type is None:
                affiliation["institution"] = content
            elif content_type == "dept":
                affiliation["department"] = content

        address_lines = aff.find_all("addr-line")
        for field, line in zip(("addressLine1", "addressLine2", "addressLine3"), address_lines):
            if line.get_text():
                affiliation[field] = line.get_text()

        for field in ("city", "country"):
            value = _text(aff.find(field))
            if value:
                affiliation[field] = value

        affiliation = add_model(affiliation)
        if aff.get("id"):
            affiliation_ids[aff["id"]] = affiliation["_id"]

    author_elements = front.select('article-meta > contrib-group > contrib[contrib-type="author"]')

    for priority, author in enumerate(author_elements):
        name: dict[str, Any] = {}
        given = _text(author.select_one("name > given-names"))
        if given:
            name["given"] = given
        family = _text(author.select_one("name > surname"))
        if family:
            name["family"] = family

        contributor = build_contributor(name, "author", priority)

        if author.get("corresp") == "yes":
            contributor["isCorresponding"] = True

        orcid = _text(author.find("contrib-id", attrs={"contrib-id-type": "orcid"}))
        if orcid:
            contributor["ORCIDIdentifier"] = orcid

        email = _text(author.find("email"))
        if email:
            contributor["email"] = email

        rids = [
            affiliation_ids[rid]
            for xref in author.find_all("xref", attrs={"ref-type": "aff"})
            for rid in (xref.get("rid") or "").split()
            if rid in affiliation_ids
        ]
        if rids:
            contributor["affiliations"] = rids

        add_model(contributor)


# ── Back ──────────────────────────────────────────────────────────────────


def choose_bibliography_item_type(publication_type: str | None) -> str:
    if publication_type in ("book", "thesis"):
        return publication_type
    return "article-journal"


def _date_part(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def parse_jats_back(doc: BeautifulSoup, add_model: AddModel) -> None:
    """Read the reference list and rewrite ``xref`` rids to model ids.

    Bibliography cross-references point at new citation models; other
    cross-references point at auxiliary object references whose
    ``referencedObject`` still holds the JATS id.
    """
    back = doc.find("back")
    if back is None:
        return

    reference_ids: dict[str, str] = {}

    for reference in doc.select("ref-list > ref"):
        citation = reference.find(["element-citation", "mixed-citation"])
        publication_type = (
            citation.get("publication-type") if citation is not None else None
        ) or reference.get("publication-type")

        data: dict[str, Any] = {"type": choose_bibliography_item_type(publication_type)}

        title = reference.find("article-title")
        if title is not None:
            data["title"] = html_from_jats_node(title)

        for field, tag_name in (
            ("container-title", "source"),
            ("volume", "volume"),
            ("issue", "issue"),
        ):
            value = _text(reference.find(tag_name))
            if value:
                data[field] = value

        fpage = _text(reference.find("fpage"))
        lpage = _text(reference.find("lpage"))
        if fpage:
            data["page"] = f"{fpage}-{lpage}" if lpage else fpage
        else:
            page_range = _text(reference.find("page-range"))
            if page_range:
                data["page"] = page_range

        year = _text(reference.find("year"))
        if year:
            date_parts = [_date_part(year)]
            for tag_name in ("month", "day"):
                value = _text(reference.find(tag_name))
                if not value:
                    break
                date_parts.append(_date_part(value))
            data["issued"] = build_bibliographic_date({"date-parts": [date_parts]})

        for field, pub_id_type in (("DOI", "doi"), ("PMID", "pmid"), ("PMCID", "pmcid")):
            value = _text(reference.find("pub-id", attrs={"pub-id-type": pub_id_type}))
            if value:
                data[field] = value

        authors = []
        for author in reference.select('person-group[person-group-type="author"] > *'):
            name: dict[str, Any] = {}
            for field, tag_name in (
                ("given", "given-names"),
                ("family", "surname"),
                ("suffix", "suffix"),
            ):
                value = _text(author.find(tag_name))
                if value:
                    name[field] = value
            authors.append(build_bibliographic_name(name))
        if authors:
            data["author"] = authors

        bibliography_item = add_model(build_bibliography_item(data))
        if reference.get("id"):
            reference_ids[reference["id"]] = bibliography_item["_id"]

    for xref in doc.select(_XREF_SELECTOR):
        rid = xref.get("rid")
        if not rid:
            continue

        if xref.get("ref-type") == "bibr":
            rids = [reference_ids[item] for item in rid.split() if item in reference_ids]
            if rids:
                citation = add_model(build_citation("", rids))
                xref["rid"] = citation["_id"]
            else:
                logger.warning("No bibliography items found for citation %s", rid)
                del xref["rid"]
        else:
            reference = add_model(build_auxiliary_object_reference("", rid))
            xref["rid"] = reference["_id"]


# ── Article ───────────────────────────────────────────────────────────────


def parse_jats_article(
    doc: BeautifulSoup,
    issn_bundle_index: dict[str, str] | None = None,
    bundles: dict[str, Model] | None = None,
) -> list[Model]:
    """All models of a JATS article: front and back models, then body models."""
    model_map: dict[str, Model] = {}
    add_model = add_model_to_map(model_map)

    parse_jats_front(doc, add_model, issn_bundle_index, bundles)
    parse_jats_back(doc, add_model)

    replacements: dict[str, str] = {}
    node = parse_jats_body(doc, replacements)

    manuscript = node.first_child
    if manuscript is None:
        raise MissingElementError("No content was parsed from the article body")

    for model in model_map.values():
        if is_auxiliary_object_reference(model):
            referenced = model.get("referencedObject")
            if referenced in replacements:
                model["referencedObject"] = replacements[referenced]

    body_models = encode(manuscript)
    logger.debug(
        "Imported %d front/back models and %d body models", len(model_map), len(body_models)
    )
    return [*model_map.values(), *body_models.values()]
