"""
JATS export.

``JATSExporter.serialize_to_jats`` turns a manuscript node and its model
map into a JATS XML document.

Pipeline
--------
1. **Front**: journal metadata from the latest submission, article ids,
   title, contributors with their affiliations and roles, keywords.
2. **Body**: the content tree rendered with JATS output rules, then
   fixed up: suppressed titles and captions removed, table rows split
   into ``thead``/``tbody``/``tfoot``, single-figure groups collapsed.
3. **Back**: referenced footnotes and referenced bibliography items.
4. **Placement**: the abstract moves to ``<front>``, availability and
   acknowledgments sections move to ``<back>``.
5. **Ids**: every ``id`` is rewritten through the id generator and every
   ``rid`` through the same map; media paths and cross-reference types
   are adjusted last.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from bs4 import BeautifulSoup, Tag

from manuscripts_transform.config import (
    CREDIT_VOCAB_IDENTIFIER,
    DEFAULT_JATS_VERSION,
    JATS_VERSIONS,
    XLINK_NAMESPACE,
    ObjectType,
)
from manuscripts_transform.errors import EncodeError, UnknownVersionError
from manuscripts_transform.filename import generate_attachment_filename
from manuscripts_transform.ids import normalize_id
from manuscripts_transform.markup import element_children, new_xml_document, parse_html, text_from_html
from manuscripts_transform.node_types import is_executable_node, is_node_type
from manuscripts_transform.object_types import has_object_type
from manuscripts_transform.project_bundle import (
    find_latest_manuscript_submission,
    find_manuscript,
)
from manuscripts_transform.schema import DOMParser, DOMSerializer, Mark, Node, schema
from manuscripts_transform.section_category import choose_sec_type

logger = logging.getLogger(__name__)

Model = dict[str, Any]
IDGenerator = Callable[[Tag], "str | None"]
MediaPathGenerator = Callable[[Tag, str], str]

is_contributor = has_object_type(ObjectType.CONTRIBUTOR)
is_affiliation = has_object_type(ObjectType.AFFILIATION)
is_footnote = has_object_type(ObjectType.FOOTNOTE)
is_bibliography_item = has_object_type(ObjectType.BIBLIOGRAPHY_ITEM)

# Elements that may follow <abstract> inside <article-meta>, in DTD order
_ABSTRACT_FOLLOWING_SIBLINGS = (
    "kwd-group",
    "funding-group",
    "support-group",
    "conference",
    "counts",
    "custom-meta-group",
)

_REF_TYPES: dict[str, str] = {
    ObjectType.FIGURE.value: "fig",
    ObjectType.FIGURE_ELEMENT.value: "fig",
    ObjectType.FOOTNOTE.value: "fn",
    ObjectType.TABLE.value: "table",
    ObjectType.TABLE_ELEMENT.value: "table",
    ObjectType.SECTION.value: "sec",
    ObjectType.EQUATION.value: "disp-formula",
    ObjectType.EQUATION_ELEMENT.value: "disp-formula",
}

_TABLE_TAGS = frozenset({"table-wrap-group", "table-wrap", "table"})

_PAGE_RE = re.compile(r"^\d+$")
_PAGE_RANGE_RE = re.compile(r"^\d+-\d+$")
_STYLE_NAME_RE = re.compile(r"[^a-z0-9]+")


# ── Options and helpers ───────────────────────────────────────────────────


@dataclass
class JATSExportOptions:
    """Options for ``JATSExporter.serialize_to_jats``.

    Parameters
    ----------
    version : str
        JATS DTD version, one of ``JATS_VERSIONS``.
    doi, id : str, optional
        Written as ``article-id`` elements.
    front_matter_only : bool
        Emit ``<front>`` only.
    links : dict, optional
        ``{"self": {content_type: url}}``, written as ``self-uri``.
    id_generator : callable, optional
        ``element → new id`` (``None`` removes the id).  Defaults to
        ``<tag>-<n>`` numbered per tag name.
    media_path_generator : callable, optional
        ``(graphic, figure_id) → href`` for every figure graphic.
    """

    version: str = DEFAULT_JATS_VERSION
    doi: str | None = None
    id: str | None = None
    front_matter_only: bool = False
    links: dict[str, dict[str, str]] | None = None
    id_generator: IDGenerator | None = None
    media_path_generator: MediaPathGenerator | None = None


def select_version_ids(version: str) -> dict[str, str]:
    """DTD public and system identifiers for a JATS *version*."""
    if version not in JATS_VERSIONS:
        raise UnknownVersionError(version)
    return JATS_VERSIONS[version]


def create_default_id_generator() -> IDGenerator:
    counts: dict[str, int] = {}

    def generate(element: Tag) -> str:
        counts[element.name] = counts.get(element.name, 0) + 1
        return f"{element.name}-{counts[element.name]}"

    return generate


def normalize_style_name(title: str) -> str:
    return _STYLE_NAME_RE.sub("-", title.lower()).strip("-")


def choose_role_vocab_attributes(role: Model) -> dict[str, str]:
    uri = role.get("uri")
    if uri and uri.startswith(CREDIT_VOCAB_IDENTIFIER):
        return {
            "vocab": "credit",
            "vocab-identifier": CREDIT_VOCAB_IDENTIFIER,
            "vocab-term": role.get("name") or "",
            "vocab-term-identifier": uri,
        }
    return {"vocab": "uncontrolled"}


def _find_child(node: Node, type_name: str) -> Node | None:
    for child in node.content:
        if is_node_type(child, type_name):
            return child
    return None


def _split_rids(value: str | None) -> list[str]:
    return value.split() if value else []


def _contributor_sort_key(contributor: Model) -> float:
    return float(contributor.get("priority") or 0)


# ── Exporter ──────────────────────────────────────────────────────────────


class JATSExporter:
    """Serialize a manuscript to JATS XML.

    One exporter may be reused; each ``serialize_to_jats`` call builds a
    fresh document.
    """

    def __init__(self) -> None:
        self.document: BeautifulSoup | None = None
        self.model_map: dict[str, Model] = {}
        self.models: list[Model] = []
        self.serializer: DOMSerializer | None = None
        # ids dropped while restructuring → the id that replaced them
        self.id_aliases: dict[str, str] = {}

    def serialize_to_jats(
        self,
        fragment: Node,
        model_map: dict[str, Model],
        options: JATSExportOptions | None = None,
    ) -> str:
        options = options or JATSExportOptions()
        version_ids = select_version_ids(options.version)

        self.model_map = model_map
        self.models = list(model_map.values())
        self.id_aliases = {}
        self.serializer = DOMSerializer(self._node_specs(), self._mark_specs())

        self.document, article = new_xml_document(
            "article", version_ids["publicId"], version_ids["systemId"]
        )
        article["xmlns:xlink"] = XLINK_NAMESPACE

        logger.debug("Building JATS front")
        front = self.build_front(options.doi, options.id, options.links)
        article.append(front)

        if not options.front_matter_only:
            logger.debug("Building JATS body and back")
            body = self.build_body(fragment)
            article.append(body)

            back = self.build_back()
            article.append(back)

            self.move_abstract(front, body)
            self.move_sections_to_back(back, body)

        self.rewrite_ids(options.id_generator)
        if options.media_path_generator is not None:
            self.rewrite_media_paths(options.media_path_generator)
        self.rewrite_cross_reference_types()

        return self.document.decode()

    # ── document helpers ──

    def create_element(
        self, name: str, attrs: dict[str, str] | None = None, text: str | None = None
    ) -> Tag:
        element = self.document.new_tag(name)
        for key, value in (attrs or {}).items():
            element[key] = value
        if text is not None:
            element.string = text
        return element

    def get_model(self, identifier: str | None) -> Model | None:
        return self.model_map.get(identifier) if identifier else None

    def serialize_node(self, node: Node) -> Any:
        return self.serializer.serialize_node(node, self.document)

    def html_title_children(self, html: str) -> list[Any]:
        """Inline JATS content for an HTML title, via the content schema."""
        heading = parse_html(f"<h1>{html}</h1>").h1
        title_node = DOMParser.from_schema(schema).parse(
            heading, top_node=schema.nodes["section_title"].create()
        )
        title = self.serialize_node(title_node)
        return [child.extract() for child in list(title.contents)]

    # ── post-serialization passes ──

    def rewrite_cross_reference_types(self) -> None:
        for xref in self.document.select("xref[ref-type=fig][rid]"):
            target = self.document.find(attrs={"id": xref["rid"]})
            if target is not None and target.name in _TABLE_TAGS:
                xref["ref-type"] = "table"

    def rewrite_media_paths(self, media_path_generator: MediaPathGenerator) -> None:
        for fig in self.document.find_all("fig"):
            parent_id = fig.get("id")
            for graphic in fig.find_all("graphic"):
                graphic["xlink:href"] = media_path_generator(graphic, parent_id)

    def rewrite_ids(self, id_generator: IDGenerator | None = None) -> None:
        id_generator = id_generator or create_default_id_generator()
        id_map: dict[str, str | None] = {}

        for element in self.document.find_all(attrs={"id": True}):
            previous_id = element["id"]
            new_id = id_generator(element)
            if new_id:
                element["id"] = new_id
            else:
                del element["id"]
            if previous_id:
                id_map[previous_id] = new_id

        for alias, target in self.id_aliases.items():
            id_map.setdefault(alias, id_map.get(target))

        for element in self.document.find_all(attrs={"rid": True}):
            new_rids = [
                id_map[rid] for rid in _split_rids(element["rid"]) if id_map.get(rid)
            ]
            if new_rids:
                element["rid"] = " ".join(new_rids)

    # ── front ──

    def build_front(
        self,
        doi: str | None = None,
        article_id: str | None = None,
        links: dict[str, dict[str, str]] | None = None,
    ) -> Tag:
        manuscript = find_manuscript(self.model_map)
        submission = find_latest_manuscript_submission(self.model_map, manuscript)

        front = self.create_element("front")

        if submission is not None:
            journal_meta = self.create_element("journal-meta")
            front.append(journal_meta)

            if submission.get("journalCode"):
                journal_meta.append(
                    self.create_element(
                        "journal-id",
                        {"journal-id-type": "publisher-id"},
                        submission["journalCode"],
                    )
                )
            if submission.get("journalTitle"):
                title_group = self.create_element("journal-title-group")
                title_group.append(
                    self.create_element("journal-title", text=submission["journalTitle"])
                )
                journal_meta.append(title_group)
            if submission.get("issn"):
                journal_meta.append(
                    self.create_element("issn", {"pub-type": "epub"}, submission["issn"])
                )

        article_meta = self.create_element("article-meta")
        front.append(article_meta)

        if article_id:
            article_meta.append(
                self.create_element("article-id", {"pub-id-type": "publisher-id"}, article_id)
            )
        if doi:
            article_meta.append(self.create_element("article-id", {"pub-id-type": "doi"}, doi))

        title_group = self.create_element("title-group")
        article_meta.append(title_group)

        if manuscript.get("title"):
            article_title = self.create_element("article-title")
            for child in self.html_title_children(manuscript["title"]):
                article_title.append(child)
            title_group.append(article_title)

        self.build_contributors(article_meta)

        if links and links.get("self"):
            for key, value in links["self"].items():
                article_meta.append(
                    self.create_element("self-uri", {"content-type": key, "xlink:href": value})
                )

        if manuscript.get("keywordIDs"):
            self.build_keywords(article_meta, manuscript["keywordIDs"])

        return front

    def validate_contributor(self, contributor: Model) -> bool:
        name = contributor.get("bibliographicName")
        if not name:
            logger.warning("%s has no bibliographicName", contributor["_id"])
            return False
        if not name.get("family") and not name.get("given"):
            logger.warning("%s has neither family nor given name", contributor["_id"])
            return False
        return True

    def build_contributor_name(self, contributor: Model) -> Tag:
        name = self.create_element("name")
        bibliographic_name = contributor["bibliographicName"]
        if bibliographic_name.get("family"):
            name.append(self.create_element("surname", text=bibliographic_name["family"]))
        if bibliographic_name.get("given"):
            name.append(self.create_element("given-names", text=bibliographic_name["given"]))
        return name

    def build_contrib(self, contributor: Model, is_author: bool) -> Tag:
        contrib = self.create_element("contrib", {"id": normalize_id(contributor["_id"])})

        if is_author:
            contrib["contrib-type"] = "author"
            if contributor.get("isCorresponding"):
                contrib["corresp"] = "yes"
            if contributor.get("ORCIDIdentifier"):
                contrib.append(
                    self.create_element(
                        "contrib-id",
                        {"contrib-id-type": "orcid"},
                        contributor["ORCIDIdentifier"],
                    )
                )

        contrib.append(self.build_contributor_name(contributor))

        if contributor.get("email"):
            contrib.append(self.create_element("email", text=contributor["email"]))

        for role_id in contributor.get("roles") or []:
            role = self.get_model(role_id)
            if role is not None:
                contrib.append(
                    self.create_element(
                        "role", choose_role_vocab_attributes(role), role.get("name") or ""
                    )
                )

        for affiliation_id in contributor.get("affiliations") or []:
            contrib.append(
                self.create_element(
                    "xref", {"ref-type": "aff", "rid": normalize_id(affiliation_id)}
                )
            )

        return contrib

    def build_affiliation(self, affiliation: Model) -> Tag:
        aff = self.create_element("aff", {"id": normalize_id(affiliation["_id"])})
        if affiliation.get("department"):
            aff.append(
                self.create_element(
                    "institution", {"content-type": "dept"}, affiliation["department"]
                )
            )
        if affiliation.get("institution"):
            aff.append(self.create_element("institution", text=affiliation["institution"]))
        for field in ("addressLine1", "addressLine2", "addressLine3"):
            if affiliation.get(field):
                aff.append(self.create_element("addr-line", text=affiliation[field]))
        if affiliation.get("city"):
            aff.append(self.create_element("city", text=affiliation["city"]))
        if affiliation.get("country"):
            aff.append(self.create_element("country", text=affiliation["country"]))
        return aff

    def build_contributors(self, article_meta: Tag) -> None:
        contributors = [model for model in self.models if is_contributor(model)]
        authors = sorted(
            (c for c in contributors if c.get("role") == "author"), key=_contributor_sort_key
        )
        others = sorted(
            (c for c in contributors if c.get("role") != "author"), key=_contributor_sort_key
        )

        contrib_group: Tag | None = None
        if authors:
            contrib_group = self.create_element("contrib-group", {"content-type": "authors"})
            article_meta.append(contrib_group)
            for contributor in authors:
                if self.validate_contributor(contributor):
                    contrib_group.append(self.build_contrib(contributor, is_author=True))

        if others:
            contrib_group = self.create_element("contrib-group")
            article_meta.append(contrib_group)
            for contributor in others:
                if self.validate_contributor(contributor):
                    contrib_group.append(self.build_contrib(contributor, is_author=False))

        if contrib_group is None:
            return

        # first appearance order, without duplicates
        affiliation_ids: list[str] = []
        for contributor in [*authors, *others]:
            for affiliation_id in contributor.get("affiliations") or []:
                if affiliation_id not in affiliation_ids:
                    affiliation_ids.append(affiliation_id)

        for affiliation_id in affiliation_ids:
            affiliation = self.get_model(affiliation_id)
            if affiliation is not None and is_affiliation(affiliation):
                contrib_group.append(self.build_affiliation(affiliation))

    def build_keywords(self, article_meta: Tag, keyword_ids: list[str]) -> None:
        keywords = [
            keyword
            for keyword in (self.get_model(identifier) for identifier in keyword_ids)
            if keyword is not None and keyword.get("name")
        ]
        if not keywords:
            return
        kwd_group = self.create_element("kwd-group", {"kwd-group-type": "author"})
        for keyword in keywords:
            kwd_group.append(self.create_element("kwd", text=keyword["name"]))
        article_meta.append(kwd_group)

    # ── body ──

    def build_body(self, fragment: Node) -> Tag:
        body = self.create_element("body")
        self.serializer.serialize_fragment(fragment.content, self.document, body)
        self.fix_body(body, fragment)
        return body

    def fix_body(self, body: Tag, fragment: Node) -> None:
        for node, _ in fragment.descendants():
            identifier = node.attrs.get("id")
            if not identifier:
                continue
            element = body.find(attrs={"id": normalize_id(identifier)})
            if element is None:
                continue

            if node.attrs.get("titleSuppressed"):
                title = element.find("title", recursive=False)
                if title is not None:
                    title.decompose()

            if node.attrs.get("suppressCaption"):
                caption = element.find("caption", recursive=False)
                if caption is not None:
                    caption.decompose()

            if is_node_type(node, "table_element"):
                caption = element.find("caption", recursive=False)
                if caption is not None:
                    element.insert(0, caption.extract())
                table = element.find("table", recursive=False)
                if table is not None:
                    self.fix_table(table, node)

            if is_node_type(node, "figure_element"):
                self.fix_figure_group(element)

    def fix_figure_group(self, figure_group: Tag) -> None:
        figures = figure_group.find_all("fig", recursive=False)
        caption = figure_group.find("caption", recursive=False)

        if len(figures) == 1:
            figure = figures[0]
            figure["fig-type"] = "figure"
            # cross-references point at the figure element
            if figure_group.get("id"):
                if figure.get("id"):
                    self.id_aliases[figure["id"]] = figure_group["id"]
                figure["id"] = figure_group["id"]
            if caption is not None:
                figure.insert(0, caption.extract())
            figure_group.replace_with(figure.extract())
        elif not figures and caption is None:
            figure_group.decompose()

    def fix_table(self, table: Tag, node: Node) -> None:
        rows = element_children(table)
        head_rows, rows = rows[:1], rows[1:]
        foot_rows, rows = rows[-1:], rows[:-1]

        if node.attrs.get("suppressHeader"):
            for row in head_rows:
                row.decompose()
        else:
            thead = self.create_element("thead")
            for row in head_rows:
                thead.append(row.extract())
            table.append(thead)

        if node.attrs.get("suppressFooter"):
            for row in foot_rows:
                row.decompose()
        else:
            tfoot = self.create_element("tfoot")
            for row in foot_rows:
                tfoot.append(row.extract())
            table.append(tfoot)

        tbody = self.create_element("tbody")
        for row in rows:
            tbody.append(row.extract())
        table.append(tbody)

    # ── back ──

    def _referenced_ids(self, ref_type: str) -> list[str]:
        found: dict[str, None] = {}
        for xref in self.document.select(f"xref[ref-type={ref_type}][rid]"):
            for rid in _split_rids(xref["rid"]):
                found[rid] = None
        return list(found)

    def build_back(self) -> Tag:
        back = self.create_element("back")

        footnotes_element = self.document.find("fn-group")
        if footnotes_element is not None:
            back.append(footnotes_element.extract())
            footnotes = {
                normalize_id(model["_id"]): model for model in self.models if is_footnote(model)
            }
            for footnote_id in self._referenced_ids("fn"):
                footnote = footnotes.get(footnote_id)
                if footnote is None:
                    continue
                fn = self.create_element("fn", {"id": footnote_id})
                paragraph = self.create_element("p")
                text = text_from_html(footnote.get("contents"))
                if text:
                    paragraph.string = text
                fn.append(paragraph)
                footnotes_element.append(fn)

        ref_list = self.document.find("ref-list")
        if ref_list is None:
            logger.warning("No bibliography element, creating a ref-list anyway")
            ref_list = self.create_element("ref-list")
        back.append(ref_list.extract())

        bibliography_items = {
            normalize_id(model["_id"]): model
            for model in self.models
            if is_bibliography_item(model)
        }
        for item_id in self._referenced_ids("bibr"):
            item = bibliography_items.get(item_id)
            if item is None:
                continue
            ref = self.create_element("ref", {"id": item_id})
            ref.append(self.build_element_citation(item))
            ref_list.append(ref)

        return back

    def build_element_citation(self, item: Model) -> Tag:
        item_type = item.get("type")
        publication_type = (
            "journal" if not item_type or item_type in ("article", "article-journal") else item_type
        )
        citation = self.create_element("element-citation", {"publication-type": publication_type})

        if item.get("author"):
            person_group = self.create_element("person-group", {"person-group-type": "author"})
            citation.append(person_group)
            for author in item["author"]:
                name = self.create_element("name")
                if author.get("family"):
                    name.append(self.create_element("surname", text=author["family"]))
                if author.get("given"):
                    name.append(self.create_element("given-names", text=author["given"]))
                person_group.append(name)

        date_parts = (item.get("issued") or {}).get("date-parts")
        if date_parts:
            parts = list(date_parts[0]) + [None, None, None]
            for tag_name, value in zip(("year", "month", "day"), parts[:3]):
                if value:
                    citation.append(self.create_element(tag_name, text=str(value)))

        if item.get("title"):
            article_title = self.create_element("article-title")
            for child in self.html_title_children(item["title"]):
                article_title.append(child)
            citation.append(article_title)

        if item.get("container-title"):
            citation.append(self.create_element("source", text=item["container-title"]))
        if item.get("volume"):
            citation.append(self.create_element("volume", text=str(item["volume"])))
        if item.get("issue"):
            citation.append(self.create_element("issue", text=str(item["issue"])))

        if item.get("page-first"):
            citation.append(self.create_element("fpage", text=str(item["page-first"])))
        elif item.get("page"):
            page = str(item["page"])
            if _PAGE_RE.match(page):
                citation.append(self.create_element("fpage", text=page))
            elif _PAGE_RANGE_RE.match(page):
                first, last = page.split("-")
                citation.append(self.create_element("fpage", text=first))
                citation.append(self.create_element("lpage", text=last))
            else:
                citation.append(self.create_element("page-range", text=page))

        for field, pub_id_type in (("DOI", "doi"), ("PMID", "pmid"), ("PMCID", "pmcid")):
            if item.get(field):
                citation.append(
                    self.create_element("pub-id", {"pub-id-type": pub_id_type}, str(item[field]))
                )

        return citation

    # ── placement ──

    def move_abstract(self, front: Tag, body: Tag) -> None:
        abstract_section = None
        for section in body.find_all("sec", recursive=False):
            if section.get("sec-type") == "abstract":
                abstract_section = section
                break
            title = section.find("title", recursive=False)
            if title is not None and title.get_text() == "Abstract":
                abstract_section = section
                break
        if abstract_section is None:
            return

        abstract = self.create_element("abstract")
        for child in list(abstract_section.contents):
            if getattr(child, "name", None) != "title":
                abstract.append(child.extract())
        abstract_section.decompose()

        article_meta = front.find("article-meta", recursive=False)
        if article_meta is None:
            return
        for name in _ABSTRACT_FOLLOWING_SIBLINGS:
            sibling = article_meta.find(name, recursive=False)
            if sibling is not None:
                sibling.insert_before(abstract)
                return
        article_meta.append(abstract)

    def move_sections_to_back(self, back: Tag, body: Tag) -> None:
        availability = body.find("sec", attrs={"sec-type": "availability"})
        if availability is not None:
            back.insert(0, availability.extract())

        section = body.find("sec", attrs={"sec-type": "acknowledgments"})
        if section is not None:
            ack = self.create_element("ack")
            for child in list(section.contents):
                ack.append(child.extract())
            section.decompose()
            back.insert(0, ack)

    # ── output rules ──

    def create_figure_element(
        self, node: Node, name: str, content_type: str, fig_type: str | None = None
    ) -> Tag:
        element = self.create_element(name, {"id": normalize_id(node.attrs["id"])})
        if fig_type:
            element["fig-type"] = fig_type
        if node.attrs.get("label"):
            element.append(self.create_element("label", text=node.attrs["label"]))

        figcaption = _find_child(node, "figcaption")
        if figcaption is not None:
            element.append(self.serialize_node(figcaption))

        for child in node.content:
            if is_node_type(child, content_type) and child.attrs.get("id"):
                element.append(self.serialize_node(child))

        if is_executable_node(node):
            listing = _find_child(node, "listing")
            if listing is not None:
                contents = listing.attrs.get("contents")
                language_key = listing.attrs.get("languageKey")
                if contents and language_key:
                    source = self.create_element("fig", {"specific-use": "source"})
                    source.append(
                        self.create_element(
                            "code", {"executable": "true", "language": language_key}, contents
                        )
                    )
                    source.append(self.create_element("caption"))
                    element.append(source)

        return element

    def _citation(self, node: Node) -> Any:
        rid = node.attrs.get("rid")
        if not rid:
            logger.warning("Citation has no rid")
            return node.attrs.get("label") or ""

        citation = self.get_model(rid)
        if citation is None:
            logger.warning("Missing citation %s", rid)
            return ""

        items = []
        for item in citation.get("embeddedCitationItems") or []:
            if item.get("bibliographyItem") in self.model_map:
                items.append(item)
            else:
                logger.warning(
                    "Missing %s referenced by %s", item.get("bibliographyItem"), citation["_id"]
                )
        if not items:
            logger.warning("%s has no confirmed rids", citation["_id"])
            return ""

        xref = self.create_element(
            "xref",
            {
                "ref-type": "bibr",
                "rid": " ".join(normalize_id(item["bibliographyItem"]) for item in items),
            },
        )
        text = text_from_html(node.attrs.get("contents"))
        if text:
            xref.string = text
        return xref

    def _cross_reference(self, node: Node) -> Any:
        rid = node.attrs.get("rid")
        label = node.attrs.get("label") or ""
        if not rid:
            logger.warning("Cross reference has no rid")
            return label

        reference = self.get_model(rid)
        if reference is None:
            logger.warning("Missing model %s", rid)
            return label

        xref = self.create_element("xref")
        referenced = self.get_model(reference.get("referencedObject"))
        if referenced is not None:
            ref_type = _REF_TYPES.get(referenced.get("objectType"))
            if ref_type:
                xref["ref-type"] = ref_type
            else:
                logger.warning("Unset ref-type for objectType %s", referenced.get("objectType"))
        xref["rid"] = normalize_id(reference.get("referencedObject") or "")
        xref.string = label
        return xref

    def _figure(self, node: Node) -> Tag:
        fig = self.create_element("fig", {"id": normalize_id(node.attrs["id"])})
        if node.attrs.get("label"):
            fig.append(self.create_element("label", text=node.attrs["label"]))

        for child in node.content:
            if is_node_type(child, "figcaption"):
                fig.append(self.serialize_node(child))

        if node.attrs.get("embedURL"):
            fig.append(
                self.create_element(
                    "media",
                    {
                        "xlink:href": node.attrs["embedURL"],
                        "xlink:show": "embed",
                        "content-type": "embed",
                    },
                )
            )
            return fig

        filename = generate_attachment_filename(node.attrs["id"], node.attrs.get("contentType"))
        graphic = self.create_element("graphic", {"xlink:href": f"graphic/{filename}"})
        if node.attrs.get("contentType"):
            mime_type, _, mime_subtype = node.attrs["contentType"].partition("/")
            if mime_type:
                graphic["mimetype"] = mime_type
                if mime_subtype:
                    graphic["mime-subtype"] = mime_subtype
        fig.append(graphic)
        return fig

    def _link(self, node: Node) -> Any:
        text = node.text_content
        if not text:
            return ""
        if not node.attrs.get("href"):
            return text
        link = self.create_element(
            "ext-link", {"ext-link-type": "uri", "xlink:href": node.attrs["href"]}, text
        )
        if node.attrs.get("title"):
            link["xlink:title"] = node.attrs["title"]
        return link

    def _section(self, node: Node) -> tuple:
        attrs = {"id": normalize_id(node.attrs["id"])}
        if node.attrs.get("category"):
            attrs["sec-type"] = choose_sec_type(node.attrs["category"])
        return ("sec", attrs, 0)

    def _placeholder(self, node: Node) -> Any:
        raise EncodeError("Placeholders cannot be exported", node.type.name)

    def _tex_math(self, name: str, node: Node, with_id: bool) -> Tag:
        element = self.create_element(name)
        if with_id:
            element["id"] = normalize_id(node.attrs["id"])
        element.append(self.create_element("tex-math", text=node.attrs.get("TeXRepresentation") or ""))
        return element

    def _node_specs(self) -> dict[str, Callable[[Node], Any]]:
        return {
            "attribution": lambda node: ("attrib", 0),
            "bibliography_element": lambda node: "",
            "bibliography_section": lambda node: (
                "ref-list",
                {"id": normalize_id(node.attrs["id"])},
                0,
            ),
            "blockquote_element": lambda node: ("disp-quote", {"content-type": "quote"}, 0),
            "bullet_list": lambda node: ("list", {"list-type": "bullet"}, 0),
            "citation": self._citation,
            "cross_reference": self._cross_reference,
            "doc": lambda node: "",
            "equation": lambda node: self._tex_math("disp-formula", node, with_id=True),
            "equation_element": lambda node: self.create_figure_element(
                node, "fig", "equation", "equation"
            ),
            "figcaption": lambda node: ("caption", ("p", 0)) if node.text_content else "",
            "figure": self._figure,
            "figure_element": lambda node: self.create_figure_element(
                node, "fig-group", "figure"
            ),
            "footnote": lambda node: ("fn", {"id": normalize_id(node.attrs["id"])}, 0),
            "footnotes_element": lambda node: (
                "fn-group",
                {"id": normalize_id(node.attrs["id"])},
            ),
            "hard_break": lambda node: ("break",),
            "highlight_marker": lambda node: "",
            "inline_equation": lambda node: self._tex_math("inline-formula", node, with_id=False),
            "inline_footnote": lambda node: self.create_element(
                "xref",
                {"ref-type": "fn", "rid": normalize_id(node.attrs["rid"])},
                node.attrs.get("contents") or "",
            ),
            "keywords_element": lambda node: "",
            "keywords_section": lambda node: "",
            "link": self._link,
            "list_item": lambda node: ("list-item", 0),
            "listing": lambda node: self.create_element(
                "code",
                {
                    "id": normalize_id(node.attrs["id"]),
                    "language": node.attrs.get("languageKey") or "",
                },
                node.attrs.get("contents") or "",
            ),
            "listing_element": lambda node: self.create_figure_element(
                node, "fig", "listing", "listing"
            ),
            "manuscript": lambda node: ("article", {"id": normalize_id(node.attrs["id"])}, 0),
            "ordered_list": lambda node: ("list", {"list-type": "order"}, 0),
            "paragraph": lambda node: (
                ("p", {"id": normalize_id(node.attrs["id"]) if node.attrs.get("id") else None}, 0)
                if node.child_count
                else ""
            ),
            "placeholder": self._placeholder,
            "placeholder_element": self._placeholder,
            "pullquote_element": lambda node: ("disp-quote", {"content-type": "pullquote"}, 0),
            "section": self._section,
            "section_title": lambda node: ("title", 0),
            "table": lambda node: ("table", {"id": normalize_id(node.attrs["id"])}, 0),
            "table_element": lambda node: self.create_figure_element(
                node, "table-wrap", "table"
            ),
            "table_cell": lambda node: ("td", 0),
            "table_row": lambda node: ("tr", 0),
            "text": lambda node: node.text,
            "toc_element": lambda node: "",
            "toc_section": lambda node: "",
        }

    def _styled(self, mark: Mark, inline: bool) -> tuple:
        inline_style = self.get_model(mark.attrs.get("rid"))
        attrs = {}
        if inline_style is not None and inline_style.get("title"):
            attrs["style"] = normalize_style_name(inline_style["title"])
        return ("styled-content", attrs)

    def _mark_specs(self) -> dict[str, Callable[[Mark, bool], Any]]:
        return {
            "bold": lambda mark, inline: ("bold",),
            "code": lambda mark, inline: ("code", {"position": "anchor"}),
            "italic": lambda mark, inline: ("italic",),
            "smallcaps": lambda mark, inline: ("sc",),
            "strikethrough": lambda mark, inline: ("strike",),
            "styled": self._styled,
            "subscript": lambda mark, inline: ("sub",),
            "superscript": lambda mark, inline: ("sup",),
            "underline": lambda mark, inline: ("underline",),
        }
