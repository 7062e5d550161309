"""
HTML export.

``HTMLTransformer.serialize_to_html`` renders a manuscript as an XHTML
document: a ``<header>`` with the title, contributors and affiliations,
then the content tree serialized with the schema's own output rules.
Figure images are injected afterwards from the attachment URL prefix.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bs4 import Doctype, Tag

from manuscripts_transform.config import DEFAULT_ATTACHMENT_PREFIX, XHTML_NAMESPACE, ObjectType
from manuscripts_transform.filename import generate_attachment_filename
from manuscripts_transform.jats_exporter import normalize_style_name
from manuscripts_transform.markup import element_with_html, new_xml_document
from manuscripts_transform.node_types import is_node_type
from manuscripts_transform.object_types import has_object_type
from manuscripts_transform.project_bundle import find_manuscript
from manuscripts_transform.schema import DOMSerializer, Mark, Node, schema

logger = logging.getLogger(__name__)

Model = dict[str, Any]

is_contributor = has_object_type(ObjectType.CONTRIBUTOR)
is_affiliation = has_object_type(ObjectType.AFFILIATION)


@dataclass
class HTMLExportOptions:
    attachment_url_prefix: str = DEFAULT_ATTACHMENT_PREFIX


def build_styled_content_class(inline_style: Model | None) -> str:
    classes = ["styled-content"]
    if inline_style is not None and inline_style.get("title"):
        classes.append(normalize_style_name(inline_style["title"]))
    return " ".join(classes)


class HTMLTransformer:
    """Serialize a manuscript fragment and its models to XHTML."""

    def __init__(self) -> None:
        self.document = None
        self.model_map: dict[str, Model] = {}

    def serialize_to_html(
        self,
        fragment: Node,
        model_map: dict[str, Model],
        options: HTMLExportOptions | None = None,
    ) -> str:
        options = options or HTMLExportOptions()
        self.model_map = model_map

        self.document, html = new_xml_document("html")
        self.document.insert(0, Doctype("html"))
        html["xmlns"] = XHTML_NAMESPACE

        article = self.create_element("article")
        html.append(article)

        article.append(self.build_front(options.attachment_url_prefix))
        article.append(self.build_body(fragment))

        self.fix_body(fragment, options.attachment_url_prefix)

        return self.document.decode()

    def create_element(self, name: str, attrs: dict[str, str] | None = None) -> Tag:
        element = self.document.new_tag(name)
        for key, value in (attrs or {}).items():
            element[key] = value
        return element

    def get_model(self, identifier: str | None) -> Model | None:
        return self.model_map.get(identifier) if identifier else None

    # ── header ──

    def build_front(self, attachment_url_prefix: str) -> Tag:
        manuscript = find_manuscript(self.model_map)

        front = self.create_element("header")

        header_figure = self.get_model(manuscript.get("headerFigure"))
        if header_figure is not None:
            figure = self.create_element("figure", {"id": header_figure["_id"]})
            filename = generate_attachment_filename(
                header_figure["_id"], header_figure.get("contentType")
            )
            figure.append(self.create_element("img", {"src": attachment_url_prefix + filename}))
            front.append(figure)

        article_meta = self.create_element("div")
        front.append(article_meta)

        article_title = element_with_html("h1", {}, manuscript.get("title"))
        article_meta.append(article_title)

        self.build_contributors(article_meta)
        return front

    def build_contributors(self, article_meta: Tag) -> None:
        contributors = sorted(
            (model for model in self.model_map.values() if is_contributor(model)),
            key=lambda model: float(model.get("priority") or 0),
        )

        if contributors:
            contrib_group = self.create_element("div", {"class": "contrib-group"})
            article_meta.append(contrib_group)

            for contributor in contributors:
                contrib = self.create_element("span", {"id": contributor["_id"]})
                if contributor.get("isCorresponding"):
                    contrib["data-corresp"] = "yes"

                name = self.create_element("span", {"class": "contrib-name"})
                contrib.append(name)

                bibliographic_name = contributor.get("bibliographicName") or {}
                given = bibliographic_name.get("given")
                family = bibliographic_name.get("family")

                if given:
                    given_names = self.create_element("span", {"class": "contrib-given-names"})
                    given_names.string = given
                    name.append(given_names)

                if family:
                    if given:
                        name.append(" ")
                    surname = self.create_element("span", {"class": "contrib-surname"})
                    surname.string = family
                    name.append(surname)

                contrib_group.append(contrib)

        affiliations = [model for model in self.model_map.values() if is_affiliation(model)]
        if affiliations:
            affiliation_list = self.create_element("ol", {"class": "affiliations-list"})
            article_meta.append(affiliation_list)

            for affiliation in affiliations:
                item = self.create_element(
                    "li", {"class": "affiliations-list-item", "id": affiliation["_id"]}
                )
                if affiliation.get("institution"):
                    item.string = affiliation["institution"]
                affiliation_list.append(item)

    # ── body ──

    def build_body(self, fragment: Node) -> Tag:
        nodes = DOMSerializer.nodes_from_schema(schema)
        nodes.update(
            {
                "citation": self._citation,
                "cross_reference": self._cross_reference,
                "listing": self._listing,
                "text": lambda node: node.text,
            }
        )
        marks = DOMSerializer.marks_from_schema(schema)
        marks["styled"] = self._styled

        serializer = DOMSerializer(nodes, marks)
        body = self.create_element("div", {"class": "manuscript-body"})
        return serializer.serialize_fragment(fragment.content, self.document, body)

    def _citation(self, node: Node) -> Tag:
        element = self.create_element("span", {"class": "citation"})
        citation = self.get_model(node.attrs.get("rid"))
        if citation is not None:
            element["data-reference-ids"] = " ".join(
                item["bibliographyItem"] for item in citation.get("embeddedCitationItems") or []
            )
        else:
            logger.warning("Missing citation %s", node.attrs.get("rid"))
        if node.attrs.get("contents"):
            for child in list(element_with_html("span", {}, node.attrs["contents"]).contents):
                element.append(child.extract())
        return element

    def _cross_reference(self, node: Node) -> Tag:
        element = self.create_element("a", {"class": "cross-reference"})
        reference = self.get_model(node.attrs.get("rid"))
        if reference is not None:
            element["href"] = f"#{reference.get('referencedObject')}"
        element.string = node.attrs.get("label") or ""
        return element

    def _listing(self, node: Node) -> Tag:
        pre = self.create_element("pre", {"class": "listing"})
        if node.attrs.get("id"):
            pre["id"] = node.attrs["id"]
        code = self.create_element("code")
        if node.attrs.get("languageKey"):
            code["data-language"] = node.attrs["languageKey"]
        code.string = node.attrs.get("contents") or ""
        pre.append(code)
        return pre

    def _styled(self, mark: Mark, inline: bool) -> tuple:
        inline_style = self.get_model(mark.attrs.get("rid"))
        return ("span", {"class": build_styled_content_class(inline_style)})

    # ── fixups ──

    def figure_has_license(self, identifier: str) -> bool | None:
        figure = self.get_model(identifier)
        if figure is None:
            return None
        attribution = figure.get("attribution")
        if not attribution:
            return False
        return attribution.get("licenseID") is not None

    def fix_figure(self, node: Node, attachment_url_prefix: str) -> None:
        figure = self.document.find(attrs={"id": node.attrs["id"]})
        if figure is None:
            return

        if node.attrs.get("embedURL"):
            container = self.create_element("div", {"class": "figure-embed"})
            container.append(
                self.create_element(
                    "iframe",
                    {
                        "class": "figure-embed-object",
                        "src": node.attrs["embedURL"],
                        "height": "100%",
                        "width": "100%",
                        "allowfullscreen": "true",
                        "sandbox": "allow-scripts allow-same-origin",
                    },
                )
            )
            figure.insert(0, container)
            return

        filename = generate_attachment_filename(node.attrs["id"], node.attrs.get("contentType"))
        img = self.create_element("img", {"src": attachment_url_prefix + filename})
        if self.figure_has_license(node.attrs["id"]):
            img["data-licensed"] = "true"
        figure.insert(0, img)

    def fix_body(self, fragment: Node, attachment_url_prefix: str) -> None:
        for node, _ in fragment.descendants():
            identifier = node.attrs.get("id")
            if not identifier:
                continue

            if node.attrs.get("titleSuppressed") or node.attrs.get("suppressCaption"):
                element = self.document.find(attrs={"id": identifier})
                if element is not None:
                    if node.attrs.get("titleSuppressed"):
                        title = element.find("h1", recursive=False)
                        if title is not None:
                            title.decompose()
                    if node.attrs.get("suppressCaption"):
                        caption = element.find("figcaption", recursive=False)
                        if caption is not None:
                            caption.decompose()

            if is_node_type(node, "figure"):
                self.fix_figure(node, attachment_url_prefix)
