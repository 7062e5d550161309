"""
Decoder: flat model map → content tree.

The decoder starts from the root sections (``path`` of length ≤ 1),
materializes each section with its elements and nested sections, and
wraps them in a single ``manuscript`` node.

Missing data never fails a decode:

* an element id with no model becomes a ``placeholder_element``;
* a contained figure, table, equation or listing with no model becomes
  a ``placeholder`` labelled with the missing kind;
* a model of an unknown object type is logged and skipped.

Content that cannot be arranged into a valid section raises
``DecodeError`` naming the section.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Iterable

from bs4 import Tag

from manuscripts_transform.config import VOLATILE_MODEL_FIELDS, ObjectType
from manuscripts_transform.errors import DecodeError, InvalidContentError
from manuscripts_transform.highlight_markers import insert_highlight_markers
from manuscripts_transform.ids import generate_node_id
from manuscripts_transform.markup import first_element, parse_html, strip_namespace_attrs
from manuscripts_transform.schema import DOMParser, Node, schema
from manuscripts_transform.section_category import (
    choose_section_node_type,
    guess_section_category,
)
from manuscripts_transform.section_tree import sort_key

logger = logging.getLogger(__name__)

Model = dict[str, Any]
ModelMap = dict[str, Model]

_nodes = schema.nodes


# ── Model map helpers ─────────────────────────────────────────────────────


def get_model_data(model: Model) -> Model:
    """Copy of *model* without storage bookkeeping fields."""
    return {key: value for key, value in model.items() if key not in VOLATILE_MODEL_FIELDS}


def build_model_map(models: Iterable[Model]) -> ModelMap:
    return {model["_id"]: get_model_data(model) for model in models}


def get_models_by_type(model_map: ModelMap, object_type: ObjectType | str) -> list[Model]:
    return [model for model in model_map.values() if model.get("objectType") == object_type]


def sort_sections_by_priority(a: Model, b: Model) -> int:
    """Three-way comparison of two sections by ``priority``."""
    first, second = sort_key(a), sort_key(b)
    if first == second:
        return 0
    return -1 if first < second else 1


# ── Decoder ───────────────────────────────────────────────────────────────


class Decoder:
    """Rebuild a content tree from *model_map*.

    Parameters
    ----------
    model_map : dict
        Models keyed by ``_id``.
    parse_html_fragment : callable, optional
        ``html → container`` used to parse HTML fields; the first element
        of the returned container is parsed.  Defaults to BeautifulSoup
        with the ``html.parser`` builder.
    """

    def __init__(
        self,
        model_map: ModelMap,
        parse_html_fragment: Callable[[str], Tag] | None = None,
    ) -> None:
        self.model_map = model_map
        self.parse_html_fragment = parse_html_fragment or parse_html
        self.parser = DOMParser.from_schema(schema)
        self.creators: dict[str, Callable[[Model], Node]] = {
            ObjectType.BIBLIOGRAPHY_ELEMENT.value: self._bibliography_element,
            ObjectType.EQUATION_ELEMENT.value: self._equation_element,
            ObjectType.FIGURE_ELEMENT.value: self._figure_element,
            ObjectType.FOOTNOTES_ELEMENT.value: self._footnotes_element,
            ObjectType.KEYWORDS_ELEMENT.value: self._keywords_element,
            ObjectType.LIST_ELEMENT.value: self._list_element,
            ObjectType.LISTING_ELEMENT.value: self._listing_element,
            ObjectType.PARAGRAPH_ELEMENT.value: self._paragraph_element,
            ObjectType.PLACEHOLDER_ELEMENT.value: self._placeholder_element,
            ObjectType.QUOTE_ELEMENT.value: self._quote_element,
            ObjectType.SECTION.value: self._section,
            ObjectType.TABLE_ELEMENT.value: self._table_element,
            ObjectType.TOC_ELEMENT.value: self._toc_element,
        }
        self._children = self._group_sections()

    # ── public API ──

    def get_model(self, identifier: str | None) -> Model | None:
        if not identifier:
            return None
        return self.model_map.get(identifier)

    def decode(self, model: Model) -> Node | None:
        """Materialize one model, or return ``None`` for unknown object types."""
        creator = self.creators.get(model.get("objectType"))
        if creator is None:
            logger.warning(
                "No converter for %s, skipping %s", model.get("objectType"), model.get("_id")
            )
            return None
        return creator(model)

    def create_article_node(self, manuscript_id: str | None = None) -> Node:
        """Build the ``manuscript`` node holding every root section."""
        roots = [
            model
            for model in self._children[None]
            if manuscript_id is None or model.get("manuscriptID") in (None, manuscript_id)
        ]
        sections = [node for node in map(self.decode, roots) if node is not None]

        if not sections:
            sections.append(
                _nodes["section"].create_and_fill({"id": generate_node_id(_nodes["section"])})
            )

        return _nodes["manuscript"].create({"id": manuscript_id or ""}, sections)

    def parse_contents(
        self,
        contents: str,
        top_node: Node | None = None,
        field: str | None = None,
        model: Model | None = None,
    ) -> Node:
        """Parse an HTML field into *top_node*.

        When *model* carries highlight markers for *field* they are
        spliced into *contents* first.
        """
        if model is not None and field and model.get("highlightMarkers"):
            contents = insert_highlight_markers(field, contents, model["highlightMarkers"])
        element = first_element(self.parse_html_fragment(contents))
        if element is None:
            raise DecodeError("No content could be parsed", model.get("_id") if model else None)
        return self.parser.parse(element, top_node=top_node)

    # ── sections ──

    def _group_sections(self) -> dict[str | None, list[Model]]:
        """Parent id → child sections sorted by priority, built in one pass."""
        children: dict[str | None, list[Model]] = defaultdict(list)
        for model in self.model_map.values():
            if model.get("objectType") != ObjectType.SECTION.value:
                continue
            path = model.get("path") or []
            parent = path[-2] if len(path) > 1 else None
            children[parent].append(model)
        for models in children.values():
            models.sort(key=sort_key)
        return children

    def _section(self, model: Model) -> Node:
        elements: list[Model] = []
        for element_id in model.get("elementIDs") or []:
            element = self.get_model(element_id)
            if element is None:
                element = {
                    "_id": element_id,
                    "containerID": model["_id"],
                    "elementType": "p",
                    "objectType": ObjectType.PLACEHOLDER_ELEMENT.value,
                }
            elif element.get("objectType") == ObjectType.SECTION.value:
                # nested sections come from their paths
                continue
            elements.append(element)

        element_nodes = [node for node in map(self.decode, elements) if node is not None]

        title = (
            self.parse_contents(
                f"<h1>{model['title']}</h1>",
                _nodes["section_title"].create(),
                "title",
                model,
            )
            if model.get("title")
            else _nodes["section_title"].create()
        )

        nested = [self._section(child) for child in self._children.get(model["_id"], [])]

        category = model.get("category") or guess_section_category(elements)
        node_type = choose_section_node_type(category)

        section = node_type.create_and_fill(
            {
                "id": model["_id"],
                "category": category or "",
                "titleSuppressed": bool(model.get("titleSuppressed")),
                "pageBreakStyle": model.get("pageBreakStyle"),
            }
            if node_type is _nodes["section"]
            else {"id": model["_id"]},
            [title, *element_nodes, *nested],
        )
        if section is None:
            raise DecodeError(f"Invalid content for section {model['_id']}", model["_id"])
        return section

    # ── elements ──

    def _figcaption(self, model: Model, field: str = "caption") -> Node:
        figcaption = _nodes["figcaption"].create()
        if not model.get(field):
            return figcaption
        return self.parse_contents(
            f"<figcaption>{model[field]}</figcaption>", figcaption, field, model
        )

    def _listing(self, identifier: str | None, missing_label: str = "A listing") -> Node:
        listing = self.get_model(identifier)
        if listing is None:
            return _nodes["placeholder"].create({"id": identifier or "", "label": missing_label})
        return _nodes["listing"].create(
            {
                "id": listing["_id"],
                "contents": listing.get("contents") or "",
                "language": listing.get("language") or "",
                "languageKey": listing.get("languageKey") or "null",
            }
        )

    def _create_checked(self, node_type_name: str, model: Model, attrs, content) -> Node:
        try:
            return _nodes[node_type_name].create_checked(attrs, content)
        except InvalidContentError as exc:
            raise DecodeError(str(exc), model["_id"]) from exc

    def _bibliography_element(self, model: Model) -> Node:
        contents = model.get("contents")
        return _nodes["bibliography_element"].create(
            {
                "id": model["_id"],
                "contents": strip_namespace_attrs(contents) if contents else "",
                "paragraphStyle": model.get("paragraphStyle") or "",
            }
        )

    def _placeholder_element(self, model: Model) -> Node:
        return _nodes["placeholder_element"].create({"id": model["_id"]})

    def _figure(self, identifier: str) -> Node:
        if not identifier:
            return _nodes["figure"].create_and_fill()
        figure = self.get_model(identifier)
        if figure is None:
            return _nodes["placeholder"].create({"id": identifier, "label": "A figure"})
        return _nodes["figure"].create(
            {
                "id": figure["_id"],
                "contentType": figure.get("contentType") or "",
                "src": figure.get("src") or "",
                "listingAttachment": figure.get("listingAttachment"),
                "embedURL": figure.get("embedURL"),
                "originalURL": figure.get("originalURL"),
            },
            [self._figcaption(figure, "title")],
        )

    def _figure_element(self, model: Model) -> Node:
        contained = model.get("containedObjectIDs") or []
        figures = [self._figure(identifier) for identifier in contained] or [
            _nodes["figure"].create_and_fill()
        ]
        listing_id = model.get("listingID")
        listing = self._listing(listing_id) if listing_id else _nodes["listing"].create()

        return self._create_checked(
            "figure_element",
            model,
            {
                "id": model["_id"],
                "figureLayout": model.get("figureLayout") or "",
                "figureStyle": model.get("figureStyle") or "",
                "alignment": model.get("alignment"),
                "sizeFraction": model.get("sizeFraction"),
                "suppressCaption": bool(model.get("suppressCaption")),
            },
            [*figures, self._figcaption(model), listing],
        )

    def _equation_element(self, model: Model) -> Node:
        equation_model = self.get_model(model.get("containedObjectID"))
        if equation_model is not None:
            equation = _nodes["equation"].create(
                {
                    "id": equation_model["_id"],
                    "MathMLStringRepresentation": equation_model.get(
                        "MathMLStringRepresentation"
                    )
                    or "",
                    "SVGStringRepresentation": equation_model.get("SVGStringRepresentation")
                    or "",
                    "TeXRepresentation": equation_model.get("TeXRepresentation") or "",
                }
            )
        else:
            equation = _nodes["placeholder"].create(
                {"id": model.get("containedObjectID") or "", "label": "An equation"}
            )
        return self._create_checked(
            "equation_element",
            model,
            {"id": model["_id"], "suppressCaption": bool(model.get("suppressCaption"))},
            [equation, self._figcaption(model)],
        )

    def _listing_element(self, model: Model) -> Node:
        return self._create_checked(
            "listing_element",
            model,
            {"id": model["_id"], "suppressCaption": bool(model.get("suppressCaption"))},
            [self._listing(model.get("containedObjectID") or ""), self._figcaption(model)],
        )

    def _table_element(self, model: Model) -> Node:
        table_model = self.get_model(model.get("containedObjectID"))
        if table_model is not None:
            table = self.parse_contents(
                table_model.get("contents") or "<table></table>",
                _nodes["table"].create({"id": table_model["_id"]}),
                "contents",
                table_model,
            )
        else:
            table = _nodes["placeholder"].create(
                {"id": model.get("containedObjectID") or "", "label": "A table"}
            )
        listing_id = model.get("listingID")
        listing = self._listing(listing_id) if listing_id else _nodes["listing"].create()

        return self._create_checked(
            "table_element",
            model,
            {
                "id": model["_id"],
                "suppressCaption": bool(model.get("suppressCaption")),
                "suppressFooter": bool(model.get("suppressFooter")),
                "suppressHeader": bool(model.get("suppressHeader")),
                "tableStyle": model.get("tableStyle") or "",
                "paragraphStyle": model.get("paragraphStyle") or "",
            },
            [table, self._figcaption(model), listing],
        )

    def _footnotes_element(self, model: Model) -> Node:
        return self.parse_contents(
            model.get("contents") or '<div class="footnotes"></div>',
            _nodes["footnotes_element"].create(
                {"id": model["_id"], "paragraphStyle": model.get("paragraphStyle") or ""}
            ),
            "contents",
            model,
        )

    def _keywords_element(self, model: Model) -> Node:
        return _nodes["keywords_element"].create(
            {
                "id": model["_id"],
                "contents": model.get("contents") or "",
                "paragraphStyle": model.get("paragraphStyle") or "",
            }
        )

    def _toc_element(self, model: Model) -> Node:
        return _nodes["toc_element"].create(
            {
                "id": model["_id"],
                "contents": model.get("contents") or "",
                "paragraphStyle": model.get("paragraphStyle") or "",
            }
        )

    def _list_element(self, model: Model) -> Node:
        element_type = model.get("elementType")
        if element_type == "ol":
            node_type, empty = _nodes["ordered_list"], "<ol></ol>"
        elif element_type == "ul":
            node_type, empty = _nodes["bullet_list"], "<ul></ul>"
        else:
            raise DecodeError("Unknown list element type", model["_id"])
        return self.parse_contents(
            model.get("contents") or empty,
            node_type.create(
                {"id": model["_id"], "paragraphStyle": model.get("paragraphStyle") or ""}
            ),
            "contents",
            model,
        )

    def _paragraph_element(self, model: Model) -> Node:
        return self.parse_contents(
            model.get("contents") or "<p></p>",
            _nodes["paragraph"].create(
                {
                    "id": model["_id"],
                    "paragraphStyle": model.get("paragraphStyle") or "",
                    "placeholder": model.get("placeholderInnerHTML") or "",
                }
            ),
            "contents",
            model,
        )

    def _quote_element(self, model: Model) -> Node:
        if model.get("quoteType") == "pull":
            node_type, empty = _nodes["pullquote_element"], '<aside class="pullquote"></aside>'
        else:
            node_type, empty = _nodes["blockquote_element"], "<blockquote></blockquote>"
        return self.parse_contents(
            model.get("contents") or empty,
            node_type.create(
                {
                    "id": model["_id"],
                    "paragraphStyle": model.get("paragraphStyle") or "",
                    "placeholder": model.get("placeholderInnerHTML") or "",
                }
            ),
            "contents",
            model,
        )


def decode(model_map: ModelMap, manuscript_id: str | None = None) -> Node:
    return Decoder(model_map).create_article_node(manuscript_id)
