"""
Encoder: content tree → flat model map.

Every node with an ``id`` attribute becomes one model.  The fields of
each model are produced by a per-node-type encoder; HTML fields are
rendered with the schema's DOM serializer.  Sections additionally get a
``path`` (ancestor ids ending with their own id) and a ``priority``
taken from a counter that runs across the whole encode call, so that
sibling order survives a round trip.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from bs4 import Tag

from manuscripts_transform.errors import EncodeError
from manuscripts_transform.highlight_markers import extract_highlight_markers, is_highlightable_model
from manuscripts_transform.markup import (
    add_class,
    inner_html,
    new_html_document,
    outer_html,
    parse_html,
)
from manuscripts_transform.node_types import NODE_TYPES_MAP, is_section_node
from manuscripts_transform.schema import DOMSerializer, Node, schema
from manuscripts_transform.section_category import build_section_category

logger = logging.getLogger(__name__)

Model = dict[str, Any]

serializer = DOMSerializer.from_schema(schema)

# Never persisted as models
SKIPPED_NODE_TYPES = frozenset({"highlight_marker", "placeholder", "placeholder_element"})


class PriorityCounter:
    """Section priorities for one encode call, starting at 1."""

    def __init__(self, start: int = 1) -> None:
        self.value = start

    def next(self) -> int:
        value = self.value
        self.value += 1
        return value


# ── HTML rendering ────────────────────────────────────────────────────────


def _serialize(node: Node) -> Tag:
    return serializer.serialize_node(node, new_html_document())


def contents(node: Node) -> str:
    return outer_html(_serialize(node))


def inline_contents(node: Node) -> str:
    return inner_html(_serialize(node))


def inline_text(node: Node) -> str:
    return _serialize(node).get_text()


def list_contents(node: Node) -> str:
    """List HTML with the paragraph inside each item unwrapped."""
    output = _serialize(node)
    for paragraph in output.select("li > p"):
        paragraph.unwrap()
    return outer_html(output)


def svg_defs(svg: str | None) -> str | None:
    if not svg:
        return None
    defs = parse_html(svg.strip()).find("defs")
    return outer_html(defs) if defs is not None else None


def _table_row_display_style(tag_name: str, parent: Node) -> str | None:
    if tag_name == "thead":
        return "none" if parent.attrs.get("suppressHeader") else "table-header-group"
    if tag_name == "tfoot":
        return "none" if parent.attrs.get("suppressFooter") else "table-footer-group"
    return None


def _build_table_section(tag_name: str, input_rows: list[Tag], parent: Node) -> Tag:
    soup = new_html_document()
    section = soup.new_tag(tag_name)
    cell_type = "th" if tag_name == "thead" else "td"

    for input_row in input_rows:
        row = soup.new_tag("tr")
        section.append(row)
        for input_cell in input_row.find_all(["td", "th"], recursive=False):
            cell = soup.new_tag(cell_type)
            for name, value in input_cell.attrs.items():
                cell[name] = value
            for child in list(input_cell.contents):
                cell.append(child.extract())
            row.append(cell)

    display = _table_row_display_style(tag_name, parent)
    if display:
        section["style"] = f"display: {display};"
    return section


def table_contents(node: Node, parent: Node) -> str:
    """Table HTML with the first row as header and the last row as footer."""
    rendered = _serialize(node)

    output = new_html_document().new_tag("table")
    output["id"] = parent.attrs["id"]
    add_class(output, "MPElement")
    if parent.attrs.get("tableStyle"):
        add_class(output, parent.attrs["tableStyle"].replace(":", "_"))
    if parent.attrs.get("paragraphStyle"):
        add_class(output, parent.attrs["paragraphStyle"].replace(":", "_"))
    output["data-contained-object-id"] = node.attrs["id"]

    rows = rendered.find_all("tr")
    header, rows = rows[:1], rows[1:]
    footer, body = rows[-1:], rows[:-1]

    output.append(_build_table_section("thead", header, parent))
    output.append(_build_table_section("tbody", body, parent))
    output.append(_build_table_section("tfoot", footer, parent))
    return outer_html(output)


def element_contents(node: Node) -> str:
    rendered = _serialize(node)
    add_class(rendered, "MPElement")
    if node.attrs.get("paragraphStyle"):
        add_class(rendered, node.attrs["paragraphStyle"].replace(":", "_"))
    if node.attrs.get("id"):
        rendered["id"] = node.attrs["id"]
    return outer_html(rendered)


# ── Child lookups ─────────────────────────────────────────────────────────


def _child_elements(node: Node) -> list[Node]:
    return [child for child in node.content if not is_section_node(child)]


def _attribute_of_node_type(node: Node, type_name: str, attribute: str) -> str:
    for child, _ in node.descendants():
        if child.type.name == type_name:
            return child.attrs[attribute]
    return ""


def _inline_contents_of_node_type(node: Node, type_name: str) -> str:
    for child in node.content:
        if child.type.name == type_name:
            return inline_contents(child)
    return ""


def _contained_figure_ids(node: Node) -> list[str]:
    return [child.attrs["id"] for child in node.content if child.type.name == "figure"]


# ── Per-node-type encoders ────────────────────────────────────────────────

NodeEncoder = Callable[[Node, Node, list, PriorityCounter], Model]


def _section(node: Node, parent: Node, path: list[str], priority: PriorityCounter) -> Model:
    data = {
        "category": build_section_category(node),
        "priority": priority.next(),
        "title": _inline_contents_of_node_type(node, "section_title"),
        "path": [*path, node.attrs["id"]],
        "elementIDs": [
            child.attrs["id"] for child in _child_elements(node) if child.attrs.get("id")
        ],
    }
    if node.type.name == "section":
        data["titleSuppressed"] = node.attrs.get("titleSuppressed") or None
        data["pageBreakStyle"] = node.attrs.get("pageBreakStyle") or None
    return data


def _quote(quote_type: str) -> NodeEncoder:
    def encode_quote(node, parent, path, priority):
        return {
            "contents": contents(node),
            "elementType": "div",
            "paragraphStyle": node.attrs.get("paragraphStyle") or None,
            "placeholderInnerHTML": node.attrs.get("placeholder") or "",
            "quoteType": quote_type,
        }

    return encode_quote


def _list(element_type: str) -> NodeEncoder:
    def encode_list(node, parent, path, priority):
        return {
            "elementType": element_type,
            "contents": list_contents(node),
            "paragraphStyle": node.attrs.get("paragraphStyle") or None,
        }

    return encode_list


def _generated_element(node, parent, path, priority):
    return {
        "contents": element_contents(node),
        "elementType": "div",
        "paragraphStyle": node.attrs.get("paragraphStyle") or None,
    }


ENCODERS: dict[str, NodeEncoder] = {
    "bibliography_element": lambda node, parent, path, priority: {
        "elementType": "div",
        "contents": contents(node),
        "paragraphStyle": node.attrs.get("paragraphStyle") or None,
    },
    "bibliography_section": _section,
    "blockquote_element": _quote("block"),
    "bullet_list": _list("ul"),
    "equation": lambda node, parent, path, priority: {
        "MathMLStringRepresentation": node.attrs.get("MathMLStringRepresentation") or None,
        "TeXRepresentation": node.attrs["TeXRepresentation"],
        "SVGStringRepresentation": node.attrs["SVGStringRepresentation"],
    },
    "equation_element": lambda node, parent, path, priority: {
        "containedObjectID": _attribute_of_node_type(node, "equation", "id"),
        "caption": _inline_contents_of_node_type(node, "figcaption"),
        "elementType": "p",
        "suppressCaption": bool(node.attrs.get("suppressCaption")) or None,
    },
    "figure": lambda node, parent, path, priority: {
        "title": _inline_contents_of_node_type(node, "figcaption") or None,
        "contentType": node.attrs.get("contentType") or None,
        "embedURL": node.attrs.get("embedURL") or None,
        "originalURL": node.attrs.get("originalURL") or None,
        "listingAttachment": node.attrs.get("listingAttachment") or None,
    },
    "figure_element": lambda node, parent, path, priority: {
        "containedObjectIDs": _contained_figure_ids(node),
        "caption": _inline_contents_of_node_type(node, "figcaption"),
        "elementType": "figure",
        "listingID": _attribute_of_node_type(node, "listing", "id") or None,
        "alignment": node.attrs.get("alignment") or None,
        "sizeFraction": node.attrs.get("sizeFraction") or None,
        "suppressCaption": bool(node.attrs.get("suppressCaption")) or None,
        "figureStyle": node.attrs.get("figureStyle") or None,
        "figureLayout": node.attrs.get("figureLayout") or None,
    },
    "footnote": lambda node, parent, path, priority: {
        "containingObject": parent.attrs.get("id") or None,
        "contents": contents(node),
    },
    "footnotes_element": lambda node, parent, path, priority: {
        "contents": contents(node),
        "paragraphStyle": node.attrs.get("paragraphStyle") or None,
    },
    "inline_equation": lambda node, parent, path, priority: {
        "containingObject": parent.attrs.get("id") or None,
        "TeXRepresentation": node.attrs["TeXRepresentation"],
        "SVGRepresentation": node.attrs["SVGRepresentation"],
        "SVGGlyphs": svg_defs(node.attrs["SVGRepresentation"]),
    },
    "keywords_element": _generated_element,
    "keywords_section": _section,
    "listing": lambda node, parent, path, priority: {
        "contents": node.attrs.get("contents") or "",
        "language": node.attrs.get("language") or None,
        "languageKey": node.attrs.get("languageKey") or "null",
    },
    "listing_element": lambda node, parent, path, priority: {
        "containedObjectID": _attribute_of_node_type(node, "listing", "id"),
        "caption": _inline_contents_of_node_type(node, "figcaption"),
        "elementType": "figure",
        "suppressCaption": bool(node.attrs.get("suppressCaption")) or None,
    },
    "ordered_list": _list("ol"),
    "paragraph": lambda node, parent, path, priority: {
        "elementType": "p",
        "contents": contents(node),
        "paragraphStyle": node.attrs.get("paragraphStyle") or None,
        "placeholderInnerHTML": node.attrs.get("placeholder") or "",
    },
    "pullquote_element": _quote("pull"),
    "section": _section,
    "table": lambda node, parent, path, priority: {
        "contents": table_contents(node, parent),
        "listingAttachment": node.attrs.get("listingAttachment") or None,
    },
    "table_element": lambda node, parent, path, priority: {
        "containedObjectID": _attribute_of_node_type(node, "table", "id"),
        "caption": _inline_contents_of_node_type(node, "figcaption"),
        "elementType": "table",
        "listingID": _attribute_of_node_type(node, "listing", "id") or None,
        "paragraphStyle": node.attrs.get("paragraphStyle") or None,
        "suppressCaption": bool(node.attrs.get("suppressCaption")) or None,
        "suppressFooter": bool(node.attrs.get("suppressFooter")) or None,
        "suppressHeader": bool(node.attrs.get("suppressHeader")) or None,
        "tableStyle": node.attrs.get("tableStyle") or None,
    },
    "toc_element": _generated_element,
    "toc_section": _section,
}


def model_from_node(
    node: Node, parent: Node, path: list[str], priority: PriorityCounter
) -> Model:
    """Build the model for one node, with highlight markers extracted."""
    encoder = ENCODERS.get(node.type.name)
    if encoder is None:
        raise EncodeError(f"Unhandled model: {node.type.name}", node.type.name)

    data = encoder(node, parent, path, priority)
    model = {key: value for key, value in data.items() if value is not None}
    model["_id"] = node.attrs["id"]
    model["objectType"] = NODE_TYPES_MAP[node.type].value

    if is_highlightable_model(model):
        extract_highlight_markers(model)
    return model


def encode(node: Node) -> dict[str, Model]:
    """Encode the children of *node* (usually a ``manuscript``) into models."""
    models: dict[str, Model] = {}
    priority = PriorityCounter()

    def add_model(child: Node, parent: Node, path: list[str]) -> None:
        if not child.attrs.get("id"):
            return
        if child.type.name in SKIPPED_NODE_TYPES:
            return
        model = model_from_node(child, parent, path, priority)
        models[model["_id"]] = model
        for grandchild in child.content:
            add_model(grandchild, child, [*path, child.attrs["id"]])

    for child in node.content:
        add_model(child, node, [])

    logger.debug("Encoded %d models", len(models))
    return models
