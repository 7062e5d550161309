"""
Two-way mapping between content node types and flat model object types.
"""

from __future__ import annotations

from manuscripts_transform.config import ObjectType
from manuscripts_transform.schema import GROUP_ELEMENT, GROUP_EXECUTABLE, Node, NodeType, schema

_nodes = schema.nodes

NODE_TYPES_MAP: dict[NodeType, ObjectType] = {
    _nodes["bibliography_element"]: ObjectType.BIBLIOGRAPHY_ELEMENT,
    _nodes["bibliography_section"]: ObjectType.SECTION,
    _nodes["blockquote_element"]: ObjectType.QUOTE_ELEMENT,
    _nodes["bullet_list"]: ObjectType.LIST_ELEMENT,
    _nodes["citation"]: ObjectType.CITATION,
    _nodes["cross_reference"]: ObjectType.AUXILIARY_OBJECT_REFERENCE,
    _nodes["equation"]: ObjectType.EQUATION,
    _nodes["equation_element"]: ObjectType.EQUATION_ELEMENT,
    _nodes["figure"]: ObjectType.FIGURE,
    _nodes["figure_element"]: ObjectType.FIGURE_ELEMENT,
    _nodes["footnote"]: ObjectType.FOOTNOTE,
    _nodes["footnotes_element"]: ObjectType.FOOTNOTES_ELEMENT,
    _nodes["highlight_marker"]: ObjectType.HIGHLIGHT_MARKER,
    _nodes["inline_equation"]: ObjectType.INLINE_MATH_FRAGMENT,
    _nodes["keywords_element"]: ObjectType.KEYWORDS_ELEMENT,
    _nodes["keywords_section"]: ObjectType.SECTION,
    _nodes["listing"]: ObjectType.LISTING,
    _nodes["listing_element"]: ObjectType.LISTING_ELEMENT,
    _nodes["manuscript"]: ObjectType.MANUSCRIPT,
    _nodes["ordered_list"]: ObjectType.LIST_ELEMENT,
    _nodes["paragraph"]: ObjectType.PARAGRAPH_ELEMENT,
    _nodes["placeholder_element"]: ObjectType.PLACEHOLDER_ELEMENT,
    _nodes["pullquote_element"]: ObjectType.QUOTE_ELEMENT,
    _nodes["section"]: ObjectType.SECTION,
    _nodes["table"]: ObjectType.TABLE,
    _nodes["table_element"]: ObjectType.TABLE_ELEMENT,
    _nodes["toc_element"]: ObjectType.TOC_ELEMENT,
    _nodes["toc_section"]: ObjectType.SECTION,
}

SECTION_NODE_TYPES: tuple[NodeType, ...] = (
    _nodes["section"],
    _nodes["bibliography_section"],
    _nodes["keywords_section"],
    _nodes["toc_section"],
)

# Display names used for node titles and outlines
NODE_NAMES: dict[NodeType, str] = {
    _nodes["bibliography_element"]: "Bibliography",
    _nodes["bibliography_section"]: "Section",
    _nodes["citation"]: "Citation",
    _nodes["listing_element"]: "Listing",
    _nodes["cross_reference"]: "Cross Reference",
    _nodes["equation_element"]: "Equation",
    _nodes["figure_element"]: "Figure",
    _nodes["bullet_list"]: "Bullet List",
    _nodes["ordered_list"]: "Ordered List",
    _nodes["manuscript"]: "Manuscript",
    _nodes["paragraph"]: "Paragraph",
    _nodes["section"]: "Section",
    _nodes["section_title"]: "Section",
    _nodes["table"]: "Table",
    _nodes["table_element"]: "Table",
    _nodes["blockquote_element"]: "Block Quote",
    _nodes["pullquote_element"]: "Pull Quote",
    _nodes["keywords_section"]: "Section",
    _nodes["toc_section"]: "Section",
}


def object_type_for(node_type: NodeType) -> ObjectType | None:
    return NODE_TYPES_MAP.get(node_type)


def node_types_for(object_type: ObjectType | str) -> list[NodeType]:
    """All node types persisted as *object_type* (several map to ``MPSection``)."""
    return [node_type for node_type, mapped in NODE_TYPES_MAP.items() if mapped == object_type]


def is_node_type(node: Node, name: str) -> bool:
    return node.type is node.type.schema.nodes[name]


def is_element_node(node: Node) -> bool:
    return GROUP_ELEMENT in node.type.groups


def is_executable_node(node: Node) -> bool:
    return GROUP_EXECUTABLE in node.type.groups


def is_section_node(node: Node) -> bool:
    return node.type in SECTION_NODE_TYPES
