"""
Short plain-text titles for nodes, as shown in outlines.
"""

from __future__ import annotations

from manuscripts_transform.config import SNIPPET_LENGTH
from manuscripts_transform.node_types import NODE_NAMES
from manuscripts_transform.schema import Node, NodeType, schema

_nodes = schema.nodes


def snippet(node: Node, max_length: int = SNIPPET_LENGTH) -> str:
    """Text of *node*'s direct children; other inline nodes count as a space."""
    parts: list[str] = []
    for child in node.content:
        if child.is_text:
            parts.append(child.text)
        elif child.type is not _nodes["highlight_marker"]:
            parts.append(" ")
    return "".join(parts)[:max_length]


def _snippet_of_node_type(node: Node, node_type: NodeType) -> str | None:
    found = node.find_descendant(lambda child: child.type is node_type)
    return snippet(found) if found is not None else None


def _snippet_of_child_type(node: Node, node_type: NodeType) -> str | None:
    # figures carry their own figcaption, nested before the element's
    found = next((child for child in node.content if child.type is node_type), None)
    return snippet(found) if found is not None else None


def node_title(node: Node) -> str | None:
    node_type = node.type
    if node_type in (
        _nodes["section"],
        _nodes["bibliography_section"],
        _nodes["keywords_section"],
        _nodes["toc_section"],
    ):
        return _snippet_of_node_type(node, _nodes["section_title"])
    if node_type in (_nodes["ordered_list"], _nodes["bullet_list"]):
        return _snippet_of_node_type(node, _nodes["paragraph"])
    if node_type in (
        _nodes["figure_element"],
        _nodes["table_element"],
        _nodes["equation_element"],
        _nodes["listing_element"],
    ):
        return _snippet_of_child_type(node, _nodes["figcaption"])
    return snippet(node)


def node_title_placeholder(node_type: NodeType) -> str:
    if node_type is _nodes["section"]:
        return "Untitled Section"
    if node_type is _nodes["bibliography_section"]:
        return "Bibliography"
    if node_type is _nodes["manuscript"]:
        return "Untitled Manuscript"
    return NODE_NAMES.get(node_type, "")
