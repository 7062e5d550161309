"""
Section categories.

A category is stored as ``"MPSectionCategory:<suffix>"``.  It decides
the node type a section decodes to (bibliography, keywords and table of
contents sections have their own node types), the JATS ``sec-type`` a
section is exported with, and whether an exported section is moved to
``<front>`` or ``<back>``.
"""

from __future__ import annotations

from typing import Any

from bs4 import Tag

from manuscripts_transform.config import (
    CATEGORY_SEC_TYPES,
    SEC_TYPE_CATEGORIES,
    SECTION_CATEGORY_PREFIX,
    SECTION_TITLE_CATEGORIES,
    ObjectType,
)
from manuscripts_transform.markup import collapse_whitespace, element_children
from manuscripts_transform.schema import Node, NodeType, schema

_nodes = schema.nodes

# Sections whose single element is generated rather than edited
_ELEMENT_SECTION_TYPES: tuple[NodeType, ...] = (
    _nodes["bibliography_section"],
    _nodes["keywords_section"],
    _nodes["toc_section"],
)

_SECTION_NODE_TYPES: tuple[NodeType, ...] = (_nodes["section"], *_ELEMENT_SECTION_TYPES)

_CATEGORY_NODE_TYPES: dict[str, NodeType] = {
    f"{SECTION_CATEGORY_PREFIX}bibliography": _nodes["bibliography_section"],
    f"{SECTION_CATEGORY_PREFIX}keywords": _nodes["keywords_section"],
    f"{SECTION_CATEGORY_PREFIX}toc": _nodes["toc_section"],
}

_ELEMENT_CATEGORIES: dict[str, str] = {
    ObjectType.BIBLIOGRAPHY_ELEMENT.value: f"{SECTION_CATEGORY_PREFIX}bibliography",
    ObjectType.KEYWORDS_ELEMENT.value: f"{SECTION_CATEGORY_PREFIX}keywords",
    ObjectType.TOC_ELEMENT.value: f"{SECTION_CATEGORY_PREFIX}toc",
}

# JATS fn-type values that differ from the footnote category name
_FN_TYPES: dict[str, str] = {
    "competing-interests": "coi-statement",
    "financial-disclosure": "financial-disclosure",
}


def is_any_section_node(node: Node) -> bool:
    return node.type in _SECTION_NODE_TYPES


def is_any_element_section_node(node: Node) -> bool:
    """Bibliography, keywords and table-of-contents sections."""
    return node.type in _ELEMENT_SECTION_TYPES


def is_editable_section_node(node: Node) -> bool:
    return node.type is _nodes["section"]


def section_category_suffix(category: str) -> str:
    if category.startswith(SECTION_CATEGORY_PREFIX):
        return category[len(SECTION_CATEGORY_PREFIX):]
    return category


def choose_section_node_type(category: str | None) -> NodeType:
    return _CATEGORY_NODE_TYPES.get(category or "", _nodes["section"])


def guess_section_category(elements: list[dict[str, Any]]) -> str | None:
    """Category implied by a section's first element.

    Only used for legacy sections saved without a ``category``.
    """
    if not elements:
        return None
    return _ELEMENT_CATEGORIES.get(elements[0].get("objectType"))


def build_section_category(node: Node) -> str | None:
    """Category to store for a section node.

    The element-section node types imply their category; plain sections
    carry it as an attribute.
    """
    for category, node_type in _CATEGORY_NODE_TYPES.items():
        if node.type is node_type:
            return category
    return node.attrs.get("category") or None


def choose_section_category(section: Tag) -> str | None:
    """Category for a JATS ``<sec>``: from ``sec-type``, else from its title."""
    sec_type = section.get("sec-type")
    if sec_type and sec_type in SEC_TYPE_CATEGORIES:
        return SECTION_CATEGORY_PREFIX + SEC_TYPE_CATEGORIES[sec_type]

    for child in element_children(section):
        if child.name == "title":
            title = collapse_whitespace(child.get_text()).lower()
            if title in SECTION_TITLE_CATEGORIES:
                return SECTION_CATEGORY_PREFIX + SECTION_TITLE_CATEGORIES[title]
            break
    return None


def choose_sec_type(category: str) -> str:
    """JATS ``sec-type`` for a category."""
    suffix = section_category_suffix(category)
    return CATEGORY_SEC_TYPES.get(suffix, suffix)


def choose_jats_fn_fn_type(kind: str) -> str:
    return _FN_TYPES.get(kind, kind)
