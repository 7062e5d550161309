"""
Schema-driven DOM serializer.

Each node or mark type maps to an output spec:

* a ``str``: emitted as a text node;
* a bs4 ``Tag``: used as is;
* a tuple ``("tag", {attrs}?, *children)`` where a child may be a nested
  spec or ``0``, the hole into which the node's content is rendered.

Attributes whose value is ``None`` are not written.
"""

from __future__ import annotations

from typing import Any, Callable

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from manuscripts_transform.markup import new_html_document
from manuscripts_transform.schema.model import Mark, Node, Schema

CONTENT_HOLE = 0

NodeSerializer = Callable[[Node], Any]
MarkSerializer = Callable[[Mark, bool], Any]


def _attribute_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_spec(soup: BeautifulSoup, structure: Any) -> tuple[PageElement, Tag | None]:
    """Build the DOM for an output spec; return ``(dom, content_dom)``."""
    if isinstance(structure, str):
        return NavigableString(structure), None
    if isinstance(structure, PageElement):
        return structure, None

    dom = soup.new_tag(structure[0])
    content_dom: Tag | None = None
    start = 1
    if len(structure) > 1 and isinstance(structure[1], dict):
        start = 2
        for name, value in structure[1].items():
            if value is not None:
                dom[name] = _attribute_value(value)

    for index in range(start, len(structure)):
        child = structure[index]
        if isinstance(child, int) and not isinstance(child, bool) and child == CONTENT_HOLE:
            if index < len(structure) - 1 or index > start:
                raise ValueError("Content hole must be the only child of its parent node")
            return dom, dom
        inner, inner_content = render_spec(soup, child)
        dom.append(inner)
        if inner_content is not None:
            if content_dom is not None:
                raise ValueError("Multiple content holes")
            content_dom = inner_content
    return dom, content_dom


class DOMSerializer:
    """Render nodes to BeautifulSoup elements with per-type output specs."""

    def __init__(
        self, nodes: dict[str, NodeSerializer], marks: dict[str, MarkSerializer]
    ) -> None:
        self.nodes = nodes
        self.marks = marks

    @classmethod
    def from_schema(cls, schema: Schema) -> DOMSerializer:
        if "dom_serializer" not in schema.cached:
            schema.cached["dom_serializer"] = cls(
                cls.nodes_from_schema(schema), cls.marks_from_schema(schema)
            )
        return schema.cached["dom_serializer"]

    @staticmethod
    def nodes_from_schema(schema: Schema) -> dict[str, NodeSerializer]:
        result = {
            name: node_type.spec.to_dom
            for name, node_type in schema.nodes.items()
            if node_type.spec.to_dom is not None
        }
        result.setdefault("text", lambda node: node.text)
        return result

    @staticmethod
    def marks_from_schema(schema: Schema) -> dict[str, MarkSerializer]:
        return {
            name: mark_type.spec.to_dom
            for name, mark_type in schema.marks.items()
            if mark_type.spec.to_dom is not None
        }

    # ── serialization ──

    def serialize_fragment(
        self,
        nodes: list[Node],
        soup: BeautifulSoup | None = None,
        target: Tag | None = None,
    ) -> Tag:
        """Render *nodes* into *target* (default: a fresh container)."""
        soup = soup if soup is not None else new_html_document()
        target = target if target is not None else new_html_document()
        top: Tag = target
        active: list[tuple[Mark, Tag]] = []

        for node in nodes:
            if active or node.marks:
                keep = 0
                rendered = 0
                while keep < len(active) and rendered < len(node.marks):
                    following = node.marks[rendered]
                    if following.type.name not in self.marks:
                        rendered += 1
                        continue
                    if following != active[keep][0] or not following.type.spec.spanning:
                        break
                    keep += 1
                    rendered += 1
                while keep < len(active):
                    top = active.pop()[1]
                while rendered < len(node.marks):
                    added = node.marks[rendered]
                    rendered += 1
                    mark_dom = self.serialize_mark(added, node.is_inline, soup)
                    if mark_dom is not None:
                        active.append((added, top))
                        top.append(mark_dom[0])
                        top = mark_dom[1] if mark_dom[1] is not None else mark_dom[0]
            top.append(self.serialize_node_inner(node, soup))
        return target

    def serialize_node_inner(self, node: Node, soup: BeautifulSoup) -> PageElement:
        if node.type.name not in self.nodes:
            raise KeyError(f"No serializer for node type {node.type.name}")
        dom, content_dom = render_spec(soup, self.nodes[node.type.name](node))
        if content_dom is not None:
            if node.is_leaf:
                raise ValueError("Content hole not allowed in a leaf node spec")
            self.serialize_fragment(node.content, soup, content_dom)
        return dom

    def serialize_node(self, node: Node, soup: BeautifulSoup | None = None) -> PageElement:
        """Render a single node together with its marks."""
        soup = soup if soup is not None else new_html_document()
        dom = self.serialize_node_inner(node, soup)
        for mark in reversed(node.marks):
            wrap = self.serialize_mark(mark, node.is_inline, soup)
            if wrap is not None:
                (wrap[1] if wrap[1] is not None else wrap[0]).append(dom)
                dom = wrap[0]
        return dom

    def serialize_mark(
        self, mark: Mark, inline: bool, soup: BeautifulSoup
    ) -> tuple[PageElement, Tag | None] | None:
        to_dom = self.marks.get(mark.type.name)
        if to_dom is None:
            return None
        return render_spec(soup, to_dom(mark, inline))
