"""
Document model: schema, node and mark types, nodes and marks.

A ``Schema`` is built from ordered ``NodeSpec`` and ``MarkSpec``
mappings.  Every node carries its ``NodeType``, an attribute dict that
always holds every declared attribute, its child nodes and the marks
applied to it.  Text nodes are leaf nodes with a ``text`` value.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from manuscripts_transform.errors import InvalidContentError
from manuscripts_transform.schema.content import EMPTY_MATCH, ContentMatch

# Attribute default for attributes that must always be supplied
REQUIRED = object()


# ── Specs ─────────────────────────────────────────────────────────────────


@dataclass
class NodeSpec:
    """Declaration of one node type.

    Parameters
    ----------
    content : str
        Content expression over node names and group names.
    group : str
        Space-separated group names the node belongs to.
    attrs : dict
        Attribute name → default value (``REQUIRED`` for no default).
    inline : bool
        Whether the node is inline (text-level).
    atom : bool
        Whether a non-leaf node is treated as a single unit.
    marks : str | None
        Allowed marks; ``"_"`` or ``None`` for all, ``""`` for none.
    parse_dom : list
        ``ParseRule`` objects recognising this node in a DOM.
    to_dom : callable
        ``node → output spec`` used by ``DOMSerializer``.
    """

    content: str = ""
    group: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)
    inline: bool = False
    atom: bool = False
    marks: str | None = None
    parse_dom: list[Any] = field(default_factory=list)
    to_dom: Callable[[Node], Any] | None = None


@dataclass
class MarkSpec:
    """Declaration of one mark type."""

    attrs: dict[str, Any] = field(default_factory=dict)
    excludes: str | None = None
    group: str = ""
    spanning: bool = True
    parse_dom: list[Any] = field(default_factory=list)
    to_dom: Callable[[Mark, bool], Any] | None = None


def _compute_attrs(
    declared: dict[str, Any], given: dict[str, Any] | None, owner: str
) -> dict[str, Any]:
    built: dict[str, Any] = {}
    for name, default in declared.items():
        if given is not None and name in given:
            built[name] = given[name]
        elif default is REQUIRED:
            raise InvalidContentError(f"No value supplied for attribute {name} of {owner}")
        else:
            built[name] = copy.copy(default)
    return built


# ── Node types ────────────────────────────────────────────────────────────


class NodeType:
    """A named node kind with its content rules and attributes."""

    def __init__(self, name: str, schema: Schema, spec: NodeSpec) -> None:
        self.name = name
        self.schema = schema
        self.spec = spec
        self.groups: list[str] = spec.group.split() if spec.group else []
        self.attrs = spec.attrs
        self.is_block = not (spec.inline or name == "text")
        self.is_text = name == "text"
        self.content_match: ContentMatch = None  # type: ignore[assignment]
        self.inline_content = False
        self.mark_set: list[MarkType] | None = None

    @property
    def is_inline(self) -> bool:
        return not self.is_block

    @property
    def is_textblock(self) -> bool:
        return self.is_block and self.inline_content

    @property
    def is_leaf(self) -> bool:
        return self.content_match is EMPTY_MATCH

    @property
    def is_atom(self) -> bool:
        return self.is_leaf or self.spec.atom

    def has_required_attrs(self) -> bool:
        return any(default is REQUIRED for default in self.attrs.values())

    def compute_attrs(self, attrs: dict[str, Any] | None = None) -> dict[str, Any]:
        return _compute_attrs(self.attrs, attrs, self.name)

    def allows_mark_type(self, mark_type: MarkType) -> bool:
        return self.mark_set is None or mark_type in self.mark_set

    def allows_marks(self, marks: list[Mark]) -> bool:
        return all(self.allows_mark_type(mark.type) for mark in marks)

    def valid_content(self, content: list[Node]) -> bool:
        result = self.content_match.match_fragment(content)
        if result is None or not result.valid_end:
            return False
        return all(self.allows_marks(child.marks) for child in content)

    # ── construction ──

    def create(
        self,
        attrs: dict[str, Any] | None = None,
        content: list[Node] | Node | None = None,
        marks: list[Mark] | None = None,
    ) -> Node:
        if self.is_text:
            raise InvalidContentError("NodeType.create cannot construct text nodes")
        return Node(self, self.compute_attrs(attrs), _as_list(content), list(marks or []))

    def create_checked(
        self,
        attrs: dict[str, Any] | None = None,
        content: list[Node] | Node | None = None,
        marks: list[Mark] | None = None,
    ) -> Node:
        """Like ``create``, but raise when *content* does not fit."""
        nodes = _as_list(content)
        if not self.valid_content(nodes):
            raise InvalidContentError(f"Invalid content for node {self.name}")
        return Node(self, self.compute_attrs(attrs), nodes, list(marks or []))

    def create_and_fill(
        self,
        attrs: dict[str, Any] | None = None,
        content: list[Node] | Node | None = None,
        marks: list[Mark] | None = None,
    ) -> Node | None:
        """Create a node, adding required children before and after *content*.

        Returns ``None`` when *content* cannot be made valid.
        """
        computed = self.compute_attrs(attrs)
        nodes = _as_list(content)
        if nodes:
            before = self.content_match.fill_before(nodes)
            if before is None:
                return None
            nodes = before + nodes
        matched = self.content_match.match_fragment(nodes)
        after = matched.fill_before([], True) if matched is not None else None
        if after is None:
            return None
        return Node(self, computed, nodes + after, list(marks or []))

    def __repr__(self) -> str:
        return f"<NodeType {self.name}>"


class MarkType:
    """A named mark kind; ``rank`` fixes the order marks are stored in."""

    def __init__(self, name: str, rank: int, schema: Schema, spec: MarkSpec) -> None:
        self.name = name
        self.rank = rank
        self.schema = schema
        self.spec = spec
        self.attrs = spec.attrs
        self.excluded: list[MarkType] = []

    def create(self, attrs: dict[str, Any] | None = None) -> Mark:
        return Mark(self, _compute_attrs(self.attrs, attrs, self.name))

    def excludes(self, other: MarkType) -> bool:
        return other in self.excluded

    def is_in_set(self, marks: list[Mark]) -> Mark | None:
        return next((mark for mark in marks if mark.type is self), None)

    def remove_from_set(self, marks: list[Mark]) -> list[Mark]:
        return [mark for mark in marks if mark.type is not self]

    def __repr__(self) -> str:
        return f"<MarkType {self.name}>"


# ── Nodes and marks ───────────────────────────────────────────────────────


@dataclass(eq=False)
class Mark:
    type: MarkType
    attrs: dict[str, Any] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Mark) and other.type is self.type and other.attrs == self.attrs
        )

    def add_to_set(self, marks: list[Mark]) -> list[Mark]:
        """Return a copy of *marks* including this mark, in rank order.

        Marks that this mark excludes are dropped; if a mark in the set
        excludes this one, the set is returned unchanged.
        """
        result: list[Mark] | None = None
        placed = False
        for index, other in enumerate(marks):
            if self == other:
                return marks
            if self.type.excludes(other.type):
                if result is None:
                    result = list(marks[:index])
            elif other.type.excludes(self.type):
                return marks
            else:
                if not placed and other.type.rank > self.type.rank:
                    if result is None:
                        result = list(marks[:index])
                    result.append(self)
                    placed = True
                if result is not None:
                    result.append(other)
        if result is None:
            result = list(marks)
        if not placed:
            result.append(self)
        return result

    def remove_from_set(self, marks: list[Mark]) -> list[Mark]:
        return [mark for mark in marks if mark != self]

    def is_in_set(self, marks: list[Mark]) -> bool:
        return any(mark == self for mark in marks)

    def __repr__(self) -> str:
        return f"<Mark {self.type.name} {self.attrs}>"


def same_mark_set(first: list[Mark], second: list[Mark]) -> bool:
    return len(first) == len(second) and all(a == b for a, b in zip(first, second))


@dataclass(eq=False)
class Node:
    """A node in a content tree.

    ``content`` is the ordered list of child nodes.  ``text`` is set on
    text nodes only.
    """

    type: NodeType
    attrs: dict[str, Any] = field(default_factory=dict)
    content: list[Node] = field(default_factory=list)
    marks: list[Mark] = field(default_factory=list)
    text: str | None = None

    # ── type shortcuts ──

    @property
    def is_text(self) -> bool:
        return self.type.is_text

    @property
    def is_inline(self) -> bool:
        return self.type.is_inline

    @property
    def is_block(self) -> bool:
        return self.type.is_block

    @property
    def is_leaf(self) -> bool:
        return self.type.is_leaf

    @property
    def is_atom(self) -> bool:
        return self.type.is_atom

    @property
    def is_textblock(self) -> bool:
        return self.type.is_textblock

    # ── children ──

    @property
    def child_count(self) -> int:
        return len(self.content)

    @property
    def first_child(self) -> Node | None:
        return self.content[0] if self.content else None

    @property
    def last_child(self) -> Node | None:
        return self.content[-1] if self.content else None

    def child(self, index: int) -> Node:
        return self.content[index]

    def descendants(self) -> Iterator[tuple[Node, Node]]:
        """Yield ``(node, parent)`` for every node below this one, pre-order."""
        for child in self.content:
            yield child, self
            yield from child.descendants()

    def find_descendant(self, predicate: Callable[[Node], bool]) -> Node | None:
        for node, _ in self.descendants():
            if predicate(node):
                return node
        return None

    @property
    def text_content(self) -> str:
        if self.text is not None:
            return self.text
        return "".join(child.text_content for child in self.content)

    @property
    def node_size(self) -> int:
        if self.text is not None:
            return len(self.text)
        if self.is_leaf:
            return 1
        return 2 + sum(child.node_size for child in self.content)

    # ── copies ──

    def mark(self, marks: list[Mark]) -> Node:
        if same_mark_set(marks, self.marks):
            return self
        return Node(self.type, self.attrs, self.content, list(marks), self.text)

    def with_text(self, text: str) -> Node:
        return Node(self.type, self.attrs, self.content, self.marks, text)

    def copy(self, content: list[Node] | None = None) -> Node:
        return Node(self.type, dict(self.attrs), list(content or []), list(self.marks), self.text)

    def same_markup(self, other: Node) -> bool:
        return (
            self.type is other.type
            and self.attrs == other.attrs
            and same_mark_set(self.marks, other.marks)
        )

    def check(self) -> None:
        """Raise ``InvalidContentError`` if this subtree breaks the schema."""
        if not self.type.valid_content(self.content):
            raise InvalidContentError(
                f"Invalid content for node {self.type.name}: {self.content!r}"
            )
        for child in self.content:
            child.check()

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dictionary of this subtree."""
        data: dict[str, Any] = {"type": self.type.name}
        if self.text is not None:
            data["text"] = self.text
        elif self.attrs:
            data["attrs"] = dict(self.attrs)
        if self.content:
            data["content"] = [child.to_dict() for child in self.content]
        if self.marks:
            data["marks"] = [
                {"type": mark.type.name, **({"attrs": mark.attrs} if mark.attrs else {})}
                for mark in self.marks
            ]
        return data

    def __repr__(self) -> str:
        if self.text is not None:
            return f"{self.type.name}({self.text!r})"
        if self.content:
            return f"{self.type.name}({', '.join(map(repr, self.content))})"
        return self.type.name


def _as_list(content: list[Node] | Node | None) -> list[Node]:
    if content is None:
        return []
    if isinstance(content, Node):
        return [content]
    return list(content)


# ── Schema ────────────────────────────────────────────────────────────────


class Schema:
    """Node and mark types compiled from ordered spec mappings."""

    def __init__(
        self,
        nodes: dict[str, NodeSpec],
        marks: dict[str, MarkSpec],
        top_node: str = "doc",
    ) -> None:
        self.nodes: dict[str, NodeType] = {
            name: NodeType(name, self, spec) for name, spec in nodes.items()
        }
        self.marks: dict[str, MarkType] = {
            name: MarkType(name, rank, self, spec)
            for rank, (name, spec) in enumerate(marks.items())
        }
        self.cached: dict[str, Any] = {}

        expressions: dict[str, ContentMatch] = {}
        for node_type in self.nodes.values():
            if node_type.name in self.marks:
                raise ValueError(f"{node_type.name} can not be both a node and a mark")
            expr = node_type.spec.content
            if expr not in expressions:
                expressions[expr] = ContentMatch.parse(expr, self.nodes)
            node_type.content_match = expressions[expr]
            node_type.inline_content = node_type.content_match.inline_content
            mark_expr = node_type.spec.marks
            if mark_expr == "_" or (mark_expr is None and node_type.inline_content):
                node_type.mark_set = None
            elif mark_expr:
                node_type.mark_set = self._gather_marks(mark_expr)
            else:
                node_type.mark_set = []

        for mark_type in self.marks.values():
            excludes = mark_type.spec.excludes
            mark_type.excluded = (
                [mark_type] if excludes is None else self._gather_marks(excludes) if excludes else []
            )

        self.top_node_type = self.nodes[top_node]

    def _gather_marks(self, expr: str) -> list[MarkType]:
        found: list[MarkType] = []
        for name in re.split(r"\s+", expr.strip()):
            if name == "_":
                return list(self.marks.values())
            if name in self.marks:
                found.append(self.marks[name])
                continue
            group = [m for m in self.marks.values() if name in m.spec.group.split()]
            if not group:
                raise ValueError(f"Unknown mark type: '{name}'")
            found.extend(group)
        return found

    def node(
        self,
        type_name: str,
        attrs: dict[str, Any] | None = None,
        content: list[Node] | Node | None = None,
        marks: list[Mark] | None = None,
    ) -> Node:
        return self.nodes[type_name].create(attrs, content, marks)

    def text(self, text: str, marks: list[Mark] | None = None) -> Node:
        if not text:
            raise InvalidContentError("Empty text nodes are not allowed")
        return Node(self.nodes["text"], {}, [], list(marks or []), text)

    def mark(self, type_name: str, attrs: dict[str, Any] | None = None) -> Mark:
        return self.marks[type_name].create(attrs)
