"""
Schema-driven DOM parser.

``DOMParser`` turns a BeautifulSoup element (from an HTML fragment or an
XML document) into a content node.  Parse rules are tried in order; the
first rule whose selector, context and ``get_attrs`` all accept an
element decides the node or mark it becomes.  Elements without a rule
are transparent: their children are parsed in place.

Parameters of a rule
--------------------
tag
    CSS selector matched against the element.
style
    ``"property"`` or ``"property=value"`` matched against inline styles.
context
    ``"a/b/"``-style pattern matched against the open node stack.
get_attrs
    ``element → dict | None | False``; ``False`` rejects the match.
ignore / skip
    Drop the element entirely / parse only its children.
get_content
    ``(element, schema) → list[Node]`` replaces child parsing.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from bs4 import Tag

from manuscripts_transform.markup import get_attr, is_text_node, parse_styles
from manuscripts_transform.schema.content import ContentMatch
from manuscripts_transform.schema.model import Mark, MarkType, Node, NodeType, Schema, same_mark_set

logger = logging.getLogger(__name__)

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "canvas", "dd", "div",
        "dl", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
        "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "li", "noscript",
        "ol", "output", "p", "pre", "section", "table", "tfoot", "ul",
    }
)

IGNORE_TAGS = frozenset({"head", "noscript", "object", "script", "style", "title"})

_SPACE_RE = re.compile(r"[ \t\r\n\u000c]+")
_LEADING_SPACE_RE = re.compile(r"^[ \t\r\n\u000c]")
_TRAILING_SPACE_RE = re.compile(r"[ \t\r\n\u000c]+$")
_NON_SPACE_RE = re.compile(r"[^ \t\r\n\u000c]")


@dataclass
class ParseRule:
    """How one kind of DOM element maps to a node or mark."""

    tag: str | None = None
    style: str | None = None
    node: str | None = None
    mark: str | None = None
    context: str | None = None
    get_attrs: Callable[[Any], dict[str, Any] | None | bool] | None = None
    attrs: dict[str, Any] | None = None
    ignore: bool = False
    skip: bool = False
    priority: int = 50
    get_content: Callable[[Tag, Schema], list[Node]] | None = None
    preserve_whitespace: bool = False


# ── Parser ────────────────────────────────────────────────────────────────


class DOMParser:
    """Parse DOM elements into nodes of *schema* using ordered *rules*."""

    def __init__(self, schema: Schema, rules: list[ParseRule]) -> None:
        self.schema = schema
        self.rules = rules
        self.tags = [rule for rule in rules if rule.tag is not None]
        self.styles = [rule for rule in rules if rule.style is not None]

    @classmethod
    def from_schema(cls, schema: Schema) -> DOMParser:
        if "dom_parser" not in schema.cached:
            schema.cached["dom_parser"] = cls(schema, cls.schema_rules(schema))
        return schema.cached["dom_parser"]

    @staticmethod
    def schema_rules(schema: Schema) -> list[ParseRule]:
        """Collect mark rules, then node rules, ordered by descending priority."""
        result: list[ParseRule] = []

        def insert(rule: ParseRule) -> None:
            index = 0
            while index < len(result) and result[index].priority >= rule.priority:
                index += 1
            result.insert(index, rule)

        for name, mark_type in schema.marks.items():
            for rule in mark_type.spec.parse_dom:
                insert(dataclasses.replace(rule, mark=name))
        for name, node_type in schema.nodes.items():
            for rule in node_type.spec.parse_dom:
                insert(dataclasses.replace(rule, node=name))
        return result

    def parse(
        self, dom: Tag, top_node: Node | None = None, preserve_whitespace: bool = False
    ) -> Node:
        """Parse the children of *dom* into *top_node* (default: a new top node)."""
        context = _ParseContext(self, top_node, preserve_whitespace)
        context.add_all(dom)
        return context.finish()

    # ── rule matching ──

    def match_tag(
        self, dom: Tag, context: _ParseContext
    ) -> tuple[ParseRule, dict[str, Any] | None] | None:
        for rule in self.tags:
            if not _matches(dom, rule.tag):
                continue
            if rule.context is not None and not context.matches_context(rule.context):
                continue
            attrs = rule.attrs
            if rule.get_attrs is not None:
                result = rule.get_attrs(dom)
                if result is False:
                    continue
                attrs = result or None
            return rule, attrs
        return None

    def match_style(
        self, prop: str, value: str, context: _ParseContext
    ) -> tuple[ParseRule, dict[str, Any] | None] | None:
        for rule in self.styles:
            style = rule.style
            if not style.startswith(prop):
                continue
            if len(style) != len(prop) and (
                style[len(prop)] != "=" or style[len(prop) + 1:] != value
            ):
                continue
            if rule.context is not None and not context.matches_context(rule.context):
                continue
            attrs = rule.attrs
            if rule.get_attrs is not None:
                result = rule.get_attrs(value)
                if result is False:
                    continue
                attrs = result or None
            return rule, attrs
        return None


def _matches(dom: Tag, selector: str) -> bool:
    return bool(dom.css.match(selector))


# ── Parse state ───────────────────────────────────────────────────────────


class _NodeContext:
    def __init__(
        self,
        node_type: NodeType,
        attrs: dict[str, Any] | None,
        marks: list[Mark],
        solid: bool,
        match: ContentMatch | None,
        preserve_whitespace: bool,
    ) -> None:
        self.type = node_type
        self.attrs = attrs
        self.marks = marks
        self.solid = solid
        self.match = match if match is not None else node_type.content_match
        self.preserve_whitespace = preserve_whitespace
        self.content: list[Node] = []

    def find_wrapping(self, node: Node) -> list[NodeType] | None:
        if self.match is None:
            fill = self.type.content_match.fill_before([node])
            if fill is not None:
                self.match = self.type.content_match.match_fragment(fill)
            else:
                start = self.type.content_match
                wrap = start.find_wrapping(node.type)
                if wrap is None:
                    return None
                self.match = start
                return wrap
        wrap = self.match.find_wrapping(node.type)
        if wrap is not None:
            return wrap
        # Required leading children (e.g. a title) may be missing
        fill = self.match.fill_before([node])
        if fill and all(filled is not None for filled in fill):
            self.content.extend(fill)
            self.match = self.match.match_fragment(fill)
            return []
        return None

    def finish(self, open_end: bool = False) -> Node:
        if not self.preserve_whitespace and self.content:
            last = self.content[-1]
            if last.is_text:
                trailing = _TRAILING_SPACE_RE.search(last.text)
                if trailing:
                    if len(trailing.group(0)) == len(last.text):
                        self.content.pop()
                    else:
                        self.content[-1] = last.with_text(last.text[: trailing.start()])
        content = _join_text(self.content)
        if not open_end and self.match is not None:
            fill = self.match.fill_before([], True)
            if fill:
                content.extend(node for node in fill if node is not None)
        return self.type.create(self.attrs, content, self.marks)


def _join_text(nodes: list[Node]) -> list[Node]:
    joined: list[Node] = []
    for node in nodes:
        if (
            joined
            and node.is_text
            and joined[-1].is_text
            and same_mark_set(joined[-1].marks, node.marks)
        ):
            joined[-1] = joined[-1].with_text(joined[-1].text + node.text)
        else:
            joined.append(node)
    return joined


class _ParseContext:
    def __init__(
        self, parser: DOMParser, top_node: Node | None, preserve_whitespace: bool
    ) -> None:
        self.parser = parser
        if top_node is not None:
            top = _NodeContext(
                top_node.type, top_node.attrs, [], True, None, preserve_whitespace
            )
        else:
            top = _NodeContext(
                parser.schema.top_node_type, None, [], True, None, preserve_whitespace
            )
        self.nodes: list[_NodeContext] = [top]
        self.open = 0
        self.marks: list[Mark] = []

    @property
    def top(self) -> _NodeContext:
        return self.nodes[self.open]

    # ── DOM walking ──

    def add_all(self, parent: Tag) -> None:
        for child in list(parent.children):
            self.add_dom(child)

    def add_dom(self, dom: Any) -> None:
        if is_text_node(dom):
            self.add_text_node(dom)
        elif isinstance(dom, Tag):
            style_marks = self.read_styles(parse_styles(get_attr(dom, "style")))
            if style_marks is None:
                return
            saved = self.marks
            for mark in style_marks:
                self.marks = mark.add_to_set(self.marks)
            self.add_element(dom)
            self.marks = saved

    def add_text_node(self, dom: Any) -> None:
        value = str(dom)
        top = self.top
        if not (top.type.inline_content or _NON_SPACE_RE.search(value)):
            return
        if not top.preserve_whitespace:
            value = _SPACE_RE.sub(" ", value)
            if _LEADING_SPACE_RE.match(value) and self.open == len(self.nodes) - 1:
                node_before = top.content[-1] if top.content else None
                dom_before = dom.previous_sibling
                if (
                    node_before is None
                    or (isinstance(dom_before, Tag) and dom_before.name.lower() in ("br", "break"))
                    or (node_before.is_text and _TRAILING_SPACE_RE.search(node_before.text))
                ):
                    value = value[1:]
        else:
            value = re.sub(r"\r\n?", "\n", value)
        if value:
            self.insert_node(self.parser.schema.text(value))

    def add_element(self, dom: Tag) -> None:
        name = dom.name.lower()
        matched = self.parser.match_tag(dom, self)
        rule = matched[0] if matched else None
        ignored = rule.ignore if rule is not None else name in IGNORE_TAGS
        if ignored:
            return
        if rule is None or rule.skip:
            top = self.top
            self.add_all(dom)
            if name in BLOCK_TAGS:
                self.sync(top)
            return
        self.add_element_by_rule(dom, rule, matched[1])

    def read_styles(self, styles: list[tuple[str, str]]) -> list[Mark] | None:
        marks: list[Mark] = []
        for prop, value in styles:
            matched = self.parser.match_style(prop, value, self)
            if matched is None:
                continue
            rule, attrs = matched
            if rule.ignore:
                return None
            marks = self.parser.schema.marks[rule.mark].create(attrs).add_to_set(marks)
        return marks

    def add_element_by_rule(
        self, dom: Tag, rule: ParseRule, attrs: dict[str, Any] | None
    ) -> None:
        schema = self.parser.schema
        saved_marks = self.marks
        entered = False
        node_type: NodeType | None = None
        if rule.node is not None:
            node_type = schema.nodes[rule.node]
            if node_type.is_leaf:
                self.insert_node(node_type.create(attrs))
            else:
                entered = self.enter(node_type, attrs, rule.preserve_whitespace)
                start_in = self.top
        else:
            mark_type: MarkType = schema.marks[rule.mark]
            self.marks = mark_type.create(attrs).add_to_set(self.marks)

        if node_type is not None and node_type.is_leaf:
            pass
        elif rule.get_content is not None:
            for node in rule.get_content(dom, schema):
                self.insert_node(node)
        else:
            self.add_all(dom)

        if entered:
            self.sync(start_in)
            self.open -= 1
        self.marks = saved_marks

    # ── node stack ──

    def find_place(self, node: Node) -> bool:
        route: list[NodeType] | None = None
        sync_to: _NodeContext | None = None
        for depth in range(self.open, -1, -1):
            context = self.nodes[depth]
            found = context.find_wrapping(node)
            if found is not None and (route is None or len(route) > len(found)):
                route = found
                sync_to = context
                if not found:
                    break
            if context.solid:
                break
        if route is None:
            return False
        self.sync(sync_to)
        for wrapper in route:
            self.enter_inner(wrapper, None, False)
        return True

    def insert_node(self, node: Node) -> bool:
        if not self.find_place(node):
            logger.debug("No place for %s node, dropped", node.type.name)
            return False
        self.close_extra()
        top = self.top
        if top.match is not None:
            top.match = top.match.match_type(node.type)
        if node.is_inline:
            marks = list(node.marks)
            for mark in self.marks:
                if top.type.allows_mark_type(mark.type):
                    marks = mark.add_to_set(marks)
            node = node.mark(marks)
        top.content.append(node)
        return True

    def enter(self, node_type: NodeType, attrs: dict[str, Any] | None, preserve_whitespace: bool) -> bool:
        ok = self.find_place(node_type.create(attrs))
        if ok:
            self.enter_inner(node_type, attrs, True, preserve_whitespace)
        return ok

    def enter_inner(
        self,
        node_type: NodeType,
        attrs: dict[str, Any] | None = None,
        solid: bool = False,
        preserve_whitespace: bool = False,
    ) -> None:
        self.close_extra()
        top = self.top
        if top.match is not None:
            top.match = top.match.match_type(node_type)
        self.nodes.append(
            _NodeContext(
                node_type,
                attrs,
                [],
                solid,
                None,
                preserve_whitespace or top.preserve_whitespace,
            )
        )
        self.open += 1

    def close_extra(self, open_end: bool = False) -> None:
        index = len(self.nodes) - 1
        if index > self.open:
            while index > self.open:
                self.nodes[index - 1].content.append(self.nodes[index].finish(open_end))
                index -= 1
            del self.nodes[self.open + 1:]

    def finish(self) -> Node:
        self.open = 0
        self.close_extra()
        return self.nodes[0].finish()

    def sync(self, to: _NodeContext) -> None:
        for index in range(self.open, -1, -1):
            if self.nodes[index] is to:
                self.open = index
                return

    def matches_context(self, context: str) -> bool:
        """Match a ``"parent/"`` style pattern against the open node stack."""
        if "|" in context:
            return any(
                self.matches_context(option) for option in re.split(r"\s*\|\s*", context)
            )
        parts = context.split("/")

        def match(index: int, depth: int) -> bool:
            while index >= 0:
                part = parts[index]
                if part == "":
                    if index == len(parts) - 1 or index == 0:
                        index -= 1
                        continue
                    while depth >= 0:
                        if match(index - 1, depth):
                            return True
                        depth -= 1
                    return False
                if depth < 0:
                    return False
                node_type = self.nodes[depth].type
                if node_type.name != part and part not in node_type.groups:
                    return False
                depth -= 1
                index -= 1
            return True

        return match(len(parts) - 1, self.open)
