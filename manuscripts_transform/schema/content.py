"""
Content expressions for node types.

A node spec declares which children it accepts with a small grammar
(``"section_title (paragraph | element)* section*"``).  The expression
is compiled into a nondeterministic automaton and then into a
deterministic chain of ``ContentMatch`` states, which the node types,
the DOM parser and the decoder walk to validate, fill and wrap content.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from manuscripts_transform.schema.model import Node, NodeType


_TOKEN_RE = re.compile(r"\w+|[^\w\s]")


class ContentMatch:
    """One state of a compiled content expression.

    ``next`` holds ``(node_type, state)`` edges; ``valid_end`` tells
    whether the content may stop here.
    """

    def __init__(self, valid_end: bool) -> None:
        self.valid_end = valid_end
        self.next: list[tuple[NodeType, ContentMatch]] = []
        self._wrap_cache: list[tuple[NodeType, list[NodeType] | None]] = []

    @classmethod
    def parse(cls, expr: str, node_types: dict[str, NodeType]) -> ContentMatch:
        stream = _TokenStream(expr, node_types)
        if stream.next is None:
            return EMPTY_MATCH
        parsed = _parse_expr(stream)
        if stream.next is not None:
            stream.error("Unexpected trailing text")
        return _dfa(_nfa(parsed))

    # ── matching ──

    def match_type(self, node_type: NodeType) -> ContentMatch | None:
        for candidate, state in self.next:
            if candidate is node_type:
                return state
        return None

    def match_fragment(
        self, nodes: list[Node], start: int = 0, end: int | None = None
    ) -> ContentMatch | None:
        current: ContentMatch | None = self
        for node in nodes[start:end]:
            current = current.match_type(node.type)
            if current is None:
                return None
        return current

    @property
    def inline_content(self) -> bool:
        return bool(self.next) and self.next[0][0].is_inline

    @property
    def default_type(self) -> NodeType | None:
        """First type that can be created here without arguments."""
        for node_type, _ in self.next:
            if not (node_type.is_text or node_type.has_required_attrs()):
                return node_type
        return None

    # ── filling and wrapping ──

    def fill_before(
        self, after: list[Node], to_end: bool = False, start_index: int = 0
    ) -> list[Node] | None:
        """Return the nodes to insert so that *after* fits from this state.

        With *to_end* the resulting state must also be a valid end.
        Returns ``None`` when no such filler exists.
        """
        seen: list[ContentMatch] = [self]

        def search(match: ContentMatch, types: list[NodeType]) -> list[Node] | None:
            finished = match.match_fragment(after, start_index)
            if finished is not None and (not to_end or finished.valid_end):
                return [node_type.create_and_fill() for node_type in types]
            for node_type, state in match.next:
                if node_type.is_text or node_type.has_required_attrs():
                    continue
                if state in seen:
                    continue
                seen.append(state)
                found = search(state, types + [node_type])
                if found is not None:
                    return found
            return None

        return search(self, [])

    def find_wrapping(self, target: NodeType) -> list[NodeType] | None:
        """Return the wrapper types needed to place a *target* node here."""
        for node_type, wrapping in self._wrap_cache:
            if node_type is target:
                return wrapping
        computed = self._compute_wrapping(target)
        self._wrap_cache.append((target, computed))
        return computed

    def _compute_wrapping(self, target: NodeType) -> list[NodeType] | None:
        seen: set[str] = set()
        active: list[tuple[ContentMatch, NodeType | None, Any]] = [(self, None, None)]
        while active:
            current = active.pop(0)
            match, node_type, _ = current
            if match.match_type(target) is not None:
                result: list[NodeType] = []
                step = current
                while step[1] is not None:
                    result.append(step[1])
                    step = step[2]
                return list(reversed(result))
            for candidate, state in match.next:
                if (
                    not candidate.is_leaf
                    and not candidate.has_required_attrs()
                    and candidate.name not in seen
                    and (node_type is None or state.valid_end)
                ):
                    active.append((candidate.content_match, candidate, current))
                    seen.add(candidate.name)
        return None

    def __repr__(self) -> str:
        edges = ", ".join(node_type.name for node_type, _ in self.next)
        return f"<ContentMatch [{edges}] end={self.valid_end}>"


EMPTY_MATCH = ContentMatch(True)


# ── Expression parser ─────────────────────────────────────────────────────


class _TokenStream:
    def __init__(self, expr: str, node_types: dict[str, NodeType]) -> None:
        self.expr = expr
        self.node_types = node_types
        self.tokens = _TOKEN_RE.findall(expr)
        self.pos = 0

    @property
    def next(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def eat(self, token: str) -> bool:
        if self.next == token:
            self.pos += 1
            return True
        return False

    def error(self, message: str) -> None:
        raise SyntaxError(f"{message} (in content expression '{self.expr}')")


def _parse_expr(stream: _TokenStream) -> tuple:
    exprs = [_parse_expr_seq(stream)]
    while stream.eat("|"):
        exprs.append(_parse_expr_seq(stream))
    return exprs[0] if len(exprs) == 1 else ("choice", exprs)


def _parse_expr_seq(stream: _TokenStream) -> tuple:
    exprs = [_parse_expr_subscript(stream)]
    while stream.next is not None and stream.next not in (")", "|"):
        exprs.append(_parse_expr_subscript(stream))
    return exprs[0] if len(exprs) == 1 else ("seq", exprs)


def _parse_expr_subscript(stream: _TokenStream) -> tuple:
    expr = _parse_expr_atom(stream)
    while True:
        if stream.eat("+"):
            expr = ("plus", expr)
        elif stream.eat("*"):
            expr = ("star", expr)
        elif stream.eat("?"):
            expr = ("opt", expr)
        elif stream.eat("{"):
            expr = _parse_expr_range(stream, expr)
        else:
            return expr


def _parse_num(stream: _TokenStream) -> int:
    token = stream.next
    if token is None or not token.isdigit():
        stream.error(f"Expected number, got '{token}'")
    stream.pos += 1
    return int(token)


def _parse_expr_range(stream: _TokenStream, expr: tuple) -> tuple:
    minimum = _parse_num(stream)
    maximum = minimum
    if stream.eat(","):
        maximum = _parse_num(stream) if stream.next != "}" else -1
    if not stream.eat("}"):
        stream.error("Unclosed braced range")
    return ("range", minimum, maximum, expr)


def _resolve_name(stream: _TokenStream, name: str) -> list[NodeType]:
    types = stream.node_types
    if name in types:
        return [types[name]]
    result = [node_type for node_type in types.values() if name in node_type.groups]
    if not result:
        stream.error(f"No node type or group '{name}' found")
    return result


def _parse_expr_atom(stream: _TokenStream) -> tuple:
    if stream.eat("("):
        expr = _parse_expr(stream)
        if not stream.eat(")"):
            stream.error("Missing closing paren")
        return expr
    token = stream.next
    if token is not None and re.fullmatch(r"\w+", token):
        exprs = [("name", node_type) for node_type in _resolve_name(stream, token)]
        stream.pos += 1
        return exprs[0] if len(exprs) == 1 else ("choice", exprs)
    stream.error(f"Unexpected token '{token}'")
    raise AssertionError("unreachable")


# ── Automata ──────────────────────────────────────────────────────────────


class _Edge:
    __slots__ = ("term", "to")

    def __init__(self, term: NodeType | None = None, to: int | None = None) -> None:
        self.term = term
        self.to = to


def _nfa(expr: tuple) -> list[list[_Edge]]:
    nfa: list[list[_Edge]] = [[]]

    def node() -> int:
        nfa.append([])
        return len(nfa) - 1

    def edge(start: int, to: int | None = None, term: NodeType | None = None) -> _Edge:
        new = _Edge(term, to)
        nfa[start].append(new)
        return new

    def connect(edges: list[_Edge], to: int) -> None:
        for item in edges:
            item.to = to

    def compile_expr(expr: tuple, start: int) -> list[_Edge]:
        kind = expr[0]
        if kind == "choice":
            out: list[_Edge] = []
            for sub in expr[1]:
                out.extend(compile_expr(sub, start))
            return out
        if kind == "seq":
            subs = expr[1]
            for index, sub in enumerate(subs):
                following = compile_expr(sub, start)
                if index == len(subs) - 1:
                    return following
                start = node()
                connect(following, start)
        if kind == "star":
            loop = node()
            edge(start, loop)
            connect(compile_expr(expr[1], loop), loop)
            return [edge(loop)]
        if kind == "plus":
            loop = node()
            connect(compile_expr(expr[1], start), loop)
            connect(compile_expr(expr[1], loop), loop)
            return [edge(loop)]
        if kind == "opt":
            return [edge(start)] + compile_expr(expr[1], start)
        if kind == "range":
            _, minimum, maximum, sub = expr
            current = start
            for _ in range(minimum):
                following = node()
                connect(compile_expr(sub, current), following)
                current = following
            if maximum == -1:
                connect(compile_expr(sub, current), current)
            else:
                for _ in range(minimum, maximum):
                    following = node()
                    edge(current, following)
                    connect(compile_expr(sub, current), following)
                    current = following
            return [edge(current)]
        if kind == "name":
            return [edge(start, None, expr[1])]
        raise ValueError(f"Unknown expression type {kind}")

    connect(compile_expr(expr, 0), node())
    return nfa


def _null_from(nfa: list[list[_Edge]], start: int) -> list[int]:
    result: list[int] = []

    def scan(index: int) -> None:
        edges = nfa[index]
        if len(edges) == 1 and edges[0].term is None:
            scan(edges[0].to)
            return
        result.append(index)
        for item in edges:
            if item.term is None and item.to not in result:
                scan(item.to)

    scan(start)
    return sorted(result, reverse=True)


def _dfa(nfa: list[list[_Edge]]) -> ContentMatch:
    labeled: dict[str, ContentMatch] = {}

    def explore(states: list[int]) -> ContentMatch:
        out: list[tuple[NodeType, list[int]]] = []
        for index in states:
            for item in nfa[index]:
                if item.term is None:
                    continue
                target = next((s for t, s in out if t is item.term), None)
                for reached in _null_from(nfa, item.to):
                    if target is None:
                        target = []
                        out.append((item.term, target))
                    if reached not in target:
                        target.append(reached)
        state = ContentMatch((len(nfa) - 1) in states)
        labeled[",".join(map(str, states))] = state
        for node_type, reached in out:
            reached.sort(reverse=True)
            key = ",".join(map(str, reached))
            state.next.append((node_type, labeled.get(key) or explore(reached)))
        return state

    return explore(_null_from(nfa, 0))
