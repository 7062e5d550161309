"""
BeautifulSoup helpers shared by the schema and the pipelines.

HTML fragments are handled with the ``html.parser`` builder, XML
documents (JATS, STS) with the lxml ``xml`` builder.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, CData, Doctype, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

_WHITESPACE_RE = re.compile(r"\s+")


class SourceOrderFormatter(HTMLFormatter):
    """bs4's ``minimal`` formatter, but attributes keep their insertion order.

    Stored HTML fields are compared and searched as strings, so a parsed
    and re-serialized fragment must come back with its attributes in the
    order they were written.
    """

    def __init__(self) -> None:
        super().__init__(entity_substitution=EntitySubstitution.substitute_xml)

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


SOURCE_ORDER = SourceOrderFormatter()


# ── Documents ─────────────────────────────────────────────────────────────


def new_html_document() -> BeautifulSoup:
    """Return an empty HTML soup, usable as a tag factory and fragment container."""
    return BeautifulSoup("", "html.parser")


def new_xml_document(
    root_name: str, public_id: str | None = None, system_id: str | None = None
) -> tuple[BeautifulSoup, Tag]:
    """Return ``(soup, root)`` for a new XML document with an optional doctype."""
    soup = BeautifulSoup("", "xml")
    if public_id or system_id:
        soup.append(Doctype.for_name_and_ids(root_name, public_id, system_id))
    root = soup.new_tag(root_name)
    soup.append(root)
    return soup, root


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def parse_xml(xml: str | bytes) -> BeautifulSoup:
    return BeautifulSoup(xml, "xml")


# ── Fragments ─────────────────────────────────────────────────────────────


def first_element(parent: Tag) -> Tag | None:
    return next((child for child in parent.children if isinstance(child, Tag)), None)


def element_children(parent: Tag) -> list[Tag]:
    return [child for child in parent.children if isinstance(child, Tag)]


def node_from_html(html: str | None) -> Tag | None:
    """Parse *html* and detach its first element, or ``None`` when empty."""
    if not html:
        return None
    element = first_element(parse_html(html))
    return element.extract() if element is not None else None


def element_with_html(name: str, attrs: dict[str, str | None], html: str | None) -> Tag:
    """Build ``<name attrs>html</name>`` with *html* parsed as child nodes."""
    element = new_html_document().new_tag(name)
    for key, value in attrs.items():
        if value is not None:
            element[key] = value
    if html:
        for child in list(parse_html(html).contents):
            element.append(child.extract())
    return element


def text_from_html(html: str | None) -> str:
    if not html:
        return ""
    return parse_html(html).get_text()


def inner_html(element: Tag) -> str:
    return element.decode_contents(formatter=SOURCE_ORDER)


def outer_html(element: Tag) -> str:
    return element.decode(formatter=SOURCE_ORDER)


def is_text_node(node: object) -> bool:
    """True for character data; comments, doctypes and the like are skipped."""
    return type(node) is NavigableString or isinstance(node, CData)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


# ── Attributes ────────────────────────────────────────────────────────────


def class_list(element: Tag) -> list[str]:
    value = element.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(element: Tag, name: str) -> bool:
    return name in class_list(element)


def add_class(element: Tag, *names: str) -> None:
    classes = class_list(element)
    for name in names:
        if name and name not in classes:
            classes.append(name)
    element["class"] = " ".join(classes)


def get_attr(element: Tag, name: str) -> str | None:
    """Return an attribute as a string (multi-valued attributes are joined)."""
    value = element.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def parse_styles(style: str | None) -> list[tuple[str, str]]:
    """Split an inline ``style`` attribute into ``(property, value)`` pairs."""
    if not style:
        return []
    pairs: list[tuple[str, str]] = []
    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        if sep and prop.strip():
            pairs.append((prop.strip().lower(), value.strip()))
    return pairs


def get_style(element: Tag, prop: str) -> str | None:
    for name, value in parse_styles(get_attr(element, "style")):
        if name == prop:
            return value
    return None


def build_element_class(style: str | None) -> str:
    """Class list ``"MPElement <style>"`` for an element's paragraph style."""
    classes = ["MPElement"]
    if style:
        classes.append(style.replace(":", "_"))
    return " ".join(classes)


def strip_namespace_attrs(html: str) -> str:
    """Remove ``xmlns="…"`` declarations from serialized markup."""
    return re.sub(r'\s+xmlns=".+?"', "", html)
