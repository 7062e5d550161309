"""
Mark specifications.

Marks are listed in rank order: a node's marks are always stored in this
order, which keeps serialized nesting stable.
"""

from __future__ import annotations

import re

from manuscripts_transform.markup import get_attr, get_style
from manuscripts_transform.schema.dom_parser import ParseRule
from manuscripts_transform.schema.model import MarkSpec

_BOLD_WEIGHT_RE = re.compile(r"^(bold(er)?|[5-9]\d{2,})$")


def _bold_tag_attrs(dom):
    # <b style="font-weight:normal"> is not bold
    return False if get_style(dom, "font-weight") == "normal" else None


def _bold_style_attrs(value):
    return None if _BOLD_WEIGHT_RE.match(value) else False


MARKS: dict[str, MarkSpec] = {
    "bold": MarkSpec(
        parse_dom=[
            ParseRule(tag="b", get_attrs=_bold_tag_attrs),
            ParseRule(tag="strong"),
            ParseRule(style="font-weight", get_attrs=_bold_style_attrs),
        ],
        to_dom=lambda mark, inline: ("b",),
    ),
    "code": MarkSpec(
        parse_dom=[ParseRule(tag="code")],
        to_dom=lambda mark, inline: ("code",),
    ),
    "italic": MarkSpec(
        parse_dom=[
            ParseRule(tag="i"),
            ParseRule(tag="em"),
            ParseRule(style="font-style=italic"),
        ],
        to_dom=lambda mark, inline: ("i",),
    ),
    "smallcaps": MarkSpec(
        parse_dom=[
            ParseRule(style="font-variant=small-caps"),
            ParseRule(style="font-variant-caps=small-caps"),
        ],
        to_dom=lambda mark, inline: ("span", {"style": "font-variant:small-caps"}),
    ),
    "strikethrough": MarkSpec(
        parse_dom=[
            ParseRule(tag="strike"),
            ParseRule(style="text-decoration=line-through"),
            ParseRule(style="text-decoration-line=line-through"),
        ],
        to_dom=lambda mark, inline: ("span", {"style": "text-decoration-line:line-through"}),
    ),
    "styled": MarkSpec(
        attrs={"rid": "", "style": ""},
        parse_dom=[
            ParseRule(
                tag="span.styled-content",
                get_attrs=lambda dom: {
                    "rid": get_attr(dom, "data-inline-style") or "",
                    "style": get_attr(dom, "data-style") or "",
                },
            ),
        ],
        to_dom=lambda mark, inline: (
            "span",
            {
                "class": "styled-content",
                "data-inline-style": mark.attrs["rid"] or None,
                "data-style": mark.attrs["style"] or None,
            },
        ),
    ),
    "subscript": MarkSpec(
        excludes="superscript",
        group="position",
        parse_dom=[ParseRule(tag="sub"), ParseRule(style="vertical-align=sub")],
        to_dom=lambda mark, inline: ("sub",),
    ),
    "superscript": MarkSpec(
        excludes="subscript",
        group="position",
        parse_dom=[ParseRule(tag="sup"), ParseRule(style="vertical-align=super")],
        to_dom=lambda mark, inline: ("sup",),
    ),
    "underline": MarkSpec(
        parse_dom=[ParseRule(tag="u"), ParseRule(style="text-decoration=underline")],
        to_dom=lambda mark, inline: ("u",),
    ),
}
