"""
Node specifications of the manuscript schema.

Each entry declares the node's groups, content expression, attributes
with their defaults, how the node is recognised in HTML and how it is
rendered back to HTML.  The HTML produced here is what the flat models
store in their ``contents``, ``title`` and ``caption`` fields.
"""

from __future__ import annotations

from manuscripts_transform.config import ObjectType
from manuscripts_transform.markup import (
    build_element_class,
    element_with_html,
    get_attr,
    inner_html,
    new_html_document,
    node_from_html,
    outer_html,
)
from manuscripts_transform.schema.dom_parser import ParseRule
from manuscripts_transform.schema.model import NodeSpec

GROUP_BLOCK = "block"
GROUP_ELEMENT = "element"
GROUP_EXECUTABLE = "executable"
GROUP_LIST = "list"
GROUP_SECTION = "sections"

FOOTNOTE_PLACEHOLDERS = {"footnote": "Footnote", "endnote": "Endnote"}


def _id_attrs(dom):
    return {"id": get_attr(dom, "id") or ""}


def _styled_element_attrs(dom):
    attrs = {
        "id": get_attr(dom, "id") or "",
        "paragraphStyle": get_attr(dom, "data-paragraph-style") or "",
    }
    placeholder = get_attr(dom, "data-placeholder-text")
    if placeholder:
        attrs["placeholder"] = placeholder
    return attrs


def _paragraph_attrs(dom):
    attrs = {}
    if get_attr(dom, "id"):
        attrs["id"] = get_attr(dom, "id")
    placeholder = get_attr(dom, "data-placeholder-text")
    if placeholder:
        attrs["placeholder"] = placeholder
    return attrs


def _contents_attrs(dom):
    return {"id": get_attr(dom, "id") or "", "contents": outer_html(dom)}


def _contents_or_empty(node, class_name):
    element = node_from_html(node.attrs["contents"])
    if element is not None:
        return element
    return ("div", {"class": class_name, "id": node.attrs["id"] or None})


def _element_dom(tag, node, object_type, extra_class=None):
    classes = build_element_class(node.attrs.get("paragraphStyle"))
    if extra_class:
        classes = f"{classes} {extra_class}"
    return (
        tag,
        {
            "id": node.attrs["id"] or None,
            "class": classes,
            "data-object-type": object_type,
            "data-paragraph-style": node.attrs.get("paragraphStyle") or None,
            "data-placeholder-text": node.attrs.get("placeholder") or None,
        },
        0,
    )


def _section_dom(class_name=None):
    def to_dom(node):
        classes = [name for name in (class_name,) if name]
        if node.attrs.get("titleSuppressed"):
            classes.append("title-suppressed")
        return ("section", {"id": node.attrs["id"], "class": " ".join(classes) or None}, 0)

    return to_dom


# ── Sections ──────────────────────────────────────────────────────────────

_SECTION_NODES: dict[str, NodeSpec] = {
    "doc": NodeSpec(content="manuscript"),
    "manuscript": NodeSpec(
        content="(section | bibliography_section | keywords_section | toc_section)+",
        attrs={"id": ""},
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="article", get_attrs=_id_attrs)],
        to_dom=lambda node: ("article", {"id": node.attrs["id"]}, 0),
    ),
    "section": NodeSpec(
        # paragraphs must come first so that they are the default block type
        content="section_title (paragraph | element)* footnotes_element? section*",
        attrs={"id": "", "category": "", "titleSuppressed": False, "pageBreakStyle": None},
        group="block sections",
        parse_dom=[ParseRule(tag="section", get_attrs=_id_attrs)],
        to_dom=_section_dom(),
    ),
    "bibliography_section": NodeSpec(
        content="section_title bibliography_element",
        attrs={"id": ""},
        group="block sections",
        parse_dom=[ParseRule(tag="section.bibliography", get_attrs=_id_attrs, priority=60)],
        to_dom=_section_dom("bibliography"),
    ),
    "keywords_section": NodeSpec(
        content="section_title keywords_element",
        attrs={"id": ""},
        group="block sections",
        parse_dom=[ParseRule(tag="section.keywords", get_attrs=_id_attrs, priority=60)],
        to_dom=_section_dom("keywords"),
    ),
    "toc_section": NodeSpec(
        content="section_title toc_element",
        attrs={"id": ""},
        group="block sections",
        parse_dom=[ParseRule(tag="section.toc", get_attrs=_id_attrs, priority=60)],
        to_dom=_section_dom("toc"),
    ),
    "section_title": NodeSpec(
        content="(text | highlight_marker)*",
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="h1"), ParseRule(tag="h2"), ParseRule(tag="h3")],
        to_dom=lambda node: ("h1", 0),
    ),
}


# ── Text blocks and containers ────────────────────────────────────────────

_BLOCK_NODES: dict[str, NodeSpec] = {
    "paragraph": NodeSpec(
        content="inline*",
        attrs={"id": "", "paragraphStyle": "", "placeholder": ""},
        group="block element",
        parse_dom=[ParseRule(tag="p", get_attrs=_paragraph_attrs)],
        to_dom=lambda node: (
            "p",
            {
                "id": node.attrs["id"] or None,
                "class": build_element_class(node.attrs["paragraphStyle"]),
                "data-object-type": ObjectType.PARAGRAPH_ELEMENT.value,
                "data-placeholder-text": node.attrs["placeholder"] or None,
            },
            0,
        ),
    ),
    "blockquote_element": NodeSpec(
        content="paragraph+ attribution?",
        attrs={"id": "", "paragraphStyle": "", "placeholder": ""},
        group="block element",
        parse_dom=[ParseRule(tag="blockquote", get_attrs=_styled_element_attrs)],
        to_dom=lambda node: _element_dom(
            "blockquote", node, ObjectType.QUOTE_ELEMENT.value
        ),
    ),
    "pullquote_element": NodeSpec(
        content="paragraph+ attribution?",
        attrs={"id": "", "paragraphStyle": "", "placeholder": ""},
        group="block element",
        parse_dom=[ParseRule(tag="aside.pullquote", get_attrs=_styled_element_attrs)],
        to_dom=lambda node: _element_dom(
            "aside", node, ObjectType.QUOTE_ELEMENT.value, "pullquote"
        ),
    ),
    "attribution": NodeSpec(
        content="inline*",
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="footer")],
        to_dom=lambda node: ("footer", 0),
    ),
    "bullet_list": NodeSpec(
        content="list_item+",
        attrs={"id": "", "paragraphStyle": ""},
        group="block list element",
        parse_dom=[ParseRule(tag="ul", get_attrs=_styled_element_attrs)],
        to_dom=lambda node: _element_dom("ul", node, ObjectType.LIST_ELEMENT.value),
    ),
    "ordered_list": NodeSpec(
        content="list_item+",
        attrs={"id": "", "paragraphStyle": ""},
        group="block list element",
        parse_dom=[ParseRule(tag="ol", get_attrs=_styled_element_attrs)],
        to_dom=lambda node: _element_dom("ol", node, ObjectType.LIST_ELEMENT.value),
    ),
    "list_item": NodeSpec(
        content="paragraph? (ordered_list | bullet_list)*",
        attrs={"placeholder": ""},
        group=GROUP_BLOCK,
        parse_dom=[
            ParseRule(
                tag="li",
                get_attrs=lambda dom: {
                    "placeholder": get_attr(dom, "data-placeholder-text") or ""
                },
            )
        ],
        to_dom=lambda node: (
            "li",
            {"data-placeholder-text": node.attrs["placeholder"] or None},
            0,
        ),
    ),
    "footnotes_element": NodeSpec(
        content="footnote*",
        attrs={"id": "", "paragraphStyle": ""},
        group="block element",
        parse_dom=[ParseRule(tag="div.footnotes", get_attrs=_id_attrs)],
        to_dom=lambda node: ("div", {"class": "footnotes", "id": node.attrs["id"] or None}, 0),
    ),
    "footnote": NodeSpec(
        content="inline*",
        attrs={"id": "", "contents": "", "kind": "footnote"},
        group=GROUP_BLOCK,
        parse_dom=[
            ParseRule(
                tag="div.footnote-contents",
                get_attrs=lambda dom: {
                    "id": get_attr(dom, "id") or "",
                    "contents": inner_html(dom.find("p")) if dom.find("p") else "",
                },
            )
        ],
        to_dom=lambda node: (
            "div",
            {"class": "footnote-contents", "id": node.attrs["id"] or None},
            (
                "div",
                {"class": "footnote-text"},
                (
                    "p",
                    {"data-placeholder-text": FOOTNOTE_PLACEHOLDERS.get(node.attrs["kind"])},
                    0,
                ),
            ),
        ),
    ),
    "placeholder": NodeSpec(
        attrs={"id": "", "label": ""},
        group=GROUP_BLOCK,
        atom=True,
        parse_dom=[
            ParseRule(
                tag="div.placeholder-item",
                get_attrs=lambda dom: {"id": get_attr(dom, "id") or "", "label": dom.get_text()},
            )
        ],
        to_dom=lambda node: ("div", {"class": "placeholder-item"}, node.attrs["label"]),
    ),
    "placeholder_element": NodeSpec(
        attrs={"id": ""},
        group="block element",
        atom=True,
        parse_dom=[ParseRule(tag="div.placeholder-element", get_attrs=_id_attrs)],
        to_dom=lambda node: ("div", {"class": "placeholder-element", "id": node.attrs["id"] or None}),
    ),
}


# ── Figures, tables, equations, listings ──────────────────────────────────


def _figure_attrs(dom):
    return {
        "id": get_attr(dom, "id") or "",
        "figureStyle": get_attr(dom, "data-figure-style") or "",
        "figureLayout": get_attr(dom, "data-figure-layout") or "",
    }


def _table_element_attrs(dom):
    return {
        "id": get_attr(dom, "id") or "",
        "paragraphStyle": get_attr(dom, "data-paragraph-style") or "",
        "tableStyle": get_attr(dom, "data-table-style") or "",
    }


def _listing_attrs(dom):
    code = dom.find("code")
    return {
        "id": get_attr(dom, "id") or "",
        "contents": (code or dom).get_text(),
        "languageKey": get_attr(dom, "data-language") or "null",
    }


def _listing_dom(node):
    soup = new_html_document()
    pre = soup.new_tag("pre", attrs={"class": "listing"})
    if node.attrs["id"]:
        pre["id"] = node.attrs["id"]
    if node.attrs["languageKey"] and node.attrs["languageKey"] != "null":
        pre["data-language"] = node.attrs["languageKey"]
    code = soup.new_tag("code")
    code.string = node.attrs["contents"] or ""
    pre.append(code)
    return pre


_FIGURE_NODES: dict[str, NodeSpec] = {
    "figcaption": NodeSpec(
        content="inline*",
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="figcaption")],
        to_dom=lambda node: ("figcaption", 0),
    ),
    "figure": NodeSpec(
        content="figcaption",
        attrs={
            "id": "",
            "label": "",
            "src": "",
            "contentType": "",
            "listingAttachment": None,
            "embedURL": None,
            "originalURL": None,
        },
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="figure", context="figure_element/", get_attrs=_id_attrs)],
        to_dom=lambda node: ("figure", {"id": node.attrs["id"] or None}, 0),
    ),
    "figure_element": NodeSpec(
        content="(figure | placeholder)+ figcaption (listing | placeholder)",
        attrs={
            "columns": 1,
            "containedObjectIDs": [],
            "figureLayout": "",
            "figureStyle": "",
            "alignment": None,
            "sizeFraction": None,
            "id": "",
            "label": "",
            "rows": 1,
            "suppressCaption": False,
        },
        group="block element executable",
        # figure.table and friends get a chance to match first
        parse_dom=[ParseRule(tag="figure", get_attrs=_figure_attrs, priority=10)],
        to_dom=lambda node: (
            "figure",
            {
                "id": node.attrs["id"],
                "data-figure-style": node.attrs["figureStyle"] or None,
                "data-figure-layout": node.attrs["figureLayout"] or None,
            },
            0,
        ),
    ),
    "table_element": NodeSpec(
        content="(table | placeholder) figcaption (listing | placeholder)",
        attrs={
            "id": "",
            "paragraphStyle": "",
            "tableStyle": "",
            "label": "",
            "suppressCaption": False,
            "suppressFooter": False,
            "suppressHeader": False,
        },
        group="block element executable",
        parse_dom=[ParseRule(tag="figure.table", get_attrs=_table_element_attrs)],
        to_dom=lambda node: (
            "figure",
            {
                "class": "table",
                "id": node.attrs["id"],
                "data-paragraph-style": node.attrs["paragraphStyle"] or None,
                "data-table-style": node.attrs["tableStyle"] or None,
            },
            0,
        ),
    ),
    "table": NodeSpec(
        content="table_row+",
        attrs={"id": ""},
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="table", get_attrs=_id_attrs)],
        to_dom=lambda node: ("table", {"id": node.attrs["id"] or None}, ("tbody", 0)),
    ),
    "table_row": NodeSpec(
        content="table_cell+",
        parse_dom=[ParseRule(tag="tr")],
        to_dom=lambda node: ("tr", 0),
    ),
    "table_cell": NodeSpec(
        content="inline*",
        attrs={"colspan": None, "rowspan": None},
        parse_dom=[
            ParseRule(
                tag=name,
                get_attrs=lambda dom: {
                    "colspan": get_attr(dom, "colspan"),
                    "rowspan": get_attr(dom, "rowspan"),
                },
            )
            for name in ("td", "th")
        ],
        to_dom=lambda node: (
            "td",
            {"colspan": node.attrs["colspan"], "rowspan": node.attrs["rowspan"]},
            0,
        ),
    ),
    "equation_element": NodeSpec(
        content="(equation | placeholder) figcaption",
        attrs={"id": "", "label": "", "suppressCaption": False},
        group="block element",
        parse_dom=[ParseRule(tag="figure.equation", get_attrs=_id_attrs)],
        to_dom=lambda node: ("figure", {"class": "equation", "id": node.attrs["id"]}, 0),
    ),
    "equation": NodeSpec(
        attrs={
            "id": "",
            "MathMLStringRepresentation": "",
            "SVGStringRepresentation": "",
            "TeXRepresentation": "",
        },
        group=GROUP_BLOCK,
        parse_dom=[
            ParseRule(
                tag=f"div.{ObjectType.EQUATION.value}",
                get_attrs=lambda dom: {
                    "id": get_attr(dom, "id") or "",
                    "SVGStringRepresentation": inner_html(dom),
                    "TeXRepresentation": get_attr(dom, "data-tex-representation") or "",
                },
            )
        ],
        to_dom=lambda node: element_with_html(
            "div",
            {
                "id": node.attrs["id"],
                "class": ObjectType.EQUATION.value,
                "data-tex-representation": node.attrs["TeXRepresentation"],
            },
            node.attrs["SVGStringRepresentation"],
        ),
    ),
    "listing_element": NodeSpec(
        content="(listing | placeholder) figcaption",
        attrs={"id": "", "label": "", "suppressCaption": False},
        group="block element",
        parse_dom=[ParseRule(tag="figure.listing", get_attrs=_id_attrs)],
        to_dom=lambda node: ("figure", {"class": "listing", "id": node.attrs["id"]}, 0),
    ),
    "listing": NodeSpec(
        attrs={"id": "", "contents": "", "language": "", "languageKey": "null"},
        group=GROUP_BLOCK,
        parse_dom=[ParseRule(tag="pre.listing", get_attrs=_listing_attrs)],
        to_dom=_listing_dom,
    ),
}


# ── Generated blocks ──────────────────────────────────────────────────────

_GENERATED_NODES: dict[str, NodeSpec] = {
    "bibliography_element": NodeSpec(
        attrs={
            "id": "",
            "contents": "",
            "paragraphStyle": "",
            "placeholder": "Citations inserted to the manuscript will be "
            "formatted here as a bibliography.",
        },
        group=GROUP_BLOCK,
        atom=True,
        parse_dom=[ParseRule(tag="div.csl-bib-body", get_attrs=_contents_attrs)],
        to_dom=lambda node: _contents_or_empty(node, "csl-bib-body"),
    ),
    "keywords_element": NodeSpec(
        attrs={"id": "", "contents": "", "paragraphStyle": ""},
        group="block element",
        atom=True,
        parse_dom=[ParseRule(tag="div.manuscript-keywords", get_attrs=_contents_attrs)],
        to_dom=lambda node: _contents_or_empty(node, "manuscript-keywords"),
    ),
    "toc_element": NodeSpec(
        attrs={"id": "", "contents": "", "paragraphStyle": ""},
        group="block element",
        atom=True,
        parse_dom=[ParseRule(tag="div.manuscript-toc", get_attrs=_contents_attrs)],
        to_dom=lambda node: _contents_or_empty(node, "manuscript-toc"),
    ),
}


# ── Inline nodes ──────────────────────────────────────────────────────────

_INLINE_NODES: dict[str, NodeSpec] = {
    "text": NodeSpec(group="inline"),
    "hard_break": NodeSpec(
        inline=True,
        group="inline",
        parse_dom=[ParseRule(tag="br")],
        to_dom=lambda node: ("br",),
    ),
    "citation": NodeSpec(
        inline=True,
        atom=True,
        group="inline",
        attrs={"rid": "", "contents": ""},
        parse_dom=[
            ParseRule(
                tag="span.citation[data-reference-id]",
                get_attrs=lambda dom: {
                    "rid": get_attr(dom, "data-reference-id"),
                    "contents": inner_html(dom),
                },
            )
        ],
        to_dom=lambda node: element_with_html(
            "span",
            {"class": "citation", "data-reference-id": node.attrs["rid"]},
            node.attrs["contents"],
        ),
    ),
    "cross_reference": NodeSpec(
        inline=True,
        atom=True,
        group="inline",
        attrs={"rid": "", "label": ""},
        parse_dom=[
            ParseRule(
                tag="span.cross-reference",
                get_attrs=lambda dom: {
                    "rid": get_attr(dom, "data-reference-id") or "",
                    "label": dom.get_text(),
                },
            )
        ],
        to_dom=lambda node: (
            "span",
            {"class": "cross-reference", "data-reference-id": node.attrs["rid"]},
            node.attrs["label"],
        ),
    ),
    "highlight_marker": NodeSpec(
        inline=True,
        atom=True,
        group="inline",
        attrs={"id": "", "rid": "", "position": ""},
        parse_dom=[
            ParseRule(
                tag="span.highlight-marker",
                get_attrs=lambda dom: {
                    "id": get_attr(dom, "id") or "",
                    "rid": get_attr(dom, "data-reference-id") or "",
                    "position": get_attr(dom, "data-position") or "",
                },
            )
        ],
        to_dom=lambda node: (
            "span",
            {
                "class": "highlight-marker",
                "id": node.attrs["id"],
                "data-reference-id": node.attrs["rid"],
                "data-position": node.attrs["position"],
            },
        ),
    ),
    "inline_equation": NodeSpec(
        inline=True,
        atom=True,
        group="inline",
        attrs={"id": "", "TeXRepresentation": "", "SVGRepresentation": "", "SVGGlyphs": None},
        parse_dom=[
            ParseRule(
                tag=f"span.{ObjectType.INLINE_MATH_FRAGMENT.value}",
                get_attrs=lambda dom: {
                    "id": get_attr(dom, "id") or "",
                    "TeXRepresentation": get_attr(dom, "data-tex-representation") or "",
                    "SVGRepresentation": inner_html(dom),
                },
            )
        ],
        to_dom=lambda node: element_with_html(
            "span",
            {
                "class": ObjectType.INLINE_MATH_FRAGMENT.value,
                "id": node.attrs["id"],
                "data-tex-representation": node.attrs["TeXRepresentation"],
            },
            node.attrs["SVGRepresentation"],
        ),
    ),
    "inline_footnote": NodeSpec(
        inline=True,
        atom=True,
        group="inline",
        attrs={"rid": "", "contents": ""},
        parse_dom=[
            ParseRule(
                tag="span.footnote",
                get_attrs=lambda dom: {
                    "rid": get_attr(dom, "data-reference-id") or "",
                    "contents": dom.get_text(),
                },
            )
        ],
        to_dom=lambda node: (
            "span",
            {"class": "footnote", "data-reference-id": node.attrs["rid"]},
            node.attrs["contents"],
        ),
    ),
    "link": NodeSpec(
        content="text*",
        inline=True,
        group="inline",
        attrs={"href": "", "title": ""},
        parse_dom=[
            ParseRule(
                tag="a[href]",
                get_attrs=lambda dom: {
                    "href": get_attr(dom, "href") or "",
                    "title": get_attr(dom, "title") or "",
                },
            )
        ],
        to_dom=lambda node: (
            "a",
            {"href": node.attrs["href"], "title": node.attrs["title"] or None},
            0,
        ),
    ),
}


NODES: dict[str, NodeSpec] = {
    **_SECTION_NODES,
    **_BLOCK_NODES,
    **_FIGURE_NODES,
    **_GENERATED_NODES,
    **_INLINE_NODES,
}


def has_group(node_type, group_name: str) -> bool:
    return group_name in node_type.groups
