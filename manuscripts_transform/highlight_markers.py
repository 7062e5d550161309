"""
Highlight markers: zero-width anchors inside a model's HTML fields.

In a content tree a highlight boundary is a ``highlight_marker`` inline
node, serialized as ``<span class="highlight-marker">``.  In a stored
model the spans are cut out of the HTML and kept as records in the
model's ``highlightMarkers`` list, each holding the field name and the
character offset the span was removed from.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from bs4 import Tag

from manuscripts_transform.config import ObjectType
from manuscripts_transform.markup import new_html_document, outer_html, parse_html

logger = logging.getLogger(__name__)

HIGHLIGHTABLE_FIELDS: tuple[str, ...] = ("caption", "contents", "title")

HighlightMarker = dict[str, Any]


def is_highlightable_model(model: dict[str, Any]) -> bool:
    return any(field in model for field in HIGHLIGHTABLE_FIELDS)


def build_marker_html(marker: HighlightMarker) -> str:
    span = new_html_document().new_tag("span")
    span["class"] = "highlight-marker"
    span["id"] = marker["_id"]
    span["data-reference-id"] = marker["highlightID"]
    span["data-position"] = "start" if marker.get("start") else "end"
    return outer_html(span)


def _find_marker_span(html: str, span: Tag) -> tuple[int, int] | None:
    """Locate *span* in the raw *html* as ``(start, end)``.

    Spans with an id are matched by it, whatever order their attributes
    were written in.
    """
    identifier = span.get("id")
    if identifier:
        pattern = r"<span\b[^>]*\sid=([\"'])%s\1[^>]*>\s*</span>" % re.escape(identifier)
        match = re.search(pattern, html)
        return match.span() if match else None
    span_html = outer_html(span)
    offset = html.find(span_html)
    return (offset, offset + len(span_html)) if offset != -1 else None


def extract_highlight_markers(model: dict[str, Any]) -> None:
    """Move marker spans out of *model*'s HTML fields into ``highlightMarkers``.

    The model is modified in place.  Offsets are recorded in the HTML as
    it is after the preceding markers were removed, so inserting them back
    highest-offset-first restores the original string.
    """
    markers: list[HighlightMarker] = []

    for field in HIGHLIGHTABLE_FIELDS:
        html = model.get(field)
        if not html:
            continue
        spans = parse_html(f"<div>{html}</div>").select("span.highlight-marker")
        if not spans:
            continue
        for span in spans:
            found = _find_marker_span(html, span)
            if found is None:
                logger.warning("Highlight marker %s not found in %s", span.get("id"), field)
                continue
            offset, end = found
            identifier = span.get("id")
            highlight_id = span.get("data-reference-id")
            if identifier and highlight_id:
                markers.append(
                    {
                        "_id": identifier,
                        "objectType": ObjectType.HIGHLIGHT_MARKER.value,
                        "highlightID": highlight_id,
                        "field": field,
                        "start": span.get("data-position") == "start",
                        "offset": offset,
                    }
                )
            html = html[:offset] + html[end:]
        model[field] = html

    if markers:
        model["highlightMarkers"] = markers


def insert_highlight_markers(
    field: str, contents: str, markers: list[HighlightMarker]
) -> str:
    """Splice the markers recorded for *field* back into *contents*."""
    # markers sharing an offset go back in reverse order of extraction
    relevant = sorted(
        (
            (marker["offset"], index, marker)
            for index, marker in enumerate(markers)
            if marker.get("field") == field
        ),
        key=lambda entry: entry[:2],
        reverse=True,
    )
    output = contents
    for _, _, marker in relevant:
        offset = marker["offset"]
        output = output[:offset] + build_marker_html(marker) + output[offset:]
    return output
