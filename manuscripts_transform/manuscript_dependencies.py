"""
Models a manuscript depends on, and models derived from shared prototypes.

Styles, bundles and other shared data are copied into a project with
``from_prototype``: the copy gets a fresh id and remembers its source in
``prototype``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from manuscripts_transform.config import DEFAULT_PARAGRAPH_STYLE_TITLE, ObjectType
from manuscripts_transform.errors import ManuscriptNotFoundError, MissingModelError
from manuscripts_transform.ids import generate_id
from manuscripts_transform.object_types import has_object_type, is_manuscript

logger = logging.getLogger(__name__)

Model = dict[str, Any]

_ID_RE = re.compile(r"MP\w+:[\w-]+")

is_paragraph_style = has_object_type(ObjectType.PARAGRAPH_STYLE)


# ── Reachable models ──────────────────────────────────────────────────────


def _referenced_ids(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield from _ID_RE.findall(value)
    elif isinstance(value, dict):
        for child in value.values():
            yield from _referenced_ids(child)
    elif isinstance(value, list):
        for child in value:
            yield from _referenced_ids(child)


def find_manuscript_model_ids(model_map: dict[str, Model], manuscript_id: str) -> set[str]:
    """Ids of the manuscript and every model reachable from it.

    Models carrying the manuscript's ``manuscriptID`` are reachable, and so
    is every model whose id appears in a reachable model's fields, HTML
    contents included.
    """
    manuscript = model_map.get(manuscript_id)
    if manuscript is None or not is_manuscript(manuscript):
        raise ManuscriptNotFoundError(f"Manuscript {manuscript_id} not found")

    pending = [manuscript_id]
    pending.extend(
        model["_id"]
        for model in model_map.values()
        if model.get("manuscriptID") == manuscript_id
    )

    found: set[str] = set()
    while pending:
        identifier = pending.pop()
        if identifier in found or identifier not in model_map:
            continue
        found.add(identifier)
        for referenced in _referenced_ids(model_map[identifier]):
            if referenced not in found:
                pending.append(referenced)

    return found


def get_manuscript_dependencies(model_map: dict[str, Model], manuscript_id: str) -> list[Model]:
    """Models reachable from the manuscript, in model map order."""
    ids = find_manuscript_model_ids(model_map, manuscript_id)
    return [model for identifier, model in model_map.items() if identifier in ids]


# ── Prototypes ────────────────────────────────────────────────────────────


def from_prototype(model: Model) -> Model:
    data = {key: value for key, value in model.items() if key not in ("_id", "_rev")}
    return {
        **data,
        "prototype": model["_id"],
        "_id": generate_id(model["objectType"]),
    }


def get_by_prototype(models: dict[str, Model], prototype: str) -> Model | None:
    for model in models.values():
        if model.get("prototype") == prototype:
            return model
    return None


def _choose_default_paragraph_style(styles: dict[str, Model]) -> Model | None:
    for style in styles.values():
        if is_paragraph_style(style) and style.get("title") == DEFAULT_PARAGRAPH_STYLE_TITLE:
            return style
    return None


def updated_page_layout(style_map: dict[str, Model], page_layout_id: str) -> Model:
    """Copy of the page layout derived from *page_layout_id*.

    The copy's ``defaultParagraphStyle`` points at the paragraph style
    derived from the original default, or at the "Body Text" style.
    """
    page_layout = get_by_prototype(style_map, page_layout_id)
    if page_layout is None:
        raise MissingModelError("Page layout not found")

    paragraph_style = get_by_prototype(
        style_map, page_layout.get("defaultParagraphStyle", "")
    ) or _choose_default_paragraph_style(style_map)
    if paragraph_style is None:
        raise MissingModelError("Default paragraph style not found")

    return from_prototype({**page_layout, "defaultParagraphStyle": paragraph_style["_id"]})


# ── Bundles ───────────────────────────────────────────────────────────────


def find_bundle_by_url(url: str, bundles: dict[str, Model]) -> Model | None:
    for bundle in bundles.values():
        csl = bundle.get("csl")
        if csl and csl.get("self-URL") == url:
            return bundle
    return None


def create_parent_bundle(bundle: Model, bundles: dict[str, Model]) -> Model | None:
    """Copy of the bundle's independent parent style, if it has one."""
    csl = bundle.get("csl")
    if not csl:
        return None
    parent_url = csl.get("independent-parent-URL")
    if not parent_url:
        return None
    parent = find_bundle_by_url(parent_url, bundles)
    if parent is None:
        raise MissingModelError(f"Bundle with URL not found: {parent_url}")
    return from_prototype(parent)


def create_new_bundle(bundle_id: str, bundles: dict[str, Model]) -> Model:
    bundle = bundles.get(bundle_id)
    if bundle is None:
        raise MissingModelError(f"Bundle not found: {bundle_id}")
    logger.debug("Creating bundle from %s", bundle_id)
    return from_prototype(bundle)
