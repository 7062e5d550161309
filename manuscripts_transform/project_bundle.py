"""
Project bundles: the exported JSON form of a project.

A bundle is ``{"version": "2.0", "data": [model, ...]}``.  Parsing a
bundle picks one manuscript, builds the model map and decodes the
content tree.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypedDict

from bs4 import Tag

from manuscripts_transform.config import ObjectType
from manuscripts_transform.decode import Decoder
from manuscripts_transform.errors import ManuscriptNotFoundError
from manuscripts_transform.object_types import is_manuscript, is_submission
from manuscripts_transform.schema import Node

logger = logging.getLogger(__name__)

Model = dict[str, Any]


class ProjectBundle(TypedDict):
    version: str
    data: list[Model]


def find_manuscript(model_map: dict[str, Model]) -> Model:
    for model in model_map.values():
        if is_manuscript(model):
            return model
    raise ManuscriptNotFoundError("Manuscript not found")


def find_manuscript_by_id(model_map: dict[str, Model], manuscript_id: str) -> Model:
    model = model_map.get(manuscript_id)
    if model is None or not is_manuscript(model):
        raise ManuscriptNotFoundError(f"Manuscript {manuscript_id} not found")
    return model


def find_latest_manuscript_submission(
    model_map: dict[str, Model], manuscript: Model
) -> Model | None:
    """Most recently created submission of *manuscript*, if any."""
    submissions = [
        model
        for model in model_map.values()
        if is_submission(model) and model.get("manuscriptID") == manuscript["_id"]
    ]
    if not submissions:
        return None
    return max(submissions, key=lambda model: model.get("createdAt") or 0)


def parse_project_bundle(
    bundle: ProjectBundle,
    manuscript_id: str | None = None,
    parse_html_fragment: Callable[[str], Tag] | None = None,
) -> tuple[Node, Model, dict[str, Model]]:
    """Decode a project bundle.

    Parameters
    ----------
    bundle : dict
        ``{"version": ..., "data": [...]}``.
    manuscript_id : str, optional
        Manuscript to decode.  Defaults to the first manuscript in the
        bundle.

    Returns
    -------
    tuple
        ``(article, manuscript, model_map)`` where *article* is the
        decoded ``manuscript`` node.
    """
    model_map = {model["_id"]: model for model in bundle["data"]}

    if manuscript_id is not None:
        manuscript = find_manuscript_by_id(model_map, manuscript_id)
    else:
        manuscript = find_manuscript(model_map)

    logger.debug(
        "Decoding manuscript %s from %d models", manuscript["_id"], len(model_map)
    )
    decoder = Decoder(model_map, parse_html_fragment)
    article = decoder.create_article_node(manuscript["_id"])
    return article, manuscript, model_map


def bundle_models(model_map: dict[str, Model]) -> ProjectBundle:
    """Wrap a model map back into the bundle envelope."""
    return {"version": "2.0", "data": list(model_map.values())}


def manuscript_ids(bundle: ProjectBundle) -> list[str]:
    return [
        model["_id"]
        for model in bundle["data"]
        if model.get("objectType") == ObjectType.MANUSCRIPT.value
    ]
