"""
Re-identify a set of models.

Every model with an ``MP…:…`` id gets a fresh id of the same object
type; references to the old ids are then rewritten in every string
field, including ids embedded in HTML in their normalized ``MP…_…``
form.  Attachment paths named after normalized ids are rewritten the
same way.
"""

from __future__ import annotations

import re
from typing import Any

from manuscripts_transform.config import DEFAULT_ATTACHMENT_PREFIX
from manuscripts_transform.ids import denormalize_id, generate_id, normalize_id

Model = dict[str, Any]

_MODEL_ID_RE = re.compile(r"^MP.+:.+")
_COLON_ID_RE = re.compile(r"MP\w+:[\w-]+")
_UNDERSCORE_ID_RE = re.compile(r"MP\w+_[\w-]+")


def _update_ids(value: Any, id_map: dict[str, str]) -> None:
    if isinstance(value, list):
        for item in value:
            _update_ids(item, id_map)
        return
    if not isinstance(value, dict):
        return

    identifier = value.get("_id")
    object_type = value.get("objectType")
    if not object_type or not isinstance(identifier, str) or not _MODEL_ID_RE.match(identifier):
        return

    if identifier not in id_map:
        id_map[identifier] = generate_id(object_type)
    value["_id"] = id_map[identifier]

    for child in value.values():
        _update_ids(child, id_map)


def replace_content(content: str, id_map: dict[str, str]) -> str:
    """Rewrite the ids of *id_map* inside a string, in both separator forms."""
    content = _COLON_ID_RE.sub(lambda match: id_map.get(match.group(0), match.group(0)), content)

    def replace_normalized(match: re.Match) -> str:
        new_id = id_map.get(denormalize_id(match.group(0)))
        return normalize_id(new_id) if new_id else match.group(0)

    return _UNDERSCORE_ID_RE.sub(replace_normalized, content)


def _update_content(value: Any, id_map: dict[str, str]) -> Any:
    if isinstance(value, dict):
        for key, child in value.items():
            value[key] = _update_content(child, id_map)
        return value
    if isinstance(value, list):
        return [_update_content(item, id_map) for item in value]
    if isinstance(value, str):
        return replace_content(value, id_map)
    return value


def update_identifiers(models: list[Model]) -> tuple[list[Model], dict[str, str]]:
    """Give every model a fresh id and rewrite all references, in place.

    Returns the models and the ``old id → new id`` map.
    """
    id_map: dict[str, str] = {}
    for model in models:
        _update_ids(model, id_map)
    for model in models:
        _update_content(model, id_map)
    return models, id_map


def update_attachment_path(
    old_path: str, id_map: dict[str, str], prefix: str = DEFAULT_ATTACHMENT_PREFIX
) -> str | None:
    """``Data/MPFigure_OLD.png`` → ``Data/MPFigure_NEW.png``; ``None`` when unmapped."""
    match = re.match(rf"^{re.escape(prefix)}([^.]+)(.*)", old_path)
    if match is None:
        return None
    name, suffix = match.groups()
    new_id = id_map.get(denormalize_id(name))
    if new_id is None:
        return None
    return f"{prefix}{normalize_id(new_id)}{suffix}"
