"""
Navigation of the section hierarchy stored in a model map.

Sections have no parent pointer: ``path`` lists the ancestor ids ending
with the section's own id and ``priority`` orders siblings.
"""

from __future__ import annotations

from typing import Any

from manuscripts_transform.config import ObjectType

Model = dict[str, Any]


def sort_key(model: Model) -> float:
    priority = model.get("priority")
    return float(priority) if priority is not None else 0.0


class SectionTree:
    """Parent, children and siblings of sections in *model_map*."""

    def __init__(self, model_map: dict[str, Model]) -> None:
        self.model_map = model_map

    def get_section_path(self, identifier: str) -> list[str]:
        model = self.model_map.get(identifier)
        if model is None:
            raise KeyError(f"Doc {identifier} not found")
        path = model.get("path")
        if not path:
            raise ValueError(f"Doc {identifier} is not a Section")
        return path

    def get_parent(self, identifier: str) -> Model | None:
        path = self.get_section_path(identifier)
        if len(path) < 2:
            return None
        return self.model_map.get(path[-2])

    def get_children(self, identifier: str | None) -> list[Model]:
        """Child sections of *identifier*, or the root sections for ``None``."""
        children = []
        for model in self.model_map.values():
            path = model.get("path")
            if not path:
                continue
            if identifier is None:
                if len(path) == 1 and path[0] == model["_id"]:
                    children.append(model)
            elif len(path) > 1 and path[-2] == identifier:
                children.append(model)
        return sorted(children, key=sort_key)

    def get_siblings(self, identifier: str) -> list[Model]:
        parent = self.get_parent(identifier)
        return self.get_children(parent["_id"] if parent is not None else None)


def walk_section_tree(model_map: dict[str, Model]) -> SectionTree:
    return SectionTree(model_map)


def merge_element_ids(model: Model, next_children: list[str]) -> list[str]:
    """Replace the section ids in *model*'s ``elementIDs`` by *next_children*."""
    prefix = f"{ObjectType.SECTION.value}:"
    element_ids = [
        element_id
        for element_id in model.get("elementIDs") or []
        if not element_id.startswith(prefix)
    ]
    return element_ids + list(next_children)
