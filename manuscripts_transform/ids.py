"""
Identifier generation.

Model ids have the form ``"<ObjectType>:<UUID>"`` with an upper-case
UUID.  Exported documents (HTML ids, attachment names) use the
normalized form where ``:`` becomes ``_``.
"""

from __future__ import annotations

import uuid

from manuscripts_transform.config import ObjectType
from manuscripts_transform.node_types import NODE_TYPES_MAP
from manuscripts_transform.schema import NodeType


def generate_id(object_type: ObjectType | str) -> str:
    prefix = object_type.value if isinstance(object_type, ObjectType) else object_type
    return f"{prefix}:{str(uuid.uuid4()).upper()}"


def generate_node_id(node_type: NodeType) -> str:
    """Fresh id for a node, prefixed with the object type it is stored as."""
    object_type = NODE_TYPES_MAP.get(node_type)
    if object_type is None:
        raise KeyError(f"No object type for node type {node_type.name}")
    return generate_id(object_type)


def normalize_id(identifier: str) -> str:
    return identifier.replace(":", "_")


def denormalize_id(identifier: str) -> str:
    return identifier.replace("_", ":", 1)
