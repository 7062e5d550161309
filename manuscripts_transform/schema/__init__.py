"""
The manuscript schema: node and mark catalog plus the engine that
validates, parses and serializes content trees.
"""

from manuscripts_transform.schema.content import ContentMatch
from manuscripts_transform.schema.dom_parser import DOMParser, ParseRule
from manuscripts_transform.schema.dom_serializer import DOMSerializer
from manuscripts_transform.schema.marks import MARKS
from manuscripts_transform.schema.model import (
    Mark,
    MarkSpec,
    MarkType,
    Node,
    NodeSpec,
    NodeType,
    Schema,
)
from manuscripts_transform.schema.nodes import (
    GROUP_BLOCK,
    GROUP_ELEMENT,
    GROUP_EXECUTABLE,
    GROUP_LIST,
    GROUP_SECTION,
    NODES,
    has_group,
)

schema = Schema(nodes=NODES, marks=MARKS, top_node="doc")

__all__ = [
    "ContentMatch",
    "DOMParser",
    "DOMSerializer",
    "GROUP_BLOCK",
    "GROUP_ELEMENT",
    "GROUP_EXECUTABLE",
    "GROUP_LIST",
    "GROUP_SECTION",
    "Mark",
    "MarkSpec",
    "MarkType",
    "Node",
    "NodeSpec",
    "NodeType",
    "ParseRule",
    "Schema",
    "has_group",
    "schema",
]
