"""
Sequential labels ("Figure 1", "Table 2", …) for cross-reference targets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from manuscripts_transform.node_types import NODE_NAMES
from manuscripts_transform.schema import Node, NodeType, schema

_nodes = schema.nodes

# Labelled node type → manuscript field overriding its label
LABEL_PROPERTIES: dict[NodeType, str] = {
    _nodes["figure_element"]: "figureElementLabel",
    _nodes["table_element"]: "tableElementLabel",
    _nodes["equation_element"]: "equationElementLabel",
    _nodes["listing_element"]: "listingElementLabel",
}


@dataclass
class Target:
    type: str
    id: str
    label: str
    caption: str


def choose_label(node_type: NodeType, manuscript: dict[str, Any]) -> str:
    label_property = LABEL_PROPERTIES.get(node_type)
    if label_property and manuscript.get(label_property):
        return manuscript[label_property]
    return NODE_NAMES[node_type]


def build_targets(fragment: Node, manuscript: dict[str, Any]) -> dict[str, Target]:
    """Number every labelled element of *fragment* in document order.

    Returns a mapping of element id → ``Target``; the counters start at 1
    on every call.
    """
    counters: dict[str, list[Any]] = {
        node_type.name: [choose_label(node_type, manuscript), 0]
        for node_type in LABEL_PROPERTIES
    }

    targets: dict[str, Target] = {}
    for node, _ in fragment.descendants():
        counter = counters.get(node.type.name)
        if counter is None:
            continue
        counter[1] += 1
        targets[node.attrs["id"]] = Target(
            type=node.type.name,
            id=node.attrs["id"],
            label=f"{counter[0]} {counter[1]}",
            caption=node.text_content,
        )
    return targets
