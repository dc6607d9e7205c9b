"""Pure editing operations on a flowchart.

Every operation returns a new `Flowchart` and leaves its argument untouched,
so a caller can swap the result in wholesale or drop it on failure.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Iterable, Mapping, Tuple

from ..core.exceptions import FlowValidationError
from .model import (
    DEFAULT_NEW_NODE_POSITION,
    NODE_KINDS,
    DecisionNode,
    FlowInput,
    Flowchart,
    FlowNode,
    TerminatorNode,
    unique_node_id,
)


def _require_node(flowchart: Flowchart, node_id: str) -> FlowNode:
    node = flowchart.get(node_id)
    if node is None:
        raise FlowValidationError(
            f'Node "{node_id}" does not exist.',
            context={"node_id": node_id},
            code="NODE_NOT_FOUND",
        )
    return node


def _retarget(node: FlowNode, old_id: str, new_id: str) -> FlowNode:
    if not isinstance(node, DecisionNode):
        return node
    positive = new_id if node.positive_path == old_id else node.positive_path
    negative = new_id if node.negative_path == old_id else node.negative_path
    if positive == node.positive_path and negative == node.negative_path:
        return node
    return replace(node, positive_path=positive, negative_path=negative)


def add_node(flowchart: Flowchart, kind: str) -> Tuple[Flowchart, str]:
    """Add a node with default data and return ``(flowchart, new_id)``."""
    if kind not in NODE_KINDS:
        raise FlowValidationError(
            f"Unknown node type: {kind}",
            context={"type": kind},
            code="INVALID_NODE_TYPE",
        )
    node_id = unique_node_id(kind, flowchart.nodes)
    node: FlowNode
    if kind == "decision":
        node = DecisionNode(id=node_id, position=DEFAULT_NEW_NODE_POSITION)
    else:
        node = TerminatorNode(
            id=node_id, output={"result": "new"}, position=DEFAULT_NEW_NODE_POSITION
        )
    nodes = dict(flowchart.nodes)
    nodes[node_id] = node
    return flowchart.copy(nodes=nodes), node_id


def _apply_data(node: FlowNode, new_id: str, data: Mapping[str, Any]) -> FlowNode:
    if isinstance(node, DecisionNode):
        return replace(
            node,
            id=new_id,
            condition=str(data.get("condition", node.condition) or ""),
            positive_path=str(data.get("positivePath", node.positive_path) or ""),
            negative_path=str(data.get("negativePath", node.negative_path) or ""),
        )
    output = data.get("output", node.output)
    if not isinstance(output, Mapping):
        raise FlowValidationError(
            f'Output of node "{node.id}" must be a mapping.',
            context={"node_id": node.id},
            code="INVALID_OUTPUT",
        )
    return replace(node, id=new_id, output=copy.deepcopy(dict(output)))


def save_node(
    flowchart: Flowchart,
    old_id: str,
    new_id: str,
    data: Mapping[str, Any] | None = None,
) -> Flowchart:
    """Replace a node's data and, when the ID changes, cascade the rename.

    Path references equal to ``old_id`` anywhere in the graph are rewritten
    to ``new_id``, as is the start node ID.
    """
    node = _require_node(flowchart, old_id)
    if not new_id or not new_id.strip():
        raise FlowValidationError("Node ID cannot be empty.", code="EMPTY_NODE_ID")
    if new_id != old_id and new_id in flowchart.nodes:
        raise FlowValidationError(
            f'A node with the ID "{new_id}" already exists.',
            context={"node_id": new_id},
            code="DUPLICATE_NODE_ID",
        )

    updated = _apply_data(node, new_id, data or {})

    nodes = {}
    for node_id, existing in flowchart.nodes.items():
        if node_id == old_id:
            nodes[new_id] = updated
        else:
            nodes[node_id] = existing

    start = flowchart.start_node_id
    if new_id != old_id:
        nodes = {node_id: _retarget(item, old_id, new_id) for node_id, item in nodes.items()}
        if start == old_id:
            start = new_id

    return flowchart.copy(nodes=nodes, start_node_id=start)


def rename_node(flowchart: Flowchart, old_id: str, new_id: str) -> Flowchart:
    return save_node(flowchart, old_id, new_id)


def delete_node(flowchart: Flowchart, node_id: str) -> Flowchart:
    """Remove a node and clear every path reference that pointed at it."""
    if node_id == flowchart.start_node_id:
        raise FlowValidationError(
            "The start node is essential for the flowchart and cannot be deleted.",
            context={"node_id": node_id},
            code="START_NODE_DELETE",
        )
    _require_node(flowchart, node_id)
    nodes = {
        other_id: _retarget(node, node_id, "")
        for other_id, node in flowchart.nodes.items()
        if other_id != node_id
    }
    return flowchart.copy(nodes=nodes)


def set_start_node(flowchart: Flowchart, node_id: str) -> Flowchart:
    _require_node(flowchart, node_id)
    return flowchart.copy(start_node_id=node_id)


def set_inputs(flowchart: Flowchart, inputs: Iterable[FlowInput]) -> Flowchart:
    items = list(inputs)
    seen: set[str] = set()
    for item in items:
        name = item.name.strip()
        if not name:
            raise FlowValidationError("Input name cannot be empty.", code="INVALID_INPUT")
        if name in seen:
            raise FlowValidationError(
                f"Duplicate input name: {name}",
                context={"name": name},
                code="INVALID_INPUT",
            )
        seen.add(name)
    return flowchart.copy(inputs=items)


def move_node(flowchart: Flowchart, node_id: str, x: float, y: float) -> Flowchart:
    node = _require_node(flowchart, node_id)
    nodes = dict(flowchart.nodes)
    nodes[node_id] = replace(node, position=replace(node.position, x=float(x), y=float(y)))
    return flowchart.copy(nodes=nodes)
