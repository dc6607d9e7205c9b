"""YAML encoding and decoding of flowcharts.

Document shape::

    inputs:
    - name: isLoyalCustomer
      type: Boolean
    startNode: loyaltyCheck
    nodes:
      highDiscount: !terminator
        output:
          discountPercentage: 20.0
      loyaltyCheck: !decision
        condition: input.isLoyalCustomer == true
        negativePath: noDiscount
        positivePath: highPurchaseCheck

Nodes are written sorted by ID; an empty nodes map is written as
`!!map {}`. Duplicate keys are rejected on decode. Empty paths are omitted
and decode back to "". Positions are not serialized; decoded nodes sit at
the origin until the caller lays them out.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any, Dict, List

import yaml

from ..core.exceptions import FormatError
from ..utils.logging import get_logger
from .layout import layout_flowchart
from .model import DecisionNode, FlowInput, Flowchart, FlowNode, InputType, TerminatorNode

logger = get_logger(__name__)

DECISION_TAG = "!decision"
TERMINATOR_TAG = "!terminator"
YAML_MIME_TYPE = "text/yaml"
YAML_EXTENSIONS = (".yaml", ".yml")


@dataclass
class _TaggedPayload:
    kind: str
    fields: Dict[str, Any]


class _NodeMap(dict):
    """The document's `nodes` mapping."""


class _ExplicitTagValue(list):
    """Mapping node value whose tag is always written out."""


class FlowchartDumper(yaml.SafeDumper):
    """Safe dumper that knows the node tags and never emits aliases."""

    def ignore_aliases(self, data: Any) -> bool:
        return True

    def resolve(self, kind: Any, value: Any, implicit: Any) -> Any:
        if isinstance(value, _ExplicitTagValue):
            return None
        return super().resolve(kind, value, implicit)


class FlowchartLoader(yaml.SafeLoader):
    """Safe loader that turns node tags into tagged payloads.

    Duplicate keys in any mapping are rejected instead of letting the last
    one win.
    """

    def construct_mapping(self, node: yaml.Node, deep: bool = False) -> Dict[Any, Any]:
        if isinstance(node, yaml.MappingNode):
            self.flatten_mapping(node)
            seen = set()
            for key_node, _ in node.value:
                key = self.construct_object(key_node, deep=deep)
                if not isinstance(key, Hashable):
                    continue
                if key in seen:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping",
                        node.start_mark,
                        f"found duplicate key {key!r}",
                        key_node.start_mark,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _represent_node_map(dumper: FlowchartDumper, data: _NodeMap) -> yaml.Node:
    if data:
        return dumper.represent_dict(data)
    return yaml.MappingNode("tag:yaml.org,2002:map", _ExplicitTagValue(), flow_style=True)


def _represent_payload(dumper: FlowchartDumper, payload: _TaggedPayload) -> yaml.Node:
    tag = DECISION_TAG if payload.kind == "decision" else TERMINATOR_TAG
    return dumper.represent_mapping(tag, list(payload.fields.items()))


def _construct_payload(kind: str):
    def construct(loader: FlowchartLoader, node: yaml.Node) -> _TaggedPayload:
        if isinstance(node, yaml.MappingNode):
            return _TaggedPayload(kind, loader.construct_mapping(node, deep=True))
        if isinstance(node, yaml.ScalarNode) and node.value in ("", "~", "null"):
            return _TaggedPayload(kind, {})
        raise yaml.constructor.ConstructorError(
            None, None, f"expected a mapping for {node.tag}", node.start_mark
        )

    return construct


FlowchartDumper.add_representer(_TaggedPayload, _represent_payload)
FlowchartDumper.add_representer(_NodeMap, _represent_node_map)
FlowchartLoader.add_constructor(DECISION_TAG, _construct_payload("decision"))
FlowchartLoader.add_constructor(TERMINATOR_TAG, _construct_payload("terminator"))


def _payload_for(node: FlowNode) -> _TaggedPayload:
    if isinstance(node, DecisionNode):
        fields: Dict[str, Any] = {"condition": node.condition}
        if node.negative_path:
            fields["negativePath"] = node.negative_path
        if node.positive_path:
            fields["positivePath"] = node.positive_path
        return _TaggedPayload("decision", fields)
    return _TaggedPayload("terminator", {"output": node.output})


def encode_flowchart(flowchart: Flowchart) -> str:
    """Serialize a flowchart to canonical YAML text."""
    document = {
        "inputs": [item.to_dict() for item in flowchart.inputs],
        "startNode": flowchart.start_node_id,
        "nodes": _NodeMap(
            (node_id, _payload_for(flowchart.nodes[node_id]))
            for node_id in flowchart.node_ids()
        ),
    }
    try:
        return yaml.dump(
            document,
            Dumper=FlowchartDumper,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
    except yaml.YAMLError as exc:
        raise FormatError(
            "Flowchart contains a value that cannot be written as YAML.",
            context={"error": str(exc)},
        ) from exc


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_node(node_id: str, raw: Any) -> FlowNode:
    if isinstance(raw, _TaggedPayload):
        kind, fields = raw.kind, raw.fields
    elif isinstance(raw, dict) and "condition" in raw:
        kind, fields = "decision", raw
    elif isinstance(raw, dict) and "output" in raw:
        kind, fields = "terminator", raw
    else:
        raise FormatError(
            f'Invalid or unknown node type for node ID "{node_id}".',
            context={"node_id": node_id},
        )

    if kind == "decision":
        return DecisionNode(
            id=node_id,
            condition=_text(fields.get("condition")),
            positive_path=_text(fields.get("positivePath")),
            negative_path=_text(fields.get("negativePath")),
        )

    output = fields.get("output")
    if output is None:
        output = {}
    if not isinstance(output, dict):
        raise FormatError(
            f'Output of node "{node_id}" must be a mapping.',
            context={"node_id": node_id},
        )
    return TerminatorNode(id=node_id, output=output)


def _decode_inputs(raw: Any) -> List[FlowInput]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise FormatError("Invalid YAML format: inputs must be a list.")
    inputs: List[FlowInput] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("name"):
            raise FormatError(
                f"Invalid YAML format: input #{idx + 1} needs a name.",
                context={"index": idx},
            )
        try:
            input_type = InputType(item.get("type"))
        except ValueError as exc:
            raise FormatError(
                f'Invalid YAML format: input "{item["name"]}" has unknown type {item.get("type")!r}.',
                context={"name": item["name"]},
            ) from exc
        inputs.append(FlowInput(name=_text(item["name"]), type=input_type))
    return inputs


def decode_flowchart(text: str) -> Flowchart:
    """Parse YAML text into a flowchart.

    The start node is not checked against the nodes; see `load_flowchart`.
    """
    try:
        parsed = yaml.load(text, Loader=FlowchartLoader)
    except yaml.YAMLError as exc:
        raise FormatError(
            "Invalid YAML format: the document could not be parsed.",
            context={"error": str(exc)},
        ) from exc

    if not isinstance(parsed, dict):
        raise FormatError("Invalid YAML format: root should be an object.")
    start_node = parsed.get("startNode")
    if not isinstance(start_node, str) or not start_node:
        raise FormatError("Invalid YAML format: missing or invalid startNode.")
    raw_nodes = parsed.get("nodes")
    if not isinstance(raw_nodes, dict):
        raise FormatError("Invalid YAML format: missing or invalid nodes map.")

    nodes: Dict[str, FlowNode] = {}
    for raw_id, raw in raw_nodes.items():
        node_id = _text(raw_id)
        if not node_id:
            raise FormatError("Invalid YAML format: node IDs cannot be empty.")
        if node_id in nodes:
            raise FormatError(
                f'Invalid YAML format: duplicate node ID "{node_id}".',
                context={"node_id": node_id},
            )
        nodes[node_id] = _decode_node(node_id, raw)

    return Flowchart(
        nodes=nodes,
        start_node_id=start_node,
        inputs=_decode_inputs(parsed.get("inputs")),
    )


def load_flowchart(text: str, *, layout: bool = True) -> Flowchart:
    """Decode, check the start reference and (optionally) lay out.

    Raises `FormatError`, `StartNodeReferenceError` or `CycleError`; nothing
    is returned on failure.
    """
    flowchart = decode_flowchart(text)
    flowchart.require_start()
    if layout:
        flowchart = layout_flowchart(flowchart)
    logger.info(
        "Loaded flowchart",
        extra={"node_count": len(flowchart.nodes), "start_node_id": flowchart.start_node_id},
    )
    return flowchart


def export_filename(stem: str = "flowchart") -> str:
    return f"{stem}{YAML_EXTENSIONS[0]}"


def flowcharts_equal(left: Flowchart, right: Flowchart) -> bool:
    """Compare content and start node, ignoring positions."""
    return left.without_positions() == right.without_positions()
