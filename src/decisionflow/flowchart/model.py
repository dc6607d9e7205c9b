"""Flowchart schema: decision/terminator nodes, inputs and the graph."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..core.exceptions import StartNodeReferenceError

NODE_KINDS = ("decision", "terminator")


class InputType(str, Enum):
    """Declared type of an external input."""

    BOOLEAN = "Boolean"
    DOUBLE = "Double"
    STRING = "String"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


ORIGIN = Position()
DEFAULT_NEW_NODE_POSITION = Position(300.0, 150.0)


def unique_node_id(prefix: str, used: Iterable[str]) -> str:
    taken = set(used)
    idx = 1
    base = prefix or "node"
    candidate = f"{base}_{idx}"
    while candidate in taken:
        idx += 1
        candidate = f"{base}_{idx}"
    return candidate


@dataclass
class FlowInput:
    """A named, typed external input referenced by condition text."""

    name: str
    type: InputType = InputType.STRING

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlowInput":
        return cls(name=str(data["name"]), type=InputType(data["type"]))


@dataclass
class DecisionNode:
    """Branching node; paths are node IDs, empty string means unresolved."""

    kind: ClassVar[str] = "decision"

    id: str
    condition: str = "true"
    positive_path: str = ""
    negative_path: str = ""
    position: Position = ORIGIN

    def targets(self) -> List[Tuple[str, bool]]:
        """Non-empty path references as ``(target_id, is_positive)``."""
        pairs = [(self.negative_path, False), (self.positive_path, True)]
        return [(target, positive) for target, positive in pairs if target]

    def data_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition,
            "positivePath": self.positive_path,
            "negativePath": self.negative_path,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind,
            "position": self.position.to_dict(),
            "data": self.data_dict(),
        }


@dataclass
class TerminatorNode:
    """Sink node carrying an opaque output payload."""

    kind: ClassVar[str] = "terminator"

    id: str
    output: Dict[str, Any] = field(default_factory=dict)
    position: Position = ORIGIN

    def targets(self) -> List[Tuple[str, bool]]:
        return []

    def data_dict(self) -> Dict[str, Any]:
        return {"output": self.output}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind,
            "position": self.position.to_dict(),
            "data": self.data_dict(),
        }


FlowNode = Union[DecisionNode, TerminatorNode]


@dataclass(frozen=True)
class FlowEdge:
    source: str
    target: str
    positive: bool

    @property
    def label(self) -> str:
        return "True" if self.positive else "False"

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "label": self.label}


@dataclass
class Flowchart:
    """The decision graph: nodes keyed by ID, a start node and declared inputs."""

    nodes: Dict[str, FlowNode] = field(default_factory=dict)
    start_node_id: str = ""
    inputs: List[FlowInput] = field(default_factory=list)

    def get(self, node_id: str) -> Optional[FlowNode]:
        return self.nodes.get(node_id)

    def node_ids(self) -> List[str]:
        return sorted(self.nodes)

    def decisions(self) -> List[DecisionNode]:
        return [node for _, node in sorted(self.nodes.items()) if isinstance(node, DecisionNode)]

    def terminators(self) -> List[TerminatorNode]:
        return [node for _, node in sorted(self.nodes.items()) if isinstance(node, TerminatorNode)]

    def edges(self, *, resolved_only: bool = False) -> List[FlowEdge]:
        edges: List[FlowEdge] = []
        for node in self.decisions():
            for target, positive in node.targets():
                if resolved_only and target not in self.nodes:
                    continue
                edges.append(FlowEdge(source=node.id, target=target, positive=positive))
        return edges

    def require_start(self, start_node_id: Optional[str] = None) -> str:
        start = self.start_node_id if start_node_id is None else start_node_id
        if start not in self.nodes:
            raise StartNodeReferenceError(
                f'The specified start node "{start}" does not exist in the list of nodes.',
                context={"start_node_id": start},
            )
        return start

    def copy(self, **changes: Any) -> "Flowchart":
        """Shallow copy with fresh containers; node objects are shared."""
        values = {
            "nodes": dict(self.nodes),
            "start_node_id": self.start_node_id,
            "inputs": list(self.inputs),
        }
        values.update(changes)
        return Flowchart(**values)

    def with_positions(self, positions: Mapping[str, Position]) -> "Flowchart":
        nodes = {
            node_id: replace(node, position=positions.get(node_id, node.position))
            for node_id, node in self.nodes.items()
        }
        return self.copy(nodes=nodes)

    def without_positions(self) -> "Flowchart":
        return self.with_positions({node_id: ORIGIN for node_id in self.nodes})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startNode": self.start_node_id,
            "inputs": [item.to_dict() for item in self.inputs],
            "nodes": [self.nodes[node_id].to_dict() for node_id in self.node_ids()],
            "edges": [edge.to_dict() for edge in self.edges()],
        }
