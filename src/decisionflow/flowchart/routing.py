"""Orthogonal connector routing around node bodies.

A connector is a vertical-horizontal-vertical elbow from an anchor on the
source node to an anchor on the target node. The horizontal leg is dropped
below any node box it would cross. Routing never fails: after a bounded
number of attempts the last candidate is returned as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .model import DecisionNode, Flowchart, FlowNode, Position


@dataclass(frozen=True)
class RoutingConfig:
    node_width: float = 200.0
    decision_height: float = 100.0
    terminator_height: float = 80.0
    clearance: float = 20.0
    positive_drop: float = 60.0
    negative_drop: float = 40.0
    extra_attempts: int = 5


DEFAULT_ROUTING = RoutingConfig()


@dataclass(frozen=True)
class BoundingBox:
    node_id: str
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class ConnectorPath:
    source_id: str
    target_id: str
    points: Tuple[Tuple[float, float], ...]
    mid_y: float
    label: Optional[str] = None
    label_anchor: Optional[Tuple[float, float]] = None
    clear: bool = True

    def to_svg_path(self) -> str:
        (x0, y0), _, _, (x3, y3) = self.points
        return f"M{_num(x0)},{_num(y0)} V{_num(self.mid_y)} H{_num(x3)} V{_num(y3)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source_id,
            "to": self.target_id,
            "points": [list(point) for point in self.points],
            "path": self.to_svg_path(),
            "label": self.label,
            "labelAnchor": list(self.label_anchor) if self.label_anchor else None,
            "clear": self.clear,
        }


def _num(value: float) -> str:
    return f"{value:g}"


def bounding_box(node: FlowNode, config: RoutingConfig = DEFAULT_ROUTING) -> BoundingBox:
    height = config.decision_height if isinstance(node, DecisionNode) else config.terminator_height
    return BoundingBox(
        node_id=node.id,
        x1=node.position.x,
        y1=node.position.y,
        x2=node.position.x + config.node_width,
        y2=node.position.y + height,
    )


def _colliding(boxes: List[BoundingBox], x_min: float, x_max: float, y: float) -> List[BoundingBox]:
    return [
        box
        for box in boxes
        if x_min < box.x2 and x_max > box.x1 and box.y1 <= y <= box.y2
    ]


def route_connector(
    source: Position,
    target: Position,
    source_id: str,
    target_id: str,
    nodes: Iterable[FlowNode],
    is_positive: Optional[bool] = None,
    *,
    config: RoutingConfig = DEFAULT_ROUTING,
) -> ConnectorPath:
    """Route an elbow connector from `source` to `target` around other nodes."""
    all_nodes = list(nodes)
    obstacles = [
        bounding_box(node, config)
        for node in all_nodes
        if node.id not in (source_id, target_id)
    ]

    drop = config.positive_drop if is_positive else config.negative_drop
    mid_y = source.y + drop
    x_min = min(source.x, target.x)
    x_max = max(source.x, target.x)

    clear = False
    max_attempts = len(all_nodes) + config.extra_attempts
    for _ in range(max_attempts):
        hits = _colliding(obstacles, x_min, x_max, mid_y)
        if not hits:
            clear = True
            break
        lowest = max(hits, key=lambda box: box.y2)
        mid_y = lowest.y2 + config.clearance

    label: Optional[str] = None
    anchor: Optional[Tuple[float, float]] = None
    if is_positive is not None:
        label = "True" if is_positive else "False"
        offset = 5.0 if is_positive else -5.0
        anchor = (source.x + offset, mid_y - 4.0)

    return ConnectorPath(
        source_id=source_id,
        target_id=target_id,
        points=(
            (source.x, source.y),
            (source.x, mid_y),
            (target.x, mid_y),
            (target.x, target.y),
        ),
        mid_y=mid_y,
        label=label,
        label_anchor=anchor,
        clear=clear,
    )


def route_flowchart(
    flowchart: Flowchart, *, config: RoutingConfig = DEFAULT_ROUTING
) -> List[ConnectorPath]:
    """Route every resolved decision edge; dangling references are not drawn.

    Anchors are the bottom centre of the source and the top centre of the
    target.
    """
    nodes = list(flowchart.nodes.values())
    paths: List[ConnectorPath] = []
    for edge in flowchart.edges(resolved_only=True):
        src = flowchart.nodes[edge.source]
        dst = flowchart.nodes[edge.target]
        src_box = bounding_box(src, config)
        anchor_from = Position(x=src.position.x + config.node_width / 2, y=src_box.y2)
        anchor_to = Position(x=dst.position.x + config.node_width / 2, y=dst.position.y)
        paths.append(
            route_connector(
                anchor_from,
                anchor_to,
                edge.source,
                edge.target,
                nodes,
                edge.positive,
                config=config,
            )
        )
    return paths
