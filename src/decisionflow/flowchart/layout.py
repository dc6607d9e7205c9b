"""Flowchart layout and crossing detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..utils.logging import get_logger
from .levels import assign_levels, children_map, reachable_nodes
from .model import Flowchart, Position

logger = get_logger(__name__)


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 250.0
    level_height: float = 180.0
    padding: float = 50.0
    min_spacing: float = 250.0


DEFAULT_LAYOUT = LayoutConfig()


def _resolve_row(node_ids: List[str], xs: Dict[str, float], spacing: float) -> None:
    """Push adjacent nodes of one row apart until they are `spacing` apart."""
    ordered = sorted(node_ids, key=lambda node_id: (xs[node_id], node_id))
    for _ in range(len(ordered) + 1):
        moved = False
        for left, right in zip(ordered, ordered[1:]):
            gap = xs[right] - xs[left]
            if gap < spacing:
                shift = (spacing - gap) / 2
                xs[left] -= shift
                xs[right] += shift
                moved = True
        if not moved:
            return
    # Symmetric sweeps can oscillate on crowded rows; settle left to right.
    for left, right in zip(ordered, ordered[1:]):
        if xs[right] - xs[left] < spacing:
            xs[right] = xs[left] + spacing


def _row_center(node_ids: List[str], xs: Dict[str, float]) -> float:
    values = [xs[node_id] for node_id in node_ids]
    return (min(values) + max(values)) / 2


def _recenter_row(node_ids: List[str], xs: Dict[str, float], center: float) -> None:
    shift = center - _row_center(node_ids, xs)
    for node_id in node_ids:
        xs[node_id] += shift


def layout_flowchart(
    flowchart: Flowchart,
    start_node_id: Optional[str] = None,
    *,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> Flowchart:
    """Return a copy of `flowchart` with every node position recomputed.

    Terminators form the bottom row; decisions are placed bottom-up over the
    mean x of their children, rows are spread to `config.min_spacing` and
    re-centred on the terminator row. Nodes unreachable from the start go on
    a trailing row of their own.
    """
    if not flowchart.nodes:
        return flowchart.copy()

    start = flowchart.require_start(start_node_id)
    levels = assign_levels(flowchart, start)
    reachable = set(reachable_nodes(flowchart, start))
    children = children_map(flowchart)

    decision_rows: Dict[int, List[str]] = {}
    for node in flowchart.decisions():
        if node.id in reachable:
            decision_rows.setdefault(levels[node.id], []).append(node.id)
    terminator_row = [node.id for node in flowchart.terminators() if node.id in reachable]
    terminator_level = max(decision_rows, default=-1) + 1

    xs: Dict[str, float] = {}
    rows: Dict[int, List[str]] = {}

    for idx, node_id in enumerate(terminator_row):
        xs[node_id] = config.padding + idx * config.node_width
    if terminator_row:
        rows[terminator_level] = terminator_row

    for level in sorted(decision_rows, reverse=True):
        row = decision_rows[level]
        for slot, node_id in enumerate(row):
            child_xs = [xs[child] for child in children[node_id] if child in xs]
            if child_xs:
                xs[node_id] = sum(child_xs) / len(child_xs)
            else:
                xs[node_id] = config.padding + slot * config.node_width
        rows[level] = row

    for row in rows.values():
        _resolve_row(row, xs, config.min_spacing)

    if terminator_row:
        center = _row_center(terminator_row, xs)
    else:
        widest = max(sorted(rows), key=lambda level: len(rows[level]))
        center = _row_center(rows[widest], xs)
    for row in rows.values():
        _recenter_row(row, xs, center)

    orphans = [node_id for node_id in flowchart.node_ids() if node_id not in reachable]
    if orphans:
        orphan_level = max(rows) + 1
        for idx, node_id in enumerate(orphans):
            xs[node_id] = config.padding + idx * config.min_spacing
        _recenter_row(orphans, xs, center)
        rows[orphan_level] = orphans

    offset = config.padding - min(xs.values())
    positions: Dict[str, Position] = {}
    for level, row in rows.items():
        y = config.padding + level * config.level_height
        for node_id in row:
            positions[node_id] = Position(x=xs[node_id] + offset, y=y)

    logger.info(
        "Laid out flowchart",
        extra={
            "node_count": len(positions),
            "row_count": len(rows),
            "unreachable": orphans,
        },
    )
    return flowchart.with_positions(positions)


def count_edge_crossings(flowchart: Flowchart) -> int:
    segments = _edge_segments(flowchart)
    crossings = 0
    for i in range(len(segments)):
        a1, a2 = segments[i]
        for j in range(i + 1, len(segments)):
            b1, b2 = segments[j]
            if _segments_cross(a1, a2, b1, b2):
                crossings += 1
    return crossings


def _edge_segments(
    flowchart: Flowchart,
) -> List[Tuple[Tuple[float, float], Tuple[float, float]]]:
    segments = []
    for edge in flowchart.edges(resolved_only=True):
        src = flowchart.nodes[edge.source]
        dst = flowchart.nodes[edge.target]
        segments.append(
            ((src.position.x, src.position.y), (dst.position.x, dst.position.y))
        )
    return segments


def _segments_cross(
    a1: Tuple[float, float],
    a2: Tuple[float, float],
    b1: Tuple[float, float],
    b2: Tuple[float, float],
) -> bool:
    if a1 == b1 or a1 == b2 or a2 == b1 or a2 == b2:
        return False
    return _ccw(a1, b1, b2) != _ccw(a2, b1, b2) and _ccw(a1, a2, b1) != _ccw(a1, a2, b2)


def _ccw(a: Tuple[float, float], b: Tuple[float, float], c: Tuple[float, float]) -> bool:
    return (c[1] - a[1]) * (b[0] - a[0]) > (b[1] - a[1]) * (c[0] - a[0])
