"""Level assignment: longest-path layering with cycle detection."""

from __future__ import annotations

import heapq
from collections import deque
from typing import Dict, List, Optional

from ..core.exceptions import CycleError
from ..utils.logging import get_logger
from .model import Flowchart

logger = get_logger(__name__)


def children_map(flowchart: Flowchart) -> Dict[str, List[str]]:
    """Resolved decision targets per node, sorted and de-duplicated."""
    children: Dict[str, List[str]] = {node_id: [] for node_id in flowchart.nodes}
    for edge in flowchart.edges(resolved_only=True):
        if edge.target not in children[edge.source]:
            children[edge.source].append(edge.target)
    for targets in children.values():
        targets.sort()
    return children


def topological_order(flowchart: Flowchart) -> List[str]:
    """Kahn's algorithm with ID tie-breaking; raises `CycleError`."""
    children = children_map(flowchart)
    for node_id, targets in children.items():
        if node_id in targets:
            raise CycleError(
                f'The flowchart is not a DAG: node "{node_id}" points to itself.',
                context={"node_id": node_id},
                nodes=[node_id],
            )

    indegree = {node_id: 0 for node_id in children}
    for targets in children.values():
        for target in targets:
            indegree[target] += 1

    ready = [node_id for node_id, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    order: List[str] = []
    while ready:
        node_id = heapq.heappop(ready)
        order.append(node_id)
        for target in children[node_id]:
            indegree[target] -= 1
            if indegree[target] == 0:
                heapq.heappush(ready, target)

    if len(order) < len(children):
        remaining = set(children) - set(order)
        # Drop nodes that only hang below a cycle so the message names the loop.
        pruned = True
        while pruned:
            pruned = False
            for node_id in sorted(remaining):
                if not any(target in remaining for target in children[node_id]):
                    remaining.discard(node_id)
                    pruned = True
        cycle_nodes = sorted(remaining)
        raise CycleError(
            "The flowchart is not a DAG: a cycle runs through " + ", ".join(cycle_nodes) + ".",
            context={"nodes": cycle_nodes},
            nodes=cycle_nodes,
        )
    return order


def reachable_nodes(flowchart: Flowchart, start_node_id: str) -> List[str]:
    """Nodes reachable from the start, in breadth-first order."""
    children = children_map(flowchart)
    seen = {start_node_id}
    order = [start_node_id]
    queue = deque([start_node_id])
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child not in seen:
                seen.add(child)
                order.append(child)
                queue.append(child)
    return order


def unreachable_nodes(flowchart: Flowchart, start_node_id: str) -> List[str]:
    reachable = set(reachable_nodes(flowchart, start_node_id))
    return [node_id for node_id in flowchart.node_ids() if node_id not in reachable]


def assign_levels(flowchart: Flowchart, start_node_id: Optional[str] = None) -> Dict[str, int]:
    """Assign every node the longest edge distance from the start node.

    Levels are seeded breadth-first and then relaxed until every resolved
    edge points to a strictly deeper level. Nodes unreachable from the
    start get level 0. Raises `CycleError` if the graph has a cycle
    anywhere, including a self-loop.
    """
    start = flowchart.require_start(start_node_id)
    topological_order(flowchart)
    children = children_map(flowchart)

    levels: Dict[str, int] = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for child in children[current]:
            if child not in levels:
                levels[child] = levels[current] + 1
                queue.append(child)

    edges = sorted(
        (source, target) for source in levels for target in children[source]
    )
    max_passes = len(flowchart.nodes) + 1
    for _ in range(max_passes):
        changed = False
        for source, target in edges:
            if levels[source] >= levels[target]:
                levels[target] = levels[source] + 1
                changed = True
        if not changed:
            break
    else:
        raise CycleError(
            "The flowchart is not a DAG: level assignment did not converge.",
            context={"passes": max_passes},
            nodes=sorted(levels),
        )

    for node_id in flowchart.node_ids():
        levels.setdefault(node_id, 0)

    logger.debug(
        "Assigned levels",
        extra={"start_node_id": start, "depth": max(levels.values(), default=0)},
    )
    return levels
