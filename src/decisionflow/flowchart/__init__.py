"""Flowchart domain models, layout, routing and YAML codec."""

from .model import (
    DecisionNode,
    FlowEdge,
    FlowInput,
    Flowchart,
    FlowNode,
    InputType,
    Position,
    TerminatorNode,
)
from .levels import assign_levels, topological_order, unreachable_nodes
from .layout import LayoutConfig, count_edge_crossings, layout_flowchart
from .routing import ConnectorPath, RoutingConfig, route_connector, route_flowchart
from .codec import YAML_MIME_TYPE, decode_flowchart, encode_flowchart, load_flowchart
from .samples import sample_flowchart

__all__ = [
    "DecisionNode",
    "FlowEdge",
    "FlowInput",
    "Flowchart",
    "FlowNode",
    "InputType",
    "Position",
    "TerminatorNode",
    "assign_levels",
    "topological_order",
    "unreachable_nodes",
    "LayoutConfig",
    "count_edge_crossings",
    "layout_flowchart",
    "ConnectorPath",
    "RoutingConfig",
    "route_connector",
    "route_flowchart",
    "YAML_MIME_TYPE",
    "decode_flowchart",
    "encode_flowchart",
    "load_flowchart",
    "sample_flowchart",
]
