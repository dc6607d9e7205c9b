"""Shared fixtures for flowchart tests."""

from __future__ import annotations

from typing import Dict, Iterable
from unittest.mock import MagicMock

import pytest

from decisionflow.flowchart.model import (
    DecisionNode,
    FlowInput,
    Flowchart,
    FlowNode,
    InputType,
    TerminatorNode,
)
from decisionflow.flowchart.samples import sample_flowchart
from decisionflow.session import FlowchartSession


def make_flowchart(nodes: Iterable[FlowNode], start: str, inputs=None) -> Flowchart:
    node_map: Dict[str, FlowNode] = {node.id: node for node in nodes}
    return Flowchart(nodes=node_map, start_node_id=start, inputs=list(inputs or []))


@pytest.fixture
def branch_flowchart() -> Flowchart:
    """One decision over two terminators."""
    return make_flowchart(
        [
            DecisionNode(id="check", condition="cond", positive_path="yes", negative_path="no"),
            TerminatorNode(id="yes", output={"r": 1}),
            TerminatorNode(id="no", output={"r": 0}),
        ],
        start="check",
    )


@pytest.fixture
def discount_flowchart() -> Flowchart:
    return sample_flowchart()


@pytest.fixture
def crowded_flowchart() -> Flowchart:
    """Two sibling decisions that share both children, plus unreachable nodes."""
    return make_flowchart(
        [
            DecisionNode(id="root", condition="input.a", positive_path="left", negative_path="right"),
            DecisionNode(id="left", condition="input.b", positive_path="t1", negative_path="t2"),
            DecisionNode(id="right", condition="input.c", positive_path="t1", negative_path="t2"),
            TerminatorNode(id="t1", output={"value": "one"}),
            TerminatorNode(id="t2", output={"value": "two"}),
            DecisionNode(id="lonely", condition="input.d", positive_path="orphan"),
            TerminatorNode(id="orphan", output={}),
        ],
        start="root",
        inputs=[FlowInput(name="a", type=InputType.BOOLEAN)],
    )


@pytest.fixture
def fake_advisor() -> MagicMock:
    advisor = MagicMock()
    advisor.validate.return_value = "No issues found."
    return advisor


@pytest.fixture
def session(fake_advisor: MagicMock) -> FlowchartSession:
    return FlowchartSession(advisor=fake_advisor)
