"""Tests for rename cascade, delete semantics and node creation."""

import pytest

from decisionflow.core.exceptions import FlowValidationError
from decisionflow.flowchart import editing
from decisionflow.flowchart.model import (
    DEFAULT_NEW_NODE_POSITION,
    DecisionNode,
    FlowInput,
    InputType,
    TerminatorNode,
)


class TestRenameCascade:
    """Renaming a node rewrites every reference to it."""

    def test_rename_updates_paths_and_start(self, discount_flowchart):
        renamed = editing.rename_node(discount_flowchart, "loyaltyCheck", "isLoyal")
        assert "loyaltyCheck" not in renamed.nodes
        assert renamed.start_node_id == "isLoyal"

        renamed = editing.rename_node(renamed, "noDiscount", "zeroDiscount")
        assert renamed.nodes["isLoyal"].negative_path == "zeroDiscount"
        assert renamed.nodes["isLoyal"].positive_path == "highPurchaseCheck"
        assert renamed.nodes["zeroDiscount"].output == {"discountPercentage": 0.0}

    def test_rename_leaves_unrelated_references(self, discount_flowchart):
        renamed = editing.rename_node(discount_flowchart, "highDiscount", "bigDiscount")
        node = renamed.nodes["highPurchaseCheck"]
        assert node.positive_path == "bigDiscount"
        assert node.negative_path == "standardDiscount"
        assert renamed.start_node_id == "loyaltyCheck"

    def test_rename_does_not_mutate_original(self, discount_flowchart):
        editing.rename_node(discount_flowchart, "noDiscount", "zeroDiscount")
        assert "noDiscount" in discount_flowchart.nodes
        assert discount_flowchart.nodes["loyaltyCheck"].negative_path == "noDiscount"

    def test_empty_id_is_rejected(self, discount_flowchart):
        with pytest.raises(FlowValidationError) as excinfo:
            editing.rename_node(discount_flowchart, "noDiscount", "   ")
        assert excinfo.value.code == "EMPTY_NODE_ID"

    def test_duplicate_id_is_rejected(self, discount_flowchart):
        with pytest.raises(FlowValidationError) as excinfo:
            editing.rename_node(discount_flowchart, "noDiscount", "highDiscount")
        assert excinfo.value.code == "DUPLICATE_NODE_ID"

    def test_unknown_node_is_rejected(self, discount_flowchart):
        with pytest.raises(FlowValidationError) as excinfo:
            editing.rename_node(discount_flowchart, "ghost", "spirit")
        assert excinfo.value.code == "NODE_NOT_FOUND"


def test_save_node_replaces_decision_data(branch_flowchart):
    updated = editing.save_node(
        branch_flowchart,
        "check",
        "check",
        {"condition": "input.flag", "positivePath": "no", "negativePath": ""},
    )
    node = updated.nodes["check"]
    assert node.condition == "input.flag"
    assert node.positive_path == "no"
    assert node.negative_path == ""


def test_save_node_copies_terminator_output(branch_flowchart):
    output = {"r": {"nested": 1}}
    updated = editing.save_node(branch_flowchart, "yes", "yes", {"output": output})
    output["r"]["nested"] = 2
    assert updated.nodes["yes"].output == {"r": {"nested": 1}}


def test_save_node_rejects_non_mapping_output(branch_flowchart):
    with pytest.raises(FlowValidationError) as excinfo:
        editing.save_node(branch_flowchart, "yes", "yes", {"output": [1, 2]})
    assert excinfo.value.code == "INVALID_OUTPUT"


class TestDeleteNode:
    """Deleting clears references; the start node is protected."""

    def test_delete_clears_references(self, discount_flowchart):
        updated = editing.delete_node(discount_flowchart, "highDiscount")
        assert "highDiscount" not in updated.nodes
        assert updated.nodes["highPurchaseCheck"].positive_path == ""
        assert updated.nodes["highPurchaseCheck"].negative_path == "standardDiscount"

    def test_delete_start_node_is_refused(self, discount_flowchart):
        with pytest.raises(FlowValidationError) as excinfo:
            editing.delete_node(discount_flowchart, "loyaltyCheck")
        assert excinfo.value.code == "START_NODE_DELETE"
        assert "loyaltyCheck" in discount_flowchart.nodes

    def test_delete_unknown_node(self, discount_flowchart):
        with pytest.raises(FlowValidationError) as excinfo:
            editing.delete_node(discount_flowchart, "ghost")
        assert excinfo.value.code == "NODE_NOT_FOUND"


def test_add_node_uses_defaults(branch_flowchart):
    updated, node_id = editing.add_node(branch_flowchart, "decision")
    assert node_id == "decision_1"
    node = updated.nodes[node_id]
    assert isinstance(node, DecisionNode)
    assert node.condition == "true"
    assert node.positive_path == node.negative_path == ""
    assert node.position == DEFAULT_NEW_NODE_POSITION
    assert node_id not in branch_flowchart.nodes

    updated, node_id = editing.add_node(updated, "terminator")
    assert isinstance(updated.nodes[node_id], TerminatorNode)
    assert updated.nodes[node_id].output == {"result": "new"}


def test_add_node_rejects_unknown_kind(branch_flowchart):
    with pytest.raises(FlowValidationError):
        editing.add_node(branch_flowchart, "process")


def test_set_inputs_rejects_duplicates(branch_flowchart):
    inputs = [FlowInput("age", InputType.DOUBLE), FlowInput("age", InputType.STRING)]
    with pytest.raises(FlowValidationError) as excinfo:
        editing.set_inputs(branch_flowchart, inputs)
    assert excinfo.value.code == "INVALID_INPUT"

    updated = editing.set_inputs(branch_flowchart, inputs[:1])
    assert updated.inputs == [FlowInput("age", InputType.DOUBLE)]


def test_set_start_node_requires_existing_node(branch_flowchart):
    assert editing.set_start_node(branch_flowchart, "yes").start_node_id == "yes"
    with pytest.raises(FlowValidationError):
        editing.set_start_node(branch_flowchart, "ghost")
