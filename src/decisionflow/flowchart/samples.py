"""Example flowchart loaded into a fresh editing session."""

from __future__ import annotations

from .model import DecisionNode, FlowInput, Flowchart, InputType, Position, TerminatorNode


def sample_flowchart() -> Flowchart:
    """Loyalty discount example: two decisions over three discount outcomes."""
    nodes = [
        DecisionNode(
            id="loyaltyCheck",
            condition="input.isLoyalCustomer == true",
            negative_path="noDiscount",
            positive_path="highPurchaseCheck",
            position=Position(350, 50),
        ),
        DecisionNode(
            id="highPurchaseCheck",
            condition="input.purchaseAmount > 100.0",
            negative_path="standardDiscount",
            positive_path="highDiscount",
            position=Position(550, 250),
        ),
        TerminatorNode(
            id="noDiscount",
            output={"discountPercentage": 0.0},
            position=Position(150, 250),
        ),
        TerminatorNode(
            id="highDiscount",
            output={"discountPercentage": 20.0},
            position=Position(650, 450),
        ),
        TerminatorNode(
            id="standardDiscount",
            output={"discountPercentage": 10.0},
            position=Position(450, 450),
        ),
    ]
    return Flowchart(
        nodes={node.id: node for node in nodes},
        start_node_id="loyaltyCheck",
        inputs=[
            FlowInput(name="isLoyalCustomer", type=InputType.BOOLEAN),
            FlowInput(name="purchaseAmount", type=InputType.DOUBLE),
        ],
    )
