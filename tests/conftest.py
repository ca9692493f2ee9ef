"""
Shared fixtures for procov tests.

The ``Order`` process has nodes Start, Pay, End and flows
Flow_Start_Pay, Flow_Pay_End: five declared elements.
"""

import logging
from pathlib import Path

import pytest
import structlog

from procov.definitions.models import (
    DecisionModel,
    DecisionResource,
    DefinitionInfo,
    DefinitionType,
    FlowNodeModel,
    GraphSnapshot,
    ProcessModel,
    ProcessResource,
    SequenceFlowModel,
)
from procov.definitions.provider import ModelSnapshotProvider

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def build_snapshot(
    key: str,
    flow_nodes: set[str] | None = None,
    sequence_flows: set[str] | None = None,
    decision_rules: set[str] | None = None,
    resource_name: str | None = None,
    definition_type: DefinitionType = DefinitionType.PROCESS,
) -> GraphSnapshot:
    """Build a snapshot directly, bypassing any provider."""
    return GraphSnapshot(
        info=DefinitionInfo(
            key=key,
            definition_type=definition_type,
            resource_name=resource_name or f"{key}.bpmn",
        ),
        flow_nodes=frozenset(flow_nodes or ()),
        sequence_flows=frozenset(sequence_flows or ()),
        decision_rules=frozenset(decision_rules or ()),
    )


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def order_snapshot() -> GraphSnapshot:
    return build_snapshot(
        "Order",
        flow_nodes={"Start", "Pay", "End"},
        sequence_flows={"Flow_Start_Pay", "Flow_Pay_End"},
    )


@pytest.fixture
def shipping_snapshot() -> GraphSnapshot:
    return build_snapshot(
        "Shipping",
        flow_nodes={"ShipStart", "Ship", "ShipEnd"},
        sequence_flows={"Flow_ShipStart_Ship", "Flow_Ship_ShipEnd"},
    )


@pytest.fixture
def discount_snapshot() -> GraphSnapshot:
    return build_snapshot(
        "Discount",
        decision_rules={"Rule_1", "Rule_2", "Rule_3", "Rule_4"},
        resource_name="pricing.dmn",
        definition_type=DefinitionType.DECISION,
    )


@pytest.fixture
def order_resource() -> ProcessResource:
    return ProcessResource(
        resource_name="order.bpmn",
        processes=[
            ProcessModel(
                id="Order",
                name="Order",
                flow_nodes=[
                    FlowNodeModel(id="Start", type="startEvent"),
                    FlowNodeModel(id="Pay", type="userTask"),
                    FlowNodeModel(id="End", type="endEvent"),
                ],
                sequence_flows=[
                    SequenceFlowModel(id="Flow_Start_Pay", source="Start", target="Pay"),
                    SequenceFlowModel(id="Flow_Pay_End", source="Pay", target="End"),
                ],
            )
        ],
    )


@pytest.fixture
def pricing_resource() -> DecisionResource:
    return DecisionResource(
        resource_name="pricing.dmn",
        id="PricingDRD",
        decisions=[
            DecisionModel(id="Discount", rules=["Rule_1", "Rule_2", "Rule_3", "Rule_4"]),
            DecisionModel(id="CustomerTier", rules=["Tier_Gold", "Tier_Silver"]),
        ],
    )


@pytest.fixture
def provider(order_resource, pricing_resource) -> ModelSnapshotProvider:
    return ModelSnapshotProvider([order_resource, pricing_resource])


@pytest.fixture
def snapshot_factory():
    """The snapshot builder, for tests that need ad hoc definitions."""
    return build_snapshot


@pytest.fixture
def restore_logging():
    """Undo configure_logging so later tests see the default setup."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
