"""
procov Definitions.

Declared process and decision graphs, and the snapshots used as coverage
denominators.
"""

from procov.definitions.loader import DefinitionLoader
from procov.definitions.models import (
    DecisionModel,
    DecisionResource,
    DefinitionInfo,
    DefinitionType,
    ElementKind,
    FlowNodeModel,
    GraphSnapshot,
    ProcessModel,
    ProcessResource,
    SequenceFlowModel,
)
from procov.definitions.provider import (
    CachingSnapshotProvider,
    GraphSnapshotProvider,
    ModelSnapshotProvider,
)

__all__ = [
    "CachingSnapshotProvider",
    "DecisionModel",
    "DecisionResource",
    "DefinitionInfo",
    "DefinitionLoader",
    "DefinitionType",
    "ElementKind",
    "FlowNodeModel",
    "GraphSnapshot",
    "GraphSnapshotProvider",
    "ModelSnapshotProvider",
    "ProcessModel",
    "ProcessResource",
    "SequenceFlowModel",
]
