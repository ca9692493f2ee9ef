"""
Definition models and graph snapshots.

A resource (one BPMN or DMN document) declares processes or decisions.
A GraphSnapshot is the immutable set of declared elements of one deployed
definition: the denominator of every coverage ratio computed against it.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ElementKind(str, Enum):
    """Kinds of coverable graph elements."""

    FLOW_NODE = "flow_node"
    SEQUENCE_FLOW = "sequence_flow"
    DECISION_RULE = "decision_rule"


class DefinitionType(str, Enum):
    """Kinds of deployable definitions."""

    PROCESS = "process"
    DECISION = "decision"


class DefinitionInfo(BaseModel):
    """Identity of one deployed process or decision definition."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Stable definition key (process or decision id)")
    definition_type: DefinitionType = Field(default=DefinitionType.PROCESS)
    definition_id: str | None = Field(
        default=None, description="Version-specific deployed id; defaults to key:resource"
    )
    name: str | None = Field(default=None, description="Human readable name")
    resource_name: str = Field(..., description="Resource the definition was deployed from")
    version_tag: str | None = Field(default=None, description="Optional version tag")

    @property
    def deployed_id(self) -> str:
        """Deployed id, falling back to key and resource name."""
        return self.definition_id or f"{self.key}:{self.resource_name}"


class GraphSnapshot(BaseModel):
    """Declared, coverage-relevant elements of one deployed definition."""

    model_config = ConfigDict(frozen=True)

    info: DefinitionInfo
    flow_nodes: frozenset[str] = Field(default_factory=frozenset)
    sequence_flows: frozenset[str] = Field(default_factory=frozenset)
    decision_rules: frozenset[str] = Field(default_factory=frozenset)

    @property
    def definition_key(self) -> str:
        return self.info.key

    @property
    def element_count(self) -> int:
        """Number of declared elements."""
        return len(self.flow_nodes) + len(self.sequence_flows) + len(self.decision_rules)

    def declared_elements(self) -> Iterator[tuple[ElementKind, str, str]]:
        """Yield ``(kind, definition_key, element_id)`` for every declared element."""
        for node_id in self.flow_nodes:
            yield (ElementKind.FLOW_NODE, self.info.key, node_id)
        for flow_id in self.sequence_flows:
            yield (ElementKind.SEQUENCE_FLOW, self.info.key, flow_id)
        for rule_id in self.decision_rules:
            yield (ElementKind.DECISION_RULE, self.info.key, rule_id)

    def declares(self, kind: ElementKind, element_id: str) -> bool:
        """Check whether an element of the given kind is part of this snapshot."""
        if kind == ElementKind.FLOW_NODE:
            return element_id in self.flow_nodes
        if kind == ElementKind.SEQUENCE_FLOW:
            return element_id in self.sequence_flows
        if kind == ElementKind.DECISION_RULE:
            return element_id in self.decision_rules
        return False


class FlowNodeModel(BaseModel):
    """A node of a process graph."""

    id: str = Field(..., description="Element id")
    type: str = Field(default="task", description="Element type, e.g. userTask, exclusiveGateway")
    name: str | None = Field(default=None)


class SequenceFlowModel(BaseModel):
    """A directed transition between two nodes."""

    id: str = Field(..., description="Element id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")


class ProcessModel(BaseModel):
    """One process of a BPMN resource. Sub-process content is flattened in."""

    id: str = Field(..., description="Process id, which is the definition key")
    name: str | None = Field(default=None)
    executable: bool = Field(default=True)
    version_tag: str | None = Field(default=None)
    flow_nodes: list[FlowNodeModel] = Field(default_factory=list)
    sequence_flows: list[SequenceFlowModel] = Field(default_factory=list)

    def get_node(self, node_id: str) -> FlowNodeModel | None:
        """Get a flow node by id."""
        for node in self.flow_nodes:
            if node.id == node_id:
                return node
        return None


class ProcessResource(BaseModel):
    """A deployable process resource (one BPMN document)."""

    resource_name: str
    processes: list[ProcessModel] = Field(default_factory=list)

    def get_process(self, key: str) -> ProcessModel | None:
        """Get a process by id."""
        for process in self.processes:
            if process.id == key:
                return process
        return None

    def definitions(self) -> list[DefinitionInfo]:
        """Definitions an engine would deploy from this resource."""
        return [
            DefinitionInfo(
                key=process.id,
                definition_type=DefinitionType.PROCESS,
                name=process.name,
                resource_name=self.resource_name,
                version_tag=process.version_tag,
            )
            for process in self.processes
            if process.executable
        ]


class DecisionModel(BaseModel):
    """One decision of a DMN resource."""

    id: str = Field(..., description="Decision id, which is the decision key")
    name: str | None = Field(default=None)
    version_tag: str | None = Field(default=None)
    rules: list[str] = Field(default_factory=list, description="Rule ids of the decision table")
    required_decisions: list[str] = Field(default_factory=list)


class DecisionResource(BaseModel):
    """A deployable decision resource (one DMN document)."""

    resource_name: str
    id: str | None = Field(default=None, description="Decision requirements graph id")
    name: str | None = Field(default=None)
    decisions: list[DecisionModel] = Field(default_factory=list)

    def get_decision(self, key: str) -> DecisionModel | None:
        """Get a decision by id."""
        for decision in self.decisions:
            if decision.id == key:
                return decision
        return None

    def definitions(self) -> list[DefinitionInfo]:
        """Definitions an engine would deploy from this resource."""
        return [
            DefinitionInfo(
                key=decision.id,
                definition_type=DefinitionType.DECISION,
                name=decision.name,
                resource_name=self.resource_name,
                version_tag=decision.version_tag,
            )
            for decision in self.decisions
        ]
