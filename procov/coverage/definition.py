"""
Coverage of a single process or decision definition within one test method.

Each object owns the GraphSnapshot of its definition (the denominator) and
the covered element records routed to it. Read accessors always return
fresh, deduplicated, canonically ordered collections.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
    ElementKind,
)
from procov.coverage.ordering import coverage_ratio, unique_sorted
from procov.definitions.models import DefinitionInfo, GraphSnapshot
from procov.errors import ElementNotFoundError
from procov.logging import get_logger

logger = get_logger(__name__)


class DefinitionCoverage(ABC):
    """Shared behaviour of process and decision coverage."""

    def __init__(self, snapshot: GraphSnapshot):
        self.snapshot = snapshot

    @property
    def info(self) -> DefinitionInfo:
        return self.snapshot.info

    @property
    def definition_key(self) -> str:
        return self.snapshot.definition_key

    @abstractmethod
    def covered_elements(self) -> list[CoveredElement]:
        """All covered records of this definition, deduplicated and ordered."""

    def covered_declared_count(self) -> int:
        """Number of distinct covered elements that the snapshot declares."""
        return sum(
            1
            for element in self.covered_elements()
            if element.kind is not None and self.snapshot.declares(element.kind, element.element_id)
        )

    def coverage_percentage(self) -> float:
        """Covered fraction of declared elements, NaN if nothing is declared."""
        return coverage_ratio(self.covered_declared_count(), self.snapshot.element_count)

    def _warn_unsupported(self, element: CoveredElement, action: str) -> None:
        logger.warning(
            "Unsupported element for coverage",
            action=action,
            coverage=type(self).__name__,
            element_kind=element.kind.value if element.kind else None,
            definition_key=element.definition_key,
            element_id=element.element_id,
        )


class ProcessCoverage(DefinitionCoverage):
    """
    Flow node and sequence flow coverage of one process definition.

    Concurrent instances of the same flow node (parallel branches) are
    coalesced into a single record. That record stays open until every
    instance that entered it has exited.
    """

    def __init__(self, snapshot: GraphSnapshot):
        super().__init__(snapshot)
        self._flow_nodes: list[CoveredFlowNode] = []
        self._sequence_flows: list[CoveredSequenceFlow] = []
        # instance id -> the open record it was routed to
        self._open_instances: dict[str, CoveredFlowNode] = {}

    def add_covered_element(self, element: CoveredElement) -> None:
        """
        Record that an element was entered.

        Args:
            element: A covered flow node or sequence flow of this process
        """
        if element.kind == ElementKind.FLOW_NODE and isinstance(element, CoveredFlowNode):
            self._add_flow_node(element)
        elif element.kind == ElementKind.SEQUENCE_FLOW and isinstance(element, CoveredSequenceFlow):
            self._sequence_flows.append(element)
        else:
            self._warn_unsupported(element, "add")

    def _add_flow_node(self, node: CoveredFlowNode) -> None:
        instance_id = node.instance_id
        if instance_id is not None and instance_id in self._open_instances:
            logger.debug(
                "Flow node instance entered twice",
                definition_key=node.definition_key,
                element_id=node.element_id,
                instance_id=instance_id,
            )
            return

        if node.ended:
            self._flow_nodes.append(node)
            return

        record = self._find_open(node)
        if record is None:
            record = node
            self._flow_nodes.append(record)
        if instance_id is not None:
            self._open_instances[instance_id] = record

    def _find_open(self, node: CoveredFlowNode) -> CoveredFlowNode | None:
        for record in reversed(self._flow_nodes):
            if record == node and not record.ended:
                return record
        return None

    def end_covered_element(self, element: CoveredElement) -> None:
        """
        Record that a flow node instance finished.

        Args:
            element: Flow node carrying the instance id of the matching entry

        Raises:
            ElementNotFoundError: If no open record matches the instance
        """
        if not isinstance(element, CoveredFlowNode):
            self._warn_unsupported(element, "end")
            return

        if element.instance_id is not None:
            record = self._open_instances.pop(element.instance_id, None)
        else:
            record = self._find_open(element)

        if record is None:
            raise ElementNotFoundError(
                element.definition_key, element.element_id, element.instance_id
            )

        still_open = any(other is record for other in self._open_instances.values())
        if not still_open:
            record.mark_ended(element.end_ordinal)

    def covered_flow_nodes(self) -> list[CoveredFlowNode]:
        return unique_sorted(self._flow_nodes)

    def covered_sequence_flows(self) -> list[CoveredSequenceFlow]:
        return unique_sorted(self._sequence_flows)

    def covered_elements(self) -> list[CoveredElement]:
        return [*self.covered_flow_nodes(), *self.covered_sequence_flows()]

    def covered_flow_node_ids(self) -> set[str]:
        return {node.element_id for node in self._flow_nodes}

    def covered_sequence_flow_ids(self) -> set[str]:
        return {flow.element_id for flow in self._sequence_flows}

    def open_flow_nodes(self) -> list[CoveredFlowNode]:
        """Records still waiting for an exit notification."""
        return [node for node in self._flow_nodes if not node.ended]

    @property
    def definition_flow_nodes(self) -> frozenset[str]:
        return self.snapshot.flow_nodes

    @property
    def definition_sequence_flows(self) -> frozenset[str]:
        return self.snapshot.sequence_flows

    def __repr__(self) -> str:
        return (
            f"ProcessCoverage(key={self.definition_key!r}, "
            f"flow_nodes={len(self._flow_nodes)}, sequence_flows={len(self._sequence_flows)})"
        )


class DecisionCoverage(DefinitionCoverage):
    """Rule coverage of one decision definition."""

    def __init__(self, snapshot: GraphSnapshot):
        super().__init__(snapshot)
        self._rules: list[CoveredDecisionRule] = []

    def add_covered_element(self, element: CoveredElement) -> None:
        """Record a single matched rule."""
        if element.kind == ElementKind.DECISION_RULE and isinstance(element, CoveredDecisionRule):
            if element.decision_key != self.definition_key:
                self._warn_unsupported(element, "add")
                return
            self._rules.append(element)
        else:
            self._warn_unsupported(element, "add")

    def add_covered_rules(self, rules: Iterable[CoveredDecisionRule]) -> None:
        """Record every rule matched by one evaluation of this decision."""
        for rule in rules:
            self.add_covered_element(rule)

    def covered_rules(self) -> list[CoveredDecisionRule]:
        return unique_sorted(self._rules)

    def covered_elements(self) -> list[CoveredElement]:
        return list(self.covered_rules())

    def covered_rule_ids(self) -> set[str]:
        return {rule.rule_id for rule in self._rules}

    @property
    def definition_rules(self) -> frozenset[str]:
        return self.snapshot.decision_rules

    @property
    def rule_count(self) -> int:
        return len(self.snapshot.decision_rules)

    def __repr__(self) -> str:
        return f"DecisionCoverage(key={self.definition_key!r}, rules={len(self._rules)})"
