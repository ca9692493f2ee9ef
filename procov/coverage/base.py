"""
Common interface of the method, class and suite coverage levels.
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable

from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
    ElementKind,
)
from procov.coverage.ordering import coverage_ratio
from procov.definitions.models import DefinitionInfo

DeclaredElement = tuple[ElementKind, str, str]


def element_ratio(declared: set[DeclaredElement], covered: Iterable[CoveredElement]) -> float:
    """
    Ratio of distinct covered elements to declared elements.

    Covered records that the declared set does not contain are not counted,
    so the ratio never exceeds 1.
    """
    hits = {
        (element.kind, element.definition_key, element.element_id)
        for element in covered
        if element.kind is not None
    }
    return coverage_ratio(len(hits & declared), len(declared))


def sorted_process_definitions(definitions: Iterable[DefinitionInfo]) -> list[DefinitionInfo]:
    """Order by resource name then key, dropping repeats of the same pair."""
    unique = {(info.resource_name, info.key): info for info in definitions}
    return [unique[pair] for pair in sorted(unique)]


def sorted_decision_definitions(definitions: Iterable[DefinitionInfo]) -> list[DefinitionInfo]:
    """Order by key then resource name, dropping repeats of the same pair."""
    unique = {(info.key, info.resource_name): info for info in definitions}
    return [unique[pair] for pair in sorted(unique)]


class AggregatedCoverage(ABC):
    """Queries every coverage level answers."""

    @abstractmethod
    def covered_flow_nodes(self, definition_key: str | None = None) -> list[CoveredFlowNode]:
        """Distinct covered flow nodes, optionally of one definition."""

    @abstractmethod
    def covered_sequence_flows(
        self, definition_key: str | None = None
    ) -> list[CoveredSequenceFlow]:
        """Distinct covered sequence flows, optionally of one definition."""

    @abstractmethod
    def covered_decision_rules(self, decision_key: str) -> list[CoveredDecisionRule]:
        """Distinct covered rules of one decision."""

    @abstractmethod
    def process_definitions(self) -> list[DefinitionInfo]:
        """Deployed process definitions in resource name order."""

    @abstractmethod
    def decision_definitions(self) -> list[DefinitionInfo]:
        """Deployed decision definitions in key order."""

    @abstractmethod
    def coverage_percentage(self, definition_key: str | None = None) -> float:
        """Flow node and sequence flow coverage, NaN when nothing is declared."""

    @abstractmethod
    def decision_coverage_percentage(self, decision_key: str | None = None) -> float:
        """Rule coverage, NaN when no rule is declared."""

    def covered_flow_node_ids(self, definition_key: str) -> set[str]:
        return {node.element_id for node in self.covered_flow_nodes(definition_key)}

    def covered_sequence_flow_ids(self, definition_key: str) -> set[str]:
        return {flow.element_id for flow in self.covered_sequence_flows(definition_key)}

    def covered_rule_ids(self, decision_key: str) -> set[str]:
        return {rule.rule_id for rule in self.covered_decision_rules(decision_key)}

    def meets_minimum(self, threshold: float, definition_key: str | None = None) -> bool:
        """
        Check coverage against a minimum.

        An undefined (NaN) coverage never meets a threshold.
        """
        percentage = self.coverage_percentage(definition_key)
        if math.isnan(percentage):
            return False
        return percentage >= threshold
