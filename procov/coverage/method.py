"""
Coverage of one test method.

Holds one ProcessCoverage per deployed process definition and one
DecisionCoverage per deployed decision, routes observations to them by
definition key, and computes method level ratios.
"""

from collections import defaultdict
from collections.abc import Iterable

from procov.coverage.base import (
    AggregatedCoverage,
    DeclaredElement,
    element_ratio,
    sorted_decision_definitions,
    sorted_process_definitions,
)
from procov.coverage.definition import DecisionCoverage, ProcessCoverage
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
)
from procov.coverage.ordering import unique_sorted
from procov.definitions.models import DefinitionInfo, GraphSnapshot
from procov.errors import UnknownDefinitionError


class MethodCoverage(AggregatedCoverage):
    """
    Coverage of all definitions deployed for a single test method.

    Definitions must be registered before observations for them arrive;
    anything else points at a listener bound to stale state.
    """

    def __init__(self, deployment_id: str | None, name: str):
        self.deployment_id = deployment_id
        self.name = name
        self._processes: dict[str, ProcessCoverage] = {}
        self._decisions: dict[str, DecisionCoverage] = {}

    # -- registration -----------------------------------------------------

    def add_process_coverage(self, snapshot: GraphSnapshot) -> ProcessCoverage:
        """Register a deployed process definition."""
        coverage = ProcessCoverage(snapshot)
        self._processes[snapshot.definition_key] = coverage
        return coverage

    def add_decision_coverage(self, snapshot: GraphSnapshot) -> DecisionCoverage:
        """Register a deployed decision definition."""
        coverage = DecisionCoverage(snapshot)
        self._decisions[snapshot.definition_key] = coverage
        return coverage

    # -- observations -----------------------------------------------------

    def add_covered_element(self, element: CoveredElement) -> None:
        """Route an entered element to its process coverage."""
        self.process_coverage(element.definition_key).add_covered_element(element)

    def end_covered_element(self, element: CoveredElement) -> None:
        """Route an exited flow node to its process coverage."""
        self.process_coverage(element.definition_key).end_covered_element(element)

    def add_covered_decision_rules(self, rules: Iterable[CoveredDecisionRule]) -> None:
        """
        Record the rules matched by one evaluation.

        An evaluation may include required decisions, so the rules are grouped
        by decision key first. Every decision must be registered.
        """
        by_decision: dict[str | None, list[CoveredDecisionRule]] = defaultdict(list)
        for rule in rules:
            by_decision[rule.decision_key].append(rule)

        # Resolve every decision before recording anything
        targets = [
            (self.decision_coverage(decision_key), decision_rules)
            for decision_key, decision_rules in by_decision.items()
        ]
        for coverage, decision_rules in targets:
            coverage.add_covered_rules(decision_rules)

    # -- lookups ----------------------------------------------------------

    def process_coverage(self, definition_key: str | None) -> ProcessCoverage:
        """
        Get the coverage of one process definition.

        Raises:
            UnknownDefinitionError: If the definition was not deployed
        """
        coverage = self._processes.get(definition_key) if definition_key is not None else None
        if coverage is None:
            raise UnknownDefinitionError(definition_key)
        return coverage

    def decision_coverage(self, decision_key: str | None) -> DecisionCoverage:
        """
        Get the coverage of one decision.

        Raises:
            UnknownDefinitionError: If the decision was not deployed
        """
        coverage = self._decisions.get(decision_key) if decision_key is not None else None
        if coverage is None:
            raise UnknownDefinitionError(decision_key)
        return coverage

    def has_process(self, definition_key: str) -> bool:
        return definition_key in self._processes

    def has_decision(self, decision_key: str) -> bool:
        return decision_key in self._decisions

    @property
    def process_coverages(self) -> list[ProcessCoverage]:
        return list(self._processes.values())

    @property
    def decision_coverages(self) -> list[DecisionCoverage]:
        return list(self._decisions.values())

    def _selected_processes(self, definition_key: str | None) -> list[ProcessCoverage]:
        if definition_key is None:
            return self.process_coverages
        return [self.process_coverage(definition_key)]

    def _selected_decisions(self, decision_key: str | None) -> list[DecisionCoverage]:
        if decision_key is None:
            return self.decision_coverages
        return [self.decision_coverage(decision_key)]

    # -- declared elements ------------------------------------------------

    def declared_process_elements(self, definition_key: str | None = None) -> set[DeclaredElement]:
        """Declared flow nodes and sequence flows of one or all processes."""
        declared: set[DeclaredElement] = set()
        for coverage in self._selected_processes(definition_key):
            declared.update(coverage.snapshot.declared_elements())
        return declared

    def declared_decision_elements(self, decision_key: str | None = None) -> set[DeclaredElement]:
        """Declared rules of one or all decisions."""
        declared: set[DeclaredElement] = set()
        for coverage in self._selected_decisions(decision_key):
            declared.update(coverage.snapshot.declared_elements())
        return declared

    def process_element_count(self, definition_key: str) -> int:
        """Number of declared flow nodes and sequence flows of a process."""
        return self.process_coverage(definition_key).snapshot.element_count

    def decision_rule_count(self, decision_key: str) -> int:
        return self.decision_coverage(decision_key).rule_count

    # -- covered elements -------------------------------------------------

    def covered_flow_nodes(self, definition_key: str | None = None) -> list[CoveredFlowNode]:
        nodes: list[CoveredFlowNode] = []
        for coverage in self._selected_processes(definition_key):
            nodes.extend(coverage.covered_flow_nodes())
        return unique_sorted(nodes)

    def covered_sequence_flows(
        self, definition_key: str | None = None
    ) -> list[CoveredSequenceFlow]:
        flows: list[CoveredSequenceFlow] = []
        for coverage in self._selected_processes(definition_key):
            flows.extend(coverage.covered_sequence_flows())
        return unique_sorted(flows)

    def covered_decision_rules(self, decision_key: str) -> list[CoveredDecisionRule]:
        return self.decision_coverage(decision_key).covered_rules()

    # -- definitions ------------------------------------------------------

    def process_definitions(self) -> list[DefinitionInfo]:
        return sorted_process_definitions(c.info for c in self._processes.values())

    def decision_definitions(self) -> list[DefinitionInfo]:
        return sorted_decision_definitions(c.info for c in self._decisions.values())

    def deployment_signature(self) -> list[tuple[str, str]]:
        """``(resource_name, key)`` of every deployed process, in resource order."""
        return [(info.resource_name, info.key) for info in self.process_definitions()]

    # -- ratios -----------------------------------------------------------

    def coverage_percentage(self, definition_key: str | None = None) -> float:
        """
        Flow node and sequence flow coverage of this method.

        Without a key, a single ratio over the union of all deployed
        processes is computed, not an average of per-process ratios.
        """
        declared = self.declared_process_elements(definition_key)
        covered: list[CoveredElement] = [
            *self.covered_flow_nodes(definition_key),
            *self.covered_sequence_flows(definition_key),
        ]
        return element_ratio(declared, covered)

    def decision_coverage_percentage(self, decision_key: str | None = None) -> float:
        declared = self.declared_decision_elements(decision_key)
        covered: list[CoveredElement] = []
        for coverage in self._selected_decisions(decision_key):
            covered.extend(coverage.covered_rules())
        return element_ratio(declared, covered)

    def __repr__(self) -> str:
        return (
            f"MethodCoverage(name={self.name!r}, deployment_id={self.deployment_id!r}, "
            f"processes={sorted(self._processes)}, decisions={sorted(self._decisions)})"
        )
