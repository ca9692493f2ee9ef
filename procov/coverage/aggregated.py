"""
Coverage across several finished test classes.

Built once from a list of ClassCoverage objects (for example, every class
of a suite run) and read-only afterwards. Lookups by definition key go
through indices built at construction time.
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
from procov.coverage.class_coverage import ClassCoverage
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
)
from procov.coverage.ordering import unique_sorted
from procov.definitions.models import DefinitionInfo
from procov.errors import UnknownDefinitionError


class AggregatedClassCoverage(AggregatedCoverage):
    """
    Coverage of a definition across every class that deployed it.

    Each class contributing to a key is assumed to have deployed the same
    graph for it; the declared elements are read from the first class in
    the index and not re-validated here.
    """

    def __init__(self, class_coverages: Iterable[ClassCoverage]):
        self._class_coverages: tuple[ClassCoverage, ...] = tuple(class_coverages)
        self._by_process_key: dict[str, list[ClassCoverage]] = defaultdict(list)
        self._by_decision_key: dict[str, list[ClassCoverage]] = defaultdict(list)
        self._organize()

    def _organize(self) -> None:
        for class_coverage in self._class_coverages:
            for info in class_coverage.process_definitions():
                classes = self._by_process_key[info.key]
                if class_coverage not in classes:
                    classes.append(class_coverage)
            for info in class_coverage.decision_definitions():
                classes = self._by_decision_key[info.key]
                if class_coverage not in classes:
                    classes.append(class_coverage)

    @property
    def class_coverages(self) -> tuple[ClassCoverage, ...]:
        return self._class_coverages

    def classes_for_process(self, definition_key: str | None) -> list[ClassCoverage]:
        """
        Classes that deployed a process definition.

        Raises:
            UnknownDefinitionError: If no class deployed it
        """
        classes = self._by_process_key.get(definition_key) if definition_key else None
        if not classes:
            raise UnknownDefinitionError(definition_key, scope="aggregate")
        return classes

    def classes_for_decision(self, decision_key: str | None) -> list[ClassCoverage]:
        """
        Classes that deployed a decision.

        Raises:
            UnknownDefinitionError: If no class deployed it
        """
        classes = self._by_decision_key.get(decision_key) if decision_key else None
        if not classes:
            raise UnknownDefinitionError(decision_key, scope="aggregate")
        return classes

    @property
    def process_keys(self) -> list[str]:
        return sorted(self._by_process_key)

    @property
    def decision_keys(self) -> list[str]:
        return sorted(self._by_decision_key)

    # -- covered elements -------------------------------------------------

    def covered_flow_nodes(self, definition_key: str | None = None) -> list[CoveredFlowNode]:
        keys = [definition_key] if definition_key else self.process_keys
        nodes: list[CoveredFlowNode] = []
        for key in keys:
            for class_coverage in self.classes_for_process(key):
                nodes.extend(class_coverage.covered_flow_nodes(key))
        return unique_sorted(nodes)

    def covered_sequence_flows(
        self, definition_key: str | None = None
    ) -> list[CoveredSequenceFlow]:
        keys = [definition_key] if definition_key else self.process_keys
        flows: list[CoveredSequenceFlow] = []
        for key in keys:
            for class_coverage in self.classes_for_process(key):
                flows.extend(class_coverage.covered_sequence_flows(key))
        return unique_sorted(flows)

    def covered_decision_rules(self, decision_key: str) -> list[CoveredDecisionRule]:
        rules: list[CoveredDecisionRule] = []
        for class_coverage in self.classes_for_decision(decision_key):
            rules.extend(class_coverage.covered_decision_rules(decision_key))
        return unique_sorted(rules)

    # -- definitions ------------------------------------------------------

    def process_definitions(self) -> list[DefinitionInfo]:
        return sorted_process_definitions(
            info for cc in self._class_coverages for info in cc.process_definitions()
        )

    def decision_definitions(self) -> list[DefinitionInfo]:
        return sorted_decision_definitions(
            info for cc in self._class_coverages for info in cc.decision_definitions()
        )

    def declared_process_elements(self, definition_key: str | None = None) -> set[DeclaredElement]:
        """Declared elements, taken from the first class indexed under each key."""
        keys = [definition_key] if definition_key else self.process_keys
        declared: set[DeclaredElement] = set()
        for key in keys:
            reference = self.classes_for_process(key)[0]
            declared.update(reference.declared_process_elements(key))
        return declared

    def declared_decision_elements(self, decision_key: str | None = None) -> set[DeclaredElement]:
        keys = [decision_key] if decision_key else self.decision_keys
        declared: set[DeclaredElement] = set()
        for key in keys:
            reference = self.classes_for_decision(key)[0]
            declared.update(reference.declared_decision_elements(key))
        return declared

    def process_element_count(self, definition_key: str) -> int:
        return self.classes_for_process(definition_key)[0].process_element_count(definition_key)

    def decision_rule_count(self, decision_key: str) -> int:
        return self.classes_for_decision(decision_key)[0].decision_rule_count(decision_key)

    # -- ratios -----------------------------------------------------------

    def coverage_percentage(self, definition_key: str | None = None) -> float:
        """
        Coverage across all classes.

        Without a key, declared and covered elements of every definition of
        every class are unioned into one global ratio.
        """
        declared = self.declared_process_elements(definition_key)
        covered: list[CoveredElement] = [
            *self.covered_flow_nodes(definition_key),
            *self.covered_sequence_flows(definition_key),
        ]
        return element_ratio(declared, covered)

    def decision_coverage_percentage(self, decision_key: str | None = None) -> float:
        keys = [decision_key] if decision_key else self.decision_keys
        declared = self.declared_decision_elements(decision_key)
        covered: list[CoveredElement] = []
        for key in keys:
            covered.extend(self.covered_decision_rules(key))
        return element_ratio(declared, covered)

    def __repr__(self) -> str:
        return (
            f"AggregatedClassCoverage(classes={len(self._class_coverages)}, "
            f"processes={self.process_keys})"
        )
