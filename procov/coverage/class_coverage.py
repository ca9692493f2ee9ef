"""
Coverage of one test class.

Merges the coverage of all test methods of a class. A class answers "did
the class as a whole reach this element", so covered elements are unioned
across methods before any ratio is computed.
"""

from collections.abc import Iterable

from procov.coverage.base import AggregatedCoverage, DeclaredElement, element_ratio
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
)
from procov.coverage.method import MethodCoverage
from procov.coverage.ordering import unique_sorted
from procov.definitions.models import DefinitionInfo
from procov.errors import CoverageError, InconsistentDeploymentError
from procov.logging import get_logger

logger = get_logger(__name__)


class ClassCoverage(AggregatedCoverage):
    """
    Coverage of all test methods of one test class.

    Every method must deploy the same process resources, because declared
    elements (the denominator) are read from any single method. Call
    ``assert_all_deployments_equal`` before trusting class level ratios.
    """

    def __init__(self, name: str | None = None):
        self.name = name
        self._methods: dict[str, MethodCoverage] = {}

    def add_test_method_coverage(self, method_name: str, coverage: MethodCoverage) -> None:
        """Register a method's coverage. Re-registering a name replaces it."""
        if method_name in self._methods:
            logger.debug("Replacing method coverage", test_class=self.name, method=method_name)
        self._methods[method_name] = coverage

    def get_test_method_coverage(self, method_name: str) -> MethodCoverage:
        """
        Get one method's coverage.

        Raises:
            KeyError: If no method of that name was registered
        """
        return self._methods[method_name]

    @property
    def test_method_coverages(self) -> dict[str, MethodCoverage]:
        """Method name to coverage, in registration order."""
        return dict(self._methods)

    # -- routing ----------------------------------------------------------

    def add_covered_element(self, method_name: str, element: CoveredElement) -> None:
        self.get_test_method_coverage(method_name).add_covered_element(element)

    def end_covered_element(self, method_name: str, element: CoveredElement) -> None:
        self.get_test_method_coverage(method_name).end_covered_element(element)

    def add_covered_decision_rules(
        self, method_name: str, rules: Iterable[CoveredDecisionRule]
    ) -> None:
        self.get_test_method_coverage(method_name).add_covered_decision_rules(rules)

    # -- deployment invariant ---------------------------------------------

    def assert_all_deployments_equal(self) -> None:
        """
        Check that every method deployed the same process resources.

        Deployments are compared by resource name and key, so two resources
        declaring the same process key are told apart.

        Raises:
            InconsistentDeploymentError: On the first method that differs
        """
        reference: list[tuple[str, str]] | None = None
        for method_name, coverage in self._methods.items():
            signature = coverage.deployment_signature()
            if reference is None:
                reference = signature
                continue
            if signature != reference:
                raise InconsistentDeploymentError(
                    method_name,
                    expected=[resource for resource, _ in reference],
                    actual=[resource for resource, _ in signature],
                )

    def get_any_method_coverage(self) -> MethodCoverage:
        """
        Any one method's coverage, used to read declared elements.

        Raises:
            CoverageError: If the class has no methods
        """
        for coverage in self._methods.values():
            return coverage
        msg = f"Class coverage {self.name!r} has no test methods"
        raise CoverageError(msg)

    # -- covered elements -------------------------------------------------

    def _methods_with_process(self, definition_key: str | None) -> list[MethodCoverage]:
        if definition_key is None:
            return list(self._methods.values())
        return [m for m in self._methods.values() if m.has_process(definition_key)]

    def covered_flow_nodes(self, definition_key: str | None = None) -> list[CoveredFlowNode]:
        nodes: list[CoveredFlowNode] = []
        for method in self._methods_with_process(definition_key):
            nodes.extend(method.covered_flow_nodes(definition_key))
        return unique_sorted(nodes)

    def covered_sequence_flows(
        self, definition_key: str | None = None
    ) -> list[CoveredSequenceFlow]:
        flows: list[CoveredSequenceFlow] = []
        for method in self._methods_with_process(definition_key):
            flows.extend(method.covered_sequence_flows(definition_key))
        return unique_sorted(flows)

    def covered_decision_rules(self, decision_key: str) -> list[CoveredDecisionRule]:
        rules: list[CoveredDecisionRule] = []
        for method in self._methods.values():
            if method.has_decision(decision_key):
                rules.extend(method.covered_decision_rules(decision_key))
        return unique_sorted(rules)

    # -- definitions ------------------------------------------------------

    def process_definitions(self) -> list[DefinitionInfo]:
        if not self._methods:
            return []
        return self.get_any_method_coverage().process_definitions()

    def decision_definitions(self) -> list[DefinitionInfo]:
        if not self._methods:
            return []
        return self.get_any_method_coverage().decision_definitions()

    def declared_process_elements(self, definition_key: str | None = None) -> set[DeclaredElement]:
        return self.get_any_method_coverage().declared_process_elements(definition_key)

    def declared_decision_elements(self, decision_key: str | None = None) -> set[DeclaredElement]:
        return self.get_any_method_coverage().declared_decision_elements(decision_key)

    def process_element_count(self, definition_key: str) -> int:
        return self.get_any_method_coverage().process_element_count(definition_key)

    def decision_rule_count(self, decision_key: str) -> int:
        return self.get_any_method_coverage().decision_rule_count(decision_key)

    # -- ratios -----------------------------------------------------------

    def coverage_percentage(self, definition_key: str | None = None) -> float:
        """Coverage of the union of all methods' covered elements."""
        declared = self.declared_process_elements(definition_key)
        covered: list[CoveredElement] = [
            *self.covered_flow_nodes(definition_key),
            *self.covered_sequence_flows(definition_key),
        ]
        return element_ratio(declared, covered)

    def decision_coverage_percentage(self, decision_key: str | None = None) -> float:
        declared = self.declared_decision_elements(decision_key)
        keys = [decision_key] if decision_key else [d.key for d in self.decision_definitions()]
        covered: list[CoveredElement] = []
        for key in keys:
            covered.extend(self.covered_decision_rules(key))
        return element_ratio(declared, covered)

    def __repr__(self) -> str:
        return f"ClassCoverage(name={self.name!r}, methods={list(self._methods)})"
