"""
Run state of one test class.

The engine integration pushes notifications into a CoverageRunState:
deployments at method start, entered and exited elements while the test
runs, and rule matches after each decision evaluation. The run state is
passed explicitly to whatever emits those notifications; there is no
global lookup.
"""

from collections.abc import Callable, Iterable
from pathlib import Path

from procov.config import CoverageConfig
from procov.coverage.class_coverage import ClassCoverage
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    ElementKind,
)
from procov.coverage.method import MethodCoverage
from procov.definitions.models import DefinitionInfo, GraphSnapshot
from procov.definitions.provider import CachingSnapshotProvider, GraphSnapshotProvider
from procov.errors import CoverageError
from procov.logging import get_logger
from procov.reporting.html import HTMLReportGenerator
from procov.reporting.json_report import REPORT_FILE_NAME, JSONReportBuilder

logger = get_logger(__name__)

# Wrapper scopes around multi-instance activities; coverage collapses to the inner element
IGNORED_ELEMENT_TYPES = frozenset({"multiInstanceBody"})


class CoverageRunState:
    """
    Coverage bookkeeping for one test class run.

    Usage:
        state = CoverageRunState("OrderTest", provider)
        state.register_method_deployment("test_pay", "dep-1", [order_info], [])
        state.notify_entered(CoveredFlowNode("Order", "Start", instance_id="a1"))
        ...
        class_coverage = state.finish_class()
    """

    def __init__(
        self,
        test_class_name: str,
        provider: GraphSnapshotProvider,
        config: CoverageConfig | None = None,
    ):
        self.test_class_name = test_class_name
        self.config = config or CoverageConfig()
        if isinstance(provider, CachingSnapshotProvider):
            self.provider = provider
        else:
            self.provider = CachingSnapshotProvider(provider)
        self.class_coverage = ClassCoverage(test_class_name)
        self.current_method_name: str | None = None
        self._ordinal = 0

    # -- lifecycle --------------------------------------------------------

    def set_current_method(self, method_name: str) -> None:
        """Route subsequent notifications to the given method."""
        self.current_method_name = method_name

    def register_method_deployment(
        self,
        method_name: str,
        deployment_id: str | None,
        process_definitions: Iterable[DefinitionInfo | GraphSnapshot],
        decision_definitions: Iterable[DefinitionInfo | GraphSnapshot] = (),
    ) -> MethodCoverage:
        """
        Register what a test method deployed and make it the current method.

        Definitions may be given as DefinitionInfo, in which case the snapshot
        provider is asked for the declared elements, or as ready snapshots.
        Excluded process definition keys are skipped.
        """
        method_coverage = MethodCoverage(deployment_id, method_name)

        for definition in process_definitions:
            if self.config.is_excluded(self._key_of(definition)):
                logger.debug(
                    "Skipping excluded definition", definition_key=self._key_of(definition)
                )
                continue
            snapshot = self._snapshot(definition, self.provider.process_snapshot)
            method_coverage.add_process_coverage(snapshot)

        for definition in decision_definitions:
            snapshot = self._snapshot(definition, self.provider.decision_snapshot)
            method_coverage.add_decision_coverage(snapshot)

        self.class_coverage.add_test_method_coverage(method_name, method_coverage)
        self.set_current_method(method_name)
        logger.info(
            "Registered method deployment",
            test_class=self.test_class_name,
            method=method_name,
            deployment_id=deployment_id,
            processes=[info.key for info in method_coverage.process_definitions()],
            decisions=[info.key for info in method_coverage.decision_definitions()],
        )
        return method_coverage

    @staticmethod
    def _key_of(definition: DefinitionInfo | GraphSnapshot) -> str:
        if isinstance(definition, GraphSnapshot):
            return definition.definition_key
        return definition.key

    @staticmethod
    def _snapshot(
        definition: DefinitionInfo | GraphSnapshot,
        fetch: Callable[[DefinitionInfo], GraphSnapshot],
    ) -> GraphSnapshot:
        if isinstance(definition, GraphSnapshot):
            return definition
        return fetch(definition)

    def current_method_coverage(self) -> MethodCoverage:
        """
        Coverage of the method notifications are routed to.

        Raises:
            CoverageError: If no method is active or it was never registered
        """
        if self.current_method_name is None:
            msg = f"No test method is active in {self.test_class_name}"
            raise CoverageError(msg)
        try:
            return self.class_coverage.get_test_method_coverage(self.current_method_name)
        except KeyError:
            msg = f"Test method {self.current_method_name!r} has no registered deployment"
            raise CoverageError(msg) from None

    # -- notifications ----------------------------------------------------

    def next_ordinal(self) -> int:
        """Next value of the execution order counter."""
        self._ordinal += 1
        return self._ordinal

    def _should_skip(self, element: CoveredElement) -> bool:
        if self.config.is_excluded(element.definition_key):
            logger.debug(
                "Dropping observation of excluded definition",
                definition_key=element.definition_key,
                element_id=element.element_id,
            )
            return True
        return (
            isinstance(element, CoveredFlowNode)
            and element.element_type in IGNORED_ELEMENT_TYPES
        )

    def notify_entered(self, element: CoveredElement) -> None:
        """Execution reached a flow node or took a sequence flow."""
        if self._should_skip(element):
            return
        if element.start_ordinal is None:
            element.start_ordinal = self.next_ordinal()
        self.current_method_coverage().add_covered_element(element)

    def notify_exited(self, element: CoveredFlowNode) -> None:
        """A previously entered flow node instance finished."""
        if self._should_skip(element):
            return
        if element.end_ordinal is None:
            element.end_ordinal = self.next_ordinal()
        self.current_method_coverage().end_covered_element(element)

    def notify_passed(self, element: CoveredFlowNode) -> None:
        """
        A node was passed through without separate exit notification.

        Intermediate throw events are only seen as part of a taken sequence
        flow; they are recorded entered and ended at once.
        """
        if self._should_skip(element):
            return
        ordinal = self.next_ordinal()
        if element.start_ordinal is None:
            element.start_ordinal = ordinal
        element.mark_ended(ordinal if element.end_ordinal is None else element.end_ordinal)
        self.current_method_coverage().add_covered_element(element)

    def notify_rules_evaluated(self, rules: Iterable[CoveredDecisionRule]) -> None:
        """
        One decision evaluation matched these rules.

        The list may include rules of required decisions evaluated as part of
        the root decision. Repeated rules are recorded once.
        """
        distinct: dict[tuple[str | None, str], CoveredDecisionRule] = {}
        for rule in rules:
            if rule.kind != ElementKind.DECISION_RULE:
                logger.warning(
                    "Unsupported element in rule evaluation",
                    definition_key=rule.definition_key,
                    element_id=rule.element_id,
                )
                continue
            distinct.setdefault(rule.identity, rule)
        if distinct:
            self.current_method_coverage().add_covered_decision_rules(distinct.values())

    # -- finalization -----------------------------------------------------

    def report_path(self) -> Path | None:
        """Where the class report goes, or None if export is disabled."""
        if self.config.report_dir is None:
            return None
        return Path(self.config.report_dir) / self.test_class_name / REPORT_FILE_NAME

    def finish_class(self) -> ClassCoverage:
        """
        Validate deployments and export the class report.

        Raises:
            InconsistentDeploymentError: If methods deployed different resources
        """
        self.class_coverage.assert_all_deployments_equal()

        if not self.class_coverage.test_method_coverages:
            logger.info("No test methods registered", test_class=self.test_class_name)
            return self.class_coverage

        percentage = self.class_coverage.coverage_percentage()
        minimum = self.config.minimum_coverage
        if minimum is not None and not self.class_coverage.meets_minimum(minimum):
            logger.warning(
                "Class coverage below minimum",
                test_class=self.test_class_name,
                coverage=percentage,
                minimum=minimum,
            )

        path = self.report_path()
        if path is not None:
            builder = JSONReportBuilder.from_class(self.class_coverage)
            builder.write(path)
            if self.config.html_report:
                HTMLReportGenerator().generate(
                    path.with_suffix(".html"), builder.build(), report_title=self.test_class_name
                )

        logger.info(
            "Finished class coverage",
            test_class=self.test_class_name,
            methods=len(self.class_coverage.test_method_coverages),
            coverage=percentage,
        )
        return self.class_coverage
