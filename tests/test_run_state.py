"""
Tests for class and suite run state.
"""

import json

import pytest
from structlog.testing import capture_logs

from procov.config import CoverageConfig
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredFlowNode,
    CoveredSequenceFlow,
)
from procov.errors import (
    CoverageError,
    ElementNotFoundError,
    InconsistentDeploymentError,
)
from procov.reporting.json_report import REPORT_FILE_NAME, SUITE_REPORT_FILE_NAME
from procov.runtime import CoverageRunState, SuiteRunState


@pytest.fixture
def config(tmp_path) -> CoverageConfig:
    return CoverageConfig(report_dir=str(tmp_path / "reports"))


def _run_full_path(state: CoverageRunState) -> None:
    state.notify_entered(CoveredFlowNode("Order", "Start", instance_id="s"))
    state.notify_exited(CoveredFlowNode("Order", "Start", instance_id="s"))
    state.notify_entered(CoveredSequenceFlow("Order", "Flow_Start_Pay"))
    state.notify_entered(CoveredFlowNode("Order", "Pay", instance_id="p"))
    state.notify_exited(CoveredFlowNode("Order", "Pay", instance_id="p"))
    state.notify_entered(CoveredSequenceFlow("Order", "Flow_Pay_End"))
    state.notify_entered(CoveredFlowNode("Order", "End", instance_id="e"))
    state.notify_exited(CoveredFlowNode("Order", "End", instance_id="e"))


class TestCoverageRunState:
    """Test notification handling for one class."""

    @pytest.fixture
    def state(self, provider, order_resource, pricing_resource, config) -> CoverageRunState:
        state = CoverageRunState("OrderTest", provider, config)
        state.register_method_deployment(
            "test_pay",
            "dep-1",
            order_resource.definitions(),
            pricing_resource.definitions(),
        )
        return state

    def test_register_sets_current_method(self, state) -> None:
        """Registering a deployment makes the method current."""
        assert state.current_method_name == "test_pay"
        method = state.current_method_coverage()
        assert method.has_process("Order")
        assert method.has_decision("Discount")
        assert method.has_decision("CustomerTier")

    def test_full_path(self, state) -> None:
        """Walking the whole process covers everything."""
        _run_full_path(state)
        assert state.current_method_coverage().coverage_percentage("Order") == 1.0

    def test_ordinals(self, state) -> None:
        """Entries and exits are numbered in arrival order."""
        _run_full_path(state)
        nodes = {n.element_id: n for n in state.class_coverage.covered_flow_nodes("Order")}
        assert (nodes["Start"].start_ordinal, nodes["Start"].end_ordinal) == (1, 2)
        assert (nodes["Pay"].start_ordinal, nodes["Pay"].end_ordinal) == (4, 5)
        assert nodes["End"].ended

        flows = {f.element_id: f for f in state.class_coverage.covered_sequence_flows("Order")}
        assert flows["Flow_Start_Pay"].start_ordinal == 3

    def test_preset_ordinal_kept(self, state) -> None:
        """An ordinal supplied by the caller is not overwritten."""
        node = CoveredFlowNode("Order", "Start", start_ordinal=42)
        state.notify_entered(node)
        assert node.start_ordinal == 42

    def test_multi_instance_body_ignored(self, state) -> None:
        """Multi-instance wrapper scopes are not recorded."""
        body = CoveredFlowNode("Order", "Pay#multiInstanceBody", element_type="multiInstanceBody")
        state.notify_entered(body)
        state.notify_exited(body)
        assert state.class_coverage.covered_flow_nodes("Order") == []

    def test_notify_passed(self, state) -> None:
        """Passed nodes are entered and ended at once."""
        state.notify_passed(CoveredFlowNode("Order", "Pay", element_type="intermediateThrowEvent"))
        node = state.class_coverage.covered_flow_nodes("Order")[0]
        assert node.ended
        assert node.start_ordinal == node.end_ordinal == 1

    def test_rules_deduplicated(self, state) -> None:
        """Repeated rules of one evaluation are recorded once."""
        state.notify_rules_evaluated(
            [
                CoveredDecisionRule("Discount", "Rule_1"),
                CoveredDecisionRule("Discount", "Rule_1"),
                CoveredDecisionRule("CustomerTier", "Tier_Gold"),
            ]
        )
        method = state.current_method_coverage()
        assert method.covered_rule_ids("Discount") == {"Rule_1"}
        assert method.covered_rule_ids("CustomerTier") == {"Tier_Gold"}

    def test_non_rule_in_evaluation_warns(self, state) -> None:
        """Other records in a rule evaluation are logged and skipped."""
        with capture_logs() as logs:
            state.notify_rules_evaluated([CoveredFlowNode("Discount", "Rule_1")])
        assert state.current_method_coverage().covered_decision_rules("Discount") == []
        assert logs[0]["log_level"] == "warning"

    def test_exit_without_entry_raises(self, state) -> None:
        """Exit notifications must follow an entry."""
        with pytest.raises(ElementNotFoundError):
            state.notify_exited(CoveredFlowNode("Order", "Pay", instance_id="x"))

    def test_finish_class_writes_report(self, state, tmp_path) -> None:
        """Finishing a class exports its JSON report."""
        _run_full_path(state)
        state.finish_class()

        path = tmp_path / "reports" / "OrderTest" / REPORT_FILE_NAME
        assert state.report_path() == path
        report = json.loads(path.read_text())
        assert report["coveragePercentage"] == 1.0
        assert report["bpmnModels"][0]["key"] == "Order"

    def test_finish_class_html(self, provider, order_resource, tmp_path) -> None:
        """An HTML page is written next to the JSON report when enabled."""
        config = CoverageConfig(report_dir=str(tmp_path), html_report=True)
        state = CoverageRunState("OrderTest", provider, config)
        state.register_method_deployment("test_a", None, order_resource.definitions())
        state.finish_class()

        assert (tmp_path / "OrderTest" / "procov-report.html").exists()

    def test_finish_class_without_export(self, provider, order_resource, tmp_path) -> None:
        """No report is written when the report directory is disabled."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        state.register_method_deployment("test_a", None, order_resource.definitions())
        assert state.report_path() is None
        assert state.finish_class() is state.class_coverage

    def test_finish_class_below_minimum_warns(self, provider, order_resource, tmp_path) -> None:
        """Coverage below the configured minimum is reported as a warning."""
        config = CoverageConfig(report_dir=None, minimum_coverage=0.5)
        state = CoverageRunState("OrderTest", provider, config)
        state.register_method_deployment("test_a", None, order_resource.definitions())
        state.notify_entered(CoveredFlowNode("Order", "Start"))

        with capture_logs() as logs:
            state.finish_class()

        assert any(entry["event"] == "Class coverage below minimum" for entry in logs)

    def test_finish_class_inconsistent_deployments(
        self, provider, order_resource, pricing_resource, snapshot_factory
    ) -> None:
        """Differing deployments fail the class."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        state.register_method_deployment("test_a", None, order_resource.definitions())
        other = snapshot_factory("Order", flow_nodes={"Start"}, resource_name="order-v2.bpmn")
        state.register_method_deployment("test_b", None, [other])

        with pytest.raises(InconsistentDeploymentError):
            state.finish_class()


class TestRunStateRouting:
    """Test method routing and exclusions."""

    def test_no_current_method(self, provider) -> None:
        """Notifications before any registration are errors."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        with pytest.raises(CoverageError, match="No test method is active"):
            state.notify_entered(CoveredFlowNode("Order", "Start"))

    def test_unregistered_current_method(self, provider) -> None:
        """Routing to a method without deployment is an error."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        state.set_current_method("test_missing")
        with pytest.raises(CoverageError, match="no registered deployment"):
            state.current_method_coverage()

    def test_switching_methods(self, provider, order_resource) -> None:
        """Notifications follow the current method."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        state.register_method_deployment("test_a", None, order_resource.definitions())
        state.notify_entered(CoveredFlowNode("Order", "Start"))
        state.register_method_deployment("test_b", None, order_resource.definitions())
        state.notify_entered(CoveredFlowNode("Order", "Pay"))

        coverages = state.class_coverage.test_method_coverages
        assert coverages["test_a"].covered_flow_node_ids("Order") == {"Start"}
        assert coverages["test_b"].covered_flow_node_ids("Order") == {"Pay"}

    def test_excluded_definition(self, provider, order_resource) -> None:
        """Excluded definitions are neither registered nor observed."""
        config = CoverageConfig(report_dir=None, excluded_definition_keys=["Order"])
        state = CoverageRunState("OrderTest", provider, config)
        method = state.register_method_deployment("test_a", None, order_resource.definitions())

        state.notify_entered(CoveredFlowNode("Order", "Start"))

        assert not method.has_process("Order")

    def test_snapshots_accepted(self, provider, order_snapshot) -> None:
        """Ready snapshots can be registered without the provider."""
        state = CoverageRunState("OrderTest", provider, CoverageConfig(report_dir=None))
        method = state.register_method_deployment("test_a", None, [order_snapshot])
        assert method.process_element_count("Order") == 5


class TestSuiteRunState:
    """Test suite level collection."""

    def test_collects_classes(self, provider, order_resource, config, tmp_path) -> None:
        """Finished classes are aggregated into one suite report."""
        suite = SuiteRunState(provider, config)

        first = suite.start_class("OrderTest")
        first.register_method_deployment("test_a", None, order_resource.definitions())
        first.notify_entered(CoveredFlowNode("Order", "Start"))
        suite.finish_class(first)

        second = suite.start_class("CheckoutTest")
        second.register_method_deployment("test_b", None, order_resource.definitions())
        second.notify_entered(CoveredFlowNode("Order", "Pay"))
        suite.finish_class(second)

        aggregate = suite.aggregate()
        assert aggregate.covered_flow_node_ids("Order") == {"Start", "Pay"}
        assert aggregate.coverage_percentage("Order") == pytest.approx(0.4)

        path = suite.write_report()
        assert path == tmp_path / "reports" / SUITE_REPORT_FILE_NAME
        report = json.loads(path.read_text())
        assert len(report["bpmnModels"][0]["testClasses"]) == 2

    def test_shares_provider(self, provider) -> None:
        """Every class of a suite uses the same snapshot cache."""
        suite = SuiteRunState(provider, CoverageConfig(report_dir=None))
        assert suite.start_class("A").provider is suite.start_class("B").provider

    def test_frozen_after_aggregate(self, provider) -> None:
        """No class can be added once the suite was aggregated."""
        suite = SuiteRunState(provider, CoverageConfig(report_dir=None))
        aggregate = suite.aggregate()

        assert suite.is_frozen
        assert suite.aggregate() is aggregate
        with pytest.raises(CoverageError, match="already aggregated"):
            suite.start_class("Late")

    def test_write_report_disabled(self, provider) -> None:
        """Without a report directory nothing is written."""
        suite = SuiteRunState(provider, CoverageConfig(report_dir=None))
        assert suite.write_report() is None
