"""
Tests for the procov CLI.
"""

import json

import pytest
from typer.testing import CliRunner

from procov import __version__
from procov.cli import app
from procov.coverage.class_coverage import ClassCoverage
from procov.coverage.elements import CoveredDecisionRule, CoveredFlowNode
from procov.coverage.method import MethodCoverage
from procov.reporting.json_report import JSONReportBuilder

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("restore_logging")


@pytest.fixture
def report_path(order_snapshot, tmp_path):
    method = MethodCoverage(None, "test_pay")
    method.add_process_coverage(order_snapshot)
    for node_id in ("Start", "Pay", "End"):
        method.add_covered_element(CoveredFlowNode("Order", node_id))
    class_coverage = ClassCoverage("OrderTest")
    class_coverage.add_test_method_coverage("test_pay", method)
    return JSONReportBuilder.from_class(class_coverage).write(tmp_path / "procov-report.json")


class TestVersion:
    """Test the version option."""

    def test_version(self) -> None:
        """--version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestSnapshotCommand:
    """Test the snapshot command."""

    def test_directory(self, fixtures_dir) -> None:
        """All definitions of a directory are listed."""
        result = runner.invoke(app, ["snapshot", str(fixtures_dir)])
        assert result.exit_code == 0
        assert "Order" in result.stdout
        assert "Discount" in result.stdout

    def test_single_file_verbose(self, fixtures_dir) -> None:
        """Verbose mode lists element ids."""
        result = runner.invoke(app, ["snapshot", str(fixtures_dir / "shipping.yaml"), "-V"])
        assert result.exit_code == 0
        assert "Flow_ShipStart_Ship" in result.stdout
        assert "Flow_Orphan" not in result.stdout

    def test_missing_path(self, tmp_path) -> None:
        """A missing path fails."""
        result = runner.invoke(app, ["snapshot", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Path not found" in result.stdout

    def test_empty_directory(self, tmp_path) -> None:
        """An empty directory reports that nothing was found."""
        result = runner.invoke(app, ["snapshot", str(tmp_path)])
        assert result.exit_code == 0
        assert "No definitions found" in result.stdout

    def test_load_error(self, tmp_path) -> None:
        """Broken definition files fail the command."""
        path = tmp_path / "broken.bpmn"
        path.write_text("<definitions>")
        result = runner.invoke(app, ["snapshot", str(path)])
        assert result.exit_code == 1
        assert "Malformed XML" in result.stdout

    def test_malformed_document_in_directory(self, tmp_path) -> None:
        """A broken JSON file in a directory fails the command cleanly."""
        (tmp_path / "broken.json").write_text("{not json")
        result = runner.invoke(app, ["snapshot", str(tmp_path)])
        assert result.exit_code == 1
        assert "Malformed document" in result.stdout


class TestSummaryCommand:
    """Test the summary command."""

    def test_summary(self, report_path) -> None:
        """The summary shows overall and per-definition coverage."""
        result = runner.invoke(app, ["summary", str(report_path)])
        assert result.exit_code == 0
        assert "procov Coverage" in result.stdout
        assert "60.0%" in result.stdout
        assert "OrderTest" in result.stdout

    def test_decision_classes_listed(self, discount_snapshot, tmp_path) -> None:
        """Decision rows are followed by their test classes."""
        method = MethodCoverage(None, "test_discount")
        method.add_decision_coverage(discount_snapshot)
        method.add_covered_decision_rules(
            [CoveredDecisionRule("Discount", "Rule_1"), CoveredDecisionRule("Discount", "Rule_2")]
        )
        class_coverage = ClassCoverage("RuleTest")
        class_coverage.add_test_method_coverage("test_discount", method)
        path = JSONReportBuilder.from_class(class_coverage).write(tmp_path / "report.json")

        result = runner.invoke(app, ["summary", str(path)])
        assert result.exit_code == 0
        assert "RuleTest" in result.stdout
        assert "50.0%" in result.stdout

    def test_minimum_met(self, report_path) -> None:
        """Meeting the minimum succeeds."""
        result = runner.invoke(app, ["summary", str(report_path), "--minimum", "0.5"])
        assert result.exit_code == 0
        assert "Coverage meets" in result.stdout

    def test_minimum_missed(self, report_path) -> None:
        """Missing the minimum fails."""
        result = runner.invoke(app, ["summary", str(report_path), "-m", "0.9"])
        assert result.exit_code == 1

    def test_undefined_coverage_fails_minimum(self, tmp_path) -> None:
        """Undefined coverage never meets a minimum."""
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"coveragePercentage": None, "bpmnModels": []}))
        result = runner.invoke(app, ["summary", str(path), "-m", "0.1"])
        assert result.exit_code == 1
        assert "undefined" in result.stdout

    def test_missing_report(self, tmp_path) -> None:
        """A missing report fails."""
        result = runner.invoke(app, ["summary", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Report not found" in result.stdout

    def test_invalid_report(self, tmp_path) -> None:
        """A report that is not JSON fails."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["summary", str(path)])
        assert result.exit_code == 1
        assert "Invalid report" in result.stdout


class TestHtmlCommand:
    """Test the html command."""

    def test_default_output(self, report_path) -> None:
        """The page is written next to the report by default."""
        result = runner.invoke(app, ["html", str(report_path)])
        assert result.exit_code == 0
        html_path = report_path.with_suffix(".html")
        assert html_path.exists()
        assert "procov Coverage Report" in html_path.read_text()

    def test_custom_output(self, report_path, tmp_path) -> None:
        """An explicit output path and title are honoured."""
        output = tmp_path / "site" / "index.html"
        result = runner.invoke(
            app, ["html", str(report_path), "-o", str(output), "-t", "Nightly"]
        )
        assert result.exit_code == 0
        assert "Nightly" in output.read_text()


class TestInitConfigCommand:
    """Test the init-config command."""

    def test_stdout(self) -> None:
        """The sample configuration is printed."""
        result = runner.invoke(app, ["init-config"])
        assert result.exit_code == 0
        assert "report_dir" in result.stdout

    def test_output_file(self, tmp_path) -> None:
        """The sample configuration can be written to a file."""
        path = tmp_path / "procov.yaml"
        result = runner.invoke(app, ["init-config", "-o", str(path)])
        assert result.exit_code == 0
        assert "minimum_coverage" in path.read_text()


class TestConfigOption:
    """Test the global configuration option."""

    def test_config_file(self, tmp_path) -> None:
        """A configuration file is accepted before the command."""
        path = tmp_path / "procov.yaml"
        path.write_text("log_level: DEBUG\njson_logs: true\n")
        result = runner.invoke(app, ["--config", str(path), "init-config"])
        assert result.exit_code == 0

    def test_missing_config_file(self, tmp_path) -> None:
        """A missing configuration file fails."""
        result = runner.invoke(app, ["-c", str(tmp_path / "missing.yaml"), "init-config"])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.stdout
