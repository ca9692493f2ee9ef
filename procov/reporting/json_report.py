"""
JSON coverage report export.

Walks finished class coverage and produces one document keyed by
definition:

    {
      "bpmnModels": [{"key": ..., "testClasses": [{"testMethods": [...]}]}],
      "dmnModels": [...]
    }

Each test method lists its covered flow nodes (with execution ordinals),
sequence flows and rules. Undefined ratios are written as null.
"""

import json
import math
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from procov.coverage.aggregated import AggregatedClassCoverage
from procov.coverage.class_coverage import ClassCoverage
from procov.coverage.method import MethodCoverage
from procov.definitions.models import DefinitionInfo
from procov.logging import get_logger

logger = get_logger(__name__)

REPORT_FILE_NAME = "procov-report.json"
SUITE_REPORT_FILE_NAME = "procov-suite-report.json"


def percentage_value(value: float) -> float | None:
    """Round a ratio for output; NaN becomes None."""
    if math.isnan(value):
        return None
    return round(value, 4)


class JSONReportBuilder:
    """Build the report document from one or more class coverages."""

    def __init__(self, class_coverages: Iterable[ClassCoverage]):
        self.aggregate = AggregatedClassCoverage(class_coverages)

    @classmethod
    def from_class(cls, class_coverage: ClassCoverage) -> "JSONReportBuilder":
        return cls([class_coverage])

    def build(self) -> dict[str, Any]:
        """Build the full report document."""
        return {
            "generatedAt": datetime.now(UTC).isoformat(),
            "coveragePercentage": percentage_value(self.aggregate.coverage_percentage()),
            "decisionCoveragePercentage": percentage_value(
                self.aggregate.decision_coverage_percentage()
            ),
            "bpmnModels": [
                self._process_model(info) for info in self.aggregate.process_definitions()
            ],
            "dmnModels": [
                self._decision_model(info) for info in self.aggregate.decision_definitions()
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.build(), indent=indent)

    def write(self, output_path: str | Path) -> Path:
        """Write the report, creating parent directories."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.to_json(), encoding="utf-8")
        logger.info("Coverage report written", path=str(output_path))
        return output_path

    def _process_model(self, info: DefinitionInfo) -> dict[str, Any]:
        key = info.key
        return {
            "key": key,
            "name": info.name,
            "version": info.version_tag,
            "resourceName": info.resource_name,
            "totalElementCount": self.aggregate.process_element_count(key),
            "coveragePercentage": percentage_value(self.aggregate.coverage_percentage(key)),
            "testClasses": [
                {
                    "name": class_coverage.name,
                    "coveragePercentage": percentage_value(
                        class_coverage.coverage_percentage(key)
                    ),
                    "testMethods": [
                        self._process_method(name, method, key)
                        for name, method in class_coverage.test_method_coverages.items()
                        if method.has_process(key)
                    ],
                }
                for class_coverage in self.aggregate.classes_for_process(key)
            ],
        }

    def _process_method(self, name: str, method: MethodCoverage, key: str) -> dict[str, Any]:
        return {
            "name": name,
            "coveragePercentage": percentage_value(method.coverage_percentage(key)),
            "flowNodes": [
                {
                    "key": node.element_id,
                    "type": node.element_type,
                    "executionStartCounter": node.start_ordinal,
                    "executionEndCounter": node.end_ordinal,
                }
                for node in method.covered_flow_nodes(key)
            ],
            "sequenceFlows": [
                {
                    "key": flow.element_id,
                    "executionStartCounter": flow.start_ordinal,
                }
                for flow in method.covered_sequence_flows(key)
            ],
        }

    def _decision_model(self, info: DefinitionInfo) -> dict[str, Any]:
        key = info.key
        return {
            "key": key,
            "name": info.name,
            "version": info.version_tag,
            "resourceName": info.resource_name,
            "ruleCount": self.aggregate.decision_rule_count(key),
            "coveragePercentage": percentage_value(
                self.aggregate.decision_coverage_percentage(key)
            ),
            "testClasses": [
                {
                    "name": class_coverage.name,
                    "coveragePercentage": percentage_value(
                        class_coverage.decision_coverage_percentage(key)
                    ),
                    "testMethods": [
                        {
                            "name": name,
                            "coveragePercentage": percentage_value(
                                method.decision_coverage_percentage(key)
                            ),
                            "rules": [
                                {"key": rule.rule_id} for rule in method.covered_decision_rules(key)
                            ],
                        }
                        for name, method in class_coverage.test_method_coverages.items()
                        if method.has_decision(key)
                    ],
                }
                for class_coverage in self.aggregate.classes_for_decision(key)
            ],
        }
