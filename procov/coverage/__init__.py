"""
procov Coverage Model.

Covered element records and the method, class and suite coverage levels
that aggregate them.
"""

from procov.coverage.aggregated import AggregatedClassCoverage
from procov.coverage.base import AggregatedCoverage
from procov.coverage.class_coverage import ClassCoverage
from procov.coverage.definition import DecisionCoverage, DefinitionCoverage, ProcessCoverage
from procov.coverage.elements import (
    CoveredDecisionRule,
    CoveredElement,
    CoveredFlowNode,
    CoveredSequenceFlow,
    ElementKind,
)
from procov.coverage.method import MethodCoverage
from procov.coverage.ordering import (
    compare_elements,
    coverage_ratio,
    element_sort_key,
    unique_sorted,
)

__all__ = [
    "AggregatedClassCoverage",
    "AggregatedCoverage",
    "ClassCoverage",
    "CoveredDecisionRule",
    "CoveredElement",
    "CoveredFlowNode",
    "CoveredSequenceFlow",
    "DecisionCoverage",
    "DefinitionCoverage",
    "ElementKind",
    "MethodCoverage",
    "ProcessCoverage",
    "compare_elements",
    "coverage_ratio",
    "element_sort_key",
    "unique_sorted",
]
