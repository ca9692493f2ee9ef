"""
procov Runtime.

Run state objects that receive engine notifications during a test run.
"""

from procov.runtime.state import IGNORED_ELEMENT_TYPES, CoverageRunState
from procov.runtime.suite import SuiteRunState

__all__ = [
    "CoverageRunState",
    "IGNORED_ELEMENT_TYPES",
    "SuiteRunState",
]
