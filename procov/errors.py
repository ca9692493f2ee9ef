"""
Exception hierarchy for coverage bookkeeping.

Integration-ordering errors and aggregation-precondition violations are
always raised, never swallowed: they mean a coverage answer would be wrong.
"""


class CoverageError(Exception):
    """Base class for all coverage errors."""


class UnknownDefinitionError(CoverageError):
    """An observation referenced a definition that was never registered."""

    def __init__(self, definition_key: str | None, scope: str = "method"):
        self.definition_key = definition_key
        self.scope = scope
        super().__init__(
            f"No coverage registered for definition '{definition_key}' in this {scope}"
        )


class ElementNotFoundError(CoverageError):
    """An exit notification did not match any open flow node record."""

    def __init__(self, definition_key: str | None, element_id: str, instance_id: str | None):
        self.definition_key = definition_key
        self.element_id = element_id
        self.instance_id = instance_id
        super().__init__(
            f"No open record for element '{element_id}' (instance '{instance_id}') "
            f"in definition '{definition_key}'"
        )


class InconsistentDeploymentError(CoverageError):
    """Test methods of one class deployed different process resources."""

    def __init__(self, method_name: str, expected: list[str], actual: list[str]):
        self.method_name = method_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Class coverage can only be calculated if all tests deploy the same resources. "
            f"Method '{method_name}' deployed {actual}, expected {expected}"
        )


class DefinitionLoadError(CoverageError):
    """A process or decision definition could not be loaded."""
