"""
Covered element records.

One record per observed entry of a flow node, taken sequence flow, or
matched decision rule during a single test method. Records are identified
by ``(definition_key, element_id)``; instance ids and ordinals are
informational and never take part in equality or hashing.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from procov.definitions.models import ElementKind


@dataclass(unsafe_hash=True)
class CoveredElement:
    """Base record: one element of one definition was reached."""

    kind: ClassVar[ElementKind | None] = None

    definition_key: str | None
    element_id: str
    start_ordinal: int | None = field(default=None, compare=False)

    @property
    def identity(self) -> tuple[str | None, str]:
        """The ``(definition_key, element_id)`` pair this record stands for."""
        return (self.definition_key, self.element_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value if self.kind else None,
            "definition_key": self.definition_key,
            "element_id": self.element_id,
            "start_ordinal": self.start_ordinal,
        }


@dataclass(unsafe_hash=True)
class CoveredFlowNode(CoveredElement):
    """A task, event or gateway that was entered."""

    kind: ClassVar[ElementKind | None] = ElementKind.FLOW_NODE

    instance_id: str | None = field(default=None, compare=False)
    element_type: str | None = field(default=None, compare=False)
    end_ordinal: int | None = field(default=None, compare=False)
    ended: bool = field(default=False, compare=False)

    def mark_ended(self, end_ordinal: int | None = None) -> None:
        """Record that execution of this node finished."""
        self.ended = True
        if end_ordinal is not None:
            self.end_ordinal = end_ordinal

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result = super().to_dict()
        result.update(
            {
                "instance_id": self.instance_id,
                "element_type": self.element_type,
                "end_ordinal": self.end_ordinal,
                "ended": self.ended,
            }
        )
        return result


@dataclass(unsafe_hash=True)
class CoveredSequenceFlow(CoveredElement):
    """A transition that was taken. Sequence flows have no end state."""

    kind: ClassVar[ElementKind | None] = ElementKind.SEQUENCE_FLOW


@dataclass(unsafe_hash=True)
class CoveredDecisionRule(CoveredElement):
    """A decision table row that matched during an evaluation.

    ``definition_key`` holds the decision key and ``element_id`` the rule id.
    """

    kind: ClassVar[ElementKind | None] = ElementKind.DECISION_RULE

    decision_requirements_key: str | None = field(default=None, compare=False)

    @property
    def decision_key(self) -> str | None:
        return self.definition_key

    @property
    def rule_id(self) -> str:
        return self.element_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result = super().to_dict()
        result["decision_requirements_key"] = self.decision_requirements_key
        return result
