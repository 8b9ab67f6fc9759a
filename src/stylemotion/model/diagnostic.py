"""Diagnostic model: structured reports of node-local resolution failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Severity level for a diagnostic message."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass(frozen=True)
class Diagnostic:
    """A single failure observed while resolving or animating a node.

    Attributes:
        kind: Error kind identifier (``cyclic_variable``, ``invalid_curve``, ...).
        severity: How serious the issue is.
        message: Human-readable description of the problem.
        node_id: The node involved.
        prop: The property that fell back, if applicable.
    """

    kind: str
    severity: Severity
    message: str
    node_id: str | None = None
    prop: str | None = None

    @classmethod
    def from_error(cls, error: Exception, node_id: str | None = None) -> Diagnostic:
        severity = Severity.WARNING if isinstance(error, Warning) else Severity.ERROR
        return cls(
            kind=getattr(error, "kind", type(error).__name__),
            severity=severity,
            message=str(error),
            node_id=node_id,
            prop=getattr(error, "property", None),
        )

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        location = ""
        if self.node_id:
            location = f" [node={self.node_id}"
            if self.prop:
                location += f" property={self.prop}"
            location += "]"
        return f"{self.severity.value}{location}: {self.message}"
