"""Layout input and computed-style output types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stylemotion.model.values import StyleValue


@dataclass(frozen=True)
class LayoutBox:
    """Last layout reported by the host for a node."""

    width: float
    height: float


@dataclass(frozen=True)
class ComputedStyleSnapshot:
    """Final property values for a node at one virtual time.

    ``animated`` marks properties driven by an animation or transition; it is
    diagnostic only.
    """

    node_id: str
    time: float
    props: dict[str, StyleValue] = field(default_factory=dict)
    animated: frozenset[str] = frozenset()
    variables: dict[str, StyleValue] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        from stylemotion.values import format_value

        return {
            "node_id": self.node_id,
            "time": self.time,
            "props": {k: format_value(v) for k, v in self.props.items()},
            "animated": sorted(self.animated),
            "variables": {k: format_value(v) for k, v in self.variables.items()},
        }
