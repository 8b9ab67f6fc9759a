"""Declarations and matched rules fed to the cascade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from stylemotion.model.values import StyleValue


@dataclass(frozen=True)
class Declaration:
    """A single ``property: value`` pair, optionally ``!important``."""

    property: str
    value: StyleValue
    important: bool = False

    @property
    def is_variable(self) -> bool:
        return self.property.startswith("--")


@dataclass(frozen=True)
class Rule:
    """A matched rule: its declarations plus the precedence they came with.

    Selector matching happens upstream; ``specificity`` and ``source_order``
    are carried only so :func:`order_rules` can sort unordered input.
    """

    declarations: tuple[Declaration, ...] = field(default_factory=tuple)
    specificity: int = 0
    source_order: int = 0


def order_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Sort rules by ascending precedence (specificity, then source order)."""
    return sorted(rules, key=lambda r: (r.specificity, r.source_order))
