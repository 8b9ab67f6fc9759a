"""Cascade resolver: folds matched rules into one resolved declaration set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from stylemotion.config import EngineConfig
from stylemotion.errors import StyleEngineError
from stylemotion.model.declarations import Declaration, Rule
from stylemotion.model.snapshot import ComputedStyleSnapshot
from stylemotion.model.values import Raw, StyleValue
from stylemotion.shorthands import SHORTHANDS, expand_declaration, expand_shorthand
from stylemotion.values import split_list
from stylemotion.variables import ScopeRegistry, resolve_declarations

__all__ = [
    "CascadeResolver",
    "CascadeResult",
    "PropertyChange",
    "ENGINE_PROPERTIES",
    "fold_declarations",
    "transition_properties",
    "is_transition_eligible",
]

logger = logging.getLogger(__name__)

# Properties consumed by the engine itself rather than rendered.
ENGINE_PROPERTIES = frozenset(
    {
        "animationName",
        "animationDuration",
        "animationTimingFunction",
        "animationIterationCount",
        "animationDirection",
        "animationFillMode",
        "animationDelay",
        "transitionProperty",
        "transitionDuration",
        "transitionTimingFunction",
        "transitionDelay",
        "containerName",
        "animation",
        "transition",
    }
)


@dataclass(frozen=True)
class PropertyChange:
    """A transition-eligible property whose resolved value changed."""

    property: str
    old: StyleValue | None
    new: StyleValue | None


@dataclass
class CascadeResult:
    """Base (non-animated) snapshot plus what changed since the prior one."""

    snapshot: ComputedStyleSnapshot
    changes: list[PropertyChange] = field(default_factory=list)
    errors: list[StyleEngineError] = field(default_factory=list)
    first: bool = False


def fold_declarations(rules: Sequence[Rule]) -> list[Declaration]:
    """Fold rules (ascending precedence) into one declaration per property.

    Later declarations overwrite earlier ones; ``!important`` beats anything
    non-important regardless of order. Shorthands expand in place, so a later
    longhand overrides part of an earlier shorthand and vice versa.
    """
    normal: dict[str, Declaration] = {}
    important: dict[str, Declaration] = {}
    for rule in rules:
        for authored in rule.declarations:
            for decl in expand_declaration(authored):
                if decl.important:
                    important[decl.property] = decl
                else:
                    normal[decl.property] = decl
    merged = dict(normal)
    merged.update(important)
    return list(merged.values())


def transition_properties(values: dict[str, StyleValue]) -> frozenset[str]:
    """Names listed in ``transitionProperty`` (may contain ``all``)."""
    listed = values.get("transitionProperty")
    if listed is None:
        return frozenset()
    names = set()
    for item in split_list(listed):
        if isinstance(item, Raw) and item.text and item.text != "none":
            names.add(item.text)
    return frozenset(names)


def is_transition_eligible(prop: str, eligible: frozenset[str]) -> bool:
    if prop in ENGINE_PROPERTIES or prop.startswith("--"):
        return False
    return prop in eligible or "all" in eligible


class CascadeResolver:
    """Merge matched rules into a resolved snapshot and detect transitions.

    The node's custom properties are written into the shared
    :class:`ScopeRegistry` before substitution so descendants see them on
    their next recompute.
    """

    def __init__(self, registry: ScopeRegistry, config: EngineConfig | None = None) -> None:
        self.registry = registry
        self.config = config or EngineConfig()

    def compute(
        self,
        node_id: str,
        matched_rules: Sequence[Rule],
        prior: ComputedStyleSnapshot | None = None,
        time: float = 0.0,
    ) -> CascadeResult:
        declarations = fold_declarations(matched_rules)

        self.registry.set_values(
            node_id, {d.property: d.value for d in declarations if d.is_variable}
        )
        resolution = resolve_declarations(
            declarations, node_id, self.registry, self.config.max_variable_depth
        )
        # A shorthand given wholly through var() expands once resolved.
        for name in [n for n in resolution.values if n in SHORTHANDS]:
            longhands = expand_shorthand(name, resolution.values[name])
            if longhands is not None:
                del resolution.values[name]
                resolution.values.update(longhands)
        snapshot = ComputedStyleSnapshot(
            node_id=node_id,
            time=time,
            props=resolution.values,
            variables=resolution.variables,
        )

        changes: list[PropertyChange] = []
        if prior is not None:
            eligible = transition_properties(resolution.values)
            for prop in _union_keys(prior.props, resolution.values):
                if not is_transition_eligible(prop, eligible):
                    continue
                old = prior.props.get(prop)
                new = resolution.values.get(prop)
                if old != new:
                    changes.append(PropertyChange(prop, old, new))

        if changes:
            logger.debug(
                "Cascade on %s changed %s", node_id, ", ".join(c.property for c in changes)
            )
        return CascadeResult(
            snapshot=snapshot,
            changes=changes,
            errors=list(resolution.errors),
            first=prior is None,
        )


def _union_keys(a: dict[str, StyleValue], b: dict[str, StyleValue]) -> list[str]:
    keys = dict.fromkeys(a)
    keys.update(dict.fromkeys(b))
    return list(keys)
