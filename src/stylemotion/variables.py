"""Variable scopes and ``var()`` substitution.

Each node owns one :class:`VariableScope`. Scopes point at their parent by
node id through a :class:`ScopeRegistry` rather than holding the parent
object, so the ancestor chain is an arena lookup, never a reference cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from stylemotion.errors import CyclicVariableError, StyleEngineError, UndefinedVariableError
from stylemotion.model.declarations import Declaration
from stylemotion.model.values import (
    Function,
    StyleValue,
    TransformFunction,
    TransformList,
    VariableRef,
)

__all__ = [
    "VariableScope",
    "ScopeRegistry",
    "VariableResolution",
    "resolve_value",
    "resolve_declarations",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


@dataclass
class VariableScope:
    """Variables declared on one node; ``parent`` is the parent node id."""

    owner: str
    values: dict[str, StyleValue] = field(default_factory=dict)
    parent: str | None = None


class ScopeRegistry:
    """Arena of variable scopes keyed by node id."""

    def __init__(self) -> None:
        self._scopes: dict[str, VariableScope] = {}

    def get(self, owner: str) -> VariableScope | None:
        return self._scopes.get(owner)

    def ensure(self, owner: str, parent: str | None = None) -> VariableScope:
        """Return the scope for *owner*, creating an empty one if needed."""
        scope = self._scopes.get(owner)
        if scope is None:
            scope = VariableScope(owner=owner, parent=parent)
            self._scopes[owner] = scope
        return scope

    def set_values(self, owner: str, values: dict[str, StyleValue]) -> None:
        """Replace the variables declared on *owner* (its own recompute only)."""
        self.ensure(owner).values = dict(values)

    def discard(self, owner: str) -> None:
        self._scopes.pop(owner, None)

    def lookup(self, owner: str, name: str) -> tuple[StyleValue, str] | None:
        """Find *name* on *owner* or its nearest ancestor.

        Returns the value and the id of the scope that declared it.
        """
        visited: set[str] = set()
        current: str | None = owner
        while current is not None and current not in visited:
            visited.add(current)
            scope = self._scopes.get(current)
            if scope is None:
                return None
            if name in scope.values:
                return scope.values[name], current
            current = scope.parent
        return None

    def __contains__(self, owner: str) -> bool:
        return owner in self._scopes


@dataclass
class VariableResolution:
    """Outcome of resolving one node's declarations."""

    values: dict[str, StyleValue] = field(default_factory=dict)
    variables: dict[str, StyleValue] = field(default_factory=dict)
    errors: list[StyleEngineError] = field(default_factory=list)


def resolve_value(
    value: StyleValue,
    owner: str,
    registry: ScopeRegistry,
    max_depth: int = DEFAULT_MAX_DEPTH,
    _chain: tuple[str, ...] = (),
) -> StyleValue:
    """Substitute every ``VariableRef`` inside *value*.

    Raises ``CyclicVariableError`` on self-reference or when nesting exceeds
    *max_depth*, ``UndefinedVariableError`` when a name is missing and has no
    fallback.
    """
    if isinstance(value, VariableRef):
        if value.name in _chain:
            raise CyclicVariableError(value.name, _chain)
        if len(_chain) >= max_depth:
            raise CyclicVariableError(value.name, _chain)
        found = registry.lookup(owner, value.name)
        if found is None:
            if value.fallback is None:
                raise UndefinedVariableError(value.name)
            return resolve_value(value.fallback, owner, registry, max_depth, _chain)
        # Resolve in the scope that declared it, as inherited computed values do.
        target, declared_in = found
        return resolve_value(target, declared_in, registry, max_depth, _chain + (value.name,))
    if isinstance(value, Function):
        return Function(
            value.name,
            tuple(resolve_value(a, owner, registry, max_depth, _chain) for a in value.args),
        )
    if isinstance(value, TransformList):
        return TransformList(
            tuple(
                TransformFunction(
                    fn.name,
                    tuple(resolve_value(a, owner, registry, max_depth, _chain) for a in fn.args),
                )
                for fn in value.functions
            )
        )
    return value


def resolve_declarations(
    declarations: Iterable[Declaration],
    owner: str,
    registry: ScopeRegistry,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> VariableResolution:
    """Resolve already-folded declarations against *owner*'s scope chain.

    A property whose value cannot be resolved is dropped and its error
    recorded; every other property still resolves. Variables declared on the
    node are reported in ``variables`` whether or not anything uses them.
    """
    result = VariableResolution()
    for decl in declarations:
        try:
            if decl.is_variable:
                # Resolve through the chain so self-reference is caught.
                resolved = resolve_value(
                    VariableRef(decl.property), owner, registry, max_depth
                )
                result.variables[decl.property] = resolved
            else:
                result.values[decl.property] = resolve_value(
                    decl.value, owner, registry, max_depth
                )
        except (CyclicVariableError, UndefinedVariableError) as exc:
            exc.property = decl.property
            logger.debug("Dropping %s on %s: %s", decl.property, owner, exc)
            result.errors.append(exc)
    return result

