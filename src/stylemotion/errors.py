"""Error taxonomy for style resolution and animation.

All of these are node-local: the engine records them as diagnostics and
keeps going with the rest of the tree.
"""

from __future__ import annotations


class StyleEngineError(Exception):
    """Base class for recoverable resolution and interpolation failures."""

    kind = "style_error"

    def __init__(self, message: str, property: str | None = None) -> None:
        self.property = property
        super().__init__(message)


class CyclicVariableError(StyleEngineError):
    """A variable references itself (directly or transitively) or nests too deep."""

    kind = "cyclic_variable"

    def __init__(self, name: str, chain: tuple[str, ...] = (), property: str | None = None):
        self.name = name
        self.chain = chain
        path = " -> ".join(chain + (name,)) if chain else name
        super().__init__(f"Cyclic variable reference: {path}", property=property)


class UndefinedVariableError(StyleEngineError):
    """A variable reference has no value in scope and no fallback."""

    kind = "undefined_variable"

    def __init__(self, name: str, property: str | None = None):
        self.name = name
        super().__init__(f"Undefined variable {name}", property=property)


class UnsupportedInterpolationError(StyleEngineError):
    """Two values cannot be interpolated (kind or arity mismatch)."""

    kind = "unsupported_interpolation"


class InvalidCurveError(StyleEngineError):
    """A timing function is malformed or outside the valid monotonic range."""

    kind = "invalid_curve"


class MissingLayoutWarning(UserWarning):
    """A percentage needed layout dimensions that have not been reported yet."""

    kind = "missing_layout"

    def __init__(self, message: str, property: str | None = None) -> None:
        self.property = property
        super().__init__(message)
