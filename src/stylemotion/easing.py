"""Timing functions: linear, cubic-bezier and steps.

``CubicBezier`` is parametric in ``u``; evaluating it at a time fraction ``t``
means solving ``X(u) = t`` and returning ``Y(u)``. The solve uses a few
Newton-Raphson steps and falls back to bisection when the slope is too flat.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from stylemotion.errors import InvalidCurveError
from stylemotion.model.values import Function, Raw, Scalar, StyleValue

__all__ = [
    "TimingFunction",
    "Linear",
    "CubicBezier",
    "Steps",
    "LINEAR",
    "NAMED_CURVES",
    "parse_timing_function",
    "timing_or_linear",
]

NEWTON_ITERATIONS = 8
NEWTON_MIN_SLOPE = 1e-6
PRECISION = 1e-12
BISECTION_ITERATIONS = 64


class TimingFunction(Protocol):
    """Maps elapsed fraction ``t`` in [0, 1] to eased progress."""

    def evaluate(self, t: float) -> float: ...


def _clamp(t: float) -> float:
    return 0.0 if t < 0.0 else 1.0 if t > 1.0 else t


@dataclass(frozen=True)
class Linear:
    def evaluate(self, t: float) -> float:
        return _clamp(t)


@dataclass(frozen=True)
class CubicBezier:
    """``cubic-bezier(x1, y1, x2, y2)``; x1 and x2 must lie in [0, 1]."""

    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self) -> None:
        points = (self.x1, self.y1, self.x2, self.y2)
        if not all(math.isfinite(p) for p in points):
            raise InvalidCurveError(f"cubic-bezier control points must be finite: {points}")
        if not (0.0 <= self.x1 <= 1.0 and 0.0 <= self.x2 <= 1.0):
            raise InvalidCurveError(
                f"cubic-bezier x values must be within [0, 1], got x1={self.x1}, x2={self.x2}"
            )

    def _coefficients(self, p1: float, p2: float) -> tuple[float, float, float]:
        c = 3.0 * p1
        b = 3.0 * (p2 - p1) - c
        a = 1.0 - c - b
        return a, b, c

    def _sample_x(self, u: float) -> float:
        a, b, c = self._coefficients(self.x1, self.x2)
        return ((a * u + b) * u + c) * u

    def _sample_y(self, u: float) -> float:
        a, b, c = self._coefficients(self.y1, self.y2)
        return ((a * u + b) * u + c) * u

    def _slope_x(self, u: float) -> float:
        a, b, c = self._coefficients(self.x1, self.x2)
        return (3.0 * a * u + 2.0 * b) * u + c

    def solve_u(self, t: float) -> float:
        """Find the curve parameter whose x equals *t*."""
        u = t
        for _ in range(NEWTON_ITERATIONS):
            error = self._sample_x(u) - t
            if abs(error) < PRECISION:
                return u
            slope = self._slope_x(u)
            if abs(slope) < NEWTON_MIN_SLOPE:
                break
            u -= error / slope

        lo, hi = 0.0, 1.0
        u = t
        for _ in range(BISECTION_ITERATIONS):
            x = self._sample_x(u)
            if abs(x - t) < PRECISION:
                return u
            if t > x:
                lo = u
            else:
                hi = u
            u = (lo + hi) / 2.0
        return u

    def evaluate(self, t: float) -> float:
        t = _clamp(t)
        if t in (0.0, 1.0):
            return t
        if self.x1 == self.y1 and self.x2 == self.y2:
            return t
        return self._sample_y(self.solve_u(t))


@dataclass(frozen=True)
class Steps:
    """``steps(count, position)`` with CSS jump semantics."""

    count: int
    position: str = "jump-end"

    def __post_init__(self) -> None:
        position = _STEP_ALIASES.get(self.position, self.position)
        if position not in ("jump-start", "jump-end", "jump-none", "jump-both"):
            raise InvalidCurveError(f"Unknown steps position: {self.position!r}")
        minimum = 2 if position == "jump-none" else 1
        if self.count < minimum:
            raise InvalidCurveError(f"steps() count must be >= {minimum}, got {self.count}")
        object.__setattr__(self, "position", position)

    def evaluate(self, t: float) -> float:
        t = _clamp(t)
        step = math.floor(t * self.count)
        if self.position in ("jump-start", "jump-both"):
            step += 1
        jumps = {
            "jump-start": self.count,
            "jump-end": self.count,
            "jump-none": self.count - 1,
            "jump-both": self.count + 1,
        }[self.position]
        step = min(step, jumps)
        return step / jumps


_STEP_ALIASES = {"start": "jump-start", "end": "jump-end"}

LINEAR = Linear()

NAMED_CURVES: dict[str, TimingFunction] = {
    "linear": LINEAR,
    "ease": CubicBezier(0.25, 0.1, 0.25, 1.0),
    "ease-in": CubicBezier(0.42, 0.0, 1.0, 1.0),
    "ease-out": CubicBezier(0.0, 0.0, 0.58, 1.0),
    "ease-in-out": CubicBezier(0.42, 0.0, 0.58, 1.0),
    "step-start": Steps(1, "jump-start"),
    "step-end": Steps(1, "jump-end"),
}


def parse_timing_function(value: StyleValue | str) -> TimingFunction:
    """Build a timing function from a declaration value.

    Raises ``InvalidCurveError`` for anything that is not a known curve.
    """
    if isinstance(value, str):
        from stylemotion.values import parse_value

        value = parse_value(value)

    if isinstance(value, Raw):
        curve = NAMED_CURVES.get(value.text.strip().lower())
        if curve is None:
            raise InvalidCurveError(f"Unknown timing function: {value.text!r}")
        return curve

    if isinstance(value, Function) and value.name == "cubic-bezier":
        numbers = [_unitless(arg) for arg in value.args]
        if len(numbers) != 4 or any(n is None for n in numbers):
            raise InvalidCurveError("cubic-bezier() needs four unitless numbers")
        return CubicBezier(*numbers)  # type: ignore[arg-type]

    if isinstance(value, Function) and value.name == "steps":
        if not value.args or len(value.args) > 2:
            raise InvalidCurveError("steps() needs a count and an optional position")
        count = _unitless(value.args[0])
        if count is None or count != int(count):
            raise InvalidCurveError("steps() count must be an integer")
        position = "jump-end"
        if len(value.args) == 2:
            pos = value.args[1]
            if not isinstance(pos, Raw):
                raise InvalidCurveError("steps() position must be a keyword")
            position = pos.text
        return Steps(int(count), position)

    raise InvalidCurveError(f"Unsupported timing function value: {value!r}")


def timing_or_linear(value: StyleValue | str | None) -> tuple[TimingFunction, InvalidCurveError | None]:
    """Parse *value*, falling back to linear and returning the error on failure."""
    if value is None:
        return LINEAR, None
    try:
        return parse_timing_function(value), None
    except InvalidCurveError as exc:
        return LINEAR, exc


def _unitless(value: StyleValue) -> float | None:
    if isinstance(value, Scalar) and value.unit is None:
        return float(value.number)
    return None
