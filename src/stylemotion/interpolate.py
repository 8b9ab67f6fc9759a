"""Value interpolation and keyframe sampling.

Interpolation is a closed switch over value-kind pairs. Any pairing without
a rule raises ``UnsupportedInterpolationError`` so callers can fall back to
the non-animated value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping

from stylemotion.easing import LINEAR, TimingFunction, timing_or_linear
from stylemotion.errors import (
    InvalidCurveError,
    MissingLayoutWarning,
    StyleEngineError,
    UnsupportedInterpolationError,
)
from stylemotion.model.keyframes import KeyframeDefinition
from stylemotion.model.snapshot import LayoutBox
from stylemotion.model.values import (
    TRANSLATE_AXES,
    Angle,
    Color,
    Function,
    Percentage,
    Raw,
    Scalar,
    StyleValue,
    TransformFunction,
    TransformList,
    contains_variables,
    identity_transform,
    neutral_value,
)

__all__ = [
    "KeyframeSample",
    "interpolate_values",
    "interpolate_keyframes",
    "resolve_layout_percentages",
]

logger = logging.getLogger(__name__)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _is_none(value: StyleValue | None) -> bool:
    return value is None or (isinstance(value, Raw) and value.text == "none")


def interpolate_values(
    prop: str,
    a: StyleValue | None,
    b: StyleValue | None,
    t: float,
    layout: LayoutBox | None = None,
) -> StyleValue:
    """Interpolate from *a* to *b* at eased fraction *t*."""
    if a == b and a is not None:
        return a

    if isinstance(a, TransformList) and _is_none(b):
        b = identity_transform(a)
    elif isinstance(b, TransformList) and _is_none(a):
        a = identity_transform(b)

    if isinstance(a, Scalar) and isinstance(b, Scalar):
        if a.unit == b.unit:
            return Scalar(_lerp(a.number, b.number, t), a.unit)
        if a.unit is None and a.number == 0:
            return Scalar(_lerp(0, b.number, t), b.unit)
        if b.unit is None and b.number == 0:
            return Scalar(_lerp(a.number, 0, t), a.unit)
    elif isinstance(a, Percentage) and isinstance(b, Percentage):
        return Percentage(_lerp(a.number, b.number, t))
    elif isinstance(a, Angle) and isinstance(b, Angle):
        if a.unit == b.unit:
            return Angle(_lerp(a.number, b.number, t), a.unit)
        return Angle(_lerp(a.to_degrees(), b.to_degrees(), t), "deg")
    elif isinstance(a, Color) and isinstance(b, Color):
        return Color(
            _lerp(a.r, b.r, t),
            _lerp(a.g, b.g, t),
            _lerp(a.b, b.b, t),
            _lerp(a.a, b.a, t),
        )
    elif isinstance(a, Function) and isinstance(b, Function):
        if a.name == b.name and len(a.args) == len(b.args):
            return Function(
                a.name,
                tuple(interpolate_values(prop, x, y, t, layout) for x, y in zip(a.args, b.args)),
            )
    elif isinstance(a, TransformList) and isinstance(b, TransformList):
        return _interpolate_transforms(prop, a, b, t, layout)

    raise UnsupportedInterpolationError(
        f"Cannot interpolate {prop} from {_describe(a)} to {_describe(b)}", property=prop
    )


def _interpolate_transforms(
    prop: str, a: TransformList, b: TransformList, t: float, layout: LayoutBox | None
) -> TransformList:
    # Mismatched lists are an error; only `none` is expanded to identity.
    if a.names() != b.names():
        raise UnsupportedInterpolationError(
            f"Transform lists do not align for {prop}: {a.names()} vs {b.names()}",
            property=prop,
        )
    functions = []
    for fa, fb in zip(a.functions, b.functions):
        if len(fa.args) != len(fb.args):
            raise UnsupportedInterpolationError(
                f"{fa.name}() arity differs for {prop}: {len(fa.args)} vs {len(fb.args)}",
                property=prop,
            )
        args = []
        for index, (x, y) in enumerate(zip(fa.args, fb.args)):
            if fa.name in TRANSLATE_AXES and type(x) is not type(y):
                axis = TRANSLATE_AXES[fa.name][min(index, len(TRANSLATE_AXES[fa.name]) - 1)]
                x, y = _to_pixels(x, axis, layout), _to_pixels(y, axis, layout)
            args.append(interpolate_values(prop, x, y, t, layout))
        functions.append(TransformFunction(fa.name, tuple(args)))
    return TransformList(tuple(functions))


def _to_pixels(value: StyleValue, axis: str, layout: LayoutBox | None) -> StyleValue:
    if isinstance(value, Percentage):
        size = getattr(layout, axis) if layout is not None else 0
        return Scalar(value.number / 100 * size)
    if isinstance(value, Scalar) and value.unit == "px":
        return Scalar(value.number)
    return value


def _describe(value: StyleValue | None) -> str:
    return "unset" if value is None else type(value).__name__


# ---------------------------------------------------------------------------
# Keyframes
# ---------------------------------------------------------------------------


@dataclass
class KeyframeSample:
    """Interpolated values for one progress point, plus per-property failures."""

    values: dict[str, StyleValue] = field(default_factory=dict)
    errors: list[StyleEngineError] = field(default_factory=list)


@dataclass(frozen=True)
class _TrackPoint:
    offset: float
    value: StyleValue | None
    timing: StyleValue | None = None


def _track(
    definition: KeyframeDefinition,
    prop: str,
    base: StyleValue | None,
    resolve: Callable[[StyleValue], StyleValue] | None = None,
) -> list[_TrackPoint]:
    """Stops that declare *prop*, with implicit 0/1 endpoints from *base*.

    Stop values go through *resolve* when they reference variables. Inside a
    transform track a ``none`` stop reads as the identity of its sibling list.
    """
    points: list[_TrackPoint] = []
    for stop in definition.stops:
        value = stop.value_for(prop)
        if value is None:
            continue
        if resolve is not None and contains_variables(value):
            value = resolve(value)
        points.append(_TrackPoint(stop.offset, value, stop.timing_function))

    templates = [p.value for p in points if isinstance(p.value, TransformList)]
    if templates:
        points = [
            _TrackPoint(p.offset, identity_transform(templates[0]), p.timing) if _is_none(p.value) else p
            for p in points
        ]

    fallback = base
    if fallback is None and points:
        fallback = neutral_value(points[0].value)  # type: ignore[arg-type]
    if points[0].offset != 0.0:
        points.insert(0, _TrackPoint(0.0, fallback))
    if points[-1].offset != 1.0:
        points.append(_TrackPoint(1.0, fallback))
    return points


def interpolate_keyframes(
    definition: KeyframeDefinition,
    progress: float,
    base: Mapping[str, StyleValue] | None = None,
    layout: LayoutBox | None = None,
    default_timing: TimingFunction = LINEAR,
    resolve: Callable[[StyleValue], StyleValue] | None = None,
) -> KeyframeSample:
    """Sample every property of *definition* at *progress* in [0, 1].

    Properties a boundary stop does not declare take *base* (the node's
    non-animated value) as that endpoint. Exact stop hits return the stop's
    literal value. A property whose stop values fail to resolve or
    interpolate is dropped and its error recorded.
    """
    progress = min(max(progress, 0.0), 1.0)
    base = base or {}
    sample = KeyframeSample()
    for prop in definition.properties:
        try:
            points = _track(definition, prop, base.get(prop), resolve)
            value = _sample_track(prop, points, progress, layout, default_timing, sample.errors)
        except StyleEngineError as exc:
            exc.property = prop
            logger.debug("Keyframes %s dropped %s: %s", definition.name, prop, exc)
            sample.errors.append(exc)
            continue
        if value is not None:
            sample.values[prop] = value
    return sample


def _sample_track(
    prop: str,
    points: list[_TrackPoint],
    progress: float,
    layout: LayoutBox | None,
    default_timing: TimingFunction,
    errors: list[StyleEngineError],
) -> StyleValue | None:
    for point in points:
        if point.offset == progress:
            return point.value

    for lower, upper in zip(points, points[1:]):
        if lower.offset < progress < upper.offset:
            local_t = (progress - lower.offset) / (upper.offset - lower.offset)
            timing = default_timing
            if lower.timing is not None:
                timing, error = timing_or_linear(lower.timing)
                if error is not None:
                    errors.append(_with_property(error, prop))
            return interpolate_values(prop, lower.value, upper.value, timing.evaluate(local_t), layout)
    return None


def _with_property(error: InvalidCurveError, prop: str) -> InvalidCurveError:
    error.property = prop
    return error


def resolve_layout_percentages(
    prop: str, value: StyleValue, layout: LayoutBox | None
) -> tuple[StyleValue, list[MissingLayoutWarning]]:
    """Convert translate percentages inside a transform list to pixels.

    Without layout the percentage resolves to 0 and a warning is returned;
    the next layout report corrects it.
    """
    if not isinstance(value, TransformList):
        return value, []
    warnings: list[MissingLayoutWarning] = []
    functions = []
    for fn in value.functions:
        axes = TRANSLATE_AXES.get(fn.name)
        if axes is None or not any(isinstance(arg, Percentage) for arg in fn.args):
            functions.append(fn)
            continue
        if layout is None:
            warnings.append(
                MissingLayoutWarning(
                    f"{prop}: {fn.name}() percentage resolved against missing layout",
                    property=prop,
                )
            )
        args = tuple(
            _to_pixels(arg, axes[min(i, len(axes) - 1)], layout) if isinstance(arg, Percentage) else arg
            for i, arg in enumerate(fn.args)
        )
        functions.append(TransformFunction(fn.name, args))
    return TransformList(tuple(functions)), warnings
