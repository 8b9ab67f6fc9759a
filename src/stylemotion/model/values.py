"""Value model: the tagged union of resolved and unresolved style values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Scalar:
    """A plain number with an optional unit (``px``, ``ms``, ``s``, ...)."""

    number: float
    unit: str | None = None


@dataclass(frozen=True)
class Percentage:
    number: float


@dataclass(frozen=True)
class Angle:
    number: float
    unit: str = "deg"  # deg, rad, grad, turn

    def to_degrees(self) -> float:
        return self.number * _DEGREES_PER_UNIT[self.unit]


_DEGREES_PER_UNIT = {"deg": 1.0, "rad": 57.29577951308232, "grad": 0.9, "turn": 360.0}

ANGLE_UNITS = frozenset(_DEGREES_PER_UNIT)


@dataclass(frozen=True)
class Color:
    """An sRGB color; channels 0-255, alpha 0-1."""

    r: float
    g: float
    b: float
    a: float = 1.0


@dataclass(frozen=True)
class Function:
    """A function call that is not a transform, e.g. ``hsl(0 84.2% var(--x))``."""

    name: str
    args: tuple[StyleValue, ...]


@dataclass(frozen=True)
class TransformFunction:
    name: str
    args: tuple[StyleValue, ...]


@dataclass(frozen=True)
class TransformList:
    functions: tuple[TransformFunction, ...]

    def names(self) -> tuple[str, ...]:
        return tuple(fn.name for fn in self.functions)


@dataclass(frozen=True)
class VariableRef:
    """A ``var(--name, fallback)`` reference awaiting substitution."""

    name: str
    fallback: StyleValue | None = None


@dataclass(frozen=True)
class Raw:
    """A value not understood structurally; passed through untouched."""

    text: str


StyleValue = Union[
    Scalar, Percentage, Angle, Color, Function, TransformList, VariableRef, Raw
]

NONE = Raw("none")

# Transform functions whose arguments resolve against layout: name -> axes.
TRANSLATE_AXES: dict[str, tuple[str, ...]] = {
    "translateX": ("width",),
    "translateY": ("height",),
    "translate": ("width", "height"),
}

TRANSFORM_FUNCTIONS = frozenset(
    {
        "translate",
        "translateX",
        "translateY",
        "scale",
        "scaleX",
        "scaleY",
        "rotate",
        "rotateX",
        "rotateY",
        "rotateZ",
        "skewX",
        "skewY",
        "perspective",
        "matrix",
    }
)


def contains_variables(value: StyleValue | None) -> bool:
    """Return True if *value* has a ``VariableRef`` anywhere inside it."""
    if isinstance(value, VariableRef):
        return True
    if isinstance(value, Function):
        return any(contains_variables(arg) for arg in value.args)
    if isinstance(value, TransformList):
        return any(
            contains_variables(arg) for fn in value.functions for arg in fn.args
        )
    return False


def identity_transform(template: TransformList) -> TransformList:
    """Return the no-op transform list shaped like *template*."""
    functions = []
    for fn in template.functions:
        if fn.name.startswith("scale"):
            args = tuple(Scalar(1) for _ in fn.args)
        elif fn.name == "perspective":
            # perspective(0) is invalid; 1 is the neutral value used on native hosts.
            args = (Scalar(1),)
        else:
            args = tuple(neutral_value(arg) for arg in fn.args)
        functions.append(TransformFunction(fn.name, args))
    return TransformList(tuple(functions))


def neutral_value(template: StyleValue) -> StyleValue:
    """Return the zero of the same kind as *template*.

    Used as the implicit keyframe endpoint when a property has no base value.
    """
    if isinstance(template, Scalar):
        return Scalar(0, template.unit)
    if isinstance(template, Percentage):
        return Percentage(0)
    if isinstance(template, Angle):
        return Angle(0, template.unit)
    if isinstance(template, Color):
        return Color(0, 0, 0, 0)
    if isinstance(template, TransformList):
        return identity_transform(template)
    return template
