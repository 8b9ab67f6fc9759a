"""Parse declaration value text into style values, and format them back.

Examples:
    parse_value("100%")                 -> Percentage(100)
    parse_value("rotate(360deg)")       -> TransformList((rotate(360deg),))
    parse_value("hsl(0 84.2% 60.2%)")   -> Color(239, 68, 68, 1)
    parse_value("hsl(0 84.2% var(--l))") -> Function("hsl", (...))
"""

from __future__ import annotations

import re

from stylemotion.model.values import (
    ANGLE_UNITS,
    TRANSFORM_FUNCTIONS,
    Angle,
    Color,
    Function,
    Percentage,
    Raw,
    Scalar,
    StyleValue,
    TransformFunction,
    TransformList,
    VariableRef,
)

__all__ = [
    "parse_value",
    "format_value",
    "format_number",
    "split_list",
    "split_entries",
    "split_words",
]

# A number followed by an optional unit or percent sign.
_NUMBER_RE = re.compile(
    r"""
    ^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)   # numeric part
    (?P<unit>%|[a-zA-Z]+)?$                                # unit, if any
    """,
    re.VERBOSE,
)

# A complete function call: name(args)
_FUNCTION_RE = re.compile(r"^(?P<name>[a-zA-Z_-][a-zA-Z0-9_-]*)\((?P<args>.*)\)$", re.DOTALL)

_HEX_RE = re.compile(r"^#(?P<hex>[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

NAMED_COLORS: dict[str, Color] = {
    "transparent": Color(0, 0, 0, 0),
    "black": Color(0, 0, 0),
    "white": Color(255, 255, 255),
    "red": Color(255, 0, 0),
    "green": Color(0, 128, 0),
    "lime": Color(0, 255, 0),
    "blue": Color(0, 0, 255),
    "yellow": Color(255, 255, 0),
    "orange": Color(255, 165, 0),
    "purple": Color(128, 0, 128),
    "gray": Color(128, 128, 128),
    "grey": Color(128, 128, 128),
}

_COLOR_FUNCTIONS = {"rgb", "rgba", "hsl", "hsla"}


def parse_value(text: str) -> StyleValue:
    """Parse a single declaration value."""
    text = text.strip()
    if not text:
        return Raw("")
    if len(_split_top_level(text, ",")) > 1:
        return Raw(text)
    tokens = _split_top_level(text, " ")
    if len(tokens) > 1:
        parsed = [_parse_token(token) for token in tokens]
        if all(isinstance(p, TransformList) for p in parsed):
            return TransformList(tuple(fn for p in parsed for fn in p.functions))  # type: ignore[union-attr]
        return Raw(text)
    return _parse_token(text)


def split_list(value: StyleValue) -> list[StyleValue]:
    """Split a comma-separated ``Raw`` list into parsed items."""
    if isinstance(value, Raw) and "," in value.text:
        return [parse_value(part) for part in _split_top_level(value.text, ",")]
    return [value]


def split_entries(text: str) -> list[str]:
    """Split *text* on top-level commas."""
    return _split_top_level(text, ",")


def split_words(text: str) -> list[str]:
    """Split *text* on top-level whitespace, keeping function calls whole."""
    return _split_top_level(text, " ")


def _parse_token(token: str) -> StyleValue:
    match = _NUMBER_RE.match(token)
    if match:
        number = _to_number(match.group("number"))
        unit = match.group("unit")
        if unit == "%":
            return Percentage(number)
        if unit and unit.lower() in ANGLE_UNITS:
            return Angle(number, unit.lower())
        return Scalar(number, unit)

    match = _HEX_RE.match(token)
    if match:
        return _parse_hex(match.group("hex"))

    if token.lower() in NAMED_COLORS:
        return NAMED_COLORS[token.lower()]

    match = _FUNCTION_RE.match(token)
    if match:
        return _parse_function(match.group("name"), match.group("args"))

    return Raw(token)


def _parse_function(name: str, raw_args: str) -> StyleValue:
    if name == "var":
        parts = _split_top_level(raw_args, ",")
        var_name = parts[0].strip()
        fallback = parse_value(",".join(parts[1:])) if len(parts) > 1 else None
        return VariableRef(var_name, fallback)

    args = tuple(parse_value(arg) for arg in _split_args(raw_args))
    if name in TRANSFORM_FUNCTIONS:
        return TransformList((TransformFunction(name, args),))
    if name in _COLOR_FUNCTIONS:
        color = _color_from_args(name, args)
        if color is not None:
            return color
    return Function(name, args)


def _split_args(raw_args: str) -> list[str]:
    """Split function arguments on commas, or whitespace for the modern syntax."""
    parts = _split_top_level(raw_args, ",")
    if len(parts) == 1:
        parts = [p for p in _split_top_level(raw_args, " ") if p != "/"]
    return [p for p in (part.strip() for part in parts) if p]


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split *text* on *separator*, ignoring separators nested in parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if depth == 0 and (char == separator or (separator == " " and char.isspace())):
            if current:
                parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if current and "".join(current).strip():
        parts.append("".join(current).strip())
    return parts


def _to_number(raw: str) -> float:
    number = float(raw)
    return int(number) if number.is_integer() and "e" not in raw.lower() and "." not in raw else number


def _parse_hex(digits: str) -> Color:
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1
    return Color(r, g, b, a)


def _color_from_args(name: str, args: tuple[StyleValue, ...]) -> Color | None:
    """Build a ``Color`` from literal arguments; None if any argument is not literal."""
    if len(args) not in (3, 4):
        return None
    alpha: float = 1
    if len(args) == 4:
        last = args[3]
        if isinstance(last, Percentage):
            alpha = last.number / 100
        elif isinstance(last, Scalar) and last.unit is None:
            alpha = last.number
        else:
            return None

    if name.startswith("rgb"):
        channels = []
        for arg in args[:3]:
            if isinstance(arg, Percentage):
                channels.append(round(arg.number * 255 / 100))
            elif isinstance(arg, Scalar) and arg.unit is None:
                channels.append(round(arg.number))
            else:
                return None
        return Color(channels[0], channels[1], channels[2], alpha)

    hue, sat, light = args[:3]
    if isinstance(hue, Angle):
        h = hue.to_degrees()
    elif isinstance(hue, Scalar) and hue.unit is None:
        h = float(hue.number)
    else:
        return None
    if not (isinstance(sat, Percentage) and isinstance(light, Percentage)):
        return None
    r, g, b = _hsl_to_rgb(h, sat.number / 100, light.number / 100)
    return Color(r, g, b, alpha)


def _hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    def channel(n: int) -> int:
        k = (n + h / 30) % 12
        a = s * min(l, 1 - l)
        return round((l - a * max(-1, min(k - 3, 9 - k, 1))) * 255)

    return channel(0), channel(8), channel(4)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_number(number: float) -> str:
    """Shortest round-trip rendering; integral floats print without ``.0``."""
    if isinstance(number, float):
        if number.is_integer():
            return str(int(number))
        return repr(number)
    return str(number)


def format_value(value: StyleValue) -> str:
    """Render a value the way it is displayed to the host and in diagnostics."""
    if isinstance(value, Scalar):
        return format_number(value.number) + (value.unit or "")
    if isinstance(value, Percentage):
        return f"{format_number(value.number)}%"
    if isinstance(value, Angle):
        return f"{format_number(value.number)}{value.unit}"
    if isinstance(value, Color):
        channels = ", ".join(str(round(c)) for c in (value.r, value.g, value.b))
        return f"rgba({channels}, {format_number(value.a)})"
    if isinstance(value, Function):
        return f"{value.name}({', '.join(format_value(a) for a in value.args)})"
    if isinstance(value, TransformList):
        return " ".join(
            f"{fn.name}({', '.join(format_value(a) for a in fn.args)})"
            for fn in value.functions
        )
    if isinstance(value, VariableRef):
        if value.fallback is None:
            return f"var({value.name})"
        return f"var({value.name}, {format_value(value.fallback)})"
    return value.text
