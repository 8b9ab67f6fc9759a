"""Expansion of the ``animation`` and ``transition`` shorthands.

``animation: bounce 1s infinite`` becomes ``animationName: bounce``,
``animationDuration: 1s`` and ``animationIterationCount: infinite``, with
every other animation longhand reset to its initial value. Comma-separated
entries expand to comma-separated longhand lists, index-aligned.
"""

from __future__ import annotations

from typing import Callable

from stylemotion.easing import NAMED_CURVES
from stylemotion.model.declarations import Declaration
from stylemotion.model.values import Function, Raw, Scalar, StyleValue, contains_variables
from stylemotion.values import format_value, parse_value, split_entries, split_words

__all__ = ["SHORTHANDS", "expand_declaration", "expand_shorthand"]

TIME_UNITS = {"ms", "s"}
DIRECTIONS = {"normal", "reverse", "alternate", "alternate-reverse"}
FILL_MODES = {"none", "forwards", "backwards", "both"}
PLAY_STATES = {"running", "paused"}

# Longhand -> initial value.
ANIMATION_INITIAL = {
    "animationName": "none",
    "animationDuration": "0s",
    "animationTimingFunction": "ease",
    "animationDelay": "0s",
    "animationIterationCount": "1",
    "animationDirection": "normal",
    "animationFillMode": "none",
}

TRANSITION_INITIAL = {
    "transitionProperty": "all",
    "transitionDuration": "0s",
    "transitionTimingFunction": "ease",
    "transitionDelay": "0s",
}


def _is_time(value: StyleValue) -> bool:
    return isinstance(value, Scalar) and value.unit in TIME_UNITS


def _is_timing(value: StyleValue) -> bool:
    if isinstance(value, Function):
        return value.name in ("cubic-bezier", "steps")
    return isinstance(value, Raw) and value.text.lower() in NAMED_CURVES


def _animation_entry(text: str) -> dict[str, str]:
    entry: dict[str, str] = {}
    times: list[str] = []
    for word in split_words(text):
        value = parse_value(word)
        keyword = word.lower()
        if _is_time(value):
            times.append(word)
        elif _is_timing(value) and "animationTimingFunction" not in entry:
            entry["animationTimingFunction"] = word
        elif keyword == "infinite" or (isinstance(value, Scalar) and value.unit is None):
            entry["animationIterationCount"] = word
        elif keyword in DIRECTIONS and "animationDirection" not in entry:
            entry["animationDirection"] = keyword
        elif keyword in FILL_MODES and "animationFillMode" not in entry:
            entry["animationFillMode"] = keyword
        elif keyword in PLAY_STATES:
            continue
        else:
            entry["animationName"] = word
    # The first time is the duration, the second the delay.
    for prop, word in zip(("animationDuration", "animationDelay"), times):
        entry[prop] = word
    return entry


def _transition_entry(text: str) -> dict[str, str]:
    entry: dict[str, str] = {}
    times: list[str] = []
    for word in split_words(text):
        value = parse_value(word)
        if _is_time(value):
            times.append(word)
        elif _is_timing(value) and "transitionTimingFunction" not in entry:
            entry["transitionTimingFunction"] = word
        else:
            entry["transitionProperty"] = word
    for prop, word in zip(("transitionDuration", "transitionDelay"), times):
        entry[prop] = word
    return entry


SHORTHANDS: dict[str, tuple[dict[str, str], Callable[[str], dict[str, str]]]] = {
    "animation": (ANIMATION_INITIAL, _animation_entry),
    "transition": (TRANSITION_INITIAL, _transition_entry),
}


def expand_shorthand(prop: str, value: StyleValue) -> dict[str, StyleValue] | None:
    """Return the longhands for a shorthand *value*.

    Returns None when *prop* is not a shorthand or *value* still holds
    ``var()`` references, which must be resolved first.
    """
    if prop not in SHORTHANDS or contains_variables(value):
        return None
    text = value.text if isinstance(value, Raw) else format_value(value)
    if "var(" in text:
        return None
    entries = split_entries(text)
    if not entries:
        return None

    initial, parse_entry = SHORTHANDS[prop]
    parsed = [parse_entry(part) for part in entries]
    return {
        longhand: parse_value(", ".join(entry.get(longhand, default) for entry in parsed))
        for longhand, default in initial.items()
    }


def expand_declaration(decl: Declaration) -> list[Declaration]:
    """Replace a shorthand declaration by its longhands, keeping ``!important``."""
    longhands = expand_shorthand(decl.property, decl.value)
    if longhands is None:
        return [decl]
    return [Declaration(prop, value, decl.important) for prop, value in longhands.items()]
