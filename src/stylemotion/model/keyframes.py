"""Keyframe definitions: named, ordered sets of offset stops."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from stylemotion.model.declarations import Declaration
from stylemotion.model.values import StyleValue

# Declaring this inside a stop overrides the easing of the segment it starts.
STOP_TIMING_PROPERTY = "animationTimingFunction"


@dataclass(frozen=True)
class KeyframeStop:
    offset: float
    declarations: tuple[Declaration, ...]
    timing_function: StyleValue | None = None

    def value_for(self, prop: str) -> StyleValue | None:
        for decl in reversed(self.declarations):
            if decl.property == prop:
                return decl.value
        return None

    @property
    def properties(self) -> list[str]:
        seen: dict[str, None] = {}
        for decl in self.declarations:
            seen[decl.property] = None
        return list(seen)


@dataclass(frozen=True)
class KeyframeDefinition:
    """An ``@keyframes`` block. Stops are sorted and unique per offset."""

    name: str
    stops: tuple[KeyframeStop, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "stops", _normalize_stops(self.stops))

    @property
    def properties(self) -> list[str]:
        seen: dict[str, None] = {}
        for stop in self.stops:
            for prop in stop.properties:
                seen[prop] = None
        return list(seen)

    def stop_at(self, offset: float) -> KeyframeStop | None:
        for stop in self.stops:
            if stop.offset == offset:
                return stop
        return None

    @classmethod
    def from_mapping(cls, name: str, blocks: Mapping[str, Mapping[str, Any]]) -> KeyframeDefinition:
        """Build a definition from ``{"from": {...}, "50%": {...}, "0%, 100%": {...}}``.

        Values may be strings (parsed with :func:`stylemotion.values.parse_value`)
        or already-built style values.
        """
        from stylemotion.values import parse_value

        stops: list[KeyframeStop] = []
        for selector, props in blocks.items():
            declarations: list[Declaration] = []
            timing: StyleValue | None = None
            for prop, raw in props.items():
                value = parse_value(raw) if isinstance(raw, str) else raw
                if prop == STOP_TIMING_PROPERTY:
                    timing = value
                    continue
                declarations.append(Declaration(prop, value))
            for offset in parse_offsets(selector):
                stops.append(KeyframeStop(offset, tuple(declarations), timing))
        return cls(name=name, stops=tuple(stops))


def parse_offsets(selector: str) -> list[float]:
    """Parse a keyframe selector list such as ``"0%, 100%"`` or ``"from"``."""
    offsets: list[float] = []
    for part in selector.split(","):
        part = part.strip().lower()
        if part == "from":
            offsets.append(0.0)
        elif part == "to":
            offsets.append(1.0)
        elif part.endswith("%"):
            try:
                offsets.append(float(part[:-1]) / 100.0)
            except ValueError:
                raise ValueError(f"Invalid keyframe selector: {selector!r}") from None
        else:
            raise ValueError(f"Invalid keyframe selector: {selector!r}")
    return offsets


def _normalize_stops(stops: Iterable[KeyframeStop]) -> tuple[KeyframeStop, ...]:
    merged: dict[float, KeyframeStop] = {}
    for stop in stops:
        if not 0.0 <= stop.offset <= 1.0:
            raise ValueError(f"Keyframe offset {stop.offset} outside [0, 1]")
        prior = merged.get(stop.offset)
        if prior is None:
            merged[stop.offset] = stop
            continue
        timing = stop.timing_function if stop.timing_function is not None else prior.timing_function
        merged[stop.offset] = KeyframeStop(
            stop.offset, prior.declarations + stop.declarations, timing
        )
    return tuple(merged[offset] for offset in sorted(merged))
