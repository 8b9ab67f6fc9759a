"""Style engine: node arena, virtual clock and the recompute/tick entry points.

Every entry point runs to completion before returning, so a cascade
recompute (including any animation or transition it spawns) always settles
before the next tick touches the node's instances.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator

from stylemotion.cascade import (
    ENGINE_PROPERTIES,
    CascadeResolver,
    PropertyChange,
    is_transition_eligible,
    transition_properties,
)
from stylemotion.config import EngineConfig
from stylemotion.easing import LINEAR, TimingFunction, timing_or_linear
from stylemotion.events import types as events
from stylemotion.events.bus import EventBus
from stylemotion.interpolate import resolve_layout_percentages
from stylemotion.model.declarations import Rule
from stylemotion.model.diagnostic import Diagnostic, Severity
from stylemotion.model.keyframes import KeyframeDefinition
from stylemotion.model.snapshot import ComputedStyleSnapshot, LayoutBox
from stylemotion.model.values import Raw, Scalar, StyleValue
from stylemotion.scheduler import AnimationSettings, Direction, FillMode, Scheduler
from stylemotion.values import split_list
from stylemotion.variables import ScopeRegistry, resolve_value

__all__ = ["StyleEngine", "NodeRecord", "InteractionState"]

logger = logging.getLogger(__name__)


@dataclass
class InteractionState:
    active: bool = False
    hover: bool = False
    focus: bool = False


@dataclass
class NodeRecord:
    """Everything the engine knows about one host node."""

    id: str
    parent: str | None = None
    props: dict[str, Any] = field(default_factory=dict)  # authored input
    pressable: bool = False
    children: list[str] = field(default_factory=list)
    rules: list[Rule] = field(default_factory=list)
    layout: LayoutBox | None = None
    interaction: InteractionState = field(default_factory=InteractionState)
    base: ComputedStyleSnapshot | None = None
    snapshot: ComputedStyleSnapshot | None = None
    animation_names: tuple[str, ...] = ()
    transition_eligible: frozenset[str] = frozenset()
    container_names: tuple[str, ...] = ()
    cascade_diagnostics: list[Diagnostic] = field(default_factory=list)
    frame_diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.cascade_diagnostics + self.frame_diagnostics

    @property
    def is_container(self) -> bool:
        return bool(self.container_names)

    @property
    def is_pressable(self) -> bool:
        # Containers track interaction state for descendant queries.
        return self.pressable or self.is_container


class StyleEngine:
    """Resolve styles and drive animations for a tree of nodes."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.event_bus = event_bus or EventBus()
        self.scopes = ScopeRegistry()
        self.scheduler = Scheduler()
        self.cascade = CascadeResolver(self.scopes, self.config)
        self.keyframes: dict[str, KeyframeDefinition] = {}
        self._nodes: dict[str, NodeRecord] = {}

    @property
    def now(self) -> float:
        return self.scheduler.now

    # --- registry -------------------------------------------------------------

    def register_keyframes(self, definition: KeyframeDefinition) -> None:
        """Register (or redefine) an ``@keyframes`` block by name."""
        self.keyframes[definition.name] = definition

    def add_node(
        self,
        node_id: str,
        parent: str | None = None,
        props: dict[str, Any] | None = None,
        *,
        pressable: bool = False,
    ) -> NodeRecord:
        if not node_id:
            raise ValueError("Node id must be a non-empty string")
        if node_id in self._nodes:
            raise ValueError(f"Node {node_id!r} already exists")
        if parent is not None:
            self.node(parent).children.append(node_id)
        record = NodeRecord(id=node_id, parent=parent, props=dict(props or {}), pressable=pressable)
        self._nodes[node_id] = record
        self.scopes.ensure(node_id, parent)
        self._recompute(record)
        return record

    def node(self, node_id: str) -> NodeRecord:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise KeyError(f"Unknown node {node_id!r}") from None

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def subtree(self, node_id: str) -> Iterator[NodeRecord]:
        """Yield *node_id* and its descendants, parents before children."""
        stack = [node_id]
        seen: set[str] = set()
        while stack:
            current = stack.pop(0)
            if current in seen or current not in self._nodes:
                continue
            seen.add(current)
            record = self._nodes[current]
            yield record
            stack.extend(record.children)

    def ancestry(self, node_id: str) -> Iterator[NodeRecord]:
        """Yield *node_id* and then each ancestor up to the root."""
        seen: set[str] = set()
        current: str | None = node_id
        while current is not None and current not in seen and current in self._nodes:
            seen.add(current)
            record = self._nodes[current]
            yield record
            current = record.parent

    # --- external stimuli -----------------------------------------------------

    def set_rules(self, node_id: str, rules: Iterable[Rule]) -> ComputedStyleSnapshot:
        """Replace the node's matched rules (ascending precedence) and recompute.

        Descendants are recomputed too since they inherit the node's variables.
        """
        record = self.node(node_id)
        record.rules = list(rules)
        for member in self.subtree(node_id):
            self._recompute(member)
        return self.snapshot(node_id)

    def update_layout(self, node_id: str, width: float, height: float) -> ComputedStyleSnapshot:
        record = self.node(node_id)
        record.layout = LayoutBox(width, height)
        self._compose(record)
        return self.snapshot(node_id)

    def set_interaction(self, node_id: str, **flags: bool) -> None:
        """Update ``active``/``hover``/``focus`` flags for a node."""
        state = self.node(node_id).interaction
        for name, value in flags.items():
            if not hasattr(state, name):
                raise ValueError(f"Unknown interaction flag {name!r}")
            setattr(state, name, bool(value))

    def tick(self, now: float) -> dict[str, ComputedStyleSnapshot]:
        """Advance the virtual clock to *now* and recompose animated nodes."""
        self.scheduler.advance(now)
        updated: dict[str, ComputedStyleSnapshot] = {}
        for node_id in self.scheduler.nodes():
            record = self._nodes.get(node_id)
            if record is None:
                continue
            self._compose(record)
            updated[node_id] = self.snapshot(node_id)
        return updated

    def advance(self, delta: float) -> dict[str, ComputedStyleSnapshot]:
        if delta < 0:
            raise ValueError(f"Cannot advance the clock by a negative amount: {delta}")
        return self.tick(self.now + delta)

    def start_animation(
        self, node_id: str, name: str, settings: AnimationSettings | None = None
    ) -> ComputedStyleSnapshot:
        """Explicitly (re)start animation *name*, replacing a running one."""
        record = self.node(node_id)
        definition = self.keyframes.get(name)
        if definition is None:
            raise KeyError(f"Unknown keyframes {name!r}")
        if settings is None:
            settings = self._animation_settings(
                record.base.props if record.base else {}, 0, [], node_id
            )
        self._start(record, definition, settings)
        if name not in record.animation_names:
            record.animation_names = record.animation_names + (name,)
        self._compose(record)
        return self.snapshot(node_id)

    def remove_node(self, node_id: str) -> None:
        """Remove a node and its descendants, tearing down their instances."""
        record = self.node(node_id)
        for member in list(self.subtree(node_id)):
            self.scheduler.remove_node(member.id)
            self.scopes.discard(member.id)
            del self._nodes[member.id]
        if record.parent is not None and record.parent in self._nodes:
            self._nodes[record.parent].children.remove(node_id)
        logger.debug("Removed node %s", node_id)

    # --- outputs ----------------------------------------------------------------

    def snapshot(self, node_id: str) -> ComputedStyleSnapshot:
        record = self.node(node_id)
        if record.snapshot is None:
            raise RuntimeError(f"Node {node_id!r} has no computed snapshot")
        return record.snapshot

    def debug(self, node_id: str) -> dict[str, Any]:
        from stylemotion.introspection import build_introspection

        return build_introspection(self, node_id)

    def log_debug(self, node_id: str) -> str:
        """Log and return the rendered introspection for *node_id*."""
        from stylemotion.introspection import render_introspection

        text = render_introspection(self, node_id)
        logger.info("%s", text)
        return text

    # --- internals --------------------------------------------------------------

    def _recompute(self, record: NodeRecord) -> None:
        result = self.cascade.compute(record.id, record.rules, record.base, time=self.now)
        diagnostics = [Diagnostic.from_error(e, record.id) for e in result.errors]
        values = result.snapshot.props

        record.transition_eligible = transition_properties(values)
        record.container_names = _names(values.get("containerName"))
        record.base = result.snapshot
        self._sync_animations(record, values, diagnostics)
        self._start_transitions(record, values, result.changes, diagnostics)

        self._report(record, diagnostics, record.cascade_diagnostics)
        record.cascade_diagnostics = diagnostics
        self._compose(record)

    def _base_values(self, record: NodeRecord) -> dict[str, StyleValue]:
        if record.base is None:
            return {}
        return {k: v for k, v in record.base.props.items() if k not in ENGINE_PROPERTIES}

    def _resolver(self, node_id: str) -> Callable[[StyleValue], StyleValue]:
        def resolve(value: StyleValue) -> StyleValue:
            return resolve_value(value, node_id, self.scopes, self.config.max_variable_depth)

        return resolve

    def _sync_animations(
        self, record: NodeRecord, values: dict[str, StyleValue], diagnostics: list[Diagnostic]
    ) -> None:
        names = list(_names(values.get("animationName")))
        previous = record.animation_names

        for name in previous:
            if name not in names and self.scheduler.cancel_animation(record.id, name):
                self.event_bus.emit(events.AnimationCancelled(node_id=record.id, name=name))

        started: list[str] = []
        for index, name in enumerate(names):
            definition = self.keyframes.get(name)
            if definition is None:
                diagnostics.append(
                    Diagnostic(
                        kind="unknown_keyframes",
                        severity=Severity.WARNING,
                        message=f"No @keyframes named {name!r}",
                        node_id=record.id,
                        prop="animationName",
                    )
                )
                continue
            settings = self._animation_settings(values, index, diagnostics, record.id)
            running = {a.name: a for a in self.scheduler.animations(record.id)}
            if name in previous:
                # Same animation still listed: keep its clock, take new timing.
                # A finished one that was removed stays finished.
                if name in running:
                    running[name].settings = settings
            else:
                self._start(record, definition, settings)
            started.append(name)

        self.scheduler.order_animations(record.id, started)
        record.animation_names = tuple(started)

    def _start(
        self, record: NodeRecord, definition: KeyframeDefinition, settings: AnimationSettings
    ) -> None:
        _, replaced = self.scheduler.start_animation(record.id, definition, settings, self.now)
        if replaced is not None:
            self.event_bus.emit(
                events.AnimationReplaced(node_id=record.id, name=definition.name, time=self.now)
            )
        else:
            self.event_bus.emit(
                events.AnimationStarted(node_id=record.id, name=definition.name, time=self.now)
            )

    def _start_transitions(
        self,
        record: NodeRecord,
        values: dict[str, StyleValue],
        changes: list[PropertyChange],
        diagnostics: list[Diagnostic],
    ) -> None:
        if not changes:
            return
        listed = list(_names(values.get("transitionProperty")))
        for change in changes:
            if change.new is None:
                self.scheduler.cancel_transition(record.id, change.property)
                continue
            if change.old is None:
                continue
            if change.property in listed:
                index = listed.index(change.property)
            else:
                index = listed.index("all") if "all" in listed else 0
            duration = _time_ms(_pick(values.get("transitionDuration"), index))
            if duration <= 0:
                self.scheduler.cancel_transition(record.id, change.property)
                continue
            timing = self._timing(
                _pick(values.get("transitionTimingFunction"), index),
                "transitionTimingFunction",
                record.id,
                diagnostics,
            )
            delay = _time_ms(_pick(values.get("transitionDelay"), index))
            self.scheduler.start_transition(
                record.id,
                change.property,
                change.old,
                change.new,
                duration,
                timing,
                delay,
                now=self.now,
                layout=record.layout,
            )
            self.event_bus.emit(
                events.TransitionStarted(node_id=record.id, property=change.property, time=self.now)
            )

    def _animation_settings(
        self,
        values: dict[str, StyleValue],
        index: int,
        diagnostics: list[Diagnostic],
        node_id: str | None = None,
    ) -> AnimationSettings:
        count_value = _pick(values.get("animationIterationCount"), index)
        count = float(self.config.default_iteration_count)
        if isinstance(count_value, Raw) and count_value.text == "infinite":
            count = math.inf
        elif isinstance(count_value, Scalar) and count_value.unit is None and count_value.number >= 0:
            count = float(count_value.number)

        direction = _keyword(_pick(values.get("animationDirection"), index))
        fill = _keyword(_pick(values.get("animationFillMode"), index)) or self.config.default_fill_mode
        return AnimationSettings(
            duration=_time_ms(_pick(values.get("animationDuration"), index)),
            iteration_count=count,
            direction=_enum(Direction, direction, Direction.NORMAL),
            delay=_time_ms(_pick(values.get("animationDelay"), index)),
            frame_step=self.config.frame_step,
            timing_function=self._timing(
                _pick(values.get("animationTimingFunction"), index),
                "animationTimingFunction",
                node_id,
                diagnostics,
            ),
        )

    def _timing(
        self,
        value: StyleValue | None,
        prop: str,
        node_id: str | None,
        diagnostics: list[Diagnostic],
    ) -> TimingFunction:
        curve, error = timing_or_linear(
            value if value is not None else self.config.default_timing_function
        )
        if error is not None:
            error.property = prop
            diagnostics.append(Diagnostic.from_error(error, node_id))
            return LINEAR
        return curve

    def _compose(self, record: NodeRecord) -> None:
        if record.base is None:
            return
        base_values = self._base_values(record)
        sample = self.scheduler.sample(
            record.id, base_values, record.layout, self.now, self._resolver(record.id)
        )

        for prop in sample.completed_transitions:
            self.event_bus.emit(
                events.TransitionCompleted(node_id=record.id, property=prop, time=self.now)
            )
        for name in sample.finished:
            logger.debug("Animation %s finished on %s", name, record.id)
            self.event_bus.emit(events.AnimationFinished(node_id=record.id, name=name, time=self.now))

        diagnostics = [Diagnostic.from_error(e, record.id) for e in sample.errors]
        merged = dict(base_values)
        merged.update(sample.values)
        props: dict[str, StyleValue] = {}
        for prop, value in merged.items():
            value, warnings = resolve_layout_percentages(prop, value, record.layout)
            props[prop] = value
            diagnostics.extend(Diagnostic.from_error(w, record.id) for w in warnings)

        animated = set(sample.driven)
        animated.update(p for p in props if is_transition_eligible(p, record.transition_eligible))
        record.snapshot = ComputedStyleSnapshot(
            node_id=record.id,
            time=self.now,
            props=props,
            animated=frozenset(animated),
            variables=dict(record.base.variables),
        )
        self._report(record, diagnostics, record.frame_diagnostics)
        record.frame_diagnostics = diagnostics
        self.event_bus.emit(events.SnapshotComputed(node_id=record.id, time=self.now))

    def _report(
        self, record: NodeRecord, diagnostics: list[Diagnostic], previous: list[Diagnostic]
    ) -> None:
        for diagnostic in diagnostics:
            if diagnostic in previous:
                continue
            logger.warning("%s", diagnostic)
            self.event_bus.emit(events.DiagnosticReported(diagnostic=diagnostic))


# ---------------------------------------------------------------------------
# Declaration helpers
# ---------------------------------------------------------------------------


def _names(value: StyleValue | None) -> tuple[str, ...]:
    if value is None:
        return ()
    return tuple(
        item.text for item in split_list(value) if isinstance(item, Raw) and item.text not in ("", "none")
    )


def _pick(value: StyleValue | None, index: int) -> StyleValue | None:
    """Pick the *index*-th item of a comma list, repeating the list as CSS does."""
    if value is None:
        return None
    items = split_list(value)
    return items[index % len(items)]


def _keyword(value: StyleValue | None) -> str | None:
    return value.text if isinstance(value, Raw) else None


def _enum(cls: type, value: str | None, default: Any) -> Any:
    try:
        return cls(value)
    except ValueError:
        return default


def _time_ms(value: StyleValue | None) -> float:
    if isinstance(value, Scalar):
        if value.unit == "ms":
            return float(value.number)
        if value.unit == "s":
            return float(value.number) * 1000.0
        if value.unit is None and value.number == 0:
            return 0.0
    return 0.0
