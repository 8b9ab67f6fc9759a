"""Animation and transition scheduling against a virtual clock.

The :class:`Scheduler` is the registry of every live instance, keyed by node
id. It never reads a wall clock; callers hand it monotonically increasing
virtual times, not necessarily evenly spaced.

Keyframe segments run in sequence: the segment between two adjacent stops
starts on the frame after the previous segment completed, so every stop
boundary (including the wrap into the next iteration) holds the stop value
for one ``frame_step``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable, Iterable, Mapping

from stylemotion.easing import LINEAR, TimingFunction
from stylemotion.errors import StyleEngineError, UnsupportedInterpolationError
from stylemotion.interpolate import interpolate_keyframes, interpolate_values
from stylemotion.model.keyframes import KeyframeDefinition
from stylemotion.model.snapshot import LayoutBox
from stylemotion.model.values import StyleValue

__all__ = [
    "AnimationState",
    "Direction",
    "FillMode",
    "AnimationSettings",
    "AnimationInstance",
    "TransitionInstance",
    "SchedulerSample",
    "Scheduler",
]

logger = logging.getLogger(__name__)


class AnimationState(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    FINISHED = "finished"


class Direction(StrEnum):
    NORMAL = "normal"
    REVERSE = "reverse"
    ALTERNATE = "alternate"
    ALTERNATE_REVERSE = "alternate-reverse"


class FillMode(StrEnum):
    NONE = "none"
    FORWARDS = "forwards"
    BACKWARDS = "backwards"
    BOTH = "both"


@dataclass(frozen=True)
class AnimationSettings:
    """Per-animation timing; durations and delays are in milliseconds."""

    duration: float = 0.0
    iteration_count: float = 1  # math.inf for infinite
    direction: Direction = Direction.NORMAL
    fill_mode: FillMode = FillMode.FORWARDS
    delay: float = 0.0
    timing_function: TimingFunction = LINEAR
    frame_step: float = 1.0

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError(f"Animation duration must be >= 0, got {self.duration}")
        if self.iteration_count < 0:
            raise ValueError(f"Iteration count must be >= 0, got {self.iteration_count}")
        if self.frame_step < 0:
            raise ValueError(f"Frame step must be >= 0, got {self.frame_step}")


@dataclass
class AnimationInstance:
    """One running ``@keyframes`` animation on one node."""

    node_id: str
    definition: KeyframeDefinition
    settings: AnimationSettings
    start_time: float
    state: AnimationState = AnimationState.PENDING
    boundaries: tuple[float, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        offsets = {0.0, 1.0}
        offsets.update(stop.offset for stop in self.definition.stops)
        self.boundaries = tuple(sorted(offsets))

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def cycle(self) -> float:
        """Length of one iteration, including the frame that starts the next."""
        return self.settings.duration + self.settings.frame_step * (len(self.boundaries) - 1)

    @property
    def holds_value(self) -> bool:
        return self.settings.fill_mode in (FillMode.FORWARDS, FillMode.BOTH)

    def progress_at(self, now: float) -> float | None:
        """Return the directed keyframe progress at *now* and update ``state``.

        Returns None when the fill mode says the base value shows through
        (before the delay or after finishing).
        """
        s = self.settings
        elapsed = now - self.start_time - s.delay
        if elapsed < 0:
            self.state = AnimationState.PENDING
            if s.fill_mode in (FillMode.BACKWARDS, FillMode.BOTH):
                return self._directed(0.0, 0)
            return None

        count = s.iteration_count
        if not math.isinf(count) and elapsed >= self._active_duration():
            self.state = AnimationState.FINISHED
            if not self.holds_value:
                return None
            if count == 0:
                return self._directed(0.0, 0)
            iteration = math.ceil(count) - 1
            return self._directed(count - iteration, iteration)

        self.state = AnimationState.RUNNING
        if s.duration == 0:
            return self._directed(1.0, 0)
        iteration = math.floor(elapsed / self.cycle)
        return self._directed(self._sequenced(elapsed - iteration * self.cycle), iteration)

    def _active_duration(self) -> float:
        count = self.settings.iteration_count
        if count == 0 or self.settings.duration == 0:
            return 0.0
        whole = math.ceil(count) - 1
        return whole * self.cycle + self._time_for(count - whole)

    def _segments(self) -> Iterable[tuple[float, float]]:
        return zip(self.boundaries, self.boundaries[1:])

    def _sequenced(self, local: float) -> float:
        """Map time inside one iteration to keyframe progress."""
        s = self.settings
        start = 0.0
        for lo, hi in self._segments():
            span = (hi - lo) * s.duration
            if local <= start + span:
                return lo + (hi - lo) * (local - start) / span
            start += span + s.frame_step
            if local < start:
                return hi  # hold the completed stop until the next frame
        return 1.0

    def _time_for(self, progress: float) -> float:
        """Inverse of ``_sequenced``: the iteration time that reaches *progress*."""
        s = self.settings
        start = 0.0
        for lo, hi in self._segments():
            span = (hi - lo) * s.duration
            if progress <= hi:
                return start + span * (progress - lo) / (hi - lo)
            start += span + s.frame_step
        return start - s.frame_step

    def _directed(self, progress: float, iteration: int) -> float:
        direction = self.settings.direction
        odd = iteration % 2 == 1
        reverse = (
            direction is Direction.REVERSE
            or (direction is Direction.ALTERNATE and odd)
            or (direction is Direction.ALTERNATE_REVERSE and not odd)
        )
        return 1.0 - progress if reverse else progress


@dataclass
class TransitionInstance:
    """An implicit animation of one property between two resolved values."""

    node_id: str
    property: str
    from_value: StyleValue
    to_value: StyleValue
    start_time: float
    duration: float
    timing_function: TimingFunction = LINEAR
    delay: float = 0.0

    def local_t(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.start_time - self.delay) / self.duration, 0.0), 1.0)

    def value_at(self, now: float, layout: LayoutBox | None = None) -> StyleValue:
        eased = self.timing_function.evaluate(self.local_t(now))
        return interpolate_values(self.property, self.from_value, self.to_value, eased, layout)


@dataclass
class SchedulerSample:
    """Everything one tick produced for one node."""

    values: dict[str, StyleValue] = field(default_factory=dict)
    driven: set[str] = field(default_factory=set)
    errors: list[StyleEngineError] = field(default_factory=list)
    finished: list[str] = field(default_factory=list)
    completed_transitions: list[str] = field(default_factory=list)


class Scheduler:
    """Registry of animation and transition instances, keyed by node id."""

    def __init__(self) -> None:
        self.now = 0.0
        self._animations: dict[str, dict[str, AnimationInstance]] = {}
        self._transitions: dict[str, dict[str, TransitionInstance]] = {}

    # --- clock ---------------------------------------------------------------

    def advance(self, now: float) -> None:
        """Move the virtual clock to *now*; time never goes backwards."""
        if now < self.now:
            raise ValueError(f"Virtual time must be monotonic: {now} < {self.now}")
        self.now = now

    # --- animations ----------------------------------------------------------

    def start_animation(
        self,
        node_id: str,
        definition: KeyframeDefinition,
        settings: AnimationSettings,
        now: float | None = None,
    ) -> tuple[AnimationInstance, AnimationInstance | None]:
        """Start *definition* on *node_id*, replacing a same-named instance.

        Returns the new instance and the one it replaced, if any.
        """
        start = self.now if now is None else now
        instance = AnimationInstance(node_id, definition, settings, start)
        instance.progress_at(start)
        per_node = self._animations.setdefault(node_id, {})
        replaced = per_node.pop(definition.name, None)
        per_node[definition.name] = instance
        logger.debug(
            "%s animation %s on %s at %s",
            "Replaced" if replaced else "Started",
            definition.name,
            node_id,
            start,
        )
        return instance, replaced

    def cancel_animation(self, node_id: str, name: str) -> bool:
        per_node = self._animations.get(node_id)
        if not per_node or name not in per_node:
            return False
        del per_node[name]
        if not per_node:
            del self._animations[node_id]
        return True

    def order_animations(self, node_id: str, names: list[str]) -> None:
        """Reorder a node's animations so later names are applied last."""
        per_node = self._animations.get(node_id)
        if not per_node:
            return
        ordered = {name: per_node[name] for name in names if name in per_node}
        for name, instance in per_node.items():
            ordered.setdefault(name, instance)
        self._animations[node_id] = ordered

    def animations(self, node_id: str) -> list[AnimationInstance]:
        return list(self._animations.get(node_id, {}).values())

    # --- transitions ---------------------------------------------------------

    def start_transition(
        self,
        node_id: str,
        prop: str,
        from_value: StyleValue,
        to_value: StyleValue,
        duration: float,
        timing_function: TimingFunction = LINEAR,
        delay: float = 0.0,
        now: float | None = None,
        layout: LayoutBox | None = None,
    ) -> TransitionInstance:
        """Start a transition; an interrupted one hands over its current value.

        *layout* is the node's box, used to read the interrupted value the
        way it is displayed.
        """
        start = self.now if now is None else now
        per_node = self._transitions.setdefault(node_id, {})
        current = per_node.get(prop)
        if current is not None:
            try:
                from_value = current.value_at(start, layout)
            except UnsupportedInterpolationError:
                pass  # keep the caller's from_value; the new pair is checked on sample
        transition = TransitionInstance(
            node_id, prop, from_value, to_value, start, duration, timing_function, delay
        )
        per_node[prop] = transition
        logger.debug("Started transition of %s on %s at %s", prop, node_id, start)
        return transition

    def cancel_transition(self, node_id: str, prop: str) -> bool:
        per_node = self._transitions.get(node_id)
        if not per_node or prop not in per_node:
            return False
        del per_node[prop]
        if not per_node:
            del self._transitions[node_id]
        return True

    def transitions(self, node_id: str) -> list[TransitionInstance]:
        return list(self._transitions.get(node_id, {}).values())

    # --- sampling ------------------------------------------------------------

    def sample(
        self,
        node_id: str,
        base: Mapping[str, StyleValue],
        layout: LayoutBox | None = None,
        now: float | None = None,
        resolve: Callable[[StyleValue], StyleValue] | None = None,
    ) -> SchedulerSample:
        """Compute animated values for *node_id* at *now*.

        Transitions are applied first, then animations in order, so a later
        writer of the same property wins. Failures drop only the affected
        property for this tick. *resolve* substitutes variables in keyframe
        stop values against the node's scope.

        A finished animation whose fill mode does not hold its last frame is
        removed here.
        """
        now = self.now if now is None else now
        result = SchedulerSample()

        for prop, transition in list(self._transitions.get(node_id, {}).items()):
            if transition.local_t(now) >= 1.0:
                self.cancel_transition(node_id, prop)
                result.completed_transitions.append(prop)
                continue
            try:
                result.values[prop] = transition.value_at(now, layout)
            except UnsupportedInterpolationError as exc:
                self.cancel_transition(node_id, prop)
                result.errors.append(exc)
                continue
            result.driven.add(prop)

        for instance in self.animations(node_id):
            was_finished = instance.state is AnimationState.FINISHED
            progress = instance.progress_at(now)
            if instance.state is AnimationState.FINISHED and not was_finished:
                result.finished.append(instance.name)
            if progress is None:
                if instance.state is AnimationState.FINISHED:
                    self.cancel_animation(node_id, instance.name)
                continue
            sample = interpolate_keyframes(
                instance.definition,
                progress,
                base,
                layout,
                instance.settings.timing_function,
                resolve,
            )
            result.values.update(sample.values)
            result.driven.update(sample.values)
            result.errors.extend(sample.errors)
        return result

    # --- lifecycle -----------------------------------------------------------

    def has_instances(self, node_id: str) -> bool:
        """True while the node has a transition or an unfinished animation.

        An animation holding its final frame (``forwards``/``both``) stays
        registered but no longer counts as live.
        """
        if self._transitions.get(node_id):
            return True
        return any(
            instance.state is not AnimationState.FINISHED
            for instance in self._animations.get(node_id, {}).values()
        )

    def nodes(self) -> list[str]:
        """Ids of nodes with at least one live instance."""
        ids = dict.fromkeys(self._animations)
        ids.update(dict.fromkeys(self._transitions))
        return [node_id for node_id in ids if self.has_instances(node_id)]

    def remove_node(self, node_id: str) -> None:
        """Tear down every instance owned by *node_id* immediately."""
        self._animations.pop(node_id, None)
        self._transitions.pop(node_id, None)
