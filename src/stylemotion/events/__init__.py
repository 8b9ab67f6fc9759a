"""Event system: bus and event types for engine lifecycle."""

from stylemotion.events.bus import EventBus
from stylemotion.events.types import (
    AnimationCancelled,
    AnimationFinished,
    AnimationReplaced,
    AnimationStarted,
    DiagnosticReported,
    SnapshotComputed,
    TransitionCompleted,
    TransitionStarted,
)

__all__ = [
    "EventBus",
    "AnimationCancelled",
    "AnimationFinished",
    "AnimationReplaced",
    "AnimationStarted",
    "DiagnosticReported",
    "SnapshotComputed",
    "TransitionCompleted",
    "TransitionStarted",
]
