"""Event types emitted while resolving and animating nodes."""

from dataclasses import dataclass

from stylemotion.model.diagnostic import Diagnostic


@dataclass(frozen=True)
class SnapshotComputed:
    node_id: str
    time: float


@dataclass(frozen=True)
class AnimationStarted:
    node_id: str
    name: str
    time: float


@dataclass(frozen=True)
class AnimationReplaced:
    node_id: str
    name: str
    time: float


@dataclass(frozen=True)
class AnimationFinished:
    node_id: str
    name: str
    time: float


@dataclass(frozen=True)
class AnimationCancelled:
    node_id: str
    name: str


@dataclass(frozen=True)
class TransitionStarted:
    node_id: str
    property: str
    time: float


@dataclass(frozen=True)
class TransitionCompleted:
    node_id: str
    property: str
    time: float


@dataclass(frozen=True)
class DiagnosticReported:
    diagnostic: Diagnostic
