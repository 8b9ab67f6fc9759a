"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class EngineConfig:
    max_variable_depth: int = 32
    default_fill_mode: str = "forwards"  # none, forwards, backwards, both
    default_timing_function: str = "ease"
    default_iteration_count: float = 1
    frame_step: float = 1.0  # ms between a completed keyframe segment and the next

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EngineConfig:
        """Build a config from a plain mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
