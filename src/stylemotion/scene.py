"""JSON scene files: keyframes, nodes and their matched rules.

Example::

    {
      "config": {"default_fill_mode": "forwards"},
      "keyframes": {"spin": {"to": {"transform": "rotate(360deg)"}}},
      "nodes": [
        {"id": "box", "props": {"className": "my-class"}, "layout": [200, 100],
         "rules": [{"specificity": 1,
                    "declarations": {"animationName": "spin",
                                     "animationDuration": "3s",
                                     "color": "red !important"}}]}
      ]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from stylemotion.config import EngineConfig
from stylemotion.engine import StyleEngine
from stylemotion.model.declarations import Declaration, Rule, order_rules
from stylemotion.model.keyframes import KeyframeDefinition
from stylemotion.values import parse_value

__all__ = ["Scene", "NodeSpec", "SceneError", "load_scene", "parse_scene", "build_engine"]

_IMPORTANT = "!important"


class SceneError(Exception):
    """Raised when a scene file cannot be loaded."""


@dataclass(frozen=True)
class NodeSpec:
    id: str
    parent: str | None = None
    props: dict[str, Any] = field(default_factory=dict)
    pressable: bool = False
    layout: tuple[float, float] | None = None
    rules: tuple[Rule, ...] = ()


@dataclass(frozen=True)
class Scene:
    config: EngineConfig
    keyframes: tuple[KeyframeDefinition, ...]
    nodes: tuple[NodeSpec, ...]


def _declaration(prop: str, raw: Any) -> Declaration:
    if not isinstance(raw, (str, int, float)):
        raise SceneError(f"Declaration {prop!r} must be a string or number, got {raw!r}")
    text = str(raw).strip()
    important = text.endswith(_IMPORTANT)
    if important:
        text = text[: -len(_IMPORTANT)].strip()
    return Declaration(prop, parse_value(text), important)


def _rule(data: dict[str, Any], order: int) -> Rule:
    declarations = data.get("declarations", {})
    if not isinstance(declarations, dict):
        raise SceneError("Rule declarations must be an object")
    return Rule(
        declarations=tuple(_declaration(p, v) for p, v in declarations.items()),
        specificity=int(data.get("specificity", 0)),
        source_order=int(data.get("source_order", order)),
    )


def _node(data: dict[str, Any]) -> NodeSpec:
    if "id" not in data:
        raise SceneError(f"Node entry without an id: {data!r}")
    layout = data.get("layout")
    if layout is not None:
        if len(layout) != 2:
            raise SceneError(f"Node {data['id']!r} layout must be [width, height]")
        layout = (float(layout[0]), float(layout[1]))
    rules = [_rule(r, i) for i, r in enumerate(data.get("rules", []))]
    return NodeSpec(
        id=str(data["id"]),
        parent=data.get("parent"),
        props=dict(data.get("props", {})),
        pressable=bool(data.get("pressable", False)),
        layout=layout,
        rules=tuple(order_rules(rules)),
    )


def parse_scene(data: dict[str, Any]) -> Scene:
    """Build a :class:`Scene` from already-decoded JSON."""
    try:
        keyframes = tuple(
            KeyframeDefinition.from_mapping(name, blocks)
            for name, blocks in data.get("keyframes", {}).items()
        )
    except ValueError as exc:
        raise SceneError(str(exc)) from exc
    return Scene(
        config=EngineConfig.from_mapping(data.get("config", {})),
        keyframes=keyframes,
        nodes=tuple(_node(n) for n in data.get("nodes", [])),
    )


def load_scene(path: str | Path) -> Scene:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SceneError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SceneError("Scene root must be an object")
    return parse_scene(data)


def build_engine(scene: Scene) -> StyleEngine:
    """Create an engine at virtual time 0 with every scene node registered."""
    engine = StyleEngine(scene.config)
    for definition in scene.keyframes:
        engine.register_keyframes(definition)
    for spec in scene.nodes:
        try:
            engine.add_node(spec.id, spec.parent, spec.props, pressable=spec.pressable)
        except (KeyError, ValueError) as exc:
            raise SceneError(str(exc)) from exc
        if spec.layout is not None:
            engine.update_layout(spec.id, *spec.layout)
        engine.set_rules(spec.id, spec.rules)
    return engine
