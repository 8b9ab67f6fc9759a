"""Introspection snapshots: a JSON-safe view of a node's resolved state.

Shape::

    {
      "originalProps": {...},
      "props": {"color": "rgba(239, 68, 68, 1) (animated value)", "padding": 10},
      "variables": {"--test": "50%"},
      "containers": {"card": {...}, "@__": "[Circular]"},
      "diagnostics": ["ERROR [node=a property=color]: ..."]
    }

Nodes reachable more than once (a container that is the node itself, the
``@__`` alias for the nearest container) are written as ``"[Circular]"``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from stylemotion.model.snapshot import ComputedStyleSnapshot
from stylemotion.model.values import Scalar
from stylemotion.values import format_value

if TYPE_CHECKING:
    from stylemotion.engine import NodeRecord, StyleEngine

__all__ = ["CIRCULAR", "ANIMATED_SUFFIX", "build_introspection", "render_introspection"]

CIRCULAR = "[Circular]"
ANIMATED_SUFFIX = " (animated value)"
DEFAULT_CONTAINER = "@__"


def build_introspection(engine: StyleEngine, node_id: str) -> dict[str, Any]:
    """Serialize authored input, computed props, variables and containers."""
    record = engine.node(node_id)
    visited = {node_id}
    snapshot = engine.snapshot(node_id)

    data: dict[str, Any] = {
        "originalProps": _json_safe(record.props),
        "props": _render_props(snapshot),
    }
    if snapshot.variables:
        data["variables"] = {k: format_value(v) for k, v in snapshot.variables.items()}
    containers = _containers(engine, record, visited)
    if containers:
        data["containers"] = containers
    if record.diagnostics:
        data["diagnostics"] = [str(d) for d in record.diagnostics]
    return data


def render_introspection(engine: StyleEngine, node_id: str) -> str:
    data = build_introspection(engine, node_id)
    return f"Debugging component.testID '{node_id}'\n\n{json.dumps(data, indent=2)}"


def _render_props(snapshot: ComputedStyleSnapshot) -> dict[str, Any]:
    rendered: dict[str, Any] = {}
    for prop, value in snapshot.props.items():
        if prop in snapshot.animated:
            rendered[prop] = format_value(value) + ANIMATED_SUFFIX
        elif isinstance(value, Scalar) and value.unit in (None, "px"):
            # Unitless and pixel lengths are plain numbers on the host.
            rendered[prop] = value.number
        else:
            rendered[prop] = format_value(value)
    return rendered


def _containers(engine: StyleEngine, record: NodeRecord, visited: set[str]) -> dict[str, Any]:
    """Containers visible to *record*: its own first, then its ancestors'."""
    result: dict[str, Any] = {}
    for owner in engine.ancestry(record.id):
        for name in owner.container_names:
            if name in result:
                continue  # a nearer container shadows the name
            result[name] = _container_state(engine, owner, visited)
        visited.add(owner.id)
    if result:
        result[DEFAULT_CONTAINER] = CIRCULAR
    return result


def _container_state(engine: StyleEngine, owner: NodeRecord, visited: set[str]) -> dict[str, Any]:
    members = list(engine.subtree(owner.id))
    circular = owner.id in visited
    layout = owner.layout
    return {
        "originalProps": CIRCULAR if circular else _json_safe(owner.props),
        "props": {} if circular else _render_props(engine.snapshot(owner.id)),
        "animated": sum(1 for m in members if engine.scheduler.has_instances(m.id)),
        "containers": sum(1 for m in members if m.is_container),
        "variables": sum(1 for m in members if m.base is not None and m.base.variables),
        "pressable": sum(1 for m in members if m.is_pressable),
        "active": owner.interaction.active,
        "hover": owner.interaction.hover,
        "focus": owner.interaction.focus,
        "layout": [layout.width, layout.height] if layout else [0, 0],
    }


def _json_safe(value: Any, _stack: tuple[int, ...] = ()) -> Any:
    """Copy authored props into plain JSON types.

    Callables become ``"[Function]"``; containers already on the current path
    become ``"[Circular]"``.
    """
    if id(value) in _stack:
        return CIRCULAR
    if isinstance(value, dict):
        stack = _stack + (id(value),)
        return {str(k): _json_safe(v, stack) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        stack = _stack + (id(value),)
        return [_json_safe(v, stack) for v in value]
    if callable(value):
        return "[Function]"
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
