"""CLI command: stylemotion sample -- print a node's props over virtual time."""

from __future__ import annotations

import sys

import click

from stylemotion.scene import SceneError, build_engine, load_scene
from stylemotion.values import format_value


@click.command()
@click.argument("scene", type=click.Path(exists=True))
@click.option("--node", "node_id", required=True, help="Node id to sample.")
@click.option("--until", "until_ms", type=float, required=True, help="Last virtual time (ms).")
@click.option("--step", "step_ms", type=float, default=100.0, show_default=True,
              help="Tick spacing in milliseconds.")
def sample(scene: str, node_id: str, until_ms: float, step_ms: float) -> None:
    """Tick a JSON scene from 0 to --until and print one line per tick.

    Each line is the virtual time followed by the node's formatted props.
    Diagnostics raised along the way are printed after the samples.
    """
    if step_ms <= 0:
        click.echo("--step must be > 0", err=True)
        sys.exit(1)

    try:
        engine = build_engine(load_scene(scene))
    except SceneError as exc:
        click.echo(f"Scene error: {exc}", err=True)
        sys.exit(1)

    if node_id not in engine:
        click.echo(f"Unknown node: {node_id}", err=True)
        sys.exit(1)

    seen = []
    now = 0.0
    while True:
        engine.tick(now)
        snapshot = engine.snapshot(node_id)
        parts = [f"{prop}={format_value(value)}" for prop, value in snapshot.props.items()]
        click.echo(f"{now:g}ms  " + "  ".join(parts))
        for diagnostic in engine.node(node_id).diagnostics:
            if diagnostic not in seen:
                seen.append(diagnostic)
        if now >= until_ms:
            break
        now = min(now + step_ms, until_ms)

    for diagnostic in seen:
        click.echo(str(diagnostic))
