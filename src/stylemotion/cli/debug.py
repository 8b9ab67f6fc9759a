"""CLI command: stylemotion debug -- print a node's introspection snapshot."""

from __future__ import annotations

import sys

import click

from stylemotion.introspection import render_introspection
from stylemotion.scene import SceneError, build_engine, load_scene


@click.command()
@click.argument("scene", type=click.Path(exists=True))
@click.option("--node", "node_id", required=True, help="Node id to inspect.")
@click.option("--at", "at_ms", type=float, default=0.0, show_default=True,
              help="Virtual time in milliseconds.")
def debug(scene: str, node_id: str, at_ms: float) -> None:
    """Load a JSON scene, advance to --at and print the node's resolved state.

    Output contains the authored props, computed props (animated ones are
    tagged), declared variables and visible containers.
    """
    try:
        engine = build_engine(load_scene(scene))
    except SceneError as exc:
        click.echo(f"Scene error: {exc}", err=True)
        sys.exit(1)

    if node_id not in engine:
        click.echo(f"Unknown node: {node_id}", err=True)
        sys.exit(1)
    if at_ms < 0:
        click.echo("--at must be >= 0", err=True)
        sys.exit(1)

    engine.tick(at_ms)
    click.echo(render_introspection(engine, node_id))
