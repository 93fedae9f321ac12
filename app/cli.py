from __future__ import annotations

import logging
from pathlib import Path

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from adapters.filesystem.annotation_repository import (
    MARKS_FILE,
    FileSystemAnnotationRepository,
    batch_image_name,
)
from adapters.filesystem.scene_repository import FileSystemSceneRepository
from app.config import AppSettings, load_settings
from app.wiring import build_annotate_scene
from domain.models import ZERO_BOX, SceneNode
from domain.ports.canvas import ImageDecodeError
from domain.services.select_nodes import find_node, select_nodes
from domain.services.summarize_scene_tree import DEFAULT_SUMMARY_DEPTH, build_condensed_tree_summary

app = typer.Typer(no_args_is_help=True)
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_settings(config: Path | None) -> AppSettings:
    try:
        return load_settings(config)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load_roots(scene_path: Path, node_id: str | None) -> list[SceneNode]:
    if not scene_path.exists():
        console.print(f"[red]File not found:[/] {scene_path}")
        raise typer.Exit(code=1)
    try:
        roots = FileSystemSceneRepository().load(scene_path)
    except ValueError as exc:
        console.print(f"[red]Invalid scene file:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if node_id is None:
        return roots
    node = find_node(roots, node_id)
    if node is None:
        console.print(f"[red]Node not found:[/] {node_id}")
        raise typer.Exit(code=1)
    return [node]


@app.command("select")
def select(
    scene_path: Path = typer.Argument(..., help="Scene JSON exported from the design tool."),
    node_id: str | None = typer.Option(None, "--node-id", help="Only walk this subtree."),
    config: Path | None = typer.Option(None, "--config", help="YAML settings file."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    settings = _load_settings(config)
    roots = _load_roots(scene_path, node_id)
    nodes = select_nodes(roots, settings.traversal.to_traversal_config())

    if as_json:
        payload = [node.to_dict() for node in nodes]
        typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return

    table = Table(title=f"{len(nodes)} nodes selected from {scene_path.name}")
    table.add_column("#", justify="right")
    table.add_column("Id")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Depth", justify="right")
    table.add_column("Text")
    for idx, node in enumerate(nodes, start=1):
        table.add_row(
            str(idx),
            node.id,
            node.node_type,
            node.original_name,
            str(node.depth),
            (node.text_content or "")[:40],
        )
    console.print(table)


@app.command("summarize")
def summarize(
    scene_path: Path = typer.Argument(..., help="Scene JSON exported from the design tool."),
    node_id: str | None = typer.Option(None, "--node-id", help="Only summarize this subtree."),
    max_depth: int = typer.Option(
        DEFAULT_SUMMARY_DEPTH, "--max-depth", min=0, help="Collapse children below this depth."
    ),
) -> None:
    roots = _load_roots(scene_path, node_id)
    typer.echo(build_condensed_tree_summary(roots, max_depth=max_depth))


@app.command("annotate")
def annotate(
    scene_path: Path = typer.Argument(..., help="Scene JSON exported from the design tool."),
    image_path: Path = typer.Argument(..., help="Render of the scene root (or --node-id)."),
    output_dir: Path = typer.Option(
        Path("data/annotated"), "--output-dir", help="Directory for annotated images."
    ),
    node_id: str | None = typer.Option(None, "--node-id", help="Only annotate this subtree."),
    config: Path | None = typer.Option(None, "--config", help="YAML settings file."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for badge placement."),
    renderer: str | None = typer.Option(None, "--renderer", help="pillow or svg."),
    keep_best: bool | None = typer.Option(
        None, "--keep-best/--keep-last", help="Return the best or the last badge layout."
    ),
    clean: bool = typer.Option(False, "--clean", help="Remove earlier outputs first."),
) -> None:
    settings = _load_settings(config)
    overrides: dict[str, dict[str, object]] = {}
    if seed is not None:
        overrides.setdefault("optimizer", {})["seed"] = seed
    if keep_best is not None:
        overrides.setdefault("optimizer", {})["keep_best"] = keep_best
    if renderer is not None:
        overrides.setdefault("render", {})["renderer"] = renderer
    if overrides:
        try:
            settings = AppSettings.model_validate(
                _merge(settings.model_dump(), overrides)
            )
        except ValidationError as exc:
            console.print(f"[red]Invalid option:[/] {exc}")
            raise typer.Exit(code=1) from exc

    if not image_path.exists():
        console.print(f"[red]File not found:[/] {image_path}")
        raise typer.Exit(code=1)
    roots = _load_roots(scene_path, node_id)
    if len(roots) > 1:
        ids = ", ".join(root.id for root in roots)
        console.print(
            f"[red]{scene_path.name} has {len(roots)} root nodes ({ids}).[/] "
            "Pick the one the image was rendered from with --node-id."
        )
        raise typer.Exit(code=1)
    traversal = settings.traversal.to_traversal_config()
    nodes = select_nodes(roots, traversal)
    if not nodes:
        console.print(f"[yellow]No nodes to annotate in {scene_path}[/]")
        raise typer.Exit(code=0)

    reference_box = roots[0].absolute_bounding_box or ZERO_BOX
    annotate_scene = build_annotate_scene(settings)
    base_image = image_path.read_bytes()
    repository = FileSystemAnnotationRepository()
    if clean:
        removed = repository.clear(output_dir)
        logger.info("Removed %d earlier outputs from %s.", removed, output_dir)
    suffix = annotate_scene.renderer.canvas_factory.file_suffix

    batches: list[dict[str, object]] = []
    try:
        for batch in annotate_scene.annotate(
            nodes,
            base_image,
            reference_box,
            settings.render.export_scale,
            traversal.batch_size,
        ):
            target_path = output_dir / batch_image_name(batch.index, suffix)
            repository.save_image(batch.image.data, target_path)
            batches.append({**batch.to_dict(), "image": target_path.name})
            logger.info("Wrote batch %d with %d marks.", batch.index + 1, len(batch.labels))
            console.print(f"[green]Wrote[/] {target_path} ({len(batch.labels)} marks)")
    except ImageDecodeError as exc:
        console.print(f"[red]Cannot read image:[/] {exc}")
        raise typer.Exit(code=1) from exc

    marks_path = output_dir / MARKS_FILE
    repository.save_marks(
        {"scene": scene_path.name, "node_count": len(nodes), "batches": batches},
        marks_path,
    )
    console.print(f"[green]Wrote[/] {marks_path}")


def _merge(base: dict[str, object], overrides: dict[str, dict[str, object]]) -> dict[str, object]:
    merged = dict(base)
    for section, values in overrides.items():
        current = merged.get(section)
        merged[section] = {**(current if isinstance(current, dict) else {}), **values}
    return merged


if __name__ == "__main__":
    app()
