"""Command-line interface for autoref.

Provides commands for syncing auto-references of Unity scenes, prefabs and
whole projects, and for reporting declaration problems of component types.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable

import click

from autoref import __version__
from autoref.config import SyncSettings
from autoref.engine import BatchResult, SyncSession
from autoref.errors import ProjectError
from autoref.loader import build_scene, default_registry
from autoref.parser import UnityYAMLDocument
from autoref.project import Project, SceneKind, build_script_index, find_project_root
from autoref.reporting import collect_reports, format_statistics
from autoref.status import ReportInfo

EXIT_OK = 0
EXIT_SYNC_ERRORS = 1
EXIT_USAGE = 2

module_option = click.option(
    "-m",
    "--module",
    "modules",
    multiple=True,
    help="Python module registering component classes (repeatable)",
)

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text)",
)


def _import_modules(modules: tuple[str, ...]) -> None:
    """Import the modules that register component classes."""
    for name in modules:
        try:
            importlib.import_module(name)
        except ImportError as e:
            click.echo(f"Error: Cannot import module '{name}': {e}", err=True)
            sys.exit(EXIT_USAGE)


def create_progress_bar(
    total: int,
    label: str = "Syncing",
) -> tuple[Callable[[int, int, str], None], Callable[[], None]]:
    """Open a click progress bar sized for ``total`` scenes or prefabs.

    Returns:
        A ``progress(index, total, name)`` callback for the sync session, and
        a function closing the bar
    """
    bar = click.progressbar(length=total, label=label, show_eta=True, show_percent=True)
    bar.__enter__()

    def update(index: int, total: int, name: str) -> None:
        bar.label = f"{label} {name}"
        bar.update(1)

    def close() -> None:
        bar.__exit__(None, None, None)

    return update, close


def _report_to_dict(report: ReportInfo) -> dict:
    return {
        "type": report.type.__qualname__,
        "items": [
            {
                "severity": item.severity.value,
                "member": item.member_name,
                "attribute": item.attribute_name,
                "message": item.message,
                "context": item.context,
            }
            for item in report.items
        ],
    }


def _echo_reports(reports: list[ReportInfo]) -> None:
    for report in reports:
        for item in report.items:
            click.echo(f"  {item}")


def _output_batch(result: BatchResult, output_format: str, paths: list[str] | None = None) -> None:
    stats = result.report.statistics
    if output_format == "json":
        output = {
            "status": [flag.name for flag in type(result.status) if flag.value and flag in result.status],
            "modified": result.modified,
            "statistics": dataclasses.asdict(stats),
            "reports": [_report_to_dict(r) for r in result.report.reports],
            "summary": result.summary(),
        }
        click.echo(json.dumps(output, indent=2))
        return

    if paths is None:
        paths = result.modified
    for path in paths:
        click.echo(f"Modified: {path}" if path in result.modified else f"Unchanged: {path}")
    if stats.has_issues:
        click.echo("Diagnostics:")
        _echo_reports(result.report.reports)
    click.echo(result.summary())


def _exit_for(result: BatchResult) -> None:
    sys.exit(EXIT_SYNC_ERRORS if result.has_errors else EXIT_OK)


@click.group()
@click.version_option(version=__version__, prog_name="autoref")
@click.option("-v", "--verbose", count=True, help="Log more (-v for info, -vv for debug)")
def main(verbose: int) -> None:
    """Auto-Reference sync for Unity scenes and prefabs.

    Fills component fields annotated with lookup strategies from the scene
    graph or the project's assets, and reports declaration problems.
    """
    level = {0: logging.ERROR, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)
@module_option
@click.option(
    "--assets",
    "assets_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Unity project whose prefabs and assets back FindInAssets fields",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Rebuild type metadata on every lookup",
)
@click.option(
    "--progress",
    is_flag=True,
    help="Show progress bar",
)
@format_option
def sync(
    files: tuple[Path, ...],
    modules: tuple[str, ...],
    assets_root: Path | None,
    no_cache: bool,
    progress: bool,
    output_format: str,
) -> None:
    """Sync auto-references of Unity scene and prefab files.

    Files are loaded, synced and reported on; modified files are listed but
    not written back.

    Examples:

        # Sync a scene with components registered by a module
        autoref sync Assets/Scenes/Main.unity -m game.components

        # Resolve FindInAssets fields against a project
        autoref sync Assets/Prefabs/Player.prefab -m game.components --assets .
    """
    _import_modules(modules)

    project: Project | None = None
    if assets_root is not None:
        try:
            project = Project.load(assets_root)
        except ProjectError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(EXIT_USAGE)

    scenes = []
    for file in files:
        root = find_project_root(file)
        script_names = build_script_index(root) if root is not None else {}
        try:
            doc = UnityYAMLDocument.load(file)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            click.echo(f"Error: Failed to load {file}: {e}", err=True)
            sys.exit(EXIT_USAGE)
        scenes.append(build_scene(doc, default_registry, script_names, path=str(file)))

    settings = SyncSettings.from_env()
    if no_cache:
        settings.cache_metadata = False
    batch = Project(root=Path.cwd(), scenes=scenes)
    session = SyncSession(settings, assets=project.assets if project is not None else None)

    update, close = create_progress_bar(len(scenes)) if progress else (None, None)
    try:
        result = session.sync_scenes(batch, SceneKind.PROJECT, progress=update)
    finally:
        if close:
            close()

    _output_batch(result, output_format, [scene.path for scene in scenes])
    _exit_for(result)


@main.command("sync-project")
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@module_option
@click.option(
    "--kind",
    type=click.Choice(["project", "build", "prefabs"]),
    default="project",
    help="What to sync: every scene, build scenes only, or every prefab (default: project)",
)
@click.option(
    "--progress",
    is_flag=True,
    help="Show progress bar",
)
@format_option
def sync_project(
    root: Path,
    modules: tuple[str, ...],
    kind: str,
    progress: bool,
    output_format: str,
) -> None:
    """Sync auto-references across a Unity project.

    Examples:

        # Every scene of the project
        autoref sync-project . -m game.components

        # Only the scenes enabled in the build settings
        autoref sync-project . -m game.components --kind build

        # Every prefab
        autoref sync-project . -m game.components --kind prefabs
    """
    _import_modules(modules)

    try:
        project = Project.load(root)
    except ProjectError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_USAGE)

    for path, reason in sorted(project.load_errors.items()):
        click.echo(f"Warning: Skipped {path}: {reason}", err=True)

    session = SyncSession(assets=project.assets)
    scene_kind = SceneKind(kind)
    total = len(project.assets.prefabs()) if scene_kind is SceneKind.PREFABS else len(project.scenes_of(scene_kind))

    update, close = create_progress_bar(total) if progress else (None, None)
    try:
        result = session.sync_scenes(project, scene_kind, progress=update)
    finally:
        if close:
            close()

    _output_batch(result, output_format)
    _exit_for(result)


@main.command()
@module_option
@format_option
def report(modules: tuple[str, ...], output_format: str) -> None:
    """Report declaration problems of every registered component type.

    Examples:

        autoref report -m game.components
    """
    _import_modules(modules)

    reports, stats = collect_reports(default_registry.types())

    if output_format == "json":
        output = {
            "statistics": dataclasses.asdict(stats),
            "reports": [_report_to_dict(r) for r in reports],
        }
        click.echo(json.dumps(output, indent=2))
    else:
        for info in reports:
            click.echo(f"{info.type.__qualname__}:")
            _echo_reports([info])
        click.echo(format_statistics(stats))

    sys.exit(EXIT_SYNC_ERRORS if stats.total_errors else EXIT_OK)


if __name__ == "__main__":
    main()
