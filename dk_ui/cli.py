"""
Command-line interface for dashkit.

Inspect collection files: show their materialized tab tree, validate them
against a CSV's columns, and list the registered kinds.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console

from dk_common.config import parse_labels_env
from dk_common.errors import DKError, SpecValidationError, error_to_payload
from dk_common.logging import configure_logging
from dk_common.settings import COLLAPSE_POLICIES, DashkitSettings, load_settings
from dk_content.describe import build_rich_tree
from dk_content.kinds import default_registry
from dk_content.loader import load_collection
from dk_content.pagination import split_sections
from dk_content.tree import plan_sections
from dk_ui.presenters import (
    build_conflict_table,
    build_issue_table,
    build_kinds_table,
    render_table,
)

console = Console()

app = typer.Typer(help="Inspect and validate declarative dashboard content.", no_args_is_help=True)


def _settings(ctx: typer.Context) -> DashkitSettings:
    return ctx.obj if isinstance(ctx.obj, DashkitSettings) else DashkitSettings()


def _fail(error: DKError, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(error_to_payload(error), indent=2))
    else:
        console.print(str(error), style="red", markup=False)
    raise typer.Exit(1)


def _read_columns(path: Path) -> list[str]:
    """Header of a CSV file; no rows are loaded."""
    frame = pd.read_csv(path, nrows=0)
    return [str(column) for column in frame.columns]


@app.callback()
def entry(
    ctx: typer.Context,
    settings_file: Optional[Path] = typer.Option(
        None, "--settings", "-s", help="YAML settings file (top level or 'dashkit:' section)."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (defaults to DK_LOG_LEVEL or WARNING)."
    ),
) -> None:
    """Global options shared by every command."""
    configure_logging(level=log_level, force=True)
    try:
        ctx.obj = load_settings(settings_file)
    except DKError as exc:
        _fail(exc, as_json=False)


@app.command("tree")
def tree_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Collection YAML file."),
    collapse: Optional[str] = typer.Option(
        None, "--collapse", help="Collapse policy: never, root or recursive."
    ),
    no_shared: bool = typer.Option(
        False, "--no-shared", help="Render top-level groups as separate tab sets."
    ),
    labels: Optional[str] = typer.Option(
        None, "--labels", help="Extra labels as key=value pairs, comma separated."
    ),
) -> None:
    """Show the materialized tab tree of a collection file."""
    settings = _settings(ctx)
    if collapse is not None:
        if collapse not in COLLAPSE_POLICIES:
            console.print(f"Unknown collapse policy '{collapse}'", style="red", markup=False)
            raise typer.Exit(1)
        settings = settings.model_copy(update={"collapse_policy": collapse})
    try:
        collection = load_collection(file, settings)
    except DKError as exc:
        _fail(exc, as_json=False)
    if no_shared:
        collection = collection.with_shared_first_level(False)
    extra_labels = parse_labels_env(labels)
    if extra_labels:
        collection = collection.set_labels(extra_labels)

    console.print(build_rich_tree(collection))
    pages = split_sections(collection.materialize())
    sections = [
        section
        for page in pages
        for section in plan_sections(page.nodes, collection.shared_first_level)
    ]
    layout = "shared tab strip" if collection.shared_first_level else "separate tab sets"
    console.print(
        f"{len(collection)} item(s), {len(sections)} section(s), {len(pages)} page(s); {layout}",
        markup=False,
    )
    if collection.conflicts:
        console.print(render_table(build_conflict_table(collection.conflicts)))


@app.command("validate")
def validate_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Collection YAML file."),
    data: Optional[Path] = typer.Option(
        None, "--data", "-d", help="CSV whose header provides the dataset columns."
    ),
    collect_all: bool = typer.Option(
        False, "--collect-all", help="Report every issue instead of stopping at the first."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print a JSON report."),
) -> None:
    """Validate a collection file, optionally against a CSV header."""
    settings = _settings(ctx)
    try:
        collection = load_collection(file, settings)
    except DKError as exc:
        _fail(exc, as_json)

    columns = None
    if data is not None:
        if not data.exists():
            console.print(f"Data file not found: {data}", style="red", markup=False)
            raise typer.Exit(1)
        columns = _read_columns(data)

    stop = settings.fail_fast and not collect_all
    try:
        result = collection.validate(columns, stop_on_first_error=stop)
    except SpecValidationError as exc:
        if as_json:
            payload = error_to_payload(exc)
            payload["issues"] = [issue.to_dict() for issue in exc.issues]
            typer.echo(json.dumps(payload, indent=2))
        else:
            console.print(str(exc), style="red", markup=False)
        raise typer.Exit(1)

    if as_json:
        typer.echo(
            json.dumps(
                {"valid": result.valid, "issues": [issue.to_dict() for issue in result.issues]},
                indent=2,
            )
        )
    elif result.valid:
        console.print(f"✔ {len(collection)} item(s) valid", style="green", markup=False)
    else:
        console.print(render_table(build_issue_table(result), styles=("bold", "cyan")))
    if not result.valid:
        raise typer.Exit(1)


@app.command("kinds")
def kinds_command(
    as_json: bool = typer.Option(False, "--json", help="Print the kind declarations as JSON."),
) -> None:
    """List registered item kinds and their required parameters."""
    registry = default_registry()
    if as_json:
        typer.echo(json.dumps(registry.describe(), indent=2))
        return
    console.print(render_table(build_kinds_table(registry), styles=("bold",)))


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
