"""Upgrade command implementation for the scaffold-upgrade CLI."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.markup import escape

from scaffold_upgrade.cli import StepTracker
from scaffold_upgrade.config import UpgradeConfig, load_config
from scaffold_upgrade.errors import ExternalCommandFailure, UpgradeError
from scaffold_upgrade.process import encode_output
from scaffold_upgrade.upgrade.context import UpgradeContext, load_context
from scaffold_upgrade.upgrade.orchestrator import UPGRADE_STEPS, UpgradeOutcome, run_upgrade

# Progress and errors go to stderr; stdout carries only the diff (or JSON).
err_console = Console(stderr=True)


def _run_with_progress(
    context: UpgradeContext,
    config: UpgradeConfig,
    tracker: StepTracker,
    show_progress: bool,
) -> UpgradeOutcome:
    if not show_progress:
        return asyncio.run(run_upgrade(context, config, on_step=tracker.update))

    with Live(tracker.render(), console=err_console, refresh_per_second=8) as live:
        tracker.attach_refresh(lambda: live.update(tracker.render()))
        return asyncio.run(run_upgrade(context, config, on_step=tracker.update))


def _report_failure(exc: UpgradeError, context: UpgradeContext | None, json_output: bool) -> None:
    repository = context.temp_repository_dir if context else None
    if json_output:
        payload: dict[str, object] = {"status": "failed", **exc.to_dict()}
        if repository is not None:
            payload["repository"] = str(repository)
        typer.echo(json.dumps(payload, indent=2))
        return

    err_console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
    if isinstance(exc, ExternalCommandFailure) and repository is not None:
        err_console.print(
            f"[dim]The working tree was left as-is. Snapshots so far are in {repository}[/dim]"
        )


def upgrade(
    version: Optional[str] = typer.Argument(
        None, help="Target version (defaults to the latest published version)"
    ),
    project: Optional[Path] = typer.Option(
        None, "--project", "-p", help="Project directory (defaults to the current directory)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write the upgrade diff to this file"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not show progress"),
) -> None:
    """Upgrade the app's template files to a newer framework version.

    Run this after the installed framework matches the version declared in
    package.json. The result is a diff of template changes between the
    current and the new version.

    Examples:
        scaffold-upgrade upgrade              # Upgrade to latest
        scaffold-upgrade upgrade 0.26.0       # Upgrade to a specific version
        scaffold-upgrade upgrade -o up.patch  # Also save the diff
    """
    project_path = (project or Path.cwd()).resolve()
    args = [version] if version else []

    tracker = StepTracker("Upgrade template files")
    for key, label in UPGRADE_STEPS:
        tracker.add(key, label)

    context: UpgradeContext | None = None
    try:
        config = load_config(project_path)
        context = load_context(project_path, config, args)
        outcome = _run_with_progress(
            context, config, tracker, show_progress=not (quiet or json_output)
        )
    except UpgradeError as exc:
        _report_failure(exc, context, json_output)
        raise typer.Exit(1)

    if output is not None:
        try:
            output.write_bytes(encode_output(outcome.diff))
        except OSError as exc:
            err_console.print(f"[red]Error:[/red] Could not write {output}: {escape(str(exc))}")
            raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(outcome.to_dict(), indent=2))
        return

    # Bytes go to the binary stream unchanged, so non-UTF-8 template content still applies.
    typer.echo(encode_output(outcome.diff), nl=False)
    if not quiet:
        err_console.print(
            f"[bold green]Upgrade diff ready![/bold green] {outcome.from_version} -> {outcome.to_version}"
        )
        err_console.print(f"[dim]Snapshots kept in {outcome.repository_dir}[/dim]")


__all__ = ["upgrade"]
