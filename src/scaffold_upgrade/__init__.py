"""
scaffold-upgrade - upgrade generated app templates to a newer framework version.

Usage:
    scaffold-upgrade upgrade
    scaffold-upgrade upgrade 0.26.0
"""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version as _package_version

import typer
from rich.console import Console
from rich.text import Text

try:
    __version__ = _package_version("scaffold-upgrade")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

TAGLINE = "scaffold-upgrade - keep your customizations, adopt new templates"

console = Console()

app = typer.Typer(
    name="scaffold-upgrade",
    help="Upgrade a generated project's template files while preserving local edits",
    add_completion=False,
    invoke_without_command=True,
)


def show_banner():
    """Display the tagline."""
    console.print(Text(TAGLINE, style="italic bright_yellow"))
    console.print()


def _version_callback(value: bool):
    if value:
        console.print(f"scaffold-upgrade {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Show banner when no subcommand is provided."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if ctx.invoked_subcommand is None:
        show_banner()
        console.print("[dim]Run 'scaffold-upgrade --help' for usage information[/dim]")


from scaffold_upgrade.cli.commands.upgrade import upgrade as upgrade_command  # noqa: E402

app.command(name="upgrade")(upgrade_command)


def main():
    app()


if __name__ == "__main__":
    main()
