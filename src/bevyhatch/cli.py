"""
bevyhatch.cli - Command Line Interface
======================================

This module provides the ``bevy`` command line using Typer.

Architecture
------------
The CLI is structured around Typer's app pattern:

    app (main entry point)
    ├── new        - Create a directory and scaffold a project in it
    ├── init       - Scaffold a project into an existing empty directory
    └── templates
        ├── install    - Install a template from the remote index
        ├── list       - List installed templates
        └── uninstall  - Remove an installed template

Settings are resolved once in the app callback and handed to every command
through the Typer context.

Usage Examples
--------------
    $ bevy new bobgame
    $ bevy new bobgame --license MIT --ci none --vcs none
    $ bevy init --template 2d-game
    $ bevy templates install 2d-game
    $ bevy templates list
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import questionary
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from bevyhatch import __version__
from bevyhatch.config import Settings, get_settings
from bevyhatch.errors import BevyhatchError, error_chain
from bevyhatch.generator import init_project, new_project
from bevyhatch.installer import install_template, list_templates, uninstall_template
from bevyhatch.models import (
    VCS,
    CIProvider,
    CISelection,
    ConflictPolicy,
    License,
    LicenseSelection,
    ProjectOptions,
)


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="bevy",
    help="Command line tool for creating Bevy projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

templates_app = typer.Typer(
    help="Manage installed templates.",
    no_args_is_help=True,
)
app.add_typer(templates_app, name="templates")

# Console for rich output
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold green]bevy[/] version [cyan]{__version__}[/]")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def fail(error: BevyhatchError, context: str | None = None) -> typer.Exit:
    """Print the error chain of ``error`` and return an exit to raise."""
    messages = list(error_chain(error))
    if context:
        messages.insert(0, context)
    err_console.print(f"[red]Error:[/] {messages[0]}")
    for message in messages[1:]:
        err_console.print(f"  [dim]caused by:[/] {message}")
    return typer.Exit(1)


def settings_from(ctx: typer.Context) -> Settings:
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return get_settings()


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging.",
        ),
    ] = False,
) -> None:
    """
    [bold]bevy[/] - Create Bevy game projects from templates.

    [bold]Quick Start:[/]

        bevy new my_game
    """
    configure_logging(verbose)
    ctx.obj = get_settings()


# =============================================================================
# Project Options
# =============================================================================

NameOption = Annotated[
    str | None,
    typer.Option("--name", "-n", help="Project name (default: directory name)"),
]
LicenseOption = Annotated[
    list[str] | None,
    typer.Option(
        "--license",
        "-l",
        help="License (repeatable): Apache-2.0, MIT, CC0-1.0, ... or 'none'",
    ),
]
CIOption = Annotated[
    list[str] | None,
    typer.Option(
        "--ci",
        "-c",
        help="Continuous integration provider (repeatable): github or 'none'",
    ),
]
TemplateOption = Annotated[
    str | None,
    typer.Option(
        "--template",
        "-t",
        help="Installed template name, or path to a git repository, template directory or .zip",
    ),
]
VCSOption = Annotated[
    VCS | None,
    typer.Option("--vcs", help="Version control to initialize (default: git)"),
]
ConflictOption = Annotated[
    ConflictPolicy,
    typer.Option(
        "--ci-conflict",
        help="When a license or CI file already exists: skip it or fail",
    ),
]
InteractiveOption = Annotated[
    bool,
    typer.Option("--interactive", "-i", help="Prompt for name, licenses and CI"),
]


def prompt_options(default_name: str) -> tuple[str, LicenseSelection, CISelection]:
    """
    Interactively prompt for the project name, licenses and CI providers.

    Raises
    ------
    typer.Abort
        If a prompt is cancelled.
    """
    name = questionary.text("Project name?", default=default_name).ask()
    if name is None:
        raise typer.Abort()

    licenses = questionary.checkbox(
        "Licenses?",
        choices=[
            questionary.Choice(title=lic.value, value=lic, checked=lic in LicenseSelection.DEFAULT_ITEMS)
            for lic in License
        ],
    ).ask()
    if licenses is None:
        raise typer.Abort()

    providers = questionary.checkbox(
        "Continuous integration?",
        choices=[
            questionary.Choice(title=p.value, value=p, checked=p in CISelection.DEFAULT_ITEMS)
            for p in CIProvider
        ],
    ).ask()
    if providers is None:
        raise typer.Abort()

    license_selection = LicenseSelection.explicit(*licenses) if licenses else LicenseSelection.empty()
    ci_selection = CISelection.explicit(*providers) if providers else CISelection.empty()
    return name, license_selection, ci_selection


def build_options(
    path: Path,
    *,
    name: str | None,
    licenses: list[str] | None,
    ci: list[str] | None,
    template: str | None,
    vcs: VCS | None,
    conflict: ConflictPolicy,
    interactive: bool,
) -> ProjectOptions:
    """Turn raw command line values into :class:`ProjectOptions`."""
    try:
        license_selection = LicenseSelection.from_values(licenses)
        ci_selection = CISelection.from_values(ci)
    except ValueError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    if interactive:
        name, license_selection, ci_selection = prompt_options(name or path.resolve().name)

    return ProjectOptions(
        name=name,
        licenses=license_selection,
        ci=ci_selection,
        template=template,
        vcs=vcs,
        conflict_policy=conflict,
    )


# =============================================================================
# New / Init Commands
# =============================================================================

@app.command()
def new(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Directory to create")],
    name: NameOption = None,
    license_: LicenseOption = None,
    ci: CIOption = None,
    template: TemplateOption = None,
    vcs: VCSOption = None,
    ci_conflict: ConflictOption = ConflictPolicy.SKIP,
    interactive: InteractiveOption = False,
) -> None:
    """
    Start a new project in a new directory.

    [bold]Examples:[/]

        bevy new my_game
        bevy new my_game --license MIT --ci none
        bevy new my_game --template 2d-game
    """
    target = Path(path)
    options = build_options(
        target,
        name=name,
        licenses=license_,
        ci=ci,
        template=template,
        vcs=vcs,
        conflict=ci_conflict,
        interactive=interactive,
    )
    try:
        new_project(target, options, settings_from(ctx), verbose=True)
    except BevyhatchError as e:
        raise fail(e, f"Could not create `{path}`") from e


@app.command()
def init(
    ctx: typer.Context,
    path: Annotated[
        Path | None,
        typer.Argument(help="Empty directory to initialize (default: current directory)"),
    ] = None,
    name: NameOption = None,
    license_: LicenseOption = None,
    ci: CIOption = None,
    template: TemplateOption = None,
    vcs: VCSOption = None,
    ci_conflict: ConflictOption = ConflictPolicy.SKIP,
    interactive: InteractiveOption = False,
) -> None:
    """
    Initialize a project in an existing, empty directory.

    [bold]Examples:[/]

        bevy init
        bevy init ./my_game --name my_game
    """
    target = Path.cwd() / path if path is not None else Path.cwd()
    options = build_options(
        target,
        name=name,
        licenses=license_,
        ci=ci,
        template=template,
        vcs=vcs,
        conflict=ci_conflict,
        interactive=interactive,
    )
    try:
        init_project(target, options, settings_from(ctx), verbose=True)
    except BevyhatchError as e:
        raise fail(e, "Could not initialize project") from e


# =============================================================================
# Template Commands
# =============================================================================

@templates_app.command("install")
def templates_install(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Template name in the template index")],
    refresh: Annotated[
        bool,
        typer.Option("--refresh", help="Update the template if it is already installed"),
    ] = False,
) -> None:
    """Install a template from the template index."""
    settings = settings_from(ctx)
    try:
        with console.status(f"Installing {name}..."):
            path = install_template(name, settings, refresh=refresh)
    except BevyhatchError as e:
        raise fail(e) from e

    console.print(Panel(
        f"[bold green]Installed {name}![/]\n\n[dim]Location:[/] {path}\n\n"
        f"Use it with: bevy new my_game --template {path.name}",
        title="[bold]Success[/]",
        border_style="green",
    ))


@templates_app.command("list")
def templates_list(ctx: typer.Context) -> None:
    """List installed templates."""
    settings = settings_from(ctx)
    try:
        installed = list_templates(settings)
    except BevyhatchError as e:
        raise fail(e) from e

    if not installed:
        console.print(f"[dim]No templates installed in {settings.template_dir}[/]")
        return

    table = Table(title="Installed Templates", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Path", style="dim")
    for template in installed:
        table.add_row(template.name, template.kind.value, str(template.path))
    console.print(table)


@templates_app.command("uninstall")
def templates_uninstall(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Installed template to remove")],
) -> None:
    """Remove an installed template."""
    try:
        path = uninstall_template(name, settings_from(ctx))
    except BevyhatchError as e:
        raise fail(e) from e
    console.print(f"[green]✓[/] Removed {path}")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
