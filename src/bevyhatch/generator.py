"""
bevyhatch.generator - Project Materialization
=============================================

This module turns a resolved template plus project options into a
populated directory.

Architecture
------------
Generation is a linear pipeline; the first failing stage aborts the rest:

    1. Check the target directory exists and is empty
    2. Resolve the project name
    3. Resolve licenses, CI providers and version control
    4. Resolve and load the template source
    5. Render every template entry into the target
    6. Write LICENSE-<id> files
    7. Write CI files (re-rooted per provider)
    8. Initialize the git repository

Files already written are left in place when a later stage fails: the
caller sees exactly what was produced before the error.

Write Semantics
---------------
Template files are created exclusively: an existing file at the same path
is an error. License and CI files follow the options' ``conflict_policy``:
with ``skip`` (the default) an existing file is kept and reported as
skipped, with ``fail`` it is an error.

Usage Example
-------------
>>> from bevyhatch.config import get_settings
>>> from bevyhatch.generator import new_project
>>> from bevyhatch.models import ProjectOptions
>>>
>>> result = new_project(Path("bobgame"), ProjectOptions(), get_settings())
>>> sorted(p.name for p in result.files_created)[:2]
['.gitignore', 'Cargo.toml']

See Also
--------
- loaders.py: Template sources
- renderer.py: Rendering of a single entry
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from jinja2 import Environment
from rich.console import Console
from rich.panel import Panel

from bevyhatch import vcs
from bevyhatch.config import Settings
from bevyhatch.entries import TemplateStore
from bevyhatch.errors import (
    DirectoryNotEmptyError,
    FilesystemError,
    InvalidProjectNameError,
    UnknownLicenseError,
)
from bevyhatch.loaders import (
    load_ci_templates,
    load_template,
    read_license_text,
    resolve_template_source,
)
from bevyhatch.models import (
    VCS,
    CIProvider,
    ConflictPolicy,
    License,
    ProjectOptions,
    validate_project_name,
)
from bevyhatch.renderer import create_jinja_env, render_to


logger = logging.getLogger(__name__)

# Console for rich output
console = Console()

LICENSE_SEPARATOR = " OR "


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class GenerationResult:
    """
    Outcome of a successful materialization.

    Attributes
    ----------
    project_path : Path
        Absolute path of the populated directory.

    name : str
        Resolved project name.

    files_created : list[Path]
        Every file written, in write order.

    files_skipped : list[Path]
        License/CI files left untouched because they already existed.

    licenses : tuple[License, ...]
        Licenses whose files were emitted.

    ci_providers : tuple[CIProvider, ...]
        CI providers whose files were emitted.

    vcs_initialized : bool
        Whether a git repository was initialized.
    """

    project_path: Path
    name: str
    files_created: list[Path] = field(default_factory=list)
    files_skipped: list[Path] = field(default_factory=list)
    licenses: tuple[License, ...] = ()
    ci_providers: tuple[CIProvider, ...] = ()
    vcs_initialized: bool = False


# =============================================================================
# Option Resolution
# =============================================================================


def check_target_directory(path: Path) -> None:
    """
    Ensure ``path`` is an existing, empty directory.

    Raises
    ------
    DirectoryNotEmptyError
        If the directory has any entry.
    FilesystemError
        If the path does not exist or is not a directory.
    """
    if not path.is_dir():
        raise FilesystemError(f"`{path}` is not a directory")
    try:
        has_entries = any(path.iterdir())
    except OSError as e:
        raise FilesystemError(f"could not list `{path}`") from e
    if has_entries:
        raise DirectoryNotEmptyError(f"directory is not empty: {path}")


def resolve_project_name(path: Path, name: str | None) -> str:
    """
    Return the explicit name, or the base name of ``path``.

    Raises
    ------
    InvalidProjectNameError
        If the resulting name is not a valid crate name.
    """
    candidate = name if name is not None else path.resolve().name
    try:
        return validate_project_name(candidate)
    except ValueError as e:
        raise InvalidProjectNameError(str(e)) from e


def build_context(name: str, licenses: tuple[License, ...]) -> dict[str, str]:
    """
    Build the template variable context.

    Examples
    --------
    >>> build_context("bobgame", (License.APACHE2, License.MIT))
    {'name': 'bobgame', 'license': 'Apache-2.0 OR MIT'}
    """
    return {
        "name": name,
        "license": LICENSE_SEPARATOR.join(lic.spdx_id for lic in licenses),
    }


# =============================================================================
# File Writing
# =============================================================================


def _target_path(root: Path, name: str | PurePosixPath) -> Path:
    target = root.joinpath(*PurePosixPath(name).parts)
    # Store names are already confined; resolve() also catches symlinked parents
    if not target.resolve().is_relative_to(root.resolve()):
        raise FilesystemError(f"refusing to write outside the project: {name}")
    return target


def _write_entry(
    store: TemplateStore,
    entry_name: str,
    target: Path,
    context: Mapping[str, str],
    env: Environment,
) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("xb") as sink:
            render_to(store, entry_name, context, sink, env=env)
    except FileExistsError as e:
        raise FilesystemError(f"could not create `{target}`: file already exists") from e
    except OSError as e:
        raise FilesystemError(f"could not create `{target}`") from e


def write_template_files(
    root: Path,
    store: TemplateStore,
    context: Mapping[str, str],
) -> list[Path]:
    """
    Render every entry of ``store`` into ``root``.

    Parent directories are created as needed; every file is created
    exclusively.

    Returns
    -------
    list[Path]
        Files written, in store order.

    Raises
    ------
    FilesystemError
        If a file already exists or cannot be written.
    TemplateRenderError
        If a text entry fails to render.
    """
    env = create_jinja_env(store)
    created: list[Path] = []
    for entry_name in store.names():
        target = _target_path(root, entry_name)
        _write_entry(store, entry_name, target, context, env)
        created.append(target)
        logger.debug("Created %s", target)
    return created


def _conflict(target: Path, policy: ConflictPolicy, skipped: list[Path]) -> bool:
    """Return True if ``target`` exists and must be skipped."""
    if not target.exists():
        return False
    if policy == ConflictPolicy.FAIL:
        raise FilesystemError(f"could not create `{target}`: file already exists")
    logger.info("Keeping existing %s", target)
    skipped.append(target)
    return True


def write_license_files(
    root: Path,
    licenses: tuple[License, ...],
    policy: ConflictPolicy = ConflictPolicy.SKIP,
) -> tuple[list[Path], list[Path]]:
    """
    Write one ``LICENSE-<id>`` file per license at the project root.

    Returns
    -------
    tuple[list[Path], list[Path]]
        Files created and files skipped.

    Raises
    ------
    UnknownLicenseError
        If no text ships for one of the licenses.
    FilesystemError
        If a file cannot be written (or exists under ``fail``).
    """
    created: list[Path] = []
    skipped: list[Path] = []
    for lic in licenses:
        text = read_license_text(lic.spdx_id)
        if text is None:
            raise UnknownLicenseError(f"no license text available for {lic.spdx_id}")
        target = root / lic.file_name
        if _conflict(target, policy, skipped):
            continue
        try:
            with target.open("xb") as f:
                f.write(text)
        except OSError as e:
            raise FilesystemError(f"could not create `{target}`") from e
        created.append(target)
    return created, skipped


def write_ci_files(
    root: Path,
    providers: tuple[CIProvider, ...],
    context: Mapping[str, str],
    policy: ConflictPolicy = ConflictPolicy.SKIP,
    ci_store: TemplateStore | None = None,
) -> tuple[list[Path], list[Path]]:
    """
    Write the CI files of each provider.

    Entries under the provider's source prefix (``github/...``) are
    re-rooted under its output directory (``.github/...``) and rendered.

    Returns
    -------
    tuple[list[Path], list[Path]]
        Files created and files skipped.
    """
    created: list[Path] = []
    skipped: list[Path] = []
    if not providers:
        return created, skipped

    store = ci_store if ci_store is not None else load_ci_templates()
    env = create_jinja_env(store)

    for provider in providers:
        prefix = provider.source_prefix
        for entry_name in store.names():
            entry_path = PurePosixPath(entry_name)
            if not entry_path.is_relative_to(prefix) or entry_path == prefix:
                continue
            relative = provider.output_dir / entry_path.relative_to(prefix)
            target = _target_path(root, relative)
            if _conflict(target, policy, skipped):
                continue
            _write_entry(store, entry_name, target, context, env)
            created.append(target)
    return created, skipped


# =============================================================================
# Main Generation Functions
# =============================================================================


def init_project(
    path: Path,
    options: ProjectOptions,
    settings: Settings,
    *,
    verbose: bool = False,
) -> GenerationResult:
    """
    Populate the empty directory ``path`` from a template.

    Parameters
    ----------
    path : Path
        Existing, empty target directory.

    options : ProjectOptions
        What the user asked for.

    settings : Settings
        Provides the template directory used to find named templates.

    verbose : bool, default=False
        If True, report progress on the console.

    Returns
    -------
    GenerationResult
        What was written.

    Raises
    ------
    BevyhatchError
        From whichever stage failed. Earlier output is not removed.
    """
    path = path.resolve()
    check_target_directory(path)

    name = resolve_project_name(path, options.name)
    licenses: tuple[License, ...] = options.licenses.resolve()
    ci_providers: tuple[CIProvider, ...] = options.ci.resolve()
    vcs_choice = options.vcs or VCS.GIT
    context = build_context(name, licenses)

    source = resolve_template_source(options.template, settings)
    result = GenerationResult(project_path=path, name=name)

    if verbose:
        console.print()
        console.print(
            Panel(
                f"[bold blue]Creating project:[/] [green]{name}[/]\n"
                f"[dim]Template: {source.describe()} | "
                f"License: {context['license'] or 'none'} | "
                f"CI: {', '.join(p.value for p in ci_providers) or 'none'}[/]",
                title="[bold]bevy[/]",
                border_style="blue",
            )
        )
        console.print()

    # Template files
    if verbose:
        console.print("[bold]📝 Rendering template...[/]")

    store = load_template(source)
    result.files_created.extend(write_template_files(path, store, context))

    if verbose:
        console.print(f"  Created {len(result.files_created)} file(s)")

    # License files
    if licenses:
        if verbose:
            console.print("[bold]📜 Writing licenses...[/]")
        created, skipped = write_license_files(path, licenses, options.conflict_policy)
        result.files_created.extend(created)
        result.files_skipped.extend(skipped)
        if verbose:
            for f in created:
                console.print(f"  Created {f.relative_to(path)}")
    result.licenses = licenses

    # CI files
    if ci_providers:
        if verbose:
            console.print("[bold]⚙️  Writing CI configuration...[/]")
        created, skipped = write_ci_files(
            path, ci_providers, context, options.conflict_policy,
        )
        result.files_created.extend(created)
        result.files_skipped.extend(skipped)
        if verbose:
            for f in created:
                console.print(f"  Created {f.relative_to(path)}")
            for f in skipped:
                console.print(f"  [yellow]⚠[/] Kept existing {f.relative_to(path)}")
    result.ci_providers = ci_providers

    # Version control
    if vcs_choice == VCS.GIT:
        if verbose:
            console.print("[bold]🔧 Initializing git repository...[/]")
        vcs.init_repository(path)
        result.vcs_initialized = True
        if verbose:
            console.print("  [green]✓[/] Git repository initialized")

    if verbose:
        console.print()
        console.print(
            Panel(
                f"[bold green]✨ Project created successfully![/]\n\n"
                f"[dim]Location:[/] {path}\n\n"
                f"[bold]Next steps:[/]\n"
                f"  cd {path.name}\n"
                f"  cargo run",
                title="[bold green]Success[/]",
                border_style="green",
            )
        )

    return result


def new_project(
    path: Path,
    options: ProjectOptions,
    settings: Settings,
    *,
    verbose: bool = False,
) -> GenerationResult:
    """
    Create the directory ``path`` and populate it with :func:`init_project`.

    Raises
    ------
    FilesystemError
        If the directory already exists or cannot be created.
    """
    try:
        path.mkdir(parents=True)
    except FileExistsError as e:
        raise FilesystemError(
            f"could not create `{path}`: directory already exists"
        ) from e
    except OSError as e:
        raise FilesystemError(f"could not create `{path}`") from e
    return init_project(path, options, settings, verbose=verbose)
