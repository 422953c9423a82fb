"""
bevyhatch.loaders - Template Source Loaders
===========================================

Turns a template source into a :class:`~bevyhatch.entries.TemplateStore`.

Sources
-------
A template source is one of four variants:

    EmbeddedSource            the default template bundled with bevyhatch
    ArchiveSource(path)       a .zip archive
    RepositorySource(path)    a git repository (usually a bare clone)
    DirectorySource(path)     a plain directory of template files

:func:`resolve_template_source` picks the variant for a template name and
:func:`load_template` dispatches to the loader for that variant. Every
loader adds all the files it finds: undecodable content becomes a BINARY
entry, it is never dropped.

Archive Convention
------------------
Archives exported from a code host wrap everything in one top-level
directory (``bevy-template-main/Cargo.toml``). When every file of the
archive sits under the same top-level directory, that component is
stripped. Entries with absolute or ``..`` paths are skipped.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path, PurePosixPath

from bevyhatch import vcs
from bevyhatch.config import Settings
from bevyhatch.entries import TemplateStore, safe_entry_name
from bevyhatch.errors import FilesystemError, RepositoryError, TemplateNotFoundError


logger = logging.getLogger(__name__)

# Package resource directories holding bundled assets
DEFAULT_TEMPLATE_DIR = "default_template"
CI_TEMPLATE_DIR = "ci"


# =============================================================================
# Template Sources
# =============================================================================


@dataclass(frozen=True)
class EmbeddedSource:
    """The default template bundled with bevyhatch."""

    def describe(self) -> str:
        return "bundled default template"


@dataclass(frozen=True)
class ArchiveSource:
    """A template stored as a zip archive."""

    path: Path

    def describe(self) -> str:
        return f"archive {self.path}"


@dataclass(frozen=True)
class RepositorySource:
    """A template stored as a git repository."""

    path: Path

    def describe(self) -> str:
        return f"repository {self.path}"


@dataclass(frozen=True)
class DirectorySource:
    """A template stored as a plain directory tree."""

    path: Path

    def describe(self) -> str:
        return f"directory {self.path}"


TemplateSource = EmbeddedSource | ArchiveSource | RepositorySource | DirectorySource


def is_git_repository(path: Path) -> bool:
    """Return True if ``path`` is a git work tree or a bare repository."""
    if (path / ".git").exists():
        return True
    return (path / "HEAD").is_file() and (path / "objects").is_dir()


def _directory_source(path: Path) -> RepositorySource | DirectorySource:
    if is_git_repository(path):
        return RepositorySource(path)
    return DirectorySource(path)


def resolve_template_source(template: str | None, settings: Settings) -> TemplateSource:
    """
    Decide where the template called ``template`` comes from.

    Resolution order:

    1. ``None`` selects the bundled default template.
    2. ``<template_dir>/<template>`` if it is a directory (installed clone,
       or a plain template directory).
    3. ``<template_dir>/<template>.zip`` if it is a file.
    4. ``template`` itself, if it is a path to a directory or a ``.zip``.

    Directories that are git repositories load from their HEAD commit;
    other directories load every file they contain.

    Parameters
    ----------
    template : str | None
        Template name or path.

    settings : Settings
        Provides the template directory.

    Returns
    -------
    TemplateSource
        The resolved source variant.

    Raises
    ------
    TemplateNotFoundError
        If nothing matches.
    """
    if template is None:
        return EmbeddedSource()

    repository = settings.template_dir / template
    if repository.is_dir():
        return _directory_source(repository)

    archive = settings.template_dir / f"{template}.zip"
    if archive.is_file():
        return ArchiveSource(archive)

    direct = Path(template).expanduser()
    if direct.is_dir():
        return _directory_source(direct)
    if direct.is_file() and direct.suffix == ".zip":
        return ArchiveSource(direct)

    raise TemplateNotFoundError(
        f"template `{template}` is not installed in {settings.template_dir}"
    )


def load_template(source: TemplateSource) -> TemplateStore:
    """Load the entries of ``source`` with the loader for its variant."""
    logger.debug("Loading %s", source.describe())
    if isinstance(source, EmbeddedSource):
        return load_embedded()
    if isinstance(source, ArchiveSource):
        return load_archive(source.path)
    if isinstance(source, RepositorySource):
        return load_repository(source.path)
    if isinstance(source, DirectorySource):
        return load_directory(source.path)
    raise TypeError(f"Unknown template source: {source!r}")


# =============================================================================
# Archive Loader
# =============================================================================


def _wrapper_directory(names: list[str]) -> str | None:
    """Return the single top-level directory shared by all ``names``, if any."""
    tops = set()
    for name in names:
        head, sep, _ = name.replace("\\", "/").lstrip("/").partition("/")
        if not sep:
            return None
        tops.add(head)
    if len(tops) == 1 and safe_entry_name(next(iter(tops))) is not None:
        return tops.pop()
    return None


def load_archive(path: Path) -> TemplateStore:
    """
    Build a store from the files of a zip archive.

    Parameters
    ----------
    path : Path
        The ``.zip`` file.

    Returns
    -------
    TemplateStore
        One entry per safe file entry, wrapper directory stripped.

    Raises
    ------
    FilesystemError
        If the archive cannot be opened or an entry cannot be read.
    """
    store = TemplateStore()
    try:
        with zipfile.ZipFile(path) as archive:
            infos = [info for info in archive.infolist() if not info.is_dir()]
            wrapper = _wrapper_directory([info.filename for info in infos])

            for info in infos:
                raw = info.filename.replace("\\", "/")
                if wrapper is not None:
                    raw = raw.lstrip("/").split("/", 1)[1]
                name = None if raw.startswith("/") else safe_entry_name(raw)
                if name is None or info.filename.startswith(("/", "\\")):
                    logger.warning("Skipping unsafe archive entry %r in %s", info.filename, path)
                    continue
                store.add(name, archive.read(info))
    except (OSError, zipfile.BadZipFile) as e:
        raise FilesystemError(f"could not read template archive `{path}`") from e

    logger.debug("Loaded %d entries from archive %s", len(store), path)
    return store


# =============================================================================
# Repository Loader
# =============================================================================


def load_repository(path: Path) -> TemplateStore:
    """
    Build a store from the HEAD commit of a git repository.

    The whole load fails if any blob cannot be read; a partial store is
    never returned.

    Raises
    ------
    RepositoryError
        If the repository cannot be read or holds an unsafe path.
    """
    store = TemplateStore()
    try:
        for blob in vcs.iter_head_blobs(path):
            name = safe_entry_name(blob.path)
            if name is None:
                raise RepositoryError(f"unsafe path `{blob.path}` in repository {path}")
            store.add(name, vcs.read_blob(path, blob.object_id))
    except RepositoryError as e:
        raise RepositoryError(f"could not load template repository `{path}`") from e

    logger.debug("Loaded %d entries from repository %s", len(store), path)
    return store


# =============================================================================
# Directory Loader
# =============================================================================


def load_directory(path: Path) -> TemplateStore:
    """
    Build a store from every file under a plain directory.

    A ``.git`` directory, if present, is not part of the template.

    Raises
    ------
    FilesystemError
        If the directory cannot be walked or a file cannot be read.
    """
    store = TemplateStore()
    try:
        for file in sorted(path.rglob("*")):
            relative = file.relative_to(path)
            if ".git" in relative.parts or not file.is_file():
                continue
            store.add(relative.as_posix(), file.read_bytes())
    except OSError as e:
        raise FilesystemError(f"could not read template directory `{path}`") from e

    logger.debug("Loaded %d entries from directory %s", len(store), path)
    return store


# =============================================================================
# Embedded Loader
# =============================================================================


def _walk(node: Traversable, prefix: PurePosixPath) -> list[tuple[str, Traversable]]:
    files: list[tuple[str, Traversable]] = []
    for child in sorted(node.iterdir(), key=lambda c: c.name):
        if child.name == "__pycache__":
            continue
        if child.is_dir():
            files.extend(_walk(child, prefix / child.name))
        else:
            files.append((str(prefix / child.name), child))
    return files


def load_package_assets(directory: str) -> TemplateStore:
    """
    Build a store from a directory of bundled assets.

    Parameters
    ----------
    directory : str
        Directory under ``bevyhatch/assets``.

    Raises
    ------
    FilesystemError
        If the resources cannot be read.
    """
    store = TemplateStore()
    root = resources.files("bevyhatch") / "assets" / directory
    try:
        for name, resource in _walk(root, PurePosixPath()):
            store.add(name, resource.read_bytes())
    except OSError as e:
        raise FilesystemError(f"could not read bundled assets `{directory}`") from e
    return store


def load_embedded() -> TemplateStore:
    """Load the bundled default template."""
    return load_package_assets(DEFAULT_TEMPLATE_DIR)


def load_ci_templates() -> TemplateStore:
    """Load the bundled CI files, namespaced by provider directory."""
    return load_package_assets(CI_TEMPLATE_DIR)


def read_license_text(spdx_id: str) -> bytes | None:
    """Return the bundled text for a license, or None if none ships."""
    resource = resources.files("bevyhatch") / "assets" / "licenses" / spdx_id
    if not resource.is_file():
        return None
    return resource.read_bytes()
