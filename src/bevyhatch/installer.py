"""
bevyhatch.installer - Template Installation
===========================================

Installs named templates from the remote template index into the local
template directory, lists what is installed and removes templates.

Installation
------------
1. Fetch ``<template_url>/<name>.toml`` (the asset descriptor)
2. Parse and validate it into an :class:`~bevyhatch.models.AssetDescriptor`
3. Bare-clone ``descriptor.link`` to ``<template_dir>/<descriptor.name>``

An existing clone is reused as-is. Pass ``refresh=True`` to fetch the latest
branches into it instead. Installation is not guarded against concurrent
runs for the same template.

Usage
-----
>>> from bevyhatch.config import get_settings
>>> settings = get_settings()
>>> install_template("2d-game", settings)
PosixPath('/home/user/.config/bevy/templates/2d-game')
>>> [t.name for t in list_templates(settings)]
['2d-game']
"""

from __future__ import annotations

import logging
import shutil
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import httpx
from pydantic import ValidationError

from bevyhatch import vcs
from bevyhatch.config import Settings
from bevyhatch.errors import (
    FilesystemError,
    MalformedDescriptorError,
    NetworkError,
    RepositoryError,
    TemplateNotFoundError,
)
from bevyhatch.models import AssetDescriptor


logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".toml"
ARCHIVE_SUFFIX = ".zip"


class TemplateKind(str, Enum):
    """How an installed template is stored."""

    REPOSITORY = "repository"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class InstalledTemplate:
    """A template found in the template directory."""

    name: str
    kind: TemplateKind
    path: Path


# =============================================================================
# Descriptors
# =============================================================================


def descriptor_url(name: str, settings: Settings) -> str:
    """
    URL of the asset descriptor for ``name``.

    Examples
    --------
    >>> descriptor_url("2d-game", Settings(template_url="https://example.com/t/"))
    'https://example.com/t/2d-game.toml'
    """
    return f"{settings.template_url.rstrip('/')}/{name}{DESCRIPTOR_SUFFIX}"


def parse_descriptor(document: str, source: str = "<descriptor>") -> AssetDescriptor:
    """
    Parse a descriptor TOML document.

    Raises
    ------
    MalformedDescriptorError
        If the document is not TOML or does not match the schema.
    """
    try:
        data = tomllib.loads(document)
        return AssetDescriptor(**data)
    except tomllib.TOMLDecodeError as e:
        raise MalformedDescriptorError(f"could not parse descriptor {source}: {e}") from e
    except (ValidationError, TypeError) as e:
        raise MalformedDescriptorError(f"invalid descriptor {source}: {e}") from e


def fetch_descriptor(
    name: str,
    settings: Settings,
    client: httpx.Client | None = None,
) -> AssetDescriptor:
    """
    Download and parse the asset descriptor for ``name``.

    Parameters
    ----------
    name : str
        Template name as published in the index.

    settings : Settings
        Provides the index URL.

    client : httpx.Client | None
        HTTP client to use; a short-lived one is created when omitted.

    Raises
    ------
    NetworkError
        If the request fails or returns an error status.
    MalformedDescriptorError
        If the response is not a valid descriptor.
    """
    url = descriptor_url(name, settings)
    logger.debug("Fetching descriptor %s", url)

    owns_client = client is None
    http = client or httpx.Client(follow_redirects=True)
    try:
        response = http.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise TemplateNotFoundError(f"template `{name}` not found at {url}") from e
        raise NetworkError(f"could not fetch {url}: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise NetworkError(f"could not fetch {url}") from e
    finally:
        if owns_client:
            http.close()

    return parse_descriptor(response.text, url)


# =============================================================================
# Install / List / Uninstall
# =============================================================================


def install_template(
    name: str,
    settings: Settings,
    *,
    refresh: bool = False,
    client: httpx.Client | None = None,
) -> Path:
    """
    Install the template ``name`` into the template directory.

    Parameters
    ----------
    name : str
        Template name in the remote index.

    settings : Settings
        Template directory and index URL.

    refresh : bool, default=False
        If the template is already installed, fetch its latest branches
        instead of reusing the clone unchanged.

    client : httpx.Client | None
        HTTP client for the descriptor fetch.

    Returns
    -------
    Path
        Path of the bare clone.

    Raises
    ------
    NetworkError, MalformedDescriptorError
        If the descriptor cannot be obtained.
    RepositoryError
        If cloning or refreshing fails.
    """
    descriptor = fetch_descriptor(name, settings, client)
    destination = settings.ensure_template_dir() / descriptor.name

    if destination.exists():
        if refresh:
            logger.info("Refreshing template %s at %s", descriptor.name, destination)
            vcs.fetch_all(destination)
        else:
            logger.info("Template %s already installed at %s", descriptor.name, destination)
        return destination

    logger.info("Cloning %s into %s", descriptor.link, destination)
    try:
        vcs.clone_bare(descriptor.link, destination)
    except RepositoryError as e:
        raise RepositoryError(f"could not install template `{descriptor.name}`") from e
    return destination


def list_templates(settings: Settings) -> list[InstalledTemplate]:
    """
    List installed templates, sorted by name.

    Directories are repository templates, ``.zip`` files archive templates;
    anything else in the directory is ignored.
    """
    directory = settings.template_dir
    if not directory.is_dir():
        return []

    installed: list[InstalledTemplate] = []
    try:
        for path in directory.iterdir():
            if path.is_dir():
                installed.append(InstalledTemplate(path.name, TemplateKind.REPOSITORY, path))
            elif path.is_file() and path.suffix == ARCHIVE_SUFFIX:
                installed.append(InstalledTemplate(path.stem, TemplateKind.ARCHIVE, path))
    except OSError as e:
        raise FilesystemError(f"could not list `{directory}`") from e
    return sorted(installed, key=lambda t: (t.name, t.kind.value))


def uninstall_template(name: str, settings: Settings) -> Path:
    """
    Remove the installed template ``name``.

    A repository template is removed in preference to an archive of the
    same name, matching the order templates are resolved in.

    Returns
    -------
    Path
        The path that was removed.

    Raises
    ------
    TemplateNotFoundError
        If no such template is installed.
    FilesystemError
        If removal fails.
    """
    for template in list_templates(settings):
        if template.name != name:
            continue
        try:
            if template.kind == TemplateKind.REPOSITORY:
                shutil.rmtree(template.path)
            else:
                template.path.unlink()
        except OSError as e:
            raise FilesystemError(f"could not remove `{template.path}`") from e
        logger.info("Removed template %s", template.path)
        return template.path

    raise TemplateNotFoundError(f"template `{name}` is not installed")
