"""
bevyhatch.models - Pydantic Models for Project Options
======================================================

This module defines the option and metadata models used throughout
bevyhatch. As in the rest of the package, Pydantic gives us validation with
clear error messages, immutable option objects and easy construction from
parsed TOML documents.

Architecture Notes
------------------
The models are organized in a hierarchy:

    ProjectOptions (main, frozen)
    ├── name: str | None
    ├── licenses: LicenseSelection
    │   ├── mode: SelectionMode (default | explicit | empty)
    │   └── items: tuple[License, ...]
    ├── ci: CISelection
    │   ├── mode: SelectionMode
    │   └── items: tuple[CIProvider, ...]
    ├── template: str | None
    ├── vcs: VCS | None
    └── conflict_policy: ConflictPolicy

    AssetDescriptor (remote template metadata)
    ├── name: str
    └── link: str

Selections replace "sentinel inside a list" option handling: the CLI turns
``--license none`` into ``SelectionMode.EMPTY`` once, at the boundary, and
nothing downstream ever looks for a sentinel again.

Usage Example
-------------
>>> from bevyhatch.models import LicenseSelection, License
>>> LicenseSelection().resolve()
(<License.APACHE2: 'Apache-2.0'>, <License.MIT: 'MIT'>)
>>> LicenseSelection.from_values(["MIT", "none"]).resolve()
()
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import PurePosixPath
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Constants
# =============================================================================

# Value accepted on the command line to explicitly select nothing
NONE_SENTINEL = "none"

# Crate names: start with a letter, then letters, digits, '-' or '_'
PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

# Rust keywords cargo refuses as package names
RUST_KEYWORDS = frozenset({
    "as", "async", "await", "break", "const", "continue", "crate", "dyn",
    "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
    "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
    "self", "Self", "static", "struct", "super", "trait", "true", "type",
    "unsafe", "use", "where", "while", "abstract", "become", "box", "do",
    "final", "macro", "override", "priv", "typeof", "unsized", "virtual",
    "yield", "try",
})


# =============================================================================
# Enumerations
# =============================================================================

class License(str, Enum):
    """
    Licenses selectable for a new project.

    Values are SPDX identifiers; they name the ``LICENSE-<id>`` file written
    into the project and are joined with ``" OR "`` into the ``license``
    template variable.

    Note
    ----
    License texts ship only for Apache-2.0, MIT and CC0-1.0. Selecting any
    other license makes license emission fail with ``UnknownLicenseError``.

    References
    ----------
    - https://spdx.org/licenses/ for SPDX identifiers
    """

    APACHE2 = "Apache-2.0"
    MIT = "MIT"
    CC0 = "CC0-1.0"
    GPL2 = "GPL-2.0-only"
    GPL3 = "GPL-3.0-only"
    OTHER = "Other"

    @property
    def spdx_id(self) -> str:
        """SPDX license identifier (same as the enum value)."""
        return self.value

    @property
    def file_name(self) -> str:
        """Name of the license file written at the project root."""
        return f"LICENSE-{self.value}"

    @classmethod
    def parse(cls, value: str) -> License:
        """
        Look up a license by SPDX id or enum name, case-insensitively.

        Raises
        ------
        ValueError
            If no license matches.
        """
        needle = value.strip().lower()
        for lic in cls:
            if needle in {lic.value.lower(), lic.name.lower()}:
                return lic
        valid = ", ".join(lic.value for lic in cls)
        msg = f"Invalid license '{value}'. Valid: {valid}, {NONE_SENTINEL}"
        raise ValueError(msg)


class CIProvider(str, Enum):
    """
    Continuous integration providers with bundled workflow files.

    CI template entries are namespaced by :attr:`source_prefix` inside the
    bundled CI assets and are written under :attr:`output_dir` in the
    generated project.
    """

    GITHUB = "github"

    @property
    def source_prefix(self) -> PurePosixPath:
        """Directory of this provider's entries inside the CI assets."""
        prefixes = {
            CIProvider.GITHUB: PurePosixPath("github"),
        }
        return prefixes[self]

    @property
    def output_dir(self) -> PurePosixPath:
        """Directory the provider's files are re-rooted under."""
        outputs = {
            CIProvider.GITHUB: PurePosixPath(".github"),
        }
        return outputs[self]

    @classmethod
    def parse(cls, value: str) -> CIProvider:
        """Look up a provider by name, case-insensitively."""
        needle = value.strip().lower()
        for provider in cls:
            if needle == provider.value:
                return provider
        valid = ", ".join(p.value for p in cls)
        msg = f"Invalid CI provider '{value}'. Valid: {valid}, {NONE_SENTINEL}"
        raise ValueError(msg)


class VCS(str, Enum):
    """Version control to initialize in the new project."""

    GIT = "git"
    NONE = "none"


class SelectionMode(str, Enum):
    """
    How a multi-valued option was specified.

    Attributes
    ----------
    DEFAULT : str
        Nothing was specified; use the built-in default set.

    EXPLICIT : str
        The user listed the items to use.

    EMPTY : str
        The user explicitly asked for nothing.
    """

    DEFAULT = "default"
    EXPLICIT = "explicit"
    EMPTY = "empty"


class ConflictPolicy(str, Enum):
    """
    What to do when a license or CI file already exists in the target.

    SKIP keeps the existing file and records it as skipped. FAIL raises
    ``FilesystemError``.
    """

    SKIP = "skip"
    FAIL = "fail"


# =============================================================================
# Selections
# =============================================================================

class _Selection(BaseModel):
    """
    Shared behaviour of the license and CI selections.

    Subclasses declare the ``items`` type, ``DEFAULT_ITEMS`` and the
    ``parse_item`` hook used by :meth:`from_values`.
    """

    model_config = ConfigDict(frozen=True)

    DEFAULT_ITEMS: ClassVar[tuple] = ()

    mode: SelectionMode = Field(
        default=SelectionMode.DEFAULT,
        description="Whether to use the default, explicit or empty set",
    )

    def resolve(self) -> tuple:
        """
        Return the effective items for this selection.

        Explicit items are de-duplicated, keeping their first position.
        """
        if self.mode == SelectionMode.EMPTY:
            return ()
        if self.mode == SelectionMode.DEFAULT:
            return self.DEFAULT_ITEMS
        return tuple(dict.fromkeys(self.items))  # type: ignore[attr-defined]

    @classmethod
    def parse_item(cls, value: str):  # pragma: no cover - overridden
        raise NotImplementedError

    @classmethod
    def from_values(cls, values: list[str] | None) -> Self:
        """
        Build a selection from raw command line values.

        No values selects the default set. The ``none`` sentinel anywhere in
        the list selects the empty set, whatever else was given.

        Raises
        ------
        ValueError
            If a value is not a known item.
        """
        if not values:
            return cls()
        if any(v.strip().lower() == NONE_SENTINEL for v in values):
            return cls(mode=SelectionMode.EMPTY)
        return cls(
            mode=SelectionMode.EXPLICIT,
            items=tuple(cls.parse_item(v) for v in values),
        )

    @classmethod
    def explicit(cls, *items) -> Self:
        """Shorthand for an explicit selection of ``items``."""
        return cls(mode=SelectionMode.EXPLICIT, items=tuple(items))

    @classmethod
    def empty(cls) -> Self:
        """Shorthand for the explicitly empty selection."""
        return cls(mode=SelectionMode.EMPTY)


class LicenseSelection(_Selection):
    """
    Licenses to write into the project.

    Examples
    --------
    >>> LicenseSelection().resolve()
    (<License.APACHE2: 'Apache-2.0'>, <License.MIT: 'MIT'>)
    >>> LicenseSelection.explicit(License.MIT).resolve()
    (<License.MIT: 'MIT'>,)
    """

    DEFAULT_ITEMS: ClassVar[tuple[License, ...]] = (License.APACHE2, License.MIT)

    items: tuple[License, ...] = Field(
        default=(),
        description="Explicitly selected licenses",
    )

    @classmethod
    def parse_item(cls, value: str) -> License:
        return License.parse(value)


class CISelection(_Selection):
    """CI providers whose workflow files are written into the project."""

    DEFAULT_ITEMS: ClassVar[tuple[CIProvider, ...]] = (CIProvider.GITHUB,)

    items: tuple[CIProvider, ...] = Field(
        default=(),
        description="Explicitly selected CI providers",
    )

    @classmethod
    def parse_item(cls, value: str) -> CIProvider:
        return CIProvider.parse(value)


# =============================================================================
# Main Options Model
# =============================================================================

class ProjectOptions(BaseModel):
    """
    Everything the user chose for a new project.

    The options are constructed once (by the CLI or a library caller),
    validated by Pydantic, and never mutated afterwards. Defaults are
    resolved by the generator, not here, so that ``None`` still means
    "not specified".

    Attributes
    ----------
    name : str | None
        Project (crate) name. Defaults to the target directory name.

    licenses : LicenseSelection
        Licenses to emit. Defaults to Apache-2.0 and MIT.

    ci : CISelection
        CI providers to emit. Defaults to GitHub Actions.

    template : str | None
        Installed template name, or a path to a template directory or
        ``.zip`` archive. ``None`` selects the bundled default template.

    vcs : VCS | None
        Version control to initialize. Defaults to git.

    conflict_policy : ConflictPolicy
        Behaviour when a license or CI file already exists.

    Examples
    --------
    >>> options = ProjectOptions(name="bobgame", vcs=VCS.NONE)
    >>> options.licenses.mode
    <SelectionMode.DEFAULT: 'default'>
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(
        default=None,
        description="Project name (defaults to the directory name)",
    )
    licenses: LicenseSelection = Field(
        default_factory=LicenseSelection,
        description="Licenses to include",
    )
    ci: CISelection = Field(
        default_factory=CISelection,
        description="Continuous integration providers to include",
    )
    template: str | None = Field(
        default=None,
        description="Template name or path (default: bundled template)",
    )
    vcs: VCS | None = Field(
        default=None,
        description="Version control to initialize (default: git)",
    )
    conflict_policy: ConflictPolicy = Field(
        default=ConflictPolicy.SKIP,
        description="What to do when a license or CI file already exists",
    )

    @field_validator("name", "template")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        """Treat blank strings as "not specified"."""
        if v is None:
            return None
        v = v.strip()
        return v or None


def validate_project_name(name: str) -> str:
    """
    Check that ``name`` can be used as a crate name.

    Parameters
    ----------
    name : str
        The candidate name.

    Returns
    -------
    str
        The name, stripped of surrounding whitespace.

    Raises
    ------
    ValueError
        If the name has invalid characters or is a Rust keyword.
    """
    name = name.strip()
    if not PROJECT_NAME_PATTERN.match(name):
        msg = (
            f"Invalid project name '{name}'. Names must start with a letter "
            "and contain only letters, numbers, hyphens, and underscores."
        )
        raise ValueError(msg)
    if name in RUST_KEYWORDS:
        msg = f"'{name}' is a Rust keyword and cannot be used as a project name."
        raise ValueError(msg)
    return name


# =============================================================================
# Remote Template Metadata
# =============================================================================

class AssetDescriptor(BaseModel):
    """
    Remote metadata mapping a template name to its git repository.

    Descriptors are small TOML documents published at
    ``<template_url>/<name>.toml``::

        name = "2d-game"
        link = "https://github.com/example/bevy-2d-template.git"

    Attributes
    ----------
    name : str
        Name the template is installed under.

    link : str
        URL (or path) git can clone from.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1, description="Installed template name")
    link: str = Field(min_length=1, description="Repository URL to clone")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that would escape the template directory."""
        v = v.strip()
        if not v or "/" in v or "\\" in v or v in {".", ".."}:
            msg = f"Invalid template name '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Template link must not be empty"
            raise ValueError(msg)
        return v
