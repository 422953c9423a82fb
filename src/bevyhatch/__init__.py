"""
bevyhatch - Bevy Project Scaffolding
====================================

A CLI tool that creates new Bevy game projects from templates: the bundled
default template, a local ``.zip`` archive, or a git repository installed
from the template index.

Features
--------
- **Zero Configuration**: ``bevy new my_game`` gives a runnable project
- **Any Template Source**: bundled, zip archive or git repository
- **Licensing**: LICENSE-Apache-2.0 and LICENSE-MIT by default
- **CI/CD Ready**: GitHub Actions workflow included
- **Non-destructive**: never overwrites existing files

Quick Start
-----------
```bash
# Create a new project
bevy new my_game

# Pick licenses, skip CI and git
bevy new my_game --license MIT --ci none --vcs none

# Install and use a template from the index
bevy templates install 2d-game
bevy new my_game --template 2d-game
```

Architecture
------------
- ``cli``: Typer-based command line interface
- ``config``: Environment-backed settings
- ``entries``: Template entry store and text/binary classification
- ``loaders``: Embedded, archive and repository template sources
- ``renderer``: Jinja2 rendering of a single entry
- ``generator``: Project materialization pipeline
- ``installer``: Template installation from the remote index
- ``vcs``: git operations
- ``models``: Pydantic models for options and descriptors
- ``errors``: Error taxonomy

License
-------
MIT OR Apache-2.0
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "Technical-1"
__license__ = "MIT OR Apache-2.0"

# =============================================================================
# Public API Exports
# =============================================================================

from bevyhatch.config import Settings, get_settings
from bevyhatch.entries import EntryKind, TemplateEntry, TemplateStore
from bevyhatch.generator import GenerationResult, init_project, new_project
from bevyhatch.installer import install_template, list_templates, uninstall_template
from bevyhatch.models import (
    VCS,
    CIProvider,
    CISelection,
    License,
    LicenseSelection,
    ProjectOptions,
)


__all__ = [
    "VCS",
    "CIProvider",
    "CISelection",
    "EntryKind",
    "GenerationResult",
    "License",
    "LicenseSelection",
    "ProjectOptions",
    "Settings",
    "TemplateEntry",
    "TemplateStore",
    "__author__",
    "__version__",
    "get_settings",
    "init_project",
    "install_template",
    "list_templates",
    "new_project",
    "uninstall_template",
]
