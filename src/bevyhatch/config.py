"""
bevyhatch.config - Runtime Settings
===================================

Settings are read from the environment once, when the CLI starts, and the
resulting :class:`Settings` object is passed explicitly to every function
that needs the template cache directory or the remote template index.
Nothing below the CLI reads environment variables itself.

Environment Variables
---------------------
BEVY_TEMPLATE_DIR
    Directory holding installed templates (bare git clones and ``.zip``
    archives). Defaults to ``<app dir>/templates`` where ``<app dir>`` is
    the platform application directory for "bevy".

BEVY_TEMPLATE_URL
    Base URL of the remote template index. Descriptors are fetched from
    ``<BEVY_TEMPLATE_URL>/<name>.toml``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bevyhatch.errors import FilesystemError


logger = logging.getLogger(__name__)

APP_NAME = "bevy"
DEFAULT_TEMPLATE_URL = "https://raw.githubusercontent.com/bevyengine/bevy-templates/main"


def default_template_dir() -> Path:
    """Platform-conventional template cache directory."""
    return Path(typer.get_app_dir(APP_NAME)) / "templates"


class Settings(BaseSettings):
    """Process-wide bevyhatch settings."""

    model_config = SettingsConfigDict(
        env_prefix="BEVY_",
        extra="ignore",
        frozen=True,
    )

    template_dir: Path = Field(default_factory=default_template_dir)
    template_url: str = DEFAULT_TEMPLATE_URL

    @field_validator("template_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("template_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    def ensure_template_dir(self) -> Path:
        """
        Create the template directory if it does not exist yet.

        Returns
        -------
        Path
            The template directory.

        Raises
        ------
        FilesystemError
            If the directory cannot be created.
        """
        try:
            self.template_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"could not create template directory `{self.template_dir}`"
            ) from e
        return self.template_dir


def get_settings() -> Settings:
    """Build settings from the current environment."""
    settings = Settings()
    logger.debug(
        "Settings resolved: template_dir=%s template_url=%s",
        settings.template_dir,
        settings.template_url,
    )
    return settings
