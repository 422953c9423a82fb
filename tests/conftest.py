"""
pytest configuration and shared fixtures for bevyhatch tests.

Fixtures defined here are automatically available to all tests.

Fixtures
--------
settings : Settings
    Settings pointing at an empty temporary template directory and an
    unreachable template index.

make_zip : Callable
    Builds a zip archive from a mapping of entry names to contents.

git_template : Path
    A git repository holding a small template (requires git).
"""

import shutil
import subprocess
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from bevyhatch.config import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """
    Provide isolated settings for a test.

    Returns
    -------
    Settings
        Template directory under ``tmp_path``; index URL on example.invalid.
    """
    return Settings(
        template_dir=tmp_path / "templates",
        template_url="https://templates.example.invalid/index",
    )


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """
    Provide a factory for zip archives.

    The factory takes a mapping of entry name to ``str`` or ``bytes`` and an
    optional destination path, and returns the archive path.
    """

    def factory(files: dict[str, str | bytes], path: Path | None = None) -> Path:
        path = path or tmp_path / "template.zip"
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as archive:
            for name, content in files.items():
                archive.writestr(name, content)
        return path

    return factory


def git(*args: str, cwd: Path) -> None:
    """Run git quietly with a fixed identity."""
    subprocess.run(
        [
            "git",
            "-c", "user.name=Test",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_template(tmp_path: Path) -> Path:
    """
    Create a git repository with one commit holding a small template.

    Files
    -----
    Cargo.toml            text with a ``name`` placeholder
    src/main.rs.tera      marked text
    assets/data.bin       undecodable bytes
    """
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "template-repo"
    (repo / "src").mkdir(parents=True)
    (repo / "assets").mkdir()
    (repo / "Cargo.toml").write_text('[package]\nname = "{{ name }}"\n')
    (repo / "src" / "main.rs.tera").write_text('fn main() { println!("{{ name }}"); }\n')
    (repo / "assets" / "data.bin").write_bytes(b"\xff\xfe\x00\x01")

    git("init", "--quiet", cwd=repo)
    git("add", ".", cwd=repo)
    git("commit", "--quiet", "-m", "template", cwd=repo)
    return repo


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "integration: marks tests requiring git"
    )
