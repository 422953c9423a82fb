"""
bevyhatch.vcs - Git Operations
==============================

Thin wrappers around the ``git`` executable. bevyhatch uses git for three
things:

- initializing the repository of a freshly generated project;
- reading the HEAD tree of an installed template (bare clone or work tree);
- cloning and refreshing installed templates.

All failures, including a missing ``git`` binary, surface as
:class:`~bevyhatch.errors.RepositoryError` with the git stderr attached.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from bevyhatch.errors import RepositoryError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeBlob:
    """A blob listed in a commit tree."""

    path: str
    object_id: str


def run_git(
    args: list[str],
    *,
    cwd: Path | None = None,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run ``git`` with ``args`` and return the completed process.

    Raises
    ------
    RepositoryError
        If git is not installed or exits with a non-zero status.
    """
    command = ["git", *args]
    logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            check=True,
            text=text,
            # Git output may hold file names in any encoding
            errors="replace" if text else None,
        )
    except FileNotFoundError as e:
        raise RepositoryError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode("utf-8", "replace") if isinstance(e.stderr, bytes) else e.stderr
        raise RepositoryError(
            f"`{' '.join(command)}` failed: {(stderr or '').strip()}"
        ) from e


def init_repository(path: Path) -> None:
    """
    Initialize a git repository at ``path``.

    Re-initializing an existing repository is harmless and not an error.
    """
    run_git(["init", "--quiet", str(path)])


def clone_bare(link: str, destination: Path) -> None:
    """Create a bare clone of ``link`` at ``destination``."""
    run_git(["clone", "--bare", "--quiet", link, str(destination)])


def fetch_all(repository: Path) -> None:
    """Update every branch of a bare clone from its origin."""
    run_git([
        "-C", str(repository),
        "fetch", "--quiet", "--prune", "origin",
        "+refs/heads/*:refs/heads/*",
    ])


def iter_head_blobs(repository: Path) -> Iterator[TreeBlob]:
    """
    List every blob of the HEAD commit tree, in pre-order.

    Parameters
    ----------
    repository : Path
        A bare repository or a repository with a work tree.

    Yields
    ------
    TreeBlob
        Repository-relative path and object id of each file.

    Raises
    ------
    RepositoryError
        If the path is not a repository or HEAD cannot be resolved.
    """
    # Paths are arbitrary bytes; decode them the way the filesystem would
    result = run_git(
        ["-C", str(repository), "ls-tree", "-r", "-z", "--full-tree", "HEAD"],
        text=False,
    )
    for record in result.stdout.split(b"\0"):
        if not record:
            continue
        meta, _, raw_path = record.partition(b"\t")
        _mode, object_type, object_id = meta.decode("ascii").split()
        path = os.fsdecode(raw_path)
        # Submodules show up as "commit" entries
        if object_type != "blob":
            continue
        yield TreeBlob(path=path, object_id=object_id)


def read_blob(repository: Path, object_id: str) -> bytes:
    """Return the raw content of a blob."""
    result = run_git(
        ["-C", str(repository), "cat-file", "blob", object_id],
        text=False,
    )
    return result.stdout
