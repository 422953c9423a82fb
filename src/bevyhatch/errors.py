"""
bevyhatch.errors - Error Taxonomy
=================================

Every failure bevyhatch reports is a subclass of :class:`BevyhatchError`.
Stages never retry and never undo work already done: they wrap the
underlying exception with a message naming what they were doing and
re-raise with ``raise ... from exc`` so the whole chain reaches the CLI.

Error Codes
-----------
Each class carries a stable ``code`` used in log records:

    DIRECTORY_NOT_EMPTY      target directory is not empty
    INVALID_PROJECT_NAME     name is not usable as a crate name
    TEMPLATE_NOT_FOUND       template or template entry does not exist
    TEMPLATE_RENDER_FAILED   Jinja2 could not render a text entry
    UNKNOWN_LICENSE          no bundled text for a license
    MALFORMED_ARCHIVE_ENTRY  unsafe (absolute/traversing) entry name
    MALFORMED_DESCRIPTOR     asset descriptor is not valid TOML/schema
    NETWORK_FAILURE          descriptor fetch failed
    FILESYSTEM_FAILURE       create/read/write error
    REPOSITORY_FAILURE       git clone/open/traversal error

Usage
-----
>>> try:
...     init_project(path, options, settings)
... except BevyhatchError as e:
...     for message in error_chain(e):
...         print(message)
"""

from __future__ import annotations

from collections.abc import Iterator


class BevyhatchError(Exception):
    """Base class for every error raised by bevyhatch."""

    code = "BEVYHATCH_ERROR"


class DirectoryNotEmptyError(BevyhatchError):
    """The target directory already contains files."""

    code = "DIRECTORY_NOT_EMPTY"


class InvalidProjectNameError(BevyhatchError):
    """Neither the explicit name nor the directory name is a valid crate name."""

    code = "INVALID_PROJECT_NAME"


class TemplateNotFoundError(BevyhatchError):
    """A template (or a named entry inside one) does not exist."""

    code = "TEMPLATE_NOT_FOUND"


class TemplateRenderError(BevyhatchError):
    """A text entry could not be rendered."""

    code = "TEMPLATE_RENDER_FAILED"


class UnknownLicenseError(BevyhatchError):
    """No license text is bundled for the requested license."""

    code = "UNKNOWN_LICENSE"


class MalformedArchiveEntryError(BevyhatchError):
    """An entry name is absolute or escapes the template root."""

    code = "MALFORMED_ARCHIVE_ENTRY"


class MalformedDescriptorError(BevyhatchError):
    """An asset descriptor could not be parsed or validated."""

    code = "MALFORMED_DESCRIPTOR"


class NetworkError(BevyhatchError):
    """A remote resource could not be fetched."""

    code = "NETWORK_FAILURE"


class FilesystemError(BevyhatchError):
    """A file or directory could not be created, read or written."""

    code = "FILESYSTEM_FAILURE"


class RepositoryError(BevyhatchError):
    """A git repository could not be cloned, opened or traversed."""

    code = "REPOSITORY_FAILURE"


def error_chain(exc: BaseException) -> Iterator[str]:
    """
    Yield the message of ``exc`` followed by the messages of its causes.

    Parameters
    ----------
    exc : BaseException
        The outermost exception.

    Yields
    ------
    str
        One message per link of the ``__cause__``/``__context__`` chain.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield str(current) or type(current).__name__
        current = current.__cause__ or current.__context__
