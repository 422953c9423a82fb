"""
bevyhatch.entries - Template Entry Store
========================================

A template, wherever it comes from, is reduced to a
:class:`TemplateStore`: a mapping from output-relative path to
:class:`TemplateEntry`. Each entry is either TEXT (rendered with Jinja2 at
generation time) or BINARY (copied verbatim).

Classification Rule
-------------------
The reserved marker suffix is ``.tera``:

==========================  ===================  ======
Source name                 Output name          Kind
==========================  ===================  ======
``src/main.rs.tera``        ``src/main.rs``      TEXT
``src/keep.tera.tera``      ``src/keep.tera``    BINARY
``Cargo.toml``              ``Cargo.toml``       TEXT
``assets/icon.png``         ``assets/icon.png``  BINARY
==========================  ===================  ======

A doubled suffix escapes the marker: one ``.tera`` is stripped and the
file is copied as-is. Content that is not valid UTF-8 is always BINARY;
nothing is ever dropped for failing to decode.

Path Safety
-----------
Every name in a store is a non-empty relative POSIX path without ``..``
segments. :func:`safe_entry_name` is what loaders use to vet raw names from
archives and repositories before adding them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

from bevyhatch.errors import MalformedArchiveEntryError


TEMPLATE_SUFFIX = ".tera"


class EntryKind(str, Enum):
    """Whether an entry is rendered or copied."""

    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class TemplateEntry:
    """
    One named unit of template content.

    Attributes
    ----------
    name : str
        Output path relative to the project root, slash separated.

    kind : EntryKind
        TEXT entries are rendered, BINARY entries copied.

    content : bytes
        Raw content. TEXT content is valid UTF-8.

    source_name : str
        The name as found in the template source, marker suffix included.
    """

    name: str
    kind: EntryKind
    content: bytes
    source_name: str

    @property
    def is_text(self) -> bool:
        return self.kind == EntryKind.TEXT

    @property
    def text(self) -> str:
        """Decoded content of a TEXT entry."""
        return self.content.decode("utf-8")


def safe_entry_name(raw: str) -> str | None:
    """
    Normalize a raw source path into a store name.

    Backslashes are treated as separators and ``.``/empty segments are
    dropped.

    Parameters
    ----------
    raw : str
        Path as found in an archive or repository.

    Returns
    -------
    str | None
        The normalized name, or None if the path is empty, absolute,
        drive-rooted or contains a ``..`` segment.

    Examples
    --------
    >>> safe_entry_name("./src//main.rs")
    'src/main.rs'
    >>> safe_entry_name("../etc/passwd") is None
    True
    """
    raw = raw.replace("\\", "/")
    if raw.startswith("/"):
        return None
    parts = [p for p in raw.split("/") if p not in ("", ".")]
    if not parts or ".." in parts:
        return None
    # Windows drive ("C:") as first segment
    if len(parts[0]) == 2 and parts[0][1] == ":":
        return None
    return str(PurePosixPath(*parts))


def _decodes(content: bytes) -> bool:
    try:
        content.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def classify(name: str, content: bytes) -> TemplateEntry:
    """
    Apply the classification rule to one source entry.

    Parameters
    ----------
    name : str
        Safe source name (see :func:`safe_entry_name`).

    content : bytes
        Raw content.

    Returns
    -------
    TemplateEntry
        The entry with its output name and kind.
    """
    doubled = TEMPLATE_SUFFIX * 2
    if name.endswith(doubled):
        return TemplateEntry(
            name=name[: -len(TEMPLATE_SUFFIX)],
            kind=EntryKind.BINARY,
            content=content,
            source_name=name,
        )

    output_name = name
    base = PurePosixPath(name).name
    if base.endswith(TEMPLATE_SUFFIX) and len(base) > len(TEMPLATE_SUFFIX):
        output_name = name[: -len(TEMPLATE_SUFFIX)]

    kind = EntryKind.TEXT if _decodes(content) else EntryKind.BINARY
    return TemplateEntry(
        name=output_name,
        kind=kind,
        content=content,
        source_name=name,
    )


class TemplateStore:
    """
    Source-agnostic collection of template entries.

    Examples
    --------
    >>> store = TemplateStore()
    >>> _ = store.add("src/main.rs.tera", b'fn main() {}')
    >>> list(store.names())
    ['src/main.rs']
    >>> store.get("src/main.rs").kind
    <EntryKind.TEXT: 'text'>
    """

    def __init__(self) -> None:
        self._entries: dict[str, TemplateEntry] = {}

    def add(self, name: str, content: bytes) -> TemplateEntry:
        """
        Classify ``content`` and insert it under its output name.

        An existing entry with the same output name is replaced.

        Raises
        ------
        MalformedArchiveEntryError
            If ``name`` is not a safe relative path.
        """
        safe = safe_entry_name(name)
        if safe is None:
            raise MalformedArchiveEntryError(f"unsafe template entry name `{name}`")
        entry = classify(safe, bytes(content))
        self._entries[entry.name] = entry
        return entry

    def names(self) -> Iterator[str]:
        """Iterate over entry names in insertion order (a new iterator per call)."""
        yield from list(self._entries)

    def get(self, name: str) -> TemplateEntry | None:
        """Return the entry called ``name``, or None."""
        return self._entries.get(name)

    def text_entries(self) -> Iterator[TemplateEntry]:
        return (e for e in self._entries.values() if e.is_text)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __repr__(self) -> str:
        return f"TemplateStore({len(self._entries)} entries)"
