"""
bevyhatch.renderer - Entry Rendering
====================================

Produces the output bytes of one template entry.

BINARY entries are copied verbatim. TEXT entries are Jinja2 templates
rendered against the variable context (``name``, ``license``). The Jinja2
environment loads templates from the store itself, never from disk, so a
text entry may ``{% include %}`` or ``{% extends %}`` another text entry of
the same template.

Usage
-----
>>> store = TemplateStore()
>>> _ = store.add("Cargo.toml", b'name = "{{ name }}"\\n')
>>> render(store, "Cargo.toml", {"name": "bobgame"})
b'name = "bobgame"\\n'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from io import BytesIO
from typing import IO

from jinja2 import BaseLoader, Environment, TemplateError, select_autoescape
from jinja2 import TemplateNotFound as JinjaTemplateNotFound

from bevyhatch.entries import TemplateStore
from bevyhatch.errors import TemplateNotFoundError, TemplateRenderError


class StoreLoader(BaseLoader):
    """Jinja2 loader serving the TEXT entries of a :class:`TemplateStore`."""

    def __init__(self, store: TemplateStore) -> None:
        self.store = store

    def get_source(
        self,
        environment: Environment,
        template: str,
    ) -> tuple[str, str | None, Callable[[], bool] | None]:
        entry = self.store.get(template)
        if entry is None or not entry.is_text:
            raise JinjaTemplateNotFound(template)
        # Entries never change once loaded
        return entry.text, None, lambda: True

    def list_templates(self) -> list[str]:
        return sorted(entry.name for entry in self.store.text_entries())


# Jinja2 rewrites line endings, so text without markup is written as-is
MARKUP_TOKENS = ("{{", "{%", "{#")


def _has_markup(text: str) -> bool:
    return any(token in text for token in MARKUP_TOKENS)


def create_jinja_env(store: TemplateStore) -> Environment:
    """
    Create the Jinja2 environment used to render ``store``.

    The environment is configured with:
    - A loader over the store's text entries
    - Autoescaping disabled (we're generating code, not HTML)
    - Trim blocks and lstrip_blocks for cleaner output
    - Trailing newlines preserved, so plain text renders unchanged

    Returns
    -------
    Environment
        Configured Jinja2 environment.
    """
    env = Environment(
        loader=StoreLoader(store),
        autoescape=select_autoescape([]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )

    env.filters["snake_case"] = lambda s: s.replace("-", "_").lower()

    return env


def render_to(
    store: TemplateStore,
    name: str,
    context: Mapping[str, str],
    sink: IO[bytes],
    env: Environment | None = None,
) -> None:
    """
    Render the entry ``name`` of ``store`` into ``sink``.

    Parameters
    ----------
    store : TemplateStore
        The template holding the entry.

    name : str
        Output name of the entry.

    context : Mapping[str, str]
        Template variables.

    sink : IO[bytes]
        Binary stream receiving the output.

    env : Environment | None
        Environment from :func:`create_jinja_env`, to reuse compiled
        templates across calls. Created on demand when omitted.

    Raises
    ------
    TemplateNotFoundError
        If the store has no entry called ``name``, or an included
        template is missing.

    TemplateRenderError
        If Jinja2 fails to parse or render the entry.
    """
    entry = store.get(name)
    if entry is None:
        raise TemplateNotFoundError(f"no template entry named `{name}`")

    if not entry.is_text or not _has_markup(entry.text):
        sink.write(entry.content)
        return

    if env is None:
        env = create_jinja_env(store)

    try:
        output = env.get_template(name).render(**context)
    except JinjaTemplateNotFound as e:
        raise TemplateNotFoundError(
            f"template entry `{name}` refers to missing template `{e.name}`"
        ) from e
    except TemplateError as e:
        raise TemplateRenderError(f"could not render `{entry.source_name}`: {e}") from e

    sink.write(output.encode("utf-8"))


def render(store: TemplateStore, name: str, context: Mapping[str, str]) -> bytes:
    """Render the entry ``name`` and return its bytes."""
    buffer = BytesIO()
    render_to(store, name, context, buffer)
    return buffer.getvalue()
