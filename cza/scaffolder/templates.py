"""Jinja2 variable substitution for fetched templates.

Provides the TemplateRenderer class which renders every file of a template
directory with the generation variables (``project_name``, ``author``,
``author_email``).  Both file contents and path segments are rendered, so a
template may contain ``{{ project_name }}/README.md``.  Placeholders for
unknown variables are left untouched.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
from pathlib import Path
from typing import Any

from jinja2 import DebugUndefined, Environment, TemplateError

from cza.utils import title_case

logger = logging.getLogger(__name__)

# Never copied into the generated project.
IGNORED_NAMES = frozenset({".git", "cargo-generate.toml"})


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders template files with project-specific context data."""

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=DebugUndefined,
        )
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["title_case"] = title_case

    # -- String rendering --------------------------------------------------

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def render_path(self, relative: Path, context: dict[str, Any]) -> Path:
        """Render every segment of a relative path.

        A segment that does not render (e.g. a stray ``{{``) is kept as-is.
        """
        parts: list[str] = []
        for part in relative.parts:
            try:
                parts.append(self.render_string(part, context))
            except TemplateError as exc:
                logger.debug("Keeping path segment %r verbatim: %s", part, exc)
                parts.append(part)
        return Path(*parts)

    # -- File-based rendering ----------------------------------------------

    def render_file(self, source: Path, destination: Path, context: dict[str, Any]) -> Path:
        """Render one template file to *destination*.

        Files that are not UTF-8 text, or whose text does not render as
        Jinja2 (JSX ``style={{...}}``, GitHub Actions ``${{ secrets.X }}``),
        are copied verbatim.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        raw = source.read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            shutil.copyfile(source, destination)
            shutil.copymode(source, destination)
            return destination

        try:
            content = self.render_string(text, context)
        except TemplateError as exc:
            logger.debug("Copying %s verbatim (not a Jinja2 template: %s)", source, exc)
            content = text

        destination.write_text(content, encoding="utf-8")
        shutil.copymode(source, destination)
        return destination

    async def render_tree(
        self,
        source_dir: str | Path,
        output_dir: str | Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Render every file under *source_dir* into *output_dir*.

        The directory structure is preserved (with rendered path segments).
        Entries named in ``IGNORED_NAMES`` are skipped.

        Returns:
            List of written file paths.
        """
        source_root = Path(source_dir)
        out_base = Path(output_dir)
        out_base.mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        for source in sorted(source_root.rglob("*")):
            rel = source.relative_to(source_root)
            if any(part in IGNORED_NAMES for part in rel.parts):
                continue
            if source.is_symlink() or not source.is_file():
                continue

            destination = out_base / self.render_path(rel, context)
            path = await asyncio.to_thread(self.render_file, source, destination, context)
            written.append(path)

        logger.debug("Rendered %d file(s) from %s", len(written), source_root)
        return written


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
