"""Template materialization.

Fetches a template source, renders it with the generation variables into a
staging directory, and moves the result to ``<cwd>/<target_name>``.  If
anything fails, a target directory created by this run is removed so a
failed generation never leaves a half-written project behind.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path

from cza.scaffolder.fetcher import MaterializeError, TemplateFetcher
from cza.scaffolder.templates import TemplateRenderer

logger = logging.getLogger(__name__)


class Materializer:
    """Turns a template locator plus variables into a project directory."""

    def __init__(
        self,
        fetcher: TemplateFetcher | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.fetcher = fetcher or TemplateFetcher()
        self.renderer = renderer or TemplateRenderer()

    async def generate(
        self,
        source_locator: str,
        subfolder: str,
        variables: dict[str, str],
        target_name: str,
        *,
        revision: str | None = None,
        cwd: str | Path | None = None,
    ) -> Path:
        """Generate the project and return its directory.

        Args:
            source_locator: Git URL of the template repository.
            subfolder: Template path inside the repository.
            variables: Substitutions made available to the templates.
            target_name: Name of the directory created under *cwd*.
            revision: Optional branch, tag or commit to fetch.
            cwd: Parent directory; defaults to the current directory.

        Raises:
            MaterializeError: On any fetch, render or write failure.
        """
        target = Path(cwd or Path.cwd()) / target_name
        created = not target.exists()

        try:
            with tempfile.TemporaryDirectory(prefix="cza-") as tmp:
                staging = Path(tmp)
                template_dir = await self.fetcher.fetch(
                    source_locator, subfolder, staging / "source", revision=revision
                )
                rendered = staging / "rendered"
                files = await self.renderer.render_tree(template_dir, rendered, variables)
                if not files:
                    raise MaterializeError(f"Template '{subfolder}' in {source_locator} is empty")
                await asyncio.to_thread(_move_into_place, rendered, target)
        except MaterializeError:
            _cleanup(target, created)
            raise
        except OSError as exc:
            _cleanup(target, created)
            raise MaterializeError(f"Failed to write project to {target}: {exc}") from exc

        logger.debug("Materialized %s into %s", source_locator, target)
        return target.resolve()


def _move_into_place(rendered: Path, target: Path) -> None:
    if target.exists():
        shutil.copytree(rendered, target, dirs_exist_ok=True)
    else:
        shutil.move(str(rendered), str(target))


def _cleanup(target: Path, created: bool) -> None:
    if created and target.exists():
        logger.debug("Removing partially generated %s", target)
        shutil.rmtree(target, ignore_errors=True)
