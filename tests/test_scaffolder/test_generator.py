"""Unit tests for template materialization (cza.scaffolder.generator)."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from cza.scaffolder import MaterializeError, Materializer

pytestmark = pytest.mark.unit

VARIABLES = {"project_name": "myapp", "author": "Ada"}


class FakeFetcher:
    """Copies a local directory instead of downloading a repository."""

    def __init__(self, source: Path, error: Exception | None = None) -> None:
        self.source = source
        self.error = error
        self.calls: list[tuple[str, str, str | None]] = []

    async def fetch(self, repository, subfolder, dest, revision=None) -> Path:
        self.calls.append((repository, subfolder, revision))
        if self.error is not None:
            raise self.error
        template_dir = Path(dest) / "checkout"
        shutil.copytree(self.source / subfolder, template_dir)
        return template_dir


@pytest.fixture
def template_source(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    template = root / "templates" / "one"
    (template / "circuits").mkdir(parents=True)
    (template / "README.md").write_text("# {{ project_name }}\nby {{ author }}\n")
    (template / "circuits" / "{{ project_name }}.nr").write_text("fn main() {}\n")
    (root / "templates" / "empty").mkdir(parents=True)
    return root


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generates_project(self, template_source, workdir):
        fetcher = FakeFetcher(template_source)
        path = await Materializer(fetcher=fetcher).generate(
            "https://github.com/example/templates",
            "templates/one",
            VARIABLES,
            "myapp",
            revision="v1",
            cwd=workdir,
        )

        assert path == (workdir / "myapp").resolve()
        assert (path / "README.md").read_text() == "# myapp\nby Ada\n"
        assert (path / "circuits" / "myapp.nr").exists()
        assert fetcher.calls == [("https://github.com/example/templates", "templates/one", "v1")]

    @pytest.mark.asyncio
    async def test_fetch_failure_leaves_nothing(self, template_source, workdir):
        fetcher = FakeFetcher(template_source, error=MaterializeError("HTTP 500"))
        with pytest.raises(MaterializeError, match="HTTP 500"):
            await Materializer(fetcher=fetcher).generate(
                "https://github.com/example/templates", "templates/one", VARIABLES, "myapp",
                cwd=workdir,
            )
        assert not (workdir / "myapp").exists()

    @pytest.mark.asyncio
    async def test_empty_template_rejected(self, template_source, workdir):
        with pytest.raises(MaterializeError, match="is empty"):
            await Materializer(fetcher=FakeFetcher(template_source)).generate(
                "https://github.com/example/templates", "templates/empty", VARIABLES, "myapp",
                cwd=workdir,
            )
        assert not (workdir / "myapp").exists()

    @pytest.mark.asyncio
    async def test_os_error_wrapped(self, template_source, workdir):
        fetcher = FakeFetcher(template_source, error=PermissionError("denied"))
        with pytest.raises(MaterializeError, match="Failed to write project"):
            await Materializer(fetcher=fetcher).generate(
                "https://github.com/example/templates", "templates/one", VARIABLES, "myapp",
                cwd=workdir,
            )

    @pytest.mark.asyncio
    async def test_existing_directory_merged(self, template_source, workdir):
        existing = workdir / "myapp"
        existing.mkdir()
        (existing / "keep.txt").write_text("mine\n")

        path = await Materializer(fetcher=FakeFetcher(template_source)).generate(
            "https://github.com/example/templates", "templates/one", VARIABLES, "myapp",
            cwd=workdir,
        )
        assert (path / "keep.txt").read_text() == "mine\n"
        assert (path / "README.md").exists()

    @pytest.mark.asyncio
    async def test_existing_directory_kept_on_failure(self, template_source, workdir):
        existing = workdir / "myapp"
        existing.mkdir()
        fetcher = FakeFetcher(template_source, error=MaterializeError("boom"))
        with pytest.raises(MaterializeError):
            await Materializer(fetcher=fetcher).generate(
                "https://github.com/example/templates", "templates/one", VARIABLES, "myapp",
                cwd=workdir,
            )
        assert existing.is_dir()
