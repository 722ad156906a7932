"""Shared pytest fixtures for the cza test suite.

Provides reusable fixtures for:
- An isolated configuration directory (never touches the real home)
- A plain-text Output context
- A fake process runner that records commands instead of running them
- A sample template registry
- A fake materializer
- Mock subprocess helpers
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from cza.output import Output
from cza.registry import TemplateRecord


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``CZA_CONFIG_DIR`` at a temp directory for every test."""
    config_dir = tmp_path / "cza-config"
    monkeypatch.setenv("CZA_CONFIG_DIR", str(config_dir))
    for var in ("CZA_LOG", "GITHUB_TOKEN", "GH_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    return config_dir


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo ``configure_logging`` so tests do not leak handlers or levels."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Empty directory standing in for the user's current directory."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def output() -> Output:
    """Output context with colors disabled (assertions match plain text)."""
    return Output(color=False)


# ---------------------------------------------------------------------------
# Process runner
# ---------------------------------------------------------------------------

class FakeRunner:
    """Records commands instead of running them.

    ``returncodes`` maps a program name to its exit status (default 0).
    Programs listed in ``missing`` raise ``FileNotFoundError`` as if not
    installed.  ``spawn_error`` is raised by ``spawn`` when set.
    """

    def __init__(self) -> None:
        self.returncodes: dict[str, int] = {}
        self.missing: set[str] = set()
        self.spawn_error: OSError | None = None
        self.calls: list[tuple[list[str], Path]] = []
        self.spawned: list[tuple[list[str], Path]] = []

    async def run(self, cmd: list[str], cwd: str | Path) -> int:
        self.calls.append((list(cmd), Path(cwd)))
        if cmd[0] in self.missing:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])
        return self.returncodes.get(cmd[0], 0)

    def spawn(self, cmd: list[str], cwd: str | Path) -> None:
        if self.spawn_error is not None:
            raise self.spawn_error
        self.spawned.append((list(cmd), Path(cwd)))

    @property
    def programs(self) -> list[str]:
        return [cmd[0] for cmd, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Template registry
# ---------------------------------------------------------------------------

SAMPLE_REGISTRY_TOML = """\
[templates.t1]
name = "Test Template One"
description = "First test template"
repository = "https://github.com/example/templates"
subfolder = "templates/one"
frameworks = ["noir"]

[templates.t2]
name = "Test Template Two"
description = "Second test template"
repository = "git@example.com:acme/templates.git"
subfolder = "templates/two"
frameworks = ["circom", "solidity"]
revision = "v1.2.0"
"""


@pytest.fixture
def sample_registry_toml() -> str:
    return SAMPLE_REGISTRY_TOML


@pytest.fixture
def sample_registry() -> dict[str, TemplateRecord]:
    """Two-entry registry keyed ``t1`` and ``t2``."""
    return {
        "t1": TemplateRecord(
            name="Test Template One",
            description="First test template",
            repository="https://github.com/example/templates",
            subfolder="templates/one",
            frameworks=["noir"],
        ),
        "t2": TemplateRecord(
            name="Test Template Two",
            description="Second test template",
            repository="git@example.com:acme/templates.git",
            subfolder="templates/two",
            frameworks=["circom", "solidity"],
            revision="v1.2.0",
        ),
    }


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------

class FakeMaterializer:
    """Creates ``cwd/target_name`` with a README instead of fetching anything."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None

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
        self.calls.append(
            {
                "source_locator": source_locator,
                "subfolder": subfolder,
                "variables": dict(variables),
                "target_name": target_name,
                "revision": revision,
                "cwd": cwd,
            }
        )
        if self.error is not None:
            raise self.error
        target = Path(cwd or Path.cwd()) / target_name
        target.mkdir(parents=True, exist_ok=True)
        (target / "README.md").write_text(f"# {variables['project_name']}\n", encoding="utf-8")
        return target


@pytest.fixture
def fake_materializer() -> FakeMaterializer:
    return FakeMaterializer()


# ---------------------------------------------------------------------------
# Subprocess
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
