"""Post-generation steps run against a freshly generated project.

Steps run in a fixed order and each is gated by configuration:

1. ``git-init``     -- ``git init`` (``user.git_init`` and not ``--no-git``)
2. ``install-deps`` -- ``mise install`` (``post_generation.auto_install_deps``)
3. ``setup-hooks``  -- ``hk install`` (``post_generation.auto_setup_hooks``,
   and only when git-init succeeded)
4. ``open-editor``  -- detached editor launch (``post_generation.open_editor``)

A step that fails is reported as a warning with a manual-recovery hint and
the next step still runs.  Nothing here raises to the caller.
"""

from __future__ import annotations

import logging
import shlex
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from cza.config import Config
from cza.output import Output
from cza.utils import CommandRunner

logger = logging.getLogger(__name__)

GIT_INIT = "git-init"
INSTALL_DEPS = "install-deps"
SETUP_HOOKS = "setup-hooks"
OPEN_EDITOR = "open-editor"

STEP_ORDER: tuple[str, ...] = (GIT_INIT, INSTALL_DEPS, SETUP_HOOKS, OPEN_EDITOR)

GIT_NOT_INITIALIZED = "git not initialized"


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class StepOutcome(BaseModel):
    """Result of one post-generation step."""

    step: str
    status: StepStatus
    reason: str | None = Field(default=None, description="Why the step was skipped")
    command: str | None = Field(default=None, description="Command line that was run")
    error: str | None = Field(default=None, description="Exit status or spawn error")
    hint: str | None = Field(default=None, description="Manual recovery hint")

    def describe(self) -> str:
        """One-line human description used in the summary table."""
        if self.status is StepStatus.SKIPPED:
            return f"skipped ({self.reason})"
        if self.status is StepStatus.FAILED:
            return f"failed ({self.error})"
        return "done"


class PostGenerationPipeline:
    """Runs the configuration-gated post-generation steps.

    Args:
        config: Loaded configuration document.
        runner: Process runner used for every external command.
        output: Output context for progress and warnings.
        no_git: ``--no-git`` override; disables git-init (and therefore hooks).
    """

    def __init__(
        self,
        config: Config,
        runner: CommandRunner,
        output: Output,
        *,
        no_git: bool = False,
    ) -> None:
        self.config = config
        self.runner = runner
        self.output = output
        self.no_git = no_git

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _git_skip_reason(self) -> str | None:
        if self.no_git:
            return "disabled by --no-git"
        if not self.config.user.git_init:
            return "disabled by user.git_init"
        return None

    def _install_skip_reason(self) -> str | None:
        if not self.config.post_generation.auto_install_deps:
            return "disabled by post_generation.auto_install_deps"
        return None

    def _hooks_skip_reason(self, git_ready: bool) -> str | None:
        if not git_ready:
            return GIT_NOT_INITIALIZED
        if not self.config.post_generation.auto_setup_hooks:
            return "disabled by post_generation.auto_setup_hooks"
        return None

    def _editor_skip_reason(self) -> str | None:
        if not (self.config.post_generation.open_editor or "").strip():
            return "post_generation.open_editor not set"
        return None

    def plan(self) -> list[tuple[str, str | None]]:
        """Return ``(step, skip reason)`` pairs without running anything.

        A ``None`` reason means the step would run.  Hook setup assumes git
        init would succeed when it is enabled.
        """
        git_reason = self._git_skip_reason()
        return [
            (GIT_INIT, git_reason),
            (INSTALL_DEPS, self._install_skip_reason()),
            (SETUP_HOOKS, self._hooks_skip_reason(git_ready=git_reason is None)),
            (OPEN_EDITOR, self._editor_skip_reason()),
        ]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, directory: str | Path) -> list[StepOutcome]:
        """Run every step in order against *directory*."""
        directory = Path(directory)
        outcomes: list[StepOutcome] = []

        git = await self._git_init(directory)
        outcomes.append(git)
        outcomes.append(await self._install_deps(directory))
        outcomes.append(
            await self._setup_hooks(directory, git_ready=git.status is StepStatus.SUCCEEDED)
        )
        outcomes.append(self._open_editor(directory))

        for outcome in outcomes:
            logger.debug("Step %s: %s", outcome.step, outcome.describe())
        return outcomes

    async def _git_init(self, directory: Path) -> StepOutcome:
        reason = self._git_skip_reason()
        if reason:
            return StepOutcome(step=GIT_INIT, status=StepStatus.SKIPPED, reason=reason)
        return await self._run_step(
            GIT_INIT,
            ["git", "init"],
            directory,
            step_message="Initializing git repository...",
            success_message="Git repository initialized",
            hint=f"Run 'git init' manually in {directory}",
        )

    async def _install_deps(self, directory: Path) -> StepOutcome:
        reason = self._install_skip_reason()
        if reason:
            return StepOutcome(step=INSTALL_DEPS, status=StepStatus.SKIPPED, reason=reason)
        return await self._run_step(
            INSTALL_DEPS,
            ["mise", "install"],
            directory,
            step_message="Installing tools and dependencies with mise...",
            success_message="Dependencies installed",
            hint=f"Run 'mise install' manually in {directory}",
        )

    async def _setup_hooks(self, directory: Path, git_ready: bool) -> StepOutcome:
        reason = self._hooks_skip_reason(git_ready)
        if reason:
            return StepOutcome(step=SETUP_HOOKS, status=StepStatus.SKIPPED, reason=reason)
        return await self._run_step(
            SETUP_HOOKS,
            ["hk", "install"],
            directory,
            step_message="Setting up git hooks with hk...",
            success_message="Git hooks installed",
            hint=f"Run 'hk install' manually in {directory}",
        )

    def _open_editor(self, directory: Path) -> StepOutcome:
        reason = self._editor_skip_reason()
        if reason:
            return StepOutcome(step=OPEN_EDITOR, status=StepStatus.SKIPPED, reason=reason)

        editor = self.config.post_generation.open_editor or ""
        self.output.step(f"Opening project in {editor}...")
        try:
            cmd = shlex.split(editor) + ["."]
            self.runner.spawn(cmd, directory)
        except (OSError, ValueError) as exc:
            error = f"Could not launch {editor}: {exc}"
            hint = f"Open {directory} in your editor manually"
            self.output.warning(error)
            self.output.info(hint)
            return StepOutcome(
                step=OPEN_EDITOR, status=StepStatus.FAILED, command=editor, error=error, hint=hint
            )
        return StepOutcome(step=OPEN_EDITOR, status=StepStatus.SUCCEEDED, command=" ".join(cmd))

    async def _run_step(
        self,
        step: str,
        cmd: list[str],
        directory: Path,
        *,
        step_message: str,
        success_message: str,
        hint: str | None,
    ) -> StepOutcome:
        """Run one command, converting any failure into a ``FAILED`` outcome."""
        self.output.step(step_message)
        command = " ".join(cmd)
        try:
            returncode = await self.runner.run(cmd, directory)
        except OSError as exc:
            error = f"Could not run {cmd[0]}: {exc}"
        else:
            if returncode == 0:
                self.output.success(success_message)
                return StepOutcome(step=step, status=StepStatus.SUCCEEDED, command=command)
            error = f"{cmd[0]} failed with status: {returncode}"

        self.output.warning(error)
        if hint:
            self.output.info(hint)
        return StepOutcome(
            step=step, status=StepStatus.FAILED, command=command, error=error, hint=hint
        )
