"""cza generation orchestrator.

Drives one ``cza new`` invocation through its stages:

    idle -> validating -> resolving -> materializing -> post_processing -> done

Any error before post-processing moves the orchestrator to ``failed`` and is
re-raised to the command dispatcher.  Post-generation step failures are
reported but never fail the run: the project itself was created.

A dry run stops after ``resolving`` and prints what would happen.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, Field

from cza.config import Config
from cza.output import Output
from cza.post_generation import PostGenerationPipeline, StepOutcome, StepStatus
from cza.registry import TemplateRecord, load_registry, validate_template
from cza.resolvers import Resolver, resolve_author, resolve_template
from cza.scaffolder import Materializer
from cza.utils import CommandRunner, format_duration, get_git_config
from cza.validation import validate_project_name

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    MATERIALIZING = "materializing"
    POST_PROCESSING = "post_processing"
    DONE = "done"
    FAILED = "failed"


class GenerationRequest(BaseModel):
    """Everything the materializer needs for one project."""

    template_key: str
    template: TemplateRecord
    project_name: str
    target_dir: Path
    author: str
    email: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """Outcome of a ``cza new`` run (or its dry-run preview)."""

    request: GenerationRequest
    dry_run: bool = False
    directory: Path | None = None
    outcomes: list[StepOutcome] = Field(default_factory=list)
    planned_steps: list[tuple[str, str | None]] = Field(default_factory=list)

    @property
    def failed_steps(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.FAILED]


class GenerationOrchestrator:
    """Validates inputs, materializes the template, and runs the setup steps.

    Attributes:
        stage: Current ``Stage``.
        failed_stage: The stage that was active when the run failed.
        error: The exception that failed the run, if any.
    """

    def __init__(
        self,
        config: Config,
        output: Output,
        *,
        registry: Mapping[str, TemplateRecord] | None = None,
        materializer: Materializer | None = None,
        runner: CommandRunner | None = None,
        vcs_lookup: Resolver | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.config = config
        self.output = output
        self.registry = registry
        self.materializer = materializer or Materializer()
        self.runner = runner or CommandRunner()
        self.vcs_lookup = vcs_lookup or (lambda: get_git_config("user.name"))
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()

        self.stage = Stage.IDLE
        self.failed_stage: Stage | None = None
        self.error: BaseException | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _enter(self, stage: Stage) -> None:
        logger.debug("Stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def _fail(self, exc: BaseException) -> None:
        self.failed_stage = self.stage
        self.error = exc
        logger.debug("Stage %s failed: %s", self.stage.value, exc)
        self.stage = Stage.FAILED

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(
        self,
        project_name: str,
        *,
        template: str | None = None,
        author: str | None = None,
        no_git: bool = False,
        dry_run: bool = False,
    ) -> GenerationResult:
        """Execute one generation.

        Raises:
            CzaError: Validation, resolution or materialization failures.
        """
        started = time.monotonic()
        pipeline = PostGenerationPipeline(self.config, self.runner, self.output, no_git=no_git)

        try:
            self._enter(Stage.VALIDATING)
            key, record = self._validate(project_name, template)

            self._enter(Stage.RESOLVING)
            request = self._build_request(key, record, project_name, author)

            if dry_run:
                result = GenerationResult(
                    request=request, dry_run=True, planned_steps=pipeline.plan()
                )
                self._print_preview(result)
                self._enter(Stage.DONE)
                return result

            self._enter(Stage.MATERIALIZING)
            directory = await self._materialize(request)
        except Exception as exc:
            self._fail(exc)
            raise

        self._enter(Stage.POST_PROCESSING)
        outcomes = await pipeline.run(directory)

        self._enter(Stage.DONE)
        result = GenerationResult(request=request, directory=directory, outcomes=outcomes)
        self._print_success(result, time.monotonic() - started)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _validate(self, project_name: str, template: str | None) -> tuple[str, TemplateRecord]:
        registry = self.registry if self.registry is not None else load_registry()
        key, record = resolve_template(template, self.config.user.default_template, registry)
        validate_template(record)

        self.output.step(f"Creating new {key} project: {project_name}")
        self.output.key_value("Template", record.name)
        self.output.key_value("Description", record.description)

        validate_project_name(
            project_name,
            self.config.development.confirm_overwrite,
            cwd=self.cwd,
            output=self.output,
        )
        return key, record

    def _build_request(
        self,
        key: str,
        record: TemplateRecord,
        project_name: str,
        cli_author: str | None,
    ) -> GenerationRequest:
        author = resolve_author(cli_author, self.config.user.author, self.vcs_lookup)
        email = (self.config.user.email or "").strip() or None

        variables = {"project_name": project_name, "author": author}
        if email:
            variables["author_email"] = email

        return GenerationRequest(
            template_key=key,
            template=record,
            project_name=project_name,
            target_dir=self.cwd / project_name,
            author=author,
            email=email,
            variables=variables,
        )

    async def _materialize(self, request: GenerationRequest) -> Path:
        self.output.step("Generating project from template...")
        return await self.materializer.generate(
            request.template.repository,
            request.template.subfolder,
            request.variables,
            request.project_name,
            revision=request.template.revision,
            cwd=self.cwd,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_preview(self, result: GenerationResult) -> None:
        request = result.request
        record = request.template
        self.output.header("Dry run: nothing will be written")
        self.output.key_value("Template", f"{request.template_key} ({record.name})")
        self.output.key_value("Repository", record.repository)
        self.output.key_value("Subfolder", record.subfolder)
        if record.revision:
            self.output.key_value("Revision", record.revision)
        self.output.key_value("Target", str(request.target_dir))
        self.output.key_value("Author", request.author)
        self.output.key_value(
            "Variables", ", ".join(f"{k}={v}" for k, v in request.variables.items())
        )
        self.output.plain("")
        self.output.plain("Post-generation steps:")
        for step, reason in result.planned_steps:
            self.output.plain(f"  {step}: {'would run' if reason is None else f'skip ({reason})'}")

    def _print_success(self, result: GenerationResult, elapsed: float) -> None:
        self.output.plain("")
        self.output.success("Project created successfully!")
        self.output.directory(str(result.directory))
        self.output.summary_table(
            {outcome.step: outcome.describe() for outcome in result.outcomes},
            title=f"Setup ({format_duration(elapsed)})",
        )
        if result.failed_steps:
            self.output.warning(
                f"{len(result.failed_steps)} setup step(s) failed; see the hints above."
            )
        self.output.next_steps([f"cd {result.request.project_name}", "mise run dev"])
