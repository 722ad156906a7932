"""Template registry.

The registry is a TOML document bundled with the package
(``cza/templates.toml``) mapping template keys to ``TemplateRecord`` entries.
It is read fresh on every invocation and never mutated.
"""

from __future__ import annotations

import importlib.resources
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cza.errors import CzaError

logger = logging.getLogger(__name__)

REGISTRY_RESOURCE = "templates.toml"


class RegistryError(CzaError):
    """The template registry could not be loaded."""


class TemplateValidationError(CzaError):
    """A registry entry is unusable (empty repository, bad URL, ...)."""


class TemplateRecord(BaseModel):
    """An immutable entry from the template registry."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="What the template provides")
    repository: str = Field(..., description="Git URL of the source repository")
    subfolder: str = Field(default="", description="Template path inside the repository")
    frameworks: list[str] = Field(default_factory=list, description="Associated framework tags")
    revision: str | None = Field(default=None, description="Pinned branch, tag or commit")

    def to_summary(self, key: str) -> dict[str, Any]:
        """Return the ``cza list --json`` representation of this entry."""
        summary: dict[str, Any] = {
            "key": key,
            "name": self.name,
            "description": self.description,
            "repository": self.repository,
            "subfolder": self.subfolder,
            "frameworks": list(self.frameworks),
        }
        if self.revision:
            summary["revision"] = self.revision
        return summary


def parse_registry(text: str) -> dict[str, TemplateRecord]:
    """Parse registry TOML text into a ``{key: TemplateRecord}`` mapping."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise RegistryError(f"Failed to parse template registry: {exc}") from exc

    templates = data.get("templates", {})
    if not isinstance(templates, dict):
        raise RegistryError("Failed to parse template registry: 'templates' must be a table")

    registry: dict[str, TemplateRecord] = {}
    for key, entry in templates.items():
        try:
            registry[key] = TemplateRecord.model_validate(entry)
        except ValidationError as exc:
            raise RegistryError(f"Invalid registry entry '{key}': {exc}") from exc
    return registry


def load_registry(path: str | Path | None = None) -> dict[str, TemplateRecord]:
    """Load the template registry.

    Args:
        path: Optional registry file. Defaults to the bundled
            ``templates.toml``.
    """
    if path is not None:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RegistryError(f"Failed to read template registry {path}: {exc}") from exc
    else:
        text = importlib.resources.files("cza").joinpath(REGISTRY_RESOURCE).read_text(
            encoding="utf-8"
        )
    registry = parse_registry(text)
    logger.debug("Loaded %d template(s) from registry", len(registry))
    return registry


def validate_template(record: TemplateRecord) -> None:
    """Check that a registry entry points at a usable git source.

    Raises:
        TemplateValidationError: If the repository or subfolder is empty or
            the repository does not look like a git URL.
    """
    logger.debug(
        "Validating template repository: %s subfolder: %s", record.repository, record.subfolder
    )
    if not record.repository:
        raise TemplateValidationError("Template repository URL cannot be empty")
    if not record.subfolder:
        raise TemplateValidationError("Template subfolder cannot be empty")
    if not (
        "github.com" in record.repository
        or record.repository.startswith("git@")
        or record.repository.startswith("https://")
    ):
        raise TemplateValidationError(
            f"Template repository must be a valid git URL: {record.repository}"
        )
