"""cza configuration.

Persisted user settings stored at ``<config-root>/cza/config.json``.  All
settings use Pydantic v2 models so a document is always fully constructible
from defaults and can be validated and serialised without boiler-plate.

Every field is addressable by a dotted key path (``user.author``,
``post_generation.open_editor``) for the ``cza config`` command.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import platformdirs
from pydantic import BaseModel, Field, ValidationError

from cza.errors import CzaError

logger = logging.getLogger(__name__)

APP_NAME = "cza"
CONFIG_FILENAME = "config.json"
CONFIG_DIR_ENV = "CZA_CONFIG_DIR"
NOT_SET = "<not set>"

_BOOL_LITERALS: dict[str, bool] = {"true": True, "false": False}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ConfigError(CzaError):
    """Raised when a configuration operation fails."""


class ConfigParseError(ConfigError):
    """The persisted configuration file could not be read or parsed."""


class ConfigWriteError(ConfigError):
    """The configuration file could not be written."""


class UnknownKeyError(ConfigError):
    """A key path does not name a configuration field."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Unknown configuration key: {key}",
            hint="Run 'cza config list' to see the available keys.",
        )


class InvalidValueError(ConfigError):
    """A value could not be parsed into the field's type."""

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value
        super().__init__(
            f"Invalid boolean value for {key}: '{value}'",
            hint="Boolean settings accept exactly 'true' or 'false'.",
        )


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class UserConfig(BaseModel):
    """User preferences."""

    author: str | None = Field(default=None, description="Default author name for new projects")
    email: str | None = Field(default=None, description="Default email for project metadata")
    git_init: bool = Field(default=True, description="Initialise a git repository after generation")
    default_template: str | None = Field(
        default=None, description="Template used when --template is omitted"
    )


class DevelopmentConfig(BaseModel):
    """Development settings."""

    verbose: bool = Field(default=False, description="Enable debug logging")
    color: bool = Field(default=True, description="Colored terminal output")
    confirm_overwrite: bool = Field(
        default=True, description="Refuse to generate into an existing directory"
    )


class PostGenerationConfig(BaseModel):
    """Post-generation behaviour."""

    auto_install_deps: bool = Field(default=True, description="Run 'mise install' after generation")
    auto_setup_hooks: bool = Field(default=True, description="Run 'hk install' after generation")
    open_editor: str | None = Field(
        default=None, description="Editor command launched on the new project"
    )


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """The persisted cza configuration document.

    Instances are created once per invocation by the CLI entry point and then
    passed to every component that needs a setting.  Nothing is written to disk
    until :meth:`save` is called explicitly.
    """

    user: UserConfig = Field(default_factory=UserConfig)
    development: DevelopmentConfig = Field(default_factory=DevelopmentConfig)
    post_generation: PostGenerationConfig = Field(default_factory=PostGenerationConfig)

    # ------------------------------------------------------------------
    # Key-path access
    # ------------------------------------------------------------------

    @classmethod
    def key_paths(cls) -> list[str]:
        """Return every addressable key path in display order."""
        paths: list[str] = []
        for section_name, section_field in cls.model_fields.items():
            for field_name in section_field.annotation.model_fields:
                paths.append(f"{section_name}.{field_name}")
        return paths

    def _locate(self, key: str) -> tuple[BaseModel, str]:
        section_name, _, field_name = key.partition(".")
        if section_name not in type(self).model_fields:
            raise UnknownKeyError(key)
        section = getattr(self, section_name)
        if field_name not in type(section).model_fields:
            raise UnknownKeyError(key)
        return section, field_name

    def get(self, key: str) -> str | None:
        """Return the string form of the value at *key*, or ``None`` if unset.

        Raises:
            UnknownKeyError: If *key* is not a recognised path.
        """
        section, field_name = self._locate(key)
        return _display(getattr(section, field_name))

    def set(self, key: str, value: str) -> None:
        """Parse *value* into the native type of *key* and store it.

        Boolean fields accept only the literals ``true`` and ``false``.

        Raises:
            UnknownKeyError: If *key* is not a recognised path.
            InvalidValueError: If *value* cannot be parsed.
        """
        section, field_name = self._locate(key)
        if type(section).model_fields[field_name].annotation is bool:
            if value not in _BOOL_LITERALS:
                raise InvalidValueError(key, value)
            setattr(section, field_name, _BOOL_LITERALS[value])
        else:
            setattr(section, field_name, value)
        logger.debug("Set %s = %r", key, value)

    def list(self) -> list[tuple[str, str]]:
        """Return ``(key, display value)`` pairs in a fixed order."""
        pairs: list[tuple[str, str]] = []
        for key in self.key_paths():
            value = self.get(key)
            pairs.append((key, NOT_SET if value is None else value))
        return pairs

    def reset(self) -> None:
        """Restore every setting to its default, in place."""
        defaults = type(self)()
        for section_name in type(self).model_fields:
            setattr(self, section_name, getattr(defaults, section_name))

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to :func:`config_path`.

        Returns:
            The path where the file was written.

        Raises:
            ConfigWriteError: If the directory or file cannot be written.
        """
        target = Path(path) if path is not None else config_path()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(
                self.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise ConfigWriteError(f"Failed to write config file {target}: {exc}") from exc
        logger.debug("Saved configuration to %s", target)
        return target

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load the configuration, or return defaults when no file exists.

        Raises:
            ConfigParseError: If the file exists but cannot be read or parsed.
        """
        target = Path(path) if path is not None else config_path()
        if not target.exists():
            logger.debug("No configuration at %s, using defaults", target)
            return cls()

        hint = f"Fix {target} by hand or run 'cza config reset' to restore defaults."
        try:
            raw = target.read_bytes().decode("utf-8")
        except OSError as exc:
            raise ConfigParseError(f"Failed to read config file {target}: {exc}", hint=hint) from exc
        except UnicodeDecodeError as exc:
            raise ConfigParseError(
                f"Failed to parse config file {target}: not valid UTF-8 ({exc.reason})",
                hint=hint,
            ) from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigParseError(
                f"Failed to parse config file {target}: {exc.error_count()} error(s)\n{exc}",
                hint=hint,
            ) from exc


def config_path() -> Path:
    """Return the configuration file location.

    ``$CZA_CONFIG_DIR`` overrides the platform config directory.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    config_dir = Path(override) if override else Path(platformdirs.user_config_dir(APP_NAME))
    return config_dir / CONFIG_FILENAME


def _display(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
