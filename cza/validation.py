"""Project name validation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from cza.errors import CzaError

if TYPE_CHECKING:
    from cza.output import Output

_ALLOWED_PUNCTUATION = frozenset("-_")


class ProjectNameError(CzaError):
    """Raised when a project name is rejected.

    ``kind`` is one of ``empty``, ``bad_start``, ``bad_character`` or
    ``collision``.
    """

    def __init__(self, kind: str, message: str, hint: str | None = None) -> None:
        self.kind = kind
        super().__init__(message, hint=hint)


def _is_letter(char: str) -> bool:
    return char.isalpha()


def _is_allowed(char: str) -> bool:
    return char.isalnum() or char in _ALLOWED_PUNCTUATION


def validate_project_name(
    name: str,
    confirm_overwrite: bool,
    *,
    cwd: str | Path | None = None,
    output: Output | None = None,
) -> None:
    """Check *name* against the naming rules and the directory-collision policy.

    Rules are checked in order and the first failure is raised.  An existing
    entry at ``cwd / name`` is fatal when *confirm_overwrite* is set and only
    a warning otherwise.

    Raises:
        ProjectNameError: With ``kind`` describing the failed rule.
    """
    if not name:
        raise ProjectNameError(
            "empty",
            "Project name cannot be empty",
            hint="Pass a name, e.g. 'cza new my-zk-app'.",
        )

    if not _is_letter(name[0]):
        raise ProjectNameError(
            "bad_start",
            f"Project name must start with a letter: '{name}'",
            hint="Drop the leading digit, hyphen, or underscore.",
        )

    bad = sorted({c for c in name if not _is_allowed(c)})
    if bad:
        shown = " ".join(repr(c) for c in bad)
        raise ProjectNameError(
            "bad_character",
            f"Project name contains invalid characters: {shown}",
            hint="Project names can only contain letters, digits, hyphens, and underscores.",
        )

    target = Path(cwd or Path.cwd()) / name
    if target.exists() or target.is_symlink():
        if confirm_overwrite:
            raise ProjectNameError(
                "collision",
                f"Directory '{name}' already exists",
                hint=(
                    "Choose a different project name or remove the existing directory "
                    "(or run 'cza config set development.confirm_overwrite false')."
                ),
            )
        if output is not None:
            output.warning(f"Directory '{name}' already exists; files will be overwritten.")
