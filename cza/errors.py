"""Fatal, user-facing error types.

Every error that should stop a command and exit with status 1 derives from
``CzaError``.  The optional ``hint`` is printed on its own line after the
error message by :meth:`cza.output.Output.format_error`.
"""

from __future__ import annotations


class CzaError(Exception):
    """Base class for errors surfaced to the user by the command dispatcher."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        self.hint = hint
        super().__init__(message)
