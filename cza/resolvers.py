"""Layered value resolution.

Each fallback chain is an ordered list of zero-argument resolvers evaluated
lazily: the first one yielding a non-empty value wins and the remaining ones
are never called.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from cza.errors import CzaError
from cza.registry import TemplateRecord

logger = logging.getLogger(__name__)

Resolver = Callable[[], str | None]

DEFAULT_AUTHOR = "Developer"


class TemplateError(CzaError):
    """Raised when no usable template can be determined."""


class NoTemplateSpecifiedError(TemplateError):
    def __init__(self) -> None:
        super().__init__(
            "No template specified and no default template configured",
            hint=(
                "Pass one with 'cza new <project> --template <key>' or set a default with "
                "'cza config set user.default_template <key>'. Run 'cza list' to see templates."
            ),
        )


class TemplateNotFoundError(TemplateError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Template '{key}' not found",
            hint="Use 'cza list' to see available templates.",
        )


def _constant(value: str | None) -> Resolver:
    return lambda: value


def first_of(*resolvers: Resolver) -> str | None:
    """Return the first non-blank value produced by *resolvers* (trimmed)."""
    for resolver in resolvers:
        value = resolver()
        if value is not None and value.strip():
            return value.strip()
    return None


def resolve_author(
    cli_author: str | None,
    config_author: str | None,
    vcs_lookup: Resolver,
) -> str:
    """Determine the author name.

    Precedence: CLI value, configured author, version-control identity,
    then ``"Developer"``.  *vcs_lookup* only runs when both earlier sources
    are absent.
    """
    author = first_of(
        _constant(cli_author),
        _constant(config_author),
        vcs_lookup,
        _constant(DEFAULT_AUTHOR),
    )
    logger.debug("Resolved author: %s", author)
    return author or DEFAULT_AUTHOR


def resolve_template(
    cli_template: str | None,
    config_default: str | None,
    registry: Mapping[str, TemplateRecord],
) -> tuple[str, TemplateRecord]:
    """Pick the template key and look it up in *registry*.

    Lookup is exact and case-sensitive.

    Raises:
        NoTemplateSpecifiedError: Neither a CLI value nor a default is set.
        TemplateNotFoundError: The key is not in the registry.
    """
    key = first_of(_constant(cli_template), _constant(config_default))
    if key is None:
        raise NoTemplateSpecifiedError()
    record = registry.get(key)
    if record is None:
        raise TemplateNotFoundError(key)
    logger.debug("Resolved template %s -> %s", key, record.repository)
    return key, record
