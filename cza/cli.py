"""cza command-line interface.

Usage::

    cza new my-zk-app --template noir-vite
    cza list --detailed
    cza config set user.default_template noir-vite
    cza update
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass

from cza import __version__
from cza.config import Config, ConfigParseError, NOT_SET, config_path
from cza.errors import CzaError
from cza.orchestrator import GenerationOrchestrator
from cza.output import Output, configure_logging
from cza.registry import load_registry
from cza.updater import Updater

logger = logging.getLogger(__name__)


@dataclass
class CommandContext:
    """Per-invocation state handed to every command handler."""

    config: Config
    output: Output
    config_error: ConfigParseError | None = None

    def require_config(self) -> Config:
        """Return the loaded configuration, raising if the file was unparsable."""
        if self.config_error is not None:
            raise self.config_error
        return self.config


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_new(args: argparse.Namespace, ctx: CommandContext) -> int:
    orchestrator = GenerationOrchestrator(ctx.require_config(), ctx.output)
    asyncio.run(
        orchestrator.run(
            args.project_name,
            template=args.template,
            author=args.author,
            no_git=args.no_git,
            dry_run=args.dry_run,
        )
    )
    return 0


def _cmd_list(args: argparse.Namespace, ctx: CommandContext) -> int:
    output = ctx.output
    registry = load_registry()
    entries = sorted(registry.items())

    if args.json:
        output.print_json([record.to_summary(key) for key, record in entries])
        return 0

    if not entries:
        output.plain("No templates available.")
        return 0

    output.plain("Available templates:")
    output.plain("")
    for key, record in entries:
        if args.detailed:
            output.template_detailed(
                key,
                record.name,
                record.description,
                record.frameworks,
                record.repository,
                record.subfolder,
                record.revision,
            )
        else:
            output.template_item(key, record.name)

    if not args.detailed:
        output.plain("")
        output.plain("Use 'cza list --detailed' for more information about templates.")

    output.header("To create a new project:")
    output.command_example("Create", "cza new <project-name> --template <template>")
    output.command_example("Example", "cza new my-zk-app --template noir-vite")
    return 0


def _cmd_config(args: argparse.Namespace, ctx: CommandContext) -> int:
    output = ctx.output
    action = args.config_command or "list"

    if action == "path":
        output.plain(str(config_path()))
        return 0

    if action == "reset":
        config = Config()
        path = config.save()
        output.success(f"Configuration reset to defaults ({path})")
        return 0

    config = ctx.require_config()

    if action == "get":
        value = config.get(args.key)
        output.plain(NOT_SET if value is None else value)
        return 0

    if action == "set":
        config.set(args.key, args.value)
        config.save()
        output.success(f"Set {args.key} = {args.value}")
        return 0

    output.plain(f"Configuration ({config_path()}):")
    output.plain("")
    for key, value in config.list():
        output.plain(f"  {key} = {value}")
    return 0


def _cmd_update(args: argparse.Namespace, ctx: CommandContext) -> int:
    asyncio.run(Updater().run(ctx.output))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cza",
        description="CLI tool to create zero-knowledge application projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cza list\n"
            "  cza new my-zk-app --template noir-vite\n"
            "  cza config set user.default_template noir-vite\n"
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"create-zk-app {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging (default: development.verbose)",
    )

    commands = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    new = commands.add_parser("new", help="Create a new ZK application project")
    new.add_argument("project_name", help="Name of the new project directory")
    new.add_argument(
        "--template", "-t",
        default=None,
        help="Template key (default: user.default_template)",
    )
    new.add_argument(
        "--author",
        default=None,
        help="Author name (default: user.author, then git config user.name)",
    )
    new.add_argument("--no-git", action="store_true", help="Do not initialise a git repository")
    new.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be generated without writing anything",
    )
    new.set_defaults(handler=_cmd_new)

    list_cmd = commands.add_parser("list", help="List available templates and frameworks")
    list_cmd.add_argument("--detailed", action="store_true", help="Show full template details")
    list_cmd.add_argument("--json", action="store_true", help="Print templates as JSON")
    list_cmd.set_defaults(handler=_cmd_list)

    config = commands.add_parser("config", help="Manage global settings")
    config_commands = config.add_subparsers(dest="config_command", metavar="<action>")
    config_set = config_commands.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", help="Key path, e.g. user.author")
    config_set.add_argument("value", help="New value")
    config_get = config_commands.add_parser("get", help="Print a configuration value")
    config_get.add_argument("key", help="Key path, e.g. user.author")
    config_commands.add_parser("list", help="Print every configuration value")
    config_commands.add_parser("reset", help="Restore default settings")
    config_commands.add_parser("path", help="Print the configuration file location")
    config.set_defaults(handler=_cmd_config)

    update = commands.add_parser("update", help="Update cza to the latest release")
    update.set_defaults(handler=_cmd_update)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``cza`` and ``python -m cza``."""
    args = build_parser().parse_args(argv)

    config_error: ConfigParseError | None = None
    try:
        config = Config.load()
    except ConfigParseError as exc:
        config, config_error = Config(), exc

    output = Output(color=config.development.color)
    configure_logging(
        verbose=args.verbose or config.development.verbose,
        color=config.development.color,
    )
    logger.debug("CLI arguments parsed: %s", args)

    ctx = CommandContext(config=config, output=output, config_error=config_error)
    try:
        return args.handler(args, ctx)
    except CzaError as exc:
        output.format_error(exc)
        return 1
    except KeyboardInterrupt:
        output.error("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
