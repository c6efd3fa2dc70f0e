"""create-monorepo command line interface.

Usage::

    create-monorepo my-app --docker -p npm
    create-monorepo create my-app --template minimal --skip-install
    create-monorepo --interactive
    create-monorepo plugin --list
    create-monorepo plugin --install storybook
    create-monorepo doctor

This is the only module that turns errors into exit codes.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from create_monorepo import __version__
from create_monorepo.config import CliSettings, MonorepoConfig, apply_preset
from create_monorepo.doctor import doctor_exit_code, render_results, run_doctor
from create_monorepo.errors import CreateMonorepoError, ValidationError
from create_monorepo.pipeline import Pipeline
from create_monorepo.plugins import install_plugin, render_plugin_list, uninstall_plugin
from create_monorepo.prompts import RichPrompter, prompt_for_config
from create_monorepo.utils import console, err_console
from create_monorepo.validation import PACKAGE_MANAGERS, TEMPLATES

COMMANDS = ("create", "plugin", "doctor")

_PASSTHROUGH_FLAGS = frozenset({"-h", "--help", "-v", "--version"})


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_create_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("project_name", nargs="?", default=None, help="Project name")
    parser.add_argument(
        "--template", "-t",
        choices=TEMPLATES,
        default=None,
        help="Project template to use (default: default)",
    )
    parser.add_argument(
        "--package-manager", "-p",
        choices=PACKAGE_MANAGERS,
        default=None,
        help="Package manager to use (default: pnpm)",
    )
    parser.add_argument("--docker", action="store_true", help="Include Docker configuration")
    parser.add_argument(
        "--skip-install", action="store_true", help="Skip dependency installation"
    )
    parser.add_argument("--skip-git", action="store_true", help="Skip git initialization")
    parser.add_argument("--interactive", action="store_true", help="Use interactive mode")
    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Parent directory for the new project (default: current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-monorepo",
        description=(
            "A CLI tool for quickly initializing and managing containerized "
            "monorepo development environments"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-monorepo my-app\n"
            "  create-monorepo my-app --docker -p npm\n"
            "  create-monorepo create my-app -t minimal --skip-install\n"
            "  create-monorepo plugin --install storybook\n"
            "  create-monorepo doctor\n"
        ),
    )
    parser.add_argument(
        "--version", "-v", action="version", version=f"%(prog)s {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    create = subparsers.add_parser("create", help="Create a new monorepo project")
    _add_create_arguments(create)

    plugin = subparsers.add_parser("plugin", help="Manage plugins")
    actions = plugin.add_mutually_exclusive_group()
    actions.add_argument("--list", "-l", action="store_true", help="List available plugins")
    actions.add_argument("--install", "-i", metavar="PLUGIN", help="Install a plugin")
    actions.add_argument("--uninstall", "-u", metavar="PLUGIN", help="Uninstall a plugin")

    subparsers.add_parser("doctor", help="Run diagnostics on your monorepo setup")
    return parser


def _normalise_argv(argv: list[str]) -> list[str]:
    """Route ``create-monorepo <name> [options]`` to the ``create`` command."""
    if not argv or argv[0] in COMMANDS or argv[0] in _PASSTHROUGH_FLAGS:
        return argv
    return ["create", *argv]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def resolve_config(args: argparse.Namespace, settings: CliSettings) -> MonorepoConfig:
    """Build the configuration from flags, environment defaults and prompts."""
    if args.interactive:
        config = prompt_for_config(RichPrompter(), default_name=args.project_name)
        overrides = {
            "skip_install": args.skip_install,
            "skip_git": args.skip_git,
            "docker": config.docker or args.docker,
        }
        return MonorepoConfig.create(**{**config.model_dump(), **overrides})

    if not args.project_name:
        raise ValidationError("Project name is required in non-interactive mode")

    config = MonorepoConfig.create(
        name=args.project_name,
        package_manager=args.package_manager or settings.package_manager,
        template=args.template or settings.template,
        docker=args.docker,
        skip_install=args.skip_install,
        skip_git=args.skip_git,
    )
    return apply_preset(config)


def cmd_create(args: argparse.Namespace) -> int:
    settings = CliSettings.from_env()
    config = resolve_config(args, settings)
    parent = Path(args.directory) if args.directory else Path.cwd()
    pipeline = Pipeline(config, parent / config.name, install_timeout=settings.install_timeout)
    result = asyncio.run(pipeline.run())
    if result.success:
        return 0
    if result.error is not None:
        raise result.error
    return 1


def cmd_plugin(args: argparse.Namespace) -> int:
    if args.install:
        install_plugin(args.install)
    elif args.uninstall:
        uninstall_plugin(args.uninstall)
    else:
        if not args.list:
            console.print("Please specify an action: --list, --install, or --uninstall")
        render_plugin_list()
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    console.print("[bold blue]Running monorepo diagnostics...[/bold blue]\n")
    results = asyncio.run(run_doctor())
    render_results(results)
    return doctor_exit_code(results)


_HANDLERS = {
    "create": cmd_create,
    "plugin": cmd_plugin,
    "doctor": cmd_doctor,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(argv: Sequence[str] | None = None) -> int:
    """Parse *argv*, dispatch, and map errors to an exit status."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(_normalise_argv(argv))
    try:
        return _HANDLERS[args.command](args)
    except CreateMonorepoError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc}", highlight=False)
        return exc.exit_code
    except KeyboardInterrupt:
        err_console.print("[bold red]Error:[/bold red] Aborted", highlight=False)
        return 130


def main() -> None:
    """Console-script entry point for ``create-monorepo``."""
    sys.exit(run())


if __name__ == "__main__":
    main()
