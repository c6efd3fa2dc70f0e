"""Interactive configuration flow.

The flow talks to the user through a :class:`Prompter`, so it can be driven
by :class:`RichPrompter` in a terminal or by a scripted fake in tests.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .config import (
    RESERVED_COMPOSE_NAMES,
    AppConfig,
    MonorepoConfig,
    PackageConfig,
    ServiceConfig,
    ToolConfig,
)
from .utils import console, print_warning
from .validation import sanitize_name, validate_name, validate_port

Choice = tuple[str, str]  # (value, label)

PACKAGE_MANAGER_CHOICES: list[Choice] = [
    ("pnpm", "pnpm (recommended for monorepos)"),
    ("yarn", "yarn"),
    ("npm", "npm"),
]

TEMPLATE_CHOICES: list[Choice] = [
    ("default", "Default - Full-featured monorepo"),
    ("next-fullstack", "Next.js Fullstack - Next.js + Services"),
    ("vue-fullstack", "Vue Fullstack - Vue.js + Services"),
    ("react-fullstack", "React Fullstack - React + Services"),
    ("minimal", "Minimal - Basic structure only"),
    ("enterprise", "Enterprise - Complete enterprise setup"),
]

APP_TYPE_CHOICES: list[Choice] = [
    ("next", "Next.js"),
    ("vue", "Vue.js"),
    ("react", "React"),
    ("svelte", "Svelte"),
]

PACKAGE_CHOICES: list[Choice] = [
    ("ui", "UI Components (React/Vue)"),
    ("utils", "Utility Functions"),
    ("types", "TypeScript Types"),
    ("hooks", "React Hooks"),
    ("composables", "Vue Composables"),
    ("api-client", "API Client"),
    ("database", "Database Layer"),
    ("config", "Configuration"),
]

SERVICE_CHOICES: list[Choice] = [
    ("api-gateway", "API Gateway"),
    ("user-service", "User Service"),
    ("content-service", "Content Service"),
    ("auth-service", "Auth Service"),
    ("worker-service", "Worker Service"),
]

TOOL_CHOICES: list[Choice] = [
    ("eslint", "ESLint"),
    ("prettier", "Prettier"),
    ("husky", "Husky (Git hooks)"),
    ("changesets", "Changesets"),
    ("turbo", "TurboRepo"),
    ("storybook", "Storybook"),
    ("testing-library", "Testing Library"),
    ("playwright", "Playwright (E2E)"),
]

DEFAULT_TOOLS: tuple[str, ...] = ("eslint", "prettier", "husky", "changesets", "turbo")

#: Services that get a relational database when picked interactively.
DATABASE_SERVICES = frozenset({"user-service", "content-service"})

FIRST_SERVICE_PORT = 4000


class Prompter(Protocol):
    """The four questions the configuration flow knows how to ask."""

    def ask_text(self, message: str, default: str | None = None) -> str: ...

    def ask_choice(
        self, message: str, choices: Sequence[Choice], default: str | None = None
    ) -> str: ...

    def ask_confirm(self, message: str, default: bool = False) -> bool: ...

    def ask_multi_choice(
        self, message: str, choices: Sequence[Choice], defaults: Sequence[str] = ()
    ) -> list[str]: ...


class RichPrompter:
    """Terminal prompter built on ``rich.prompt``."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def ask_text(self, message: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(message, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)

    def _print_choices(self, choices: Sequence[Choice]) -> None:
        for index, (value, label) in enumerate(choices, start=1):
            self.console.print(f"  [cyan]{index}[/cyan]. {label} [dim]({value})[/dim]")

    def ask_choice(
        self, message: str, choices: Sequence[Choice], default: str | None = None
    ) -> str:
        self.console.print(f"[bold]{message}[/bold]")
        self._print_choices(choices)
        values = [value for value, _ in choices]
        numbers = [str(i) for i in range(1, len(values) + 1)]
        answer = Prompt.ask(
            "Select",
            choices=values + numbers,
            default=default if default is not None else values[0],
            show_choices=False,
            console=self.console,
        )
        return values[int(answer) - 1] if answer in numbers else answer

    def ask_confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def ask_multi_choice(
        self, message: str, choices: Sequence[Choice], defaults: Sequence[str] = ()
    ) -> list[str]:
        self.console.print(f"[bold]{message}[/bold]")
        self._print_choices(choices)
        values = [value for value, _ in choices]
        while True:
            raw = Prompt.ask(
                "Comma-separated numbers or names",
                default=",".join(defaults),
                console=self.console,
            )
            selected: list[str] = []
            unknown: list[str] = []
            for token in (t.strip() for t in raw.split(",")):
                if not token:
                    continue
                if token.isdigit() and 1 <= int(token) <= len(values):
                    token = values[int(token) - 1]
                if token not in values:
                    unknown.append(token)
                elif token not in selected:
                    selected.append(token)
            if not unknown:
                return selected
            print_warning(f"Unknown selection(s): {', '.join(unknown)}")


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


def _ask_name(prompter: Prompter, message: str, default: str | None) -> str:
    """Ask until the sanitized answer is a valid name."""
    while True:
        name = sanitize_name(prompter.ask_text(message, default=default))
        result = validate_name(name)
        if result.valid:
            return name
        print_warning(f"Invalid name: {', '.join(result.errors)}")


def _ask_port(prompter: Prompter, message: str, default: int) -> int:
    while True:
        raw = prompter.ask_text(message, default=str(default))
        try:
            port = int(raw)
        except ValueError:
            print_warning("Port must be a number")
            continue
        if validate_port(port):
            return port
        print_warning("Port must be between 1024 and 65535")


def _drop_taken(selected: Sequence[str], taken: set[str], label: str) -> list[str]:
    kept: list[str] = []
    for value in selected:
        if value in taken:
            print_warning(f'Skipping {label} "{value}": the name is already in use')
            continue
        kept.append(value)
    return kept


def prompt_for_apps(prompter: Prompter) -> list[AppConfig]:
    if not prompter.ask_confirm(
        "Would you like to add applications to your monorepo?", default=True
    ):
        return []

    apps: list[AppConfig] = []
    while True:
        name = _ask_name(prompter, "Application name", default=None)
        if name in RESERVED_COMPOSE_NAMES:
            print_warning(f'"{name}" is reserved for a built-in container')
            continue
        if any(app.name == name for app in apps):
            print_warning(f'An application named "{name}" already exists')
            continue
        app_type = prompter.ask_choice("Application type", APP_TYPE_CHOICES)
        next_port = max((a.port for a in apps), default=2999) + 1
        port = _ask_port(prompter, "Development port", default=next_port)
        apps.append(AppConfig(name=name, type=app_type, port=port))
        if not prompter.ask_confirm("Would you like to add another application?"):
            return apps


def prompt_for_packages(
    prompter: Prompter, taken: Sequence[str] = ()
) -> list[PackageConfig]:
    if not prompter.ask_confirm("Would you like to add shared packages?", default=True):
        return []
    selected = prompter.ask_multi_choice(
        "Select shared packages to include", PACKAGE_CHOICES
    )
    selected = _drop_taken(selected, set(taken), "package")
    return [PackageConfig(name=value, type=value, shared=True) for value in selected]


def prompt_for_services(
    prompter: Prompter, taken: Sequence[str] = ()
) -> list[ServiceConfig]:
    if not prompter.ask_confirm("Would you like to add backend services?", default=True):
        return []
    selected = prompter.ask_multi_choice(
        "Select backend services to include", SERVICE_CHOICES
    )
    selected = _drop_taken(selected, set(taken), "service")
    return [
        ServiceConfig(
            name=value,
            type=value,
            port=FIRST_SERVICE_PORT + index,
            database=value in DATABASE_SERVICES,
        )
        for index, value in enumerate(selected)
    ]


def prompt_for_tools(prompter: Prompter) -> list[ToolConfig]:
    selected = prompter.ask_multi_choice(
        "Select development tools to include", TOOL_CHOICES, defaults=DEFAULT_TOOLS
    )
    return [ToolConfig(name=value, enabled=True) for value in selected]


def prompt_for_config(
    prompter: Prompter, default_name: str | None = None
) -> MonorepoConfig:
    """Walk the user through every configuration question.

    Returns:
        A validated configuration; ``skip_install`` and ``skip_git`` are
        left at ``False`` for the caller to override.
    """
    console.print("\n[bold blue]Welcome to Create Monorepo![/bold blue]\n")
    console.print(
        "[dim]This tool will help you set up a modern monorepo development "
        "environment.[/dim]\n"
    )

    name = _ask_name(prompter, "What is your project name?", default_name or "my-monorepo")
    package_manager = prompter.ask_choice(
        "Which package manager would you like to use?", PACKAGE_MANAGER_CHOICES, "pnpm"
    )
    template = prompter.ask_choice(
        "Which template would you like to use?", TEMPLATE_CHOICES, "default"
    )
    docker = prompter.ask_confirm(
        "Include Docker configuration for containerized development?", default=True
    )
    apps = prompt_for_apps(prompter)
    packages = prompt_for_packages(prompter, taken=[a.name for a in apps])
    services = prompt_for_services(
        prompter, taken=[a.name for a in apps] + [p.name for p in packages]
    )
    tools = prompt_for_tools(prompter)

    return MonorepoConfig.create(
        name=name,
        package_manager=package_manager,
        template=template,
        docker=docker,
        apps=tuple(apps),
        packages=tuple(packages),
        services=tuple(services),
        tools=tuple(tools),
    )
