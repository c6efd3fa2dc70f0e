"""create-monorepo configuration.

Typed, validated description of the project to generate.  All models use
Pydantic v2 and are frozen after construction so a single ``MonorepoConfig``
can be passed through every generation step without defensive copies.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .validation import (
    MAX_PORT,
    MIN_PORT,
    PACKAGE_MANAGERS,
    TEMPLATES,
    validate_name,
)

#: Compose service names taken by the database, cache and proxy containers.
RESERVED_COMPOSE_NAMES = frozenset({"postgres", "redis", "nginx"})

PackageManager = Literal["npm", "yarn", "pnpm"]
TemplateName = Literal[
    "default",
    "next-fullstack",
    "vue-fullstack",
    "react-fullstack",
    "minimal",
    "enterprise",
]
AppType = Literal["next", "vue", "react", "svelte"]
PackageType = Literal[
    "ui", "utils", "types", "hooks", "composables", "api-client", "database", "config"
]
ServiceType = Literal[
    "api-gateway", "user-service", "content-service", "auth-service", "worker-service"
]


class AppConfig(BaseModel):
    """A frontend application under ``apps/``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: AppType
    port: int = Field(default=3000, ge=MIN_PORT, le=MAX_PORT)
    features: tuple[str, ...] = Field(default_factory=tuple)


class PackageConfig(BaseModel):
    """A shared library under ``packages/``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: PackageType
    shared: bool = True


class ServiceConfig(BaseModel):
    """A backend service under ``services/``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: ServiceType
    port: int = Field(default=4000, ge=MIN_PORT, le=MAX_PORT)
    database: bool = Field(
        default=False, description="Whether the service needs a relational datastore"
    )


class ToolConfig(BaseModel):
    """Toggle for an auxiliary tool (eslint, prettier, husky, ...)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    enabled: bool = True
    config: dict[str, Any] = Field(default_factory=dict)


class MonorepoConfig(BaseModel):
    """Validated, immutable description of the monorepo to generate.

    Instances are created once per invocation (from CLI flags or the
    interactive prompt flow) and owned by the generation run.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    package_manager: PackageManager = "pnpm"
    template: TemplateName = "default"
    docker: bool = False
    skip_install: bool = False
    skip_git: bool = False
    apps: tuple[AppConfig, ...] = Field(default_factory=tuple)
    packages: tuple[PackageConfig, ...] = Field(default_factory=tuple)
    services: tuple[ServiceConfig, ...] = Field(default_factory=tuple)
    tools: tuple[ToolConfig, ...] = Field(default_factory=tuple)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        result = validate_name(value)
        if not result.valid:
            raise ValueError(f"Invalid project name: {', '.join(result.errors)}")
        return value

    @model_validator(mode="after")
    def _check_unique_names(self) -> "MonorepoConfig":
        for label, entries in (
            ("app", self.apps),
            ("package", self.packages),
            ("service", self.services),
        ):
            seen: set[str] = set()
            duplicates: list[str] = []
            for entry in entries:
                if entry.name in seen and entry.name not in duplicates:
                    duplicates.append(entry.name)
                seen.add(entry.name)
            if duplicates:
                raise ValueError(
                    f"Duplicate {label} name(s): {', '.join(duplicates)}"
                )

        # Workspace manifests are named @<project>/<name> whatever the kind.
        owners: dict[str, str] = {}
        for label, entries in (
            ("app", self.apps),
            ("package", self.packages),
            ("service", self.services),
        ):
            for entry in entries:
                if entry.name in owners:
                    raise ValueError(
                        f'Name "{entry.name}" is used by both {owners[entry.name]} '
                        f"and {label}; workspace names must be unique"
                    )
                owners[entry.name] = label

        # Apps and services become compose services next to the built-in ones.
        for entry in (*self.apps, *self.services):
            if entry.name in RESERVED_COMPOSE_NAMES:
                raise ValueError(
                    f'Name "{entry.name}" is reserved for the built-in '
                    f"{entry.name} container"
                )
        return self

    # ------------------------------------------------------------------
    # Convenience queries
    # ------------------------------------------------------------------

    def tool_enabled(self, name: str) -> bool:
        """Return ``True`` if *name* is listed in ``tools`` and enabled."""
        return any(t.name == name and t.enabled for t in self.tools)

    @property
    def has_database(self) -> bool:
        """``True`` if at least one service requires a relational database."""
        return any(s.database for s in self.services)

    # ------------------------------------------------------------------
    # Construction / serialisation helpers
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, **data: Any) -> "MonorepoConfig":
        """Build a config, converting Pydantic errors into ``ValidationError``.

        Every field error is collected so the caller can show them together.
        """
        try:
            return cls(**data)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid configuration", _flatten_errors(exc)
            ) from exc

    def save(self, path: Path) -> Path:
        """Persist the configuration as JSON (used by ``--interactive`` replays)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "MonorepoConfig":
        raw = Path(path).read_text(encoding="utf-8")
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid configuration file {path}", _flatten_errors(exc)
            ) from exc


def _flatten_errors(exc: PydanticValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        # Pydantic prefixes ValueError messages with "Value error, ".
        message = message.removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return messages


# ---------------------------------------------------------------------------
# Template presets
# ---------------------------------------------------------------------------


class ProjectTemplate(BaseModel):
    """Default app/package/service/tool bundle selected by ``--template``."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    apps: tuple[AppConfig, ...] = ()
    packages: tuple[PackageConfig, ...] = ()
    services: tuple[ServiceConfig, ...] = ()
    tools: tuple[ToolConfig, ...] = ()


_STANDARD_TOOLS = tuple(
    ToolConfig(name=name) for name in ("eslint", "prettier", "husky", "changesets", "turbo")
)


def _packages(*types: str) -> tuple[PackageConfig, ...]:
    return tuple(PackageConfig(name=t, type=t) for t in types)


TEMPLATE_PRESETS: dict[str, ProjectTemplate] = {
    "default": ProjectTemplate(
        name="default",
        description="Full-featured monorepo",
        apps=(
            AppConfig(name="web", type="next", port=3000),
            AppConfig(name="admin", type="react", port=3001),
        ),
        packages=_packages("ui", "utils", "types"),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="user-service", type="user-service", port=4001, database=True),
        ),
        tools=_STANDARD_TOOLS,
    ),
    "next-fullstack": ProjectTemplate(
        name="next-fullstack",
        description="Next.js + Services",
        apps=(AppConfig(name="web", type="next", port=3000),),
        packages=_packages("ui", "utils", "types", "api-client"),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="auth-service", type="auth-service", port=4001, database=True),
        ),
        tools=_STANDARD_TOOLS,
    ),
    "vue-fullstack": ProjectTemplate(
        name="vue-fullstack",
        description="Vue.js + Services",
        apps=(AppConfig(name="web", type="vue", port=3000),),
        packages=_packages("ui", "composables", "utils", "types"),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(
                name="content-service", type="content-service", port=4001, database=True
            ),
        ),
        tools=_STANDARD_TOOLS,
    ),
    "react-fullstack": ProjectTemplate(
        name="react-fullstack",
        description="React + Services",
        apps=(AppConfig(name="web", type="react", port=3000),),
        packages=_packages("ui", "hooks", "utils", "types", "api-client"),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="user-service", type="user-service", port=4001, database=True),
        ),
        tools=_STANDARD_TOOLS,
    ),
    "minimal": ProjectTemplate(
        name="minimal",
        description="Basic structure only",
        tools=(ToolConfig(name="eslint"), ToolConfig(name="prettier")),
    ),
    "enterprise": ProjectTemplate(
        name="enterprise",
        description="Complete enterprise setup",
        apps=(
            AppConfig(name="corporate-website", type="next", port=3000),
            AppConfig(name="admin-dashboard", type="react", port=3001),
            AppConfig(name="customer-portal", type="vue", port=3002),
        ),
        packages=_packages(
            "ui", "utils", "types", "hooks", "api-client", "database", "config"
        ),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="user-service", type="user-service", port=4001, database=True),
            ServiceConfig(
                name="content-service", type="content-service", port=4002, database=True
            ),
            ServiceConfig(name="auth-service", type="auth-service", port=4003, database=True),
            ServiceConfig(name="worker-service", type="worker-service", port=4004),
        ),
        tools=_STANDARD_TOOLS
        + tuple(
            ToolConfig(name=name)
            for name in ("storybook", "testing-library", "playwright")
        ),
    ),
}


def apply_preset(config: MonorepoConfig) -> MonorepoConfig:
    """Fill empty app/package/service/tool lists from the config's template.

    Lists the caller already populated are left untouched.
    """
    preset = TEMPLATE_PRESETS[config.template]
    updates: dict[str, Any] = {}
    for field_name in ("apps", "packages", "services", "tools"):
        if not getattr(config, field_name):
            updates[field_name] = getattr(preset, field_name)
    if not updates:
        return config
    return MonorepoConfig.create(**{**config.model_dump(), **updates})


# ---------------------------------------------------------------------------
# CLI defaults
# ---------------------------------------------------------------------------


class CliSettings(BaseModel):
    """Defaults for the ``create`` command, overridable from the environment."""

    template: TemplateName = "default"
    package_manager: PackageManager = "pnpm"
    install_timeout: int | None = Field(
        default=None, ge=1, description="Seconds before dependency install is killed"
    )

    @classmethod
    def from_env(cls) -> "CliSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            CREATE_MONOREPO_TEMPLATE, CREATE_MONOREPO_PACKAGE_MANAGER,
            CREATE_MONOREPO_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        template = os.environ.get("CREATE_MONOREPO_TEMPLATE")
        if template:
            if template not in TEMPLATES:
                raise ValidationError(
                    "Invalid CREATE_MONOREPO_TEMPLATE",
                    [f"expected one of {', '.join(TEMPLATES)}, got {template!r}"],
                )
            kwargs["template"] = template
        package_manager = os.environ.get("CREATE_MONOREPO_PACKAGE_MANAGER")
        if package_manager:
            if package_manager not in PACKAGE_MANAGERS:
                raise ValidationError(
                    "Invalid CREATE_MONOREPO_PACKAGE_MANAGER",
                    [f"expected one of {', '.join(PACKAGE_MANAGERS)}, got {package_manager!r}"],
                )
            kwargs["package_manager"] = package_manager
        timeout = os.environ.get("CREATE_MONOREPO_INSTALL_TIMEOUT")
        if timeout:
            try:
                kwargs["install_timeout"] = int(timeout)
            except ValueError as exc:
                raise ValidationError(
                    "Invalid CREATE_MONOREPO_INSTALL_TIMEOUT", [f"not an integer: {timeout!r}"]
                ) from exc
        try:
            return cls(**kwargs)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid environment settings", _flatten_errors(exc)) from exc
