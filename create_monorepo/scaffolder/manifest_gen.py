"""Package manifest generation.

Produces the root ``package.json``, the workspace descriptor
(``pnpm-workspace.yaml``), the task pipeline descriptor (``turbo.json``) and
the per-workspace manifests for apps, packages and services.  Manifests are
plain dicts; :func:`to_json` gives the canonical on-disk text.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from ..config import AppConfig, MonorepoConfig, PackageConfig, ServiceConfig
from ..package_manager import ENGINE_RANGES, PACKAGE_MANAGER_VERSIONS
from .tree import File, Tree

WORKSPACE_GLOBS: list[str] = ["apps/*", "packages/*", "services/*"]

_FORMAT_GLOB = '"**/*.{ts,tsx,js,jsx,json,md}"'

_BASE_SCRIPTS: dict[str, str] = {
    "dev": "turbo run dev",
    "build": "turbo run build",
    "test": "turbo run test",
    "lint": "turbo run lint",
    "lint:fix": "turbo run lint:fix",
    "format": f"prettier --write {_FORMAT_GLOB}",
    "format:check": f"prettier --check {_FORMAT_GLOB}",
    "typecheck": "turbo run typecheck",
    "clean": "turbo run clean",
}

_DOCKER_SCRIPTS: dict[str, str] = {
    "docker:up": "docker-compose up -d",
    "docker:down": "docker-compose down",
    "docker:logs": "docker-compose logs -f",
}

# Root devDependencies contributed by each tool when it is enabled.
_TOOL_DEV_DEPENDENCIES: dict[str, dict[str, str]] = {
    "eslint": {
        "eslint": "^8.0.0",
        "@typescript-eslint/eslint-plugin": "^6.0.0",
        "@typescript-eslint/parser": "^6.0.0",
        "eslint-config-prettier": "^9.0.0",
        "eslint-plugin-prettier": "^5.0.0",
    },
    "prettier": {"prettier": "^3.0.0"},
    "husky": {
        "husky": "^8.0.0",
        "lint-staged": "^14.0.0",
        "@commitlint/cli": "^17.0.0",
        "@commitlint/config-conventional": "^17.0.0",
    },
    "changesets": {"@changesets/cli": "^2.26.0"},
}

_APP_ARCHETYPE_MANIFESTS: dict[str, dict[str, Any]] = {
    "next": {
        "scripts": {
            "dev": "next dev -p {port}",
            "build": "next build",
            "start": "next start -p {port}",
            "lint": "next lint",
        },
        "dependencies": {
            "next": "^14.0.0",
            "react": "^18.0.0",
            "react-dom": "^18.0.0",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "@types/node": "^20.0.0",
            "@types/react": "^18.0.0",
            "@types/react-dom": "^18.0.0",
            "eslint": "^8.0.0",
            "eslint-config-next": "^14.0.0",
        },
    },
    "vue": {
        "scripts": {
            "dev": "vite --port {port}",
            "build": "vite build",
            "preview": "vite preview --port {port}",
        },
        "dependencies": {
            "vue": "^3.3.0",
            "vue-router": "^4.2.0",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "vite": "^4.4.0",
            "@vitejs/plugin-vue": "^4.2.0",
            "vue-tsc": "^1.8.0",
        },
    },
    "react": {
        "scripts": {
            "dev": "vite --port {port}",
            "build": "vite build",
            "preview": "vite preview --port {port}",
        },
        "dependencies": {
            "react": "^18.0.0",
            "react-dom": "^18.0.0",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "vite": "^4.4.0",
            "@vitejs/plugin-react": "^4.0.0",
        },
    },
    "svelte": {
        "scripts": {
            "dev": "vite --port {port}",
            "build": "vite build",
            "preview": "vite preview --port {port}",
        },
        "dependencies": {
            "svelte": "^4.0.0",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "vite": "^4.4.0",
            "@sveltejs/vite-plugin-svelte": "^2.4.0",
        },
    },
}

_TAILWIND_DEV_DEPENDENCIES: dict[str, str] = {
    "tailwindcss": "^3.3.0",
    "postcss": "^8.4.0",
    "autoprefixer": "^10.4.0",
}


def to_json(data: Any) -> str:
    """Serialise *data* the way every generated JSON file is written."""
    return json.dumps(data, indent=2) + "\n"


def scoped_name(config: MonorepoConfig, name: str) -> str:
    return f"@{config.name}/{name}"


def _workspace_range(package_manager: str) -> str:
    # Only pnpm understands the workspace: protocol.
    return "workspace:*" if package_manager == "pnpm" else "*"


# ---------------------------------------------------------------------------
# Root descriptors
# ---------------------------------------------------------------------------


def generate_root_package_json(config: MonorepoConfig) -> dict[str, Any]:
    """Build the root manifest for *config*.

    Script and dependency tables are fixed; docker scripts and tool
    dependencies are added only when the corresponding option is on.
    """
    pm = config.package_manager

    scripts = dict(_BASE_SCRIPTS)
    if config.docker:
        scripts.update(_DOCKER_SCRIPTS)
    if config.tool_enabled("husky"):
        scripts["prepare"] = "husky install"
    if config.tool_enabled("changesets"):
        scripts["changeset"] = "changeset"
        scripts["version-packages"] = "changeset version"
        scripts["release"] = "turbo run build && changeset publish"

    dev_dependencies: dict[str, str] = {
        "turbo": "^1.10.0",
        "typescript": "^5.2.0",
    }
    for tool, deps in _TOOL_DEV_DEPENDENCIES.items():
        if config.tool_enabled(tool):
            dev_dependencies.update(deps)

    manifest: dict[str, Any] = {
        "name": config.name,
        "version": "1.0.0",
        "private": True,
        "description": "A modern monorepo built with create-monorepo",
        "scripts": scripts,
        "devDependencies": dev_dependencies,
        "engines": {
            "node": ">=16.0.0",
            pm: ENGINE_RANGES[pm],
        },
        "packageManager": f"{pm}@{PACKAGE_MANAGER_VERSIONS[pm]}",
    }
    if pm in ("npm", "yarn"):
        manifest["workspaces"] = list(WORKSPACE_GLOBS)

    if config.tool_enabled("husky"):
        staged: list[str] = []
        if config.tool_enabled("eslint"):
            staged.append("eslint --fix")
        if config.tool_enabled("prettier"):
            staged.append("prettier --write")
        if staged:
            manifest["lint-staged"] = {"*.{ts,tsx,js,jsx}": staged}

    return manifest


def generate_workspace_yaml(config: MonorepoConfig) -> str:
    """Return the ``pnpm-workspace.yaml`` text (written for every manager)."""
    return yaml.safe_dump({"packages": list(WORKSPACE_GLOBS)}, sort_keys=False)


def generate_turbo_json(config: MonorepoConfig) -> dict[str, Any]:
    pipeline: dict[str, Any] = {
        "build": {
            "dependsOn": ["^build"],
            "outputs": ["dist/**", ".next/**", "!.next/cache/**"],
        },
        "dev": {"cache": False, "persistent": True},
        "test": {"dependsOn": ["build"], "outputs": ["coverage/**"]},
        "lint": {"dependsOn": ["^build"]},
        "lint:fix": {"cache": False},
        "typecheck": {"dependsOn": ["^build"]},
        "clean": {"cache": False},
    }
    return {
        "$schema": "https://turbo.build/schema.json",
        "globalDependencies": ["**/.env.*local"],
        "pipeline": pipeline,
    }


# ---------------------------------------------------------------------------
# Workspace manifests
# ---------------------------------------------------------------------------


def generate_app_package_json(config: MonorepoConfig, app: AppConfig) -> dict[str, Any]:
    archetype = _APP_ARCHETYPE_MANIFESTS[app.type]
    scripts = {
        key: value.format(port=app.port) for key, value in archetype["scripts"].items()
    }
    dependencies = dict(archetype["dependencies"])
    workspace_range = _workspace_range(config.package_manager)
    for package in config.packages:
        if package.shared:
            dependencies[scoped_name(config, package.name)] = workspace_range

    return {
        "name": scoped_name(config, app.name),
        "version": "1.0.0",
        "private": True,
        "scripts": scripts,
        "dependencies": dependencies,
        "devDependencies": {**archetype["devDependencies"], **_TAILWIND_DEV_DEPENDENCIES},
    }


def generate_package_package_json(
    config: MonorepoConfig, package: PackageConfig
) -> dict[str, Any]:
    manifest: dict[str, Any] = {
        "name": scoped_name(config, package.name),
        "version": "1.0.0",
    }
    if not package.shared:
        manifest["private"] = True
    manifest.update({
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "scripts": {
            "build": "tsc",
            "dev": "tsc --watch",
            "lint": "eslint src --ext .ts",
            "clean": "rm -rf dist",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "eslint": "^8.0.0",
        },
    })
    return manifest


def generate_service_package_json(
    config: MonorepoConfig, service: ServiceConfig
) -> dict[str, Any]:
    scripts = {
        "build": "tsc",
        "dev": "ts-node-dev src/index.ts",
        "start": "node dist/index.js",
        "lint": "eslint src --ext .ts",
    }
    dependencies = {
        "express": "^4.18.0",
        "cors": "^2.8.0",
    }
    dev_dependencies = {
        "typescript": "^5.0.0",
        "ts-node-dev": "^2.0.0",
        "@types/node": "^20.0.0",
        "@types/express": "^4.17.0",
        "@types/cors": "^2.8.0",
        "eslint": "^8.0.0",
    }
    if service.database:
        scripts["db:generate"] = "prisma generate"
        scripts["db:migrate"] = "prisma migrate dev"
        dependencies["@prisma/client"] = "^5.0.0"
        dev_dependencies["prisma"] = "^5.0.0"

    return {
        "name": scoped_name(config, service.name),
        "version": "1.0.0",
        "private": True,
        "main": "dist/index.js",
        "scripts": scripts,
        "dependencies": dependencies,
        "devDependencies": dev_dependencies,
    }


# ---------------------------------------------------------------------------
# Tree builder
# ---------------------------------------------------------------------------


def build_manifest_tree(config: MonorepoConfig) -> Tree:
    """Root manifest plus the workspace and pipeline descriptors."""
    return {
        "package.json": File(to_json(generate_root_package_json(config))),
        "pnpm-workspace.yaml": File(generate_workspace_yaml(config)),
        "turbo.json": File(to_json(generate_turbo_json(config))),
    }
