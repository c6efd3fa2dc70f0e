"""Template context shared by every generator.

The context is derived from the configuration only, so rendering the same
configuration twice yields identical output.
"""

from __future__ import annotations

from typing import Any

from ..config import MonorepoConfig
from ..package_manager import (
    LOCKFILES,
    get_exec_prefix,
    get_frozen_install,
    get_install_command,
    get_prod_install,
    get_run_prefix,
)

NODE_VERSION = "18"
MIN_NODE_VERSION = "16"

APP_FRAMEWORKS: dict[str, str] = {
    "next": "Next.js",
    "vue": "Vue.js",
    "react": "React",
    "svelte": "Svelte",
}


def lockfile_sources(package_manager: str) -> str:
    """Files a Dockerfile copies before the dependency install layer."""
    sources = ["package.json", LOCKFILES[package_manager]]
    if package_manager == "pnpm":
        sources.append("pnpm-workspace.yaml")
    return " ".join(sources)


def build_context(config: MonorepoConfig) -> dict[str, Any]:
    """Build the Jinja2 context for *config*."""
    pm = config.package_manager
    return {
        "project_name": config.name,
        "package_manager": pm,
        "install": " ".join(get_install_command(pm)),
        "run": get_run_prefix(pm),
        "exec": get_exec_prefix(pm),
        "lockfile": LOCKFILES[pm],
        "lockfile_sources": lockfile_sources(pm),
        "frozen_install": get_frozen_install(pm),
        "prod_install": get_prod_install(pm),
        "node_version": NODE_VERSION,
        "min_node_version": MIN_NODE_VERSION,
        "apps": list(config.apps),
        "packages": list(config.packages),
        "services": list(config.services),
        "has_database": config.has_database,
        "docker": config.docker,
        "prettier": config.tool_enabled("prettier"),
        "app_frameworks": APP_FRAMEWORKS,
    }
