"""Package manager command tables and dependency installation.

The tables here are the single source of truth for how npm, yarn and pnpm
spell their commands; the template catalog reads them to fill in scripts,
workflows and Dockerfiles.
"""

from __future__ import annotations

from pathlib import Path

from .errors import ExternalCommandError
from .utils import print_step, print_success, run_command

#: Version pinned in the root manifest's ``packageManager`` field.
PACKAGE_MANAGER_VERSIONS: dict[str, str] = {
    "npm": "9.8.1",
    "yarn": "1.22.19",
    "pnpm": "8.0.0",
}

#: Minimum version declared under ``engines`` in the root manifest.
ENGINE_RANGES: dict[str, str] = {
    "npm": ">=9.0.0",
    "yarn": ">=1.22.0",
    "pnpm": ">=8.0.0",
}

LOCKFILES: dict[str, str] = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
    "pnpm": "pnpm-lock.yaml",
}

_ADD: dict[str, list[str]] = {
    "npm": ["npm", "install"],
    "yarn": ["yarn", "add"],
    "pnpm": ["pnpm", "add"],
}

_DEV_ADD: dict[str, list[str]] = {
    "npm": ["npm", "install", "-D"],
    "yarn": ["yarn", "add", "-D"],
    "pnpm": ["pnpm", "add", "-D"],
}

_RUN: dict[str, str] = {
    "npm": "npm run",
    "yarn": "yarn",
    "pnpm": "pnpm",
}

_EXEC: dict[str, str] = {
    "npm": "npx",
    "yarn": "yarn",
    "pnpm": "pnpm",
}

_FROZEN_INSTALL: dict[str, str] = {
    "npm": "npm ci",
    "yarn": "yarn install --frozen-lockfile",
    "pnpm": "pnpm install --frozen-lockfile",
}

_PROD_INSTALL: dict[str, str] = {
    "npm": "npm ci --omit=dev",
    "yarn": "yarn install --production --frozen-lockfile",
    "pnpm": "pnpm install --prod --frozen-lockfile",
}


def _lookup(table: dict, package_manager: str):
    try:
        return table[package_manager]
    except KeyError:
        raise ValueError(f"Unsupported package manager: {package_manager}") from None


def get_install_command(package_manager: str) -> list[str]:
    _lookup(_ADD, package_manager)
    return [package_manager, "install"]


def get_add_command(package_manager: str) -> list[str]:
    return list(_lookup(_ADD, package_manager))


def get_dev_add_command(package_manager: str) -> list[str]:
    return list(_lookup(_DEV_ADD, package_manager))


def get_run_prefix(package_manager: str) -> str:
    """Return the prefix for running a manifest script (``npm run``, ``pnpm``)."""
    return _lookup(_RUN, package_manager)


def get_exec_prefix(package_manager: str) -> str:
    """Return the prefix for running a locally installed binary."""
    return _lookup(_EXEC, package_manager)


def get_frozen_install(package_manager: str) -> str:
    return _lookup(_FROZEN_INSTALL, package_manager)


def get_prod_install(package_manager: str) -> str:
    return _lookup(_PROD_INSTALL, package_manager)


# ---------------------------------------------------------------------------
# Process-level operations
# ---------------------------------------------------------------------------


async def install_dependencies(
    project_root: str | Path,
    package_manager: str,
    timeout: float | None = None,
) -> None:
    """Run ``<pm> install`` in *project_root* with inherited stdio.

    Raises:
        ExternalCommandError: If the package manager cannot be started or
            exits non-zero.
    """
    cmd = get_install_command(package_manager)
    print_step(f"Installing dependencies with {package_manager}...")
    try:
        returncode, _, stderr = await run_command(
            cmd, cwd=project_root, timeout=timeout, capture=False
        )
    except OSError as exc:
        raise ExternalCommandError(" ".join(cmd)) from exc
    if returncode != 0:
        raise ExternalCommandError(" ".join(cmd), returncode, stderr)
    print_success("Dependencies installed successfully")


async def get_package_manager_version(package_manager: str) -> str | None:
    """Return ``<pm> --version`` output, or ``None`` if it is not usable."""
    try:
        returncode, stdout, _ = await run_command([package_manager, "--version"])
    except OSError:
        return None
    if returncode != 0:
        return None
    return stdout


async def check_package_manager_installed(package_manager: str) -> bool:
    return await get_package_manager_version(package_manager) is not None


def detect_package_manager(manifest: dict) -> str:
    """Read the manager from a manifest's ``packageManager`` field.

    Defaults to ``pnpm`` when the field is missing or unrecognised.
    """
    declared = str(manifest.get("packageManager", ""))
    name = declared.split("@", 1)[0]
    return name if name in PACKAGE_MANAGER_VERSIONS else "pnpm"
