"""Environment and project diagnostics (``create-monorepo doctor``).

Every check returns a :class:`DiagnosticResult`; nothing here raises for an
unhealthy environment.  Only the runtime checks (Node.js and the package
managers) make the command exit non-zero.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from rich.table import Table

from .package_manager import detect_package_manager, get_package_manager_version
from .utils import console, run_command
from .validation import PACKAGE_MANAGERS
from .vcs import check_git_clean, is_git_repository

MIN_NODE_MAJOR = 16

REQUIRED_PROJECT_FILES: tuple[str, ...] = ("package.json", "pnpm-workspace.yaml", "turbo.json")
OPTIONAL_PROJECT_DIRS: tuple[str, ...] = ("apps", "packages", "services", "configs")

#: Checks whose failure makes ``doctor`` exit non-zero.
RUNTIME_CHECKS = frozenset({"Node.js Version", "Package Managers"})

Status = Literal["pass", "warn", "fail"]


class DiagnosticResult(BaseModel):
    """Outcome of a single diagnostic check."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: Status
    message: str
    suggestion: Optional[str] = Field(default=None, description="How to fix a warn/fail")


async def _version_of(cmd: list[str]) -> str | None:
    try:
        returncode, stdout, _ = await run_command(cmd)
    except OSError:
        return None
    return stdout.strip() if returncode == 0 else None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def parse_node_major(version: str) -> int | None:
    """``"v18.17.1"`` -> ``18``; ``None`` if the string is not a version."""
    match = re.match(r"^v?(\d+)", version.strip())
    return int(match.group(1)) if match else None


async def check_node_version() -> DiagnosticResult:
    name = "Node.js Version"
    version = await _version_of(["node", "--version"])
    if version is None:
        return DiagnosticResult(
            name=name,
            status="fail",
            message="Node.js not found",
            suggestion=f"Please install Node.js {MIN_NODE_MAJOR} or higher",
        )
    major = parse_node_major(version)
    if major is None or major < MIN_NODE_MAJOR:
        return DiagnosticResult(
            name=name,
            status="fail",
            message=f"Node.js {version} is too old",
            suggestion=f"Please upgrade to Node.js {MIN_NODE_MAJOR} or higher",
        )
    return DiagnosticResult(name=name, status="pass", message=f"Node.js {version}")


async def check_package_managers() -> DiagnosticResult:
    name = "Package Managers"
    versions: dict[str, str] = {}
    for pm in PACKAGE_MANAGERS:
        version = await get_package_manager_version(pm)
        if version is not None:
            versions[pm] = version

    if not versions:
        return DiagnosticResult(
            name=name,
            status="fail",
            message="No package managers found",
            suggestion="Please install npm, yarn, or pnpm",
        )

    found = ", ".join(f"{pm} {version}" for pm, version in versions.items())
    if "pnpm" in versions:
        return DiagnosticResult(name=name, status="pass", message=f"{found} (Recommended: pnpm)")
    return DiagnosticResult(
        name=name,
        status="pass",
        message=found,
        suggestion="Consider using pnpm for better monorepo support",
    )


async def check_git(cwd: Path) -> DiagnosticResult:
    name = "Git"
    version = await _version_of(["git", "--version"])
    if version is None:
        return DiagnosticResult(
            name=name,
            status="warn",
            message="Git not found",
            suggestion="Consider installing Git for version control",
        )
    if not await is_git_repository(cwd):
        return DiagnosticResult(
            name=name,
            status="warn",
            message=f"{version} (No repository)",
            suggestion="Consider initializing a Git repository",
        )
    if not await check_git_clean(cwd):
        return DiagnosticResult(
            name=name,
            status="warn",
            message=f"{version} (Uncommitted changes)",
            suggestion="Commit or stash your changes",
        )
    return DiagnosticResult(name=name, status="pass", message=f"{version} (Repository clean)")


def check_project_structure(cwd: Path) -> DiagnosticResult:
    name = "Project Structure"
    missing = [f for f in REQUIRED_PROJECT_FILES if not (cwd / f).exists()]
    if missing:
        # Running outside a monorepo is allowed, so this never fails the run.
        return DiagnosticResult(
            name=name,
            status="warn",
            message=f"Not a monorepo root. Missing: {', '.join(missing)}",
            suggestion="Run create-monorepo to initialize your project",
        )
    found = [d for d in OPTIONAL_PROJECT_DIRS if (cwd / d).is_dir()]
    if not found:
        return DiagnosticResult(
            name=name,
            status="warn",
            message="Basic structure found, but no apps/packages/services",
            suggestion="Consider adding applications and packages to your monorepo",
        )
    return DiagnosticResult(name=name, status="pass", message=f"Found: {', '.join(found)}")


async def check_dependencies(cwd: Path) -> DiagnosticResult:
    name = "Dependencies"
    manifest_path = cwd / "package.json"
    if not manifest_path.is_file():
        return DiagnosticResult(
            name=name,
            status="warn",
            message="No package.json found",
            suggestion="Initialize your project first",
        )
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return DiagnosticResult(
            name=name,
            status="warn",
            message="package.json could not be read",
            suggestion="Check that package.json is valid JSON",
        )

    pm = detect_package_manager(manifest)
    if not (cwd / "node_modules").is_dir():
        return DiagnosticResult(
            name=name,
            status="warn",
            message="Dependencies not installed",
            suggestion=f"Run {pm} install to install dependencies",
        )

    try:
        returncode, _, _ = await run_command(
            [pm, "audit", "--audit-level", "high"], cwd=cwd
        )
    except OSError:
        returncode = None
    if returncode != 0:
        return DiagnosticResult(
            name=name,
            status="warn",
            message="Security audit reported issues or could not run",
            suggestion=f"Run {pm} audit and fix security issues",
        )
    return DiagnosticResult(name=name, status="pass", message="Dependencies installed and secure")


async def check_docker() -> DiagnosticResult:
    name = "Docker"
    version = await _version_of(["docker", "--version"])
    if version is None:
        return DiagnosticResult(
            name=name,
            status="warn",
            message="Docker not found",
            suggestion="Install Docker for containerized development",
        )
    compose = await _version_of(["docker-compose", "--version"])
    if compose is None:
        compose = await _version_of(["docker", "compose", "version"])
    if compose is None:
        return DiagnosticResult(
            name=name,
            status="warn",
            message=f"{version} (Docker Compose not found)",
            suggestion="Install Docker Compose for multi-container development",
        )
    return DiagnosticResult(name=name, status="pass", message=f"{version} (Compose available)")


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def run_doctor(cwd: str | Path | None = None) -> list[DiagnosticResult]:
    """Run every check sequentially against *cwd* (default: current directory)."""
    root = Path(cwd) if cwd is not None else Path.cwd()
    return [
        await check_node_version(),
        await check_package_managers(),
        await check_git(root),
        check_project_structure(root),
        await check_dependencies(root),
        await check_docker(),
    ]


def doctor_exit_code(results: list[DiagnosticResult]) -> int:
    """``1`` if a runtime check failed, else ``0``."""
    return int(any(r.status == "fail" and r.name in RUNTIME_CHECKS for r in results))


_STATUS_STYLE = {"pass": "green", "warn": "yellow", "fail": "red"}


def render_results(results: list[DiagnosticResult]) -> None:
    """Print the results table followed by recommendations."""
    table = Table(title="Diagnostic Results", show_header=True, header_style="bold cyan")
    table.add_column("Check", no_wrap=True)
    table.add_column("Status")
    table.add_column("Details")
    for result in results:
        style = _STATUS_STYLE[result.status]
        details = result.message
        if result.suggestion:
            details = f"{details}\n[dim]{result.suggestion}[/dim]"
        table.add_row(result.name, f"[{style}]{result.status.upper()}[/{style}]", details)
    console.print(table)
    console.print()

    failed = [r for r in results if r.status == "fail"]
    warnings = [r for r in results if r.status == "warn"]
    if not failed and not warnings:
        console.print("[bold green]All checks passed! Your monorepo is ready for development.[/bold green]")
        return

    if failed:
        console.print(f"[bold red]{len(failed)} critical issue(s) found:[/bold red]")
        for check in failed:
            console.print(f"[red]   - {check.name}: {check.message}[/red]")
    if warnings:
        console.print(f"[bold yellow]{len(warnings)} warning(s):[/bold yellow]")
        for check in warnings:
            console.print(f"[yellow]   - {check.name}: {check.message}[/yellow]")

    console.print("\n[blue]To fix these issues:[/blue]")
    console.print("   1. Address critical issues first")
    console.print("   2. Consider addressing warnings")
    console.print('   3. Run "create-monorepo doctor" again to verify fixes')
    console.print("[dim]\n   For detailed setup instructions, see: docs/development/setup.md[/dim]")
