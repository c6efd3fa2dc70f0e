"""create-monorepo generation orchestrator.

Runs the six generation steps in a fixed order:

Step 1: structure -- base directories, apps, packages, services, docs, CI.
Step 2: manifests -- root package.json, workspace and pipeline descriptors.
Step 3: tools     -- lint, format, git-hook, release and editor config.
Step 4: docker    -- container files (skipped unless ``docker`` is set).
Step 5: git       -- initial commit (skipped with ``skip_git``; never fatal).
Step 6: install   -- dependency installation (skipped with ``skip_install``).

The orchestrator never exits the process.  It returns a :class:`RunResult`
and leaves the exit code to the CLI.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.panel import Panel

from .config import MonorepoConfig
from .errors import CreateMonorepoError, TargetExistsError
from .package_manager import get_run_prefix, install_dependencies
from .scaffolder.generator import ProjectGenerator
from .scaffolder.tree import materialize
from .utils import (
    console,
    print_error,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
)
from .vcs import init_git

# ---------------------------------------------------------------------------
# Step model
# ---------------------------------------------------------------------------


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Status of one generation step."""

    name: str
    title: str
    fatal: bool = True
    status: StepStatus = StepStatus.PENDING
    error: str | None = None
    files_written: int = 0
    duration: float = 0.0


@dataclass
class RunResult:
    """Outcome of :meth:`Pipeline.run`.

    ``success`` is ``True`` when every fatal step that was not skipped
    succeeded.  ``error`` holds the fatal error that stopped the run, if any.
    """

    success: bool
    project_path: Path
    steps: list[StepResult] = field(default_factory=list)
    error: CreateMonorepoError | None = None

    def step(self, name: str) -> StepResult:
        for result in self.steps:
            if result.name == name:
                return result
        raise KeyError(name)

    @property
    def warnings(self) -> list[str]:
        """Errors from non-fatal steps that failed."""
        return [
            f"{s.title}: {s.error}"
            for s in self.steps
            if s.status is StepStatus.FAILED and not s.fatal and s.error
        ]


STEP_TITLES: dict[str, str] = {
    "structure": "Creating project structure",
    "manifests": "Generating package.json files",
    "tools": "Configuring development tools",
    "docker": "Setting up Docker configuration",
    "git": "Initializing Git repository",
    "install": "Installing dependencies",
}

# Steps whose failure does not abort the run.
NON_FATAL_STEPS = frozenset({"git"})


def _describe_step(step: StepResult) -> str:
    """One summary-table cell, e.g. ``succeeded (12 files, 0.3s)``."""
    if step.status is not StepStatus.SUCCEEDED:
        return step.status.value
    details = [f"{step.duration:.1f}s"]
    if step.files_written:
        details.insert(0, f"{step.files_written} files")
    return f"{step.status.value} ({', '.join(details)})"


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Drives a single generation run for one configuration.

    Attributes:
        config: The validated configuration to generate.
        project_path: Directory the project is written to.  Must not exist.
        install_timeout: Optional limit in seconds for the install step.
    """

    def __init__(
        self,
        config: MonorepoConfig,
        project_path: str | Path,
        *,
        install_timeout: float | None = None,
        generator: ProjectGenerator | None = None,
    ) -> None:
        self.config = config
        self.project_path = Path(project_path)
        self.install_timeout = install_timeout
        self.generator = generator or ProjectGenerator(config)

    def _skip_reason(self, name: str) -> str | None:
        if name == "docker" and not self.config.docker:
            return "docker disabled"
        if name == "git" and self.config.skip_git:
            return "--skip-git"
        if name == "install" and self.config.skip_install:
            return "--skip-install"
        return None

    async def _run_step(self, name: str) -> int:
        """Execute step *name*; returns the number of files written."""
        if name in ("structure", "manifests", "tools", "docker"):
            written = await materialize(self.project_path, self.generator.tree_for(name))
            return len(written)
        if name == "git":
            await init_git(self.project_path)
            return 0
        if name == "install":
            await install_dependencies(
                self.project_path,
                self.config.package_manager,
                timeout=self.install_timeout,
            )
            return 0
        raise ValueError(f"Unknown generation step: {name}")

    async def run(self) -> RunResult:
        """Execute every step in order.

        Raises:
            TargetExistsError: If the project directory already exists.  No
                step runs in that case.
        """
        if self.project_path.exists():
            raise TargetExistsError(self.project_path)

        console.print(
            Panel(
                f"[bold bright_cyan]create-monorepo[/bold bright_cyan]\n"
                f"Project         : {self.config.name}\n"
                f"Template        : {self.config.template}\n"
                f"Package manager : {self.config.package_manager}\n"
                f"Output          : {self.project_path.resolve()}",
                title="[bold]Creating your monorepo project[/bold]",
                border_style="bright_cyan",
            )
        )

        steps = [
            StepResult(name=name, title=title, fatal=name not in NON_FATAL_STEPS)
            for name, title in STEP_TITLES.items()
        ]
        result = RunResult(success=True, project_path=self.project_path, steps=steps)

        for step in steps:
            reason = self._skip_reason(step.name)
            if reason is not None:
                step.status = StepStatus.SKIPPED
                console.print(f"[dim]-  {step.title} (skipped: {reason})[/dim]")
                continue

            step.status = StepStatus.RUNNING
            print_step(step.title)
            started = time.monotonic()
            try:
                step.files_written = await self._run_step(step.name)
            except CreateMonorepoError as exc:
                step.duration = time.monotonic() - started
                step.status = StepStatus.FAILED
                step.error = str(exc)
                if not step.fatal:
                    print_warning(f"{step.title} failed: {exc}")
                    if step.name == "git":
                        print_warning("You can initialize Git later with: git init")
                    continue
                print_error(f"{step.title} failed: {exc}")
                result.success = False
                result.error = exc
                break
            step.duration = time.monotonic() - started
            step.status = StepStatus.SUCCEEDED

        self._print_final_summary(result)
        return result

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _print_final_summary(self, result: RunResult) -> None:
        console.print()
        print_summary_table(
            {step.title: _describe_step(step) for step in result.steps},
            title=f"Generation summary: {self.config.name}",
        )
        if not result.success:
            console.print(
                Panel(
                    "[bold red]Failed to create monorepo[/bold red]\n"
                    f"Files written so far remain in {self.project_path}",
                    border_style="bold red",
                )
            )
            return

        for warning in result.warnings:
            print_warning(f"Warning: {warning}")

        run = get_run_prefix(self.config.package_manager)
        lines = [f"  cd {self.config.name}"]
        if self.config.skip_install:
            lines.append(f"  {self.config.package_manager} install")
        if self.config.docker:
            lines.append("  docker-compose up -d")
        lines.append(f"  {run} dev")

        console.print()
        print_success("Monorepo project created successfully!")
        console.print()
        console.print("[cyan]Next steps:[/cyan]")
        for line in lines:
            console.print(line)
        console.print()
        console.print(
            "[dim]For more information, see the documentation in your project folder.[/dim]"
        )
