"""Unit tests for the generation orchestrator (create_monorepo.pipeline).

Tests cover:
- TargetExistsError before any step runs
- Step order and skip rules (docker, --skip-git, --skip-install)
- Git failure is non-fatal and recorded as a warning
- Install failure is fatal
- File-writing failure aborts the remaining steps
- RunResult helpers
- Final summary table and next steps
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from create_monorepo.config import MonorepoConfig
from create_monorepo.errors import (
    ExternalCommandError,
    FileSystemError,
    TargetExistsError,
)
from create_monorepo.pipeline import (
    NON_FATAL_STEPS,
    STEP_TITLES,
    Pipeline,
    RunResult,
    StepResult,
    StepStatus,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_config(**overrides) -> MonorepoConfig:
    data = {
        "name": "demo",
        "template": "minimal",
        "package_manager": "npm",
        "skip_install": True,
        "skip_git": True,
    }
    data.update(overrides)
    return MonorepoConfig.create(**data)


def _statuses(result: RunResult) -> dict[str, StepStatus]:
    return {step.name: step.status for step in result.steps}


# ---------------------------------------------------------------------------
# Step model
# ---------------------------------------------------------------------------

class TestStepModel:
    @pytest.mark.unit
    def test_step_titles_in_order(self):
        assert list(STEP_TITLES) == [
            "structure",
            "manifests",
            "tools",
            "docker",
            "git",
            "install",
        ]

    @pytest.mark.unit
    def test_only_git_is_non_fatal(self):
        assert NON_FATAL_STEPS == {"git"}

    @pytest.mark.unit
    def test_step_defaults(self):
        step = StepResult(name="tools", title="Configuring development tools")
        assert step.status is StepStatus.PENDING
        assert step.fatal is True
        assert step.error is None

    @pytest.mark.unit
    def test_run_result_step_lookup(self, tmp_path: Path):
        result = RunResult(
            success=True,
            project_path=tmp_path,
            steps=[StepResult(name="git", title="Initializing Git repository")],
        )
        assert result.step("git").title == "Initializing Git repository"
        with pytest.raises(KeyError):
            result.step("deploy")

    @pytest.mark.unit
    def test_warnings_only_from_non_fatal_failures(self, tmp_path: Path):
        result = RunResult(
            success=True,
            project_path=tmp_path,
            steps=[
                StepResult(name="git", title="Git", fatal=False,
                           status=StepStatus.FAILED, error="no git"),
                StepResult(name="install", title="Install",
                           status=StepStatus.SKIPPED),
            ],
        )
        assert result.warnings == ["Git: no git"]


# ---------------------------------------------------------------------------
# Pre-condition
# ---------------------------------------------------------------------------

class TestPrecondition:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_directory(self, parent_dir: Path):
        target = parent_dir / "demo"
        target.mkdir()
        (target / "keep.txt").write_text("mine", encoding="utf-8")

        with pytest.raises(TargetExistsError) as exc_info:
            await Pipeline(_make_config(), target).run()

        assert exc_info.value.path == target
        assert [p.name for p in target.iterdir()] == ["keep.txt"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_file(self, parent_dir: Path):
        target = parent_dir / "demo"
        target.write_text("", encoding="utf-8")
        with pytest.raises(TargetExistsError, match='Directory "demo" already exists'):
            await Pipeline(_make_config(), target).run()


# ---------------------------------------------------------------------------
# Skip rules
# ---------------------------------------------------------------------------

class TestSkipRules:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_optional_steps_skipped(self, parent_dir: Path):
        with patch("create_monorepo.pipeline.init_git", new_callable=AsyncMock) as git, \
                patch("create_monorepo.pipeline.install_dependencies",
                      new_callable=AsyncMock) as install:
            result = await Pipeline(_make_config(), parent_dir / "demo").run()

        assert result.success is True
        assert result.error is None
        assert _statuses(result) == {
            "structure": StepStatus.SUCCEEDED,
            "manifests": StepStatus.SUCCEEDED,
            "tools": StepStatus.SUCCEEDED,
            "docker": StepStatus.SKIPPED,
            "git": StepStatus.SKIPPED,
            "install": StepStatus.SKIPPED,
        }
        git.assert_not_awaited()
        install.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_files_written_counted(self, parent_dir: Path):
        result = await Pipeline(_make_config(), parent_dir / "demo").run()
        assert result.step("manifests").files_written == 3
        assert result.step("structure").files_written > 0
        assert result.step("docker").files_written == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_git_and_install_run_when_enabled(self, parent_dir: Path):
        config = _make_config(skip_git=False, skip_install=False, package_manager="pnpm")
        target = parent_dir / "demo"
        with patch("create_monorepo.pipeline.init_git", new_callable=AsyncMock) as git, \
                patch("create_monorepo.pipeline.install_dependencies",
                      new_callable=AsyncMock) as install:
            result = await Pipeline(config, target, install_timeout=30).run()

        assert result.success is True
        git.assert_awaited_once_with(target)
        install.assert_awaited_once_with(target, "pnpm", timeout=30)
        assert result.step("git").status is StepStatus.SUCCEEDED
        assert result.step("install").status is StepStatus.SUCCEEDED


# ---------------------------------------------------------------------------
# Failure policy
# ---------------------------------------------------------------------------

class TestFailurePolicy:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_git_failure_is_non_fatal(self, parent_dir: Path):
        config = _make_config(skip_git=False, skip_install=False)
        error = ExternalCommandError("git init")
        with patch("create_monorepo.pipeline.init_git",
                   new_callable=AsyncMock, side_effect=error), \
                patch("create_monorepo.pipeline.install_dependencies",
                      new_callable=AsyncMock) as install:
            result = await Pipeline(config, parent_dir / "demo").run()

        assert result.success is True
        assert result.error is None
        git_step = result.step("git")
        assert git_step.status is StepStatus.FAILED
        assert git_step.fatal is False
        assert "git init" in git_step.error
        install.assert_awaited_once()
        assert result.step("install").status is StepStatus.SUCCEEDED
        assert len(result.warnings) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexecutable_git_is_non_fatal(self, parent_dir: Path):
        config = _make_config(skip_git=False)
        denied = PermissionError(13, "Permission denied", "git")
        with patch("create_monorepo.vcs.run_command",
                   new_callable=AsyncMock, side_effect=denied):
            result = await Pipeline(config, parent_dir / "demo").run()

        assert result.success is True
        git_step = result.step("git")
        assert git_step.status is StepStatus.FAILED
        assert "could not be started: git init" in git_step.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_install_failure_is_fatal(self, parent_dir: Path):
        config = _make_config(skip_install=False)
        error = ExternalCommandError("npm install", 1, "ERESOLVE")
        with patch("create_monorepo.pipeline.install_dependencies",
                   new_callable=AsyncMock, side_effect=error):
            result = await Pipeline(config, parent_dir / "demo").run()

        assert result.success is False
        assert result.error is error
        assert result.step("install").status is StepStatus.FAILED
        # Files from the earlier steps stay on disk.
        assert (parent_dir / "demo" / "package.json").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_failure_stops_remaining_steps(self, parent_dir: Path):
        target = parent_dir / "demo"
        error = FileSystemError(target / "package.json", "Failed to write file")
        config = _make_config(skip_git=False, docker=True)

        async def failing_materialize(base, tree):
            if "package.json" in tree and "turbo.json" in tree:
                raise error
            return []

        with patch("create_monorepo.pipeline.materialize", side_effect=failing_materialize), \
                patch("create_monorepo.pipeline.init_git", new_callable=AsyncMock) as git:
            result = await Pipeline(config, target).run()

        assert result.success is False
        assert result.error is error
        statuses = _statuses(result)
        assert statuses["structure"] is StepStatus.SUCCEEDED
        assert statuses["manifests"] is StepStatus.FAILED
        assert statuses["tools"] is StepStatus.PENDING
        assert statuses["docker"] is StepStatus.PENDING
        assert statuses["git"] is StepStatus.PENDING
        git.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, parent_dir: Path):
        with patch("create_monorepo.pipeline.materialize", side_effect=RuntimeError("bug")):
            with pytest.raises(RuntimeError, match="bug"):
                await Pipeline(_make_config(), parent_dir / "demo").run()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class TestFinalSummary:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_next_steps(self, parent_dir: Path):
        config = _make_config(docker=True)
        with patch("create_monorepo.pipeline.console") as mock_console:
            await Pipeline(config, parent_dir / "demo").run()
        printed = " ".join(
            str(c.args[0]) for c in mock_console.print.call_args_list if c.args
        )
        assert "cd demo" in printed
        assert "npm install" in printed
        assert "docker-compose up -d" in printed
        assert "npm run dev" in printed

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_summary_table_lists_every_step(self, parent_dir: Path):
        with patch("create_monorepo.pipeline.print_summary_table") as table:
            await Pipeline(_make_config(), parent_dir / "demo").run()
        table.assert_called_once()
        rows = table.call_args.args[0]
        assert list(rows) == list(STEP_TITLES.values())
        assert rows["Generating package.json files"].startswith("succeeded (3 files, ")
        assert rows["Setting up Docker configuration"] == "skipped"
        assert table.call_args.kwargs["title"] == "Generation summary: demo"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_summary_table_after_fatal_failure(self, parent_dir: Path):
        config = _make_config(skip_install=False)
        error = ExternalCommandError("npm install", 1, "ERESOLVE")
        with patch("create_monorepo.pipeline.install_dependencies",
                   new_callable=AsyncMock, side_effect=error), \
                patch("create_monorepo.pipeline.print_summary_table") as table:
            await Pipeline(config, parent_dir / "demo").run()
        rows = table.call_args.args[0]
        assert rows["Installing dependencies"] == "failed"
        assert rows["Initializing Git repository"] == "skipped"
