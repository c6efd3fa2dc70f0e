"""Unit tests for package manager tables and commands (create_monorepo.package_manager).

Tests cover:
- Command tables for npm, yarn and pnpm
- Unknown managers rejected
- install_dependencies success / spawn failure / non-zero exit
- get_package_manager_version / check_package_manager_installed
- detect_package_manager from a manifest
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from create_monorepo.errors import ExternalCommandError
from create_monorepo.package_manager import (
    LOCKFILES,
    PACKAGE_MANAGER_VERSIONS,
    check_package_manager_installed,
    detect_package_manager,
    get_add_command,
    get_dev_add_command,
    get_exec_prefix,
    get_frozen_install,
    get_install_command,
    get_prod_install,
    get_run_prefix,
    get_package_manager_version,
    install_dependencies,
)

pytestmark = pytest.mark.unit

_RUN = "create_monorepo.package_manager.run_command"


class TestCommandTables:
    @pytest.mark.parametrize("pm", ["npm", "yarn", "pnpm"])
    def test_install_command(self, pm: str):
        assert get_install_command(pm) == [pm, "install"]

    def test_add_commands(self):
        assert get_add_command("npm") == ["npm", "install"]
        assert get_add_command("yarn") == ["yarn", "add"]
        assert get_add_command("pnpm") == ["pnpm", "add"]

    def test_dev_add_commands(self):
        assert get_dev_add_command("npm") == ["npm", "install", "-D"]
        assert get_dev_add_command("yarn") == ["yarn", "add", "-D"]
        assert get_dev_add_command("pnpm") == ["pnpm", "add", "-D"]

    def test_returned_lists_are_copies(self):
        get_add_command("pnpm").append("react")
        assert get_add_command("pnpm") == ["pnpm", "add"]

    def test_run_and_exec_prefixes(self):
        assert get_run_prefix("npm") == "npm run"
        assert get_run_prefix("pnpm") == "pnpm"
        assert get_exec_prefix("npm") == "npx"
        assert get_exec_prefix("yarn") == "yarn"

    def test_lockfile_installs(self):
        assert get_frozen_install("npm") == "npm ci"
        assert get_frozen_install("pnpm") == "pnpm install --frozen-lockfile"
        assert "--prod" in get_prod_install("pnpm")
        assert get_prod_install("npm") == "npm ci --omit=dev"

    def test_tables_cover_every_manager(self):
        assert set(LOCKFILES) == set(PACKAGE_MANAGER_VERSIONS) == {"npm", "yarn", "pnpm"}

    @pytest.mark.parametrize(
        "func", [get_install_command, get_add_command, get_run_prefix, get_prod_install]
    )
    def test_unknown_manager(self, func):
        with pytest.raises(ValueError, match="Unsupported package manager: bun"):
            func("bun")


class TestInstallDependencies:
    async def test_success_runs_without_capture(self, tmp_path: Path, fake_run_command):
        mock_run = fake_run_command()
        with patch(_RUN, mock_run):
            await install_dependencies(tmp_path, "pnpm", timeout=120)
        mock_run.assert_awaited_once_with(
            ["pnpm", "install"], cwd=tmp_path, timeout=120, capture=False
        )

    async def test_missing_binary(self, tmp_path: Path, fake_run_command):
        mock_run = fake_run_command({"yarn": FileNotFoundError("yarn")})
        with patch(_RUN, mock_run):
            with pytest.raises(ExternalCommandError) as exc_info:
                await install_dependencies(tmp_path, "yarn")
        assert exc_info.value.command == "yarn install"
        assert exc_info.value.returncode is None

    async def test_binary_not_executable(self, tmp_path: Path, fake_run_command):
        mock_run = fake_run_command({"npm": PermissionError(13, "Permission denied", "npm")})
        with patch(_RUN, mock_run):
            with pytest.raises(ExternalCommandError, match="could not be started: npm install"):
                await install_dependencies(tmp_path, "npm")

    async def test_non_zero_exit(self, tmp_path: Path, fake_run_command):
        mock_run = fake_run_command({"npm install": (1, "", "ERESOLVE")})
        with patch(_RUN, mock_run):
            with pytest.raises(ExternalCommandError) as exc_info:
                await install_dependencies(tmp_path, "npm")
        assert exc_info.value.returncode == 1
        assert "exit 1" in str(exc_info.value)


class TestVersionChecks:
    async def test_version_found(self, fake_run_command):
        with patch(_RUN, fake_run_command({"pnpm --version": (0, "8.6.0", "")})):
            assert await get_package_manager_version("pnpm") == "8.6.0"
            assert await check_package_manager_installed("pnpm") is True

    async def test_version_missing(self, fake_run_command):
        with patch(_RUN, fake_run_command({"yarn": FileNotFoundError("yarn")})):
            assert await get_package_manager_version("yarn") is None
            assert await check_package_manager_installed("yarn") is False

    async def test_version_non_zero(self, fake_run_command):
        with patch(_RUN, fake_run_command({"npm --version": (127, "", "broken")})):
            assert await get_package_manager_version("npm") is None


class TestDetectPackageManager:
    @pytest.mark.parametrize(
        "field, expected",
        [("npm@9.8.1", "npm"), ("yarn@1.22.19", "yarn"), ("pnpm@8.0.0", "pnpm")],
    )
    def test_from_field(self, field: str, expected: str):
        assert detect_package_manager({"packageManager": field}) == expected

    def test_defaults_to_pnpm(self):
        assert detect_package_manager({}) == "pnpm"
        assert detect_package_manager({"packageManager": "bun@1.0.0"}) == "pnpm"
