"""Shared pytest fixtures for the create-monorepo test suite.

Provides reusable fixtures for:
- Temporary parent directories for generated projects
- Ready-made configurations (minimal, docker with database, full preset)
- A real TemplateRenderer over the packaged templates
- Mock subprocess helpers for run_command
- Fake monorepo roots for plugin/doctor tests
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from create_monorepo.config import (
    AppConfig,
    MonorepoConfig,
    PackageConfig,
    ServiceConfig,
    ToolConfig,
    apply_preset,
)
from create_monorepo.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def parent_dir(tmp_path: Path) -> Path:
    """Empty directory that generated projects are created inside."""
    parent = tmp_path / "workspace"
    parent.mkdir()
    yield parent


@pytest.fixture
def monorepo_root(tmp_path: Path) -> Path:
    """A directory that looks like a generated monorepo root.

    Contains the root manifest (declaring pnpm), the workspace descriptor and
    the pipeline descriptor, which is what the plugin and doctor commands look
    for.
    """
    root = tmp_path / "existing-repo"
    root.mkdir()
    manifest = {
        "name": "existing-repo",
        "version": "1.0.0",
        "private": True,
        "scripts": {"dev": "turbo run dev"},
        "devDependencies": {"turbo": "^1.10.0"},
        "packageManager": "pnpm@8.0.0",
    }
    (root / "package.json").write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
    (root / "pnpm-workspace.yaml").write_text(
        "packages:\n- apps/*\n- packages/*\n- services/*\n", encoding="utf-8"
    )
    (root / "turbo.json").write_text("{}\n", encoding="utf-8")
    yield root


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def minimal_config() -> MonorepoConfig:
    """npm, no docker, nothing to install or commit, empty bundles."""
    return MonorepoConfig.create(
        name="demo",
        template="minimal",
        package_manager="npm",
        docker=False,
        skip_install=True,
        skip_git=True,
    )


@pytest.fixture
def docker_config() -> MonorepoConfig:
    """One app, one package and two services, one of them with a database."""
    return MonorepoConfig.create(
        name="shop",
        package_manager="pnpm",
        docker=True,
        skip_install=True,
        skip_git=True,
        apps=(AppConfig(name="web", type="next", port=3000),),
        packages=(PackageConfig(name="ui", type="ui"),),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="user-service", type="user-service", port=4001, database=True),
        ),
        tools=tuple(
            ToolConfig(name=name) for name in ("eslint", "prettier", "husky", "changesets")
        ),
    )


@pytest.fixture
def default_config() -> MonorepoConfig:
    """The ``default`` preset applied to an otherwise empty config."""
    return apply_preset(MonorepoConfig.create(name="acme", skip_install=True, skip_git=True))


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer over the packaged template directory."""
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Mock Subprocess
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock ``asyncio.create_subprocess_exec`` for run_command tests.

    Returns a configurable mock process. Set ``mock_subprocess.returncode``,
    ``mock_subprocess.stdout`` and ``mock_subprocess.stderr`` to control
    behaviour.

    Usage:
        async def test_something(mock_subprocess):
            mock_subprocess.returncode = 0
            mock_subprocess.stdout = b"output"
            with mock_subprocess.patch:
                result = await run_command(["echo", "hi"])
    """

    class MockProcess:
        def __init__(self):
            self.returncode = 0
            self.stdout = b""
            self.stderr = b""
            self.pid = 12345

        async def communicate(self, input=None):
            return self.stdout, self.stderr

        async def wait(self):
            return self.returncode

        def kill(self):
            pass

        def terminate(self):
            pass

    mock_proc = MockProcess()

    async def mock_create_subprocess_exec(*args, **kwargs):
        return mock_proc

    mock_proc.patch = patch(
        "asyncio.create_subprocess_exec",
        side_effect=mock_create_subprocess_exec,
    )
    return mock_proc


@pytest.fixture
def fake_run_command():
    """Factory for an ``AsyncMock`` standing in for ``run_command``.

    *responses* maps the first two words of a command (``"git init"``,
    ``"pnpm --version"``) to a ``(returncode, stdout, stderr)`` tuple or an
    exception instance.  Unlisted commands succeed with empty output.
    """

    def _factory(responses: dict[str, object] | None = None) -> AsyncMock:
        responses = responses or {}

        async def _run(cmd, *args, **kwargs):
            key = " ".join(cmd[:2])
            outcome = responses.get(key, responses.get(cmd[0], (0, "", "")))
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        return AsyncMock(side_effect=_run)

    return _factory
