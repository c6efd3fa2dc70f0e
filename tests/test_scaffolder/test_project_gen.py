"""Tests for the base project structure.

Covers:
- Root directory skeleton
- Per-archetype app subtrees (next, vue, react, svelte)
- Package and service subtrees (prisma only with a database)
- Shared configs/, scripts/, docs/ and CI workflow trees
- devcontainer.json
"""

from __future__ import annotations

import json

import pytest

from create_monorepo.config import (
    AppConfig,
    MonorepoConfig,
    PackageConfig,
    ServiceConfig,
)
from create_monorepo.scaffolder.project_gen import (
    ARCHETYPES,
    ROOT_DIRECTORIES,
    ProjectStructureGenerator,
    build_structure_tree,
)
from create_monorepo.scaffolder.tree import EmptyDir, SubTree, iter_files


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def all_archetypes_config() -> MonorepoConfig:
    return MonorepoConfig.create(
        name="zoo",
        apps=(
            AppConfig(name="site", type="next", port=3000),
            AppConfig(name="panel", type="vue", port=3001),
            AppConfig(name="dash", type="react", port=3002),
            AppConfig(name="blog", type="svelte", port=3003),
        ),
        packages=(PackageConfig(name="ui", type="ui"), PackageConfig(name="types", type="types")),
        services=(
            ServiceConfig(name="api-gateway", type="api-gateway", port=4000),
            ServiceConfig(name="user-service", type="user-service", port=4001, database=True),
        ),
    )


@pytest.fixture
def structure(all_archetypes_config, renderer):
    return build_structure_tree(all_archetypes_config, renderer)


def _node(tree, path: str):
    node = SubTree(tree)
    for part in path.split("/"):
        node = node.entries[part]
    return node


# ---------------------------------------------------------------------------
# Skeleton
# ---------------------------------------------------------------------------


class TestSkeleton:
    def test_root_directories(self, structure):
        for name in ROOT_DIRECTORIES:
            assert name in structure, name

    def test_empty_config_keeps_skeleton(self, renderer):
        tree = build_structure_tree(MonorepoConfig.create(name="bare"), renderer)
        assert tree["apps"] == SubTree({})
        assert tree[".husky"] == EmptyDir()
        assert "README.md" in tree

    def test_workflows(self, structure):
        workflows = _node(structure, ".github/workflows")
        assert set(workflows.entries) == {"ci.yml", "release.yml", "preview.yml", "security.yml"}

    def test_configs_subtrees(self, structure):
        configs = _node(structure, "configs")
        assert {"eslint", "typescript", "vite", "jest", "tailwind", "env"} <= set(
            configs.entries
        )
        eslint = _node(structure, "configs/eslint")
        assert set(eslint.entries) == {"base.json", "next.json", "vue.json", "backend.json"}

    def test_scripts_and_docs(self, structure):
        assert set(_node(structure, "scripts").entries) == {"build", "deploy", "database", "utils"}
        assert set(_node(structure, "docs").entries) == {
            "architecture",
            "development",
            "api",
            "operations",
        }

    def test_readme_lists_workspaces(self, structure):
        readme = structure["README.md"].content
        assert readme.startswith("# zoo\n")
        assert "`apps/blog` (svelte, port 3003)" in readme
        assert "`services/user-service` (user-service, port 4001)" in readme


# ---------------------------------------------------------------------------
# Apps
# ---------------------------------------------------------------------------


class TestApps:
    def test_next_layout(self, structure):
        app = _node(structure, "apps/site")
        assert set(app.entries["src"].entries) == {"app", "components", "lib", "styles"}
        assert app.entries["public"] == EmptyDir()
        assert {
            "package.json",
            "next.config.ts",
            "tsconfig.json",
            "tailwind.config.ts",
            "postcss.config.js",
        } <= set(app.entries)

    @pytest.mark.parametrize(
        "name, src_dirs, static",
        [
            ("panel", {"views", "components", "composables", "router", "assets"}, "public"),
            ("dash", {"pages", "components", "hooks", "assets"}, "public"),
            ("blog", {"routes", "lib", "components"}, "static"),
        ],
    )
    def test_vite_layouts(self, structure, name, src_dirs, static):
        app = _node(structure, f"apps/{name}")
        assert set(app.entries["src"].entries) == src_dirs
        assert app.entries[static] == EmptyDir()
        assert "vite.config.ts" in app.entries
        assert "next.config.ts" not in app.entries

    def test_vite_config_uses_framework_plugin(self, structure):
        vite = _node(structure, "apps/blog/vite.config.ts").content
        assert "import { svelte } from '@sveltejs/vite-plugin-svelte';" in vite
        assert "plugins: [svelte()]" in vite
        assert "port: 3003," in vite

    def test_next_config_transpiles_packages(self, structure):
        conf = _node(structure, "apps/site/next.config.ts").content
        assert "transpilePackages: ['@zoo/ui', '@zoo/types']" in conf

    def test_next_config_is_typescript(self, structure):
        app = _node(structure, "apps/site")
        assert "next.config.js" not in app.entries
        conf = app.entries["next.config.ts"].content
        assert "import type { NextConfig } from 'next';" in conf
        assert "export default nextConfig;" in conf
        assert "module.exports" not in conf

    def test_next_tsconfig(self, structure):
        tsconfig = json.loads(_node(structure, "apps/site/tsconfig.json").content)
        assert tsconfig["extends"] == "../../configs/typescript/next.json"

    def test_app_manifest(self, structure):
        manifest = json.loads(_node(structure, "apps/dash/package.json").content)
        assert manifest["name"] == "@zoo/dash"
        assert manifest["dependencies"]["@zoo/ui"] == "workspace:*"

    def test_archetype_table_covers_app_types(self):
        assert set(ARCHETYPES) == {"next", "vue", "react", "svelte"}


# ---------------------------------------------------------------------------
# Packages and services
# ---------------------------------------------------------------------------


class TestPackagesAndServices:
    def test_package_layout(self, structure):
        package = _node(structure, "packages/ui")
        assert set(package.entries) == {"src", "package.json", "tsconfig.json", "README.md"}
        assert package.entries["README.md"].content.startswith("# @zoo/ui\n")

    def test_service_layout(self, structure):
        service = _node(structure, "services/api-gateway")
        assert set(service.entries["src"].entries) == {
            "controllers",
            "services",
            "models",
            "routes",
            "middleware",
        }
        assert "prisma" not in service.entries

    def test_database_service_gets_prisma(self, structure):
        service = _node(structure, "services/user-service")
        assert service.entries["prisma"] == EmptyDir()
        assert "## Database" in service.entries["README.md"].content


# ---------------------------------------------------------------------------
# Devcontainer
# ---------------------------------------------------------------------------


class TestDevcontainer:
    def test_forwards_ports(self, structure):
        doc = json.loads(_node(structure, ".devcontainer/devcontainer.json").content)
        assert doc["forwardPorts"] == [3000, 3001, 3002, 3003, 4000, 4001]
        assert doc["postCreateCommand"] == "pnpm install"
        assert "ghcr.io/devcontainers/features/docker-in-docker:2" not in doc["features"]

    def test_docker_in_docker_with_docker(self, renderer):
        config = MonorepoConfig.create(name="boxed", docker=True)
        tree = ProjectStructureGenerator(renderer).build_tree(config)
        doc = json.loads(_node(tree, ".devcontainer/devcontainer.json").content)
        assert "ghcr.io/devcontainers/features/docker-in-docker:2" in doc["features"]


class TestDeterminism:
    def test_same_config_same_tree(self, all_archetypes_config, renderer):
        first = dict(iter_files(build_structure_tree(all_archetypes_config, renderer)))
        second = dict(iter_files(build_structure_tree(all_archetypes_config, renderer)))
        assert first == second
