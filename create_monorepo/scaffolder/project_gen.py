"""Base project structure.

Builds the directory skeleton of a monorepo: the root folders, one subtree
per app (shaped by its framework archetype), package and service, the shared
``configs/`` tree, helper scripts, documentation, CI workflows and the dev
container definition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config import AppConfig, MonorepoConfig, PackageConfig, ServiceConfig
from .context import NODE_VERSION, build_context
from .manifest_gen import (
    generate_app_package_json,
    generate_package_package_json,
    generate_service_package_json,
    to_json,
)
from .templates import TemplateRenderer
from .tree import EmptyDir, File, SubTree, Tree, merge

ROOT_DIRECTORIES: tuple[str, ...] = (
    "apps",
    "packages",
    "services",
    "configs",
    "scripts",
    "docs",
    ".changeset",
    ".devcontainer",
    ".github",
    ".husky",
    ".vscode",
)

SERVICE_SOURCE_DIRS: tuple[str, ...] = (
    "controllers",
    "services",
    "models",
    "routes",
    "middleware",
)


@dataclass(frozen=True)
class AppArchetype:
    """Fixed layout for one frontend framework."""

    source_dirs: tuple[str, ...]
    static_dir: str
    bundler_config: str
    vite_plugin: dict[str, str] | None = None


ARCHETYPES: dict[str, AppArchetype] = {
    "next": AppArchetype(
        source_dirs=("app", "components", "lib", "styles"),
        static_dir="public",
        bundler_config="next.config.ts",
    ),
    "vue": AppArchetype(
        source_dirs=("views", "components", "composables", "router", "assets"),
        static_dir="public",
        bundler_config="vite.config.ts",
        vite_plugin={"import_name": "vue", "module": "@vitejs/plugin-vue", "call": "vue()"},
    ),
    "react": AppArchetype(
        source_dirs=("pages", "components", "hooks", "assets"),
        static_dir="public",
        bundler_config="vite.config.ts",
        vite_plugin={
            "import_name": "react",
            "module": "@vitejs/plugin-react",
            "call": "react()",
        },
    ),
    "svelte": AppArchetype(
        source_dirs=("routes", "lib", "components"),
        static_dir="static",
        bundler_config="vite.config.ts",
        vite_plugin={
            "import_name": "{ svelte }",
            "module": "@sveltejs/vite-plugin-svelte",
            "call": "svelte()",
        },
    ),
}


# ---------------------------------------------------------------------------
# JSON configuration documents
# ---------------------------------------------------------------------------


def workspace_tsconfig() -> dict[str, Any]:
    return {
        "extends": "../../configs/typescript/base.json",
        "compilerOptions": {"outDir": "./dist", "rootDir": "./src"},
        "include": ["src/**/*"],
        "exclude": ["node_modules", "dist"],
    }


def next_tsconfig() -> dict[str, Any]:
    return {
        "extends": "../../configs/typescript/next.json",
        "compilerOptions": {"plugins": [{"name": "next"}]},
        "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
        "exclude": ["node_modules"],
    }


def shared_eslint_configs() -> dict[str, dict[str, Any]]:
    return {
        "base.json": {
            "extends": ["eslint:recommended", "plugin:@typescript-eslint/recommended"],
            "parser": "@typescript-eslint/parser",
            "plugins": ["@typescript-eslint"],
            "rules": {"no-console": "off"},
        },
        "next.json": {"extends": ["./base.json", "next/core-web-vitals"]},
        "vue.json": {"extends": ["./base.json", "plugin:vue/vue3-essential"]},
        "backend.json": {"extends": ["./base.json"], "env": {"node": True}},
    }


def shared_typescript_configs() -> dict[str, dict[str, Any]]:
    return {
        "base.json": {
            "compilerOptions": {
                "target": "ES2020",
                "module": "commonjs",
                "lib": ["ES2020"],
                "strict": True,
                "esModuleInterop": True,
                "skipLibCheck": True,
                "forceConsistentCasingInFileNames": True,
                "declaration": True,
                "declarationMap": True,
                "sourceMap": True,
                "resolveJsonModule": True,
            },
        },
        "next.json": {
            "extends": "./base.json",
            "compilerOptions": {
                "lib": ["dom", "dom.iterable", "ES2020"],
                "jsx": "preserve",
                "module": "esnext",
                "moduleResolution": "bundler",
                "noEmit": True,
            },
        },
        "vue.json": {
            "extends": "./base.json",
            "compilerOptions": {
                "lib": ["dom", "ES2020"],
                "module": "esnext",
                "moduleResolution": "bundler",
                "jsx": "preserve",
            },
        },
        "node.json": {
            "extends": "./base.json",
            "compilerOptions": {"target": "ES2020", "module": "commonjs"},
        },
    }


def devcontainer_config(config: MonorepoConfig) -> dict[str, Any]:
    features: dict[str, Any] = {"ghcr.io/devcontainers/features/github-cli:1": {}}
    if config.docker:
        features["ghcr.io/devcontainers/features/docker-in-docker:2"] = {}
    ports = [a.port for a in config.apps] + [s.port for s in config.services]
    return {
        "name": f"{config.name} development container",
        "image": f"mcr.microsoft.com/devcontainers/typescript-node:{NODE_VERSION}",
        "features": features,
        "forwardPorts": ports,
        "customizations": {
            "vscode": {
                "extensions": [
                    "dbaeumer.vscode-eslint",
                    "esbenp.prettier-vscode",
                    "bradlc.vscode-tailwindcss",
                    "ms-vscode.vscode-typescript-next",
                ],
            },
        },
        "postCreateCommand": f"{config.package_manager} install",
        "remoteUser": "node",
    }


def _json_files(documents: dict[str, dict[str, Any]]) -> Tree:
    return {name: File(to_json(doc)) for name, doc in documents.items()}


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ProjectStructureGenerator:
    """Builds the base structure tree for a configuration."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def app_tree(self, config: MonorepoConfig, app: AppConfig, ctx: dict[str, Any]) -> Tree:
        archetype = ARCHETYPES[app.type]
        app_ctx = {**ctx, "app": app, "vite_plugin": archetype.vite_plugin}
        tree: Tree = {
            "src": SubTree({name: EmptyDir() for name in archetype.source_dirs}),
            archetype.static_dir: EmptyDir(),
            "package.json": File(to_json(generate_app_package_json(config, app))),
            archetype.bundler_config: File(
                self.renderer.render(f"app/{archetype.bundler_config}.j2", app_ctx)
            ),
        }
        tsconfig = next_tsconfig() if app.type == "next" else workspace_tsconfig()
        tree["tsconfig.json"] = File(to_json(tsconfig))
        tree["tailwind.config.ts"] = File(
            self.renderer.render("app/tailwind.config.ts.j2", app_ctx)
        )
        tree["postcss.config.js"] = File(
            self.renderer.render("app/postcss.config.js.j2", app_ctx)
        )
        return tree

    def package_tree(
        self, config: MonorepoConfig, package: PackageConfig, ctx: dict[str, Any]
    ) -> Tree:
        return {
            "src": EmptyDir(),
            "package.json": File(to_json(generate_package_package_json(config, package))),
            "tsconfig.json": File(to_json(workspace_tsconfig())),
            "README.md": File(
                self.renderer.render("readme/package.md.j2", {**ctx, "package": package})
            ),
        }

    def service_tree(
        self, config: MonorepoConfig, service: ServiceConfig, ctx: dict[str, Any]
    ) -> Tree:
        tree: Tree = {
            "src": SubTree({name: EmptyDir() for name in SERVICE_SOURCE_DIRS}),
            "package.json": File(to_json(generate_service_package_json(config, service))),
            "tsconfig.json": File(to_json(workspace_tsconfig())),
            "README.md": File(
                self.renderer.render("readme/service.md.j2", {**ctx, "service": service})
            ),
        }
        if service.database:
            tree["prisma"] = EmptyDir()
        return tree

    def configs_tree(self, ctx: dict[str, Any]) -> Tree:
        return merge(
            {
                "eslint": SubTree(_json_files(shared_eslint_configs())),
                "typescript": SubTree(_json_files(shared_typescript_configs())),
            },
            self.renderer.render_tree("configs", ctx),
        )

    def build_tree(self, config: MonorepoConfig) -> Tree:
        """Return the base structure tree for *config*."""
        ctx = build_context(config)

        skeleton: Tree = {name: EmptyDir() for name in ROOT_DIRECTORIES}
        content: Tree = {
            "apps": SubTree({
                app.name: SubTree(self.app_tree(config, app, ctx)) for app in config.apps
            }),
            "packages": SubTree({
                pkg.name: SubTree(self.package_tree(config, pkg, ctx))
                for pkg in config.packages
            }),
            "services": SubTree({
                svc.name: SubTree(self.service_tree(config, svc, ctx))
                for svc in config.services
            }),
            "configs": SubTree(self.configs_tree(ctx)),
            "scripts": SubTree(self.renderer.render_tree("scripts", ctx)),
            "docs": SubTree(self.renderer.render_tree("docs", ctx)),
            ".github": SubTree({
                "workflows": SubTree(self.renderer.render_tree("workflows", ctx)),
            }),
            ".devcontainer": SubTree({
                "devcontainer.json": File(to_json(devcontainer_config(config))),
            }),
            "README.md": File(self.renderer.render("readme/root.md.j2", ctx)),
        }
        return merge(skeleton, content)


def build_structure_tree(
    config: MonorepoConfig, renderer: TemplateRenderer | None = None
) -> Tree:
    return ProjectStructureGenerator(renderer).build_tree(config)
