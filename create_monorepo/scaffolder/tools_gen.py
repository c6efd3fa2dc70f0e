"""Tool configuration files (linting, formatting, git hooks, releases, editor).

Environment files, ``.gitignore`` and the VS Code workspace settings are
always produced; everything else depends on the matching entry in
``config.tools`` being enabled.
"""

from __future__ import annotations

from typing import Any

from ..config import MonorepoConfig
from .context import build_context
from .manifest_gen import to_json
from .templates import TemplateRenderer
from .tree import File, SubTree, Tree, merge

PRETTIER_CONFIG: dict[str, Any] = {
    "semi": True,
    "singleQuote": True,
    "trailingComma": "es5",
    "printWidth": 100,
    "tabWidth": 2,
}


def changeset_config(config: MonorepoConfig) -> dict[str, Any]:
    return {
        "$schema": "https://unpkg.com/@changesets/config@2.3.1/schema.json",
        "changelog": "@changesets/cli/changelog",
        "commit": False,
        "fixed": [],
        "linked": [],
        "access": "restricted",
        "baseBranch": "main",
        "updateInternalDependencies": "patch",
        "ignore": [],
    }


def vscode_settings(config: MonorepoConfig) -> dict[str, Any]:
    settings: dict[str, Any] = {
        "editor.formatOnSave": True,
        "editor.defaultFormatter": "esbenp.prettier-vscode",
        "typescript.tsdk": "node_modules/typescript/lib",
        "files.exclude": {
            "**/node_modules": True,
            "**/.turbo": True,
        },
    }
    if config.tool_enabled("eslint"):
        settings["editor.codeActionsOnSave"] = {"source.fixAll.eslint": "explicit"}
        settings["eslint.workingDirectories"] = [{"mode": "auto"}]
    return settings


def vscode_extensions(config: MonorepoConfig) -> dict[str, Any]:
    recommendations = [
        "dbaeumer.vscode-eslint",
        "esbenp.prettier-vscode",
        "bradlc.vscode-tailwindcss",
        "ms-vscode.vscode-typescript-next",
    ]
    if config.docker:
        recommendations.append("ms-azuretools.vscode-docker")
    return {"recommendations": recommendations}


def build_tools_tree(
    config: MonorepoConfig, renderer: TemplateRenderer | None = None
) -> Tree:
    """Return the tree of tool configuration files for *config*."""
    renderer = renderer or TemplateRenderer()
    ctx = build_context(config)

    def render(name: str) -> File:
        return File(renderer.render(f"tools/{name}.j2", ctx))

    tree: Tree = {
        ".gitignore": render("gitignore"),
        ".env.example": render("env.example"),
        ".env.local": render("env.local"),
        ".vscode": SubTree({
            "settings.json": File(to_json(vscode_settings(config))),
            "extensions.json": File(to_json(vscode_extensions(config))),
        }),
    }

    if config.tool_enabled("eslint"):
        tree[".eslintrc.js"] = render("eslintrc.js")
        tree[".eslintignore"] = render("eslintignore")

    if config.tool_enabled("prettier"):
        tree[".prettierrc"] = File(to_json(PRETTIER_CONFIG))
        tree[".prettierignore"] = render("prettierignore")

    if config.tool_enabled("husky"):
        tree = merge(tree, {
            ".husky": SubTree({
                "pre-commit": render("husky-pre-commit"),
                "commit-msg": render("husky-commit-msg"),
            }),
            "commitlint.config.js": render("commitlint.config.js"),
        })

    if config.tool_enabled("changesets"):
        tree = merge(tree, {
            ".changeset": SubTree({
                "config.json": File(to_json(changeset_config(config))),
                "README.md": render("changeset-readme.md"),
            }),
        })

    return tree
