"""Plugin registry.

A plugin edits the root ``package.json`` of an existing monorepo (and may
drop configuration files next to it).  Built-in plugins are declarative
:class:`ManifestPlugin` instances; third parties can add their own handler
with :func:`register_plugin`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol

from .errors import FileSystemError, NotAProjectError, PluginNotFoundError, ValidationError
from .package_manager import detect_package_manager, get_run_prefix
from .scaffolder.manifest_gen import to_json
from .scaffolder.templates import TemplateRenderer
from .utils import console, print_step, print_success

REQUIRED_PROJECT_FILES: tuple[str, ...] = ("package.json", "pnpm-workspace.yaml")


@dataclass(frozen=True)
class PluginInfo:
    name: str
    version: str
    description: str


class PluginHandler(Protocol):
    """Applies or reverts a plugin.

    Both methods mutate *manifest* in place and return the paths of files
    they created or removed under *root*.
    """

    def install(self, manifest: dict[str, Any], root: Path) -> list[Path]: ...

    def uninstall(self, manifest: dict[str, Any], root: Path) -> list[Path]: ...


@dataclass
class ManifestPlugin:
    """A plugin described purely by what it adds.

    ``files`` maps a path relative to the project root to a template under
    ``templates/plugins/``.  Uninstall removes exactly the keys and files
    that install adds.
    """

    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)
    renderer: TemplateRenderer | None = None

    def _sections(self) -> dict[str, dict[str, str]]:
        return {
            "dependencies": self.dependencies,
            "devDependencies": self.dev_dependencies,
            "scripts": self.scripts,
        }

    def install(self, manifest: dict[str, Any], root: Path) -> list[Path]:
        for section, entries in self._sections().items():
            if entries:
                manifest.setdefault(section, {}).update(entries)

        if not self.files:
            return []
        renderer = self.renderer or TemplateRenderer()
        pm = detect_package_manager(manifest)
        ctx = {"package_manager": pm, "run": get_run_prefix(pm)}
        written: list[Path] = []
        for rel_path, template in self.files.items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(renderer.render(f"plugins/{template}", ctx), encoding="utf-8")
            written.append(target)
        return written

    def uninstall(self, manifest: dict[str, Any], root: Path) -> list[Path]:
        for section, entries in self._sections().items():
            current = manifest.get(section)
            if not entries or not isinstance(current, dict):
                continue
            for key in entries:
                current.pop(key, None)
            if not current:
                del manifest[section]

        removed: list[Path] = []
        for rel_path in self.files:
            target = root / rel_path
            if target.is_file():
                target.unlink()
                removed.append(target)
                parent = target.parent
                if parent != root and parent.is_dir() and not any(parent.iterdir()):
                    parent.rmdir()
        return removed


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_REGISTRY: dict[str, tuple[PluginInfo, PluginHandler]] = {}


def register_plugin(info: PluginInfo, handler: PluginHandler, *, replace: bool = False) -> None:
    """Add *handler* to the registry under ``info.name``.

    Raises:
        ValueError: If the name is taken and *replace* is not set.
    """
    if info.name in _REGISTRY and not replace:
        raise ValueError(f'Plugin "{info.name}" is already registered')
    _REGISTRY[info.name] = (info, handler)


def list_plugins() -> list[PluginInfo]:
    """Registered plugins in registration order."""
    return [info for info, _ in _REGISTRY.values()]


def get_plugin(name: str) -> tuple[PluginInfo, PluginHandler]:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise PluginNotFoundError(name, list(_REGISTRY)) from None


def _require_project(root: Path) -> Path:
    missing = [name for name in REQUIRED_PROJECT_FILES if not (root / name).is_file()]
    if missing:
        raise NotAProjectError(root, missing)
    return root / "package.json"


def _read_manifest(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(path, f"Failed to read file: {exc.strerror or exc}") from exc
    try:
        manifest = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Invalid package.json", [f"line {exc.lineno} column {exc.colno}: {exc.msg}"]
        ) from exc
    if not isinstance(manifest, dict):
        raise ValidationError("Invalid package.json", ["top-level value must be an object"])
    return manifest


def _write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    try:
        path.write_text(to_json(manifest), encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(path, f"Failed to write file: {exc.strerror or exc}") from exc


def _run_handler(
    action: Callable[[dict[str, Any], Path], list[Path]],
    manifest: dict[str, Any],
    root: Path,
) -> list[Path]:
    """Call a handler's install/uninstall, mapping file errors."""
    try:
        return action(manifest, root)
    except OSError as exc:
        raise FileSystemError(
            exc.filename or root, f"Failed to update plugin files: {exc.strerror or exc}"
        ) from exc


def install_plugin(name: str, cwd: str | Path | None = None) -> PluginInfo:
    """Apply plugin *name* to the monorepo rooted at *cwd*.

    Raises:
        PluginNotFoundError: If *name* is not registered.
        NotAProjectError: If *cwd* lacks ``package.json`` or
            ``pnpm-workspace.yaml``.
        ValidationError: If ``package.json`` is not a JSON object.
        FileSystemError: If reading or writing project files fails.
    """
    info, handler = get_plugin(name)
    root = Path(cwd) if cwd is not None else Path.cwd()
    manifest_path = _require_project(root)

    print_step(f"Installing {info.name}...")
    manifest = _read_manifest(manifest_path)
    written = _run_handler(handler.install, manifest, root)
    _write_manifest(manifest_path, manifest)

    print_success(f'Plugin "{info.name}" installed successfully')
    pm = detect_package_manager(manifest)
    console.print("\n[cyan]Next steps:[/cyan]")
    for path in written:
        console.print(f"  - Review {path.relative_to(root).as_posix()}")
    console.print(f'  - Run "{pm} install" to install new dependencies')
    return info


def uninstall_plugin(name: str, cwd: str | Path | None = None) -> PluginInfo:
    """Revert plugin *name*; raises the same errors as :func:`install_plugin`."""
    info, handler = get_plugin(name)
    root = Path(cwd) if cwd is not None else Path.cwd()
    manifest_path = _require_project(root)

    print_step(f"Uninstalling {info.name}...")
    manifest = _read_manifest(manifest_path)
    _run_handler(handler.uninstall, manifest, root)
    _write_manifest(manifest_path, manifest)

    print_success(f'Plugin "{info.name}" uninstalled successfully')
    pm = detect_package_manager(manifest)
    console.print("\n[cyan]Next steps:[/cyan]")
    console.print(f'  - Run "{pm} install" to clean up dependencies')
    return info


def render_plugin_list() -> None:
    console.print("\n[bold]Available Plugins:[/bold]\n")
    for info in list_plugins():
        console.print(f"  [cyan]{info.name}[/cyan]")
        console.print(f"    {info.description}")
        console.print(f"    [dim]Version: {info.version}[/dim]")
        console.print()
    console.print("Use --install <plugin-name> to install a plugin")
    console.print("Use --uninstall <plugin-name> to remove a plugin\n")


# ---------------------------------------------------------------------------
# Built-in plugins
# ---------------------------------------------------------------------------

_BUILTINS: list[tuple[PluginInfo, ManifestPlugin]] = [
    (
        PluginInfo("storybook", "1.0.0", "Storybook for component development"),
        ManifestPlugin(
            dev_dependencies={
                "@storybook/react": "^7.0.0",
                "@storybook/addon-essentials": "^7.0.0",
                "@storybook/addon-interactions": "^7.0.0",
                "@storybook/testing-library": "^0.2.0",
            },
            scripts={
                "storybook": "storybook dev -p 6006",
                "build-storybook": "storybook build",
            },
            files={".storybook/main.ts": "storybook-main.ts.j2"},
        ),
    ),
    (
        PluginInfo("playwright", "1.0.0", "Playwright for end-to-end testing"),
        ManifestPlugin(
            dev_dependencies={"@playwright/test": "^1.40.0"},
            scripts={
                "test:e2e": "playwright test",
                "test:e2e:ui": "playwright test --ui",
                "test:e2e:report": "playwright show-report",
            },
            files={"playwright.config.ts": "playwright.config.ts.j2"},
        ),
    ),
    (
        PluginInfo("cypress", "1.0.0", "Cypress for end-to-end testing"),
        ManifestPlugin(
            dev_dependencies={"cypress": "^13.0.0"},
            scripts={"cypress:open": "cypress open", "cypress:run": "cypress run"},
            files={"cypress.config.ts": "cypress.config.ts.j2"},
        ),
    ),
    (
        PluginInfo("jest", "1.0.0", "Jest testing framework"),
        ManifestPlugin(
            dev_dependencies={
                "jest": "^29.0.0",
                "ts-jest": "^29.0.0",
                "@types/jest": "^29.0.0",
            },
            scripts={"test:unit": "jest"},
            files={"jest.config.js": "jest.config.js.j2"},
        ),
    ),
    (
        PluginInfo("prisma", "1.0.0", "Prisma ORM for database management"),
        ManifestPlugin(
            dependencies={"@prisma/client": "^5.0.0"},
            dev_dependencies={"prisma": "^5.0.0"},
            scripts={
                "db:generate": "prisma generate",
                "db:migrate": "prisma migrate dev",
                "db:studio": "prisma studio",
            },
            files={"prisma/schema.prisma": "schema.prisma.j2"},
        ),
    ),
    (
        PluginInfo("supabase", "1.0.0", "Supabase for backend services"),
        ManifestPlugin(
            dependencies={"@supabase/supabase-js": "^2.38.0"},
            dev_dependencies={"supabase": "^1.110.0"},
            scripts={"supabase:start": "supabase start", "supabase:stop": "supabase stop"},
        ),
    ),
    (
        PluginInfo("stripe", "1.0.0", "Stripe for payment processing"),
        ManifestPlugin(
            dependencies={"stripe": "^14.0.0", "@stripe/stripe-js": "^2.0.0"},
        ),
    ),
]

for _info, _handler in _BUILTINS:
    register_plugin(_info, _handler)
