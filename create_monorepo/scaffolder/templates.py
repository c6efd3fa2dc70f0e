"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``create_monorepo/scaffolder/templates/`` directory and renders them with a
context built from the project configuration.  Rendering is pure: results are
returned as strings or as Directory Structure Trees and written to disk later
by the materializer.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .tree import File, SubTree, Tree


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    The renderer discovers ``.j2`` template files under a configurable
    template directory.  Templates are rendered with a context dictionary that
    typically contains project metadata (name, package manager, apps, ...).
    Undefined variables raise instead of rendering as empty strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["title_words"] = _title_words_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"docker/nginx.conf.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- Tree rendering ----------------------------------------------------

    def render_tree(self, template_prefix: str, context: dict[str, Any]) -> Tree:
        """Render every ``*.j2`` file under *template_prefix* into a tree.

        The directory structure is preserved: a template at
        ``docs/api/rest-api.md.j2`` rendered with ``template_prefix="docs"``
        yields ``{"api": SubTree({"rest-api.md": File(...)})}``.

        Args:
            template_prefix: Subdirectory inside the template root to scan.
            context: Template context variables.

        Returns:
            A Directory Structure Tree (empty if the prefix does not exist).
        """
        tree: Tree = {}
        for template_key in self.list_templates(template_prefix):
            rel = PurePosixPath(template_key).relative_to(template_prefix)
            content = self.render(template_key, context)
            parts = list(rel.parts)
            parts[-1] = parts[-1][: -len(".j2")]

            cursor = tree
            for part in parts[:-1]:
                node = cursor.get(part)
                if not isinstance(node, SubTree):
                    node = SubTree({})
                    cursor[part] = node
                cursor = node.entries
            cursor[parts[-1]] = File(content)

        return tree

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory and use ``/``.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _title_words_filter(value: str) -> str:
    """Convert ``user-service`` to ``User Service``."""
    return " ".join(word.capitalize() for word in re.split(r"[-_\s]+", value) if word)
