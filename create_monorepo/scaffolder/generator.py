"""Main scaffolding facade.

``ProjectGenerator`` ties the individual generators together.  It produces
one Directory Structure Tree per file-writing generation step; it never
touches the filesystem itself.
"""

from __future__ import annotations

from ..config import MonorepoConfig
from .docker_gen import DockerGenerator
from .manifest_gen import build_manifest_tree
from .project_gen import ProjectStructureGenerator
from .templates import TemplateRenderer
from .tools_gen import build_tools_tree
from .tree import Tree, merge

#: File-writing steps, in the order they are materialized.
TREE_STEPS: tuple[str, ...] = ("structure", "manifests", "tools", "docker")


class ProjectGenerator:
    """Builds the trees for a single configuration.

    Given a ``MonorepoConfig``, the generator produces:

    - the base structure (apps, packages, services, configs, docs, CI)
    - root manifests and workspace/pipeline descriptors
    - tool configuration (eslint, prettier, husky, changesets, editor)
    - container files, when ``config.docker`` is set
    """

    def __init__(
        self, config: MonorepoConfig, renderer: TemplateRenderer | None = None
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.structure_gen = ProjectStructureGenerator(self.renderer)
        self.docker_gen = DockerGenerator(self.renderer)

    def structure_tree(self) -> Tree:
        return self.structure_gen.build_tree(self.config)

    def manifest_tree(self) -> Tree:
        return build_manifest_tree(self.config)

    def tools_tree(self) -> Tree:
        return build_tools_tree(self.config, self.renderer)

    def docker_tree(self) -> Tree:
        """Container files, or an empty tree when docker is disabled."""
        if not self.config.docker:
            return {}
        return self.docker_gen.build_tree(self.config)

    def tree_for(self, step: str) -> Tree:
        builders = {
            "structure": self.structure_tree,
            "manifests": self.manifest_tree,
            "tools": self.tools_tree,
            "docker": self.docker_tree,
        }
        try:
            return builders[step]()
        except KeyError:
            raise ValueError(f"Unknown generation step: {step}") from None

    def build_tree(self) -> Tree:
        """Everything the file-writing steps would write, merged in step order."""
        return merge(*(self.tree_for(step) for step in TREE_STEPS))
