"""create-monorepo scaffolder -- turns a configuration into directory trees.

Every generator here is pure: it returns a Directory Structure Tree and
leaves writing to :func:`~create_monorepo.scaffolder.tree.materialize`.

Quick usage::

    from create_monorepo.config import MonorepoConfig
    from create_monorepo.scaffolder import ProjectGenerator, materialize

    config = MonorepoConfig.create(name="my-project", docker=True)
    generator = ProjectGenerator(config)
    await materialize("/tmp/my-project", generator.build_tree())
"""

from create_monorepo.scaffolder.generator import ProjectGenerator
from create_monorepo.scaffolder.templates import TemplateRenderer
from create_monorepo.scaffolder.tree import EmptyDir, File, SubTree, materialize

__all__ = [
    "EmptyDir",
    "File",
    "ProjectGenerator",
    "SubTree",
    "TemplateRenderer",
    "materialize",
]
