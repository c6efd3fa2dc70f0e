"""Directory Structure Trees and the filesystem materializer.

A tree is a nested mapping from relative path segment to one of three node
kinds:

* :class:`File` -- literal file content,
* :class:`EmptyDir` -- a directory that exists but has no generated content,
* :class:`SubTree` -- a nested mapping.

Template builders return trees; :func:`materialize` writes them to disk.
Keys may contain ``/`` (e.g. ``".github/workflows"``); intermediate
directories are created as needed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Union

from ..errors import FileSystemError


@dataclass(frozen=True)
class File:
    """A file with literal UTF-8 content."""

    content: str


@dataclass(frozen=True)
class EmptyDir:
    """A directory with nothing generated inside it."""


@dataclass(frozen=True)
class SubTree:
    """A directory whose children are described by *entries*."""

    entries: dict[str, "Node"] = field(default_factory=dict)


Node = Union[File, EmptyDir, SubTree]
Tree = dict[str, Node]


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def from_mapping(raw: Mapping[str, Any]) -> Tree:
    """Convert a loose nested mapping into a tagged :data:`Tree`.

    ``str`` values become :class:`File`, ``None`` becomes :class:`EmptyDir`
    and nested mappings become :class:`SubTree`.  Values that are already
    nodes are kept as-is.

    Raises:
        TypeError: If a value is of any other type.
    """
    tree: Tree = {}
    for key, value in raw.items():
        if isinstance(value, (File, EmptyDir, SubTree)):
            tree[key] = value
        elif isinstance(value, str):
            tree[key] = File(value)
        elif value is None:
            tree[key] = EmptyDir()
        elif isinstance(value, Mapping):
            tree[key] = SubTree(from_mapping(value))
        else:
            raise TypeError(
                f"Unsupported tree value for {key!r}: {type(value).__name__}"
            )
    return tree


def merge(*trees: Mapping[str, Node]) -> Tree:
    """Merge trees left to right.

    Sub-trees with the same key are merged recursively; for any other
    collision the right-most node wins.
    """
    merged: Tree = {}
    for tree in trees:
        for key, node in tree.items():
            existing = merged.get(key)
            if isinstance(existing, SubTree) and isinstance(node, SubTree):
                merged[key] = SubTree(merge(existing.entries, node.entries))
            elif isinstance(existing, SubTree) and isinstance(node, EmptyDir):
                continue
            else:
                merged[key] = node
    return merged


# ---------------------------------------------------------------------------
# Inspection helpers
# ---------------------------------------------------------------------------


def iter_files(tree: Mapping[str, Node], prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield ``(relative_posix_path, content)`` for every file in *tree*."""
    for key, node in tree.items():
        rel = str(PurePosixPath(prefix, key)) if prefix else key
        if isinstance(node, File):
            yield rel, node.content
        elif isinstance(node, SubTree):
            yield from iter_files(node.entries, rel)


def count_files(tree: Mapping[str, Node]) -> int:
    return sum(1 for _ in iter_files(tree))


def count_dirs(tree: Mapping[str, Node]) -> int:
    """Count explicit directory entries (``EmptyDir`` and ``SubTree``)."""
    total = 0
    for node in tree.values():
        if isinstance(node, EmptyDir):
            total += 1
        elif isinstance(node, SubTree):
            total += 1 + count_dirs(node.entries)
    return total


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


async def materialize(base: str | Path, tree: Mapping[str, Node]) -> list[Path]:
    """Write *tree* under *base*.

    Directory creation is idempotent and existing files at the exact same
    path are overwritten.  Not transactional: if an I/O error occurs the
    files written so far stay on disk.

    Returns:
        Paths of all files written, in traversal order.

    Raises:
        FileSystemError: On any underlying ``OSError``, carrying the path
            that failed.
    """
    written: list[Path] = []
    await _materialize_into(Path(base), tree, written)
    return written


async def _materialize_into(
    base: Path, tree: Mapping[str, Node], written: list[Path]
) -> None:
    for key, node in tree.items():
        target = base / key
        if isinstance(node, File):
            await asyncio.to_thread(_write_file, target, node.content)
            written.append(target)
        elif isinstance(node, EmptyDir):
            await asyncio.to_thread(_ensure_dir, target)
        elif isinstance(node, SubTree):
            await asyncio.to_thread(_ensure_dir, target)
            await _materialize_into(target, node.entries, written)
        else:
            raise TypeError(f"Unknown tree node for {key!r}: {node!r}")


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(path, f"Failed to create directory: {exc.strerror or exc}") from exc


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    _ensure_dir(path.parent)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(path, f"Failed to write file: {exc.strerror or exc}") from exc
