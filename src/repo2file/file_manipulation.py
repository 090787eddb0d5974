from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

import pathspec

from repo2file.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

IGNORE_FILENAMES = (".gitignore", ".ignore")

IgnoreSpecs = list[tuple[Path, pathspec.PathSpec]]


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path)


def candidate_path(path: Path, root: Path) -> PurePath:
    """Return the path handed to the inclusion decision for a walked file.

    Files are evaluated relative to the walk root so that the location of the
    root itself never influences a verdict. A root that is a file evaluates as
    its own name.

    Args:
        path (Path): a file yielded by `walk_files`
        root (Path): the walk root

    Returns:
        PurePath: the path relative to root, or the file name when path is root
    """
    if path == root:
        return PurePath(path.name)
    return PurePath(relpath(path, root))


def is_hidden(name: str) -> bool:
    """Check if a directory entry name is hidden (dot-prefixed)."""
    return name.startswith(".") and name not in {".", ".."}


def load_ignore_spec(directory: Path) -> pathspec.PathSpec | None:
    """Read the ignore files of a directory into one compiled `PathSpec`.

    Both `.gitignore` and `.ignore` are read, in that order, so `.ignore` can
    re-include what `.gitignore` excludes.

    Args:
        directory (Path): the directory to look into

    Returns:
        pathspec.PathSpec | None: the compiled spec, or None when there are no patterns
    """
    lines: list[str] = []
    for name in IGNORE_FILENAMES:
        ignore_file = directory / name
        if not ignore_file.is_file():
            continue
        try:
            content = ignore_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read ignore file %s: %s", ignore_file, e)
            continue
        lines.extend(
            line for line in content.splitlines() if line.strip() and not line.lstrip().startswith("#")
        )
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def is_ignored(path: Path, specs: Sequence[tuple[Path, pathspec.PathSpec]], *, is_dir: bool) -> bool:
    """Check a path against the ignore files collected from its ancestors.

    Each spec is matched with the path relative to the directory holding the
    ignore file, as git does. The deepest ignore file with a matching pattern
    decides, so a nested ``!pattern`` re-includes what a parent ignores.

    Args:
        path (Path): the entry to test
        specs (Sequence[tuple[Path, pathspec.PathSpec]]): (directory, spec) pairs from the walk root down
        is_dir (bool): whether the entry is a directory

    Returns:
        bool: True if the deciding ignore file excludes the entry
    """
    for base, spec in reversed(specs):
        rel = relpath(path, base)
        if is_dir:
            rel += "/"
        result = spec.check_file(rel)
        if result.include is not None:
            return result.include
    return False


def _walk_directory(
    directory: Path,
    specs: IgnoreSpecs,
    *,
    hidden: bool,
    respect_ignore_files: bool,
) -> Iterator[Path]:
    if respect_ignore_files:
        spec = load_ignore_spec(directory)
        if spec is not None:
            specs = [*specs, (directory, spec)]
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        logger.warning("Cannot list directory %s: %s", directory, e)
        return

    for entry in entries:
        if not hidden and is_hidden(entry.name):
            continue
        path = directory / entry.name
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file(follow_symlinks=False)
        except OSError as e:
            logger.warning("Cannot stat %s: %s", path, e)
            continue
        if is_ignored(path, specs, is_dir=is_dir):
            continue
        if is_dir:
            yield from _walk_directory(path, specs, hidden=hidden, respect_ignore_files=respect_ignore_files)
        elif is_file:
            yield path


def walk_files(
    root: Path,
    *,
    hidden: bool = False,
    respect_ignore_files: bool = True,
) -> Iterator[Path]:
    """Lazily walk the tree rooted at `root` and yield its regular files.

    Entries are visited depth-first in name order. Symbolic links are neither
    followed nor yielded. Hidden entries are skipped unless `hidden` is set, and
    `.gitignore` / `.ignore` files prune the subtree below the directory holding
    them unless `respect_ignore_files` is unset.

    Args:
        root (Path): the directory to walk, or a single file
        hidden (bool, optional): also yield dot-prefixed entries. Defaults to False.
        respect_ignore_files (bool, optional): honour ignore files. Defaults to True.

    Yields:
        Iterator[Path]: the regular files found, prefixed with `root`
    """
    if root.is_file():
        yield root
        return
    yield from _walk_directory(root, [], hidden=hidden, respect_ignore_files=respect_ignore_files)


def read_file_text(path: Path) -> str:
    """Read a file as strict UTF-8, keeping its line endings untouched.

    Args:
        path (Path): the file to read

    Raises:
        OSError: if the file cannot be read.
        UnicodeDecodeError: if the content is not valid UTF-8.

    Returns:
        str: the decoded file content
    """
    return path.read_bytes().decode("utf-8")
