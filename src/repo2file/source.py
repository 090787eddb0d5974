"""Source resolution for local paths and GitHub URLs."""

from __future__ import annotations

import contextlib
import subprocess  # noqa: S404
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from repo2file.exceptions import GitCommandError, SourceNotFoundError
from repo2file.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator

GITHUB_URL_PREFIX = "https://github.com/"
TEMP_DIR_PREFIX = "temp-repo2file"


@dataclass(frozen=True)
class ResolvedSource:
    """Local view of the tree to export.

    Attributes:
        root: Directory (or single file) to walk.
        display_root: Prefix written in front of relative paths in the export.
        is_remote: Whether the tree was cloned into a temporary directory.
    """

    root: Path
    display_root: Path
    is_remote: bool = False


def is_remote_url(value: str) -> bool:
    """Check if the input designates a remote GitHub repository.

    Args:
        value (str): the raw input given on the command line

    Returns:
        bool: True for ``https://github.com/...`` URLs, False for anything else
    """
    return value.startswith(GITHUB_URL_PREFIX)


def repo_name_from_url(url: str) -> str:
    """Extract the repository name from a clone URL.

    Args:
        url (str): the clone URL, e.g. ``https://github.com/owner/repo.git``

    Returns:
        str: the repository name (``repo``), or ``repo`` if the URL has no path
    """
    name = url.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")
    return name or "repo"


def clone_repository(url: str, destination: Path, *, branch: str | None = None) -> Path:
    """Shallow clone a repository with the ``git`` executable.

    Args:
        url (str): the repository URL
        destination (Path): the directory to clone into; must not exist or be empty
        branch (str | None, optional): branch or tag to check out. Defaults to None.

    Raises:
        GitCommandError: if git is missing or the clone fails.

    Returns:
        Path: the destination directory
    """
    cmd = ["git", "clone", "--depth", "1"]
    if branch:
        cmd.extend(["--branch", branch])
    cmd.extend([url, str(destination)])
    command = " ".join(cmd)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)  # noqa: S603
    except OSError as e:
        raise GitCommandError(command=command, returncode=-1, stdout="", stderr=str(e)) from e
    if result.returncode != 0:
        raise GitCommandError(
            command=command,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    logger.info("Cloned %s into %s", url, destination)
    return destination


@contextlib.contextmanager
def materialize_source(value: str, *, branch: str | None = None) -> Iterator[ResolvedSource]:
    """Make the input tree available locally for the duration of the context.

    Remote inputs are cloned into a temporary directory that is removed when the
    context exits, whether the clone, the export, or nothing failed.

    Args:
        value (str): a local path or a GitHub URL
        branch (str | None, optional): branch or tag for remote inputs. Defaults to None.

    Raises:
        SourceNotFoundError: if a local input does not exist.
        GitCommandError: if cloning a remote input fails.

    Yields:
        Iterator[ResolvedSource]: the resolved source
    """
    if is_remote_url(value):
        name = repo_name_from_url(value)
        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX, ignore_cleanup_errors=True) as tmp:
            checkout = clone_repository(value, Path(tmp) / name, branch=branch)
            yield ResolvedSource(root=checkout, display_root=Path(name), is_remote=True)
        return

    root = Path(value)
    if not root.exists():
        raise SourceNotFoundError(path=root)
    if branch:
        logger.warning("Ignoring branch %s for local input %s", branch, root)
    yield ResolvedSource(root=root, display_root=root)
