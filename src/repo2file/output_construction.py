from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

from pydantic import BaseModel, Field

from repo2file.decision import should_include
from repo2file.file_manipulation import candidate_path, read_file_text
from repo2file.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path, PurePath

    from repo2file.config import EffectiveRuleSet


class ExportStats(BaseModel):
    """Counters describing one export run."""

    included: int = Field(default=0, ge=0, description="Files written to the export")
    excluded: int = Field(default=0, ge=0, description="Files rejected by the rules")
    failed: int = Field(default=0, ge=0, description="Included files that could not be read")


def format_file_block(display_path: str | PurePath, content: str) -> str:
    """Format the export block of one file.

    The header is surrounded by blank lines: ``"\\n\\n// File: <path>\\n\\n<content>\\n"``.

    Args:
        display_path (str | PurePath): the path shown in the header
        content (str): the raw file content

    Returns:
        str: the block to append to the export
    """
    return f"\n\n// File: {display_path}\n\n{content}\n"


def format_error_line(display_path: str | PurePath, error: Exception) -> str:
    """Format one error log line for a file that could not be read.

    Args:
        display_path (str | PurePath): the path of the unreadable file
        error (Exception): the read error

    Returns:
        str: the log line, newline terminated
    """
    return f"Error reading file {display_path}: {error}\n"


def write_export(
    files: Iterable[Path],
    *,
    root: Path,
    display_root: Path,
    rule_set: EffectiveRuleSet,
    out: TextIO,
    error_log: TextIO | None = None,
) -> ExportStats:
    """Append every included file of a walk to the export.

    Each file is evaluated relative to `root`; included files are read and written
    in walk order. A file that cannot be read is skipped, logged, and recorded in
    `error_log` when one is given; it never aborts the export.

    Args:
        files (Iterable[Path]): the walked files, under `root`
        root (Path): the walk root
        display_root (Path): the prefix shown in front of relative paths in headers
        rule_set (EffectiveRuleSet): the resolved rules of the run
        out (TextIO): the export stream
        error_log (TextIO | None, optional): stream receiving read errors. Defaults to None.

    Returns:
        ExportStats: counters for included, excluded and failed files
    """
    stats = ExportStats()
    for path in files:
        candidate = candidate_path(path, root)
        if not should_include(candidate, rule_set):
            stats.excluded += 1
            continue
        display = display_root if path == root else display_root / candidate
        try:
            content = read_file_text(path)
        except (OSError, UnicodeDecodeError) as e:
            stats.failed += 1
            logger.warning("Skipping %s: %s", display, e)
            if error_log is not None:
                error_log.write(format_error_line(display, e))
            continue
        out.write(format_file_block(display, content))
        stats.included += 1
    return stats
