"""repo2file — turn a code repository into a single text file.

The input is a local directory or a ``https://github.com/...`` URL (cloned into a
temporary directory removed at exit). Every regular file found by the walk is
checked against the run's rules: built-in exclusions plus ``--ignore-files`` and
``--ignore-dirs``, or the ``--include-files`` allow-list. Included files are
appended to ``<output>.txt`` as::


    // File: <path>

    <content>

Usage
-----
    repo2file ./my-project export
    repo2file https://github.com/owner/repo --ignore-dirs docs,examples
    repo2file . out --include-files main.rs,lib.rs --error-log
"""

from __future__ import annotations

import argparse
import contextlib
import sys
from typing import TYPE_CHECKING

from pydantic import ValidationError

from repo2file import __version__
from repo2file.config import DEFAULT_POLICY
from repo2file.exceptions import InvalidSettingsError, Repo2FileError
from repo2file.file_manipulation import walk_files
from repo2file.logging import logger, setup_logging
from repo2file.output_construction import ExportStats, write_export
from repo2file.rules import load_policy_file, resolve_rules
from repo2file.settings import Settings, env_defaults
from repo2file.source import materialize_source

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="repo2file",
        description="Turn a code repository into a single text file.",
    )
    p.add_argument("input", type=str, help="The directory or Git URL of the repository.")
    p.add_argument(
        "output",
        type=str,
        nargs="?",
        default=None,
        help="Output file (written with a .txt suffix). Defaults to the current directory name.",
    )
    p.add_argument(
        "--ignore-files",
        action="append",
        default=None,
        help="Files to ignore, separated by commas (repeatable).",
    )
    p.add_argument(
        "--ignore-dirs",
        action="append",
        default=None,
        help="Directories to ignore, separated by commas (repeatable).",
    )
    p.add_argument(
        "--include-files",
        action="append",
        default=None,
        help="Files to include, separated by commas (exclusive with --ignore-files and --ignore-dirs).",
    )
    p.add_argument(
        "-e",
        "--error-log",
        action="store_true",
        help="Save unreadable files to <output>.error.log.",
    )
    p.add_argument(
        "--policy",
        type=str,
        default=None,
        help="YAML file with ignore_files/ignore_dirs replacing the built-in defaults.",
    )
    p.add_argument("--branch", type=str, default=None, help="Branch or tag to clone for URL inputs.")
    p.add_argument("--hidden", action="store_true", help="Include hidden files and directories.")
    p.add_argument(
        "--no-ignore-files",
        action="store_true",
        help="Do not honour .gitignore and .ignore files.",
    )
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    defaults = env_defaults()
    p.set_defaults(
        log_file=defaults.get("log_file", ""),
        policy=defaults.get("policy") or None,
    )
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments into settings.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Raises:
        InvalidSettingsError: if the arguments do not validate.

    Returns:
        Settings: Parsed settings.
    """
    args = build_parser().parse_args(argv)
    try:
        return Settings.model_validate(vars(args))
    except ValidationError as e:
        reason = "; ".join(err["msg"] for err in e.errors())
        raise InvalidSettingsError(reason=reason) from e


def skip_outputs(files: Iterable[Path], outputs: Sequence[Path]) -> Iterator[Path]:
    """Drop the files this run writes from the walk, should they live inside the tree."""
    excluded = {o.resolve() for o in outputs}
    for f in files:
        if f.resolve() not in excluded:
            yield f


def run(settings: Settings) -> ExportStats:
    """Export the configured source tree.

    Rules are resolved, and thus validated, before the source is fetched.

    Args:
        settings (Settings): the run settings

    Raises:
        Repo2FileError: on configuration or retrieval errors.

    Returns:
        ExportStats: counters for the run
    """
    policy = load_policy_file(settings.policy) if settings.policy else DEFAULT_POLICY
    rule_set = resolve_rules(
        policy,
        ignore_files=settings.ignore_files,
        ignore_dirs=settings.ignore_dirs,
        include_files=settings.include_files,
    )
    logger.info("Resolved rules in %s mode", rule_set.mode)

    outputs = [settings.artifact_path]
    if settings.error_log:
        outputs.append(settings.error_log_path)

    with materialize_source(settings.input, branch=settings.branch) as source, contextlib.ExitStack() as stack:
        out = stack.enter_context(settings.artifact_path.open("w", encoding="utf-8", newline=""))
        error_log = None
        if settings.error_log:
            error_log = stack.enter_context(settings.error_log_path.open("w", encoding="utf-8"))
        files = walk_files(
            source.root,
            hidden=settings.hidden,
            respect_ignore_files=not settings.no_ignore_files,
        )
        stats = write_export(
            skip_outputs(files, outputs),
            root=source.root,
            display_root=source.display_root,
            rule_set=rule_set,
            out=out,
            error_log=error_log,
        )

    logger.info(
        "Export finished: %d included, %d excluded, %d unreadable",
        stats.included,
        stats.excluded,
        stats.failed,
    )
    return stats


def main(argv: Sequence[str] | None = None) -> int:
    """Run the repo2file command line.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code, 1 on configuration or retrieval errors.
    """
    try:
        settings = parse_args(argv)
    except InvalidSettingsError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        stats = run(settings)
    except (Repo2FileError, OSError) as e:
        logger.error("Export failed: %s", e)
        sys.stderr.write(f"error: {e}\n")
        return 1

    print(f"Wrote {settings.artifact_path} files={stats.included}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
