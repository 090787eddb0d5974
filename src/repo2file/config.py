from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from repo2file.patterns import build_file_rules

if TYPE_CHECKING:
    from repo2file.patterns import FileRule


class RuleMode(StrEnum):
    """Operating strategy of a run, include and ignore modes never mix."""

    IGNORE_BASED = auto()
    INCLUDE_ONLY = auto()


class Verdict(StrEnum):
    """Outcome of the inclusion decision for one candidate path."""

    INCLUDE = auto()
    EXCLUDE = auto()


DEFAULT_IGNORED_DIR_NAMES: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".idea",
    ".vscode",
)

DEFAULT_IGNORED_FILE_GLOBS: tuple[str, ...] = (
    "*LICENCE.md",
    "*CHANGELOG.md",
    "*.DS_Store",
    "*.all-contributorsrc",
    "*.yaml",
    "*.yml",
    "*.json",
    "*.csv",
    "*.svg",
    "*.conf",
    "*.ini",
    "*.env",
    "*.log",
    "*.tmp",
    "*.pyc",
    "*.class",
    "*.o",
    "*.obj",
    "*.exe",
    "*.dll",
    "*.so",
    "*.dylib",
    "*.ncb",
    "*.sdf",
    "*.suo",
    "*.pdb",
    "*.idb",
    "*.lock",
    "*.toml",
    ".prettierrc.*",
    "*.txt",
    "Pipfile",
    "*.cfg",
    ".gitignore",
    ".gitattributes",
    ".dockerignore",
    ".env",
    ".flaskenv",
    ".editorconfig",
    "Makefile",
    "CMakeLists.txt",
)


class DefaultPolicy(BaseModel):
    """Built-in exclusion rules applied to every ignore-based run.

    Attributes:
        ignored_file_globs: Glob patterns (or plain names) for files to leave out.
        ignored_dir_names: Directory names excluding every file below them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignored_file_globs: tuple[str, ...] = Field(
        default=DEFAULT_IGNORED_FILE_GLOBS,
        description="Glob patterns matched against the full path text",
    )
    ignored_dir_names: tuple[str, ...] = Field(
        default=DEFAULT_IGNORED_DIR_NAMES,
        description="Literal directory names matched against each path component",
    )


DEFAULT_POLICY = DefaultPolicy()


@dataclass(frozen=True)
class EffectiveRuleSet:
    """Resolved policy governing every decision of one run.

    The file rules are compiled on construction, so a malformed glob surfaces
    before the first path is evaluated.
    """

    mode: RuleMode
    ignored_file_globs: tuple[str, ...] = ()
    ignored_dir_names: frozenset[str] = frozenset()
    include_only_paths: tuple[str, ...] = ()
    file_rules: tuple[FileRule, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_rules", build_file_rules(self.ignored_file_globs))
