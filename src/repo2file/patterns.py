from __future__ import annotations

import fnmatch
import itertools
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING

from repo2file.exceptions import InvalidGlobPatternError

if TYPE_CHECKING:
    from collections.abc import Sequence


def _escape_literal(char: str) -> str:
    """Rewrite an escaped glob character so that ``fnmatch`` reads it literally."""
    if char in "*?[":
        return f"[{char}]"
    return char


_ANY_DIRS = "\x00"
_ANY_DIRS_REGEX = "(?:.*/)?"


def _class_end(pattern: str, start: int) -> int:
    """Return the index of the ``]`` closing the character class opened at ``start``.

    Raises:
        InvalidGlobPatternError: if the class is never closed.
    """
    j = start + 1
    if j < len(pattern) and pattern[j] in "!^":
        j += 1
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    end = pattern.find("]", j)
    if end < 0:
        raise InvalidGlobPatternError(pattern=pattern, reason="unclosed character class")
    return end


def split_alternatives(pattern: str) -> list[list[str]]:
    """Split a glob pattern into segments of alternatives.

    Literal runs become single-item segments and each ``{a,b}`` group becomes a
    segment listing its alternatives. Backslash escapes are rewritten into
    ``fnmatch`` character classes. Character classes are copied verbatim, with
    ``[^...]`` spelled ``[!...]``.

    Args:
        pattern (str): the glob pattern to split

    Raises:
        InvalidGlobPatternError: on unclosed classes or groups, nested groups,
            stray ``}`` or a dangling trailing backslash.

    Returns:
        list[list[str]]: the segments, each a list of alternative texts
    """
    segments: list[list[str]] = []
    current: list[str] = []
    group: list[str] | None = None
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            if i + 1 >= len(pattern):
                raise InvalidGlobPatternError(pattern=pattern, reason="dangling escape")
            current.append(_escape_literal(pattern[i + 1]))
            i += 2
            continue
        if char == "[":
            end = _class_end(pattern, i)
            char_class = pattern[i : end + 1]
            if char_class.startswith("[^"):
                char_class = "[!" + char_class[2:]
            current.append(char_class)
            i = end + 1
            continue
        if char == "{":
            if group is not None:
                raise InvalidGlobPatternError(pattern=pattern, reason="nested alternation group")
            segments.append(["".join(current)])
            current = []
            group = []
        elif char == "," and group is not None:
            group.append("".join(current))
            current = []
        elif char == "}":
            if group is None:
                raise InvalidGlobPatternError(pattern=pattern, reason="unopened alternation group")
            group.append("".join(current))
            segments.append(group)
            current = []
            group = None
        else:
            current.append(char)
        i += 1
    if group is not None:
        raise InvalidGlobPatternError(pattern=pattern, reason="unclosed alternation group")
    segments.append(["".join(current)])
    return segments


def expand_glob(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternation groups into plain ``fnmatch`` patterns.

    Args:
        pattern (str): the glob pattern to expand

    Returns:
        list[str]: one ``fnmatch`` pattern per combination of alternatives
    """
    segments = split_alternatives(pattern)
    return ["".join(parts) for parts in itertools.product(*segments)]


def _mark_any_dirs(glob: str) -> str:
    """Rewrite the ``**`` components of an expanded glob for ``fnmatch``.

    A leading ``**/`` and an inner ``/**/`` also match zero directories, so they
    are replaced by `_ANY_DIRS`. Any other ``**`` behaves like ``*``.
    """
    out: list[str] = []
    i = 0
    while i < len(glob):
        if glob[i] == "[":
            end = _class_end(glob, i)
            out.append(glob[i : end + 1])
            i = end + 1
            continue
        if glob.startswith("**", i):
            at_component_start = i == 0 or glob[i - 1] == "/"
            if at_component_start and glob.startswith("/", i + 2):
                out.append(_ANY_DIRS)
                i += 3
            else:
                out.append("*")
                i += 2
            continue
        out.append(glob[i])
        i += 1
    return "".join(out)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into a regular expression matching a full path text.

    ``*`` matches any run of characters, path separators included, ``?`` a single
    character, ``[...]``/``[!...]``/``[^...]`` a character class and ``{a,b}``
    either alternative. ``**/`` at the start of a component also matches no
    directory at all, so ``**/*.py`` matches ``a.py`` and ``docs/**/*.md``
    matches ``docs/x.md``. Matching is case-sensitive.

    Args:
        pattern (str): the glob pattern to compile

    Raises:
        InvalidGlobPatternError: if the pattern is malformed.

    Returns:
        re.Pattern[str]: the compiled expression, to be used with ``fullmatch``
    """
    alternatives = [_mark_any_dirs(alt) for alt in expand_glob(pattern)]
    try:
        return re.compile(
            "|".join(fnmatch.translate(alt).replace(_ANY_DIRS, _ANY_DIRS_REGEX) for alt in alternatives),
        )
    except re.error as e:
        raise InvalidGlobPatternError(pattern=pattern, reason=str(e)) from e


def path_ends_with(path: str | PurePath, suffix: str | PurePath) -> bool:
    """Check whether ``path`` ends with ``suffix``, comparing whole components.

    ``src/main.go`` ends with ``main.go`` and ``src/main.go`` but not with ``ain.go``.

    Args:
        path (str | PurePath): the candidate path
        suffix (str | PurePath): the path suffix to look for

    Returns:
        bool: True if the trailing components of ``path`` equal those of ``suffix``
    """
    suffix_parts = PurePath(suffix).parts
    if not suffix_parts:
        return False
    path_parts = PurePath(path).parts
    if len(suffix_parts) > len(path_parts):
        return False
    return path_parts[-len(suffix_parts) :] == suffix_parts


@dataclass(frozen=True)
class GlobRule:
    """File rule matching the full path text against a glob pattern."""

    pattern: str
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", compile_glob(self.pattern))

    def matches(self, path: str | PurePath) -> bool:
        return self.regex.fullmatch(str(path)) is not None


@dataclass(frozen=True)
class LiteralSuffixRule:
    """File rule matching paths ending with a literal name or sub-path."""

    name: str

    def matches(self, path: str | PurePath) -> bool:
        return path_ends_with(path, self.name)


FileRule = GlobRule | LiteralSuffixRule


def build_file_rules(entries: Sequence[str]) -> tuple[FileRule, ...]:
    """Build the file rules for a sequence of ignore-file entries.

    Every entry is honoured both as a glob and as a literal path suffix, so callers
    never need to tell ``Cargo.lock`` apart from ``*.lock``.

    Args:
        entries (Sequence[str]): the ignore-file entries

    Raises:
        InvalidGlobPatternError: if an entry is not a valid glob pattern.

    Returns:
        tuple[FileRule, ...]: all glob rules followed by all literal suffix rules
    """
    globs = tuple(GlobRule(entry) for entry in entries)
    literals = tuple(LiteralSuffixRule(entry) for entry in entries)
    return globs + literals
