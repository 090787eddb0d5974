from __future__ import annotations

from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from repo2file.config import DEFAULT_POLICY, DefaultPolicy, EffectiveRuleSet, RuleMode
from repo2file.exceptions import ConflictingRulesError, PolicyFileError
from repo2file.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

_POLICY_FILE_KEYS = {
    "ignore_files": "ignored_file_globs",
    "ignore_dirs": "ignored_dir_names",
}


def clean_entries(values: Iterable[str] | None) -> list[str]:
    """Strip entries, drop empty ones and duplicates while keeping the first occurrence.

    Args:
        values (Iterable[str] | None): raw entries, possibly None

    Returns:
        list[str]: the cleaned entries in their original order
    """
    out: list[str] = []
    for value in values or ():
        entry = (value or "").strip()
        if entry and entry not in out:
            out.append(entry)
    return out


def check_exclusive_options(
    include_files: Sequence[str],
    ignore_files: Sequence[str],
    ignore_dirs: Sequence[str],
) -> None:
    """Reject include-only entries supplied together with ignore entries.

    Args:
        include_files (Sequence[str]): include-only path suffixes
        ignore_files (Sequence[str]): user ignore-file patterns
        ignore_dirs (Sequence[str]): user ignore-directory names

    Raises:
        ConflictingRulesError: if include entries and ignore entries are both present.
    """
    if not include_files:
        return
    conflicts = [
        option
        for option, values in (("--ignore-files", ignore_files), ("--ignore-dirs", ignore_dirs))
        if values
    ]
    if conflicts:
        raise ConflictingRulesError(
            include_files=tuple(include_files),
            ignore_options=tuple(conflicts),
        )


def resolve_rules(
    policy: DefaultPolicy = DEFAULT_POLICY,
    *,
    ignore_files: Iterable[str] | None = None,
    ignore_dirs: Iterable[str] | None = None,
    include_files: Iterable[str] | None = None,
) -> EffectiveRuleSet:
    """Merge the default policy with user overrides into the rule set of one run.

    With include-only entries the run is an allow-list and the ignore lists,
    built-in defaults included, play no part. Otherwise user ignore entries are
    appended to the defaults.

    Args:
        policy (DefaultPolicy): the default policy to start from
        ignore_files (Iterable[str] | None): extra file globs or names to ignore
        ignore_dirs (Iterable[str] | None): extra directory names to ignore
        include_files (Iterable[str] | None): path suffixes to allow exclusively

    Raises:
        ConflictingRulesError: if include entries come with ignore entries.
        InvalidGlobPatternError: if a file glob cannot be compiled.

    Returns:
        EffectiveRuleSet: the resolved, read-only rule set
    """
    user_files = clean_entries(ignore_files)
    user_dirs = clean_entries(ignore_dirs)
    includes = clean_entries(include_files)
    check_exclusive_options(includes, user_files, user_dirs)

    if includes:
        return EffectiveRuleSet(mode=RuleMode.INCLUDE_ONLY, include_only_paths=tuple(includes))

    globs = clean_entries([*policy.ignored_file_globs, *user_files])
    dirs = frozenset(clean_entries([*policy.ignored_dir_names, *user_dirs]))
    return EffectiveRuleSet(
        mode=RuleMode.IGNORE_BASED,
        ignored_file_globs=tuple(globs),
        ignored_dir_names=dirs,
    )


def policy_from_mapping(data: dict[str, Any]) -> DefaultPolicy:
    """Build a default policy from a mapping using the CLI option names.

    Missing keys keep the built-in defaults.

    Args:
        data (dict[str, Any]): mapping with optional ``ignore_files`` and ``ignore_dirs`` lists

    Raises:
        ValueError: on unknown keys.
        ValidationError: if a value is not a list of strings.

    Returns:
        DefaultPolicy: the resulting policy
    """
    unknown = sorted(set(data) - set(_POLICY_FILE_KEYS))
    if unknown:
        msg = f"unknown keys {unknown}, expected {sorted(_POLICY_FILE_KEYS)}"
        raise ValueError(msg)
    fields = {
        _POLICY_FILE_KEYS[key]: tuple(clean_entries(value)) if isinstance(value, list) else value
        for key, value in data.items()
    }
    return DefaultPolicy.model_validate(fields)


def load_policy_file(path: Path) -> DefaultPolicy:
    """Load a YAML file replacing the built-in default policy.

    Args:
        path (Path): the YAML policy file

    Raises:
        PolicyFileError: if the file cannot be read or does not describe a policy.

    Returns:
        DefaultPolicy: the loaded policy
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise PolicyFileError(file=path, reason=str(e)) from e
    if not isinstance(data, dict):
        raise PolicyFileError(file=path, reason="expected a mapping at top level")
    try:
        policy = policy_from_mapping(data)
    except (ValueError, ValidationError) as e:
        raise PolicyFileError(file=path, reason=str(e)) from e
    logger.info(
        "Loaded policy %s: %d file globs, %d directory names",
        path,
        len(policy.ignored_file_globs),
        len(policy.ignored_dir_names),
    )
    return policy
