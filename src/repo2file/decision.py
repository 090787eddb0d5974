"""Inclusion decision for candidate paths.

``decide`` is a pure function of its two arguments: it never touches the
filesystem and keeps no state, so one rule set can be shared by any number of
concurrent callers.
"""

from __future__ import annotations

from pathlib import PurePath

from repo2file.config import EffectiveRuleSet, RuleMode, Verdict
from repo2file.patterns import path_ends_with


def matches_include_only(path: PurePath, rule_set: EffectiveRuleSet) -> bool:
    """Check whether ``path`` ends with one of the include-only entries."""
    return any(path_ends_with(path, entry) for entry in rule_set.include_only_paths)


def matches_file_rule(path: PurePath, rule_set: EffectiveRuleSet) -> bool:
    """Check whether ``path`` matches an ignored file glob or literal suffix."""
    return any(rule.matches(path) for rule in rule_set.file_rules)


def matches_ignored_dir(path: PurePath, rule_set: EffectiveRuleSet) -> bool:
    """Check whether any component of ``path`` is an ignored directory name."""
    return any(part in rule_set.ignored_dir_names for part in path.parts)


def decide(path: str | PurePath, rule_set: EffectiveRuleSet) -> Verdict:
    """Decide whether a candidate path is emitted into the export.

    In include-only mode the path is kept iff it ends with an include entry.
    Otherwise it is dropped when it matches a file rule (glob over the full
    path text, or literal path suffix) or when one of its components is an
    ignored directory name.

    Args:
        path (str | PurePath): the candidate file path
        rule_set (EffectiveRuleSet): the resolved rules of the run

    Returns:
        Verdict: INCLUDE or EXCLUDE
    """
    candidate = PurePath(path)
    if rule_set.mode is RuleMode.INCLUDE_ONLY:
        return Verdict.INCLUDE if matches_include_only(candidate, rule_set) else Verdict.EXCLUDE
    if matches_file_rule(candidate, rule_set) or matches_ignored_dir(candidate, rule_set):
        return Verdict.EXCLUDE
    return Verdict.INCLUDE


def should_include(path: str | PurePath, rule_set: EffectiveRuleSet) -> bool:
    """Boolean shortcut for ``decide(path, rule_set) is Verdict.INCLUDE``."""
    return decide(path, rule_set) is Verdict.INCLUDE
