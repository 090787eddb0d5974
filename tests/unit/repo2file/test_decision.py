from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePath

import pytest

from repo2file.config import DEFAULT_POLICY, DefaultPolicy, EffectiveRuleSet, Verdict
from repo2file.decision import decide, should_include
from repo2file.rules import resolve_rules


@pytest.fixture
def default_rules() -> EffectiveRuleSet:
    return resolve_rules(DEFAULT_POLICY)


@pytest.fixture
def small_policy() -> DefaultPolicy:
    return DefaultPolicy(
        ignored_file_globs=("node_modules", "target", ".vscode", "*.lock"),
        ignored_dir_names=("node_modules", "target", ".vscode"),
    )


@pytest.mark.unit
def test_glob_match_excludes_log_file(default_rules: EffectiveRuleSet) -> None:
    assert decide("src/app.log", default_rules) is Verdict.EXCLUDE


@pytest.mark.unit
def test_directory_name_excludes_nested_file(default_rules: EffectiveRuleSet) -> None:
    assert decide("src/node_modules/lib/index.js", default_rules) is Verdict.EXCLUDE


@pytest.mark.unit
def test_plain_source_file_is_included(default_rules: EffectiveRuleSet) -> None:
    assert decide("src/main.go", default_rules) is Verdict.INCLUDE


@pytest.mark.unit
def test_include_only_keeps_listed_suffixes() -> None:
    rule_set = resolve_rules(DEFAULT_POLICY, include_files=["main.go"])

    assert decide("src/main.go", rule_set) is Verdict.INCLUDE
    assert decide("src/other.go", rule_set) is Verdict.EXCLUDE


@pytest.mark.unit
def test_user_ignore_dir_excludes_vendor() -> None:
    path = "vendor/pkg/file.go"

    assert decide(path, resolve_rules(DEFAULT_POLICY, ignore_dirs=["vendor"])) is Verdict.EXCLUDE
    assert decide(path, resolve_rules(DEFAULT_POLICY)) is Verdict.INCLUDE


@pytest.mark.unit
def test_include_only_ignores_default_exclusions() -> None:
    rule_set = resolve_rules(DEFAULT_POLICY, include_files=["config.json", "index.js"])

    assert decide("src/config.json", rule_set) is Verdict.INCLUDE
    assert decide("node_modules/lib/index.js", rule_set) is Verdict.INCLUDE


@pytest.mark.unit
def test_include_only_matches_whole_components() -> None:
    rule_set = resolve_rules(DEFAULT_POLICY, include_files=["src/main.go"])

    assert decide("app/src/main.go", rule_set) is Verdict.INCLUDE
    assert decide("main.go", rule_set) is Verdict.EXCLUDE
    assert decide("app/mysrc/main.go", rule_set) is Verdict.EXCLUDE


@pytest.mark.unit
def test_literal_suffix_covers_names_in_subdirectories(default_rules: EffectiveRuleSet) -> None:
    assert decide("src/Makefile", default_rules) is Verdict.EXCLUDE
    assert decide("docs/CMakeLists.txt", default_rules) is Verdict.EXCLUDE
    assert decide("src/Makefile.am", default_rules) is Verdict.INCLUDE


@pytest.mark.unit
def test_user_plain_name_excludes_only_exact_file() -> None:
    rule_set = resolve_rules(DEFAULT_POLICY, ignore_files=["notes.md"])

    assert decide("docs/notes.md", rule_set) is Verdict.EXCLUDE
    assert decide("docs/mynotes.md", rule_set) is Verdict.INCLUDE


@pytest.mark.unit
def test_glob_star_spans_directories() -> None:
    rule_set = resolve_rules(DEFAULT_POLICY, ignore_files=["src/*.py"])

    assert decide("src/pkg/mod.py", rule_set) is Verdict.EXCLUDE
    assert decide("lib/mod.py", rule_set) is Verdict.INCLUDE


@pytest.mark.unit
def test_matching_is_case_sensitive(default_rules: EffectiveRuleSet) -> None:
    assert decide("src/APP.LOG", default_rules) is Verdict.INCLUDE
    assert decide("src/Node_Modules/x.js", default_rules) is Verdict.INCLUDE


@pytest.mark.unit
def test_directory_match_at_any_depth(default_rules: EffectiveRuleSet) -> None:
    assert decide(".git/hooks/pre-commit", default_rules) is Verdict.EXCLUDE
    assert decide("a/b/c/.idea/workspace.xml", default_rules) is Verdict.EXCLUDE


@pytest.mark.unit
def test_decide_accepts_pure_paths(default_rules: EffectiveRuleSet) -> None:
    assert decide(PurePath("src", "main.go"), default_rules) is Verdict.INCLUDE
    assert should_include(PurePath("src", "main.go"), default_rules) is True
    assert should_include("src/app.log", default_rules) is False


@pytest.mark.unit
def test_decide_is_idempotent(default_rules: EffectiveRuleSet) -> None:
    paths = ["src/main.go", "src/app.log", "node_modules/a.js", "Makefile"]

    first = [decide(p, default_rules) for p in paths]
    second = [decide(p, default_rules) for p in paths]

    assert first == second


@pytest.mark.unit
def test_decide_is_safe_across_threads(default_rules: EffectiveRuleSet) -> None:
    paths = [f"pkg{i}/{name}" for i in range(50) for name in ("main.go", "app.log", "node_modules/x.js")]
    expected = [decide(p, default_rules) for p in paths]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda p: decide(p, default_rules), paths))

    assert results == expected


@pytest.mark.unit
def test_no_overrides_with_small_policy(small_policy: DefaultPolicy) -> None:
    rule_set = resolve_rules(small_policy)

    assert should_include("input/test_file.txt", rule_set)
    assert not should_include("input/Cargo.lock", rule_set)


@pytest.mark.unit
def test_ignore_files_with_small_policy(small_policy: DefaultPolicy) -> None:
    rule_set = resolve_rules(small_policy, ignore_files=["test_file.txt", "ignore_file.txt"])

    assert not should_include("input/test_file.txt", rule_set)
    assert not should_include("input/ignore_file.txt", rule_set)
    assert should_include("input/valid_file.txt", rule_set)


@pytest.mark.unit
def test_ignore_dirs_with_small_policy(small_policy: DefaultPolicy) -> None:
    rule_set = resolve_rules(small_policy, ignore_dirs=["ignore_dir1", "ignore_dir2"])

    assert not should_include("input/ignore_dir1/test_file.txt", rule_set)
    assert not should_include("input/ignore_dir2/test_file.txt", rule_set)
    assert should_include("input/valid_dir/test_file.txt", rule_set)


@pytest.mark.unit
def test_ignore_files_and_dirs_with_small_policy(small_policy: DefaultPolicy) -> None:
    rule_set = resolve_rules(small_policy, ignore_files=["test_file.txt"], ignore_dirs=["ignore_dir"])

    assert not should_include("input/test_file.txt", rule_set)
    assert not should_include("input/ignore_dir/other.txt", rule_set)
    assert should_include("input/other_file.txt", rule_set)


@pytest.mark.unit
def test_include_files_with_small_policy(small_policy: DefaultPolicy) -> None:
    rule_set = resolve_rules(small_policy, include_files=["include_file.txt"])

    assert should_include("input/include_file.txt", rule_set)
    assert not should_include("input/other_file.txt", rule_set)
