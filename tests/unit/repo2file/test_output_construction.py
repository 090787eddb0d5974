from __future__ import annotations

import io
from pathlib import Path

import pytest

from repo2file.config import DEFAULT_POLICY
from repo2file.file_manipulation import walk_files
from repo2file.output_construction import ExportStats, format_error_line, format_file_block, write_export
from repo2file.rules import resolve_rules


@pytest.mark.unit
def test_format_file_block_surrounds_header_with_blank_lines() -> None:
    assert format_file_block("src/main.rs", "fn main() {}") == "\n\n// File: src/main.rs\n\nfn main() {}\n"


@pytest.mark.unit
def test_format_error_line() -> None:
    error = PermissionError(13, "Permission denied")

    assert format_error_line(Path("src/a.py"), error) == "Error reading file src/a.py: [Errno 13] Permission denied\n"


@pytest.mark.unit
def test_write_export_appends_included_files_and_logs_errors(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "node_modules").mkdir()
    (root / "src" / "main.go").write_text("package main\n", encoding="utf-8")
    (root / "src" / "app.log").write_text("noise\n", encoding="utf-8")
    (root / "node_modules" / "x.js").write_text("x\n", encoding="utf-8")
    (root / "blob.bin").write_bytes(b"\xff\xfe")

    out = io.StringIO()
    errors = io.StringIO()
    stats = write_export(
        walk_files(root),
        root=root,
        display_root=Path("repo"),
        rule_set=resolve_rules(DEFAULT_POLICY),
        out=out,
        error_log=errors,
    )

    assert stats == ExportStats(included=1, excluded=2, failed=1)
    assert out.getvalue() == f"\n\n// File: {Path('repo/src/main.go')}\n\npackage main\n\n"
    assert errors.getvalue().startswith(f"Error reading file {Path('repo/blob.bin')}: ")


@pytest.mark.unit
def test_write_export_without_error_log_skips_unreadable_files(tmp_path: Path) -> None:
    (tmp_path / "blob.bin").write_bytes(b"\xff")
    (tmp_path / "ok.py").write_text("ok", encoding="utf-8")
    out = io.StringIO()

    stats = write_export(
        walk_files(tmp_path),
        root=tmp_path,
        display_root=tmp_path,
        rule_set=resolve_rules(DEFAULT_POLICY),
        out=out,
    )

    assert stats.failed == 1
    assert stats.included == 1
    assert "// File: " in out.getvalue()


@pytest.mark.unit
def test_write_export_uses_display_root_for_single_file(tmp_path: Path) -> None:
    file_path = tmp_path / "main.rs"
    file_path.write_text("fn main() {}", encoding="utf-8")
    out = io.StringIO()

    write_export(
        walk_files(file_path),
        root=file_path,
        display_root=Path("main.rs"),
        rule_set=resolve_rules(DEFAULT_POLICY),
        out=out,
    )

    assert out.getvalue() == "\n\n// File: main.rs\n\nfn main() {}\n"
