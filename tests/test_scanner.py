"""Tests for hashstamp.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from hashstamp.scanner import SourceScanner, build_ignore_rule


def _write(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _relative(root: Path, paths) -> list[str]:  # type: ignore[no-untyped-def]
    return [path.relative_to(root.resolve()).as_posix() for path in paths]


def test_scan_returns_sorted_files_and_skips_tool_directories(tmp_path: Path) -> None:
    _write(tmp_path / "shop" / "orders.py")
    _write(tmp_path / "shop" / "cart.py")
    _write(tmp_path / "Legacy" / "Billing.cs")
    _write(tmp_path / ".venv" / "lib" / "site.py")
    _write(tmp_path / "__pycache__" / "orders.cpython-311.pyc")
    _write(tmp_path / "obj" / "Debug" / "Generated.cs")

    files = _relative(tmp_path, SourceScanner().scan(tmp_path))

    assert files == ["Legacy/Billing.cs", "shop/cart.py", "shop/orders.py"]


def test_scan_respects_gitignore(tmp_path: Path) -> None:
    _write(tmp_path / ".gitignore", "generated/\n*_pb2.py\n!keep_pb2.py\n")
    _write(tmp_path / "src" / "main.py")
    _write(tmp_path / "generated" / "stamps.py")
    _write(tmp_path / "src" / "api_pb2.py")
    _write(tmp_path / "src" / "keep_pb2.py")

    files = _relative(tmp_path, SourceScanner().scan(tmp_path))

    assert "src/main.py" in files
    assert "src/keep_pb2.py" in files
    assert "generated/stamps.py" not in files
    assert "src/api_pb2.py" not in files


def test_scan_applies_configured_exclusions(tmp_path: Path) -> None:
    _write(tmp_path / "app" / "core.py")
    _write(tmp_path / "app" / "migrations" / "0001_initial.py")
    _write(tmp_path / "sandbox" / "scratch.py")

    files = _relative(tmp_path, SourceScanner().scan(tmp_path, exclude_paths=["migrations/", "/sandbox"]))

    assert files == ["app/core.py"]


def test_scan_rejects_missing_directory(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(FileNotFoundError, match="missing"):
        SourceScanner().scan(missing)


def test_scan_rejects_files(tmp_path: Path) -> None:
    target = tmp_path / "module.py"
    _write(target)

    with pytest.raises(NotADirectoryError):
        SourceScanner().scan(target)


def test_ignore_rule_parsing() -> None:
    rule = build_ignore_rule("/build/")

    assert rule is not None
    assert rule.anchored and rule.directory_only
    assert rule.matches("build", True)
    assert not rule.matches("src/build", True)
    assert build_ignore_rule("   ") is None
