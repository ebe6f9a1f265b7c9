"""Tests for project directory checks."""

from __future__ import annotations

from pathlib import Path

from nextstart.dirs import find_conflicts, is_folder_empty, is_writeable, make_dir


class TestMakeDir:
    def test_creates_parents(self, tmp_path: Path) -> None:
        root = tmp_path / "a" / "b" / "app"
        make_dir(root)
        assert root.is_dir()

    def test_idempotent(self, tmp_path: Path) -> None:
        root = tmp_path / "app"
        make_dir(root)
        make_dir(root)
        assert root.is_dir()
        assert is_folder_empty(root)


class TestFindConflicts:
    def test_allowed_entries_are_ignored(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        (tmp_path / ".idea").mkdir()
        (tmp_path / "LICENSE").write_text("MIT")
        (tmp_path / "yarn-error.log").write_text("")
        (tmp_path / "project.iml").write_text("")

        assert find_conflicts(tmp_path) == []
        assert is_folder_empty(tmp_path)

    def test_reports_files_and_directories(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        (tmp_path / "src").mkdir()
        (tmp_path / ".gitignore").write_text("")

        assert find_conflicts(tmp_path) == ["package.json", "src/"]
        assert not is_folder_empty(tmp_path)

    def test_custom_allow_list(self, tmp_path: Path) -> None:
        (tmp_path / ".vscode").mkdir()
        assert find_conflicts(tmp_path) == [".vscode/"]
        assert find_conflicts(tmp_path, {".vscode"}) == []


def test_is_writeable(tmp_path: Path) -> None:
    assert is_writeable(tmp_path)
    assert not is_writeable(tmp_path / "missing")
