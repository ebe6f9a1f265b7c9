"""Tests for user configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from nextstart.config import ConfigError, config_path, github_auth_headers, load_user_config


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_user_config(tmp_path / "nope.toml")
    assert config.allowed_files == frozenset()
    assert config.package_manager is None


def test_reads_allowed_files_and_package_manager(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('package_manager = "pnpm"\nallowed_files = [".vscode", ".envrc"]\n')

    config = load_user_config(path)

    assert config.package_manager == "pnpm"
    assert config.allowed_files == {".vscode", ".envrc"}


@pytest.mark.parametrize(
    "content",
    [
        "allowed_files = 'docs'",
        'package_manager = "bun"',
        "not toml at all [",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.toml"
    path.write_text(content)

    with pytest.raises(ConfigError):
        load_user_config(path)


def test_config_path_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("NEXTSTART_CONFIG", str(tmp_path / "c.toml"))
    assert config_path() == tmp_path / "c.toml"


def test_auth_headers(monkeypatch) -> None:
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    assert github_auth_headers() == {}

    monkeypatch.setenv("GITHUB_TOKEN", " env-token ")
    assert github_auth_headers() == {"Authorization": "Bearer env-token"}
    assert github_auth_headers("cli") == {"Authorization": "Bearer cli"}
