"""Tests for the command line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import nextstart
from nextstart import app, validate_npm_name
from nextstart.install import PackageManager
from nextstart.pipeline import Failure, FailureKind, Outcome
from nextstart.templates import TemplateMode, TemplateType

runner = CliRunner()


@pytest.fixture
def captured(monkeypatch):
    """Replace create_app and keep the request it receives."""
    seen = {}

    def fake_create_app(request, toolkit, tracker=None):
        seen["request"] = request
        return seen.get("result") or Outcome(
            has_package_json=True,
            root=Path(request.app_path).resolve(),
            app_name=Path(request.app_path).name,
            cd_path=str(request.app_path),
            git_initialized=False,
        )

    monkeypatch.setattr(nextstart, "create_app", fake_create_app)
    monkeypatch.delenv("npm_config_user_agent", raising=False)
    return seen


class TestValidateNpmName:
    @pytest.mark.parametrize("name", ["my-app", "app2", "@scope/pkg", "a.b_c~d"])
    def test_valid(self, name: str) -> None:
        assert validate_npm_name(name) == []

    @pytest.mark.parametrize("name", ["", "MyApp", ".hidden", "_private", "has space", "a" * 215])
    def test_invalid(self, name: str) -> None:
        assert validate_npm_name(name)


class TestCreateCommand:
    def test_defaults(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create", "my-app"])

        assert result.exit_code == 0, result.output
        request = captured["request"]
        assert request.app_path == Path("my-app")
        assert request.package_manager is PackageManager.npm
        assert request.mode is TemplateMode.ts
        assert request.template is TemplateType.default
        assert request.example is None
        assert "Success!" in result.output

    def test_flags_build_request(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(
            app,
            [
                "create", "web",
                "--js", "--use-pnpm", "--experimental-app",
                "-e", "https://github.com/acme/demo/tree/main/examples/foo",
                "--example-path", "examples/foo",
                "--allow-file", ".vscode",
            ],
        )

        assert result.exit_code == 0, result.output
        request = captured["request"]
        assert request.mode is TemplateMode.js
        assert request.package_manager is PackageManager.pnpm
        assert request.template is TemplateType.app
        assert request.example == "https://github.com/acme/demo/tree/main/examples/foo"
        assert request.example_path == "examples/foo"
        assert ".vscode" in request.allowed_files
        assert ".git" in request.allowed_files

    def test_package_manager_from_user_agent(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("npm_config_user_agent", "yarn/1.22.19 npm/? node/v18")

        result = runner.invoke(app, ["create", "my-app"])

        assert result.exit_code == 0, result.output
        assert captured["request"].package_manager is PackageManager.yarn

    def test_package_manager_from_config(self, captured, tmp_path: Path, monkeypatch) -> None:
        config = tmp_path / "config.toml"
        config.write_text('package_manager = "pnpm"\nallowed_files = ["notes.txt"]\n')
        monkeypatch.setenv("NEXTSTART_CONFIG", str(config))
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create", "my-app"])

        assert result.exit_code == 0, result.output
        assert captured["request"].package_manager is PackageManager.pnpm
        assert "notes.txt" in captured["request"].allowed_files

    def test_conflicting_package_manager_flags(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create", "my-app", "--use-npm", "--use-yarn"])

        assert result.exit_code == 1
        assert "request" not in captured

    def test_conflicting_language_flags(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create", "my-app", "--ts", "--js"])

        assert result.exit_code == 1

    def test_invalid_project_name(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create", "MyApp"])

        assert result.exit_code != 0
        assert "request" not in captured

    def test_prompts_for_name(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["create"], input="\n")

        assert result.exit_code == 0, result.output
        assert captured["request"].app_path == Path("my-app")

    def test_failure_exits_non_zero(self, captured, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        captured["result"] = Failure(FailureKind.NOT_FOUND, "Could not locate an example", ("typo", "proxy"))

        result = runner.invoke(app, ["create", "my-app", "-e", "nope"])

        assert result.exit_code == 1
        assert "Could not locate an example" in result.output


def test_bad_host_end_to_end(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["create", "my-app", "-e", "https://notgithub.com/x/y"])

    assert result.exit_code == 1
    assert "Invalid URL" in result.output
    assert not (tmp_path / "my-app").exists()


def test_check_command(monkeypatch) -> None:
    monkeypatch.setattr(nextstart.shutil, "which", lambda tool: f"/usr/bin/{tool}")

    result = runner.invoke(app, ["check"])

    assert result.exit_code == 0, result.output
    assert "ready to use" in result.output


def test_check_command_without_node(monkeypatch) -> None:
    monkeypatch.setattr(nextstart.shutil, "which", lambda tool: None)

    result = runner.invoke(app, ["check"])

    assert result.exit_code == 1
