"""Shared fixtures for nextstart tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from nextstart.examples import RepoReference
from nextstart.pipeline import Toolkit
from nextstart.retry import NO_BACKOFF


class FakeWorld:
    """Records every collaborator call made through a Toolkit."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.example_files: dict[str, str] = {"package.json": json.dumps({"name": "example"})}
        self.fetch_errors: list[Exception] = []
        self.repo_found = True
        self.named_found = True
        self.default_branch = "main"
        self.git_result = False
        self.online = True
        self.install_error: Exception | None = None

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _fetch(self, kind: str, root: Path, target) -> None:
        self.calls.append((kind, root, target))
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        for rel, content in self.example_files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    def toolkit(self, **overrides) -> Toolkit:
        def default_branch(owner: str, name: str):
            self.calls.append(("default_branch", owner, name))
            return self.default_branch

        def repo_exists(ref: RepoReference) -> bool:
            self.calls.append(("repo_exists", ref))
            return self.repo_found

        def named_example_exists(name: str) -> bool:
            self.calls.append(("named_example_exists", name))
            return self.named_found

        def install(root, dependencies=None, **kwargs):
            self.calls.append(("install", root, dependencies, kwargs))
            if self.install_error:
                raise self.install_error

        def install_template(**kwargs):
            self.calls.append(("install_template", kwargs))
            (kwargs["root"] / "package.json").write_text(json.dumps({"name": kwargs["app_name"]}))
            if self.install_error:
                raise self.install_error

        def try_git_init(root):
            self.calls.append(("try_git_init", root))
            return self.git_result

        def is_online():
            self.calls.append(("is_online",))
            return self.online

        fields: dict[str, Callable] = dict(
            default_branch=default_branch,
            repo_exists=repo_exists,
            named_example_exists=named_example_exists,
            fetch_repo=lambda root, ref: self._fetch("fetch_repo", root, ref),
            fetch_named=lambda root, name: self._fetch("fetch_named", root, name),
            install=install,
            install_template=install_template,
            try_git_init=try_git_init,
            is_online=is_online,
            backoff=NO_BACKOFF,
            sleep=lambda seconds: None,
        )
        fields.update(overrides)
        return Toolkit(**fields)


@pytest.fixture
def world() -> FakeWorld:
    return FakeWorld()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch) -> None:
    """Point the user config lookup at a file that does not exist."""
    monkeypatch.setenv("NEXTSTART_CONFIG", str(tmp_path_factory.mktemp("config") / "config.toml"))
