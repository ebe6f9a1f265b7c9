"""Built-in starter templates.

Each template lives under ``<template>/<mode>/`` next to this module. Files
that would be hidden or special in the package itself are stored under a
plain name and renamed on copy.
"""

import json
import shutil
from enum import Enum
from pathlib import Path
from typing import Callable

from ..install import PackageManager, install
from ..ui import console

TEMPLATES_DIR = Path(__file__).parent

RENAMES = {
    "gitignore": ".gitignore",
    "eslintrc.json": ".eslintrc.json",
    "README-template.md": "README.md",
}


class TemplateType(str, Enum):
    default = "default"
    app = "app"


class TemplateMode(str, Enum):
    ts = "ts"
    js = "js"


def get_template_file(template: TemplateType, mode: TemplateMode, file: str) -> Path:
    return TEMPLATES_DIR / TemplateType(template).value / TemplateMode(mode).value / file


def copy_template(root: Path, template: TemplateType, mode: TemplateMode) -> list[str]:
    """Copy the template tree into ``root`` and return the written paths."""
    source = TEMPLATES_DIR / TemplateType(template).value / TemplateMode(mode).value
    written = []
    for path in sorted(source.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(source)
        if rel.parent == Path(".") and rel.name in RENAMES:
            rel = Path(RENAMES[rel.name])
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)
        written.append(rel.as_posix())
    return written


def package_json(app_name: str) -> dict:
    return {
        "name": app_name,
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
    }


def template_dependencies(mode: TemplateMode) -> tuple[list[str], list[str]]:
    """Return (dependencies, dev dependencies) for a template mode."""
    dependencies = ["react", "react-dom", "next"]
    dev_dependencies = ["eslint", "eslint-config-next"]
    if TemplateMode(mode) is TemplateMode.ts:
        dev_dependencies += ["typescript", "@types/react", "@types/node", "@types/react-dom"]
    return dependencies, dev_dependencies


def install_template(
    *,
    app_name: str,
    root: Path,
    template: TemplateType,
    mode: TemplateMode,
    package_manager: PackageManager,
    is_online: bool,
    install_fn: Callable[..., None] = install,
) -> None:
    """Write the starter project into ``root`` and install its dependencies."""
    console.print(f"[cyan]Using {TemplateMode(mode).value} template '{TemplateType(template).value}'.[/cyan]")

    (root / "package.json").write_text(json.dumps(package_json(app_name), indent=2) + "\n", encoding="utf-8")
    copy_template(root, template, mode)

    dependencies, dev_dependencies = template_dependencies(mode)
    console.print("Installing dependencies:")
    for dependency in dependencies:
        console.print(f"- [cyan]{dependency}[/cyan]")
    console.print()
    install_fn(root, dependencies, package_manager=package_manager, is_online=is_online)

    console.print("Installing devDependencies:")
    for dependency in dev_dependencies:
        console.print(f"- [cyan]{dependency}[/cyan]")
    console.print()
    install_fn(root, dev_dependencies, package_manager=package_manager, is_online=is_online, dev=True)
