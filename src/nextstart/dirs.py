"""Filesystem checks for the project directory."""

import os
from pathlib import Path
from typing import Iterable

from .config import DEFAULT_ALLOWED_FILES


def make_dir(root: Path) -> None:
    """Create ``root`` and its parents; an existing directory is fine."""
    root.mkdir(parents=True, exist_ok=True)


def is_writeable(path: Path) -> bool:
    return os.access(path, os.W_OK)


def find_conflicts(root: Path, allowed: Iterable[str] = DEFAULT_ALLOWED_FILES) -> list[str]:
    """Return the entries of ``root`` that are not on the allow-list.

    IntelliJ module files (``*.iml``) are always tolerated. Directories are
    reported with a trailing slash.
    """
    allowed = set(allowed)
    conflicts = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.name in allowed or entry.name.endswith(".iml"):
            continue
        conflicts.append(f"{entry.name}/" if entry.is_dir() else entry.name)
    return conflicts


def is_folder_empty(root: Path, allowed: Iterable[str] = DEFAULT_ALLOWED_FILES) -> bool:
    return not find_conflicts(root, allowed)
