"""Best-effort git initialization of the new project."""

import shutil
import subprocess
from pathlib import Path

COMMIT_MESSAGE = "Initial commit from nextstart"


def _succeeds(cmd: list[str], cwd: Path) -> bool:
    try:
        subprocess.run(cmd, cwd=cwd, check=True, capture_output=True)
        return True
    except (subprocess.CalledProcessError, OSError):
        return False


def is_in_git_repository(path: Path) -> bool:
    return _succeeds(["git", "rev-parse", "--is-inside-work-tree"], path)


def is_in_mercurial_repository(path: Path) -> bool:
    if not shutil.which("hg"):
        return False
    return _succeeds(["hg", "--cwd", ".", "root"], path)


def try_git_init(root: Path) -> bool:
    """Initialize a repository with an initial commit on ``main``.

    Returns False without raising when git is missing, ``root`` already sits
    inside a git or mercurial working tree, or any git command fails. A
    partially created ``.git`` directory is removed in the last case.
    """
    if not shutil.which("git"):
        return False
    if not _succeeds(["git", "--version"], root):
        return False
    if is_in_git_repository(root) or is_in_mercurial_repository(root):
        return False

    if not _succeeds(["git", "init"], root):
        return False

    for cmd in (
        ["git", "symbolic-ref", "HEAD", "refs/heads/main"],
        ["git", "add", "-A"],
        ["git", "commit", "-m", COMMIT_MESSAGE],
    ):
        if not _succeeds(cmd, root):
            shutil.rmtree(root / ".git", ignore_errors=True)
            return False
    return True
