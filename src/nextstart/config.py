"""Defaults and user configuration for nextstart."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "nextstart"

# Central examples catalog
EXAMPLES_OWNER = "vercel"
EXAMPLES_REPO = "next.js"
EXAMPLES_BRANCH = "canary"
EXAMPLES_DIR = "examples"

GITHUB_API = "https://api.github.com"
GITHUB_CODELOAD = "https://codeload.github.com"

FETCH_ATTEMPTS = 3
BACKOFF_INITIAL_DELAY = 1.0
BACKOFF_MULTIPLIER = 2.0
BACKOFF_MAX_DELAY = 10.0

PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")

# Files tolerated in an otherwise empty project directory
DEFAULT_ALLOWED_FILES = frozenset({
    ".DS_Store",
    ".git",
    ".gitattributes",
    ".gitignore",
    ".gitlab-ci.yml",
    ".hg",
    ".hgcheck",
    ".hgignore",
    ".idea",
    ".npmignore",
    ".travis.yml",
    "LICENSE",
    "Thumbs.db",
    "docs",
    "mkdocs.yml",
    "npm-debug.log",
    "yarn-debug.log",
    "yarn-error.log",
    "yarnrc.yml",
    ".yarn",
})


class ConfigError(Exception):
    """Raised when the user config file cannot be used."""


@dataclass
class UserConfig:
    allowed_files: frozenset[str] = field(default_factory=frozenset)
    package_manager: str | None = None
    path: Path | None = None


def config_path() -> Path:
    override = os.getenv("NEXTSTART_CONFIG")
    if override:
        return Path(override)
    return Path(user_config_dir(APP_NAME)) / "config.toml"


def load_user_config(path: Path | None = None) -> UserConfig:
    """Read the optional user config file.

    A missing file yields the defaults. Unknown keys are ignored; known keys
    with the wrong shape raise ConfigError.
    """
    path = path or config_path()
    if not path.is_file():
        return UserConfig()

    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    allowed = data.get("allowed_files", [])
    if not isinstance(allowed, list) or not all(isinstance(item, str) for item in allowed):
        raise ConfigError(f"'allowed_files' in {path} must be a list of file names")

    package_manager = data.get("package_manager")
    if package_manager is not None and package_manager not in PACKAGE_MANAGERS:
        raise ConfigError(
            f"'package_manager' in {path} must be one of: {', '.join(PACKAGE_MANAGERS)}"
        )

    return UserConfig(allowed_files=frozenset(allowed), package_manager=package_manager, path=path)


def _github_token(cli_token: str | None = None) -> str | None:
    """Return sanitized GitHub token (cli arg takes precedence) or None."""
    return ((cli_token or os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN") or "").strip()) or None


def github_auth_headers(cli_token: str | None = None) -> dict:
    """Return Authorization header dict only when a non-empty token exists."""
    token = _github_token(cli_token)
    return {"Authorization": f"Bearer {token}"} if token else {}
