"""Package manager detection and dependency installation."""

import os
import shutil
import socket
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlsplit

from .ui import console

REGISTRY_HOST = "registry.yarnpkg.com"


class PackageManager(str, Enum):
    npm = "npm"
    yarn = "yarn"
    pnpm = "pnpm"


class InstallError(Exception):
    """Raised when the package manager exits unsuccessfully."""


def get_pkg_manager() -> PackageManager:
    """Guess the package manager that launched us from npm_config_user_agent."""
    user_agent = os.getenv("npm_config_user_agent") or ""
    if user_agent.startswith("yarn"):
        return PackageManager.yarn
    if user_agent.startswith("pnpm"):
        return PackageManager.pnpm
    return PackageManager.npm


def _resolves(host: str) -> bool:
    try:
        socket.getaddrinfo(host, None)
        return True
    except (socket.gaierror, UnicodeError):
        return False


def _https_proxy_host() -> Optional[str]:
    if not shutil.which("npm"):
        return None
    try:
        result = subprocess.run(
            ["npm", "config", "get", "https-proxy"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError):
        return None
    proxy = result.stdout.strip()
    if not proxy or proxy == "null":
        return None
    return urlsplit(proxy).hostname


def is_online() -> bool:
    """Probe the registry over DNS, falling back to the configured proxy."""
    if _resolves(REGISTRY_HOST):
        return True
    proxy_host = _https_proxy_host()
    return bool(proxy_host) and _resolves(proxy_host)


def build_install_command(
    package_manager: PackageManager,
    dependencies: Optional[Sequence[str]] = None,
    *,
    online: bool = True,
    dev: bool = False,
) -> list[str]:
    pm = PackageManager(package_manager)
    args: list[str] = [pm.value]

    if dependencies:
        if pm is PackageManager.yarn:
            args += ["add", "--exact"]
            if dev:
                args.append("--dev")
        elif pm is PackageManager.pnpm:
            args += ["add", "--save-exact"]
            if dev:
                args.append("--save-dev")
        else:
            args += ["install", "--save-exact", "--save-dev" if dev else "--save"]
        args += list(dependencies)
    else:
        args.append("install")

    if pm is PackageManager.yarn and not online:
        args.append("--offline")
    return args


def install(
    root: Path,
    dependencies: Optional[Sequence[str]] = None,
    *,
    package_manager: PackageManager,
    is_online: bool = True,
    dev: bool = False,
) -> None:
    """Run the package manager in ``root``; raise InstallError on failure."""
    cmd = build_install_command(package_manager, dependencies, online=is_online, dev=dev)

    if PackageManager(package_manager) is PackageManager.yarn and not is_online:
        console.print("[yellow]You appear to be offline.[/yellow]")
        console.print("[yellow]Falling back to the local Yarn cache.[/yellow]")
        console.print()

    env = {
        **os.environ,
        "ADBLOCK": "1",
        "NODE_ENV": "development",
        "DISABLE_OPENCOLLECTIVE": "1",
    }
    try:
        subprocess.run(cmd, cwd=root, env=env, check=True)
    except FileNotFoundError as e:
        raise InstallError(f"{cmd[0]} not found: {' '.join(cmd)}") from e
    except subprocess.CalledProcessError as e:
        raise InstallError(f"{' '.join(cmd)} exited with code {e.returncode}") from e
