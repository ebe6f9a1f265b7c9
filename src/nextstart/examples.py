"""Example lookup and download.

Examples come either from an arbitrary GitHub repository (optionally a
branch and a sub-directory of it) or from the named examples published in
the central catalog repository.
"""

import os
import shutil
import ssl
import tarfile
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import SplitResult, quote, urlsplit

import httpx
import truststore

from .config import (
    EXAMPLES_BRANCH,
    EXAMPLES_DIR,
    EXAMPLES_OWNER,
    EXAMPLES_REPO,
    GITHUB_API,
    GITHUB_CODELOAD,
    github_auth_headers,
)

ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)


def make_client(skip_tls: bool = False) -> httpx.Client:
    return httpx.Client(verify=False if skip_tls else ssl_context)


@dataclass(frozen=True)
class RepoReference:
    owner: str
    name: str
    branch: str
    file_path: str = ""


@dataclass(frozen=True)
class RepoExample:
    ref: RepoReference


@dataclass(frozen=True)
class NamedExample:
    name: str


@dataclass(frozen=True)
class NoExample:
    pass


Resolution = Union[RepoExample, NamedExample, NoExample]


class DownloadError(Exception):
    """Raised when an example could not be fetched after all attempts."""


def parse_example_url(example: str) -> Optional[SplitResult]:
    """Split ``example`` as an absolute URL.

    Returns None when the string has no scheme, which means it names an
    example from the catalog. Anything with a scheme is a URL, host or not.
    Raises ValueError when it cannot be parsed (bad port, broken IPv6 host).
    """
    url = urlsplit(example)
    if not url.scheme:
        return None
    url.port  # raises ValueError for a malformed port
    return url


def is_github_url(url: SplitResult) -> bool:
    return url.scheme == "https" and url.hostname == "github.com" and url.port in (None, 443)


def parse_repo_reference(url: SplitResult, example_path: Optional[str] = None) -> Optional[RepoReference]:
    """Build a RepoReference from a GitHub URL without touching the network.

    ``https://github.com/<owner>/<name>`` leaves the branch empty; callers fill
    it with the repository's default branch. ``.../tree/<branch>/<path>``
    names a branch and sub-directory. When ``example_path`` is given it is the
    sub-directory and everything between ``tree/`` and it is the branch, so
    branch names containing slashes work.
    """
    segments = url.path.split("/")[1:]
    owner = segments[0] if segments else ""
    name = segments[1] if len(segments) > 1 else ""
    rest = segments[2:]
    if not owner or not name:
        return None
    if name.endswith(".git"):
        name = name[:-4]

    file_path = example_path.lstrip("/").rstrip("/") if example_path else ""

    if not rest or rest == [""]:
        return RepoReference(owner=owner, name=name, branch="", file_path=file_path)

    if rest[0] != "tree" or len(rest) < 2 or not rest[1]:
        return None

    tree = [segment for segment in rest[1:] if segment]
    if example_path:
        branch = "/".join(tree)
        if file_path and branch.endswith("/" + file_path):
            branch = branch[: -len(file_path) - 1]
    else:
        branch = tree[0]
        file_path = "/".join(tree[1:])

    if not branch:
        return None
    return RepoReference(owner=owner, name=name, branch=branch, file_path=file_path)


def _is_url_ok(client: httpx.Client, url: str, github_token: Optional[str] = None) -> bool:
    try:
        response = client.head(url, timeout=30, follow_redirects=True, headers=github_auth_headers(github_token))
    except httpx.HTTPError:
        return False
    return response.status_code == 200


def get_default_branch(owner: str, name: str, *, client: httpx.Client, github_token: Optional[str] = None) -> Optional[str]:
    """Look up a repository's default branch, or None when it cannot be read."""
    try:
        response = client.get(
            f"{GITHUB_API}/repos/{owner}/{name}",
            timeout=30,
            follow_redirects=True,
            headers=github_auth_headers(github_token),
        )
    except httpx.HTTPError:
        return None
    if response.status_code != 200:
        return None
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("default_branch") or None


def repo_exists(ref: RepoReference, *, client: httpx.Client, github_token: Optional[str] = None) -> bool:
    """Check that the branch/path combination holds a package.json."""
    package_path = f"/{ref.file_path}" if ref.file_path else ""
    url = (
        f"{GITHUB_API}/repos/{ref.owner}/{ref.name}/contents"
        f"{package_path}/package.json?ref={quote(ref.branch, safe='')}"
    )
    return _is_url_ok(client, url, github_token)


def named_example_exists(name: str, *, client: httpx.Client, github_token: Optional[str] = None) -> bool:
    if parse_example_url(name):
        return _is_url_ok(client, name, github_token)
    url = (
        f"{GITHUB_API}/repos/{EXAMPLES_OWNER}/{EXAMPLES_REPO}/contents/"
        f"{EXAMPLES_DIR}/{quote(name, safe='')}"
    )
    return _is_url_ok(client, url, github_token)


def _download_tar(url: str, client: httpx.Client, github_token: Optional[str] = None) -> Path:
    """Stream a tarball into a temporary file and return its path."""
    fd, tmp_name = tempfile.mkstemp(prefix="nextstart-", suffix=".tar.gz")
    tar_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            with client.stream(
                "GET",
                url,
                timeout=60,
                follow_redirects=True,
                headers=github_auth_headers(github_token),
            ) as response:
                if response.status_code != 200:
                    raise RuntimeError(f"Download failed with {response.status_code} for {url}")
                for chunk in response.iter_bytes(chunk_size=8192):
                    f.write(chunk)
    except Exception:
        tar_path.unlink(missing_ok=True)
        raise
    return tar_path


def extract_subtree(tar_path: Path, root: Path, prefix: str, strip: int) -> int:
    """Extract members under ``prefix`` into ``root``, dropping ``strip`` leading components.

    Links and members that would land outside ``root`` are skipped. Returns
    the number of files written.
    """
    root = root.resolve()
    written = 0
    with tarfile.open(tar_path, "r:gz") as tar:
        for member in tar:
            if not member.name.startswith(prefix):
                continue
            parts = PurePosixPath(member.name).parts[strip:]
            if not parts or ".." in parts or PurePosixPath(member.name).is_absolute():
                continue
            target = root.joinpath(*parts)
            if not target.resolve().is_relative_to(root):
                continue

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
            elif member.isfile():
                source = tar.extractfile(member)
                if source is None:
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with source, target.open("wb") as out:
                    shutil.copyfileobj(source, out)
                target.chmod(member.mode & 0o777 | 0o600)
                written += 1
    return written


def download_and_extract_repo(root: Path, ref: RepoReference, *, client: httpx.Client, github_token: Optional[str] = None) -> None:
    tar_path = _download_tar(f"{GITHUB_CODELOAD}/{ref.owner}/{ref.name}/tar.gz/{ref.branch}", client, github_token)
    try:
        top = f"{ref.name}-{ref.branch.replace('/', '-')}"
        prefix = f"{top}/{ref.file_path}/" if ref.file_path else f"{top}/"
        strip = len(ref.file_path.split("/")) + 1 if ref.file_path else 1
        if not extract_subtree(tar_path, root, prefix, strip):
            raise RuntimeError(f"No files found under '{ref.file_path or '/'}' in {ref.owner}/{ref.name}@{ref.branch}")
    finally:
        tar_path.unlink(missing_ok=True)


def download_and_extract_example(root: Path, name: str, *, client: httpx.Client, github_token: Optional[str] = None) -> None:
    tar_path = _download_tar(
        f"{GITHUB_CODELOAD}/{EXAMPLES_OWNER}/{EXAMPLES_REPO}/tar.gz/{EXAMPLES_BRANCH}", client, github_token
    )
    try:
        prefix = f"{EXAMPLES_REPO}-{EXAMPLES_BRANCH}/{EXAMPLES_DIR}/{name}/"
        if not extract_subtree(tar_path, root, prefix, strip=3):
            raise RuntimeError(f"Example '{name}' is empty or missing from the catalog archive")
    finally:
        tar_path.unlink(missing_ok=True)


def error_message(reason: BaseException) -> str:
    """Message of ``reason``, or its string coercion when it carries none."""
    message = str(reason)
    return message if message else repr(reason)
