"""Create a project directory from an example or a built-in template.

The run is a fixed sequence of stages:

    validate -> resolve -> prepare -> fetch | template -> normalize
             -> install -> git -> report

Each stage returns its value or a ``Failure``; the first ``Failure`` ends the
run. Only the download is retried and only git initialization is allowed to
fail quietly. Nothing already written to disk is rolled back.
"""

import shutil
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

from . import dirs, examples, git, templates
from .config import DEFAULT_ALLOWED_FILES, FETCH_ATTEMPTS
from .examples import (
    DownloadError,
    NamedExample,
    NoExample,
    RepoExample,
    RepoReference,
    Resolution,
)
from .install import InstallError, PackageManager
from .install import install as run_install
from .install import is_online as probe_online
from .retry import ExponentialBackoff, retry
from .templates import TemplateMode, TemplateType
from .ui import StepTracker, console

STEPS = [
    ("validate", "Check target path"),
    ("resolve", "Resolve example"),
    ("prepare", "Prepare project directory"),
    ("fetch", "Download example"),
    ("template", "Copy template"),
    ("normalize", "Add missing project files"),
    ("install", "Install dependencies"),
    ("git", "Initialize git repository"),
    ("final", "Finalize"),
]


class FailureKind(str, Enum):
    INPUT = "input"
    NOT_FOUND = "not_found"
    DOWNLOAD = "download"
    INSTALL = "install"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppCreationRequest:
    app_path: Path
    package_manager: PackageManager
    example: Optional[str] = None
    example_path: Optional[str] = None
    mode: TemplateMode = TemplateMode.ts
    template: TemplateType = TemplateType.default
    allowed_files: frozenset[str] = DEFAULT_ALLOWED_FILES


@dataclass(frozen=True)
class Outcome:
    has_package_json: bool
    root: Path
    app_name: str
    cd_path: str
    git_initialized: bool


@dataclass
class Toolkit:
    """Everything the run does to the network, the filesystem or subprocesses."""

    default_branch: Callable[[str, str], Optional[str]]
    repo_exists: Callable[[RepoReference], bool]
    named_example_exists: Callable[[str], bool]
    fetch_repo: Callable[[Path, RepoReference], None]
    fetch_named: Callable[[Path, str], None]
    install: Callable[..., None] = run_install
    install_template: Callable[..., None] = templates.install_template
    try_git_init: Callable[[Path], bool] = git.try_git_init
    is_online: Callable[[], bool] = probe_online
    is_writeable: Callable[[Path], bool] = dirs.is_writeable
    make_dir: Callable[[Path], None] = dirs.make_dir
    find_conflicts: Callable[..., list[str]] = dirs.find_conflicts
    cwd: Callable[[], Path] = Path.cwd
    attempts: int = FETCH_ATTEMPTS
    backoff: ExponentialBackoff = field(default_factory=ExponentialBackoff)
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def for_client(cls, client: httpx.Client, github_token: Optional[str] = None) -> "Toolkit":
        net = {"client": client, "github_token": github_token}
        return cls(
            default_branch=partial(examples.get_default_branch, **net),
            repo_exists=partial(examples.repo_exists, **net),
            named_example_exists=partial(examples.named_example_exists, **net),
            fetch_repo=partial(examples.download_and_extract_repo, **net),
            fetch_named=partial(examples.download_and_extract_example, **net),
        )


def resolve_example(example: Optional[str], example_path: Optional[str], toolkit: Toolkit) -> Union[Resolution, Failure]:
    """Decide what kind of example was asked for and check that it exists."""
    if not example:
        return NoExample()

    try:
        url = examples.parse_example_url(example)
    except ValueError as e:
        return Failure(FailureKind.INPUT, f'Could not parse "{example}" as a URL: {e}')

    if url is None:
        if not toolkit.named_example_exists(example):
            return Failure(
                FailureKind.NOT_FOUND,
                f'Could not locate an example named "{example}". It could be due to the following:',
                (
                    f'Your spelling of example "{example}" might be incorrect.',
                    "You might not be connected to the internet or you are behind a proxy.",
                ),
            )
        return NamedExample(example)

    if not examples.is_github_url(url):
        return Failure(
            FailureKind.INPUT,
            f'Invalid URL: "{example}". Only GitHub repositories are supported. '
            "Please use a GitHub URL and try again.",
        )

    ref = examples.parse_repo_reference(url, example_path)
    if ref is not None and not ref.branch:
        branch = toolkit.default_branch(ref.owner, ref.name)
        ref = RepoReference(ref.owner, ref.name, branch, ref.file_path) if branch else None
    if ref is None:
        return Failure(
            FailureKind.INPUT,
            f'Found invalid GitHub URL: "{example}". Please fix the URL and try again.',
        )

    if not toolkit.repo_exists(ref):
        return Failure(
            FailureKind.NOT_FOUND,
            f'Could not locate the repository for "{example}". '
            "Please check that the repository exists and try again.",
        )
    return RepoExample(ref)


def validate_target(root: Path, toolkit: Toolkit) -> Optional[Failure]:
    if not toolkit.is_writeable(root.parent):
        return Failure(
            FailureKind.INPUT,
            "The application path is not writable, please check folder permissions and try again.",
            ("It is likely you do not have write permissions for this folder.",),
        )
    return None


def prepare_directory(root: Path, allowed: frozenset[str], toolkit: Toolkit) -> Optional[Failure]:
    """Create ``root`` if needed and require it to be empty apart from allowed files."""
    toolkit.make_dir(root)
    conflicts = toolkit.find_conflicts(root, allowed)
    if conflicts:
        return Failure(
            FailureKind.INPUT,
            f"The directory {root.name} contains files that could conflict. "
            "Either try using a new directory name, or remove the files listed.",
            tuple(conflicts),
        )
    return None


def fetch_example(root: Path, resolution: Union[RepoExample, NamedExample], toolkit: Toolkit) -> None:
    """Download the example into ``root``, retrying transient failures.

    Raises DownloadError carrying the last failure's message once every
    attempt has failed.
    """
    if isinstance(resolution, RepoExample):
        operation = partial(toolkit.fetch_repo, root, resolution.ref)
    else:
        operation = partial(toolkit.fetch_named, root, resolution.name)

    def warn(attempt: int, error: Exception) -> None:
        console.print(f"[yellow]Download attempt {attempt} failed:[/yellow] {examples.error_message(error)}")

    try:
        retry(operation, attempts=toolkit.attempts, backoff=toolkit.backoff, on_retry=warn, sleep=toolkit.sleep)
    except Exception as e:
        raise DownloadError(examples.error_message(e)) from e


def normalize_example(root: Path, template: TemplateType) -> bool:
    """Fill in files a downloaded example may lack; return whether package.json exists."""
    ignore_path = root / ".gitignore"
    if not ignore_path.exists():
        shutil.copyfile(templates.get_template_file(template, TemplateMode.ts, "gitignore"), ignore_path)

    if (root / "tsconfig.json").exists():
        shutil.copyfile(
            templates.get_template_file(template, TemplateMode.ts, "next-env.d.ts"),
            root / "next-env.d.ts",
        )

    return (root / "package.json").exists()


def create_app(request: AppCreationRequest, toolkit: Toolkit, tracker: Optional[StepTracker] = None) -> Union[Outcome, Failure]:
    tracker = tracker or StepTracker("Create app")
    for key, label in STEPS:
        tracker.add(key, label)

    root = Path(request.app_path).resolve()
    app_name = root.name
    pm = PackageManager(request.package_manager)

    def fail(step: str, failure: Failure) -> Failure:
        tracker.error(step, failure.kind.value)
        tracker.skip_pending()
        return failure

    tracker.start("validate")
    failure = validate_target(root, toolkit)
    if failure:
        return fail("validate", failure)
    tracker.complete("validate", str(root))

    if request.example:
        tracker.start("resolve", request.example)
        resolution = resolve_example(request.example, request.example_path, toolkit)
        if isinstance(resolution, Failure):
            return fail("resolve", resolution)
        if isinstance(resolution, RepoExample):
            ref = resolution.ref
            tracker.complete("resolve", f"{ref.owner}/{ref.name}@{ref.branch}" + (f":{ref.file_path}" if ref.file_path else ""))
        else:
            tracker.complete("resolve", f"example {resolution.name}")
    else:
        resolution = NoExample()
        tracker.skip("resolve", "no example")

    tracker.start("prepare")
    failure = prepare_directory(root, request.allowed_files, toolkit)
    if failure:
        return fail("prepare", failure)
    tracker.complete("prepare", app_name)

    online = toolkit.is_online() if pm is PackageManager.yarn else True
    has_package_json = False

    if isinstance(resolution, NoExample):
        tracker.skip("fetch")
        tracker.skip("normalize")
        tracker.start("template", f"{request.template.value}/{request.mode.value}")
        try:
            toolkit.install_template(
                app_name=app_name,
                root=root,
                template=request.template,
                mode=request.mode,
                package_manager=pm,
                is_online=online,
            )
        except InstallError as e:
            return fail("template", Failure(FailureKind.INSTALL, str(e)))
        tracker.complete("template")
        tracker.complete("install", "with template")
        has_package_json = (root / "package.json").exists()
    else:
        tracker.skip("template")
        tracker.start("fetch")
        try:
            fetch_example(root, resolution, toolkit)
        except DownloadError as e:
            return fail("fetch", Failure(FailureKind.DOWNLOAD, str(e)))
        tracker.complete("fetch")

        tracker.start("normalize")
        has_package_json = normalize_example(root, request.template)
        tracker.complete("normalize")

        if has_package_json:
            tracker.start("install", pm.value)
            try:
                toolkit.install(root, None, package_manager=pm, is_online=online)
            except InstallError as e:
                return fail("install", Failure(FailureKind.INSTALL, str(e)))
            tracker.complete("install", pm.value)
        else:
            tracker.skip("install", "no package.json")

    tracker.start("git")
    git_initialized = toolkit.try_git_init(root)
    if git_initialized:
        tracker.complete("git", "initialized")
    else:
        tracker.skip("git", "not initialized")

    if str(toolkit.cwd() / app_name) == str(request.app_path):
        cd_path = app_name
    else:
        cd_path = str(request.app_path)

    tracker.complete("final", "project ready")
    return Outcome(
        has_package_json=has_package_json,
        root=root,
        app_name=app_name,
        cd_path=cd_path,
        git_initialized=git_initialized,
    )


def next_steps(outcome: Outcome, package_manager: PackageManager) -> list[str]:
    """Lines of the closing report; run instructions only when package.json exists."""
    pm = PackageManager(package_manager).value
    run = f"{pm} " if pm == "yarn" else f"{pm} run "
    lines = [f"[green]Success![/green] Created {outcome.app_name} at {outcome.root}"]
    if not outcome.has_package_json:
        return lines

    lines += [
        "",
        "Inside that directory, you can run several commands:",
        "",
        f"  [cyan]{run}dev[/cyan]",
        "    Starts the development server.",
        "",
        f"  [cyan]{run}build[/cyan]",
        "    Builds the app for production.",
        "",
        f"  [cyan]{pm} start[/cyan]",
        "    Runs the built app in production mode.",
        "",
        "We suggest that you begin by typing:",
        "",
        f"  [cyan]cd[/cyan] {outcome.cd_path}",
        f"  [cyan]{run}dev[/cyan]",
    ]
    return lines
