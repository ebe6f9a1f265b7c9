#!/usr/bin/env python3
"""
nextstart - Create Next.js apps from built-in templates or examples

Usage:
    nextstart create my-app
    nextstart create my-app --example with-tailwindcss
    nextstart create my-app --example https://github.com/acme/demo/tree/main/examples/foo

Or install globally:
    uv tool install nextstart
    nextstart create <project-directory>
"""

import re
import shutil
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.align import Align
from rich.panel import Panel
from typer.core import TyperGroup

from .config import DEFAULT_ALLOWED_FILES, ConfigError, load_user_config
from .examples import make_client
from .install import PackageManager, get_pkg_manager
from .pipeline import AppCreationRequest, Failure, Toolkit, create_app, next_steps
from .templates import TemplateMode, TemplateType
from .ui import StepTracker, console, select_with_arrows, show_banner

MODE_CHOICES = {"ts": "TypeScript", "js": "JavaScript"}

NPM_NAME_MAX_LENGTH = 214
NPM_NAME_PATTERN = re.compile(r"^(?:@[a-z0-9~][a-z0-9._~-]*/)?[a-z0-9~][a-z0-9._~-]*$")


class BannerGroup(TyperGroup):
    """Custom group that shows banner before help."""

    def format_help(self, ctx, formatter):
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name="nextstart",
    help="Create Next.js apps from built-in templates or examples",
    add_completion=False,
    invoke_without_command=True,
    cls=BannerGroup,
)


@app.callback()
def callback(ctx: typer.Context):
    """Show banner when no subcommand is provided."""
    if ctx.invoked_subcommand is None and "--help" not in sys.argv and "-h" not in sys.argv:
        show_banner()
        console.print(Align.center("[dim]Run 'nextstart --help' for usage information[/dim]"))
        console.print()


def validate_npm_name(name: str) -> list[str]:
    """Return the reasons ``name`` cannot be used as an npm package name."""
    problems = []
    if not name:
        problems.append("name cannot be empty")
        return problems
    if len(name) > NPM_NAME_MAX_LENGTH:
        problems.append(f"name can no longer contain more than {NPM_NAME_MAX_LENGTH} characters")
    if name.startswith(".") or name.startswith("_"):
        problems.append("name cannot start with a period or an underscore")
    if name != name.strip():
        problems.append("name cannot contain leading or trailing spaces")
    if name.lower() != name:
        problems.append("name can no longer contain capital letters")
    elif not NPM_NAME_PATTERN.match(name):
        problems.append("name can only contain URL-friendly characters")
    return problems


def check_tool(tool: str) -> bool:
    return shutil.which(tool) is not None


def check_tool_for_tracker(tool: str, tracker: StepTracker) -> bool:
    """Check if a tool is installed and update tracker."""
    if check_tool(tool):
        tracker.complete(tool, "available")
        return True
    tracker.error(tool, "not found")
    return False


def _select_package_manager(use_npm: bool, use_pnpm: bool, use_yarn: bool, configured: Optional[str]) -> PackageManager:
    chosen = [pm for pm, flag in (("npm", use_npm), ("pnpm", use_pnpm), ("yarn", use_yarn)) if flag]
    if len(chosen) > 1:
        console.print("[red]Error:[/red] Please provide only one of --use-npm, --use-pnpm or --use-yarn")
        raise typer.Exit(1)
    if chosen:
        return PackageManager(chosen[0])
    if configured:
        return PackageManager(configured)
    return get_pkg_manager()


def _select_mode(typescript: bool, javascript: bool, example: Optional[str]) -> TemplateMode:
    if typescript and javascript:
        console.print("[red]Error:[/red] Cannot use both --ts and --js")
        raise typer.Exit(1)
    if typescript:
        return TemplateMode.ts
    if javascript:
        return TemplateMode.js
    if not example and sys.stdin.isatty():
        return TemplateMode(select_with_arrows(MODE_CHOICES, "Choose a language for your project:", "ts"))
    return TemplateMode.ts


def _print_failure(failure: Failure):
    body = failure.message
    if failure.hints:
        body += "\n\n" + "\n".join(f"  {i}. {hint}" for i, hint in enumerate(failure.hints, start=1))
    console.print()
    console.print(Panel(body, title=f"[red]Failed ({failure.kind.value.replace('_', ' ')})[/red]", border_style="red", padding=(1, 2)))


@app.command()
def create(
    project_directory: str = typer.Argument(None, help="Directory to create the app in"),
    typescript: bool = typer.Option(False, "--ts", "--typescript", help="Initialize as a TypeScript project (default)"),
    javascript: bool = typer.Option(False, "--js", "--javascript", help="Initialize as a JavaScript project"),
    experimental_app: bool = typer.Option(False, "--experimental-app", help="Use the experimental app directory template"),
    use_npm: bool = typer.Option(False, "--use-npm", help="Bootstrap the application using npm"),
    use_pnpm: bool = typer.Option(False, "--use-pnpm", help="Bootstrap the application using pnpm"),
    use_yarn: bool = typer.Option(False, "--use-yarn", help="Bootstrap the application using Yarn"),
    example: Optional[str] = typer.Option(None, "--example", "-e", help="An example name from the Next.js repo or a GitHub URL"),
    example_path: Optional[str] = typer.Option(None, "--example-path", help="Path to the example inside the repository when the branch name contains a slash"),
    allow_file: Optional[List[str]] = typer.Option(None, "--allow-file", help="Extra file name tolerated in a non-empty project directory (repeatable)"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification (not recommended)"),
    github_token: Optional[str] = typer.Option(None, "--github-token", help="GitHub token to use for API requests (or set GH_TOKEN or GITHUB_TOKEN environment variable)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output on failure"),
):
    """
    Create a new Next.js app.

    This command will:
    1. Check that the target path is writable
    2. Resolve the requested example (by name or GitHub URL), if any
    3. Create the project directory and make sure it is empty
    4. Download the example, or copy the built-in template
    5. Install dependencies when a package.json is present
    6. Initialize a git repository (best effort)

    Examples:
        nextstart create my-app
        nextstart create my-app --js --use-pnpm
        nextstart create my-app --experimental-app
        nextstart create my-app --example with-tailwindcss
        nextstart create my-app --example https://github.com/acme/demo/tree/main/examples/foo
        nextstart create my-app --example https://github.com/acme/demo/tree/feature/x/examples/foo --example-path examples/foo
    """
    show_banner()

    try:
        user_config = load_user_config()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not project_directory:
        project_directory = typer.prompt("What is your project named?", default="my-app").strip()

    app_name = Path(project_directory).resolve().name
    problems = validate_npm_name(app_name)
    if problems:
        raise typer.BadParameter(
            f"Could not create a project called '{app_name}' because of npm naming restrictions: "
            + "; ".join(problems)
        )

    package_manager = _select_package_manager(use_npm, use_pnpm, use_yarn, user_config.package_manager)
    mode = _select_mode(typescript, javascript, example)

    request = AppCreationRequest(
        app_path=Path(project_directory),
        package_manager=package_manager,
        example=example or None,
        example_path=example_path,
        mode=mode,
        template=TemplateType.app if experimental_app else TemplateType.default,
        allowed_files=DEFAULT_ALLOWED_FILES | user_config.allowed_files | frozenset(allow_file or ()),
    )

    setup_lines = [
        "[cyan]New Next.js app[/cyan]",
        "",
        f"{'Project':<17} [green]{app_name}[/green]",
        f"{'Target Path':<17} [dim]{Path(project_directory).resolve()}[/dim]",
        f"{'Source':<17} [yellow]{example or request.template.value + ' template'}[/yellow]",
        f"{'Language':<17} [yellow]{MODE_CHOICES[mode.value]}[/yellow]",
        f"{'Package Manager':<17} [yellow]{package_manager.value}[/yellow]",
    ]
    console.print(Panel("\n".join(setup_lines), border_style="cyan", padding=(1, 2)))

    tracker = StepTracker("Create Next.js app")
    try:
        with make_client(skip_tls) as client:
            result = create_app(request, Toolkit.for_client(client, github_token), tracker)
    except Exception as e:
        tracker.error("final", str(e))
        console.print(tracker.render())
        console.print(Panel(f"App creation failed: {e}", title="Failure", border_style="red"))
        if debug:
            _env_pairs = [
                ("Python", sys.version.split()[0]),
                ("Platform", sys.platform),
                ("CWD", str(Path.cwd())),
            ]
            _label_width = max(len(k) for k, _ in _env_pairs)
            env_lines = [f"{k.ljust(_label_width)} → [bright_black]{v}[/bright_black]" for k, v in _env_pairs]
            console.print(Panel("\n".join(env_lines), title="Debug Environment", border_style="magenta"))
        raise typer.Exit(1)

    console.print()
    console.print(tracker.render())

    if isinstance(result, Failure):
        _print_failure(result)
        raise typer.Exit(1)

    console.print()
    for line in next_steps(result, package_manager):
        console.print(line)
    console.print()


@app.command()
def check():
    """Check that the tools used to bootstrap apps are installed."""
    show_banner()
    console.print("[bold]Checking for installed tools...[/bold]\n")

    tracker = StepTracker("Check Available Tools")

    tracker.add("git", "Git version control")
    tracker.add("node", "Node.js")
    tracker.add("npm", "npm")
    tracker.add("yarn", "Yarn")
    tracker.add("pnpm", "pnpm")

    git_ok = check_tool_for_tracker("git", tracker)
    node_ok = check_tool_for_tracker("node", tracker)
    pm_ok = [check_tool_for_tracker(pm, tracker) for pm in ("npm", "yarn", "pnpm")]

    console.print(tracker.render())

    if not node_ok or not any(pm_ok):
        console.print("\n[red]Node.js and at least one package manager are required.[/red]")
        raise typer.Exit(1)

    console.print("\n[bold green]nextstart is ready to use![/bold green]")
    if not git_ok:
        console.print("[dim]Tip: Install git so new apps start with a repository[/dim]")


def main():
    app()


if __name__ == "__main__":
    main()
