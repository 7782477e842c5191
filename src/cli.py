"""CLI interface for hexo-buddy."""

import asyncio
import contextlib
import json
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from hexo_buddy.config import load_config, merge_cli_overrides
from hexo_buddy.errors import (
    HexoBuddyError,
    WorkspaceNotFoundError,
    load_report,
    save_report,
)
from hexo_buddy.logging_setup import configure_logging
from hexo_buddy.progress import ProgressEvent
from hexo_buddy.site_config import SUPPORTED_LANGUAGES
from hexo_buddy.workspace import Workspace

app = typer.Typer(
    name="hexo-buddy",
    help="Manage posts, site config, themes and deployment of a Hexo site.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Show or edit _config.yml.", no_args_is_help=True)
theme_app = typer.Typer(help="Switch the active theme.", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(theme_app, name="theme")

console = Console()
_stderr_console = Console(stderr=True)


@contextlib.contextmanager
def _progress_context(quiet: bool = False):
    """Yield a Progress context or a no-op depending on quiet flag."""
    if quiet:
        yield None
    else:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            yield progress


def _workspace(ctx: typer.Context) -> Workspace:
    return ctx.obj


def _require_root(workspace: Workspace) -> Path:
    if workspace.root is None:
        _exit_with_error(WorkspaceNotFoundError("workspace not found"))
    return workspace.root


def _exit_with_error(exc: Exception) -> NoReturn:
    _stderr_console.print(f"[red]Error:[/red] {exc}", highlight=False)
    raise typer.Exit(1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from hexo_buddy import __version__

        console.print(f"hexo-buddy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    root: Annotated[
        Optional[Path],
        typer.Option(
            "--root",
            "-r",
            help="Hexo project root. Defaults to the nearest directory with _config.yml.",
        ),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", help="Path to a .hexo-buddy.toml settings file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Hexo Buddy - a companion dashboard for Hexo sites."""
    configure_logging(verbose=verbose, console=_stderr_console)
    settings = merge_cli_overrides(load_config(config_file), root=root)
    ctx.obj = Workspace.from_config(settings)
    ctx.meta["settings"] = settings


@app.command()
def status(ctx: typer.Context) -> None:
    """Show post count, active theme and the last deployment."""
    workspace = _workspace(ctx)
    root = _require_root(workspace)
    try:
        posts = workspace.posts.list_posts()
        theme = workspace.themes.current_theme()
    except HexoBuddyError as exc:
        _exit_with_error(exc)

    drafts = sum(1 for p in posts if p.is_draft)
    console.print(f"[bold]Project:[/bold] {root}")
    console.print(f"[bold]Posts:[/bold] {len(posts)} ({drafts} draft)")
    console.print(f"[bold]Theme:[/bold] {theme}")

    report = load_report(root)
    if report is None:
        console.print("[bold]Last deploy:[/bold] never")
    else:
        outcome = "[green]succeeded[/green]" if report.success else "[red]failed[/red]"
        when = (report.finished_at or report.started_at).strftime("%Y-%m-%d %H:%M")
        console.print(f"[bold]Last deploy:[/bold] {when} {outcome}")


@app.command(name="posts")
def posts_cmd(
    ctx: typer.Context,
    drafts: Annotated[
        bool,
        typer.Option("--drafts/--no-drafts", help="Include posts marked as draft."),
    ] = True,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the listing as JSON."),
    ] = False,
) -> None:
    """List posts, newest first."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    posts = workspace.posts.list_posts()
    if not drafts:
        posts = [p for p in posts if not p.is_draft]

    if as_json:
        payload = [
            {
                "title": p.title,
                "date": p.date,
                "filePath": str(p.file_path),
                "isDraft": p.is_draft,
            }
            for p in posts
        ]
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if not posts:
        console.print("[yellow]No posts found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("Title")
    table.add_column("File")
    for post in posts:
        title = f"{post.title} [dim](draft)[/dim]" if post.is_draft else post.title
        table.add_row(post.date, title, post.file_path.name)
    console.print(table)


@app.command()
def new(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Title of the new post.")],
    local: Annotated[
        bool,
        typer.Option("--local", help="Write the file directly instead of running 'hexo new'."),
    ] = False,
    layout: Annotated[
        Optional[str],
        typer.Option("--layout", help="Hexo layout passed to 'hexo new'."),
    ] = None,
) -> None:
    """Create a new post."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    try:
        if local:
            path = workspace.posts.create_post(title)
            console.print(f"[green]Created[/green] {path}")
            return
        result = asyncio.run(workspace.runner.new_post(title, layout=layout))
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    if result.stdout.strip():
        console.print(result.stdout.strip(), highlight=False)
    console.print(f"[green]Created post:[/green] {title}")


@app.command()
def delete(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Post file to delete.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation."),
    ] = False,
) -> None:
    """Delete a post file."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    if not yes and not typer.confirm(f"Delete {path}?"):
        console.print("Cancelled.")
        raise typer.Exit(0)
    try:
        workspace.posts.delete_post(path)
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    console.print(f"[green]Deleted[/green] {path}")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the site configuration."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    try:
        data = workspace.config.read()
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    if data is None:
        console.print(f"[yellow]No {workspace.config.path.name} found.[/yellow]")
        return
    typer.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)


def _parse_assignment(raw: str) -> tuple[str, object]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise typer.BadParameter(f"Expected KEY=VALUE, got {raw!r}")
    try:
        parsed = yaml.safe_load(value) if value else ""
    except yaml.YAMLError:
        parsed = value
    return key.strip(), parsed


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    assignments: Annotated[
        list[str],
        typer.Argument(help="One or more KEY=VALUE pairs, values parsed as YAML."),
    ],
) -> None:
    """Merge values into the site configuration."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    update = dict(_parse_assignment(a) for a in assignments)
    try:
        workspace.config.write(update)
    except HexoBuddyError as exc:
        _stderr_console.print("[red]Failed to save configuration.[/red]")
        _exit_with_error(exc)
    console.print(f"[green]Configuration saved:[/green] {', '.join(update)}")


@app.command()
def themes(ctx: typer.Context) -> None:
    """List installed themes."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    try:
        current = workspace.themes.current_theme()
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    installed = workspace.themes.installed_themes()
    if not installed:
        console.print("[yellow]No themes installed.[/yellow]")
        return
    for name in installed:
        marker = " [green](current)[/green]" if name == current else ""
        console.print(f"  {name}{marker}")


@theme_app.command("use")
def theme_use(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Theme directory name.")],
) -> None:
    """Make NAME the active theme."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    try:
        installed = workspace.themes.switch_theme(name)
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    if not installed:
        console.print(f"[yellow]Warning:[/yellow] theme {name!r} is not installed.")
    console.print(f"[green]Theme set to[/green] {name}")


@app.command()
def language(
    ctx: typer.Context,
    lang: Annotated[
        str,
        typer.Argument(help=f"One of: {', '.join(SUPPORTED_LANGUAGES)}."),
    ],
) -> None:
    """Set the dashboard language stored in _config.yml."""
    workspace = _workspace(ctx)
    _require_root(workspace)
    try:
        workspace.config.set_language(lang)
    except HexoBuddyError as exc:
        _exit_with_error(exc)
    console.print(f"[green]Language set to[/green] {lang}")


@app.command()
def deploy(
    ctx: typer.Context,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Hide the spinner."),
    ] = False,
) -> None:
    """Generate the site and publish it."""
    workspace = _workspace(ctx)
    root = _require_root(workspace)
    settings = ctx.meta["settings"]

    with _progress_context(quiet=quiet) as progress:
        task_id = progress.add_task("Starting deployment...", total=None) if progress else None

        def show(event: ProgressEvent) -> None:
            if progress is not None and task_id is not None:
                progress.update(task_id, description=event.message)

        unsubscribe = workspace.channel.subscribe(show)
        try:
            report = asyncio.run(workspace.pipeline.run())
        finally:
            unsubscribe()

    for entry in workspace.log.entries():
        console.print(entry, highlight=False, markup=False)

    if settings.deploy.save_report:
        try:
            save_report(report, root)
        except OSError as exc:
            _stderr_console.print(f"[yellow]Could not save deploy report:[/yellow] {exc}")

    if not report.success:
        raise typer.Exit(1)
