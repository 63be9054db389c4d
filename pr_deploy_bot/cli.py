"""
Command line entry point for the PR deployment bot.

Commands:
- ``cleanup``: delete preview deployments no open pull request uses
- ``comment``: replace the deployment comment on a pull request

Options not given on the command line are read from the environment
(or a ``.env`` file); see ``pr_deploy_bot.config.settings``.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .comment_sync import sync_comment
from .config.settings import Settings
from .models import DeletionResult
from .reconciler import reconcile
from .utils.exceptions import DeployBotError
from .utils.logger import get_logger, setup_logging

console = Console()

app = typer.Typer(
    name="pr-deploy-bot",
    help="Preview deployment cleanup and pull request comments",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False
)


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log formats."""
    TEXT = "text"
    JSON = "json"


def load_settings(env_file: Optional[Path], log_level: Optional[LogLevel], log_format: Optional[LogFormat],
                  verbose: bool, **overrides) -> Settings:
    settings = Settings.from_env(
        env_file=str(env_file) if env_file else None,
        log_level=LogLevel.DEBUG.value if verbose else (log_level.value if log_level else None),
        log_format=log_format.value if log_format else None,
        **overrides
    )
    setup_logging(
        level=settings.log_level,
        format_type=settings.log_format,
        log_file=settings.log_file,
        context={"repository": settings.repository if settings.repo_name else None}
    )
    return settings


def render_deletions(results: List[DeletionResult], dry_run: bool) -> None:
    if not results:
        console.print("[green]Nothing to clean up[/green]")
        return

    table = Table(title="Planned deletions" if dry_run else "Deleted deployments")
    table.add_column("UID", style="cyan")
    table.add_column("URL")
    table.add_column("State", style="magenta")
    for result in results:
        table.add_row(result.uid, result.url or "-", result.state or "-")
    console.print(table)


def fail(error: DeployBotError) -> None:
    console.print(f"[red]{type(error).__name__}: {escape(error.message)}[/red]")
    get_logger("pr_deploy_bot.cli").debug("Command failed", extra={"error": error.to_dict()})
    raise typer.Exit(code=1)


@app.command()
def cleanup(
    now_token: Optional[str] = typer.Option(None, "--now-token", help="Deployment host API token"),
    github_username: Optional[str] = typer.Option(None, "--gh-username", help="GitHub username"),
    github_token: Optional[str] = typer.Option(None, "--gh-token", help="GitHub token"),
    repo_owner: Optional[str] = typer.Option(None, "--repo-owner", help="Repository owner"),
    repo_name: Optional[str] = typer.Option(None, "--repo-name", help="Repository name"),
    deployment_context: Optional[str] = typer.Option(
        None,
        "--context",
        help="Status context that carries the deployment url"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be deleted"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to a .env file"),
    log_level: Optional[LogLevel] = typer.Option(None, "--log-level", help="Logging level"),
    log_format: Optional[LogFormat] = typer.Option(None, "--log-format", help="Log output format"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Delete preview deployments that no open pull request references."""
    try:
        settings = load_settings(
            env_file, log_level, log_format, verbose,
            now_token=now_token,
            github_username=github_username,
            github_token=github_token,
            repo_owner=repo_owner,
            repo_name=repo_name,
            deployment_context=deployment_context
        )
        results = asyncio.run(reconcile(settings, dry_run=dry_run))
    except DeployBotError as e:
        fail(e)
        return

    render_deletions(results, dry_run)


@app.command()
def comment(
    pr_url: Optional[str] = typer.Option(None, "--pr-url", help="Browser url of the pull request"),
    deployment_url: Optional[str] = typer.Option(None, "--deployment-url", help="Url of the new deployment"),
    message: Optional[str] = typer.Option(None, "--message", help="Text placed before the deployment url"),
    github_username: Optional[str] = typer.Option(None, "--gh-username", help="GitHub username"),
    github_token: Optional[str] = typer.Option(None, "--gh-token", help="GitHub token"),
    repo_owner: Optional[str] = typer.Option(None, "--repo-owner", help="Repository owner"),
    repo_name: Optional[str] = typer.Option(None, "--repo-name", help="Repository name"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to a .env file"),
    log_level: Optional[LogLevel] = typer.Option(None, "--log-level", help="Logging level"),
    log_format: Optional[LogFormat] = typer.Option(None, "--log-format", help="Log output format"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Replace the deployment comment on a pull request."""
    try:
        settings = load_settings(
            env_file, log_level, log_format, verbose,
            pr_url=pr_url,
            deployment_url=deployment_url,
            comment_message=message,
            github_username=github_username,
            github_token=github_token,
            repo_owner=repo_owner,
            repo_name=repo_name
        )
        result = asyncio.run(sync_comment(settings))
    except DeployBotError as e:
        fail(e)
        return

    if result.deleted_comment_urls:
        console.print(f"[yellow]Removed {len(result.deleted_comment_urls)} previous comment(s)[/yellow]")
    console.print(f"[green]Posted {result.comment.html_url or result.comment.url}[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"pr-deploy-bot {__version__}")


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
