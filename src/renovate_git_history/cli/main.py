"""Main CLI interface for Renovate git history."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from renovate_git_history import action
from renovate_git_history.config import DEFAULT_API_URL, Settings
from renovate_git_history.core.history_renderer import HistoryRenderer
from renovate_git_history.core.table_parser import parse_table
from renovate_git_history.exceptions import GitHistoryError

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route package logs through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_body(body_file: str) -> str:
    if body_file == "-":
        return sys.stdin.read()
    return Path(body_file).read_text(encoding="utf-8")


@click.group()
@click.version_option(package_name="renovate-git-history")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
@click.option(
    "--git-timeout",
    type=click.FloatRange(min=0, min_open=True),
    envvar="GIT_HISTORY_TIMEOUT",
    default=None,
    help="Seconds before a git command is killed",
)
@click.option(
    "--temp-root",
    type=click.Path(file_okay=False, exists=True),
    default=None,
    help="Directory to create temporary clones in",
)
@click.pass_context
def main(ctx, verbose: bool, git_timeout: Optional[float], temp_root: Optional[str]):
    """Renovate git history - commit logs for digest updates."""
    setup_logging(verbose)
    ctx.obj = Settings(
        git_timeout=git_timeout,
        temp_root=Path(temp_root) if temp_root else None,
    )


@main.command()
@click.option(
    "--event-path",
    type=click.Path(dir_okay=False),
    envvar="GITHUB_EVENT_PATH",
    help="Path to the GitHub event payload",
)
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub token for commenting")
@click.option(
    "--api-url",
    envvar="GITHUB_API_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="GitHub API base URL",
)
@click.option("--dry-run", is_flag=True, help="Print the comment instead of posting")
@click.pass_obj
def run(
    settings: Settings,
    event_path: Optional[str],
    token: Optional[str],
    api_url: str,
    dry_run: bool,
):
    """Comment commit histories on the pull request in the event payload."""
    settings = settings.model_copy(
        update={
            "event_path": Path(event_path) if event_path else None,
            "github_token": token,
            "api_url": api_url,
        }
    )

    try:
        comment = action.run(settings, dry_run=dry_run)
    except GitHistoryError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    if comment is None:
        console.print("[yellow]Nothing to comment on.[/yellow]")
    elif dry_run:
        click.echo(comment)


@main.command()
@click.argument("body_file", type=click.Path(dir_okay=False, allow_dash=True))
@click.pass_obj
def preview(settings: Settings, body_file: str):
    """Print the comment that would be posted for a PR body."""
    body = _read_body(body_file)

    comment = action.build_comment(body, HistoryRenderer.from_settings(settings))
    if comment is None:
        console.print("[yellow]Nothing to render.[/yellow]")
        return

    click.echo(comment)


@main.command()
@click.argument("body_file", type=click.Path(dir_okay=False, allow_dash=True))
def parse(body_file: str):
    """Show the digest updates found in a PR body."""
    records = parse_table(_read_body(body_file))
    if records is None:
        console.print("[yellow]No update table found.[/yellow]")
        return
    if not records:
        console.print("[yellow]No digest updates found.[/yellow]")
        return

    table = Table(title="Digest updates")
    table.add_column("Package", style="cyan")
    table.add_column("Old", style="red")
    table.add_column("New", style="green")
    for record in records:
        table.add_row(record.reference, record.old_hash, record.new_hash)
    console.print(table)


if __name__ == "__main__":
    main()
