"""
ghdb CLI - Quick access to repositories and pull requests across many GitHub orgs.

Commands:
    init      - Write a sample config file
    sync      - Fetch a full snapshot of repositories and open PRs
    find      - Browse the cached snapshot interactively
    status    - Show what the cache currently holds
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv

# Load .env file from current directory (GHDB_* variables)
load_dotenv()

from . import __version__
from .config import GhdbConfig, get_cache_file, get_default_config_dir
from .errors import CacheNotFoundError, ConfigError, CorruptCacheError
from .finder import FinderState, Mode
from .github import DEFAULT_TIMEOUT, GitHubClient
from .log import LOG_LEVELS, setup_logging
from .store import SnapshotStore
from .sync import SyncError, SyncOrchestrator
from .tui import run_finder


SAMPLE_CONFIG = """\
# ghdb configuration
#
# Every entry is synced by `ghdb sync`. Repositories are listed for users and
# organizations; open pull requests are searched for users only.

users:
  - name: octocat
    # token: ghp_xxx        # Optional personal access token
    # is_org: false         # Set true for organizations

  # - name: my-company
  #   is_org: true
  #   token: ghp_yyy
  #   url: https://github.example.com/api/v3   # GitHub Enterprise API base
"""


@dataclass
class AppContext:
    cache_dir: Path
    config_path: Path
    log_level: str

    @property
    def cache_file(self) -> Path:
        return get_cache_file(self.cache_dir)

    @property
    def log_file(self) -> Path:
        return self.cache_dir / "ghdb.log"


def _fail(message: str, code: int = 1) -> NoReturn:
    click.echo(f"❌ {message}", err=True)
    sys.exit(code)


def _format_age(timestamp: datetime) -> str:
    seconds = int((datetime.now(timezone.utc) - timestamp).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=get_default_config_dir,
    envvar="GHDB_CACHE_DIR",
    show_default="~/.config/ghdb",
    help="Cache directory",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=lambda: get_default_config_dir() / "config.yml",
    envvar="GHDB_CONFIG",
    show_default="~/.config/ghdb/config.yml",
    help="Config file path",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="warning",
    envvar="GHDB_LOG_LEVEL",
    show_default=True,
    help="Log level",
)
@click.pass_context
def main(ctx: click.Context, cache_dir: Path, config_path: Path, log_level: str):
    """ghdb - Command line TUI for quick access to multiple GitHub orgs."""
    setup_logging(log_level)
    ctx.obj = AppContext(
        cache_dir=cache_dir.expanduser(),
        config_path=config_path.expanduser(),
        log_level=log_level,
    )


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.pass_obj
def init(app: AppContext, force: bool):
    """Write a sample config file."""
    if app.config_path.exists() and not force:
        click.echo(f"  Skipped: {app.config_path} (already exists, use --force)")
        return

    app.config_path.parent.mkdir(parents=True, exist_ok=True)
    app.config_path.write_text(SAMPLE_CONFIG)
    click.echo(f"  Created: {app.config_path}")
    click.echo("\nNext steps:")
    click.echo("  1. Edit the config to list your users and organizations")
    click.echo("  2. Run: ghdb sync")
    click.echo("  3. Run: ghdb find")


@main.command()
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Skip identities that fail instead of aborting (exits 2 if any were skipped)",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Per-request timeout in seconds",
)
@click.pass_obj
def sync(app: AppContext, continue_on_error: bool, timeout: float):
    """Sync all GitHub org, user, and pull request data.

    Every sync is a full re-fetch; the cache is replaced only when the
    fetch finishes.
    """
    try:
        config = GhdbConfig.load(app.config_path)
    except ConfigError as e:
        _fail(str(e))

    if not config.users:
        _fail(f"No users or organizations configured in {app.config_path}")

    click.echo(f"📦 Syncing {len(config.users)} users/orgs...")

    store = SnapshotStore(app.cache_file)
    orchestrator = SyncOrchestrator(store, client_factory=lambda: GitHubClient(timeout=timeout))

    try:
        result = orchestrator.run(config.users, continue_on_error=continue_on_error)
    except SyncError as e:
        click.echo(f"❌ Error: {e}", err=True)
        if getattr(e.cause, "retryable", False):
            click.echo("   This error is transient; try again.", err=True)
        _fail(f"Sync aborted; cache at {app.cache_file} was not updated.")
    except OSError as e:
        _fail(f"Failed to write cache file ({app.cache_file}): {e}")

    snapshot = result.snapshot
    click.echo(
        f"✅ Done: {len(snapshot.repositories)} repositories, "
        f"{len(snapshot.pull_requests)} open pull requests"
    )
    click.echo(f"   Cache: {app.cache_file}")

    if result.skipped:
        click.echo(f"\n⚠️  Skipped {len(result.skipped)} fetch(es); the snapshot is partial:", err=True)
        for skipped in result.skipped:
            click.echo(f"   - {skipped.operation} for {skipped.identity}: {skipped.error}", err=True)
        sys.exit(2)


@main.command()
@click.option(
    "--pull-requests",
    "start_with_prs",
    is_flag=True,
    help="Start with the pull request list instead of repositories",
)
@click.pass_obj
def find(app: AppContext, start_with_prs: bool):
    """Search the cache."""
    store = SnapshotStore(app.cache_file)
    try:
        snapshot = store.load()
    except (CacheNotFoundError, CorruptCacheError) as e:
        _fail(str(e))

    setup_logging(app.log_level, log_file=app.log_file, console=False)

    mode = Mode.PULL_REQUESTS if start_with_prs else Mode.REPOSITORIES
    run_finder(FinderState(snapshot, mode=mode))


@main.command()
@click.pass_obj
def status(app: AppContext):
    """Show what the cache currently holds."""
    store = SnapshotStore(app.cache_file)
    try:
        snapshot = store.load()
    except (CacheNotFoundError, CorruptCacheError) as e:
        _fail(str(e))

    click.echo(f"Cache: {app.cache_file}")
    click.echo(f"  Synced:        {snapshot.timestamp.isoformat()} ({_format_age(snapshot.timestamp)})")
    click.echo(f"  Repositories:  {len(snapshot.repositories)}")
    click.echo(f"  Pull requests: {len(snapshot.pull_requests)}")


if __name__ == "__main__":
    main()
