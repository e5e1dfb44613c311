"""
prmon CLI - Watch your GitHub pull requests from the terminal.

Commands:
    init      - Write a sample prmon.yml in the current directory
    watch     - Poll GitHub and show changes (TUI, or --headless)
    list      - Fetch once and print assigned/created pull requests
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import click
from dotenv import load_dotenv
from loguru import logger

from . import __version__
from .config import CONFIG_FILENAME, PrmonConfig, ensure_prmon_dir
from .console import ConsoleSurface
from .coordinator import RenderState, run_monitor
from .github import GitHubAPIError, GitHubClient
from .models import PullRequestSummary
from .poller import Poller, fetch_pull_requests

# Load .env file from current directory
load_dotenv()


SAMPLE_CONFIG = """\
# prmon configuration

github:
  # token: ghp_...        # Falls back to GITHUB_TOKEN, then GH_TOKEN
  api_base: https://api.github.com

poll:
  interval_minutes: 5       # Time between polls
  debug_interval_minutes: 1 # Used with --debug
  comparison: unordered     # unordered (default) or ordered
  halt_on_error: true       # false: log failed polls and keep polling
"""


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward Loguru sinks."""
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(debug: bool = False, console: bool = False) -> Path:
    """
    Route stdlib logging into loguru.

    Always logs to ~/.prmon/prmon.log; stderr is only used when the
    terminal isn't owned by the TUI.
    """
    log_file = ensure_prmon_dir() / "prmon.log"
    level = "DEBUG" if debug else "INFO"

    # Remove default loguru handler
    logger.remove()

    if console:
        logger.add(sys.stderr, level=level, colorize=True, format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>")

    logger.add(str(log_file), level="DEBUG", rotation="10 MB", retention="1 week", format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}")

    # Intercept standard logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Keep HTTP internals quiet
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log_file


def _load_config(config_path: str | None) -> PrmonConfig:
    try:
        if config_path:
            return PrmonConfig.load_file(Path(config_path))
        return PrmonConfig.load(Path.cwd())
    except ValueError as e:
        raise click.ClickException(str(e))


def _client(config: PrmonConfig, token: str | None) -> GitHubClient:
    token = token or config.github.resolve_token()
    if not token:
        raise click.ClickException(
            "No GitHub token found. Pass --token or set GITHUB_TOKEN / GH_TOKEN."
        )
    return GitHubClient(token=token, api_base=config.github.api_base)


def _summary_to_dict(pr: PullRequestSummary) -> dict:
    data = asdict(pr)
    data["status"] = pr.status.value
    data["opened_at"] = pr.opened_at.isoformat() if pr.opened_at else None
    return data


@click.group()
@click.version_option(version=__version__)
def main():
    """prmon - Watch the GitHub pull requests assigned to and created by you."""
    pass


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Write a sample prmon.yml in the current directory."""
    config_path = Path.cwd() / CONFIG_FILENAME
    if config_path.exists() and not force:
        click.echo(f"  Skipped: {config_path} (already exists)")
        return
    config_path.write_text(SAMPLE_CONFIG)
    click.echo(f"  Created: {config_path}")


@main.command()
@click.option("--token", default=None, help="GitHub personal access token")
@click.option("--duration", type=click.IntRange(min=1), default=None,
              help="Minutes to wait between polls (default from prmon.yml, else 5)")
@click.option("--debug", is_flag=True, help="Poll more frequently and log at DEBUG")
@click.option("--headless", is_flag=True, help="Print changes to the console instead of the TUI")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"Path to {CONFIG_FILENAME}")
def watch(
    token: str | None,
    duration: int | None,
    debug: bool,
    headless: bool,
    config_path: str | None,
):
    """Poll GitHub and show pull requests as they change."""
    log_file = setup_logging(debug=debug, console=headless)
    config = _load_config(config_path)
    client = _client(config, token)

    interval_minutes = duration or config.poll.interval_minutes
    if debug:
        # Debug is "don't wait as much", so any errors show up sooner
        interval_minutes = config.poll.debug_interval_minutes
    interval = float(interval_minutes * 60)

    stop = asyncio.Event()
    try:
        poller = Poller.create(
            client,
            stop,
            policy=config.poll.comparison,
            halt_on_error=config.poll.halt_on_error,
        )
    except GitHubAPIError as e:
        raise click.ClickException(str(e))

    logger.info("Polling every {} minute(s) as {}", interval_minutes, poller.username)

    if headless:
        surface = ConsoleSurface()
        snapshot = poller.snapshot()
        surface.apply_state(RenderState(
            assigned=snapshot.assigned,
            created=snapshot.created,
            last_sync=poller.last_polled,
        ))
        try:
            asyncio.run(run_monitor(poller, surface, interval))
        except KeyboardInterrupt:
            click.echo("Stopped.")
        except GitHubAPIError as e:
            raise click.ClickException(str(e))
        return

    from .tui import PullRequestMonitor

    app = PullRequestMonitor(poller, interval_minutes, interval)
    app.run()
    if app.return_code:
        click.echo(f"See {log_file} for details.", err=True)
        sys.exit(app.return_code)


@main.command(name="list")
@click.option("--token", default=None, help="GitHub personal access token")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help=f"Path to {CONFIG_FILENAME}")
def list_command(token: str | None, as_json: bool, config_path: str | None):
    """Fetch once and print assigned and created pull requests."""
    setup_logging(console=not as_json)
    config = _load_config(config_path)
    client = _client(config, token)

    try:
        assigned, created = fetch_pull_requests(client)
    except GitHubAPIError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps({
            "assigned": [_summary_to_dict(pr) for pr in assigned],
            "created": [_summary_to_dict(pr) for pr in created],
        }, indent=2))
        return

    ConsoleSurface().apply_state(RenderState(assigned=tuple(assigned), created=tuple(created)))


if __name__ == "__main__":
    main()
