from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

from click.testing import CliRunner

from prmon.channels import CollectionsSnapshot
from prmon.cli import main
from prmon.github import GitHubAPIError
from prmon.models import PullRequestStatus, PullRequestSummary


def make_pr(number: str) -> PullRequestSummary:
    return PullRequestSummary(repository="owner/repo", id=number, status=PullRequestStatus.OPEN)


def test_cli_help_shows_commands():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "watch" in result.output
    assert "list" in result.output
    assert "init" in result.output


def test_init_writes_sample_config():
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(main, ["init"])
        assert result.exit_code == 0
        assert "comparison: unordered" in Path("prmon.yml").read_text()

        again = runner.invoke(main, ["init"])
        assert "Skipped" in again.output


def test_list_requires_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    runner = CliRunner()

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"):
        result = runner.invoke(main, ["list"])

    assert result.exit_code != 0
    assert "No GitHub token found" in result.output


def test_list_json_output():
    runner = CliRunner()
    fetched = ([make_pr("1")], [make_pr("2"), make_pr("3")])

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"), \
            patch("prmon.cli.fetch_pull_requests", return_value=fetched):
        result = runner.invoke(main, ["list", "--json", "--token", "ghp_test"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [pr["id"] for pr in data["assigned"]] == ["1"]
    assert [pr["id"] for pr in data["created"]] == ["2", "3"]
    assert data["created"][0]["status"] == "open"


def test_list_reports_api_errors():
    runner = CliRunner()

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"), \
            patch("prmon.cli.fetch_pull_requests", side_effect=GitHubAPIError("Bad credentials", 401)):
        result = runner.invoke(main, ["list", "--token", "ghp_test"])

    assert result.exit_code != 0
    assert "Bad credentials" in result.output


def test_watch_reports_initial_fetch_errors():
    runner = CliRunner()

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"), \
            patch("prmon.cli.Poller.create", side_effect=GitHubAPIError("Bad credentials", 401)):
        result = runner.invoke(main, ["watch", "--headless", "--token", "ghp_test"])

    assert result.exit_code != 0
    assert "Bad credentials" in result.output


def test_headless_watch_reports_errors_raised_while_polling():
    runner = CliRunner()
    poller = Mock(username="octocat", last_polled=None)
    poller.snapshot.return_value = CollectionsSnapshot(assigned=(), created=())
    failing = AsyncMock(side_effect=GitHubAPIError("Invalid JSON from /issues: Expecting value", 200))

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"), \
            patch("prmon.cli.Poller.create", return_value=poller), \
            patch("prmon.cli.run_monitor", failing):
        result = runner.invoke(main, ["watch", "--headless", "--token", "ghp_test"])

    assert result.exit_code != 0
    assert "Invalid JSON from /issues" in result.output


def test_watch_rejects_bad_config():
    runner = CliRunner()

    with runner.isolated_filesystem(), patch("prmon.cli.setup_logging"):
        Path("prmon.yml").write_text("poll:\n  comparison: sideways\n")
        result = runner.invoke(main, ["watch", "--token", "ghp_test"])

    assert result.exit_code != 0
    assert "poll.comparison" in result.output
