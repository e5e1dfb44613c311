"""
Pull request summaries as displayed and diffed by prmon.

A summary is a trimmed, immutable view over the two GitHub payloads that
describe a pull request (the issue and the pull itself).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class PullRequestStatus(str, Enum):
    """Observable state of a pull request."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"

    @classmethod
    def parse(cls, value: str | None) -> "PullRequestStatus":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OPEN


def parse_timestamp(value: str | None) -> datetime:
    """Parse a GitHub ISO timestamp, falling back to the epoch."""
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class PullRequestSummary:
    """Simplified pull request holding only what the monitor shows."""

    repository: str  # full_name like "owner/repo"
    id: str
    status: PullRequestStatus
    draft: bool = False
    author: str = ""
    title: str = ""
    reviewer_count: int = 0
    opened_at: datetime | None = None
    url: str = ""

    def version_key(self) -> str:
        # Key = [repository]:[number]:[status]:[draft]
        draft = "Y" if self.draft else "N"
        return f"{self.repository}:{self.id}:{self.status.value}:{draft}"

    @classmethod
    def from_api(cls, issue: dict[str, Any], pull: dict[str, Any]) -> "PullRequestSummary":
        """
        Build a summary from an issue record and its pull request record.

        A pull request is also an issue, but draft state, reviewers and
        merge state only live on the pull payload, so both are required.
        """
        repository = issue.get("repository") or {}
        user = issue.get("user") or {}

        if pull.get("merged_at"):
            status = PullRequestStatus.MERGED
        else:
            status = PullRequestStatus.parse(issue.get("state") or pull.get("state"))

        reviewers = pull.get("requested_reviewers") or []
        teams = pull.get("requested_teams") or []

        return cls(
            repository=repository.get("full_name", ""),
            id=str(issue.get("number", 0)),
            status=status,
            draft=bool(pull.get("draft", False)),
            author=user.get("login", ""),
            title=issue.get("title", ""),
            reviewer_count=len(reviewers) + len(teams),
            opened_at=parse_timestamp(issue.get("created_at")),
            url=pull.get("html_url") or issue.get("html_url", ""),
        )
