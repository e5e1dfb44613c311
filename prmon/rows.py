"""
Display formatting for pull request rows, shared by the TUI and the
console output.
"""

from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text

from .models import PullRequestStatus, PullRequestSummary

PULL_REQUEST_COLUMNS = ("Repository", "ID", "Author", "Title", "Reviewers", "Status", "Age")

STATUS_STYLES = {
    PullRequestStatus.OPEN: "bold green",
    PullRequestStatus.MERGED: "bold magenta",
    PullRequestStatus.CLOSED: "bold red",
}

# (max age in hours, style) - traffic light on how fresh a pull request is
AGE_STYLES = (
    (1, "bold green"),
    (4, "bold blue"),
    (8, "bold dark_orange"),
)
STALE_AGE_STYLE = "bold red"

STATUS_FORMAT = (
    "Signed in as [b]{username}[/b]. Polling at [b]{interval}[/b] minute intervals. "
    "(Last synchronised at [b]{last_sync}[/b])"
)
STATUS_TIMESTAMP_FORMAT = "%H:%M:%S"

_DURATION_UNITS = (
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def pretty_duration(seconds: int, max_units: int = 3) -> str:
    """Human duration like '2 days 3 hours 5 minutes', never below seconds."""
    seconds = max(0, int(seconds))
    parts = []
    for name, size in _DURATION_UNITS:
        value, seconds = divmod(seconds, size)
        if value:
            parts.append(f"{value} {name}{'s' if value != 1 else ''}")
        if len(parts) == max_units:
            break
    return " ".join(parts) or "0 seconds"


def age_style(age_seconds: float) -> str:
    hours = age_seconds / 3600
    for limit, style in AGE_STYLES:
        if hours <= limit:
            return style
    return STALE_AGE_STYLE


def row_cells(pr: PullRequestSummary, now: datetime | None = None) -> list[Text]:
    """Cells for one pull request, in PULL_REQUEST_COLUMNS order."""
    if pr.draft:
        # Drafts are just dimmed, with no variable styling
        values = [pr.repository, pr.id, pr.author, pr.title, "-", "draft", "-"]
        return [Text(value, style="dim", justify="center") for value in values]

    now = now or datetime.now(timezone.utc)
    age = (now - pr.opened_at).total_seconds() if pr.opened_at else 0.0

    reviewer_style = "bold green" if pr.reviewer_count > 0 else "bold red"
    return [
        Text(pr.repository, justify="center"),
        Text(pr.id, justify="center"),
        Text(pr.author, justify="center"),
        Text(pr.title, justify="center"),
        Text(str(pr.reviewer_count), style=reviewer_style, justify="center"),
        Text(pr.status.value, style=STATUS_STYLES.get(pr.status, "bold"), justify="center"),
        Text(pretty_duration(int(age)), style=age_style(age), justify="center"),
    ]


def status_line(username: str, interval_minutes: int, last_sync: datetime) -> str:
    return STATUS_FORMAT.format(
        username=username,
        interval=interval_minutes,
        last_sync=last_sync.astimezone().strftime(STATUS_TIMESTAMP_FORMAT),
    )
