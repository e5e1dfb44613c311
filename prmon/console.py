"""
Plain console output: the headless render target and one-shot listing.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.console import Console
from rich.table import Table

from .coordinator import RenderState
from .models import PullRequestSummary
from .rows import PULL_REQUEST_COLUMNS, STATUS_TIMESTAMP_FORMAT, row_cells


def pull_request_table(title: str, pull_requests: Sequence[PullRequestSummary]) -> Table:
    table = Table(title=title, title_justify="left", show_lines=False)
    for column in PULL_REQUEST_COLUMNS:
        table.add_column(column, justify="center")
    for pr in pull_requests:
        table.add_row(*row_cells(pr))
    return table


class ConsoleSurface:
    """Render target printing to a rich Console, used by `watch --headless`."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.stopped = False

    def queue_update(self, render_fn: Callable[[], None]) -> None:
        # Output is appended, so running inline is the whole redraw.
        render_fn()

    def apply_state(self, state: RenderState) -> None:
        if state.last_sync is not None:
            stamp = state.last_sync.astimezone().strftime(STATUS_TIMESTAMP_FORMAT)
            self.console.print(f"[dim]Synchronised at {stamp}[/dim]")
        if state.assigned is not None:
            self.console.print(pull_request_table("Assigned Pull Requests", state.assigned))
        if state.created is not None:
            self.console.print(pull_request_table("Created Pull Requests", state.created))

    def stop(self) -> None:
        self.stopped = True
