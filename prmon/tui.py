"""
Textual TUI showing the assigned and created pull requests.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Callable, Sequence
from datetime import datetime

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Static

from .coordinator import RenderState, run_monitor
from .models import PullRequestSummary
from .poller import Poller
from .rows import PULL_REQUEST_COLUMNS, row_cells, status_line

logger = logging.getLogger(__name__)


class PullRequestTable(DataTable):
    """DataTable that remembers the URL behind each row."""

    def __init__(self, title: str, **kwargs):
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)
        self.border_title = title
        self.urls: list[str] = []

    def populate(self, pull_requests: Sequence[PullRequestSummary]) -> None:
        """Replace all rows. Redrawing is left to the app."""
        if not self.columns:
            self.add_columns(*PULL_REQUEST_COLUMNS)
        self.clear()
        self.urls = []
        for pr in pull_requests:
            self.add_row(*row_cells(pr))
            self.urls.append(pr.url)

    def url_at(self, row: int) -> str | None:
        if row < 0 or row >= len(self.urls):
            return None
        return self.urls[row] or None


class PullRequestMonitor(App):
    TITLE = "prmon"
    BINDINGS = [
        Binding("o", "open_selected", "Open in browser"),
        Binding("q", "quit", "Quit"),
    ]

    CSS = """
    PullRequestTable {
      height: 1fr;
      border: solid $surface;
    }
    #status_bar {
      height: 1;
      content-align: center middle;
    }
    """

    def __init__(self, poller: Poller, interval_minutes: int, interval: float | None = None):
        super().__init__()
        self.poller = poller
        self.interval_minutes = interval_minutes
        self.interval = interval if interval is not None else interval_minutes * 60.0
        self._monitor: asyncio.Task | None = None
        self._stopping = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield PullRequestTable("Assigned Pull Requests", id="assigned")
            yield PullRequestTable("Created Pull Requests", id="created")
        yield Static("", id="status_bar")
        yield Footer()

    def on_mount(self) -> None:
        snapshot = self.poller.snapshot()
        self.apply_state(RenderState(
            assigned=snapshot.assigned,
            created=snapshot.created,
            last_sync=self.poller.last_polled,
        ))
        self._monitor = asyncio.create_task(run_monitor(self.poller, self, self.interval))
        self._monitor.add_done_callback(self._monitor_done)

    def on_unmount(self) -> None:
        self._stopping = True
        self.poller.stop.set()

    def _monitor_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.exit(return_code=1, message=f"Polling failed: {exc}")

    # RenderTarget

    def queue_update(self, render_fn: Callable[[], None]) -> None:
        self.call_later(self._run_render_fn, render_fn)

    def _run_render_fn(self, render_fn: Callable[[], None]) -> None:
        render_fn()
        self.refresh()

    def apply_state(self, state: RenderState) -> None:
        if state.assigned is not None:
            self.query_one("#assigned", PullRequestTable).populate(state.assigned)
        if state.created is not None:
            self.query_one("#created", PullRequestTable).populate(state.created)
        if state.last_sync is not None:
            self.set_last_sync(state.last_sync)

    def set_last_sync(self, last_sync: datetime) -> None:
        self.query_one("#status_bar", Static).update(
            status_line(self.poller.username, self.interval_minutes, last_sync)
        )

    def stop(self) -> None:
        if self._stopping:
            return
        self._stopping = True
        self.exit()

    # Selection

    def action_open_selected(self) -> None:
        table = self.focused
        if not isinstance(table, PullRequestTable):
            return
        url = table.url_at(table.cursor_row)
        if url:
            logger.debug("Opening %s", url)
            webbrowser.open(url)
