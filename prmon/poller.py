"""
Regular polling of GitHub for the current user's pull requests.

The Poller keeps two collections (assigned and created) and reports over
PollerNotificationChannels:

- last_polled: once per completed poll attempt
- new_data: only when either collection changed, carrying a snapshot

Both collections are updated under one lock so the pair is always seen
in a consistent state. The lock is released before new_data is sent.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from .channels import CollectionsSnapshot, PollerNotificationChannels, until_stopped
from .changes import ComparisonPolicy
from .collection import PullRequestCollection
from .github import ASSIGNED_FILTER, CREATED_FILTER, GitHubAPIError, GitHubClient
from .models import PullRequestSummary

logger = logging.getLogger(__name__)


class Poller:
    """Polls GitHub and tracks assigned/created pull requests."""

    def __init__(
        self,
        client: GitHubClient,
        stop: asyncio.Event,
        username: str,
        assigned: PullRequestCollection,
        created: PullRequestCollection,
        halt_on_error: bool = True,
    ):
        self.client = client
        self.stop = stop
        self.username = username
        self.assigned = assigned
        self.created = created
        self.halt_on_error = halt_on_error
        self.last_polled = datetime.now(timezone.utc)
        self._lock = asyncio.Lock()

    @classmethod
    def create(
        cls,
        client: GitHubClient,
        stop: asyncio.Event,
        policy: ComparisonPolicy | str | None = None,
        halt_on_error: bool = True,
    ) -> "Poller":
        """
        Authenticate and make the initial (blocking) fetch.

        The returned Poller is fully populated but doesn't poll until
        `poll` is awaited.
        """
        username = client.get_authenticated_user()
        logger.info("Authenticated as %s", username)

        assigned, created = fetch_pull_requests(client)
        return cls(
            client=client,
            stop=stop,
            username=username,
            assigned=PullRequestCollection(assigned, policy),
            created=PullRequestCollection(created, policy),
            halt_on_error=halt_on_error,
        )

    def snapshot(self) -> CollectionsSnapshot:
        return CollectionsSnapshot(assigned=self.assigned.items, created=self.created.items)

    async def poll(self, channels: PollerNotificationChannels, interval: float) -> None:
        """
        Poll every `interval` seconds until the stop event is set.

        A fetch in flight is never interrupted; the stop event is only
        observed while waiting on the timer or on a channel.
        """
        while not self.stop.is_set():
            elapsed, _ = await until_stopped(asyncio.sleep(interval), self.stop)
            if not elapsed:
                break

            try:
                await self.tick(channels)
            except GitHubAPIError as e:
                if self.halt_on_error:
                    raise
                logger.warning("Poll failed, waiting for next tick: %s", e)

        logger.debug("Polling stopped")

    async def tick(self, channels: PollerNotificationChannels) -> bool:
        """
        Run one fetch-compare-notify cycle.

        Returns True when new data was published. A failed fetch raises
        before anything is applied or sent.
        """
        assigned, created = await asyncio.to_thread(fetch_pull_requests, self.client)
        self.last_polled = datetime.now(timezone.utc)

        sent, _ = await until_stopped(channels.last_polled.send(self.last_polled), self.stop)
        if not sent:
            return False

        async with self._lock:
            assigned_changed = self.assigned.update(assigned)
            created_changed = self.created.update(created)
            snapshot = self.snapshot() if assigned_changed or created_changed else None

        if snapshot is None:
            logger.debug("No changes (%d assigned, %d created)", len(assigned), len(created))
            return False

        logger.info(
            "Pull requests changed (assigned: %s, created: %s)",
            assigned_changed,
            created_changed,
        )
        sent, _ = await until_stopped(channels.new_data.send(snapshot), self.stop)
        return sent


def fetch_pull_requests(
    client: GitHubClient,
) -> tuple[list[PullRequestSummary], list[PullRequestSummary]]:
    """Fetch both the assigned and created sets; any failure aborts both."""
    assigned = client.list_pull_requests(ASSIGNED_FILTER)
    created = client.list_pull_requests(CREATED_FILTER)
    return assigned, created
