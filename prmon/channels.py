"""
Notification channels between the poller and its consumer.

Channels are rendezvous style: a send only returns once a receiver has
taken the value, so a slow consumer holds the producer back instead of
letting notifications pile up.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from .models import PullRequestSummary

T = TypeVar("T")


class RendezvousChannel(Generic[T]):
    """Single-slot channel whose sender waits for the receiver."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=1)

    async def send(self, value: T) -> None:
        await self._queue.put(value)
        await self._queue.join()

    async def receive(self) -> T:
        value = await self._queue.get()
        self._queue.task_done()
        return value


@dataclass(frozen=True)
class CollectionsSnapshot:
    """Joint view of both collections taken under the poller lock."""

    assigned: tuple[PullRequestSummary, ...]
    created: tuple[PullRequestSummary, ...]


@dataclass
class PollerNotificationChannels:
    # Fires once per completed poll attempt.
    last_polled: RendezvousChannel[datetime] = field(default_factory=RendezvousChannel)
    # Fires only when at least one collection changed.
    new_data: RendezvousChannel[CollectionsSnapshot] = field(default_factory=RendezvousChannel)


async def until_stopped(awaitable: Awaitable[T], stop: asyncio.Event) -> tuple[bool, T | None]:
    """
    Race `awaitable` against `stop`.

    Returns (True, result) when the awaitable finished first and
    (False, None) when the stop event won; the loser is cancelled.
    """
    task = asyncio.ensure_future(awaitable)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        done, _ = await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for pending in (task, stopper):
            if not pending.done():
                pending.cancel()

    if task in done:
        return True, task.result()
    return False, None
