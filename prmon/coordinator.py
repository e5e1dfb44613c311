"""
Glue between the Poller's notifications and a rendering surface.

The Coordinator turns each notification into a partial RenderState and
hands it to the render target as a single queued update, so the target
only redraws once per notification and is only ever touched from its
own update queue.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Callable, Protocol

from .channels import CollectionsSnapshot, PollerNotificationChannels
from .models import PullRequestSummary
from .poller import Poller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderState:
    """
    Partial update for a render target.

    A field left as None means "leave as is"; an empty tuple is a real
    value and clears the corresponding table.
    """

    assigned: tuple[PullRequestSummary, ...] | None = None
    created: tuple[PullRequestSummary, ...] | None = None
    last_sync: datetime | None = None


class RenderTarget(Protocol):
    def queue_update(self, render_fn: Callable[[], None]) -> None:
        """Run `render_fn` on the target's own loop, then redraw."""
        ...

    def apply_state(self, state: RenderState) -> None:
        """Apply the populated fields of `state` without redrawing."""
        ...

    def stop(self) -> None:
        ...


class Coordinator:
    """Dispatches poller notifications into a render target."""

    def __init__(
        self,
        target: RenderTarget,
        channels: PollerNotificationChannels,
        stop: asyncio.Event,
    ):
        self.target = target
        self.channels = channels
        self.stop = stop

    def apply(self, state: RenderState) -> None:
        self.target.queue_update(partial(self.target.apply_state, state))

    def on_last_polled(self, timestamp: datetime) -> None:
        self.apply(RenderState(last_sync=timestamp))

    def on_new_data(self, snapshot: CollectionsSnapshot) -> None:
        self.apply(RenderState(assigned=snapshot.assigned, created=snapshot.created))

    async def run(self) -> None:
        """Consume both channels until the stop event is set."""
        # Handlers in the order they must run when both fire together.
        handlers = {
            self.channels.last_polled: self.on_last_polled,
            self.channels.new_data: self.on_new_data,
        }
        receivers = {
            channel: asyncio.ensure_future(channel.receive()) for channel in handlers
        }
        stopper = asyncio.ensure_future(self.stop.wait())

        try:
            while True:
                await asyncio.wait(
                    [*receivers.values(), stopper],
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for channel, handler in handlers.items():
                    receiver = receivers[channel]
                    if receiver.done():
                        handler(receiver.result())
                        receivers[channel] = asyncio.ensure_future(channel.receive())
                if stopper.done():
                    return
        finally:
            for task in (*receivers.values(), stopper):
                task.cancel()


async def run_monitor(poller: Poller, target: RenderTarget, interval: float) -> None:
    """
    Run the poller and a coordinator for `target` until stopped.

    Polling errors propagate once the coordinator has wound down and the
    target has been stopped.
    """
    stop = poller.stop
    channels = PollerNotificationChannels()
    coordinator = Coordinator(target, channels, stop)

    dispatch = asyncio.create_task(coordinator.run())
    # A failed dispatcher would leave the poller parked on a send forever.
    dispatch.add_done_callback(lambda _: stop.set())

    try:
        await poller.poll(channels, interval)
    except Exception:
        logger.exception("Polling failed")
        raise
    finally:
        stop.set()
        await dispatch
        target.stop()
