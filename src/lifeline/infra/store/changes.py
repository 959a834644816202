from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional
from uuid import uuid4


logger = logging.getLogger("lifeline.changes")


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_EVENTS = "*"


@dataclass
class ChangeEvent:
    """A committed row change on a backend table.

    ``record`` carries the row after the change (absent for deletes) and
    ``old_record`` the row before it when the store knows it.
    """

    table: str
    type: ChangeType
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    @property
    def row_id(self) -> Optional[str]:
        for row in (self.record, self.old_record):
            if row and row.get("id") is not None:
                return str(row["id"])
        return None


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    """Handle returned by :meth:`ChangeFeed.subscribe`.

    Each subscription delivers its events in publish order from its own
    worker task, so a slow handler only delays itself.
    """

    def __init__(self, feed: "ChangeFeed", channel: str, table: str, event: str, handler: ChangeHandler) -> None:
        self.id = str(uuid4())
        self.channel = channel
        self.table = table
        self.event = event
        self.handler = handler
        self._feed = feed
        self._pending: Deque[ChangeEvent] = deque()
        self._worker: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._feed.is_subscribed(self)

    @property
    def worker(self) -> Optional[asyncio.Task]:
        return self._worker

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        return self.event == ALL_EVENTS or self.event == change.type.value

    def unsubscribe(self) -> None:
        self._feed.unsubscribe(self)
        self._pending.clear()

    def deliver(self, change: ChangeEvent) -> None:
        self._pending.append(change)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain_pending())

    async def _drain_pending(self) -> None:
        while self._pending and self.active:
            change = self._pending.popleft()
            try:
                await self.handler(change)
            except Exception:
                logger.exception(
                    "Change handler on channel %s failed for %s %s",
                    self.channel,
                    change.type.value,
                    change.table,
                )


class ChangeFeed:
    """In-process fan-out of row changes to subscribed handlers.

    Table stores publish here after every committed mutation they perform.
    Publishing only queues the event; handlers run later on their
    subscription's worker task, and a failing handler is logged without
    reaching the mutation that triggered it.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, Subscription] = {}

    def subscribe(
        self,
        table: str,
        handler: ChangeHandler,
        *,
        event: str = ALL_EVENTS,
        channel: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription(self, channel or f"{table}-updates", table, event.upper(), handler)
        self._subscriptions[subscription.id] = subscription
        logger.debug("Subscribed %s to %s (%s)", subscription.channel, table, subscription.event)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug("Removed channel %s", subscription.channel)

    def is_subscribed(self, subscription: Subscription) -> bool:
        return subscription.id in self._subscriptions

    def subscriptions(self, table: Optional[str] = None) -> List[Subscription]:
        return [s for s in self._subscriptions.values() if table is None or s.table == table]

    async def publish(self, change: ChangeEvent) -> None:
        for subscription in self._subscriptions.values():
            if subscription.matches(change):
                subscription.deliver(change)

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""

        while True:
            workers = [
                s.worker for s in self._subscriptions.values() if s.worker is not None and not s.worker.done()
            ]
            if not workers:
                return
            await asyncio.gather(*workers)
