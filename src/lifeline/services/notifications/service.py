from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field


logger = logging.getLogger("lifeline.notifications")


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """A user-facing toast message."""

    variant: NotificationVariant = NotificationVariant.DEFAULT
    title: str
    description: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


NotificationSink = Callable[[Notification], Awaitable[None]]


class Notifier:
    """Collects the notifications raised by one page and forwards them.

    Every notification is kept in ``history`` so HTTP handlers can report
    the latest one, and is also handed to ``sink`` when one is attached
    (the WebSocket page forwards them to the browser).
    """

    def __init__(self, sink: Optional[NotificationSink] = None) -> None:
        self.history: List[Notification] = []
        self._sink = sink

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    async def notify(self, notification: Notification) -> None:
        self.history.append(notification)
        if notification.variant == NotificationVariant.DESTRUCTIVE:
            logger.warning("%s: %s", notification.title, notification.description)
        else:
            logger.info("%s: %s", notification.title, notification.description)
        if self._sink is not None:
            await self._sink(notification)

    async def success(self, description: str) -> None:
        await self.notify(Notification(title="Success", description=description))

    async def error(self, description: str) -> None:
        await self.notify(
            Notification(variant=NotificationVariant.DESTRUCTIVE, title="Error", description=description)
        )
