from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.lifeline.infra.store.changes import ChangeEvent, ChangeFeed, ChangeType


Row = Dict[str, Any]


class StoreError(Exception):
    """Raised when the backend rejects or cannot complete a call."""


def plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class TableStore(ABC):
    """Backend collaborator: rows in named tables plus a change feed.

    Implementations publish a :class:`ChangeEvent` for every mutation they
    commit so that list views subscribed to the table can stay current.
    """

    def __init__(self, change_feed: Optional[ChangeFeed] = None) -> None:
        self.change_feed = change_feed or ChangeFeed()

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        columns: Optional[Sequence[str]] = None,
    ) -> List[Row]:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        raise NotImplementedError

    @abstractmethod
    async def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Optional[Row]:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release connections held by the store."""

    async def _publish(
        self,
        table: str,
        change_type: ChangeType,
        record: Optional[Row] = None,
        old_record: Optional[Row] = None,
    ) -> None:
        await self.change_feed.publish(
            ChangeEvent(table=table, type=change_type, record=record, old_record=old_record)
        )
