import asyncio
from typing import Any, List, Optional, Tuple

import pytest

from src.lifeline.infra.store import registry
from src.lifeline.infra.store.base import StoreError
from src.lifeline.infra.store.changes import ChangeFeed
from src.lifeline.infra.store.inmemory import InMemoryTableStore


class RecordingStore(InMemoryTableStore):
    """In-memory store that records every call and can be told to fail.

    ``hold_next_select`` parks the next select after it has read its rows,
    until the returned event is set, to simulate a slow response.
    """

    def __init__(self) -> None:
        super().__init__(ChangeFeed())
        self.calls: List[Tuple[str, str]] = []
        self.fail_selects = False
        self.fail_writes = False
        self._held: List[asyncio.Event] = []

    def hold_next_select(self) -> asyncio.Event:
        gate = asyncio.Event()
        self._held.append(gate)
        return gate

    def count(self, operation: str, table: Optional[str] = None) -> int:
        return len([c for c in self.calls if c[0] == operation and (table is None or c[1] == table)])

    async def select(self, table: str, **kwargs: Any):
        self.calls.append(("select", table))
        if self.fail_selects:
            raise StoreError("select failed")
        rows = await super().select(table, **kwargs)
        if self._held:
            await self._held.pop(0).wait()
        return rows

    async def insert(self, table, rows):
        self.calls.append(("insert", table))
        if self.fail_writes:
            raise StoreError("insert failed")
        return await super().insert(table, rows)

    async def update(self, table, row_id, values):
        self.calls.append(("update", table))
        if self.fail_writes:
            raise StoreError("update failed")
        return await super().update(table, row_id, values)

    async def delete(self, table, row_id):
        self.calls.append(("delete", table))
        if self.fail_writes:
            raise StoreError("delete failed")
        return await super().delete(table, row_id)


@pytest.fixture(autouse=True)
def store():
    """Give every test a fresh process-wide in-memory store."""

    previous = registry.get_table_store()
    fresh = registry.use_table_store(InMemoryTableStore(ChangeFeed()))
    yield fresh
    registry.use_table_store(previous)


@pytest.fixture
def recording_store():
    previous = registry.get_table_store()
    recording = registry.use_table_store(RecordingStore())
    yield recording
    registry.use_table_store(previous)
