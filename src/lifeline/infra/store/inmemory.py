from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from src.lifeline.infra.store.base import Row, TableStore, plain
from src.lifeline.infra.store.changes import ChangeFeed, ChangeType


def _sort_key(value: Any) -> tuple:
    # Missing values sort after present ones in ascending order.
    return (value is None, value)


class InMemoryTableStore(TableStore):
    """Process-local table store.

    This is intended for local development and tests only. Ids and
    timestamps are assigned the way the hosted backend assigns them so that
    callers never need to send them.
    """

    def __init__(self, change_feed: Optional[ChangeFeed] = None) -> None:
        super().__init__(change_feed)
        self._tables: Dict[str, Dict[str, Row]] = {}

    def _table(self, table: str) -> Dict[str, Row]:
        return self._tables.setdefault(table, {})

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
        rows = list(self._table(table).values())
        if eq:
            predicates = {key: plain(value) for key, value in eq.items()}
            rows = [r for r in rows if all(plain(r.get(k)) == v for k, v in predicates.items())]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns:
            return [{c: r.get(c) for c in columns} for r in rows]
        return [dict(r) for r in rows]

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        now = datetime.now(timezone.utc)
        inserted: List[Row] = []
        for values in rows:
            row = {key: plain(value) for key, value in values.items()}
            row["id"] = str(row.get("id") or uuid4())
            row.setdefault("created_at", now)
            row.setdefault("updated_at", row["created_at"])
            self._table(table)[row["id"]] = row
            inserted.append(dict(row))

        for row in inserted:
            await self._publish(table, ChangeType.INSERT, record=dict(row))
        return inserted

    async def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Optional[Row]:
        existing = self._table(table).get(row_id)
        if existing is None:
            return None
        old = dict(existing)
        existing.update({key: plain(value) for key, value in values.items() if key != "id"})
        existing["updated_at"] = datetime.now(timezone.utc)

        await self._publish(table, ChangeType.UPDATE, record=dict(existing), old_record=old)
        return dict(existing)

    async def delete(self, table: str, row_id: str) -> bool:
        removed = self._table(table).pop(row_id, None)
        if removed is None:
            return False
        await self._publish(table, ChangeType.DELETE, old_record=dict(removed))
        return True

    async def ping(self) -> bool:
        return True
