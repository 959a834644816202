from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from sqlalchemy import Date, DateTime, Table, delete, insert, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from src.lifeline.infra.store.base import Row, StoreError, TableStore, plain
from src.lifeline.infra.store.changes import ChangeFeed, ChangeType
from src.lifeline.infra.store.models import Base
from src.lifeline.infra.store.session import create_sqlalchemy_session_factory


logger = logging.getLogger("lifeline.store.sql")


class SqlTableStore(TableStore):
    """Table store backed by a relational database through SQLAlchemy.

    Tables are the ORM declarations in :mod:`models`. Blocking database work
    runs in the thread pool so the event loop is never held up; change events
    are published back on the loop once the transaction has committed.
    """

    def __init__(self, engine: Engine, change_feed: Optional[ChangeFeed] = None) -> None:
        super().__init__(change_feed)
        self._engine = engine
        self._session_factory = create_sqlalchemy_session_factory(engine)

    def create_schema(self) -> None:
        # Convenient for development setups; deployments run migrations.
        Base.metadata.create_all(self._engine)

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table: {name}")
        return table

    def _coerce(self, table: Table, values: Mapping[str, Any]) -> Dict[str, Any]:
        coerced: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in table.c:
                raise StoreError(f"Unknown column {key} on {table.name}")
            value = plain(value)
            column_type = table.c[key].type
            try:
                if isinstance(value, str) and isinstance(column_type, DateTime):
                    value = datetime.fromisoformat(value)
                elif isinstance(value, str) and isinstance(column_type, Date):
                    value = date.fromisoformat(value)
            except ValueError as exc:
                raise StoreError(f"Invalid value for {table.name}.{key}: {value!r}") from exc
            coerced[key] = value
        return coerced

    def _fetch_by_id(self, session, table: Table, row_id: str) -> Optional[Row]:
        found = session.execute(select(table).where(table.c.id == row_id)).first()
        return dict(found._mapping) if found is not None else None

    def _run(self, work):
        session = self._session_factory()
        try:
            return work(session)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("SQL store operation failed")
            raise StoreError(str(exc)) from exc
        finally:
            session.close()

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
        tbl = self._table(table)
        predicates = self._coerce(tbl, eq or {})
        if order_by is not None and order_by not in tbl.c:
            raise StoreError(f"Unknown column {order_by} on {table}")

        def work(session) -> List[Row]:
            stmt = select(*(tbl.c[c] for c in columns)) if columns else select(tbl)
            for key, value in predicates.items():
                stmt = stmt.where(tbl.c[key] == value)
            if order_by is not None:
                column = tbl.c[order_by]
                stmt = stmt.order_by(column.desc() if descending else column.asc())
            if limit is not None:
                stmt = stmt.limit(limit)
            return [dict(row._mapping) for row in session.execute(stmt)]

        return await run_in_threadpool(self._run, work)

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        tbl = self._table(table)
        now = datetime.now(timezone.utc)
        prepared: List[Dict[str, Any]] = []
        for values in rows:
            row = self._coerce(tbl, values)
            row["id"] = str(row.get("id") or uuid4())
            row.setdefault("created_at", now)
            row.setdefault("updated_at", row["created_at"])
            prepared.append(row)

        def work(session) -> List[Row]:
            for row in prepared:
                session.execute(insert(tbl).values(**row))
            session.commit()
            return [self._fetch_by_id(session, tbl, row["id"]) for row in prepared]

        inserted = await run_in_threadpool(self._run, work)
        for row in inserted:
            await self._publish(table, ChangeType.INSERT, record=dict(row))
        return inserted

    async def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Optional[Row]:
        tbl = self._table(table)
        changes = self._coerce(tbl, {k: v for k, v in values.items() if k != "id"})
        changes["updated_at"] = datetime.now(timezone.utc)

        def work(session) -> Tuple[Optional[Row], Optional[Row]]:
            old = self._fetch_by_id(session, tbl, row_id)
            if old is None:
                return None, None
            session.execute(update(tbl).where(tbl.c.id == row_id).values(**changes))
            session.commit()
            return old, self._fetch_by_id(session, tbl, row_id)

        old, new = await run_in_threadpool(self._run, work)
        if new is None:
            return None
        await self._publish(table, ChangeType.UPDATE, record=dict(new), old_record=old)
        return new

    async def delete(self, table: str, row_id: str) -> bool:
        tbl = self._table(table)

        def work(session) -> Optional[Row]:
            old = self._fetch_by_id(session, tbl, row_id)
            if old is None:
                return None
            session.execute(delete(tbl).where(tbl.c.id == row_id))
            session.commit()
            return old

        old = await run_in_threadpool(self._run, work)
        if old is None:
            return False
        await self._publish(table, ChangeType.DELETE, old_record=old)
        return True

    async def ping(self) -> bool:
        try:
            await run_in_threadpool(self._run, lambda session: session.execute(text("SELECT 1")))
        except StoreError:
            return False
        return True

    async def aclose(self) -> None:
        self._engine.dispose()
