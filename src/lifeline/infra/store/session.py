from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


SessionFactory = Callable[[], Session]


def create_store_engine(database_url: str) -> Engine:
    """Create an Engine for ``database_url``.

    In-memory SQLite URLs share one connection across threads so that the
    schema survives between the thread-pool calls made by the store.
    """

    if database_url in {"sqlite://", "sqlite:///:memory:"}:
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, future=True)


def create_sqlalchemy_session_factory(engine: Engine) -> SessionFactory:
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)

    def _factory() -> Session:  # pragma: no cover - thin wrapper
        return SessionLocal()

    return _factory
