from __future__ import annotations

import logging
from typing import Optional

from src.lifeline.config import settings
from src.lifeline.infra.store import registry
from src.lifeline.infra.store.rest import RestStoreConfig, RestTableStore
from src.lifeline.infra.store.session import create_store_engine
from src.lifeline.infra.store.sql import SqlTableStore


logger = logging.getLogger("lifeline.store")


def init_table_store(backend: Optional[str] = None) -> None:  # pragma: no cover - side-effectful wiring
    """Switch the process-wide table store to the configured backend.

    With STORE_BACKEND=memory (the default, and what tests run with) this is
    a no-op. A misconfigured backend leaves the in-memory store in place.
    """

    selected = (backend or settings.store_backend).lower()
    if selected == "memory":
        return

    if selected == "sql":
        if not settings.database_url:
            logger.error("STORE_BACKEND=sql but DATABASE_URL is not set; keeping in-memory store")
            return
        store = SqlTableStore(create_store_engine(settings.database_url), registry.change_feed)
        store.create_schema()
        registry.use_table_store(store)
        logger.info("Using SQL table store")
        return

    if selected == "rest":
        if not settings.store_rest_url or not settings.store_api_key:
            logger.error("STORE_BACKEND=rest but STORE_REST_URL/STORE_API_KEY are missing; keeping in-memory store")
            return
        registry.use_table_store(RestTableStore(RestStoreConfig.from_settings(), registry.change_feed))
        logger.info("Using REST table store at %s", settings.store_rest_url)
        return

    logger.error("Unknown STORE_BACKEND %r; keeping in-memory store", selected)
