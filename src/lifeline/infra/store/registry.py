from __future__ import annotations

from src.lifeline.infra.store.base import TableStore
from src.lifeline.infra.store.changes import ChangeFeed
from src.lifeline.infra.store.inmemory import InMemoryTableStore


# Process-wide store and change feed. The in-memory store is active until
# bootstrap swaps in a configured backend; callers always go through the
# accessors so that a swap is visible everywhere.
change_feed: ChangeFeed = ChangeFeed()
table_store: TableStore = InMemoryTableStore(change_feed)


def get_table_store() -> TableStore:
    return table_store


def use_table_store(store: TableStore) -> TableStore:
    global table_store, change_feed
    table_store = store
    change_feed = store.change_feed
    return store
