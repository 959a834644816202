from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Sequence, TypeVar


ALL = "all"

T = TypeVar("T")


@dataclass(frozen=True)
class ListFilter:
    """Local list criteria. ``all`` means no restriction."""

    search: str = ""
    status: str = ALL
    priority: str = ALL

    @property
    def is_active(self) -> bool:
        return bool(self.search.strip()) or self.status != ALL or self.priority != ALL


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def matches_search(item: Any, term: str, fields: Sequence[str]) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in _text(getattr(item, name, None)).lower() for name in fields)


def _matches_exact(item: Any, name: str, expected: str) -> bool:
    if expected == ALL:
        return True
    return _text(getattr(item, name, None)) == expected


def apply_filter(items: Iterable[T], criteria: ListFilter, search_fields: Sequence[str]) -> List[T]:
    """Return the items matching ``criteria``, in their original order.

    Pure and idempotent: it only looks at the already-fetched items.
    """

    return [
        item
        for item in items
        if matches_search(item, criteria.search, search_fields)
        and _matches_exact(item, "status", criteria.status)
        and _matches_exact(item, "priority", criteria.priority)
    ]
