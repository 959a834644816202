"""Generic list page: fetch a collection, keep it live, act on it.

Every page of the console follows the same pattern. It loads the whole
collection for one table, keeps it current through a change-feed
subscription, filters it locally and issues create/update/delete calls with a
small ``idle -> submitting -> idle`` state machine. Failures never escape a
view: they are logged, turned into a destructive notification and reported
through an :class:`ActionResult`.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.lifeline.config import settings
from src.lifeline.domain.models.user import Principal
from src.lifeline.infra.store import registry
from src.lifeline.infra.store.base import Row, StoreError, TableStore, plain
from src.lifeline.infra.store.changes import ChangeEvent, ChangeType, Subscription
from src.lifeline.services.notifications.service import Notifier
from src.lifeline.views.filters import ListFilter, apply_filter


logger = logging.getLogger("lifeline.views")

ModelT = TypeVar("ModelT", bound=BaseModel)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"


class ActionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


class ActionOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    INVALID = "invalid"
    FAILED = "failed"
    DECLINED = "declined"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BUSY = "busy"


class SyncMode(str, Enum):
    PATCH = "patch"
    REFETCH = "refetch"


@dataclass
class ActionResult:
    outcome: ActionOutcome
    record: Any = None
    message: Optional[str] = None
    invalid_fields: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome == ActionOutcome.SUCCEEDED


ChangeCallback = Callable[[], Awaitable[None]]
Confirm = Callable[[], Any]


def _sort_key(value: Any) -> tuple:
    return (value is None, value)


def validate_rows(model: Type[ModelT], rows: Iterable[Row], table: str) -> List[ModelT]:
    """Validate fetched rows one by one, skipping the ones that do not fit ``model``."""

    items: List[ModelT] = []
    for row in rows:
        try:
            items.append(model.model_validate(row))
        except ValidationError:
            logger.warning("Skipping malformed %s row %s", table, row.get("id"), exc_info=True)
    return items


class EntityListView(Generic[ModelT]):
    """Live, locally filterable view over one backend table.

    Fetches are numbered; a response is applied only if no newer fetch has
    been issued and the view has not been closed, so late responses never
    overwrite fresher state.
    """

    table: str
    model: Type[ModelT]
    search_fields: Tuple[str, ...] = ()
    order_by: Optional[str] = "created_at"
    descending: bool = True
    fetch_failed_message = "Failed to fetch data"

    def __init__(
        self,
        principal: Principal,
        *,
        store: Optional[TableStore] = None,
        notifier: Optional[Notifier] = None,
        eq: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        sync_mode: Optional[SyncMode] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self.principal = principal
        self.items: List[ModelT] = []
        self.loading = True
        self.state = ActionState.IDLE
        self.filter = ListFilter()
        self.notifier = notifier or Notifier()
        self._store = store or registry.get_table_store()
        self._eq: Dict[str, Any] = dict(eq or {})
        self._limit = limit
        self._sync_mode = SyncMode(sync_mode or settings.list_sync_mode)
        self.on_change = on_change
        self._generation = 0
        self._closed = False
        self._subscription: Optional[Subscription] = None

    # Lifecycle

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def submitting(self) -> bool:
        return self.state == ActionState.SUBMITTING

    async def open(self) -> "EntityListView[ModelT]":
        """Subscribe to the table's change feed and load the collection."""

        self.subscribe()
        await self.fetch_all()
        return self

    def subscribe(self) -> Subscription:
        if self._subscription is None:
            self._subscription = self._store.change_feed.subscribe(
                self.table,
                self._handle_change,
                channel=f"{self.table}-updates",
            )
        return self._subscription

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # Fetching

    async def _load_rows(self) -> List[Row]:
        return await self._store.select(
            self.table,
            eq=self._eq or None,
            order_by=self.order_by,
            descending=self.descending,
            limit=self._limit,
        )

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def fetch_all(self) -> bool:
        """Reload the whole collection.

        On failure the previous items stay in place and a destructive
        notification is raised.
        """

        self._generation += 1
        generation = self._generation
        try:
            rows = await self._load_rows()
        except StoreError:
            if not self._is_current(generation):
                return False
            logger.exception("Error fetching %s", self.table)
            self.loading = False
            await self.notifier.error(self.fetch_failed_message)
            return False

        if not self._is_current(generation):
            logger.debug("Discarding superseded %s fetch", self.table)
            return False

        self.items = validate_rows(self.model, rows, self.table)
        self.loading = False
        await self._changed()
        return True

    async def find(self, row_id: str) -> Optional[ModelT]:
        for item in self.items:
            if self._item_id(item) == row_id:
                return item
        rows = await self._store.select(self.table, eq={"id": row_id})
        found = validate_rows(self.model, rows, self.table)
        return found[0] if found else None

    # Filtering

    def filtered(self, criteria: Optional[ListFilter] = None) -> List[ModelT]:
        return apply_filter(self.items, criteria or self.filter, self.search_fields)

    def set_filter(self, criteria: ListFilter) -> List[ModelT]:
        self.filter = criteria
        return self.filtered()

    # Change feed

    async def _handle_change(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        if self._sync_mode == SyncMode.PATCH and self._apply_patch(change):
            # Fetches still in flight were issued before this change.
            self._generation += 1
            await self._changed()
            return
        await self.fetch_all()

    def _matches_scope(self, record: Mapping[str, Any]) -> bool:
        return all(plain(record.get(key)) == plain(value) for key, value in self._eq.items())

    def _apply_patch(self, change: ChangeEvent) -> bool:
        """Apply ``change`` to the in-memory items.

        Returns False when only a full refetch can produce the right result:
        before the first load, for limited views, or when the event does not
        carry a usable row.
        """

        if self.loading or self._limit is not None:
            return False
        row_id = change.row_id
        if row_id is None:
            return False

        items = [item for item in self.items if self._item_id(item) != row_id]
        if change.type != ChangeType.DELETE:
            if change.record is None:
                return False
            try:
                item = self.model.model_validate(change.record)
            except ValidationError:
                return False
            if self._matches_scope(change.record):
                items.append(item)

        if self.order_by:
            items.sort(key=lambda i: _sort_key(getattr(i, self.order_by, None)), reverse=self.descending)
        self.items = items
        return True

    async def _changed(self) -> None:
        if self.on_change is not None and not self._closed:
            await self.on_change()

    @staticmethod
    def _item_id(item: BaseModel) -> str:
        return str(getattr(item, "id"))

    # Actions

    async def _submit(
        self,
        operation: Callable[[], Awaitable[Any]],
        *,
        success_message: str,
        failure_message: str,
    ) -> ActionResult:
        self.state = ActionState.SUBMITTING
        try:
            record = await operation()
        except StoreError:
            logger.exception("Error writing to %s", self.table)
            self.state = ActionState.IDLE
            await self.notifier.error(failure_message)
            return ActionResult(ActionOutcome.FAILED, message=failure_message)

        self.state = ActionState.IDLE
        await self.notifier.success(success_message)
        return ActionResult(ActionOutcome.SUCCEEDED, record=record, message=success_message)

    async def _insert(self, values: Mapping[str, Any]) -> Optional[ModelT]:
        rows = await self._store.insert(self.table, [values])
        return self.model.model_validate(rows[0]) if rows else None

    async def _update(self, row_id: str, values: Mapping[str, Any]) -> ModelT:
        row = await self._store.update(self.table, row_id, values)
        if row is None:
            raise StoreError(f"{self.table} row {row_id} no longer exists")
        return self.model.model_validate(row)

    async def _delete(self, row_id: str) -> bool:
        if not await self._store.delete(self.table, row_id):
            raise StoreError(f"{self.table} row {row_id} no longer exists")
        return True

    @staticmethod
    async def _confirmed(confirm: Confirm) -> bool:
        answer = confirm()
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)


DraftT = TypeVar("DraftT", bound=BaseModel)


class EditableListView(EntityListView[ModelT], Generic[ModelT, DraftT]):
    """List view with a creation dialog backed by a draft model."""

    draft_model: Type[DraftT]
    required_fields: Tuple[str, ...] = ()
    create_succeeded_message = "Record created successfully"
    create_failed_message = "Failed to create record"
    refetch_after_create = False

    def __init__(self, principal: Principal, **kwargs: Any) -> None:
        super().__init__(principal, **kwargs)
        self.draft: DraftT = self.draft_model()
        self.dialog_open = False

    def open_dialog(self) -> None:
        self.dialog_open = True

    def close_dialog(self) -> None:
        self.dialog_open = False

    def invalid_fields(self, draft: DraftT) -> List[str]:
        return [name for name in self.required_fields if not str(getattr(draft, name, "") or "").strip()]

    def build_row(self, draft: DraftT) -> Dict[str, Any]:
        raise NotImplementedError

    async def create(self, draft: Optional[DraftT] = None) -> ActionResult:
        """Validate the draft locally, then insert it.

        Nothing is sent to the backend when a required field is blank. On a
        backend failure the dialog stays open with the draft intact.
        """

        if draft is not None:
            self.draft = draft
        if self.submitting:
            return ActionResult(ActionOutcome.BUSY)

        invalid = self.invalid_fields(self.draft)
        if invalid:
            await self.notifier.error(REQUIRED_FIELDS_MESSAGE)
            return ActionResult(ActionOutcome.INVALID, message=REQUIRED_FIELDS_MESSAGE, invalid_fields=invalid)

        values = self.build_row(self.draft)
        result = await self._submit(
            lambda: self._insert(values),
            success_message=self.create_succeeded_message,
            failure_message=self.create_failed_message,
        )
        if result.ok:
            self.draft = self.draft_model()
            self.close_dialog()
            if self.refetch_after_create:
                await self.fetch_all()
        return result


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value
