from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
from fastapi.encoders import jsonable_encoder

from src.lifeline.config import settings
from src.lifeline.infra.store.base import Row, StoreError, TableStore, plain
from src.lifeline.infra.store.changes import ChangeFeed, ChangeType


logger = logging.getLogger("lifeline.store.rest")


@dataclass
class RestStoreConfig:
    """Connection details for the hosted backend's REST interface.

    Tables are exposed PostgREST-style under ``<base_url>/rest/v1/<table>``
    and every request carries the project key both as ``apikey`` and as a
    bearer token.
    """

    base_url: str
    api_key: str
    timeout_seconds: float

    @classmethod
    def from_settings(cls) -> "RestStoreConfig":
        if not settings.store_rest_url or not settings.store_api_key:
            raise StoreError("STORE_REST_URL and STORE_API_KEY are required for the REST store")
        return cls(
            base_url=settings.store_rest_url.rstrip("/"),
            api_key=settings.store_api_key,
            timeout_seconds=settings.store_timeout_seconds,
        )


class RestTableStore(TableStore):
    """Table store talking to the hosted backend over HTTP.

    The remote change feed is not consumed here; changes committed through
    this store are published on the local feed once the backend confirms
    them.
    """

    def __init__(
        self,
        config: RestStoreConfig,
        change_feed: Optional[ChangeFeed] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(change_feed)
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=f"{config.base_url}/rest/v1",
            timeout=config.timeout_seconds,
            transport=transport,
            headers={
                "apikey": config.api_key,
                "Authorization": f"Bearer {config.api_key}",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        representation: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"} if representation else None
        try:
            response = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.exception("Error calling backend %s %s", method, path)
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "Backend %s %s failed with status %s: %s",
                method,
                path,
                response.status_code,
                response.text,
            )
            raise StoreError(f"{method} {path} returned {response.status_code}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"{method} {path} returned non-JSON response") from exc

    @staticmethod
    def _eq_params(eq: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        return {key: f"eq.{plain(value)}" for key, value in (eq or {}).items()}

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
        params = {"select": ",".join(columns) if columns else "*"}
        params.update(self._eq_params(eq))
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return list(await self._request("GET", f"/{table}", params=params) or [])

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        payload = jsonable_encoder([dict(r) for r in rows])
        inserted = list(await self._request("POST", f"/{table}", json=payload, representation=True) or [])
        for row in inserted:
            await self._publish(table, ChangeType.INSERT, record=dict(row))
        return inserted

    async def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Optional[Row]:
        payload = jsonable_encoder({k: v for k, v in values.items() if k != "id"})
        updated = await self._request(
            "PATCH",
            f"/{table}",
            params=self._eq_params({"id": row_id}),
            json=payload,
            representation=True,
        )
        if not updated:
            return None
        row = dict(updated[0])
        await self._publish(table, ChangeType.UPDATE, record=dict(row))
        return row

    async def delete(self, table: str, row_id: str) -> bool:
        deleted = await self._request(
            "DELETE",
            f"/{table}",
            params=self._eq_params({"id": row_id}),
            representation=True,
        )
        if not deleted:
            return False
        await self._publish(table, ChangeType.DELETE, old_record=dict(deleted[0]))
        return True

    async def ping(self) -> bool:
        try:
            await self._request("GET", "/")
        except StoreError:
            return False
        return True
