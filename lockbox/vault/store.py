"""
Record Store — remote persistence of encrypted vault records.

The vault never persists anything itself. It talks to a record store
scoped to the authenticated owner through the ``RecordStore`` protocol:

- ``list(owner_id)`` -> records, newest first
- ``create(owner_id, fields)`` -> record with id and timestamps assigned
- ``update(owner_id, item_id, fields)`` -> record, or ``RecordNotFound``
- ``delete(owner_id, item_id)`` -> None, or ``RecordNotFound``

Two implementations are provided: ``HttpRecordStore`` for the vault REST
endpoint and ``MemoryRecordStore`` for local use and tests.

Security Note:
    Payloads carry CipherEnvelopes only. Never log request or response
    bodies.
"""
import uuid
import asyncio
import logging
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

import orjson
import aiohttp
from pydantic import ValidationError

from .config import VaultConfig
from .models import VaultItem, VaultItemFields
from .exceptions import RecordNotFound, StoreUnavailable

logger = logging.getLogger("lockbox.store")


@runtime_checkable
class RecordStore(Protocol):
    """Owner-scoped CRUD over encrypted vault records."""

    async def list(self, owner_id: str) -> list[VaultItem]: ...

    async def create(self, owner_id: str, fields: VaultItemFields) -> VaultItem: ...

    async def update(
        self, owner_id: str, item_id: str, fields: VaultItemFields,
    ) -> VaultItem: ...

    async def delete(self, owner_id: str, item_id: str) -> None: ...


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class MemoryRecordStore:
    """Record store kept in a dict, one newest-first list per owner."""

    def __init__(self):
        self._records: dict[str, list[VaultItem]] = {}

    def _owned(self, owner_id: str) -> list[VaultItem]:
        return self._records.setdefault(owner_id, [])

    def _index(self, owner_id: str, item_id: str) -> int:
        for idx, record in enumerate(self._owned(owner_id)):
            if record.id == item_id:
                return idx
        raise RecordNotFound()

    async def list(self, owner_id: str) -> list[VaultItem]:
        return list(self._owned(owner_id))

    async def create(self, owner_id: str, fields: VaultItemFields) -> VaultItem:
        now = datetime.now(timezone.utc)
        record = VaultItem(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            **fields.model_dump(),
        )
        self._owned(owner_id).insert(0, record)
        return record

    async def update(
        self, owner_id: str, item_id: str, fields: VaultItemFields,
    ) -> VaultItem:
        idx = self._index(owner_id, item_id)
        current = self._owned(owner_id)[idx]
        record = current.model_copy(
            update={
                **fields.model_dump(),
                "updated_at": datetime.now(timezone.utc),
            }
        )
        self._owned(owner_id)[idx] = record
        return record

    async def delete(self, owner_id: str, item_id: str) -> None:
        idx = self._index(owner_id, item_id)
        del self._owned(owner_id)[idx]


# ---------------------------------------------------------------------------
# HTTP store
# ---------------------------------------------------------------------------

class HttpRecordStore:
    """Record store backed by the vault REST endpoint.

    The owner is implied by the authenticated ``aiohttp.ClientSession``
    (its cookie jar carries the login); ``owner_id`` is only used for
    logging.

    Args:
        client: Authenticated aiohttp client session.
        base_url: Vault endpoint, e.g. ``https://host/api/vault``.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        client: aiohttp.ClientSession,
        base_url: str,
        timeout: float = 10.0,
    ):
        self._client = client
        self._url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_config(
        cls, client: aiohttp.ClientSession, config: VaultConfig,
    ) -> "HttpRecordStore":
        """Build a store from ``VaultConfig.store_url`` and ``store_timeout``."""
        return cls(client, config.store_url, timeout=config.store_timeout)

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout.total

    async def _request(
        self,
        method: str,
        *,
        body: dict | None = None,
        params: dict | None = None,
    ) -> object:
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = orjson.dumps(body)
        try:
            async with self._client.request(
                method,
                self._url,
                data=data,
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status == 404:
                    raise RecordNotFound()
                if resp.status >= 400:
                    logger.error(
                        "Record store %s failed with status %s", method, resp.status,
                    )
                    raise StoreUnavailable()
                payload = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("Record store %s unreachable: %s", method, type(err).__name__)
            raise StoreUnavailable() from err
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError:
            logger.error("Record store %s returned a non-JSON body", method)
            raise StoreUnavailable() from None

    @staticmethod
    def _record(data: object) -> VaultItem:
        try:
            return VaultItem.model_validate(data)
        except ValidationError:
            logger.error("Record store returned a malformed record")
            raise StoreUnavailable() from None

    async def list(self, owner_id: str) -> list[VaultItem]:
        data = await self._request("GET")
        if not isinstance(data, list):
            raise StoreUnavailable()
        records = [self._record(row) for row in data]
        logger.debug("Listed %d record(s) for owner=%s", len(records), owner_id)
        return records

    async def create(self, owner_id: str, fields: VaultItemFields) -> VaultItem:
        record = self._record(
            await self._request("POST", body=fields.model_dump())
        )
        logger.debug("Created record id=%s for owner=%s", record.id, owner_id)
        return record

    async def update(
        self, owner_id: str, item_id: str, fields: VaultItemFields,
    ) -> VaultItem:
        body = {"id": item_id, **fields.model_dump()}
        record = self._record(await self._request("PUT", body=body))
        logger.debug("Updated record id=%s for owner=%s", item_id, owner_id)
        return record

    async def delete(self, owner_id: str, item_id: str) -> None:
        await self._request("DELETE", params={"id": item_id})
        logger.debug("Deleted record id=%s for owner=%s", item_id, owner_id)
