"""
SyncEngine — decrypted working set reconciled with the remote record store.

- ``load_all(records)`` — decrypt a batch of records (fail-fast)
- ``refresh()`` — list the owner's records from the store and load them
- ``save(draft)`` — encrypt, dispatch create/update, apply locally
- ``remove(item_id)`` — dispatch delete, drop locally on success
- ``search(query)`` — filter the working set on clear-text fields

The working set is only mutated after the store call has returned, in a
single synchronous step, so a cancelled or failed dispatch leaves it as
it was. Consumers only ever see tuples.

Security Note:
    Decrypted passwords live in the working set while the session is
    unlocked and are dropped on lock. Never log them.
"""
import asyncio
import logging
from typing import Iterable

from .models import DecryptedVaultItem, VaultItem, VaultItemDraft
from .session import VaultSession
from .exceptions import DecryptionFailed, SessionLocked

logger = logging.getLogger("lockbox.vault")


class SyncEngine:
    """Keeps the decrypted working set for one owner and one session.

    Args:
        session: Vault session providing encryption and decryption.
        store: Record store implementing the ``RecordStore`` protocol.
        owner_id: Authenticated owner whose records are handled.
    """

    def __init__(self, session: VaultSession, store, owner_id: str):
        self._session = session
        self._store = store
        self._owner_id = owner_id
        self._items: list[DecryptedVaultItem] = []
        self._load_lock = asyncio.Lock()
        session.add_lock_listener(self.clear)

    @property
    def items(self) -> tuple[DecryptedVaultItem, ...]:
        """Snapshot of the working set, most recently created first."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: str) -> DecryptedVaultItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def clear(self) -> None:
        """Drop every decrypted item."""
        if self._items:
            logger.debug("Discarding %d decrypted item(s)", len(self._items))
        self._items = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_all(
        self, records: Iterable[VaultItem],
    ) -> tuple[DecryptedVaultItem, ...]:
        """Decrypt every record and replace the working set.

        Loads are serialized: a second call waits for the first to finish.

        Raises:
            SessionLocked: If the session is locked before or during the load.
            DecryptionFailed: If any record fails to decrypt. The working set
                is cleared, since a failure almost always means a wrong
                passphrase.
        """
        async with self._load_lock:
            epoch = self._session.epoch
            decrypted: list[DecryptedVaultItem] = []
            try:
                for record in records:
                    plaintext = await self._session.decrypt(record.password)
                    decrypted.append(record.decrypted(plaintext))
                    # let a pending lock() run between records
                    await asyncio.sleep(0)
            except DecryptionFailed:
                self.clear()
                logger.warning(
                    "Vault load failed for owner=%s: could not decrypt",
                    self._owner_id,
                )
                raise
            if self._session.epoch != epoch or not self._session.is_unlocked:
                decrypted.clear()
                self.clear()
                raise SessionLocked()
            self._items = decrypted
            logger.info(
                "Vault loaded for owner=%s: %d item(s)",
                self._owner_id, len(decrypted),
            )
            return self.items

    async def refresh(self) -> tuple[DecryptedVaultItem, ...]:
        """Fetch the owner's records from the store and load them."""
        if not self._session.is_unlocked:
            raise SessionLocked()
        records = await self._store.list(self._owner_id)
        return await self.load_all(records)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def save(self, draft: VaultItemDraft) -> DecryptedVaultItem:
        """Encrypt the draft's password and create or update the record.

        The local copy keeps the plaintext the user typed; the store's
        response is not decrypted again.

        Raises:
            SessionLocked: If the session is locked.
            StoreUnavailable: If the dispatch fails; working set unchanged.
            RecordNotFound: If an update targets an unknown id.
        """
        epoch = self._session.epoch
        envelope = await self._session.encrypt(draft.password)
        fields = draft.sealed(envelope)
        if draft.is_new:
            record = await self._store.create(self._owner_id, fields)
        else:
            record = await self._store.update(self._owner_id, draft.id, fields)
        item = record.decrypted(draft.password)
        if self._session.epoch != epoch:
            # locked while the dispatch was in flight; keep no plaintext
            return item
        if draft.is_new:
            self._items = [item, *self._items]
            logger.debug("Vault item created id=%s", item.id)
        elif self.get(item.id) is None:
            # updated remotely but never loaded here
            self._items = [item, *self._items]
            logger.debug("Vault item updated id=%s (not loaded, prepended)", item.id)
        else:
            self._items = [item if i.id == item.id else i for i in self._items]
            logger.debug("Vault item updated id=%s", item.id)
        return item

    async def remove(self, item_id: str) -> None:
        """Delete a record remotely, then drop it from the working set.

        Raises:
            StoreUnavailable: If the dispatch fails; working set unchanged.
            RecordNotFound: If the store has no such record.
        """
        await self._store.delete(self._owner_id, item_id)
        self._items = [i for i in self._items if i.id != item_id]
        logger.debug("Vault item deleted id=%s", item_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, query: str) -> tuple[DecryptedVaultItem, ...]:
        """Items whose title, username, url or notes contain ``query``.

        Matching is case-insensitive. The password is never searched.
        """
        if not query:
            return self.items
        return tuple(item for item in self._items if item.matches(query))
