"""
Vault — one owner's session, working set and clipboard guard wired together.

Typical flow::

    vault = await Vault.open(auth, store, clipboard_writer=writer)
    if vault.first_use:
        vault.create_master_key(passphrase, confirmation)
    else:
        await vault.unlock(passphrase)
    await vault.sync.save(VaultItemDraft(title=..., username=..., password=...))
    await vault.copy_password(item_id)
    vault.lock()
"""
import logging
from typing import Optional

from .auth import AuthContext
from .config import VaultConfig
from .session import VaultSession
from .sync import SyncEngine
from .clipboard import ClipboardGuard, ClipboardWriter
from .generator import generate_password
from .models import DecryptedVaultItem
from .exceptions import RecordNotFound, VaultError

logger = logging.getLogger("lockbox.vault")


class Vault:
    """Facade over ``VaultSession``, ``SyncEngine`` and ``ClipboardGuard``.

    The vault starts locked. The authentication context's logout signal
    locks it, which drops the passphrase, the decrypted working set and
    any secret still waiting on the clipboard.
    """

    def __init__(
        self,
        auth: AuthContext,
        store,
        config: Optional[VaultConfig] = None,
        clipboard_writer: Optional[ClipboardWriter] = None,
    ):
        self.auth = auth
        self.config = config or VaultConfig.from_env()
        self.session = VaultSession(auth)
        self.sync = SyncEngine(self.session, store, auth.owner_id)
        self.clipboard: Optional[ClipboardGuard] = None
        if clipboard_writer is not None:
            self.clipboard = ClipboardGuard(
                clipboard_writer, delay=self.config.clipboard_clear_delay,
            )
            self.session.add_lock_listener(self.clipboard.on_lock)
        self._store = store

    @classmethod
    async def open(
        cls,
        auth: AuthContext,
        store,
        config: Optional[VaultConfig] = None,
        clipboard_writer: Optional[ClipboardWriter] = None,
    ) -> "Vault":
        """Build a locked vault and detect whether it is used for the first time.

        This is the primary constructor used right after login.
        """
        vault = cls(auth, store, config=config, clipboard_writer=clipboard_writer)
        await vault.session.detect_first_use(store, auth.owner_id)
        return vault

    @property
    def first_use(self) -> bool:
        return bool(self.session.first_use)

    @property
    def is_unlocked(self) -> bool:
        return self.session.is_unlocked

    @property
    def items(self) -> tuple[DecryptedVaultItem, ...]:
        return self.sync.items

    async def unlock(self, passphrase: str) -> tuple[DecryptedVaultItem, ...]:
        """Unlock and decrypt the owner's records.

        The session stays unlocked even when decryption fails; the caller
        decides whether to lock and ask again.

        Raises:
            DecryptionFailed: Wrong passphrase or corrupted data.
            StoreUnavailable: The records could not be listed.
        """
        self.session.unlock(passphrase)
        if self.first_use:
            return self.items
        return await self.sync.refresh()

    def create_master_key(self, passphrase: str, confirm_passphrase: str) -> None:
        """Set the master passphrase of an empty vault and unlock it."""
        self.session.create_master_key(passphrase, confirm_passphrase)

    def lock(self) -> None:
        self.session.lock()

    async def copy_password(self, item_id: str):
        """Copy a decrypted password to the clipboard with a timed wipe.

        Returns:
            The task that will clear the clipboard.
        """
        if self.clipboard is None:
            raise VaultError("No clipboard configured")
        item = self.sync.get(item_id)
        if item is None:
            raise RecordNotFound()
        return await self.clipboard.copy(item.password)

    def generate_password(self, **options) -> str:
        """Generate a password, defaulting to the configured length."""
        options.setdefault("length", self.config.generator_length)
        return generate_password(**options)
