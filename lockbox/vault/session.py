"""
VaultSession — lock/unlock state machine guarding the master passphrase.

The session is either ``Locked`` or ``Unlocked(passphrase)``. Only an
``Unlocked`` session can encrypt or decrypt, and the passphrase exists
nowhere else: it is captured at the start of each operation and dropped
from the session on ``lock()``.

Security Note:
    The passphrase is never validated (there is nothing stored to check it
    against); a wrong one only shows up as ``DecryptionFailed`` later.
    There is no recovery path for a forgotten passphrase.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from . import crypto
from .auth import AuthContext
from .exceptions import (
    InvalidInput,
    PassphraseMismatch,
    PassphraseTooShort,
    SessionLocked,
)

logger = logging.getLogger("lockbox.vault")

MIN_PASSPHRASE_LENGTH = 8

LockListener = Callable[[], None]


@dataclass(frozen=True)
class Locked:
    """No passphrase held; nothing can be decrypted."""


@dataclass(frozen=True)
class Unlocked:
    """Passphrase held in memory; encryption and decryption allowed."""

    passphrase: str = field(repr=False)


SessionState = Union[Locked, Unlocked]


class VaultSession:
    """Explicitly constructed vault session.

    Several sessions may coexist in one process; no state is shared
    between them.

    Args:
        auth: Optional authentication context. When given, its logout
            signal locks this session.
    """

    def __init__(self, auth: Optional[AuthContext] = None):
        self._state: SessionState = Locked()
        self._epoch = 0
        self._first_use: Optional[bool] = None
        self._listeners: list[LockListener] = []
        self._unsubscribe = None
        if auth is not None:
            self._unsubscribe = auth.logout.subscribe(self._on_logout)

    def __repr__(self) -> str:
        return f"<VaultSession state={type(self._state).__name__} epoch={self._epoch}>"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return isinstance(self._state, Unlocked)

    @property
    def epoch(self) -> int:
        """Counter bumped on every lock; lets callers detect a lock mid-flight."""
        return self._epoch

    @property
    def first_use(self) -> Optional[bool]:
        """True when the store held no records at detection time, None if unknown."""
        return self._first_use

    def add_lock_listener(self, listener: LockListener) -> None:
        """Call ``listener`` synchronously every time the session locks."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def unlock(self, passphrase: str) -> None:
        """Move to ``Unlocked``. The passphrase is accepted as given.

        Raises:
            InvalidInput: If passphrase is empty.
        """
        if not passphrase:
            raise InvalidInput("Passphrase cannot be empty")
        self._state = Unlocked(passphrase)
        logger.info("Vault session unlocked")

    def lock(self) -> None:
        """Drop the passphrase and tell listeners to discard plaintext.

        Operations already in flight keep their captured passphrase; any
        operation started afterwards raises ``SessionLocked``.
        """
        if isinstance(self._state, Locked):
            return
        self._state = Locked()
        self._epoch += 1
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as err:
                # the remaining listeners still have plaintext to drop
                logger.error(
                    "Lock listener %r failed: %s",
                    getattr(listener, "__qualname__", listener), type(err).__name__,
                )
        logger.info("Vault session locked")

    async def detect_first_use(self, store, owner_id: str) -> bool:
        """Ask the record store whether the owner has any records yet.

        Returns:
            True if the store holds zero records for ``owner_id``.
        """
        records = await store.list(owner_id)
        self._first_use = len(records) == 0
        logger.debug(
            "First-use detection for owner=%s: %s", owner_id, self._first_use,
        )
        return self._first_use

    def create_master_key(self, passphrase: str, confirm_passphrase: str) -> None:
        """Set up a master passphrase for an empty vault, then unlock.

        Raises:
            InvalidInput: If the vault is not known to be empty.
            PassphraseTooShort: If passphrase is shorter than 8 characters.
            PassphraseMismatch: If the confirmation differs.
        """
        if not self._first_use:
            raise InvalidInput("Master key setup is only available for an empty vault")
        if len(passphrase or "") < MIN_PASSPHRASE_LENGTH:
            raise PassphraseTooShort()
        if passphrase != confirm_passphrase:
            raise PassphraseMismatch()
        self.unlock(passphrase)
        self._first_use = False
        logger.info("Master key created")

    def close(self) -> None:
        """Lock and detach from the logout signal."""
        self.lock()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_logout(self) -> None:
        logger.info("Logout received, locking vault session")
        self.lock()

    # ------------------------------------------------------------------
    # Crypto gate
    # ------------------------------------------------------------------

    def _capture(self) -> str:
        state = self._state
        if not isinstance(state, Unlocked):
            raise SessionLocked()
        return state.passphrase

    async def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` under the session passphrase.

        Key derivation (100k PBKDF2 rounds) runs inline and blocks the
        event loop for the duration of the call; callers driving a UI
        loop should expect that pause on every encrypt and decrypt.

        Raises:
            SessionLocked: If the session is locked when the call starts.
        """
        passphrase = self._capture()
        return crypto.encrypt(plaintext, passphrase)

    async def decrypt(self, envelope: str) -> str:
        """Decrypt ``envelope`` under the session passphrase.

        Blocks the event loop during key derivation, like ``encrypt``.

        Raises:
            SessionLocked: If the session is locked when the call starts.
            DecryptionFailed: If the envelope does not open.
        """
        passphrase = self._capture()
        return crypto.decrypt(envelope, passphrase)
