"""Lockbox Vault — Zero-knowledge storage of vault-item secrets.

Security Note (Threat Model):
    Only item passwords are encrypted, client-side, with a key derived
    from the master passphrase. The record store never sees the
    passphrase or a derived key. Titles, usernames, urls and notes are
    stored in clear text so they can be searched and sorted.
    Decrypted passwords exist in process memory while the session is
    unlocked; a memory dump of the process during that time could expose
    them. This is an accepted limitation.
"""

from .auth import AuthContext, LogoutSignal
from .config import VaultConfig
from .crypto import derive_key, encrypt, decrypt, parse_envelope
from .session import VaultSession, Locked, Unlocked
from .sync import SyncEngine
from .store import RecordStore, HttpRecordStore, MemoryRecordStore
from .clipboard import ClipboardGuard
from .generator import generate_password
from .models import VaultItem, VaultItemDraft, VaultItemFields, DecryptedVaultItem
from .vault import Vault
from .exceptions import (
    VaultError,
    InvalidInput,
    DecryptionFailed,
    SessionLocked,
    PassphraseError,
    PassphraseMismatch,
    PassphraseTooShort,
    StoreUnavailable,
    RecordNotFound,
)

__all__ = [
    "Vault",
    "VaultSession",
    "Locked",
    "Unlocked",
    "SyncEngine",
    "RecordStore",
    "HttpRecordStore",
    "MemoryRecordStore",
    "ClipboardGuard",
    "AuthContext",
    "LogoutSignal",
    "VaultConfig",
    "VaultItem",
    "VaultItemDraft",
    "VaultItemFields",
    "DecryptedVaultItem",
    "derive_key",
    "encrypt",
    "decrypt",
    "parse_envelope",
    "generate_password",
    "VaultError",
    "InvalidInput",
    "DecryptionFailed",
    "SessionLocked",
    "PassphraseError",
    "PassphraseMismatch",
    "PassphraseTooShort",
    "StoreUnavailable",
    "RecordNotFound",
]
