"""
Vault Exceptions — error taxonomy for the vault engine.

Every message is fixed text. Passphrases, derived keys, plaintext and
envelopes are never interpolated into an error.
"""


class VaultError(Exception):
    """Base class for every error raised by the vault engine."""

    message = "Vault operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidInput(VaultError):
    """Malformed parameters (empty passphrase, wrong salt length, ...)."""

    message = "Invalid input"


class DecryptionFailed(VaultError):
    """Authentication tag mismatch or malformed envelope.

    Wrong passphrase and tampered ciphertext are deliberately reported
    the same way.
    """

    message = "Wrong master passphrase or corrupted data"


class SessionLocked(VaultError):
    """Operation attempted while the session is locked."""

    message = "Unlock required"


class PassphraseError(VaultError):
    """First-time master key setup was rejected."""


class PassphraseMismatch(PassphraseError):
    message = "Passphrases do not match"


class PassphraseTooShort(PassphraseError):
    message = "Master passphrase must be at least 8 characters long"


class StoreUnavailable(VaultError):
    """The record store failed or could not be reached."""

    message = "Record store unavailable"


class RecordNotFound(VaultError):
    """The record store has no record with the requested id."""

    message = "Item not found"
