"""
Vault Crypto Core — Key derivation and envelope encryption/decryption.

Each secret is sealed in a self-describing envelope:
    base64( salt 16B | nonce 12B | AES-256-GCM ciphertext + tag 16B )

The key is PBKDF2-HMAC-SHA256(passphrase, salt) and is recomputed on
every call; nothing but the passphrase is needed to open an envelope.

Security Note:
    Never log passphrases, keys, plaintext or envelopes.
    Salt and nonce are fresh per encryption, never reused per user.
"""
import os
import base64
import binascii
import logging
from typing import NamedTuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import InvalidInput, DecryptionFailed

logger = logging.getLogger("lockbox.vault")

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256
KDF_ITERATIONS = 100_000

_HEADER_SIZE = SALT_SIZE + NONCE_SIZE


class Envelope(NamedTuple):
    """Decoded CipherEnvelope, sliced at fixed offsets."""

    salt: bytes
    nonce: bytes
    ciphertext: bytes  # ciphertext with the GCM tag appended


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(passphrase: str, salt: bytes) -> bytes:
    """Derive a 32-byte key from a passphrase using PBKDF2-HMAC-SHA256.

    Args:
        passphrase: Master passphrase (non-empty).
        salt: 16 random bytes.

    Returns:
        32-byte derived key.

    Raises:
        InvalidInput: If passphrase is empty or salt is not 16 bytes.
    """
    if not passphrase:
        raise InvalidInput("Passphrase cannot be empty")
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
        raise InvalidInput(f"Salt must be exactly {SALT_SIZE} bytes")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=bytes(salt),
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


# ---------------------------------------------------------------------------
# Envelope format
# ---------------------------------------------------------------------------

def build_envelope(salt: bytes, nonce: bytes, ciphertext: bytes) -> str:
    """Concatenate the envelope parts and base64-encode them."""
    return base64.b64encode(salt + nonce + ciphertext).decode("ascii")


def parse_envelope(envelope: str) -> Envelope:
    """Split an envelope into salt, nonce and ciphertext+tag.

    Raises:
        DecryptionFailed: If the envelope is not valid base64 or is too
            short to hold salt, nonce and tag.
    """
    try:
        raw = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise DecryptionFailed() from None
    if len(raw) < _HEADER_SIZE + TAG_SIZE:
        raise DecryptionFailed()
    return Envelope(
        salt=raw[:SALT_SIZE],
        nonce=raw[SALT_SIZE:_HEADER_SIZE],
        ciphertext=raw[_HEADER_SIZE:],
    )


# ---------------------------------------------------------------------------
# AEAD codec
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, passphrase: str) -> str:
    """Encrypt a secret string under a passphrase.

    A fresh salt and nonce are drawn for every call, so encrypting the
    same input twice yields two different envelopes.

    Args:
        plaintext: Secret to encrypt (may be empty).
        passphrase: Master passphrase.

    Returns:
        CipherEnvelope string.
    """
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(passphrase, salt)
    ct = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return build_envelope(salt, nonce, ct)


def decrypt(envelope: str, passphrase: str) -> str:
    """Open a CipherEnvelope with a passphrase.

    Args:
        envelope: CipherEnvelope string produced by :func:`encrypt`.
        passphrase: Master passphrase.

    Returns:
        Decrypted secret string.

    Raises:
        DecryptionFailed: On a malformed envelope, a wrong passphrase or
            tampered data. The three cases are indistinguishable.
        InvalidInput: If passphrase is empty.
    """
    parts = parse_envelope(envelope)
    key = derive_key(passphrase, parts.salt)
    try:
        data = AESGCM(key).decrypt(parts.nonce, parts.ciphertext, None)
        return data.decode("utf-8")
    except (InvalidTag, ValueError):
        logger.debug("Envelope failed authentication")
        raise DecryptionFailed() from None
