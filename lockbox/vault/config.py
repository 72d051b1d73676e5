"""
Vault Configuration — validated settings read from the environment.

Reads settings from environment variables:
    LOCKBOX_CLIPBOARD_CLEAR_DELAY = <seconds before a copied secret is wiped>
    LOCKBOX_STORE_URL = <record store endpoint>
    LOCKBOX_STORE_TIMEOUT = <seconds per store request>
    LOCKBOX_GENERATOR_LENGTH = <default generated password length>

Key derivation parameters are not configurable: they are part of the
envelope format and live in ``crypto``.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("lockbox.vault")

DEFAULT_STORE_URL = "http://localhost:3000/api/vault"


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    clipboard_clear_delay: float = Field(default=15.0, gt=0)
    store_url: str = Field(default=DEFAULT_STORE_URL)
    store_timeout: float = Field(default=10.0, gt=0)
    generator_length: int = Field(default=12, ge=4, le=128)

    @field_validator("store_url")
    @classmethod
    def validate_store_url(cls, v: str) -> str:
        """Only http(s) endpoints are accepted."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported store URL scheme: {v}")
        return v.rstrip("/")

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Unset variables fall back to the field defaults.

        Returns:
            Populated VaultConfig instance.
        """
        env = {
            "clipboard_clear_delay": os.environ.get("LOCKBOX_CLIPBOARD_CLEAR_DELAY"),
            "store_url": os.environ.get("LOCKBOX_STORE_URL"),
            "store_timeout": os.environ.get("LOCKBOX_STORE_TIMEOUT"),
            "generator_length": os.environ.get("LOCKBOX_GENERATOR_LENGTH"),
        }
        values = {k: v for k, v in env.items() if v is not None}
        config = cls(**values)
        logger.debug(
            "Vault config loaded: store=%s clipboard_delay=%ss",
            config.store_url, config.clipboard_clear_delay,
        )
        return config
