"""
Vault Models — records as stored remotely and as held in memory.

Only the ``password`` field is ever encrypted. ``title``, ``username``,
``url`` and ``notes`` travel in clear text so they stay searchable.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VaultItemFields(BaseModel):
    """Payload dispatched to the record store on create/update.

    ``password`` holds a CipherEnvelope, never plaintext.
    """

    title: str
    username: str
    password: str
    url: str = ""
    notes: str = ""


class VaultItem(BaseModel):
    """Encrypted vault record as returned by the record store."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    owner_id: str = Field(alias="userId")
    title: str
    username: str
    password: str
    url: str = ""
    notes: str = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    def decrypted(self, plaintext: str) -> "DecryptedVaultItem":
        """Return the in-memory twin of this record carrying ``plaintext``."""
        data = self.model_dump(exclude={"password"})
        return DecryptedVaultItem(**data, password=plaintext)


class DecryptedVaultItem(BaseModel):
    """Vault record whose password is plaintext.

    Lives only in process memory while the session is unlocked.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    title: str
    username: str
    password: str = Field(repr=False)
    url: str = ""
    notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over the clear-text fields."""
        needle = query.lower()
        return any(
            needle in (value or "").lower()
            for value in (self.title, self.username, self.url, self.notes)
        )


class VaultItemDraft(BaseModel):
    """User edit of a vault item, with the password still in plaintext.

    A draft without ``id`` creates a new record; with ``id`` it updates
    the existing one.
    """

    id: Optional[str] = None
    title: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    url: str = ""
    notes: str = ""

    @property
    def is_new(self) -> bool:
        return self.id is None

    def sealed(self, envelope: str) -> VaultItemFields:
        """Build the store payload with ``envelope`` in place of the password."""
        return VaultItemFields(
            title=self.title,
            username=self.username,
            password=envelope,
            url=self.url,
            notes=self.notes,
        )
