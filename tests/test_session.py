"""
Tests for VaultSession.

Tests cover:
- Locked/Unlocked tagged state and transitions
- Session gating of encrypt/decrypt
- Lock listeners, epoch and logout signal
- First-use detection and master key creation
- Independence of coexisting sessions
"""
import asyncio

import pytest

from lockbox.vault import crypto
from lockbox.vault.auth import AuthContext, LogoutSignal
from lockbox.vault.models import VaultItemFields
from lockbox.vault.session import Locked, Unlocked, VaultSession
from lockbox.vault.store import MemoryRecordStore
from lockbox.vault.exceptions import (
    DecryptionFailed,
    InvalidInput,
    PassphraseMismatch,
    PassphraseTooShort,
    SessionLocked,
)


PASSPHRASE = "Tr0ub4dor&3"


@pytest.fixture
def session():
    return VaultSession()


@pytest.fixture
def unlocked():
    session = VaultSession()
    session.unlock(PASSPHRASE)
    return session


# --- State machine ---

class TestStates:
    """Tests for state transitions."""

    def test_starts_locked(self, session):
        """Test a new session is Locked."""
        assert isinstance(session.state, Locked)
        assert session.is_unlocked is False

    def test_unlock(self, session):
        """Test unlock moves to Unlocked with the passphrase."""
        session.unlock(PASSPHRASE)
        assert isinstance(session.state, Unlocked)
        assert session.state.passphrase == PASSPHRASE

    def test_unlock_accepts_any_passphrase(self, session):
        """Test unlock does not validate the passphrase."""
        session.unlock("correct-or-any")
        assert session.is_unlocked

    def test_unlock_empty_rejected(self, session):
        """Test an empty passphrase is invalid input."""
        with pytest.raises(InvalidInput):
            session.unlock("")
        assert isinstance(session.state, Locked)

    def test_lock(self, unlocked):
        """Test lock drops the passphrase."""
        unlocked.lock()
        assert isinstance(unlocked.state, Locked)
        assert not hasattr(unlocked.state, "passphrase")

    def test_lock_bumps_epoch(self, unlocked):
        """Test every effective lock bumps the epoch once."""
        assert unlocked.epoch == 0
        unlocked.lock()
        unlocked.lock()
        assert unlocked.epoch == 1

    def test_repr_hides_passphrase(self, unlocked):
        """Test neither the session nor its state reveal the passphrase."""
        assert PASSPHRASE not in repr(unlocked)
        assert PASSPHRASE not in repr(unlocked.state)
        assert "Unlocked" in repr(unlocked)


# --- Gating ---

class TestGating:
    """Tests for encrypt/decrypt availability."""

    @pytest.mark.asyncio
    async def test_encrypt_while_locked(self, session):
        """Test encrypt fails with SessionLocked."""
        with pytest.raises(SessionLocked):
            await session.encrypt("hunter2")

    @pytest.mark.asyncio
    async def test_decrypt_while_locked(self, session):
        """Test decrypt fails with SessionLocked."""
        envelope = crypto.encrypt("hunter2", PASSPHRASE)
        with pytest.raises(SessionLocked):
            await session.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_round_trip_when_unlocked(self, unlocked):
        """Test encrypt then decrypt through the session."""
        envelope = await unlocked.encrypt("hunter2")
        assert await unlocked.decrypt(envelope) == "hunter2"

    @pytest.mark.asyncio
    async def test_unlocked_with_wrong_passphrase(self, session):
        """Test failures after unlock come from AEAD, not session state."""
        envelope = crypto.encrypt("hunter2", PASSPHRASE)
        session.unlock("wrong-pass")
        with pytest.raises(DecryptionFailed):
            await session.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_operation_after_lock_fails(self, unlocked):
        """Test an operation started after lock() fails."""
        envelope = await unlocked.encrypt("hunter2")
        unlocked.lock()
        with pytest.raises(SessionLocked):
            await unlocked.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_scheduled_but_not_started_sees_lock(self, unlocked):
        """Test a task scheduled before lock() but run after it fails."""
        envelope = await unlocked.encrypt("hunter2")
        task = asyncio.ensure_future(unlocked.decrypt(envelope))
        unlocked.lock()
        with pytest.raises(SessionLocked):
            await task


# --- Listeners and logout ---

class TestLockListeners:
    """Tests for lock notifications."""

    def test_listener_called_on_lock(self, unlocked):
        """Test listeners run synchronously on lock."""
        calls = []
        unlocked.add_lock_listener(lambda: calls.append("locked"))
        unlocked.lock()
        assert calls == ["locked"]

    def test_failing_listener_does_not_stop_others(self, unlocked, caplog):
        """Test every listener runs even when an earlier one raises."""
        calls = []

        def broken():
            raise RuntimeError("listener exploded")

        unlocked.add_lock_listener(broken)
        unlocked.add_lock_listener(lambda: calls.append("locked"))
        unlocked.lock()
        assert calls == ["locked"]
        assert isinstance(unlocked.state, Locked)
        assert "Lock listener" in caplog.text
        assert PASSPHRASE not in caplog.text

    def test_listener_not_called_when_already_locked(self, session):
        """Test lock() on a locked session is a no-op."""
        calls = []
        session.add_lock_listener(lambda: calls.append("locked"))
        session.lock()
        assert calls == []

    def test_logout_locks(self):
        """Test the authentication logout signal locks the session."""
        auth = AuthContext(owner_id="user-1")
        session = VaultSession(auth)
        session.unlock(PASSPHRASE)
        auth.logout.fire()
        assert isinstance(session.state, Locked)

    def test_close_unsubscribes(self):
        """Test close() locks and detaches from the logout signal."""
        auth = AuthContext(owner_id="user-1")
        session = VaultSession(auth)
        assert len(auth.logout) == 1
        session.close()
        assert len(auth.logout) == 0

    def test_signal_unsubscribe(self):
        """Test LogoutSignal.subscribe returns an unsubscriber."""
        signal = LogoutSignal()
        calls = []
        unsubscribe = signal.subscribe(lambda: calls.append(1))
        signal.fire()
        unsubscribe()
        signal.fire()
        assert calls == [1]


# --- First use ---

class TestMasterKeyCreation:
    """Tests for first-use detection and create_master_key."""

    @pytest.mark.asyncio
    async def test_empty_store_is_first_use(self, session):
        """Test zero records means first use."""
        assert await session.detect_first_use(MemoryRecordStore(), "user-1") is True
        assert session.first_use is True

    @pytest.mark.asyncio
    async def test_store_with_records_is_not_first_use(self, session):
        """Test existing records disable master key creation."""
        store = MemoryRecordStore()
        await store.create("user-1", VaultItemFields(
            title="Gmail", username="a@b.com",
            password=crypto.encrypt("p1", PASSPHRASE),
        ))
        assert await session.detect_first_use(store, "user-1") is False
        with pytest.raises(InvalidInput):
            session.create_master_key(PASSPHRASE, PASSPHRASE)

    @pytest.mark.asyncio
    async def test_create_master_key_unlocks(self, session):
        """Test a valid setup unlocks the session."""
        await session.detect_first_use(MemoryRecordStore(), "user-1")
        session.create_master_key(PASSPHRASE, PASSPHRASE)
        assert session.is_unlocked
        assert session.first_use is False

    @pytest.mark.asyncio
    async def test_too_short(self, session):
        """Test passphrases under 8 characters are rejected."""
        await session.detect_first_use(MemoryRecordStore(), "user-1")
        with pytest.raises(PassphraseTooShort):
            session.create_master_key("short", "short")
        assert isinstance(session.state, Locked)

    @pytest.mark.asyncio
    async def test_mismatch(self, session):
        """Test differing confirmation is rejected."""
        await session.detect_first_use(MemoryRecordStore(), "user-1")
        with pytest.raises(PassphraseMismatch):
            session.create_master_key(PASSPHRASE, PASSPHRASE + "x")
        assert isinstance(session.state, Locked)

    @pytest.mark.asyncio
    async def test_exactly_eight_characters(self, session):
        """Test the minimum length is inclusive."""
        await session.detect_first_use(MemoryRecordStore(), "user-1")
        session.create_master_key("12345678", "12345678")
        assert session.is_unlocked

    def test_unknown_first_use_rejected(self, session):
        """Test setup is refused before detection has run."""
        with pytest.raises(InvalidInput):
            session.create_master_key(PASSPHRASE, PASSPHRASE)


# --- Independence ---

class TestIndependence:
    """Tests that sessions do not share state."""

    @pytest.mark.asyncio
    async def test_two_sessions(self):
        """Test locking one session leaves the other unlocked."""
        a, b = VaultSession(), VaultSession()
        a.unlock(PASSPHRASE)
        b.unlock("another-passphrase")
        envelope = await a.encrypt("hunter2")
        a.lock()
        assert b.is_unlocked
        with pytest.raises(DecryptionFailed):
            await b.decrypt(envelope)
