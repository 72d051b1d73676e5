"""
Authentication boundary — who owns the vault and when to forget secrets.

Account authentication itself happens elsewhere; the vault only needs the
opaque owner id of the authenticated actor and a "logout now" signal.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger("lockbox.vault")

LogoutHandler = Callable[[], None]


class LogoutSignal:
    """Synchronous observer list fired when the user logs out."""

    def __init__(self):
        self._handlers: list[LogoutHandler] = []

    def subscribe(self, handler: LogoutHandler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def fire(self) -> None:
        """Invoke every handler in subscription order."""
        logger.debug("Logout signal fired (%d handler(s))", len(self._handlers))
        for handler in list(self._handlers):
            handler()

    def __len__(self) -> int:
        return len(self._handlers)


@dataclass
class AuthContext:
    """Authenticated actor as seen by the vault."""

    owner_id: str
    logout: LogoutSignal = field(default_factory=LogoutSignal)
