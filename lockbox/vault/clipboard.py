"""
Clipboard Guard — wipe copied secrets after a fixed delay.

Whatever the host application copies through the guard is overwritten
with an empty string once ``delay`` seconds have passed. The wipe is a
cancellable ``asyncio.Task`` owned by the copy that scheduled it: a newer
copy replaces it, ``clear_now()`` runs it early, ``cancel()`` drops it.

This is best-effort hygiene, not a security boundary: anything that read
the clipboard in the meantime keeps what it read.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("lockbox.vault")

ClipboardWriter = Callable[[str], Awaitable[None]]

DEFAULT_CLEAR_DELAY = 15.0


class ClipboardGuard:
    """Copies text through ``writer`` and schedules its removal.

    Args:
        writer: Coroutine function that puts a string on the clipboard.
        delay: Seconds before a copied value is wiped.
    """

    def __init__(self, writer: ClipboardWriter, delay: float = DEFAULT_CLEAR_DELAY):
        self._writer = writer
        self._delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> Optional[asyncio.Task]:
        """The scheduled wipe, or None when nothing is waiting."""
        if self._task is not None and self._task.done():
            self._task = None
        return self._task

    async def copy(self, text: str) -> asyncio.Task:
        """Put ``text`` on the clipboard and schedule the wipe.

        A previously scheduled wipe is cancelled; the new one covers both.

        Returns:
            The task that will clear the clipboard.
        """
        await self._writer(text)
        self.cancel()
        self._task = asyncio.create_task(self._clear_later())
        logger.debug("Clipboard copy, clearing in %ss", self._delay)
        return self._task

    def cancel(self) -> None:
        """Drop the scheduled wipe without touching the clipboard."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def clear_now(self) -> None:
        """Cancel the scheduled wipe and clear the clipboard immediately."""
        self.cancel()
        await self._clear()

    def on_lock(self) -> None:
        """Lock listener: wipe now if a copy is still pending.

        Safe to call from synchronous code: the wipe is scheduled on the
        loop that owns the pending task, and runs when that loop next runs.
        """
        pending = self.pending
        if pending is None:
            return
        loop = pending.get_loop()
        self.cancel()
        if loop.is_closed():
            logger.warning("Could not clear clipboard: event loop is closed")
            return
        self._task = loop.create_task(self._clear())

    async def _clear_later(self) -> None:
        await asyncio.sleep(self._delay)
        await self._clear()

    async def _clear(self) -> None:
        try:
            await self._writer("")
        except Exception as err:  # best effort, the app may have lost focus
            logger.warning("Could not clear clipboard: %s", type(err).__name__)
        else:
            logger.debug("Clipboard cleared")
