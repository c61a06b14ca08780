"""Debounced persistence for state files (tag index, validation cache)."""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger


class DebouncedWriter:
    """Coalesces bursts of mutations into a single delayed write.

    `schedule()` is synchronous so in-memory mutations can call it directly. It
    restarts the timer on the running loop; outside a loop the write stays
    pending until `flush()`.
    """

    def __init__(self, write: Callable[[], Awaitable[None]], debounce_seconds: float, name: str):
        self._write = write
        self.debounce_seconds = debounce_seconds
        self.name = name
        self.dirty = False
        self._debounce_task: asyncio.Task | None = None

    def schedule(self):
        """Mark dirty and restart the debounce timer."""
        self.dirty = True
        self.cancel()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop; {self.name} write deferred until flush")
            return

        self._debounce_task = asyncio.create_task(self._debounced_write())

    def cancel(self):
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounced_write(self):
        """Wait for debounce period then write."""
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return

        self._debounce_task = None
        await self._write_if_dirty()

    async def flush(self):
        """Cancel any pending timer and write now if there are unsaved changes."""
        self.cancel()
        await self._write_if_dirty()

    async def _write_if_dirty(self):
        if not self.dirty:
            return
        self.dirty = False
        await self._write()
