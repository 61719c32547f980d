"""
Auto-save Debouncer

Coalesces bursts of edits into a single save. Each ``schedule`` call
cancels the pending save and restarts the quiet window, so a sync round
is triggered once editing stops, never per keystroke.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

SaveCallback = Callable[[], Awaitable[object]]

DEFAULT_DELAY_SECONDS = 1.0


class AutoSaveDebouncer:
    """
    Trailing-edge debouncer on the running event loop.

    A save that already started is never cancelled by a later edit; only
    the waiting window is.
    """

    def __init__(self, delay: float = DEFAULT_DELAY_SECONDS) -> None:
        self._delay = delay
        self._task: asyncio.Task | None = None
        self._callback: SaveCallback | None = None
        # Strong references to saves that outlived their window
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: SaveCallback) -> None:
        """Replace any waiting save with ``callback`` and restart the window."""
        self.cancel()
        self._callback = callback
        self._task = asyncio.get_running_loop().create_task(self._wait_then_run())
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Drop the waiting save, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._callback = None

    async def flush(self) -> None:
        """Run the waiting save now instead of at the end of the window."""
        callback = self._callback
        if not self.pending or callback is None:
            return
        self.cancel()
        await callback()

    async def _wait_then_run(self) -> None:
        await asyncio.sleep(self._delay)
        callback = self._callback
        # Detach first: a new edit during the save must not cancel it
        self._task = None
        self._callback = None
        if callback is None:
            return
        try:
            await callback()
        except Exception:
            logger.exception("Auto-save failed")
