"""
Deadline watcher for Golf 9.

Peek and turn deadlines are plain timestamps in the game state. The watcher
is the cooperative scheduler that polls them: a background asyncio task
checks the match every ``interval`` seconds and runs the deadline fallback
through Match.resolve_expiry.

Each deadline value fires at most once. The fallback itself installs a new
deadline, but the watcher also remembers the last deadline it fired for so
a slow or repeated tick can never trigger the same fallback twice.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from golf9.config import config
from golf9.game import ExpiryOutcome
from golf9.match import Match

logger = logging.getLogger(__name__)


class ExpiryWatcher:
    """
    Polls a match's deadlines and resolves them when they pass.

    Usage:
        watcher = ExpiryWatcher(match, on_expired=redraw)
        await watcher.start()
        ...
        await watcher.stop()
    """

    def __init__(
        self,
        match: Match,
        interval: Optional[float] = None,
        on_expired: Optional[Callable[[ExpiryOutcome], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.match = match
        self.interval = interval if interval is not None else config.EXPIRY_POLL_INTERVAL
        self.on_expired = on_expired
        self.clock = clock
        self._fired_for: Optional[float] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    def tick(self, now: Optional[float] = None) -> Optional[ExpiryOutcome]:
        """
        Check the match once.

        Args:
            now: Current time; the watcher's clock when omitted.

        Returns:
            The outcome if a fallback ran, otherwise None.
        """
        deadline = self.match.deadline
        if deadline is None or self.match.game_over:
            return None
        if deadline == self._fired_for:
            return None

        now = self.clock() if now is None else now
        if now < deadline:
            return None

        self._fired_for = deadline
        outcome = self.match.resolve_expiry(now=now)
        if not outcome.fired:
            return None

        logger.debug(f"Resolved expired deadline ({outcome.action})")
        if self.on_expired:
            self.on_expired(outcome)
        return outcome

    async def start(self) -> None:
        """Start the background polling task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._watch_loop())
        logger.info("Expiry watcher started")

    async def stop(self) -> None:
        """Stop the background polling task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Expiry watcher stopped")

    async def _watch_loop(self) -> None:
        """Background task that periodically checks the deadline."""
        while self._running:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Expiry watcher error: {e}")

            await asyncio.sleep(self.interval)
