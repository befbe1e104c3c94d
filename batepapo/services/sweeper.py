# batepapo/services/sweeper.py

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from batepapo.models.models import Participant
from batepapo.services.chat_room import ChatRoom

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 15.0


class PresenceSweeper:
    """
    Periodic task that evicts stale participants.

    Owned by the application: start() on startup, stop() on shutdown.
    Sweeps never overlap. If run_once() is called while another sweep is
    still in progress, the new one is skipped instead of queued.
    """

    def __init__(self, room: ChatRoom, interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        self.room = room
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._sweeping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="presence-sweeper")
        logger.info("✓ Presence sweeper started (every %ss, stale after %ss)",
                    self.interval, self.room.stale_after)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Presence sweeper stopped")

    async def run_once(self, now: Optional[float] = None) -> Optional[List[Participant]]:
        """
        Run a single sweep.

        Returns:
            The evicted participants, or None if a sweep was already running
        """
        if self._sweeping:
            logger.warning("Sweep already in progress - skipping")
            return None

        self._sweeping = True
        try:
            evicted = await self.room.sweep(now)
        finally:
            self._sweeping = False

        if evicted:
            logger.info("Sweep evicted %d participant(s)", len(evicted))
        return evicted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.run_once()
            except Exception:
                # Storage hiccups must not kill the timer
                logger.exception("Sweep failed")
