# batepapo/services/presence_manager.py

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from batepapo.core.errors import Conflict, NotFound
from batepapo.models.models import Participant
from batepapo.services.storage import PARTICIPANTS, DocumentStore, DuplicateDocument

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER_SECONDS = 10.0

# ============================================================================
# PRESENCE MANAGER
# ============================================================================

class PresenceManager:
    """
    Owns the participant set of the room and decides who is still present.

    A participant exists from a successful join until a sweep finds that its
    last heartbeat is older than the staleness threshold. There is no other
    way to leave the room.

    Data (collection "participants"):
        {"name": "Ana", "lastStatus": 1700000000000}   # epoch ms

    Concurrency:
        join, heartbeat and sweep all run under one asyncio.Lock, so a name
        can only be created once per process and a sweep sees a consistent
        lastStatus. Across processes, the store's unique index on "name"
        turns the losing insert into a Conflict.
        Evictions are additionally conditional on the lastStatus snapshot,
        so a heartbeat that lands in the store between the snapshot and the
        delete (another instance sharing the same Mongo) still wins.

    Usage:
        presence = PresenceManager(store)
        await presence.join("Ana")
        await presence.heartbeat("Ana")
        evicted = await presence.sweep(time.time(), 10)
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], float] = time.time) -> None:
        self.store = store
        self.clock = clock
        self._lock = asyncio.Lock()

    async def join(self, name: str) -> Participant:
        """
        Create a participant with last_seen = now.

        Raises:
            Conflict: a participant with this name is already present
        """
        async with self._lock:
            if await self.store.find_one(PARTICIPANTS, {"name": name}) is not None:
                raise Conflict()
            participant = Participant(name=name, last_seen=self.clock())
            try:
                await self.store.insert_one(PARTICIPANTS, participant.to_document())
            except DuplicateDocument:
                # Another instance sharing the store won the race
                raise Conflict()

        logger.info("✓ %s joined the room", name)
        return participant

    async def heartbeat(self, name: str) -> None:
        """
        Refresh last_seen for a present participant.

        Raises:
            NotFound: nobody with this name is present
        """
        async with self._lock:
            refreshed = Participant(name=name, last_seen=self.clock()).to_document()
            matched = await self.store.update_one(
                PARTICIPANTS, {"name": name}, {"lastStatus": refreshed["lastStatus"]}
            )
        if not matched:
            raise NotFound("Participant not found")
        logger.debug("Heartbeat from %s", name)

    async def get(self, name: str) -> Optional[Participant]:
        doc = await self.store.find_one(PARTICIPANTS, {"name": name})
        return Participant.from_document(doc) if doc else None

    async def exists(self, name: str) -> bool:
        return await self.get(name) is not None

    async def list(self) -> List[Participant]:
        return [Participant.from_document(doc) for doc in await self.store.find(PARTICIPANTS)]

    async def sweep(
        self,
        now: Optional[float] = None,
        stale_after: float = DEFAULT_STALE_AFTER_SECONDS,
    ) -> List[Participant]:
        """
        Evict every participant whose last heartbeat is older than stale_after.

        A participant is stale when now - last_seen > stale_after; one sitting
        exactly on the threshold stays. A failed eviction is logged and the
        sweep moves on to the remaining participants.

        Args:
            now: Sweep time in epoch seconds (defaults to the clock)
            stale_after: Staleness threshold in seconds

        Returns:
            The participants actually removed by this sweep
        """
        now = self.clock() if now is None else now
        evicted: List[Participant] = []

        async with self._lock:
            snapshot = await self.store.find(PARTICIPANTS)
            for doc in snapshot:
                participant = Participant.from_document(doc)
                if now - participant.last_seen <= stale_after:
                    continue
                try:
                    deleted = await self.store.delete_one(
                        PARTICIPANTS, {"name": doc["name"], "lastStatus": doc["lastStatus"]}
                    )
                except Exception:
                    logger.exception("Failed to evict %s", participant.name)
                    continue
                if deleted:
                    evicted.append(participant)
                    logger.info("✗ %s evicted (idle %.1fs)", participant.name, now - participant.last_seen)

        return evicted
