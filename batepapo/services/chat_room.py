# batepapo/services/chat_room.py

from __future__ import annotations

import logging
from typing import List, Optional

from batepapo.core.errors import ValidationError
from batepapo.models.models import (
    PUBLIC_RECIPIENT,
    Message,
    MessageDraft,
    MessagePatch,
    MessageType,
    Participant,
)
from batepapo.services.message_store import MessageStore
from batepapo.services.presence_manager import DEFAULT_STALE_AFTER_SECONDS, PresenceManager
from batepapo.services.sanitizer import require_text

logger = logging.getLogger(__name__)

JOIN_TEXT = "entra na sala..."
LEAVE_TEXT = "sai da sala..."

# ============================================================================
# CHAT ROOM
# ============================================================================

class ChatRoom:
    """
    The single room: ties presence transitions to the message log.

    Presence and messages never reference each other. The only link is the
    status notice this class appends when someone joins or is evicted.
    Those are two separate writes with best-effort semantics:

        join   -> participant created, then "entra na sala..." appended.
                  If the notice fails the participant stays joined and the
                  error propagates to the caller.
        evict  -> participant removed, then "sai da sala..." appended.
                  If the notice fails it is logged and the eviction stands.

    There is no compensation for a failed second write.
    """

    def __init__(
        self,
        presence: PresenceManager,
        messages: MessageStore,
        stale_after: float = DEFAULT_STALE_AFTER_SECONDS,
    ) -> None:
        self.presence = presence
        self.messages = messages
        self.stale_after = stale_after

    # ------------------------------------------------------------------ presence

    async def join(self, name: str) -> Participant:
        name = require_text(name, "name")
        participant = await self.presence.join(name)
        await self.messages.append(self._status(name, JOIN_TEXT), at=participant.last_seen)
        return participant

    async def heartbeat(self, name: str) -> None:
        await self.presence.heartbeat(name)

    async def participants(self) -> List[Participant]:
        return await self.presence.list()

    async def sweep(self, now: Optional[float] = None) -> List[Participant]:
        """
        Evict stale participants and announce each departure.

        Returns:
            The evicted participants, whether or not their notice was stored
        """
        now = self.presence.clock() if now is None else now
        evicted = await self.presence.sweep(now, self.stale_after)
        for participant in evicted:
            try:
                await self.messages.append(self._status(participant.name, LEAVE_TEXT), at=now)
            except Exception:
                logger.exception("Leave notice for %s could not be stored", participant.name)
        return evicted

    # ------------------------------------------------------------------ messages

    async def send(self, sender: str, draft: MessageDraft) -> str:
        await self._require_participant(sender)
        return await self.messages.append(draft)

    async def edit(self, message_id: str, requester: str, patch: MessagePatch) -> Message:
        await self._require_participant(requester)
        return await self.messages.edit(message_id, requester, patch)

    async def delete(self, message_id: str, requester: str) -> None:
        await self.messages.remove(message_id, requester)

    async def read(self, requester: str, limit: Optional[int] = None) -> List[Message]:
        return await self.messages.query(requester, limit)

    async def _require_participant(self, name: str) -> None:
        if not await self.presence.exists(name):
            raise ValidationError("Sender is not in the room")

    @staticmethod
    def _status(name: str, text: str) -> MessageDraft:
        return MessageDraft(from_=name, to=PUBLIC_RECIPIENT, text=text, type=MessageType.STATUS)
