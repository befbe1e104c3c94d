# batepapo/services/message_store.py

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from batepapo.core.errors import Forbidden, NotFound
from batepapo.models.models import Message, MessageDraft, MessagePatch, MessageType
from batepapo.services.storage import MESSAGES, DocumentStore

logger = logging.getLogger(__name__)

TIME_FORMAT = "%H:%M:%S"


def format_time(timestamp: float) -> str:
    """Wall-clock HH:MM:SS for an epoch timestamp (no date component)."""
    return datetime.fromtimestamp(timestamp).strftime(TIME_FORMAT)


def is_visible(message: Message, requester: str) -> bool:
    """
    Visibility filter for a single message.

    Public messages and status notices are visible to everyone. A private
    message is visible only to its sender and its recipient.
    """
    if message.type in (MessageType.MESSAGE, MessageType.STATUS):
        return True
    if message.type is MessageType.PRIVATE_MESSAGE:
        return requester in (message.from_, message.to)
    raise ValueError(f"Unhandled message type: {message.type}")


# ============================================================================
# MESSAGE STORE
# ============================================================================

class MessageStore:
    """
    Owns the ordered message log of the room.

    Messages keep their insertion order for their whole lifetime. Only the
    sender of a message may edit or delete it, and an edit never touches
    id, from or time.

    Data (collection "messages"):
        {
            "id": "3f2c...",
            "from": "Ana",
            "to": "Todos",
            "text": "oi",
            "type": "message",
            "time": "20:04:37"
        }

    Usage:
        messages = MessageStore(store)
        message_id = await messages.append(MessageDraft(from_="Ana", to="Todos", text="oi", type="message"))
        visible = await messages.query("Bob", limit=50)
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], float] = time.time) -> None:
        self.store = store
        self.clock = clock
        self._lock = asyncio.Lock()

    async def append(self, draft: MessageDraft, at: Optional[float] = None) -> str:
        """
        Assign an id and a creation time, then insert.

        Args:
            draft: Sender, recipient, text and type
            at: Creation time in epoch seconds (defaults to the clock)

        Returns:
            str: The new message id

        Raises:
            StorageUnavailable: the underlying store failed
        """
        message = Message(
            id=uuid.uuid4().hex,
            time=format_time(self.clock() if at is None else at),
            **draft.model_dump(),
        )
        async with self._lock:
            await self.store.insert_one(MESSAGES, message.to_document())
        logger.debug("Stored %s %s from %s", message.type.value, message.id, message.from_)
        return message.id

    async def get(self, message_id: str) -> Optional[Message]:
        doc = await self.store.find_one(MESSAGES, {"id": message_id})
        return Message.from_document(doc) if doc else None

    async def _owned(self, message_id: str, requester: str) -> Message:
        message = await self.get(message_id)
        if message is None:
            raise NotFound("Message not found")
        if message.from_ != requester:
            raise Forbidden("Only the sender can change this message")
        return message

    async def edit(self, message_id: str, requester: str, patch: MessagePatch) -> Message:
        """
        Apply `patch` to a message owned by `requester`.

        Raises:
            NotFound: no message with this id
            Forbidden: requester is not the sender
        """
        async with self._lock:
            message = await self._owned(message_id, requester)
            changes = patch.changes()
            if changes:
                await self.store.update_one(MESSAGES, {"id": message_id}, changes)
        logger.info("✎ %s edited message %s", requester, message_id)
        return message.model_copy(update=patch.model_dump(exclude_none=True))

    async def remove(self, message_id: str, requester: str) -> None:
        """
        Delete a message owned by `requester`.

        Raises:
            NotFound: no message with this id
            Forbidden: requester is not the sender
        """
        async with self._lock:
            await self._owned(message_id, requester)
            await self.store.delete_one(MESSAGES, {"id": message_id})
        logger.info("🗑 %s deleted message %s", requester, message_id)

    async def query(self, requester: str, limit: Optional[int] = None) -> List[Message]:
        """
        Messages visible to `requester`, oldest first.

        Filtering happens before truncation: `limit` keeps the most recent
        `limit` visible messages. A missing or non-positive limit returns
        everything visible.
        """
        messages = [Message.from_document(doc) for doc in await self.store.find(MESSAGES)]
        visible = [m for m in messages if is_visible(m, requester)]
        if limit is not None and limit > 0:
            return visible[-limit:]
        return visible

    async def count(self) -> int:
        return await self.store.count(MESSAGES)
