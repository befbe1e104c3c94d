# batepapo/core/state.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from batepapo.core.config import settings
from batepapo.services.chat_room import ChatRoom
from batepapo.services.message_store import MessageStore
from batepapo.services.presence_manager import PresenceManager
from batepapo.services.storage import DocumentStore, create_store
from batepapo.services.sweeper import PresenceSweeper

# Global singletons for app state, built on startup by init_state()
store: Optional[DocumentStore] = None
chat_room: Optional[ChatRoom] = None
sweeper: Optional[PresenceSweeper] = None

app_start_time: datetime = datetime.now(timezone.utc)


def init_state(document_store: Optional[DocumentStore] = None) -> ChatRoom:
    """Wire store -> presence/messages -> room -> sweeper from settings."""
    global store, chat_room, sweeper, app_start_time

    store = document_store or create_store(
        settings.STORAGE_BACKEND, settings.MONGO_URI, settings.MONGO_DB
    )
    chat_room = ChatRoom(
        presence=PresenceManager(store),
        messages=MessageStore(store),
        stale_after=settings.STALE_AFTER_SECONDS,
    )
    sweeper = PresenceSweeper(chat_room, interval=settings.SWEEP_INTERVAL_SECONDS)
    app_start_time = datetime.now(timezone.utc)
    return chat_room
