# batepapo/api/routes/health.py

from datetime import datetime, timezone

from fastapi import APIRouter

from batepapo.core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns current status, participant and message counts, and which
    storage backend is in use. Used by container health probes.

    Returns:
        dict: Status, storage backend, participant count, message count, uptime
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    return {
        "status": "healthy",
        "storage": state.store.name,
        "participants": len(await state.chat_room.participants()),
        "messages": await state.chat_room.messages.count(),
        "sweeper_running": state.sweeper.running,
        "uptime_seconds": round(uptime_seconds, 1),
    }
