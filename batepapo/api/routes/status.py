# batepapo/api/routes/status.py

from fastapi import APIRouter, Depends

from batepapo.core import state
from batepapo.api.routes.utils import requester_name

router = APIRouter()


@router.post("/status")
async def heartbeat(user: str = Depends(requester_name)):
    """
    Presence heartbeat.

    Clients call this every few seconds; a participant that stays silent
    for longer than STALE_AFTER_SECONDS is evicted by the next sweep.

    Raises:
        404 if `user` is not in the room
    """
    await state.chat_room.heartbeat(user)
    return {"status": "ok"}
