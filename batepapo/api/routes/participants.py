# batepapo/api/routes/participants.py

from fastapi import APIRouter

from batepapo.core import state
from batepapo.models.models import ParticipantRequest

router = APIRouter()

# ============================================================================
# PARTICIPANT ENDPOINTS
# ============================================================================

@router.post("/participants", status_code=201)
async def join(request: ParticipantRequest):
    """
    Join the room.

    Args:
        request: ParticipantRequest with the (sanitized) name

    Returns:
        dict: The new participant {"name", "lastStatus"}

    Raises:
        422 if name is missing or empty, 409 if the name is taken

    Side Effects:
        - Public status message "entra na sala..." appended
    """
    participant = await state.chat_room.join(request.name)
    return participant.to_document()


@router.get("/participants")
async def list_participants():
    """List everyone currently in the room."""
    return [p.to_document() for p in await state.chat_room.participants()]
