# batepapo/api/routes/messages.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from batepapo.core import state
from batepapo.models.models import MessageRequest
from batepapo.api.routes.utils import requester_name
from batepapo.services.sanitizer import parse_limit

router = APIRouter()

# ============================================================================
# MESSAGE ENDPOINTS
# ============================================================================

@router.post("/messages", status_code=201)
async def send_message(request: MessageRequest, user: str = Depends(requester_name)):
    """
    Send a public or private message as `user`.

    Args:
        request: MessageRequest with to, text and type
                 (type is "message" or "private_message")
        user: Sender, from the `user` header

    Returns:
        dict: {"id": "<message id>"}

    Raises:
        422 on invalid body or when the sender is not in the room
    """
    message_id = await state.chat_room.send(user, request.to_draft(user))
    return {"id": message_id}


@router.get("/messages")
async def get_messages(
    user: str = Depends(requester_name),
    limit: Optional[str] = Query(default=None),
):
    """
    Messages visible to `user`, oldest first.

    Public messages and status notices are always included; private
    messages only when `user` sent or received them. With `limit`, only
    the most recent `limit` visible messages are returned. A non-numeric
    or non-positive limit is ignored.
    """
    messages = await state.chat_room.read(user, parse_limit(limit))
    return [m.to_document() for m in messages]


@router.put("/messages/{message_id}", status_code=201)
async def edit_message(message_id: str, request: MessageRequest, user: str = Depends(requester_name)):
    """
    Replace to/text/type of a message sent by `user`.

    id, from and time never change.

    Raises:
        422 on invalid body or unknown sender,
        404 if the message doesn't exist,
        401 if `user` is not the sender
    """
    message = await state.chat_room.edit(message_id, user, request.to_patch())
    return message.to_document()


@router.delete("/messages/{message_id}", status_code=201)
async def delete_message(message_id: str, user: str = Depends(requester_name)):
    """
    Delete a message sent by `user`.

    Raises:
        404 if the message doesn't exist, 401 if `user` is not the sender
    """
    await state.chat_room.delete(message_id, user)
    return {"status": "deleted", "id": message_id}
