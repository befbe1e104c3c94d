# batepapo/core/errors.py

from __future__ import annotations


class ChatError(Exception):
    """
    Base class for every error the chat core reports to its caller.

    Each subclass carries the HTTP status the request layer answers with and
    a short client-facing message. Only StorageUnavailable is a server error;
    its detail is logged and never sent back to the client.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if message is not None and self.status_code < 500:
            self.public_message = message


class ValidationError(ChatError):
    status_code = 422
    public_message = "Invalid request"


class Conflict(ChatError):
    status_code = 409
    public_message = "Participant name already in use"


class NotFound(ChatError):
    status_code = 404
    public_message = "Not found"


class Forbidden(ChatError):
    status_code = 401
    public_message = "Not allowed"


class StorageUnavailable(ChatError):
    status_code = 500
