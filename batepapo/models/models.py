# batepapo/models/models.py
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from batepapo.services.sanitizer import strip_markup

PUBLIC_RECIPIENT = "Todos"


class MessageType(str, Enum):
    MESSAGE = "message"
    PRIVATE_MESSAGE = "private_message"
    STATUS = "status"


class Participant(BaseModel):
    name: str
    last_seen: float  # epoch seconds

    def to_document(self) -> dict:
        # Stored and served as epoch milliseconds under "lastStatus"
        return {"name": self.name, "lastStatus": int(round(self.last_seen * 1000))}

    @classmethod
    def from_document(cls, doc: dict) -> "Participant":
        return cls(name=doc["name"], last_seen=doc["lastStatus"] / 1000)


class MessageDraft(BaseModel):
    """A message before the store assigns it an id and a time."""
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    text: str
    type: MessageType


class Message(MessageDraft):
    id: str
    time: str  # HH:MM:SS, set once at creation

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_document(cls, doc: dict) -> "Message":
        return cls.model_validate(doc)


class MessagePatch(BaseModel):
    to: Optional[str] = None
    text: Optional[str] = None
    type: Optional[MessageType] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True, mode="json")


# ============================================================================
# REQUEST BODIES
# ============================================================================

class ParticipantRequest(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _sanitize(cls, value):
        return strip_markup(value)


class MessageRequest(BaseModel):
    to: str = Field(min_length=1)
    text: str = Field(min_length=1)
    # Clients can never author status messages
    type: Literal["message", "private_message"]

    @field_validator("to", "text", "type", mode="before")
    @classmethod
    def _sanitize(cls, value):
        return strip_markup(value)

    def to_draft(self, sender: str) -> MessageDraft:
        return MessageDraft(from_=sender, to=self.to, text=self.text, type=MessageType(self.type))

    def to_patch(self) -> MessagePatch:
        return MessagePatch(to=self.to, text=self.text, type=MessageType(self.type))
