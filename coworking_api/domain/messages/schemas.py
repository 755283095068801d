"""Contact message schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone

MESSAGE_STATUSES = ("unread", "read", "replied", "archived")


class ContactMessageCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    email: str
    phone: Optional[str] = None
    subject: str = Field(min_length=2, max_length=255)
    message: str = Field(min_length=10, max_length=5000)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class MessageStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v not in MESSAGE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(MESSAGE_STATUSES)}")
        return v


class MessageReply(BaseModel):
    reply: str = Field(min_length=1, max_length=10000)


class ContactMessageResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    status: str
    reply: Optional[str] = None
    repliedAt: Optional[datetime] = None
    repliedBy: Optional[int] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_message(cls, msg) -> "ContactMessageResponse":
        return cls(
            id=msg.id,
            name=msg.name,
            email=msg.email,
            phone=msg.phone,
            subject=msg.subject,
            message=msg.message,
            status=msg.status,
            reply=msg.reply,
            repliedAt=msg.replied_at,
            repliedBy=msg.replied_by,
            createdAt=msg.created_at,
        )
