"""Contact form and admin inbox"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import contact_rate_limiter
from .schemas import ContactMessageCreate, ContactMessageResponse, MessageReply, MessageStatusUpdate
from .service import MessageService

router = APIRouter(tags=["Messages"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    """Dependency injection for MessageService"""
    return MessageService(db)


@router.post("/contact", status_code=201)
async def submit_contact(
    data: ContactMessageCreate,
    _: None = Depends(contact_rate_limiter),
    service: MessageService = Depends(get_message_service),
):
    msg = service.create_message(data)
    return {"message": "Message sent successfully", "id": msg.id}


@router.get("/admin/messages", response_model=list[ContactMessageResponse])
async def list_messages(
    status: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return [ContactMessageResponse.from_message(m) for m in service.list_messages(status)]


@router.get("/admin/messages/{message_id}", response_model=ContactMessageResponse)
async def get_message(
    message_id: int,
    _: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return ContactMessageResponse.from_message(service.open_message(message_id))


@router.patch("/admin/messages/{message_id}", response_model=ContactMessageResponse)
async def update_message_status(
    message_id: int,
    data: MessageStatusUpdate,
    _: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return ContactMessageResponse.from_message(service.update_status(message_id, data.status))


@router.post("/admin/messages/{message_id}/reply", response_model=ContactMessageResponse)
async def reply_to_message(
    message_id: int,
    data: MessageReply,
    user: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    return ContactMessageResponse.from_message(await service.reply(message_id, data.reply, user))


@router.delete("/admin/messages/{message_id}")
async def delete_message(
    message_id: int,
    _: User = Depends(require_admin),
    service: MessageService = Depends(get_message_service),
):
    service.delete_message(message_id)
    return {"message": "Message deleted"}
