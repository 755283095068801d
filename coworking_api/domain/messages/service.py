"""Contact message service"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import EmailError, send_contact_reply_email
from ...models import User
from ...models_content import ContactMessage
from ...shared import clock
from ...utils.sanitization import sanitize_string
from .schemas import ContactMessageCreate

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db: Session):
        self.db = db

    def create_message(self, data: ContactMessageCreate) -> ContactMessage:
        msg = ContactMessage(
            name=sanitize_string(data.name),
            email=data.email,
            phone=data.phone,
            subject=sanitize_string(data.subject),
            message=sanitize_string(data.message),
            status="unread",
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        logger.info(f"📨 Contact message {msg.id} received from {msg.email}")
        return msg

    def list_messages(self, status: Optional[str] = None) -> list[ContactMessage]:
        query = self.db.query(ContactMessage)
        if status:
            query = query.filter(ContactMessage.status == status)
        return query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()

    def _get(self, message_id: int) -> ContactMessage:
        msg = self.db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
        if not msg:
            raise HTTPException(status_code=404, detail="Message not found")
        return msg

    def open_message(self, message_id: int) -> ContactMessage:
        """Fetch a message for the admin inbox, marking it read on first open"""
        msg = self._get(message_id)
        if msg.status == "unread":
            msg.status = "read"
            self.db.commit()
            self.db.refresh(msg)
        return msg

    def update_status(self, message_id: int, status: str) -> ContactMessage:
        msg = self._get(message_id)
        msg.status = status
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def delete_message(self, message_id: int):
        msg = self._get(message_id)
        self.db.delete(msg)
        self.db.commit()

    async def reply(self, message_id: int, reply: str, user: User) -> ContactMessage:
        """
        Email the reply to the sender, then record it.

        The message is left untouched when the email cannot be delivered.
        """
        msg = self._get(message_id)

        try:
            await send_contact_reply_email(msg.email, msg.name, msg.subject, reply)
        except EmailError as e:
            logger.error(f"❌ Reply to message {message_id} not delivered: {e}")
            raise HTTPException(status_code=502, detail="Failed to send reply email") from e
        except Exception as e:
            logger.error(f"❌ Unexpected error replying to message {message_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to send reply email") from e

        msg.reply = sanitize_string(reply)
        msg.status = "replied"
        msg.replied_at = clock.local_now()
        msg.replied_by = user.id
        self.db.commit()
        self.db.refresh(msg)
        logger.info(f"✅ Message {message_id} replied by {user.email}")
        return msg
