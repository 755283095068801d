"""User service - profile and role management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import VALID_ROLES
from ...models import User
from ...utils.sanitization import sanitize_string
from .schemas import UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def update_profile(self, user: User, data: UserUpdate) -> User:
        if data.fullName is not None:
            user.full_name = sanitize_string(data.fullName)
        if data.phone is not None:
            user.phone = data.phone
        if data.companyName is not None:
            user.company_name = sanitize_string(data.companyName)
        if data.newsletterOptIn is not None:
            user.newsletter_opt_in = data.newsletterOptIn
        self.db.commit()
        self.db.refresh(user)
        return user

    def list_users(self, role: Optional[str] = None, search: Optional[str] = None) -> list[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.filter((User.email.ilike(pattern)) | (User.full_name.ilike(pattern)))
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def change_role(self, user_id: int, role: str, admin: User) -> User:
        if role not in VALID_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        previous = user.role
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🔑 Role of {user.email} changed {previous} -> {role} by {admin.email}")
        return user
