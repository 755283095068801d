"""User domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone


class UserUpdate(BaseModel):
    fullName: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = None
    companyName: Optional[str] = Field(default=None, max_length=255)
    newsletterOptIn: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class RoleUpdate(BaseModel):
    role: str


class UserResponse(BaseModel):
    id: int
    email: str
    fullName: Optional[str] = None
    phone: Optional[str] = None
    role: str
    companyName: Optional[str] = None
    newsletterOptIn: bool = False
    createdAt: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            fullName=user.full_name,
            phone=user.phone,
            role=user.role,
            companyName=user.company_name,
            newsletterOptIn=bool(user.newsletter_opt_in),
            createdAt=user.created_at,
        )
