"""User router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import RoleUpdate, UserResponse, UserUpdate
from .service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return UserResponse.from_user(user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_user(service.update_profile(user, data))


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return [UserResponse.from_user(u) for u in service.list_users(role, search)]


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: int,
    data: RoleUpdate,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_user(service.change_role(user_id, data.role, admin))
