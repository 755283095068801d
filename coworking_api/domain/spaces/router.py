"""Space router - FastAPI endpoints for bookable spaces"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import SpaceCreate, SpaceResponse, SpaceUpdate
from .service import SpaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spaces", tags=["Spaces"])


def get_space_service(db: Session = Depends(get_db)) -> SpaceService:
    """Dependency injection for SpaceService"""
    return SpaceService(db)


@router.get("", response_model=list[SpaceResponse])
async def list_spaces(service: SpaceService = Depends(get_space_service)):
    """Active spaces, served from cache when available"""
    return service.list_active_spaces()


@router.get("/admin/all", response_model=list[SpaceResponse])
async def list_all_spaces(
    _: User = Depends(require_admin),
    service: SpaceService = Depends(get_space_service),
):
    return [SpaceResponse.from_space(s) for s in service.list_all_spaces()]


@router.get("/{space_id}", response_model=SpaceResponse)
async def get_space(space_id: int, service: SpaceService = Depends(get_space_service)):
    return SpaceResponse.from_space(service.get_space(space_id))


@router.post("", response_model=SpaceResponse, status_code=201)
async def create_space(
    data: SpaceCreate,
    user: User = Depends(require_admin),
    service: SpaceService = Depends(get_space_service),
):
    return SpaceResponse.from_space(service.create_space(data, user))


@router.patch("/{space_id}", response_model=SpaceResponse)
async def update_space(
    space_id: int,
    data: SpaceUpdate,
    user: User = Depends(require_admin),
    service: SpaceService = Depends(get_space_service),
):
    return SpaceResponse.from_space(service.update_space(space_id, data, user))


@router.delete("/{space_id}")
async def delete_space(
    space_id: int,
    user: User = Depends(require_admin),
    service: SpaceService = Depends(get_space_service),
):
    service.delete_space(space_id, user)
    return {"message": "Space deleted"}
