"""Space service - Business logic for bookable spaces"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import SPACES_CACHE_KEY, SPACES_TTL, cached, invalidate_spaces_cache
from ...models import Space, User
from ...utils.sanitization import sanitize_string, slugify
from .repository import SpaceRepository
from .schemas import SpaceCreate, SpaceResponse, SpaceUpdate

logger = logging.getLogger(__name__)


@cached(SPACES_CACHE_KEY, SPACES_TTL)
def active_spaces_payload(db: Session) -> list[dict]:
    return [SpaceResponse.from_space(s).model_dump(mode="json") for s in SpaceRepository.get_active_spaces(db)]


class SpaceService:
    """Service layer for space business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SpaceRepository()

    def list_active_spaces(self) -> list[dict]:
        return active_spaces_payload(self.db)

    def list_all_spaces(self) -> list[Space]:
        return self.repo.get_all_spaces(self.db)

    def get_space(self, space_id: int, include_inactive: bool = False) -> Space:
        space = self.repo.get_space_by_id(self.db, space_id)
        if not space or (not space.is_active and not include_inactive):
            raise HTTPException(status_code=404, detail="Space not found")
        return space

    def _unique_slug(self, slug: str, exclude_id=None) -> str:
        if not slug:
            raise HTTPException(status_code=400, detail="Slug cannot be empty")
        if self.repo.slug_exists(self.db, slug, exclude_id):
            raise HTTPException(status_code=409, detail="A space with this slug already exists")
        return slug

    def create_space(self, data: SpaceCreate, user: User) -> Space:
        slug = self._unique_slug(slugify(data.slug or data.name))
        space = self.repo.create_space(
            self.db,
            name=sanitize_string(data.name),
            slug=slug,
            space_type=data.spaceType,
            description=sanitize_string(data.description),
            image_url=data.imageUrl,
            min_capacity=data.minCapacity,
            max_capacity=data.maxCapacity,
            pricing=data.pricing.to_model(),
            deposit_policy=data.depositPolicy.to_model() if data.depositPolicy else None,
            opening_time=data.openingTime,
            closing_time=data.closingTime,
            is_active=data.isActive,
        )
        invalidate_spaces_cache()
        logger.info(f"✅ Space {space.id} ({space.slug}) created by {user.email}")
        return space

    def update_space(self, space_id: int, data: SpaceUpdate, user: User) -> Space:
        space = self.get_space(space_id, include_inactive=True)

        updates = {}
        if data.name is not None:
            updates["name"] = sanitize_string(data.name)
        if data.slug is not None:
            updates["slug"] = self._unique_slug(slugify(data.slug), exclude_id=space.id)
        if data.spaceType is not None:
            updates["space_type"] = data.spaceType
        if data.description is not None:
            updates["description"] = sanitize_string(data.description)
        if data.imageUrl is not None:
            updates["image_url"] = data.imageUrl
        if data.minCapacity is not None:
            updates["min_capacity"] = data.minCapacity
        if data.maxCapacity is not None:
            updates["max_capacity"] = data.maxCapacity
        if data.pricing is not None:
            updates["pricing"] = data.pricing.to_model()
        if data.depositPolicy is not None:
            updates["deposit_policy"] = data.depositPolicy.to_model()
        if data.openingTime is not None:
            updates["opening_time"] = data.openingTime
        if data.closingTime is not None:
            updates["closing_time"] = data.closingTime
        if data.isActive is not None:
            updates["is_active"] = data.isActive

        min_capacity = updates.get("min_capacity", space.min_capacity)
        max_capacity = updates.get("max_capacity", space.max_capacity)
        if min_capacity > max_capacity:
            raise HTTPException(status_code=400, detail="minCapacity must be less than or equal to maxCapacity")

        space = self.repo.update_space(self.db, space, **updates)
        invalidate_spaces_cache()
        logger.info(f"✏️ Space {space.id} updated by {user.email}")
        return space

    def delete_space(self, space_id: int, user: User):
        """Soft delete; past bookings keep their space"""
        space = self.get_space(space_id, include_inactive=True)
        self.repo.update_space(self.db, space, is_deleted=True, is_active=False)
        invalidate_spaces_cache()
        logger.info(f"🗑️ Space {space_id} deleted by {user.email}")
