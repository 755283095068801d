"""Space repository - Database operations for spaces"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Space


class SpaceRepository:
    """Repository for space database operations"""

    @staticmethod
    def get_active_spaces(db: Session) -> list[Space]:
        return (
            db.query(Space)
            .filter(Space.is_active == True, Space.is_deleted == False)  # noqa: E712
            .order_by(Space.name)
            .all()
        )

    @staticmethod
    def get_all_spaces(db: Session) -> list[Space]:
        return db.query(Space).filter(Space.is_deleted == False).order_by(Space.name).all()  # noqa: E712

    @staticmethod
    def get_space_by_id(db: Session, space_id: int) -> Optional[Space]:
        return db.query(Space).filter(Space.id == space_id, Space.is_deleted == False).first()  # noqa: E712

    @staticmethod
    def slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Space.id).filter(Space.slug == slug)
        if exclude_id is not None:
            query = query.filter(Space.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def create_space(db: Session, **space_data) -> Space:
        space = Space(**space_data)
        db.add(space)
        db.commit()
        db.refresh(space)
        return space

    @staticmethod
    def update_space(db: Session, space: Space, **updates) -> Space:
        for key, value in updates.items():
            if hasattr(space, key):
                setattr(space, key, value)
        db.commit()
        db.refresh(space)
        return space
