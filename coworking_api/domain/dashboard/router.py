from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_staff
from ...database import get_db
from ...models import User
from .service import get_dashboard

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard")
async def dashboard(_: User = Depends(require_staff), db: Session = Depends(get_db)):
    return get_dashboard(db)
