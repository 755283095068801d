"""Accounting router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...database import get_db
from ...models import User
from .schemas import (
    B2BRevenueCreate,
    B2BRevenueResponse,
    B2BRevenueUpdate,
    TurnoverCreate,
    TurnoverResponse,
    TurnoverUpdate,
)
from .service import AccountingService

router = APIRouter(prefix="/accounting", tags=["Accounting"])


def get_accounting_service(db: Session = Depends(get_db)) -> AccountingService:
    """Dependency injection for AccountingService"""
    return AccountingService(db)


# ============================================================================
# CONSOLIDATED
# ============================================================================


@router.get("/consolidated-range")
async def consolidated_range(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_staff),
    service: AccountingService = Depends(get_accounting_service),
):
    return service.consolidated_range(start_date, end_date)


@router.get("/consolidated-range/export")
async def export_consolidated_range(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_staff),
    service: AccountingService = Depends(get_accounting_service),
):
    return service.export_consolidated_csv(start_date, end_date)


# ============================================================================
# DAILY TURNOVERS
# ============================================================================


@router.get("/turnovers", response_model=list[TurnoverResponse])
async def list_turnovers(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return service.list_turnovers(start_date, end_date)


@router.post("/turnovers", response_model=TurnoverResponse, status_code=201)
async def create_turnover(
    data: TurnoverCreate,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return service.create_turnover(data)


@router.patch("/turnovers/{turnover_id}", response_model=TurnoverResponse)
async def update_turnover(
    turnover_id: int,
    data: TurnoverUpdate,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return service.update_turnover(turnover_id, data)


@router.delete("/turnovers/{turnover_id}")
async def delete_turnover(
    turnover_id: int,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    service.delete_turnover(turnover_id)
    return {"message": "Turnover deleted"}


# ============================================================================
# B2B REVENUES
# ============================================================================


@router.get("/b2b-revenues", response_model=list[B2BRevenueResponse])
async def list_b2b_revenues(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return [B2BRevenueResponse.from_revenue(r) for r in service.list_b2b(start_date, end_date)]


@router.post("/b2b-revenues", response_model=B2BRevenueResponse, status_code=201)
async def create_b2b_revenue(
    data: B2BRevenueCreate,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return B2BRevenueResponse.from_revenue(service.create_b2b(data))


@router.patch("/b2b-revenues/{revenue_id}", response_model=B2BRevenueResponse)
async def update_b2b_revenue(
    revenue_id: int,
    data: B2BRevenueUpdate,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    return B2BRevenueResponse.from_revenue(service.update_b2b(revenue_id, data))


@router.delete("/b2b-revenues/{revenue_id}")
async def delete_b2b_revenue(
    revenue_id: int,
    _: User = Depends(require_admin),
    service: AccountingService = Depends(get_accounting_service),
):
    service.delete_b2b(revenue_id)
    return {"message": "B2B revenue deleted"}
