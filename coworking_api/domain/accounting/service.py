"""
Accounting service

Daily cash-register turnovers and B2B invoices, plus the consolidated
view merging both per day.
"""

import csv
import logging
from datetime import datetime
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...models_accounting import B2BRevenue, DailyTurnover
from ...shared.validators import validate_date_string
from ...utils.sanitization import sanitize_string
from .schemas import B2BRevenueCreate, B2BRevenueUpdate, TurnoverCreate, TurnoverUpdate

logger = logging.getLogger(__name__)

AMOUNT_KEYS = ("ht", "ttc", "tva")


def _zero() -> dict:
    return {key: 0.0 for key in AMOUNT_KEYS}


def _amounts(row) -> dict:
    return {key: getattr(row, key) or 0.0 for key in AMOUNT_KEYS}


def _add(target: dict, amounts: dict):
    for key in AMOUNT_KEYS:
        target[key] = round(target[key] + amounts[key], 2)


def check_range(start_date: Optional[str], end_date: Optional[str]):
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="startDate and endDate are required (YYYY-MM-DD)")
    try:
        validate_date_string(start_date)
        validate_date_string(end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Dates must be in YYYY-MM-DD format") from e
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="startDate must be before or equal to endDate")


class AccountingService:
    def __init__(self, db: Session):
        self.db = db

    # ============================================================================
    # DAILY TURNOVERS
    # ============================================================================

    def list_turnovers(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        query = self.db.query(DailyTurnover)
        if start_date:
            query = query.filter(DailyTurnover.date >= start_date)
        if end_date:
            query = query.filter(DailyTurnover.date <= end_date)
        return query.order_by(DailyTurnover.date.desc()).all()

    def _get_turnover(self, turnover_id: int) -> DailyTurnover:
        turnover = self.db.query(DailyTurnover).filter(DailyTurnover.id == turnover_id).first()
        if not turnover:
            raise HTTPException(status_code=404, detail="Turnover not found")
        return turnover

    def create_turnover(self, data: TurnoverCreate) -> DailyTurnover:
        if self.db.query(DailyTurnover.id).filter(DailyTurnover.date == data.date).first():
            raise HTTPException(status_code=409, detail=f"A turnover already exists for {data.date}")
        turnover = DailyTurnover(date=data.date, ht=data.ht, ttc=data.ttc, tva=data.tva)
        self.db.add(turnover)
        self.db.commit()
        self.db.refresh(turnover)
        logger.info(f"💶 Turnover recorded for {turnover.date}: {turnover.ttc} TTC")
        return turnover

    def update_turnover(self, turnover_id: int, data: TurnoverUpdate) -> DailyTurnover:
        turnover = self._get_turnover(turnover_id)
        for key, value in data.model_dump(exclude_none=True).items():
            setattr(turnover, key, value)
        self.db.commit()
        self.db.refresh(turnover)
        return turnover

    def delete_turnover(self, turnover_id: int):
        self.db.delete(self._get_turnover(turnover_id))
        self.db.commit()

    # ============================================================================
    # B2B REVENUES
    # ============================================================================

    def list_b2b(self, start_date: Optional[str] = None, end_date: Optional[str] = None):
        query = self.db.query(B2BRevenue)
        if start_date:
            query = query.filter(B2BRevenue.date >= start_date)
        if end_date:
            query = query.filter(B2BRevenue.date <= end_date)
        return query.order_by(B2BRevenue.date.desc(), B2BRevenue.id.desc()).all()

    def _get_b2b(self, revenue_id: int) -> B2BRevenue:
        revenue = self.db.query(B2BRevenue).filter(B2BRevenue.id == revenue_id).first()
        if not revenue:
            raise HTTPException(status_code=404, detail="B2B revenue not found")
        return revenue

    def create_b2b(self, data: B2BRevenueCreate) -> B2BRevenue:
        revenue = B2BRevenue(
            date=data.date,
            client_name=sanitize_string(data.clientName),
            ht=data.ht,
            ttc=data.ttc,
            tva=data.tva,
            notes=sanitize_string(data.notes),
        )
        self.db.add(revenue)
        self.db.commit()
        self.db.refresh(revenue)
        return revenue

    def update_b2b(self, revenue_id: int, data: B2BRevenueUpdate) -> B2BRevenue:
        revenue = self._get_b2b(revenue_id)
        if data.date is not None:
            revenue.date = data.date
        if data.clientName is not None:
            revenue.client_name = sanitize_string(data.clientName)
        if data.notes is not None:
            revenue.notes = sanitize_string(data.notes)
        for key in AMOUNT_KEYS:
            value = getattr(data, key)
            if value is not None:
                setattr(revenue, key, value)
        self.db.commit()
        self.db.refresh(revenue)
        return revenue

    def delete_b2b(self, revenue_id: int):
        self.db.delete(self._get_b2b(revenue_id))
        self.db.commit()

    # ============================================================================
    # CONSOLIDATED
    # ============================================================================

    def consolidated_range(self, start_date: Optional[str], end_date: Optional[str]) -> dict:
        """
        Merge turnovers and B2B revenues per day over [start_date, end_date].

        Several B2B invoices on the same day are summed. Days with neither
        are absent from dailyData and do not count in daysCount.
        """
        check_range(start_date, end_date)

        days: dict[str, dict] = {}

        def day(date: str) -> dict:
            if date not in days:
                days[date] = {"date": date, "turnovers": _zero(), "b2b": _zero(), "total": _zero()}
            return days[date]

        for turnover in self.list_turnovers(start_date, end_date):
            entry = day(turnover.date)
            _add(entry["turnovers"], _amounts(turnover))
            _add(entry["total"], _amounts(turnover))

        for revenue in self.list_b2b(start_date, end_date):
            entry = day(revenue.date)
            _add(entry["b2b"], _amounts(revenue))
            _add(entry["total"], _amounts(revenue))

        daily_data = [days[d] for d in sorted(days)]

        stats = {"turnovers": _zero(), "b2b": _zero(), "total": _zero()}
        for entry in daily_data:
            for bucket in ("turnovers", "b2b", "total"):
                _add(stats[bucket], entry[bucket])

        count = len(daily_data)
        stats["dailyAverage"] = {
            "ht": round(stats["total"]["ht"] / count, 2) if count else 0.0,
            "ttc": round(stats["total"]["ttc"] / count, 2) if count else 0.0,
        }
        stats["daysCount"] = count

        return {"dailyData": daily_data, "stats": stats}

    def export_consolidated_csv(self, start_date: Optional[str], end_date: Optional[str]) -> StreamingResponse:
        result = self.consolidated_range(start_date, end_date)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            ["Date", "CA HT", "CA TTC", "CA TVA", "B2B HT", "B2B TTC", "B2B TVA", "Total HT", "Total TTC", "Total TVA"]
        )
        for entry in result["dailyData"]:
            writer.writerow(
                [entry["date"]]
                + [entry["turnovers"][k] for k in AMOUNT_KEYS]
                + [entry["b2b"][k] for k in AMOUNT_KEYS]
                + [entry["total"][k] for k in AMOUNT_KEYS]
            )
        stats = result["stats"]
        writer.writerow(
            ["TOTAL"]
            + [stats["turnovers"][k] for k in AMOUNT_KEYS]
            + [stats["b2b"][k] for k in AMOUNT_KEYS]
            + [stats["total"][k] for k in AMOUNT_KEYS]
        )

        output.seek(0)
        filename = f"consolidated_{start_date}_{end_date}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ Consolidated export: {filename} ({stats['daysCount']} days)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )
