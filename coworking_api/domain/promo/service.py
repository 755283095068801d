"""Promo service - single promo code lifecycle, QR tracking statistics"""

import copy
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import PromoConfig, PromoEvent, User
from ...shared import clock
from .schemas import PromoCodeUpdate, PromoMarketingUpdate

logger = logging.getLogger(__name__)


def generate_token() -> str:
    return secrets.token_hex(16)


def empty_scan_stats() -> dict:
    return {
        "total_scans": 0,
        "total_reveals": 0,
        "total_copies": 0,
        "conversion_rate_reveal": 0,
        "conversion_rate_copy": 0,
        "scans_by_day": {},
        "scans_by_hour": {},
        "average_time_to_reveal": 0,
    }


# ============================================================================
# VALIDITY
# ============================================================================


def is_promo_valid(promo: PromoConfig, now: Optional[datetime] = None) -> bool:
    now = now or clock.local_now()
    return (
        promo.is_active
        and promo.valid_from <= now <= promo.valid_until
        and (promo.max_uses == 0 or promo.current_uses < promo.max_uses)
    )


def promo_status(promo: PromoConfig, now: Optional[datetime] = None) -> str:
    now = now or clock.local_now()
    if not promo.is_active:
        return "inactive"
    if now < promo.valid_from or now > promo.valid_until:
        return "expired"
    if promo.max_uses > 0 and promo.current_uses >= promo.max_uses:
        return "max_uses_reached"
    return "active"


def get_promo_config(db: Session) -> Optional[PromoConfig]:
    return db.query(PromoConfig).order_by(PromoConfig.id).first()


def resolve_discount_promo(db: Session, code: Optional[str]) -> Optional[PromoConfig]:
    """The current promo when `code` matches it (case-insensitive) and it is valid"""
    if not code:
        return None
    promo = get_promo_config(db)
    if not promo or promo.code.upper() != code.strip().upper():
        logger.info(f"ℹ️ Unknown promo code ignored: {code}")
        return None
    if not is_promo_valid(promo):
        logger.info(f"ℹ️ Promo code {code} is {promo_status(promo)}, ignored")
        return None
    return promo


def record_promo_use(db: Session, promo: PromoConfig) -> None:
    """Count one redemption; flushed with the caller's commit"""
    promo.current_uses = (promo.current_uses or 0) + 1


class PromoService:
    """Service layer for the promo code configuration"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_config(self) -> PromoConfig:
        promo = get_promo_config(self.db)
        if promo:
            return promo

        now = clock.local_now()
        promo = PromoConfig(
            code="BIENVENUE",
            token=generate_token(),
            description="Offre de bienvenue",
            discount_type="percentage",
            discount_value=10,
            valid_from=now,
            valid_until=now + timedelta(days=30),
            max_uses=0,
            current_uses=0,
            is_active=False,
            history=[],
            scan_stats=empty_scan_stats(),
            marketing_title="Code Promo Exclusif",
            marketing_message="Profitez de notre offre spéciale !",
            marketing_cta_text="Révéler le code",
        )
        self.db.add(promo)
        self.db.commit()
        self.db.refresh(promo)
        logger.info("🆕 Default promo configuration created")
        return promo

    def serialize_config(self, promo: PromoConfig) -> dict:
        return {
            "current": {
                "code": promo.code,
                "token": promo.token,
                "description": promo.description,
                "discountType": promo.discount_type,
                "discountValue": promo.discount_value,
                "validFrom": promo.valid_from,
                "validUntil": promo.valid_until,
                "maxUses": promo.max_uses,
                "currentUses": promo.current_uses,
                "isActive": promo.is_active,
                "status": promo_status(promo),
            },
            "history": promo.history or [],
            "stats": {
                "totalViews": promo.total_views,
                "totalCopies": promo.total_copies,
                "viewsToday": promo.views_today,
                "copiesToday": promo.copies_today,
            },
            "scanStats": promo.scan_stats or empty_scan_stats(),
            "marketing": self._marketing(promo),
        }

    @staticmethod
    def _marketing(promo: PromoConfig) -> dict:
        return {
            "title": promo.marketing_title,
            "message": promo.marketing_message,
            "imageUrl": promo.marketing_image_url,
            "ctaText": promo.marketing_cta_text,
        }

    def get_config(self) -> dict:
        return self.serialize_config(self.get_or_create_config())

    def get_current_public(self) -> dict:
        promo = get_promo_config(self.db)
        if not promo or not is_promo_valid(promo):
            raise HTTPException(status_code=404, detail="No active promo code")
        return {
            "code": promo.code,
            "description": promo.description,
            "discountType": promo.discount_type,
            "discountValue": promo.discount_value,
            "validUntil": promo.valid_until,
            "marketing": self._marketing(promo),
        }

    def replace_code(self, data: PromoCodeUpdate, user: User) -> dict:
        """Archive the current code into history and activate a new one"""
        promo = self.get_or_create_config()
        now = clock.local_now()

        history = list(promo.history or [])
        history.append(
            {
                "code": promo.code,
                "token": promo.token,
                "description": promo.description,
                "discountType": promo.discount_type,
                "discountValue": promo.discount_value,
                "validFrom": promo.valid_from.isoformat(),
                "validUntil": promo.valid_until.isoformat(),
                "totalUses": promo.current_uses,
                "deactivatedAt": now.isoformat(),
            }
        )
        promo.history = history

        promo.code = data.code
        promo.token = generate_token()
        promo.description = data.description
        promo.discount_type = data.discountType
        promo.discount_value = data.discountValue
        promo.valid_from = data.validFrom
        promo.valid_until = data.validUntil
        promo.max_uses = data.maxUses
        promo.current_uses = 0
        promo.is_active = True

        self.db.commit()
        self.db.refresh(promo)
        logger.info(f"🎟️ Promo code replaced by {user.email}: {promo.code}")
        return self.serialize_config(promo)

    def update_marketing(self, data: PromoMarketingUpdate) -> dict:
        promo = self.get_or_create_config()
        if data.title is not None:
            promo.marketing_title = data.title
        if data.message is not None:
            promo.marketing_message = data.message
        if data.imageUrl is not None:
            promo.marketing_image_url = data.imageUrl
        if data.ctaText is not None:
            promo.marketing_cta_text = data.ctaText
        self.db.commit()
        self.db.refresh(promo)
        return self.serialize_config(promo)

    def deactivate(self) -> dict:
        promo = self.get_or_create_config()
        promo.is_active = False
        self.db.commit()
        self.db.refresh(promo)
        return self.serialize_config(promo)

    # ============================================================================
    # TRACKING
    # ============================================================================

    def track_event(self, event_type: str, session_id: str) -> dict:
        promo = self.get_or_create_config()
        now = clock.local_now()
        stats = copy.deepcopy(promo.scan_stats or empty_scan_stats())

        if event_type == "scan":
            promo.total_views += 1
            promo.views_today += 1
            stats["total_scans"] += 1
            day_key = now.strftime("%Y-%m-%d")
            hour_key = now.strftime("%H")
            stats["scans_by_day"][day_key] = stats["scans_by_day"].get(day_key, 0) + 1
            stats["scans_by_hour"][hour_key] = stats["scans_by_hour"].get(hour_key, 0) + 1

        elif event_type == "reveal":
            stats["total_reveals"] += 1
            scan_time = (
                self.db.query(func.min(PromoEvent.timestamp))
                .filter(
                    PromoEvent.promo_config_id == promo.id,
                    PromoEvent.session_id == session_id,
                    PromoEvent.event_type == "scan",
                )
                .scalar()
            )
            if scan_time:
                time_to_reveal = (now - scan_time).total_seconds()
                reveals = stats["total_reveals"]
                stats["average_time_to_reveal"] = (
                    stats["average_time_to_reveal"] * (reveals - 1) + time_to_reveal
                ) / reveals

        elif event_type == "copy":
            promo.total_copies += 1
            promo.copies_today += 1
            stats["total_copies"] += 1
            promo.current_uses += 1

        if stats["total_scans"] > 0:
            stats["conversion_rate_reveal"] = stats["total_reveals"] / stats["total_scans"] * 100
        if stats["total_reveals"] > 0:
            stats["conversion_rate_copy"] = stats["total_copies"] / stats["total_reveals"] * 100

        promo.scan_stats = stats
        self.db.add(PromoEvent(promo_config_id=promo.id, event_type=event_type, session_id=session_id, timestamp=now))
        self.db.commit()

        logger.debug(f"📈 Promo {event_type} tracked for session {session_id}")
        return {"tracked": event_type, "scanStats": stats}

    def reset_daily_stats(self) -> bool:
        promo = get_promo_config(self.db)
        if not promo:
            return False
        promo.views_today = 0
        promo.copies_today = 0
        self.db.commit()
        return True
