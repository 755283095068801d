"""Promo domain schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared import clock

DISCOUNT_TYPES = ("percentage", "fixed", "free_item")


class PromoCodeUpdate(BaseModel):
    """Replace the current promo code"""

    code: str = Field(min_length=2, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    discountType: str
    discountValue: float
    validFrom: datetime
    validUntil: datetime
    maxUses: int = Field(default=0, ge=0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()

    @field_validator("discountType")
    @classmethod
    def validate_discount_type(cls, v):
        if v not in DISCOUNT_TYPES:
            raise ValueError(f"discountType must be one of {', '.join(DISCOUNT_TYPES)}")
        return v

    @field_validator("validFrom", "validUntil")
    @classmethod
    def to_local_time(cls, v):
        return clock.to_local_naive(v)

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.validFrom >= self.validUntil:
            raise ValueError("validFrom must be before validUntil")
        if self.discountValue <= 0:
            raise ValueError("discountValue must be positive")
        if self.discountType == "percentage" and self.discountValue > 100:
            raise ValueError("Percentage discount must be between 0 and 100")
        return self


class PromoMarketingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = Field(default=None, max_length=2000)
    imageUrl: Optional[str] = Field(default=None, max_length=500)
    ctaText: Optional[str] = Field(default=None, max_length=100)


class PromoTrackRequest(BaseModel):
    type: Literal["scan", "reveal", "copy"]
    sessionId: str = Field(min_length=1, max_length=255)


class PublicPromoResponse(BaseModel):
    code: str
    description: Optional[str] = None
    discountType: str
    discountValue: float
    validUntil: datetime
    marketing: dict
