"""Space domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_time_string


class PricingTier(BaseModel):
    minPeople: int = Field(ge=1)
    maxPeople: int = Field(ge=1)
    hourlyRate: Optional[float] = Field(default=None, ge=0)
    dailyRate: Optional[float] = Field(default=None, ge=0)
    extraPersonHourly: Optional[float] = Field(default=None, ge=0)
    extraPersonDaily: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_range(self):
        if self.minPeople > self.maxPeople:
            raise ValueError("minPeople must be less than or equal to maxPeople")
        return self


class SpacePricing(BaseModel):
    hourly: Optional[float] = Field(default=None, ge=0)
    daily: Optional[float] = Field(default=None, ge=0)
    weekly: Optional[float] = Field(default=None, ge=0)
    monthly: Optional[float] = Field(default=None, ge=0)
    perPerson: bool = False
    tiers: list[PricingTier] = []

    def to_model(self) -> dict:
        return {
            "hourly": self.hourly,
            "daily": self.daily,
            "weekly": self.weekly,
            "monthly": self.monthly,
            "per_person": self.perPerson,
            "tiers": [
                {
                    "min_people": t.minPeople,
                    "max_people": t.maxPeople,
                    "hourly_rate": t.hourlyRate,
                    "daily_rate": t.dailyRate,
                    "extra_person_hourly": t.extraPersonHourly,
                    "extra_person_daily": t.extraPersonDaily,
                }
                for t in self.tiers
            ],
        }


class DepositPolicy(BaseModel):
    """Amounts in cents"""

    enabled: bool = False
    percentage: Optional[float] = Field(default=None, ge=0, le=100)
    fixedAmount: Optional[int] = Field(default=None, ge=0)
    minimumAmount: Optional[int] = Field(default=None, ge=0)

    def to_model(self) -> dict:
        return {
            "enabled": self.enabled,
            "percentage": self.percentage,
            "fixed_amount": self.fixedAmount,
            "minimum_amount": self.minimumAmount,
        }


class SpaceCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    spaceType: str = Field(min_length=2, max_length=100)
    description: Optional[str] = None
    imageUrl: Optional[str] = Field(default=None, max_length=500)
    minCapacity: int = Field(default=1, ge=1)
    maxCapacity: int = Field(default=1, ge=1)
    pricing: SpacePricing
    depositPolicy: Optional[DepositPolicy] = None
    openingTime: Optional[str] = "09:00"
    closingTime: Optional[str] = "20:00"
    isActive: bool = True

    @field_validator("openingTime", "closingTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)

    @model_validator(mode="after")
    def validate_capacity(self):
        if self.minCapacity > self.maxCapacity:
            raise ValueError("minCapacity must be less than or equal to maxCapacity")
        return self


class SpaceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    spaceType: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = None
    imageUrl: Optional[str] = Field(default=None, max_length=500)
    minCapacity: Optional[int] = Field(default=None, ge=1)
    maxCapacity: Optional[int] = Field(default=None, ge=1)
    pricing: Optional[SpacePricing] = None
    depositPolicy: Optional[DepositPolicy] = None
    openingTime: Optional[str] = None
    closingTime: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("openingTime", "closingTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)


class SpaceResponse(BaseModel):
    id: int
    name: str
    slug: str
    spaceType: str
    description: Optional[str] = None
    imageUrl: Optional[str] = None
    minCapacity: int
    maxCapacity: int
    pricing: dict
    depositPolicy: Optional[dict] = None
    openingTime: Optional[str] = None
    closingTime: Optional[str] = None
    isActive: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_space(cls, space) -> "SpaceResponse":
        return cls(
            id=space.id,
            name=space.name,
            slug=space.slug,
            spaceType=space.space_type,
            description=space.description,
            imageUrl=space.image_url,
            minCapacity=space.min_capacity,
            maxCapacity=space.max_capacity,
            pricing=space.pricing or {},
            depositPolicy=space.deposit_policy,
            openingTime=space.opening_time,
            closingTime=space.closing_time,
            isActive=space.is_active,
            createdAt=space.created_at,
        )
