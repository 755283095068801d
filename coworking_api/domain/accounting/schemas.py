"""Accounting domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_date_string


class AmountsMixin(BaseModel):
    ht: float = Field(default=0, ge=0)
    ttc: float = Field(default=0, ge=0)
    tva: float = Field(default=0, ge=0)


class TurnoverCreate(AmountsMixin):
    date: str

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)


class TurnoverUpdate(BaseModel):
    ht: Optional[float] = Field(default=None, ge=0)
    ttc: Optional[float] = Field(default=None, ge=0)
    tva: Optional[float] = Field(default=None, ge=0)


class TurnoverResponse(BaseModel):
    id: int
    date: str
    ht: float
    ttc: float
    tva: float

    class Config:
        from_attributes = True


class B2BRevenueCreate(AmountsMixin):
    date: str
    clientName: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)


class B2BRevenueUpdate(BaseModel):
    date: Optional[str] = None
    clientName: Optional[str] = Field(default=None, max_length=255)
    ht: Optional[float] = Field(default=None, ge=0)
    ttc: Optional[float] = Field(default=None, ge=0)
    tva: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date_string(v)


class B2BRevenueResponse(BaseModel):
    id: int
    date: str
    clientName: Optional[str] = None
    ht: float
    ttc: float
    tva: float
    notes: Optional[str] = None

    @classmethod
    def from_revenue(cls, revenue) -> "B2BRevenueResponse":
        return cls(
            id=revenue.id,
            date=revenue.date,
            clientName=revenue.client_name,
            ht=revenue.ht,
            ttc=revenue.ttc,
            tva=revenue.tva,
            notes=revenue.notes,
        )
