from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class DailyTurnover(Base):
    """Cash register totals for one day"""

    __tablename__ = "daily_turnovers"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), unique=True, index=True, nullable=False)  # YYYY-MM-DD
    ht = Column(Float, default=0, nullable=False)
    ttc = Column(Float, default=0, nullable=False)
    tva = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class B2BRevenue(Base):
    __tablename__ = "b2b_revenues"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    client_name = Column(String(255), nullable=True)
    ht = Column(Float, default=0, nullable=False)
    ttc = Column(Float, default=0, nullable=False)
    tva = Column(Float, default=0, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
