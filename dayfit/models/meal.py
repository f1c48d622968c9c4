from datetime import datetime

from sqlalchemy import Column, Integer, Float, Date, DateTime, JSON, String, Text, UniqueConstraint

from dayfit.core.db import Base


class Meal(Base):
    __tablename__ = "meals"
    __table_args__ = (UniqueConstraint("user_id", "meal_date", name="uq_meal_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    meal_date = Column(Date, nullable=False)

    # each slot: null or {"description", "products": [...], "totals": {...}}
    breakfast = Column(JSON)
    lunch = Column(JSON)
    snack = Column(JSON)
    dinner = Column(JSON)

    water_liters = Column(Float)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
