# Reference catalogs: rows with is_default=True are shared and read-only,
# user rows are owned by user_id.

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text

from dayfit.core.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), index=True)

    name = Column(String(200), nullable=False)
    category = Column(String(64))

    calories_per_100g = Column(Float)
    protein_per_100g = Column(Float)
    carbs_per_100g = Column(Float)
    fat_per_100g = Column(Float)

    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), index=True)

    name = Column(String(200), nullable=False)
    category = Column(String(64))       # e.g. "strength", "cardio"
    muscle_group = Column(String(64))
    description = Column(Text)

    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
