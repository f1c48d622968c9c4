from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)

from dayfit.core.db import Base


class RoutinePayloadMixin:
    """
    Typed payload columns shared by dated routines and templates.
    Only the column matching routine_type is populated.
    """

    routine_type = Column(String(32), nullable=False)

    athletics_data = Column(JSON)
    running_data = Column(JSON)
    gym_data = Column(JSON)
    steps_count = Column(Integer)
    football_match_data = Column(JSON)
    yoyo_test_data = Column(JSON)

    notes = Column(Text)


class Routine(RoutinePayloadMixin, Base):
    __tablename__ = "routines"
    __table_args__ = (
        UniqueConstraint("user_id", "routine_date", "routine_type", name="uq_routine_user_date_type"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    routine_date = Column(Date, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class RoutineTemplate(RoutinePayloadMixin, Base):
    __tablename__ = "routine_templates"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text)
    is_favorite = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
