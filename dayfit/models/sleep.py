from datetime import datetime

from sqlalchemy import Column, Integer, Float, Date, DateTime, JSON, String, Text, UniqueConstraint

from dayfit.core.db import Base


class SleepRecord(Base):
    __tablename__ = "sleep_records"
    __table_args__ = (UniqueConstraint("user_id", "sleep_date", name="uq_sleep_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    sleep_date = Column(Date, nullable=False)

    bedtime = Column(DateTime, nullable=False)
    wake_time = Column(DateTime, nullable=False)
    total_sleep_hours = Column(Float, nullable=False)

    # ordered list of {phase, start_time, end_time, duration_minutes}
    sleep_phases = Column(JSON, default=list)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
