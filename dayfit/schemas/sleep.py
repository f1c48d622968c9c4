from datetime import date as DateType, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SleepPhase(BaseModel):
    phase: Literal["light", "deep", "rem", "awake"]
    start_time: datetime
    end_time: datetime
    duration_minutes: int = Field(..., ge=0)


class SleepIn(BaseModel):
    sleep_date: DateType
    bedtime: datetime
    wake_time: datetime
    total_sleep_hours: float = Field(..., ge=0, le=24)
    sleep_phases: list[SleepPhase] = []
    notes: str | None = None

    @model_validator(mode="after")
    def validate_wake_after_bedtime(self):
        if (self.bedtime.tzinfo is None) != (self.wake_time.tzinfo is None):
            raise ValueError("bedtime and wake_time must both carry a timezone offset, or neither")
        if self.wake_time < self.bedtime:
            raise ValueError("wake_time must not be earlier than bedtime")
        return self


class SleepUpdate(BaseModel):
    sleep_date: DateType | None = None
    bedtime: datetime | None = None
    wake_time: datetime | None = None
    total_sleep_hours: float | None = Field(None, ge=0, le=24)
    sleep_phases: list[SleepPhase] | None = None
    notes: str | None = None


class SleepOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sleep_date: DateType
    bedtime: datetime
    wake_time: datetime
    total_sleep_hours: float
    sleep_phases: list[dict] = []
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
