from datetime import date as DateType, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RoutineType(str, Enum):
    ATHLETICS = "athletics"
    RUNNING = "running"
    GYM = "gym"
    STEPS = "steps"
    FOOTBALL_MATCH = "football_match"
    YOYO_TEST = "yoyo_test"


# routine_type -> the single column that carries its payload
PAYLOAD_FIELDS = {
    RoutineType.ATHLETICS: "athletics_data",
    RoutineType.RUNNING: "running_data",
    RoutineType.GYM: "gym_data",
    RoutineType.STEPS: "steps_count",
    RoutineType.FOOTBALL_MATCH: "football_match_data",
    RoutineType.YOYO_TEST: "yoyo_test_data",
}


def payload_field(routine_type: str) -> str:
    return PAYLOAD_FIELDS[RoutineType(routine_type)]


# ---------- Typed payloads ----------

class AthleticsSeries(BaseModel):
    distance: str
    time: str
    rest: str | None = None


class AthleticsData(BaseModel):
    series: list[AthleticsSeries] = []
    total_distance: str | None = None
    notes: str | None = None


class RunningData(BaseModel):
    distance_km: float = Field(0, ge=0)
    duration_minutes: int = Field(0, ge=0)
    pace_per_km: str = ""
    average_heart_rate: int | None = Field(None, gt=0)
    notes: str | None = None


class GymSet(BaseModel):
    reps: int = Field(0, ge=0)
    weight_kg: float | None = Field(None, ge=0)
    rest_seconds: int | None = Field(None, ge=0)


class GymExercise(BaseModel):
    exercise_id: int | None = None
    exercise_name: str
    sets: list[GymSet] = []


class GymData(BaseModel):
    exercises: list[GymExercise] = []
    total_duration_minutes: int | None = Field(None, ge=0)
    notes: str | None = None


class FootballMatchData(BaseModel):
    total_kms: float = Field(0, ge=0)
    calories: int = Field(0, ge=0)
    notes: str | None = None


class YoYoSeries(BaseModel):
    start_level: str
    end_level: str
    completed: bool = True


class YoYoTestData(BaseModel):
    series: list[YoYoSeries] = []
    notes: str | None = None


class RoutinePayload(BaseModel):
    """
    Tagged union over the six routine kinds: routine_type selects which of the
    payload fields must be set, every other payload field must stay empty.
    """

    routine_type: RoutineType

    athletics_data: AthleticsData | None = None
    running_data: RunningData | None = None
    gym_data: GymData | None = None
    steps_count: int | None = Field(None, ge=0)
    football_match_data: FootballMatchData | None = None
    yoyo_test_data: YoYoTestData | None = None

    notes: str | None = None

    @model_validator(mode="after")
    def check_payload_matches_type(self):
        expected = PAYLOAD_FIELDS[self.routine_type]
        if getattr(self, expected) is None:
            raise ValueError(f"{expected} is required for {self.routine_type.value} routine type")
        for field in PAYLOAD_FIELDS.values():
            if field != expected and getattr(self, field) is not None:
                raise ValueError(f"{field} is not valid for {self.routine_type.value} routine type")
        return self

    def payload_columns(self) -> dict:
        """Column values for an ORM row: the type, its one payload, notes."""
        field = PAYLOAD_FIELDS[self.routine_type]
        value = getattr(self, field)
        columns = {name: None for name in PAYLOAD_FIELDS.values()}
        columns[field] = value if isinstance(value, int) else value.model_dump()
        columns["routine_type"] = self.routine_type.value
        columns["notes"] = self.notes
        return columns


class RoutineIn(RoutinePayload):
    routine_date: DateType


class RoutinePayloadUpdate(BaseModel):
    routine_type: RoutineType | None = None
    athletics_data: AthleticsData | None = None
    running_data: RunningData | None = None
    gym_data: GymData | None = None
    steps_count: int | None = Field(None, ge=0)
    football_match_data: FootballMatchData | None = None
    yoyo_test_data: YoYoTestData | None = None
    notes: str | None = None


class RoutineUpdate(RoutinePayloadUpdate):
    routine_date: DateType | None = None


class RoutineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    routine_date: DateType
    routine_type: str
    athletics_data: dict | None = None
    running_data: dict | None = None
    gym_data: dict | None = None
    steps_count: int | None = None
    football_match_data: dict | None = None
    yoyo_test_data: dict | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------- Templates ----------

class TemplateIn(RoutinePayload):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    is_favorite: bool = False


class TemplateUpdate(RoutinePayloadUpdate):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    is_favorite: bool | None = None


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    is_favorite: bool
    routine_type: str
    athletics_data: dict | None = None
    running_data: dict | None = None
    gym_data: dict | None = None
    steps_count: int | None = None
    football_match_data: dict | None = None
    yoyo_test_data: dict | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------- Assignment ----------

class AssignIn(BaseModel):
    date: DateType
    overwrite: bool = False


class RecurringAssignIn(BaseModel):
    start_date: DateType
    end_date: DateType
    weekdays: list[int] = Field(default_factory=list, description="0=Monday .. 6=Sunday")
    overwrite: bool = False

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v: list[int]) -> list[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("weekdays must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(v))


class AssignmentErrorOut(BaseModel):
    date: str
    message: str


class AssignmentOut(BaseModel):
    status: str = "ok"
    planned: int
    success_count: int
    exists_count: int
    error_count: int
    errors: list[AssignmentErrorOut] = []
    summary: str | None = None


class GenerateTemplateIn(BaseModel):
    prompt: str = Field(..., min_length=1)
    user_goals: str | None = None
