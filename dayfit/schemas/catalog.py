from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str | None = None
    calories_per_100g: float | None = Field(None, ge=0)
    protein_per_100g: float | None = Field(None, ge=0)
    carbs_per_100g: float | None = Field(None, ge=0)
    fat_per_100g: float | None = Field(None, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    category: str | None = None
    calories_per_100g: float | None = Field(None, ge=0)
    protein_per_100g: float | None = Field(None, ge=0)
    carbs_per_100g: float | None = Field(None, ge=0)
    fat_per_100g: float | None = Field(None, ge=0)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str | None = None
    calories_per_100g: float | None = None
    protein_per_100g: float | None = None
    carbs_per_100g: float | None = None
    fat_per_100g: float | None = None
    is_default: bool
    created_at: datetime | None = None


class ExerciseIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str | None = None
    muscle_group: str | None = None
    description: str | None = None


class ExerciseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str | None = None
    muscle_group: str | None = None
    description: str | None = None
    is_default: bool
