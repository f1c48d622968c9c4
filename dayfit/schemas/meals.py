from datetime import date as DateType, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MacroTotals(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class MealProduct(BaseModel):
    product_id: int | None = None
    product_name: str
    quantity: float = Field(..., ge=0, description="grams")
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None


class MealSlot(BaseModel):
    """
    One meal of the day: free text, a list of catalog products, or both.
    A bare string is accepted as the description.
    """

    description: str | None = None
    products: list[MealProduct] = []
    totals: MacroTotals | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_plain_text(cls, value):
        if isinstance(value, str):
            return {"description": value}
        return value


class MealIn(BaseModel):
    meal_date: DateType
    breakfast: MealSlot | None = None
    lunch: MealSlot | None = None
    snack: MealSlot | None = None
    dinner: MealSlot | None = None
    water_liters: float | None = Field(None, ge=0)
    notes: str | None = None


class MealUpdate(BaseModel):
    meal_date: DateType | None = None
    breakfast: MealSlot | None = None
    lunch: MealSlot | None = None
    snack: MealSlot | None = None
    dinner: MealSlot | None = None
    water_liters: float | None = Field(None, ge=0)
    notes: str | None = None


class MealOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    meal_date: DateType
    breakfast: dict | None = None
    lunch: dict | None = None
    snack: dict | None = None
    dinner: dict | None = None
    water_liters: float | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
