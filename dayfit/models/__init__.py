from dayfit.models.sleep import SleepRecord
from dayfit.models.meal import Meal
from dayfit.models.routine import Routine, RoutineTemplate
from dayfit.models.catalog import Product, Exercise

__all__ = [
    "SleepRecord",
    "Meal",
    "Routine",
    "RoutineTemplate",
    "Product",
    "Exercise",
]
