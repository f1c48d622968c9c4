import logging
from datetime import date as DateType

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.db import get_db
from dayfit.core.nutrition import MEAL_SLOTS, derive_macros, sum_macros
from dayfit.models.catalog import Product
from dayfit.models.meal import Meal
from dayfit.schemas.meals import MealIn, MealOut, MealSlot, MealUpdate

logger = logging.getLogger("dayfit.api.meals")

router = APIRouter(prefix="/meals", tags=["meals"])


def _visible_products(db: Session, user_id: str, ids: set[int]) -> dict[int, Product]:
    if not ids:
        return {}
    rows = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .filter(or_(Product.is_default.is_(True), Product.user_id == user_id))
        .all()
    )
    return {p.id: p for p in rows}


def _slot_document(slot: MealSlot | None, catalog: dict[int, Product]) -> dict | None:
    """Stored form of a slot: products with derived macros and recomputed totals."""
    if slot is None:
        return None
    products = [
        derive_macros(item.model_dump(), catalog.get(item.product_id))
        for item in slot.products
    ]
    return {
        "description": slot.description,
        "products": products,
        "totals": sum_macros(products),
    }


def _slot_documents(db: Session, user_id: str, slots: dict[str, MealSlot | None]) -> dict:
    ids = {
        item.product_id
        for slot in slots.values()
        if slot is not None
        for item in slot.products
        if item.product_id is not None
    }
    catalog = _visible_products(db, user_id, ids)
    return {name: _slot_document(slot, catalog) for name, slot in slots.items()}


def _get_owned(db: Session, user_id: str, meal_id: int) -> Meal:
    meal = db.query(Meal).filter(Meal.id == meal_id, Meal.user_id == user_id).first()
    if meal is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    return meal


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Meals already exist for this date")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s meal: %s", action, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} meal: {e}")


@router.get("", response_model=list[MealOut])
def list_meals(
    start_date: DateType | None = None,
    end_date: DateType | None = None,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    q = db.query(Meal).filter(Meal.user_id == user.id)
    if start_date:
        q = q.filter(Meal.meal_date >= start_date)
    if end_date:
        q = q.filter(Meal.meal_date <= end_date)
    return q.order_by(Meal.meal_date.desc()).offset(offset).limit(limit).all()


@router.get("/{meal_id}", response_model=MealOut)
def get_meal(meal_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return _get_owned(db, user.id, meal_id)


@router.post("", response_model=MealOut, status_code=201)
def create_meal(payload: MealIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    slots = _slot_documents(db, user.id, {name: getattr(payload, name) for name in MEAL_SLOTS})
    meal = Meal(
        user_id=user.id,
        meal_date=payload.meal_date,
        water_liters=payload.water_liters,
        notes=payload.notes,
        **slots,
    )
    db.add(meal)
    _commit(db, "create")
    db.refresh(meal)
    return meal


@router.put("/{meal_id}", response_model=MealOut)
def update_meal(
    meal_id: int,
    payload: MealUpdate,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    meal = _get_owned(db, user.id, meal_id)
    changes = payload.model_dump(exclude_unset=True)

    # slots sent explicitly as null are cleared
    slot_changes = {name: getattr(payload, name) for name in MEAL_SLOTS if name in changes}
    for name, doc in _slot_documents(db, user.id, slot_changes).items():
        setattr(meal, name, doc)

    if changes.get("meal_date") is not None:
        meal.meal_date = changes["meal_date"]
    if "water_liters" in changes:
        meal.water_liters = changes["water_liters"]
    if "notes" in changes:
        meal.notes = changes["notes"]

    _commit(db, "update")
    db.refresh(meal)
    return meal


@router.delete("/{meal_id}")
def delete_meal(meal_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    meal = _get_owned(db, user.id, meal_id)
    db.delete(meal)
    _commit(db, "delete")
    return {"status": "ok", "deleted": meal_id}
