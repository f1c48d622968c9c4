import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.db import get_db
from dayfit.models.catalog import Exercise
from dayfit.schemas.catalog import ExerciseIn, ExerciseOut

logger = logging.getLogger("dayfit.api.exercises")

router = APIRouter(prefix="/exercises", tags=["exercises"])


@router.get("", response_model=list[ExerciseOut])
def list_exercises(
    search: str | None = None,
    category: str | None = None,
    muscle_group: str | None = None,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    q = db.query(Exercise).filter(or_(Exercise.is_default.is_(True), Exercise.user_id == user.id))
    if search:
        q = q.filter(Exercise.name.ilike(f"%{search}%"))
    if category:
        q = q.filter(Exercise.category == category)
    if muscle_group:
        q = q.filter(Exercise.muscle_group == muscle_group)
    return (
        q.order_by(Exercise.is_default.desc(), Exercise.name.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.post("", response_model=ExerciseOut, status_code=201)
def create_exercise(payload: ExerciseIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    exercise = Exercise(user_id=user.id, is_default=False, **payload.model_dump())
    db.add(exercise)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create exercise: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to create exercise: {e}")
    db.refresh(exercise)
    return exercise


@router.delete("/{exercise_id}")
def delete_exercise(exercise_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    exercise = db.query(Exercise).filter(Exercise.id == exercise_id).first()
    if exercise is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    if exercise.is_default or exercise.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only your own exercises can be deleted")

    db.delete(exercise)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to delete exercise: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to delete exercise: {e}")
    return {"status": "ok", "deleted": exercise_id}
