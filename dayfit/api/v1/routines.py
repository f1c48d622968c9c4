import logging
from datetime import date as DateType

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.db import get_db
from dayfit.models.routine import Routine
from dayfit.schemas.routines import (
    PAYLOAD_FIELDS,
    RoutineIn,
    RoutineOut,
    RoutinePayload,
    RoutineType,
    RoutineUpdate,
)

logger = logging.getLogger("dayfit.api.routines")

router = APIRouter(prefix="/routines", tags=["routines"])

PAYLOAD_COLUMNS = ("routine_type", *PAYLOAD_FIELDS.values(), "notes")


def merge_payload(row, changes: dict) -> dict:
    """
    Apply a partial update to the typed payload of a routine or template row
    and return the validated column values.

    Switching routine_type drops the payload of the previous type unless the
    update provides it again.
    """
    current = {name: getattr(row, name) for name in PAYLOAD_COLUMNS}
    new_type = changes.get("routine_type")
    if new_type is not None and RoutineType(new_type).value != current["routine_type"]:
        for name in PAYLOAD_FIELDS.values():
            if name not in changes:
                current[name] = None

    merged = {**current, **{k: v for k, v in changes.items() if k in PAYLOAD_COLUMNS}}
    if merged["routine_type"] is None:
        merged["routine_type"] = current["routine_type"]

    try:
        return RoutinePayload.model_validate(merged).payload_columns()
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail="; ".join(err["msg"] for err in e.errors()),
        )


def _get_owned(db: Session, user_id: str, routine_id: int) -> Routine:
    routine = db.query(Routine).filter(Routine.id == routine_id, Routine.user_id == user_id).first()
    if routine is None:
        raise HTTPException(status_code=404, detail="Routine not found")
    return routine


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="A routine of this type already exists for this date",
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s routine: %s", action, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} routine: {e}")


@router.get("", response_model=list[RoutineOut])
def list_routines(
    start_date: DateType | None = None,
    end_date: DateType | None = None,
    routine_type: RoutineType | None = None,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    q = db.query(Routine).filter(Routine.user_id == user.id)
    if start_date:
        q = q.filter(Routine.routine_date >= start_date)
    if end_date:
        q = q.filter(Routine.routine_date <= end_date)
    if routine_type:
        q = q.filter(Routine.routine_type == routine_type.value)
    return (
        q.order_by(Routine.routine_date.desc(), Routine.routine_type.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{routine_id}", response_model=RoutineOut)
def get_routine(routine_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return _get_owned(db, user.id, routine_id)


@router.post("", response_model=RoutineOut, status_code=201)
def create_routine(payload: RoutineIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    routine = Routine(user_id=user.id, routine_date=payload.routine_date, **payload.payload_columns())
    db.add(routine)
    _commit(db, "create")
    db.refresh(routine)
    return routine


@router.put("/{routine_id}", response_model=RoutineOut)
def update_routine(
    routine_id: int,
    payload: RoutineUpdate,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    routine = _get_owned(db, user.id, routine_id)
    changes = payload.model_dump(exclude_unset=True)

    for name, value in merge_payload(routine, changes).items():
        setattr(routine, name, value)
    if changes.get("routine_date") is not None:
        routine.routine_date = changes["routine_date"]

    _commit(db, "update")
    db.refresh(routine)
    return routine


@router.delete("/{routine_id}")
def delete_routine(routine_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    routine = _get_owned(db, user.id, routine_id)
    db.delete(routine)
    _commit(db, "delete")
    return {"status": "ok", "deleted": routine_id}
