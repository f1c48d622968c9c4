import logging
from datetime import date as DateType

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.db import get_db
from dayfit.models.sleep import SleepRecord
from dayfit.schemas.sleep import SleepIn, SleepOut, SleepUpdate

logger = logging.getLogger("dayfit.api.sleep")

router = APIRouter(prefix="/sleep", tags=["sleep"])


def _get_owned(db: Session, user_id: str, record_id: int) -> SleepRecord:
    record = (
        db.query(SleepRecord)
        .filter(SleepRecord.id == record_id, SleepRecord.user_id == user_id)
        .first()
    )
    if record is None:
        raise HTTPException(status_code=404, detail="Sleep record not found")
    return record


def _naive(value):
    return value.replace(tzinfo=None) if value is not None else value


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A sleep record already exists for this date")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s sleep record: %s", action, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} sleep record: {e}")


@router.get("", response_model=list[SleepOut])
def list_sleep(
    start_date: DateType | None = None,
    end_date: DateType | None = None,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    q = db.query(SleepRecord).filter(SleepRecord.user_id == user.id)
    if start_date:
        q = q.filter(SleepRecord.sleep_date >= start_date)
    if end_date:
        q = q.filter(SleepRecord.sleep_date <= end_date)
    return q.order_by(SleepRecord.sleep_date.desc()).offset(offset).limit(limit).all()


@router.get("/{record_id}", response_model=SleepOut)
def get_sleep(record_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return _get_owned(db, user.id, record_id)


@router.post("", response_model=SleepOut, status_code=201)
def create_sleep(payload: SleepIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    data = payload.model_dump(mode="json")
    record = SleepRecord(
        user_id=user.id,
        sleep_date=payload.sleep_date,
        bedtime=payload.bedtime,
        wake_time=payload.wake_time,
        total_sleep_hours=payload.total_sleep_hours,
        sleep_phases=data["sleep_phases"],
        notes=payload.notes,
    )
    db.add(record)
    _commit(db, "create")
    db.refresh(record)
    return record


@router.put("/{record_id}", response_model=SleepOut)
def update_sleep(
    record_id: int,
    payload: SleepUpdate,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    record = _get_owned(db, user.id, record_id)
    changes = payload.model_dump(exclude_unset=True)
    if "sleep_phases" in changes:
        changes["sleep_phases"] = payload.model_dump(mode="json", include={"sleep_phases"})["sleep_phases"] or []

    for name, value in changes.items():
        if value is None and name != "notes":
            continue
        setattr(record, name, value)

    if _naive(record.wake_time) < _naive(record.bedtime):
        db.rollback()
        raise HTTPException(status_code=400, detail="wake_time must not be earlier than bedtime")

    _commit(db, "update")
    db.refresh(record)
    return record


@router.delete("/{record_id}")
def delete_sleep(record_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    record = _get_owned(db, user.id, record_id)
    db.delete(record)
    _commit(db, "delete")
    return {"status": "ok", "deleted": record_id}
