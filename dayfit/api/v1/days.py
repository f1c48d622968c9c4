import json
import logging
from datetime import date as DateType

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from dayfit.core.aggregate import export_day, load_day, load_day_index
from dayfit.core.auth import AuthUser, current_user
from dayfit.core.calendar import build_month_view, month_grid
from dayfit.core.config import settings
from dayfit.core.critique import (
    AINotConfiguredError,
    AIServiceError,
    LanguageModelClient,
    analyze_day,
    get_ai_client,
)
from dayfit.core.datekeys import from_key
from dayfit.core.db import get_db

logger = logging.getLogger("dayfit.api.days")

router = APIRouter(tags=["days"])


def _parse_day(date_str: str) -> DateType:
    try:
        return from_key(date_str)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format, expected YYYY-MM-DD")


def _day_document(db: Session, user: AuthUser, date_str: str) -> dict:
    day = _parse_day(date_str)
    summary = load_day(db, user.id, day, settings.AGGREGATION_WINDOW_DAYS)
    return export_day(summary)


@router.get("/calendar/{year}/{month}")
def get_calendar(
    year: int,
    month: int,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Monday-first month grid with per-day sleep, meal and routine indicators.
    """
    try:
        grid = month_grid(year, month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    index = load_day_index(db, user.id, grid[0], grid[-1])
    return {
        "status": "ok",
        "year": year,
        "month": month,
        "days": build_month_view(year, month, index),
    }


@router.get("/days/{date_str}")
def get_day(date_str: str, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return {"status": "ok", **_day_document(db, user, date_str)}


@router.get("/days/{date_str}/export")
def export_day_document(date_str: str, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    """
    The day's document as a downloadable JSON file.
    """
    doc = _day_document(db, user, date_str)
    return Response(
        content=json.dumps(doc, indent=2, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="day-{doc["date"]}.json"'},
    )


@router.post("/days/{date_str}/analyze")
def analyze_day_endpoint(
    date_str: str,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
    client: LanguageModelClient = Depends(get_ai_client),
):
    doc = _day_document(db, user, date_str)
    if doc["sleep"] is None and doc["meals"] is None and not doc["routines"]:
        raise HTTPException(status_code=400, detail="No data recorded for this day")

    try:
        critique = analyze_day(client, doc)
    except AINotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AIServiceError as e:
        logger.error("Day analysis failed for %s: %s", doc["date"], e)
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "status": "ok",
        "date": doc["date"],
        "analysis": critique.analysis,
        "sections": critique.sections,
        "score": critique.score,
    }
