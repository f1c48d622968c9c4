import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.api.v1.routines import merge_payload
from dayfit.core.assignment import (
    AssignmentError,
    AssignmentExecutor,
    AssignmentResult,
    SqlRoutineStore,
    summary_message,
)
from dayfit.core.auth import AuthUser, current_user
from dayfit.core.config import settings
from dayfit.core.critique import (
    AINotConfiguredError,
    AIServiceError,
    LanguageModelClient,
    generate_template,
    get_ai_client,
)
from dayfit.core.db import get_db
from dayfit.core.planner import plan
from dayfit.models.catalog import Exercise
from dayfit.models.routine import RoutineTemplate
from dayfit.schemas.routines import (
    AssignIn,
    AssignmentErrorOut,
    AssignmentOut,
    GenerateTemplateIn,
    RecurringAssignIn,
    RoutineType,
    TemplateIn,
    TemplateOut,
    TemplateUpdate,
)

logger = logging.getLogger("dayfit.api.templates")

router = APIRouter(prefix="/routine-templates", tags=["routine-templates"])


def _get_owned(db: Session, user_id: str, template_id: int) -> RoutineTemplate:
    template = (
        db.query(RoutineTemplate)
        .filter(RoutineTemplate.id == template_id, RoutineTemplate.user_id == user_id)
        .first()
    )
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s template: %s", action, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} template: {e}")


def _assignment_response(planned: int, result: AssignmentResult) -> AssignmentOut:
    return AssignmentOut(
        planned=planned,
        success_count=result.success_count,
        exists_count=result.exists_count,
        error_count=result.error_count,
        errors=[AssignmentErrorOut(date=d, message=m) for d, m in result.errors],
        summary=summary_message(result),
    )


def _run_assignment(db: Session, user: AuthUser, template: RoutineTemplate, dates, overwrite: bool):
    executor = AssignmentExecutor(
        SqlRoutineStore(db, user.id),
        delay=settings.ASSIGNMENT_DELAY_SECONDS,
    )
    try:
        result = executor.run(template, dates, overwrite=overwrite)
    except AssignmentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _assignment_response(len(dates), result)


# ---------- CRUD ----------

@router.get("", response_model=list[TemplateOut])
def list_templates(
    routine_type: RoutineType | None = None,
    favorites_only: bool = False,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    The caller's templates, favorites first, then newest first.
    """
    q = db.query(RoutineTemplate).filter(RoutineTemplate.user_id == user.id)
    if routine_type:
        q = q.filter(RoutineTemplate.routine_type == routine_type.value)
    if favorites_only:
        q = q.filter(RoutineTemplate.is_favorite.is_(True))
    return (
        q.order_by(
            RoutineTemplate.is_favorite.desc(),
            RoutineTemplate.created_at.desc(),
            RoutineTemplate.id.desc(),
        )
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(template_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return _get_owned(db, user.id, template_id)


@router.post("", response_model=TemplateOut, status_code=201)
def create_template(payload: TemplateIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    template = RoutineTemplate(
        user_id=user.id,
        name=payload.name,
        description=payload.description,
        is_favorite=payload.is_favorite,
        **payload.payload_columns(),
    )
    db.add(template)
    _commit(db, "create")
    db.refresh(template)
    return template


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: int,
    payload: TemplateUpdate,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    template = _get_owned(db, user.id, template_id)
    changes = payload.model_dump(exclude_unset=True)

    for name, value in merge_payload(template, changes).items():
        setattr(template, name, value)
    if changes.get("name") is not None:
        template.name = changes["name"]
    if "description" in changes:
        template.description = changes["description"]
    if changes.get("is_favorite") is not None:
        template.is_favorite = changes["is_favorite"]

    _commit(db, "update")
    db.refresh(template)
    return template


@router.delete("/{template_id}")
def delete_template(template_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    template = _get_owned(db, user.id, template_id)
    db.delete(template)
    _commit(db, "delete")
    return {"status": "ok", "deleted": template_id}


# ---------- Assignment ----------

@router.post("/{template_id}/assign", response_model=AssignmentOut)
def assign_template(
    template_id: int,
    payload: AssignIn,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Create a routine from the template on one date.
    """
    template = _get_owned(db, user.id, template_id)
    return _run_assignment(db, user, template, [payload.date], payload.overwrite)


@router.post("/{template_id}/assign/recurring", response_model=AssignmentOut)
def assign_template_recurring(
    template_id: int,
    payload: RecurringAssignIn,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Create a routine from the template on every selected weekday between
    start_date and end_date (inclusive).

    Dates that already have a routine of the same type are reported as
    existing and left untouched unless overwrite is set.
    """
    if not payload.weekdays:
        raise HTTPException(status_code=400, detail="Select at least one day of the week")
    if payload.start_date > payload.end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    template = _get_owned(db, user.id, template_id)
    dates = plan(payload.start_date, payload.end_date, payload.weekdays)
    if not dates:
        # none of the selected weekdays falls inside the range
        return _assignment_response(0, AssignmentResult())
    return _run_assignment(db, user, template, dates, payload.overwrite)


# ---------- AI generation ----------

@router.post("/generate")
def generate_template_draft(
    payload: GenerateTemplateIn,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
    client: LanguageModelClient = Depends(get_ai_client),
):
    """
    Ask the language model for a routine and return it as an unsaved
    template draft.
    """
    exercises = db.query(Exercise).filter(Exercise.is_default.is_(True)).all()
    try:
        draft = generate_template(client, payload.prompt, payload.user_goals, exercises)
    except AINotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except AIServiceError as e:
        logger.error("Template generation failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))

    return {"status": "ok", "template": draft}
