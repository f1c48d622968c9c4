import logging
import time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dayfit.core.datekeys import to_key
from dayfit.models.routine import Routine
from dayfit.schemas.routines import payload_field

logger = logging.getLogger("dayfit.assignment")

# per-date error details shown in a batch summary
MAX_REPORTED_ERRORS = 5

# unique key that makes a second routine of one type on one day a conflict
DUPLICATE_CONSTRAINT = "uq_routine_user_date_type"


class AssignmentError(ValueError):
    """A condition that invalidates the whole batch."""


class DuplicateRoutineError(Exception):
    """A routine of the same type already exists on that date."""


class Outcome(str, Enum):
    SUCCESS = "success"
    EXISTS = "exists"
    ERROR = "error"


@dataclass
class AssignmentResult:
    success_count: int = 0
    exists_count: int = 0
    error_count: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    def record(self, day: date, outcome: Outcome, message: str | None = None) -> None:
        if outcome is Outcome.SUCCESS:
            self.success_count += 1
        elif outcome is Outcome.EXISTS:
            self.exists_count += 1
        else:
            self.error_count += 1
            self.errors.append((to_key(day), message or "Unknown error"))

    @property
    def total(self) -> int:
        return self.success_count + self.exists_count + self.error_count


class RoutineStore(Protocol):
    def delete_routine(self, day: date, routine_type: str) -> int: ...

    def create_routine(self, day: date, payload: dict) -> Any: ...


class SqlRoutineStore:
    """Routine writes for one user, one committed transaction per call."""

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def delete_routine(self, day: date, routine_type: str) -> int:
        try:
            deleted = (
                self.db.query(Routine)
                .filter(Routine.user_id == self.user_id)
                .filter(Routine.routine_date == day)
                .filter(Routine.routine_type == routine_type)
                .delete(synchronize_session="fetch")
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return deleted

    def create_routine(self, day: date, payload: dict) -> Routine:
        row = Routine(user_id=self.user_id, routine_date=day, **payload)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if not _is_duplicate(e):
                raise
            raise DuplicateRoutineError(
                f"A {payload['routine_type']} routine already exists for {to_key(day)}"
            ) from e
        except Exception:
            self.db.rollback()
            raise
        return row


def _is_duplicate(error: IntegrityError) -> bool:
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == DUPLICATE_CONSTRAINT
    # sqlite reports the columns instead of the constraint name
    message = str(error.orig)
    return DUPLICATE_CONSTRAINT in message or (
        "UNIQUE" in message and "routines.routine_type" in message
    )


class SequentialTaskQueue:
    """
    Runs queued callables one at a time, in submission order, with a fixed
    pause between consecutive tasks.
    """

    def __init__(self, delay: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        self.delay = delay
        self._sleep = sleep
        self._pending: list[tuple[Callable, tuple]] = []

    def submit(self, fn: Callable, *args) -> None:
        self._pending.append((fn, args))

    def __len__(self) -> int:
        return len(self._pending)

    def drain(self) -> list:
        results = []
        pending, self._pending = self._pending, []
        for i, (fn, args) in enumerate(pending):
            if i and self.delay > 0:
                self._sleep(self.delay)
            results.append(fn(*args))
        return results


def template_payload(template) -> dict:
    """Creation payload for a routine: the template's one typed field plus notes."""
    if template is None:
        raise AssignmentError("No template selected")

    field_name = payload_field(template.routine_type)
    value = getattr(template, field_name)
    if value is None:
        raise AssignmentError(f"Template has no {field_name} for its {template.routine_type} type")

    return {
        "routine_type": template.routine_type,
        field_name: value,
        "notes": template.notes,
    }


class AssignmentExecutor:
    """
    Materialises a routine template onto a list of dates.

    Dates are processed strictly one after another. Each date ends as success,
    exists (same type already on that day and not overwritten) or error; a
    failing date never stops the rest of the batch.
    """

    def __init__(
        self,
        store: RoutineStore,
        delay: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.delay = delay
        self._sleep = sleep

    def run(self, template, dates: list[date], overwrite: bool = False) -> AssignmentResult:
        payload = template_payload(template)
        if not dates:
            raise AssignmentError("No dates selected")

        queue = SequentialTaskQueue(self.delay, self._sleep)
        for day in dates:
            queue.submit(self._assign_one, day, payload, overwrite)

        result = AssignmentResult()
        for day, outcome, message in queue.drain():
            result.record(day, outcome, message)

        logger.info(
            "Assigned %s template to %d dates: %d created, %d existing, %d failed",
            payload["routine_type"],
            len(dates),
            result.success_count,
            result.exists_count,
            result.error_count,
        )
        return result

    def _assign_one(self, day: date, payload: dict, overwrite: bool):
        if overwrite:
            try:
                self.store.delete_routine(day, payload["routine_type"])
            except Exception as e:
                logger.warning("Could not delete existing routine on %s: %s", to_key(day), e)

        try:
            self.store.create_routine(day, dict(payload))
        except DuplicateRoutineError:
            return day, Outcome.EXISTS, None
        except Exception as e:
            logger.error("Routine creation failed on %s: %s", to_key(day), e)
            return day, Outcome.ERROR, str(e) or e.__class__.__name__

        return day, Outcome.SUCCESS, None


def summary_message(result: AssignmentResult, max_errors: int = MAX_REPORTED_ERRORS) -> str | None:
    """
    Human summary of a batch; None when every date was created without
    conflicts.
    """
    if result.exists_count == 0 and result.error_count == 0:
        return None

    lines = [
        f"{result.success_count} created, "
        f"{result.exists_count} already existed, "
        f"{result.error_count} failed."
    ]
    for day_key, message in result.errors[:max_errors]:
        lines.append(f"{day_key}: {message}")
    hidden = len(result.errors) - max_errors
    if hidden > 0:
        lines.append(f"... and {hidden} more errors")
    return "\n".join(lines)
