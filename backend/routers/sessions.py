"""
Focus sessions: record a finished pomodoro (optionally against a task) and
list the caller's history.

Recording is one transaction: the session row, the task's counter bump and
its completion flag either all land or none do.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from db import get_session
from models import FocusSession, Task, User, utcnow
from schemas import CamelModel, FocusSessionRead, FocusSessionWithTask, TaskRead
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class RecordSessionRequest(CamelModel):
    duration_seconds: int = Field(gt=0, strict=True)
    task_id: Optional[int] = Field(default=None, gt=0, strict=True)


def _advance_task(db: Session, task_id: int) -> Task:
    """Count one more pomodoro against a task, completing it once the estimate is met."""
    db.exec(
        update(Task)
        .where(Task.id == task_id)
        .values(completed_pomodoros=Task.completed_pomodoros + 1, updated_at=utcnow())
    )
    # Only ever sets the flag; a done task stays done.
    db.exec(
        update(Task)
        .where(
            Task.id == task_id,
            Task.is_completed == False,  # noqa: E712
            Task.completed_pomodoros >= Task.estimated_pomodoros,
        )
        .values(is_completed=True, updated_at=utcnow())
    )
    task = db.get(Task, task_id)
    db.refresh(task)
    return task


def record_session(
    db: Session, user_id: int, duration_seconds: int, task_id: Optional[int] = None
) -> FocusSession:
    """
    Log a completed focus interval for user_id.

    Not idempotent: every call writes a new row and, with a task, bumps its
    counter again. Raises 404 for an unknown task and 403 for someone else's.
    """
    task = None
    was_completed = False
    if task_id is not None:
        task = db.get(Task, task_id)
        if not task:
            raise HTTPException(status_code=404, detail=f"Task with ID {task_id} not found")
        if task.user_id != user_id:
            raise HTTPException(status_code=403, detail="You do not own this task")
        was_completed = task.is_completed

    # Server clock: the session is stamped when it is reported, not when the timer started.
    start_time = datetime.now(timezone.utc)
    end_time = start_time + timedelta(seconds=duration_seconds)

    focus_session = FocusSession(
        user_id=user_id,
        task_id=task_id,
        duration_seconds=duration_seconds,
        start_time=start_time,
        end_time=end_time,
    )
    try:
        db.add(focus_session)
        db.flush()
        if task_id is not None:
            task = _advance_task(db, task_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record session for user %s (task %s)", user_id, task_id)
        raise
    db.refresh(focus_session)

    logger.info(
        "Recorded %ss session %s for user %s (task %s)",
        duration_seconds, focus_session.id, user_id, task_id,
    )
    if task is not None and task.is_completed and not was_completed:
        logger.info(
            "Task %s completed (%s/%s pomodoros)",
            task_id, task.completed_pomodoros, task.estimated_pomodoros,
        )
    return focus_session


def list_sessions(db: Session, user_id: int) -> list[FocusSessionWithTask]:
    """All of a user's sessions, newest first, each with its task (if any)."""
    statement = (
        select(FocusSession, Task)
        .join(Task, FocusSession.task_id == Task.id, isouter=True)
        .where(FocusSession.user_id == user_id)
        .order_by(FocusSession.created_at.desc(), FocusSession.id.desc())
    )
    return [
        FocusSessionWithTask(
            **FocusSessionRead.model_validate(focus_session).model_dump(),
            task=TaskRead.model_validate(task) if task else None,
        )
        for focus_session, task in db.exec(statement).all()
    ]


@router.post("", response_model=FocusSessionRead, status_code=201)
def create_session(
    req: RecordSessionRequest,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Record a finished focus session. Returns the new session with its timestamps."""
    return record_session(db, user.id, req.duration_seconds, req.task_id)


@router.get("", response_model=list[FocusSessionWithTask])
def get_sessions(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """List every session for this user (newest first)."""
    return list_sessions(db, user.id)
