"""
Tasks: create and list. Progress fields are only moved by recorded sessions.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlmodel import Session, select

from db import get_session
from models import Task, User
from schemas import CamelModel, TaskRead
from security import get_current_user

router = APIRouter(prefix="/tasks", tags=["tasks"])


class CreateTaskRequest(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    estimated_pomodoros: int = Field(default=1, ge=1, strict=True)


@router.post("", response_model=TaskRead, status_code=201)
def create_task(
    req: CreateTaskRequest,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    task = Task(
        user_id=user.id,
        title=req.title,
        description=req.description,
        estimated_pomodoros=req.estimated_pomodoros,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@router.get("", response_model=list[TaskRead])
def list_tasks(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """All tasks for this user, newest first."""
    statement = (
        select(Task)
        .where(Task.user_id == user.id)
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    return db.exec(statement).all()
