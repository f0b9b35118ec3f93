"""
Focus modes: named timer profiles (durations, ambient sound). Every user keeps
at least one; a "Default Focus" profile is created the first time they list.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlmodel import Session, func, select

from db import get_session
from models import FocusMode, User
from schemas import CamelModel, FocusModeRead
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/focus-modes", tags=["focus-modes"])

DEFAULT_MODE_NAME = "Default Focus"


class FocusModeFields(CamelModel):
    """Writable profile fields. id, userId and isDefault in a body are ignored."""

    work_duration: Optional[int] = Field(default=None, ge=1)
    short_break_duration: Optional[int] = Field(default=None, ge=1)
    long_break_duration: Optional[int] = Field(default=None, ge=1)
    ambient_sound: Optional[str] = None
    ambient_volume: Optional[int] = Field(default=None, ge=0, le=100)
    alarm_sound: Optional[str] = None
    alert_at_25_percent: Optional[bool] = None


class CreateFocusModeRequest(FocusModeFields):
    name: str = Field(min_length=1)


class UpdateFocusModeRequest(FocusModeFields):
    name: Optional[str] = Field(default=None, min_length=1)


def _changes(req: FocusModeFields) -> dict:
    return {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}


def _owned_mode(db: Session, mode_id: int, user_id: int) -> FocusMode:
    mode = db.get(FocusMode, mode_id)
    if not mode or mode.user_id != user_id:
        raise HTTPException(status_code=404, detail="Focus mode not found")
    return mode


@router.get("", response_model=list[FocusModeRead])
def list_modes(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    statement = select(FocusMode).where(FocusMode.user_id == user.id).order_by(FocusMode.id)
    modes = db.exec(statement).all()
    if not modes:
        default_mode = FocusMode(user_id=user.id, name=DEFAULT_MODE_NAME, is_default=True)
        db.add(default_mode)
        db.commit()
        db.refresh(default_mode)
        return [default_mode]
    return modes


@router.post("", response_model=FocusModeRead, status_code=201)
def create_mode(
    req: CreateFocusModeRequest,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    mode = FocusMode(user_id=user.id, **_changes(req))
    db.add(mode)
    db.commit()
    db.refresh(mode)
    return mode


@router.patch("/{mode_id}", response_model=FocusModeRead)
def update_mode(
    mode_id: int,
    req: UpdateFocusModeRequest,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    mode = _owned_mode(db, mode_id, user.id)
    for key, value in _changes(req).items():
        setattr(mode, key, value)
    db.add(mode)
    db.commit()
    db.refresh(mode)
    return mode


@router.delete("/{mode_id}", response_model=FocusModeRead)
def delete_mode(
    mode_id: int,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Delete a profile. The last remaining one cannot be removed."""
    mode = _owned_mode(db, mode_id, user.id)
    count = db.exec(
        select(func.count()).select_from(FocusMode).where(FocusMode.user_id == user.id)
    ).one()
    if count <= 1:
        raise HTTPException(status_code=400, detail="At least one profile must remain")
    deleted = FocusModeRead.model_validate(mode)
    db.delete(mode)
    db.commit()
    logger.info("User %s deleted focus mode %s", user.id, mode_id)
    return deleted
