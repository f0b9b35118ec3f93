"""
Per-user timer settings. A row with defaults is created on first read.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlmodel import Session, select

from db import get_session
from models import Settings, User
from schemas import CamelModel, SettingsRead
from security import get_current_user

router = APIRouter(prefix="/settings", tags=["settings"])


class UpdateSettingsRequest(CamelModel):
    work_duration: Optional[int] = Field(default=None, ge=1)
    short_break_duration: Optional[int] = Field(default=None, ge=1)
    long_break_duration: Optional[int] = Field(default=None, ge=1)
    auto_start_breaks: Optional[bool] = None
    auto_start_pomodoros: Optional[bool] = None
    tick_volume: Optional[int] = Field(default=None, ge=0, le=100)
    notification_volume: Optional[int] = Field(default=None, ge=0, le=100)
    background_sound: Optional[str] = None
    ticking_sound: Optional[str] = None
    alert_at_25_percent: Optional[bool] = None
    notifications_enabled: Optional[bool] = None
    mini_clock_mode: Optional[bool] = None
    lock_window: Optional[bool] = None
    daily_goal: Optional[int] = Field(default=None, ge=1)


def get_or_create_settings(db: Session, user_id: int) -> Settings:
    statement = select(Settings).where(Settings.user_id == user_id)
    settings = db.exec(statement).one_or_none()
    if settings is None:
        settings = Settings(user_id=user_id)
        db.add(settings)
        db.commit()
        db.refresh(settings)
    return settings


@router.get("", response_model=SettingsRead)
def read_settings(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return get_or_create_settings(db, user.id)


@router.patch("", response_model=SettingsRead)
def update_settings(
    req: UpdateSettingsRequest,
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Apply only the fields that were sent."""
    settings = get_or_create_settings(db, user.id)
    for key, value in req.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(settings, key, value)
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings
