from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    title: str
    description: Optional[str] = None
    estimated_pomodoros: int = 1
    completed_pomodoros: int = 0
    is_completed: bool = False
    is_archived: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FocusSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    task_id: Optional[int] = Field(default=None, foreign_key="task.id", index=True)
    duration_seconds: int
    start_time: datetime
    end_time: datetime
    created_at: datetime = Field(default_factory=utcnow)


class Settings(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)
    work_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False
    tick_volume: int = 50
    notification_volume: int = 50
    background_sound: str = "none"
    ticking_sound: str = "none"
    alert_at_25_percent: bool = False
    notifications_enabled: bool = True
    mini_clock_mode: bool = False
    lock_window: bool = False
    daily_goal: int = 120  # minutes


class FocusMode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str
    work_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    ambient_sound: str = "none"
    ambient_volume: int = 50
    alarm_sound: str = "bell"
    alert_at_25_percent: bool = False
    is_default: bool = False
    created_at: datetime = Field(default_factory=utcnow)
