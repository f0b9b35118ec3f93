"""
Response shapes shared by the routers. JSON keys are camelCase to match the
frontend; request models (defined next to their routes) accept either spelling.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserRead(CamelModel):
    id: int
    email: str


class TokenResponse(CamelModel):
    access_token: str
    user: UserRead


class TaskRead(CamelModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    estimated_pomodoros: int
    completed_pomodoros: int
    is_completed: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime


class FocusSessionRead(CamelModel):
    id: int
    user_id: int
    task_id: Optional[int] = None
    duration_seconds: int
    start_time: datetime
    end_time: datetime
    created_at: datetime


class FocusSessionWithTask(FocusSessionRead):
    task: Optional[TaskRead] = None


class SettingsRead(CamelModel):
    id: int
    user_id: int
    work_duration: int
    short_break_duration: int
    long_break_duration: int
    auto_start_breaks: bool
    auto_start_pomodoros: bool
    tick_volume: int
    notification_volume: int
    background_sound: str
    ticking_sound: str
    alert_at_25_percent: bool
    notifications_enabled: bool
    mini_clock_mode: bool
    lock_window: bool
    daily_goal: int


class FocusModeRead(CamelModel):
    id: int
    user_id: int
    name: str
    work_duration: int
    short_break_duration: int
    long_break_duration: int
    ambient_sound: str
    ambient_volume: int
    alarm_sound: str
    alert_at_25_percent: bool
    is_default: bool
    created_at: datetime


class TodayStats(BaseModel):
    minutes: int
    goal: int
    progress: int


class DailyMinutes(BaseModel):
    date: str
    minutes: int


class StatsResponse(BaseModel):
    today: TodayStats
    weekly: list[DailyMinutes]


class HeatmapDay(BaseModel):
    date: str  # YYYY-MM-DD
    count: int  # minutes
