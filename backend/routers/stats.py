"""
Focus stats for the dashboard: today's progress toward the daily goal, the
last seven days, and a year of per-day minutes for the calendar heatmap.

Days are UTC calendar days; session timestamps are stored in UTC.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from db import get_session
from models import FocusSession, Settings, User
from schemas import DailyMinutes, HeatmapDay, StatsResponse, TodayStats
from security import get_current_user

router = APIRouter(prefix="/stats", tags=["stats"])

DEFAULT_DAILY_GOAL = 120  # minutes
WEEK_DAYS = 7
HEATMAP_DAYS = 365


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands datetimes back naive.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def seconds_per_day(sessions: Iterable[FocusSession]) -> dict[date, int]:
    totals: dict[date, int] = defaultdict(int)
    for s in sessions:
        totals[_as_utc(s.start_time).date()] += s.duration_seconds
    return totals


def build_stats(sessions: Iterable[FocusSession], goal: int, today: date) -> StatsResponse:
    totals = seconds_per_day(sessions)
    weekly = []
    for i in range(WEEK_DAYS - 1, -1, -1):
        day = today - timedelta(days=i)
        weekly.append(DailyMinutes(date=day.strftime("%m/%d"), minutes=totals.get(day, 0) // 60))

    minutes = totals.get(today, 0) // 60
    # round half up, capped at 100%
    progress = min((minutes * 200 + goal) // (2 * goal), 100)
    return StatsResponse(
        today=TodayStats(minutes=minutes, goal=goal, progress=progress),
        weekly=weekly,
    )


def build_heatmap(sessions: Iterable[FocusSession]) -> list[HeatmapDay]:
    totals = seconds_per_day(sessions)
    return [
        HeatmapDay(date=day.isoformat(), count=seconds // 60)
        for day, seconds in sorted(totals.items())
    ]


def _sessions_since(db: Session, user_id: int, since: datetime) -> list[FocusSession]:
    statement = select(FocusSession).where(
        FocusSession.user_id == user_id, FocusSession.start_time >= since
    )
    return db.exec(statement).all()


def _start_of_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


@router.get("", response_model=StatsResponse)
def get_stats(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Today's minutes against the daily goal, plus the last 7 days (oldest first)."""
    today = datetime.now(timezone.utc).date()
    settings = db.exec(select(Settings).where(Settings.user_id == user.id)).one_or_none()
    goal = settings.daily_goal if settings and settings.daily_goal else DEFAULT_DAILY_GOAL

    since = _start_of_day(today - timedelta(days=WEEK_DAYS - 1))
    return build_stats(_sessions_since(db, user.id, since), goal, today)


@router.get("/heatmap", response_model=list[HeatmapDay])
def get_heatmap(
    db: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Focused minutes per day over the past year; days without sessions are left out."""
    today = datetime.now(timezone.utc).date()
    since = _start_of_day(today - timedelta(days=HEATMAP_DAYS - 1))
    return build_heatmap(_sessions_since(db, user.id, since))
