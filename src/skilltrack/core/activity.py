"""Activity streaks and daily activity counters.

Diary entries and progress updates both count as activity. Days are UTC
calendar days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

import structlog

from skilltrack.core.models import ActivityDay, ProgressUpdate, SkillEntry
from skilltrack.core.repository import SkillRepository
from skilltrack.utils.time_utils import ensure_aware, utc_now

logger = structlog.get_logger(__name__)


def _utc_date(value: datetime) -> date:
    return ensure_aware(value).date()


def calculate_streak(activity_timestamps: Iterable[datetime], today: date | None = None) -> int:
    """Count consecutive active days ending today or yesterday.

    A streak survives until the end of the day after the last activity:
    activity yesterday but not yet today still counts.

    Args:
        activity_timestamps: When each activity happened
        today: Reference day (defaults to the current UTC date)

    Returns:
        Streak length in days (0 if the last activity is older than yesterday)
    """
    active_days = {_utc_date(ts) for ts in activity_timestamps}
    if not active_days:
        return 0

    today = today or utc_now().date()
    yesterday = today - timedelta(days=1)

    if today in active_days:
        cursor = today
    elif yesterday in active_days:
        cursor = yesterday
    else:
        return 0

    streak = 0
    while cursor in active_days:
        streak += 1
        cursor -= timedelta(days=1)

    return streak


def get_activity_data(
    entries: Sequence[SkillEntry],
    progress_updates: Sequence[ProgressUpdate] = (),
    days: int = 7,
    today: date | None = None,
) -> list[ActivityDay]:
    """Per-day activity for the last `days` days, most recent first.

    Activity outside the window is ignored.
    """
    today = today or utc_now().date()
    window: dict[date, ActivityDay] = {}
    for offset in range(days):
        day = today - timedelta(days=offset)
        window[day] = ActivityDay(date=day.isoformat())

    for entry in entries:
        bucket = window.get(_utc_date(entry.created_at))
        if bucket is not None:
            bucket.entries += 1
            bucket.hours += entry.hours or 0

    for update in progress_updates:
        bucket = window.get(_utc_date(update.created_at))
        if bucket is not None:
            bucket.progress_updates += 1

    return sorted(window.values(), key=lambda d: d.date, reverse=True)


async def get_skill_streak(
    repo: SkillRepository, skill_id: str, today: date | None = None
) -> int:
    """Current streak over entries and progress updates, stored in skill.streak."""
    await repo.get_skill(skill_id)
    entries = await repo.list_entries(skill_id)
    updates = await repo.list_progress_updates(skill_id)

    timestamps = [e.created_at for e in entries] + [u.created_at for u in updates]
    streak = calculate_streak(timestamps, today)
    await repo.update_skill(skill_id, streak=streak)

    logger.debug("activity.streak_computed", skill_id=skill_id, streak=streak)
    return streak
