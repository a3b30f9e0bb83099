"""
gymactivity/attendance.py
─────────────────────────
Visit counts and streaks from a member's attendance records.

All windows are evaluated client-side against `as_of`:

  this month   [1st of the month 00:00, as_of]
  this week    [Monday 00:00, as_of], clipped to the current month
  4-week avg   records in [as_of - 28 days, as_of] / 4, rounded half-up

Streaks work on calendar days, so several check-ins on the same day count once
there while every record still counts toward the visit totals.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .normalize import CHECK_IN, AttendanceRecord


@dataclass(frozen=True)
class AttendanceStats:
    total_visits: int = 0
    this_month_visits: int = 0
    this_week_visits: int = 0
    average_weekly_visits: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_visit: datetime | None = None

    def as_payload(self) -> dict[str, Any]:
        d = asdict(self)
        return {
            "totalVisits":         d["total_visits"],
            "thisMonthVisits":     d["this_month_visits"],
            "thisWeekVisits":      d["this_week_visits"],
            "averageWeeklyVisits": d["average_weekly_visits"],
            "currentStreak":       d["current_streak"],
            "longestStreak":       d["longest_streak"],
            "lastVisit":           self.last_visit.isoformat() if self.last_visit else None,
        }


# ── window helpers ────────────────────────────────────────────────────────────

def start_of_day(ts: datetime) -> datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(ts: datetime) -> datetime:
    """Monday 00:00 of the week containing `ts`."""
    return start_of_day(ts) - timedelta(days=ts.weekday())


def start_of_month(ts: datetime) -> datetime:
    return start_of_day(ts).replace(day=1)


def _count_between(records: list[AttendanceRecord], start: datetime, end: datetime) -> int:
    return sum(1 for r in records if start <= r.timestamp <= end)


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def visit_days(records: list[AttendanceRecord]) -> list[date]:
    """Distinct calendar days with at least one record, ascending."""
    return sorted({r.timestamp.date() for r in records})


# ── streaks ───────────────────────────────────────────────────────────────────

def current_streak(records: list[AttendanceRecord], as_of: datetime) -> int:
    """
    Consecutive days ending today. Walks days newest-first by their offset
    from as_of; the first offset larger than the running count ends the walk.
    """
    today = as_of.date()
    streak = 0
    for day in reversed(visit_days(records)):
        offset = (today - day).days
        if offset < 0:
            continue
        if offset == streak:
            streak += 1
        elif offset > streak:
            break
    return streak


def longest_streak(records: list[AttendanceRecord]) -> int:
    days = visit_days(records)
    if not days:
        return 0
    longest = run = 1
    for prev, curr in zip(days, days[1:]):
        if (curr - prev).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


# ── stats ─────────────────────────────────────────────────────────────────────

def compute_stats(records: list[AttendanceRecord], as_of: datetime) -> AttendanceStats:
    if not records:
        return AttendanceStats()

    newest = max(records, key=lambda r: r.timestamp)
    four_weeks_ago = as_of - timedelta(days=28)
    # A week straddling the 1st only counts its days in the current month
    week_start = max(start_of_week(as_of), start_of_month(as_of))

    return AttendanceStats(
        total_visits=len(records),
        this_month_visits=_count_between(records, start_of_month(as_of), as_of),
        this_week_visits=_count_between(records, week_start, as_of),
        average_weekly_visits=_round_half_up(_count_between(records, four_weeks_ago, as_of) / 4),
        current_streak=current_streak(records, as_of),
        longest_streak=longest_streak(records),
        last_visit=newest.timestamp,
    )


def week_flags(records: list[AttendanceRecord], as_of: datetime) -> list[int]:
    """[0/1 x 7] visit flags Mon→Sun for the week containing as_of."""
    monday = start_of_week(as_of).date()
    days = set(visit_days(records))
    return [1 if monday + timedelta(days=i) in days else 0 for i in range(7)]


def between(
    records: list[AttendanceRecord],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[AttendanceRecord]:
    """Records in [start, end], newest first. A missing bound is open."""
    hits = [
        r for r in records
        if (start is None or r.timestamp >= start) and (end is None or r.timestamp <= end)
    ]
    return sorted(hits, key=lambda r: r.timestamp, reverse=True)


def group_by_month(records: list[AttendanceRecord]) -> dict[str, list[AttendanceRecord]]:
    """{"YYYY-MM": [records newest first]}, months newest first."""
    grouped: dict[str, list[AttendanceRecord]] = {}
    for r in sorted(records, key=lambda r: r.timestamp, reverse=True):
        grouped.setdefault(f"{r.timestamp.year}-{r.timestamp.month:02d}", []).append(r)
    return grouped


def today_status(records: list[AttendanceRecord], as_of: datetime) -> dict[str, Any]:
    """Whether the member's latest event today is an open check-in."""
    today = as_of.date()
    todays = sorted(
        (r for r in records if r.timestamp.date() == today and r.timestamp <= as_of),
        key=lambda r: r.timestamp,
        reverse=True,
    )
    if not todays:
        return {"checkedIn": False, "canCheckOut": False, "lastEvent": None}
    last = todays[0]
    open_visit = last.event == CHECK_IN
    return {"checkedIn": open_visit, "canCheckOut": open_visit, "lastEvent": last}
