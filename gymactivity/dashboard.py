"""
gymactivity/dashboard.py
────────────────────────
Builds the view-models the app screens render. Every read goes through the
repository concurrently and is raced against settings.FETCH_TIMEOUT; a failure
or timeout turns into that read's empty default, so the returned dict always
has the full shape below.

{
  memberId, userName,
  membership:   { id, plan, gym, status, startDate, expiryDate,
                  daysRemaining, monthlyFee, debt },
  memberships:  { total, active, totalDebt, gyms, plans },
  debt:         { totalDebt, overdueAmount, pendingAmount, nextDueDate,
                  paidThisMonth, lastPaymentDate, lastPaymentAmount },
  nextPayment:  { amount, dueDate, concept, status, daysUntilDue, urgency },
  attendance:   { totalVisits, thisMonthVisits, thisWeekVisits,
                  averageWeeklyVisits, currentStreak, longestStreak,
                  lastVisit, week: [0/1 x 7] },
  recentAttendance: [ { id, date, dateLabel, time, type } ],
  today:        { checkedIn, canCheckOut },
  generatedAt
}
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, TypeVar

from config import settings

from .attendance import between, compute_stats, group_by_month, today_status, week_flags
from .locations import MemberIdentity
from .membership import (
    ACTIVE, EXPIRED, days_remaining, derive_state, pick_active, summarize_memberships,
)
from .normalize import AttendanceRecord, MemberRecord, MembershipRecord, PaymentRecord
from .payments import (
    DebtSummary, classify, debt_summary, next_payment, payment_history, pending_payments,
)
from .repository import ActivityRepository

log = logging.getLogger("gym_activity.dashboard")

T = TypeVar("T")


# ── display strings ───────────────────────────────────────────────────────────

MONTHS = {
    "es": ["enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
           "agosto", "septiembre", "octubre", "noviembre", "diciembre"],
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
}

WEEKDAYS = {
    "es": ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}


def _locale(locale: str | None) -> str:
    loc = (locale or settings.LOCALE)[:2].lower()
    return loc if loc in MONTHS else "es"


def format_day(ts: datetime, locale: str | None = None) -> str:
    """'lunes 9 de junio' / 'Monday 9 June'."""
    loc = _locale(locale)
    weekday = WEEKDAYS[loc][ts.weekday()]
    month = MONTHS[loc][ts.month - 1]
    if loc == "es":
        return f"{weekday} {ts.day} de {month}"
    return f"{weekday} {ts.day} {month}"


def format_month(key: str, locale: str | None = None) -> str:
    """'2025-06' → 'junio de 2025' / 'June 2025'."""
    year, month = key.split("-")
    name = MONTHS[_locale(locale)][int(month) - 1]
    return f"{name} de {year}" if _locale(locale) == "es" else f"{name} {year}"


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts else None


def attendance_item(record: AttendanceRecord, locale: str | None = None) -> dict[str, Any]:
    return {
        "id":        record.id,
        "date":      record.timestamp.date().isoformat(),
        "dateLabel": format_day(record.timestamp, locale),
        "time":      record.time,
        "type":      record.event,
    }


def payment_item(payment: PaymentRecord, as_of: datetime) -> dict[str, Any]:
    state = classify(payment, as_of)
    return {
        "id":           payment.id,
        "amount":       payment.amount,
        "concept":      payment.concept,
        "dueDate":      payment.due_date.date().isoformat(),
        "paidDate":     payment.paid_date.date().isoformat() if payment.paid_date else None,
        "method":       payment.method,
        "status":       state.status,
        "daysUntilDue": state.days_until_due,
        "urgency":      state.urgency,
    }


# ── guarded fetches ───────────────────────────────────────────────────────────

async def guarded(
    label: str, call: Awaitable[T], default: T, timeout: float
) -> T:
    """Await `call` with a deadline; any failure or timeout yields `default`."""
    try:
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError:
        log.warning("%s timed out after %.1fs, using default", label, timeout)
    except Exception as exc:
        log.warning("%s failed (%s: %s), using default", label, type(exc).__name__, exc)
    return default


async def load_records(
    repository: ActivityRepository,
    identity: MemberIdentity,
    timeout: float,
) -> tuple[MemberRecord | None, list[MembershipRecord], list[AttendanceRecord], list[PaymentRecord]]:
    member, memberships, attendance, payments = await asyncio.gather(
        guarded("member", repository.fetch_member(identity), None, timeout),
        guarded("memberships", repository.fetch_memberships(identity), [], timeout),
        guarded("attendance", repository.fetch_attendance(identity), [], timeout),
        guarded("payments", repository.fetch_payments(identity), [], timeout),
    )
    return member, memberships, attendance, payments


# ── view-models ───────────────────────────────────────────────────────────────

def _membership_block(
    active: MembershipRecord | None,
    member: MemberRecord | None,
    as_of: datetime,
) -> dict[str, Any]:
    member_debt = member.debt if member else None
    if active is None:
        status = ACTIVE if member and member.status == "active" else EXPIRED
        return {
            "id": None, "plan": "Sin membresía", "gym": "", "status": status,
            "startDate": None, "expiryDate": None, "daysRemaining": 0,
            "monthlyFee": 0.0, "debt": member_debt or 0.0,
        }
    state = derive_state(active, as_of, member_debt)
    return {
        "id":            active.id,
        "plan":          active.plan,
        "gym":           active.gym_name,
        "status":        state.status,
        "startDate":     active.start_date.date().isoformat(),
        "expiryDate":    active.end_date.date().isoformat(),
        "daysRemaining": days_remaining(active, as_of),
        "monthlyFee":    active.monthly_fee,
        "debt":          state.debt,
    }


def _next_payment_block(payments: list[PaymentRecord], as_of: datetime) -> dict[str, Any]:
    upcoming = next_payment(payments)
    if upcoming is None:
        return {
            "amount": 0.0, "dueDate": None, "concept": "Sin deudas pendientes",
            "status": "paid", "daysUntilDue": 0, "urgency": "low",
        }
    item = payment_item(upcoming, as_of)
    return {k: item[k] for k in ("amount", "dueDate", "concept", "status", "daysUntilDue", "urgency")}


def assemble_dashboard(
    identity: MemberIdentity,
    member: MemberRecord | None,
    memberships: list[MembershipRecord],
    attendance: list[AttendanceRecord],
    payments: list[PaymentRecord],
    as_of: datetime,
    recent_limit: int = settings.RECENT_LIMIT,
    locale: str | None = None,
) -> dict[str, Any]:
    """Pure assembly step; everything is already fetched and normalised."""
    active = pick_active(memberships, as_of)
    stats  = compute_stats(attendance, as_of)
    today  = today_status(attendance, as_of)
    recent = sorted(attendance, key=lambda r: r.timestamp, reverse=True)[:max(recent_limit, 0)]

    return {
        "memberId":         identity.member_id,
        "userName":         member.display_name if member else "",
        "membership":       _membership_block(active, member, as_of),
        "memberships":      summarize_memberships(memberships, as_of),
        "debt":             debt_summary(payments, as_of).as_payload(),
        "nextPayment":      _next_payment_block(payments, as_of),
        "attendance":       {**stats.as_payload(), "week": week_flags(attendance, as_of)},
        "recentAttendance": [attendance_item(r, locale) for r in recent],
        "today":            {"checkedIn": today["checkedIn"], "canCheckOut": today["canCheckOut"]},
        "generatedAt":      as_of.isoformat(timespec="seconds"),
    }


def empty_dashboard(identity: MemberIdentity, as_of: datetime | None = None) -> dict[str, Any]:
    """The all-defaults view-model shown when nothing could be loaded."""
    return assemble_dashboard(identity, None, [], [], [], as_of or datetime.now())


async def build_dashboard(
    repository: ActivityRepository,
    identity: MemberIdentity,
    as_of: datetime | None = None,
    recent_limit: int | None = None,
    timeout: float | None = None,
    locale: str | None = None,
) -> dict[str, Any]:
    as_of = as_of or datetime.now()
    timeout = settings.FETCH_TIMEOUT if timeout is None else timeout
    recent_limit = settings.RECENT_LIMIT if recent_limit is None else recent_limit

    member, memberships, attendance, payments = await load_records(repository, identity, timeout)
    log.info(
        "Dashboard for %s: %d membership(s), %d visit(s), %d payment(s)",
        identity.member_id, len(memberships), len(attendance), len(payments),
    )
    return assemble_dashboard(
        identity, member, memberships, attendance, payments,
        as_of, recent_limit=recent_limit, locale=locale,
    )


async def build_attendance_view(
    repository: ActivityRepository,
    identity: MemberIdentity,
    as_of: datetime | None = None,
    timeout: float | None = None,
    locale: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict[str, Any]:
    """
    Stats plus the history grouped by month, for the attendance screen.
    `start`/`end` narrow the history only; stats always cover every record.
    """
    as_of = as_of or datetime.now()
    timeout = settings.FETCH_TIMEOUT if timeout is None else timeout
    records = await guarded("attendance", repository.fetch_attendance(identity), [], timeout)

    today = today_status(records, as_of)
    return {
        "memberId": identity.member_id,
        "stats":    {**compute_stats(records, as_of).as_payload(), "week": week_flags(records, as_of)},
        "months": [
            {"month": key, "label": format_month(key, locale),
             "visits": [attendance_item(r, locale) for r in items]}
            for key, items in group_by_month(between(records, start, end)).items()
        ],
        "today": {"checkedIn": today["checkedIn"], "canCheckOut": today["canCheckOut"]},
    }


async def build_payments_view(
    repository: ActivityRepository,
    identity: MemberIdentity,
    as_of: datetime | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Debt summary, classified history and pending list, for the payments screen."""
    as_of = as_of or datetime.now()
    timeout = settings.FETCH_TIMEOUT if timeout is None else timeout
    payments = await guarded("payments", repository.fetch_payments(identity), [], timeout)

    summary: DebtSummary = debt_summary(payments, as_of)
    return {
        "memberId": identity.member_id,
        "summary":  summary.as_payload(),
        "history":  [payment_item(p, as_of) for p in payment_history(payments)],
        "pending":  [payment_item(p, as_of) for p in pending_payments(payments)],
        "nextPayment": _next_payment_block(payments, as_of),
    }
