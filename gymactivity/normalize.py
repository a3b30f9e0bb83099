"""
gymactivity/normalize.py
────────────────────────
Turns raw, weakly-typed store documents into the fixed record shapes the
calculators work on. Nothing untyped leaves this module.

Each kind has an ordered table of accepted source field names per field; the
first present, non-null one wins, otherwise the documented default applies:

  MemberRecord      status "active", debt 0
  MembershipRecord  plan "Plan Básico", fee 0, raw status "" (unknown)
  AttendanceRecord  kind "check-in", time derived from the timestamp
  PaymentRecord     amount 0, status "pending", concept "Cuota mensual"

Dates that cannot be parsed fall back to `now` instead of dropping the record.
normalize() never raises.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, ClassVar, Union

from .locations import ATTENDANCE, MEMBER, MEMBERSHIP, PAYMENT

log = logging.getLogger("gym_activity.normalize")

CHECK_IN  = "check-in"
CHECK_OUT = "check-out"

PAYMENT_STATUSES = ("paid", "pending", "overdue", "partial")


# ── record shapes ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MemberRecord:
    kind: ClassVar[str] = MEMBER

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    status: str          # 'active' | 'inactive'
    debt: float
    gym_id: str
    created_at: datetime | None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class MembershipRecord:
    kind: ClassVar[str] = MEMBERSHIP

    id: str
    member_id: str
    gym_id: str
    gym_name: str
    plan: str
    monthly_fee: float
    start_date: datetime
    end_date: datetime
    raw_status: str
    debt: float | None = None
    cost: float | None = None
    paid_amount: float | None = None
    visits: int = 0


@dataclass(frozen=True)
class AttendanceRecord:
    kind: ClassVar[str] = ATTENDANCE

    id: str
    member_id: str
    membership_id: str
    gym_id: str
    timestamp: datetime
    time: str            # HH:MM
    event: str           # 'check-in' | 'check-out'
    source: str = ""


@dataclass(frozen=True)
class PaymentRecord:
    kind: ClassVar[str] = PAYMENT

    id: str
    member_id: str
    membership_id: str
    amount: float
    due_date: datetime
    paid_date: datetime | None
    status: str          # 'paid' | 'pending' | 'overdue' | 'partial'
    method: str | None = None
    concept: str = "Cuota mensual"


Record = Union[MemberRecord, MembershipRecord, AttendanceRecord, PaymentRecord]


# ── field synonyms ────────────────────────────────────────────────────────────

FIELDS: dict[str, dict[str, tuple[str, ...]]] = {
    MEMBER: {
        "id":         ("id", "memberId", "uid"),
        "first_name": ("firstName", "first_name", "nombre"),
        "last_name":  ("lastName", "last_name", "apellido"),
        "email":      ("email", "authEmail"),
        "phone":      ("phone", "telefono"),
        "status":     ("status", "accountStatus"),
        "debt":       ("totalDebt", "debt"),
        "gym_id":     ("gymId", "gym_id"),
        "created_at": ("createdAt", "registrationDate", "linkedAt"),
    },
    MEMBERSHIP: {
        "id":          ("id", "membershipId", "subscriptionId"),
        "member_id":   ("memberId", "member_id", "userId"),
        "gym_id":      ("gymId", "gym_id"),
        "gym_name":    ("gymName",),
        "plan":        ("planName", "activityName", "planType", "plan"),
        "monthly_fee": ("monthlyFee", "monthlyAmount", "price", "cost"),
        "cost":        ("cost", "totalCost"),
        "paid_amount": ("paidAmount", "amountPaid"),
        "start_date":  ("startDate", "start_date", "createdAt"),
        "end_date":    ("endDate", "end_date", "expiryDate"),
        "status":      ("status", "state"),
        "debt":        ("totalDebt", "debt"),
        "visits":      ("totalVisits", "visitCount", "attendanceCount"),
    },
    ATTENDANCE: {
        "id":            ("id",),
        "member_id":     ("memberId", "member_id"),
        "membership_id": ("membershipAssignmentId", "membershipId", "subscriptionId"),
        "gym_id":        ("gymId", "gym_id"),
        "timestamp":     ("date", "timestamp", "checkInAt", "createdAt"),
        "time":          ("time", "hora", "checkInTime"),
        "event":         ("type", "kind", "status"),
        "source":        ("source", "origin"),
    },
    PAYMENT: {
        "id":            ("id",),
        "member_id":     ("memberId", "member_id"),
        "membership_id": ("subscriptionId", "membershipAssignmentId", "membershipId"),
        "amount":        ("amount", "monto", "total"),
        "due_date":      ("dueDate", "date", "createdAt"),
        "paid_date":     ("paidDate", "paymentDate", "paidAt"),
        "status":        ("status",),
        "method":        ("paymentMethod", "method"),
        "concept":       ("concept", "description"),
    },
}

# Legacy attendance statuses written by older clients
_EVENT_ALIASES = {
    "check-in":    CHECK_IN,
    "checkin":     CHECK_IN,
    "checked-in":  CHECK_IN,
    "active":      CHECK_IN,
    "entrada":     CHECK_IN,
    "check-out":   CHECK_OUT,
    "checkout":    CHECK_OUT,
    "checked-out": CHECK_OUT,
    "salida":      CHECK_OUT,
}


# ── coercion helpers ──────────────────────────────────────────────────────────

def pick(raw: dict[str, Any], names: tuple[str, ...], default: Any = None) -> Any:
    """First present, non-null, non-empty value among `names`."""
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return default


def parse_timestamp(value: Any) -> datetime | None:
    """
    Best-effort conversion to a naive local datetime.
    Accepts datetime/date, epoch seconds or milliseconds, Firestore-style
    {"seconds": …} maps and ISO-8601 / dd/mm/YYYY strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value
        try:
            return value.astimezone().replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if abs(value) > 1e11 else value
            return datetime.fromtimestamp(seconds)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, dict):
        seconds = pick(value, ("seconds", "_seconds"))
        if seconds is None:
            return None
        nanos = pick(value, ("nanoseconds", "_nanoseconds"), 0)
        try:
            return parse_timestamp(float(seconds) + float(nanos) / 1e9)
        except (TypeError, ValueError, OverflowError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            pass
        for fmt in ("%d/%m/%Y %H:%M", "%d/%m/%Y"):
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    return None


def _number(value: Any, default: float | None = 0.0) -> float | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _text(value: Any, default: str = "") -> str:
    return str(value).strip() if value is not None else default


def _time_of_day(value: Any, ts: datetime) -> str:
    parts = _text(value).split(":")
    if len(parts) >= 2:
        hour, minute = parts[0], parts[1][:2]
        # ASCII only: str.isdigit() also accepts superscripts int() rejects
        if (hour.isascii() and hour.isdigit() and len(hour) <= 2 and int(hour) < 24
                and minute.isascii() and minute.isdigit() and len(minute) == 2
                and int(minute) < 60):
            return f"{int(hour):02d}:{minute}"
    return ts.strftime("%H:%M")


# ── per-kind normalisers ──────────────────────────────────────────────────────

def _member(raw: dict[str, Any], now: datetime) -> MemberRecord:
    f = FIELDS[MEMBER]
    status = _text(pick(raw, f["status"]), "active").lower()
    return MemberRecord(
        id=_text(pick(raw, f["id"])),
        first_name=_text(pick(raw, f["first_name"])),
        last_name=_text(pick(raw, f["last_name"])),
        email=_text(pick(raw, f["email"])),
        phone=_text(pick(raw, f["phone"])),
        status="inactive" if status == "inactive" else "active",
        debt=max(0.0, _number(pick(raw, f["debt"]))),
        gym_id=_text(pick(raw, f["gym_id"])),
        created_at=parse_timestamp(pick(raw, f["created_at"])),
    )


def _membership(raw: dict[str, Any], now: datetime) -> MembershipRecord:
    f = FIELDS[MEMBERSHIP]
    start = parse_timestamp(pick(raw, f["start_date"])) or now
    end   = parse_timestamp(pick(raw, f["end_date"])) or now
    debt  = _number(pick(raw, f["debt"]), None)
    return MembershipRecord(
        id=_text(pick(raw, f["id"])),
        member_id=_text(pick(raw, f["member_id"])),
        gym_id=_text(pick(raw, f["gym_id"])),
        gym_name=_text(pick(raw, f["gym_name"]), "Gimnasio"),
        plan=_text(pick(raw, f["plan"]), "Plan Básico"),
        monthly_fee=max(0.0, _number(pick(raw, f["monthly_fee"]))),
        start_date=start,
        end_date=max(start, end),
        raw_status=_text(pick(raw, f["status"])).lower(),
        debt=max(0.0, debt) if debt is not None else None,
        cost=_number(pick(raw, f["cost"]), None),
        paid_amount=_number(pick(raw, f["paid_amount"]), None),
        visits=int(_number(pick(raw, f["visits"]))),
    )


def _attendance(raw: dict[str, Any], now: datetime) -> AttendanceRecord:
    f = FIELDS[ATTENDANCE]
    ts = parse_timestamp(pick(raw, f["timestamp"])) or now
    event = _EVENT_ALIASES.get(_text(pick(raw, f["event"])).lower(), CHECK_IN)
    return AttendanceRecord(
        id=_text(pick(raw, f["id"])),
        member_id=_text(pick(raw, f["member_id"])),
        membership_id=_text(pick(raw, f["membership_id"])),
        gym_id=_text(pick(raw, f["gym_id"])),
        timestamp=ts,
        time=_time_of_day(pick(raw, f["time"]), ts),
        event=event,
        source=_text(pick(raw, f["source"])),
    )


def _payment(raw: dict[str, Any], now: datetime) -> PaymentRecord:
    f = FIELDS[PAYMENT]
    due    = parse_timestamp(pick(raw, f["due_date"])) or now
    paid   = parse_timestamp(pick(raw, f["paid_date"]))
    status = _text(pick(raw, f["status"]), "pending").lower()
    if status not in PAYMENT_STATUSES:
        status = "pending"
    if status == "paid" and paid is None:
        paid = due
    method = pick(raw, f["method"])
    return PaymentRecord(
        id=_text(pick(raw, f["id"])),
        member_id=_text(pick(raw, f["member_id"])),
        membership_id=_text(pick(raw, f["membership_id"])),
        amount=max(0.0, _number(pick(raw, f["amount"]))),
        due_date=due,
        paid_date=paid,
        status=status,
        method=_text(method) if method is not None else None,
        concept=_text(pick(raw, f["concept"]), "Cuota mensual"),
    )


_NORMALISERS = {
    MEMBER:     _member,
    MEMBERSHIP: _membership,
    ATTENDANCE: _attendance,
    PAYMENT:    _payment,
}


def normalize(raw: Any, kind: str, now: datetime | None = None) -> Record:
    """Coerce one raw document into the record shape for `kind`."""
    now = now or datetime.now()
    if not isinstance(raw, dict):
        log.warning("Non-mapping %s document replaced by defaults: %r", kind, raw)
        raw = {}
    try:
        return _NORMALISERS[kind](raw, now)
    except Exception as exc:
        # Anything the coercers above miss still yields a record
        doc_id = raw.get("id") if isinstance(raw.get("id"), str) else ""
        log.warning("Malformed %s document %s replaced by defaults: %s", kind, doc_id, type(exc).__name__)
        return _NORMALISERS[kind]({"id": doc_id}, now)


def normalize_all(raws: list[Any], kind: str, now: datetime | None = None) -> list[Record]:
    now = now or datetime.now()
    return [normalize(r, kind, now) for r in raws]
