"""
gymactivity/membership.py
─────────────────────────
Membership status and debt derivation.

Status rules, in order:
  raw status "active"                 → active
  end date before as_of               → expired
  raw status "suspended"/"inactive"   → suspended
  anything else                       → active
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from .normalize import MembershipRecord

ACTIVE    = "active"
EXPIRED   = "expired"
SUSPENDED = "suspended"


@dataclass(frozen=True)
class MembershipState:
    status: str
    debt: float


def derive_status(membership: MembershipRecord, as_of: datetime) -> str:
    raw = membership.raw_status
    if raw == ACTIVE:
        return ACTIVE
    if membership.end_date < as_of:
        return EXPIRED
    if raw in (SUSPENDED, "inactive"):
        return SUSPENDED
    # Unknown states stay optimistic
    return ACTIVE


def derive_debt(membership: MembershipRecord, member_debt: float | None = None) -> float:
    """
    Plan cost minus paid amount when both are known, else the debt stored on
    the membership, else the member's own debt figure.
    """
    if membership.cost is not None and membership.paid_amount is not None:
        return max(0.0, membership.cost - membership.paid_amount)
    if membership.debt is not None:
        return membership.debt
    if member_debt is not None:
        return max(0.0, member_debt)
    return 0.0


def derive_state(
    membership: MembershipRecord,
    as_of: datetime,
    member_debt: float | None = None,
) -> MembershipState:
    return MembershipState(
        status=derive_status(membership, as_of),
        debt=derive_debt(membership, member_debt),
    )


def pick_active(
    memberships: list[MembershipRecord], as_of: datetime
) -> MembershipRecord | None:
    """First membership whose derived status is active, else the first one."""
    if not memberships:
        return None
    return next(
        (m for m in memberships if derive_status(m, as_of) == ACTIVE),
        memberships[0],
    )


def days_remaining(membership: MembershipRecord, as_of: datetime) -> int:
    seconds = (membership.end_date - as_of).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def summarize_memberships(
    memberships: list[MembershipRecord],
    as_of: datetime,
) -> dict:
    """Totals across every membership a member holds (possibly at several gyms)."""
    states = [derive_state(m, as_of) for m in memberships]
    return {
        "total":     len(memberships),
        "active":    sum(1 for s in states if s.status == ACTIVE),
        "totalDebt": round(sum(s.debt for s in states), 2),
        "gyms":      list(dict.fromkeys(m.gym_name or m.gym_id for m in memberships)),
        "plans":     list(dict.fromkeys(m.plan for m in memberships)),
    }
