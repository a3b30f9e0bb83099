"""
gymactivity/repository.py
─────────────────────────
The injectable data-access capability the aggregator depends on.

  fetch_member        → MemberRecord | None
  fetch_memberships   → [MembershipRecord]
  fetch_attendance    → [AttendanceRecord]   newest first
  fetch_payments      → [PaymentRecord]      latest due first
  check_in            → CheckInResult        the one write path

StoreRepository implements it on top of any DocumentStore via the location
resolver and the normalizer. Tests can hand the aggregator any object with the
same coroutine methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from config import settings

from .attendance import today_status
from .locations import (
    ATTENDANCE, MEMBER, MEMBERSHIP, PAYMENT, MemberIdentity, resolve,
)
from .normalize import (
    CHECK_IN, AttendanceRecord, MemberRecord, MembershipRecord, PaymentRecord,
    normalize, normalize_all,
)
from .store import DocumentStore

log = logging.getLogger("gym_activity.repository")

CHECKIN_PATH    = "attendances"
MEMBERSHIP_PATH = "membershipAssignments"
VISIT_COUNTER   = "totalVisits"


class ActivityRepository(Protocol):
    async def fetch_member(self, identity: MemberIdentity) -> MemberRecord | None: ...

    async def fetch_memberships(self, identity: MemberIdentity) -> list[MembershipRecord]: ...

    async def fetch_attendance(self, identity: MemberIdentity) -> list[AttendanceRecord]: ...

    async def fetch_payments(self, identity: MemberIdentity) -> list[PaymentRecord]: ...


@dataclass(frozen=True)
class CheckInResult:
    success: bool
    message: str
    record: AttendanceRecord | None = None
    already_checked_in: bool = False


class StoreRepository:
    def __init__(self, store: DocumentStore, now=datetime.now):
        self.store = store
        self._now = now

    # ── reads ─────────────────────────────────────────────────────────────────

    async def fetch_member(self, identity: MemberIdentity) -> MemberRecord | None:
        docs = await resolve(MEMBER, identity, self.store)
        return normalize(docs[0], MEMBER, self._now()) if docs else None

    async def fetch_memberships(self, identity: MemberIdentity) -> list[MembershipRecord]:
        docs = await resolve(MEMBERSHIP, identity, self.store)
        return normalize_all(docs, MEMBERSHIP, self._now())

    async def fetch_attendance(self, identity: MemberIdentity) -> list[AttendanceRecord]:
        docs = await resolve(ATTENDANCE, identity, self.store)
        records = normalize_all(docs, ATTENDANCE, self._now())
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    async def fetch_payments(self, identity: MemberIdentity) -> list[PaymentRecord]:
        docs = await resolve(PAYMENT, identity, self.store)
        records = normalize_all(docs, PAYMENT, self._now())
        return sorted(records, key=lambda p: p.due_date, reverse=True)

    # ── check-in ──────────────────────────────────────────────────────────────

    async def check_in(
        self,
        identity: MemberIdentity,
        membership_id: str | None = None,
        now: datetime | None = None,
        allow_repeat: bool = False,
    ) -> CheckInResult:
        """
        Append one check-in document, then bump the membership's visit
        counter. Only a failed append is reported as a failure.
        """
        now = now or self._now()
        membership_id = membership_id or identity.membership_id or ""

        if not allow_repeat:
            try:
                existing = await self.fetch_attendance(identity)
            except Exception as exc:
                log.warning("Repeat check-in guard skipped for %s: %s", identity.member_id, exc)
                existing = []
            if today_status(existing, now)["checkedIn"]:
                return CheckInResult(
                    success=False,
                    message="Ya tienes un check-in registrado hoy",
                    already_checked_in=True,
                )

        document = {
            "memberId":               identity.member_id,
            "gymId":                  identity.gym_id or "",
            "membershipAssignmentId": membership_id,
            "date":                   now.isoformat(timespec="seconds"),
            "time":                   now.strftime("%H:%M"),
            "type":                   CHECK_IN,
            "source":                 settings.CHECKIN_SOURCE,
        }

        try:
            doc_id = await self.store.append(CHECKIN_PATH, document)
        except Exception as exc:
            log.exception("Check-in write failed for member %s: %s", identity.member_id, exc)
            return CheckInResult(
                success=False,
                message="No se pudo registrar tu entrada. Intenta nuevamente.",
            )

        if membership_id:
            try:
                await self.store.increment(MEMBERSHIP_PATH, membership_id, VISIT_COUNTER, 1)
            except Exception as exc:
                log.warning("Visit counter not updated for %s: %s", membership_id, exc)

        record = normalize({**document, "id": doc_id}, ATTENDANCE, now)
        log.info("Check-in registered for member %s at %s", identity.member_id, record.time)
        return CheckInResult(
            success=True,
            message=f"Entrada registrada a las {record.time}",
            record=record,
        )
