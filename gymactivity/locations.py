"""
gymactivity/locations.py
────────────────────────
Location resolver: finds where a member's records live in the document store.

The backend schema has moved several times, so the same logical record can sit
in a global collection keyed by memberId, in one keyed by the membership id,
or nested under the gym/member documents. Each record kind gets an ordered
table of candidates; resolve() walks it and returns the first non-empty hit.

  LOCATIONS["attendance"] = (
      Location("attendances", "membershipAssignmentId", "membership_id"),
      Location("attendances", "memberId"),
      …
  )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from string import Formatter
from typing import Any

from .store import DocumentStore

log = logging.getLogger("gym_activity.locations")

MEMBER     = "member"
MEMBERSHIP = "membership"
ATTENDANCE = "attendance"
PAYMENT    = "payment"

RECORD_KINDS = (MEMBER, MEMBERSHIP, ATTENDANCE, PAYMENT)


@dataclass(frozen=True)
class MemberIdentity:
    member_id: str
    gym_id: str | None = None
    membership_id: str | None = None

    def value(self, key: str) -> str | None:
        return getattr(self, key, None) or None


@dataclass(frozen=True)
class Location:
    """
    One candidate place to look.

    path         – collection path, may contain {member_id} / {gym_id} /
                   {membership_id} placeholders
    filter_field – document field compared against the identity; None when
                   the path itself is already scoped to the member
    key          – which identity attribute feeds the filter
    """
    path: str
    filter_field: str | None = None
    key: str = "member_id"

    def render(self, identity: MemberIdentity) -> tuple[str, dict[str, Any]] | None:
        """Concrete (path, filters) for this identity, or None if it can't be filled."""
        needed = [name for _, name, _, _ in Formatter().parse(self.path) if name]
        parts = {name: identity.value(name) for name in needed}
        if any(v is None for v in parts.values()):
            return None
        path = self.path.format(**parts)
        if self.filter_field is None:
            return path, {}
        value = identity.value(self.key)
        if value is None:
            return None
        return path, {self.filter_field: value}


LOCATIONS: dict[str, tuple[Location, ...]] = {
    MEMBER: (
        Location("gyms/{gym_id}/members", "id"),
        Location("members", "id"),
        Location("members", "memberId"),
    ),
    MEMBERSHIP: (
        Location("membershipAssignments", "memberId"),
        Location("subscriptions", "memberId"),
        Location("gyms/{gym_id}/members/{member_id}/memberships"),
    ),
    ATTENDANCE: (
        Location("attendances", "membershipAssignmentId", "membership_id"),
        Location("attendances", "memberId"),
        Location("gyms/{gym_id}/attendances", "memberId"),
        Location("gyms/{gym_id}/members/{member_id}/attendance"),
    ),
    PAYMENT: (
        Location("subscriptionPayments", "memberId"),
        Location("subscriptionPayments", "subscriptionId", "membership_id"),
        Location("gyms/{gym_id}/payments", "memberId"),
    ),
}

DEFAULT_LIMITS = {
    MEMBER:     1,
    MEMBERSHIP: 20,
    ATTENDANCE: 100,
    PAYMENT:    50,
}


class LocationsExhausted(Exception):
    """Every candidate location raised; the last failure is chained."""

    def __init__(self, kind: str, attempts: int):
        super().__init__(f"All {attempts} {kind} location(s) failed")
        self.kind = kind
        self.attempts = attempts


async def resolve(
    kind: str,
    identity: MemberIdentity,
    store: DocumentStore,
    limit: int | None = None,
    locations: tuple[Location, ...] | None = None,
) -> list[dict[str, Any]]:
    """
    Return raw documents from the first candidate location that has any.
    Empty everywhere → []. Raises LocationsExhausted only if every attempted
    candidate raised.
    """
    candidates = locations if locations is not None else LOCATIONS[kind]
    limit = limit or DEFAULT_LIMITS.get(kind, 50)

    attempts = 0
    failures = 0
    last_error: Exception | None = None

    for loc in candidates:
        rendered = loc.render(identity)
        if rendered is None:
            continue
        path, filters = rendered
        attempts += 1
        try:
            docs = await store.query(path, filters, limit)
        except Exception as exc:
            failures += 1
            last_error = exc
            log.warning("%s lookup failed at %s %s: %s", kind, path, filters, exc)
            continue
        if docs:
            log.debug("%s: %d document(s) found at %s", kind, len(docs), path)
            return list(docs)

    if attempts and failures == attempts:
        raise LocationsExhausted(kind, attempts) from last_error

    log.debug("%s: nothing found for member %s", kind, identity.member_id)
    return []
