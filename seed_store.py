#!/usr/bin/env python3
"""
seed_store.py
─────────────
Fills the local JSON document store with a realistic member so the API can be
exercised without the real backend.

The sample deliberately spreads records across the different schema
generations the resolver understands (global collections keyed by memberId,
nested gym/member collections, alternate field names).

Usage
─────
  # Seed member "demo" at gym "gym-1" into $GYM_STORE_HOME/store.json
  python seed_store.py --member demo --gym gym-1

  # Start from an empty store
  python seed_store.py --member demo --gym gym-1 --reset

  # Show what's in the store
  python seed_store.py --inspect
"""

import argparse
import sys
import os
from datetime import date, datetime, timedelta
from typing import Any

sys.path.insert(0, os.path.dirname(__file__))

from config import settings
from gymactivity.store import JsonDocumentStore


def sample_documents(member_id: str, gym_id: str, today: date) -> dict[str, list[dict[str, Any]]]:
    """Collections → documents for one member with a month of history."""
    now = datetime(today.year, today.month, today.day, 9, 0)
    membership_id = f"{member_id}-plan"

    # Visits: the last three days in a row, then every other day for a month
    offsets = [0, 1, 2] + list(range(4, 32, 2))
    attendances = []
    for i, offset in enumerate(offsets):
        ts = now - timedelta(days=offset, hours=i % 3)
        attendances.append({
            "memberId":               member_id,
            "gymId":                  gym_id,
            "membershipAssignmentId": membership_id,
            "date":                   ts.isoformat(timespec="seconds"),
            # older records were written with the Spanish field name
            ("time" if i % 2 == 0 else "hora"): ts.strftime("%H:%M"),
            "type":                   "check-in",
            "source":                 "seed",
        })

    payments = [
        {
            "memberId":      member_id,
            "subscriptionId": membership_id,
            "amount":        10000,
            "concept":       "Cuota mensual",
            "dueDate":       (now - timedelta(days=30)).isoformat(timespec="seconds"),
            "paidDate":      (now - timedelta(days=28)).isoformat(timespec="seconds"),
            "status":        "paid",
            "paymentMethod": "cash",
        },
        {
            "memberId":      member_id,
            "subscriptionId": membership_id,
            "amount":        10000,
            "concept":       "Cuota mensual",
            "date":          (now + timedelta(days=2)).isoformat(timespec="seconds"),
            "status":        "pending",
        },
    ]

    return {
        f"gyms/{gym_id}/members": [{
            "id":        member_id,
            "firstName": "Lucía",
            "lastName":  "Fernández",
            "email":     f"{member_id}@example.com",
            "phone":     "1155550000",
            "status":    "active",
            "totalDebt": 10000,
            "gymId":     gym_id,
            "createdAt": (now - timedelta(days=200)).isoformat(timespec="seconds"),
        }],
        "membershipAssignments": [{
            "id":           membership_id,
            "memberId":     member_id,
            "gymId":        gym_id,
            "gymName":      "Gimnasio Centro",
            "activityName": "Musculación",
            "cost":         10000,
            "paidAmount":   0,
            "startDate":    (now - timedelta(days=60)).isoformat(timespec="seconds"),
            "endDate":      (now + timedelta(days=30)).isoformat(timespec="seconds"),
            "status":       "active",
            "totalVisits":  len(attendances),
        }],
        "attendances":          attendances,
        "subscriptionPayments": payments,
    }


def seed(store: JsonDocumentStore, member_id: str, gym_id: str, today: date) -> int:
    written = 0
    for path, docs in sample_documents(member_id, gym_id, today).items():
        written += len(store.seed(path, docs))
    return written


def inspect(store: JsonDocumentStore) -> None:
    paths = store.paths()
    if not paths:
        print(f"(empty) {store.path}")
        return
    print(f"\n  📁  {store.path}")
    for path in paths:
        count = store.count(path)
        print(f"       • {path:45s} {count:4d} doc(s)")


def main():
    parser = argparse.ArgumentParser(description="Seed the local gym document store")
    parser.add_argument("--member",  default="demo",  help="Member id to create")
    parser.add_argument("--gym",     default="gym-1", help="Gym id the member belongs to")
    parser.add_argument("--reset",   action="store_true", help="Delete the store file first")
    parser.add_argument("--inspect", action="store_true", help="Only list collections")
    parser.add_argument("--file",    default=str(settings.STORE_FILE), help="Store file path")
    args = parser.parse_args()

    store = JsonDocumentStore(args.file)

    if args.inspect:
        inspect(store)
        return

    if args.reset and store.path.exists():
        store.path.unlink()
        print(f"🗑️  Removed {store.path}")

    written = seed(store, args.member, args.gym, date.today())
    print(f"✅ Wrote {written} document(s) for member '{args.member}' to {store.path}")


if __name__ == "__main__":
    main()
