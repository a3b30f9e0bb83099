import asyncio
from datetime import datetime, timedelta

from gymactivity.dashboard import (
    build_attendance_view,
    build_dashboard,
    build_payments_view,
    empty_dashboard,
    format_day,
    format_month,
)
from gymactivity.repository import StoreRepository
from gymactivity.store import MemoryDocumentStore

from conftest import AS_OF, FailingStore, SlowStore


DASHBOARD_KEYS = {
    "memberId", "userName", "membership", "memberships", "debt", "nextPayment",
    "attendance", "recentAttendance", "today", "generatedAt",
}


def scenario_store():
    """One paid-up active membership, five visits across June and May."""
    visits = [
        datetime(2025, 6, 11, 7, 30),
        datetime(2025, 6, 10, 8, 0),
        datetime(2025, 6, 2, 18, 15),
        datetime(2025, 5, 28, 9, 0),
        datetime(2025, 5, 20, 9, 0),
    ]
    return MemoryDocumentStore({
        "gyms/g1/members": [{"id": "m1", "firstName": "Lucía", "lastName": "Fernández"}],
        "membershipAssignments": [{
            "id": "ma1", "memberId": "m1", "gymId": "g1", "gymName": "Gimnasio Centro",
            "activityName": "Musculación", "cost": 10000, "paidAmount": 10000,
            "startDate": "2025-05-15T00:00:00", "endDate": "2025-07-15T00:00:00",
            "status": "active",
        }],
        "attendances": [
            {"memberId": "m1", "membershipAssignmentId": "ma1",
             "date": ts.isoformat(), "type": "check-in"}
            for ts in visits
        ],
        "subscriptionPayments": [{
            "memberId": "m1", "amount": 10000, "status": "paid",
            "dueDate": "2025-06-01T00:00:00", "paidDate": "2025-06-01T10:00:00",
        }],
    })


def test_end_to_end_dashboard(identity):
    repo = StoreRepository(scenario_store(), now=lambda: AS_OF)
    view = asyncio.run(build_dashboard(repo, identity, as_of=AS_OF, recent_limit=3))

    assert set(view) == DASHBOARD_KEYS
    assert view["userName"] == "Lucía Fernández"
    assert view["membership"]["status"] == "active"
    assert view["membership"]["debt"] == 0
    assert view["membership"]["plan"] == "Musculación"
    assert view["membership"]["daysRemaining"] == 34
    assert view["attendance"]["totalVisits"] == 5
    assert view["attendance"]["thisMonthVisits"] == 3
    assert view["attendance"]["thisWeekVisits"] == 2
    assert view["attendance"]["currentStreak"] == 2
    assert view["attendance"]["week"] == [0, 1, 1, 0, 0, 0, 0]
    assert view["debt"]["totalDebt"] == 0
    assert view["debt"]["paidThisMonth"] == 10000
    assert view["nextPayment"]["concept"] == "Sin deudas pendientes"
    assert view["today"] == {"checkedIn": True, "canCheckOut": True}

    recent = view["recentAttendance"]
    assert len(recent) == 3
    assert recent[0]["date"] == "2025-06-11"
    assert recent[0]["dateLabel"] == "miércoles 11 de junio"
    assert recent[0]["time"] == "07:30"


def test_outstanding_payment_shows_up(identity):
    store = scenario_store()
    store.seed("subscriptionPayments", [{
        "memberId": "m1", "amount": 10000, "status": "pending",
        "dueDate": (AS_OF + timedelta(days=2)).isoformat(),
    }])
    view = asyncio.run(build_dashboard(StoreRepository(store), identity, as_of=AS_OF))

    assert view["nextPayment"]["status"] == "due_soon"
    assert view["nextPayment"]["urgency"] == "high"
    assert view["nextPayment"]["daysUntilDue"] == 2
    assert view["debt"]["pendingAmount"] == 10000


def test_unreachable_store_degrades_to_defaults(identity):
    view = asyncio.run(build_dashboard(StoreRepository(FailingStore()), identity, as_of=AS_OF))

    assert view == empty_dashboard(identity, AS_OF)
    assert view["recentAttendance"] == []
    assert view["attendance"]["totalVisits"] == 0
    assert view["membership"]["plan"] == "Sin membresía"


def test_slow_store_times_out_to_defaults(identity):
    store = SlowStore(scenario_store()._collections, delay=0.5)
    view = asyncio.run(build_dashboard(StoreRepository(store), identity, as_of=AS_OF, timeout=0.05))

    assert view["attendance"]["totalVisits"] == 0
    assert view["userName"] == ""
    assert view["memberships"]["total"] == 0


class HalfBrokenRepository(StoreRepository):
    async def fetch_payments(self, identity):
        raise RuntimeError("payments backend down")


def test_one_failing_fetch_keeps_the_others(identity):
    repo = HalfBrokenRepository(scenario_store())
    view = asyncio.run(build_dashboard(repo, identity, as_of=AS_OF))

    assert view["attendance"]["totalVisits"] == 5
    assert view["debt"]["paidThisMonth"] == 0


def test_empty_dashboard_shape(identity):
    view = empty_dashboard(identity, AS_OF)

    assert set(view) == DASHBOARD_KEYS
    assert view["memberId"] == "m1"
    assert view["membership"]["status"] == "expired"
    assert view["memberships"] == {"total": 0, "active": 0, "totalDebt": 0, "gyms": [], "plans": []}
    assert view["attendance"]["week"] == [0] * 7
    assert view["nextPayment"]["dueDate"] is None
    assert view["generatedAt"] == "2025-06-11T20:00:00"


def test_attendance_view_groups_by_month(identity):
    repo = StoreRepository(scenario_store())
    view = asyncio.run(build_attendance_view(repo, identity, as_of=AS_OF, locale="en"))

    assert [m["month"] for m in view["months"]] == ["2025-06", "2025-05"]
    assert view["months"][0]["label"] == "June 2025"
    assert len(view["months"][0]["visits"]) == 3
    assert view["stats"]["longestStreak"] == 2


def test_payments_view(identity):
    store = scenario_store()
    store.seed("subscriptionPayments", [{
        "memberId": "m1", "amount": 3000, "status": "overdue",
        "dueDate": (AS_OF - timedelta(days=5)).isoformat(),
    }])
    view = asyncio.run(build_payments_view(StoreRepository(store), identity, as_of=AS_OF))

    assert view["summary"]["overdueAmount"] == 3000
    assert [p["status"] for p in view["history"]] == ["overdue", "paid"]
    assert [p["daysUntilDue"] for p in view["pending"]] == [-5]
    assert view["nextPayment"]["amount"] == 3000


def test_display_strings():
    ts = datetime(2025, 6, 9, 8, 0)
    assert format_day(ts, "es") == "lunes 9 de junio"
    assert format_day(ts, "en") == "Monday 9 June"
    assert format_month("2025-06", "es") == "junio de 2025"
    assert format_day(ts, "fr") == "lunes 9 de junio"


def test_attendance_view_date_range_narrows_history_only(identity):
    repo = StoreRepository(scenario_store())
    view = asyncio.run(build_attendance_view(
        repo, identity, as_of=AS_OF,
        start=datetime(2025, 5, 25), end=datetime(2025, 6, 5, 23, 59),
    ))

    visits = [v["date"] for m in view["months"] for v in m["visits"]]
    assert visits == ["2025-06-02", "2025-05-28"]
    assert view["stats"]["totalVisits"] == 5
