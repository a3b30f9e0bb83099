from .store import MemoryDocumentStore, JsonDocumentStore, StoreError
from .locations import (
    MemberIdentity,
    Location,
    LOCATIONS,
    LocationsExhausted,
    resolve,
)
from .normalize import (
    MemberRecord,
    MembershipRecord,
    AttendanceRecord,
    PaymentRecord,
    normalize,
    parse_timestamp,
)
from .membership import derive_state, pick_active, days_remaining, summarize_memberships
from .attendance import AttendanceStats, between, compute_stats, week_flags, group_by_month
from .payments import DebtSummary, PaymentStatus, classify, debt_summary
from .repository import StoreRepository, CheckInResult
from .dashboard import (
    build_dashboard,
    build_attendance_view,
    build_payments_view,
    empty_dashboard,
)

__all__ = [
    "MemoryDocumentStore", "JsonDocumentStore", "StoreError",
    "MemberIdentity", "Location", "LOCATIONS", "LocationsExhausted", "resolve",
    "MemberRecord", "MembershipRecord", "AttendanceRecord", "PaymentRecord",
    "normalize", "parse_timestamp",
    "derive_state", "pick_active", "days_remaining", "summarize_memberships",
    "AttendanceStats", "between", "compute_stats", "week_flags", "group_by_month",
    "DebtSummary", "PaymentStatus", "classify", "debt_summary",
    "StoreRepository", "CheckInResult",
    "build_dashboard", "build_attendance_view", "build_payments_view", "empty_dashboard",
]
