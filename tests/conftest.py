import asyncio
from datetime import datetime, timedelta

import pytest

from gymactivity.locations import MemberIdentity
from gymactivity.normalize import AttendanceRecord, PaymentRecord
from gymactivity.store import MemoryDocumentStore, StoreError


# Wednesday evening; the week started Monday 2025-06-09
AS_OF = datetime(2025, 6, 11, 20, 0)


class FailingStore:
    """Every call raises, like a backend that is unreachable."""

    def __init__(self):
        self.queries = []

    async def query(self, path, filters=None, limit=50):
        self.queries.append((path, filters))
        raise StoreError(f"unreachable: {path}")

    async def append(self, path, document):
        raise StoreError("write rejected")

    async def increment(self, path, doc_id, field, amount=1):
        raise StoreError("write rejected")


class SlowStore(MemoryDocumentStore):
    """Answers queries only after `delay` seconds."""

    def __init__(self, collections=None, delay=0.5):
        super().__init__(collections)
        self.delay = delay

    async def query(self, path, filters=None, limit=50):
        await asyncio.sleep(self.delay)
        return await super().query(path, filters, limit)


class RecordingStore(MemoryDocumentStore):
    """Memory store that remembers which paths were queried."""

    def __init__(self, collections=None):
        super().__init__(collections)
        self.queries = []

    async def query(self, path, filters=None, limit=50):
        self.queries.append((path, filters))
        return await super().query(path, filters, limit)


@pytest.fixture
def identity():
    return MemberIdentity(member_id="m1", gym_id="g1", membership_id="ma1")


def visit(ts: datetime, event: str = "check-in", rid: str = "") -> AttendanceRecord:
    return AttendanceRecord(
        id=rid or ts.isoformat(),
        member_id="m1",
        membership_id="ma1",
        gym_id="g1",
        timestamp=ts,
        time=ts.strftime("%H:%M"),
        event=event,
    )


def bill(
    due: datetime,
    status: str = "pending",
    amount: float = 10000.0,
    paid: datetime | None = None,
    rid: str = "p",
) -> PaymentRecord:
    return PaymentRecord(
        id=rid,
        member_id="m1",
        membership_id="ma1",
        amount=amount,
        due_date=due,
        paid_date=paid,
        status=status,
    )


def days_ago(n: int, hour: int = 8) -> datetime:
    return (AS_OF - timedelta(days=n)).replace(hour=hour, minute=0)
