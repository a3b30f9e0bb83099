import asyncio
import json
from datetime import date, datetime

import pytest

import seed_store
from gymactivity.dashboard import build_dashboard
from gymactivity.locations import MemberIdentity
from gymactivity.repository import StoreRepository
from gymactivity.store import JsonDocumentStore, MemoryDocumentStore, StoreError


def test_memory_store_copies_documents():
    doc = {"memberId": "m1", "tags": ["a"]}
    store = MemoryDocumentStore({"attendances": [doc]})
    doc["tags"].append("b")

    hits = asyncio.run(store.query("attendances", {"memberId": "m1"}))
    hits[0]["tags"].append("c")

    assert asyncio.run(store.query("attendances"))[0]["tags"] == ["a"]


def test_query_limit_and_filters():
    store = MemoryDocumentStore({"attendances": [{"memberId": str(i % 2)} for i in range(10)]})
    assert len(asyncio.run(store.query("attendances", {"memberId": "0"}, limit=3))) == 3
    assert asyncio.run(store.query("missing")) == []


def test_increment_errors():
    store = MemoryDocumentStore({"membershipAssignments": [{"id": "ma1", "totalVisits": "many"}]})
    with pytest.raises(StoreError):
        asyncio.run(store.increment("membershipAssignments", "nope", "totalVisits"))
    with pytest.raises(StoreError):
        asyncio.run(store.increment("membershipAssignments", "ma1", "totalVisits"))


def test_json_store_persists(tmp_path):
    path = tmp_path / "store.json"
    store = JsonDocumentStore(path)
    doc_id = asyncio.run(store.append("attendances", {"memberId": "m1"}))

    reopened = JsonDocumentStore(path)
    assert reopened.get("attendances", doc_id)["memberId"] == "m1"
    assert json.loads(path.read_text())["attendances"][0]["id"] == doc_id


def test_json_store_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json")
    with pytest.raises(StoreError):
        asyncio.run(JsonDocumentStore(path).query("attendances"))


def test_seeded_store_feeds_the_dashboard(tmp_path):
    store = JsonDocumentStore(tmp_path / "store.json")
    today = date(2025, 6, 11)
    written = seed_store.seed(store, "demo", "gym-1", today)

    assert written == 1 + 1 + 17 + 2
    assert store.count("attendances") == 17

    identity = MemberIdentity("demo", gym_id="gym-1", membership_id="demo-plan")
    as_of = datetime(2025, 6, 11, 20, 0)
    view = asyncio.run(build_dashboard(StoreRepository(store), identity, as_of=as_of))

    assert view["userName"] == "Lucía Fernández"
    assert view["membership"]["debt"] == 10000
    assert view["attendance"]["totalVisits"] == 17
    assert view["attendance"]["currentStreak"] == 3
    assert view["nextPayment"]["status"] == "due_soon"
    assert view["today"]["checkedIn"] is True


def test_json_store_increment_runs_off_the_loop(tmp_path):
    store = JsonDocumentStore(tmp_path / "store.json")
    store.seed("membershipAssignments", [{"id": "ma1", "totalVisits": 2}])

    async def bump_twice():
        await asyncio.gather(
            store.increment("membershipAssignments", "ma1", "totalVisits"),
            store.increment("membershipAssignments", "ma1", "totalVisits"),
        )

    asyncio.run(bump_twice())
    assert JsonDocumentStore(tmp_path / "store.json").get("membershipAssignments", "ma1")["totalVisits"] == 4
