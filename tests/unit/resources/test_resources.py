"""Unit tests – resource call sites end to end against a mocked API."""
from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest
import respx
from tenacity import wait_none

from care_sync.application import QueryClient
from care_sync.application.cache import CacheEntry
from care_sync.config import CareSyncSettings
from care_sync.kernel.errors import MalformedResponseError, NotFoundError, ServerError, ValidationError
from care_sync.kernel.types import QueryKey, TemporaryIdFactory
from care_sync.resources import CareSync, Resource, sort_newest_first
from care_sync.testing import FakeSession, wait_until

BASE = "http://api.test"


def _sync(**settings: Any) -> CareSync:
    return CareSync(CareSyncSettings(base_url=BASE, **settings), FakeSession(), wait=wait_none())


def _board(*pending: dict[str, Any]) -> dict[str, Any]:
    return {"pending": list(pending), "completed": [], "total": len(pending)}


def _watch(sync: CareSync, key: QueryKey) -> list[Any]:
    seen: list[Any] = []

    def on_change(k: QueryKey, entry: CacheEntry) -> None:
        seen.append(entry.value)

    sync.queries.subscribe(key, on_change)
    return seen


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TestTasks:
    @respx.mock
    def test_create_commits_server_record_then_refetches(self) -> None:
        fetch = respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(
            side_effect=[
                httpx.Response(200, json=_board()),
                httpx.Response(200, json=_board({"_id": "S1", "title": "Walk", "status": "pending"})),
            ]
        )
        create = respx.post(f"{BASE}/api/tasks/loved-one/L1").mock(
            return_value=httpx.Response(201, json={"_id": "S1", "title": "Walk"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.tasks.key("L1")
                seen = _watch(sync, key)
                await sync.queries.fetch(key)

                result = await sync.tasks.create("L1", {"title": "Walk"})

                assert result.unwrap()["pending"] == [{"title": "Walk", "_id": "S1"}]
                assert result.unwrap()["total"] == 1
                optimistic = seen[1]["pending"][0]
                assert TemporaryIdFactory.is_temporary(optimistic["_id"])
                await wait_until(lambda: fetch.call_count == 2)
            assert sync.queries.get(key)["pending"][0]["status"] == "pending"
            assert json.loads(create.calls.last.request.content) == {"title": "Walk"}

        asyncio.run(run())

    @respx.mock
    def test_blank_title_rejected_without_request(self) -> None:
        create = respx.post(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(201, json={}))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.tasks.key("L1")
                seen = _watch(sync, key)
                result = await sync.tasks.create("L1", {"title": "   "})
                assert isinstance(result.error, ValidationError)
                assert result.error.errors == [{"field": "title", "message": "required"}]
                assert seen == []
            assert not create.called

        asyncio.run(run())

    @respx.mock
    def test_server_failure_rolls_back(self) -> None:
        original = _board({"_id": "T1", "title": "Old"})
        respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(200, json=original))
        respx.post(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(500))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.tasks.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.tasks.create("L1", {"title": "New"})
                assert isinstance(result.error, ServerError)
                assert sync.queries.get(key) == original

        asyncio.run(run())

    @respx.mock
    def test_delete_removes_task_and_decrements_total(self) -> None:
        board = _board({"_id": "T1"}, {"_id": "T2"})
        respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(
            side_effect=[httpx.Response(200, json=board), httpx.Response(200, json=_board({"_id": "T2"}))]
        )
        delete = respx.delete(f"{BASE}/api/tasks/T1").mock(
            return_value=httpx.Response(200, json={"message": "Task deleted"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.tasks.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.tasks.delete("L1", "T1")
                assert result.unwrap() == _board({"_id": "T2"})
            assert delete.called

        asyncio.run(run())

    @respx.mock
    def test_fetch_rejects_board_without_pending_list(self) -> None:
        respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(200, json={"tasks": []}))

        async def run() -> None:
            async with _sync() as sync:
                result = await sync.queries.fetch(sync.tasks.key("L1"))
                assert isinstance(result.error, MalformedResponseError)

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------------

class TestMedications:
    @respx.mock
    def test_create_requires_name(self) -> None:
        async def run() -> None:
            async with _sync() as sync:
                result = await sync.medications.create("L1", {"dosage": "5mg"})
                assert isinstance(result.error, ValidationError)

        asyncio.run(run())

    @respx.mock
    def test_delete_uses_medication_path(self) -> None:
        respx.get(f"{BASE}/api/medications/loved-one/L1").mock(
            return_value=httpx.Response(200, json=_board({"_id": "M1", "name": "Aspirin"}))
        )
        route = respx.delete(f"{BASE}/api/medications/M1").mock(return_value=httpx.Response(204))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.medications.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.medications.delete("L1", "M1")
                assert result.unwrap()["pending"] == []
            assert route.called

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class TestNotes:
    def test_sort_newest_first(self) -> None:
        notes = [
            {"_id": "a", "date": "2024-01-01T08:00:00Z"},
            {"_id": "b", "date": "2024-03-01T08:00:00Z"},
            {"_id": "c"},
        ]
        assert [n["_id"] for n in sort_newest_first(notes)] == ["b", "a", "c"]

    @respx.mock
    def test_create_prepends_and_reconciles(self) -> None:
        existing = [{"_id": "N1", "content": "old", "date": "2020-01-01T00:00:00Z"}]
        respx.get(f"{BASE}/api/daily-notes/loved-one/L1").mock(return_value=httpx.Response(200, json=existing))
        respx.post(f"{BASE}/api/daily-notes/loved-one/L1").mock(
            return_value=httpx.Response(201, json={"_id": "N2", "content": "hello", "date": "2030-01-01T00:00:00Z"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.notes.key("L1")
                seen = _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.notes.create("L1", {"content": "hello"})
                assert [n["_id"] for n in result.unwrap()] == ["N2", "N1"]
                assert TemporaryIdFactory.is_temporary(seen[1][0]["_id"])

        asyncio.run(run())

    @respx.mock
    def test_delete_uses_thread_path(self) -> None:
        respx.get(f"{BASE}/api/daily-notes/loved-one/L1").mock(
            return_value=httpx.Response(200, json=[{"_id": "N1", "content": "x"}])
        )
        route = respx.delete(f"{BASE}/api/daily-notes/loved-one/L1/note/N1").mock(
            return_value=httpx.Response(200, json={"message": "deleted"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.notes.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.notes.delete("L1", "N1")
                assert result.unwrap() == []
            assert route.called

        asyncio.run(run())

    @respx.mock
    def test_watch_thread_polls_until_cancelled(self) -> None:
        route = respx.get(f"{BASE}/api/daily-notes/loved-one/L1").mock(return_value=httpx.Response(200, json=[]))

        async def run() -> None:
            async with _sync(notes_poll_interval_ms=100) as sync:
                _watch(sync, sync.notes.key("L1"))
                with sync.watch_notes("L1") as handle:
                    await wait_until(lambda: route.call_count >= 1, timeout=2.0)
                assert handle.cancelled

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Care plans
# ---------------------------------------------------------------------------

class TestCarePlans:
    @respx.mock
    def test_update_puts_changes_with_loved_one(self) -> None:
        respx.get(f"{BASE}/api/care-plans/loved-one/L1").mock(
            return_value=httpx.Response(200, json=[{"_id": "P1", "title": "Old"}])
        )
        route = respx.put(f"{BASE}/api/care-plans/loved-one/L1/P1").mock(
            return_value=httpx.Response(200, json={"_id": "P1", "title": "New", "updatedAt": "2024-05-01"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.care_plans.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.care_plans.update("L1", "P1", {"title": "New"})
                assert result.unwrap() == [{"_id": "P1", "title": "New", "updatedAt": "2024-05-01"}]
            assert json.loads(route.calls.last.request.content) == {"title": "New", "loved_one": "L1"}

        asyncio.run(run())

    @respx.mock
    def test_create_appends_plan(self) -> None:
        respx.get(f"{BASE}/api/care-plans/loved-one/L1").mock(return_value=httpx.Response(200, json=[]))
        respx.post(f"{BASE}/api/care-plans/loved-one/L1").mock(
            return_value=httpx.Response(201, json={"_id": "P9", "title": "Plan", "loved_one": "L1"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.care_plans.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.care_plans.create("L1", {"title": "Plan"})
                assert result.unwrap() == [{"_id": "P9", "title": "Plan", "loved_one": "L1"}]

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class TestInvitations:
    @respx.mock
    def test_fetch_accepts_wrapped_list(self) -> None:
        respx.get(f"{BASE}/api/caregivers/invitations").mock(
            return_value=httpx.Response(200, json={"invitations": [{"_id": "I1"}]})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.invitations.key()
                _watch(sync, key)
                await sync.queries.fetch(key)
                assert sync.queries.get(key) == [{"_id": "I1"}]

        asyncio.run(run())

    @respx.mock
    def test_accept_removes_invitation_and_settles_extra_keys(self) -> None:
        respx.get(f"{BASE}/api/caregivers/invitations").mock(
            side_effect=[httpx.Response(200, json=[{"_id": "I1"}, {"_id": "I2"}]), httpx.Response(200, json=[{"_id": "I2"}])]
        )
        tasks = respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(200, json=_board()))
        accept = respx.post(f"{BASE}/api/caregivers/invitations/I1/accept").mock(
            return_value=httpx.Response(200, json={"message": "accepted"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.invitations.key()
                tasks_key = sync.tasks.key("L1")
                _watch(sync, key)
                _watch(sync, tasks_key)
                sync.queries.store.write(tasks_key, _board())
                await sync.queries.fetch(key)
                result = await sync.invitations.accept("I1", invalidate=(tasks_key,))
                assert result.unwrap() == [{"_id": "I2"}]
            assert accept.called
            assert tasks.called

        asyncio.run(run())

    @respx.mock
    def test_reject_failure_restores_invitation(self) -> None:
        respx.get(f"{BASE}/api/caregivers/invitations").mock(return_value=httpx.Response(200, json=[{"_id": "I1"}]))
        respx.post(f"{BASE}/api/caregivers/invitations/I1/reject").mock(return_value=httpx.Response(404))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.invitations.key()
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.invitations.reject("I1")
                assert isinstance(result.error, NotFoundError)
                assert sync.queries.get(key) == [{"_id": "I1"}]

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Loved ones
# ---------------------------------------------------------------------------

class TestLovedOnes:
    @respx.mock
    def test_create_without_subscriber_commits_and_refetches(self) -> None:
        ann = {"_id": "LO1", "name": "Ann"}
        bob = {"_id": "LO2", "name": "Bob", "age": 80, "medical_history": "none"}
        fetch = respx.get(f"{BASE}/api/caregivers/loved-ones").mock(
            side_effect=[httpx.Response(200, json=[ann]), httpx.Response(200, json=[ann, bob])]
        )
        add = respx.post(f"{BASE}/api/caregivers/add-loved-one").mock(
            return_value=httpx.Response(201, json={"message": "Loved one added", "lovedOne": {"_id": "LO2", "name": "Bob"}})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.loved_ones.key()
                await sync.queries.fetch(key)
                result = await sync.loved_ones.create({"name": "Bob", "age": 80, "medical_history": "none"})
                assert result.unwrap() == [ann, bob]
                assert sync.queries.get(key) == [ann, bob]
                await wait_until(lambda: fetch.call_count == 2)
            assert json.loads(add.calls.last.request.content) == {"name": "Bob", "age": 80, "medical_history": "none"}

        asyncio.run(run())

    @respx.mock
    def test_create_requires_every_field(self) -> None:
        add = respx.post(f"{BASE}/api/caregivers/add-loved-one").mock(return_value=httpx.Response(201, json={}))

        async def run() -> None:
            async with _sync() as sync:
                result = await sync.loved_ones.create({"name": "Ann", "medical_history": " "})
                assert isinstance(result.error, ValidationError)
                assert [e["field"] for e in result.error.errors] == ["age", "medical_history"]
            assert not add.called

        asyncio.run(run())

    @respx.mock
    def test_failed_create_restores_list(self) -> None:
        ann = {"_id": "LO1", "name": "Ann"}
        respx.get(f"{BASE}/api/caregivers/loved-ones").mock(return_value=httpx.Response(200, json=[ann]))
        respx.post(f"{BASE}/api/caregivers/add-loved-one").mock(return_value=httpx.Response(503))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.loved_ones.key()
                seen = _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.loved_ones.create({"name": "Bob", "age": 80, "medical_history": "none"})
                assert isinstance(result.error, ServerError)
                assert len(seen[1]) == 2
                assert sync.queries.get(key) == [ann]

        asyncio.run(run())

    @respx.mock
    def test_fetch_accepts_wrapped_list_and_rejects_other_shapes(self) -> None:
        respx.get(f"{BASE}/api/caregivers/loved-ones").mock(
            side_effect=[httpx.Response(200, json={"lovedOnes": [{"_id": "LO1"}]}), httpx.Response(200, json={"count": 1})]
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.loved_ones.key()
                assert (await sync.queries.fetch(key)).unwrap() == [{"_id": "LO1"}]
                assert isinstance((await sync.queries.fetch(key)).error, MalformedResponseError)
                assert sync.queries.get(key) == [{"_id": "LO1"}]

        asyncio.run(run())


# ---------------------------------------------------------------------------
# Medical history
# ---------------------------------------------------------------------------

class TestMedicalHistory:
    @respx.mock
    def test_missing_history_reads_as_empty_list(self) -> None:
        respx.get(f"{BASE}/api/medical-history/loved-one/L1").mock(
            return_value=httpx.Response(404, json={"message": "Medical history not found"})
        )

        async def run() -> None:
            async with _sync() as sync:
                result = await sync.queries.fetch(sync.medical_history.key("L1"))
                assert result.unwrap() == []

        asyncio.run(run())

    @respx.mock
    def test_create_commits_server_entry(self) -> None:
        entry = {"_id": "H1", "notes": "stable", "allergies": []}
        respx.get(f"{BASE}/api/medical-history/loved-one/L1").mock(
            side_effect=[httpx.Response(404, json={"message": "Medical history not found"}), httpx.Response(200, json=entry)]
        )
        respx.post(f"{BASE}/api/medical-history/loved-one/L1").mock(return_value=httpx.Response(201, json=entry))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.medical_history.key("L1")
                seen = _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.medical_history.create("L1", {"notes": "stable", "allergies": []})
                assert result.unwrap() == [entry]
                assert TemporaryIdFactory.is_temporary(seen[1][0]["_id"])
            assert sync.queries.get(key) == [entry]

        asyncio.run(run())

    @respx.mock
    def test_rejected_create_rolls_back(self) -> None:
        existing = [{"_id": "H1", "notes": "old"}]
        respx.get(f"{BASE}/api/medical-history/loved-one/L1").mock(return_value=httpx.Response(200, json=existing))
        respx.post(f"{BASE}/api/medical-history/loved-one/L1").mock(
            return_value=httpx.Response(400, json={"message": "Invalid severity"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.medical_history.key("L1")
                seen = _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.medical_history.create("L1", {"notes": "new"})
                assert isinstance(result.error, ValidationError)
                assert len(seen[1]) == 2
                assert sync.queries.get(key) == existing

        asyncio.run(run())

    @respx.mock
    def test_update_merges_section_into_entry(self) -> None:
        respx.get(f"{BASE}/api/medical-history/loved-one/L1").mock(
            return_value=httpx.Response(200, json=[{"_id": "H1", "notes": "n", "allergies": []}])
        )
        updated = {"_id": "H1", "notes": "n", "allergies": [{"allergen": "nuts"}]}
        post = respx.post(f"{BASE}/api/medical-history/loved-one/L1").mock(return_value=httpx.Response(200, json=updated))

        async def run() -> None:
            async with _sync() as sync:
                key = sync.medical_history.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.medical_history.update("L1", "H1", {"allergies": [{"allergen": "nuts"}]})
                assert result.unwrap() == [updated]
            assert json.loads(post.calls.last.request.content) == {"allergies": [{"allergen": "nuts"}]}

        asyncio.run(run())

    def test_create_requires_notes(self) -> None:
        async def run() -> None:
            async with _sync() as sync:
                result = await sync.medical_history.create("L1", {"notes": ""})
                assert isinstance(result.error, ValidationError)
                assert not sync.queries.store.contains(sync.medical_history.key("L1"))

        asyncio.run(run())


# ---------------------------------------------------------------------------
# CareSync bundle
# ---------------------------------------------------------------------------

class TestCareSync:
    def test_from_env_reads_settings(self, monkeypatch: Any) -> None:
        monkeypatch.setenv("CARE_SYNC_BASE_URL", "https://care.example")
        monkeypatch.setenv("CARE_SYNC_NOTES_POLL_INTERVAL_MS", "5000")
        monkeypatch.setenv("CARE_SYNC_LOG_LEVEL", "DEBUG")
        configured: list[tuple[Any, Any]] = []
        monkeypatch.setattr(
            "care_sync.resources.bundle.configure_logging",
            lambda level, json: configured.append((level, json)),
        )
        sync = CareSync.from_env(FakeSession())
        assert configured == [("DEBUG", True)]
        assert sync.settings.base_url == "https://care.example"
        assert sync.settings.notes_poll_interval_ms == 5000

    @respx.mock
    def test_guarded_returns_mutation_result(self) -> None:
        respx.get(f"{BASE}/api/tasks/loved-one/L1").mock(return_value=httpx.Response(200, json=_board()))
        respx.post(f"{BASE}/api/tasks/loved-one/L1").mock(
            return_value=httpx.Response(201, json={"_id": "S1", "title": "Walk"})
        )

        async def run() -> None:
            async with _sync() as sync:
                key = sync.tasks.key("L1")
                _watch(sync, key)
                await sync.queries.fetch(key)
                result = await sync.guarded(sync.tasks.create("L1", {"title": "Walk"}))
                assert result.is_ok()

        asyncio.run(run())

    @respx.mock
    def test_accept_invitation_settles_loved_ones(self) -> None:
        respx.get(f"{BASE}/api/caregivers/invitations").mock(return_value=httpx.Response(200, json=[{"_id": "I1"}]))
        loved_ones = respx.get(f"{BASE}/api/caregivers/loved-ones").mock(
            side_effect=[httpx.Response(200, json=[]), httpx.Response(200, json=[{"_id": "LO9"}])]
        )
        respx.post(f"{BASE}/api/caregivers/invitations/I1/accept").mock(return_value=httpx.Response(200, json={}))

        async def run() -> None:
            async with _sync() as sync:
                _watch(sync, sync.loved_ones.key())
                await sync.queries.fetch(sync.invitations.key())
                await sync.queries.fetch(sync.loved_ones.key())
                result = await sync.accept_invitation("I1")
                assert result.unwrap() == []
                await wait_until(lambda: sync.queries.get(sync.loved_ones.key()) == [{"_id": "LO9"}])
            assert loved_ones.call_count == 2

        asyncio.run(run())

    def test_resource_without_fetch_cannot_be_built(self) -> None:
        class Bare(Resource):
            root = "bare"

        with pytest.raises(TypeError):
            Bare(_sync().remote, QueryClient())
