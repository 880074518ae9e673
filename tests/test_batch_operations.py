import asyncio

from services.batch_operations import delete_students, delete_tests


def test_unknown_ids_fail_without_remote_calls(store, owner_id, owner_client, monkeypatch):
    asyncio.run(store.add_student("김하늘", owner_id))
    calls = []
    original = owner_client.execute
    monkeypatch.setattr(owner_client, "execute", lambda query: calls.append(query) or original(query))

    result = asyncio.run(delete_students(store, ["missing", "missing"]))

    assert result.deleted == [] and result.failed == ["missing"]
    assert calls == []
    assert store.needs_refresh is False
    assert store.error is None
    assert len(store.students) == 1


def test_mixed_ids_delete_known_ones(store, owner_id):
    async def seed():
        a = await store.add_test("A", 10, owner_id)
        b = await store.add_test("B", 10, owner_id)
        return a, b

    a, b = asyncio.run(seed())
    result = asyncio.run(delete_tests(store, [a.id, "missing", b.id]))

    assert result.deleted == [a.id, b.id]
    assert result.failed == ["missing"]
    assert store.tests == ()
