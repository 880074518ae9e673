import asyncio

from services.grade_store import GradeStore
from services.notifications import NotificationCenter


def _seed(store, owner_id):
    async def seed():
        a = await store.add_test("A", 10, owner_id)
        b = await store.add_test("B", 20, owner_id)
        s1 = await store.add_student("김하늘", owner_id)
        s2 = await store.add_student("이바다", owner_id)
        return a, b, s1, s2

    return asyncio.run(seed())


# ==========================================================
# 추가 / 조회
# ==========================================================

def test_add_calls_grow_collections_with_unique_ids(store, owner_id):
    async def scenario():
        for i in range(3):
            await store.add_student(f"학생{i}", owner_id)
        for i in range(2):
            await store.add_test(f"시험{i}", 10 * (i + 1), owner_id)

    asyncio.run(scenario())

    assert len(store.students) == 3
    assert len(store.tests) == 2
    assert len({s.id for s in store.students}) == 3
    assert len({t.id for t in store.tests}) == 2
    assert not store.is_loading


def test_failed_add_leaves_collection_unchanged(store, owner_id, owner_client, inject_failure):
    asyncio.run(store.add_student("김하늘", owner_id))
    inject_failure(owner_client, "students", "insert")

    assert asyncio.run(store.add_student("이바다", owner_id)) is None
    assert [s.name for s in store.students] == ["김하늘"]
    assert store.error == "학생을 추가하는 중 오류가 발생했습니다"
    assert store.notifier.last.level == "error"


def test_add_test_rejects_max_grade_below_one(store, owner_id):
    assert asyncio.run(store.add_test("퀴즈", 0, owner_id)) is None
    assert store.tests == ()
    assert store.error == "만점은 1 이상이어야 합니다"


def test_max_grade_round_trips_through_fetch_all(store, owner_id, owner_client):
    asyncio.run(store.add_test("중간고사", 55, owner_id))

    fresh = GradeStore(owner_client, NotificationCenter())
    assert asyncio.run(fresh.fetch_all(owner_id)) is True
    assert fresh.tests[0].max_grade == 55
    assert fresh.loaded


def test_fetch_all_failure_keeps_previous_data(store, owner_id, owner_client, inject_failure):
    _seed(store, owner_id)
    before = (store.students, store.tests, store.grades)
    inject_failure(owner_client, "tests", "select")

    assert asyncio.run(store.fetch_all(owner_id)) is False
    assert (store.students, store.tests, store.grades) == before
    assert store.error == "데이터를 불러오는 중 오류가 발생했습니다"


def test_fetch_all_only_loads_owner_grades(store, owner_id, data_client, auth):
    a, _, s1, _ = _seed(store, owner_id)
    asyncio.run(store.update_grade(s1.id, a.id, 7))

    other_id = auth.sign_up("other@example.com", "password1").user.id
    other = GradeStore(data_client.for_owner(other_id))
    asyncio.run(other.fetch_all(other_id))
    assert other.students == () and other.grades == ()

    reloaded = GradeStore(data_client.for_owner(owner_id))
    asyncio.run(reloaded.fetch_all(owner_id))
    assert [(g.student_id, g.test_id, g.value) for g in reloaded.grades] == [(s1.id, a.id, 7)]


# ==========================================================
# 수정
# ==========================================================

def test_update_student_replaces_record_in_place(store, owner_id):
    _, _, s1, s2 = _seed(store, owner_id)
    assert asyncio.run(store.update_student(s1.id, "김구름")) is True
    assert [s.name for s in store.students] == ["김구름", "이바다"]
    assert store.students[1] is s2


def test_update_test_changes_name_and_max(store, owner_id):
    a, *_ = _seed(store, owner_id)
    assert asyncio.run(store.update_test(a.id, "A'", 15)) is True
    assert store.find_test(a.id).max_grade == 15
    assert store.total_max_grade() == 35


def test_update_missing_student_reports_error(store, owner_id):
    _seed(store, owner_id)
    assert asyncio.run(store.update_student("missing", "x")) is False
    assert store.error == "학생 정보를 수정하는 중 오류가 발생했습니다"


# ==========================================================
# 성적 upsert
# ==========================================================

def test_update_grade_twice_keeps_single_record(store, owner_id, owner_client):
    a, _, s1, _ = _seed(store, owner_id)

    async def scenario():
        await store.update_grade(s1.id, a.id, 4)
        await store.update_grade(s1.id, a.id, 9)

    asyncio.run(scenario())

    pair = [g for g in store.grades if g.student_id == s1.id and g.test_id == a.id]
    assert len(pair) == 1 and pair[0].value == 9
    remote = owner_client.table("grades").select("*").eq("studentid", s1.id).eq("testid", a.id).execute().data
    assert len(remote) == 1 and remote[0]["value"] == 9


def test_concurrent_updates_for_same_pair_do_not_duplicate(store, owner_id, owner_client):
    a, _, s1, _ = _seed(store, owner_id)

    async def scenario():
        return await asyncio.gather(*(store.update_grade(s1.id, a.id, v) for v in (1, 2, 3)))

    results = asyncio.run(scenario())

    assert all(r is not None for r in results)
    assert len(store.grades) == 1
    assert store.grades[0].value == 3
    assert len(owner_client.table("grades").select("*").execute().data) == 1


def test_update_grade_switches_to_update_when_remote_row_exists(store, owner_id, owner_client):
    a, _, s1, _ = _seed(store, owner_id)
    stale = GradeStore(owner_client)
    asyncio.run(stale.fetch_all(owner_id))

    asyncio.run(store.update_grade(s1.id, a.id, 5))
    grade = asyncio.run(stale.update_grade(s1.id, a.id, 8))

    assert grade is not None and grade.value == 8
    assert len(stale.grades) == 1
    assert len(owner_client.table("grades").select("*").execute().data) == 1


def test_update_grade_validates_range(store, owner_id):
    a, _, s1, _ = _seed(store, owner_id)

    assert asyncio.run(store.update_grade(s1.id, a.id, 11)) is None
    assert store.error == "점수는 0에서 10 사이여야 합니다"
    assert asyncio.run(store.update_grade(s1.id, a.id, -1)) is None
    assert asyncio.run(store.update_grade(s1.id, a.id, float("nan"))) is None
    assert store.error == "점수는 숫자여야 합니다"
    assert store.grades == ()
    assert asyncio.run(store.update_grade(s1.id, a.id, 10)) is not None


# ==========================================================
# 파생 조회
# ==========================================================

def test_formatted_students_excludes_ungraded_max(store, owner_id):
    a, b, s1, s2 = _seed(store, owner_id)
    asyncio.run(store.update_grade(s1.id, a.id, 7))

    by_id = {f.id: f for f in store.formatted_students()}
    first = by_id[s1.id]
    assert first.grades == {a.id: 7, b.id: None}
    assert first.total == 7
    assert first.max_possible == 10
    assert first.percentage == 70

    second = by_id[s2.id]
    assert second.grades == {a.id: None, b.id: None}
    assert second.max_possible == 0 and second.percentage is None


def test_total_max_grade_ignores_recorded_grades(store, owner_id):
    a, _, s1, _ = _seed(store, owner_id)
    assert store.total_max_grade() == 30
    asyncio.run(store.update_grade(s1.id, a.id, 3))
    assert store.total_max_grade() == 30


def test_snapshot_uses_camel_case_keys(store, owner_id):
    _seed(store, owner_id)
    snapshot = store.snapshot()
    assert snapshot["totalMaxGrade"] == 30
    assert "maxGrade" in snapshot["tests"][0]
    assert snapshot["isLoading"] is False


# ==========================================================
# 연쇄 삭제
# ==========================================================

def test_delete_student_removes_only_their_grades(store, owner_id):
    a, b, s1, s2 = _seed(store, owner_id)

    async def grade_all():
        for student in (s1, s2):
            for test in (a, b):
                await store.update_grade(student.id, test.id, 5)

    asyncio.run(grade_all())
    kept = [g for g in store.grades if g.student_id == s2.id]

    assert asyncio.run(store.delete_student(s1.id)) is True
    assert [s.id for s in store.students] == [s2.id]
    assert list(store.grades) == kept
    assert len(store.tests) == 2


def test_delete_test_removes_its_grades(store, owner_id, owner_client):
    a, b, s1, s2 = _seed(store, owner_id)
    asyncio.run(store.update_grade(s1.id, a.id, 5))
    asyncio.run(store.update_grade(s1.id, b.id, 5))

    assert asyncio.run(store.delete_test(a.id)) is True
    assert [g.test_id for g in store.grades] == [b.id]
    assert owner_client.table("grades").select("*").eq("testid", a.id).execute().data == []


def test_parent_delete_failure_leaves_local_state_untouched(store, owner_id, owner_client, inject_failure):
    a, _, s1, _ = _seed(store, owner_id)
    asyncio.run(store.update_grade(s1.id, a.id, 6))
    before = (store.students, store.grades)
    inject_failure(owner_client, "students", "delete")

    assert asyncio.run(store.delete_student(s1.id)) is False
    assert (store.students, store.grades) == before
    assert store.needs_refresh is True

    # 원격에는 성적만 지워진 상태 → 재동기화로 맞춤
    assert owner_client.table("grades").select("*").execute().data == []
    assert asyncio.run(store.reconcile(owner_id)) is True
    assert store.grades == ()
    assert store.find_student(s1.id) is not None
    assert store.needs_refresh is False


def test_dependent_delete_failure_skips_parent_delete(store, owner_id, owner_client, inject_failure):
    _, _, s1, _ = _seed(store, owner_id)
    calls = inject_failure(owner_client, "grades", "delete")

    assert asyncio.run(store.delete_student(s1.id)) is False
    assert len(calls) == 1
    assert store.needs_refresh is False
    assert owner_client.table("students").select("*").eq("id", s1.id).execute().data != []


# ==========================================================
# 구독 / 초기화
# ==========================================================

def test_subscribers_see_loading_and_changes(store, owner_id):
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append((s.is_loading, len(s.students))))

    asyncio.run(store.add_student("김하늘", owner_id))
    assert (True, 0) in seen
    assert seen[-1] == (False, 1)

    unsubscribe()
    asyncio.run(store.add_student("이바다", owner_id))
    assert seen[-1] == (False, 1)


def test_clear_resets_state(store, owner_id):
    _seed(store, owner_id)
    asyncio.run(store.fetch_all(owner_id))
    store.clear()
    assert store.students == () and store.tests == () and store.grades == ()
    assert store.loaded is False


def test_reconcile_if_needed_only_after_partial_delete(store, owner_id, owner_client, inject_failure):
    _, _, s1, _ = _seed(store, owner_id)
    assert asyncio.run(store.reconcile_if_needed(owner_id)) is False

    inject_failure(owner_client, "students", "delete")
    asyncio.run(store.delete_student(s1.id))
    assert asyncio.run(store.reconcile_if_needed(owner_id)) is True
    assert store.needs_refresh is False
