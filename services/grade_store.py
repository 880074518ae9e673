"""
services/grade_store.py

- 로그인한 소유자 한 명의 학생/시험/성적 컬렉션을 메모리에 보관하는 저장소
- 모든 변경은 원격 저장소 호출이 성공한 뒤에만 로컬 상태에 반영 (낙관적 갱신 없음)
- 컬렉션은 튜플로 보관하고, 변경 시 새 튜플을 한 번에 대입한 뒤 구독자에게 알림
- 실패는 작업 안에서 처리: 로그 + error 슬롯 + 알림, 호출자에게는 None/False 반환
"""

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from numbers import Real
from typing import Callable, Dict, List, Optional, Tuple

from schemas.gradebook import FormattedStudent, Grade, Student, Test
from services.data_client import DataClient, DataStoreError, QueryResult, TableQuery
from services.field_mapping import decode, decode_many, encode
from services.notifications import NotificationCenter
from utils.formatting import format_number, percent_of

logger = logging.getLogger(__name__)

Listener = Callable[["GradeStore"], None]

# ✅ 작업별 사용자 안내 문구
MESSAGES = {
    "fetch_all": "데이터를 불러오는 중 오류가 발생했습니다",
    "add_student": "학생을 추가하는 중 오류가 발생했습니다",
    "add_student_ok": "학생이 추가되었습니다",
    "update_student": "학생 정보를 수정하는 중 오류가 발생했습니다",
    "update_student_ok": "학생 정보가 수정되었습니다",
    "delete_student": "학생을 삭제하는 중 오류가 발생했습니다",
    "delete_student_ok": "학생이 삭제되었습니다",
    "add_test": "시험을 추가하는 중 오류가 발생했습니다",
    "add_test_ok": "시험이 추가되었습니다",
    "update_test": "시험 정보를 수정하는 중 오류가 발생했습니다",
    "update_test_ok": "시험 정보가 수정되었습니다",
    "delete_test": "시험을 삭제하는 중 오류가 발생했습니다",
    "delete_test_ok": "시험이 삭제되었습니다",
    "update_grade": "점수를 저장하는 중 오류가 발생했습니다",
    "update_grade_ok": "점수가 저장되었습니다",
    "invalid_max_grade": "만점은 1 이상이어야 합니다",
    "invalid_grade": "점수는 숫자여야 합니다",
}


class GradeStore:
    def __init__(self, client: DataClient, notifier: Optional[NotificationCenter] = None):
        self._client = client
        self.notifier = notifier or NotificationCenter()

        self._students: Tuple[Student, ...] = ()
        self._tests: Tuple[Test, ...] = ()
        self._grades: Tuple[Grade, ...] = ()

        self._pending = 0
        self.error: Optional[str] = None
        self.loaded = False
        # 연쇄 삭제가 중간에 실패해 원격/로컬이 어긋났을 수 있음 → reconcile() 필요
        self.needs_refresh = False

        self._listeners: List[Listener] = []
        self._grade_locks: Dict[Tuple[str, str], asyncio.Lock] = {}

    # ==========================================================
    # [상태] 읽기 전용 접근
    # ==========================================================
    @property
    def students(self) -> Tuple[Student, ...]:
        return self._students

    @property
    def tests(self) -> Tuple[Test, ...]:
        return self._tests

    @property
    def grades(self) -> Tuple[Grade, ...]:
        return self._grades

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    def find_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self._students if s.id == student_id), None)

    def find_test(self, test_id: str) -> Optional[Test]:
        return next((t for t in self._tests if t.id == test_id), None)

    def find_grade(self, student_id: str, test_id: str) -> Optional[Grade]:
        return next(
            (g for g in self._grades if g.student_id == student_id and g.test_id == test_id),
            None,
        )

    # ==========================================================
    # [구독] 상태 변경 알림
    # ==========================================================
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _commit(self, **collections) -> None:
        for name, items in collections.items():
            setattr(self, f"_{name}", tuple(items))
        self._emit()

    @asynccontextmanager
    async def _loading(self):
        self._pending += 1
        self._emit()
        try:
            yield
        finally:
            self._pending -= 1
            self._emit()

    def _fail(self, key: str, exc: Optional[Exception] = None, message: Optional[str] = None) -> None:
        message = message or MESSAGES[key]
        if exc is not None:
            logger.error(f"{key} 실패: {exc!r}")
        self.error = message
        self.notifier.error(message)
        self._emit()

    async def _run(self, query: TableQuery) -> QueryResult:
        return await query.execute_async()

    # ==========================================================
    # [조회] 전체 데이터 로드
    # ==========================================================
    async def _fetch_students(self, owner_id: str) -> list:
        result = await self._run(
            self._client.table("students").select("*").eq("user_id", owner_id).order("created_at")
        )
        return result.data

    async def _fetch_tests(self, owner_id: str) -> list:
        result = await self._run(
            self._client.table("tests").select("*").eq("user_id", owner_id).order("created_at")
        )
        return result.data

    async def _fetch_grades(self, owner_id: str) -> list:
        # 성적 테이블에는 소유자 컬럼이 없음 → 소유자의 학생 ID 목록으로 한 번 더 조회
        owned = await self._run(self._client.table("students").select("id").eq("user_id", owner_id))
        student_ids = [row["id"] for row in owned.data]
        if not student_ids:
            return []
        result = await self._run(
            self._client.table("grades").select("*").in_("studentid", student_ids).order("created_at")
        )
        return result.data

    async def fetch_all(self, owner_id: str) -> bool:
        async with self._loading():
            results = await asyncio.gather(
                self._fetch_students(owner_id),
                self._fetch_tests(owner_id),
                self._fetch_grades(owner_id),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, DataStoreError):
                    # 기존 데이터는 그대로 둠 (비우지 않음)
                    self._fail("fetch_all", result)
                    return False
                if isinstance(result, BaseException):
                    raise result

            students_rows, tests_rows, grades_rows = results
            self.loaded = True
            self.needs_refresh = False
            self._commit(
                students=decode_many("students", students_rows),
                tests=decode_many("tests", tests_rows),
                grades=decode_many("grades", grades_rows),
            )
            return True

    async def reconcile(self, owner_id: str) -> bool:
        """원격 상태 기준으로 로컬 컬렉션 전체를 다시 맞춤"""
        logger.info(f"로컬 상태 재동기화: owner={owner_id}")
        return await self.fetch_all(owner_id)

    async def reconcile_if_needed(self, owner_id: str) -> bool:
        """연쇄 삭제가 중간에 실패한 경우에만 재동기화"""
        if not self.needs_refresh:
            return False
        return await self.reconcile(owner_id)

    def clear(self) -> None:
        """로그아웃 시 상태 초기화"""
        self.loaded = False
        self.error = None
        self.needs_refresh = False
        self._grade_locks.clear()
        self._commit(students=(), tests=(), grades=())

    # ==========================================================
    # [학생] 추가 / 수정 / 삭제
    # ==========================================================
    async def add_student(self, name: str, owner_id: str) -> Optional[Student]:
        async with self._loading():
            try:
                result = await self._run(
                    self._client.table("students")
                    .insert(encode("students", {"name": name, "owner_id": owner_id}))
                    .select()
                    .single()
                )
            except DataStoreError as e:
                self._fail("add_student", e)
                return None

            student = decode("students", result.data)
            self._commit(students=[*self._students, student])
            self.notifier.success(MESSAGES["add_student_ok"])
            return student

    async def update_student(self, student_id: str, name: str) -> bool:
        async with self._loading():
            try:
                result = await self._run(
                    self._client.table("students").update({"name": name}).eq("id", student_id).select().single()
                )
            except DataStoreError as e:
                self._fail("update_student", e)
                return False

            updated = decode("students", result.data)
            self._commit(students=[updated if s.id == student_id else s for s in self._students])
            self.notifier.success(MESSAGES["update_student_ok"])
            return True

    async def delete_student(self, student_id: str) -> bool:
        return await self._cascade_delete("students", "studentid", student_id)

    # ==========================================================
    # [시험] 추가 / 수정 / 삭제
    # ==========================================================
    async def add_test(self, name: str, max_grade: float, owner_id: str) -> Optional[Test]:
        if max_grade < 1:
            self._fail("add_test", message=MESSAGES["invalid_max_grade"])
            return None

        async with self._loading():
            try:
                result = await self._run(
                    self._client.table("tests")
                    .insert(encode("tests", {"name": name, "max_grade": max_grade, "owner_id": owner_id}))
                    .select()
                    .single()
                )
            except DataStoreError as e:
                self._fail("add_test", e)
                return None

            test = decode("tests", result.data)
            self._commit(tests=[*self._tests, test])
            self.notifier.success(MESSAGES["add_test_ok"])
            return test

    async def update_test(self, test_id: str, name: str, max_grade: float) -> bool:
        if max_grade < 1:
            self._fail("update_test", message=MESSAGES["invalid_max_grade"])
            return False

        async with self._loading():
            try:
                result = await self._run(
                    self._client.table("tests")
                    .update(encode("tests", {"name": name, "max_grade": max_grade}))
                    .eq("id", test_id)
                    .select()
                    .single()
                )
            except DataStoreError as e:
                self._fail("update_test", e)
                return False

            updated = decode("tests", result.data)
            self._commit(tests=[updated if t.id == test_id else t for t in self._tests])
            self.notifier.success(MESSAGES["update_test_ok"])
            return True

    async def delete_test(self, test_id: str) -> bool:
        return await self._cascade_delete("tests", "testid", test_id)

    async def _cascade_delete(self, table: str, grade_column: str, record_id: str) -> bool:
        """
        성적(자식) 삭제 → 본 행(부모) 삭제 순서로 두 번 호출.
        두 단계가 모두 성공해야 로컬 상태를 바꾼다.
        - 1단계 실패: 2단계는 시도하지 않고 끝
        - 2단계 실패: 원격 성적은 이미 삭제됨 → needs_refresh 표시 (reconcile로 복구)
        """
        key = "delete_student" if table == "students" else "delete_test"
        async with self._loading():
            try:
                await self._run(self._client.table("grades").delete().eq(grade_column, record_id))
            except DataStoreError as e:
                self._fail(key, e)
                return False

            try:
                await self._run(self._client.table(table).delete().eq("id", record_id).select().single())
            except DataStoreError as e:
                logger.warning(f"{table} 삭제 실패, 성적은 이미 삭제됨: id={record_id}")
                self.needs_refresh = True
                self._fail(key, e)
                return False

            field = "student_id" if table == "students" else "test_id"
            remaining = [g for g in self._grades if getattr(g, field) != record_id]
            if table == "students":
                self._commit(students=[s for s in self._students if s.id != record_id], grades=remaining)
            else:
                self._commit(tests=[t for t in self._tests if t.id != record_id], grades=remaining)
            self._grade_locks = {
                pair: lock for pair, lock in self._grade_locks.items()
                if record_id not in pair
            }
            self.notifier.success(MESSAGES[f"{key}_ok"])
            return True

    # ==========================================================
    # [성적] (학생, 시험) 쌍 기준 upsert
    # ==========================================================
    def validate_grade(self, test_id: str, value) -> Optional[str]:
        """저장할 수 없는 점수면 사유 문구, 괜찮으면 None"""
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            return MESSAGES["invalid_grade"]
        test = self.find_test(test_id)
        upper = test.max_grade if test else math.inf
        if value < 0 or value > upper:
            return f"점수는 0에서 {format_number(upper)} 사이여야 합니다" if test else "점수는 0 이상이어야 합니다"
        return None

    async def update_grade(self, student_id: str, test_id: str, value: float) -> Optional[Grade]:
        problem = self.validate_grade(test_id, value)
        if problem:
            self._fail("update_grade", message=problem)
            return None

        # 같은 쌍에 대한 조회→쓰기 구간은 한 번에 하나씩만
        lock = self._grade_locks.setdefault((student_id, test_id), asyncio.Lock())
        async with lock, self._loading():
            existing = self.find_grade(student_id, test_id)
            try:
                if existing is not None:
                    result = await self._run(self._update_grade_query(existing.id, value))
                else:
                    result = await self._insert_grade(student_id, test_id, value)
            except DataStoreError as e:
                self._fail("update_grade", e)
                return None

            grade = decode("grades", result.data)
            if existing is not None:
                grades = [grade if g.id == existing.id else g for g in self._grades]
            else:
                grades = [
                    *(g for g in self._grades if not (g.student_id == student_id and g.test_id == test_id)),
                    grade,
                ]
            self._commit(grades=grades)
            self.notifier.success(MESSAGES["update_grade_ok"])
            return grade

    def _update_grade_query(self, grade_id: str, value: float) -> TableQuery:
        return self._client.table("grades").update({"value": value}).eq("id", grade_id).select().single()

    async def _insert_grade(self, student_id: str, test_id: str, value: float) -> QueryResult:
        try:
            return await self._run(
                self._client.table("grades")
                .insert(encode("grades", {"student_id": student_id, "test_id": test_id, "value": value}))
                .select()
                .single()
            )
        except DataStoreError as e:
            if e.code != "23505":
                raise
        # 로컬에는 없지만 원격에는 이미 있는 쌍 → 원격 행을 찾아 수정
        logger.info(f"기존 성적 행 발견, 수정으로 전환: student={student_id} test={test_id}")
        found = await self._run(
            self._client.table("grades").select("*").eq("studentid", student_id).eq("testid", test_id).single()
        )
        return await self._run(self._update_grade_query(found.data["id"], value))

    # ==========================================================
    # [파생 조회] 네트워크 접근 없음
    # ==========================================================
    def formatted_students(self) -> List[FormattedStudent]:
        """
        학생별 성적 요약.
        - grades: 모든 시험 ID → 점수 또는 None (미채점은 0이 아님)
        - total: 기록된 점수 합
        - max_possible: 점수가 기록된 시험의 만점 합 (미채점 시험은 제외)
        """
        by_pair = {(g.student_id, g.test_id): g.value for g in self._grades}
        formatted = []
        for student in self._students:
            grades: Dict[str, Optional[float]] = {}
            total = 0.0
            max_possible = 0.0
            for test in self._tests:
                value = by_pair.get((student.id, test.id))
                grades[test.id] = value
                if value is not None:
                    total += value
                    max_possible += test.max_grade
            formatted.append(
                FormattedStudent(
                    id=student.id,
                    name=student.name,
                    grades=grades,
                    total=total,
                    max_possible=max_possible,
                    percentage=percent_of(total, max_possible),
                )
            )
        return formatted

    def total_max_grade(self) -> float:
        """전체 시험 만점 합 (학생별 채점 여부와 무관)"""
        return sum(t.max_grade for t in self._tests)

    def snapshot(self) -> dict:
        return {
            "students": [s.to_json() for s in self._students],
            "tests": [t.to_json() for t in self._tests],
            "grades": [g.to_json() for g in self._grades],
            "formattedStudents": [f.to_json() for f in self.formatted_students()],
            "totalMaxGrade": self.total_max_grade(),
            "isLoading": self.is_loading,
            "error": self.error,
            "needsRefresh": self.needs_refresh,
        }
