from fastapi import APIRouter, Depends

from dependencies.security import get_store
from schemas.grades import GradeUpsert, QuickGradeRequest
from services.grade_store import GradeStore
from services.quick_grade import QuickGradeEntry
from utils.responses import fail, ok

router = APIRouter(prefix="/grades", tags=["성적 관리"])


# ✅ [READ] 전체 성적 조회
@router.get("")
def read_grades(store: GradeStore = Depends(get_store)):
    return ok([g.to_json() for g in store.grades], "전체 성적 조회 완료")


# ✅ [UPSERT] 점수 한 칸 저장 (없으면 생성, 있으면 수정)
@router.put("")
async def upsert_grade(request: GradeUpsert, store: GradeStore = Depends(get_store)):
    if store.find_student(request.student_id) is None:
        return fail(404, "학생 정보를 찾을 수 없습니다")
    if store.find_test(request.test_id) is None:
        return fail(404, "시험 정보를 찾을 수 없습니다")

    problem = store.validate_grade(request.test_id, request.value)
    if problem:
        return fail(400, problem)

    grade = await store.update_grade(request.student_id, request.test_id, request.value)
    if grade is None:
        return fail(500, store.error)
    return ok(grade.to_json(), "점수가 저장되었습니다")


# ✅ [QUICK] 시험 하나에 대한 점수 묶음 저장 (빠른 입력)
@router.put("/tests/{test_id}")
async def quick_grade(test_id: str, request: QuickGradeRequest, store: GradeStore = Depends(get_store)):
    try:
        entry = QuickGradeEntry(store, test_id)
    except LookupError:
        return fail(404, "시험 정보를 찾을 수 없습니다")

    saved, rejected = await entry.save_all(request.entries)
    return ok(
        {"saved": saved, "rejected": rejected},
        f"점수 {len(saved)}건 저장 완료",
    )
