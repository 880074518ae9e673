from fastapi import APIRouter, Depends

from dependencies.security import get_current_session, get_store
from schemas.students import BatchDeleteRequest
from schemas.tests import TestCreate
from services.auth_service import AuthSession
from services.batch_operations import delete_tests
from services.grade_store import GradeStore
from utils.responses import fail, ok

router = APIRouter(prefix="/tests", tags=["시험 관리"])


# ✅ [READ] 전체 시험 조회 (등록 순)
@router.get("")
def read_tests(store: GradeStore = Depends(get_store)):
    return ok(
        {"tests": [t.to_json() for t in store.tests], "totalMaxGrade": store.total_max_grade()},
        "전체 시험 조회 완료",
    )


# ✅ [CREATE] 시험 추가
@router.post("")
async def create_test(
    test: TestCreate,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    name = test.name.strip()
    if not name:
        return fail(400, "시험 이름을 입력하세요")
    created = await store.add_test(name, test.max_grade, session.user.id)
    if created is None:
        return fail(500, store.error)
    return ok(created.to_json(), "시험이 추가되었습니다")


# ✅ [BATCH] 선택한 시험 여러 개 삭제
@router.post("/batch-delete")
async def batch_delete_tests(
    request: BatchDeleteRequest,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    result = await delete_tests(store, request.ids)
    await store.reconcile_if_needed(session.user.id)
    return ok(result.to_json(), f"시험 {len(result.deleted)}개 삭제 완료")


# ✅ [UPDATE] 시험 이름/만점 수정
@router.put("/{test_id}")
async def update_test(test_id: str, updated: TestCreate, store: GradeStore = Depends(get_store)):
    if store.find_test(test_id) is None:
        return fail(404, "시험 정보를 찾을 수 없습니다")
    name = updated.name.strip()
    if not name:
        return fail(400, "시험 이름을 입력하세요")
    if not await store.update_test(test_id, name, updated.max_grade):
        return fail(500, store.error)
    return ok(store.find_test(test_id).to_json(), "시험 정보가 수정되었습니다")


# ✅ [DELETE] 시험 삭제 (해당 시험의 성적도 함께 삭제)
@router.delete("/{test_id}")
async def delete_test(
    test_id: str,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    if store.find_test(test_id) is None:
        return fail(404, "시험 정보를 찾을 수 없습니다")
    if not await store.delete_test(test_id):
        message = store.error
        await store.reconcile_if_needed(session.user.id)
        return fail(500, message)
    return ok({"id": test_id}, "시험이 삭제되었습니다")
