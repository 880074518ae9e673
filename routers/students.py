from fastapi import APIRouter, Depends

from config.settings import settings
from dependencies.security import get_current_session, get_store
from schemas.students import BatchDeleteRequest, StudentBulkCreate, StudentCreate
from services.auth_service import AuthSession
from services.batch_operations import delete_students
from services.bulk_import import import_students, names_from_csv, parse_student_names
from services.grade_store import GradeStore
from utils.responses import fail, ok

router = APIRouter(prefix="/students", tags=["학생 관리"])


# ==========================================================
# [1단계] CRUD 기본 라우터
# ==========================================================

# ✅ [READ] 전체 학생 조회 (등록 순)
@router.get("")
def read_students(store: GradeStore = Depends(get_store)):
    return ok([s.to_json() for s in store.students], "전체 학생 조회 완료")


# ✅ [CREATE] 학생 추가
@router.post("")
async def create_student(
    student: StudentCreate,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    name = student.name.strip()
    if not name:
        return fail(400, "학생 이름을 입력하세요")
    created = await store.add_student(name, session.user.id)
    if created is None:
        return fail(500, store.error)
    return ok(created.to_json(), "학생이 추가되었습니다")


# ==========================================================
# [2단계] 일괄 처리 라우터
# ==========================================================

# ✅ [BULK] 이름 목록 / CSV로 학생 일괄 등록
@router.post("/bulk")
async def bulk_create_students(
    request: StudentBulkCreate,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    if request.format == "csv":
        names = names_from_csv(request.content)
    else:
        names = parse_student_names(request.content)
    if not names:
        return fail(400, "등록할 학생 이름이 없습니다")
    if len(names) > settings.MAX_IMPORT_NAMES:
        return fail(400, f"한 번에 최대 {settings.MAX_IMPORT_NAMES}명까지 등록할 수 있습니다")

    result = await import_students(store, names, session.user.id)
    return ok(result.to_json(), f"학생 {result.success}명 등록 완료")


# ✅ [BATCH] 선택한 학생 여러 명 삭제
@router.post("/batch-delete")
async def batch_delete_students(
    request: BatchDeleteRequest,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    result = await delete_students(store, request.ids)
    await store.reconcile_if_needed(session.user.id)
    return ok(result.to_json(), f"학생 {len(result.deleted)}명 삭제 완료")


# ==========================================================
# [3단계] 동적 라우터 (개별 수정/삭제)
# ==========================================================

# ✅ [UPDATE] 학생 이름 수정
@router.put("/{student_id}")
async def update_student(student_id: str, updated: StudentCreate, store: GradeStore = Depends(get_store)):
    if store.find_student(student_id) is None:
        return fail(404, "학생 정보를 찾을 수 없습니다")
    name = updated.name.strip()
    if not name:
        return fail(400, "학생 이름을 입력하세요")
    if not await store.update_student(student_id, name):
        return fail(500, store.error)
    return ok(store.find_student(student_id).to_json(), "학생 정보가 수정되었습니다")


# ✅ [DELETE] 학생 삭제 (해당 학생의 성적도 함께 삭제)
@router.delete("/{student_id}")
async def delete_student(
    student_id: str,
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    if store.find_student(student_id) is None:
        return fail(404, "학생 정보를 찾을 수 없습니다")
    if not await store.delete_student(student_id):
        message = store.error
        await store.reconcile_if_needed(session.user.id)
        return fail(500, message)
    return ok({"id": student_id}, "학생이 삭제되었습니다")
