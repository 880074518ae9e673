from fastapi import APIRouter, Depends

from dependencies.security import get_current_session, get_store
from services.auth_service import AuthSession
from services.grade_store import GradeStore
from services.statistics_service import class_average, student_averages
from utils.responses import fail, ok

router = APIRouter(prefix="/gradebook", tags=["성적부"])


# ✅ [READ] 전체 상태 (학생/시험/성적 + 학생별 요약 + 전체 만점 합)
@router.get("")
def read_gradebook(store: GradeStore = Depends(get_store)):
    return ok(store.snapshot(), "성적부 조회 완료")


# ✅ [REFRESH] 원격 저장소 기준으로 다시 불러오기
@router.post("/refresh")
async def refresh_gradebook(
    session: AuthSession = Depends(get_current_session),
    store: GradeStore = Depends(get_store),
):
    if not await store.reconcile(session.user.id):
        return fail(500, store.error)
    return ok(store.snapshot(), "성적부를 다시 불러왔습니다")


# ✅ [SUMMARY] 학생별 평균 / 반 평균
@router.get("/performance")
def read_performance(store: GradeStore = Depends(get_store)):
    averages = student_averages(store)
    return ok(
        {"students": averages, "classAverage": class_average(averages)},
        "성적 통계 조회 완료",
    )


# ✅ [READ] 쌓인 알림(토스트)을 꺼내옴
@router.get("/notifications")
def read_notifications(store: GradeStore = Depends(get_store)):
    return ok([n.to_json() for n in store.notifier.drain()], "알림 조회 완료")
