from fastapi import APIRouter, Depends

from dependencies.security import get_current_session, get_registry, get_store
from schemas.templates import TemplateCreate
from services.auth_service import AuthSession
from services.grade_store import GradeStore
from services.store_registry import StoreRegistry
from services.template_service import TemplateService
from utils.responses import fail, ok

router = APIRouter(prefix="/templates", tags=["시험 템플릿"])


def get_template_service(
    session: AuthSession = Depends(get_current_session),
    registry: StoreRegistry = Depends(get_registry),
    store: GradeStore = Depends(get_store),
) -> TemplateService:
    return TemplateService(registry.client_for(session.user.id), store)


def _last_message(service: TemplateService, default: str) -> str:
    notice = service.notifier.last
    return notice.message if notice and notice.level == "error" else default


# ✅ [READ] 내 템플릿 목록 (최신순)
@router.get("")
async def read_templates(
    session: AuthSession = Depends(get_current_session),
    service: TemplateService = Depends(get_template_service),
):
    templates = await service.fetch_templates(session.user.id)
    if templates is None:
        return fail(500, _last_message(service, "템플릿을 불러오지 못했습니다"))
    return ok([t.to_json() for t in templates], "템플릿 목록 조회 완료")


# ✅ [CREATE] 현재 시험 구성을 템플릿으로 저장
@router.post("")
async def create_template(
    request: TemplateCreate,
    session: AuthSession = Depends(get_current_session),
    service: TemplateService = Depends(get_template_service),
):
    template = await service.save_current_as_template(session.user.id, request.name, request.description)
    if template is None:
        return fail(400, _last_message(service, "템플릿을 저장하지 못했습니다"))
    return ok(template.to_json(), "템플릿이 저장되었습니다")


# ✅ [APPLY] 템플릿의 시험들을 새로 생성
@router.post("/{template_id}/apply")
async def apply_template(
    template_id: str,
    session: AuthSession = Depends(get_current_session),
    service: TemplateService = Depends(get_template_service),
):
    created = await service.apply_template(template_id, session.user.id)
    if created is None:
        return fail(404, "템플릿을 찾을 수 없습니다")
    return ok([t.to_json() for t in created], f"시험 {len(created)}개가 생성되었습니다")


# ✅ [DELETE] 템플릿 삭제
@router.delete("/{template_id}")
async def delete_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    if not await service.delete_template(template_id):
        return fail(404, "템플릿을 찾을 수 없습니다")
    return ok({"id": template_id}, "템플릿이 삭제되었습니다")
