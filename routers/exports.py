import logging
from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from dependencies.security import get_store
from services.export_service import export_service
from services.grade_store import GradeStore
from utils.responses import fail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exports", tags=["내보내기"])


def _attachment(filename: str) -> dict:
    # 한글 파일명은 RFC 5987 형식으로 전달
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}


# ✅ [CSV] 성적표 CSV 다운로드 (엑셀 호환 BOM 포함)
@router.get("/csv")
def export_csv(store: GradeStore = Depends(get_store)):
    content = export_service.to_csv(store.formatted_students(), store.tests)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers=_attachment(f"성적표_{date.today().isoformat()}.csv"),
    )


# ✅ [PDF] 성적표 PDF 다운로드
@router.get("/pdf")
def export_pdf(store: GradeStore = Depends(get_store)):
    try:
        content = export_service.to_pdf(store.formatted_students(), store.tests)
    except Exception as e:
        logger.exception("PDF 생성 실패")
        return fail(500, f"PDF 생성 실패: {e}")
    return Response(
        content=content,
        media_type="application/pdf",
        headers=_attachment(f"성적표_{date.today().isoformat()}.pdf"),
    )
