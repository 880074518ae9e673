from typing import List, Literal

from pydantic import BaseModel, Field


# ✅ 입력용 (POST/PUT)
class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)   # 학생 이름


# ✅ 일괄 등록 (붙여넣은 텍스트 또는 CSV 내용)
class StudentBulkCreate(BaseModel):
    content: str = Field(..., description="줄바꿈/쉼표/세미콜론으로 구분한 이름 목록 또는 CSV 내용")
    format: Literal["text", "csv"] = "text"


# ✅ 여러 건 삭제 (학생/시험 공용)
class BatchDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)
