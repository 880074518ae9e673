from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


# ✅ 점수 한 칸 저장 (학생 × 시험)
class GradeUpsert(BaseModel):
    student_id: str = Field(..., alias="studentId")
    test_id: str = Field(..., alias="testId")
    value: float = Field(..., ge=0)

    model_config = ConfigDict(populate_by_name=True)


# ✅ 빠른 입력: 시험 하나에 대해 {학생 ID: 점수} 묶음 저장
class QuickGradeRequest(BaseModel):
    entries: Dict[str, float] = Field(..., min_length=1)
