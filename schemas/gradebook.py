"""
schemas/gradebook.py

- 성적 저장소(GradeStore)가 메모리에 보관하는 도메인 모델
- 필드명은 파이썬식(snake_case), JSON 응답은 camelCase 별칭(maxGrade, studentId ...)
- 모두 frozen 모델: 수정은 model_copy(update=...)로 새 객체를 만들어 교체
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ✅ 학생
class Student(DomainModel):
    id: str
    name: str
    owner_id: Optional[str] = None           # 소유 사용자 ID (DB: user_id)
    created_at: Optional[datetime] = None


# ✅ 시험
class Test(DomainModel):
    id: str
    name: str
    max_grade: float = Field(..., ge=1)      # 만점 (DB: maxgrade)
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None


# ✅ 성적 (학생 × 시험 한 쌍당 하나)
class Grade(DomainModel):
    id: str
    student_id: str                          # DB: studentid
    test_id: str                             # DB: testid
    value: float
    created_at: Optional[datetime] = None


# ✅ 템플릿에 저장되는 시험 구성 한 줄
class TestConfig(DomainModel):
    name: str
    max_grade: float = Field(..., ge=1)


# ✅ 시험 구성 템플릿
class GradeTemplate(DomainModel):
    id: str
    owner_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    test_configs: List[TestConfig] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ✅ 화면/내보내기용 학생별 성적 요약
class FormattedStudent(DomainModel):
    id: str
    name: str
    grades: Dict[str, Optional[float]]       # 시험 ID → 점수 (미채점은 None, 0과 구분)
    total: float                             # 기록된 점수 합계
    max_possible: float                      # 점수가 기록된 시험들의 만점 합계
    percentage: Optional[int] = None         # total / max_possible (반올림, 기록 없으면 None)
