from typing import Optional

from pydantic import BaseModel, Field


# ✅ 현재 시험 구성을 템플릿으로 저장
class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
