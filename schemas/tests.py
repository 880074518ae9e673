from pydantic import BaseModel, ConfigDict, Field


# ✅ 입력용 (POST/PUT) - JSON 키는 maxGrade
class TestCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)   # 시험 이름
    max_grade: float = Field(..., ge=1, alias="maxGrade")  # 만점

    model_config = ConfigDict(populate_by_name=True)
