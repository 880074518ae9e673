"""
services/field_mapping.py

- DB 컬럼명(studentid, testid, maxgrade, user_id)과 도메인 필드명(student_id, test_id,
  max_grade, owner_id) 사이의 양방향 변환을 한 곳에서 담당
- 조회 결과, insert/update 결과 모두 이 모듈을 거쳐 도메인 모델이 됨
- 상태 없는 순수 함수만 둠: encode(table, decode(table, row)) == row
"""

import json
from typing import Any, Dict, List, Mapping, Type

from pydantic import BaseModel

from schemas.gradebook import Grade, GradeTemplate, Student, Test

# ==========================================================
# [1단계] 테이블별 컬럼 ↔ 필드 매핑
# ==========================================================
# 매핑에 없는 컬럼은 이름 그대로 사용 (id, name, value, created_at ...)
COLUMN_TO_FIELD: Dict[str, Dict[str, str]] = {
    "students": {"user_id": "owner_id"},
    "tests": {"maxgrade": "max_grade", "user_id": "owner_id"},
    "grades": {"studentid": "student_id", "testid": "test_id"},
    "grade_templates": {"user_id": "owner_id"},
}

FIELD_TO_COLUMN: Dict[str, Dict[str, str]] = {
    table: {field: column for column, field in mapping.items()}
    for table, mapping in COLUMN_TO_FIELD.items()
}

MODELS: Dict[str, Type[BaseModel]] = {
    "students": Student,
    "tests": Test,
    "grades": Grade,
    "grade_templates": GradeTemplate,
}


def column_for(table: str, field: str) -> str:
    """도메인 필드명 → DB 컬럼명 (필터 조건 작성용)"""
    return FIELD_TO_COLUMN[table].get(field, field)


# ==========================================================
# [2단계] 템플릿 test_configs (JSON 안쪽은 maxGrade 표기)
# ==========================================================
def _decode_test_configs(raw: Any) -> List[Dict[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, str):
        # 텍스트 컬럼으로 저장된 과거 데이터 대응
        raw = json.loads(raw or "[]")
    return [{"name": item["name"], "max_grade": item["maxGrade"]} for item in raw]


def _encode_test_configs(configs: Any) -> List[Dict[str, Any]]:
    encoded = []
    for item in configs:
        if isinstance(item, BaseModel):
            item = item.model_dump()
        encoded.append({"name": item["name"], "maxGrade": item["max_grade"]})
    return encoded


# ==========================================================
# [3단계] 변환 함수
# ==========================================================
def to_fields(table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
    """DB 행(dict) → 도메인 필드 dict"""
    mapping = COLUMN_TO_FIELD[table]
    fields = {mapping.get(column, column): value for column, value in row.items()}
    if table == "grade_templates" and "test_configs" in fields:
        fields["test_configs"] = _decode_test_configs(fields["test_configs"])
    return fields


def encode(table: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """도메인 필드 dict 또는 모델 → DB 행(dict)"""
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_none=True)
    mapping = FIELD_TO_COLUMN[table]
    row = {mapping.get(field, field): value for field, value in fields.items()}
    if table == "grade_templates" and "test_configs" in row:
        row["test_configs"] = _encode_test_configs(row["test_configs"])
    return row


def decode(table: str, row: Mapping[str, Any]) -> BaseModel:
    """DB 행(dict) → 도메인 모델 (Student / Test / Grade / GradeTemplate)"""
    return MODELS[table].model_validate(to_fields(table, row))


def decode_many(table: str, rows: List[Mapping[str, Any]]) -> list:
    return [decode(table, row) for row in rows or []]
