"""
services/bulk_import.py

- 학생 이름 일괄 등록
- 입력: 줄바꿈/쉼표/세미콜론으로 구분한 텍스트, 또는 첫 번째 열이 이름인 CSV
- 빈 이름과 중복 이름(같은 배치 안, 이미 등록된 학생 포함)은 건너뜀
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List

from config.settings import settings
from schemas.gradebook import Student
from services.grade_store import GradeStore

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\n,;]+")
_HEADER_NAMES = {"name", "names", "이름", "학생", "학생명"}


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    created: List[Student] = field(default_factory=list)

    def to_json(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": self.errors,
            "created": [s.to_json() for s in self.created],
        }


def parse_student_names(text: str) -> List[str]:
    """줄바꿈/쉼표/세미콜론 기준으로 나누고 공백 제거, 빈 항목 제외"""
    return [name.strip() for name in _SEPARATORS.split(text or "") if name.strip()]


def names_from_csv(content: str) -> List[str]:
    """CSV 각 행의 첫 번째 열을 이름으로 사용 (헤더 행은 제외)"""
    names = []
    for row in csv.reader(io.StringIO(content.lstrip("\ufeff"))):
        if not row:
            continue
        name = row[0].strip().strip('"').strip()
        if name and name.lower() not in _HEADER_NAMES:
            names.append(name)
    return names


def unique_names(names: Iterable[str], existing: Iterable[str] = ()) -> List[str]:
    """대소문자 무시 중복 제거 (처음 나온 표기를 유지)"""
    seen = {name.strip().casefold() for name in existing}
    result = []
    for name in names:
        name = name.strip()
        key = name.casefold()
        if not name or key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


async def import_students(store: GradeStore, names: List[str], owner_id: str) -> ImportResult:
    """이름 목록을 한 명씩 추가. 일부 실패해도 나머지는 계속 진행"""
    names = list(names)
    over_limit = names[settings.MAX_IMPORT_NAMES:]
    names = names[: settings.MAX_IMPORT_NAMES]
    to_add = unique_names(names, existing=(s.name for s in store.students))
    result = ImportResult(skipped=len(names) - len(to_add) + len(over_limit))
    if over_limit:
        # 한도를 넘은 이름은 등록하지 않고 건너뜀 수와 오류 목록에 남김
        result.errors.append(
            f"한 번에 최대 {settings.MAX_IMPORT_NAMES}명까지 등록할 수 있어 {len(over_limit)}명을 건너뛰었습니다"
        )
        logger.warning(f"학생 일괄 등록 한도 초과: {len(over_limit)}명 제외")

    for name in to_add:
        student = await store.add_student(name, owner_id)
        if student is not None:
            result.success += 1
            result.created.append(student)
        else:
            result.failed += 1
            result.errors.append(f"추가 실패: {name}")

    logger.info(f"학생 일괄 등록: 성공 {result.success}, 실패 {result.failed}, 건너뜀 {result.skipped}")
    if result.success:
        store.notifier.success(f"학생 {result.success}명이 추가되었습니다")
    if result.failed:
        store.notifier.error(f"학생 {result.failed}명을 추가하지 못했습니다")
    return result
