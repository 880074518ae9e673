import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from services.grade_store import GradeStore

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_json(self) -> dict:
        return {"deleted": self.deleted, "failed": self.failed}


async def _delete_each(ids: Iterable[str], find_one, delete_one) -> BatchResult:
    result = BatchResult()
    # 순서대로 하나씩 삭제 (각 삭제는 성적 → 본 행 두 단계)
    for record_id in dict.fromkeys(ids):
        if find_one(record_id) is None:
            # 로컬에 없는 ID는 원격 호출 없이 실패로 처리
            result.failed.append(record_id)
            continue
        if await delete_one(record_id):
            result.deleted.append(record_id)
        else:
            result.failed.append(record_id)
    return result


async def delete_students(store: GradeStore, ids: Iterable[str]) -> BatchResult:
    result = await _delete_each(ids, store.find_student, store.delete_student)
    logger.info(f"학생 일괄 삭제: 성공 {len(result.deleted)}, 실패 {len(result.failed)}")
    if result.deleted:
        store.notifier.success(f"학생 {len(result.deleted)}명이 삭제되었습니다")
    return result


async def delete_tests(store: GradeStore, ids: Iterable[str]) -> BatchResult:
    result = await _delete_each(ids, store.find_test, store.delete_test)
    logger.info(f"시험 일괄 삭제: 성공 {len(result.deleted)}, 실패 {len(result.failed)}")
    if result.deleted:
        store.notifier.success(f"시험 {len(result.deleted)}개가 삭제되었습니다")
    return result
