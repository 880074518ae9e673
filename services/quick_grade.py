"""
services/quick_grade.py

- 시험 하나를 골라 학생 순서대로 점수를 빠르게 입력
- 기존 점수로 입력칸을 미리 채우고, 저장 전에 0 ~ 만점 범위를 확인
"""

import re
from typing import Dict, List, Optional, Set, Tuple

from schemas.gradebook import Student
from services.grade_store import GradeStore
from utils.formatting import format_number

_DECIMAL = re.compile(r"^\d*\.?\d*$")


class QuickGradeEntry:
    def __init__(self, store: GradeStore, test_id: str):
        test = store.find_test(test_id)
        if test is None:
            raise LookupError(f"시험을 찾을 수 없습니다: {test_id}")
        self.store = store
        self.test = test
        self.students: List[Student] = list(store.students)
        self.index = 0
        self.saved: Set[str] = set()
        self.inputs: Dict[str, str] = {}
        for student in self.students:
            grade = store.find_grade(student.id, test_id)
            self.inputs[student.id] = format_number(grade.value) if grade else ""

    @property
    def current(self) -> Optional[Student]:
        if 0 <= self.index < len(self.students):
            return self.students[self.index]
        return None

    def set_input(self, text: str) -> bool:
        """빈 문자열 또는 소수 형태만 받음"""
        if self.current is None or not _DECIMAL.match(text):
            return False
        self.inputs[self.current.id] = text
        return True

    def next(self) -> Optional[Student]:
        if self.index < len(self.students) - 1:
            self.index += 1
        return self.current

    def previous(self) -> Optional[Student]:
        if self.index > 0:
            self.index -= 1
        return self.current

    def range_error(self, value: float) -> Optional[str]:
        if value < 0 or value > self.test.max_grade:
            return f"점수는 0에서 {format_number(self.test.max_grade)} 사이여야 합니다"
        return None

    async def save_current(self) -> bool:
        student = self.current
        if student is None:
            return False
        text = self.inputs.get(student.id, "")
        try:
            value = float(text)
        except ValueError:
            # 빈칸이나 "." 같은 입력은 저장하지 않음
            return False

        problem = self.range_error(value)
        if problem:
            self.store.notifier.error(problem)
            return False

        grade = await self.store.update_grade(student.id, self.test.id, value)
        if grade is None:
            return False
        self.saved.add(student.id)
        return True

    async def save_and_advance(self) -> bool:
        """Enter/Tab: 저장 후 다음 학생으로"""
        saved = await self.save_current()
        self.next()
        return saved

    async def save_all(self, entries: Dict[str, float]) -> Tuple[List[str], Dict[str, str]]:
        """{학생 ID: 점수} 묶음 저장. (저장된 ID 목록, 거부된 ID → 사유) 반환"""
        saved, rejected = [], {}
        known = {s.id for s in self.students}
        for student_id, value in entries.items():
            if student_id not in known:
                rejected[student_id] = "학생을 찾을 수 없습니다"
                continue
            problem = self.range_error(value)
            if problem:
                rejected[student_id] = problem
                continue
            if await self.store.update_grade(student_id, self.test.id, value) is None:
                rejected[student_id] = self.store.error or "점수를 저장하지 못했습니다"
                continue
            self.inputs[student_id] = format_number(value)
            self.saved.add(student_id)
            saved.append(student_id)
        return saved, rejected
