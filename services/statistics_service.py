"""
services/statistics_service.py

- 학생별 평균 점수(기록된 점수의 단순 평균)와 반 평균
- 소수 첫째 자리까지 반올림, 기록이 없으면 0
"""

from typing import Dict, List

from services.grade_store import GradeStore


def _round1(value: float) -> float:
    return round(value + 1e-9, 1)


def student_averages(store: GradeStore) -> List[Dict]:
    """평균 점수 내림차순 정렬"""
    values_by_student: Dict[str, List[float]] = {}
    for grade in store.grades:
        values_by_student.setdefault(grade.student_id, []).append(grade.value)

    rows = []
    for student in store.students:
        values = values_by_student.get(student.id, [])
        average = _round1(sum(values) / len(values)) if values else 0.0
        rows.append({"id": student.id, "name": student.name, "average": average, "gradedCount": len(values)})

    return sorted(rows, key=lambda r: r["average"], reverse=True)


def class_average(averages: List[Dict]) -> float:
    if not averages:
        return 0.0
    return _round1(sum(r["average"] for r in averages) / len(averages))
