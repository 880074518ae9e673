"""
services/export_service.py

- 학생별 성적 요약(formatted_students)과 시험 목록을 표 형태로 내보내기
- CSV: UTF-8 BOM 포함 (엑셀에서 한글 깨짐 방지), 미채점은 "-"
- PDF: Jinja2 템플릿 → HTML → WeasyPrint
- 백분율은 학생별 max_possible(채점된 시험의 만점 합) 기준
"""

import csv
import io
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from schemas.gradebook import FormattedStudent, Test
from utils.formatting import format_number

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

NAME_HEADER = "이름"
TOTAL_HEADER = "총점"
PERCENT_HEADER = "백분율"
UNGRADED = "-"


def header_row(tests: Sequence[Test]) -> List[str]:
    return [NAME_HEADER, *(f"{t.name} ({format_number(t.max_grade)})" for t in tests), TOTAL_HEADER, PERCENT_HEADER]


def body_rows(students: Sequence[FormattedStudent], tests: Sequence[Test]) -> List[List[str]]:
    rows = []
    for student in students:
        cells = [student.name]
        for test in tests:
            value = student.grades.get(test.id)
            cells.append(UNGRADED if value is None else format_number(value))
        cells.append(format_number(student.total))
        cells.append("" if student.percentage is None else f"{student.percentage}%")
        rows.append(cells)
    return rows


class ExportService:
    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        # 템플릿 환경 설정
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )

    def to_csv(self, students: Sequence[FormattedStudent], tests: Sequence[Test]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(header_row(tests))
        writer.writerows(body_rows(students, tests))
        return ("\ufeff" + buffer.getvalue()).encode("utf-8")

    def render_html(self, students: Sequence[FormattedStudent], tests: Sequence[Test], title: str = "학생 성적표") -> str:
        """템플릿을 렌더링하여 HTML 생성"""
        data: Dict[str, Any] = {
            "title": title,
            "headers": header_row(tests),
            "rows": body_rows(students, tests),
            "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M"),
        }
        return self.env.get_template("grade_report.html").render(**data)

    def to_pdf(self, students: Sequence[FormattedStudent], tests: Sequence[Test], title: str = "학생 성적표") -> bytes:
        """HTML을 PDF로 변환"""
        # WeasyPrint는 시스템 라이브러리(pango)를 로드하므로 PDF 요청 시점에 import
        import weasyprint

        html = self.render_html(students, tests, title)
        return weasyprint.HTML(string=html).write_pdf()


export_service = ExportService()
