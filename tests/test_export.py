import asyncio
import csv
import io

import pytest

from services.export_service import ExportService


@pytest.fixture
def graded_store(store, owner_id):
    async def seed():
        a = await store.add_test("A", 10, owner_id)
        await store.add_test("B", 20.5, owner_id)
        s1 = await store.add_student("김하늘", owner_id)
        await store.add_student("이바다", owner_id)
        await store.update_grade(s1.id, a.id, 7)

    asyncio.run(seed())
    return store


def test_csv_has_bom_header_and_placeholders(graded_store):
    content = ExportService().to_csv(graded_store.formatted_students(), graded_store.tests)

    assert content.startswith("\ufeff".encode("utf-8"))
    rows = list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))
    assert rows[0] == ["이름", "A (10)", "B (20.5)", "총점", "백분율"]
    assert rows[1] == ["김하늘", "7", "-", "7", "70%"]
    assert rows[2] == ["이바다", "-", "-", "0", ""]


def test_render_html_lists_every_student(graded_store):
    html = ExportService().render_html(graded_store.formatted_students(), graded_store.tests, title="1학기 성적표")

    assert "<title>1학기 성적표</title>" in html
    assert "김하늘" in html and "이바다" in html
    assert "<th>A (10)</th>" in html


def test_render_html_without_students():
    html = ExportService().render_html([], [])
    assert "등록된 학생이 없습니다" in html
