"""
services/template_service.py

- 현재 시험 구성(이름 + 만점)을 템플릿으로 저장하고, 나중에 그대로 다시 생성
- 템플릿 적용 시 시험마다 store.add_test 호출 (생성된 시험은 템플릿과 연결을 남기지 않음)
"""

import logging
from typing import List, Optional

from schemas.gradebook import GradeTemplate, Test
from services.data_client import DataClient, DataStoreError
from services.field_mapping import decode, decode_many, encode
from services.grade_store import GradeStore

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(self, client: DataClient, store: GradeStore):
        self.client = client
        self.store = store

    @property
    def notifier(self):
        return self.store.notifier

    async def fetch_templates(self, owner_id: str) -> Optional[List[GradeTemplate]]:
        try:
            result = await (
                self.client.table("grade_templates")
                .select("*")
                .eq("user_id", owner_id)
                .order("created_at", ascending=False)
                .execute_async()
            )
        except DataStoreError as e:
            logger.error(f"템플릿 조회 실패: {e!r}")
            self.notifier.error("템플릿을 불러오는 중 오류가 발생했습니다")
            return None
        return decode_many("grade_templates", result.data)

    async def save_current_as_template(
        self, owner_id: str, name: str, description: Optional[str] = None
    ) -> Optional[GradeTemplate]:
        name = (name or "").strip()
        if not name:
            self.notifier.error("템플릿 이름을 입력하세요")
            return None
        if not self.store.tests:
            self.notifier.error("템플릿으로 저장할 시험이 없습니다")
            return None

        configs = [{"name": t.name, "max_grade": t.max_grade} for t in self.store.tests]
        row = encode(
            "grade_templates",
            {
                "owner_id": owner_id,
                "name": name,
                "description": (description or "").strip() or None,
                "test_configs": configs,
            },
        )
        try:
            result = await self.client.table("grade_templates").insert(row).select().single().execute_async()
        except DataStoreError as e:
            logger.error(f"템플릿 저장 실패: {e!r}")
            self.notifier.error("템플릿을 저장하는 중 오류가 발생했습니다")
            return None

        self.notifier.success("템플릿이 저장되었습니다")
        return decode("grade_templates", result.data)

    async def get_template(self, template_id: str) -> Optional[GradeTemplate]:
        try:
            result = await self.client.table("grade_templates").select("*").eq("id", template_id).single().execute_async()
        except DataStoreError as e:
            logger.error(f"템플릿 조회 실패: id={template_id} {e!r}")
            return None
        return decode("grade_templates", result.data)

    async def apply_template(self, template_id: str, owner_id: str) -> Optional[List[Test]]:
        template = await self.get_template(template_id)
        if template is None:
            self.notifier.error("템플릿을 찾을 수 없습니다")
            return None

        created = []
        for config in template.test_configs:
            test = await self.store.add_test(config.name, config.max_grade, owner_id)
            if test is None:
                self.notifier.error("템플릿을 적용하는 중 오류가 발생했습니다")
                return created
            created.append(test)

        self.notifier.success(f"\"{template.name}\" 템플릿이 적용되었습니다")
        return created

    async def delete_template(self, template_id: str) -> bool:
        try:
            await self.client.table("grade_templates").delete().eq("id", template_id).select().single().execute_async()
        except DataStoreError as e:
            logger.error(f"템플릿 삭제 실패: {e!r}")
            self.notifier.error("템플릿을 삭제하는 중 오류가 발생했습니다")
            return False
        self.notifier.success("템플릿이 삭제되었습니다")
        return True
