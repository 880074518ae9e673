"""
services/store_registry.py

- 소유자 ID → GradeStore 매핑 (앱 조립 지점에서 하나만 생성해 의존성으로 주입)
- 인증 클라이언트의 SIGNED_OUT 이벤트를 받으면 해당 소유자의 저장소를 비우고 제거
- 로그아웃 없이 토큰이 만료된 소유자의 저장소는 STORE_IDLE_MINUTES 동안 접근이 없으면 제거
"""

import logging
import time
from typing import Callable, Dict, Optional

from config.settings import settings
from services.auth_service import SIGNED_OUT, AuthClient, AuthSession
from services.data_client import DataClient
from services.grade_store import GradeStore
from services.notifications import NotificationCenter

logger = logging.getLogger(__name__)


class StoreRegistry:
    def __init__(
        self,
        client: DataClient,
        auth: Optional[AuthClient] = None,
        idle_seconds: float = settings.STORE_IDLE_MINUTES * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._stores: Dict[str, GradeStore] = {}
        self._last_used: Dict[str, float] = {}
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._subscription = auth.on_auth_state_change(self._on_auth_event) if auth else None

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if event == SIGNED_OUT and session is not None:
            self.drop(session.user.id)

    def get(self, owner_id: str) -> GradeStore:
        self.prune_idle()
        store = self._stores.get(owner_id)
        if store is None:
            store = GradeStore(self._client.for_owner(owner_id), NotificationCenter())
            self._stores[owner_id] = store
        self._last_used[owner_id] = self._clock()
        return store

    async def get_loaded(self, owner_id: str) -> GradeStore:
        """처음 접근하는 소유자라면 전체 데이터를 먼저 불러옴"""
        store = self.get(owner_id)
        if not store.loaded:
            await store.fetch_all(owner_id)
        return store

    def client_for(self, owner_id: str) -> DataClient:
        return self._client.for_owner(owner_id)

    def drop(self, owner_id: str) -> None:
        self._last_used.pop(owner_id, None)
        store = self._stores.pop(owner_id, None)
        if store is not None:
            store.clear()
            logger.info(f"저장소 해제: owner={owner_id}")

    def prune_idle(self) -> int:
        """오래 접근하지 않은 소유자의 저장소 해제. 해제한 개수 반환"""
        cutoff = self._clock() - self.idle_seconds
        idle = [owner_id for owner_id, used in self._last_used.items() if used < cutoff]
        for owner_id in idle:
            self.drop(owner_id)
        return len(idle)

    def __contains__(self, owner_id: str) -> bool:
        return owner_id in self._stores
