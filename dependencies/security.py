from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException

from services.auth_service import AuthClient, AuthSession, auth_client
from services.data_client import data_client
from services.grade_store import GradeStore
from services.store_registry import StoreRegistry

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]

# ✅ 앱 전역 소유자별 저장소 모음 (로그아웃 이벤트 구독)
registry = StoreRegistry(data_client, auth_client)


def get_auth_client() -> AuthClient:
    return auth_client


def get_registry() -> StoreRegistry:
    return registry


def bearer_token(authorization: AuthHeader = None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid auth scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


def get_current_session(
    token: str = Depends(bearer_token),
    auth: AuthClient = Depends(get_auth_client),
) -> AuthSession:
    session = auth.get_session(token)
    if session is None:
        raise HTTPException(
            status_code=401,
            detail="로그인이 필요합니다",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_store(
    session: AuthSession = Depends(get_current_session),
    registry: StoreRegistry = Depends(get_registry),
) -> GradeStore:
    """로그인한 사용자의 저장소 (처음 접근 시 전체 데이터 로드)"""
    return await registry.get_loaded(session.user.id)
