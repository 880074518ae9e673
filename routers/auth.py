import logging

from fastapi import APIRouter, Depends

from dependencies.security import bearer_token, get_auth_client, get_current_session
from schemas.auth import Credentials
from services.auth_service import AuthClient, AuthError, AuthSession
from utils.responses import fail, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["인증"])


# ✅ [SIGNUP] 회원 가입 (가입과 동시에 로그인 세션 발급)
@router.post("/signup")
def signup(request: Credentials, auth: AuthClient = Depends(get_auth_client)):
    try:
        session = auth.sign_up(request.email, request.password)
    except AuthError as e:
        return fail(409, str(e))
    return ok(session.to_json(), "회원 가입이 완료되었습니다")


# ✅ [LOGIN] 로그인
@router.post("/login")
def login(request: Credentials, auth: AuthClient = Depends(get_auth_client)):
    try:
        session = auth.sign_in_with_password(request.email, request.password)
    except AuthError as e:
        return fail(401, str(e))
    return ok(session.to_json(), "로그인 성공")


# ✅ [LOGOUT] 로그아웃 (해당 사용자의 저장소도 함께 비움)
@router.post("/logout")
def logout(token: str = Depends(bearer_token), auth: AuthClient = Depends(get_auth_client)):
    if not auth.sign_out(token):
        return fail(401, "유효하지 않은 세션입니다")
    return ok(None, "로그아웃되었습니다")


# ✅ [SESSION] 현재 세션 조회
@router.get("/session")
def read_session(session: AuthSession = Depends(get_current_session)):
    return ok(session.to_json(), "세션 조회 성공")
