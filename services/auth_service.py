"""
services/auth_service.py

- 로그인/세션 발급을 담당하는 인증 클라이언트
  get_session(token), on_auth_state_change(callback), sign_out(token)
- 비밀번호: passlib (pbkdf2_sha256), 세션 토큰: PyJWT (HS256, 만료 시간 포함)
- 상태 변경 이벤트: SIGNED_IN / SIGNED_OUT
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError

from config.settings import settings
from database.db import SessionLocal
from models.users import User as UserModel

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    expires_at: datetime
    user: AuthUser

    def to_json(self) -> dict:
        return {
            "accessToken": self.access_token,
            "tokenType": "bearer",
            "expiresAt": self.expires_at.isoformat(),
            "user": {"id": self.user.id, "email": self.user.email},
        }


class AuthError(Exception):
    """인증 실패 (잘못된 자격 증명, 중복 가입 등)"""


AuthCallback = Callable[[str, Optional[AuthSession]], None]


class Subscription:
    def __init__(self, callbacks: List[AuthCallback], callback: AuthCallback):
        self._callbacks = callbacks
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._callbacks:
            self._callbacks.remove(self._callback)


class AuthClient:
    def __init__(
        self,
        session_factory=SessionLocal,
        secret_key: str = settings.AUTH_SECRET_KEY,
        algorithm: str = settings.AUTH_ALGORITHM,
        expire_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.session_factory = session_factory
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self._callbacks: List[AuthCallback] = []
        self._revoked: Dict[str, datetime] = {}   # 로그아웃된 토큰 jti → 만료 시각

    # ==========================================================
    # [1단계] 가입 / 로그인
    # ==========================================================
    def sign_up(self, email: str, password: str) -> AuthSession:
        email = email.strip().lower()
        with self.session_factory() as db:
            user = UserModel(email=email, password_hash=pwd_context.hash(password))
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise AuthError("이미 가입된 이메일입니다")
            db.refresh(user)
            auth_user = AuthUser(id=user.id, email=user.email)
        logger.info(f"회원 가입: {email}")
        return self._start_session(auth_user)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = email.strip().lower()
        with self.session_factory() as db:
            user = db.query(UserModel).filter(UserModel.email == email).first()
            if user is None or not pwd_context.verify(password, user.password_hash):
                logger.warning(f"로그인 실패: {email}")
                raise AuthError("잘못된 이메일 또는 비밀번호입니다")
            auth_user = AuthUser(id=user.id, email=user.email)
        return self._start_session(auth_user)

    def _start_session(self, user: AuthUser) -> AuthSession:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        token = jwt.encode(
            {"sub": user.id, "email": user.email, "exp": expires_at, "jti": uuid.uuid4().hex},
            self.secret_key,
            algorithm=self.algorithm,
        )
        session = AuthSession(access_token=token, expires_at=expires_at, user=user)
        self._emit(SIGNED_IN, session)
        return session

    # ==========================================================
    # [2단계] 세션 조회 / 로그아웃
    # ==========================================================
    def get_session(self, access_token: str) -> Optional[AuthSession]:
        """유효한 토큰이면 세션, 만료/위조/로그아웃된 토큰이면 None"""
        try:
            payload = jwt.decode(
                access_token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "email", "jti"]},
            )
        except jwt.PyJWTError as e:
            logger.debug(f"토큰 검증 실패: {e}")
            return None
        if payload.get("jti") in self._revoked:
            return None
        return AuthSession(
            access_token=access_token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            user=AuthUser(id=payload["sub"], email=payload["email"]),
        )

    def sign_out(self, access_token: str) -> bool:
        session = self.get_session(access_token)
        if session is None:
            return False
        payload = jwt.decode(access_token, self.secret_key, algorithms=[self.algorithm])
        self.prune_revoked()
        self._revoked[payload["jti"]] = session.expires_at
        logger.info(f"로그아웃: {session.user.email}")
        self._emit(SIGNED_OUT, session)
        return True

    def prune_revoked(self, now: Optional[datetime] = None) -> int:
        """만료 시각이 지난 jti는 서명 검증에서 이미 걸러지므로 목록에서 제거"""
        now = now or datetime.now(timezone.utc)
        expired = [jti for jti, expires_at in self._revoked.items() if expires_at <= now]
        for jti in expired:
            del self._revoked[jti]
        return len(expired)

    @property
    def revoked_count(self) -> int:
        return len(self._revoked)

    # ==========================================================
    # [3단계] 상태 변경 구독
    # ==========================================================
    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(self._callbacks, callback)

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for callback in list(self._callbacks):
            callback(event, session)


# ✅ 앱 전역 인증 클라이언트
auth_client = AuthClient()
