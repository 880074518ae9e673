import uuid
from datetime import datetime, timezone

from sqlalchemy import create_engine               # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base, sessionmaker  # 모델 Base 클래스 / 세션 팩토리

from config.settings import settings               # ✅ 환경변수 설정 파일 불러오기


def make_engine(url: str):
    # SQLite는 스레드 간 커넥션 공유를 허용해야 함 (저장소 호출이 워커 스레드에서 실행됨)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = make_engine(settings.DATABASE_URL)

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


def init_db(bind=None):
    """등록된 모든 모델의 테이블 생성 (이미 있으면 건너뜀)"""
    # 모델 모듈을 import 해야 Base.metadata에 테이블이 등록됨
    from models import users, students, tests, grades, grade_templates  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# ==========================================================
# [공통] 컬럼 기본값
# ==========================================================
def new_id() -> str:
    """행 고유 ID (UUID 문자열)"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # 마이크로초까지 저장해야 created_at 정렬이 삽입 순서와 일치함
    return datetime.now(timezone.utc)
