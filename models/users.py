from sqlalchemy import Column, String, DateTime
from database.db import Base, new_id, utcnow

class User(Base):
    __tablename__ = "users"  # 로그인 계정 (성적 데이터의 소유자)

    id = Column(String(36), primary_key=True, default=new_id)          # 사용자 고유 ID (UUID)
    email = Column(String(255), unique=True, index=True, nullable=False)  # 로그인 이메일
    password_hash = Column(String(255), nullable=False)                # 비밀번호 해시 (pbkdf2_sha256)
    created_at = Column(DateTime, default=utcnow, nullable=False)      # 가입 시각
