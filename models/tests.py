from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from database.db import Base, new_id, utcnow

class Test(Base):
    __tablename__ = "tests"  # 시험 정보 테이블

    id = Column(String(36), primary_key=True, default=new_id)          # 시험 고유 ID (UUID)
    name = Column(String(100), nullable=False)                         # 시험명
    maxgrade = Column(Float, nullable=False)                           # 만점 (컬럼명은 소문자 그대로 유지)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)  # 소유 사용자 ID
    created_at = Column(DateTime, default=utcnow, nullable=False)      # 생성 시각 (정렬 기준)
