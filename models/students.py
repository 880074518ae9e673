from sqlalchemy import Column, String, DateTime, ForeignKey
from database.db import Base, new_id, utcnow

class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    id = Column(String(36), primary_key=True, default=new_id)          # 학생 고유 ID (UUID)
    name = Column(String(100), nullable=False)                         # 학생 이름
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)  # 소유 사용자 ID
    created_at = Column(DateTime, default=utcnow, nullable=False)      # 생성 시각 (정렬 기준)
