from sqlalchemy import Column, String, Text, JSON, DateTime, ForeignKey
from database.db import Base, new_id, utcnow

class GradeTemplate(Base):
    __tablename__ = "grade_templates"  # 시험 구성 템플릿 테이블

    id = Column(String(36), primary_key=True, default=new_id)          # 템플릿 고유 ID (UUID)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)  # 소유 사용자 ID
    name = Column(String(100), nullable=False)                         # 템플릿 이름
    description = Column(Text)                                         # 설명 (선택)
    test_configs = Column(JSON, nullable=False, default=list)          # [{"name": ..., "maxGrade": ...}, ...]
    created_at = Column(DateTime, default=utcnow, nullable=False)      # 생성 시각
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)  # 수정 시각
