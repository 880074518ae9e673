from sqlalchemy import Column, String, Float, DateTime, ForeignKey, UniqueConstraint
from database.db import Base, new_id, utcnow

class Grade(Base):
    __tablename__ = "grades"  # 학생별 시험 점수 테이블

    # ✅ (학생, 시험) 쌍마다 점수는 하나만 존재
    __table_args__ = (UniqueConstraint("studentid", "testid", name="uq_grades_student_test"),)

    id = Column(String(36), primary_key=True, default=new_id)            # 성적 고유 ID (UUID)
    studentid = Column(String(36), ForeignKey("students.id"), index=True, nullable=False)  # 학생 ID
    testid = Column(String(36), ForeignKey("tests.id"), index=True, nullable=False)        # 시험 ID
    value = Column(Float, nullable=False)                                # 점수
    created_at = Column(DateTime, default=utcnow, nullable=False)        # 생성 시각
