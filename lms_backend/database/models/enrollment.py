from sqlalchemy import (
    Column, Integer, String, Float, DateTime, ForeignKey, Index, CheckConstraint, text, func
)
from sqlalchemy.orm import relationship
from ..database import Base

ENROLLMENT_STATUSES = ("active", "completed", "dropped")

class Enrollment(Base):
    """
    사용자의 기수별 과정(BatchCourse) 수강 정보를 나타냅니다.
    (user, batch_course) 쌍마다 'active' 또는 'completed' 상태의 수강은 최대 하나이며,
    'dropped' 수강은 이력으로 남고 재수강을 막지 않습니다.
    수강 기록은 물리적으로 삭제하지 않고 'dropped' 상태로 전환합니다.
    version은 진도율 동시 수정 시 마지막 쓰기가 다른 쓰기를 덮어쓰지 않도록 하는 낙관적 잠금 컬럼입니다.
    """
    __tablename__ = "enrollments"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'completed', 'dropped')", name="ck_enrollments_status"),
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_enrollments_progress_range",
        ),
        Index(
            "uq_enrollments_live_pair",
            "user_id",
            "batch_course_id",
            unique=True,
            sqlite_where=text("status != 'dropped'"),
            postgresql_where=text("status != 'dropped'"),
        ),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    batch_course_id = Column(Integer, ForeignKey("batch_courses.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="active")
    progress_percentage = Column(Float, nullable=False, default=0)
    enrollment_date = Column(DateTime, server_default=func.now())
    completion_date = Column(DateTime)
    dropped_at = Column(DateTime)
    enrolled_by = Column(Integer, ForeignKey("users.id"))
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="enrollments", foreign_keys=[user_id])
    batch_course = relationship("BatchCourse")
