from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from ..database import Base

class Course(Base):
    """
    하나의 교육 과정(강의)을 나타냅니다.
    hash는 URL에 노출되는 짧은 공개 식별자로, 생성 시 충돌 검사를 거쳐 전역적으로 유일합니다.
    """
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String)
    hash = Column(String, unique=True, nullable=False, index=True)
    status = Column(String, nullable=False, default="draft")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    phases = relationship("Phase", back_populates="course")
    batch_courses = relationship("BatchCourse", back_populates="course")


class Batch(Base):
    """
    같은 기간에 함께 수강하는 수강생 기수(cohort)입니다. (예: 'Mar-2025')
    """
    __tablename__ = "batches"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    batch_code = Column(String, unique=True, nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    status = Column(String, nullable=False, default="upcoming")

    batch_courses = relationship("BatchCourse", back_populates="batch")


class BatchCourse(Base):
    """
    기수(Batch)와 과정(Course)의 연결입니다.
    수강(Enrollment)은 이 연결을 통해 과정에 도달하며, 접근 검사 시 Phase의 course_id와 비교됩니다.
    """
    __tablename__ = "batch_courses"
    __table_args__ = (
        UniqueConstraint("batch_id", "course_id", name="uq_batch_courses_pair"),
    )
    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, nullable=False, default=True)

    batch = relationship("Batch", back_populates="batch_courses")
    course = relationship("Course", back_populates="batch_courses")


class Group(Base):
    """기수 내 소그룹. 그룹 세션(GroupSession)의 대상입니다."""
    __tablename__ = "groups"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False)
