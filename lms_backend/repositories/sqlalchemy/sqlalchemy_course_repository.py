from typing import Any, List, Optional
from sqlalchemy.orm import Session, joinedload
from lms_backend.database import models
from lms_backend.repositories.interfaces import ICourseRepository

class SqlalchemyCourseRepository(ICourseRepository):
    def __init__(self, db_session: Session):
        self.db = db_session
        # 엔티티 종류별 조회 함수 테이블
        self._entity_lookup = {
            models.EntityKind.COURSE: self.find_by_id,
            models.EntityKind.PHASE: self.find_phase,
            models.EntityKind.WEEK: self._find_week,
            models.EntityKind.BATCH_COURSE: self.find_batch_course,
            models.EntityKind.ENROLLMENT: self._find_enrollment,
        }

    def create(self, course_model: models.Course) -> models.Course:
        self.db.add(course_model)
        self.db.commit()
        self.db.refresh(course_model)
        return course_model

    def find_by_id(self, course_id: int) -> Optional[models.Course]:
        return self.db.query(models.Course).filter(models.Course.id == course_id).first()

    def find_by_hash(self, course_hash: str) -> Optional[models.Course]:
        return self.db.query(models.Course).filter(models.Course.hash == course_hash).first()

    def hash_exists(self, course_hash: str) -> bool:
        query = self.db.query(models.Course.id).filter(models.Course.hash == course_hash)
        return self.db.query(query.exists()).scalar()

    def list_courses(self, course_id: Optional[int] = None) -> List[models.Course]:
        query = self.db.query(models.Course)
        if course_id is not None:
            query = query.filter(models.Course.id == course_id)
        return query.order_by(models.Course.id.asc()).all()

    def find_phase(self, phase_id: int) -> Optional[models.Phase]:
        return self.db.query(models.Phase).options(
            joinedload(models.Phase.course)
        ).filter(models.Phase.id == phase_id).first()

    def find_batch_course(self, batch_course_id: int) -> Optional[models.BatchCourse]:
        return self.db.query(models.BatchCourse).filter(models.BatchCourse.id == batch_course_id).first()

    def list_batch_courses_by_course_ids(self, course_ids: List[int]) -> List[models.BatchCourse]:
        if not course_ids:
            return []
        return self.db.query(models.BatchCourse).options(
            joinedload(models.BatchCourse.batch)
        ).filter(
            models.BatchCourse.course_id.in_(course_ids)
        ).order_by(models.BatchCourse.id.asc()).all()

    def find_entity(self, kind: models.EntityKind, entity_id: int) -> Optional[Any]:
        return self._entity_lookup[kind](entity_id)

    def _find_week(self, week_id: int) -> Optional[models.Week]:
        return self.db.query(models.Week).filter(models.Week.id == week_id).first()

    def _find_enrollment(self, enrollment_id: int) -> Optional[models.Enrollment]:
        return self.db.query(models.Enrollment).filter(models.Enrollment.id == enrollment_id).first()
