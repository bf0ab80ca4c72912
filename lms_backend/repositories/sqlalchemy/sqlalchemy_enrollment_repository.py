from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError
from lms_backend.database import models
from lms_backend.repositories.interfaces import IEnrollmentRepository
from lms_backend.services.exceptions import ConcurrentUpdateError, EnrollmentExistsError

class SqlalchemyEnrollmentRepository(IEnrollmentRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, enrollment_model: models.Enrollment) -> models.Enrollment:
        self.db.add(enrollment_model)
        try:
            self.db.commit()
        except IntegrityError as e:
            # 부분 유니크 인덱스(uq_enrollments_live_pair) 위반: 동시에 들어온 중복 수강 신청
            self.db.rollback()
            raise EnrollmentExistsError("User is already enrolled in this batch course.") from e
        self.db.refresh(enrollment_model)
        return enrollment_model

    def find_by_id(self, enrollment_id: int) -> Optional[models.Enrollment]:
        return self.db.query(models.Enrollment).filter(models.Enrollment.id == enrollment_id).first()

    def find_live_by_pair(self, user_id: int, batch_course_id: int) -> Optional[models.Enrollment]:
        return self.db.query(models.Enrollment).filter(
            models.Enrollment.user_id == user_id,
            models.Enrollment.batch_course_id == batch_course_id,
            models.Enrollment.status != "dropped"
        ).first()

    def list_active_by_user(self, user_id: int) -> List[models.Enrollment]:
        return self.db.query(models.Enrollment).options(
            joinedload(models.Enrollment.batch_course).joinedload(models.BatchCourse.course),
            joinedload(models.Enrollment.batch_course).joinedload(models.BatchCourse.batch)
        ).filter(
            models.Enrollment.user_id == user_id,
            models.Enrollment.status == "active"
        ).order_by(models.Enrollment.enrollment_date.asc(), models.Enrollment.id.asc()).all()

    def save(self, enrollment: models.Enrollment) -> models.Enrollment:
        try:
            self.db.commit()
        except IntegrityError as e:
            # dropped 수강을 되살리는 사이 같은 쌍에 새 수강이 생긴 경우
            self.db.rollback()
            raise EnrollmentExistsError("User is already enrolled in this batch course.") from e
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentUpdateError(
                f"Enrollment '{enrollment.id}' was modified by another request."
            ) from e
        self.db.refresh(enrollment)
        return enrollment
