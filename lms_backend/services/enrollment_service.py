import logging
import math
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from lms_backend.database import models
from lms_backend.repositories.interfaces import (
    ICourseRepository, IEnrollmentRepository, IUserRepository
)
from lms_backend.services.exceptions import (
    AmbiguousCourseReferenceError, BatchCourseNotFoundError, ConcurrentUpdateError,
    CourseNotFoundError, DataIntegrityError, EnrollmentExistsError, EnrollmentNotFoundError,
    EnrollmentRequiredError, PhaseNotFoundError, UserNotFoundError, ValidationError
)
from lms_backend.utils.short_hash import is_integer_id

logger = logging.getLogger(__name__)

NOT_ENROLLED_REASON = "not enrolled in course containing this phase"


class PhaseAccess(NamedTuple):
    allowed: bool
    course: Optional[models.Course]
    enrollment: Optional[models.Enrollment]
    reason: Optional[str] = None


class EnrollmentService:
    """수강(Enrollment) 정보를 기반으로 과정/Phase 접근 여부를 판정하고, 수강 상태를 관리합니다."""

    def __init__(self, enrollment_repo: IEnrollmentRepository, course_repo: ICourseRepository,
                 user_repo: IUserRepository):
        """
        EnrollmentService를 초기화합니다.

        Args:
            enrollment_repo: 수강 데이터에 접근하기 위한 리포지토리.
            course_repo: 과정, Phase, 기수 과정 데이터에 접근하기 위한 리포지토리.
            user_repo: 사용자 존재 여부 확인용 리포지토리.
        """
        self.enrollment_repo = enrollment_repo
        self.course_repo = course_repo
        self.user_repo = user_repo

    # ------------------------------------------------------------------
    # 접근 판정 (EnrollmentGate)
    # ------------------------------------------------------------------

    def _active_course_enrollments(self, user_id: int) -> Dict[int, Tuple[models.Course, models.Enrollment]]:
        """활성 수강을 과정 ID별로 묶습니다. 같은 과정을 여러 기수로 수강 중이면 가장 먼저 등록한 수강을 사용합니다."""
        by_course: Dict[int, Tuple[models.Course, models.Enrollment]] = {}
        for enrollment in self.enrollment_repo.list_active_by_user(user_id):
            batch_course = enrollment.batch_course
            if batch_course is None or batch_course.course is None:
                logger.warning(
                    "Skipping enrollment %s: batch course %s has no resolvable course.",
                    enrollment.id, enrollment.batch_course_id,
                )
                continue
            by_course.setdefault(batch_course.course.id, (batch_course.course, enrollment))
        return by_course

    def can_access_phase(self, user_id: int, phase_id: int) -> PhaseAccess:
        """
        사용자가 Phase가 속한 과정에 활성 수강 중인지 판정합니다.

        이전에 수강했더라도 현재 'dropped' 또는 'completed' 상태라면 접근할 수 없습니다.

        Returns:
            PhaseAccess(allowed, course, enrollment, reason).

        Raises:
            PhaseNotFoundError: 해당 ID의 Phase를 찾을 수 없을 때.
            DataIntegrityError: Phase가 존재하지 않는 과정을 참조할 때.
        """
        enrolled = self._active_course_enrollments(user_id)

        phase = self.course_repo.find_phase(phase_id)
        if not phase:
            raise PhaseNotFoundError(f"Phase with id '{phase_id}' not found.")
        if phase.course is None:
            logger.warning("Phase %s references missing course %s.", phase.id, phase.course_id)
            raise DataIntegrityError(f"Phase '{phase_id}' references a missing course.")

        match = enrolled.get(phase.course.id)
        if match is None:
            logger.info("Enrollment gate denied: user=%s phase=%s course=%s", user_id, phase_id, phase.course.id)
            return PhaseAccess(False, phase.course, None, NOT_ENROLLED_REASON)
        return PhaseAccess(True, match[0], match[1])

    def resolve_course_by_id_or_hash(self, user_id: int, course_identifier: str) -> Tuple[models.Course, models.Enrollment]:
        """
        정수 ID 또는 공개 hash로 사용자가 활성 수강 중인 과정을 찾습니다.

        식별자가 사용자의 수강 과정 중 둘 이상과 일치하면 임의로 하나를 고르지 않고 예외를 발생시킵니다.

        Returns:
            (course, enrollment) 튜플.

        Raises:
            AmbiguousCourseReferenceError: 식별자가 둘 이상의 수강 과정과 일치할 때.
            CourseNotFoundError: 식별자와 일치하는 과정이 없을 때.
            EnrollmentRequiredError: 과정은 존재하지만 활성 수강 중이 아닐 때.
        """
        identifier = (course_identifier or "").strip()
        if not identifier:
            raise ValidationError("Course identifier must not be empty.")

        enrolled = self._active_course_enrollments(user_id)
        candidates = [
            (course, enrollment)
            for course_id, (course, enrollment) in sorted(enrolled.items())
            if (is_integer_id(identifier) and course_id == int(identifier)) or course.hash == identifier
        ]
        if len(candidates) > 1:
            logger.warning(
                "Course identifier '%s' matches %d enrolled courses of user %s.",
                identifier, len(candidates), user_id,
            )
            raise AmbiguousCourseReferenceError(
                f"Course identifier '{identifier}' matches more than one enrolled course."
            )
        if candidates:
            return candidates[0]

        if is_integer_id(identifier):
            course = self.course_repo.find_entity(models.EntityKind.COURSE, int(identifier))
        else:
            course = self.course_repo.find_by_hash(identifier)
        if not course:
            raise CourseNotFoundError(f"Course '{identifier}' not found.")
        logger.info("Enrollment gate denied: user=%s course=%s", user_id, course.id)
        raise EnrollmentRequiredError("not enrolled in this course")

    def list_enrolled_courses(self, user_id: int) -> List[Dict[str, Any]]:
        """사용자의 활성 수강 목록을 기수, 과정 요약과 함께 조회합니다."""
        self._get_user(user_id)
        result = []
        for enrollment in self.enrollment_repo.list_active_by_user(user_id):
            batch_course = enrollment.batch_course
            if batch_course is None or batch_course.course is None:
                logger.warning("Skipping enrollment %s with unresolvable batch course.", enrollment.id)
                continue
            data = self._enrollment_to_dict(enrollment)
            data["batch"] = {"id": batch_course.batch.id, "name": batch_course.batch.name} if batch_course.batch else None
            data["course"] = {
                "id": batch_course.course.id,
                "title": batch_course.course.title,
                "hash": batch_course.course.hash,
            }
            result.append(data)
        return result

    # ------------------------------------------------------------------
    # 수강 상태 관리
    # ------------------------------------------------------------------

    def create_enrollment(self, user_id: int, batch_course_id: int, enrolled_by: Optional[int] = None) -> Dict[str, Any]:
        """
        새로운 수강을 생성합니다. 같은 기수 과정에 'dropped'가 아닌 수강이 있으면 실패합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
            BatchCourseNotFoundError: 해당 ID의 기수 과정을 찾을 수 없을 때.
            EnrollmentExistsError: 이미 active 또는 completed 수강이 있을 때.
        """
        self._get_user(user_id)
        if not self.course_repo.find_batch_course(batch_course_id):
            raise BatchCourseNotFoundError(f"Batch course with id '{batch_course_id}' not found.")
        if self.enrollment_repo.find_live_by_pair(user_id, batch_course_id):
            raise EnrollmentExistsError("User is already enrolled in this batch course.")

        enrollment = models.Enrollment(
            user_id=user_id,
            batch_course_id=batch_course_id,
            status="active",
            progress_percentage=0,
            enrolled_by=enrolled_by,
        )
        created = self.enrollment_repo.create(enrollment)
        logger.info("Enrollment %s created: user=%s batch_course=%s", created.id, user_id, batch_course_id)
        return self._enrollment_to_dict(created)

    def update_enrollment_status(self, enrollment_id: int, status: str) -> Dict[str, Any]:
        """
        수강 상태를 변경합니다. 'completed'로 처음 바뀔 때 completion_date를 기록합니다.

        Raises:
            ValidationError: 정의되지 않은 상태 값일 때.
            EnrollmentNotFoundError: 해당 ID의 수강을 찾을 수 없을 때.
            EnrollmentExistsError: dropped 수강을 되살리려는데 같은 쌍에 다른 수강이 이미 있을 때.
        """
        if status not in models.ENROLLMENT_STATUSES:
            raise ValidationError(f"Invalid enrollment status '{status}'.")
        if status == "dropped":
            return self.drop_enrollment(enrollment_id)

        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.status == "dropped":
            existing = self.enrollment_repo.find_live_by_pair(enrollment.user_id, enrollment.batch_course_id)
            if existing and existing.id != enrollment.id:
                raise EnrollmentExistsError("User is already enrolled in this batch course.")
            enrollment.dropped_at = None

        enrollment.status = status
        if status == "completed" and not enrollment.completion_date:
            enrollment.completion_date = datetime.now()
        return self._enrollment_to_dict(self.enrollment_repo.save(enrollment))

    def update_progress(self, enrollment_id: int, progress_percentage: Any,
                        expected_version: Optional[int] = None) -> Dict[str, Any]:
        """
        수강 진도율을 갱신합니다.

        진도 갱신은 멱등하지 않으므로 재시도하지 않습니다. expected_version이 주어지면
        현재 version과 비교하고, 저장 시에도 version 컬럼으로 동시 수정을 감지합니다.

        Raises:
            ValidationError: 진도율이 0~100 범위의 유한한 숫자가 아니거나, version이 정수가 아니거나,
                dropped 수강일 때.
            EnrollmentNotFoundError: 해당 ID의 수강을 찾을 수 없을 때.
            ConcurrentUpdateError: 다른 요청이 먼저 수정하여 version이 맞지 않을 때.
        """
        if isinstance(progress_percentage, bool) or not isinstance(progress_percentage, (int, float)):
            raise ValidationError("Progress percentage must be a number.")
        if not math.isfinite(progress_percentage):
            raise ValidationError("Progress percentage must be a finite number.")
        if progress_percentage < 0 or progress_percentage > 100:
            raise ValidationError("Progress percentage must be between 0 and 100")
        if expected_version is not None and (isinstance(expected_version, bool) or not isinstance(expected_version, int)):
            raise ValidationError("Version must be an integer.")

        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.status == "dropped":
            raise ValidationError("Cannot update progress of a dropped enrollment.")
        if expected_version is not None and enrollment.version != expected_version:
            raise ConcurrentUpdateError(
                f"Enrollment '{enrollment_id}' is at version {enrollment.version}, not {expected_version}."
            )

        enrollment.progress_percentage = progress_percentage
        return self._enrollment_to_dict(self.enrollment_repo.save(enrollment))

    def drop_enrollment(self, enrollment_id: int) -> Dict[str, Any]:
        """
        수강을 'dropped' 상태로 전환합니다. 진도율과 수료일 이력 보존을 위해 행은 삭제하지 않습니다.

        Raises:
            EnrollmentNotFoundError: 해당 ID의 수강을 찾을 수 없을 때.
        """
        enrollment = self._get_enrollment(enrollment_id)
        if enrollment.status == "dropped":
            return self._enrollment_to_dict(enrollment)
        enrollment.status = "dropped"
        enrollment.dropped_at = datetime.now()
        saved = self.enrollment_repo.save(enrollment)
        logger.info("Enrollment %s dropped.", enrollment_id)
        return self._enrollment_to_dict(saved)

    def _get_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def _get_enrollment(self, enrollment_id: int) -> models.Enrollment:
        enrollment = self.enrollment_repo.find_by_id(enrollment_id)
        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment with id '{enrollment_id}' not found.")
        return enrollment

    @staticmethod
    def _enrollment_to_dict(enrollment: models.Enrollment) -> Dict[str, Any]:
        return {
            "id": enrollment.id,
            "user_id": enrollment.user_id,
            "batch_course_id": enrollment.batch_course_id,
            "status": enrollment.status,
            "progress_percentage": enrollment.progress_percentage,
            "enrollment_date": enrollment.enrollment_date.isoformat() if enrollment.enrollment_date else None,
            "completion_date": enrollment.completion_date.isoformat() if enrollment.completion_date else None,
            "dropped_at": enrollment.dropped_at.isoformat() if enrollment.dropped_at else None,
            "version": enrollment.version,
        }
