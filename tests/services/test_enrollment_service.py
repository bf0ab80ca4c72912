# tests/services/test_enrollment_service.py
import pytest
from unittest.mock import MagicMock, ANY
from datetime import datetime

from lms_backend.services.enrollment_service import EnrollmentService, NOT_ENROLLED_REASON
from lms_backend.services.exceptions import *
from lms_backend.repositories.interfaces import ICourseRepository, IEnrollmentRepository, IUserRepository
from lms_backend.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_enrollment_repo() -> MagicMock:
    """IEnrollmentRepository에 대한 모의 객체를 생성합니다. save/create는 전달받은 객체를 그대로 반환합니다."""
    repo = MagicMock(spec=IEnrollmentRepository)
    repo.save.side_effect = lambda enrollment: enrollment
    repo.create.side_effect = lambda enrollment: enrollment
    return repo

@pytest.fixture
def mock_course_repo() -> MagicMock:
    return MagicMock(spec=ICourseRepository)

@pytest.fixture
def mock_user_repo() -> MagicMock:
    return MagicMock(spec=IUserRepository)

@pytest.fixture
def enrollment_service(mock_enrollment_repo, mock_course_repo, mock_user_repo) -> EnrollmentService:
    """테스트에 사용될 EnrollmentService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return EnrollmentService(mock_enrollment_repo, mock_course_repo, mock_user_repo)

def make_enrollment(enrollment_id, course, status="active", user_id=7, version=1):
    batch_course = models.BatchCourse(id=100 + course.id, course_id=course.id, batch_id=1)
    batch_course.course = course
    enrollment = models.Enrollment(
        id=enrollment_id, user_id=user_id, batch_course_id=batch_course.id,
        status=status, progress_percentage=0, version=version,
    )
    enrollment.batch_course = batch_course
    return enrollment

def make_phase(phase_id, course):
    phase = models.Phase(id=phase_id, course_id=course.id, phase_name="Basics", phase_order=1)
    phase.course = course
    return phase

# ===================================================================
#  Phase 접근 판정(canAccessPhase) 테스트
# ===================================================================
class TestCanAccessPhase:
    def test_allows_active_enrollment_in_owning_course(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        """Phase가 속한 과정에 활성 수강 중이면 허용하는지 테스트합니다."""
        # === Arrange ===
        course = models.Course(id=1, title="Cloud", hash="abcd1234")
        enrollment = make_enrollment(10, course)
        mock_enrollment_repo.list_active_by_user.return_value = [enrollment]
        mock_course_repo.find_phase.return_value = make_phase(5, course)

        # === Act ===
        access = enrollment_service.can_access_phase(7, 5)

        # === Assert ===
        assert access.allowed is True
        assert access.course is course
        assert access.enrollment is enrollment
        mock_enrollment_repo.list_active_by_user.assert_called_once_with(7)

    def test_denies_when_enrolled_in_a_different_course(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        # === Arrange ===
        enrolled_course = models.Course(id=2, title="Data", hash="wxyz9876")
        phase_course = models.Course(id=1, title="Cloud", hash="abcd1234")
        mock_enrollment_repo.list_active_by_user.return_value = [make_enrollment(10, enrolled_course)]
        mock_course_repo.find_phase.return_value = make_phase(5, phase_course)

        # === Act ===
        access = enrollment_service.can_access_phase(7, 5)

        # === Assert ===
        assert access.allowed is False
        assert access.enrollment is None
        assert access.reason == NOT_ENROLLED_REASON

    def test_denies_user_without_active_enrollments(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        """dropped 수강은 활성 수강 목록에 나타나지 않으므로 거부되는지 테스트합니다."""
        mock_enrollment_repo.list_active_by_user.return_value = []
        mock_course_repo.find_phase.return_value = make_phase(5, models.Course(id=1, hash="abcd1234"))

        assert enrollment_service.can_access_phase(7, 5).allowed is False

    def test_missing_phase_raises_not_found(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        mock_enrollment_repo.list_active_by_user.return_value = []
        mock_course_repo.find_phase.return_value = None

        with pytest.raises(PhaseNotFoundError):
            enrollment_service.can_access_phase(7, 404)

    def test_phase_with_missing_course_is_integrity_error(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        mock_enrollment_repo.list_active_by_user.return_value = []
        mock_course_repo.find_phase.return_value = models.Phase(id=5, course_id=77, phase_name="x", phase_order=1)

        with pytest.raises(DataIntegrityError):
            enrollment_service.can_access_phase(7, 5)

    def test_enrollment_with_unresolvable_batch_course_is_skipped(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        """기수 과정을 찾을 수 없는 수강은 건너뛰고 나머지로 판정하는지 테스트합니다."""
        course = models.Course(id=1, hash="abcd1234")
        broken = models.Enrollment(id=9, user_id=7, batch_course_id=555, status="active")
        mock_enrollment_repo.list_active_by_user.return_value = [broken, make_enrollment(10, course)]
        mock_course_repo.find_phase.return_value = make_phase(5, course)

        assert enrollment_service.can_access_phase(7, 5).allowed is True

# ===================================================================
#  과정 식별자 해석(resolveCourseByIdOrHash) 테스트
# ===================================================================
class TestResolveCourse:
    def test_resolves_by_integer_id(self, enrollment_service, mock_enrollment_repo):
        course = models.Course(id=12, hash="abcd1234")
        enrollment = make_enrollment(10, course)
        mock_enrollment_repo.list_active_by_user.return_value = [enrollment]

        assert enrollment_service.resolve_course_by_id_or_hash(7, "12") == (course, enrollment)

    def test_resolves_by_hash(self, enrollment_service, mock_enrollment_repo):
        course = models.Course(id=12, hash="abcd1234")
        other = models.Course(id=13, hash="wxyz9876")
        mock_enrollment_repo.list_active_by_user.return_value = [make_enrollment(10, course), make_enrollment(11, other)]

        resolved_course, resolved_enrollment = enrollment_service.resolve_course_by_id_or_hash(7, "wxyz9876")

        assert resolved_course is other
        assert resolved_enrollment.id == 11

    def test_ambiguous_identifier_is_rejected(self, enrollment_service, mock_enrollment_repo):
        """식별자가 한 과정의 ID이면서 다른 과정의 hash와도 일치하면 임의로 고르지 않고 실패하는지 테스트합니다."""
        # === Arrange ===
        # 시나리오: 레거시 데이터에 숫자로만 된 hash가 남아 있음
        by_id = models.Course(id=12, hash="abcd1234")
        by_hash = models.Course(id=40, hash="12")
        mock_enrollment_repo.list_active_by_user.return_value = [make_enrollment(10, by_id), make_enrollment(11, by_hash)]

        # === Act & Assert ===
        with pytest.raises(AmbiguousCourseReferenceError):
            enrollment_service.resolve_course_by_id_or_hash(7, "12")

    def test_suffix_of_hash_does_not_match(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        mock_enrollment_repo.list_active_by_user.return_value = [make_enrollment(10, models.Course(id=12, hash="abcd1234"))]
        mock_course_repo.find_by_hash.return_value = None

        with pytest.raises(CourseNotFoundError):
            enrollment_service.resolve_course_by_id_or_hash(7, "1234x")

    def test_existing_course_without_enrollment_is_forbidden(self, enrollment_service, mock_enrollment_repo, mock_course_repo):
        mock_enrollment_repo.list_active_by_user.return_value = []
        mock_course_repo.find_entity.return_value = models.Course(id=12, hash="abcd1234")

        with pytest.raises(EnrollmentRequiredError):
            enrollment_service.resolve_course_by_id_or_hash(7, "12")
        mock_course_repo.find_entity.assert_called_once_with(models.EntityKind.COURSE, 12)

    def test_empty_identifier_is_validation_error(self, enrollment_service):
        with pytest.raises(ValidationError):
            enrollment_service.resolve_course_by_id_or_hash(7, "  ")

# ===================================================================
#  수강 상태 관리 테스트
# ===================================================================
class TestEnrollmentLifecycle:
    def test_create_enrollment_success(self, enrollment_service, mock_enrollment_repo, mock_course_repo, mock_user_repo):
        # === Arrange ===
        mock_user_repo.find_by_id.return_value = models.User(id=7)
        mock_course_repo.find_batch_course.return_value = models.BatchCourse(id=3)
        mock_enrollment_repo.find_live_by_pair.return_value = None

        # === Act ===
        result = enrollment_service.create_enrollment(7, 3, enrolled_by=1)

        # === Assert ===
        assert result["status"] == "active"
        assert result["batch_course_id"] == 3
        mock_enrollment_repo.create.assert_called_once_with(ANY)

    def test_create_duplicate_live_enrollment_fails(self, enrollment_service, mock_enrollment_repo, mock_course_repo, mock_user_repo):
        mock_user_repo.find_by_id.return_value = models.User(id=7)
        mock_course_repo.find_batch_course.return_value = models.BatchCourse(id=3)
        mock_enrollment_repo.find_live_by_pair.return_value = models.Enrollment(id=1, status="completed")

        with pytest.raises(EnrollmentExistsError):
            enrollment_service.create_enrollment(7, 3)
        mock_enrollment_repo.create.assert_not_called()

    def test_create_for_missing_batch_course_fails(self, enrollment_service, mock_course_repo, mock_user_repo):
        mock_user_repo.find_by_id.return_value = models.User(id=7)
        mock_course_repo.find_batch_course.return_value = None

        with pytest.raises(BatchCourseNotFoundError):
            enrollment_service.create_enrollment(7, 3)

    def test_drop_is_a_soft_delete(self, enrollment_service, mock_enrollment_repo):
        """수강 취소는 행을 지우지 않고 dropped 상태와 시각을 기록하는지 테스트합니다."""
        # === Arrange ===
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"))
        enrollment.progress_percentage = 42
        mock_enrollment_repo.find_by_id.return_value = enrollment

        # === Act ===
        result = enrollment_service.drop_enrollment(10)

        # === Assert ===
        assert result["status"] == "dropped"
        assert result["dropped_at"] is not None
        assert result["progress_percentage"] == 42
        mock_enrollment_repo.save.assert_called_once_with(enrollment)

    def test_drop_twice_is_idempotent(self, enrollment_service, mock_enrollment_repo):
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"), status="dropped")
        enrollment.dropped_at = datetime(2026, 3, 5)
        mock_enrollment_repo.find_by_id.return_value = enrollment

        result = enrollment_service.drop_enrollment(10)

        assert result["dropped_at"] == "2026-03-05T00:00:00"
        mock_enrollment_repo.save.assert_not_called()

    def test_complete_stamps_completion_date_once(self, enrollment_service, mock_enrollment_repo):
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"))
        first_completion = datetime(2026, 4, 1)
        enrollment.completion_date = first_completion
        mock_enrollment_repo.find_by_id.return_value = enrollment

        enrollment_service.update_enrollment_status(10, "completed")

        assert enrollment.status == "completed"
        assert enrollment.completion_date == first_completion

    def test_reactivating_dropped_enrollment_checks_live_pair(self, enrollment_service, mock_enrollment_repo):
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"), status="dropped")
        mock_enrollment_repo.find_by_id.return_value = enrollment
        mock_enrollment_repo.find_live_by_pair.return_value = models.Enrollment(id=11, status="active")

        with pytest.raises(EnrollmentExistsError):
            enrollment_service.update_enrollment_status(10, "active")

    def test_invalid_status_is_rejected(self, enrollment_service, mock_enrollment_repo):
        with pytest.raises(ValidationError):
            enrollment_service.update_enrollment_status(10, "paused")
        mock_enrollment_repo.find_by_id.assert_not_called()

# ===================================================================
#  진도율 갱신(optimistic version) 테스트
# ===================================================================
class TestUpdateProgress:
    def test_update_progress_success(self, enrollment_service, mock_enrollment_repo):
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"), version=3)
        mock_enrollment_repo.find_by_id.return_value = enrollment

        result = enrollment_service.update_progress(10, 55.5, expected_version=3)

        assert result["progress_percentage"] == 55.5
        mock_enrollment_repo.save.assert_called_once_with(enrollment)

    @pytest.mark.parametrize("value", [-1, 100.5, "50", True, None, float("nan"), float("inf"), float("-inf")])
    def test_invalid_progress_is_rejected(self, enrollment_service, mock_enrollment_repo, value):
        with pytest.raises(ValidationError):
            enrollment_service.update_progress(10, value)
        mock_enrollment_repo.save.assert_not_called()

    @pytest.mark.parametrize("version", ["1", 1.0, True])
    def test_non_integer_version_is_rejected(self, enrollment_service, mock_enrollment_repo, version):
        """version이 정수가 아니면 충돌(409)이 아닌 입력 오류로 처리하는지 테스트합니다."""
        mock_enrollment_repo.find_by_id.return_value = make_enrollment(10, models.Course(id=1, hash="abcd1234"))

        with pytest.raises(ValidationError):
            enrollment_service.update_progress(10, 50, expected_version=version)
        mock_enrollment_repo.save.assert_not_called()

    def test_stale_version_is_a_conflict(self, enrollment_service, mock_enrollment_repo):
        """다른 요청이 먼저 갱신하여 version이 달라졌으면 덮어쓰지 않고 충돌로 처리하는지 테스트합니다."""
        # === Arrange ===
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"), version=4)
        mock_enrollment_repo.find_by_id.return_value = enrollment

        # === Act & Assert ===
        with pytest.raises(ConcurrentUpdateError):
            enrollment_service.update_progress(10, 80, expected_version=3)
        mock_enrollment_repo.save.assert_not_called()

    def test_concurrent_write_detected_at_save_propagates(self, enrollment_service, mock_enrollment_repo):
        enrollment = make_enrollment(10, models.Course(id=1, hash="abcd1234"))
        mock_enrollment_repo.find_by_id.return_value = enrollment
        mock_enrollment_repo.save.side_effect = ConcurrentUpdateError("modified by another request")

        with pytest.raises(ConcurrentUpdateError):
            enrollment_service.update_progress(10, 80)

    def test_dropped_enrollment_progress_is_rejected(self, enrollment_service, mock_enrollment_repo):
        mock_enrollment_repo.find_by_id.return_value = make_enrollment(10, models.Course(id=1, hash="abcd1234"), status="dropped")

        with pytest.raises(ValidationError):
            enrollment_service.update_progress(10, 80)
