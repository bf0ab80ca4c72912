import logging
from typing import Any, Dict, List, Optional

from lms_backend.services.content_tree_builder import ContentTreeBuilder
from lms_backend.services.enrollment_service import EnrollmentService
from lms_backend.services.exceptions import EnrollmentRequiredError
from lms_backend.services.permission_service import PermissionService
from lms_backend.utils.deadline import Deadline

logger = logging.getLogger(__name__)


class HierarchyService:
    """
    커리큘럼 계층 조회 요청을 처리합니다.

    호출자 확인 → 수강 여부 판정 → 트리 조립 순서로 진행하며, 각 단계의 예외는 그대로
    전파되어 HTTP 계층에서 한 번에 응답 형식으로 변환됩니다.
    """

    def __init__(self, permission_service: PermissionService, enrollment_service: EnrollmentService,
                 tree_builder: ContentTreeBuilder, request_timeout_seconds: Optional[float] = None):
        self.permission_service = permission_service
        self.enrollment_service = enrollment_service
        self.tree_builder = tree_builder
        self.request_timeout_seconds = request_timeout_seconds

    def _new_deadline(self) -> Deadline:
        return Deadline(self.request_timeout_seconds)

    def _ensure_self_or_permission(self, caller_id: int, user_id: int):
        # 본인 조회가 아니면 수강 정보 열람 권한이 필요
        if caller_id != user_id:
            self.permission_service.check_permission(caller_id, "enrollments", "read")

    def get_phase_weeks(self, caller_id: int, user_id: int, phase_id: int) -> Dict[str, Any]:
        """
        사용자가 수강 중인 과정의 Phase 하나와 그 하위 Week 트리 전체를 조회합니다.

        Raises:
            PermissionDeniedError: 타인의 수강 정보를 조회할 권한이 없을 때.
            PhaseNotFoundError: 해당 ID의 Phase를 찾을 수 없을 때.
            EnrollmentRequiredError: Phase가 속한 과정에 활성 수강 중이 아닐 때.
            RequestTimeoutError: 트리 조립 중 요청 시간 예산을 초과했을 때.
        """
        self._ensure_self_or_permission(caller_id, user_id)
        access = self.enrollment_service.can_access_phase(user_id, phase_id)
        if not access.allowed:
            raise EnrollmentRequiredError(access.reason)
        return self.tree_builder.build_phase_weeks(phase_id, self._new_deadline())

    def get_enrolled_course_phases(self, caller_id: int, user_id: int, course_identifier: str) -> Dict[str, Any]:
        """정수 ID 또는 hash로 지정한 수강 과정의 모든 Phase 트리를 조회합니다."""
        self._ensure_self_or_permission(caller_id, user_id)
        course, enrollment = self.enrollment_service.resolve_course_by_id_or_hash(user_id, course_identifier)
        data = self.tree_builder.build_course_phases(course, self._new_deadline())
        data["enrollment"] = {
            "id": enrollment.id,
            "status": enrollment.status,
            "progress_percentage": enrollment.progress_percentage,
        }
        return data

    def get_enrolled_courses(self, caller_id: int, user_id: int) -> List[Dict[str, Any]]:
        self._ensure_self_or_permission(caller_id, user_id)
        return self.enrollment_service.list_enrolled_courses(user_id)

    def get_course_hierarchy(self, caller_id: int, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """관리 화면용 과정 계층 요약을 조회합니다. courses:read 권한이 필요합니다."""
        self.permission_service.check_permission(caller_id, "courses", "read")
        return self.tree_builder.build_course_hierarchy(course_id, self._new_deadline())
