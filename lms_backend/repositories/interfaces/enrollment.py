from abc import ABC, abstractmethod
from typing import List, Optional
from lms_backend.database import models

class IEnrollmentRepository(ABC):
    @abstractmethod
    def create(self, enrollment_model: models.Enrollment) -> models.Enrollment:
        """
        새로운 수강 정보를 생성합니다.

        Raises:
            EnrollmentExistsError: 같은 (user, batch_course) 쌍에 dropped가 아닌 수강이 이미 있을 때.
        """
        pass

    @abstractmethod
    def find_by_id(self, enrollment_id: int) -> Optional[models.Enrollment]:
        """고유 ID로 특정 수강 정보를 조회합니다."""
        pass

    @abstractmethod
    def find_live_by_pair(self, user_id: int, batch_course_id: int) -> Optional[models.Enrollment]:
        """(user, batch_course) 쌍의 active 또는 completed 수강을 조회합니다."""
        pass

    @abstractmethod
    def list_active_by_user(self, user_id: int) -> List[models.Enrollment]:
        """
        사용자의 status='active' 수강 목록을 BatchCourse → Course, Batch와 함께 조회합니다.

        Returns:
            enrollment.batch_course.course 까지 로드된 수강 목록. (enrollment_date, id) 순.
        """
        pass

    @abstractmethod
    def save(self, enrollment: models.Enrollment) -> models.Enrollment:
        """
        변경된 수강 정보를 저장합니다.

        Raises:
            ConcurrentUpdateError: 다른 요청이 먼저 같은 행을 수정하여 version이 달라졌을 때.
        """
        pass
