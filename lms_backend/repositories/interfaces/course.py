from abc import ABC, abstractmethod
from typing import Any, List, Optional
from lms_backend.database import models

class ICourseRepository(ABC):
    @abstractmethod
    def create(self, course_model: models.Course) -> models.Course:
        """새로운 과정을 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, course_id: int) -> Optional[models.Course]:
        """고유 ID로 특정 과정을 조회합니다."""
        pass

    @abstractmethod
    def find_by_hash(self, course_hash: str) -> Optional[models.Course]:
        """공개 식별자(hash)로 특정 과정을 조회합니다."""
        pass

    @abstractmethod
    def hash_exists(self, course_hash: str) -> bool:
        """해당 hash를 이미 사용 중인 과정이 있는지 확인합니다."""
        pass

    @abstractmethod
    def list_courses(self, course_id: Optional[int] = None) -> List[models.Course]:
        """과정 목록을 ID 순으로 조회합니다. course_id가 주어지면 해당 과정만 조회합니다."""
        pass

    @abstractmethod
    def find_phase(self, phase_id: int) -> Optional[models.Phase]:
        """고유 ID로 특정 Phase를 조회합니다."""
        pass

    @abstractmethod
    def find_batch_course(self, batch_course_id: int) -> Optional[models.BatchCourse]:
        """고유 ID로 특정 기수 과정(BatchCourse)을 조회합니다."""
        pass

    @abstractmethod
    def list_batch_courses_by_course_ids(self, course_ids: List[int]) -> List[models.BatchCourse]:
        """여러 과정에 연결된 기수 과정을 기수(Batch)와 함께 조회합니다."""
        pass

    @abstractmethod
    def find_entity(self, kind: models.EntityKind, entity_id: int) -> Optional[Any]:
        """엔티티 종류(kind)에 매핑된 조회 함수로 특정 엔티티를 조회합니다."""
        pass
