import logging
from typing import Any, Dict, Optional

from lms_backend.database import models
from lms_backend.repositories.interfaces import ICourseRepository
from lms_backend.services.exceptions import ValidationError
from lms_backend.utils.short_hash import generate_unique_hash

logger = logging.getLogger(__name__)


class CourseService:
    """과정 생성 및 공개 hash 발급을 담당합니다."""

    def __init__(self, course_repo: ICourseRepository, hash_length: int = 8):
        self.course_repo = course_repo
        self.hash_length = hash_length

    def create_course(self, title: str, description: Optional[str] = None) -> Dict[str, Any]:
        """
        새로운 과정을 생성합니다. hash는 기존 과정들과 충돌하지 않음을 확인한 뒤 발급합니다.

        Raises:
            ValidationError: 제목이 비어 있을 때.
        """
        if not title or not str(title).strip():
            raise ValidationError("Course title is required.")
        course_hash = generate_unique_hash(self.hash_length, self.course_repo.hash_exists)
        course = self.course_repo.create(models.Course(
            title=str(title).strip(),
            description=description,
            hash=course_hash,
        ))
        logger.info("Course %s created with hash '%s'.", course.id, course.hash)
        return {"id": course.id, "title": course.title, "description": course.description,
                "hash": course.hash, "status": course.status}
