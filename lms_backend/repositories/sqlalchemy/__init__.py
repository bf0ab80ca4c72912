from .sqlalchemy_user_repository import SqlalchemyUserRepository
from .sqlalchemy_permission_repository import SqlalchemyPermissionRepository
from .sqlalchemy_course_repository import SqlalchemyCourseRepository
from .sqlalchemy_content_repository import SqlalchemyContentRepository
from .sqlalchemy_enrollment_repository import SqlalchemyEnrollmentRepository
