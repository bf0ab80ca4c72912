from .user import IUserRepository
from .permission import IPermissionRepository
from .course import ICourseRepository
from .content import IContentRepository
from .enrollment import IEnrollmentRepository
