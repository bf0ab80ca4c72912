# lms_backend/services/exceptions.py

# --- Auth Exceptions ---
class AuthenticationError(Exception):
    """토큰이 없거나, 유효하지 않거나, 사용자를 찾을 수 없을 때"""
    pass

class ForbiddenError(Exception):
    """인증은 되었으나 요청한 작업이 거부되었을 때"""
    pass

class PermissionDeniedError(ForbiddenError):
    """활성 역할 중 어느 것도 (resource_type, action) 권한을 부여받지 않았을 때"""
    pass

class EnrollmentRequiredError(ForbiddenError):
    """해당 과정에 대한 활성 수강이 없을 때"""
    pass

# --- Not Found Exceptions ---
class NotFoundError(Exception):
    """참조한 엔티티를 찾을 수 없을 때"""
    pass

class UserNotFoundError(NotFoundError):
    pass

class RoleNotFoundError(NotFoundError):
    pass

class PermissionNotFoundError(NotFoundError):
    pass

class CourseNotFoundError(NotFoundError):
    pass

class PhaseNotFoundError(NotFoundError):
    pass

class WeekNotFoundError(NotFoundError):
    pass

class BatchCourseNotFoundError(NotFoundError):
    pass

class EnrollmentNotFoundError(NotFoundError):
    pass

# --- Validation Exceptions ---
class ValidationError(ValueError):
    """요청 값이 유효하지 않을 때"""
    pass

class EnrollmentExistsError(ValidationError):
    """같은 기수 과정에 활성(또는 수료) 상태의 수강이 이미 있을 때"""
    pass

class RoleInUseError(ValidationError):
    """권한 부여나 사용자 역할에서 참조 중인 역할을 삭제하려고 할 때"""
    pass

# --- Conflict Exceptions ---
class ConflictError(Exception):
    pass

class ConcurrentUpdateError(ConflictError):
    """다른 요청이 먼저 같은 수강 기록을 수정하여 version이 맞지 않을 때"""
    pass

# --- Internal Exceptions ---
class DataIntegrityError(Exception):
    """고아 레코드, 형제 간 order 중복 등 저장된 데이터가 불변식을 위반할 때"""
    pass

class AmbiguousCourseReferenceError(DataIntegrityError):
    """과정 식별자가 사용자의 수강 과정 중 둘 이상과 일치할 때"""
    pass

class DuplicateOrderError(DataIntegrityError):
    """같은 부모 아래 형제 노드들이 동일한 order 값을 가질 때 (strict_ordering 모드)"""
    pass

class RequestTimeoutError(Exception):
    """요청의 조회 시간 예산을 초과했을 때"""
    pass
