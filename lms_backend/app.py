# lms_backend/app.py
from wsgiref.simple_server import make_server
from urllib.parse import parse_qs
import json
import logging
import re

from lms_backend.config import settings
from lms_backend.database.database import SessionLocal
from lms_backend.repositories.sqlalchemy import (
    SqlalchemyContentRepository, SqlalchemyCourseRepository, SqlalchemyEnrollmentRepository,
    SqlalchemyPermissionRepository, SqlalchemyUserRepository
)
from lms_backend.services.auth_service import AuthService
from lms_backend.services.content_tree_builder import ContentTreeBuilder
from lms_backend.services.course_service import CourseService
from lms_backend.services.enrollment_service import EnrollmentService
from lms_backend.services.hierarchy_service import HierarchyService
from lms_backend.services.permission_service import PermissionService
from lms_backend.services.exceptions import *

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValueError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object.")
    return data

def get_query_param(environ, name):
    values = parse_qs(environ.get("QUERY_STRING", "")).get(name)
    return values[0] if values else None

def authorize_and_get_token_data(environ):
    auth_header = environ.get('HTTP_AUTHORIZATION', '')
    scheme, _, token = auth_header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise AuthenticationError("Missing or malformed 'Authorization: Bearer' header.")
    return environ['services']['auth'].validate_token(token.strip())

def require_permission(environ, resource_type, action):
    """라우트 진입 전 가드. 인증된 호출자의 ID를 반환합니다."""
    token_data = authorize_and_get_token_data(environ)
    environ['services']['permission'].check_permission(token_data['user_id'], resource_type, action)
    return token_data['user_id']

def success_response(data, message="OK", status='200 OK'):
    return status, json.dumps({"success": True, "message": message, "data": data})

# 하위 클래스도 매칭되도록 순서대로 isinstance 검사
ERROR_STATUS_MAP = [
    (AuthenticationError, "401 Unauthorized"),
    (ForbiddenError, "403 Forbidden"),
    (NotFoundError, "404 Not Found"),
    (ValueError, "400 Bad Request"),
    (ConflictError, "409 Conflict"),
]

def handle_exception(e, hide_internal_errors=False):
    status = next(
        (status for exc_type, status in ERROR_STATUS_MAP if isinstance(e, exc_type)),
        "500 Internal Server Error"
    )
    message = str(e)
    if status.startswith("500"):
        logger.exception("Unhandled error while processing request: %s", e)
        if hide_internal_errors:
            message = "Internal server error."
    return status, json.dumps({"success": False, "error": message})

# --------------------------------------------------------------------------
## 의존성 조립 (Repositories -> Services)
# --------------------------------------------------------------------------

def build_services(db_session, app_settings):
    user_repo = SqlalchemyUserRepository(db_session)
    permission_repo = SqlalchemyPermissionRepository(db_session)
    course_repo = SqlalchemyCourseRepository(db_session)
    content_repo = SqlalchemyContentRepository(db_session)
    enrollment_repo = SqlalchemyEnrollmentRepository(db_session)

    permission_service = PermissionService(permission_repo, user_repo)
    enrollment_service = EnrollmentService(enrollment_repo, course_repo, user_repo)
    tree_builder = ContentTreeBuilder(content_repo, course_repo, strict_ordering=app_settings.strict_ordering)

    return {
        'auth': AuthService(user_repo, app_settings.jwt_secret, app_settings.jwt_algorithm),
        'permission': permission_service,
        'enrollment': enrollment_service,
        'course': CourseService(course_repo, hash_length=app_settings.course_hash_length),
        'hierarchy': HierarchyService(
            permission_service, enrollment_service, tree_builder,
            request_timeout_seconds=app_settings.request_timeout_seconds
        ),
    }

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

def phase_weeks_handler(environ, user_id, phase_id):
    caller_id = authorize_and_get_token_data(environ)['user_id']
    data = environ['services']['hierarchy'].get_phase_weeks(caller_id, int(user_id), int(phase_id))
    return success_response(data, "Phase weeks retrieved successfully")

def course_phases_handler(environ, user_id, course_ref):
    caller_id = authorize_and_get_token_data(environ)['user_id']
    data = environ['services']['hierarchy'].get_enrolled_course_phases(caller_id, int(user_id), course_ref)
    return success_response(data, "Course phases retrieved successfully")

def user_enrollments_handler(environ, user_id):
    caller_id = authorize_and_get_token_data(environ)['user_id']
    enrollments = environ['services']['hierarchy'].get_enrolled_courses(caller_id, int(user_id))
    return success_response({"enrollments": enrollments}, "Enrollments retrieved successfully")

def course_hierarchy_handler(environ, *args):
    caller_id = authorize_and_get_token_data(environ)['user_id']
    course_param = get_query_param(environ, 'course')
    if course_param is not None and not course_param.isdigit():
        raise ValidationError("Query parameter 'course' must be an integer id.")
    course_id = int(course_param) if course_param is not None else None
    courses = environ['services']['hierarchy'].get_course_hierarchy(caller_id, course_id)
    return success_response({"courses": courses}, "Course hierarchy retrieved successfully")

def create_course_handler(environ, *args):
    require_permission(environ, 'courses', 'create')
    data = get_request_data(environ)
    course = environ['services']['course'].create_course(data.get('title'), data.get('description'))
    return success_response(course, "Course created successfully", '201 Created')

def create_enrollment_handler(environ, *args):
    caller_id = require_permission(environ, 'enrollments', 'create')
    data = get_request_data(environ)
    if not isinstance(data.get('user_id'), int) or not isinstance(data.get('batch_course_id'), int):
        raise ValidationError("'user_id' and 'batch_course_id' must be integers.")
    enrollment = environ['services']['enrollment'].create_enrollment(
        data['user_id'], data['batch_course_id'], enrolled_by=caller_id
    )
    return success_response(enrollment, "Enrollment created successfully", '201 Created')

def update_enrollment_status_handler(environ, enrollment_id):
    require_permission(environ, 'enrollments', 'update')
    data = get_request_data(environ)
    enrollment = environ['services']['enrollment'].update_enrollment_status(int(enrollment_id), data.get('status'))
    return success_response(enrollment, "Enrollment status updated successfully")

def update_progress_handler(environ, enrollment_id):
    require_permission(environ, 'enrollments', 'update')
    data = get_request_data(environ)
    enrollment = environ['services']['enrollment'].update_progress(
        int(enrollment_id), data.get('progress_percentage'), expected_version=data.get('version')
    )
    return success_response(enrollment, "Progress updated successfully")

def drop_enrollment_handler(environ, enrollment_id):
    require_permission(environ, 'enrollments', 'delete')
    enrollment = environ['services']['enrollment'].drop_enrollment(int(enrollment_id))
    return success_response(enrollment, "Enrollment dropped successfully")

def user_permissions_handler(environ, user_id):
    require_permission(environ, 'roles', 'read')
    permissions = environ['services']['permission'].list_user_permissions(int(user_id))
    return success_response(permissions, "User permissions retrieved successfully")

def grant_permission_handler(environ, role_name, permission_code):
    caller_id = require_permission(environ, 'roles', 'manage')
    grant = environ['services']['permission'].grant_permission(role_name, permission_code, granted_by=caller_id)
    return success_response(grant, "Permission granted successfully")

def revoke_permission_handler(environ, role_name, permission_code):
    caller_id = require_permission(environ, 'roles', 'manage')
    grant = environ['services']['permission'].revoke_permission(role_name, permission_code, granted_by=caller_id)
    return success_response(grant, "Permission revoked successfully")

def assign_role_handler(environ, user_id, role_name):
    caller_id = require_permission(environ, 'roles', 'manage')
    user_role = environ['services']['permission'].assign_role(int(user_id), role_name, assigned_by=caller_id)
    return success_response(user_role, "Role assigned successfully")

def deactivate_role_handler(environ, user_id, role_name):
    require_permission(environ, 'roles', 'manage')
    user_role = environ['services']['permission'].deactivate_role(int(user_id), role_name)
    return success_response(user_role, "Role deactivated successfully")

def delete_role_handler(environ, role_name):
    require_permission(environ, 'roles', 'manage')
    environ['services']['permission'].delete_role(role_name)
    return success_response(None, f"Role '{role_name}' deleted successfully")

ROUTES = [
    ('GET', r'^/v1/users/([0-9]+)/phases/([0-9]+)/weeks$', phase_weeks_handler),
    ('GET', r'^/v1/users/([0-9]+)/courses/([a-zA-Z0-9_-]+)/phases$', course_phases_handler),
    ('GET', r'^/v1/users/([0-9]+)/enrollments$', user_enrollments_handler),
    ('GET', r'^/v1/course-hierarchy$', course_hierarchy_handler),
    ('POST', r'^/v1/courses$', create_course_handler),
    ('POST', r'^/v1/enrollments$', create_enrollment_handler),
    ('PUT', r'^/v1/enrollments/([0-9]+)/status$', update_enrollment_status_handler),
    ('PATCH', r'^/v1/enrollments/([0-9]+)/progress$', update_progress_handler),
    ('DELETE', r'^/v1/enrollments/([0-9]+)$', drop_enrollment_handler),
    ('GET', r'^/v1/users/([0-9]+)/permissions$', user_permissions_handler),
    ('PUT', r'^/v1/roles/([a-z_]+)/permissions/([a-z_]+:[a-z]+)$', grant_permission_handler),
    ('DELETE', r'^/v1/roles/([a-z_]+)/permissions/([a-z_]+:[a-z]+)$', revoke_permission_handler),
    ('PUT', r'^/v1/users/([0-9]+)/roles/([a-z_]+)$', assign_role_handler),
    ('DELETE', r'^/v1/users/([0-9]+)/roles/([a-z_]+)$', deactivate_role_handler),
    ('DELETE', r'^/v1/roles/([a-z_]+)$', delete_role_handler),
]

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def create_application(session_factory=SessionLocal, app_settings=settings):
    def application(environ, start_response):
        db_session = session_factory()
        try:
            # 1. 요청 단위 세션으로 서비스 조립 후 environ을 통해 핸들러에 전달
            environ['services'] = build_services(db_session, app_settings)

            # 2. 라우팅 및 핸들러 실행
            path = environ.get("PATH_INFO", "")
            method = environ.get("REQUEST_METHOD", "")

            handler, path_args = None, []
            for route_method, pattern, route_handler in ROUTES:
                if method == route_method and (match := re.match(pattern, path)):
                    handler, path_args = route_handler, match.groups()
                    break

            if handler:
                status, response_body = handler(environ, *path_args)
            else:
                status, response_body = '404 Not Found', json.dumps({'success': False, 'error': 'Not Found'})

        except Exception as e:
            db_session.rollback()
            status, response_body = handle_exception(e, hide_internal_errors=app_settings.is_production)
        finally:
            db_session.close()

        start_response(status, [("Content-Type", "application/json")])
        return [response_body.encode("utf-8")]

    return application

application = create_application()

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

def configure_logging(app_settings=settings):
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

if __name__ == "__main__":
    configure_logging()
    try:
        with make_server(settings.host, settings.port, application) as httpd:
            logger.info("Serving %s on port %s...", settings.app_name, settings.port)
            httpd.serve_forever()
    except Exception:
        logger.exception("Error starting server")
