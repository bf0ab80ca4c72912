"""
역할(Role)과 권한(Permission) 시드 매트릭스.
db_init에서 최초 1회 역할/권한/권한 부여(RolePermission) 데이터를 생성할 때 사용합니다.
"""

RESOURCES = [
    "users", "roles", "courses", "batches", "groups",
    "phases", "weeks", "sessions", "attendance", "enrollments",
]

ACTIONS = ["create", "read", "update", "delete", "manage"]

ROLES = [
    {"name": "super_admin", "description": "Super Administrator with full system access", "permission_level": 100},
    {"name": "admin", "description": "Administrator with management access", "permission_level": 80},
    {"name": "instructor", "description": "Course instructor", "permission_level": 60},
    {"name": "group_instructor", "description": "Group instructor", "permission_level": 50},
    {"name": "team_member", "description": "Team member with limited administrative access", "permission_level": 40},
    {"name": "student", "description": "Student enrolled in courses", "permission_level": 10},
]

STUDENT_READABLE = {"courses", "batches", "phases", "weeks", "sessions", "enrollments"}


def _instructor_grant(resource: str, action: str) -> bool:
    if action == "read":
        return True
    return resource in ("courses", "sessions", "attendance") and action in ("create", "update")


def _group_instructor_grant(resource: str, action: str) -> bool:
    if action == "read":
        return True
    return resource in ("sessions", "attendance") and action in ("create", "update")


GRANT_RULES = {
    "super_admin": lambda resource, action: True,
    "admin": lambda resource, action: action != "manage" or resource not in ("roles", "permissions"),
    "instructor": _instructor_grant,
    "group_instructor": _group_instructor_grant,
    "team_member": lambda resource, action: False,
    "student": lambda resource, action: action == "read" and resource in STUDENT_READABLE,
}


def permission_code(resource: str, action: str) -> str:
    return f"{resource}:{action}"


def build_permission_matrix():
    """(resource, action) 전체 조합에 대한 권한 정의 목록을 생성합니다."""
    return [
        {
            "code": permission_code(resource, action),
            "name": f"{action.capitalize()} {resource}",
            "description": f"Permission to {action} {resource}",
            "resource_type": resource,
            "action": action,
        }
        for resource in RESOURCES
        for action in ACTIONS
    ]
