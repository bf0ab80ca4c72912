from .user import User
from .role import Role, Permission, RolePermission, PERMISSION_ACTIONS
from .association import UserRole
from .course import Course, Batch, BatchCourse, Group
from .curriculum import (
    Phase,
    Week,
    WeekComponent,
    WeekComponentContent,
    ClassTopic,
    ClassComponent,
    ClassComponentContent,
    ClassVideoSectionBySection,
    ClassVideoLiveSession,
)
from .session import LiveSession, GroupSession
from .enrollment import Enrollment, ENROLLMENT_STATUSES
from .entity import EntityKind
