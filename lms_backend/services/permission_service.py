import logging
from typing import Any, Dict, Iterable, List, Optional

from lms_backend.database import models
from lms_backend.repositories.interfaces import IPermissionRepository, IUserRepository
from lms_backend.services.exceptions import (
    PermissionDeniedError, PermissionNotFoundError, RoleInUseError, RoleNotFoundError,
    UserNotFoundError, ValidationError
)

logger = logging.getLogger(__name__)


class PermissionService:
    """역할 → 권한 부여 모델을 기반으로 사용자의 (resource_type, action) 접근 여부를 결정합니다."""

    def __init__(self, permission_repo: IPermissionRepository, user_repo: IUserRepository):
        """
        PermissionService를 초기화합니다.

        Args:
            permission_repo: 역할, 권한, 권한 부여, 사용자-역할 데이터에 접근하기 위한 리포지토리.
            user_repo: 사용자 존재 여부 확인용 리포지토리.
        """
        self.permission_repo = permission_repo
        self.user_repo = user_repo

    # ------------------------------------------------------------------
    # 권한 판정
    # ------------------------------------------------------------------

    def resolve_grants(self, role_ids: List[int], resource_type: str, action: str) -> bool:
        """
        역할 목록에 대한 최종 허용/거부 결정입니다.

        허용 전용(allow-only) 모델이므로 역할 간 결과는 합집합이며, 명시적 거부로 다른 역할의
        허용을 덮어쓰는 개념은 없습니다. 활성 역할이 없거나 일치하는 부여 행이 없으면 거부합니다.
        'manage'는 CRUD 행위로부터 유추되지 않으며 별도로 부여되어야 합니다.
        """
        if not role_ids:
            return False
        return self.permission_repo.has_granted_permission(role_ids, resource_type, action)

    def has_permission(self, user_id: int, resource_type: str, action: str) -> bool:
        """
        사용자가 특정 리소스 유형에 대해 주어진 행위를 수행할 수 있는지 확인합니다.

        Args:
            user_id: 검사할 사용자의 ID.
            resource_type: 리소스 유형. (예: 'courses')
            action: create/read/update/delete/manage 중 하나.

        Returns:
            활성 역할 중 하나라도 해당 권한을 부여받았으면 True.

        Raises:
            ValidationError: 정의되지 않은 action일 때.
        """
        if action not in models.PERMISSION_ACTIONS:
            raise ValidationError(f"Unknown permission action '{action}'.")
        role_ids = self.permission_repo.list_active_role_ids(user_id)
        return self.resolve_grants(role_ids, resource_type, action)

    def check_permission(self, user_id: int, resource_type: str, action: str) -> None:
        """
        라우트 진입 전 가드로 사용합니다. 권한이 없으면 예외를 발생시킵니다.

        Raises:
            PermissionDeniedError: 사용자가 해당 권한을 가지고 있지 않을 때.
        """
        if not self.has_permission(user_id, resource_type, action):
            logger.info("Permission denied: user=%s %s:%s", user_id, resource_type, action)
            raise PermissionDeniedError(f"Not authorized to {action} {resource_type}")

    def authorize(self, user_id: int, allowed_role_names: Iterable[str]) -> bool:
        """역할 이름 기반의 간단한 검사. 활성 역할 중 하나라도 허용 목록에 있으면 True."""
        allowed = set(allowed_role_names)
        return any(name in allowed for name in self.permission_repo.list_active_role_names(user_id))

    def require_role(self, user_id: int, allowed_role_names: Iterable[str]) -> None:
        allowed = list(allowed_role_names)
        if not self.authorize(user_id, allowed):
            logger.info("Role check failed: user=%s required=%s", user_id, allowed)
            raise PermissionDeniedError(f"Access denied. Required roles: {', '.join(allowed)}")

    def list_user_permissions(self, user_id: int) -> Dict[str, Any]:
        """
        사용자의 활성 역할과, 그 역할들에 부여된 권한 코드의 합집합을 조회합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        self._get_user(user_id)
        role_ids = self.permission_repo.list_active_role_ids(user_id)
        return {
            "user_id": user_id,
            "roles": self.permission_repo.list_active_role_names(user_id),
            "permissions": self.permission_repo.list_granted_permission_codes(role_ids),
        }

    # ------------------------------------------------------------------
    # 권한 부여 관리
    # ------------------------------------------------------------------

    def grant_permission(self, role_name: str, permission_code: str, granted_by: Optional[int] = None) -> Dict[str, Any]:
        """
        역할에 권한을 부여합니다. 이미 행이 있으면 is_granted만 True로 갱신합니다.

        Raises:
            RoleNotFoundError: 해당 이름의 역할을 찾을 수 없을 때.
            PermissionNotFoundError: 해당 코드의 권한을 찾을 수 없을 때.
        """
        return self._set_grant(role_name, permission_code, True, granted_by)

    def revoke_permission(self, role_name: str, permission_code: str, granted_by: Optional[int] = None) -> Dict[str, Any]:
        """역할의 권한 부여를 회수합니다. 행은 유지하고 is_granted만 False로 바꿉니다."""
        return self._set_grant(role_name, permission_code, False, granted_by)

    def _set_grant(self, role_name: str, permission_code: str, is_granted: bool, granted_by: Optional[int]) -> Dict[str, Any]:
        role = self._get_role(role_name)
        permission = self.permission_repo.find_permission_by_code(permission_code)
        if not permission:
            raise PermissionNotFoundError(f"Permission '{permission_code}' not found.")
        grant = self.permission_repo.set_grant(role, permission, is_granted, granted_by)
        logger.info("Permission %s %s for role %s", permission_code, "granted" if is_granted else "revoked", role_name)
        return {"role": role.name, "permission": permission.code, "is_granted": grant.is_granted}

    def assign_role(self, user_id: int, role_name: str, assigned_by: Optional[int] = None) -> Dict[str, Any]:
        """
        사용자에게 역할을 부여합니다. 비활성화된 연결 행이 있으면 새로 만들지 않고 다시 활성화합니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
            RoleNotFoundError: 해당 이름의 역할을 찾을 수 없을 때.
        """
        self._get_user(user_id)
        role = self._get_role(role_name)

        user_role = self.permission_repo.find_user_role(user_id, role.id)
        if user_role is None:
            user_role = models.UserRole(user_id=user_id, role_id=role.id)
        user_role.is_active = True
        user_role.assigned_by = assigned_by
        self.permission_repo.save_user_role(user_role)
        return {"user_id": user_id, "role": role.name, "is_active": True}

    def deactivate_role(self, user_id: int, role_name: str) -> Dict[str, Any]:
        """
        사용자의 역할을 비활성화합니다. 이력 보존을 위해 행은 삭제하지 않습니다.

        Raises:
            RoleNotFoundError: 역할이 없거나, 사용자에게 부여된 적이 없을 때.
        """
        self._get_user(user_id)
        role = self._get_role(role_name)

        user_role = self.permission_repo.find_user_role(user_id, role.id)
        if user_role is None:
            raise RoleNotFoundError(f"User '{user_id}' does not have role '{role_name}'.")
        user_role.is_active = False
        self.permission_repo.save_user_role(user_role)
        return {"user_id": user_id, "role": role.name, "is_active": False}

    def delete_role(self, role_name: str) -> bool:
        """
        역할을 삭제합니다. 권한 부여나 사용자 역할에서 참조 중이면 삭제할 수 없습니다.

        Raises:
            RoleNotFoundError: 해당 이름의 역할을 찾을 수 없을 때.
            RoleInUseError: 역할이 아직 참조되고 있을 때.
        """
        role = self._get_role(role_name)
        references = self.permission_repo.count_role_references(role.id)
        if references > 0:
            raise RoleInUseError(f"Role '{role_name}' is referenced by {references} grant(s) or assignment(s).")
        return self.permission_repo.delete_role(role)

    def _get_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def _get_role(self, role_name: str) -> models.Role:
        role = self.permission_repo.find_role_by_name(role_name)
        if not role:
            raise RoleNotFoundError(f"Role '{role_name}' not found.")
        return role
