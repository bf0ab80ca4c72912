from abc import ABC, abstractmethod
from typing import List, Optional
from lms_backend.database import models

class IPermissionRepository(ABC):
    @abstractmethod
    def list_active_role_ids(self, user_id: int) -> List[int]:
        """사용자의 활성(is_active) 역할 ID 목록을 중복 없이 조회합니다."""
        pass

    @abstractmethod
    def list_active_role_names(self, user_id: int) -> List[str]:
        """사용자의 활성 역할 이름 목록을 조회합니다."""
        pass

    @abstractmethod
    def has_granted_permission(self, role_ids: List[int], resource_type: str, action: str) -> bool:
        """
        주어진 역할 중 하나라도 (resource_type, action) 권한을 is_granted=True로 부여받았는지 확인합니다.

        Args:
            role_ids: 검사할 역할 ID 목록.
            resource_type: 리소스 유형. (예: 'courses')
            action: 행위. create/read/update/delete/manage 중 하나.

        Returns:
            부여된 권한 행이 하나 이상 있으면 True.
        """
        pass

    @abstractmethod
    def list_granted_permission_codes(self, role_ids: List[int]) -> List[str]:
        """주어진 역할들에 부여된 권한 코드의 합집합을 정렬하여 조회합니다."""
        pass

    @abstractmethod
    def find_role_by_name(self, name: str) -> Optional[models.Role]:
        """이름으로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_permission_by_code(self, code: str) -> Optional[models.Permission]:
        """코드('<resource_type>:<action>')로 특정 권한을 조회합니다."""
        pass

    @abstractmethod
    def set_grant(self, role: models.Role, permission: models.Permission, is_granted: bool,
                  granted_by: Optional[int] = None) -> models.RolePermission:
        """(role, permission) 쌍의 부여 행을 생성하거나 is_granted 값을 갱신합니다. 쌍마다 한 행만 유지합니다."""
        pass

    @abstractmethod
    def find_user_role(self, user_id: int, role_id: int) -> Optional[models.UserRole]:
        """사용자-역할 연결 행을 활성 여부와 관계없이 조회합니다."""
        pass

    @abstractmethod
    def save_user_role(self, user_role: models.UserRole) -> models.UserRole:
        """사용자-역할 연결 행을 저장합니다."""
        pass

    @abstractmethod
    def count_role_references(self, role_id: int) -> int:
        """역할을 참조하는 권한 부여 행과 사용자-역할 행의 개수를 조회합니다."""
        pass

    @abstractmethod
    def delete_role(self, role: models.Role) -> bool:
        """특정 역할을 데이터베이스에서 삭제합니다."""
        pass
