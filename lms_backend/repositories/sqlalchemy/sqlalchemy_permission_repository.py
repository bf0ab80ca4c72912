from typing import List, Optional
from sqlalchemy.orm import Session
from lms_backend.database import models
from lms_backend.repositories.interfaces import IPermissionRepository

class SqlalchemyPermissionRepository(IPermissionRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def list_active_role_ids(self, user_id: int) -> List[int]:
        rows = self.db.query(models.UserRole.role_id).filter(
            models.UserRole.user_id == user_id,
            models.UserRole.is_active.is_(True)
        ).distinct().all()
        return [row[0] for row in rows]

    def list_active_role_names(self, user_id: int) -> List[str]:
        rows = self.db.query(models.Role.name).join(
            models.UserRole, models.UserRole.role_id == models.Role.id
        ).filter(
            models.UserRole.user_id == user_id,
            models.UserRole.is_active.is_(True)
        ).order_by(models.Role.name.asc()).all()
        return [row[0] for row in rows]

    def has_granted_permission(self, role_ids: List[int], resource_type: str, action: str) -> bool:
        if not role_ids:
            return False
        query = self.db.query(models.RolePermission.id).join(
            models.Permission, models.RolePermission.permission_id == models.Permission.id
        ).filter(
            models.RolePermission.role_id.in_(role_ids),
            models.RolePermission.is_granted.is_(True),
            models.Permission.resource_type == resource_type,
            models.Permission.action == action
        )
        return self.db.query(query.exists()).scalar()

    def list_granted_permission_codes(self, role_ids: List[int]) -> List[str]:
        if not role_ids:
            return []
        rows = self.db.query(models.Permission.code).join(
            models.RolePermission, models.RolePermission.permission_id == models.Permission.id
        ).filter(
            models.RolePermission.role_id.in_(role_ids),
            models.RolePermission.is_granted.is_(True)
        ).distinct().order_by(models.Permission.code.asc()).all()
        return [row[0] for row in rows]

    def find_role_by_name(self, name: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(models.Role.name == name).first()

    def find_permission_by_code(self, code: str) -> Optional[models.Permission]:
        return self.db.query(models.Permission).filter(models.Permission.code == code).first()

    def set_grant(self, role: models.Role, permission: models.Permission, is_granted: bool,
                  granted_by: Optional[int] = None) -> models.RolePermission:
        grant = self.db.query(models.RolePermission).filter(
            models.RolePermission.role_id == role.id,
            models.RolePermission.permission_id == permission.id
        ).first()
        if grant is None:
            grant = models.RolePermission(role_id=role.id, permission_id=permission.id)
            self.db.add(grant)
        grant.is_granted = is_granted
        grant.granted_by = granted_by
        self.db.commit()
        self.db.refresh(grant)
        return grant

    def find_user_role(self, user_id: int, role_id: int) -> Optional[models.UserRole]:
        return self.db.query(models.UserRole).filter(
            models.UserRole.user_id == user_id,
            models.UserRole.role_id == role_id
        ).first()

    def save_user_role(self, user_role: models.UserRole) -> models.UserRole:
        self.db.add(user_role)
        self.db.commit()
        self.db.refresh(user_role)
        return user_role

    def count_role_references(self, role_id: int) -> int:
        grants = self.db.query(models.RolePermission).filter(models.RolePermission.role_id == role_id).count()
        assignments = self.db.query(models.UserRole).filter(models.UserRole.role_id == role_id).count()
        return grants + assignments

    def delete_role(self, role: models.Role) -> bool:
        if role:
            self.db.delete(role)
            self.db.commit()
            return True
        return False
