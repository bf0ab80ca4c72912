from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from ..database import Base

PERMISSION_ACTIONS = ("create", "read", "update", "delete", "manage")

class Role(Base):
    """
    사용자가 가질 수 있는 권한의 묶음을 정의합니다.
    (예: 'admin', 'instructor', 'student').
    권한 부여(RolePermission)나 사용자 역할(UserRole)에서 참조 중인 역할은 삭제할 수 없습니다.
    """
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)
    permission_level = Column(Integer, nullable=False, default=0)
    is_system_role = Column(Boolean, nullable=False, default=True)

    grants = relationship("RolePermission", back_populates="role")


class Permission(Base):
    """
    특정 리소스 유형에 대한 단일 행위(action)를 나타냅니다.
    code는 항상 "<resource_type>:<action>" 형식입니다. (예: 'courses:update')
    """
    __tablename__ = "permissions"
    __table_args__ = (
        CheckConstraint(
            "action IN ('create', 'read', 'update', 'delete', 'manage')",
            name="ck_permissions_action",
        ),
    )
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    description = Column(String)
    resource_type = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)


class RolePermission(Base):
    """
    역할(Role)과 권한(Permission) 사이의 부여 관계입니다.
    (role, permission) 쌍마다 최대 한 행만 존재하며, 행이 없으면 암묵적 거부입니다.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_pair"),
    )
    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)
    is_granted = Column(Boolean, nullable=False, default=True)
    granted_at = Column(DateTime, server_default=func.now())
    granted_by = Column(Integer, ForeignKey("users.id"))

    role = relationship("Role", back_populates="grants")
    permission = relationship("Permission")
