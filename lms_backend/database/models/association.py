from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base

class UserRole(Base):
    """
    사용자(User)와 역할(Role) 사이의 다대다(many-to-many) 관계를 연결하는 연관 테이블 모델입니다.
    한 사용자는 여러 역할을 동시에 활성 상태로 가질 수 있으며,
    권한은 모든 활성 역할에 부여된 권한의 합집합입니다.
    """
    __tablename__ = 'user_roles'
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_pair"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey('roles.id'), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    assigned_at = Column(DateTime, server_default=func.now())
    assigned_by = Column(Integer, ForeignKey('users.id'))

    user = relationship("User", back_populates="role_associations", foreign_keys=[user_id])
    role = relationship("Role")
