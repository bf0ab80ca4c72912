from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    시스템에 로그인하여 강의를 수강하거나 관리하는 사용자를 나타냅니다.
    인증 토큰 발급은 외부 인증 서버가 담당하며, 여기서는 역할과 수강 정보의 주체로만 사용됩니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    role_associations = relationship(
        "UserRole", back_populates="user", foreign_keys="UserRole.user_id", cascade="all, delete-orphan"
    )
    enrollments = relationship("Enrollment", back_populates="user", foreign_keys="Enrollment.user_id")
