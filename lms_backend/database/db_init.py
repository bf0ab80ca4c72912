import logging

from lms_backend.config import permissions_config
from .database import engine, SessionLocal, Base
from .models import *

logger = logging.getLogger(__name__)


def seed_roles_and_permissions(db):
    """
    역할, 권한, 권한 부여(RolePermission) 기본 데이터를 삽입합니다.
    이미 존재하는 행은 건너뛰므로 여러 번 실행해도 안전합니다.
    """
    roles = {}
    for role_def in permissions_config.ROLES:
        role = db.query(Role).filter(Role.name == role_def["name"]).first()
        if role is None:
            role = Role(is_system_role=True, **role_def)
            db.add(role)
        roles[role.name] = role

    permissions = {}
    for permission_def in permissions_config.build_permission_matrix():
        permission = db.query(Permission).filter(Permission.code == permission_def["code"]).first()
        if permission is None:
            permission = Permission(**permission_def)
            db.add(permission)
        permissions[permission.code] = permission

    # 변경사항을 반영하여 각 객체의 id를 할당받습니다.
    db.flush()

    created_grants = 0
    for role_name, rule in permissions_config.GRANT_RULES.items():
        role = roles[role_name]
        existing = {
            grant.permission_id
            for grant in db.query(RolePermission).filter(RolePermission.role_id == role.id).all()
        }
        for permission in permissions.values():
            if permission.id in existing or not rule(permission.resource_type, permission.action):
                continue
            db.add(RolePermission(role_id=role.id, permission_id=permission.id, is_granted=True))
            created_grants += 1

    db.commit()
    logger.info(
        "Seeded %d roles, %d permissions, %d new grants.",
        len(roles), len(permissions), created_grants
    )


def initialize_db(db_engine=engine, session_factory=SessionLocal):
    """
    DB와 테이블을 생성하고, 기본 데이터를 삽입합니다.
    SQLAlchemy 모델을 사용하여 모든 작업을 수행합니다.
    """
    logger.info("Initializing database...")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=db_engine)

    db = session_factory()
    try:
        seed_roles_and_permissions(db)
    except Exception:
        logger.exception("Database seeding failed; rolling back.")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    initialize_db()
