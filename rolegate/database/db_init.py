import logging
from typing import Dict, Optional

from sqlalchemy.engine import Engine

from ..constants import SEED_ROLES
from ..domain import Role
from ..logging_config import setup_logging
from ..repositories.interfaces import IRoleStore
from ..repositories.sqlalchemy import SqlalchemyRoleStore
from ..services.permission_catalog import PermissionCatalog, default_catalog
from .database import Base, SessionLocal, engine as default_engine, make_session_factory
from . import models  # noqa: F401  (테이블 등록)

logger = logging.getLogger(__name__)


def seed_rbac(role_store: IRoleStore, catalog: Optional[PermissionCatalog] = None) -> Dict[str, Role]:
    """
    기본 권한과 역할(SUPER_ADMIN, ADMIN, USER)을 저장소에 반영합니다.

    여러 번 실행해도 결과가 같습니다. 이미 있는 권한/역할은 메타데이터와 권한 집합만 갱신됩니다.

    Returns:
        역할 이름 -> 저장된 Role.
    """
    catalog = catalog or default_catalog()

    logger.info("Seeding %d permissions...", len(catalog))
    for permission in catalog.all():
        role_store.upsert_permission(permission)

    seeded = {}
    for role_data in SEED_ROLES:
        role = role_store.upsert_role(Role(
            id=None,
            name=role_data["name"],
            display_name=role_data["display_name"],
            description=role_data["description"],
            level=role_data["level"],
            permissions=frozenset(role_data["permissions"]),
        ))
        seeded[role.name] = role
        logger.info("Role %s (level %d) seeded with %d permissions.", role.name, role.level, len(role.permissions))
    return seeded


def initialize_db(bind: Optional[Engine] = None) -> Dict[str, Role]:
    """
    테이블을 생성하고(이미 존재하면 생성하지 않음) 기본 RBAC 데이터를 삽입합니다.
    """
    bind = bind or default_engine
    session_factory = SessionLocal if bind is default_engine else make_session_factory(bind)

    logger.info("Initializing database (SQLAlchemy)...")
    Base.metadata.create_all(bind=bind)

    db = session_factory()
    try:
        return seed_rbac(SqlalchemyRoleStore(db))
    finally:
        db.close()


if __name__ == '__main__':
    setup_logging()
    initialize_db()
    logger.info("RBAC seed completed.")
