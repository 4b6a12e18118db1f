import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from rolegate.constants import CEILING_LEVEL, PermissionCategory
from rolegate.database import models
from rolegate.domain import AuditEntry, Permission, Role, RoleWrite, UserRoleAssignment
from rolegate.repositories.interfaces import IRoleStore
from rolegate.repositories.sqlalchemy.errors import translate_store_errors
from rolegate.repositories.sqlalchemy.sqlalchemy_audit_sink import to_entry, to_record
from rolegate.services.exceptions import (
    ConcurrentModificationError,
    PermissionNotFoundError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

STORE_NAME = "RoleStore"


def _to_permission(permission: models.Permission) -> Permission:
    return Permission(
        code=permission.name,
        display_name=permission.display_name,
        description=permission.description or "",
        category=PermissionCategory(permission.category),
    )


def _to_role(role: models.Role) -> Role:
    return Role(
        id=role.id,
        name=role.name,
        display_name=role.display_name,
        description=role.description or "",
        level=role.level,
        permissions=frozenset(
            link.permission.name for link in role.permission_links if link.permission.is_active
        ),
    )


def _role_with_permissions():
    return joinedload(models.Role.permission_links).joinedload(models.RolePermission.permission)


class SqlalchemyRoleStore(IRoleStore):
    def __init__(self, db_session: Session):
        self.db = db_session

    def find_role_by_id(self, role_id: int) -> Optional[Role]:
        with translate_store_errors(self.db, STORE_NAME, "find_role_by_id"):
            role = (
                self.db.query(models.Role)
                .options(_role_with_permissions())
                .populate_existing()
                .filter(models.Role.id == role_id)
                .first()
            )
            return _to_role(role) if role else None

    def find_role_by_name(self, name: str) -> Optional[Role]:
        with translate_store_errors(self.db, STORE_NAME, "find_role_by_name"):
            role = (
                self.db.query(models.Role)
                .options(_role_with_permissions())
                .populate_existing()
                .filter(models.Role.name == name)
                .first()
            )
            return _to_role(role) if role else None

    def find_permission_by_name(self, code: str) -> Optional[Permission]:
        with translate_store_errors(self.db, STORE_NAME, "find_permission_by_name"):
            permission = self.db.query(models.Permission).filter(models.Permission.name == code).first()
            return _to_permission(permission) if permission else None

    def list_roles(self) -> List[Role]:
        with translate_store_errors(self.db, STORE_NAME, "list_roles"):
            roles = (
                self.db.query(models.Role)
                .options(_role_with_permissions())
                .populate_existing()
                .order_by(models.Role.level.asc(), models.Role.name.asc())
                .all()
            )
            return [_to_role(r) for r in roles]

    def list_role_permissions(self, role_id: int) -> List[str]:
        with translate_store_errors(self.db, STORE_NAME, "list_role_permissions"):
            rows = (
                self.db.query(models.Permission.name)
                .join(models.RolePermission, models.RolePermission.permission_id == models.Permission.id)
                .filter(models.RolePermission.role_id == role_id, models.Permission.is_active.is_(True))
                .order_by(models.Permission.name.asc())
                .all()
            )
            return [row[0] for row in rows]

    def get_user_role(self, user_id: str) -> Optional[UserRoleAssignment]:
        with translate_store_errors(self.db, STORE_NAME, "get_user_role"):
            # populate_existing: 세션에 이미 로드된 객체가 있어도 항상 최신 행으로 덮어씁니다.
            user = (
                self.db.query(models.User)
                .options(
                    joinedload(models.User.role)
                    .joinedload(models.Role.permission_links)
                    .joinedload(models.RolePermission.permission)
                )
                .populate_existing()
                .filter(models.User.id == user_id)
                .first()
            )
            if not user:
                return None
            return UserRoleAssignment(
                user_id=user.id,
                role=_to_role(user.role) if user.role else None,
                version=user.role_version,
            )

    def set_user_role(self, user_id: str, role_id: Optional[int], expected_version: int,
                      audit_entry: Optional[AuditEntry] = None) -> RoleWrite:
        with translate_store_errors(self.db, STORE_NAME, "set_user_role"):
            self._compare_and_set(user_id, role_id, expected_version)
            stored = None
            if audit_entry is not None:
                # 기록 시각은 역할이 실제로 바뀐 시점입니다.
                record = to_record(replace(audit_entry, occurred_at=datetime.now(timezone.utc)))
                try:
                    # UPDATE와 감사 INSERT를 한 트랜잭션으로 커밋합니다.
                    self.db.add(record)
                    self.db.flush()
                    stored = to_entry(record)
                except SQLAlchemyError as e:
                    logger.warning("Audit insert failed alongside role write for user %s: %s", user_id, e)
                    self.db.rollback()
                    self._compare_and_set(user_id, role_id, expected_version)
            self.db.commit()
            return RoleWrite(version=expected_version + 1, audit_entry=stored)

    def _compare_and_set(self, user_id: str, role_id: Optional[int], expected_version: int) -> None:
        # UPDATE ... WHERE id = ? AND role_version = ?
        updated = (
            self.db.query(models.User)
            .filter(models.User.id == user_id, models.User.role_version == expected_version)
            .update(
                {models.User.role_id: role_id, models.User.role_version: expected_version + 1},
                synchronize_session=False,
            )
        )
        if updated == 0:
            self.db.rollback()
            exists = self.db.query(models.User.id).filter(models.User.id == user_id).first()
            if not exists:
                raise UserNotFoundError(f"User with id '{user_id}' not found.")
            raise ConcurrentModificationError(
                f"Role of user '{user_id}' was modified concurrently (expected version {expected_version})."
            )

    def count_role_holders(self, role_id: int) -> int:
        with translate_store_errors(self.db, STORE_NAME, "count_role_holders"):
            return self.db.query(models.User).filter(models.User.role_id == role_id).count()

    def count_ceiling_holders(self) -> int:
        with translate_store_errors(self.db, STORE_NAME, "count_ceiling_holders"):
            return (
                self.db.query(models.User)
                .join(models.Role, models.User.role_id == models.Role.id)
                .filter(models.Role.level <= CEILING_LEVEL)
                .count()
            )

    def ensure_user(self, user_id: str) -> UserRoleAssignment:
        with translate_store_errors(self.db, STORE_NAME, "ensure_user"):
            if not self.db.query(models.User.id).filter(models.User.id == user_id).first():
                self.db.add(models.User(id=user_id, role_id=None, role_version=0))
                try:
                    self.db.commit()
                except IntegrityError:
                    # 다른 요청이 먼저 생성함
                    self.db.rollback()
        return self.get_user_role(user_id)

    def upsert_permission(self, permission: Permission) -> Permission:
        with translate_store_errors(self.db, STORE_NAME, "upsert_permission"):
            record = self.db.query(models.Permission).filter(models.Permission.name == permission.code).first()
            if not record:
                record = models.Permission(name=permission.code, is_active=True)
                self.db.add(record)
            record.display_name = permission.display_name
            record.description = permission.description
            record.category = PermissionCategory(permission.category).value
            self.db.commit()
            self.db.refresh(record)
            return _to_permission(record)

    def upsert_role(self, role: Role) -> Role:
        with translate_store_errors(self.db, STORE_NAME, "upsert_role"):
            wanted = (
                self.db.query(models.Permission).filter(models.Permission.name.in_(role.permissions)).all()
                if role.permissions else []
            )
            missing = set(role.permissions) - {p.name for p in wanted}
            if missing:
                raise PermissionNotFoundError(
                    f"Permissions not registered for role '{role.name}': {', '.join(sorted(missing))}."
                )

            record = self.db.query(models.Role).filter(models.Role.name == role.name).first()
            if not record:
                record = models.Role(name=role.name)
                self.db.add(record)
            record.display_name = role.display_name
            record.description = role.description
            record.level = role.level

            wanted_ids = {p.id for p in wanted}
            kept = [link for link in record.permission_links if link.permission_id in wanted_ids]
            kept_ids = {link.permission_id for link in kept}
            record.permission_links = kept + [
                models.RolePermission(permission=p) for p in wanted if p.id not in kept_ids
            ]
            self.db.commit()
            role_id = record.id
        return self.find_role_by_id(role_id)
