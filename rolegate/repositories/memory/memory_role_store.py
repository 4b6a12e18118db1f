import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

from rolegate.constants import CEILING_LEVEL
from rolegate.domain import AuditEntry, Permission, Role, RoleWrite, UserRoleAssignment
from rolegate.repositories.interfaces import IAuditSink, IRoleStore
from rolegate.services.exceptions import (
    ConcurrentModificationError,
    PermissionNotFoundError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class InMemoryRoleStore(IRoleStore):
    """
    프로세스 메모리에 상태를 보관하는 IRoleStore 구현입니다.
    테스트와 로컬 실행용이며, 모든 연산은 하나의 락 아래에서 원자적으로 수행됩니다.

    audit_sink를 지정하면 역할 변경의 감사 항목을 같은 락 안에서 그 저장소에 추가합니다.
    """

    def __init__(self, audit_sink: Optional[IAuditSink] = None):
        self.audit_sink = audit_sink
        self._lock = threading.RLock()
        self._permissions: Dict[str, Permission] = {}
        self._roles: Dict[int, Role] = {}
        self._role_permissions: Dict[int, Set[str]] = {}
        # user_id -> (role_id, version)
        self._users: Dict[str, Tuple[Optional[int], int]] = {}
        self._next_role_id = 1

    def _build_role(self, role_id: int) -> Role:
        return replace(self._roles[role_id], permissions=frozenset(self._role_permissions[role_id]))

    def find_role_by_id(self, role_id: int) -> Optional[Role]:
        with self._lock:
            return self._build_role(role_id) if role_id in self._roles else None

    def find_role_by_name(self, name: str) -> Optional[Role]:
        with self._lock:
            for role_id, role in self._roles.items():
                if role.name == name:
                    return self._build_role(role_id)
            return None

    def find_permission_by_name(self, code: str) -> Optional[Permission]:
        with self._lock:
            return self._permissions.get(code)

    def list_roles(self) -> List[Role]:
        with self._lock:
            roles = [self._build_role(role_id) for role_id in self._roles]
        return sorted(roles, key=lambda r: (r.level, r.name))

    def list_role_permissions(self, role_id: int) -> List[str]:
        with self._lock:
            return sorted(self._role_permissions.get(role_id, ()))

    def get_user_role(self, user_id: str) -> Optional[UserRoleAssignment]:
        with self._lock:
            if user_id not in self._users:
                return None
            role_id, version = self._users[user_id]
            role = self._build_role(role_id) if role_id is not None else None
            return UserRoleAssignment(user_id=user_id, role=role, version=version)

    def set_user_role(self, user_id: str, role_id: Optional[int], expected_version: int,
                      audit_entry: Optional[AuditEntry] = None) -> RoleWrite:
        with self._lock:
            if user_id not in self._users:
                raise UserNotFoundError(f"User with id '{user_id}' not found.")
            _, version = self._users[user_id]
            if version != expected_version:
                raise ConcurrentModificationError(
                    f"Role of user '{user_id}' was modified concurrently (expected version {expected_version})."
                )
            self._users[user_id] = (role_id, version + 1)
            return RoleWrite(version=version + 1, audit_entry=self._append_audit(audit_entry))

    def _append_audit(self, audit_entry: Optional[AuditEntry]) -> Optional[AuditEntry]:
        if audit_entry is None or self.audit_sink is None:
            return None
        try:
            # 기록 시각은 역할이 실제로 바뀐 시점입니다.
            return self.audit_sink.append(replace(audit_entry, occurred_at=datetime.now(timezone.utc)))
        except Exception as e:
            # 역할 변경은 유지하고, 감사 기록은 호출한 서비스가 다시 시도합니다.
            logger.warning("Audit append failed alongside role write: %s", e)
            return None

    def count_role_holders(self, role_id: int) -> int:
        with self._lock:
            return sum(1 for held, _ in self._users.values() if held == role_id)

    def count_ceiling_holders(self) -> int:
        with self._lock:
            return sum(
                1 for held, _ in self._users.values()
                if held is not None and self._roles[held].level <= CEILING_LEVEL
            )

    def ensure_user(self, user_id: str) -> UserRoleAssignment:
        with self._lock:
            self._users.setdefault(user_id, (None, 0))
            return self.get_user_role(user_id)

    def upsert_permission(self, permission: Permission) -> Permission:
        with self._lock:
            self._permissions[permission.code] = permission
            return permission

    def upsert_role(self, role: Role) -> Role:
        with self._lock:
            missing = set(role.permissions) - set(self._permissions)
            if missing:
                raise PermissionNotFoundError(
                    f"Permissions not registered for role '{role.name}': {', '.join(sorted(missing))}."
                )
            existing = self.find_role_by_name(role.name)
            role_id = existing.id if existing else self._next_role_id
            if not existing:
                self._next_role_id += 1
            self._roles[role_id] = replace(role, id=role_id, permissions=frozenset())
            self._role_permissions[role_id] = set(role.permissions)
            return self._build_role(role_id)
