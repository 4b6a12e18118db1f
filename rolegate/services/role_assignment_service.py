import logging
from typing import Any, List, Optional

from rolegate.constants import ACTION_ASSIGN_ROLE, ACTION_REVOKE_ROLE, ADMIN_LEVEL_THRESHOLD, RESOURCE_USER
from rolegate.domain import AuditEntry, Capabilities, Identity, Role, UserRoleAssignment
from rolegate.repositories.interfaces import IRoleStore
from rolegate.services.audit_log import AuditLog
from rolegate.services.capability_checks import require_role_level
from rolegate.services.capability_resolver import CapabilityResolver
from rolegate.services.exceptions import (
    ConcurrentModificationError,
    RoleNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from rolegate.services.privilege_guard import PrivilegeGuard

logger = logging.getLogger(__name__)


def _validate_user_id(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field}' must be a non-empty string.")
    return value


def _validate_actor_id(value: Any) -> Optional[str]:
    # None은 인증되지 않은 호출자(Guest)로 처리되어 가드에서 거부됩니다.
    if value is None:
        return None
    return _validate_user_id(value, "actorID")


def _validate_role_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"'targetRoleID' must be an integer id (got {value!r}).")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"'targetRoleID' must be an integer id (got {value!r}).")


class RoleAssignmentService:
    """
    역할 할당/회수의 유일한 쓰기 경로입니다.

    흐름: 호출자 capability 계산 -> 가드 검사 -> 낙관적 동시성으로 역할 쓰기와 감사 기록을 함께 커밋.
    감사 기록만 실패한 경우에는 역할 변경을 유지하고 로그로만 남깁니다.
    """

    def __init__(self, role_store: IRoleStore, resolver: CapabilityResolver,
                 guard: PrivilegeGuard, audit_log: AuditLog, max_attempts: int = 3):
        """
        Args:
            role_store: 역할/할당 데이터에 접근하기 위한 저장소.
            resolver: 호출자와 대상의 capability를 계산하는 리졸버.
            guard: 역할 변경 요청을 검증하는 가드.
            audit_log: 변경 내역을 남길 감사 로그.
            max_attempts: 동시 수정 충돌 시 전체 검사를 다시 수행할 최대 횟수.
        """
        self.role_store = role_store
        self.resolver = resolver
        self.guard = guard
        self.audit_log = audit_log
        self.max_attempts = max_attempts

    def assign_role(self, actor_id: Optional[str], target_user_id: str, target_role_id: Any) -> Capabilities:
        """
        대상 사용자에게 역할을 부여합니다.

        Args:
            actor_id: 요청한 사용자의 ID. 인증되지 않았으면 None.
            target_user_id: 역할을 부여받을 사용자의 ID.
            target_role_id: 부여할 역할의 ID.

        Returns:
            역할 변경이 반영된 대상 사용자의 capability 스냅샷.

        Raises:
            ValidationError: 요청 값의 형식이 잘못되었을 때.
            PermissionDeniedError: 호출자가 MANAGE_ROLES가 없거나, 자신보다 높은 역할을 부여하려 하거나,
                최상위 역할의 마지막 보유자를 강등하려 할 때.
            RoleNotFoundError: 해당 ID의 역할을 찾을 수 없을 때.
            UserNotFoundError: 대상 사용자를 찾을 수 없을 때.
            ConcurrentModificationError: 재시도 후에도 동시 수정 충돌이 계속될 때.
            StoreUnavailableError: 저장소 접근에 실패했을 때.
        """
        actor_id = _validate_actor_id(actor_id)
        target_user_id = _validate_user_id(target_user_id, "targetUserID")
        role_id = _validate_role_id(target_role_id)

        for attempt in range(1, self.max_attempts + 1):
            actor_caps = self._resolve_actor(actor_id)
            self.guard.check_manage_roles(actor_caps).raise_if_denied()

            target_role = self.role_store.find_role_by_id(role_id)
            if not target_role:
                raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
            self.guard.ensure_can_assign(actor_caps, target_role)

            current = self._load_assignment(target_user_id)
            if current.role_id == target_role.id:
                logger.debug("User '%s' already holds role '%s'; nothing to change.", target_user_id, target_role.name)
                return self.resolver.resolve(Identity(target_user_id))
            self._ensure_ceiling_retained(current, target_role)

            from_name = current.role.name if current.role else None
            entry = self.audit_log.build(
                actor_id, ACTION_ASSIGN_ROLE, RESOURCE_USER, target_user_id,
                {"from": from_name, "to": target_role.name, "version": current.version + 1},
            )
            try:
                self._write(target_user_id, target_role.id, current.version, entry)
            except ConcurrentModificationError:
                logger.warning("Concurrent role change for user '%s' (attempt %d/%d); re-checking.",
                               target_user_id, attempt, self.max_attempts)
                continue

            logger.info("User '%s' role changed %s -> %s by '%s'.",
                        target_user_id, from_name, target_role.name, actor_id)
            return self.resolver.resolve(Identity(target_user_id))

        raise ConcurrentModificationError(
            f"Role of user '{target_user_id}' kept changing concurrently; gave up after {self.max_attempts} attempts."
        )

    def revoke_role(self, actor_id: Optional[str], target_user_id: str) -> Capabilities:
        """
        대상 사용자의 역할을 회수하여 '역할 없음' 상태로 만듭니다.

        Returns:
            회수 후 대상 사용자의 capability 스냅샷 ('User' 스냅샷).

        Raises:
            assign_role과 동일합니다. (RoleNotFoundError 제외)
        """
        actor_id = _validate_actor_id(actor_id)
        target_user_id = _validate_user_id(target_user_id, "targetUserID")

        for attempt in range(1, self.max_attempts + 1):
            actor_caps = self._resolve_actor(actor_id)
            self.guard.check_manage_roles(actor_caps).raise_if_denied()

            current = self._load_assignment(target_user_id)
            if current.role is None:
                return Capabilities.no_role()
            self.guard.check_revoke(actor_caps, current.role).raise_if_denied()
            self._ensure_ceiling_retained(current, None)

            entry = self.audit_log.build(
                actor_id, ACTION_REVOKE_ROLE, RESOURCE_USER, target_user_id,
                {"from": current.role.name, "to": None, "version": current.version + 1},
            )
            try:
                self._write(target_user_id, None, current.version, entry)
            except ConcurrentModificationError:
                logger.warning("Concurrent role change for user '%s' (attempt %d/%d); re-checking.",
                               target_user_id, attempt, self.max_attempts)
                continue

            logger.info("User '%s' role %s revoked by '%s'.", target_user_id, current.role.name, actor_id)
            return self.resolver.resolve(Identity(target_user_id))

        raise ConcurrentModificationError(
            f"Role of user '{target_user_id}' kept changing concurrently; gave up after {self.max_attempts} attempts."
        )

    def list_roles(self, actor_id: Optional[str]) -> List[Role]:
        """
        모든 역할을 level 오름차순으로 조회합니다. 관리자 레벨 이상만 조회할 수 있습니다.

        Raises:
            PermissionDeniedError: 호출자가 관리자 레벨이 아닐 때.
        """
        actor_caps = self._resolve_actor(_validate_actor_id(actor_id))
        require_role_level(actor_caps, ADMIN_LEVEL_THRESHOLD)
        return self.role_store.list_roles()

    def _resolve_actor(self, actor_id: Optional[str]) -> Capabilities:
        return self.resolver.resolve(Identity(actor_id) if actor_id is not None else None)

    def _load_assignment(self, user_id: str) -> UserRoleAssignment:
        assignment = self.role_store.get_user_role(user_id)
        if assignment is None:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return assignment

    def _ensure_ceiling_retained(self, current: UserRoleAssignment, new_role: Optional[Role]) -> None:
        if not self.guard.protect_last_ceiling_holder or current.role is None or not current.role.is_ceiling:
            return
        holders = self.role_store.count_ceiling_holders()
        self.guard.check_ceiling_retained(current.role, new_role, holders).raise_if_denied()

    def _write(self, user_id: str, role_id: Optional[int], expected_version: int, entry: AuditEntry) -> None:
        # 감사 항목은 역할 쓰기와 같은 트랜잭션으로 저장합니다. 그 부분만 실패했으면 따로 한 번 더 시도합니다.
        write = self.role_store.set_user_role(user_id, role_id, expected_version, audit_entry=entry)
        if write.audit_entry is None:
            self.audit_log.append_safely(entry)
