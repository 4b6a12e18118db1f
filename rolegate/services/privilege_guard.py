import logging
from dataclasses import dataclass
from typing import Optional

from rolegate.domain import Capabilities, Role
from rolegate.services.exceptions import ErrorKind, PermissionDeniedError

logger = logging.getLogger(__name__)

MANAGE_ROLES = "MANAGE_ROLES"


@dataclass(frozen=True)
class GuardDecision:
    ok: bool
    reason: Optional[ErrorKind] = None
    message: str = ""
    required_permission: Optional[str] = None
    required_level: Optional[int] = None

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(ok=True)

    @classmethod
    def deny(cls, message: str, required_permission: Optional[str] = None, required_level: Optional[int] = None) -> "GuardDecision":
        return cls(
            ok=False,
            reason=ErrorKind.PERMISSION_DENIED,
            message=message,
            required_permission=required_permission,
            required_level=required_level,
        )

    def raise_if_denied(self) -> None:
        if not self.ok:
            raise PermissionDeniedError(
                self.message,
                required_permission=self.required_permission,
                required_level=self.required_level,
            )


class PrivilegeGuard:
    """
    역할 변경 요청을 호출자 자신의 역할과 비교하여 검증합니다.

    저장소에 접근하지 않는 순수 검사만 수행하며, 필요한 데이터(현재 역할, 최상위
    역할 보유자 수 등)는 호출하는 서비스가 조회하여 전달합니다.
    """

    def __init__(self, protect_last_ceiling_holder: bool = True):
        """
        Args:
            protect_last_ceiling_holder: True면 최상위(ceiling) 역할의 마지막 보유자를
                다른 역할로 바꾸거나 역할을 회수하는 변경을 거부합니다.
        """
        self.protect_last_ceiling_holder = protect_last_ceiling_holder

    def check_manage_roles(self, actor_caps: Capabilities) -> GuardDecision:
        if not actor_caps.can_manage_roles:
            return GuardDecision.deny(
                f"Permission '{MANAGE_ROLES}' is required to change user roles (current role: {actor_caps.role}).",
                required_permission=MANAGE_ROLES,
            )
        return GuardDecision.allow()

    def check_assign(self, actor_caps: Capabilities, target_role: Role) -> GuardDecision:
        """
        호출자가 target_role을 부여할 수 있는지 검사합니다.

        1. 호출자는 MANAGE_ROLES 권한을 가져야 합니다.
        2. 호출자의 level은 target_role.level 이하(같거나 더 높은 권한)여야 합니다.
           자신보다 높은 권한의 역할을 부여하는 권한 상승을 막습니다.
        """
        decision = self.check_manage_roles(actor_caps)
        if not decision.ok:
            return decision
        if actor_caps.level > target_role.level:
            return GuardDecision.deny(
                f"Cannot grant a role more privileged than your own "
                f"(your level: {actor_caps.level}, role '{target_role.name}' level: {target_role.level}).",
                required_level=target_role.level,
            )
        return GuardDecision.allow()

    def check_revoke(self, actor_caps: Capabilities, current_role: Optional[Role]) -> GuardDecision:
        """역할 회수는 MANAGE_ROLES와, 회수할 역할 이상의 권한 레벨을 요구합니다."""
        decision = self.check_manage_roles(actor_caps)
        if not decision.ok or current_role is None:
            return decision
        if actor_caps.level > current_role.level:
            return GuardDecision.deny(
                f"Cannot revoke a role more privileged than your own "
                f"(your level: {actor_caps.level}, role '{current_role.name}' level: {current_role.level}).",
                required_level=current_role.level,
            )
        return GuardDecision.allow()

    def check_ceiling_retained(self, current_role: Optional[Role], new_role: Optional[Role], ceiling_holders: int) -> GuardDecision:
        """
        최상위 level 역할의 보유자가 0명이 되는 변경인지 검사합니다.

        Args:
            current_role: 대상 사용자의 현재 역할.
            new_role: 변경 후 역할. 회수라면 None.
            ceiling_holders: 최상위 level의 역할(여러 개일 수 있음)을 가진 사용자 수 (대상 포함).
        """
        if not self.protect_last_ceiling_holder:
            return GuardDecision.allow()
        if current_role is None or not current_role.is_ceiling:
            return GuardDecision.allow()
        if new_role is not None and new_role.is_ceiling:
            return GuardDecision.allow()
        if ceiling_holders <= 1:
            return GuardDecision.deny(
                f"Cannot move the last ceiling-level holder off role '{current_role.name}'; "
                f"assign a ceiling-level role to another user first.",
                required_level=current_role.level,
            )
        return GuardDecision.allow()

    def ensure_can_assign(self, actor_caps: Capabilities, target_role: Role) -> None:
        """
        Raises:
            PermissionDeniedError: check_assign이 거부했을 때.
        """
        decision = self.check_assign(actor_caps, target_role)
        if not decision.ok:
            logger.info("Role assignment denied (actor role=%s, target role=%s): %s",
                        actor_caps.role_name, target_role.name, decision.message)
        decision.raise_if_denied()
