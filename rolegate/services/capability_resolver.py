import logging
from typing import Optional

from rolegate.constants import CAPABILITY_ALIASES
from rolegate.domain import Capabilities, Identity, Role
from rolegate.repositories.interfaces import IRoleStore
from rolegate.services.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def derive_capabilities(role: Role) -> Capabilities:
    """
    역할의 권한 집합으로 capability 스냅샷을 계산합니다.

    각 불리언 필드는 CAPABILITY_ALIASES에 나열된 코드 중 하나라도 권한 집합에 있으면 true입니다.
    """
    held = role.permissions
    flags = {name: any(code in held for code in aliases) for name, aliases in CAPABILITY_ALIASES.items()}
    return Capabilities(
        role=role.display_name,
        level=role.level,
        permissions=tuple(sorted(held)),
        role_name=role.name,
        **flags,
    )


class CapabilityResolver:
    """
    호출자의 저장된 역할을 capability 스냅샷으로 변환합니다.

    상태를 갖지 않으며 호출마다 저장소를 한 번 읽습니다. 역할 변경 직후에도
    오래된 결과를 돌려주지 않도록 어떤 캐시도 두지 않습니다.
    """

    def __init__(self, role_store: IRoleStore):
        self.role_store = role_store

    def resolve(self, principal: Optional[Identity]) -> Capabilities:
        """
        호출자의 capability 스냅샷을 계산합니다.

        Args:
            principal: 외부에서 인증된 호출자. 인증되지 않은 요청이면 None.

        Returns:
            - principal이 None이면 'Guest' 스냅샷.
            - 역할이 없거나 저장소에 없는 사용자면 'User' 스냅샷.
            - 그 외에는 역할의 권한으로 계산한 스냅샷.

        Raises:
            StoreUnavailableError: 저장소 읽기 자체가 실패했을 때. 권한 판단이 아니라
                5xx 계열 오류로 처리해야 합니다.
        """
        if principal is None:
            return Capabilities.guest()

        assignment = self.role_store.get_user_role(principal.user_id)
        if assignment is None or assignment.role is None:
            return Capabilities.no_role()
        return derive_capabilities(assignment.role)

    def resolve_fail_closed(self, principal: Optional[Identity]) -> Capabilities:
        """저장소 장애 시 권한이 전혀 없는 스냅샷을 반환하는 resolve. (fail closed)"""
        try:
            return self.resolve(principal)
        except StoreUnavailableError as e:
            logger.error("Capability resolution failed closed for %s: %s",
                         principal.user_id if principal else "anonymous", e)
            return Capabilities.guest() if principal is None else Capabilities.no_role()
