# rolegate/services/capability_checks.py
# 이미 계산된 Capabilities만 사용하는 순수 함수들. 저장소에 접근하지 않으므로
# 라우트 핸들러에서 단순한 불리언 게이트로 사용할 수 있습니다.
from typing import Iterable

from rolegate.domain import Capabilities
from rolegate.services.exceptions import PermissionDeniedError


def has_permission(caps: Capabilities, code: str) -> bool:
    return code in caps.permissions


def has_any_permission(caps: Capabilities, codes: Iterable[str]) -> bool:
    held = set(caps.permissions)
    return any(code in held for code in codes)


def has_all_permissions(caps: Capabilities, codes: Iterable[str]) -> bool:
    held = set(caps.permissions)
    return all(code in held for code in codes)


def has_role_level(caps: Capabilities, required_level: int) -> bool:
    """required_level 이상의 권한(숫자로는 이하)인지 확인합니다."""
    return caps.level <= required_level


def is_admin(caps: Capabilities) -> bool:
    return caps.is_admin


def is_super_admin(caps: Capabilities) -> bool:
    return caps.is_super_admin


def require_permission(caps: Capabilities, code: str) -> None:
    """
    Raises:
        PermissionDeniedError: code 권한이 없을 때. 필요한 권한 코드를 함께 전달합니다.
    """
    if not has_permission(caps, code):
        raise PermissionDeniedError(
            f"Permission '{code}' is required (current role: {caps.role}).",
            required_permission=code,
        )


def require_role_level(caps: Capabilities, required_level: int) -> None:
    """
    Raises:
        PermissionDeniedError: 역할 레벨이 부족할 때.
    """
    if not has_role_level(caps, required_level):
        raise PermissionDeniedError(
            f"Role level {required_level} or higher is required (current level: {caps.level}).",
            required_level=required_level,
        )
