# rolegate/domain.py
"""
저장소 경계(RoleStore, AuditSink)를 오가는 도메인 타입입니다.

ORM 모델은 리포지토리 내부에서만 사용하고, 서비스 계층에는 아래의 불변(frozen)
dataclass만 전달합니다.
"""
import copy
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from rolegate.constants import (
    ADMIN_LEVEL_THRESHOLD,
    CEILING_LEVEL,
    GUEST_ROLE_LABEL,
    LOWEST_PRIVILEGE_LEVEL,
    NO_ROLE_LABEL,
    PermissionCategory,
)


@dataclass(frozen=True)
class Identity:
    """외부 인증 계층이 확인한 호출자. 엔진은 불투명한 ID로만 다룹니다."""
    user_id: str


@dataclass(frozen=True)
class Permission:
    code: str
    display_name: str
    description: str
    category: PermissionCategory


@dataclass(frozen=True)
class Role:
    """
    이름과 레벨을 가진 권한 묶음입니다.
    level은 낮을수록 높은 권한이며, CEILING_LEVEL이 최상위 역할입니다.
    """
    id: Optional[int]
    name: str
    display_name: str
    description: str
    level: int
    permissions: FrozenSet[str] = frozenset()

    @property
    def is_ceiling(self) -> bool:
        return self.level <= CEILING_LEVEL


@dataclass(frozen=True)
class UserRoleAssignment:
    """
    사용자 한 명의 역할 할당 상태입니다.
    version은 낙관적 동시성 제어용 토큰이며, 역할이 바뀔 때마다 1씩 증가합니다.
    """
    user_id: str
    role: Optional[Role]
    version: int = 0

    @property
    def role_id(self) -> Optional[int]:
        return self.role.id if self.role else None


@dataclass(frozen=True)
class AuditEntry:
    actor_id: Optional[str]
    action: str
    resource_type: str
    resource_id: str
    details: Dict[str, Any]
    occurred_at: datetime
    id: Optional[int] = None

    def copy(self) -> "AuditEntry":
        """details까지 복사한 사본. 조회 결과를 통해 저장된 항목이 바뀌지 않도록 합니다."""
        return AuditEntry(
            actor_id=self.actor_id,
            action=self.action,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            details=copy.deepcopy(self.details),
            occurred_at=self.occurred_at,
            id=self.id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """관리자 화면용 직렬화 형태."""
        return {
            "id": self.id,
            "actorID": self.actor_id,
            "action": self.action,
            "resourceType": self.resource_type,
            "resourceID": self.resource_id,
            "details": copy.deepcopy(self.details),
            "occurredAt": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class RoleWrite:
    """
    역할 쓰기 결과입니다.
    audit_entry는 역할 변경과 함께 저장된 감사 항목이며, 요청하지 않았거나 감사 쪽 쓰기만
    실패했다면 None입니다.
    """
    version: int
    audit_entry: Optional[AuditEntry] = None


@dataclass(frozen=True)
class AuditFilter:
    actor_id: Optional[str] = None
    resource_type: Optional[str] = None
    action: Optional[str] = None
    occurred_from: Optional[datetime] = None
    occurred_to: Optional[datetime] = None
    page: int = 1
    page_size: int = 50

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class AuditPage:
    entries: List[AuditEntry]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


@dataclass(frozen=True)
class Capabilities:
    """
    요청 시점에 계산된 호출자의 권한 스냅샷입니다.
    role은 역할의 표시 이름, role_name은 역할의 고유 이름(게스트/역할 없음이면 None)입니다.
    """
    can_manage_users: bool = False
    can_manage_products: bool = False
    can_manage_orders: bool = False
    can_manage_blog: bool = False
    can_manage_newsletter: bool = False
    can_view_analytics: bool = False
    can_manage_roles: bool = False
    can_access_system_settings: bool = False
    role: str = GUEST_ROLE_LABEL
    level: int = LOWEST_PRIVILEGE_LEVEL
    permissions: Tuple[str, ...] = ()
    role_name: Optional[str] = None

    @classmethod
    def guest(cls) -> "Capabilities":
        return cls(role=GUEST_ROLE_LABEL)

    @classmethod
    def no_role(cls) -> "Capabilities":
        # Guest와 동작은 같고 라벨만 다릅니다. 호출자가 라벨로 분기할 수 있으므로 합치지 않습니다.
        return cls(role=NO_ROLE_LABEL)

    @property
    def is_admin(self) -> bool:
        return self.level <= ADMIN_LEVEL_THRESHOLD

    @property
    def is_super_admin(self) -> bool:
        return self.level <= CEILING_LEVEL

    def to_probe(self) -> Dict[str, Any]:
        """UI/라우트 가드가 사용하는 capability probe 형태로 변환합니다."""
        return {
            "canManageUsers": self.can_manage_users,
            "canManageProducts": self.can_manage_products,
            "canManageOrders": self.can_manage_orders,
            "canManageBlog": self.can_manage_blog,
            "canManageNewsletter": self.can_manage_newsletter,
            "canViewAnalytics": self.can_view_analytics,
            "canManageRoles": self.can_manage_roles,
            "canAccessSystemSettings": self.can_access_system_settings,
            "userRole": self.role,
            "userLevel": self.level,
            "permissions": list(self.permissions),
        }
