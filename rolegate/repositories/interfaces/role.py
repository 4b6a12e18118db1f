from abc import ABC, abstractmethod
from typing import List, Optional

from rolegate.domain import AuditEntry, Permission, Role, RoleWrite, UserRoleAssignment


class IRoleStore(ABC):
    @abstractmethod
    def find_role_by_id(self, role_id: int) -> Optional[Role]:
        """고유 ID로 역할과 그 권한 집합을 조회합니다."""
        pass

    @abstractmethod
    def find_role_by_name(self, name: str) -> Optional[Role]:
        """이름으로 역할과 그 권한 집합을 조회합니다."""
        pass

    @abstractmethod
    def find_permission_by_name(self, code: str) -> Optional[Permission]:
        """권한 코드로 특정 권한을 조회합니다."""
        pass

    @abstractmethod
    def list_roles(self) -> List[Role]:
        """모든 역할을 level 오름차순(높은 권한 우선)으로 조회합니다."""
        pass

    @abstractmethod
    def list_role_permissions(self, role_id: int) -> List[str]:
        """역할에 속한 활성 권한 코드를 정렬하여 반환합니다."""
        pass

    @abstractmethod
    def get_user_role(self, user_id: str) -> Optional[UserRoleAssignment]:
        """
        사용자의 현재 역할 할당 상태를 한 번의 읽기로 조회합니다.

        캐시하지 않고 항상 저장소의 최신 값을 반환해야 합니다.

        Returns:
            역할(권한 포함)과 버전이 담긴 UserRoleAssignment.
            사용자 레코드가 없으면 None.
        """
        pass

    @abstractmethod
    def set_user_role(self, user_id: str, role_id: Optional[int], expected_version: int,
                      audit_entry: Optional[AuditEntry] = None) -> RoleWrite:
        """
        사용자의 역할을 변경합니다. (낙관적 동시성 제어)

        저장된 버전이 expected_version과 같을 때만 쓰기가 적용되며,
        쓰기는 전부 반영되거나 전혀 반영되지 않아야 합니다.

        audit_entry가 주어지면 역할 변경과 같은 트랜잭션(또는 같은 락) 안에서 함께 저장합니다.
        따라서 감사 기록의 순서는 역할 버전의 순서와 같습니다. 감사 쪽 쓰기만 실패하면
        역할 변경은 그대로 반영하고 결과의 audit_entry를 None으로 돌려줍니다.
        저장되는 항목의 occurred_at은 쓰기 시점으로 다시 기록됩니다.

        Returns:
            새 버전과 함께 저장된 감사 항목.

        Raises:
            UserNotFoundError: 사용자 레코드가 없을 때.
            ConcurrentModificationError: 저장된 버전이 expected_version과 다를 때.
        """
        pass

    @abstractmethod
    def count_role_holders(self, role_id: int) -> int:
        """특정 역할을 가진 사용자 수를 조회합니다."""
        pass

    @abstractmethod
    def count_ceiling_holders(self) -> int:
        """level이 CEILING_LEVEL 이하인 역할(최상위 역할)을 가진 사용자 수를 조회합니다."""
        pass

    @abstractmethod
    def ensure_user(self, user_id: str) -> UserRoleAssignment:
        """사용자 레코드가 없으면 '역할 없음' 상태로 생성하고, 현재 할당 상태를 반환합니다."""
        pass

    @abstractmethod
    def upsert_permission(self, permission: Permission) -> Permission:
        """권한을 생성하거나, 이미 있으면 메타데이터만 갱신합니다. (코드는 유지)"""
        pass

    @abstractmethod
    def upsert_role(self, role: Role) -> Role:
        """
        이름 기준으로 역할을 생성하거나 갱신하고, 권한 집합을 role.permissions와 일치시킵니다.

        Raises:
            PermissionNotFoundError: role.permissions에 등록되지 않은 코드가 있을 때.
        """
        pass
