import threading
from collections import OrderedDict
from typing import Dict, Iterable, List, Tuple, Union

from rolegate.constants import SEED_PERMISSIONS, PermissionCategory
from rolegate.domain import Permission
from rolegate.services.exceptions import PermissionNotFoundError, ValidationError


def _to_category(category: Union[str, PermissionCategory]) -> PermissionCategory:
    try:
        return PermissionCategory(category)
    except ValueError as e:
        raise ValidationError(f"Unknown permission category '{category}'.") from e


class PermissionCatalog:
    """
    권한 코드를 카테고리별로 보관하는 레지스트리입니다.

    부트스트랩 때마다 다시 시드되므로 같은 코드를 다시 등록하면 메타데이터만 갱신하고
    코드와 등록 순서는 유지합니다. 삭제 연산은 제공하지 않습니다.
    """

    def __init__(self, permissions: Iterable[Tuple[str, str, str, Union[str, PermissionCategory]]] = ()):
        self._lock = threading.Lock()
        self._permissions: "OrderedDict[str, Permission]" = OrderedDict()
        for code, display_name, description, category in permissions:
            self.register(code, display_name, description, category)

    def register(self, code: str, display_name: str, description: str, category: Union[str, PermissionCategory]) -> Permission:
        """
        권한을 등록합니다. 이미 등록된 코드면 메타데이터만 갱신합니다.

        Raises:
            ValidationError: 코드가 비어 있거나 카테고리가 정의되지 않은 값일 때.
        """
        if not code or not code.strip():
            raise ValidationError("Permission code must be a non-empty string.")
        permission = Permission(
            code=code,
            display_name=display_name,
            description=description,
            category=_to_category(category),
        )
        with self._lock:
            # 기존 키에 대입하면 OrderedDict의 순서가 유지됩니다.
            self._permissions[code] = permission
        return permission

    def get(self, code: str) -> Permission:
        """
        Raises:
            PermissionNotFoundError: 등록되지 않은 코드일 때.
        """
        with self._lock:
            permission = self._permissions.get(code)
        if permission is None:
            raise PermissionNotFoundError(f"Permission '{code}' is not registered.")
        return permission

    def all(self) -> List[Permission]:
        with self._lock:
            return list(self._permissions.values())

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._permissions.keys())

    def by_category(self, category: Union[str, PermissionCategory]) -> List[Permission]:
        wanted = _to_category(category)
        return [p for p in self.all() if p.category == wanted]

    def grouped_by_category(self) -> Dict[PermissionCategory, List[Permission]]:
        """카테고리별 권한 목록. 권한이 없는 카테고리는 포함하지 않습니다."""
        grouped: Dict[PermissionCategory, List[Permission]] = {}
        for permission in self.all():
            grouped.setdefault(permission.category, []).append(permission)
        return grouped

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._permissions

    def __len__(self) -> int:
        with self._lock:
            return len(self._permissions)


def default_catalog() -> PermissionCatalog:
    """기본 시드 권한(18개)이 등록된 카탈로그를 생성합니다."""
    return PermissionCatalog(SEED_PERMISSIONS)
