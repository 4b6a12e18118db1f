# tests/services/test_capability_resolver.py
import pytest
from unittest.mock import MagicMock

from rolegate.constants import CAPABILITY_ALIASES, SEED_PERMISSIONS
from rolegate.domain import Capabilities, Identity, Role, UserRoleAssignment
from rolegate.repositories.interfaces import IRoleStore
from rolegate.services.capability_resolver import CapabilityResolver, derive_capabilities
from rolegate.services.exceptions import StoreUnavailableError
from tests.helpers import put_user

BOOLEAN_FIELDS = list(CAPABILITY_ALIASES)

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_role_store() -> MagicMock:
    """IRoleStore에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IRoleStore)


@pytest.fixture
def resolver(mock_role_store: MagicMock) -> CapabilityResolver:
    return CapabilityResolver(mock_role_store)


def _role(name="CUSTOM", level=2, permissions=()) -> Role:
    return Role(id=7, name=name, display_name=name.title(), description="", level=level,
                permissions=frozenset(permissions))


# ===================================================================
#  스냅샷 계산 테스트 (Mock 저장소)
# ===================================================================
class TestResolve:
    def test_anonymous_principal_gets_guest_snapshot(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        """인증되지 않은 호출자는 저장소를 읽지 않고 'Guest' 스냅샷을 받는지 테스트합니다."""
        # === Act ===
        caps = resolver.resolve(None)

        # === Assert ===
        assert caps == Capabilities.guest()
        assert caps.role == "Guest"
        assert caps.level == 3
        assert caps.permissions == ()
        assert not any(getattr(caps, f) for f in BOOLEAN_FIELDS)
        mock_role_store.get_user_role.assert_not_called()

    def test_user_without_role_gets_user_snapshot(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        """역할이 없는 사용자는 'User' 스냅샷을 받는지 테스트합니다."""
        # === Arrange ===
        mock_role_store.get_user_role.return_value = UserRoleAssignment(user_id="u1", role=None)

        # === Act ===
        caps = resolver.resolve(Identity("u1"))

        # === Assert ===
        assert caps == Capabilities.no_role()
        assert caps.role == "User"
        assert caps.level == 3

    def test_unknown_user_gets_user_snapshot(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        # 시나리오: 사용자 레코드가 없음
        mock_role_store.get_user_role.return_value = None

        caps = resolver.resolve(Identity("ghost"))

        assert caps.role == "User"
        assert caps.permissions == ()

    def test_resolve_reads_store_exactly_once(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        """역할과 권한을 한 번의 읽기로 가져오는지 테스트합니다."""
        mock_role_store.get_user_role.return_value = UserRoleAssignment(
            user_id="u1", role=_role(permissions={"MANAGE_BLOG"}))

        resolver.resolve(Identity("u1"))

        mock_role_store.get_user_role.assert_called_once_with("u1")
        mock_role_store.find_role_by_id.assert_not_called()
        mock_role_store.list_role_permissions.assert_not_called()

    def test_resolve_propagates_store_failure(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        """저장소 장애는 권한 거부가 아닌 StoreUnavailableError로 전파되는지 테스트합니다."""
        mock_role_store.get_user_role.side_effect = StoreUnavailableError("RoleStore unavailable")

        with pytest.raises(StoreUnavailableError):
            resolver.resolve(Identity("u1"))

    @pytest.mark.parametrize("principal, expected_label", [(None, "Guest"), (Identity("u1"), "User")])
    def test_resolve_fail_closed_returns_empty_snapshot(self, resolver: CapabilityResolver,
                                                        mock_role_store: MagicMock, principal, expected_label):
        """fail closed 모드에서는 장애 시 권한 없는 스냅샷을 반환하는지 테스트합니다."""
        mock_role_store.get_user_role.side_effect = StoreUnavailableError("RoleStore unavailable")

        caps = resolver.resolve_fail_closed(principal)

        assert caps.role == expected_label
        assert caps.permissions == ()
        assert not caps.can_manage_roles

    def test_resolve_is_idempotent(self, resolver: CapabilityResolver, mock_role_store: MagicMock):
        """저장소가 바뀌지 않았다면 두 번 계산한 스냅샷이 같은지 테스트합니다."""
        mock_role_store.get_user_role.return_value = UserRoleAssignment(
            user_id="u1", role=_role(permissions={"VIEW_ANALYTICS", "MANAGE_ORDERS"}))

        assert resolver.resolve(Identity("u1")) == resolver.resolve(Identity("u1"))


# ===================================================================
#  파생 규칙 테스트
# ===================================================================
class TestDeriveCapabilities:
    def test_permissions_equal_role_permission_set(self):
        """스냅샷의 permissions가 역할의 권한 집합과 정확히 같은지(정렬됨) 테스트합니다."""
        role = _role(permissions={"VIEW_USERS", "MANAGE_BLOG", "VIEW_ORDERS"})

        caps = derive_capabilities(role)

        assert set(caps.permissions) == role.permissions
        assert list(caps.permissions) == sorted(role.permissions)
        assert caps.role_name == "CUSTOM"
        assert caps.level == 2

    @pytest.mark.parametrize("field", BOOLEAN_FIELDS)
    def test_each_alias_turns_on_only_its_field(self, field):
        """별칭 코드 하나만 가진 역할은 해당 불리언만 true인지 테스트합니다."""
        for alias in CAPABILITY_ALIASES[field]:
            caps = derive_capabilities(_role(permissions={alias}))
            assert getattr(caps, field) is True
            assert [f for f in BOOLEAN_FIELDS if getattr(caps, f)] == [field]

    def test_admin_flags_are_derived_from_level(self):
        assert derive_capabilities(_role(level=1)).is_super_admin
        assert derive_capabilities(_role(level=2)).is_admin
        assert not derive_capabilities(_role(level=2)).is_super_admin
        assert not derive_capabilities(_role(level=3)).is_admin


# ===================================================================
#  시드 역할 시나리오 (메모리 저장소)
# ===================================================================
class TestSeededRoles:
    def test_user_role_has_no_boolean_capabilities(self, memory_store, roles):
        """USER 역할(VIEW_PRODUCTS만 보유)은 모든 불리언이 false인지 테스트합니다."""
        # === Arrange ===
        put_user(memory_store, "alice", roles["USER"])

        # === Act ===
        probe = CapabilityResolver(memory_store).resolve(Identity("alice")).to_probe()

        # === Assert ===
        assert probe == {
            "canManageUsers": False,
            "canManageProducts": False,
            "canManageOrders": False,
            "canManageBlog": False,
            "canManageNewsletter": False,
            "canViewAnalytics": False,
            "canManageRoles": False,
            "canAccessSystemSettings": False,
            "userRole": "User",
            "userLevel": 3,
            "permissions": ["VIEW_PRODUCTS"],
        }

    def test_super_admin_has_every_capability(self, memory_store, roles):
        """SUPER_ADMIN은 모든 불리언이 true이고 18개 권한을 모두 가지는지 테스트합니다."""
        put_user(memory_store, "root", roles["SUPER_ADMIN"])

        caps = CapabilityResolver(memory_store).resolve(Identity("root"))

        assert all(getattr(caps, f) for f in BOOLEAN_FIELDS)
        assert set(caps.permissions) == {code for code, _, _, _ in SEED_PERMISSIONS}
        assert caps.role == "Super Admin"
        assert caps.level == 1
        assert caps.is_super_admin

    def test_admin_cannot_manage_roles_or_settings(self, memory_store, roles):
        put_user(memory_store, "bob", roles["ADMIN"])

        caps = CapabilityResolver(memory_store).resolve(Identity("bob"))

        assert caps.is_admin
        assert caps.can_manage_products and caps.can_manage_orders
        assert not caps.can_manage_roles
        assert not caps.can_manage_users
        assert not caps.can_access_system_settings

    def test_role_change_is_visible_on_next_resolve(self, memory_store, roles):
        """역할이 바뀐 직후의 resolve가 새 역할을 반영하는지(캐시 없음) 테스트합니다."""
        resolver = CapabilityResolver(memory_store)
        put_user(memory_store, "carol", roles["USER"])
        assert resolver.resolve(Identity("carol")).level == 3

        put_user(memory_store, "carol", roles["ADMIN"])

        assert resolver.resolve(Identity("carol")).level == 2
