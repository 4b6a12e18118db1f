# tests/database/test_db_init.py
from sqlalchemy import inspect

from rolegate.database.database import make_engine, make_session_factory
from rolegate.database.db_init import initialize_db, seed_rbac
from rolegate.repositories.memory import InMemoryRoleStore
from rolegate.repositories.sqlalchemy import SqlalchemyRoleStore
from rolegate.services.permission_catalog import PermissionCatalog


class TestSeed:
    def test_seed_returns_three_roles(self):
        seeded = seed_rbac(InMemoryRoleStore())

        assert {name: role.level for name, role in seeded.items()} == {"SUPER_ADMIN": 1, "ADMIN": 2, "USER": 3}
        assert len(seeded["ADMIN"].permissions) == 13
        assert seeded["USER"].permissions == frozenset({"VIEW_PRODUCTS"})

    def test_seed_registers_catalog_permissions(self):
        store = InMemoryRoleStore()
        seed_rbac(store)
        assert store.find_permission_by_name("MANAGE_RETURNS").display_name == "Manage Returns"

    def test_seed_with_custom_catalog_updates_metadata(self):
        """다른 카탈로그로 다시 시드하면 권한 메타데이터만 갱신되는지 테스트합니다."""
        store = InMemoryRoleStore()
        seed_rbac(store)
        catalog = PermissionCatalog([("MANAGE_USERS", "Users", "edited", "USER_MANAGEMENT")])

        seed_rbac(store, catalog)

        assert store.find_permission_by_name("MANAGE_USERS").description == "edited"
        assert store.find_permission_by_name("VIEW_USERS") is not None


class TestInitializeDb:
    def test_creates_tables_and_is_idempotent(self, tmp_path):
        """테이블 생성과 시드를 두 번 실행해도 결과가 같은지 테스트합니다."""
        # === Arrange ===
        engine = make_engine(f"sqlite:///{tmp_path / 'init.db'}")

        # === Act ===
        first = initialize_db(engine)
        second = initialize_db(engine)

        # === Assert ===
        assert set(inspect(engine).get_table_names()) == {
            "permissions", "roles", "role_permissions", "users", "audit_entries",
        }
        assert {n: r.id for n, r in first.items()} == {n: r.id for n, r in second.items()}

        session = make_session_factory(engine)()
        try:
            assert [r.name for r in SqlalchemyRoleStore(session).list_roles()] == ["SUPER_ADMIN", "ADMIN", "USER"]
        finally:
            session.close()
            engine.dispose()
