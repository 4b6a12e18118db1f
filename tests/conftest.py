# tests/conftest.py
import pytest
from typing import Dict

from rolegate.config import Settings
from rolegate.database import models  # noqa: F401  (테이블 등록)
from rolegate.database.database import Base, make_engine, make_session_factory
from rolegate.database.db_init import seed_rbac
from rolegate.domain import Role
from rolegate.repositories.memory import InMemoryAuditSink, InMemoryRoleStore


# ===================================================================
#  메모리 저장소 Fixture
# ===================================================================

@pytest.fixture
def memory_sink() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture
def memory_store(memory_sink: InMemoryAuditSink) -> InMemoryRoleStore:
    """기본 권한/역할이 시드된 메모리 기반 RoleStore. 감사 항목은 memory_sink에 함께 기록됩니다."""
    store = InMemoryRoleStore(audit_sink=memory_sink)
    seed_rbac(store)
    return store


@pytest.fixture
def roles(memory_store: InMemoryRoleStore) -> Dict[str, Role]:
    """이름 -> 시드된 Role"""
    return {role.name: role for role in memory_store.list_roles()}


@pytest.fixture
def settings() -> Settings:
    """.env나 환경 변수의 영향을 받지 않는 기본 설정."""
    return Settings(_env_file=None, database_url="sqlite://")


# ===================================================================
#  SQLite 저장소 Fixture
# ===================================================================

@pytest.fixture
def sqlite_session_factory(tmp_path):
    """tmp_path 아래의 SQLite 파일 DB. 스레드마다 별도 세션을 열 수 있도록 팩토리를 반환합니다."""
    engine = make_engine(f"sqlite:///{tmp_path / 'rolegate.db'}")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_session_factory):
    session = sqlite_session_factory()
    yield session
    session.close()
