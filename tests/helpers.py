# tests/helpers.py
from typing import Optional

from rolegate.domain import Role
from rolegate.repositories.interfaces import IRoleStore


def put_user(store: IRoleStore, user_id: str, role: Optional[Role]) -> None:
    """사용자를 만들고 가드를 거치지 않고 역할을 직접 지정합니다. (테스트 데이터 준비용)"""
    assignment = store.ensure_user(user_id)
    if assignment.role_id != (role.id if role else None):
        store.set_user_role(user_id, role.id if role else None, assignment.version)
