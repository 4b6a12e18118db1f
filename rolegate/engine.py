# rolegate/engine.py
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from sqlalchemy.orm import Session

from rolegate.config import Settings, get_settings
from rolegate.database.database import SessionLocal
from rolegate.domain import AuditPage, Identity
from rolegate.repositories.interfaces import IAuditSink, IRoleStore
from rolegate.repositories.sqlalchemy import SqlalchemyAuditSink, SqlalchemyRoleStore
from rolegate.services.audit_log import AuditLog
from rolegate.services.capability_checks import require_permission
from rolegate.services.capability_resolver import CapabilityResolver
from rolegate.services.exceptions import HTTP_STATUS_BY_KIND, RolegateError
from rolegate.services.privilege_guard import PrivilegeGuard
from rolegate.services.role_assignment_service import RoleAssignmentService

logger = logging.getLogger(__name__)

VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"


class AuthorizationEngine:
    """
    저장소 구현을 주입받아 리졸버, 가드, 감사 로그, 역할 할당 서비스를 조립합니다.
    관리자 API 라우트 핸들러와 UI 계층이 사용하는 진입점입니다.
    """

    def __init__(self, role_store: IRoleStore, audit_sink: IAuditSink, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.role_store = role_store
        self.resolver = CapabilityResolver(role_store)
        self.guard = PrivilegeGuard(protect_last_ceiling_holder=settings.protect_last_ceiling_holder)
        self.audit_log = AuditLog(
            audit_sink,
            default_page_size=settings.audit_default_page_size,
            max_page_size=settings.audit_max_page_size,
        )
        self.assignments = RoleAssignmentService(
            role_store, self.resolver, self.guard, self.audit_log,
            max_attempts=settings.max_assign_attempts,
        )

    def capability_probe(self, principal_id: Optional[str]) -> Dict[str, Any]:
        """
        호출자의 capability probe를 반환합니다.
        저장소 장애 시에는 권한이 없는 스냅샷을 반환합니다. (fail closed)
        """
        principal = Identity(principal_id) if principal_id else None
        return self.resolver.resolve_fail_closed(principal).to_probe()

    def assign_role(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        역할 할당 요청 {actorID, targetUserID, targetRoleID}을 처리합니다.

        Returns:
            성공 시 {"capabilities": <대상 사용자의 probe>},
            실패 시 {"error": {"kind": ..., "message": ...}, "status": <HTTP 상태>}.
        """
        try:
            caps = self.assignments.assign_role(
                request.get("actorID"), request.get("targetUserID"), request.get("targetRoleID"),
            )
        except RolegateError as e:
            return {"error": e.to_dict(), "status": HTTP_STATUS_BY_KIND.get(e.kind, "500 Internal Server Error")}
        return {"capabilities": caps.to_probe()}

    def query_audit(self, viewer_id: Optional[str], **filters: Any) -> AuditPage:
        """
        감사 기록을 조회합니다. 호출자는 VIEW_AUDIT_LOGS 권한이 있어야 합니다.

        Args:
            viewer_id: 조회를 요청한 사용자의 ID. 인증되지 않았으면 None.
            **filters: AuditLog.query에 그대로 전달할 필터와 페이지 값. (actor_id는 기록된 작업자 필터)

        Raises:
            PermissionDeniedError: 호출자에게 VIEW_AUDIT_LOGS 권한이 없을 때.
            ValidationError: 필터나 페이지 값이 잘못되었을 때.
            StoreUnavailableError: 저장소 접근에 실패했을 때.
        """
        caps = self.resolver.resolve(Identity(viewer_id) if viewer_id else None)
        require_permission(caps, VIEW_AUDIT_LOGS)
        return self.audit_log.query(**filters)

    def audit_logs(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        감사 기록 조회 요청 {actorID, actorFilter, resourceType, action, page, pageSize}을 처리합니다.

        Returns:
            성공 시 {"entries": [...], "page": ..., "pageSize": ..., "total": ...},
            실패 시 assign_role과 같은 오류 형태.
        """
        try:
            page = self.query_audit(
                request.get("actorID"),
                actor_id=request.get("actorFilter"),
                resource_type=request.get("resourceType"),
                action=request.get("action"),
                page=request.get("page", 1),
                page_size=request.get("pageSize"),
            )
        except RolegateError as e:
            return {"error": e.to_dict(), "status": HTTP_STATUS_BY_KIND.get(e.kind, "500 Internal Server Error")}
        return {
            "entries": [entry.to_dict() for entry in page.entries],
            "page": page.page,
            "pageSize": page.page_size,
            "total": page.total,
        }


def build_engine(db_session: Session, settings: Optional[Settings] = None) -> AuthorizationEngine:
    """SQLAlchemy 세션 하나를 공유하는 저장소들로 엔진을 조립합니다."""
    return AuthorizationEngine(SqlalchemyRoleStore(db_session), SqlalchemyAuditSink(db_session), settings)


@contextmanager
def engine_scope(session_factory=SessionLocal, settings: Optional[Settings] = None) -> Iterator[AuthorizationEngine]:
    """요청 단위로 세션을 열고 엔진을 제공한 뒤 세션을 닫습니다."""
    db_session = session_factory()
    try:
        yield build_engine(db_session, settings)
    finally:
        db_session.close()
