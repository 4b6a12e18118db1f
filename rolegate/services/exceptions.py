# rolegate/services/exceptions.py
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    # 예외가 아닌 정상 결과 (Guest / User 스냅샷)
    UNAUTHENTICATED = "Unauthenticated"
    NO_ROLE_ASSIGNED = "NoRoleAssigned"
    # 호출자에게 그대로 전달되는 오류
    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    VALIDATION = "Validation"
    CONCURRENT_MODIFICATION = "ConcurrentModification"
    # 5xx 계열
    STORE_UNAVAILABLE = "StoreUnavailable"


class RolegateError(Exception):
    """권한 엔진 예외의 기반 클래스"""
    kind: ErrorKind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def context(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.context()}


# --- Authorization Exceptions ---
class PermissionDeniedError(RolegateError):
    """권한 검사(가드)를 통과하지 못했을 때"""
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, message: str, required_permission: Optional[str] = None, required_level: Optional[int] = None):
        super().__init__(message)
        self.required_permission = required_permission
        self.required_level = required_level

    def context(self) -> Dict[str, Any]:
        ctx = {}
        if self.required_permission is not None:
            ctx["requiredPermission"] = self.required_permission
        if self.required_level is not None:
            ctx["requiredLevel"] = self.required_level
        return ctx


# --- Not Found Exceptions ---
class NotFoundError(RolegateError):
    """참조한 레코드를 찾을 수 없을 때"""
    kind = ErrorKind.NOT_FOUND


class RoleNotFoundError(NotFoundError):
    """역할을 찾을 수 없을 때"""
    pass


class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없을 때"""
    pass


class PermissionNotFoundError(NotFoundError):
    """권한 코드를 찾을 수 없을 때"""
    pass


# --- Validation / Conflict Exceptions ---
class ValidationError(RolegateError):
    """요청 형식이 잘못되었을 때"""
    kind = ErrorKind.VALIDATION


class ConcurrentModificationError(RolegateError):
    """다른 요청이 먼저 같은 사용자의 역할을 변경했을 때 (버전 불일치)"""
    kind = ErrorKind.CONCURRENT_MODIFICATION


# --- Infrastructure Exceptions ---
class StoreUnavailableError(RolegateError):
    """RoleStore / AuditSink 접근 중 I/O 오류가 발생했을 때"""
    kind = ErrorKind.STORE_UNAVAILABLE


HTTP_STATUS_BY_KIND = {
    ErrorKind.PERMISSION_DENIED: "403 Forbidden",
    ErrorKind.NOT_FOUND: "404 Not Found",
    ErrorKind.VALIDATION: "400 Bad Request",
    ErrorKind.CONCURRENT_MODIFICATION: "409 Conflict",
    ErrorKind.STORE_UNAVAILABLE: "503 Service Unavailable",
}
