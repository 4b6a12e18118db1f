import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rolegate.domain import AuditEntry, AuditFilter, AuditPage
from rolegate.logging_config import AUDIT_CHANNEL
from rolegate.repositories.interfaces import IAuditSink
from rolegate.services.exceptions import ValidationError

audit_logger = logging.getLogger(AUDIT_CHANNEL)


def _validate(entry: AuditEntry) -> None:
    if not entry.action or not entry.resource_type or not entry.resource_id:
        raise ValidationError("Audit entry requires action, resource_type and resource_id.")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # 시간대가 없는 값은 UTC로 간주합니다.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AuditLog:
    """권한이 필요한 작업의 추가 전용(append-only) 기록을 관리합니다."""

    def __init__(self, sink: IAuditSink, default_page_size: int = 50, max_page_size: int = 500):
        self.sink = sink
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def build(self, actor_id: Optional[str], action: str, resource_type: str, resource_id: str,
              details: Optional[Dict[str, Any]] = None) -> AuditEntry:
        """
        현재 시각(UTC)으로 감사 항목을 만듭니다. 저장은 하지 않습니다.

        Raises:
            ValidationError: action, resource_type, resource_id 중 비어 있는 값이 있을 때.
        """
        entry = AuditEntry(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=dict(details or {}),
            occurred_at=datetime.now(timezone.utc),
        )
        _validate(entry)
        return entry

    def append(self, entry: AuditEntry) -> AuditEntry:
        """
        감사 항목을 저장합니다.

        Raises:
            ValidationError: action, resource_type, resource_id 중 비어 있는 값이 있을 때.
            StoreUnavailableError: 저장소 쓰기에 실패했을 때.
        """
        _validate(entry)
        return self.sink.append(entry)

    def record(self, actor_id: Optional[str], action: str, resource_type: str, resource_id: str,
               details: Optional[Dict[str, Any]] = None) -> AuditEntry:
        """현재 시각(UTC)으로 감사 항목을 생성하여 저장합니다."""
        return self.sink.append(self.build(actor_id, action, resource_type, resource_id, details))

    def append_safely(self, entry: AuditEntry) -> Optional[AuditEntry]:
        """
        append와 같지만, 실패해도 예외를 전파하지 않고 운영 채널(rolegate.audit)에 ERROR로 남깁니다.

        감사 기록은 이미 커밋된 주 작업(역할 변경)의 성공 여부를 바꾸지 않습니다.
        실패한 기록을 복구할 수 있도록 항목 내용을 로그에 함께 남깁니다.

        Returns:
            저장된 항목. 실패했으면 None.
        """
        try:
            return self.append(entry)
        except Exception:
            audit_logger.exception(
                "Audit write failed; primary action already committed. "
                "actor=%s action=%s resource=%s/%s details=%s",
                entry.actor_id, entry.action, entry.resource_type, entry.resource_id, entry.details,
            )
            return None

    def record_safely(self, actor_id: Optional[str], action: str, resource_type: str, resource_id: str,
                      details: Optional[Dict[str, Any]] = None) -> Optional[AuditEntry]:
        """현재 시각으로 항목을 만들어 append_safely합니다."""
        return self.append_safely(self.build(actor_id, action, resource_type, resource_id, details))

    def query(self, actor_id: Optional[str] = None, resource_type: Optional[str] = None,
              action: Optional[str] = None, occurred_from: Optional[datetime] = None,
              occurred_to: Optional[datetime] = None, page: int = 1,
              page_size: Optional[int] = None) -> AuditPage:
        """
        감사 항목을 occurred_at 내림차순으로 조회합니다. (읽기 전용)

        Raises:
            ValidationError: 페이지 값이 범위를 벗어나거나 occurred_from이 occurred_to보다 늦을 때.
        """
        page_size = self.default_page_size if page_size is None else page_size
        if page < 1:
            raise ValidationError(f"page must be >= 1 (got {page}).")
        if not 1 <= page_size <= self.max_page_size:
            raise ValidationError(f"page_size must be between 1 and {self.max_page_size} (got {page_size}).")

        occurred_from, occurred_to = _as_utc(occurred_from), _as_utc(occurred_to)
        if occurred_from and occurred_to and occurred_from > occurred_to:
            raise ValidationError("occurred_from must not be later than occurred_to.")

        return self.sink.query(AuditFilter(
            actor_id=actor_id,
            resource_type=resource_type,
            action=action,
            occurred_from=occurred_from,
            occurred_to=occurred_to,
            page=page,
            page_size=page_size,
        ))
