import threading
from dataclasses import replace
from typing import List

from rolegate.domain import AuditEntry, AuditFilter, AuditPage
from rolegate.repositories.interfaces import IAuditSink


class InMemoryAuditSink(IAuditSink):
    """추가만 가능한 메모리 기반 감사 저장소. 저장/조회 시 항상 사본을 주고받습니다."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[AuditEntry] = []

    def append(self, entry: AuditEntry) -> AuditEntry:
        with self._lock:
            stored = replace(entry.copy(), id=len(self._entries) + 1)
            self._entries.append(stored)
        return stored.copy()

    def query(self, audit_filter: AuditFilter) -> AuditPage:
        with self._lock:
            matched = [e for e in self._entries if self._matches(e, audit_filter)]
        matched.sort(key=lambda e: (e.occurred_at, e.id), reverse=True)
        start = audit_filter.offset
        return AuditPage(
            entries=[e.copy() for e in matched[start:start + audit_filter.page_size]],
            page=audit_filter.page,
            page_size=audit_filter.page_size,
            total=len(matched),
        )

    @staticmethod
    def _matches(entry: AuditEntry, f: AuditFilter) -> bool:
        if f.actor_id is not None and entry.actor_id != f.actor_id:
            return False
        if f.resource_type is not None and entry.resource_type != f.resource_type:
            return False
        if f.action is not None and entry.action != f.action:
            return False
        if f.occurred_from is not None and entry.occurred_at < f.occurred_from:
            return False
        if f.occurred_to is not None and entry.occurred_at > f.occurred_to:
            return False
        return True
