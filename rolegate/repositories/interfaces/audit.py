from abc import ABC, abstractmethod

from rolegate.domain import AuditEntry, AuditFilter, AuditPage


class IAuditSink(ABC):
    @abstractmethod
    def append(self, entry: AuditEntry) -> AuditEntry:
        """감사 항목을 추가하고, 저장소가 부여한 id가 채워진 항목을 반환합니다."""
        pass

    @abstractmethod
    def query(self, audit_filter: AuditFilter) -> AuditPage:
        """
        조건에 맞는 감사 항목을 occurred_at 내림차순으로 페이지 단위 조회합니다.
        수정/삭제 연산은 제공하지 않습니다.
        """
        pass
