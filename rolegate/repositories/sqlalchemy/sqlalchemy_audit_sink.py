import copy
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from rolegate.database import models
from rolegate.domain import AuditEntry, AuditFilter, AuditPage
from rolegate.repositories.interfaces import IAuditSink
from rolegate.repositories.sqlalchemy.errors import translate_store_errors

STORE_NAME = "AuditSink"


def _to_utc_naive(value: datetime) -> datetime:
    # 시간대 정보를 저장하지 못하는 DB(SQLite)를 고려해 UTC naive 값으로 저장합니다.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_record(entry: AuditEntry) -> models.AuditEntry:
    return models.AuditEntry(
        actor_id=entry.actor_id,
        action=entry.action,
        resource_type=entry.resource_type,
        resource_id=entry.resource_id,
        details=copy.deepcopy(entry.details),
        occurred_at=_to_utc_naive(entry.occurred_at),
    )


def to_entry(record: models.AuditEntry) -> AuditEntry:
    occurred_at = record.occurred_at
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)
    return AuditEntry(
        id=record.id,
        actor_id=record.actor_id,
        action=record.action,
        resource_type=record.resource_type,
        resource_id=record.resource_id,
        details=copy.deepcopy(record.details or {}),
        occurred_at=occurred_at,
    )


class SqlalchemyAuditSink(IAuditSink):
    def __init__(self, db_session: Session):
        self.db = db_session

    def append(self, entry: AuditEntry) -> AuditEntry:
        with translate_store_errors(self.db, STORE_NAME, "append"):
            record = to_record(entry)
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return to_entry(record)

    def query(self, audit_filter: AuditFilter) -> AuditPage:
        with translate_store_errors(self.db, STORE_NAME, "query"):
            q = self.db.query(models.AuditEntry)
            if audit_filter.actor_id is not None:
                q = q.filter(models.AuditEntry.actor_id == audit_filter.actor_id)
            if audit_filter.resource_type is not None:
                q = q.filter(models.AuditEntry.resource_type == audit_filter.resource_type)
            if audit_filter.action is not None:
                q = q.filter(models.AuditEntry.action == audit_filter.action)
            if audit_filter.occurred_from is not None:
                q = q.filter(models.AuditEntry.occurred_at >= _to_utc_naive(audit_filter.occurred_from))
            if audit_filter.occurred_to is not None:
                q = q.filter(models.AuditEntry.occurred_at <= _to_utc_naive(audit_filter.occurred_to))

            total = q.count()
            records = (
                q.order_by(models.AuditEntry.occurred_at.desc(), models.AuditEntry.id.desc())
                .offset(audit_filter.offset)
                .limit(audit_filter.page_size)
                .all()
            )
            return AuditPage(
                entries=[to_entry(r) for r in records],
                page=audit_filter.page,
                page_size=audit_filter.page_size,
                total=total,
            )
