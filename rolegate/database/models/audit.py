from sqlalchemy import JSON, Column, DateTime, Integer, String
from ..database import Base

class AuditEntry(Base):
    """
    권한이 필요한 작업의 불변 기록입니다. 추가만 가능하며 수정/삭제하지 않습니다.
    """
    __tablename__ = "audit_entries"
    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(String, nullable=True, index=True)
    action = Column(String, nullable=False, index=True)
    resource_type = Column(String, nullable=False, index=True)
    resource_id = Column(String, nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    occurred_at = Column(DateTime, nullable=False, index=True)
