from .sqlalchemy_role_store import SqlalchemyRoleStore
from .sqlalchemy_audit_sink import SqlalchemyAuditSink

__all__ = ["SqlalchemyRoleStore", "SqlalchemyAuditSink"]
