from .memory_role_store import InMemoryRoleStore
from .memory_audit_sink import InMemoryAuditSink

__all__ = ["InMemoryRoleStore", "InMemoryAuditSink"]
