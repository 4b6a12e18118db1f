from .role import IRoleStore
from .audit import IAuditSink

__all__ = ["IRoleStore", "IAuditSink"]
