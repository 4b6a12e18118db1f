from .permission import Permission
from .role import Role
from .association import RolePermission
from .user import User
from .audit import AuditEntry

__all__ = ["Permission", "Role", "RolePermission", "User", "AuditEntry"]
