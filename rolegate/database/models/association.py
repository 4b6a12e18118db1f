from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base

class RolePermission(Base):
    """
    역할(Role)과 권한(Permission) 사이의 다대다 관계를 연결하는 연관 테이블 모델입니다.
    """
    __tablename__ = 'role_permissions'
    role_id = Column(Integer, ForeignKey('roles.id'), primary_key=True)
    permission_id = Column(Integer, ForeignKey('permissions.id'), primary_key=True)

    role = relationship("Role", back_populates="permission_links")
    permission = relationship("Permission")
