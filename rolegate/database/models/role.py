from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship
from ..database import Base

class Role(Base):
    """
    사용자에게 부여되는 권한의 묶음을 정의합니다. (예: 'SUPER_ADMIN', 'ADMIN', 'USER').
    level은 낮을수록 높은 권한이며, 모든 권한 비교는 level로 수행합니다.
    """
    __tablename__ = "roles"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    level = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    permission_links = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")
