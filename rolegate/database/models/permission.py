from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from ..database import Base

class Permission(Base):
    """
    하나의 원자적 권한(예: 'MANAGE_USERS')을 정의합니다.
    부트스트랩 시 한 번 생성되며 런타임에 삭제되지 않습니다.
    name은 권한 코드이며 변경되지 않습니다.
    """
    __tablename__ = "permissions"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    category = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
