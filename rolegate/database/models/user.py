from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    외부 인증 계층이 식별한 사용자를 나타냅니다.
    사용자는 최대 하나의 역할을 가지며, role_id가 NULL이면 '역할 없음' 상태입니다.
    role_version은 역할 변경 시 낙관적 동시성 검사에 사용됩니다.
    관리자 여부는 별도 컬럼으로 저장하지 않고 역할의 level에서 파생합니다.
    """
    __tablename__ = "users"
    id = Column(String, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True, index=True)
    role_version = Column(Integer, nullable=False, default=0)

    role = relationship("Role")
