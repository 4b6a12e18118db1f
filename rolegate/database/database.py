from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from rolegate.config import get_settings


def make_engine(database_url: str) -> Engine:
    """
    연결 문자열로 SQLAlchemy 엔진을 생성합니다.
    SQLite는 여러 스레드에서 같은 파일을 사용하므로 check_same_thread를 끕니다.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    # autocommit=False, autoflush=False: 리포지토리가 명시적으로 commit 해야 DB에 반영됩니다.
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(get_settings().database_url)
SessionLocal = make_session_factory(engine)

# 모든 모델 클래스가 상속받을 Base 클래스
Base = declarative_base()
