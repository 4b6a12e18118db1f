# rolegate/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    권한 엔진 전역 설정입니다.
    ROLEGATE_ 접두사가 붙은 환경 변수 또는 .env 파일에서 값을 읽어옵니다.
    """

    model_config = SettingsConfigDict(env_prefix="ROLEGATE_", env_file=".env", extra="ignore")

    # === Database ===
    database_url: str = Field(default="sqlite:///rolegate.db", description="SQLAlchemy 연결 문자열")

    # === Logging ===
    log_level: str = Field(default="INFO", description="Python 로그 레벨 이름")
    log_format: str = Field(default="text", description="text 또는 json")

    # === Privilege Guard ===
    protect_last_ceiling_holder: bool = Field(
        default=True,
        description="최상위 역할의 마지막 보유자를 강등시키는 변경을 거부할지 여부",
    )
    max_assign_attempts: int = Field(
        default=3, ge=1, description="낙관적 동시성 충돌 시 역할 할당 재시도 횟수"
    )

    # === Audit ===
    audit_default_page_size: int = Field(default=50, ge=1)
    audit_max_page_size: int = Field(default=500, ge=1)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
