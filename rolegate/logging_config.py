# rolegate/logging_config.py
import logging
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from rolegate.config import get_settings

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# 감사 로그 기록 실패 등 운영자가 반드시 확인해야 하는 이벤트용 채널
AUDIT_CHANNEL = "rolegate.audit"


def _resolve_level(name: str) -> int:
    numeric = getattr(logging, name.upper(), None)
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    루트 로거를 설정합니다.

    Args:
        level: 로그 레벨 이름. 생략하면 설정(ROLEGATE_LOG_LEVEL) 값을 사용합니다.
        fmt: 'text' 또는 'json'. 생략하면 설정(ROLEGATE_LOG_FORMAT) 값을 사용합니다.
    """
    settings = get_settings()
    numeric_level = _resolve_level(level or settings.log_level)
    fmt = (fmt or settings.log_format).lower()

    root = logging.getLogger()
    root.setLevel(numeric_level)
    # 테스트 중 중복 출력 방지
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    if fmt == "json":
        handler.setFormatter(JsonFormatter(JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
