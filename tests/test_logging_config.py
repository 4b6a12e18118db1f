# tests/test_logging_config.py
import json
import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from rolegate.logging_config import setup_logging


@pytest.fixture
def root_logger():
    """테스트가 바꾼 루트 로거 설정을 원래대로 되돌립니다."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_text_format(root_logger):
    setup_logging("debug", "text")

    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert not isinstance(root_logger.handlers[0].formatter, JsonFormatter)


def test_json_format_emits_parsable_records(root_logger):
    """json 형식이면 한 줄짜리 JSON 레코드를 출력하는지 테스트합니다."""
    setup_logging("INFO", "json")
    formatter = root_logger.handlers[0].formatter
    record = logging.LogRecord("rolegate.audit", logging.ERROR, __file__, 1, "audit write failed", None, None)

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "audit write failed"
    assert payload["name"] == "rolegate.audit"
    assert payload["levelname"] == "ERROR"


def test_unknown_level_falls_back_to_info(root_logger):
    setup_logging("LOUD", "text")
    assert root_logger.level == logging.INFO
