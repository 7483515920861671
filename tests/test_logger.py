import logging

from dbkeep.model_manager.parser import sqlglot_ast
from dbkeep.utils import logger as logger_module
from dbkeep.utils.logger import setup_logger


def test_level_follows_config(monkeypatch):
    """로거 레벨은 이름과 관계없이 설정값을 따르고 잘못된 값이면 INFO가 된다."""
    monkeypatch.setattr(logger_module, "LOG_LEVEL", "DEBUG")
    debug_logger = setup_logger("dbkeep_test_debug")

    monkeypatch.setattr(logger_module, "LOG_LEVEL", "LOUD")
    fallback_logger = setup_logger("dbkeep_test_fallback")

    assert debug_logger.level == logging.DEBUG
    assert debug_logger.handlers[0].level == logging.DEBUG
    assert fallback_logger.level == logging.INFO


def test_parser_logger_uses_configured_level():
    expected = logging.getLevelName(logger_module.LOG_LEVEL)
    if not isinstance(expected, int):
        expected = logging.INFO

    assert sqlglot_ast.logger.level == expected


def test_handler_is_added_once():
    first = setup_logger("dbkeep_test_once")
    second = setup_logger("dbkeep_test_once")

    assert first is second
    assert len(second.handlers) == 1
