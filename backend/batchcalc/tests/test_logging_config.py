import logging

from batchcalc.logging_config import DEV_FORMAT, PROD_FORMAT, _coerce_level, configure_logging


def test_coerce_level_accepts_names_numbers_and_garbage():
    assert _coerce_level("debug") == logging.DEBUG
    assert _coerce_level(" WARNING ") == logging.WARNING
    assert _coerce_level("30") == 30
    assert _coerce_level(logging.ERROR) == logging.ERROR
    assert _coerce_level("BASIC_FORMAT") == logging.INFO
    assert _coerce_level(None) == logging.INFO


def test_configure_logging_formats_and_quiets_noisy_loggers():
    root = logging.getLogger()
    previous_level = root.level
    try:
        configure_logging(level="INFO", fmt="prod")
        assert root.level == logging.INFO
        assert all(handler.formatter._fmt == PROD_FORMAT for handler in root.handlers)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        configure_logging(level="INFO", fmt="dev")
        assert all(handler.formatter._fmt == DEV_FORMAT for handler in root.handlers)
    finally:
        root.setLevel(previous_level)
