import logging

import pytest

from billcheck.runtime import logging as billcheck_logging
from billcheck.runtime.logging import LOG_FORMAT_DEBUG, LOGGER_NAMESPACE, get_logger, set_log_level


def test_get_logger_namespaces_module_names() -> None:
    assert get_logger("billcheck.receipt.validator").name == "billcheck.receipt.validator"
    assert get_logger("scripts.tool").name == "billcheck.scripts.tool"


def test_namespace_logger_does_not_propagate() -> None:
    get_logger(__name__)

    assert logging.getLogger(LOGGER_NAMESPACE).propagate is False


def test_set_log_level_switches_debug_format() -> None:
    get_logger(__name__)
    root = logging.getLogger(LOGGER_NAMESPACE)
    previous = root.level
    try:
        set_log_level(logging.DEBUG)

        assert root.level == logging.DEBUG
        assert all(handler.formatter._fmt == LOG_FORMAT_DEBUG for handler in root.handlers)
    finally:
        set_log_level(previous)


def test_configure_logging_is_idempotent() -> None:
    billcheck_logging.configure_logging()
    handlers = list(logging.getLogger(LOGGER_NAMESPACE).handlers)

    billcheck_logging.configure_logging(logging.DEBUG)

    assert logging.getLogger(LOGGER_NAMESPACE).handlers == handlers


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("debug", logging.DEBUG),
        (" warn ", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("verbose", logging.WARNING),
        ("", logging.WARNING),
    ],
)
def test_env_log_level(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    monkeypatch.setenv(billcheck_logging.LOG_LEVEL_ENV, raw)

    assert billcheck_logging._env_log_level() == expected
