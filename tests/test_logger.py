import logging

import pytest

from cotizaciones.utils import logger as logger_module


def test_get_logger_returns_named_child():
    log = logger_module.get_logger("cotizaciones.sync.reconciler")

    assert log.name == "cotizaciones.sync.reconciler"
    assert logger_module.get_logger().name == logger_module.PACKAGE_LOGGER


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, logging.INFO), ("debug", logging.DEBUG), (" WARNING ", logging.WARNING), ("ruido", logging.INFO)],
)
def test_level_comes_from_environment(monkeypatch, value, expected):
    if value is None:
        monkeypatch.delenv(logger_module.LOG_LEVEL_ENV, raising=False)
    else:
        monkeypatch.setenv(logger_module.LOG_LEVEL_ENV, value)

    assert logger_module._configured_level() == expected
