import logging

import pytest

from textpegs import config


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    # Commands and tests that call set_config() must not leak into each other
    monkeypatch.setattr(config, "_config", None)

    logger = logging.getLogger("textpegs")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
