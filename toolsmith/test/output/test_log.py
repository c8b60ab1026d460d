"""Tests for toolsmith.output.log - logging setup."""

import logging

from rich.logging import RichHandler

from toolsmith.output.log import configure_logging


def _rich_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


class TestConfigureLogging:
    def test_levels(self) -> None:
        logger = logging.getLogger("toolsmith")

        configure_logging()
        assert logger.level == logging.INFO
        configure_logging(verbose=True)
        assert logger.level == logging.DEBUG
        configure_logging(quiet=True)
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_handler_replaced_not_stacked(self) -> None:
        logger = logging.getLogger("toolsmith")
        configure_logging()
        configure_logging()
        assert len(_rich_handlers(logger)) == 1

    def test_module_loggers_inherit(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("toolsmith.engine.orchestrator").getEffectiveLevel() == (
            logging.DEBUG
        )
