import logging

import pytest
import structlog

from clustercost.logging import setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog() -> "object":
    yield
    structlog.reset_defaults()


class TestSetupLogging:
    def test_sets_root_level(self, monkeypatch: "pytest.MonkeyPatch") -> "None":
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", logging.WARNING)
        setup_logging("debug")
        assert root.level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self, monkeypatch: "pytest.MonkeyPatch") -> "None":
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", logging.WARNING)
        setup_logging("chatty")
        assert root.level == logging.INFO

    def test_configures_stdlib_logger_factory(self) -> "None":
        setup_logging("info")
        assert structlog.is_configured()
        config = structlog.get_config()
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)
