from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

import pytest

from territory_tabs import logging_utils


@pytest.fixture
def layout_logger(monkeypatch):
    monkeypatch.delenv(logging_utils.LOG_LEVEL_ENV_VAR, raising=False)
    name = "TerritoryTabs.Test"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_resolve_logs_dir_prefers_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TERRITORY_TABS_LOG_DIR", str(tmp_path / "custom"))
    target = logging_utils.resolve_logs_dir()
    assert target == tmp_path / "custom" / "TerritoryTabs"
    assert target.is_dir()


def test_resolve_logs_dir_falls_back_to_xdg_state(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TERRITORY_TABS_LOG_DIR", raising=False)
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    target = logging_utils.resolve_logs_dir("Layouts")
    assert target == tmp_path / "state" / "territory-tabs" / "logs" / "Layouts"


def test_rotating_handler_counts_live_file_in_retention(tmp_path) -> None:
    handler = logging_utils.build_rotating_file_handler(tmp_path, "layout.log", retention=3)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert handler.baseFilename == str(tmp_path / "layout.log")
    finally:
        handler.close()
    single = logging_utils.build_rotating_file_handler(tmp_path, "single.log", retention=0)
    try:
        assert single.backupCount == 0
    finally:
        single.close()


def test_resolve_log_level(monkeypatch) -> None:
    monkeypatch.delenv(logging_utils.LOG_LEVEL_ENV_VAR, raising=False)
    assert logging_utils.resolve_log_level(True) == logging.DEBUG
    assert logging_utils.resolve_log_level(False) == logging.INFO


def test_resolve_log_level_honours_named_override(monkeypatch) -> None:
    monkeypatch.setenv(logging_utils.LOG_LEVEL_ENV_VAR, "warning")
    assert logging_utils.resolve_log_level(True) == logging.WARNING
    assert logging_utils.resolve_log_level(False, "error") == logging.ERROR
    assert logging_utils.resolve_log_level(False, "15") == 15
    assert logging_utils.resolve_log_level(True, "chatty") == logging.DEBUG


def test_resolve_logs_dir_skips_unwritable_roots(tmp_path, monkeypatch) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("TERRITORY_TABS_LOG_DIR", str(blocker))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    target = logging_utils.resolve_logs_dir()
    assert target == tmp_path / "state" / "territory-tabs" / "logs" / "TerritoryTabs"


def test_rotating_handler_uses_layout_format_by_default(tmp_path) -> None:
    handler = logging_utils.build_rotating_file_handler(tmp_path)
    try:
        assert handler.formatter is not None
        assert handler.formatter._fmt == logging_utils.LOG_FORMAT
    finally:
        handler.close()


def test_configure_level_argument_wins_over_debug_flag(tmp_path, layout_logger) -> None:
    logger = logging_utils.configure_layout_logger(
        log_dir=tmp_path, logger_name=layout_logger, debug_enabled=True, level="warning"
    )
    assert logger.level == logging.WARNING


def test_configure_disables_propagation_by_default(tmp_path, monkeypatch, layout_logger) -> None:
    monkeypatch.delenv("TERRITORY_TABS_PROPAGATE_LOGS", raising=False)
    logger = logging_utils.configure_layout_logger(log_dir=tmp_path, logger_name=layout_logger, debug_enabled=True)
    assert logger.propagate is False
    assert logger.level == logging.DEBUG

    logger.debug("moved %d", 7)
    for handler in logger.handlers:
        handler.flush()
    assert "moved 7" in (tmp_path / logging_utils.LOG_FILENAME).read_text(encoding="utf-8")


def test_configure_env_enables_propagation(tmp_path, monkeypatch, layout_logger) -> None:
    monkeypatch.setenv("TERRITORY_TABS_PROPAGATE_LOGS", "yes")
    logger = logging_utils.configure_layout_logger(log_dir=tmp_path, logger_name=layout_logger)
    assert logger.propagate is True
    assert logger.level == logging.INFO


def test_configure_twice_does_not_stack_handlers(tmp_path, layout_logger) -> None:
    logging_utils.configure_layout_logger(log_dir=tmp_path, logger_name=layout_logger)
    logger = logging_utils.configure_layout_logger(log_dir=tmp_path, logger_name=layout_logger)
    assert len([h for h in logger.handlers if isinstance(h, RotatingFileHandler)]) == 1
