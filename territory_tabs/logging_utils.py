"""Opt-in file logging for hosts embedding the layout engine.

Library modules only ever log through ``LAYOUT_LOGGER_NAME``; nothing is
written to disk until a host calls ``configure_layout_logger``.
"""
from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional, Union

LAYOUT_LOGGER_NAME = "TerritoryTabs.Layout"
LOG_FILENAME = "territory-tabs.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DIR_ENV_VAR = "TERRITORY_TABS_LOG_DIR"
LOG_LEVEL_ENV_VAR = "TERRITORY_TABS_LOG_LEVEL"
PROPAGATE_ENV_VAR = "TERRITORY_TABS_PROPAGATE_LOGS"
_TRUTHY = {"1", "true", "yes", "on"}


def propagation_requested() -> bool:
    return os.environ.get(PROPAGATE_ENV_VAR, "").strip().lower() in _TRUTHY


def _log_roots() -> Iterator[Path]:
    override = os.environ.get(LOG_DIR_ENV_VAR)
    if override:
        yield Path(override).expanduser()
    home = Path.home()
    for env_name, default in (("XDG_STATE_HOME", home / ".local" / "state"), ("XDG_CACHE_HOME", home / ".cache")):
        yield Path(os.environ.get(env_name) or default) / "territory-tabs" / "logs"
    yield Path.cwd() / "logs"
    yield Path(tempfile.gettempdir()) / "territory-tabs"


def resolve_logs_dir(log_dir_name: str = "TerritoryTabs") -> Path:
    """Return the first writable `<root>/<log_dir_name>`, creating it.

    Roots are tried in order: ``TERRITORY_TABS_LOG_DIR``, the XDG state and
    cache homes, ``./logs`` and finally the temp directory. Raises the last
    ``OSError`` when none of them can be created.
    """
    failure: Optional[OSError] = None
    for root in _log_roots():
        target = root / log_dir_name
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            failure = exc
            continue
        return target
    assert failure is not None
    raise failure


def build_rotating_file_handler(
    log_dir: Path,
    filename: str = LOG_FILENAME,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> RotatingFileHandler:
    # `retention` counts the live file, so one file kept means no backups.
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=max(retention, 1) - 1,
        encoding="utf-8",
    )
    handler.setFormatter(formatter or logging.Formatter(LOG_FORMAT))
    return handler


def resolve_log_level(debug_enabled: bool, override: Optional[Union[str, int]] = None) -> int:
    """Pick the layout logger level.

    An explicit `override` (or ``TERRITORY_TABS_LOG_LEVEL``) wins when it names
    a known level, either as a number or as a name like ``"warning"``. Anything
    else falls back to DEBUG or INFO depending on `debug_enabled`.
    """
    raw = override if override is not None else os.environ.get(LOG_LEVEL_ENV_VAR)
    if isinstance(raw, int):
        return raw
    token = (raw or "").strip()
    if token.isdigit():
        return int(token)
    if token:
        level = logging.getLevelName(token.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_layout_logger(
    *,
    debug_enabled: bool = False,
    log_dir: Optional[Path] = None,
    retention: int = 5,
    logger_name: str = LAYOUT_LOGGER_NAME,
    level: Optional[Union[str, int]] = None,
) -> logging.Logger:
    """Set up the layout logger for an application embedding the engine.

    Calling it twice for the same directory does not stack handlers.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(resolve_log_level(debug_enabled, level))
    logger.propagate = propagation_requested()
    target_dir = log_dir if log_dir is not None else resolve_logs_dir()
    target_path = os.path.abspath(target_dir / LOG_FILENAME)
    already_attached = any(
        isinstance(handler, RotatingFileHandler) and handler.baseFilename == target_path
        for handler in logger.handlers
    )
    if not already_attached:
        logger.addHandler(build_rotating_file_handler(target_dir, retention=retention))
    return logger
