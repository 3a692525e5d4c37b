# verisync/utils/logger.py
"""
Centralized logging setup for verisync.

This module configures the root logger once with a JSON formatter writing
to stderr, so that stdout carries only the human or JSON report. Every
module obtains its logger through `setup_logger(__name__)`.
"""
import logging
import sys
from typing import Any, MutableMapping, Optional

from pythonjsonlogger import jsonlogger

from verisync.utils.log_sinks import RUN_LOG_FORMAT, JsonlFileHandler, RunIdFilter

_LOGGING_CONFIGURED = False


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Extends the standard logging adapter to support structured logging.

    Structured data passed via `extra` is nested under an `extra_data` key
    so it never collides with the standard LogRecord attributes.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Wraps the caller's `extra` mapping under `extra_data`.

        :param msg: The original log message.
        :type msg: str
        :param kwargs: The keyword arguments passed to the log call.
        :type kwargs: MutableMapping[str, Any]
        :return: The processed message and keyword arguments.
        :rtype: tuple[str, MutableMapping[str, Any]]
        """
        original_extra_content = kwargs.get("extra")
        if original_extra_content is not None:
            kwargs["extra"] = {"extra_data": original_extra_content}
        return msg, kwargs


def _logging_section() -> dict:
    # Imported lazily: config itself logs through setup_logger.
    from verisync.utils.config import get_config

    section = get_config().get("logging")
    return section if isinstance(section, dict) else {}


def _resolve_level() -> str:
    """Level from config.yaml `logging.level`, else the VERISYNC_LOG_LEVEL setting."""
    from verisync.schemas.settings import settings

    level = _logging_section().get("level") or settings.log_level
    return str(level).upper()


def _configure_root(level_name: Optional[str] = None) -> None:
    global _LOGGING_CONFIGURED

    root_logger = logging.getLogger()
    level_name = (level_name or _resolve_level()).upper()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(jsonlogger.JsonFormatter(RUN_LOG_FORMAT))
    console_handler.addFilter(RunIdFilter())
    root_logger.addHandler(console_handler)

    logs_dir = _logging_section().get("dir")
    if logs_dir:
        root_logger.addHandler(JsonlFileHandler(str(logs_dir)))

    _LOGGING_CONFIGURED = True
    root_logger.debug(f"Root logger configured. Level: {level_name}")


def setup_logger(name: str) -> StructuredLoggerAdapter:
    """Sets up the root logger and returns a structured child logger.

    On the first call the root logger is configured with all handlers and
    filters. Subsequent calls simply retrieve a logger for `name`.

    :param name: The name of the logger, typically `__name__`.
    :type name: str
    :return: A `StructuredLoggerAdapter` instance ready for use.
    :rtype: StructuredLoggerAdapter
    """
    if not _LOGGING_CONFIGURED:
        _configure_root()

    return StructuredLoggerAdapter(logging.getLogger(name), {})


def set_log_level(level_name: str) -> None:
    """Reconfigure the root logger at a new level (used by ``--debug``)."""
    _configure_root(level_name)
