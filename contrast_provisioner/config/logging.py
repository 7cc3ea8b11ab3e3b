"""Staging log output via loguru, with stdlib records (requests/urllib3) routed in."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from loguru import logger as _BASE_LOGGER


_logger = _BASE_LOGGER

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_TRUE_VALUES = {"1", "true", "yes", "on"}
_QUIET_STDLIB_PREFIXES = ("urllib3", "requests")


def _env_flag(name: str, default: bool) -> bool:
    """Return boolean environment flag with common truthy values."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _short_source(path_value: str) -> str:
    """Render a source path relative to the package, else by file name."""
    if not path_value:
        return "unknown"
    path = Path(path_value)
    try:
        return path.resolve().relative_to(_PACKAGE_ROOT).as_posix()
    except (OSError, ValueError):
        return path.name


def _patch_record(record: dict) -> None:
    """Fill ``source`` and ``component`` extras so every record formats the same way."""
    extra = record["extra"]
    std_path = extra.get("std_path")
    if std_path:
        extra["source"] = f"{_short_source(str(std_path))}:{extra.get('std_line', 0)}"
        extra.setdefault("component", extra.get("std_logger") or "stdlib")
    else:
        extra["source"] = f"{_short_source(record['file'].path)}:{record['line']}"
        extra.setdefault("component", "provisioner")


_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level:<8}</level> | "
    "<magenta>{extra[component]}</magenta> | "
    "<cyan>{extra[source]}</cyan> | "
    "<level>{message}</level>"
)


def _log_filter(record: dict) -> bool:
    """Drop HTTP client chatter unless ``CONTRAST_PROVISIONER_LOG_HTTP`` is set."""
    std_logger = str(record["extra"].get("std_logger") or "")
    if std_logger.startswith(_QUIET_STDLIB_PREFIXES):
        return _env_flag("CONTRAST_PROVISIONER_LOG_HTTP", default=False)
    return True


class _InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        _logger.bind(
            std_logger=record.name,
            std_path=record.pathname,
            std_line=record.lineno,
        ).opt(exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str | None = None) -> None:
    """Send logs to stderr so stdout stays reserved for phase output."""
    global _logger
    level = level or os.getenv("CONTRAST_PROVISIONER_LOG_LEVEL", "INFO")
    colorize = _env_flag("CONTRAST_PROVISIONER_LOG_COLOR", default=sys.stderr.isatty())

    _BASE_LOGGER.remove()
    _logger = _BASE_LOGGER.patch(_patch_record)
    _logger.add(
        sys.stderr,
        level=level,
        format=_FORMAT,
        filter=_log_filter,
        colorize=colorize,
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)


configure_logging()

logger = _logger

__all__ = ["logger", "configure_logging"]


if __name__ == "__main__":
    configure_logging(level="DEBUG")
    logger.bind(component="contrast-security-agent").debug("logging self-test passed")
