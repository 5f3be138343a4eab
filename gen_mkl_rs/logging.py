"""Logging for a single generator run.

Modules log through ``get_logger(__name__)``, which places them under the
``gen_mkl_rs`` namespace. ``configure_logging`` installs the handlers of
one run on that namespace and ``shutdown_logging`` removes them again.
Handlers that somebody else attached to the namespace are left alone.
"""
import datetime as _dt
import json
import logging as _logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

_LOGGER_NAMESPACE = "gen_mkl_rs"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# DEBUG and INFO stay uncoloured
_COLORS = {
    _logging.WARNING: "\033[33m",
    _logging.ERROR: "\033[31m",
    _logging.CRITICAL: "\033[41m",
}
_RESET = "\033[0m"


@dataclass
class LoggingState:
    console_level: int
    log_path: Optional[str] = None
    jsonl_path: Optional[str] = None
    handlers: list[_logging.Handler] = field(default_factory=list, repr=False)


_state: Optional[LoggingState] = None


def _parse_level(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    level = _logging.getLevelNamesMapping().get(str(value).upper())
    if level is None:
        raise ValueError(f"Unknown log level: {value}")
    return level


class _ColorFormatter(_logging.Formatter):
    def format(self, record: _logging.LogRecord) -> str:
        message = super().format(record)
        color = _COLORS.get(record.levelno)
        return f"{color}{message}{_RESET}" if color else message


class _JsonLinesFormatter(_logging.Formatter):
    def format(self, record: _logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, _DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _stream_handler(stream, level: int, use_color: bool) -> _logging.Handler:
    handler = _logging.StreamHandler(stream=stream)
    handler.setLevel(level)
    formatter_cls = _ColorFormatter if use_color and stream.isatty() else _logging.Formatter
    handler.setFormatter(formatter_cls(_FORMAT, _DATEFMT))
    return handler


def _file_handler(path: str, level: int, formatter: _logging.Formatter) -> _logging.Handler:
    handler = _logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _resolve_log_dir(logging_cfg: Dict[str, Any], override: Optional[str]) -> Optional[str]:
    # the generated file is the only artifact unless a log directory is asked for
    log_dir = override or logging_cfg.get("dir")
    return os.path.abspath(log_dir) if log_dir else None


def get_logger(name: Optional[str] = None) -> _logging.Logger:
    if name is None:
        return _logging.getLogger(_LOGGER_NAMESPACE)
    if name.startswith(_LOGGER_NAMESPACE):
        return _logging.getLogger(name)
    return _logging.getLogger(f"{_LOGGER_NAMESPACE}.{name}")


def configure_logging(
    config: Dict[str, Any],
    *,
    console_level_override: Optional[str] = None,
    log_dir_override: Optional[str] = None,
    force_reconfigure: bool = False,
) -> LoggingState:
    """Install console handlers and, with a log directory, file handlers.

    Records below ERROR go to stdout, the rest to stderr. A second call
    returns the current state unless ``force_reconfigure`` is set, in which
    case the previous run's handlers are replaced.

    Raises ValueError for an unknown level name.
    """
    global _state

    if _state is not None and not force_reconfigure:
        return _state

    logging_cfg: Dict[str, Any] = config.get("logging", {}) if config else {}
    console_level = _parse_level(console_level_override, _parse_level(logging_cfg.get("console_level"), _logging.INFO))
    file_level = _parse_level(logging_cfg.get("file_level"), _logging.DEBUG)
    use_color = bool(logging_cfg.get("color", True))
    log_dir = _resolve_log_dir(logging_cfg, log_dir_override)

    shutdown_logging()
    state = LoggingState(console_level=console_level)

    stdout_handler = _stream_handler(sys.stdout, console_level, use_color)
    stdout_handler.addFilter(lambda record: record.levelno < _logging.ERROR)
    state.handlers.append(stdout_handler)
    state.handlers.append(_stream_handler(sys.stderr, max(console_level, _logging.ERROR), use_color))

    logger_level = console_level
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = _dt.datetime.now().strftime(logging_cfg.get("timestamp_format", "%Y%m%dT%H%M%S"))
        pattern = logging_cfg.get("filename_pattern", "gen-mkl-rs-{timestamp}.log")
        state.log_path = os.path.join(log_dir, pattern.format(timestamp=timestamp))
        state.handlers.append(_file_handler(state.log_path, file_level, _logging.Formatter(_FORMAT, _DATEFMT)))
        if logging_cfg.get("jsonl", False):
            state.jsonl_path = os.path.splitext(state.log_path)[0] + ".jsonl"
            state.handlers.append(_file_handler(state.jsonl_path, file_level, _JsonLinesFormatter()))
        logger_level = min(console_level, file_level)

    logger = get_logger()
    logger.setLevel(logger_level)
    logger.propagate = False
    for handler in state.handlers:
        logger.addHandler(handler)

    _state = state
    return state


def shutdown_logging() -> None:
    """Remove and close the handlers installed by configure_logging."""
    global _state

    if _state is None:
        return
    logger = get_logger()
    for handler in _state.handlers:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(_logging.NOTSET)
    logger.propagate = True
    _state = None
