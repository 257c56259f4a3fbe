"""
Logging Module - Application and conversation logging
=====================================================

All loggers hang off the "eliza" root logger. Console output goes to
stderr so it never interleaves with the console conversation on
stdout; optional log files are written under a log directory:

    eliza.log    every record (plain text, or JSON lines)
    errors.log   ERROR and above, always JSON lines

Records carry a `context` dict (session id, language, ...) bound per
thread with log_context(), so turns from concurrent web sessions can
be told apart.
"""

import json
import logging
import sys
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

ROOT_LOGGER_NAME = "eliza"

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s%(context_suffix)s"


def _context_suffix(record: logging.LogRecord) -> str:
    context = getattr(record, "context", None)
    if not context:
        return ""
    return " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp (UTC), level, logger, message, module, function,
    line, plus `context` and `exception` when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Console formatter with the level name in ANSI color.

    Example output:
        [WARNING] 2024-01-01 12:00:00 | eliza.rules.engine:97 | Parity error [session=3f2a]
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        line = (
            f"{color}[{record.levelname}]{self.RESET} {when} | "
            f"{record.name}:{record.lineno} | {record.getMessage()}"
            f"{_context_suffix(record)}"
        )

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class PlainFormatter(logging.Formatter):
    """Uncolored text format for eliza.log."""

    def __init__(self):
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.context_suffix = _context_suffix(record)
        return super().format(record)


class ContextFilter(logging.Filter):
    """
    Attach the current thread's conversation context to each record.

    Context set on the logger call itself (via LoggerAdapter) wins
    over the thread-local values for the same key.
    """

    _local = threading.local()

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        """Copy of the context bound to the current thread."""
        return dict(getattr(cls._local, "data", {}))

    @classmethod
    def set_context(cls, **values) -> None:
        data = getattr(cls._local, "data", None)
        if data is None:
            data = cls._local.data = {}
        data.update(values)

    @classmethod
    def clear_context(cls) -> None:
        cls._local.data = {}

    def filter(self, record: logging.LogRecord) -> bool:
        merged = self.get_context()
        merged.update(getattr(record, "context", None) or {})
        record.context = merged
        return True


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter returned by get_logger().

    Keyword context given to get_logger(name, **extra) is passed on
    as record.context with every call.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        if not self.extra:
            return msg, kwargs

        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra)
        context.update(extra.get("context") or {})
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


_configured = False


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: str = "INFO",
    json_format: bool = False,
    console_output: bool = True
) -> None:
    """
    Configure the "eliza" logger tree. Only the first call has effect.

    Args:
        log_dir: Directory for eliza.log and errors.log; no files if None
        log_level: Minimum level, by name
        json_format: Write eliza.log as JSON lines instead of text
        console_output: Log to stderr

    Example:
        setup_logging(log_dir="~/.local/share/eliza/logs", log_level="DEBUG")
    """
    global _configured

    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()
    root.propagate = False

    context_filter = ContextFilter()
    handlers = []

    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ColoredFormatter())
        handlers.append(console)

    if log_dir:
        directory = Path(log_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)

        main_file = logging.FileHandler(directory / "eliza.log", encoding="utf-8")
        main_file.setFormatter(JSONFormatter() if json_format else PlainFormatter())
        handlers.append(main_file)

        errors_file = logging.FileHandler(directory / "errors.log", encoding="utf-8")
        errors_file.setLevel(logging.ERROR)
        errors_file.setFormatter(JSONFormatter())
        handlers.append(errors_file)

    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    _configured = True


def get_logger(name: str, **extra) -> LoggerAdapter:
    """
    Logger for a module, under the "eliza" root.

    Args:
        name: Dotted name; "eliza." is prefixed unless already present
        **extra: Context attached to every record from this logger

    Example:
        logger = get_logger("rules.loader")
        logger.info("Loaded 42 rules")
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return LoggerAdapter(logging.getLogger(name), extra)


def set_log_context(**values) -> None:
    """
    Bind context to the current thread until cleared.

    Example:
        set_log_context(session="3f2a", language="us")
    """
    ContextFilter.set_context(**values)


def clear_log_context() -> None:
    ContextFilter.clear_context()


@contextmanager
def log_context(**values) -> Iterator[None]:
    """Bind context for the duration of a block, then restore the previous one."""
    saved = ContextFilter.get_context()
    ContextFilter.set_context(**values)
    try:
        yield
    finally:
        ContextFilter.clear_context()
        ContextFilter.set_context(**saved)
