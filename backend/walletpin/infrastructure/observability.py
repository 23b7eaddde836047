"""Structured Logging — PIN-flow log records as JSON lines or console text.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Only the allow-listed context fields (EXTRA_FIELDS) leave the process; any other
      extra, such as a stray pin or salt, is dropped by both formatters
    - setup_logging is idempotent: calling it again replaces its own handler, never stacks one

Design Decisions:
    - Stdlib logging with a hand-written JSON formatter, no logging dependency
    - Allow-list over deny-list: a new secret-bearing extra stays unlogged by default
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "user_id", "device_id", "operation", "error_code",
    "backend", "scheme", "result", "path",
)

_HANDLER_NAME = "walletpin"


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in EXTRA_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, PIN-flow context merged in at top level."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log.update(_context(record))
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Development format: the plain line, then key=value context."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the walletpin handler on the root logger."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
