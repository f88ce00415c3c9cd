"""Structured logging with score-run correlation and credential redaction."""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import Settings, get_settings


# Id of the ScoreRun or IndexScoreRun the current task works on
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

# LogRecord attributes copied into JSON output when passed via ``extra=``
CONTEXT_FIELDS = ("ticker", "index_id", "model", "attempt")

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine", "asyncio")


class StructuredFormatter(logging.Formatter):
    """One JSON object per log line."""

    def __init__(self, include_location: bool = False):
        super().__init__()
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = run_id_var.get()
        if run_id:
            entry["run_id"] = run_id

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_location:
            entry["location"] = f"{record.pathname}:{record.lineno} in {record.funcName}"

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line console output for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        run_id = run_id_var.get()
        run = f" run={run_id[:8]}" if run_id else ""
        when = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        line = f"{when} {record.levelname:<7}{run} {record.name}: {record.getMessage()}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class SensitiveDataFilter(logging.Filter):
    """Mask API keys and bearer tokens before a record is emitted.

    Covers ``apikey=`` query strings from market data URLs, ``key: value``
    pairs and ``Authorization: Bearer`` headers.
    """

    SENSITIVE_KEYS = ("apikey", "api_key", "token", "secret", "password")

    KEY_VALUE = re.compile(
        r"""(?P<key>['"]?(?:%s)['"]?\s*[=:]\s*)['"]?[^\s,&'"}\]]+['"]?"""
        % "|".join(SENSITIVE_KEYS),
        flags=re.IGNORECASE,
    )
    BEARER = re.compile(r"(?P<key>bearer\s+)[A-Za-z0-9._\-]+", flags=re.IGNORECASE)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True

    def redact(self, text: str) -> str:
        text = self.KEY_VALUE.sub(r"\g<key>[REDACTED]", text)
        return self.BEARER.sub(r"\g<key>[REDACTED]", text)


def setup_logging(settings: Settings | None = None) -> None:
    """Install a single stderr handler on the root logger."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if settings.log_format == "json":
        handler.setFormatter(StructuredFormatter(include_location=settings.debug))
    else:
        handler.setFormatter(TextFormatter())
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    quiet = logging.DEBUG if settings.debug else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)


def get_logger(name: str) -> logging.Logger:
    """Logger namespaced under ``indexpilot``."""
    return logging.getLogger(f"indexpilot.{name}")
