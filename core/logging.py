# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Core - Structured logging with reconcile context
# PURPOSE: Consistent, queryable logging across reconcilers and composer
# CREATED: 14 OCT 2026
# ============================================================================
"""
Structured Logging

JSON lines for log aggregation (LOG_FORMAT=json), one readable line per
record otherwise. Every record carries the active reconcile context:

    resource_type   schema | namespace | config-file
    request_type    Create | Update | Delete
    physical_id     identity of the resource being reconciled
    cluster_name    set by the composer
    request_id      set by the HTTP lifecycle endpoint

Usage:
    from core.logging import get_logger, log_context, ComponentType

    logger = get_logger(__name__, ComponentType.RECONCILER)

    with log_context(resource_type="schema", physical_id="mysql://db:3306/temporal"):
        logger.info("Running update-schema")

Credentials must never be passed to a logger. As a backstop, RedactingFilter
masks key=value pairs whose key names a password or secret.
"""

import json
import logging
import os
import re
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union


class ComponentType(str, Enum):
    """Component types for logging categorization."""
    RECONCILER = "reconciler"
    PLANNER = "planner"
    COMPOSER = "composer"
    API = "api"
    INFRASTRUCTURE = "infrastructure"


# ============================================================================
# CONTEXT
# ============================================================================

@dataclass(frozen=True)
class LogContext:
    """Reconcile context attached to every record. Unset fields are omitted."""
    resource_type: Optional[str] = None
    request_type: Optional[str] = None
    physical_id: Optional[str] = None
    cluster_name: Optional[str] = None
    request_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **kwargs) -> "LogContext":
        """Child context: given fields override, unknown keys land in extra."""
        known = {f.name for f in fields(self)} - {"extra"}
        changes = {k: v for k, v in kwargs.items() if k in known}
        extra = {**self.extra, **{k: v for k, v in kwargs.items() if k not in known}}
        return replace(self, extra=extra, **changes)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


_local = threading.local()


def _stack() -> List[LogContext]:
    if not hasattr(_local, "stack"):
        _local.stack = []
    return _local.stack


def get_current_context() -> LogContext:
    stack = _stack()
    return stack[-1] if stack else LogContext()


@contextmanager
def log_context(**kwargs) -> Iterator[LogContext]:
    """
    Push a child context for the duration of the block.

    Contexts nest per thread: reconciliations served from FastAPI's
    threadpool never see each other's fields.

    Example:
        with log_context(cluster_name="orders"):
            with log_context(resource_type="namespace", request_type="Create"):
                logger.info("Registering namespace")   # carries both
    """
    context = get_current_context().merged(**kwargs)
    stack = _stack()
    stack.append(context)
    try:
        yield context
    finally:
        stack.pop()


# ============================================================================
# REDACTION
# ============================================================================

_SECRET_PAIR = re.compile(r"(?i)\b([\w-]*(?:password|passwd|pwd|secret)[\w-]*)(\s*[=:]\s*)(\S+)")


def redact(text: str) -> str:
    """Mask the value of password/secret key=value pairs."""
    return _SECRET_PAIR.sub(r"\1\2***", text)


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        return True


# ============================================================================
# FORMATTERS
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": _utcnow().isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        component = getattr(record, "component", None)
        if component:
            log_data["component"] = component

        context = get_current_context().to_dict()
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(log_data, default=str)


# Context fields shown by HumanFormatter, with their short labels
_HUMAN_FIELDS = (
    ("cluster_name", "cluster"),
    ("request_type", "event"),
    ("resource_type", "resource"),
    ("physical_id", "id"),
)


class HumanFormatter(logging.Formatter):
    """Single-line format for local development."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        parts = [
            f"{label}={getattr(context, name)}"
            for name, label in _HUMAN_FIELDS
            if getattr(context, name) is not None
        ]
        suffix = f" [{' '.join(parts)}]" if parts else ""

        line = (
            f"{_utcnow():%Y-%m-%d %H:%M:%S} {record.levelname:<8} "
            f"{record.name}{suffix}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """Adds the component to every record it emits."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        if self.extra.get("component"):
            extra.setdefault("component", self.extra["component"])
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name, normally __name__
        component: Component type for categorization
    """
    return ContextLogger(logging.getLogger(name), {"component": component.value if component else None})


def configure_logging(level: Union[str, int] = "INFO", json_output: bool = False) -> None:
    """
    Configure the root logger once at process start.

    Args:
        level: Log level name or number
        json_output: JSON lines (also enabled by LOG_FORMAT=json)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    # Admin tool chatter goes to stderr; our own records go to stdout
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RedactingFilter())
    root.addHandler(handler)


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "RedactingFilter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "redact",
]
