"""Structured logging setup and request-scoped log helpers."""

import json
import logging
import sys
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with the structured fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "extra_fields", None)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """Route all logging to stderr; stdout belongs to the stdio transport."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else TextFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # httpx logs every request at INFO, including URLs that embed API keys.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.info("Logging initialized", extra={"extra_fields": {"json": json_format}})


@dataclass
class RequestContext:
    """Per-request metadata carried through the log helpers."""

    method: str
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: float = field(default_factory=time.monotonic)
    metadata: dict[str, str] = field(default_factory=dict)

    def with_metadata(self, key: str, value: str) -> "RequestContext":
        self.metadata[key] = value
        return self

    def duration_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)


def log_request_start(ctx: RequestContext) -> None:
    logger.info(
        "Request started",
        extra={"extra_fields": {"request_id": ctx.request_id, "method": ctx.method}},
    )


def log_request_complete(ctx: RequestContext, success: bool) -> None:
    fields = {
        "request_id": ctx.request_id,
        "method": ctx.method,
        "duration_ms": ctx.duration_ms(),
        "success": success,
        **ctx.metadata,
    }
    if success:
        logger.info("Request completed successfully", extra={"extra_fields": fields})
    else:
        logger.warning("Request completed with errors", extra={"extra_fields": fields})


def log_tool_call(ctx: RequestContext, tool_name: str, arguments: dict[str, Any]) -> None:
    logger.debug(
        "Tool call initiated",
        extra={
            "extra_fields": {
                "request_id": ctx.request_id,
                "tool_name": tool_name,
                "arguments": json.dumps(arguments, default=str),
            }
        },
    )


def log_tool_result(
    ctx: RequestContext,
    tool_name: str,
    success: bool,
    error: Optional[str] = None,
    level: int = logging.ERROR,
) -> None:
    fields = {
        "request_id": ctx.request_id,
        "tool_name": tool_name,
        "duration_ms": ctx.duration_ms(),
        "success": success,
    }
    if success:
        logger.info("Tool call completed successfully", extra={"extra_fields": fields})
        return
    fields["error"] = error
    logger.log(level, "Tool call failed", extra={"extra_fields": fields})
