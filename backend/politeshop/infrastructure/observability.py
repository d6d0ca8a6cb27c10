"""Structured Logging: JSON lines for crawl and request events.

Invariants:
    - Every line carries timestamp, level, logger name and message
    - Crawl context (user_id, tenant_id, href, module_id, ...) surfaced when present
    - JWT-shaped strings never reach the output, in messages, extras or tracebacks
    - setup_logging installs at most one POLITEShop handler on the root logger

Design Decisions:
    - Redaction happens in the formatter, so a careless f-string upstream of it
      (e.g. an error message echoing a cookie) is still scrubbed
    - Text format shares the redaction; only the layout differs
    - httpx request lines demoted to WARNING: they repeat every crawled href
"""

import json
import logging
import re
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "user_id", "tenant_id", "href", "status_code", "error_code",
    "module_id", "path",
)

# header.payload.signature, each base64url; Brightspace and session tokens alike
_JWT_RE = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]*")
REDACTED = "[redacted-token]"


def redact(text: str) -> str:
    return _JWT_RE.sub(REDACTED, text)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, tokens scrubbed."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is None:
                continue
            log[key] = redact(val) if isinstance(val, str) else val
        if record.exc_info:
            log["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(log, ensure_ascii=False)


class RedactingFormatter(logging.Formatter):
    """Human-readable layout for development, same scrubbing as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging; calling it again replaces the earlier handler."""
    handler = logging.StreamHandler()
    handler.set_name("politeshop")
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(RedactingFormatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    for existing in list(logging.root.handlers):
        if existing.get_name() == "politeshop":
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handler
