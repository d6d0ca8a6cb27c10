"""Error Hierarchy: typed, categorized exceptions for every POLITEShop failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Upstream errors (transport, status, decode, missing element) map to 502
    - Authentication errors (token, identity, credentials, configuration) map to 4xx/500
    - IdentityMismatchError is never caught and downgraded to an unverified identity
    - to_response() produces the REST envelope; no token contents are ever included

Design Decisions:
    - Single hierarchy with PoliteShopError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - ErrorContext names the hypermedia element or token claim that was missing,
      so a failure deep inside a crawl can be traced to one document
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    AUTHENTICATION = "authentication"
    UPSTREAM = "upstream"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    href: str | None = None
    element: str | None = None
    user_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class PoliteShopError(Exception):
    """Base exception for all POLITEShop errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "href": self.context.href,
                    "element": self.context.element,
                },
            }
        }


# ─── Upstream Errors (502) ──────────────────────────────────────

class TransportError(PoliteShopError):
    """No response was received from an upstream API."""
    def __init__(self, href: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.href = href
        super().__init__(
            f"Request to {href} failed: {reason}",
            "UPSTREAM_TRANSPORT_ERROR", ErrorCategory.UPSTREAM,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.href = href


class UpstreamStatusError(PoliteShopError):
    """Upstream API answered with a non-success status."""
    def __init__(
        self, href: str, status_code: int, reason: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.href = href
        super().__init__(
            f"Request to {href} failed with status {status_code} {reason}",
            "UPSTREAM_STATUS_ERROR", ErrorCategory.UPSTREAM,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.href = href
        self.status_code = status_code
        self.reason = reason


class MalformedResponseError(PoliteShopError):
    """Upstream response body could not be decoded."""
    def __init__(self, href: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.href = href
        super().__init__(
            f"Failed to decode response from {href}: {reason}",
            "UPSTREAM_MALFORMED_RESPONSE", ErrorCategory.UPSTREAM,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.href = href


class MissingElementError(PoliteShopError):
    """A required link, property or action is absent from a hypermedia document."""
    def __init__(
        self, kind: str, name: str, where: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.element = f"{kind}:{name}"
        super().__init__(
            f"Missing {name} {kind} in {where}",
            "MISSING_HYPERMEDIA_ELEMENT", ErrorCategory.UPSTREAM,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.kind = kind
        self.name = name
        self.where = where


# ─── Authentication Errors ──────────────────────────────────────

class MissingCredentialsError(PoliteShopError):
    """A required raw credential was not supplied by the caller."""
    def __init__(self, credential: str, context: ErrorContext | None = None):
        super().__init__(
            f"Missing credential: {credential}",
            "MISSING_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )
        self.credential = credential


class InvalidCredentialsError(PoliteShopError):
    """A raw credential was supplied but cannot be used (e.g. bad subdomain)."""
    def __init__(self, credential: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid credential {credential}: {reason}",
            "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.credential = credential


class InvalidTokenError(PoliteShopError):
    """Token is malformed, unverifiable, or lacks a required claim."""
    def __init__(self, token: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.element = f"token:{token}"
        super().__init__(
            f"Invalid {token} token: {reason}",
            "INVALID_TOKEN", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, ctx, 401,
        )
        self.token = token
        self.reason = reason


class IdentityMismatchError(PoliteShopError):
    """Supplied bearer token and freshly exchanged token disagree on the subject."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "User ID mismatch between supplied and exchanged Brightspace tokens",
            "IDENTITY_MISMATCH", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.CRITICAL, context, 403,
        )


class ConfigurationError(PoliteShopError):
    """Server-side configuration is missing or invalid."""
    def __init__(self, setting: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = "Internal server error"
        super().__init__(
            f"Invalid configuration for {setting}: {reason}",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.setting = setting


# ─── Infrastructure Errors ──────────────────────────────────────

class DatabaseError(PoliteShopError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
