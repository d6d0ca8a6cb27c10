"""Error Handlers: global exception handlers for the POLITEShop API.

Invariants:
    - PoliteShopError -> structured JSON with the error's http_status
      (401/403/400 for credentials, 500 for configuration, 502 for upstream)
    - Exception (catch-all) -> 500, never leaks internal details
    - A POLITEShop token minted earlier in the same request is re-issued on the
      error response

Design Decisions:
    - Authentication failures logged at WARNING (caller-side), everything else
      at ERROR (server or upstream side)
    - No RequestValidationError handler: routes take no body or query input and
      credentials are read from cookies by the dependency
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from politeshop.api.dependencies import set_session_cookie
from politeshop.core.errors import ErrorCategory, ErrorSeverity, PoliteShopError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(PoliteShopError, politeshop_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    token = getattr(request.state, "new_session_token", None)
    if token:
        set_session_cookie(response, token)
    return response


async def politeshop_error_handler(request: Request, exc: PoliteShopError):
    level = (
        logging.WARNING if exc.category == ErrorCategory.AUTHENTICATION
        else logging.ERROR
    )
    logger.log(
        level,
        f"{exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "user_id": exc.context.user_id,
            "href": exc.context.href,
        },
    )
    return _error_response(request, exc.http_status, exc.to_response())


async def generic_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
