"""Siren Fetcher: authenticated GET + decode of one hypermedia document.

Invariants:
    - The href must be absolute and fully substituted; no templating happens here
    - Transport failure, non-2xx status and undecodable body are distinct errors
      (TransportError, UpstreamStatusError, MalformedResponseError)
    - Status code and reason phrase are preserved on UpstreamStatusError
    - Nothing is retried; the fetcher holds no state besides the shared client

Design Decisions:
    - Module functions over a class: the httpx.AsyncClient already owns connection
      reuse and cookies, the fetcher only adds auth and error mapping
    - request_checked/decode_body shared with the site API client so both upstreams
      report failures the same way
"""

import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from politeshop.core.errors import (
    MalformedResponseError, TransportError, UpstreamStatusError,
)
from politeshop.schemas.siren import Entity

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def request_checked(
    http: httpx.AsyncClient, method: str, href: str, **kwargs,
) -> httpx.Response:
    """Send a request and map transport failures and non-2xx statuses."""
    if not href.startswith(("https://", "http://")):
        raise TransportError(href, "URL is not absolute")
    try:
        resp = await http.request(method, href, **kwargs)
    except httpx.HTTPError as e:
        logger.warning(
            f"Request failed: {e!r}", extra={"href": href},
        )
        raise TransportError(href, str(e) or type(e).__name__) from e

    if not resp.is_success:
        logger.warning(
            f"Upstream returned {resp.status_code} {resp.reason_phrase}",
            extra={"href": href, "status_code": resp.status_code},
        )
        raise UpstreamStatusError(href, resp.status_code, resp.reason_phrase)
    return resp


def decode_body(model: type[ModelT], resp: httpx.Response, href: str) -> ModelT:
    """Validate a JSON response body against a pydantic model."""
    try:
        return model.model_validate_json(resp.content)
    except ValidationError as e:
        raise MalformedResponseError(
            href, f"{e.error_count()} validation error(s)",
        ) from e


async def fetch_entity(
    http: httpx.AsyncClient, href: str, bearer_token: str,
) -> Entity:
    """Fetch and decode the Siren entity at href using a Bearer token."""
    logger.debug("Fetching Siren entity", extra={"href": href})
    resp = await request_checked(
        http, "GET", href,
        headers={"Authorization": f"Bearer {bearer_token}"},
    )
    return decode_body(Entity, resp, href)
