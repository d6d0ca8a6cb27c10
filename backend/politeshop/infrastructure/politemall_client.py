"""POLITEMall Session: per-request authenticated context for both upstream APIs.

The POLITEMall frontend talks to two APIs:
    - *.polite.edu.sg (the "site"), authenticated by the d2lSessionVal and
      d2lSecureSessionVal cookies
    - *.api.brightspace.com (hypermedia), authenticated by a Brightspace JWT sent
      as a Bearer token

Invariants:
    - Hypermedia calls require brightspace_token; site calls require the cookies
    - Cookies are scoped to https://{polite_domain}.{site_domain}/ only
    - user_id is empty until set from a VERIFIED source (never from the raw
      Brightspace token supplied by the caller)
    - The session is immutable: with_* methods return a copy sharing the same
      httpx client, so concurrent crawl tasks can share one instance safely

Design Decisions:
    - Frozen dataclass over mutable client: tenant/user resolution is an explicit
      step that produces a new session, not a side effect of crawling
      (ADR: no shared mutable state across concurrent fetches)
    - One httpx.AsyncClient per request: cookie jar + connection pool, closed by
      the caller (async context manager)
"""

import logging
from dataclasses import dataclass, replace

import httpx

from politeshop.core.domain_types import User
from politeshop.core.errors import InvalidCredentialsError, MissingCredentialsError
from politeshop.core.tokens import BrightspaceTokenPayload
from politeshop.infrastructure.siren_fetcher import (
    decode_body, fetch_entity, request_checked,
)
from politeshop.schemas.politemall import BrightspaceTokenResponse, WhoAmIResponse
from politeshop.schemas.siren import Entity

logger = logging.getLogger(__name__)

D2L_SESSION_COOKIE = "d2lSessionVal"
D2L_SECURE_SESSION_COOKIE = "d2lSecureSessionVal"
TOKEN_EXCHANGE_PATH = "/d2l/lp/auth/oauth2/token"
TOKEN_EXCHANGE_SCOPE = "*:*:*"
WHOAMI_PATH = "/d2l/api/lp/1.0/users/whoami"


def build_site_client(
    polite_domain: str,
    d2l_session_val: str,
    d2l_secure_session_val: str,
    *,
    site_domain: str = "polite.edu.sg",
    timeout_seconds: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an httpx client carrying the D2L session cookies for the site."""
    if not d2l_session_val:
        raise MissingCredentialsError(D2L_SESSION_COOKIE)
    if not d2l_secure_session_val:
        raise MissingCredentialsError(D2L_SECURE_SESSION_COOKIE)

    expected_host = f"{polite_domain}.{site_domain}"
    try:
        url = httpx.URL(f"https://{expected_host}/")
    except httpx.InvalidURL as e:
        raise InvalidCredentialsError("politeDomain", str(e)) from e
    if not polite_domain or url.host != expected_host.lower():
        raise InvalidCredentialsError(
            "politeDomain", f"{polite_domain!r} does not form a valid URL",
        )

    cookies = httpx.Cookies()
    cookies.set(D2L_SESSION_COOKIE, d2l_session_val, domain=url.host, path="/")
    cookies.set(
        D2L_SECURE_SESSION_COOKIE, d2l_secure_session_val,
        domain=url.host, path="/",
    )
    return httpx.AsyncClient(
        cookies=cookies, timeout=timeout_seconds, transport=transport,
    )


@dataclass(frozen=True)
class PolitemallSession:
    """Authenticated, request-scoped view of one POLITEMall user."""

    http: httpx.AsyncClient
    polite_domain: str
    site_domain: str = "polite.edu.sg"
    hypermedia_domain: str = "api.brightspace.com"
    brightspace_token: str = ""
    tenant_id: str = ""
    user_id: str = ""

    # ─── Builders ────────────────────────────────────────────────

    def with_brightspace_token(
        self, token: str, payload: BrightspaceTokenPayload,
    ) -> "PolitemallSession":
        """Attach the Bearer token and its tenant id. The payload's sub is NOT trusted."""
        return replace(self, brightspace_token=token, tenant_id=payload.tenant_id)

    def with_tenant_id(self, tenant_id: str) -> "PolitemallSession":
        return replace(self, tenant_id=tenant_id)

    def with_user_id(self, user_id: str) -> "PolitemallSession":
        """Set the user id. Only call with an id derived from a verified source."""
        return replace(self, user_id=user_id)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "PolitemallSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ─── URLs ────────────────────────────────────────────────────

    @property
    def site_base_url(self) -> str:
        return f"https://{self.polite_domain}.{self.site_domain}"

    def hypermedia_url(self, service: str, path: str) -> str:
        """e.g. hypermedia_url("enrollments", "/users/1") for the tenant's API."""
        return f"https://{self.tenant_id}.{service}.{self.hypermedia_domain}{path}"

    # ─── Hypermedia API (Bearer) ─────────────────────────────────

    async def fetch_entity(self, href: str) -> Entity:
        if not self.brightspace_token:
            raise MissingCredentialsError("brightspaceToken")
        return await fetch_entity(self.http, href, self.brightspace_token)

    # ─── Site API (cookies) ──────────────────────────────────────

    async def who_am_i(self) -> User:
        """Base User fields (no school) for the cookie-authenticated user."""
        href = self.site_base_url + WHOAMI_PATH
        resp = await request_checked(self.http, "GET", href)
        who = decode_body(WhoAmIResponse, resp, href)
        return User(id=who.identifier, name=who.first_name)

    async def exchange_csrf_token(self, csrf_token: str) -> str:
        """Exchange the site session + CSRF token for a fresh Brightspace JWT."""
        href = self.site_base_url + TOKEN_EXCHANGE_PATH
        logger.info(
            "Exchanging CSRF token for a fresh Brightspace token",
            extra={"href": href},
        )
        resp = await request_checked(
            self.http, "POST", href,
            data={"scope": TOKEN_EXCHANGE_SCOPE},
            headers={"X-Csrf-Token": csrf_token},
        )
        return decode_body(BrightspaceTokenResponse, resp, href).access_token
