"""Credential Chain Resolver: raw credentials -> PolitemallSession with a verified user id.

Protocol:
    1. Site auth: attach d2lSessionVal/d2lSecureSessionVal cookies to
       https://{politeDomain}.{site_domain}/
    2. Decode the caller's Brightspace JWT (unverified) for tenantid + sub
    3. Resolve the VERIFIED user id:
       - continuation: a POLITEShop token is present -> verify HS256 signature, use sub
       - bootstrap: no POLITEShop token -> exchange csrfToken for a FRESH Brightspace
         JWT, require fresh.sub == caller.sub, then mint a new POLITEShop token
    4. session.user_id is the verified id, never the caller token's raw sub

Invariants:
    - IdentityMismatchError fails the whole resolution; there is no fallback to an
      unverified identity and no POLITEShop token is minted
    - The continuation path never contacts the token-exchange endpoint
    - A missing/invalid signing key is a ConfigurationError raised BEFORE any
      outbound exchange
    - On any failure the per-request httpx client is closed

Design Decisions:
    - Resolver owns settings, AuthSecrets is plain request input
      (ADR: one resolver per process, one AuthSecrets per request)
    - new_session_token returned to the caller instead of writing a cookie: the HTTP
      layer decides how to persist it (max-age from settings)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from politeshop.config import Settings
from politeshop.core.errors import (
    ErrorContext, IdentityMismatchError, MissingCredentialsError,
)
from politeshop.core.tokens import (
    decode_signing_key, mint_session_token, parse_brightspace_jwt,
    verify_session_token,
)
from politeshop.core.urls import first_subdomain
from politeshop.infrastructure.politemall_client import (
    PolitemallSession, build_site_client,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSecrets:
    """Raw, unverified credentials supplied by the caller for one request."""
    polite_domain: str
    d2l_session_val: str
    d2l_secure_session_val: str
    brightspace_token: str
    politeshop_token: str | None = None
    csrf_token: str | None = None

    @classmethod
    def from_cookies(cls, cookies: Mapping[str, str]) -> "AuthSecrets":
        """Read secrets from the browser cookies set by the extension."""
        return cls(
            polite_domain=_required(cookies, "politeDomain"),
            d2l_session_val=_required(cookies, "d2lSessionVal"),
            d2l_secure_session_val=_required(cookies, "d2lSecureSessionVal"),
            brightspace_token=_required(cookies, "brightspaceToken"),
            politeshop_token=cookies.get("politeshopToken") or None,
            csrf_token=cookies.get("csrfToken") or None,
        )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "AuthSecrets":
        """Read secrets from X-* headers; the subdomain comes from Origin."""
        origin = headers.get("origin", "")
        polite_domain = first_subdomain(origin)
        if not polite_domain:
            raise MissingCredentialsError("Origin")
        return cls(
            polite_domain=polite_domain,
            d2l_session_val=_required(headers, "x-d2l-session-val"),
            d2l_secure_session_val=_required(headers, "x-d2l-secure-session-val"),
            brightspace_token=_required(headers, "x-brightspace-token"),
            politeshop_token=headers.get("x-politeshop-token") or None,
            csrf_token=headers.get("x-csrf-token") or None,
        )

    @classmethod
    def from_env(cls, polite_domain: str) -> "AuthSecrets":
        """Read secrets from the environment (scripts and manual testing)."""
        return cls(
            polite_domain=polite_domain,
            d2l_session_val=_required(os.environ, "D2L_SESSION_VAL"),
            d2l_secure_session_val=_required(os.environ, "D2L_SECURE_SESSION_VAL"),
            brightspace_token=_required(os.environ, "BRIGHTSPACE_TOKEN"),
            politeshop_token=os.environ.get("POLITESHOP_TOKEN") or None,
            csrf_token=os.environ.get("CSRF_TOKEN") or None,
        )


def _required(source: Mapping[str, str], key: str) -> str:
    value = source.get(key)
    if not value:
        raise MissingCredentialsError(key)
    return value


@dataclass(frozen=True)
class ResolvedSession:
    session: PolitemallSession
    # Set only on the bootstrap path; the caller persists it (e.g. as a cookie)
    new_session_token: str | None = None


class CredentialChainResolver:
    """Builds fully authenticated sessions from AuthSecrets."""

    def __init__(
        self,
        signing_key: str,
        *,
        site_domain: str = "polite.edu.sg",
        hypermedia_domain: str = "api.brightspace.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._signing_key = signing_key
        self.site_domain = site_domain
        self.hypermedia_domain = hypermedia_domain
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CredentialChainResolver":
        return cls(
            settings.signing_key,
            site_domain=settings.site_domain,
            hypermedia_domain=settings.hypermedia_api_domain,
            timeout_seconds=settings.http_timeout_seconds,
            transport=transport,
        )

    async def resolve(self, secrets: AuthSecrets) -> ResolvedSession:
        """Run the full credential chain. The caller owns (and must close) the session."""
        http = build_site_client(
            secrets.polite_domain,
            secrets.d2l_session_val,
            secrets.d2l_secure_session_val,
            site_domain=self.site_domain,
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
        )
        try:
            return await self._resolve_with_client(http, secrets)
        except BaseException:
            await http.aclose()
            raise

    async def _resolve_with_client(
        self, http: httpx.AsyncClient, secrets: AuthSecrets,
    ) -> ResolvedSession:
        session = PolitemallSession(
            http=http,
            polite_domain=secrets.polite_domain,
            site_domain=self.site_domain,
            hypermedia_domain=self.hypermedia_domain,
        )

        claimed = parse_brightspace_jwt(secrets.brightspace_token)
        session = session.with_brightspace_token(secrets.brightspace_token, claimed)

        key = decode_signing_key(self._signing_key)

        if secrets.politeshop_token:
            verified_user_id = verify_session_token(key, secrets.politeshop_token)
            logger.debug(
                "Verified POLITEShop token",
                extra={"user_id": verified_user_id, "tenant_id": claimed.tenant_id},
            )
            return ResolvedSession(session.with_user_id(verified_user_id))

        if not secrets.csrf_token:
            raise MissingCredentialsError("csrfToken")

        fresh_token = await session.exchange_csrf_token(secrets.csrf_token)
        fresh = parse_brightspace_jwt(fresh_token)

        # Caller's sub disagrees with Brightspace's: likely impersonation
        if fresh.user_id != claimed.user_id:
            logger.warning(
                "Brightspace subject mismatch during token bootstrap",
                extra={"user_id": fresh.user_id, "tenant_id": claimed.tenant_id},
            )
            raise IdentityMismatchError(ErrorContext(user_id=fresh.user_id))

        new_token = mint_session_token(key, fresh.user_id)
        logger.info(
            "Minted POLITEShop token",
            extra={"user_id": fresh.user_id, "tenant_id": claimed.tenant_id},
        )
        return ResolvedSession(session.with_user_id(fresh.user_id), new_token)
