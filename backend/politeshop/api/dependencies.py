"""Route Dependencies: credential resolution and store injection.

Invariants:
    - Every authenticated route receives a PolitemallSession with a verified user id
    - A newly minted POLITEShop token is set as the politeshopToken cookie with
      max_age = session_token_max_age_seconds
    - The cookie survives a failing route: error responses re-issue it from
      request.state.new_session_token
    - The per-request httpx client is closed after the response

Design Decisions:
    - get_resolver is its own dependency so tests can swap the upstream transport
      via app.dependency_overrides
"""

from typing import AsyncGenerator

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from politeshop.config import get_settings
from politeshop.infrastructure.database import get_db
from politeshop.infrastructure.politemall_client import PolitemallSession
from politeshop.services.credential_chain import AuthSecrets, CredentialChainResolver
from politeshop.services.store import PoliteStore

SESSION_TOKEN_COOKIE = "politeshopToken"


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_TOKEN_COOKIE,
        token,
        max_age=get_settings().session_token_max_age_seconds,
        httponly=True,
        samesite="lax",
    )


def get_resolver() -> CredentialChainResolver:
    return CredentialChainResolver.from_settings(get_settings())


async def get_politemall_session(
    request: Request,
    response: Response,
    resolver: CredentialChainResolver = Depends(get_resolver),
) -> AsyncGenerator[PolitemallSession, None]:
    """Resolve the request's cookies into an authenticated session."""
    secrets = AuthSecrets.from_cookies(request.cookies)
    resolved = await resolver.resolve(secrets)
    if resolved.new_session_token:
        # Error handlers build their own response and re-issue it from state
        request.state.new_session_token = resolved.new_session_token
        set_session_cookie(response, resolved.new_session_token)
    async with resolved.session as session:
        yield session


def get_store(db: AsyncSession = Depends(get_db)) -> PoliteStore:
    return PoliteStore(db)
