"""Token Codecs: decode Brightspace JWTs and mint/verify POLITEShop session tokens.

Invariants:
    - Brightspace tokens are decoded WITHOUT signature verification; their claims
      are advisory and must be cross-validated before being trusted
    - A Brightspace token must carry a string `tenantid` and a non-empty `sub`
    - POLITEShop session tokens are HS256-signed and carry only `sub`
    - An empty or non-base64 signing key is a ConfigurationError, never a fallback

Design Decisions:
    - PyJWT for both paths: decode(verify_signature=False) for the opaque upstream
      token, encode/decode(HS256) for the locally minted one
    - Signing key stored base64-encoded in settings, decoded per use (ADR: keys
      supplied out-of-band as text)
"""

import base64
import binascii
from dataclasses import dataclass

import jwt

from politeshop.core.errors import ConfigurationError, InvalidTokenError

SESSION_TOKEN_ALGORITHM = "HS256"


@dataclass(frozen=True)
class BrightspaceTokenPayload:
    """Claims extracted from an (unverified) Brightspace JWT."""
    user_id: str
    tenant_id: str


def parse_brightspace_jwt(token: str) -> BrightspaceTokenPayload:
    """Decode a Brightspace JWT without verifying it and extract sub + tenantid."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Brightspace", f"malformed JWT ({e})") from e

    if "tenantid" not in claims:
        raise InvalidTokenError("Brightspace", "missing tenantid claim")
    tenant_id = claims["tenantid"]
    if not isinstance(tenant_id, str):
        raise InvalidTokenError(
            "Brightspace", f"tenantid claim is a {type(tenant_id).__name__}",
        )

    user_id = claims.get("sub")
    if not isinstance(user_id, str):
        raise InvalidTokenError("Brightspace", "sub claim is not a string")
    if not user_id:
        raise InvalidTokenError("Brightspace", "missing sub claim")

    return BrightspaceTokenPayload(user_id=user_id, tenant_id=tenant_id)


def decode_signing_key(encoded: str) -> bytes:
    """Decode the base64 signing key from settings."""
    if not encoded:
        raise ConfigurationError("signing_key", "SIGNING_KEY is not set")
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("signing_key", "SIGNING_KEY is not valid base64") from e
    if not key:
        raise ConfigurationError("signing_key", "SIGNING_KEY decodes to zero bytes")
    return key


def mint_session_token(key: bytes, user_id: str) -> str:
    """Mint a POLITEShop session token whose only claim is the verified subject."""
    return jwt.encode({"sub": user_id}, key, algorithm=SESSION_TOKEN_ALGORITHM)


def verify_session_token(key: bytes, token: str) -> str:
    """Verify a POLITEShop session token and return its subject."""
    try:
        claims = jwt.decode(token, key, algorithms=[SESSION_TOKEN_ALGORITHM])
    except jwt.PyJWTError as e:
        raise InvalidTokenError("POLITEShop", f"verification failed ({e})") from e

    user_id = claims.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("POLITEShop", "missing sub claim")
    return user_id
