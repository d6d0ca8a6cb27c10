"""POLITEMall Site Schemas: JSON bodies returned by the cookie-authenticated site API.

Invariants:
    - Only the fields the crawler reads are declared; everything else is ignored
    - A body missing a declared required field fails validation (MalformedResponseError)
"""

from pydantic import BaseModel, ConfigDict, Field


class BrightspaceTokenResponse(BaseModel):
    """Response from POST /d2l/lp/auth/oauth2/token."""
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    expires_at: int | None = None


class WhoAmIResponse(BaseModel):
    """Response from GET /d2l/api/lp/1.0/users/whoami."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    identifier: str = Field(alias="Identifier")
    first_name: str = Field(alias="FirstName")
