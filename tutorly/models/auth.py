"""Authentication models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

# 9999-12-31T23:59:59Z, the last instant `datetime` can represent.
MAX_TIMESTAMP = 253402300799


class Claims(BaseModel):
    """Payload embedded in a signed token."""

    sub: str = Field(..., description="Subject (authenticated principal)")
    exp: int = Field(..., ge=0, le=MAX_TIMESTAMP, description="Expiration timestamp")
    iat: Optional[int] = Field(
        None, ge=0, le=MAX_TIMESTAMP, description="Issued at timestamp"
    )

    @property
    def subject(self) -> str:
        return self.sub

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)


class Credentials(BaseModel):
    """Username and password supplied to the token endpoint."""

    username: str = Field(..., description="Account username")
    password: str = Field(..., description="Account password")


class TokenResponse(BaseModel):
    """Token issuance response."""

    token: str = Field(..., description="Signed access token")
    token_type: str = Field("token", description="Send back in the `Token` header")
    expires_at: datetime = Field(..., description="Expiration timestamp")


class IdentityResponse(BaseModel):
    """Identity of the caller as verified by the auth gate."""

    subject: str = Field(..., description="Verified subject")
    expires_at: datetime = Field(..., description="Token expiration timestamp")


__all__ = ["Claims", "Credentials", "TokenResponse", "IdentityResponse"]
