"""Token issuance and identity routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from ...models.auth import Credentials, IdentityResponse, TokenResponse
from ...services.auth import StaticCredentialVerifier, TokenIssuer
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_PATH = "/auth/token"


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_credential_verifier(request: Request) -> StaticCredentialVerifier:
    return request.app.state.credential_verifier


@router.post(TOKEN_PATH, response_model=TokenResponse)
async def create_token(
    credentials: Credentials,
    issuer: TokenIssuer = Depends(get_token_issuer),
    verifier: StaticCredentialVerifier = Depends(get_credential_verifier),
):
    """Exchange a username and password for a signed token."""
    username = verifier.verify(credentials.username, credentials.password)
    token, expires_at = issuer.issue_token_response(username)
    logger.info("Issued token", extra={"subject": username, "expires_at": expires_at.isoformat()})
    return TokenResponse(token=token, expires_at=expires_at)


@router.get("/api/me", response_model=IdentityResponse)
async def get_current_identity(auth: AuthContext = Depends(get_auth_context)):
    """Return the identity the gate verified for this request."""
    return IdentityResponse(subject=auth.subject, expires_at=auth.claims.expires_at)


__all__ = ["router", "TOKEN_PATH", "get_token_issuer", "get_credential_verifier"]
