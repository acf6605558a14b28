"""Token gate middleware and authentication dependency helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from ...models.auth import Claims
from ...services.auth import (
    NOT_AUTHORIZED,
    AuthError,
    MissingTokenError,
    TokenVerifier,
    VerificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """Identity verified by the gate for the current request."""

    subject: str
    token: str
    claims: Claims


class AuthGate(BaseHTTPMiddleware):
    """
    Forward requests carrying a valid token; reject everything else.

    Each request ends in exactly one outcome: the downstream app is called
    with the original request, or a plain-text rejection is written.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        verifier: TokenVerifier,
        header_name: str = "Token",
        exempt_paths: Iterable[str] = (),
        reject_status_code: int = status.HTTP_401_UNAUTHORIZED,
    ) -> None:
        super().__init__(app)
        self.verifier = verifier
        self.header_name = header_name
        self.exempt_paths = frozenset(exempt_paths)
        self.reject_status_code = reject_status_code

    def check(self, token: Optional[str]) -> VerificationResult:
        # An empty header value is still a presented token.
        if token is None:
            return VerificationResult.invalid(MissingTokenError())
        return self.verifier.verify(token)

    def _reject(self, request: Request, error: AuthError) -> Response:
        logger.info(
            "Request rejected by auth gate",
            extra={"path": request.url.path, "error": error.error},
        )
        return PlainTextResponse(error.message, status_code=self.reject_status_code)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        token = request.headers.get(self.header_name)
        outcome = self.check(token)
        if outcome.error is not None:
            return self._reject(request, outcome.error)

        claims = outcome.claims
        request.state.auth = AuthContext(
            subject=claims.sub,
            token=token,
            claims=claims,
        )
        return await call_next(request)


def get_auth_context(request: Request) -> AuthContext:
    """
    Return the identity attached by `AuthGate`.

    Raises HTTPException when the route was reached without passing the gate.
    """
    auth = getattr(request.state, "auth", None)
    if not isinstance(auth, AuthContext):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthorized", "message": NOT_AUTHORIZED},
        )
    return auth


__all__ = ["AuthContext", "AuthGate", "get_auth_context"]
