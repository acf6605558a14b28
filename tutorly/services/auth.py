"""Token issuance and verification (HS256 JWT)."""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

import jwt
from fastapi import status
from jwt.algorithms import HMACAlgorithm
from jwt.utils import force_bytes
from pydantic import ValidationError

from ..models.auth import Claims
from .config import AppConfig

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(minutes=5)
DEFAULT_ALGORITHM = "HS256"
NOT_AUTHORIZED = "Not Authorized"

Clock = Callable[[], datetime]
SecretKey = Union[str, bytes]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmptyKeyHMAC(HMACAlgorithm):
    """HMAC that signs with an empty secret instead of refusing it."""

    def prepare_key(self, key: SecretKey) -> bytes:
        key_bytes = force_bytes(key)
        if not key_bytes:
            return key_bytes
        return super().prepare_key(key_bytes)


def _build_jws() -> jwt.PyJWS:
    jws = jwt.PyJWS()
    jws.unregister_algorithm(DEFAULT_ALGORITHM)
    jws.register_algorithm(DEFAULT_ALGORITHM, EmptyKeyHMAC(HMACAlgorithm.SHA256))
    return jws


_jws = _build_jws()


class AuthError(Exception):
    """Domain-specific authentication error."""

    default_error = "unauthorized"
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error or self.default_error
        self.message = message
        self.status_code = status_code or self.default_status
        self.detail = detail or {}


class SigningError(AuthError):
    """The issuer could not produce a token."""

    default_error = "signing_failed"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class MissingTokenError(AuthError):
    default_error = "missing_token"

    def __init__(self, message: str = NOT_AUTHORIZED, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class MalformedTokenError(AuthError):
    default_error = "malformed_token"


class SignatureMismatchError(AuthError):
    default_error = "invalid_signature"


class ExpiredTokenError(AuthError):
    default_error = "token_expired"


class InvalidCredentialsError(AuthError):
    default_error = "invalid_credentials"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one token: either claims or the reason it was refused."""

    claims: Optional[Claims] = None
    error: Optional[AuthError] = None

    def __post_init__(self) -> None:
        if (self.claims is None) == (self.error is None):
            raise ValueError("VerificationResult needs exactly one of claims or error")

    @classmethod
    def valid(cls, claims: Claims) -> "VerificationResult":
        return cls(claims=claims)

    @classmethod
    def invalid(cls, error: AuthError) -> "VerificationResult":
        return cls(error=error)

    @property
    def is_valid(self) -> bool:
        return self.claims is not None

    @property
    def subject(self) -> Optional[str]:
        return self.claims.sub if self.claims is not None else None


def _as_bytes(secret: SecretKey) -> bytes:
    if isinstance(secret, bytes):
        return secret
    return secret.encode("utf-8")


class TokenIssuer:
    """Mint signed, time-limited identity tokens."""

    def __init__(
        self,
        secret: SecretKey,
        *,
        lifetime: timedelta = TOKEN_LIFETIME,
        algorithm: str = DEFAULT_ALGORITHM,
        clock: Clock = utcnow,
    ) -> None:
        self.secret = _as_bytes(secret)
        self.lifetime = lifetime
        self.algorithm = algorithm
        self.clock = clock

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> "TokenIssuer":
        return cls(config.secret_bytes, **kwargs)

    def _build_claims(self, subject: str) -> Claims:
        issued = int(self.clock().timestamp())
        return Claims(
            sub=subject,
            iat=issued,
            exp=issued + int(self.lifetime.total_seconds()),
        )

    def _sign(self, claims: Claims) -> str:
        payload = json.dumps(claims.model_dump(exclude_none=True), separators=(",", ":"))
        return _jws.encode(payload.encode("utf-8"), self.secret, algorithm=self.algorithm)

    def issue_token_response(self, subject: str) -> tuple[str, datetime]:
        """Return token string and expiry timestamp (helper for API routes)."""
        try:
            claims = self._build_claims(subject)
            token = self._sign(claims)
        except (TypeError, ValueError, jwt.PyJWTError, NotImplementedError) as exc:
            logger.error("Token signing failed: %s", exc)
            raise SigningError(f"Failed to sign token: {exc}") from exc
        return token, claims.expires_at

    def issue(self, subject: str) -> str:
        """Create a signed token for the given subject."""
        token, _ = self.issue_token_response(subject)
        return token


class TokenVerifier:
    """Check signature and expiry of tokens minted by `TokenIssuer`."""

    def __init__(
        self,
        secret: SecretKey,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        leeway: timedelta = timedelta(0),
        clock: Clock = utcnow,
    ) -> None:
        self.secret = _as_bytes(secret)
        self.algorithm = algorithm
        self.leeway = leeway
        self.clock = clock

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> "TokenVerifier":
        kwargs.setdefault("leeway", timedelta(seconds=config.clock_skew_seconds))
        return cls(config.secret_bytes, **kwargs)

    def _parse_claims(self, decoded: Mapping[str, Any]) -> Claims:
        try:
            return Claims(**decoded)
        except ValidationError as exc:
            raise MalformedTokenError(f"Invalid token claims: {exc.error_count()} error(s)") from exc

    def decode(self, token: str) -> Claims:
        """
        Verify the token and return its claims.

        Raises MalformedTokenError, SignatureMismatchError or ExpiredTokenError.
        """
        try:
            payload = _jws.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.InvalidSignatureError as exc:
            raise SignatureMismatchError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise MalformedTokenError(str(exc)) from exc

        try:
            decoded = json.loads(payload)
        except ValueError as exc:
            raise MalformedTokenError("Invalid payload string") from exc
        if not isinstance(decoded, dict):
            raise MalformedTokenError("Invalid payload string: must be a json object")

        # Expiry is compared against the injected clock, not by PyJWT.
        claims = self._parse_claims(decoded)
        now = self.clock().timestamp()
        if now >= claims.exp + self.leeway.total_seconds():
            raise ExpiredTokenError(
                "Token is expired",
                detail={"expired_at": claims.expires_at.isoformat()},
            )
        return claims

    def verify(self, token: str) -> VerificationResult:
        """Verify without raising; token problems become an invalid result."""
        try:
            return VerificationResult.valid(self.decode(token))
        except AuthError as exc:
            return VerificationResult.invalid(exc)


class StaticCredentialVerifier:
    """Validates username/password pairs against a configured table."""

    def __init__(self, credentials: Mapping[str, str]):
        self.credentials = dict(credentials)

    @classmethod
    def from_config(cls, config: AppConfig) -> "StaticCredentialVerifier":
        return cls(config.credentials)

    def verify(self, username: str, password: str) -> str:
        """Return the verified username or raise InvalidCredentialsError."""
        expected = self.credentials.get(username)
        if expected is None or not hmac.compare_digest(
            expected.encode("utf-8"), password.encode("utf-8")
        ):
            raise InvalidCredentialsError("Invalid username or password")
        return username


__all__ = [
    "TOKEN_LIFETIME",
    "NOT_AUTHORIZED",
    "AuthError",
    "SigningError",
    "MissingTokenError",
    "MalformedTokenError",
    "SignatureMismatchError",
    "ExpiredTokenError",
    "InvalidCredentialsError",
    "VerificationResult",
    "TokenIssuer",
    "TokenVerifier",
    "StaticCredentialVerifier",
]
