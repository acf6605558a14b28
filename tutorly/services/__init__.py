"""Service layer for token issuance, verification and configuration."""

from .auth import (
    AuthError,
    ExpiredTokenError,
    InvalidCredentialsError,
    MalformedTokenError,
    MissingTokenError,
    SignatureMismatchError,
    SigningError,
    StaticCredentialVerifier,
    TokenIssuer,
    TokenVerifier,
    VerificationResult,
)
from .config import AppConfig, get_config, reload_config

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
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
