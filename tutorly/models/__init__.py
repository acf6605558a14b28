"""Pydantic models for data validation and serialization."""

from .auth import Claims, Credentials, IdentityResponse, TokenResponse

__all__ = [
    "Claims",
    "Credentials",
    "IdentityResponse",
    "TokenResponse",
]
