"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    jwt_secret_key: str = Field(
        default="",
        description="HMAC secret for token signing; empty is insecure but allowed",
    )
    token_header: str = Field(
        default="Token",
        description="Request header carrying the raw token",
    )
    reject_status_code: int = Field(
        default=401,
        description="Status code written with gate rejections (200 for legacy clients)",
    )
    clock_skew_seconds: int = Field(
        default=0,
        ge=0,
        description="Tolerance applied to the expiry comparison",
    )
    credentials: Dict[str, str] = Field(
        default_factory=dict,
        description="username -> password pairs accepted by the token endpoint",
    )
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    @field_validator("token_header", mode="before")
    @classmethod
    def _normalize_header(cls, value: Optional[str]) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("AUTH_TOKEN_HEADER cannot be empty")
        return cleaned

    @field_validator("reject_status_code")
    @classmethod
    def _check_status(cls, value: int) -> int:
        if not 100 <= value <= 599:
            raise ValueError("AUTH_REJECT_STATUS must be a valid HTTP status code")
        return value

    @property
    def secret_bytes(self) -> bytes:
        return self.jwt_secret_key.encode("utf-8")

    @property
    def has_secret(self) -> bool:
        return bool(self.jwt_secret_key)


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _parse_csv(value: Optional[str]) -> List[str]:
    items = [x.strip() for x in (value or "").split(",")]
    return [x for x in items if x]


def _parse_credentials(value: Optional[str]) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for item in _parse_csv(value):
        username, sep, password = item.partition(":")
        if not sep or not username.strip():
            raise ValueError("AUTH_CREDENTIALS entries must look like user:password")
        pairs[username.strip()] = password
    return pairs


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    config = AppConfig(
        jwt_secret_key=_read_env("JWT_SECRET_KEY", "") or "",
        token_header=_read_env("AUTH_TOKEN_HEADER", "Token"),
        reject_status_code=int(_read_env("AUTH_REJECT_STATUS", "401") or "401"),
        clock_skew_seconds=int(_read_env("AUTH_CLOCK_SKEW_SECONDS", "0") or "0"),
        credentials=_parse_credentials(_read_env("AUTH_CREDENTIALS")),
        cors_allow_origins=_parse_csv(_read_env("CORS_ALLOW_ORIGINS", "*")) or ["*"],
        log_level=(_read_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
    if not config.has_secret:
        logger.warning(
            "JWT_SECRET_KEY is not set; tokens are signed with an empty key and are forgeable"
        )
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config"]
