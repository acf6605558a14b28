"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from ..services.auth import StaticCredentialVerifier, TokenIssuer, TokenVerifier  # noqa: E402
from ..services.config import AppConfig, get_config  # noqa: E402
from .middleware import AuthGate, register_error_handlers  # noqa: E402
from .routes import auth, system  # noqa: E402

logger = logging.getLogger(__name__)

EXEMPT_PATHS = (system.HEALTH_PATH, auth.TOKEN_PATH)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the application around one secret shared by issuer and gate."""
    config = config or get_config()

    app = FastAPI(
        title="Tutorly API",
        description="Token-gated API for the Tutorly backend",
        version="0.1.0",
    )
    app.state.config = config
    app.state.token_issuer = TokenIssuer.from_config(config)
    app.state.credential_verifier = StaticCredentialVerifier.from_config(config)

    # Added first so CORS stays outermost and answers preflights itself.
    app.add_middleware(
        AuthGate,
        verifier=TokenVerifier.from_config(config),
        header_name=config.token_header,
        exempt_paths=EXEMPT_PATHS,
        reject_status_code=config.reject_status_code,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth.router, tags=["auth"])
    app.include_router(system.router, tags=["system"])

    logger.info(
        "Auth gate enabled",
        extra={"header": config.token_header, "exempt_paths": list(EXEMPT_PATHS)},
    )
    return app


app = create_app()


__all__ = ["app", "create_app"]
