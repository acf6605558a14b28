"""FastAPI middleware for authentication and error handling."""

from .auth_middleware import AuthContext, AuthGate, get_auth_context
from .error_handlers import (
    auth_exception_handler,
    http_exception_handler,
    internal_exception_handler,
    register_error_handlers,
    validation_exception_handler,
)

__all__ = [
    "AuthContext",
    "AuthGate",
    "get_auth_context",
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "auth_exception_handler",
    "internal_exception_handler",
]
