"""HTTP API route handlers."""

from . import auth, system

__all__ = ["auth", "system"]
