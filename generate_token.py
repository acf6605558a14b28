#!/usr/bin/env python3
"""Generate a token for manually calling gated endpoints."""

import sys
from typing import Optional

from dotenv import load_dotenv

from tutorly.services.auth import SigningError, TokenIssuer
from tutorly.services.config import get_config


def generate_token(subject: str = "local-dev") -> Optional[str]:
    """Generate a token for the specified subject."""
    config = get_config()
    issuer = TokenIssuer.from_config(config)

    try:
        token = issuer.issue(subject)
    except SigningError as e:
        print(f"Error generating token: {e.message}")
        return None

    print(f"Generated token for '{subject}':")
    print(f"{config.token_header}: {token}")
    if not config.has_secret:
        print("\nWarning: JWT_SECRET_KEY is empty, this token is forgeable")

    return token


if __name__ == "__main__":
    load_dotenv()
    subject = sys.argv[1] if len(sys.argv) > 1 else "local-dev"
    generate_token(subject)
