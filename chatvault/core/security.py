"""
Security utilities for authentication
Verification of identity provider session tokens (JWT)
"""

from typing import Any, Dict, Optional

import jwt

from chatvault.config import settings


class TokenKeyNotConfigured(RuntimeError):
    """CLERK_JWT_KEY is empty, tokens cannot be verified"""


def verify_session_token(token: str, key: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify a session token issued by the identity provider

    Args:
        token: Raw JWT from the Authorization header
        key: Verification key (defaults to settings.CLERK_JWT_KEY)

    Returns:
        dict: Verified claims (always contains "sub")

    Raises:
        TokenKeyNotConfigured: No verification key configured
        jwt.InvalidTokenError: Signature, expiry or claim check failed
    """
    key = key or settings.CLERK_JWT_KEY
    if not key:
        raise TokenKeyNotConfigured("CLERK_JWT_KEY is not set")

    options = {"require": ["sub", "exp"]}
    decode_kwargs = {
        "algorithms": settings.JWT_ALGORITHMS,
        "options": options,
        "leeway": settings.JWT_LEEWAY_SECONDS,
    }
    if settings.CLERK_ISSUER:
        decode_kwargs["issuer"] = settings.CLERK_ISSUER

    return jwt.decode(token, key, **decode_kwargs)


def extract_email(claims: Dict[str, Any]) -> Optional[str]:
    """
    Email from session claims

    Custom session templates put it in "email"; the default user payload
    carries a list of "email_addresses".
    """
    email = claims.get("email")
    if email:
        return email

    addresses = claims.get("email_addresses") or []
    if addresses and isinstance(addresses[0], dict):
        return addresses[0].get("email_address")

    return None
