"""
HTTP error helpers for ChatVault API

Handlers raise the exceptions returned by these helpers; the centralized
handlers in chatvault.utils.error_handlers turn them into JSON responses.
"""

from fastapi import HTTPException, status


# HTTP exception helpers
def http_401_unauthorized(detail: str = "Invalid authentication credentials"):
    """Raise 401 Unauthorized"""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def http_403_forbidden(detail: str = "Insufficient permissions"):
    """Raise 403 Forbidden"""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def http_404_not_found(detail: str = "Resource not found"):
    """
    Raise 404 Not Found

    Also used for rows owned by another user, so a foreign id is
    indistinguishable from a missing one.
    """
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def http_400_bad_request(detail: str = "Bad request"):
    """Raise 400 Bad Request"""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def http_500_not_configured(feature: str):
    """Raise 500 for a missing provider secret"""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{feature} is not configured",
    )
