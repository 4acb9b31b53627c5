"""
Centralized Error Handling

Every error leaves the API as {"error": <message>} with the matching
status code. Validation failures add a "details" list; unexpected errors
add the stack outside production.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, List
import logging
import traceback

from chatvault.config import settings
from chatvault.utils.sanitize import sanitize_string

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error formatting"""

    @staticmethod
    def handle_http_error(request: Request, error: StarletteHTTPException) -> Dict[str, Any]:
        """
        Format an HTTPException raised by a handler or dependency

        Args:
            request: Incoming request
            error: HTTP exception

        Returns:
            Error dictionary
        """
        if error.status_code == status.HTTP_404_NOT_FOUND and error.detail == "Not Found":
            logger.info(f"Route not found: {request.method} {request.url.path}")
        elif error.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {error.status_code}: {error.detail}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {error.status_code}: {error.detail}")

        return {"error": error.detail}

    @staticmethod
    def handle_validation_error(request: Request, error: RequestValidationError) -> Dict[str, Any]:
        """
        Format request validation errors

        Args:
            request: Incoming request
            error: Validation exception

        Returns:
            Error dictionary with one {field, message} entry per problem
        """
        details: List[Dict[str, str]] = []
        for item in error.errors():
            # loc is ("body", "chatDate") / ("query", "page"); drop the location
            location = [str(part) for part in item.get("loc", ()) if part not in ("body", "query", "path", "header", "form")]
            details.append({
                "field": ".".join(location) or "request",
                "message": item.get("msg", "Invalid value"),
            })

        logger.warning(f"Validation failed on {request.url.path}: {details}")
        return {"error": "Validation failed", "details": details}

    @staticmethod
    def handle_database_error(request: Request, error: IntegrityError) -> Dict[str, Any]:
        """
        Format database constraint violations

        Args:
            request: Incoming request
            error: Integrity exception

        Returns:
            Error dictionary
        """
        logger.warning(f"Database integrity error on {request.url.path}: {getattr(error, 'orig', error)}")
        return {"error": "Data integrity violation"}

    @staticmethod
    def handle_generic_error(request: Request, error: Exception) -> Dict[str, Any]:
        """
        Format unexpected errors

        Args:
            request: Incoming request
            error: Exception

        Returns:
            Error dictionary (with stack outside production)
        """
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        stack = sanitize_string(stack)
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {sanitize_string(str(error))}\n{stack}")

        error_data: Dict[str, Any] = {"error": "Internal Server Error"}
        if not settings.is_production:
            error_data["stack"] = stack
        return error_data


# Global exception handlers for FastAPI

async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """FastAPI exception handler for HTTP errors"""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorHandler.handle_http_error(request, exc),
        headers=getattr(exc, "headers", None)
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """FastAPI exception handler for validation errors"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorHandler.handle_validation_error(request, exc)
    )


async def database_error_handler(request: Request, exc: IntegrityError):
    """FastAPI exception handler for database errors"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorHandler.handle_database_error(request, exc)
    )


async def generic_error_handler(request: Request, exc: Exception):
    """FastAPI exception handler for generic errors"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorHandler.handle_generic_error(request, exc)
    )


# Setup function for FastAPI app
def setup_error_handlers(app):
    """
    Setup global error handlers for FastAPI app

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, database_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
