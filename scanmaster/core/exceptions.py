"""
Application Exception Handling

Single AppException class for all API errors with FastAPI integration.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Image too large", "PAYLOAD_TOO_LARGE", 413)

    Error Codes:
        Input:
            - INVALID_ARGUMENT (400)
            - PAYLOAD_TOO_LARGE (413)

        Scanning:
            - SCAN_ERROR (422)
            - SESSION_NOT_ACTIVE (409)

        Generation:
            - GENERATION_FAILED (422)

        General:
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "SCAN_ERROR")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to consistent JSON error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_argument(message: str, argument: Optional[str] = None) -> AppException:
    """Create invalid argument exception."""
    details = {"argument": argument} if argument else {}
    return AppException(message, "INVALID_ARGUMENT", 400, details)


def payload_too_large(limit: int) -> AppException:
    """Create upload too large exception."""
    return AppException(
        f"Image exceeds the {limit} byte upload limit",
        "PAYLOAD_TOO_LARGE",
        413,
        {"limit": limit}
    )


def scan_failed(message: str = "Scan failed") -> AppException:
    """Create scan failure exception."""
    return AppException(message, "SCAN_ERROR", 422)


def session_not_active() -> AppException:
    """Create no active session exception."""
    return AppException("No scan session is active", "SESSION_NOT_ACTIVE", 409)


def generation_failed(message: str = "Failed to generate QR code") -> AppException:
    """Create QR generation failure exception."""
    return AppException(message, "GENERATION_FAILED", 422)


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)


def from_channel_error(code: str, message: str) -> AppException:
    """Map a method channel error pair onto an HTTP exception."""
    if code == "INVALID_ARGUMENT":
        return invalid_argument(message)
    if code == "SCAN_ERROR":
        return scan_failed(message)
    if code == "GENERATION_FAILED":
        return generation_failed(message)
    return internal_error(message)
