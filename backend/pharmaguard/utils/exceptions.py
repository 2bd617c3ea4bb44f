"""
Custom exceptions for PharmaGuard.
Raised only at the ingestion / HTTP boundary; inside the per-drug pipeline
every failure is carried as ordinary result data.
Mapped to HTTP responses via FastAPI exception handlers.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


# --- Custom exception base ---


class PharmaGuardError(Exception):
    """Base exception for PharmaGuard domain errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def to_content(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "error_type": self.__class__.__name__,
        }


# --- Domain exceptions ---


class VCFParseError(PharmaGuardError):
    """Raised when the uploaded text fails structural VCF validation."""

    def __init__(
        self,
        message: str = "Invalid VCF file",
        errors: list[str] | None = None,
    ):
        self.errors = list(errors or [])
        super().__init__(message=message, status_code=400)

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        content["errors"] = self.errors
        return content


class DrugNotSupportedError(PharmaGuardError):
    """Raised when a single-drug lookup names a drug outside the knowledge base."""

    def __init__(self, drug: str):
        self.drug = drug
        super().__init__(
            message=f"Drug '{drug}' is not supported",
            status_code=400,
        )


class NoDrugsSpecifiedError(PharmaGuardError):
    """Raised when the request carries no usable drug names."""

    def __init__(self, message: str = "No drugs specified"):
        super().__init__(message=message, status_code=400)


class FileValidationError(PharmaGuardError):
    """Raised when uploaded file fails validation (type, size, etc.)."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=400)


# --- FastAPI exception handlers ---


def register_exception_handlers(app):
    """
    Register custom exception handlers on the FastAPI app.
    Call this from main.py after creating the app.
    PharmaGuardError base handler catches all subclasses (VCFParseError, etc.).
    """

    @app.exception_handler(PharmaGuardError)
    async def pharma_guard_error_handler(request: Request, exc: PharmaGuardError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
        )
