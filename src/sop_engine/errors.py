"""
Error taxonomy for the SOP Document Engine.

- ValidationError: request rejected before any rendering
- RenderError / RenderTimeoutError: a backend failed to produce bytes
- PersistenceError: the PDF was produced but could not be stored
- ComplianceWarning: advisory only, attached to results and never raised

Render backends and persistence raise these; DocumentGenerator converts
them into structured failure results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


class SOPEngineError(Exception):
    """Base class for all engine errors."""

    error_type = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SOPEngineError):
    """Missing or invalid request field."""

    error_type = "validation"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RenderError(SOPEngineError):
    """A render backend failed to produce PDF bytes."""

    error_type = "render"

    def __init__(self, message: str, backend: Optional[str] = None):
        super().__init__(message)
        self.backend = backend


class RenderTimeoutError(RenderError):
    """A render exceeded its configured timeout."""

    error_type = "render_timeout"

    def __init__(self, message: str, backend: Optional[str] = None, timeout_seconds: float = 0.0):
        super().__init__(message, backend=backend)
        self.timeout_seconds = timeout_seconds


class PersistenceError(SOPEngineError):
    """Upload or metadata persistence failed after a successful render."""

    error_type = "persistence"

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename


class UnknownStandardError(ValueError):
    """Compliance standard name not present in the registry."""


@dataclass(frozen=True)
class ComplianceWarning:
    """
    Advisory produced when a document fails a compliance standard.

    Never blocks generation.
    """
    standard: str
    missing_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return f"Document is not {self.standard} compliant; missing: {', '.join(self.missing_fields)}"

    def to_dict(self) -> dict:
        return {
            "standard": self.standard,
            "missingFields": list(self.missing_fields),
            "message": self.message,
        }
