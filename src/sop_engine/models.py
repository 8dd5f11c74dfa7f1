"""
Generation request and result types.

GenerationRequest is what callers hand to DocumentGenerator.generate();
GenerationResult is what they always get back, success or failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import ComplianceWarning
from .formatter import NumberingScheme, SOPDocument
from .template_builder import OrganizationBranding


class DocumentType(Enum):
    """Document types the engine can render."""
    AUDIT_REPORT = "audit-report"
    SOP_DOCUMENT = "sop-document"
    EXECUTIVE_SUMMARY = "executive-summary"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


# =============================================================================
# PAGE OPTIONS
# =============================================================================

_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(in|mm|cm|px|pt)?\s*$")

# Points per unit
_UNIT_POINTS = {
    "pt": 1.0,
    "in": 72.0,
    "mm": 72.0 / 25.4,
    "cm": 72.0 / 2.54,
    "px": 0.75,
}

BROWSER_DEFAULT_MARGINS = {"top": "0.5in", "right": "0.75in", "bottom": "0.5in", "left": "0.75in"}


def to_points(value: Union[str, int, float]) -> float:
    """Convert a CSS-like length ("0.5in", "20mm", 36) to points."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _LENGTH_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid length: {value!r}")
    number, unit = match.groups()
    return float(number) * _UNIT_POINTS[unit or "pt"]


def to_css_length(value: Union[str, int, float]) -> str:
    if isinstance(value, (int, float)):
        return f"{value}pt"
    return str(value).strip()


@dataclass(frozen=True)
class PageOptions:
    """Page size, orientation and margins requested by the caller."""
    format: str = "A4"
    orientation: str = "portrait"
    margins: Optional[Dict[str, Union[str, float]]] = None

    @property
    def landscape(self) -> bool:
        return self.orientation.lower() == "landscape"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default_format: str = "A4") -> "PageOptions":
        data = data or {}
        return cls(
            format=str(data.get("format") or default_format),
            orientation=str(data.get("orientation") or "portrait"),
            margins=data.get("margins") or None,
        )

    def margins_in_points(self, default: Dict[str, float]) -> Dict[str, float]:
        """Margins for canvas-based renderers, falling back per side."""
        resolved = dict(default)
        for side, value in (self.margins or {}).items():
            if side in resolved:
                resolved[side] = to_points(value)
        return resolved

    def margins_css(self) -> Dict[str, str]:
        """Margins for the browser path, falling back to the browser defaults."""
        resolved = dict(BROWSER_DEFAULT_MARGINS)
        for side, value in (self.margins or {}).items():
            if side in resolved:
                resolved[side] = to_css_length(value)
        return resolved


# =============================================================================
# REQUEST
# =============================================================================

@dataclass
class GenerationOptions:
    filename: str = ""
    page: PageOptions = field(default_factory=PageOptions)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timeout_seconds: Optional[float] = None
    numbering: NumberingScheme = field(default_factory=NumberingScheme)
    sequence: int = 1
    compliance_standard: str = "ISO-9001"
    template_overrides: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GenerationOptions":
        data = data or {}
        timeout = data.get("timeoutSeconds")
        return cls(
            filename=str(data.get("filename") or ""),
            page=PageOptions.from_dict(data.get("page")),
            metadata=dict(data.get("metadata") or {}),
            timeout_seconds=float(timeout) if timeout is not None else None,
            numbering=NumberingScheme.from_dict(data.get("numbering") or {}),
            sequence=int(data.get("sequence") or 1),
            compliance_standard=str(data.get("complianceStandard") or "ISO-9001"),
            template_overrides=data.get("template") or None,
        )


@dataclass
class GenerationRequest:
    """A request to render one document."""
    document_type: Union[DocumentType, str, None]
    report_data: Optional[Dict[str, Any]] = None
    sop_data: Optional[Union[SOPDocument, Dict[str, Any]]] = None
    branding: Optional[OrganizationBranding] = None
    options: Optional[Union[GenerationOptions, Dict[str, Any]]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationRequest":
        """Build from the external JSON request shape."""
        branding = data.get("branding")
        options = data.get("options")
        return cls(
            document_type=data.get("documentType"),
            report_data=data.get("reportData"),
            sop_data=data.get("sopData"),
            branding=OrganizationBranding.from_dict(branding) if branding else None,
            options=GenerationOptions.from_dict(options) if options is not None else None,
        )

    @property
    def has_payload(self) -> bool:
        return bool(self.report_data) or bool(self.sop_data)


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class GenerationResult:
    """Uniform outcome of a generation attempt."""
    success: bool
    generation_time_ms: int
    buffer: Optional[bytes] = None
    filename: Optional[str] = None
    file_size: int = 0
    generated_at: Optional[datetime] = None
    document_type: Optional[str] = None
    backend: Optional[str] = None
    document_number: Optional[str] = None
    compliance: Optional[ComplianceWarning] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    details: Optional[str] = None

    def to_response(self, include_details: bool = False) -> Dict[str, Any]:
        """
        JSON envelope for the caller.

        The PDF bytes themselves are never part of the envelope.
        """
        if not self.success:
            response: Dict[str, Any] = {"success": False, "error": self.error}
            if self.error_type:
                response["errorType"] = self.error_type
            if include_details and self.details:
                response["details"] = self.details
            response["generationTimeMs"] = self.generation_time_ms
            return response

        response = {
            "success": True,
            "filename": self.filename,
            "fileSize": self.file_size,
            "generationTimeMs": self.generation_time_ms,
            "generatedAt": self.generated_at.isoformat() if self.generated_at else None,
            "documentType": self.document_type,
            "backend": self.backend,
        }
        if self.document_number:
            response["documentNumber"] = self.document_number
        if self.compliance is not None:
            response["complianceWarning"] = self.compliance.to_dict()
        return response

    def http_headers(self) -> Dict[str, str]:
        """Headers for streaming the PDF directly."""
        filename = (self.filename or "document.pdf").replace("\\", "_").replace('"', "_")
        filename = "".join(c for c in filename if c.isprintable())
        return {
            "Content-Type": "application/pdf",
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(self.file_size),
        }
