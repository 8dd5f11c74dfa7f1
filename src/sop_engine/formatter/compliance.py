"""
Compliance Standard Registry

Named, immutable rule sets a SOP must satisfy to be considered audit-ready.
Adding a standard means adding a ComplianceStandard entry below; the
validator itself never changes.

Each standard lists:
- required_sections: section identifiers checked against the document body
- mandatory_fields: header field identifiers that must be non-empty
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import UnknownStandardError
from .models import SOPDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplianceStandard:
    """A named set of required sections and header fields."""
    name: str
    required_sections: Tuple[str, ...]
    mandatory_fields: Tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class ComplianceResult:
    """Outcome of validate_compliance()."""
    standard: str
    is_compliant: bool
    missing_fields: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, object]:
        return {
            "standard": self.standard,
            "isCompliant": self.is_compliant,
            "missingFields": list(self.missing_fields),
        }


# =============================================================================
# SECTION PRESENCE CHECKS
# =============================================================================

SECTION_CHECKS: Dict[str, Callable[[SOPDocument], bool]] = {
    "Purpose": lambda doc: bool(doc.metadata.purpose),
    "Scope": lambda doc: bool(doc.metadata.scope),
    "Definitions": lambda doc: len(doc.metadata.definitions) > 0,
    "Responsibilities": lambda doc: len(doc.content.roles_responsibilities) > 0,
    "Procedure Details": lambda doc: len(doc.content.procedures) > 0,
    "Quality Controls": lambda doc: bool(doc.content.quality_controls),
    "Safety Considerations": lambda doc: bool(doc.content.safety_considerations),
    "Revision History": lambda doc: len(doc.footer.revision_history) > 0,
}


# =============================================================================
# STANDARD DEFINITIONS
# =============================================================================

ISO_9001 = ComplianceStandard(
    name="ISO-9001",
    required_sections=(
        "Purpose",
        "Scope",
        "Definitions",
        "Responsibilities",
        "Procedure Details",
        "Quality Controls",
    ),
    mandatory_fields=("documentNumber", "version", "effectiveDate", "approvedBy"),
    description="Quality management systems - documented information (clause 7.5)",
)

ISO_13485 = ComplianceStandard(
    name="ISO-13485",
    required_sections=(
        "Purpose",
        "Scope",
        "Responsibilities",
        "Procedure Details",
        "Quality Controls",
        "Revision History",
    ),
    mandatory_fields=("documentNumber", "version", "effectiveDate", "approvedBy"),
    description="Medical devices - quality management, controlled documents",
)

GMP = ComplianceStandard(
    name="GMP",
    required_sections=(
        "Purpose",
        "Scope",
        "Responsibilities",
        "Procedure Details",
        "Safety Considerations",
        "Quality Controls",
    ),
    mandatory_fields=("documentNumber", "version", "effectiveDate", "approvedBy"),
    description="Good Manufacturing Practice batch and process procedures",
)

COMPLIANCE_STANDARDS: List[ComplianceStandard] = [ISO_9001, ISO_13485, GMP]

DEFAULT_STANDARD = ISO_9001.name


def get_all_standards() -> List[ComplianceStandard]:
    """Get all registered standards."""
    return list(COMPLIANCE_STANDARDS)


def get_standard(name: str) -> Optional[ComplianceStandard]:
    """Get a standard by name (case-insensitive)."""
    for standard in COMPLIANCE_STANDARDS:
        if standard.name.upper() == (name or "").upper():
            return standard
    return None


def get_standards_config_hash() -> str:
    """Hash of every registered rule set, recorded with generation metadata."""
    standards_str = "|".join(
        f"{s.name}:{','.join(s.required_sections)}:{','.join(s.mandatory_fields)}"
        for s in sorted(COMPLIANCE_STANDARDS, key=lambda s: s.name)
    )
    return hashlib.sha256(standards_str.encode()).hexdigest()


# =============================================================================
# VALIDATION
# =============================================================================

def validate_compliance(document: SOPDocument, standard_name: str = DEFAULT_STANDARD) -> ComplianceResult:
    """
    Check a document against a named standard.

    Sections are checked first, then header fields, each in the standard's
    declared order. The document is never modified.
    """
    standard = get_standard(standard_name)
    if standard is None:
        raise UnknownStandardError(f"Unknown compliance standard: {standard_name}")

    missing: List[str] = []

    for section in standard.required_sections:
        check = SECTION_CHECKS.get(section)
        if check is None or not check(document):
            if section not in missing:
                missing.append(section)

    for field_name in standard.mandatory_fields:
        if not document.header.get_field(field_name) and field_name not in missing:
            missing.append(field_name)

    result = ComplianceResult(
        standard=standard.name,
        is_compliant=not missing,
        missing_fields=tuple(missing),
    )

    logger.debug(
        f"Compliance check {standard.name}: compliant={result.is_compliant} "
        f"missing={len(missing)}"
    )
    return result
