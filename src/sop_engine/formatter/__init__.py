"""SOP formatting, compliance validation and document numbering."""

from .models import (
    SOPDocument,
    SOPHeader,
    SOPMetadata,
    SOPContent,
    SOPFooter,
    SOPFormat,
    Procedure,
    Definition,
    RoleResponsibility,
    RevisionEntry,
    NumberingScheme,
    NumberingFormat,
)

from .formatter import (
    format_sop,
    generate_document_number,
)

from .compliance import (
    ComplianceStandard,
    ComplianceResult,
    validate_compliance,
    get_standard,
    get_all_standards,
    get_standards_config_hash,
    DEFAULT_STANDARD,
)

__all__ = [
    # Model
    "SOPDocument",
    "SOPHeader",
    "SOPMetadata",
    "SOPContent",
    "SOPFooter",
    "SOPFormat",
    "Procedure",
    "Definition",
    "RoleResponsibility",
    "RevisionEntry",
    "NumberingScheme",
    "NumberingFormat",
    # Formatting
    "format_sop",
    "generate_document_number",
    # Compliance
    "ComplianceStandard",
    "ComplianceResult",
    "validate_compliance",
    "get_standard",
    "get_all_standards",
    "get_standards_config_hash",
    "DEFAULT_STANDARD",
]
