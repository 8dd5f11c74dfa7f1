"""
SOP document data model.

The canonical input of the engine. Instances are usually built from the
camelCase JSON payloads that arrive with a generation request via
SOPDocument.from_dict().
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SOPFormat(Enum):
    """Textual layouts supported by format_sop()."""
    STEP_BY_STEP = "step-by-step"
    HIERARCHICAL = "hierarchical"
    CHECKLIST = "checklist"
    FLOWCHART = "flowchart"

    @classmethod
    def parse(cls, value: Any) -> "SOPFormat":
        """Resolve a format name, falling back to step-by-step."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.STEP_BY_STEP


class NumberingFormat(Enum):
    """Document identifier policies."""
    SEQUENTIAL = "sequential"
    DEPARTMENTAL = "departmental"
    ISO_ALIGNED = "iso-aligned"
    HIERARCHICAL = "hierarchical"

    @classmethod
    def parse(cls, value: Any) -> "NumberingFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.SEQUENTIAL


# =============================================================================
# SOP DOCUMENT PARTS
# =============================================================================

@dataclass(frozen=True)
class Procedure:
    """A single procedure step."""
    step_number: str
    description: str
    responsible_role: Optional[str] = None
    time_estimate: Optional[str] = None
    quality_check: Optional[str] = None
    instructions: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "Procedure":
        step = data.get("stepNumber", data.get("step_number"))
        return cls(
            step_number=str(step) if step not in (None, "") else str(index + 1),
            description=str(data.get("description") or ""),
            responsible_role=data.get("responsibleRole") or data.get("responsible_role") or None,
            time_estimate=_optional_str(data.get("timeEstimate", data.get("time_estimate"))),
            quality_check=data.get("qualityCheck") or data.get("quality_check") or None,
            instructions=tuple(str(i) for i in data.get("instructions") or ()),
        )


@dataclass(frozen=True)
class Definition:
    term: str
    definition: str


@dataclass(frozen=True)
class RoleResponsibility:
    role: str
    responsibilities: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RevisionEntry:
    version: str
    date: str
    changes: str


@dataclass
class SOPHeader:
    title: str = ""
    document_number: str = ""
    version: str = ""
    effective_date: str = ""
    organization: str = ""
    approved_by: str = ""

    # Header field identifiers as they appear in compliance standards
    FIELD_MAP = {
        "documentNumber": "document_number",
        "version": "version",
        "effectiveDate": "effective_date",
        "approvedBy": "approved_by",
        "title": "title",
        "organization": "organization",
    }

    def get_field(self, identifier: str) -> str:
        attr = self.FIELD_MAP.get(identifier, identifier)
        return getattr(self, attr, "") or ""


@dataclass
class SOPMetadata:
    purpose: str = ""
    scope: str = ""
    related_documents: List[str] = field(default_factory=list)
    definitions: List[Definition] = field(default_factory=list)


@dataclass
class SOPContent:
    format: SOPFormat = SOPFormat.STEP_BY_STEP
    roles_responsibilities: List[RoleResponsibility] = field(default_factory=list)
    procedures: List[Procedure] = field(default_factory=list)
    safety_considerations: Optional[str] = None
    quality_controls: Optional[str] = None

    def steps_in_order(self) -> bool:
        """
        True if numeric step labels never decrease.

        Labels are compared by their leading dotted-number part ("3", "3.1",
        "4a"); labels without one are ignored.
        """
        previous: Optional[tuple] = None
        for procedure in self.procedures:
            key = _step_key(procedure.step_number)
            if key is None:
                continue
            if previous is not None and key < previous:
                return False
            previous = key
        return True


@dataclass
class SOPFooter:
    revision_history: List[RevisionEntry] = field(default_factory=list)
    next_review_date: str = ""
    document_owner: str = ""


@dataclass
class SOPDocument:
    """Canonical structured SOP record."""
    header: SOPHeader = field(default_factory=SOPHeader)
    metadata: SOPMetadata = field(default_factory=SOPMetadata)
    content: SOPContent = field(default_factory=SOPContent)
    footer: SOPFooter = field(default_factory=SOPFooter)

    @property
    def title(self) -> str:
        return self.header.title

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SOPDocument":
        """Build from a camelCase payload; absent parts become empty."""
        header = data.get("header") or {}
        metadata = data.get("metadata") or {}
        content = data.get("content") or {}
        footer = data.get("footer") or {}

        return cls(
            header=SOPHeader(
                title=str(header.get("title") or ""),
                document_number=str(header.get("documentNumber") or ""),
                version=str(header.get("version") or ""),
                effective_date=str(header.get("effectiveDate") or ""),
                organization=str(header.get("organization") or ""),
                approved_by=str(header.get("approvedBy") or ""),
            ),
            metadata=SOPMetadata(
                purpose=str(metadata.get("purpose") or ""),
                scope=str(metadata.get("scope") or ""),
                related_documents=[str(d) for d in metadata.get("relatedDocuments") or []],
                definitions=[
                    Definition(term=str(d.get("term", "")), definition=str(d.get("definition", "")))
                    for d in metadata.get("definitions") or []
                ],
            ),
            content=SOPContent(
                format=SOPFormat.parse(content.get("format")),
                roles_responsibilities=[
                    RoleResponsibility(
                        role=str(r.get("role", "")),
                        responsibilities=[str(x) for x in r.get("responsibilities") or []],
                    )
                    for r in content.get("rolesResponsibilities") or []
                ],
                procedures=[
                    Procedure.from_dict(p, index=i)
                    for i, p in enumerate(content.get("procedures") or [])
                ],
                safety_considerations=content.get("safetyConsiderations") or None,
                quality_controls=content.get("qualityControls") or None,
            ),
            footer=SOPFooter(
                revision_history=[
                    RevisionEntry(
                        version=str(r.get("version", "")),
                        date=str(r.get("date", "")),
                        changes=str(r.get("changes", "")),
                    )
                    for r in footer.get("revisionHistory") or []
                ],
                next_review_date=str(footer.get("nextReviewDate") or ""),
                document_owner=str(footer.get("documentOwner") or ""),
            ),
        )


@dataclass(frozen=True)
class NumberingScheme:
    """Policy for deriving a display identifier. Has no persisted identity."""
    format: NumberingFormat = NumberingFormat.SEQUENTIAL
    prefix: str = "SOP"
    department_code: Optional[str] = None
    sequence_length: int = 3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NumberingScheme":
        return cls(
            format=NumberingFormat.parse(data.get("format")),
            prefix=str(data.get("prefix") or "SOP"),
            department_code=data.get("departmentCode") or None,
            sequence_length=int(data.get("sequenceLength") or 3),
        )


_STEP_KEY_RE = re.compile(r"^\s*(\d+(?:\.\d+)*)")


def _step_key(label: str) -> Optional[tuple]:
    match = _STEP_KEY_RE.match(label or "")
    if not match:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
