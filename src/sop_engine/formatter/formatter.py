"""
SOP Formatter

Pure transformations of an SOPDocument into display text:
- step-by-step: stored step numbers, optional role and time lines
- hierarchical: positional numbering
- checklist: tick boxes, no time estimates
- flowchart: one box per step joined by arrows

Plus document identifier generation under a NumberingScheme. Nothing in
this module raises for a well-typed document.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

from .models import (
    NumberingFormat,
    NumberingScheme,
    Procedure,
    SOPDocument,
    SOPFormat,
)

logger = logging.getLogger(__name__)

INDENT = "   "
CHECKBOX = "☐"
ARROW = "↓"

# ISO 9001 clause for documented operational planning and control
ISO_CLAUSE = "7.1.1"


# =============================================================================
# LAYOUTS
# =============================================================================

def _metadata_lines(procedure: Procedure, include_time: bool = True) -> List[str]:
    lines = []
    if procedure.responsible_role:
        lines.append(f"{INDENT}Responsible: {procedure.responsible_role}")
    if include_time and procedure.time_estimate:
        lines.append(f"{INDENT}Estimated Time: {procedure.time_estimate}")
    return lines


def _format_step_by_step(procedures: List[Procedure]) -> str:
    blocks = []
    for procedure in procedures:
        lines = [f"{procedure.step_number}. {procedure.description}"]
        lines.extend(_metadata_lines(procedure))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _format_hierarchical(procedures: List[Procedure]) -> str:
    blocks = []
    for index, procedure in enumerate(procedures):
        lines = [f"{index + 1}. {procedure.description}"]
        lines.extend(_metadata_lines(procedure))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _format_checklist(procedures: List[Procedure]) -> str:
    blocks = []
    for procedure in procedures:
        lines = [f"{CHECKBOX} {procedure.description}"]
        lines.extend(_metadata_lines(procedure, include_time=False))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _format_flowchart(procedures: List[Procedure]) -> str:
    last = len(procedures) - 1
    return "\n".join(
        f"[{procedure.description}] {ARROW}" if index < last else f"[{procedure.description}]"
        for index, procedure in enumerate(procedures)
    )


_LAYOUTS: Dict[SOPFormat, Callable[[List[Procedure]], str]] = {
    SOPFormat.STEP_BY_STEP: _format_step_by_step,
    SOPFormat.HIERARCHICAL: _format_hierarchical,
    SOPFormat.CHECKLIST: _format_checklist,
    SOPFormat.FLOWCHART: _format_flowchart,
}


def format_sop(document: SOPDocument, format: Union[SOPFormat, str, None] = None) -> str:
    """
    Render the document's procedures as text.

    Args:
        document: SOP to format
        format: Layout name or SOPFormat; defaults to the document's own
            content.format. Unknown values fall back to step-by-step.

    Returns:
        Formatted text, or "" when the document has no procedures.
    """
    layout = SOPFormat.parse(format if format is not None else document.content.format)
    return _LAYOUTS[layout](list(document.content.procedures))


# =============================================================================
# DOCUMENT NUMBERING
# =============================================================================

def generate_document_number(
    scheme: NumberingScheme,
    document: Optional[SOPDocument] = None,
    sequence: int = 1,
) -> str:
    """
    Derive a display identifier.

    The sequence counter belongs to the caller; pass the next value of
    whatever counter the calling context owns.

    Examples:
        sequential   -> SOP-001
        departmental -> SOP-QA-001
        iso-aligned  -> SOP-7.1.1
        hierarchical -> SOP-1.0
    """
    sequence = max(int(sequence), 1)
    width = max(int(scheme.sequence_length), 1)
    padded = str(sequence).zfill(width)
    prefix = scheme.prefix

    if scheme.format == NumberingFormat.DEPARTMENTAL:
        department = scheme.department_code or "GEN"
        return f"{prefix}-{department}-{padded}"
    if scheme.format == NumberingFormat.ISO_ALIGNED:
        return f"{prefix}-{ISO_CLAUSE}"
    if scheme.format == NumberingFormat.HIERARCHICAL:
        return f"{prefix}-{sequence}.0"
    return f"{prefix}-{padded}"
