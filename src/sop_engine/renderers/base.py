"""
Renderer contract and backend selection.

Three backends implement Renderer:
- ComponentRenderer: page-object model from typed primitives
- DrawingRenderer: direct canvas drawing, fallback and test backend
- BrowserRenderer: Template Builder HTML printed by headless Chromium

select_backend() is the only place that decides which one runs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from reportlab.lib.pagesizes import A3, A4, A5, LEGAL, LETTER, landscape, portrait

from ..config import Environment
from ..formatter import SOPDocument
from ..models import DocumentType, GenerationOptions
from ..template_builder import OrganizationBranding
from .templates import DocumentTemplate, TemplateStyling

logger = logging.getLogger(__name__)


class BackendKind(Enum):
    COMPONENTS = "components"
    DRAWING = "drawing"
    BROWSER = "browser"


# Layouts the component model cannot express
COMPLEX_LAYOUTS = frozenset({"custom-charts", "complex-tables", "advanced-graphics"})

# Environments that must never spawn a browser and must render deterministically
DETERMINISTIC_ENVIRONMENTS = frozenset({Environment.TEST})


def select_backend(
    document_type: DocumentType,
    styling: TemplateStyling,
    environment: Environment,
    components_enabled: bool = True,
) -> BackendKind:
    """
    Choose the render backend for a request.

    Pure function of its arguments:
    1. Test environments and a disabled component renderer -> DRAWING
    2. Complex layouts -> DRAWING
    3. SOP documents whose template asks for the html engine -> BROWSER
    4. Everything else -> COMPONENTS
    """
    if environment in DETERMINISTIC_ENVIRONMENTS or not components_enabled:
        return BackendKind.DRAWING
    if styling.layout_type in COMPLEX_LAYOUTS:
        return BackendKind.DRAWING
    if styling.engine == "html" and document_type == DocumentType.SOP_DOCUMENT:
        return BackendKind.BROWSER
    return BackendKind.COMPONENTS


# =============================================================================
# RENDER INPUT
# =============================================================================

@dataclass
class RenderData:
    """Everything a backend needs for one document."""
    branding: OrganizationBranding
    template: DocumentTemplate
    sop: Optional[SOPDocument] = None
    report: Dict[str, Any] = field(default_factory=dict)
    document_number: Optional[str] = None
    margins: Dict[str, float] = field(default_factory=lambda: {"top": 50, "right": 50, "bottom": 50, "left": 50})
    metadata: Dict[str, str] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def title(self) -> str:
        if self.sop is not None and self.sop.header.title:
            return self.sop.header.title
        return str(self.report.get("title") or self.report.get("processName") or self.template.name)


PAGE_SIZES = {
    "A3": A3,
    "A4": A4,
    "A5": A5,
    "LETTER": LETTER,
    "LEGAL": LEGAL,
}


def resolve_page_size(format_name: str, orientation: str = "portrait") -> Tuple[float, float]:
    """Page size in points; unknown formats fall back to A4."""
    size = PAGE_SIZES.get((format_name or "A4").upper(), A4)
    return landscape(size) if orientation.lower() == "landscape" else portrait(size)


class Renderer(ABC):
    """Turns render data into PDF bytes."""

    kind: BackendKind

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @abstractmethod
    def render(self, document_type: DocumentType, data: RenderData, options: GenerationOptions) -> bytes:
        """
        Render a document.

        Raises:
            RenderError: the backend could not produce bytes
            RenderTimeoutError: the render exceeded options.timeout_seconds
        """
