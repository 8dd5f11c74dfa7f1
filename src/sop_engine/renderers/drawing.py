"""
Drawing renderer - direct canvas placement.

Used when the component renderer is disabled, for complex layouts and in
test environments. Writes a title, the generation timestamp and a short
summary of the payload. Always produces a structurally valid PDF, even
for empty input.
"""

from __future__ import annotations

import io
from typing import List

from reportlab.lib import colors
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas as pdf_canvas

from ..errors import RenderError
from ..formatter import SOPFormat, format_sop
from ..models import DocumentType, GenerationOptions
from .base import BackendKind, Renderer, RenderData, resolve_page_size
from .components import hex_color, resolve_fonts


class DrawingRenderer(Renderer):
    """
    Canvas renderer.

    With invariant=True the output is byte-stable for identical input
    (no creation date or random document ID in the PDF trailer).
    """

    kind = BackendKind.DRAWING

    TITLE_SIZE = 20
    BODY_SIZE = 10
    LINE_HEIGHT = 14

    def __init__(self, invariant: bool = False):
        super().__init__()
        self.invariant = invariant

    def render(self, document_type: DocumentType, data: RenderData, options: GenerationOptions) -> bytes:
        try:
            return self._draw(document_type, data, options)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Drawing render failed for {document_type.value}: {e}", backend=self.kind.value) from e

    def _draw(self, document_type: DocumentType, data: RenderData, options: GenerationOptions) -> bytes:
        buffer = io.BytesIO()
        width, height = resolve_page_size(options.page.format, options.page.orientation)
        margins = data.margins
        regular, bold = resolve_fonts(data.branding.font_family)

        c = pdf_canvas.Canvas(buffer, pagesize=(width, height), invariant=int(self.invariant))
        c.setTitle(data.metadata.get("title", data.title))
        c.setAuthor(data.metadata.get("author", data.branding.name))
        c.setSubject(data.metadata.get("subject", document_type.value))
        c.setCreator(data.metadata.get("creator", data.branding.name))

        left = margins["left"]
        max_width = width - margins["left"] - margins["right"]
        y = height - margins["top"]

        # Title
        c.setFillColor(hex_color(data.branding.primary_color))
        c.setFont(bold, self.TITLE_SIZE)
        c.drawString(left, y - self.TITLE_SIZE, f"{document_type.value.replace('-', ' ').upper()} DOCUMENT")
        y -= self.TITLE_SIZE + 16

        c.setFillColor(hex_color(data.branding.secondary_color))
        c.setFont(regular, self.BODY_SIZE)
        c.drawString(left, y, f"Generated by {data.branding.name}")
        y -= self.LINE_HEIGHT
        c.drawString(left, y, f"Generated at: {data.generated_at.isoformat()}")
        y -= self.LINE_HEIGHT
        if data.document_number:
            c.drawString(left, y, f"Document Number: {data.document_number}")
            y -= self.LINE_HEIGHT
        y -= self.LINE_HEIGHT

        c.setFillColor(colors.black)
        for line in self.summary_lines(document_type, data):
            wrapped = simpleSplit(line, regular, self.BODY_SIZE, max_width) or [""]
            for segment in wrapped:
                if y < margins["bottom"] + self.LINE_HEIGHT:
                    c.showPage()
                    c.setFont(regular, self.BODY_SIZE)
                    c.setFillColor(colors.black)
                    y = height - margins["top"]
                c.setFont(regular, self.BODY_SIZE)
                c.drawString(left, y, segment)
                y -= self.LINE_HEIGHT

        c.showPage()
        c.save()
        return buffer.getvalue()

    def summary_lines(self, document_type: DocumentType, data: RenderData) -> List[str]:
        """Minimal content block describing the payload."""
        lines: List[str] = []

        if document_type == DocumentType.SOP_DOCUMENT and data.sop is not None:
            sop = data.sop
            lines.append(f"Title: {sop.header.title or 'Standard Operating Procedure'}")
            if sop.header.version:
                lines.append(f"Version: {sop.header.version}")
            if sop.metadata.purpose:
                lines.append(f"Purpose: {sop.metadata.purpose}")
            lines.append("")
            lines.extend(format_sop(sop, SOPFormat.STEP_BY_STEP).split("\n"))
            return lines

        report = data.report or {}
        if report.get("processName"):
            lines.append(f"Process: {report['processName']}")
        overview = (report.get("executiveSummary") or {}).get("overview")
        if overview:
            lines.append(f"Overview: {overview}")
        opportunities = report.get("automationOpportunities") or []
        if opportunities:
            lines.append("")
            lines.append(f"Automation opportunities ({len(opportunities)}):")
            for i, o in enumerate(opportunities, start=1):
                lines.append(f"  {i}. {o.get('title') or 'Untitled opportunity'}")
        if not lines:
            lines.append("No content available for this document.")
        return lines
