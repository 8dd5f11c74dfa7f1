"""
Componentized PDF renderer.

Builds a page-object model out of typed primitives (title, headings,
paragraph, card, table, multi-column row, bullet list) and lets ReportLab
paginate it. Each document type walks the sections of its resolved
template in order; a section whose backing data is empty is skipped.

Sections:
- sop-document: header page, document control, purpose & scope,
  responsibilities, procedures, references, revision history
- audit-report: cover, executive summary, process analysis, automation
  opportunities, implementation roadmap, guidance
- executive-summary: overview, key findings, key metrics,
  recommendations, investment summary, next steps
"""

from __future__ import annotations

import io
from typing import Any, Callable, Dict, List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    ListFlowable,
    ListItem,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..errors import RenderError
from ..models import DocumentType, GenerationOptions
from ..template_builder import OrganizationBranding, color_palette
from .base import BackendKind, Renderer, RenderData, resolve_page_size

# Standard PDF fonts available without embedding: family -> (regular, bold)
STANDARD_FONTS = {
    "helvetica": ("Helvetica", "Helvetica-Bold"),
    "arial": ("Helvetica", "Helvetica-Bold"),
    "times": ("Times-Roman", "Times-Bold"),
    "times-roman": ("Times-Roman", "Times-Bold"),
    "times new roman": ("Times-Roman", "Times-Bold"),
    "courier": ("Courier", "Courier-Bold"),
}


def resolve_fonts(font_family: Optional[str]) -> tuple:
    """Map a branding font onto a standard PDF font pair."""
    return STANDARD_FONTS.get((font_family or "").strip().lower(), STANDARD_FONTS["helvetica"])


def hex_color(value: str) -> colors.Color:
    """HexColor that also understands #rgb shorthand."""
    if len(value) == 4 and value.startswith("#"):
        value = "#" + "".join(c * 2 for c in value[1:])
    return colors.HexColor(value)


def text(value: Any) -> str:
    """Escape a value for ReportLab paragraph markup."""
    return escape("" if value is None else str(value))


# =============================================================================
# PRIMITIVES
# =============================================================================

class ComponentKit:
    """
    Typed layout primitives bound to one branding and page width.
    """

    def __init__(self, branding: OrganizationBranding, width: float):
        self.branding = branding
        self.width = width
        self.palette = color_palette(branding)
        self.primary = hex_color(self.palette["primary"])
        self.secondary = hex_color(self.palette["secondary"])
        self.border = hex_color(self.palette["border"])
        self.light = hex_color(self.palette["light_background"])
        self.font, self.font_bold = resolve_fonts(branding.font_family)
        self._setup_styles()

    def _setup_styles(self):
        """Configure typography from the branding palette."""
        self.styles = getSampleStyleSheet()

        self.styles.add(ParagraphStyle(
            name='SOPTitle',
            fontName=self.font_bold,
            fontSize=22,
            leading=26,
            alignment=TA_CENTER,
            spaceAfter=6,
            textColor=self.primary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPSubtitle',
            fontName=self.font,
            fontSize=12,
            alignment=TA_CENTER,
            spaceAfter=12,
            textColor=self.secondary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPHeading1',
            fontName=self.font_bold,
            fontSize=16,
            leading=20,
            spaceBefore=14,
            spaceAfter=8,
            textColor=self.primary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPHeading2',
            fontName=self.font_bold,
            fontSize=13,
            leading=16,
            spaceBefore=10,
            spaceAfter=6,
            textColor=colors.Color(0.12, 0.16, 0.22),
        ))

        self.styles.add(ParagraphStyle(
            name='SOPHeading3',
            fontName=self.font_bold,
            fontSize=11,
            leading=14,
            spaceBefore=8,
            spaceAfter=4,
            textColor=self.secondary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPBody',
            fontName=self.font,
            fontSize=10,
            leading=14,
            alignment=TA_JUSTIFY,
            spaceBefore=2,
            spaceAfter=4,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPCell',
            fontName=self.font,
            fontSize=9,
            leading=11,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPCellHeader',
            fontName=self.font_bold,
            fontSize=9,
            leading=11,
            textColor=colors.white,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPCardTitle',
            fontName=self.font_bold,
            fontSize=10,
            leading=12,
            textColor=self.primary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPMetricValue',
            fontName=self.font_bold,
            fontSize=18,
            leading=22,
            alignment=TA_CENTER,
            textColor=self.primary,
        ))

        self.styles.add(ParagraphStyle(
            name='SOPMetricLabel',
            fontName=self.font,
            fontSize=8,
            leading=10,
            alignment=TA_CENTER,
            textColor=self.secondary,
        ))

    # Text ------------------------------------------------------------------

    def title(self, value: str, subtitle: Optional[str] = None) -> List:
        items = [Paragraph(text(value), self.styles['SOPTitle'])]
        if subtitle:
            items.append(Paragraph(text(subtitle), self.styles['SOPSubtitle']))
        items.append(HRFlowable(width="100%", thickness=1.5, color=self.primary))
        items.append(Spacer(1, 12))
        return items

    def heading(self, value: str, level: int = 1) -> Paragraph:
        level = min(max(level, 1), 3)
        return Paragraph(text(value), self.styles[f'SOPHeading{level}'])

    def paragraph(self, value: str, style: str = 'SOPBody') -> Paragraph:
        return Paragraph(text(value), self.styles[style])

    def spacer(self, height: float = 8) -> Spacer:
        return Spacer(1, height)

    def rule(self) -> HRFlowable:
        return HRFlowable(width="100%", thickness=0.5, color=self.border, spaceBefore=4, spaceAfter=4)

    # Blocks ----------------------------------------------------------------

    def bullet_list(self, items: Sequence[Any]) -> ListFlowable:
        return ListFlowable(
            [ListItem(Paragraph(text(i), self.styles['SOPBody']), leftIndent=12) for i in items],
            bulletType='bullet',
            start='•',
            leftIndent=12,
        )

    def card(self, title: str, lines: Sequence[Any] = (), width: Optional[float] = None) -> Table:
        """Bordered box with a title and body lines."""
        content = [[Paragraph(text(title), self.styles['SOPCardTitle'])]]
        for line in lines:
            content.append([Paragraph(text(line), self.styles['SOPCell'])])

        t = Table(content, colWidths=[width or self.width])
        t.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.75, self.border),
            ('LINEBEFORE', (0, 0), (0, -1), 3, self.primary),
            ('BACKGROUND', (0, 0), (-1, -1), self.light),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 8),
            ('TOPPADDING', (0, 0), (-1, -1), 4),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ]))
        return t

    def metric_card(self, label: str, value: Any, width: float = 110) -> Table:
        """KPI display box."""
        content = [
            [Paragraph(text(value), self.styles['SOPMetricValue'])],
            [Paragraph(text(label), self.styles['SOPMetricLabel'])],
        ]
        t = Table(content, colWidths=[width])
        t.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('BOX', (0, 0), (-1, -1), 1, self.primary),
            ('BACKGROUND', (0, 0), (-1, -1), self.light),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        return t

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        col_widths: Optional[Sequence[float]] = None,
    ) -> Table:
        """Data table with branded header row and alternating row shading."""
        data = [[Paragraph(text(h), self.styles['SOPCellHeader']) for h in headers]]
        for row in rows:
            data.append([Paragraph(text(cell), self.styles['SOPCell']) for cell in row])

        if col_widths is None:
            col_widths = [self.width / len(headers)] * len(headers)

        t = Table(data, colWidths=list(col_widths), repeatRows=1)
        t.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), self.primary),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
            ('TOPPADDING', (0, 0), (-1, 0), 6),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 4),
            ('TOPPADDING', (0, 1), (-1, -1), 4),
            ('LINEBELOW', (0, 1), (-1, -1), 0.5, self.border),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, self.light]),
        ]))
        return t

    def columns(self, cells: Sequence[Any]) -> Table:
        """Two- or three-column row of flowables."""
        if len(cells) not in (2, 3):
            raise ValueError(f"columns() takes 2 or 3 cells, got {len(cells)}")
        col_width = self.width / len(cells)
        t = Table([list(cells)], colWidths=[col_width] * len(cells))
        t.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 3),
            ('RIGHTPADDING', (0, 0), (-1, -1), 3),
        ]))
        return t


# =============================================================================
# RENDERER
# =============================================================================

SectionBuilder = Callable[[ComponentKit, RenderData], List]


class ComponentRenderer(Renderer):
    """
    Page-object renderer built on ReportLab platypus.
    """

    kind = BackendKind.COMPONENTS

    def __init__(self, invariant: bool = False):
        super().__init__()
        self.invariant = invariant
        self._sections: Dict[str, SectionBuilder] = {
            # SOP document
            "sop-header": self._sop_header,
            "sop-document-control": self._sop_document_control,
            "sop-purpose-scope": self._sop_purpose_scope,
            "sop-responsibilities": self._sop_responsibilities,
            "sop-procedures": self._sop_procedures,
            "sop-references": self._sop_references,
            "sop-revision-history": self._sop_revision_history,
            # Audit report
            "cover-page": self._audit_cover,
            "executive-summary": self._audit_executive_summary,
            "process-analysis": self._audit_process_analysis,
            "automation-opportunities": self._audit_opportunities,
            "implementation-roadmap": self._audit_roadmap,
            "guidance-recommendations": self._audit_guidance,
            # Executive summary
            "executive-overview": self._exec_overview,
            "key-findings": self._exec_key_findings,
            "key-metrics": self._exec_key_metrics,
            "recommendations": self._exec_recommendations,
            "investment-summary": self._exec_investment,
            "next-steps": self._exec_next_steps,
        }

    def render(self, document_type: DocumentType, data: RenderData, options: GenerationOptions) -> bytes:
        buffer = io.BytesIO()
        pagesize = resolve_page_size(options.page.format, options.page.orientation)
        margins = data.margins

        doc = SimpleDocTemplate(
            buffer,
            pagesize=pagesize,
            topMargin=margins["top"],
            rightMargin=margins["right"],
            bottomMargin=margins["bottom"],
            leftMargin=margins["left"],
            title=data.metadata.get("title", data.title),
            author=data.metadata.get("author", data.branding.name),
            subject=data.metadata.get("subject", ""),
            creator=data.metadata.get("creator", ""),
            keywords=data.metadata.get("keywords", ""),
            invariant=int(self.invariant),
        )
        kit = ComponentKit(data.branding, doc.width)

        try:
            story = self.build_story(kit, data)
            on_page = self._page_decorator(data, pagesize)
            if data.template.styling.header_footer:
                doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
            else:
                doc.build(story)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Component render failed for {document_type.value}: {e}", backend=self.kind.value) from e

        pdf = buffer.getvalue()
        self.logger.debug(f"Rendered {document_type.value}: {len(story)} flowables, {len(pdf)} bytes")
        return pdf

    def build_story(self, kit: ComponentKit, data: RenderData) -> List:
        """Assemble flowables for every non-empty section of the template."""
        produced = []
        for section in data.template.sections:
            builder = self._sections.get(section.section_id)
            if builder is None:
                self.logger.warning(f"No component builder for section '{section.section_id}'")
                continue
            flowables = builder(kit, data)
            if flowables:
                produced.append((section, flowables))

        story: List = []
        for index, (section, flowables) in enumerate(produced):
            story.extend(flowables)
            if section.page_break and index < len(produced) - 1:
                story.append(PageBreak())

        if not story:
            story.extend(kit.title(data.title))
            story.append(kit.paragraph("No content available for this document."))
        return story

    def _page_decorator(self, data: RenderData, pagesize) -> Callable:
        width, height = pagesize
        kit_font = resolve_fonts(data.branding.font_family)
        primary = hex_color(data.branding.primary_color)
        left = data.margins["left"]
        right = width - data.margins["right"]
        doc_number = data.document_number or ""

        def _header_footer(canvas, doc):
            """Branded header and footer."""
            canvas.saveState()

            # === HEADER ===
            canvas.setStrokeColor(primary)
            canvas.setLineWidth(1.5)
            canvas.line(left, height - 40, right, height - 40)

            canvas.setFont(kit_font[1], 10)
            canvas.setFillColor(primary)
            canvas.drawString(left, height - 32, data.branding.name)

            if doc_number:
                canvas.setFont(kit_font[0], 8)
                canvas.setFillColor(colors.Color(0.4, 0.4, 0.4))
                canvas.drawRightString(right, height - 32, doc_number)

            # === FOOTER ===
            canvas.setStrokeColor(colors.Color(0.8, 0.8, 0.8))
            canvas.setLineWidth(0.5)
            canvas.line(left, 36, right, 36)

            canvas.setFont(kit_font[0], 7)
            canvas.setFillColor(colors.Color(0.5, 0.5, 0.5))
            canvas.drawString(left, 24, f"© {data.generated_at.year} {data.branding.name} | Confidential")
            canvas.drawCentredString(width / 2, 24, f"Page {doc.page}")
            canvas.drawRightString(right, 24, data.generated_at.strftime("%Y-%m-%d %H:%M UTC"))

            canvas.restoreState()

        return _header_footer

    # =========================================================================
    # SOP DOCUMENT SECTIONS
    # =========================================================================

    def _sop_header(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None:
            return []
        header = sop.header
        items = kit.title(header.title or "Standard Operating Procedure", header.organization or data.branding.name)

        items.append(kit.table(
            ["Document Number", "Version", "Effective Date", "Approved By"],
            [[data.document_number or header.document_number or "-", header.version or "-",
              header.effective_date or "-", header.approved_by or "-"]],
        ))
        items.append(kit.spacer(14))

        card_width = kit.width / 3 - 6
        items.append(kit.columns([
            kit.metric_card("Procedure Steps", len(sop.content.procedures), width=card_width),
            kit.metric_card("Roles", len(sop.content.roles_responsibilities), width=card_width),
            kit.metric_card("Next Review", sop.footer.next_review_date or "TBD", width=card_width),
        ]))
        items.append(kit.spacer(12))
        return items

    def _sop_document_control(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None:
            return []
        rows = [
            ("Document Number", data.document_number or sop.header.document_number),
            ("Version", sop.header.version),
            ("Effective Date", sop.header.effective_date),
            ("Approved By", sop.header.approved_by),
            ("Document Owner", sop.footer.document_owner),
            ("Next Review Date", sop.footer.next_review_date),
        ]
        rows = [(label, value) for label, value in rows if value]
        if not rows:
            return []
        return [
            kit.heading("Document Control", 1),
            kit.table(["Field", "Value"], rows, col_widths=[kit.width * 0.35, kit.width * 0.65]),
        ]

    def _sop_purpose_scope(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None:
            return []
        meta = sop.metadata
        items: List = []
        if meta.purpose:
            items += [kit.heading("Purpose", 2), kit.paragraph(meta.purpose)]
        if meta.scope:
            items += [kit.heading("Scope", 2), kit.paragraph(meta.scope)]
        if meta.definitions:
            items.append(kit.heading("Definitions", 2))
            items.append(kit.table(
                ["Term", "Definition"],
                [(d.term, d.definition) for d in meta.definitions],
                col_widths=[kit.width * 0.3, kit.width * 0.7],
            ))
        if not items:
            return []
        return [kit.heading("Purpose & Scope", 1)] + items

    def _sop_responsibilities(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None or not sop.content.roles_responsibilities:
            return []
        items: List = [kit.heading("Roles & Responsibilities", 1)]
        for role in sop.content.roles_responsibilities:
            items.append(kit.card(role.role, [f"• {r}" for r in role.responsibilities]))
            items.append(kit.spacer(6))
        return items

    def _sop_procedures(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None or not sop.content.procedures:
            return []
        items: List = [kit.heading("Procedures", 1)]

        for procedure in sop.content.procedures:
            block: List = [
                kit.heading(f"Step {procedure.step_number}", 2),
                kit.paragraph(procedure.description),
            ]
            if procedure.instructions:
                block.append(kit.bullet_list(procedure.instructions))

            details = [
                ("Responsible", procedure.responsible_role),
                ("Estimated Time", procedure.time_estimate),
                ("Quality Check", procedure.quality_check),
            ]
            present = [(label, value) for label, value in details if value]
            if len(present) >= 2:
                width = kit.width / len(present) - 6
                block.append(kit.columns([kit.card(label, [value], width=width) for label, value in present]))
            elif present:
                label, value = present[0]
                block.append(kit.card(label, [value]))
            block.append(kit.spacer(8))
            items.append(KeepTogether(block))

        if sop.content.safety_considerations:
            items += [kit.heading("Safety Considerations", 2), kit.paragraph(sop.content.safety_considerations)]
        if sop.content.quality_controls:
            items += [kit.heading("Quality Controls", 2), kit.paragraph(sop.content.quality_controls)]
        return items

    def _sop_references(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None or not sop.metadata.related_documents:
            return []
        rows = [(str(i + 1), ref) for i, ref in enumerate(sop.metadata.related_documents)]
        return [
            kit.heading("References & Related Documents", 1),
            kit.table(["#", "Document"], rows, col_widths=[kit.width * 0.1, kit.width * 0.9]),
        ]

    def _sop_revision_history(self, kit: ComponentKit, data: RenderData) -> List:
        sop = data.sop
        if sop is None or not sop.footer.revision_history:
            return []
        rows = [(r.version, r.date, r.changes) for r in sop.footer.revision_history]
        return [
            kit.heading("Revision History", 1),
            kit.table(["Version", "Date", "Changes"], rows,
                      col_widths=[kit.width * 0.15, kit.width * 0.2, kit.width * 0.65]),
        ]

    # =========================================================================
    # AUDIT REPORT SECTIONS
    # =========================================================================

    def _audit_cover(self, kit: ComponentKit, data: RenderData) -> List:
        report = data.report
        if not report:
            return []
        process = report.get("processName") or "Business Process"
        items = kit.title("Process Audit Report", process)
        items.append(kit.spacer(40))
        items.append(kit.paragraph(f"Prepared by {data.branding.name}", 'SOPSubtitle'))
        items.append(kit.paragraph(data.generated_at.strftime("%B %d, %Y"), 'SOPSubtitle'))
        return items

    def _audit_executive_summary(self, kit: ComponentKit, data: RenderData) -> List:
        summary = data.report.get("executiveSummary") or {}
        if not summary:
            return []
        items: List = [kit.heading("Executive Summary", 1)]
        if summary.get("overview"):
            items.append(kit.paragraph(summary["overview"]))
        width = kit.width / 3 - 6
        items.append(kit.spacer(8))
        items.append(kit.columns([
            kit.metric_card("Automation Potential", _pct(summary.get("automationScore")), width=width),
            kit.metric_card("Estimated ROI", summary.get("estimatedROI") or "TBD", width=width),
            kit.metric_card("Time Savings", summary.get("timeSavings") or "TBD", width=width),
        ]))
        return items

    def _audit_process_analysis(self, kit: ComponentKit, data: RenderData) -> List:
        analysis = data.report.get("processAnalysis") or {}
        if not analysis:
            return []
        items: List = [kit.heading("Process Analysis", 1)]
        if analysis.get("summary"):
            items.append(kit.paragraph(analysis["summary"]))
        for key, label in (("currentSteps", "Current Process Steps"),
                           ("bottlenecks", "Bottlenecks"),
                           ("painPoints", "Pain Points")):
            values = analysis.get(key) or []
            if values:
                items.append(kit.heading(label, 2))
                items.append(kit.bullet_list(values))
        return items if len(items) > 1 else []

    def _audit_opportunities(self, kit: ComponentKit, data: RenderData) -> List:
        opportunities = data.report.get("automationOpportunities") or []
        if not opportunities:
            return []
        items: List = [kit.heading("Automation Opportunities", 1)]
        items.append(kit.table(
            ["Opportunity", "Priority", "Impact", "Effort", "Est. Time"],
            [
                (o.get("title") or f"Opportunity {i + 1}", o.get("priority") or "-",
                 o.get("impact") or "-", o.get("effort") or "-", o.get("estimatedTime") or "-")
                for i, o in enumerate(opportunities)
            ],
            col_widths=[kit.width * 0.36, kit.width * 0.14, kit.width * 0.16, kit.width * 0.16, kit.width * 0.18],
        ))
        items.append(kit.spacer(10))
        for i, opportunity in enumerate(opportunities):
            lines = [opportunity.get("description") or ""]
            lines += [f"{n}. {step}" for n, step in enumerate(opportunity.get("steps") or [], start=1)]
            items.append(kit.card(opportunity.get("title") or f"Opportunity {i + 1}", [l for l in lines if l]))
            items.append(kit.spacer(6))
        return items

    def _audit_roadmap(self, kit: ComponentKit, data: RenderData) -> List:
        phases = (data.report.get("roadmap") or {}).get("phases") or []
        if not phases:
            return []
        return [
            kit.heading("Implementation Roadmap", 1),
            kit.table(
                ["Phase", "Name", "Duration", "Investment", "Expected Benefits"],
                [
                    (f"Phase {i + 1}", p.get("name") or "-", p.get("duration") or "TBD",
                     p.get("cost") or "TBD", p.get("benefits") or "Process improvements")
                    for i, p in enumerate(phases)
                ],
            ),
        ]

    def _audit_guidance(self, kit: ComponentKit, data: RenderData) -> List:
        guidance = data.report.get("implementationGuidance") or {}
        items: List = []
        for key, label in (("recommendations", "Recommendations"),
                           ("nextSteps", "Next Steps"),
                           ("riskMitigation", "Risk Mitigation")):
            values = guidance.get(key) or []
            if values:
                items.append(kit.heading(label, 2))
                items.append(kit.bullet_list(values))
        if not items:
            return []
        return [kit.heading("Guidance & Recommendations", 1)] + items

    # =========================================================================
    # EXECUTIVE SUMMARY SECTIONS
    # =========================================================================

    def _exec_overview(self, kit: ComponentKit, data: RenderData) -> List:
        report = data.report
        if not report:
            return []
        process = report.get("processName") or "business process"
        summary = report.get("executiveSummary") or {}
        overview = summary.get("overview") or (
            f"This executive summary presents the key findings from the analysis of your {process}."
        )
        items = kit.title("Executive Summary", report.get("processName") or None)
        items.append(kit.heading("Executive Overview", 2))
        items.append(kit.paragraph(overview))
        return items

    def _exec_key_findings(self, kit: ComponentKit, data: RenderData) -> List:
        summary = data.report.get("executiveSummary") or {}
        findings = summary.get("keyFindings") or []
        if not summary:
            return []
        if not findings:
            findings = [
                f"Process automation potential: {_pct(summary.get('automationScore'), 'To be determined')}",
                f"Estimated annual ROI: {summary.get('estimatedROI') or 'To be calculated'}",
                f"Projected time savings: {summary.get('timeSavings') or 'To be quantified'}",
                f"Implementation complexity: {summary.get('complexityScore') or 'To be assessed'}/10",
            ]
        return [kit.heading("Key Findings", 2), kit.bullet_list(findings)]

    def _exec_key_metrics(self, kit: ComponentKit, data: RenderData) -> List:
        summary = data.report.get("executiveSummary") or {}
        if not summary:
            return []
        opportunities = data.report.get("automationOpportunities") or []
        width = kit.width / 2 - 6
        items: List = [
            kit.heading("Key Performance Metrics", 1),
            kit.columns([
                kit.metric_card("Automation Potential", _pct(summary.get("automationScore")), width=width),
                kit.metric_card("Projected Annual ROI", summary.get("estimatedROI") or "TBD", width=width),
            ]),
            kit.spacer(6),
            kit.columns([
                kit.metric_card("Time Savings Potential", summary.get("timeSavings") or "TBD", width=width),
                kit.metric_card("Opportunities Identified", len(opportunities), width=width),
            ]),
            kit.heading("Performance Impact Analysis", 2),
            kit.table(
                ["Metric", "Current State", "Potential Improvement", "Impact Level"],
                [
                    ("Process Efficiency", "Baseline", summary.get("efficiencyGain") or "TBD", "High"),
                    ("Cost Reduction", "Current Costs", summary.get("costReduction") or "TBD", "High"),
                    ("Error Rate", "Current Rate", summary.get("errorReduction") or "TBD", "Medium"),
                    ("Processing Time", "Current Time", summary.get("timeReduction") or "TBD", "High"),
                    ("Resource Utilization", "Current Usage", summary.get("resourceOptimization") or "TBD", "Medium"),
                ],
            ),
        ]
        return items

    def _exec_recommendations(self, kit: ComponentKit, data: RenderData) -> List:
        opportunities = data.report.get("automationOpportunities") or []
        if not opportunities:
            return []
        items: List = [kit.heading("Strategic Recommendations", 1)]

        high = [o for o in opportunities if str(o.get("priority", "")).lower() == "high"]
        medium = [o for o in opportunities if str(o.get("priority", "")).lower() == "medium"]

        if high:
            items.append(kit.heading("High Priority", 2))
            for i, o in enumerate(high):
                lines = [o.get("description") or ""]
                if o.get("impact"):
                    lines.append(f"Impact: {o['impact']}")
                if o.get("estimatedTime"):
                    lines.append(f"Timeline: {o['estimatedTime']}")
                items.append(kit.card(o.get("title") or f"High priority opportunity {i + 1}", [l for l in lines if l]))
                items.append(kit.spacer(6))
        if medium:
            items.append(kit.heading("Medium Priority", 2))
            items.append(kit.bullet_list([
                o.get("title") or f"Medium priority opportunity {i + 1}" for i, o in enumerate(medium)
            ]))
        if not high and not medium:
            items.append(kit.bullet_list([o.get("title") or f"Opportunity {i + 1}" for i, o in enumerate(opportunities)]))
        return items

    def _exec_investment(self, kit: ComponentKit, data: RenderData) -> List:
        summary = data.report.get("executiveSummary") or {}
        phases = (data.report.get("roadmap") or {}).get("phases") or []
        if not (summary.get("implementationCost") or summary.get("paybackPeriod") or phases):
            return []
        width = kit.width / 2 - 6
        items: List = [
            kit.heading("Investment Summary", 1),
            kit.columns([
                kit.card("Implementation Investment", [summary.get("implementationCost") or "TBD"], width=width),
                kit.card("Payback Period", [summary.get("paybackPeriod") or "TBD"], width=width),
            ]),
        ]
        if phases:
            items.append(kit.heading("Implementation Timeline", 2))
            items.append(kit.table(
                ["Phase", "Duration", "Investment", "Expected Benefits"],
                [
                    (f"Phase {i + 1}", p.get("duration") or "TBD", p.get("cost") or "TBD",
                     p.get("benefits") or "Process improvements")
                    for i, p in enumerate(phases[:4])
                ],
            ))
        return items

    def _exec_next_steps(self, kit: ComponentKit, data: RenderData) -> List:
        next_steps = (data.report.get("implementationGuidance") or {}).get("nextSteps") or []
        if not next_steps:
            return []
        return [
            kit.heading("Recommended Next Steps", 1),
            kit.heading("Immediate Actions (Next 30 Days)", 2),
            kit.bullet_list(next_steps[:3]),
        ] + ([kit.heading("Further Actions", 2), kit.bullet_list(next_steps[3:])] if len(next_steps) > 3 else [])


def _pct(value: Any, default: str = "N/A") -> str:
    if value is None or value == "":
        return default
    return f"{value}%"
