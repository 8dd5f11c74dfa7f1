"""
Template Engine - per-document-type layouts.

A DocumentTemplate lists the sections a renderer emits, in order, and the
styling flags that feed backend selection. Defaults exist for every
DocumentType; callers may override styling or sections per request, and
organizations may register named templates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from ..models import DocumentType
from ..observability.caching import TemplateCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSection:
    section_id: str
    title: str
    section_type: str
    page_break: bool = False


@dataclass(frozen=True)
class TemplateStyling:
    """
    Styling flags.

    layout_type: standard | structured | concise, or one of the complex
        layouts that force the drawing renderer
    engine: "components" or "html" (browser rendering)
    """
    cover_page: bool = True
    table_of_contents: bool = False
    header_footer: bool = True
    layout_type: str = "standard"
    engine: str = "components"

    @classmethod
    def merged(cls, base: "TemplateStyling", overrides: Optional[Dict[str, Any]]) -> "TemplateStyling":
        if not overrides:
            return base
        mapping = {
            "coverPage": "cover_page",
            "tableOfContents": "table_of_contents",
            "headerFooter": "header_footer",
            "layoutType": "layout_type",
            "engine": "engine",
        }
        changes = {
            attr: overrides[key]
            for key, attr in mapping.items()
            if key in overrides and overrides[key] is not None
        }
        return replace(base, **changes)


@dataclass(frozen=True)
class DocumentTemplate:
    template_id: str
    name: str
    document_type: DocumentType
    sections: Tuple[TemplateSection, ...]
    styling: TemplateStyling = field(default_factory=TemplateStyling)
    description: str = ""
    is_default: bool = True

    @property
    def section_ids(self) -> List[str]:
        return [s.section_id for s in self.sections]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.template_id,
            "name": self.name,
            "type": self.document_type.value,
            "description": self.description,
            "isDefault": self.is_default,
            "sections": [s.section_id for s in self.sections],
            "styling": {
                "coverPage": self.styling.cover_page,
                "tableOfContents": self.styling.table_of_contents,
                "headerFooter": self.styling.header_footer,
                "layoutType": self.styling.layout_type,
                "engine": self.styling.engine,
            },
        }


# =============================================================================
# DEFAULT TEMPLATES
# =============================================================================

AUDIT_REPORT_TEMPLATE = DocumentTemplate(
    template_id="default-audit-report",
    name="Default Audit Report",
    document_type=DocumentType.AUDIT_REPORT,
    description="Standard audit report template with all sections",
    sections=(
        TemplateSection("cover-page", "Cover Page", "overview", page_break=True),
        TemplateSection("executive-summary", "Executive Summary", "overview", page_break=True),
        TemplateSection("process-analysis", "Process Analysis", "overview"),
        TemplateSection("automation-opportunities", "Automation Opportunities", "opportunities", page_break=True),
        TemplateSection("implementation-roadmap", "Implementation Roadmap", "implementation", page_break=True),
        TemplateSection("guidance-recommendations", "Guidance & Recommendations", "guidance"),
    ),
    styling=TemplateStyling(cover_page=True, table_of_contents=True, layout_type="standard"),
)

SOP_DOCUMENT_TEMPLATE = DocumentTemplate(
    template_id="default-sop-document",
    name="Default SOP Document",
    document_type=DocumentType.SOP_DOCUMENT,
    description="Standard Operating Procedure template",
    sections=(
        TemplateSection("sop-header", "Document Header", "sop"),
        TemplateSection("sop-document-control", "Document Control", "sop"),
        TemplateSection("sop-purpose-scope", "Purpose & Scope", "sop"),
        TemplateSection("sop-responsibilities", "Responsibilities", "sop"),
        TemplateSection("sop-procedures", "Procedures", "sop", page_break=True),
        TemplateSection("sop-references", "References & Related Documents", "sop"),
        TemplateSection("sop-revision-history", "Revision History", "sop"),
    ),
    styling=TemplateStyling(cover_page=True, table_of_contents=False, layout_type="structured"),
)

EXECUTIVE_SUMMARY_TEMPLATE = DocumentTemplate(
    template_id="default-executive-summary",
    name="Default Executive Summary",
    document_type=DocumentType.EXECUTIVE_SUMMARY,
    description="Concise executive summary template",
    sections=(
        TemplateSection("executive-overview", "Executive Overview", "overview"),
        TemplateSection("key-findings", "Key Findings", "overview"),
        TemplateSection("key-metrics", "Key Performance Metrics", "overview"),
        TemplateSection("recommendations", "Strategic Recommendations", "opportunities"),
        TemplateSection("investment-summary", "Investment Summary", "overview"),
        TemplateSection("next-steps", "Next Steps", "implementation"),
    ),
    styling=TemplateStyling(cover_page=False, table_of_contents=False, layout_type="concise"),
)

DEFAULT_TEMPLATES: Dict[DocumentType, DocumentTemplate] = {
    t.document_type: t
    for t in (AUDIT_REPORT_TEMPLATE, SOP_DOCUMENT_TEMPLATE, EXECUTIVE_SUMMARY_TEMPLATE)
}


# =============================================================================
# ENGINE
# =============================================================================

class TemplateEngine:
    """
    Resolves templates per request.

    Resolution merges overrides onto the default for the document type and
    caches the result. Registering a template clears the cache.
    """

    def __init__(self, cache_size: int = 256):
        self._custom: Dict[str, DocumentTemplate] = {}
        self._cache = TemplateCache(max_entries=cache_size)
        self.logger = logging.getLogger(f"{__name__}.TemplateEngine")

    def get_template(
        self,
        document_type: DocumentType,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> DocumentTemplate:
        """
        Resolve the template for a document type.

        Args:
            document_type: Target document type
            overrides: Optional {"id": registered template id,
                "styling": {...}, "sections": [section ids]}
        """
        return self._cache.get_or_resolve(
            document_type.value,
            overrides,
            lambda: self._resolve(document_type, overrides or {}),
        )

    def _resolve(self, document_type: DocumentType, overrides: Dict[str, Any]) -> DocumentTemplate:
        base = DEFAULT_TEMPLATES[document_type]

        template_id = overrides.get("id")
        if template_id:
            custom = self._custom.get(template_id)
            if custom is None:
                self.logger.warning(f"Unknown template '{template_id}', using {base.template_id}")
            elif custom.document_type != document_type:
                self.logger.warning(
                    f"Template '{template_id}' is for {custom.document_type.value}, "
                    f"not {document_type.value}; using {base.template_id}"
                )
            else:
                base = custom

        sections = base.sections
        requested = overrides.get("sections")
        if requested:
            by_id = {s.section_id: s for s in DEFAULT_TEMPLATES[document_type].sections + base.sections}
            sections = tuple(by_id[sid] for sid in requested if sid in by_id) or base.sections

        return replace(
            base,
            sections=sections,
            styling=TemplateStyling.merged(base.styling, overrides.get("styling")),
        )

    def register_template(self, template: DocumentTemplate):
        """Register a named template and invalidate cached resolutions."""
        self._custom[template.template_id] = replace(template, is_default=False)
        self._cache.invalidate()
        self.logger.info(f"Registered template {template.template_id} for {template.document_type.value}")

    def get_available_templates(self, document_type: DocumentType) -> List[DocumentTemplate]:
        templates = [DEFAULT_TEMPLATES[document_type]]
        templates.extend(t for t in self._custom.values() if t.document_type == document_type)
        return templates

    def clear_cache(self):
        self._cache.invalidate()

    def get_stats(self) -> Dict[str, Any]:
        by_type: Dict[str, int] = {t.value: 1 for t in DEFAULT_TEMPLATES}
        for template in self._custom.values():
            by_type[template.document_type.value] = by_type.get(template.document_type.value, 0) + 1
        return {
            "total_templates": len(DEFAULT_TEMPLATES) + len(self._custom),
            "custom_templates": len(self._custom),
            "cache": self._cache.stats(),
            "templates_by_type": by_type,
        }
