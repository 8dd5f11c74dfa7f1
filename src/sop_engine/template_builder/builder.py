"""
Template Builder - branded HTML for browser-based PDF rendering.

Every user-controlled string passes through Jinja2 autoescaping, so hostile
markup in titles, descriptions or names is neutralized rather than
rejected. Branding is merged with defaults before rendering.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import BrandingConfig
from ..formatter import SOPDocument, SOPFormat, format_sop
from .branding import OrganizationBranding, merge_branding

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
SOP_TEMPLATE = "sop_document.html"


class TemplateBuilder:
    """
    Assembles self-contained HTML documents from SOP records.

    Stateless apart from the Jinja2 environment; safe to share across
    threads.
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        branding_defaults: Optional[BrandingConfig] = None,
    ):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.branding_defaults = branding_defaults or BrandingConfig()
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(['html', 'xml']),
        )
        self.logger = logging.getLogger(f"{__name__}.TemplateBuilder")

    def build(
        self,
        document: SOPDocument,
        branding: Optional[OrganizationBranding] = None,
        year: Optional[int] = None,
    ) -> str:
        """
        Build the HTML page for a document.

        Args:
            document: SOP record
            branding: Organization branding; missing fields use defaults
            year: Footer year, defaults to the current UTC year

        Returns:
            Complete HTML document as a string
        """
        resolved = merge_branding(branding, self.branding_defaults)
        body = format_sop(document, SOPFormat.STEP_BY_STEP)
        procedure_lines = [line for line in body.split("\n") if line.strip()]

        template = self.env.get_template(SOP_TEMPLATE)
        html = template.render(
            header=document.header,
            organization=document.header.organization or resolved.name,
            branding=resolved,
            procedure_lines=procedure_lines,
            year=year or datetime.now(timezone.utc).year,
        )

        self.logger.debug(
            f"Built template for '{document.header.title}': "
            f"{len(procedure_lines)} lines, {len(html)} chars"
        )
        return html


_default_builder: Optional[TemplateBuilder] = None


def get_template_builder() -> TemplateBuilder:
    """Get or create the shared builder."""
    global _default_builder
    if _default_builder is None:
        _default_builder = TemplateBuilder()
    return _default_builder


def build_template(
    document: SOPDocument,
    branding: Optional[OrganizationBranding] = None,
    year: Optional[int] = None,
) -> str:
    """Build branded HTML for a document with the shared builder."""
    return get_template_builder().build(document, branding, year=year)
