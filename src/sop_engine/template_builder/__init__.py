"""Branded HTML assembly and organization branding."""

from .branding import (
    OrganizationBranding,
    merge_branding,
    default_branding,
    is_valid_hex_color,
    is_valid_font_family,
    page_margins,
    color_palette,
    document_metadata,
)

from .builder import (
    TemplateBuilder,
    build_template,
    get_template_builder,
)

__all__ = [
    "OrganizationBranding",
    "merge_branding",
    "default_branding",
    "is_valid_hex_color",
    "is_valid_font_family",
    "page_margins",
    "color_palette",
    "document_metadata",
    "TemplateBuilder",
    "build_template",
    "get_template_builder",
]
