"""
Organization branding.

Branding arrives per request and is always fully populated before any
template or renderer sees it: absent fields and malformed colors are
replaced with the configured defaults.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from ..config import BrandingConfig

logger = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
# Font stacks are written into a <style> block, so only name characters pass.
FONT_FAMILY_RE = re.compile(r"^[A-Za-z0-9 ,_-]{1,100}$")


@dataclass(frozen=True)
class OrganizationBranding:
    """Visual identity applied to generated documents."""
    name: str = ""
    primary_color: str = ""
    secondary_color: str = ""
    logo_url: Optional[str] = None
    font_family: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OrganizationBranding":
        data = data or {}
        return cls(
            name=str(data.get("name") or data.get("companyName") or ""),
            primary_color=str(data.get("primaryColor") or ""),
            secondary_color=str(data.get("secondaryColor") or ""),
            logo_url=data.get("logoUrl") or None,
            font_family=data.get("fontFamily") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "primaryColor": self.primary_color,
            "secondaryColor": self.secondary_color,
            "logoUrl": self.logo_url,
            "fontFamily": self.font_family,
        }


def is_valid_hex_color(value: Optional[str]) -> bool:
    return bool(value) and HEX_COLOR_RE.match(value) is not None


def is_valid_font_family(value: Optional[str]) -> bool:
    return isinstance(value, str) and FONT_FAMILY_RE.match(value) is not None


def default_branding(defaults: Optional[BrandingConfig] = None) -> OrganizationBranding:
    defaults = defaults or BrandingConfig()
    return OrganizationBranding(
        name=defaults.name,
        primary_color=defaults.primary_color,
        secondary_color=defaults.secondary_color,
        logo_url=defaults.logo_url,
        font_family=defaults.font_family,
    )


def merge_branding(
    branding: Optional[OrganizationBranding],
    defaults: Optional[BrandingConfig] = None,
) -> OrganizationBranding:
    """
    Fill every missing or invalid branding field from the defaults.

    The input is never modified; a new instance is returned.
    """
    base = default_branding(defaults)
    if branding is None:
        return base

    primary = branding.primary_color
    if not is_valid_hex_color(primary):
        if primary:
            logger.warning(f"Invalid primary color {primary!r}, using default {base.primary_color}")
        primary = base.primary_color

    secondary = branding.secondary_color
    if not is_valid_hex_color(secondary):
        if secondary:
            logger.warning(f"Invalid secondary color {secondary!r}, using default {base.secondary_color}")
        secondary = base.secondary_color

    font_family = branding.font_family
    if not is_valid_font_family(font_family):
        if font_family:
            logger.warning(f"Invalid font family {font_family!r}, using default {base.font_family}")
        font_family = base.font_family

    return replace(
        base,
        name=branding.name or base.name,
        primary_color=primary,
        secondary_color=secondary,
        logo_url=branding.logo_url or base.logo_url,
        font_family=font_family,
    )


def page_margins(
    branding: OrganizationBranding,
    base: Tuple[int, int, int, int] = (50, 50, 50, 50),
    logo_top_margin: int = 80,
) -> Dict[str, int]:
    """Page margins in points; a logo needs extra room at the top."""
    top, right, bottom, left = base
    if branding.logo_url:
        top = max(top, logo_top_margin)
    return {"top": top, "right": right, "bottom": bottom, "left": left}


def color_palette(branding: OrganizationBranding) -> Dict[str, str]:
    return {
        "primary": branding.primary_color,
        "secondary": branding.secondary_color,
        "text": "#1f2937",
        "muted": "#6b7280",
        "light_background": "#f8fafc",
        "border": "#e2e8f0",
    }


def document_metadata(branding: OrganizationBranding, title: str, subject: str = "") -> Dict[str, str]:
    """PDF info dictionary entries."""
    return {
        "title": title,
        "author": branding.name,
        "subject": subject or title,
        "creator": f"{branding.name} SOP Engine",
        "keywords": ", ".join(k for k in ("SOP", branding.name, subject) if k),
    }
