"""Configuration module for the SOP Document Engine."""

from .settings import (
    Settings,
    get_settings,
    get_test_settings,
    Environment,
    DocumentConfig,
    RenderConfig,
    BrandingConfig,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_test_settings",
    "Environment",
    "DocumentConfig",
    "RenderConfig",
    "BrandingConfig",
]
