"""
SOP Document Engine - Configuration Settings

This module provides centralized configuration management with:
- Environment-based configuration
- Render backend switches and browser timeouts
- Default organization branding
- Validation of required settings

Configuration is read once from environment variables and cached. The
resulting Settings object is hashed so every generated document can be
traced back to the configuration that produced it.
"""

from __future__ import annotations

import os
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class Environment(Enum):
    """Deployment environments with different rendering profiles."""
    DEVELOPMENT = "development"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass(frozen=True)
class DocumentConfig:
    """
    Document generation configuration.
    """
    output_directory: Path
    temp_directory: Path

    # PDF settings
    pdf_font_family: str = "Helvetica"
    pdf_font_size: int = 10
    pdf_margins: Tuple[int, int, int, int] = (50, 50, 50, 50)  # top, right, bottom, left (points)
    logo_top_margin: int = 80
    page_format: str = "A4"

    # Download links handed out after persistence
    download_ttl_seconds: int = 3600


@dataclass(frozen=True)
class RenderConfig:
    """
    Render backend configuration.

    The componentized renderer is the default for non-test environments.
    The browser path is only used when a template asks for HTML rendering.
    """
    component_renderer_enabled: bool = True
    browser_timeout_seconds: float = 30.0
    network_idle_timeout_ms: int = 30000
    browser_args: Tuple[str, ...] = (
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    )


@dataclass(frozen=True)
class BrandingConfig:
    """Default organization branding applied when a request omits fields."""
    name: str = "ProcessAudit AI"
    primary_color: str = "#2563eb"
    secondary_color: str = "#64748b"
    font_family: str = "Helvetica"
    logo_url: Optional[str] = None


@dataclass
class Settings:
    """
    Central settings object containing all configuration.

    Provides a config hash that is attached to generation metadata.
    """
    environment: Environment
    documents: DocumentConfig
    render: RenderConfig
    branding: BrandingConfig

    # Metadata
    version: str = "1.0.0"
    service_name: str = "sop-engine"
    initialized_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def config_hash(self) -> str:
        """SHA-256 of the behavior-relevant configuration."""
        config_str = (
            f"{self.environment.value}|"
            f"{self.documents.page_format}|{self.documents.pdf_margins}|"
            f"{self.render.component_renderer_enabled}|{self.render.browser_timeout_seconds}|"
            f"{self.branding.name}/{self.branding.primary_color}/{self.branding.secondary_color}|"
            f"{self.version}"
        )
        return hashlib.sha256(config_str.encode()).hexdigest()

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def debug_details_enabled(self) -> bool:
        """Stack traces are only attached to failure results in development."""
        return self.environment == Environment.DEVELOPMENT

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.render.browser_timeout_seconds <= 0:
            errors.append("Browser timeout must be positive")
        if self.render.network_idle_timeout_ms <= 0:
            errors.append("Network idle timeout must be positive")
        if any(m < 0 for m in self.documents.pdf_margins):
            errors.append(f"PDF margins must be non-negative: {self.documents.pdf_margins}")
        if not self.branding.name:
            errors.append("Default organization name is required")

        # Environment-specific checks
        if self.environment == Environment.PRODUCTION:
            if not self.documents.output_directory.is_absolute():
                errors.append("Output directory must be absolute in production")
            if "--no-sandbox" in self.render.browser_args:
                logger.warning("Chromium sandbox disabled in production")

        return errors


def _get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
    """Get environment variable with validation."""
    value = os.environ.get(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value or ""


def _get_bool(key: str, default: bool) -> bool:
    return _get_env(key, "true" if default else "false").lower() in ("1", "true", "yes", "on")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings from environment variables.

    This function is called once at startup and cached.
    """
    env_name = _get_env("SOP_ENGINE_ENV", "development")
    environment = Environment(env_name.lower())

    logger.info(f"Loading configuration for environment: {environment.value}")

    base_dir = Path(__file__).parent.parent.parent.parent

    settings = Settings(
        environment=environment,

        documents=DocumentConfig(
            output_directory=Path(_get_env("SOP_OUTPUT_DIR", str(base_dir / "output"))),
            temp_directory=Path(_get_env("SOP_TEMP_DIR", "/tmp/sop-engine")),
            pdf_font_family=_get_env("SOP_PDF_FONT", "Helvetica"),
            page_format=_get_env("SOP_PAGE_FORMAT", "A4"),
            download_ttl_seconds=int(_get_env("SOP_DOWNLOAD_TTL", "3600")),
        ),

        render=RenderConfig(
            component_renderer_enabled=_get_bool("SOP_COMPONENT_RENDERER", True),
            browser_timeout_seconds=float(_get_env("SOP_BROWSER_TIMEOUT", "30")),
            network_idle_timeout_ms=int(_get_env("SOP_NETWORK_IDLE_TIMEOUT_MS", "30000")),
        ),

        branding=BrandingConfig(
            name=_get_env("SOP_DEFAULT_ORG", "ProcessAudit AI"),
            primary_color=_get_env("SOP_PRIMARY_COLOR", "#2563eb"),
            secondary_color=_get_env("SOP_SECONDARY_COLOR", "#64748b"),
        ),
    )

    # Validate
    errors = settings.validate()
    if errors and environment == Environment.PRODUCTION:
        raise ValueError(f"Configuration errors in production: {errors}")
    elif errors:
        for error in errors:
            logger.warning(f"Configuration warning: {error}")

    logger.info(f"Configuration loaded. Hash: {settings.config_hash[:16]}...")

    return settings


# Convenience function for tests
def get_test_settings(output_directory: Optional[Path] = None) -> Settings:
    """Get settings configured for testing."""
    base_dir = Path(__file__).parent.parent.parent.parent

    return Settings(
        environment=Environment.TEST,
        documents=DocumentConfig(
            output_directory=output_directory or base_dir / "test_output",
            temp_directory=Path("/tmp/sop-engine-test"),
        ),
        render=RenderConfig(browser_timeout_seconds=5.0),
        branding=BrandingConfig(),
    )
