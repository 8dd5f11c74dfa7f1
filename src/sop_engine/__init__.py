"""
SOP Document Engine

Formats Standard Operating Procedures and renders them to PDF with:
- Multiple presentation formats (step-by-step, hierarchical, flowchart, checklist)
- Advisory compliance checks against ISO 9001, ISO 13485 and GMP
- Document numbering schemes
- Three render backends (reportlab components, reportlab canvas, headless Chromium)
- Thread-safe generation statistics

Usage:
    from sop_engine import DocumentGenerator, GenerationRequest

    generator = DocumentGenerator()
    result = generator.generate(GenerationRequest.from_dict({
        "documentType": "sop-document",
        "sopData": sop_json,
        "options": {"filename": "onboarding.pdf"},
    }))

    if result.success:
        Path(result.filename).write_bytes(result.buffer)
"""

from .config import (
    Settings,
    get_settings,
    get_test_settings,
    Environment,
)

from .errors import (
    SOPEngineError,
    ValidationError,
    RenderError,
    RenderTimeoutError,
    PersistenceError,
    UnknownStandardError,
    ComplianceWarning,
)

from .formatter import (
    SOPDocument,
    SOPFormat,
    Procedure,
    NumberingScheme,
    NumberingFormat,
    format_sop,
    generate_document_number,
    validate_compliance,
    get_all_standards,
)

from .template_builder import (
    OrganizationBranding,
    TemplateBuilder,
    build_template,
)

from .models import (
    DocumentType,
    PageOptions,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
)

from .renderers import (
    BackendKind,
    TemplateEngine,
    select_backend,
)

from .statistics import (
    GenerationStatistics,
    StatisticsSnapshot,
)

from .persistence import (
    StorageAdapter,
    MetadataStore,
    DocumentSource,
    LocalFileStorage,
    InMemoryMetadataStore,
    InMemoryDocumentSource,
)

from .orchestrator import (
    DocumentGenerator,
    synthesize_sop,
)

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_test_settings",
    "Environment",
    # Errors
    "SOPEngineError",
    "ValidationError",
    "RenderError",
    "RenderTimeoutError",
    "PersistenceError",
    "UnknownStandardError",
    "ComplianceWarning",
    # Formatter
    "SOPDocument",
    "SOPFormat",
    "Procedure",
    "NumberingScheme",
    "NumberingFormat",
    "format_sop",
    "generate_document_number",
    "validate_compliance",
    "get_all_standards",
    # Template Builder
    "OrganizationBranding",
    "TemplateBuilder",
    "build_template",
    # Requests
    "DocumentType",
    "PageOptions",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResult",
    # Rendering
    "BackendKind",
    "TemplateEngine",
    "select_backend",
    # Statistics
    "GenerationStatistics",
    "StatisticsSnapshot",
    # Persistence
    "StorageAdapter",
    "MetadataStore",
    "DocumentSource",
    "LocalFileStorage",
    "InMemoryMetadataStore",
    "InMemoryDocumentSource",
    # Orchestrator
    "DocumentGenerator",
    "synthesize_sop",
]
