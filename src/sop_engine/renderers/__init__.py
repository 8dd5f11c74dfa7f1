"""PDF render backends, backend selection and document templates."""

from .templates import (
    TemplateEngine,
    DocumentTemplate,
    TemplateSection,
    TemplateStyling,
    DEFAULT_TEMPLATES,
)

from .base import (
    Renderer,
    RenderData,
    BackendKind,
    COMPLEX_LAYOUTS,
    select_backend,
    resolve_page_size,
)

from .components import ComponentRenderer, ComponentKit
from .drawing import DrawingRenderer
from .browser import BrowserRenderer, BrowserSession

__all__ = [
    # Templates
    "TemplateEngine",
    "DocumentTemplate",
    "TemplateSection",
    "TemplateStyling",
    "DEFAULT_TEMPLATES",
    # Contract
    "Renderer",
    "RenderData",
    "BackendKind",
    "COMPLEX_LAYOUTS",
    "select_backend",
    "resolve_page_size",
    # Backends
    "ComponentRenderer",
    "ComponentKit",
    "DrawingRenderer",
    "BrowserRenderer",
    "BrowserSession",
]
