"""
Document Generation Orchestrator

Runs one generation request end to end:

    Received -> Validated -> BackendSelected -> Rendered -> Done | Persisted

1. Validate the request (document type, filename, payload)
2. Merge branding, resolve the template, select a backend
3. Prepare render data (SOP synthesis from report data, numbering,
   compliance advisory)
4. Render and shape a uniform GenerationResult
5. Update statistics exactly once per attempt

Nothing raised inside the pipeline escapes generate(); every failure
becomes a structured result.

Usage:
    generator = DocumentGenerator(settings=get_settings(), statistics=GenerationStatistics())
    result = generator.generate(GenerationRequest.from_dict(payload))
    if result.success:
        stream(result.buffer, headers=result.http_headers())
"""

from __future__ import annotations

import logging
import math
import secrets
import time
import traceback
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from .config import Environment, Settings, get_settings
from .errors import ComplianceWarning, PersistenceError, RenderError, SOPEngineError, ValidationError
from .formatter import (
    Procedure,
    RevisionEntry,
    RoleResponsibility,
    SOPContent,
    SOPDocument,
    SOPFooter,
    SOPFormat,
    SOPHeader,
    SOPMetadata,
    generate_document_number,
    get_standard,
    validate_compliance,
)
from .models import DocumentType, GenerationOptions, GenerationRequest, GenerationResult, PageOptions, to_points
from .observability import GenerationLogger, SpanKind, Tracer
from .persistence import DocumentSource, GenerationRecord, MetadataStore, StorageAdapter, sanitize_filename
from .renderers import (
    BackendKind,
    BrowserRenderer,
    ComponentRenderer,
    DrawingRenderer,
    Renderer,
    RenderData,
    TemplateEngine,
    select_backend,
)
from .statistics import GenerationStatistics
from .template_builder import (
    OrganizationBranding,
    TemplateBuilder,
    document_metadata,
    merge_branding,
    page_margins,
)

logger = logging.getLogger(__name__)

DEFAULT_TIME_ESTIMATE_MINUTES = 30


# =============================================================================
# REPORT -> SOP SYNTHESIS
# =============================================================================

def _time_estimate(value: Any) -> str:
    if value is None or value == "":
        return f"{DEFAULT_TIME_ESTIMATE_MINUTES} minutes"
    if isinstance(value, (int, float)):
        return f"{value:g} minutes"
    return str(value)


def synthesize_sop(
    report: Dict[str, Any],
    branding: OrganizationBranding,
    generated_at: Optional[datetime] = None,
) -> SOPDocument:
    """
    Build an SOP from generic report data.

    Each automation opportunity becomes one procedure, numbered 1..n in
    report order. Missing time estimates default to 30 minutes.
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    today = generated_at.date().isoformat()
    process_name = report.get("processName")
    summary = report.get("executiveSummary") or {}

    procedures = []
    for index, opportunity in enumerate(report.get("automationOpportunities") or []):
        title = opportunity.get("title") or ""
        description = opportunity.get("description") or ""
        if title and description:
            text = f"{title}: {description}"
        else:
            text = title or description or f"Step {index + 1}"
        procedures.append(Procedure(
            step_number=str(index + 1),
            description=text,
            responsible_role="Process Owner",
            time_estimate=_time_estimate(opportunity.get("estimatedTime")),
            quality_check=f"Successful implementation of {title or 'automation opportunity'}",
            instructions=tuple(str(step) for step in opportunity.get("steps") or ()),
        ))

    return SOPDocument(
        header=SOPHeader(
            title=f"SOP: {process_name}" if process_name else "Standard Operating Procedure",
            version="1.0",
            effective_date=today,
            organization=branding.name,
        ),
        metadata=SOPMetadata(
            purpose=summary.get("overview")
            or "This SOP documents the optimized business process based on analysis findings.",
            scope="This procedure applies to all personnel involved in the analyzed business process.",
            related_documents=["Business Process Analysis Report"],
        ),
        content=SOPContent(
            format=SOPFormat.STEP_BY_STEP,
            roles_responsibilities=[
                RoleResponsibility(
                    role="Process Owner",
                    responsibilities=["Responsible for overall process governance and continuous improvement"],
                ),
                RoleResponsibility(
                    role="Process Participants",
                    responsibilities=["Execute process steps according to this SOP and report any deviations"],
                ),
            ],
            procedures=procedures,
        ),
        footer=SOPFooter(
            revision_history=[
                RevisionEntry(version="1.0", date=today, changes="Initial version generated from process analysis"),
            ],
            next_review_date=(generated_at + timedelta(days=365)).date().isoformat(),
            document_owner="Process Owner",
        ),
    )


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class DocumentGenerator:
    """
    Generates PDF documents from SOP or report payloads.

    All collaborators are injectable. The generator keeps no per-request
    state, so one instance can serve concurrent requests; the only shared
    mutable state lives in GenerationStatistics and the template cache.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        statistics: Optional[GenerationStatistics] = None,
        template_engine: Optional[TemplateEngine] = None,
        renderers: Optional[Dict[BackendKind, Renderer]] = None,
        tracer: Optional[Tracer] = None,
        generation_logger: Optional[GenerationLogger] = None,
        storage: Optional[StorageAdapter] = None,
        metadata_store: Optional[MetadataStore] = None,
        document_source: Optional[DocumentSource] = None,
    ):
        self.settings = settings or get_settings()
        self.statistics = statistics or GenerationStatistics()
        self.template_engine = template_engine or TemplateEngine()
        self.tracer = tracer or Tracer(service_name=self.settings.service_name)
        self.generation_logger = generation_logger or GenerationLogger()
        self.storage = storage
        self.metadata_store = metadata_store
        self.document_source = document_source

        invariant = self.settings.environment == Environment.TEST
        self.renderers: Dict[BackendKind, Renderer] = renderers or {
            BackendKind.COMPONENTS: ComponentRenderer(invariant=invariant),
            BackendKind.DRAWING: DrawingRenderer(invariant=invariant),
            BackendKind.BROWSER: BrowserRenderer(
                config=self.settings.render,
                template_builder=TemplateBuilder(branding_defaults=self.settings.branding),
            ),
        }

        self.logger = logging.getLogger(f"{__name__}.DocumentGenerator")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate one document.

        Never raises; failures come back as GenerationResult(success=False).
        """
        start = time.perf_counter()
        type_label = _type_label(request)

        with self.tracer.start_span("generate", SpanKind.GENERATION, {"document_type": type_label}) as root:

            # Step 1: Validate
            try:
                with self.tracer.start_span("validate", SpanKind.VALIDATION):
                    document_type, options = self._validate(request)
            except ValidationError as e:
                self.statistics.record_rejection()
                self.generation_logger.log_rejection(type_label, e.field, e.message)
                root.set_error(e)
                return self._failure(e, start, type_label)

            backend = BackendKind.DRAWING
            try:
                # Steps 2-3: Branding, template, backend, render data
                with self.tracer.start_span("prepare", SpanKind.FORMATTING) as span:
                    backend, data, compliance = self._prepare(document_type, request, options)
                    span.set_attribute("backend", backend.value)

                # Step 4: Render
                with self.tracer.start_span("render", SpanKind.RENDER, {"backend": backend.value}) as span:
                    pdf = self._renderer_for(backend).render(document_type, data, options)
                    span.set_attribute("file_size", len(pdf))

                if not pdf:
                    raise RenderError("Backend returned an empty buffer", backend=backend.value)

            except Exception as e:
                elapsed = _elapsed_ms(start)
                self.statistics.record_failure(document_type.value)
                self.generation_logger.log_generation(
                    document_type.value, backend.value, elapsed, success=False, error=str(e),
                )
                if not isinstance(e, SOPEngineError):
                    self.logger.exception(f"Unexpected error generating {document_type.value}")
                root.set_error(e)
                return self._failure(e, start, document_type.value, backend=backend.value)

            elapsed = _elapsed_ms(start)
            self.statistics.record_success(document_type.value, elapsed)
            self.generation_logger.log_generation(document_type.value, backend.value, elapsed, file_size=len(pdf))

            return GenerationResult(
                success=True,
                buffer=pdf,
                filename=options.filename,
                file_size=len(pdf),
                generated_at=data.generated_at,
                generation_time_ms=elapsed,
                document_type=document_type.value,
                backend=backend.value,
                document_number=data.document_number,
                compliance=compliance,
            )

    def generate_and_store(self, request: GenerationRequest) -> Dict[str, Any]:
        """
        Generate a document and hand it to the storage adapter.

        Returns the JSON envelope {success, pdfUrl, downloadToken, metadata}.
        A storage failure after a successful render is reported with
        errorType "persistence" so callers can tell it apart from a render
        failure.
        """
        result = self.generate(request)
        if not result.success:
            return self.respond(result)

        if self.storage is None:
            return {
                "success": False,
                "error": "No storage adapter configured",
                "errorType": PersistenceError.error_type,
                "pdfGenerated": True,
                "metadata": self.respond(result),
            }

        start = time.perf_counter()
        try:
            with self.tracer.start_span("persist", SpanKind.PERSISTENCE, {"filename": result.filename}):
                url, token = self._persist(result)
        except Exception as e:
            error = e if isinstance(e, PersistenceError) else PersistenceError(str(e), filename=result.filename)
            self.generation_logger.log_persistence(result.filename or "", _elapsed_ms(start), False, error.message)
            response = {
                "success": False,
                "error": f"PDF generated but could not be stored: {error.message}",
                "errorType": PersistenceError.error_type,
                "pdfGenerated": True,
                "metadata": self.respond(result),
            }
            return response

        self.generation_logger.log_persistence(result.filename or "", _elapsed_ms(start), True)
        metadata = self.respond(result)
        metadata.pop("success", None)
        metadata["expiresAt"] = (
            datetime.now(timezone.utc) + timedelta(seconds=self.settings.documents.download_ttl_seconds)
        ).isoformat()
        return {
            "success": True,
            "pdfUrl": url,
            "downloadToken": token,
            "metadata": metadata,
        }

    def generate_from_source(
        self,
        document_id: str,
        options: GenerationOptions,
        branding: Optional[OrganizationBranding] = None,
    ) -> GenerationResult:
        """Fetch an SOP through the document source and generate it."""
        start = time.perf_counter()
        try:
            if self.document_source is None:
                raise PersistenceError("No document source configured")
            document = self.document_source.fetch_source_document(document_id)
        except PersistenceError as e:
            self.logger.warning(f"Could not fetch source document {document_id}: {e.message}")
            return self._failure(e, start, DocumentType.SOP_DOCUMENT.value)

        return self.generate(GenerationRequest(
            document_type=DocumentType.SOP_DOCUMENT,
            sop_data=document,
            branding=branding,
            options=options,
        ))

    def respond(self, result: GenerationResult) -> Dict[str, Any]:
        """JSON envelope; details are withheld in production."""
        return result.to_response(include_details=not self.settings.is_production)

    def get_statistics(self) -> Dict[str, Any]:
        return self.statistics.snapshot().to_dict()

    def reset_statistics(self):
        self.statistics.reset()

    # =========================================================================
    # PIPELINE STEPS
    # =========================================================================

    def _validate(self, request: Optional[GenerationRequest]) -> Tuple[DocumentType, GenerationOptions]:
        if request is None:
            raise ValidationError("Request is required", field="request")

        raw_type = request.document_type
        if isinstance(raw_type, DocumentType):
            document_type = raw_type
        else:
            if not raw_type:
                raise ValidationError("Document type is required", field="documentType")
            try:
                document_type = DocumentType(str(raw_type))
            except ValueError:
                raise ValidationError(
                    f"Invalid document type: {raw_type}. Must be one of: {', '.join(DocumentType.values())}",
                    field="documentType",
                ) from None

        options = self._coerce_options(request.options)
        if not isinstance(options.filename, str) or not options.filename:
            raise ValidationError("Filename is required", field="options.filename")

        if not request.has_payload:
            raise ValidationError("Report data or SOP data is required", field="payload")

        if request.sop_data is not None and not isinstance(request.sop_data, (SOPDocument, dict)):
            raise ValidationError("SOP data must be an object", field="sopData")
        if request.report_data is not None and not isinstance(request.report_data, dict):
            raise ValidationError("Report data must be an object", field="reportData")

        if not isinstance(options.compliance_standard, str) or get_standard(options.compliance_standard) is None:
            raise ValidationError(
                f"Unknown compliance standard: {options.compliance_standard}",
                field="options.complianceStandard",
            )

        timeout = options.timeout_seconds
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ValidationError(
                    f"Timeout must be a number of seconds, got {timeout!r}", field="options.timeoutSeconds",
                )
            if not math.isfinite(timeout) or timeout <= 0:
                raise ValidationError("Timeout must be positive", field="options.timeoutSeconds")

        if not isinstance(options.page, PageOptions):
            raise ValidationError("Page options must be an object", field="options.page")
        if options.page.margins is not None and not isinstance(options.page.margins, dict):
            raise ValidationError("Margins must be an object", field="options.page.margins")

        for side, value in (options.page.margins or {}).items():
            try:
                to_points(value)
            except ValueError:
                raise ValidationError(
                    f"Invalid {side} margin: {value!r}", field=f"options.page.margins.{side}",
                ) from None

        return document_type, options

    @staticmethod
    def _coerce_options(options: Any) -> GenerationOptions:
        """Accept GenerationOptions or the external options object."""
        if options is None:
            raise ValidationError("Options are required", field="options")
        if isinstance(options, dict):
            try:
                return GenerationOptions.from_dict(options)
            except (ValueError, TypeError, AttributeError) as e:
                raise ValidationError(f"Invalid options: {e}", field="options") from None
        if not isinstance(options, GenerationOptions):
            raise ValidationError("Options must be an object", field="options")
        return options

    def _prepare(
        self,
        document_type: DocumentType,
        request: GenerationRequest,
        options: GenerationOptions,
    ) -> Tuple[BackendKind, RenderData, Optional[ComplianceWarning]]:
        generated_at = datetime.now(timezone.utc)
        branding = merge_branding(request.branding, self.settings.branding)
        template = self.template_engine.get_template(document_type, options.template_overrides)
        backend = select_backend(
            document_type,
            template.styling,
            self.settings.environment,
            components_enabled=self.settings.render.component_renderer_enabled,
        )

        sop = self._resolve_sop(document_type, request, branding, generated_at)

        if sop is not None and sop.header.document_number:
            document_number = sop.header.document_number
        else:
            document_number = generate_document_number(options.numbering, sop, options.sequence)
            if sop is not None:
                sop = replace(sop, header=replace(sop.header, document_number=document_number))

        compliance = None
        if sop is not None:
            if not sop.content.steps_in_order():
                self.logger.warning(f"Procedure step numbers decrease in '{sop.header.title}'")
            check = validate_compliance(sop, options.compliance_standard)
            self.generation_logger.log_compliance(check.standard, check.is_compliant, list(check.missing_fields))
            if not check.is_compliant:
                compliance = ComplianceWarning(standard=check.standard, missing_fields=check.missing_fields)

        top, right, bottom, left = self.settings.documents.pdf_margins
        margins = page_margins(
            branding,
            base=(top, right, bottom, left),
            logo_top_margin=self.settings.documents.logo_top_margin,
        )
        margins = options.page.margins_in_points({k: float(v) for k, v in margins.items()})

        report = request.report_data or {}
        title = sop.header.title if sop is not None else str(report.get("processName") or template.name)
        metadata = document_metadata(branding, title, subject=template.name)
        metadata.update({k: str(v) for k, v in options.metadata.items()})

        data = RenderData(
            branding=branding,
            template=template,
            sop=sop,
            report=report,
            document_number=document_number,
            margins=margins,
            metadata=metadata,
            generated_at=generated_at,
        )

        self.logger.debug(
            f"Prepared {document_type.value}: backend={backend.value} template={template.template_id} "
            f"number={document_number}"
        )
        return backend, data, compliance

    def _resolve_sop(
        self,
        document_type: DocumentType,
        request: GenerationRequest,
        branding: OrganizationBranding,
        generated_at: datetime,
    ) -> Optional[SOPDocument]:
        sop_data = request.sop_data
        if isinstance(sop_data, SOPDocument):
            return sop_data
        if isinstance(sop_data, dict) and sop_data:
            return SOPDocument.from_dict(sop_data)
        if document_type == DocumentType.SOP_DOCUMENT:
            return synthesize_sop(request.report_data or {}, branding, generated_at)
        return None

    def _renderer_for(self, backend: BackendKind) -> Renderer:
        renderer = self.renderers.get(backend)
        if renderer is None:
            raise RenderError(f"No renderer registered for backend {backend.value}", backend=backend.value)
        return renderer

    def _persist(self, result: GenerationResult) -> Tuple[str, str]:
        filename = sanitize_filename(result.filename or "")
        url = self.storage.upload(result.buffer, filename, "application/pdf")
        token = secrets.token_urlsafe(32)

        if self.metadata_store is not None:
            self.metadata_store.save_generation_metadata(GenerationRecord(
                document_type=result.document_type or "",
                filename=filename,
                file_size=result.file_size,
                content_hash=GenerationRecord.hash_content(result.buffer),
                generation_time_ms=result.generation_time_ms,
                backend=result.backend or "",
                url=url,
                download_token=token,
                generated_at=result.generated_at or datetime.now(timezone.utc),
                document_number=result.document_number,
                config_hash=self.settings.config_hash,
            ))
        return url, token

    def _failure(
        self,
        error: Exception,
        start: float,
        document_type: Optional[str],
        backend: Optional[str] = None,
    ) -> GenerationResult:
        if isinstance(error, SOPEngineError):
            message, error_type = error.message, error.error_type
        else:
            message, error_type = f"PDF generation failed: {error}", "internal"

        if self.settings.debug_details_enabled:
            details = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        else:
            details = f"{type(error).__name__}: {error}"

        return GenerationResult(
            success=False,
            generation_time_ms=_elapsed_ms(start),
            document_type=document_type,
            backend=backend,
            error=message,
            error_type=error_type,
            details=details,
        )


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def _type_label(request: Optional[GenerationRequest]) -> str:
    if request is None or request.document_type is None:
        return "unknown"
    if isinstance(request.document_type, DocumentType):
        return request.document_type.value
    return str(request.document_type)
