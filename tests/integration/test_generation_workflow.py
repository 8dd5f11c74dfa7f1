"""
Integration Tests for Complete Generation Workflows

End-to-end tests through DocumentGenerator with the real reportlab
backends. Browser rendering is exercised with a fake session so no
Chromium process is needed.

Test Categories:
1. Every document type through the drawing and component backends
2. Persistence to local storage with metadata records
3. Concurrent generation and statistics consistency
4. Tracing and metrics side effects
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from sop_engine import (
    BackendKind,
    DocumentGenerator,
    DocumentType,
    GenerationOptions,
    GenerationRequest,
    GenerationStatistics,
    InMemoryDocumentSource,
    LocalFileStorage,
)
from sop_engine.observability import GenerationLogger, MetricsCollector, SpanKind, Tracer
from sop_engine.renderers import BrowserRenderer
from sop_engine.template_builder import TemplateBuilder

pytestmark = [pytest.mark.integration]


def _request(document_type: DocumentType, sop=None, report=None, filename="doc.pdf", **options):
    return GenerationRequest(
        document_type=document_type,
        sop_data=sop,
        report_data=report,
        options=GenerationOptions(filename=filename, **options),
    )


# =============================================================================
# DETERMINISTIC (TEST ENVIRONMENT) GENERATION
# =============================================================================

class TestDrawingWorkflow:
    """TEST environment: every document goes through the canvas backend."""

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_every_type_from_report(self, generator, sample_report, document_type):
        result = generator.generate(_request(document_type, report=sample_report))

        assert result.success, result.error
        assert result.backend == "drawing"
        assert result.buffer.startswith(b"%PDF")
        assert result.file_size == len(result.buffer)

    def test_sop_from_payload(self, generator, sample_sop_payload):
        result = generator.generate(GenerationRequest.from_dict({
            "documentType": "sop-document",
            "sopData": sample_sop_payload,
            "options": {"filename": "onboarding.pdf", "page": {"format": "Letter"}},
        }))

        assert result.success
        assert result.document_number == "SOP-OPS-014"
        assert result.compliance is None

    def test_empty_sop_still_renders(self, generator):
        result = generator.generate(_request(DocumentType.SOP_DOCUMENT, sop={"header": {"title": "Empty"}}))

        assert result.success
        assert result.buffer.startswith(b"%PDF")
        assert result.compliance is not None


# =============================================================================
# COMPONENT GENERATION
# =============================================================================

class TestComponentWorkflow:

    @pytest.fixture
    def component_generator(self, staging_settings, statistics) -> DocumentGenerator:
        return DocumentGenerator(settings=staging_settings, statistics=statistics)

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_every_type(self, component_generator, sample_report, sample_sop, document_type):
        sop = sample_sop if document_type == DocumentType.SOP_DOCUMENT else None
        result = component_generator.generate(_request(document_type, sop=sop, report=sample_report))

        assert result.success, result.error
        assert result.backend == "components"
        assert result.buffer.startswith(b"%PDF")

    def test_section_override(self, component_generator, sample_report):
        full = component_generator.generate(_request(DocumentType.AUDIT_REPORT, report=sample_report))
        cover_only = component_generator.generate(_request(
            DocumentType.AUDIT_REPORT,
            report=sample_report,
            template_overrides={"sections": ["cover-page"]},
        ))

        assert cover_only.success
        assert cover_only.file_size < full.file_size

    def test_complex_layout_falls_back_to_drawing(self, component_generator, sample_report):
        result = component_generator.generate(_request(
            DocumentType.EXECUTIVE_SUMMARY,
            report=sample_report,
            template_overrides={"styling": {"layoutType": "custom-charts"}},
        ))
        assert result.backend == "drawing"


# =============================================================================
# BROWSER GENERATION (FAKE SESSION)
# =============================================================================

class TestBrowserWorkflow:

    def _generator(self, settings, factory) -> DocumentGenerator:
        generator = DocumentGenerator(settings=settings)
        generator.renderers[BackendKind.BROWSER] = BrowserRenderer(
            config=settings.render,
            template_builder=TemplateBuilder(branding_defaults=settings.branding),
            session_factory=factory,
        )
        return generator

    def test_html_engine(self, staging_settings, fake_session_factory, sample_sop, sample_branding):
        make, sessions = fake_session_factory
        generator = self._generator(staging_settings, make())

        result = generator.generate(GenerationRequest(
            DocumentType.SOP_DOCUMENT,
            sop_data=sample_sop,
            branding=sample_branding,
            options=GenerationOptions("x.pdf", template_overrides={"styling": {"engine": "html"}}),
        ))

        assert result.success
        assert result.backend == "browser"
        assert "--primary-color: #0f766e;" in sessions[0].html
        assert sessions[0].closed

    def test_browser_timeout_is_a_structured_failure(self, staging_settings, fake_session_factory, sample_sop):
        make, sessions = fake_session_factory
        generator = self._generator(staging_settings, make(delay=0.3))

        result = generator.generate(_request(
            DocumentType.SOP_DOCUMENT,
            sop=sample_sop,
            timeout_seconds=0.05,
            template_overrides={"styling": {"engine": "html"}},
        ))

        assert not result.success
        assert result.error_type == "render_timeout"
        assert sessions[0].aborted
        assert sessions[0].wait_closed(timeout=2)
        assert generator.statistics.snapshot().total_errors == 1


# =============================================================================
# PERSISTENCE
# =============================================================================

class TestPersistenceWorkflow:

    def test_generate_and_store(self, storing_generator, metadata_store, sample_sop, tmp_path):
        response = storing_generator.generate_and_store(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop,
                                                                 filename="../../etc/cleaning sop.pdf"))

        assert response["success"] is True
        assert response["downloadToken"]
        assert response["metadata"]["documentNumber"] == "SOP-QA-001"
        assert "expiresAt" in response["metadata"]

        stored = Path(url2pathname(urlparse(response["pdfUrl"]).path))
        assert stored.parent == (tmp_path / "store").resolve()
        assert stored.name.endswith("_cleaning_sop.pdf")
        assert stored.read_bytes().startswith(b"%PDF")

        [record] = metadata_store.records
        assert record.url == response["pdfUrl"]
        assert record.download_token == response["downloadToken"]
        assert record.file_size == stored.stat().st_size
        assert record.content_hash == record.hash_content(stored.read_bytes())
        assert record.config_hash == storing_generator.settings.config_hash

    def test_repeated_uploads_do_not_overwrite(self, storing_generator, sample_sop):
        urls = {
            storing_generator.generate_and_store(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))["pdfUrl"]
            for _ in range(3)
        }
        assert len(urls) == 3

    def test_storage_failure(self, test_settings, sample_sop, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        generator = DocumentGenerator(settings=test_settings, storage=LocalFileStorage(blocker))

        response = generator.generate_and_store(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))

        assert response["success"] is False
        assert response["errorType"] == "persistence"
        assert response["pdfGenerated"] is True


class TestSourceWorkflow:

    def test_generate_from_source(self, test_settings, sample_sop):
        generator = DocumentGenerator(
            settings=test_settings,
            document_source=InMemoryDocumentSource({"sop-42": sample_sop}),
        )

        result = generator.generate_from_source("sop-42", GenerationOptions("sop-42.pdf"))

        assert result.success
        assert result.document_number == "SOP-QA-001"
        assert result.filename == "sop-42.pdf"

    def test_report_synthesis_end_to_end(self, generator, sample_report):
        result = generator.generate(_request(
            DocumentType.SOP_DOCUMENT,
            report=sample_report,
            sequence=7,
        ))

        assert result.success
        assert result.document_number == "SOP-007"
        # Synthesized SOPs have no approver or definitions
        assert "approvedBy" in result.compliance.missing_fields
        assert "Definitions" in result.compliance.missing_fields


# =============================================================================
# CONCURRENCY
# =============================================================================

@pytest.mark.performance
class TestConcurrentGeneration:

    def test_statistics_consistent_under_load(self, test_settings, sample_sop, sample_report):
        statistics = GenerationStatistics()
        generator = DocumentGenerator(settings=test_settings, statistics=statistics)

        requests = []
        for i in range(24):
            kind = i % 4
            if kind == 0:
                requests.append(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))
            elif kind == 1:
                requests.append(_request(DocumentType.AUDIT_REPORT, report=sample_report))
            elif kind == 2:
                requests.append(_request(DocumentType.EXECUTIVE_SUMMARY, report=sample_report))
            else:
                requests.append(_request(DocumentType.AUDIT_REPORT, filename=""))  # rejected

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(generator.generate, requests))

        snapshot = statistics.snapshot()
        assert sum(1 for r in results if r.success) == 18
        assert snapshot.total_generated == 18
        assert snapshot.total_rejected == 6
        assert snapshot.total_errors == 6
        assert sum(snapshot.generations_by_type.values()) == snapshot.total_generated
        assert snapshot.generations_by_type == {"sop-document": 6, "audit-report": 6, "executive-summary": 6}
        assert snapshot.average_generation_time_ms >= 0

    def test_sessions_not_shared(self, staging_settings, fake_session_factory, sample_sop):
        make, sessions = fake_session_factory
        generator = TestBrowserWorkflow()._generator(staging_settings, make(delay=0.05))
        request = _request(DocumentType.SOP_DOCUMENT, sop=sample_sop,
                           template_overrides={"styling": {"engine": "html"}})

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: generator.generate(request), range(8)))

        assert all(r.success for r in results)
        assert len(sessions) == 8
        assert len({id(s) for s in sessions}) == 8
        assert all(s.closed for s in sessions)


# =============================================================================
# OBSERVABILITY
# =============================================================================

class TestObservability:

    def test_spans_recorded(self, test_settings, sample_sop):
        tracer = Tracer(service_name="sop-engine-test")
        generator = DocumentGenerator(settings=test_settings, tracer=tracer)

        generator.generate(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))

        spans = tracer.get_recent_spans()
        kinds = {s.kind for s in spans}
        assert {SpanKind.GENERATION, SpanKind.VALIDATION, SpanKind.FORMATTING, SpanKind.RENDER} <= kinds
        root = next(s for s in spans if s.kind == SpanKind.GENERATION)
        assert all(s.trace_id == root.trace_id for s in spans)

    def test_failed_generation_marks_root_span(self, test_settings):
        tracer = Tracer(service_name="sop-engine-test")
        generator = DocumentGenerator(settings=test_settings, tracer=tracer)

        generator.generate(_request(DocumentType.AUDIT_REPORT, filename=""))

        root = next(s for s in tracer.get_recent_spans() if s.kind == SpanKind.GENERATION)
        assert root.to_dict()["status"] == "error"

    def test_metrics_recorded(self, test_settings, sample_sop):
        metrics = MetricsCollector()
        generator = DocumentGenerator(settings=test_settings, generation_logger=GenerationLogger(metrics))

        generator.generate(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))
        generator.generate(_request(DocumentType.SOP_DOCUMENT, filename=""))

        exported = metrics.to_prometheus()
        assert "sop_generation" in exported
        assert "sop_validation" in exported

    def test_statistics_endpoint_shape(self, generator, sample_sop):
        generator.generate(_request(DocumentType.SOP_DOCUMENT, sop=sample_sop))
        stats = generator.get_statistics()

        assert stats["totalGenerated"] == 1
        assert stats["generationsByType"] == {"sop-document": 1}

        generator.reset_statistics()
        assert generator.get_statistics()["totalGenerated"] == 0
