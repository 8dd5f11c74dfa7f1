"""
Pytest Configuration and Shared Fixtures

Centralized fixtures for the SOP engine test suite: settings, sample
payloads, fake browser sessions and a fully wired DocumentGenerator.
"""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from playwright.sync_api import Error as PlaywrightError

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sop_engine.config import Environment, Settings, get_test_settings
from sop_engine.formatter import (
    Definition,
    Procedure,
    RevisionEntry,
    RoleResponsibility,
    SOPContent,
    SOPDocument,
    SOPFooter,
    SOPFormat,
    SOPHeader,
    SOPMetadata,
)
from sop_engine.models import DocumentType, GenerationOptions, GenerationRequest
from sop_engine.orchestrator import DocumentGenerator
from sop_engine.persistence import InMemoryMetadataStore, LocalFileStorage
from sop_engine.statistics import GenerationStatistics
from sop_engine.template_builder import OrganizationBranding

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger("tests")

FIXED_TIME = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: end-to-end generation")
    config.addinivalue_line("markers", "performance: concurrency checks")
    config.addinivalue_line("markers", "slow: long running tests")


# =============================================================================
# SETTINGS FIXTURES
# =============================================================================

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """TEST environment; every render goes through the drawing backend."""
    return get_test_settings(output_directory=tmp_path / "output")


@pytest.fixture
def staging_settings(test_settings) -> Settings:
    """Non-deterministic environment so backend selection follows the template."""
    return replace(test_settings, environment=Environment.STAGING)


@pytest.fixture
def development_settings(test_settings) -> Settings:
    return replace(test_settings, environment=Environment.DEVELOPMENT)


@pytest.fixture
def production_settings(test_settings) -> Settings:
    return replace(test_settings, environment=Environment.PRODUCTION)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def make_procedures(count: int = 3) -> List[Procedure]:
    return [
        Procedure(
            step_number=str(i + 1),
            description=f"Perform step {i + 1}",
            responsible_role="Operator" if i % 2 == 0 else None,
            time_estimate=f"{(i + 1) * 5} minutes" if i != 1 else None,
            quality_check=f"Verify step {i + 1}",
        )
        for i in range(count)
    ]


def make_sop(procedures: Optional[List[Procedure]] = None, **header: Any) -> SOPDocument:
    """A fully populated SOP that satisfies every registered standard."""
    header_fields = dict(
        title="Equipment Cleaning",
        document_number="SOP-QA-001",
        version="2.1",
        effective_date="2024-01-01",
        organization="Acme Labs",
        approved_by="J. Smith",
    )
    header_fields.update(header)
    return SOPDocument(
        header=SOPHeader(**header_fields),
        metadata=SOPMetadata(
            purpose="Describe how production equipment is cleaned.",
            scope="All production lines.",
            related_documents=["Cleaning Log Template"],
            definitions=[Definition(term="CIP", definition="Clean in place")],
        ),
        content=SOPContent(
            format=SOPFormat.STEP_BY_STEP,
            roles_responsibilities=[
                RoleResponsibility(role="Operator", responsibilities=["Execute cleaning"]),
            ],
            procedures=make_procedures() if procedures is None else procedures,
            safety_considerations="Wear gloves and goggles.",
            quality_controls="Swab test after every clean.",
        ),
        footer=SOPFooter(
            revision_history=[RevisionEntry(version="2.1", date="2024-01-01", changes="Updated swab limits")],
            next_review_date="2025-01-01",
            document_owner="QA Manager",
        ),
    )


@pytest.fixture
def sop_factory():
    return make_sop


@pytest.fixture
def sample_sop() -> SOPDocument:
    return make_sop()


@pytest.fixture
def minimal_sop() -> SOPDocument:
    """Only a title and procedures; fails every compliance standard."""
    return SOPDocument(
        header=SOPHeader(title="Quick Task"),
        content=SOPContent(procedures=make_procedures(2)),
    )


@pytest.fixture
def sample_sop_payload() -> Dict[str, Any]:
    """camelCase SOP payload as it arrives on the wire."""
    return {
        "header": {
            "title": "Customer Onboarding",
            "documentNumber": "SOP-OPS-014",
            "version": "1.0",
            "effectiveDate": "2024-02-01",
            "organization": "Northwind",
            "approvedBy": "Ops Director",
        },
        "metadata": {
            "purpose": "Onboard new customers consistently.",
            "scope": "Sales and operations teams.",
            "relatedDocuments": ["CRM Guide"],
            "definitions": [{"term": "KYC", "definition": "Know your customer"}],
        },
        "content": {
            "format": "step-by-step",
            "rolesResponsibilities": [
                {"role": "Account Manager", "responsibilities": ["Collect documents"]},
            ],
            "procedures": [
                {"stepNumber": "1", "description": "Collect KYC documents",
                 "responsibleRole": "Account Manager", "timeEstimate": "15 minutes"},
                {"stepNumber": "2", "description": "Create CRM record",
                 "responsibleRole": "Operations"},
            ],
            "qualityControls": "Peer review of CRM records.",
        },
        "footer": {
            "revisionHistory": [{"version": "1.0", "date": "2024-02-01", "changes": "Initial"}],
            "nextReviewDate": "2025-02-01",
            "documentOwner": "Ops Director",
        },
    }


@pytest.fixture
def sample_report() -> Dict[str, Any]:
    """Generic process-analysis report payload."""
    return {
        "processName": "Invoice Processing",
        "executiveSummary": {
            "overview": "Invoices are keyed manually and approved by email.",
            "keyFindings": ["70% of time spent on data entry", "Approvals wait 3 days on average"],
            "automationScore": 65,
            "estimatedROI": "$120,000",
            "timeSavings": "30 hours/week",
            "implementationCost": "$40,000",
            "paybackPeriod": "4 months",
        },
        "processAnalysis": {
            "summary": "Twelve steps, nine of them manual.",
            "currentSteps": ["Receive invoice", "Key into ERP", "Email approver"],
            "bottlenecks": ["Email approvals"],
        },
        "automationOpportunities": [
            {
                "title": "OCR Capture",
                "description": "Extract invoice fields automatically",
                "estimatedTime": 45,
                "steps": ["Select OCR vendor", "Configure field mapping"],
                "impact": "high",
                "priority": "high",
            },
            {
                "title": "Approval Workflow",
                "description": "Route approvals through the ERP",
                "priority": "medium",
            },
        ],
        "roadmap": {
            "phases": [
                {"name": "Pilot", "duration": "4 weeks", "cost": "$10,000"},
                {"name": "Rollout", "duration": "8 weeks"},
            ],
        },
        "implementationGuidance": {
            "recommendations": ["Start with OCR capture"],
            "nextSteps": ["Select vendor", "Run pilot", "Train staff", "Retire email approvals"],
        },
    }


@pytest.fixture
def sample_branding() -> OrganizationBranding:
    return OrganizationBranding(
        name="Acme Labs",
        primary_color="#0f766e",
        secondary_color="#334155",
    )


@pytest.fixture
def sop_request(sample_sop) -> GenerationRequest:
    return GenerationRequest(
        document_type=DocumentType.SOP_DOCUMENT,
        sop_data=sample_sop,
        options=GenerationOptions(filename="cleaning.pdf"),
    )


@pytest.fixture
def report_request(sample_report) -> GenerationRequest:
    return GenerationRequest(
        document_type=DocumentType.AUDIT_REPORT,
        report_data=sample_report,
        options=GenerationOptions(filename="audit.pdf"),
    )


# =============================================================================
# BROWSER FIXTURES
# =============================================================================

class FakeBrowserSession:
    """
    Stands in for BrowserSession without launching Chromium.

    Behavior is controlled per instance: `delay` seconds are waited inside
    render_pdf, `error` is raised from render_pdf when set. abort() cuts
    the wait short the way a killed browser ends a pending Playwright call.
    """

    def __init__(self, launch_args=(), pdf: bytes = b"%PDF-1.4 fake\n%%EOF", delay: float = 0.0,
                 error: Optional[BaseException] = None, open_error: Optional[BaseException] = None):
        self.launch_args = list(launch_args)
        self.pdf = pdf
        self.delay = delay
        self.error = error
        self.open_error = open_error
        self.opened = False
        self.aborted = False
        self.html: Optional[str] = None
        self.page_options = None
        self.render_thread: Optional[threading.Thread] = None
        self._abort = threading.Event()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def wait_closed(self, timeout: float) -> bool:
        return self._closed.wait(timeout)

    def open(self, timeout_ms: float):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def render_pdf(self, html, page_options, deadline, network_idle_timeout_ms) -> bytes:
        self.html = html
        self.page_options = page_options
        self.render_thread = threading.current_thread()
        if self.delay and self._abort.wait(self.delay):
            raise PlaywrightError("Target page, context or browser has been closed")
        if self.error is not None:
            raise self.error
        return self.pdf

    def abort(self):
        self.aborted = True
        self._abort.set()

    def close(self):
        self._closed.set()


@pytest.fixture
def fake_session_factory():
    """
    Returns (factory, sessions). Keyword arguments given to the fixture
    call configure each session the factory creates.
    """
    sessions: List[FakeBrowserSession] = []

    def make(**behavior):
        def factory(launch_args):
            session = FakeBrowserSession(launch_args, **behavior)
            sessions.append(session)
            return session
        return factory

    return make, sessions


# =============================================================================
# GENERATOR FIXTURES
# =============================================================================

@pytest.fixture
def statistics() -> GenerationStatistics:
    return GenerationStatistics()


@pytest.fixture
def generator(test_settings, statistics) -> DocumentGenerator:
    return DocumentGenerator(settings=test_settings, statistics=statistics)


@pytest.fixture
def metadata_store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def storing_generator(test_settings, statistics, metadata_store, tmp_path) -> DocumentGenerator:
    return DocumentGenerator(
        settings=test_settings,
        statistics=statistics,
        storage=LocalFileStorage(tmp_path / "store"),
        metadata_store=metadata_store,
    )
