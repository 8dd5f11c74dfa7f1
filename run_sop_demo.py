#!/usr/bin/env python3
"""
SOP Engine Demo - End-to-End Generation

This script walks through a typical run:
1. Load settings from the environment (SOP_ENGINE_ENV, SOP_OUTPUT_DIR, ...)
2. Format a sample SOP in every presentation layout
3. Check it against each compliance standard
4. Render an SOP, an audit report and an executive summary
5. Store the PDFs locally and print the response envelopes

Set SOP_ENGINE_ENV=staging with Playwright's Chromium installed and pass
--html to try the browser renderer.
"""

import json
import sys
from datetime import date, datetime
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from sop_engine import (
    DocumentGenerator,
    DocumentType,
    GenerationOptions,
    GenerationRequest,
    GenerationStatistics,
    InMemoryMetadataStore,
    LocalFileStorage,
    OrganizationBranding,
    SOPDocument,
    SOPFormat,
    format_sop,
    get_all_standards,
    get_settings,
    validate_compliance,
)

SAMPLE_SOP = {
    "header": {
        "title": "Month-End Close",
        "version": "1.2",
        "effectiveDate": str(date.today()),
        "approvedBy": "Controller",
    },
    "metadata": {
        "purpose": "Close the general ledger accurately and on time.",
        "scope": "Finance operations team.",
        "definitions": [{"term": "GL", "definition": "General ledger"}],
    },
    "content": {
        "rolesResponsibilities": [
            {"role": "Accountant", "responsibilities": ["Post accruals", "Reconcile accounts"]},
            {"role": "Controller", "responsibilities": ["Review and sign off"]},
        ],
        "procedures": [
            {"stepNumber": "1", "description": "Post accruals", "responsibleRole": "Accountant",
             "timeEstimate": "2 hours"},
            {"stepNumber": "2", "description": "Reconcile bank accounts", "responsibleRole": "Accountant",
             "timeEstimate": "3 hours", "qualityCheck": "Zero unreconciled items"},
            {"stepNumber": "3", "description": "Review trial balance", "responsibleRole": "Controller"},
        ],
        "qualityControls": "Controller reviews every reconciliation.",
    },
}

SAMPLE_REPORT = {
    "processName": "Vendor Onboarding",
    "executiveSummary": {
        "overview": "Vendor onboarding takes 12 days and relies on emailed spreadsheets.",
        "keyFindings": ["Manual data entry", "No single owner"],
        "automationScore": 58,
        "estimatedROI": "180%",
    },
    "automationOpportunities": [
        {"title": "Self-service portal", "description": "Vendors submit their own details",
         "estimatedTime": 60, "priority": "high"},
        {"title": "Sanctions screening", "description": "Automated screening on submit", "priority": "medium"},
    ],
}

# -----------------------------------------------------------------------------
# STEP 1: Configure the Environment
# -----------------------------------------------------------------------------
print("=" * 70)
print("SOP ENGINE - Generation Demo")
print("=" * 70)
print(f"\nDate: {date.today()}")
print(f"Time: {datetime.now().strftime('%H:%M:%S')}")

settings = get_settings()
output_dir = settings.documents.output_directory
use_html = "--html" in sys.argv

print(f"Environment: {settings.environment.value}")
print(f"Config hash: {settings.config_hash[:16]}...")
print(f"Output: {output_dir}")
print()

# -----------------------------------------------------------------------------
# STEP 2: Format
# -----------------------------------------------------------------------------
print("-" * 70)
print("STEP 1: Formatting procedures")
print("-" * 70)

sop = SOPDocument.from_dict(SAMPLE_SOP)
for layout in SOPFormat:
    print(f"\n[{layout.value}]")
    print(format_sop(sop, layout))
print()

# -----------------------------------------------------------------------------
# STEP 3: Compliance
# -----------------------------------------------------------------------------
print("-" * 70)
print("STEP 2: Compliance checks")
print("-" * 70)

for standard in get_all_standards():
    result = validate_compliance(sop, standard.name)
    marker = "✓" if result.is_compliant else "○"
    missing = ", ".join(result.missing_fields) or "nothing missing"
    print(f"  {marker} {standard.name:<10} {missing}")
print()

# -----------------------------------------------------------------------------
# STEP 4: Render and store
# -----------------------------------------------------------------------------
print("-" * 70)
print("STEP 3: Rendering")
print("-" * 70)

metadata_store = InMemoryMetadataStore()
generator = DocumentGenerator(
    settings=settings,
    statistics=GenerationStatistics(),
    storage=LocalFileStorage(output_dir),
    metadata_store=metadata_store,
)
branding = OrganizationBranding(name="Northwind Finance", primary_color="#0f766e")
overrides = {"styling": {"engine": "html"}} if use_html else None

requests = [
    GenerationRequest(
        DocumentType.SOP_DOCUMENT,
        sop_data=SAMPLE_SOP,
        branding=branding,
        options=GenerationOptions("month-end-close.pdf", template_overrides=overrides),
    ),
    GenerationRequest(
        DocumentType.SOP_DOCUMENT,
        report_data=SAMPLE_REPORT,
        branding=branding,
        options=GenerationOptions("vendor-onboarding-sop.pdf", sequence=2),
    ),
    GenerationRequest(
        DocumentType.AUDIT_REPORT,
        report_data=SAMPLE_REPORT,
        branding=branding,
        options=GenerationOptions("vendor-onboarding-audit.pdf"),
    ),
    GenerationRequest(
        DocumentType.EXECUTIVE_SUMMARY,
        report_data=SAMPLE_REPORT,
        branding=branding,
        options=GenerationOptions("vendor-onboarding-summary.pdf"),
    ),
]

for request in requests:
    response = generator.generate_and_store(request)
    status = "✓" if response["success"] else "✗"
    print(f"\n{status} {request.document_type.value} -> {request.options.filename}")
    print(json.dumps(response, indent=2, default=str))
print()

# -----------------------------------------------------------------------------
# STEP 5: Statistics
# -----------------------------------------------------------------------------
print("-" * 70)
print("STEP 4: Statistics")
print("-" * 70)
print(json.dumps(generator.get_statistics(), indent=2))
print(f"\nStored records: {len(metadata_store.records)}")
print()
print("=" * 70)
print("Done")
print("=" * 70)
