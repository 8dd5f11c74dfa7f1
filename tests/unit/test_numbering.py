"""
Unit tests for document number generation.
"""

import pytest

from sop_engine.formatter import (
    NumberingFormat,
    NumberingScheme,
    generate_document_number,
)

pytestmark = [pytest.mark.unit]


class TestSchemes:

    def test_sequential(self):
        scheme = NumberingScheme(format=NumberingFormat.SEQUENTIAL)
        assert generate_document_number(scheme, sequence=1) == "SOP-001"
        assert generate_document_number(scheme, sequence=42) == "SOP-042"

    def test_departmental(self):
        scheme = NumberingScheme(format=NumberingFormat.DEPARTMENTAL, department_code="QA")
        assert generate_document_number(scheme, sequence=7) == "SOP-QA-007"

    def test_departmental_without_code_uses_general(self):
        scheme = NumberingScheme(format=NumberingFormat.DEPARTMENTAL)
        assert generate_document_number(scheme) == "SOP-GEN-001"

    def test_iso_aligned_uses_clause(self):
        scheme = NumberingScheme(format=NumberingFormat.ISO_ALIGNED, prefix="QMS")
        assert generate_document_number(scheme, sequence=5) == "QMS-7.1.1"

    def test_hierarchical(self):
        scheme = NumberingScheme(format=NumberingFormat.HIERARCHICAL)
        assert generate_document_number(scheme, sequence=3) == "SOP-3.0"

    def test_custom_prefix_and_length(self):
        scheme = NumberingScheme(prefix="WI", sequence_length=5)
        assert generate_document_number(scheme, sequence=12) == "WI-00012"


class TestSequenceHandling:

    @pytest.mark.parametrize("sequence", [0, -4])
    def test_non_positive_sequence_clamped(self, sequence):
        assert generate_document_number(NumberingScheme(), sequence=sequence) == "SOP-001"

    def test_sequence_longer_than_padding_kept_whole(self):
        assert generate_document_number(NumberingScheme(sequence_length=2), sequence=1234) == "SOP-1234"

    def test_document_argument_does_not_change_result(self, sample_sop):
        scheme = NumberingScheme()
        assert generate_document_number(scheme, sample_sop, 9) == generate_document_number(scheme, None, 9)


class TestSchemeParsing:

    def test_from_dict(self):
        scheme = NumberingScheme.from_dict({
            "format": "departmental",
            "prefix": "DOC",
            "departmentCode": "HR",
            "sequenceLength": 4,
        })
        assert scheme == NumberingScheme(NumberingFormat.DEPARTMENTAL, "DOC", "HR", 4)

    def test_unknown_format_is_sequential(self):
        assert NumberingScheme.from_dict({"format": "random"}).format == NumberingFormat.SEQUENTIAL

    def test_defaults(self):
        assert NumberingScheme.from_dict({}) == NumberingScheme()
