"""
Unit tests for template resolution and the template cache.
"""

import pytest
from dataclasses import replace

from sop_engine.models import DocumentType
from sop_engine.observability import TemplateCache, template_key
from sop_engine.renderers import DEFAULT_TEMPLATES, TemplateEngine, TemplateSection, TemplateStyling

pytestmark = [pytest.mark.unit]


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine(cache_size=16)


class TestDefaults:

    def test_every_document_type_has_a_default(self):
        assert set(DEFAULT_TEMPLATES) == set(DocumentType)

    def test_sop_sections_in_order(self, engine):
        template = engine.get_template(DocumentType.SOP_DOCUMENT)
        assert template.section_ids == [
            "sop-header",
            "sop-document-control",
            "sop-purpose-scope",
            "sop-responsibilities",
            "sop-procedures",
            "sop-references",
            "sop-revision-history",
        ]
        assert template.styling.layout_type == "structured"

    def test_executive_summary_is_concise(self, engine):
        assert engine.get_template(DocumentType.EXECUTIVE_SUMMARY).styling.layout_type == "concise"

    def test_default_engine_is_components(self, engine):
        for document_type in DocumentType:
            assert engine.get_template(document_type).styling.engine == "components"


class TestOverrides:

    def test_styling_override(self, engine):
        template = engine.get_template(
            DocumentType.SOP_DOCUMENT,
            {"styling": {"engine": "html", "headerFooter": False}},
        )
        assert template.styling.engine == "html"
        assert template.styling.header_footer is False
        assert template.styling.layout_type == "structured"

    def test_section_subset_keeps_requested_order(self, engine):
        template = engine.get_template(
            DocumentType.AUDIT_REPORT,
            {"sections": ["automation-opportunities", "cover-page", "not-a-section"]},
        )
        assert template.section_ids == ["automation-opportunities", "cover-page"]

    def test_unknown_sections_only_keeps_defaults(self, engine):
        template = engine.get_template(DocumentType.AUDIT_REPORT, {"sections": ["nope"]})
        assert template.section_ids == DEFAULT_TEMPLATES[DocumentType.AUDIT_REPORT].section_ids

    def test_overrides_do_not_leak_into_defaults(self, engine):
        engine.get_template(DocumentType.SOP_DOCUMENT, {"styling": {"layoutType": "custom-charts"}})
        assert engine.get_template(DocumentType.SOP_DOCUMENT).styling.layout_type == "structured"

    def test_merged_ignores_none(self):
        base = TemplateStyling()
        assert TemplateStyling.merged(base, {"engine": None}) == base


class TestRegistration:

    def test_registered_template_selected_by_id(self, engine):
        custom = replace(
            DEFAULT_TEMPLATES[DocumentType.SOP_DOCUMENT],
            template_id="acme-sop",
            name="Acme SOP",
            sections=(TemplateSection("sop-procedures", "Procedures", "sop"),),
        )
        engine.register_template(custom)

        template = engine.get_template(DocumentType.SOP_DOCUMENT, {"id": "acme-sop"})

        assert template.template_id == "acme-sop"
        assert template.section_ids == ["sop-procedures"]
        assert template.is_default is False

    def test_template_for_other_type_ignored(self, engine):
        engine.register_template(replace(DEFAULT_TEMPLATES[DocumentType.AUDIT_REPORT], template_id="audit-x"))
        template = engine.get_template(DocumentType.SOP_DOCUMENT, {"id": "audit-x"})
        assert template.template_id == "default-sop-document"

    def test_unknown_id_uses_default(self, engine):
        assert engine.get_template(DocumentType.SOP_DOCUMENT, {"id": "ghost"}).template_id == "default-sop-document"

    def test_available_templates(self, engine):
        engine.register_template(replace(DEFAULT_TEMPLATES[DocumentType.SOP_DOCUMENT], template_id="s2"))
        ids = [t.template_id for t in engine.get_available_templates(DocumentType.SOP_DOCUMENT)]
        assert ids == ["default-sop-document", "s2"]

    def test_registration_clears_cache(self, engine):
        engine.get_template(DocumentType.SOP_DOCUMENT)
        assert engine.get_stats()["cache"]["size"] == 1

        engine.register_template(replace(DEFAULT_TEMPLATES[DocumentType.SOP_DOCUMENT], template_id="s2"))

        assert engine.get_stats()["cache"]["size"] == 0
        assert engine.get_stats()["custom_templates"] == 1


class TestCaching:

    def test_repeat_resolution_hits_cache(self, engine):
        first = engine.get_template(DocumentType.AUDIT_REPORT, {"styling": {"engine": "html"}})
        second = engine.get_template(DocumentType.AUDIT_REPORT, {"styling": {"engine": "html"}})

        assert first is second
        assert engine.get_stats()["cache"]["hits"] == 1

    def test_key_independent_of_dict_order(self):
        a = template_key("sop-document", {"styling": {"engine": "html", "headerFooter": False}})
        b = template_key("sop-document", {"styling": {"headerFooter": False, "engine": "html"}})
        assert a == b

    def test_lru_eviction(self):
        cache = TemplateCache(max_entries=2)
        templates = {name: replace(DEFAULT_TEMPLATES[DocumentType.SOP_DOCUMENT], template_id=name) for name in "abc"}
        resolve = lambda name: cache.get_or_resolve("sop-document", {"id": name}, lambda: templates[name])

        resolve("a")
        resolve("b")
        resolve("a")
        resolve("c")

        assert template_key("sop-document", {"id": "a"}) in cache
        assert template_key("sop-document", {"id": "b"}) not in cache
        assert template_key("sop-document", {"id": "c"}) in cache
        assert cache.stats()["evictions"] == 1
        assert cache.stats()["hits"] == 1

    def test_rejects_empty_cache(self):
        with pytest.raises(ValueError):
            TemplateCache(max_entries=0)
