"""
Unit Tests for Analysis Records and Access Policy
=================================================
"""

import pytest

from analysis_schema import (
    ACCESS_FREE,
    ACCESS_LOCKED,
    ACCESS_PARTIAL,
    FRAMEWORK_KEYS,
    Analysis,
    apply_access_policy,
    frameworks_by_layer,
    get_access_stats,
    get_framework,
    get_teaser_message,
    has_framework_data,
    is_field_visible,
    normalize_frameworks,
    parse_analysis,
    parse_enrichment,
    parse_submission,
)
from workflow_stages import AnalysisStatus, EnrichmentStatus


class TestNormalizeFrameworks:
    """Test suite for framework key normalization."""

    def test_snake_case_keys_become_canonical(self, sample_frameworks):
        """Test that snake_case framework keys are folded."""
        result = normalize_frameworks(sample_frameworks)
        assert set(result) == set(FRAMEWORK_KEYS)
        assert "tam_sam_som" not in result
        assert result["tamSamSom"]["tam"] == "R$ 12 bi"

    def test_inner_fields_become_canonical(self, sample_frameworks):
        """Test that inner field aliases are folded."""
        result = normalize_frameworks(sample_frameworks)
        assert "overallAttractiveness" in result["porter"]
        assert "plan90Days" in result["okrs"]
        assert "keyResults" in result["okrs"]["plan90Days"][0]
        assert "executiveSummary" in result["synthesis"]

    def test_canonical_key_wins(self):
        """Test that the camelCase spelling wins when both are present."""
        result = normalize_frameworks({"tamSamSom": {"tam": "A"}, "tam_sam_som": {"tam": "B"}})
        assert result == {"tamSamSom": {"tam": "A"}}

    def test_framework_results_envelope(self):
        """Test the legacy envelope is unwrapped."""
        result = normalize_frameworks({"framework_results": {"blue_ocean": {"create": ["x"]}}})
        assert result == {"blueOcean": {"create": ["x"]}}

    @pytest.mark.parametrize("raw", [None, [], "text", 42])
    def test_non_object_payload(self, raw):
        """Test that non-dict payloads yield an empty analysis."""
        assert normalize_frameworks(raw) == {}

    def test_null_frameworks_dropped(self):
        """Test that null framework values are omitted."""
        assert normalize_frameworks({"swot": None}) == {}


class TestRecordModels:
    """Test suite for pydantic record parsing."""

    def test_submission_accepts_both_spellings(self):
        """Test camelCase and snake_case submission fields."""
        camel = parse_submission({"id": "s1", "companyName": "Acme", "targetMarket": "BR"})
        snake = parse_submission({"id": "s1", "company_name": "Acme", "target_market": "BR"})
        assert camel.company_name == snake.company_name == "Acme"
        assert camel.target_market == snake.target_market == "BR"

    def test_integer_ids_are_strings(self):
        """Test that numeric ids are stringified."""
        analysis = parse_analysis({"id": 7, "submissionId": 3})
        assert analysis.id == "7"
        assert analysis.submission_id == "3"

    def test_analysis_defaults(self):
        """Test defaults for a minimal analysis payload."""
        analysis = parse_analysis({"id": "a1"})
        assert analysis.status == AnalysisStatus.PENDING
        assert analysis.version == 1
        assert analysis.is_blurred is True
        assert analysis.is_visible_to_user is False
        assert analysis.analysis == {}

    def test_unknown_status_defaults_to_pending(self):
        """Test that unrecognized statuses do not fail parsing."""
        assert parse_analysis({"id": "a1", "status": "weird"}).status == AnalysisStatus.PENDING
        assert parse_enrichment({"id": "e1", "status": "weird"}).status == EnrichmentStatus.PENDING

    def test_bad_version_defaults_to_one(self):
        """Test version coercion."""
        assert parse_analysis({"id": "a1", "version": "abc"}).version == 1
        assert parse_analysis({"id": "a1", "version": "3"}).version == 3

    def test_null_flags(self):
        """Test that null flags fall back to their defaults."""
        analysis = parse_analysis({"id": "a1", "isBlurred": None, "isVisibleToUser": None})
        assert analysis.is_blurred is True
        assert analysis.is_visible_to_user is False

    def test_public_payload_with_top_level_frameworks(self):
        """Test public payloads that carry framework_results at the top level."""
        analysis = parse_analysis({"id": "a1", "framework_results": {"swot": {"strengths": ["x"]}}})
        assert analysis.analysis == {"swot": {"strengths": ["x"]}}

    def test_parse_none(self):
        """Test that None stays None."""
        assert parse_analysis(None) is None
        assert parse_enrichment(None) is None
        assert parse_submission(None) is None

    def test_enrichment_non_dict_data(self):
        """Test that non-object enrichment data becomes empty."""
        assert parse_enrichment({"id": "e1", "data": ["x"]}).data == {}

    def test_is_released(self, sample_analysis, released_analysis):
        """Test the released property."""
        assert not Analysis.model_validate(sample_analysis).is_released
        assert Analysis.model_validate(released_analysis).is_released
        hidden = {**released_analysis, "isVisibleToUser": False}
        assert not Analysis.model_validate(hidden).is_released


class TestFrameworkRegistry:
    """Test suite for framework metadata."""

    def test_twelve_frameworks(self):
        """Test that the registry lists twelve unique keys."""
        assert len(FRAMEWORK_KEYS) == 12
        assert len(set(FRAMEWORK_KEYS)) == 12

    def test_unknown_framework(self):
        """Test lookup of an unknown key."""
        with pytest.raises(KeyError):
            get_framework("nope")

    def test_layers_sorted(self):
        """Test navigation groups come in layer order."""
        layers = [layer for layer, _ in frameworks_by_layer()]
        assert layers == sorted(layers)
        assert frameworks_by_layer()[0][1][0].key == "synthesis"

    @pytest.mark.parametrize("value, expected", [
        (None, False), ({}, False), ([], False), ("", False),
        ({"a": 1}, True), (["x"], True), ("x", True), (0, True),
    ])
    def test_has_framework_data(self, value, expected):
        """Test presence detection for each container kind."""
        assert has_framework_data({"swot": value}, "swot") is expected

    def test_access_stats(self):
        """Test access-level counts add up."""
        stats = get_access_stats()
        assert stats[ACCESS_FREE] + stats[ACCESS_PARTIAL] + stats[ACCESS_LOCKED] == stats["total"] == 12


class TestAccessPolicy:
    """Test suite for premium gating."""

    @pytest.fixture
    def blurred(self, sample_analysis):
        return Analysis.model_validate(sample_analysis)

    def test_admin_sees_everything(self, blurred):
        """Test that admins bypass gating."""
        view = apply_access_policy(blurred, "blueOcean", is_admin=True)
        assert view.access_level == ACCESS_FREE
        assert view.data == blurred.analysis["blueOcean"]

    def test_paid_user_sees_everything(self, blurred):
        """Test that paying users bypass gating."""
        assert not apply_access_policy(blurred, "okrs", has_paid=True).is_locked

    def test_unblurred_analysis_sees_everything(self, sample_analysis):
        """Test that unblurred analyses are not gated."""
        analysis = Analysis.model_validate({**sample_analysis, "isBlurred": False})
        assert apply_access_policy(analysis, "scenarios").access_level == ACCESS_FREE

    def test_partial_keeps_visible_fields(self, blurred):
        """Test that partial frameworks keep only their visible fields."""
        view = apply_access_policy(blurred, "porter")
        assert view.access_level == ACCESS_PARTIAL
        assert set(view.data) == {"summary", "overallAttractiveness"}
        assert view.teaser == get_teaser_message("porter")

    def test_locked_hides_data(self, blurred):
        """Test that locked frameworks keep nothing but the teaser."""
        view = apply_access_policy(blurred, "blueOcean")
        assert view.is_locked
        assert view.data == {}
        assert "eliminar" in view.teaser

    def test_free_framework(self, blurred):
        """Test that free frameworks are shown in full."""
        view = apply_access_policy(blurred, "swot")
        assert view.access_level == ACCESS_FREE
        assert view.data["strengths"]

    def test_field_visibility(self):
        """Test per-field visibility."""
        assert is_field_visible("swot", "anything")
        assert is_field_visible("tamSamSom", "tam")
        assert not is_field_visible("tamSamSom", "assumptions")
        assert not is_field_visible("okrs", "summary")
        assert is_field_visible("unknown", "x")
