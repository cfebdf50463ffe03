"""
Unit Tests for the Workflow Stage Model
=======================================
"""

import itertools

import pytest

from workflow_stages import (
    ADMIN_STAGES,
    AUTOMATIC_TRANSITIONS,
    BACKWARD_TRANSITIONS,
    STAGE_TRANSITIONS,
    USER_STAGE_ADMIN_FLOOR,
    USER_STAGES,
    AnalysisStatus,
    EnrichmentStatus,
    can_move_to_stage,
    coerce_analysis_status,
    compute_admin_stage,
    compute_user_stage,
    get_admin_stage_content,
    get_stage_config,
    get_stage_transition,
    get_user_stage_content,
    user_stage_for_admin_stage,
)

ENRICHMENT_VALUES = [None, "unknown"] + [s.value for s in EnrichmentStatus]
ANALYSIS_VALUES = [None, "bogus"] + [s.value for s in AnalysisStatus]


class TestComputeAdminStage:
    """Test suite for stage derivation."""

    def test_total_over_all_status_combinations(self):
        """Every combination of statuses maps to a stage in 1..6."""
        for enrichment, analysis, visible in itertools.product(ENRICHMENT_VALUES, ANALYSIS_VALUES, (True, False)):
            assert 1 <= compute_admin_stage(enrichment, analysis, visible) <= 6
            assert 1 <= compute_user_stage(enrichment, analysis, visible) <= 3

    @pytest.mark.parametrize("enrichment, analysis, visible, expected", [
        (None, None, False, 1),
        ("pending", None, False, 1),
        ("processing", None, False, 1),
        ("completed", None, False, 2),
        ("completed", "approved", True, 2),
        ("approved", None, False, 3),
        ("approved", "pending", False, 3),
        ("approved", "generating", False, 3),
        ("approved", "failed", False, 3),
        ("approved", "generated", False, 4),
        ("approved", "completed", False, 4),
        ("approved", "approved", False, 5),
        ("approved", "sent", False, 5),
        ("approved", "approved", True, 6),
        ("approved", "sent", True, 6),
    ])
    def test_stage_table(self, enrichment, analysis, visible, expected):
        """Test the documented status-to-stage table."""
        assert compute_admin_stage(enrichment, analysis, visible) == expected

    def test_visibility_only_matters_after_approval(self):
        """Test that a visible flag on an unapproved analysis does not release it."""
        assert compute_admin_stage("approved", "completed", True) == 4

    def test_monotonic_along_happy_path(self):
        """Stages never decrease as statuses advance."""
        path = [
            ("pending", None, False),
            ("processing", None, False),
            ("completed", None, False),
            ("approved", "pending", False),
            ("approved", "generating", False),
            ("approved", "completed", False),
            ("approved", "approved", False),
            ("approved", "approved", True),
        ]
        stages = [compute_admin_stage(*statuses) for statuses in path]
        assert stages == sorted(stages)
        assert stages[-1] == 6

    def test_unknown_status_treated_as_absent(self):
        """Test that unknown statuses are coerced to None."""
        assert coerce_analysis_status("BOGUS") is None
        assert compute_admin_stage("approved", "BOGUS") == 3

    def test_status_coercion_is_case_insensitive(self):
        """Test that statuses are matched regardless of case."""
        assert compute_admin_stage("Approved", "COMPLETED") == 4
        assert compute_admin_stage(EnrichmentStatus.APPROVED, AnalysisStatus.SENT, True) == 6


class TestUserStages:
    """Test suite for the three-stage user view."""

    @pytest.mark.parametrize("admin_stage, expected", [(1, 1), (2, 1), (3, 2), (4, 2), (5, 2), (6, 3)])
    def test_user_stage_mapping(self, admin_stage, expected):
        """Test admin-to-user stage mapping."""
        assert user_stage_for_admin_stage(admin_stage) == expected

    def test_user_stage_never_ahead_of_admin(self):
        """Every input keeps the user stage at or behind the admin stage it represents."""
        enrichments = ENRICHMENT_VALUES + list(EnrichmentStatus)
        analyses = ANALYSIS_VALUES + list(AnalysisStatus)
        for enrichment, analysis, visible in itertools.product(enrichments, analyses, (True, False)):
            admin_stage = compute_admin_stage(enrichment, analysis, visible)
            user_stage = compute_user_stage(enrichment, analysis, visible)
            assert USER_STAGE_ADMIN_FLOOR[user_stage] <= admin_stage, (enrichment, analysis, visible)

    def test_floor_covers_every_user_stage(self):
        """Test that each user stage starts at the lowest admin stage mapped to it."""
        assert set(USER_STAGE_ADMIN_FLOOR) == {config.stage for config in USER_STAGES}
        for user_stage, floor in USER_STAGE_ADMIN_FLOOR.items():
            assert user_stage_for_admin_stage(floor) == user_stage
            if floor > 1:
                assert user_stage_for_admin_stage(floor - 1) < user_stage

    def test_ready_only_when_visible(self):
        """Test that users only see 'Pronto!' once the report is released."""
        assert compute_user_stage("approved", "approved", False) == 2
        assert compute_user_stage("approved", "approved", True) == 3

    def test_user_content_requires_visibility(self):
        """Test that users see the analysis only at stage 3 and when visible."""
        assert get_user_stage_content(3, True).show_analysis
        assert not get_user_stage_content(3, False).show_analysis
        assert not get_user_stage_content(2, True).show_enrichment

    def test_stage_configs(self):
        """Test stage labels are ordered and complete."""
        assert [s.stage for s in ADMIN_STAGES] == [1, 2, 3, 4, 5, 6]
        assert [s.stage for s in USER_STAGES] == [1, 2, 3]
        assert get_stage_config(3, is_admin=False).label == "Pronto!"
        with pytest.raises(ValueError):
            get_stage_config(7)


class TestStageTransitions:
    """Test suite for admin stage moves."""

    def test_same_stage_rejected(self):
        """Moving to the current stage is a no-op and rejected."""
        for stage in range(1, 7):
            assert can_move_to_stage(stage, stage, "approved", "approved") == "Já está neste estágio"

    def test_invalid_stage_rejected(self):
        """Test that stages outside 1..6 are rejected."""
        assert can_move_to_stage(2, 7, "completed").startswith("Estágio inválido")
        assert can_move_to_stage(0, 1, None).startswith("Estágio inválido")

    def test_backward_allow_list_is_exact(self):
        """Only the enumerated backward moves are allowed."""
        assert BACKWARD_TRANSITIONS == {(6, 5), (6, 4), (5, 4), (3, 2), (4, 2), (5, 2), (6, 2)}
        for current, target in itertools.product(range(1, 7), repeat=2):
            if target >= current:
                continue
            reason = can_move_to_stage(current, target, "approved", "approved")
            if (current, target) in BACKWARD_TRANSITIONS:
                assert reason is None
            else:
                assert reason == "Não é possível retornar para este estágio"

    def test_enrichment_approval(self):
        """Test that 2->3 is allowed once enrichment is completed."""
        assert can_move_to_stage(2, 3, "completed", None) is None
        transition = get_stage_transition(2, 3)
        assert transition.action == "approveEnrichment"
        assert not transition.is_backward

    def test_forward_prerequisites(self):
        """Test that forward moves wait for the status they depend on."""
        assert can_move_to_stage(5, 6, "approved", "completed") == "A análise precisa ser aprovada antes de liberar"
        assert can_move_to_stage(4, 5, "approved", "generating") == "A análise ainda não foi concluída"
        assert can_move_to_stage(3, 4, "approved", "pending") == "A análise ainda está em processamento"
        assert can_move_to_stage(1, 2, "processing") == "O enriquecimento ainda está em processamento"

    def test_forward_jump_rejected(self):
        """Test that forward moves go one stage at a time."""
        assert can_move_to_stage(2, 4, "completed", None) == "Avance um estágio por vez"
        assert can_move_to_stage(4, 6, "approved", "completed") == "Avance um estágio por vez"

    def test_automatic_transitions_have_no_action(self):
        """Test that worker-driven moves are absent from the table."""
        for key in AUTOMATIC_TRANSITIONS:
            assert get_stage_transition(*key) is None
        assert set(STAGE_TRANSITIONS).isdisjoint(AUTOMATIC_TRANSITIONS)

    def test_reopen_released_analysis_warns_about_hiding(self):
        """Test that reopening from stage 6 lists hiding the report."""
        from_released = get_stage_transition(6, 4)
        from_approved = get_stage_transition(5, 4)
        assert from_released.action == from_approved.action == "reopenAnalysis"
        assert "O relatório será ocultado do cliente" in from_released.consequences
        assert "O relatório será ocultado do cliente" not in from_approved.consequences

    def test_visibility_toggle_params(self):
        """Test that release and hide share an action with opposite params."""
        assert get_stage_transition(5, 6).params == {"visible": True}
        assert get_stage_transition(6, 5).params == {"visible": False}
        assert get_stage_transition(6, 5).is_backward

    def test_admin_content_editable_stages(self):
        """Test which stages allow admin edits."""
        assert get_admin_stage_content(2).enrichment_editable
        assert get_admin_stage_content(4).analysis_editable
        assert not get_admin_stage_content(5).analysis_editable
