"""
Unit Tests for the Wizard Step Sequencer
========================================
"""

import pytest
from unittest.mock import Mock

from backend_client import BackendError
from wizard_engine import (
    TOTAL_STEPS,
    WIZARD_STEPS,
    InvalidWizardAction,
    StepStatus,
    WizardBusy,
    WizardController,
    WizardState,
    WizardStepSummary,
    merge_previous_steps,
)


@pytest.fixture
def controller(memory_backend):
    analysis_id = memory_backend.start_wizard("sub-001", "sub-001")
    state = WizardState.from_payload(memory_backend.get_wizard_state(analysis_id))
    return WizardController(memory_backend, state)


def _summary(step):
    return WizardStepSummary(step, f"code{step}", f"Step {step}", "approved")


class TestWizardState:
    """Test suite for wizard snapshots."""

    def test_twelve_steps(self):
        """Test the step catalog."""
        assert TOTAL_STEPS == 12
        assert [s.step for s in WIZARD_STEPS] == list(range(1, 13))
        assert WIZARD_STEPS[-1].code == "bsc"

    def test_from_payload_defaults(self):
        """Test parsing a minimal payload."""
        state = WizardState.from_payload({"analysis_id": "w1"})
        assert state.current_step == 1
        assert state.step_status == StepStatus.PENDING
        assert state.framework_name == "Refinamento do Desafio"
        assert not state.is_last_step

    def test_unknown_status_is_pending(self):
        """Test that unknown statuses fall back to pending."""
        state = WizardState.from_payload({"analysis_id": "w1", "step_status": "queued"})
        assert state.step_status == StepStatus.PENDING

    def test_merge_is_append_only(self):
        """Test that known summaries are never replaced or dropped."""
        existing = [_summary(1), _summary(2)]
        replacement = WizardStepSummary(2, "other", "Other", "approved")
        merged = merge_previous_steps(existing, [replacement, _summary(3)])
        assert [s.step for s in merged] == [1, 2, 3]
        assert merged[1].framework_code == "code2"
        assert merge_previous_steps(existing, []) == existing


class TestWizardController:
    """Test suite for the step lifecycle."""

    def test_generate_then_approve(self, controller):
        """Test the happy path for one step."""
        assert controller.can_generate()
        controller.generate("contexto", {"context": "B2B"})
        assert controller.state.step_status == StepStatus.GENERATED
        assert controller.state.output
        assert controller.approve_label == "Aprovar e Continuar"

        controller.approve()
        assert controller.state.current_step == 2
        assert controller.state.step_status == StepStatus.PENDING
        assert [s.step for s in controller.state.previous_steps] == [1]

    def test_approve_requires_generated(self, controller):
        """Test that a pending step cannot be approved."""
        with pytest.raises(InvalidWizardAction):
            controller.approve()

    def test_generate_requires_pending(self, controller):
        """Test that a generated step cannot be generated again."""
        controller.generate()
        with pytest.raises(InvalidWizardAction):
            controller.generate()

    def test_refine_needs_feedback(self, controller):
        """Test that blank feedback is rejected."""
        controller.generate()
        with pytest.raises(InvalidWizardAction):
            controller.refine("   ")

    def test_refine_increments_iteration(self, controller):
        """Test that each refinement bumps the iteration count."""
        controller.generate()
        controller.refine("Mais detalhes")
        controller.refine("Ainda mais")
        assert controller.state.iteration_count == 2
        assert controller.state.step_status == StepStatus.GENERATED

    def test_busy_controller_rejects_actions(self, controller):
        """Test that nothing runs while another action is in flight."""
        controller.is_busy = True
        assert not controller.can_generate()
        with pytest.raises(WizardBusy):
            controller.generate()

    def test_failure_then_retry(self, memory_backend, controller):
        """Test that a failed generation can be retried with the same inputs."""
        original = memory_backend.generate_step
        memory_backend.generate_step = Mock(side_effect=BackendError("timeout"))
        controller.generate("contexto", {"context": "B2B"})
        assert controller.state.step_status == StepStatus.FAILED
        assert controller.state.error_message == "timeout"
        assert not controller.is_busy
        assert controller.can_retry()

        memory_backend.generate_step = Mock(side_effect=original)
        controller.retry()
        memory_backend.generate_step.assert_called_once_with(
            controller.state.analysis_id, "contexto", {"context": "B2B"}
        )
        assert controller.state.step_status == StepStatus.GENERATED

    def test_refine_failure_keeps_iteration(self, memory_backend, controller):
        """Test that a failed refinement still counts as an iteration."""
        controller.generate()
        memory_backend.refine_step = Mock(side_effect=BackendError("boom"))
        controller.refine("Ajuste")
        assert controller.state.step_status == StepStatus.FAILED
        assert controller.state.iteration_count == 1
        assert controller.can_refine()

    def test_approve_error_propagates(self, memory_backend, controller):
        """Test that approval errors reach the caller and leave the step generated."""
        controller.generate()
        memory_backend.approve_step = Mock(side_effect=BackendError("conflict"))
        with pytest.raises(BackendError):
            controller.approve()
        assert controller.state.step_status == StepStatus.GENERATED
        assert not controller.is_busy

    @pytest.mark.parametrize("reply", [{}, None, {"current_step": 1, "step_status": "generated"}])
    def test_approve_never_moves_back(self, memory_backend, controller, reply):
        """Test that an empty or stale approve reply still advances one step."""
        controller.generate()
        controller.approve()
        controller.generate()
        memory_backend.approve_step = Mock(return_value=reply)
        controller.approve()
        assert controller.state.current_step == 3
        assert controller.state.step_status == StepStatus.PENDING
        assert controller.state.output is None
        assert [s.step for s in controller.state.previous_steps] == [1, 2]

    def test_full_run_completes(self, controller):
        """Test that approving the last step completes the wizard."""
        for _ in range(TOTAL_STEPS):
            if controller.state.is_last_step:
                assert controller.approve_label == "Finalizar"
            controller.generate()
            controller.approve()
        assert controller.state.is_complete
        assert controller.state.current_step == TOTAL_STEPS
        assert [s.step for s in controller.state.previous_steps] == list(range(1, 13))

    def test_refresh_adopts_server_state(self, memory_backend, controller):
        """Test that refresh pulls the server snapshot."""
        memory_backend.wizards[controller.state.analysis_id]["step_status"] = "generated"
        controller.refresh()
        assert controller.state.step_status == StepStatus.GENERATED
