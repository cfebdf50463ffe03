"""
Unit Tests for Services
========================
Tests for the workflow, analysis and report service classes and the
session state manager.
"""

import json
from datetime import date

import pytest
from unittest.mock import Mock

import services.workflow_service as workflow_module
from analysis_schema import Analysis, normalize_frameworks, parse_enrichment
from backend_client import BackendError
from services.analysis_service import AnalysisService
from services.report_service import ReportService
from services.session_manager import SessionManager
from services.workflow_service import StageChangeRejected, TransitionInProgress, WorkflowService


class TestWorkflowService:
    """Test suite for WorkflowService."""

    def test_service_initialization(self, mock_backend):
        """Test service initialization."""
        service = WorkflowService(mock_backend)
        assert service.backend == mock_backend

    def test_list_submissions_newest_first(self, memory_backend):
        """Test that submissions come back sorted by creation date."""
        submissions = WorkflowService(memory_backend).list_submissions()
        assert [s.id for s in submissions] == ['sub-003', 'sub-002', 'sub-001']
        assert submissions[1].company_name == 'Verde Agro Ltda'

    @pytest.mark.parametrize("submission_id, admin_stage, user_stage", [
        ('sub-001', 4, 2),
        ('sub-002', 2, 1),
        ('sub-003', 1, 1),
    ])
    def test_load_derives_stage(self, memory_backend, submission_id, admin_stage, user_stage):
        """Test stage derivation from loaded records."""
        snapshot = WorkflowService(memory_backend).load(submission_id)
        assert snapshot.admin_stage == admin_stage
        assert snapshot.user_stage == user_stage

    def test_load_unknown_submission(self, memory_backend):
        """Test that unknown submissions raise BackendError."""
        with pytest.raises(BackendError):
            WorkflowService(memory_backend).load('sub-999')

    def test_approve_enrichment_starts_analysis(self, memory_backend):
        """Test the 2 -> 3 move."""
        service = WorkflowService(memory_backend)
        transition = service.change_stage(service.load('sub-002'), 3)
        assert transition.action == 'approveEnrichment'
        assert ('approve_enrichment', ('enr-002',)) in memory_backend.calls
        # The demo backend finishes generation on the next fetch
        assert service.load('sub-002').admin_stage == 4

    def test_approve_then_release_then_reopen(self, memory_backend):
        """Test the 4 -> 5 -> 6 -> 4 path."""
        service = WorkflowService(memory_backend)
        service.change_stage(service.load('sub-001'), 5)
        assert service.load('sub-001').admin_stage == 5

        service.change_stage(service.load('sub-001'), 6)
        snapshot = service.load('sub-001')
        assert snapshot.admin_stage == 6
        assert snapshot.user_stage == 3

        service.change_stage(snapshot, 4)
        assert memory_backend.calls[-2:] == [
            ('set_visibility', ('ana-001', False)),
            ('reopen_analysis', ('ana-001',)),
        ]
        assert service.load('sub-001').admin_stage == 4

    def test_hide_released_report(self, memory_backend):
        """Test the 6 -> 5 move."""
        service = WorkflowService(memory_backend)
        service.change_stage(service.load('sub-001'), 5)
        service.change_stage(service.load('sub-001'), 6)
        service.change_stage(service.load('sub-001'), 5)
        assert memory_backend.calls[-1] == ('set_visibility', ('ana-001', False))
        assert service.load('sub-001').admin_stage == 5

    def test_reopen_enrichment(self, memory_backend):
        """Test the 4 -> 2 move."""
        service = WorkflowService(memory_backend)
        service.change_stage(service.load('sub-001'), 2)
        assert memory_backend.calls[-1] == ('reopen_enrichment', ('enr-001',))
        assert service.load('sub-001').admin_stage == 2

    def test_rejected_move_calls_nothing(self, memory_backend):
        """Test that an invalid move raises without touching the backend."""
        service = WorkflowService(memory_backend)
        with pytest.raises(StageChangeRejected) as excinfo:
            service.change_stage(service.load('sub-001'), 6)
        assert excinfo.value.reason == "Avance um estágio por vez"
        assert memory_backend.calls == []

    def test_same_stage_rejected(self, memory_backend):
        """Test that the current stage is not a valid target."""
        service = WorkflowService(memory_backend)
        assert service.validate_stage_change(service.load('sub-002'), 2) == "Já está neste estágio"

    def test_single_flight(self, memory_backend, monkeypatch):
        """Test that a second change for the same submission is refused."""
        monkeypatch.setattr(workflow_module, "_in_flight", {'sub-002'})
        service = WorkflowService(memory_backend)
        with pytest.raises(TransitionInProgress):
            service.change_stage(service.load('sub-002'), 3)
        assert memory_backend.calls == []

    def test_single_flight_released_after_error(self, mock_backend, memory_backend, monkeypatch):
        """Test that a failed backend call frees the submission."""
        monkeypatch.setattr(workflow_module, "_in_flight", set())
        snapshot = WorkflowService(memory_backend).load('sub-002')
        mock_backend.approve_enrichment.side_effect = BackendError("down", status_code=503)
        service = WorkflowService(mock_backend)
        with pytest.raises(BackendError):
            service.change_stage(snapshot, 3)
        assert workflow_module._in_flight == set()

    def test_toggle_blur(self, mock_backend, released_analysis):
        """Test flipping the premium blur."""
        analysis = Analysis.model_validate(released_analysis)
        assert WorkflowService(mock_backend).toggle_blur(analysis) is False
        mock_backend.set_blur.assert_called_once_with('ana-100', False)

    def test_toggle_blur_requires_release(self, mock_backend, sample_analysis):
        """Test that blur is only offered on released reports."""
        with pytest.raises(StageChangeRejected):
            WorkflowService(mock_backend).toggle_blur(Analysis.model_validate(sample_analysis))
        mock_backend.set_blur.assert_not_called()

    def test_share_url_generates_code(self, mock_backend, released_analysis):
        """Test share link creation."""
        analysis = Analysis.model_validate(released_analysis)
        url = WorkflowService(mock_backend).get_share_url(analysis, "https://imensiah.com.br/")
        assert url == "https://imensiah.com.br/report/ABC12345"

    def test_share_url_reuses_code(self, mock_backend, released_analysis):
        """Test that an existing access code is reused."""
        analysis = Analysis.model_validate({**released_analysis, 'accessCode': 'XYZ'})
        url = WorkflowService(mock_backend).get_share_url(analysis, "https://imensiah.com.br")
        assert url.endswith("/report/XYZ")
        mock_backend.generate_access_code.assert_not_called()

    def test_update_enrichment(self, mock_backend, sample_enrichment):
        """Test that only completed enrichments accept edits."""
        service = WorkflowService(mock_backend)
        with pytest.raises(StageChangeRejected):
            service.update_enrichment(parse_enrichment(sample_enrichment), {})

        open_enrichment = parse_enrichment({**sample_enrichment, 'status': 'completed'})
        service.update_enrichment(open_enrichment, {'a': 1})
        mock_backend.update_enrichment.assert_called_once_with('enr-001', {'a': 1})


class TestAnalysisService:
    """Test suite for AnalysisService."""

    def test_save_draft_bumps_version(self, mock_backend, sample_analysis, sample_frameworks):
        """Test that saving writes a new version with canonical keys."""
        analysis = Analysis.model_validate(sample_analysis)
        version = AnalysisService(mock_backend).save_draft(analysis, sample_frameworks)
        assert version == 3
        mock_backend.save_analysis.assert_called_once_with(
            'ana-100', normalize_frameworks(sample_frameworks), 3
        )

    def test_save_draft_rejects_approved(self, mock_backend, released_analysis):
        """Test that approved analyses are not editable."""
        with pytest.raises(ValueError):
            AnalysisService(mock_backend).save_draft(Analysis.model_validate(released_analysis), {})
        mock_backend.save_analysis.assert_not_called()

    def test_approve_with_pending_edits(self, mock_backend, sample_analysis):
        """Test that unsaved edits are saved before approval."""
        analysis = Analysis.model_validate(sample_analysis)
        AnalysisService(mock_backend).approve(analysis, {'swot': {'strengths': ['x']}})
        assert [c[0] for c in mock_backend.method_calls] == ['save_analysis', 'approve_analysis']

    def test_approve_without_edits(self, mock_backend, sample_analysis):
        """Test approval without a draft."""
        AnalysisService(mock_backend).approve(Analysis.model_validate(sample_analysis))
        mock_backend.save_analysis.assert_not_called()
        mock_backend.approve_analysis.assert_called_once_with('ana-100')

    def test_export(self, sample_analysis):
        """Test JSON export and its file name."""
        analysis = Analysis.model_validate(sample_analysis)
        assert AnalysisService.export_filename(analysis, date(2026, 10, 19)) == \
            "analysis_sub-001_v2_2026-10-19.json"
        payload = json.loads(AnalysisService.export_json(analysis, {'swot': {}}))
        assert payload['id'] == 'ana-100'
        assert payload['analysis'] == {'swot': {}}
        assert payload['status'] == 'completed'


class TestReportService:
    """Test suite for ReportService."""

    def test_context_uses_submission_and_dates(self, sample_analysis, sample_submission):
        """Test cover metadata in the render context."""
        from analysis_schema import parse_submission

        ctx = ReportService.context_for(Analysis.model_validate(sample_analysis), parse_submission(sample_submission))
        assert ctx.company_name == 'TechFlow Soluções'
        assert ctx.industry == 'Tecnologia'
        assert ctx.market == 'Brasil'
        assert ctx.date == "5 de setembro de 2026"
        assert ctx.version == 2

    def test_context_draft_override(self, sample_analysis):
        """Test that a War Room draft replaces the saved frameworks."""
        ctx = ReportService.context_for(Analysis.model_validate(sample_analysis), None, {'swot': {'strengths': ['x']}})
        assert ctx.analysis == {'swot': {'strengths': ['x']}}

    def test_empty_preview(self):
        """Test rendering without an analysis."""
        pages = ReportService().render_pages(None, None)
        assert len(pages) == 24

    def test_visible_frameworks_applies_policy(self, sample_analysis):
        """Test premium gating of a blurred analysis."""
        visible = ReportService.visible_frameworks(Analysis.model_validate(sample_analysis))
        assert 'blueOcean' not in visible
        assert set(visible['porter']) == {'summary', 'overallAttractiveness'}
        assert visible['swot']['strengths']

    def test_admin_sees_all_frameworks(self, sample_analysis):
        """Test that admins are not gated."""
        analysis = Analysis.model_validate(sample_analysis)
        assert set(ReportService.visible_frameworks(analysis, is_admin=True)) == set(analysis.analysis)

    def test_public_html(self, memory_backend):
        """Test rendering a report by its share code."""
        code = memory_backend.generate_access_code('ana-001')
        html = ReportService(memory_backend).render_public_html(code)
        assert "TechFlow Soluções" in html
        assert "Page 24 of 24" in html

    def test_public_unknown_code(self, memory_backend):
        """Test that unknown codes raise a 404 BackendError."""
        with pytest.raises(BackendError) as excinfo:
            ReportService(memory_backend).render_public_html('NOPE')
        assert excinfo.value.status_code == 404

    def test_public_flat_payload(self):
        """Test public payloads that carry company fields at the top level."""
        backend = Mock()
        backend.get_public_report.return_value = {
            'id': 'a1', 'submission_id': 's1', 'company_name': 'Acme', 'industry': 'Varejo',
            'framework_results': {'swot': {'strengths': ['x']}},
        }
        analysis, submission = ReportService(backend).load_public('CODE')
        assert submission.company_name == 'Acme'
        assert analysis.analysis == {'swot': {'strengths': ['x']}}


class TestSessionManager:
    """Test suite for SessionManager."""

    def test_get_set_basic(self, session_state):
        """Test basic get/set operations."""
        SessionManager.set('test_key', 'test_value')
        assert SessionManager.get('test_key') == 'test_value'

    def test_delete_key(self, session_state):
        """Test deleting a key."""
        SessionManager.set('test_key', 'test_value')
        SessionManager.delete('test_key')
        assert not SessionManager.exists('test_key')

    def test_get_or_create(self, session_state):
        """Test lazy creation of namespaced entries."""
        first = SessionManager.get_or_create('stage_flow_sub-001', list)
        assert SessionManager.get_or_create('stage_flow_sub-001', dict) is first

    def test_drafts(self, session_state):
        """Test the War Room draft helpers."""
        SessionManager.set_draft('ana-1', {'swot': {}})
        assert SessionManager.is_draft_dirty('ana-1')
        SessionManager.set_draft('ana-1', {'swot': {}}, dirty=False)
        assert not SessionManager.is_draft_dirty('ana-1')
        SessionManager.clear_draft('ana-1')
        assert SessionManager.get_draft('ana-1') is None

    def test_clear_cache(self, session_state):
        """Test that namespaced entries are cleared and others kept."""
        SessionManager.set_draft('ana-1', {})
        SessionManager.set('wizard_sub-001', object())
        SessionManager.set_submission_id('sub-001')
        SessionManager.clear_cache()
        assert session_state == {'submission_id': 'sub-001'}

    def test_validate_state(self, session_state):
        """Test state validation."""
        assert SessionManager.validate_state() == (True, [])
        SessionManager.set(SessionManager.USER_ROLE, 'guest')
        is_valid, issues = SessionManager.validate_state()
        assert not is_valid
        assert issues

    def test_is_admin_default(self, session_state):
        """Test that the admin role is the default."""
        assert SessionManager.is_admin()
        SessionManager.set(SessionManager.USER_ROLE, 'user')
        assert not SessionManager.is_admin()
