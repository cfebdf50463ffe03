"""
Tests for the Report API
========================
FastAPI endpoints, the RQ job status mapping and the PDF export task.
"""

import logging
from dataclasses import replace
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock

import api.main as api_main
import api.tasks as api_tasks
from api.config import get_settings
from api.jobs import job_to_status
from api.logging_config import JSONFormatter, ReadableFormatter, configure_logging
from mock_data import InMemoryBackend
from services.report_service import ReportService


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def client(backend):
    api_main.app.dependency_overrides[api_main.get_report_service] = lambda: ReportService(backend)
    yield TestClient(api_main.app)
    api_main.app.dependency_overrides.clear()


class TestReportEndpoints:
    """Test suite for report endpoints."""

    def test_health(self, client):
        """Test the health check."""
        assert client.get("/health").json() == {"ok": True}

    def test_public_report(self, client, backend):
        """Test rendering a shared report."""
        code = backend.generate_access_code("ana-001")
        response = client.get(f"/report/{code}")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Page 1 of 24" in response.text

    def test_public_report_hides_locked_frameworks(self, client, backend):
        """Test that the public link applies the premium policy."""
        code = backend.generate_access_code("ana-001")
        html = client.get(f"/report/{code}").text
        assert "Contratos anuais obrigatórios" not in html
        assert "Implantação em dias" in html

    def test_unknown_code(self, client):
        """Test the 404 for an unknown share code."""
        assert client.get("/report/NOPE").status_code == 404

    def test_backend_down(self, client, backend, monkeypatch):
        """Test that backend failures map to 502."""
        from backend_client import BackendError

        monkeypatch.setattr(backend, "get_public_report", Mock(side_effect=BackendError("down", status_code=500)))
        assert client.get("/report/ANY").status_code == 502

    def test_report_layout(self, client):
        """Test the page layout listing."""
        layout = client.get("/v1/report-layout").json()
        assert len(layout) == 24
        assert layout[3]["is_divider"] is True

    def test_framework_pages(self, client):
        """Test the framework page lookup."""
        assert client.get("/v1/frameworks/pestel/pages").json() == {"framework": "pestel", "pages": [5, 6]}


class TestStageValidation:
    """Test suite for the stage validation endpoint."""

    def test_allowed_manual_move(self, client):
        """Test a move that needs an admin action."""
        body = client.post("/v1/stages/validate", json={
            "current_stage": 4, "target_stage": 5, "analysis_status": "completed",
            "enrichment_status": "approved",
        }).json()
        assert body["allowed"] is True
        assert body["transition"]["action"] == "approveAnalysis"

    def test_automatic_move(self, client):
        """Test a move the backend makes on its own."""
        body = client.post("/v1/stages/validate", json={
            "current_stage": 1, "target_stage": 2, "enrichment_status": "completed",
        }).json()
        assert body == {"allowed": True, "reason": None, "automatic": True, "transition": None}

    def test_rejected_move(self, client):
        """Test a rejected move."""
        body = client.post("/v1/stages/validate", json={"current_stage": 2, "target_stage": 1}).json()
        assert body["allowed"] is False
        assert body["reason"] == "Não é possível retornar para este estágio"

    def test_out_of_range(self, client):
        """Test request validation."""
        assert client.post("/v1/stages/validate", json={"current_stage": 0, "target_stage": 1}).status_code == 422


class TestPdfJobs:
    """Test suite for PDF export jobs."""

    def test_enqueue(self, client, monkeypatch):
        """Test that an export job is queued."""
        queue = Mock()
        queue.enqueue.return_value = Mock(id="job-1")
        monkeypatch.setattr(api_main, "get_queue", lambda: queue)
        response = client.post("/v1/analyses/ana-001/pdf", json={"access_code": "ABC"})
        assert response.json() == {"job_id": "job-1"}
        args = queue.enqueue.call_args.args
        assert args[1:] == ("ana-001", "ABC", "A4-landscape")

    def test_unknown_job(self, client, monkeypatch):
        """Test the 404 for an unknown job."""
        monkeypatch.setattr(api_main, "fetch_job", lambda job_id: None)
        assert client.get("/v1/jobs/missing").status_code == 404

    def test_job_status(self, client, monkeypatch):
        """Test a finished job."""
        job = Mock(id="job-1", enqueued_at=datetime(2026, 10, 19, 12, 0), started_at=None, ended_at=None)
        job.get_status.return_value = "finished"
        job.return_value.return_value = {"pdf_url": "https://cdn/x.pdf"}
        monkeypatch.setattr(api_main, "fetch_job", lambda job_id: job)
        body = client.get("/v1/jobs/job-1").json()
        assert body["status"] == "finished"
        assert body["result"] == {"pdf_url": "https://cdn/x.pdf"}
        assert body["enqueued_at"] == "2026-10-19T12:00:00+00:00"

    def test_failed_job_error_line(self):
        """Test that the last traceback line becomes the error."""
        job = Mock(id="job-2", enqueued_at=None, started_at=None, ended_at=None,
                   exc_info="Traceback...\nBackendError: PDF renderer failed")
        job.get_status.return_value = "failed"
        assert job_to_status(job)["error"] == "BackendError: PDF renderer failed"


class TestPdfExportTask:
    """Test suite for the worker task."""

    def test_requires_renderer(self, monkeypatch):
        """Test that the task refuses to run without a renderer URL."""
        monkeypatch.delenv("PDF_RENDER_URL", raising=False)
        with pytest.raises(RuntimeError):
            api_tasks.run_pdf_export_task("ana-001")

    def test_records_pdf_url(self, monkeypatch, mock_backend):
        """Test a successful export."""
        monkeypatch.setenv("PDF_RENDER_URL", "https://render.example.com/pdf")
        monkeypatch.setenv("PUBLIC_BASE_URL", "https://reports.example.com/")
        monkeypatch.setattr(api_tasks, "_backend", lambda settings: mock_backend)
        response = Mock()
        response.json.return_value = {"pdf_url": "https://cdn/x.pdf"}
        post = Mock(return_value=response)
        monkeypatch.setattr(api_tasks.requests, "post", post)

        result = api_tasks.run_pdf_export_task("ana-001")

        assert result["report_url"] == "https://reports.example.com/report/ABC12345"
        assert result["pdf_url"] == "https://cdn/x.pdf"
        assert post.call_args.kwargs["json"] == {
            "url": "https://reports.example.com/report/ABC12345", "format": "A4-landscape",
        }
        mock_backend.record_pdf_url.assert_called_once_with("ana-001", "https://cdn/x.pdf")
        mock_backend.close.assert_called_once_with()

    def test_renderer_without_url(self, monkeypatch, mock_backend):
        """Test that a renderer response without pdf_url fails the job."""
        from backend_client import BackendError

        monkeypatch.setenv("PDF_RENDER_URL", "https://render.example.com/pdf")
        monkeypatch.setattr(api_tasks, "_backend", lambda settings: mock_backend)
        response = Mock()
        response.json.return_value = {}
        monkeypatch.setattr(api_tasks.requests, "post", Mock(return_value=response))
        with pytest.raises(BackendError):
            api_tasks.run_pdf_export_task("ana-001", access_code="XYZ")
        mock_backend.record_pdf_url.assert_not_called()
        mock_backend.close.assert_called_once_with()


class TestBackendDependency:
    """Test suite for the per-request backend client."""

    def test_session_closed_after_request(self, monkeypatch):
        """Test that the dependency closes the client once the request is done."""
        from backend_client import BackendClient

        close = Mock()
        monkeypatch.setattr(BackendClient, "close", close)
        dependency = api_main.get_backend()
        backend = next(dependency)
        assert isinstance(backend, BackendClient)
        close.assert_not_called()
        with pytest.raises(StopIteration):
            next(dependency)
        close.assert_called_once_with()


class TestLoggingConfig:
    """Test suite for picking the log format."""

    @pytest.fixture
    def root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_explicit_format_wins(self, monkeypatch):
        """Test that LOG_FORMAT overrides the environment default."""
        monkeypatch.setenv("ENVIRONMENT", "staging")
        monkeypatch.setenv("LOG_FORMAT", "text")
        assert not get_settings().json_logs
        monkeypatch.setenv("ENVIRONMENT", "local")
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        assert get_settings().json_logs

    @pytest.mark.parametrize("environment, expected", [
        ("local", False), ("development", False), ("staging", True), ("production", True),
    ])
    def test_default_by_environment(self, monkeypatch, environment, expected):
        """Test the default format when LOG_FORMAT is not set."""
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.setenv("ENVIRONMENT", environment)
        assert get_settings().json_logs is expected

    def test_configured_format_installed(self, root_logger):
        """Test that the handler follows the configured format, not the environment name."""
        settings = replace(get_settings(), environment="staging", log_format="json")
        configure_logging(settings)
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
        configure_logging(replace(settings, log_format="text"))
        assert isinstance(root_logger.handlers[0].formatter, ReadableFormatter)
        assert len(root_logger.handlers) == 1
