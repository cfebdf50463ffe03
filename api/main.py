from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse

from api.config import get_settings
from api.jobs import fetch_job, job_to_status
from api.logging_config import configure_logging
from api.models import (
    JobStatusResponse,
    PageMappingOut,
    PdfExportRequest,
    StageTransitionOut,
    StageValidationRequest,
    StageValidationResponse,
)
from api.queue import get_queue
from api.tasks import run_pdf_export_task
from backend_client import BackendClient, BackendError
from page_mapping import PAGE_MAPPINGS, get_framework_pages
from services.report_service import ReportService
from workflow_stages import AUTOMATIC_TRANSITIONS, can_move_to_stage, get_stage_transition

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(title="Imensiah Report API", version="0.1.0")


def get_backend() -> Iterator[BackendClient]:
    settings = get_settings()
    with BackendClient(
        settings.backend_api_url,
        token=settings.backend_api_token,
        timeout=settings.request_timeout,
    ) as backend:
        yield backend


def get_report_service(backend=Depends(get_backend)) -> ReportService:
    return ReportService(backend)


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/report/{access_code}", response_class=HTMLResponse)
def public_report(access_code: str, reports: ReportService = Depends(get_report_service)):
    try:
        return HTMLResponse(reports.render_public_html(access_code))
    except BackendError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Report not found")
        logger.error("Public report %s failed: %s", access_code, e)
        raise HTTPException(status_code=502, detail="Backend unavailable")


@app.get("/v1/report-layout", response_model=list[PageMappingOut])
def report_layout():
    return [
        PageMappingOut(
            page_number=m.page_number,
            template_file=m.template_file,
            title=m.title,
            framework=m.framework,
            is_divider=m.is_divider,
        )
        for m in PAGE_MAPPINGS
    ]


@app.get("/v1/frameworks/{framework}/pages")
def framework_pages(framework: str) -> dict:
    return {"framework": framework, "pages": get_framework_pages(framework)}


@app.post("/v1/stages/validate", response_model=StageValidationResponse)
def validate_stage_change(req: StageValidationRequest):
    reason = can_move_to_stage(req.current_stage, req.target_stage, req.enrichment_status, req.analysis_status)
    if reason:
        return StageValidationResponse(allowed=False, reason=reason)

    transition = get_stage_transition(req.current_stage, req.target_stage)
    if transition is None:
        return StageValidationResponse(
            allowed=True,
            automatic=(req.current_stage, req.target_stage) in AUTOMATIC_TRANSITIONS,
        )
    return StageValidationResponse(
        allowed=True,
        transition=StageTransitionOut(
            action=transition.action,
            description=transition.description,
            params=dict(transition.params),
            consequences=list(transition.consequences),
            is_backward=transition.is_backward,
        ),
    )


@app.post("/v1/analyses/{analysis_id}/pdf")
def enqueue_pdf_export(analysis_id: str, req: PdfExportRequest) -> dict:
    q = get_queue()
    job = q.enqueue(
        run_pdf_export_task,
        analysis_id,
        req.access_code,
        req.format,
        job_timeout=60 * 10,
        result_ttl=60 * 60 * 24,
    )
    logger.info("Queued PDF export %s for analysis %s", job.id, analysis_id)
    return {"job_id": job.id}


@app.get("/v1/jobs/{job_id}", response_model=JobStatusResponse)
def get_job_status(job_id: str):
    job = fetch_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job_to_status(job)
