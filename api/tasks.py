from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from api.config import Settings, get_settings
from backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)


def _backend(settings: Settings) -> BackendClient:
    return BackendClient(
        settings.backend_api_url,
        token=settings.backend_api_token,
        timeout=settings.request_timeout,
    )


def run_pdf_export_task(
    analysis_id: str,
    access_code: Optional[str] = None,
    page_format: str = "A4-landscape",
) -> Dict[str, Any]:
    """
    Render the public report URL to PDF and record the result on the analysis.

    The PDF itself is produced by the external renderer at PDF_RENDER_URL,
    which loads {PUBLIC_BASE_URL}/report/{access_code}.
    """
    settings = get_settings()
    if not settings.pdf_render_url:
        raise RuntimeError("PDF_RENDER_URL is not configured")

    backend = _backend(settings)
    try:
        return _export(backend, settings, analysis_id, access_code, page_format)
    finally:
        backend.close()


def _export(
    backend: BackendClient,
    settings: Settings,
    analysis_id: str,
    access_code: Optional[str],
    page_format: str,
) -> Dict[str, Any]:
    code = access_code or backend.generate_access_code(analysis_id)
    report_url = f"{settings.public_base_url}/report/{code}"
    logger.info("Exporting PDF for analysis %s from %s", analysis_id, report_url,
                extra={"analysis_id": analysis_id})

    try:
        response = requests.post(
            settings.pdf_render_url,
            json={"url": report_url, "format": page_format},
            timeout=max(settings.request_timeout, 120),
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise BackendError(f"PDF renderer failed: {e}") from e

    pdf_url = (response.json() or {}).get("pdf_url")
    if not pdf_url:
        raise BackendError("PDF renderer returned no pdf_url")

    backend.record_pdf_url(analysis_id, pdf_url)
    return {
        "analysis_id": analysis_id,
        "access_code": code,
        "report_url": report_url,
        "pdf_url": pdf_url,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
