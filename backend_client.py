"""
Imensiah - Backend REST Client
==============================
Thin requests wrapper around the platform backend. Submissions, enrichments
and analyses live there; this client fetches them, normalizes them through
analysis_schema, and posts admin actions back.

Every call carries an explicit timeout and raises BackendError on failure.
Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
GENERATION_TIMEOUT = 120


class BackendError(RuntimeError):
    """A backend request failed (network error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """
    REST client for the Imensiah backend.

    Args:
        base_url: Backend API root, e.g. https://api.imensiah.com.br/api/v1
        token: Optional bearer token
        timeout: Request timeout in seconds
        session: Optional pre-built requests.Session (tests inject one)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self.session.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, json=json, params=params, timeout=timeout or self.timeout
            )
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise BackendError(f"Falha de conexão com o servidor: {e}") from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("%s %s -> %s %s", method, path, response.status_code, detail)
            raise BackendError(detail, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Resposta inválida do servidor em {path}",
                               status_code=response.status_code) from e

    def _get(self, path: str, **kwargs: Any) -> Any:
        return self._request("GET", path, **kwargs)

    def _post(self, path: str, payload: Any = None, **kwargs: Any) -> Any:
        return self._request("POST", path, json=payload if payload is not None else {}, **kwargs)

    def _put(self, path: str, payload: Any, **kwargs: Any) -> Any:
        return self._request("PUT", path, json=payload, **kwargs)

    # ------------------------------------------------------------------
    # Submissions / workflow
    # ------------------------------------------------------------------

    def list_submissions(self, page: int = 1, page_size: int = 50) -> List[Dict[str, Any]]:
        data = self._get("/admin/submissions", params={"page": page, "pageSize": page_size})
        if isinstance(data, dict):
            return list(data.get("items") or data.get("submissions") or data.get("data") or [])
        return list(data or [])

    def get_workflow(self, submission_id: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Return (submission, enrichment, analysis) raw payloads."""
        data = self._get(f"/submissions/{submission_id}/workflow") or {}
        submission = data.get("submission")
        if submission is None:
            raise BackendError(f"Submissão {submission_id} não encontrada", status_code=404)
        return submission, data.get("enrichment"), data.get("analysis")

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def approve_enrichment(self, enrichment_id: str) -> Any:
        return self._post(f"/admin/enrichment/{enrichment_id}/approve")

    def reopen_enrichment(self, enrichment_id: str) -> Any:
        return self._post(f"/admin/enrichment/{enrichment_id}/reopen")

    def update_enrichment(self, enrichment_id: str, data: Dict[str, Any]) -> Any:
        return self._put(f"/admin/enrichment/{enrichment_id}", {"data": data})

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def approve_analysis(self, analysis_id: str) -> Any:
        return self._post(f"/admin/analysis/{analysis_id}/approve")

    def reopen_analysis(self, analysis_id: str) -> Any:
        return self._post(f"/admin/analysis/{analysis_id}/reopen")

    def save_analysis(self, analysis_id: str, frameworks: Dict[str, Any], version: int) -> Any:
        return self._put(f"/admin/analysis/{analysis_id}", {"analysis": frameworks, "version": version})

    def set_visibility(self, analysis_id: str, visible: bool) -> Any:
        return self._post(f"/admin/analysis/{analysis_id}/visibility", {"visible": visible})

    def set_blur(self, analysis_id: str, blurred: bool) -> Any:
        return self._post(f"/admin/analysis/{analysis_id}/blur", {"blurred": blurred})

    def generate_access_code(self, analysis_id: str) -> str:
        data = self._post(f"/admin/analysis/{analysis_id}/access-code") or {}
        code = data.get("access_code") or data.get("accessCode")
        if not code:
            raise BackendError("O servidor não retornou um código de acesso")
        return code

    def record_pdf_url(self, analysis_id: str, pdf_url: str) -> Any:
        return self._post(f"/admin/analysis/{analysis_id}/pdf", {"pdf_url": pdf_url})

    def get_public_report(self, access_code: str) -> Dict[str, Any]:
        return self._get(f"/public/report/{access_code}") or {}

    def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        return self._get(f"/admin/analysis/{analysis_id}") or {}

    # ------------------------------------------------------------------
    # Wizard
    # ------------------------------------------------------------------

    def start_wizard(self, company_id: str, challenge_id: str) -> str:
        data = self._post("/wizard/start", {"company_id": company_id, "challenge_id": challenge_id}) or {}
        return str(data.get("analysis_id") or "")

    def get_wizard_state(self, analysis_id: str) -> Dict[str, Any]:
        return self._get(f"/analyses/{analysis_id}/wizard") or {}

    def generate_step(
        self,
        analysis_id: str,
        human_context: Optional[str] = None,
        human_answers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if human_context:
            payload["human_context"] = human_context
        if human_answers:
            payload["human_answers"] = human_answers
        return self._post(f"/analyses/{analysis_id}/wizard/generate", payload,
                          timeout=GENERATION_TIMEOUT) or {}

    def approve_step(self, analysis_id: str) -> Dict[str, Any]:
        return self._post(f"/analyses/{analysis_id}/wizard/approve") or {}

    def refine_step(self, analysis_id: str, feedback: str) -> Dict[str, Any]:
        return self._post(f"/analyses/{analysis_id}/wizard/refine", {"feedback": feedback},
                          timeout=GENERATION_TIMEOUT) or {}

    def get_wizard_summary(self, analysis_id: str) -> Dict[str, Any]:
        return self._get(f"/analyses/{analysis_id}/wizard/summary") or {}


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"
