"""
Report Service
==============
Turns a stored analysis into the rendered 24-page report.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from analysis_schema import Analysis, Submission, apply_access_policy, parse_analysis, parse_submission
from report_engine import ReportContext, RenderedPage, build_context, render_report, render_report_html

logger = logging.getLogger(__name__)


class ReportService:
    """Service for report rendering (preview and public link)."""

    def __init__(self, backend=None):
        """
        Initialize report service.

        Args:
            backend: BackendClient, needed only for public report lookups
        """
        self.backend = backend

    @staticmethod
    def context_for(
        analysis: Optional[Analysis],
        submission: Optional[Submission],
        frameworks: Optional[Dict[str, Any]] = None,
        report_date: Optional[date] = None,
    ) -> ReportContext:
        """
        Build the render context.

        Args:
            analysis: Analysis record (may be None for an empty preview)
            submission: Company submission, for cover metadata
            frameworks: Override for analysis.analysis (War Room drafts)
            report_date: Date printed on the report; defaults to the last
                update of the analysis, else today
        """
        if frameworks is None:
            frameworks = analysis.analysis if analysis else {}
        if report_date is None and analysis is not None:
            report_date = analysis.updated_at or analysis.created_at
        return build_context(
            frameworks,
            company_name=submission.company_name if submission else "",
            industry=submission.industry if submission else None,
            market=submission.target_market if submission else None,
            report_date=report_date,
            version=analysis.version if analysis else 1,
        )

    def render_pages(self, analysis, submission, frameworks=None) -> List[RenderedPage]:
        return render_report(self.context_for(analysis, submission, frameworks))

    def load_public(self, access_code: str) -> Tuple[Analysis, Optional[Submission]]:
        """
        Fetch a report by its share code.

        Raises:
            BackendError: If the code is unknown or the backend is unreachable
        """
        payload = self.backend.get_public_report(access_code)
        submission_payload = payload.get("submission")
        if submission_payload is None and payload.get("company_name"):
            submission_payload = {
                "id": payload.get("submission_id") or "",
                "company_name": payload.get("company_name"),
                "industry": payload.get("industry"),
                "target_market": payload.get("target_market"),
            }
        return parse_analysis(payload), parse_submission(submission_payload)

    @staticmethod
    def visible_frameworks(analysis: Analysis, is_admin: bool = False) -> Dict[str, Any]:
        """Framework dict with the premium access policy applied."""
        out: Dict[str, Any] = {}
        for key in analysis.analysis:
            view = apply_access_policy(analysis, key, is_admin=is_admin)
            if view.data:
                out[key] = view.data
        return out

    def render_public_html(self, access_code: str) -> str:
        analysis, submission = self.load_public(access_code)
        pages = self.render_pages(analysis, submission, self.visible_frameworks(analysis))
        title = f"Relatório Estratégico - {submission.company_name}" if submission else "Relatório Estratégico"
        logger.info("Rendered public report %s (%s pages)", access_code, len(pages))
        return render_report_html(pages, title=title)
