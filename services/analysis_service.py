"""
Analysis Service
================
Saving, approving and exporting War Room edits.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, Optional

from analysis_schema import Analysis, normalize_frameworks
from api.serialize import to_jsonable
from workflow_stages import AnalysisStatus

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (AnalysisStatus.GENERATED, AnalysisStatus.COMPLETED)


class AnalysisService:
    """Service for edits to a generated analysis."""

    def __init__(self, backend):
        """
        Initialize analysis service.

        Args:
            backend: BackendClient (or InMemoryBackend in demo mode)
        """
        self.backend = backend

    @staticmethod
    def is_editable(analysis: Analysis) -> bool:
        return analysis.status in EDITABLE_STATUSES

    def save_draft(self, analysis: Analysis, frameworks: Dict[str, Any]) -> int:
        """
        Persist an edited framework dict as a new version.

        Args:
            analysis: Analysis being edited
            frameworks: Edited frameworks (canonical keys)

        Returns:
            The new version number
        """
        if not self.is_editable(analysis):
            raise ValueError(f"Analysis {analysis.id} is not editable in status '{analysis.status.value}'")
        version = analysis.version + 1
        self.backend.save_analysis(analysis.id, normalize_frameworks(frameworks), version)
        logger.info("Saved analysis %s as version %s", analysis.id, version)
        return version

    def approve(self, analysis: Analysis, frameworks: Optional[Dict[str, Any]] = None) -> None:
        """
        Approve an analysis, saving pending edits first.

        Args:
            analysis: Analysis to approve
            frameworks: Unsaved edits to persist before approval, if any
        """
        if frameworks is not None:
            self.save_draft(analysis, frameworks)
        self.backend.approve_analysis(analysis.id)
        logger.info("Approved analysis %s", analysis.id)

    @staticmethod
    def export_filename(analysis: Analysis, today: Optional[date] = None) -> str:
        stamp = (today or date.today()).isoformat()
        return f"analysis_{analysis.submission_id}_v{analysis.version}_{stamp}.json"

    @staticmethod
    def export_json(analysis: Analysis, frameworks: Optional[Dict[str, Any]] = None) -> str:
        """JSON document for the "Download JSON" action."""
        payload = analysis.model_dump(mode="json")
        if frameworks is not None:
            payload["analysis"] = frameworks
        return json.dumps(to_jsonable(payload), ensure_ascii=False, indent=2)
